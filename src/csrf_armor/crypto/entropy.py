# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Nonce and secret generation backed by the OS CSPRNG."""

from __future__ import annotations

import secrets

DEFAULT_NONCE_BYTES: int = 16
"""Random bytes in a token nonce (32 hex characters)."""

DEFAULT_SECRET_BYTES: int = 32
"""Random bytes in a generated signing secret (256 bits)."""

MIN_SECRET_LENGTH: int = 32
"""Secrets shorter than this many characters are reported as weak."""


def generate_nonce(byte_length: int = DEFAULT_NONCE_BYTES) -> str:
    """Generate a random nonce as a lowercase hex string.

    Args:
        byte_length: Number of random bytes to draw.

    Returns:
        A hex string of exactly ``2 * byte_length`` characters.

    Raises:
        ValueError: If *byte_length* is less than 1.
    """
    if byte_length < 1:
        raise ValueError(f"Nonce length must be positive, got {byte_length}")
    return secrets.token_hex(byte_length)


def generate_secure_secret(byte_length: int = DEFAULT_SECRET_BYTES) -> str:
    """Generate a signing secret as URL-safe base64 text.

    Suitable for local development only; production deployments must supply a
    stable secret so tokens survive restarts and are shared across workers.
    """
    return secrets.token_urlsafe(byte_length)


def is_weak_secret(secret: str) -> bool:
    """Return ``True`` if *secret* is too short to carry enough entropy."""
    return len(secret) < MIN_SECRET_LENGTH
