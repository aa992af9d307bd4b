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
"""Constant-time comparison for tokens, signatures and cookie values."""

from __future__ import annotations

import hmac


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def timing_safe_equal(a: str | bytes, b: str | bytes) -> bool:
    """Compare two values in time independent of where they first differ.

    Strings are compared as their UTF-8 encodings. ``hmac.compare_digest``
    accumulates the XOR of every byte pair across the full length before
    deciding, so equal-length inputs never short-circuit.

    A length mismatch returns ``False``. Length is not secret, but the
    function still runs a full-length comparison of *a* against itself so
    the call costs the same order of work either way.

    Args:
        a: First value.
        b: Second value.

    Returns:
        ``True`` if both values are byte-for-byte identical.
    """
    left = _as_bytes(a)
    right = _as_bytes(b)
    if len(left) != len(right):
        hmac.compare_digest(left, left)
        return False
    return hmac.compare_digest(left, right)
