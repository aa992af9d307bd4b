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
"""Signed token codec — HMAC-SHA256 over dot-separated segments.

Two wire formats are supported:

* **Structured** ``"<exp>.<nonce>.<signature>"``: carries its own expiry so
  it can be validated without server-side state.
* **Generic** ``"<value>.<signature>"``: binds an opaque value (the
  signed-double-submit nonce) to a server signature without any expiry.

Signatures are lowercase hex HMAC-SHA256 digests keyed with the UTF-8
encoding of the secret. All signature checks go through
:func:`~csrf_armor.crypto.compare.timing_safe_equal`.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import time
from dataclasses import dataclass

from csrf_armor.crypto.compare import timing_safe_equal
from csrf_armor.crypto.entropy import generate_nonce
from csrf_armor.kernel.exceptions import TokenExpiredError, TokenInvalidError

SEPARATOR = "."

_EXPIRY_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class TokenPayload:
    """Decoded body of a structured signed token."""

    exp: int  # unix seconds
    nonce: str  # hex


def _now() -> int:
    return int(time.time())


def sign_payload(payload: str, secret: str) -> str:
    """Return the hex HMAC-SHA256 of *payload* keyed with *secret*."""
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Structured tokens
# ---------------------------------------------------------------------------


def generate_signed_token(secret: str, expiry_seconds: int, *, now: int | None = None) -> str:
    """Create a structured token valid for *expiry_seconds* from *now*.

    Args:
        secret: HMAC signing secret.
        expiry_seconds: Lifetime of the token in seconds.
        now: Current unix time; defaults to the system clock.

    Returns:
        ``"<exp>.<nonce>.<signature>"``
    """
    issued_at = _now() if now is None else now
    exp = issued_at + expiry_seconds
    payload = f"{exp}{SEPARATOR}{generate_nonce()}"
    return f"{payload}{SEPARATOR}{sign_payload(payload, secret)}"


def parse_signed_token(token: str, secret: str, *, now: int | None = None) -> TokenPayload:
    """Verify a structured token and return its payload.

    The signature is checked before the expiry is interpreted, so a forged
    token is always reported as invalid rather than expired.

    Raises:
        TokenInvalidError: Wrong segment count, empty segment, bad signature,
            or a non-numeric expiry.
        TokenExpiredError: The token's expiry is in the past.
    """
    parts = token.split(SEPARATOR)
    if len(parts) != 3:
        raise TokenInvalidError("Token must have 3 parts")

    exp_str, nonce, signature = parts
    if not exp_str or not nonce or not signature:
        raise TokenInvalidError("Token parts cannot be empty")

    expected = sign_payload(f"{exp_str}{SEPARATOR}{nonce}", secret)
    if not timing_safe_equal(signature, expected):
        raise TokenInvalidError("Invalid signature")

    if not _EXPIRY_RE.fullmatch(exp_str):
        raise TokenInvalidError("Invalid expiration timestamp")
    exp = int(exp_str)

    current = _now() if now is None else now
    if exp < current:
        raise TokenExpiredError()

    return TokenPayload(exp=exp, nonce=nonce)


# ---------------------------------------------------------------------------
# Generic signed values
# ---------------------------------------------------------------------------


def sign_unsigned_token(value: str, secret: str) -> str:
    """Append an HMAC signature to *value*: ``"<value>.<signature>"``."""
    return f"{value}{SEPARATOR}{sign_payload(value, secret)}"


def verify_signed_token(signed_value: str, secret: str) -> str:
    """Verify a generic signed value and return the original value.

    The value is split on the *last* separator, so values may themselves
    contain dots.

    Raises:
        TokenInvalidError: Missing separator, empty part, or bad signature.
    """
    value, separator, signature = signed_value.rpartition(SEPARATOR)
    if not separator:
        raise TokenInvalidError("Signed token must have 2 parts")
    if not value or not signature:
        raise TokenInvalidError("Token parts cannot be empty")

    if not timing_safe_equal(signature, sign_payload(value, secret)):
        raise TokenInvalidError("Invalid signature")

    return value
