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
"""Unified exception hierarchy for csrf-armor.

All library exceptions inherit from CsrfArmorException, enabling unified
error handling. The CSRF taxonomy is closed:

- TokenExpiredError: a structured token's expiry has passed
- TokenInvalidError: malformed token, bad signature, unparsable expiry
- OriginMismatchError: origin present but not in the allow-list
- CsrfVerificationError: a request was rejected and the caller asked for
  an exception instead of a result value

Every CsrfError carries a machine-readable ``code`` and an HTTP status hint
(403 for all CSRF failures).
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class CsrfArmorException(Exception):
    """Base exception for all csrf-armor errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "TOKEN_INVALID").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.context: dict = context if context is not None else {}


class ConfigurationException(CsrfArmorException):
    """Configuration is missing, malformed, or fails validation."""


class SecurityException(CsrfArmorException):
    """Security policy violations."""


# ---------------------------------------------------------------------------
# CSRF taxonomy
# ---------------------------------------------------------------------------


class CsrfError(SecurityException):
    """Base class for CSRF failures.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code.
        status_code: HTTP status the caller should answer with.
    """

    def __init__(
        self,
        message: str,
        code: str = "CSRF_ERROR",
        status_code: int = 403,
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.status_code = status_code


class TokenExpiredError(CsrfError):
    """The structured token's expiry timestamp has passed."""

    def __init__(self) -> None:
        super().__init__("CSRF token has expired", code="TOKEN_EXPIRED")


class TokenInvalidError(CsrfError):
    """The token is malformed or its signature does not verify."""

    def __init__(self, reason: str = "Invalid token format") -> None:
        super().__init__(
            f"CSRF token is invalid: {reason}",
            code="TOKEN_INVALID",
            context={"reason": reason},
        )
        self.reason = reason


class OriginMismatchError(CsrfError):
    """The request origin is not in the configured allow-list."""

    def __init__(self, origin: str) -> None:
        super().__init__(
            f'Origin "{origin}" is not allowed',
            code="ORIGIN_MISMATCH",
            context={"origin": origin},
        )
        self.origin = origin


class CsrfVerificationError(CsrfError):
    """A request failed CSRF validation."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, code="CSRF_VERIFICATION_ERROR", context={"reason": reason})
        self.reason = reason
