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
"""Strategy validators.

Each validator maps ``(request, settings, extractor)`` to a
:class:`ValidationResult`. Codec failures (:class:`CsrfError`) are folded
into the result's ``reason``; anything else raised by the extractor
propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit

from csrf_armor.crypto.compare import timing_safe_equal
from csrf_armor.crypto.tokens import parse_signed_token, verify_signed_token
from csrf_armor.kernel.exceptions import CsrfError, OriginMismatchError
from csrf_armor.ports.adapter import CsrfRequest, TokenExtractor
from csrf_armor.settings import CsrfSettings
from csrf_armor.validation.result import ValidationResult

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def origin_from_url(url: str) -> str | None:
    """Serialise the origin (``scheme://host[:port]``) of an absolute URL.

    Scheme and host are lower-cased and default ports dropped, matching how
    browsers fill the ``Origin`` header. Returns ``None`` if *url* has no
    scheme or host.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        return None
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


async def read_submitted_token(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> str | None:
    """Run *extractor*, treating a timeout as "no token submitted"."""
    timeout = settings.token.extraction_timeout
    try:
        async with asyncio.timeout(timeout):
            token = await extractor(request, settings)
    except TimeoutError:
        logger.debug("CSRF token extraction timed out after %ss", timeout)
        return None
    return token or None


def validate_origin(request: CsrfRequest, settings: CsrfSettings) -> ValidationResult:
    """Check the request origin against ``settings.allowed_origins``.

    ``Origin`` is preferred; otherwise the origin is derived from
    ``Referer``. When both are absent the request is trusted as
    same-origin.
    """
    origin = request.header("origin")
    if not origin:
        referer = request.header("referer")
        if not referer:
            return ValidationResult.ok()
        origin = origin_from_url(referer)
        if origin is None:
            return ValidationResult.fail("Invalid referer header")

    if origin in settings.allowed_origins:
        return ValidationResult.ok()

    return ValidationResult.fail(OriginMismatchError(origin).message)


async def validate_signed_token(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Verify a self-contained structured token (signature and expiry)."""
    token = await read_submitted_token(request, settings, extractor)
    if not token:
        return ValidationResult.fail("No CSRF token provided")

    try:
        parse_signed_token(token, settings.secret)
    except CsrfError as exc:
        return ValidationResult.fail(exc.message)
    return ValidationResult.ok()


async def validate_double_submit(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Compare the CSRF cookie with the token echoed in a header or body."""
    cookie_token = request.cookie(settings.cookie.name)
    if not cookie_token:
        return ValidationResult.fail("No CSRF cookie found")

    submitted = await read_submitted_token(request, settings, extractor)
    if not submitted:
        return ValidationResult.fail("No CSRF token submitted")

    if not timing_safe_equal(cookie_token, submitted):
        return ValidationResult.fail("Token mismatch")
    return ValidationResult.ok()


async def validate_signed_double_submit(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Double-submit with a server-signed copy of the nonce.

    The client cookie and the submitted token must match, and the
    ``<name>-server`` cookie must carry a valid signature over that same
    nonce. An attacker able to plant cookies (e.g. from a sibling subdomain)
    cannot mint that signature without the secret.
    """
    submitted = await read_submitted_token(request, settings, extractor)
    client_cookie = request.cookie(settings.cookie.name)
    server_cookie = request.cookie(settings.cookie.server_name)

    if not submitted or not client_cookie or not server_cookie:
        return ValidationResult.fail("Missing CSRF cookies")

    if not timing_safe_equal(submitted, client_cookie):
        return ValidationResult.fail("Token mismatch")

    try:
        signed_value = verify_signed_token(server_cookie, settings.secret)
    except CsrfError as exc:
        return ValidationResult.fail(exc.message)

    if not timing_safe_equal(signed_value, client_cookie):
        return ValidationResult.fail("Cookie integrity check failed")
    return ValidationResult.ok()


async def validate_hybrid(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Origin check first, then signed token; origin failures short-circuit."""
    origin_result = validate_origin(request, settings)
    if not origin_result.is_valid:
        return origin_result
    return await validate_signed_token(request, settings, extractor)


async def validate_origin_check(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Async-signature wrapper so the dispatcher can treat strategies uniformly."""
    return validate_origin(request, settings)
