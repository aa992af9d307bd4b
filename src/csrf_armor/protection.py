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
"""CsrfProtection — issues tokens and validates requests through an adapter.

Per request the engine:

1. skips requests whose path is excluded or whose content type is skipped;
2. reuses the client's current token when it is still good (safe methods
   only), otherwise issues fresh tokens for the configured strategy;
3. hands back an ``x-csrf-token`` header and the CSRF cookie(s);
4. for unsafe methods, runs the strategy dispatcher.

Usage::

    protection = create_csrf_protection(StarletteCsrfAdapter(), {"secret": secret})
    result = await protection.protect(request, response)
    if not result.success:
        ...  # answer 403 with result.reason
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from csrf_armor.core.config import Config
from csrf_armor.crypto.compare import timing_safe_equal
from csrf_armor.crypto.entropy import generate_nonce
from csrf_armor.crypto.tokens import (
    generate_signed_token,
    parse_signed_token,
    sign_unsigned_token,
    verify_signed_token,
)
from csrf_armor.kernel.exceptions import ConfigurationException, CsrfError, CsrfVerificationError
from csrf_armor.ports.adapter import CsrfAdapter, CsrfRequest, CsrfResponse, ResponseCookie, TokenExtractor
from csrf_armor.settings import SAFE_METHODS, CsrfSettings, Strategy, resolve_settings
from csrf_armor.validation.dispatcher import validate_request

logger = structlog.get_logger("csrf_armor.protection")

CSRF_TOKEN_HEADER = "x-csrf-token"
CSRF_STRATEGY_HEADER = "x-csrf-strategy"

DOUBLE_SUBMIT_NONCE_BYTES = 32
ORIGIN_CHECK_NONCE_BYTES = 16

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class IssuedTokens:
    """Token values to hand to the client for one response."""

    client_token: str
    cookie_token: str
    server_cookie_token: str | None = None


@dataclass(frozen=True)
class ProtectResult(Generic[ResponseT]):
    """Outcome of :meth:`CsrfProtection.protect`."""

    success: bool
    response: ResponseT | None = None
    token: str | None = None
    reason: str | None = None
    csrf_response: CsrfResponse | None = None


class CsrfProtection(Generic[RequestT, ResponseT]):
    """Framework-agnostic CSRF engine.

    Args:
        adapter: Framework adapter translating requests and responses.
        settings: Resolved settings, a :class:`Config`, a mapping of
            overrides, or ``None`` for defaults.
        token_extractor: Overrides the adapter's token extractor.
    """

    def __init__(
        self,
        adapter: CsrfAdapter[RequestT, ResponseT],
        settings: CsrfSettings | Config | Mapping[str, Any] | None = None,
        token_extractor: TokenExtractor | None = None,
    ) -> None:
        self._adapter = adapter
        self._settings = resolve_settings(settings)
        self._extractor: TokenExtractor = token_extractor or adapter.get_token_from_request

    @property
    def settings(self) -> CsrfSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Request classification
    # ------------------------------------------------------------------

    def should_skip(self, request: CsrfRequest) -> bool:
        """Return ``True`` for excluded paths and skipped content types."""
        path = request.path
        if any(path.startswith(prefix) for prefix in self._settings.exclude_paths):
            return True
        content_type = request.content_type
        return any(skipped in content_type for skipped in self._settings.skip_content_types)

    # ------------------------------------------------------------------
    # Token issuance
    # ------------------------------------------------------------------

    def reuse_tokens(self, request: CsrfRequest, *, now: int | None = None) -> IssuedTokens | None:
        """Return the client's current tokens if they can be kept.

        Only safe methods reuse tokens. Structured tokens are kept until
        ``reissue_threshold`` seconds before expiry; signed-double-submit
        tokens are kept while the server cookie still verifies against the
        client cookie. Any verification failure means "issue new tokens".
        """
        if request.method.upper() not in SAFE_METHODS:
            return None

        settings = self._settings
        client_token = request.cookie(settings.cookie.name)
        if not client_token:
            return None

        strategy = settings.strategy
        if strategy in (Strategy.SIGNED_TOKEN, Strategy.HYBRID):
            current = int(time.time()) if now is None else now
            try:
                payload = parse_signed_token(client_token, settings.secret, now=current)
            except CsrfError:
                return None
            if payload.exp > current + settings.token.reissue_threshold:
                return IssuedTokens(client_token=client_token, cookie_token=client_token)
            return None

        if strategy == Strategy.SIGNED_DOUBLE_SUBMIT:
            server_token = request.cookie(settings.cookie.server_name)
            if not server_token:
                return None
            try:
                signed_value = verify_signed_token(server_token, settings.secret)
            except CsrfError:
                return None
            if timing_safe_equal(signed_value, client_token):
                return IssuedTokens(
                    client_token=client_token,
                    cookie_token=client_token,
                    server_cookie_token=server_token,
                )
        return None

    def issue_tokens(self) -> IssuedTokens:
        """Generate fresh tokens for the configured strategy."""
        settings = self._settings
        strategy = settings.strategy

        if strategy == Strategy.DOUBLE_SUBMIT:
            token = generate_nonce(DOUBLE_SUBMIT_NONCE_BYTES)
            return IssuedTokens(client_token=token, cookie_token=token)

        if strategy == Strategy.SIGNED_DOUBLE_SUBMIT:
            nonce = generate_nonce(DOUBLE_SUBMIT_NONCE_BYTES)
            return IssuedTokens(
                client_token=nonce,
                cookie_token=nonce,
                server_cookie_token=sign_unsigned_token(nonce, settings.secret),
            )

        if strategy in (Strategy.SIGNED_TOKEN, Strategy.HYBRID):
            token = generate_signed_token(settings.secret, settings.token.expiry)
            return IssuedTokens(client_token=token, cookie_token=token)

        if strategy == Strategy.ORIGIN_CHECK:
            nonce = generate_nonce(ORIGIN_CHECK_NONCE_BYTES)
            return IssuedTokens(client_token=nonce, cookie_token=nonce)

        raise ConfigurationException(f"Unknown CSRF strategy: {strategy}", code="INVALID_STRATEGY")

    def build_response(self, tokens: IssuedTokens) -> CsrfResponse:
        """Headers and cookies carrying *tokens* back to the client."""
        cookie = self._settings.cookie
        # client cookie is always script-readable
        client_options = cookie.model_copy(update={"http_only": False})
        cookies = {cookie.name: ResponseCookie(value=tokens.cookie_token, options=client_options)}
        if tokens.server_cookie_token:
            cookies[cookie.server_name] = ResponseCookie(
                value=tokens.server_cookie_token,
                options=cookie.model_copy(update={"http_only": True}),
            )
        return CsrfResponse(
            headers={
                CSRF_TOKEN_HEADER: tokens.client_token,
                CSRF_STRATEGY_HEADER: str(self._settings.strategy),
            },
            cookies=cookies,
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def check(self, request: CsrfRequest) -> ProtectResult[Any]:
        """Run protection on an already-normalised request.

        The returned ``csrf_response`` is ``None`` for skipped requests and
        otherwise carries the headers/cookies to apply, also on failure.
        """
        if self.should_skip(request):
            logger.debug("csrf_skipped", path=request.path, method=request.method)
            return ProtectResult(success=True)

        tokens = self.reuse_tokens(request) or self.issue_tokens()
        csrf_response = self.build_response(tokens)

        if request.method.upper() in SAFE_METHODS:
            return ProtectResult(success=True, token=tokens.client_token, csrf_response=csrf_response)

        result = await validate_request(request, self._settings, self._extractor)
        if not result.is_valid:
            reason = result.reason or "CSRF validation failed"
            logger.warning(
                "csrf_rejected",
                strategy=str(self._settings.strategy),
                method=request.method,
                path=request.path,
                reason=reason,
            )
            return ProtectResult(success=False, reason=reason, csrf_response=csrf_response)

        return ProtectResult(success=True, token=tokens.client_token, csrf_response=csrf_response)

    async def protect(self, request: RequestT, response: ResponseT) -> ProtectResult[ResponseT]:
        """Validate *request* and apply token headers/cookies to *response*."""
        csrf_request = self._adapter.extract_request(request)
        outcome = await self.check(csrf_request)
        if outcome.csrf_response is not None:
            response = self._adapter.apply_response(response, outcome.csrf_response)
        return ProtectResult(
            success=outcome.success,
            response=response,
            token=outcome.token,
            reason=outcome.reason,
            csrf_response=outcome.csrf_response,
        )

    async def enforce(self, request: RequestT, response: ResponseT) -> ResponseT:
        """Like :meth:`protect` but raise on rejection.

        Raises:
            CsrfVerificationError: If the request fails validation.
        """
        result = await self.protect(request, response)
        if not result.success:
            raise CsrfVerificationError(result.reason or "CSRF validation failed")
        return response if result.response is None else result.response


def create_csrf_protection(
    adapter: CsrfAdapter[RequestT, ResponseT],
    config: CsrfSettings | Config | Mapping[str, Any] | None = None,
    token_extractor: TokenExtractor | None = None,
) -> CsrfProtection[RequestT, ResponseT]:
    """Build a :class:`CsrfProtection` for *adapter* and *config*."""
    return CsrfProtection(adapter, config, token_extractor=token_extractor)
