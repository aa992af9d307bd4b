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
"""Tests for CsrfProtection against an in-memory adapter."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import pytest

from csrf_armor import CSRF_STRATEGY_HEADER, CSRF_TOKEN_HEADER, CsrfVerificationError, create_csrf_protection
from csrf_armor.crypto.tokens import generate_signed_token, parse_signed_token, verify_signed_token
from csrf_armor.extraction import extract_token
from csrf_armor.kernel.exceptions import ConfigurationException
from csrf_armor.ports.adapter import CsrfAdapter, CsrfRequest, CsrfResponse
from csrf_armor.protection import CsrfProtection
from csrf_armor.settings import CsrfSettings


@dataclass
class FakeResponse:
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, Any] = field(default_factory=dict)


class FakeAdapter:
    """Adapter whose framework request is already a CsrfRequest."""

    def extract_request(self, request: CsrfRequest) -> CsrfRequest:
        return request

    def apply_response(self, response: FakeResponse, csrf_response: CsrfResponse) -> FakeResponse:
        response.headers.update(csrf_response.headers)
        response.cookies.update(csrf_response.cookies)
        return response

    async def get_token_from_request(self, request, settings):
        return await extract_token(request, settings)


def _protection(secret: str, **overrides: Any) -> CsrfProtection[CsrfRequest, FakeResponse]:
    return create_csrf_protection(FakeAdapter(), {"secret": secret, **overrides})


class TestAdapterPort:
    def test_fake_adapter_satisfies_port(self):
        assert isinstance(FakeAdapter(), CsrfAdapter)


class TestSafeMethods:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
    async def test_safe_methods_pass_and_get_a_token(self, secret, request_factory, method):
        protection = _protection(secret)
        result = await protection.protect(request_factory(method=method), FakeResponse())
        assert result.success
        assert result.token
        assert result.response.headers[CSRF_TOKEN_HEADER] == result.token
        assert result.response.headers[CSRF_STRATEGY_HEADER] == "hybrid"
        assert result.response.cookies["csrf-token"].value == result.token

    @pytest.mark.asyncio
    async def test_lowercase_method_is_safe(self, secret, request_factory):
        protection = _protection(secret)
        result = await protection.protect(request_factory(method="get"), FakeResponse())
        assert result.success

    @pytest.mark.asyncio
    async def test_client_cookie_is_script_readable(self, secret, request_factory):
        protection = _protection(secret, cookie={"http_only": True})
        result = await protection.protect(request_factory(method="GET"), FakeResponse())
        assert result.response.cookies["csrf-token"].options.http_only is False


class TestTokenIssuance:
    def test_double_submit_nonce(self, secret):
        tokens = _protection(secret, strategy="double-submit").issue_tokens()
        assert len(tokens.client_token) == 64
        assert tokens.cookie_token == tokens.client_token
        assert tokens.server_cookie_token is None

    def test_signed_double_submit_has_server_cookie(self, secret):
        tokens = _protection(secret, strategy="signed-double-submit").issue_tokens()
        assert len(tokens.client_token) == 64
        assert verify_signed_token(tokens.server_cookie_token, secret) == tokens.client_token

    @pytest.mark.parametrize("strategy", ["signed-token", "hybrid"])
    def test_structured_token(self, secret, strategy):
        protection = _protection(secret, strategy=strategy, token={"expiry": 120})
        tokens = protection.issue_tokens()
        payload = parse_signed_token(tokens.client_token, secret)
        assert payload.exp - int(time.time()) in range(118, 121)

    def test_origin_check_nonce(self, secret):
        tokens = _protection(secret, strategy="origin-check").issue_tokens()
        assert len(tokens.client_token) == 32

    def test_unknown_strategy_cannot_issue(self, secret):
        protection = _protection(secret)
        protection._settings = protection.settings.model_copy(update={"strategy": "bogus"})
        with pytest.raises(ConfigurationException):
            protection.issue_tokens()

    def test_server_cookie_is_http_only(self, secret):
        protection = _protection(secret, strategy="signed-double-submit")
        response = protection.build_response(protection.issue_tokens())
        assert response.cookies["csrf-token-server"].options.http_only is True
        assert response.cookies["csrf-token"].options.http_only is False


class TestTokenReuse:
    def test_fresh_structured_token_is_reused(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token")
        token = generate_signed_token(secret, 3600)
        request = request_factory(method="GET", cookies={"csrf-token": token})
        tokens = protection.reuse_tokens(request)
        assert tokens is not None and tokens.client_token == token

    def test_token_near_expiry_is_reissued(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token")
        token = generate_signed_token(secret, 400)
        request = request_factory(method="GET", cookies={"csrf-token": token})
        assert protection.reuse_tokens(request) is None

    def test_reuse_threshold_is_configurable(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token", token={"reissue_threshold": 60})
        token = generate_signed_token(secret, 400)
        request = request_factory(method="GET", cookies={"csrf-token": token})
        assert protection.reuse_tokens(request) is not None

    def test_foreign_token_is_not_reused(self, secret, request_factory):
        protection = _protection(secret, strategy="hybrid")
        token = generate_signed_token("someone-elses-secret-0123456789-abc", 3600)
        request = request_factory(method="GET", cookies={"csrf-token": token})
        assert protection.reuse_tokens(request) is None

    def test_unsafe_method_never_reuses(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token")
        token = generate_signed_token(secret, 3600)
        request = request_factory(method="POST", cookies={"csrf-token": token})
        assert protection.reuse_tokens(request) is None

    def test_signed_double_submit_pair_is_reused(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-double-submit")
        issued = protection.issue_tokens()
        request = request_factory(
            method="GET",
            cookies={"csrf-token": issued.cookie_token, "csrf-token-server": issued.server_cookie_token},
        )
        assert protection.reuse_tokens(request) == issued

    def test_signed_double_submit_mismatched_pair_is_reissued(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-double-submit")
        issued = protection.issue_tokens()
        request = request_factory(
            method="GET",
            cookies={"csrf-token": "planted", "csrf-token-server": issued.server_cookie_token},
        )
        assert protection.reuse_tokens(request) is None

    def test_double_submit_always_reissues(self, secret, request_factory):
        protection = _protection(secret, strategy="double-submit")
        request = request_factory(method="GET", cookies={"csrf-token": "abc"})
        assert protection.reuse_tokens(request) is None

    @pytest.mark.asyncio
    async def test_protect_keeps_cookie_value(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token")
        token = generate_signed_token(secret, 3600)
        request = request_factory(method="GET", cookies={"csrf-token": token})
        result = await protection.protect(request, FakeResponse())
        assert result.token == token


class TestUnsafeMethods:
    @pytest.mark.asyncio
    async def test_valid_double_submit_post(self, secret, request_factory):
        protection = _protection(secret, strategy="double-submit")
        request = request_factory(headers={"x-csrf-token": "tok"}, cookies={"csrf-token": "tok"})
        result = await protection.protect(request, FakeResponse())
        assert result.success
        assert result.reason is None

    @pytest.mark.asyncio
    async def test_rejected_post_still_gets_fresh_token(self, secret, request_factory):
        protection = _protection(secret, strategy="double-submit")
        request = request_factory(headers={"x-csrf-token": "a"}, cookies={"csrf-token": "b"})
        result = await protection.protect(request, FakeResponse())
        assert not result.success
        assert result.reason == "Token mismatch"
        assert result.token is None
        assert CSRF_TOKEN_HEADER in result.response.headers

    @pytest.mark.asyncio
    async def test_round_trip_signed_token(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-token")
        issued = await protection.protect(request_factory(method="GET"), FakeResponse())
        request = request_factory(
            headers={"x-csrf-token": issued.token},
            cookies={"csrf-token": issued.token},
        )
        assert (await protection.protect(request, FakeResponse())).success

    @pytest.mark.asyncio
    async def test_round_trip_signed_double_submit(self, secret, request_factory):
        protection = _protection(secret, strategy="signed-double-submit")
        issued = await protection.protect(request_factory(method="GET"), FakeResponse())
        cookies = {name: cookie.value for name, cookie in issued.response.cookies.items()}
        request = request_factory(headers={"x-csrf-token": issued.token}, cookies=cookies)
        assert (await protection.protect(request, FakeResponse())).success

    @pytest.mark.asyncio
    async def test_custom_token_extractor(self, secret, request_factory):
        async def from_query(request, settings):
            return request.url.rsplit("token=", 1)[-1]

        protection = create_csrf_protection(
            FakeAdapter(), {"secret": secret, "strategy": "double-submit"}, token_extractor=from_query
        )
        request = request_factory(url="https://app.example.com/submit?token=tok", cookies={"csrf-token": "tok"})
        assert (await protection.protect(request, FakeResponse())).success


class TestSkipping:
    @pytest.mark.asyncio
    async def test_excluded_path_prefix(self, secret, request_factory):
        protection = _protection(secret, exclude_paths=["/webhooks"])
        request = request_factory(url="https://app.example.com/webhooks/stripe?x=1")
        result = await protection.protect(request, FakeResponse())
        assert result.success
        assert result.csrf_response is None
        assert result.response.headers == {}

    @pytest.mark.asyncio
    async def test_skipped_content_type(self, secret, request_factory):
        protection = _protection(secret, skip_content_types=["application/grpc"])
        request = request_factory(headers={"content-type": "application/grpc+proto"})
        assert (await protection.protect(request, FakeResponse())).success

    def test_not_skipped_by_default(self, secret, request_factory):
        assert not _protection(secret).should_skip(request_factory())


class TestEnforce:
    @pytest.mark.asyncio
    async def test_enforce_raises_on_rejection(self, secret, request_factory):
        protection = _protection(secret, strategy="double-submit")
        with pytest.raises(CsrfVerificationError) as exc_info:
            await protection.enforce(request_factory(), FakeResponse())
        assert exc_info.value.reason == "No CSRF cookie found"
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_enforce_returns_response(self, secret, request_factory):
        protection = _protection(secret)
        response = FakeResponse()
        assert await protection.enforce(request_factory(method="GET"), response) is response


class TestSettings:
    def test_generated_secret_is_flagged(self):
        protection = create_csrf_protection(FakeAdapter())
        assert protection.settings.secret_generated is True

    def test_accepts_resolved_settings(self, settings_factory):
        settings = settings_factory(strategy="origin-check")
        protection = CsrfProtection(FakeAdapter(), settings)
        assert protection.settings is settings

    def test_explicit_settings_without_secret_get_one(self):
        protection = CsrfProtection(FakeAdapter(), CsrfSettings(strategy="signed-token"))
        assert protection.settings.secret
        assert protection.settings.secret_generated is True

    @pytest.mark.asyncio
    async def test_token_signed_with_empty_secret_is_rejected(self, request_factory):
        protection = CsrfProtection(FakeAdapter(), CsrfSettings(strategy="signed-token"))
        forged = generate_signed_token("", 3600)
        request = request_factory(headers={"x-csrf-token": forged}, cookies={"csrf-token": forged})
        result = await protection.protect(request, FakeResponse())
        assert not result.success
        assert "Invalid signature" in result.reason
