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
"""Tests for the default token extractor."""

from __future__ import annotations

import json

import pytest

from csrf_armor.extraction import (
    BufferedBody,
    field_pattern,
    media_type,
    extract_token,
    token_from_action_args,
    token_from_form,
)

FORM = "application/x-www-form-urlencoded"


class TestHelpers:
    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("application/json; charset=utf-8", "application/json"),
            ("Application/JSON", "application/json"),
            ("", "text/plain"),
        ],
    )
    def test_media_type(self, content_type, expected):
        assert media_type(content_type) == expected

    @pytest.mark.parametrize("key", ["csrf_token", "1_csrf_token", "1_2_csrf_token"])
    def test_field_pattern_matches(self, key):
        assert field_pattern("csrf_token").match(key)

    @pytest.mark.parametrize("key", ["x_csrf_token", "csrf_token_1", "a_csrf_token", "csrf"])
    def test_field_pattern_rejects(self, key):
        assert not field_pattern("csrf_token").match(key)

    def test_token_from_form_skips_non_strings(self):
        items = [("csrf_token", object()), ("1_csrf_token", "tok")]
        assert token_from_form(items, "csrf_token") == "tok"

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            (json.dumps(["tok", {"a": 1}]), "tok"),
            (json.dumps([{"csrf_token": "tok"}]), "tok"),
            (json.dumps([{"other": "x"}]), None),
            (json.dumps([]), "[]"),
            (json.dumps([123, "x"]), "123"),
            (json.dumps([1.5]), "1.5"),
            (json.dumps([True]), "true"),
            (json.dumps([False]), None),
            (json.dumps([0]), None),
            (json.dumps([["tok"]]), None),
            (json.dumps([None]), "[null]"),
            (json.dumps({"csrf_token": "tok"}), json.dumps({"csrf_token": "tok"})),
            ("plain-token", "plain-token"),
        ],
    )
    def test_token_from_action_args(self, text, expected):
        assert token_from_action_args(text, "csrf_token") == expected


class TestExtractToken:
    @pytest.mark.asyncio
    async def test_header_is_case_insensitive(self, settings_factory, request_factory):
        request = request_factory(headers={"X-Csrf-Token": "from-header"})
        assert await extract_token(request, settings_factory()) == "from-header"

    @pytest.mark.asyncio
    async def test_header_wins_over_body(self, settings_factory, request_factory):
        request = request_factory(
            headers={"x-csrf-token": "from-header", "content-type": FORM},
            body=b"csrf_token=from-body",
        )
        assert await extract_token(request, settings_factory()) == "from-header"

    @pytest.mark.asyncio
    async def test_custom_header_name(self, settings_factory, request_factory):
        settings = settings_factory(token={"header_name": "X-XSRF"})
        request = request_factory(headers={"x-xsrf": "tok", "x-csrf-token": "ignored"})
        assert await extract_token(request, settings) == "tok"

    @pytest.mark.asyncio
    async def test_no_header_no_body(self, settings_factory, request_factory):
        assert await extract_token(request_factory(), settings_factory()) is None

    @pytest.mark.asyncio
    async def test_urlencoded_form(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": FORM}, body=b"name=a&csrf_token=tok%2B1")
        assert await extract_token(request, settings_factory()) == "tok+1"

    @pytest.mark.asyncio
    async def test_indexed_form_field(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": FORM}, body="1_csrf_token=tok")
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_form_without_field(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": FORM}, body=b"name=a")
        assert await extract_token(request, settings_factory()) is None

    @pytest.mark.asyncio
    async def test_body_source_with_form(self, settings_factory, request_factory):
        body = BufferedBody(b"csrf_token=tok", FORM)
        request = request_factory(headers={"content-type": FORM}, body=body)
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_json_body(self, settings_factory, request_factory):
        request = request_factory(
            headers={"content-type": "application/json; charset=utf-8"},
            body=json.dumps({"csrf_token": "tok", "amount": 5}),
        )
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_ld_json_body(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": "application/ld+json"}, body=b'{"csrf_token": "tok"}')
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_malformed_json(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": "application/json"}, body=b"{not json")
        assert await extract_token(request, settings_factory()) is None

    @pytest.mark.asyncio
    async def test_json_non_string_token(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": "application/json"}, body=b'{"csrf_token": 5}')
        assert await extract_token(request, settings_factory()) is None

    @pytest.mark.asyncio
    async def test_text_plain_action_args(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": "text/plain;charset=UTF-8"}, body=b'["tok", 1, 2]')
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_missing_content_type_is_text_plain(self, settings_factory, request_factory):
        request = request_factory(body=b'[{"csrf_token": "tok"}]')
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_other_media_type_returns_raw_text(self, settings_factory, request_factory):
        request = request_factory(headers={"content-type": "application/octet-stream"}, body=b"raw-token")
        assert await extract_token(request, settings_factory()) == "raw-token"

    @pytest.mark.asyncio
    async def test_parsed_mapping_body(self, settings_factory, request_factory):
        request = request_factory(body={"csrf_token": "tok"})
        assert await extract_token(request, settings_factory()) == "tok"

    @pytest.mark.asyncio
    async def test_custom_field_name(self, settings_factory, request_factory):
        settings = settings_factory(token={"field_name": "_csrf"})
        request = request_factory(headers={"content-type": FORM}, body=b"_csrf=tok")
        assert await extract_token(request, settings) == "tok"

    @pytest.mark.asyncio
    async def test_unreadable_body_source(self, settings_factory, request_factory):
        class Gone:
            async def read(self):
                return None

        request = request_factory(headers={"content-type": "application/json"}, body=Gone())
        assert await extract_token(request, settings_factory()) is None

    @pytest.mark.asyncio
    async def test_unsupported_body_type(self, settings_factory, request_factory):
        request = request_factory(body=12345)
        assert await extract_token(request, settings_factory()) is None
