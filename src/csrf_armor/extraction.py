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
"""Default token extractor.

Lookup order for the submitted token:

1. header ``settings.token.header_name`` (case-insensitive)
2. form field ``settings.token.field_name`` in urlencoded or multipart
   bodies, optionally prefixed by numeric argument indexes (``1_csrf_token``)
3. JSON field ``settings.token.field_name`` for ``application/json`` and
   ``application/ld+json``
4. ``text/plain`` bodies: server-action argument arrays
   (see :func:`token_from_action_args`)
5. any other body: the raw text

Step 4 is a compatibility shim for frameworks that post action arguments as
a JSON array. It is not part of the security contract: whatever it returns
is still compared against the cookie or verified by the codec.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl

from csrf_armor.ports.adapter import BodySource, CsrfRequest, FormItems
from csrf_armor.settings import CsrfSettings

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
JSON_CONTENT_TYPES = ("application/json", "application/ld+json")


def media_type(content_type: str) -> str:
    """Lower-cased media type without parameters; ``text/plain`` if empty."""
    media = content_type.split(";", 1)[0].strip().lower()
    return media or "text/plain"


class BufferedBody:
    """:class:`BodySource` over bytes that are already in memory.

    Only urlencoded forms are parsed by :meth:`form`; multipart bodies need an
    adapter whose body source parses them (e.g. the Starlette adapter).
    """

    def __init__(self, raw: bytes | str, content_type: str = "") -> None:
        self._raw = raw.encode("utf-8") if isinstance(raw, str) else raw
        self._content_type = content_type

    async def read(self) -> bytes:
        return self._raw

    async def form(self) -> FormItems:
        if media_type(self._content_type) != "application/x-www-form-urlencoded":
            return []
        return parse_qsl(self._raw.decode("utf-8", errors="replace"), keep_blank_values=True)


def field_pattern(field_name: str) -> re.Pattern[str]:
    """Match *field_name* optionally prefixed by ``<digits>_`` groups."""
    return re.compile(rf"^(\d+_)*{re.escape(field_name)}$")


def token_from_form(items: FormItems, field_name: str) -> str | None:
    pattern = field_pattern(field_name)
    for key, value in items:
        if pattern.match(key) and isinstance(value, str):
            return value or None
    return None


def token_from_action_args(text: str, field_name: str) -> str | None:
    """Pull a token out of a ``text/plain`` server-action body.

    If the text is a non-empty JSON array, a string first element is the
    token and an object first element is searched for *field_name*. A
    number or boolean first element is returned in its JSON spelling, so
    ``[123]`` yields ``"123"`` and zero or ``false`` yield nothing. A
    ``null`` first element and any other text return the text whole.
    """
    try:
        args = json.loads(text)
    except ValueError:
        return text or None

    if not isinstance(args, list) or not args:
        return text or None

    first = args[0]
    if isinstance(first, str):
        return first or None
    if isinstance(first, dict):
        value = first.get(field_name)
        return value if isinstance(value, str) and value else None
    if isinstance(first, list):
        return None
    if first is None:
        return text or None
    return json.dumps(first) if first else None


def _as_body_source(body: Any, content_type: str) -> BodySource | None:
    if isinstance(body, (bytes, bytearray)):
        return BufferedBody(bytes(body), content_type)
    if isinstance(body, str):
        return BufferedBody(body, content_type)
    if isinstance(body, BodySource):
        return body
    return None


async def _form_items(source: BodySource, raw_content_type: str) -> FormItems | None:
    form = getattr(source, "form", None)
    if form is not None:
        return await form()
    if media_type(raw_content_type) != "application/x-www-form-urlencoded":
        return None
    raw = await source.read()
    if raw is None:
        return None
    return parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True)


async def extract_token(request: CsrfRequest, settings: CsrfSettings) -> str | None:
    """Read the submitted CSRF token from *request*; ``None`` if absent."""
    header_value = request.header(settings.token.header_name)
    if header_value:
        return header_value

    body = request.body
    if body is None:
        return None

    field_name = settings.token.field_name
    if isinstance(body, Mapping):
        value = body.get(field_name)
        return value if isinstance(value, str) and value else None

    content_type = request.content_type
    source = _as_body_source(body, content_type)
    if source is None:
        logger.debug("Unsupported request body type %s", type(body).__name__)
        return None

    media = media_type(content_type)
    if media in FORM_CONTENT_TYPES:
        items = await _form_items(source, content_type)
        return token_from_form(items, field_name) if items is not None else None

    raw = await source.read()
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")

    if media in JSON_CONTENT_TYPES:
        try:
            data = json.loads(text)
        except ValueError:
            logger.debug("Malformed JSON body; no CSRF token extracted")
            return None
        value = data.get(field_name) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    if media == "text/plain":
        return token_from_action_args(text, field_name)

    return text
