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
"""StarletteCsrfAdapter — CsrfAdapter for Starlette requests and responses."""

from __future__ import annotations

import logging

from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.types import Message

from csrf_armor.extraction import extract_token
from csrf_armor.ports.adapter import CsrfRequest, CsrfResponse, FormItems
from csrf_armor.settings import CsrfSettings

logger = logging.getLogger(__name__)


class StarletteRequestBody:
    """Buffers a Starlette request body on first read.

    Buffering lets the body be replayed to the downstream application after
    the CSRF check consumed it (see :meth:`replay_request`). A client that
    disconnects mid-body yields ``None``, i.e. "no token submitted".
    """

    def __init__(self, request: Request) -> None:
        self._request = request
        self._raw: bytes | None = None

    @property
    def buffered(self) -> bytes | None:
        return self._raw

    async def read(self) -> bytes | None:
        if self._raw is None:
            try:
                self._raw = await self._request.body()
            except ClientDisconnect:
                logger.debug("Client disconnected while reading body for CSRF token")
                return None
        return self._raw

    async def form(self) -> FormItems:
        if await self.read() is None:
            return []
        form = await self._request.form()
        return list(form.multi_items())

    def replay_request(self) -> Request:
        """Request whose ``receive`` replays the buffered body, if any."""
        if self._raw is None:
            return self._request

        raw = self._raw
        sent = False

        async def receive() -> Message:
            nonlocal sent
            if sent:
                return await self._request.receive()
            sent = True
            return {"type": "http.request", "body": raw, "more_body": False}

        return Request(self._request.scope, receive=receive)


class StarletteCsrfAdapter:
    """Translates between Starlette and the framework-neutral CSRF views."""

    def extract_request(self, request: Request) -> CsrfRequest:
        return CsrfRequest(
            method=request.method.upper(),
            url=str(request.url),
            headers=request.headers,
            cookies=dict(request.cookies),
            body=StarletteRequestBody(request),
        )

    def apply_response(self, response: Response, csrf_response: CsrfResponse) -> Response:
        for name, value in csrf_response.headers.items():
            response.headers[name] = value

        for name, cookie in csrf_response.cookies.items():
            options = cookie.options
            response.set_cookie(
                key=name,
                value=cookie.value,
                max_age=options.max_age,
                path=options.path,
                domain=options.domain,
                secure=options.secure,
                httponly=options.http_only,
                samesite=options.same_site,
            )
        return response

    async def get_token_from_request(self, request: CsrfRequest, settings: CsrfSettings) -> str | None:
        return await extract_token(request, settings)
