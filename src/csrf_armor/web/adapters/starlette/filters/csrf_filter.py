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
"""CsrfFilter — runs :class:`CsrfProtection` in front of a Starlette app.

* **Safe methods** (GET, HEAD, OPTIONS) pass through; the response carries
  the ``x-csrf-token`` header and the CSRF cookie(s), reusing the client's
  token while it is still good.
* **Unsafe methods** are validated with the configured strategy. A rejection
  answers ``403`` with ``{"error": "CSRF validation failed", "reason": ...}``
  without calling the application.

On success the issued token is exposed as ``request.state.csrf_token`` so
templates can embed it in forms.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from fnmatch import fnmatch
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from csrf_armor.core.config import Config
from csrf_armor.ports.adapter import TokenExtractor
from csrf_armor.protection import CsrfProtection
from csrf_armor.settings import CsrfSettings
from csrf_armor.web.adapters.starlette.adapter import StarletteCsrfAdapter, StarletteRequestBody
from csrf_armor.web.ports.filter import CallNext


class CsrfFilter:
    """CSRF protection filter for :class:`WebFilterChainMiddleware`.

    Args:
        settings: Resolved settings, a :class:`Config`, or a mapping of
            overrides.
        exclude_patterns: Glob patterns of paths the filter never runs on
            (no token is issued either). Prefix exclusions that still get
            tokens belong in ``settings.exclude_paths``.
        token_extractor: Overrides the default token extractor.
    """

    def __init__(
        self,
        settings: CsrfSettings | Config | Mapping[str, Any] | None = None,
        exclude_patterns: Sequence[str] = (),
        token_extractor: TokenExtractor | None = None,
    ) -> None:
        self._adapter = StarletteCsrfAdapter()
        self._protection: CsrfProtection[Request, Response] = CsrfProtection(
            self._adapter, settings, token_extractor=token_extractor
        )
        self.exclude_patterns = list(exclude_patterns)

    @property
    def protection(self) -> CsrfProtection[Request, Response]:
        return self._protection

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path
        return any(fnmatch(path, pattern) for pattern in self.exclude_patterns)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        csrf_request = self._adapter.extract_request(request)
        outcome = await self._protection.check(csrf_request)

        if not outcome.success:
            response: Response = JSONResponse(
                {"error": "CSRF validation failed", "reason": outcome.reason},
                status_code=403,
            )
        else:
            if outcome.token is not None:
                request.state.csrf_token = outcome.token
            downstream = request
            if isinstance(csrf_request.body, StarletteRequestBody):
                downstream = csrf_request.body.replay_request()
            response = await call_next(downstream)

        if outcome.csrf_response is not None:
            self._adapter.apply_response(response, outcome.csrf_response)
        return response
