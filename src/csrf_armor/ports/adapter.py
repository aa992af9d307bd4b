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
"""Adapter ports — the seam between the CSRF core and an HTTP runtime.

Uses framework-neutral types so that vendor-specific request/response
classes (e.g. Starlette) remain confined to the adapter layer.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from csrf_armor.settings import CookieSettings, CsrfSettings

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


@runtime_checkable
class BodySource(Protocol):
    """Lazily readable request body.

    ``read()`` returns the raw bytes, or ``None`` if the body cannot be read
    (e.g. the client went away). Implementations may also offer an async
    ``form()`` returning ``(name, value)`` pairs for form-encoded bodies.
    """

    async def read(self) -> bytes | None: ...


@dataclass(frozen=True)
class CsrfRequest:
    """Read-only view of an inbound request.

    Attributes:
        method: HTTP method, upper case.
        url: Absolute request URL.
        headers: Header mapping; lookups through :meth:`header` are
            case-insensitive.
        cookies: Cookie name to value.
        body: ``None``, raw ``bytes``/``str``, an already-parsed mapping, or
            a :class:`BodySource`.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def header(self, name: str) -> str | None:
        """Return a header value, matching *name* case-insensitively."""
        value = self.headers.get(name.lower())
        if value is not None:
            return value
        lowered = name.lower()
        for key, candidate in self.headers.items():
            if key.lower() == lowered:
                return candidate
        return None

    def cookie(self, name: str) -> str | None:
        return self.cookies.get(name)

    @property
    def path(self) -> str:
        """Path component of :attr:`url`, without the query string."""
        return urlsplit(self.url).path or "/"

    @property
    def content_type(self) -> str:
        return self.header("content-type") or ""


@dataclass(frozen=True)
class ResponseCookie:
    """A cookie the adapter must set on the outgoing response."""

    value: str
    options: CookieSettings


@dataclass(frozen=True)
class CsrfResponse:
    """Headers and cookies the engine hands back for the adapter to apply."""

    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, ResponseCookie] = field(default_factory=dict)


TokenExtractor = Callable[[CsrfRequest, "CsrfSettings"], Awaitable[str | None]]
"""Reads the submitted token from a request; ``None`` means absent."""

FormItems = Iterable[tuple[str, Any]]


@runtime_checkable
class CsrfAdapter(Protocol[RequestT, ResponseT]):
    """Port a web framework implements to plug into :class:`CsrfProtection`."""

    def extract_request(self, request: RequestT) -> CsrfRequest:
        """Normalise a framework request into a :class:`CsrfRequest`."""
        ...

    def apply_response(self, response: ResponseT, csrf_response: CsrfResponse) -> ResponseT:
        """Set the headers and cookies from *csrf_response* on *response*."""
        ...

    async def get_token_from_request(self, request: CsrfRequest, settings: CsrfSettings) -> str | None:
        """Default token extractor for this framework."""
        ...
