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
"""csrf-armor — framework-agnostic CSRF protection.

Quick start with Starlette::

    from starlette.applications import Starlette
    from starlette.middleware import Middleware

    from csrf_armor.web.adapters.starlette import CsrfFilter, WebFilterChainMiddleware

    app = Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=[CsrfFilter({"secret": secret})])],
    )
"""

__version__ = "0.1.0"

from csrf_armor.kernel.exceptions import (
    ConfigurationException,
    CsrfArmorException,
    CsrfError,
    CsrfVerificationError,
    OriginMismatchError,
    TokenExpiredError,
    TokenInvalidError,
)
from csrf_armor.protection import (
    CSRF_STRATEGY_HEADER,
    CSRF_TOKEN_HEADER,
    CsrfProtection,
    ProtectResult,
    create_csrf_protection,
)
from csrf_armor.settings import CookieSettings, CsrfSettings, Strategy, TokenSettings, resolve_settings
from csrf_armor.validation import ValidationResult, validate_request

__all__ = [
    "CSRF_STRATEGY_HEADER",
    "CSRF_TOKEN_HEADER",
    "ConfigurationException",
    "CookieSettings",
    "CsrfArmorException",
    "CsrfError",
    "CsrfProtection",
    "CsrfSettings",
    "CsrfVerificationError",
    "OriginMismatchError",
    "ProtectResult",
    "Strategy",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenSettings",
    "ValidationResult",
    "__version__",
    "create_csrf_protection",
    "resolve_settings",
    "validate_request",
]
