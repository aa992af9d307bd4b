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
"""Resolved, immutable CSRF settings.

:class:`CsrfSettings` is the fully-populated configuration the validators and
the protection engine consume. It is built once by :func:`resolve_settings`
and threaded through every call; nothing in the core reads ambient state.

Example::

    settings = resolve_settings({
        "strategy": "signed-double-submit",
        "secret": os.environ["APP_CSRF_SECRET"],
        "cookie": {"same_site": "strict"},
    })
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from csrf_armor.core.config import Config, config_properties
from csrf_armor.crypto.entropy import generate_secure_secret, is_weak_secret

logger = structlog.get_logger("csrf_armor.settings")

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})
"""HTTP methods that never require CSRF validation."""

SERVER_COOKIE_SUFFIX: str = "-server"
"""Suffix of the httpOnly cookie holding the signed double-submit nonce."""


class Strategy(StrEnum):
    """CSRF validation strategy."""

    DOUBLE_SUBMIT = "double-submit"
    SIGNED_DOUBLE_SUBMIT = "signed-double-submit"
    SIGNED_TOKEN = "signed-token"
    ORIGIN_CHECK = "origin-check"
    HYBRID = "hybrid"


SameSite = Literal["strict", "lax", "none"]


class TokenSettings(BaseModel):
    """Where the token travels and how long it lives."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    expiry: int = Field(default=3600, gt=0)
    header_name: str = Field(default="X-CSRF-Token", min_length=1)
    field_name: str = Field(default="csrf_token", min_length=1)
    reissue_threshold: int = Field(default=500, ge=0)
    extraction_timeout: float | None = Field(default=30.0, gt=0)


class CookieSettings(BaseModel):
    """Attributes of the CSRF cookie(s) set on responses."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="csrf-token", min_length=1)
    secure: bool = True
    http_only: bool = False
    same_site: SameSite = "lax"
    path: str = "/"
    domain: str | None = None
    max_age: int | None = Field(default=None, ge=0)

    @property
    def server_name(self) -> str:
        """Name of the server-integrity cookie for signed-double-submit."""
        return f"{self.name}{SERVER_COOKIE_SUFFIX}"


@config_properties(prefix="csrf")
class CsrfSettings(BaseModel):
    """Fully resolved CSRF configuration."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    strategy: Strategy = Strategy.HYBRID
    secret: str = ""
    secret_generated: bool = False
    token: TokenSettings = Field(default_factory=TokenSettings)
    cookie: CookieSettings = Field(default_factory=CookieSettings)
    allowed_origins: frozenset[str] = frozenset()
    exclude_paths: tuple[str, ...] = ()
    skip_content_types: tuple[str, ...] = ()


def _to_config(source: Config | Mapping[str, Any] | None) -> Config:
    defaults = Config.from_defaults()
    if source is None:
        return defaults.resolved()
    if isinstance(source, Config):
        return defaults.merged(source.to_dict()).resolved()
    # caller overrides are literal values, never placeholder templates
    return defaults.resolved().merged({"csrf": dict(source)})


def _ensure_secret(settings: CsrfSettings) -> CsrfSettings:
    if not settings.secret:
        logger.warning(
            "csrf_secret_generated",
            detail="No CSRF secret configured; generated an ephemeral one. Tokens will not survive restarts.",
        )
        return settings.model_copy(update={"secret": generate_secure_secret(), "secret_generated": True})

    if is_weak_secret(settings.secret):
        logger.warning("csrf_secret_weak", length=len(settings.secret))
    return settings


def resolve_settings(source: CsrfSettings | Config | Mapping[str, Any] | None = None) -> CsrfSettings:
    """Build :class:`CsrfSettings` from defaults plus *source*.

    Every result carries a usable secret: an empty one is replaced by a
    generated secret and flagged with ``secret_generated``.

    Args:
        source: Settings that are only checked for their secret (returned
            as-is when it is set), a :class:`Config` whose ``${...}``
            placeholders are expanded, a mapping of literal overrides using
            the field names of :class:`CsrfSettings`, or ``None`` for pure
            defaults.

    Raises:
        ConfigurationException: If the merged configuration fails validation.
    """
    if isinstance(source, CsrfSettings):
        return _ensure_secret(source)

    config = _to_config(source)
    settings = config.bind(CsrfSettings, resolve_placeholders=False)

    # CSRF_SECRET in the environment wins over files and overrides
    env_secret = os.environ.get(Config.env_key("csrf.secret"))
    if env_secret is not None and env_secret != settings.secret:
        settings = settings.model_copy(update={"secret": env_secret})

    return _ensure_secret(settings)
