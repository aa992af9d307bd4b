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
"""Shared fixtures for csrf-armor tests."""

from __future__ import annotations

import logging
import os
from typing import Any

import pytest
import structlog

from csrf_armor.ports.adapter import CsrfRequest
from csrf_armor.settings import CsrfSettings, resolve_settings

SECRET = "a-test-secret-that-is-at-least-32-chars"


@pytest.fixture(autouse=True)
def _clean_csrf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CSRF_* variables from the host environment out of every test."""
    for name in list(os.environ):
        if name.startswith("CSRF_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo logging configuration done by StructlogAdapter or the CLI."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def secret() -> str:
    return SECRET


def make_settings(**overrides: Any) -> CsrfSettings:
    """Resolve settings with the test secret plus *overrides*."""
    overrides.setdefault("secret", SECRET)
    return resolve_settings(overrides)


def make_request(
    method: str = "POST",
    url: str = "https://app.example.com/submit",
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    body: Any = None,
) -> CsrfRequest:
    return CsrfRequest(
        method=method,
        url=url,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        cookies=cookies or {},
        body=body,
    )


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def request_factory():
    return make_request
