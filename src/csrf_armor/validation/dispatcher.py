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
"""Strategy dispatcher — maps ``settings.strategy`` to its validator."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from csrf_armor.ports.adapter import CsrfRequest, TokenExtractor
from csrf_armor.settings import CsrfSettings, Strategy
from csrf_armor.validation.result import ValidationResult
from csrf_armor.validation.validators import (
    validate_double_submit,
    validate_hybrid,
    validate_origin_check,
    validate_signed_double_submit,
    validate_signed_token,
)

Validator = Callable[[CsrfRequest, CsrfSettings, TokenExtractor], Awaitable[ValidationResult]]

VALIDATORS: dict[Strategy, Validator] = {
    Strategy.DOUBLE_SUBMIT: validate_double_submit,
    Strategy.SIGNED_DOUBLE_SUBMIT: validate_signed_double_submit,
    Strategy.SIGNED_TOKEN: validate_signed_token,
    Strategy.ORIGIN_CHECK: validate_origin_check,
    Strategy.HYBRID: validate_hybrid,
}


def resolve_validator(strategy: object) -> Validator | None:
    """Return the validator for *strategy*, or ``None`` if it is unknown."""
    try:
        return VALIDATORS.get(Strategy(strategy))
    except ValueError:
        return None


async def validate_request(
    request: CsrfRequest,
    settings: CsrfSettings,
    extractor: TokenExtractor,
) -> ValidationResult:
    """Validate *request* with the configured strategy.

    An unrecognised strategy fails closed with ``"Invalid strategy"``.
    """
    validator = resolve_validator(settings.strategy)
    if validator is None:
        return ValidationResult.fail("Invalid strategy")
    return await validator(request, settings, extractor)
