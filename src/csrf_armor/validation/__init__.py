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
"""csrf-armor validation — strategy validators and dispatcher."""

from csrf_armor.validation.dispatcher import validate_request
from csrf_armor.validation.result import ValidationResult
from csrf_armor.validation.validators import (
    validate_double_submit,
    validate_hybrid,
    validate_origin,
    validate_signed_double_submit,
    validate_signed_token,
)

__all__ = [
    "ValidationResult",
    "validate_double_submit",
    "validate_hybrid",
    "validate_origin",
    "validate_request",
    "validate_signed_double_submit",
    "validate_signed_token",
]
