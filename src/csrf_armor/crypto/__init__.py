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
"""csrf-armor crypto — nonces, constant-time comparison, signed tokens."""

from csrf_armor.crypto.compare import timing_safe_equal
from csrf_armor.crypto.entropy import generate_nonce, generate_secure_secret, is_weak_secret
from csrf_armor.crypto.tokens import (
    TokenPayload,
    generate_signed_token,
    parse_signed_token,
    sign_unsigned_token,
    verify_signed_token,
)

__all__ = [
    "TokenPayload",
    "generate_nonce",
    "generate_secure_secret",
    "generate_signed_token",
    "is_weak_secret",
    "parse_signed_token",
    "sign_unsigned_token",
    "timing_safe_equal",
    "verify_signed_token",
]
