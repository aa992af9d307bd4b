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
"""Logging backend contract and the entry point that configures one."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from csrf_armor.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """A logging backend driven by the ``csrf.logging`` section.

    ``configure`` reads ``csrf.logging.format`` and the ``csrf.logging.level``
    map, where ``root`` sets the root level and any other key names a logger.
    """

    def configure(self, config: Config) -> None: ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None: ...


def configure_logging(port: LoggingPort, level: str = "INFO", output_format: str = "console") -> LoggingPort:
    """Configure *port* from the bundled defaults with a root *level* and *output_format*.

    Returns the same port so callers can keep it for later ``set_level`` calls.
    """
    config = Config.from_defaults().merged(
        {"csrf": {"logging": {"format": output_format, "level": {"root": level}}}}
    )
    port.configure(config)
    return port
