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
"""csrf-armor CLI — secrets and token tooling."""

from __future__ import annotations

import click

from csrf_armor.cli.console import print_banner
from csrf_armor.cli.tokens import inspect_command, issue_command, secret_command, sign_command
from csrf_armor.logging import StructlogAdapter, configure_logging


class CsrfArmorCLI(click.Group):
    """Click group that shows the csrf-armor banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=CsrfArmorCLI)
@click.version_option(package_name="csrf-armor")
@click.option("--log-level", default="WARNING", show_default=True, help="Root log level.")
@click.option("--log-format", type=click.Choice(["console", "json"]), default="console", show_default=True)
def cli(log_level: str, log_format: str) -> None:
    """csrf-armor: CSRF token tooling."""
    configure_logging(StructlogAdapter(), level=log_level, output_format=log_format)


cli.add_command(secret_command, name="secret")
cli.add_command(issue_command, name="issue")
cli.add_command(inspect_command, name="inspect")
cli.add_command(sign_command, name="sign")
