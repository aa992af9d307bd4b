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
"""'csrf-armor secret|issue|inspect|sign' — token tooling for operators."""

from __future__ import annotations

import time
from datetime import datetime, timezone

import click
from rich.table import Table

from csrf_armor.cli.console import console
from csrf_armor.crypto.entropy import DEFAULT_SECRET_BYTES, generate_secure_secret, is_weak_secret
from csrf_armor.crypto.tokens import generate_signed_token, parse_signed_token, sign_unsigned_token
from csrf_armor.kernel.exceptions import CsrfError

_secret_option = click.option(
    "--secret",
    envvar="CSRF_SECRET",
    required=True,
    help="Signing secret (defaults to $CSRF_SECRET).",
)


def _warn_if_weak(secret: str) -> None:
    if is_weak_secret(secret):
        console.print("[warning]Warning:[/warning] secret is shorter than 32 characters.", highlight=False)


@click.command()
@click.option("--bytes", "byte_length", default=DEFAULT_SECRET_BYTES, show_default=True, type=click.IntRange(min=16))
def secret_command(byte_length: int) -> None:
    """Generate a random signing secret."""
    click.echo(generate_secure_secret(byte_length))


@click.command()
@_secret_option
@click.option("--expiry", default=3600, show_default=True, type=click.IntRange(min=1), help="Lifetime in seconds.")
def issue_command(secret: str, expiry: int) -> None:
    """Issue a structured signed token."""
    _warn_if_weak(secret)
    click.echo(generate_signed_token(secret, expiry))


@click.command()
@click.argument("value")
@_secret_option
def sign_command(value: str, secret: str) -> None:
    """Sign an opaque VALUE as "<value>.<signature>"."""
    _warn_if_weak(secret)
    click.echo(sign_unsigned_token(value, secret))


@click.command()
@click.argument("token")
@_secret_option
def inspect_command(token: str, secret: str) -> None:
    """Verify a structured TOKEN and show its payload."""
    try:
        payload = parse_signed_token(token, secret)
    except CsrfError as exc:
        console.print(f"[error]{exc.code}[/error] {exc.message}", highlight=False)
        raise SystemExit(1) from exc

    expires_at = datetime.fromtimestamp(payload.exp, tz=timezone.utc)
    table = Table(title="CSRF token", show_header=False, border_style="dim")
    table.add_column("Key", style="info")
    table.add_column("Value")
    table.add_row("Status", "[success]valid[/success]")
    table.add_row("Nonce", payload.nonce)
    table.add_row("Expires", expires_at.isoformat())
    table.add_row("Expires in", f"{payload.exp - int(time.time())}s")
    console.print(table)
