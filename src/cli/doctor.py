"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.sfs_api import SFSApiClient
from core.app import build_app
from core.config import AppSettings, get_user_env_file
from core.domain.errors import ApiError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_health(settings: AppSettings) -> tuple[bool, str]:
    client = SFSApiClient(build_app(settings), settings)
    try:
        data = await client.health_check()
    except ApiError as exc:
        return False, exc.message
    status = str(data.get("status", "unknown"))
    return status == "healthy", f"status={status}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="SFS Desktop Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "MISSING", str(env_file))
    table.add_row("API URL", "OK", settings.api_url)
    if settings.api_key:
        table.add_row("API key", "OK", "Set")
    else:
        table.add_row("API key", "MISSING", "Run `sfs setup` to store one")
    if settings.verify_tls:
        table.add_row("TLS verification", "OK", "Certificates are validated")
    else:
        table.add_row("TLS verification", "DISABLED", "Self-signed certificates accepted (SFS_VERIFY_TLS=false)")

    # Connectivity
    ok_health, detail_health = asyncio.run(_check_health(settings))
    table.add_row("Server health", "OK" if ok_health else "FAIL", escape(detail_health))

    _console.print(table)

    if not ok_health:
        _console.print(
            "\n[yellow]Note:[/yellow] Check that the server is running at the configured API URL "
            "and that the API key is valid."
        )
