"""CLI principal (Typer).

La CLI hace de front end: todo pasa por los comandos registrados en la app
(`secure_fetch`, `secure_upload`) vía `SFSApiClient`, igual que la UI de
escritorio.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from adapters.sfs_api import SFSApiClient, filter_files
from adapters.store import JsonStore
from cli import doctor
from cli.ui_components import (
    build_files_table,
    build_queue_table,
    build_response_panel,
    build_search_table,
    print_banner,
)
from core.app import build_app
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import ApiError, CommandError
from core.domain.models import FetchResponse, Theme, UploadJob
from core.logging_config import setup_logging
from core.services.upload_queue import QUEUE_STORE_FILE, QueueHooks, UploadQueue

app = typer.Typer(no_args_is_help=True, help="SFS desktop client: index, search and manage files.")
files_app = typer.Typer(no_args_is_help=True, help="List, download and delete indexed files.")
queue_app = typer.Typer(no_args_is_help=True, help="Inspect and manage the persisted upload queue.")
app.add_typer(files_app, name="files")
app.add_typer(queue_app, name="queue")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _settings() -> AppSettings:
    return AppSettings()


def _client(settings: AppSettings) -> SFSApiClient:
    return SFSApiClient(build_app(settings), settings)


def _queue_store() -> JsonStore:
    return JsonStore.load(QUEUE_STORE_FILE)


def _fail(message: str) -> typer.Exit:
    _console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        if ":" not in raw:
            raise typer.BadParameter(f"Header must look like 'Name: value', got {raw!r}")
        name, value = raw.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug information to stderr."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    settings = _settings()
    level = "DEBUG" if verbose else settings.log_level
    setup_logging(level, log_file or settings.log_file)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Target URL."),
    method: str = typer.Option("GET", "--method", "-X", help="GET, POST, PUT or DELETE."),
    header: list[str] = typer.Option([], "--header", "-H", help="Header as 'Name: value' (repeatable)."),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="Request body, sent verbatim."),
    raw: bool = typer.Option(False, "--json", help="Print the raw {ok, status, body} payload."),
) -> None:
    """Send a single request through the secure_fetch command."""

    settings = _settings()
    options = {"method": method, "headers": _parse_headers(header), "body": body}
    try:
        payload = asyncio.run(build_app(settings).invoke("secure_fetch", {"url": url, "options": options}))
    except CommandError as exc:
        raise _fail(exc.message) from exc

    if raw:
        _console.print_json(json.dumps(payload))
        return
    _console.print(build_response_panel(FetchResponse.model_validate(payload)))


@app.command()
def upload(
    file: Path = typer.Argument(..., help="Local file to upload."),
    name: Optional[str] = typer.Option(None, "--name", help="Remote file name (default: local file name)."),
    update: bool = typer.Option(False, "--update", help="Replace an already indexed file."),
) -> None:
    """Upload one file for indexing and print the job id."""

    settings = _settings()
    client = _client(settings)
    try:
        accepted = asyncio.run(client.upload_file(str(file), name or file.name, update))
    except ApiError as exc:
        raise _fail(exc.message) from exc
    _console.print(f"[green]Queued for indexing:[/green] job {accepted.job_id}")


@app.command()
def index(
    files: list[Path] = typer.Argument(..., help="Files to queue, upload and index."),
    update: bool = typer.Option(False, "--update", help="Replace already indexed files."),
) -> None:
    """Queue files, upload them in order and wait for indexing to finish."""

    settings = _settings()

    def _changed(job: UploadJob) -> None:
        _console.print(f"[dim]{escape(job.file_name)}[/dim] -> {job.status.value} ({job.progress}%)")

    queue = UploadQueue(
        _client(settings),
        settings=settings,
        store=_queue_store(),
        hooks=QueueHooks(changed=_changed),
    )
    queue.add_files(str(path.resolve()) for path in files)
    processed = asyncio.run(queue.process(update=update))

    _console.print(build_queue_table(processed))
    if any(job.error for job in processed):
        raise typer.Exit(code=1)


@queue_app.command("show")
def queue_show() -> None:
    """Show the persisted upload queue."""

    queue = UploadQueue(_client(_settings()), store=_queue_store())
    if not queue.jobs:
        _console.print("[dim]Upload queue is empty.[/dim]")
        return
    _console.print(build_queue_table(queue.jobs))


@queue_app.command("clear")
def queue_clear(
    all_jobs: bool = typer.Option(False, "--all", help="Remove every job, not only finished ones."),
) -> None:
    """Remove finished jobs (or every job with --all)."""

    queue = UploadQueue(_client(_settings()), store=_queue_store())
    removed = queue.clear_all() if all_jobs else queue.clear_completed()
    _console.print(f"Removed {removed} job(s).")


@queue_app.command("resume")
def queue_resume() -> None:
    """Resume polling jobs that were still indexing, then process pending ones."""

    settings = _settings()
    queue = UploadQueue(_client(settings), settings=settings, store=_queue_store())

    async def _run() -> None:
        await queue.resume()
        await queue.process()

    asyncio.run(_run())
    _console.print(build_queue_table(queue.jobs))


@app.command()
def health() -> None:
    """Check that the server is reachable and healthy."""

    client = _client(_settings())
    try:
        data = asyncio.run(client.health_check())
    except ApiError as exc:
        raise _fail(exc.message) from exc

    if data.get("status") == "healthy":
        _console.print("[green]Connection successful: server is healthy.[/green]")
        return
    raise _fail(f"Server responded but is not healthy: {json.dumps(data)}")


@files_app.command("list")
def files_list(
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Only files under this server-side prefix."),
    filter_query: Optional[str] = typer.Option(None, "--filter", help="Case-insensitive substring filter."),
) -> None:
    """List indexed files."""

    client = _client(_settings())
    try:
        listing = asyncio.run(client.list_files(prefix))
    except ApiError as exc:
        raise _fail(exc.message) from exc

    names = filter_files(listing.files, filter_query) if filter_query else listing.files
    _console.print(build_files_table(names, total=len(listing.files)))


@files_app.command("download")
def files_download(
    name: str = typer.Argument(..., help="Remote file name (as listed)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file."),
) -> None:
    """Download a file to --output, the configured download path, or the cwd."""

    settings = _settings()
    client = _client(settings)
    try:
        content = asyncio.run(client.download_file(name))
    except ApiError as exc:
        raise _fail(exc.message) from exc

    local_name = name.replace("\\", "/").split("/")[-1] or "download"
    destination = output or (settings.download_path or Path.cwd()) / local_name
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(content)
    _console.print(f"[green]Saved:[/green] {destination}")


@files_app.command("delete")
def files_delete(name: str = typer.Argument(..., help="Remote file name to remove from the index.")) -> None:
    """Remove a file from the index."""

    client = _client(_settings())
    try:
        accepted = asyncio.run(client.delete_file(name))
    except ApiError as exc:
        raise _fail(exc.message) from exc
    _console.print(f"[green]Delete queued:[/green] job {accepted.job_id}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language query."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Max results (default from settings)."),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", min=0.0, max=1.0, help="Minimum score (default from settings)."
    ),
) -> None:
    """Semantic search over the indexed files."""

    if not query.strip():
        raise typer.BadParameter("query must not be empty")

    client = _client(_settings())
    try:
        results = asyncio.run(client.search(query, limit, threshold))
    except ApiError as exc:
        raise _fail(exc.message) from exc

    if not results:
        _console.print("[dim]No results.[/dim]")
        return
    _console.print(build_search_table(results))


@app.command()
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    current = _settings()
    print_banner(_console)

    api_url = typer.prompt("API URL", default=current.api_url, show_default=True).strip()
    api_key = typer.prompt("API key", default=current.api_key, hide_input=True, show_default=False).strip()
    download_path = typer.prompt(
        "Download path", default=str(current.download_path or ""), show_default=True
    ).strip()
    theme = typer.prompt("Theme (light/dark/system)", default=current.theme.value, show_default=True).strip()
    verify_tls = typer.confirm("Validate TLS certificates?", default=current.verify_tls)

    if not api_url:
        raise typer.BadParameter("api_url is required")
    try:
        Theme(theme)
    except ValueError as exc:
        raise typer.BadParameter(f"unknown theme: {theme}") from exc

    env_path = write_user_env_vars(
        {
            "SFS_API_URL": api_url,
            "SFS_API_KEY": api_key,
            "SFS_DOWNLOAD_PATH": download_path or None,
            "SFS_THEME": theme,
            "SFS_VERIFY_TLS": "true" if verify_tls else "false",
        }
    )
    _console.print(f"[green]Saved config to:[/green] {env_path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
