"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import FetchResponse, FileStatus, SearchResult, UploadJob

_STATUS_STYLES: dict[FileStatus, str] = {
    FileStatus.PENDING: "dim",
    FileStatus.UPLOADING: "cyan",
    FileStatus.INDEXING: "yellow",
    FileStatus.COMPLETE: "green",
    FileStatus.ERROR: "red",
}


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("SFS Desktop", style="bold cyan")
    subtitle = Text("Indexado • Búsqueda • Ficheros", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_response_panel(response: FetchResponse) -> Panel:
    style = "green" if response.ok else "red"
    title = Text(f"HTTP {response.status}", style=f"bold {style}")
    return Panel(Text(response.body or "(empty body)"), title=title, border_style=style)


def build_files_table(files: list[str], *, total: int | None = None) -> Table:
    caption = f"{len(files)} of {total}" if total is not None and total != len(files) else None
    table = Table(title="Indexed Files", caption=caption)
    table.add_column("#", style="dim", justify="right")
    table.add_column("File", style="white")
    for index, name in enumerate(files, start=1):
        table.add_row(str(index), escape(name))
    return table


def build_search_table(results: list[SearchResult]) -> Table:
    table = Table(title="Search Results")
    table.add_column("Score", style="green", justify="right", no_wrap=True)
    table.add_column("File", style="cyan")
    table.add_column("Chunk", style="dim", justify="right")
    table.add_column("Text", style="white")
    for result in results:
        payload = result.payload
        snippet = payload.text.strip().replace("\n", " ")
        if len(snippet) > 160:
            snippet = snippet[:157] + "..."
        table.add_row(f"{result.score:.3f}", escape(payload.file_path), str(payload.chunk_index), escape(snippet))
    return table


def build_queue_table(jobs: list[UploadJob]) -> Table:
    table = Table(title="Upload Queue")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("File", style="white")
    table.add_column("Remote name", style="magenta")
    table.add_column("Status", no_wrap=True)
    table.add_column("Progress", justify="right")
    table.add_column("Job", style="dim")
    table.add_column("Error", style="red")
    for job in jobs:
        status = Text(job.status.value, style=_STATUS_STYLES.get(job.status, "white"))
        table.add_row(
            job.id,
            escape(job.file_path),
            escape(job.file_name),
            status,
            f"{job.progress}%",
            job.job_id or "",
            escape(job.error or ""),
        )
    return table
