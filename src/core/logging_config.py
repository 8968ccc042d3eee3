"""Configuración de logging.

Rich para la consola (mismo stack que la CLI) y un fichero rotativo opcional.
Los módulos solo hacen `logging.getLogger(__name__)`.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Paquetes propios: el resto (httpx, httpcore) se queda en WARNING.
_APP_LOGGERS = ("core", "adapters", "cli")


def setup_logging(level: str = "WARNING", log_file: Path | str | None = None) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(logging.WARNING)

    for handler in list(root.handlers):
        if getattr(handler, "_sfs_handler", False):
            root.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    console_handler._sfs_handler = True  # type: ignore[attr-defined]
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._sfs_handler = True  # type: ignore[attr-defined]
        root.addHandler(file_handler)

    app_level = getattr(logging, level.upper(), logging.WARNING)
    for name in _APP_LOGGERS:
        logging.getLogger(name).setLevel(app_level)

    return root
