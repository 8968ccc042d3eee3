"""Registro de la aplicación de escritorio: plugins + comandos invocables.

Este módulo sustituye al runtime del host:
- declara los plugins precompilados que la UI espera (opener, store,
  dialog, fs, http). Solo se declaran; no se implementan aquí.
- registra los comandos `secure_fetch` y `secure_upload` y los despacha
  por nombre con el payload que manda el front end.
"""

from __future__ import annotations

import functools
import inspect
import logging
import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ConfigDict, ValidationError, validate_call

from adapters.secure_http import secure_fetch, secure_upload
from core.config import AppSettings
from core.domain.errors import CommandError
from core.domain.models import FetchResponse

logger = logging.getLogger(__name__)

CommandHandler = Callable[..., Awaitable[FetchResponse]]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Tipos del payload comprobados antes de ejecutar el comando.
_validate_args = validate_call(config=ConfigDict(arbitrary_types_allowed=True))


@dataclass(frozen=True)
class PluginSpec:
    """Plugin del host que la UI usa directamente."""

    name: str
    description: str


DEFAULT_PLUGINS: tuple[PluginSpec, ...] = (
    PluginSpec("opener", "Open URLs and files with the system default handler."),
    PluginSpec("store", "Persistent key-value store (settings, upload queue)."),
    PluginSpec("dialog", "Native open/save file dialogs."),
    PluginSpec("fs", "Filesystem access for saving downloads."),
    PluginSpec("http", "Plain HTTP client for the front end."),
)


def to_snake_case(key: str) -> str:
    """`filePath` -> `file_path`. Claves ya en snake_case no cambian."""

    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass
class DesktopApp:
    """Plugins declarados y tabla de comandos."""

    plugins: list[PluginSpec] = field(default_factory=list)
    commands: dict[str, CommandHandler] = field(default_factory=dict)

    def plugin(self, spec: PluginSpec) -> "DesktopApp":
        if any(p.name == spec.name for p in self.plugins):
            raise ValueError(f"Plugin already registered: {spec.name}")
        self.plugins.append(spec)
        return self

    def invoke_handler(self, name: str, handler: CommandHandler) -> "DesktopApp":
        self.commands[name] = handler
        return self

    def plugin_names(self) -> list[str]:
        return [p.name for p in self.plugins]

    async def invoke(self, command: str, args: Mapping[str, Any]) -> dict[str, Any]:
        """Despacha `command` con `args` y devuelve `{ok, status, body}`.

        Errores (comando desconocido, argumentos inválidos, fallo del
        comando) salen como `CommandError` con un mensaje de texto.
        """

        handler = self.commands.get(command)
        if handler is None:
            raise CommandError(f"Unknown command: {command}")

        kwargs = {to_snake_case(key): value for key, value in args.items()}
        try:
            inspect.signature(handler).bind(**kwargs)
        except TypeError as exc:
            raise CommandError(f"invalid args for command {command}: {exc}") from exc

        try:
            response = await handler(**kwargs)
        except ValidationError as exc:
            raise CommandError(f"invalid args for command {command}: {exc}") from exc
        return response.to_wire()


def build_app(
    settings: AppSettings | None = None,
    *,
    plugins: Iterable[PluginSpec] = DEFAULT_PLUGINS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DesktopApp:
    """Construye la app con los plugins por defecto y los dos comandos."""

    settings = settings or AppSettings()
    app = DesktopApp()
    for spec in plugins:
        app.plugin(spec)

    app.invoke_handler(
        "secure_fetch",
        functools.partial(_validate_args(secure_fetch), settings=settings, transport=transport),
    ).invoke_handler(
        "secure_upload",
        functools.partial(_validate_args(secure_upload), settings=settings, transport=transport),
    )
    logger.debug("app ready: plugins=%s commands=%s", app.plugin_names(), sorted(app.commands))
    return app
