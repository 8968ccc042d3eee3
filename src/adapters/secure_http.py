"""Comandos HTTP expuestos al front end: `secure_fetch` y `secure_upload`.

Contrato común:
- Un cliente httpx nuevo por llamada (ver `build_async_client`).
- Sin reintentos: una llamada, una petición.
- Cualquier fallo se colapsa en `CommandError(mensaje)`.
- La respuesta se normaliza a `FetchResponse(ok, status, body)`.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import UNSUPPORTED_METHOD_ERROR, CommandError
from core.domain.http_method import HttpMethod
from core.domain.models import FetchOptions, FetchResponse

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Errores que se traducen a texto. httpx.InvalidURL no hereda de HTTPError;
# ValueError/TypeError cubren cabeceras no codificables.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError, TypeError)


def _message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def guess_mime_type(file_path: str | Path) -> str:
    """MIME según la extensión de la ruta; `application/octet-stream` si se desconoce."""

    mime, _ = mimetypes.guess_type(str(file_path))
    return mime or DEFAULT_MIME_TYPE


async def _normalize(response: httpx.Response) -> FetchResponse:
    try:
        await response.aread()
        body = response.text
    except _REQUEST_ERRORS as exc:
        raise CommandError(_message(exc)) from exc
    return FetchResponse.from_status(response.status_code, body)


async def secure_fetch(
    url: str,
    options: FetchOptions | Mapping[str, Any],
    *,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResponse:
    """Proxy HTTP genérico.

    - `options.method` debe ser GET, POST, PUT o DELETE (exacto); otro valor
      falla con "Unsupported HTTP method" sin tocar la red.
    - Las cabeceras se aplican tal cual, sin validar nombres ni valores.
    - `options.body` se envía sin modificar; si es None no hay cuerpo.
    """

    if not isinstance(options, FetchOptions):
        try:
            options = FetchOptions.model_validate(options)
        except ValidationError as exc:
            raise CommandError(_message(exc)) from exc

    method = HttpMethod.parse(options.method)
    if method is None:
        raise CommandError(UNSUPPORTED_METHOD_ERROR)

    logger.debug("secure_fetch %s %s", method.value, url)
    try:
        async with build_async_client(settings, transport=transport) as client:
            request = client.build_request(
                method.value,
                url,
                headers=options.headers,
                content=options.body,
            )
            response = await client.send(request)
            result = await _normalize(response)
    except _REQUEST_ERRORS as exc:
        logger.warning("secure_fetch %s %s failed: %s", method.value, url, _message(exc))
        raise CommandError(_message(exc)) from exc

    logger.debug("secure_fetch %s %s -> %s", method.value, url, result.status)
    return result


async def secure_upload(
    url: str,
    file_path: str,
    file_name: str,
    api_key: str,
    update: bool,
    *,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResponse:
    """Sube un fichero como multipart/form-data.

    Partes del formulario:
    - `file`: contenido completo del fichero (en memoria), con `file_name`
      como nombre remoto y el MIME deducido de `file_path`.
    - `update`: "true" o "false".

    La API key viaja en la cabecera `X-API-Key`.
    """

    try:
        content = await asyncio.to_thread(Path(file_path).read_bytes)
    except OSError as exc:
        logger.warning("secure_upload could not read %s: %s", file_path, _message(exc))
        raise CommandError(_message(exc)) from exc

    mime_type = guess_mime_type(file_path)
    files = {"file": (file_name, content, mime_type)}
    data = {"update": "true" if update else "false"}

    logger.debug("secure_upload POST %s file=%s mime=%s bytes=%d", url, file_name, mime_type, len(content))
    try:
        async with build_async_client(settings, transport=transport) as client:
            response = await client.post(
                url,
                headers={API_KEY_HEADER: api_key},
                data=data,
                files=files,
            )
            result = await _normalize(response)
    except _REQUEST_ERRORS as exc:
        logger.warning("secure_upload POST %s failed: %s", url, _message(exc))
        raise CommandError(_message(exc)) from exc

    logger.debug("secure_upload POST %s -> %s", url, result.status)
    return result
