"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y la política TLS de todos los comandos.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import logging

import httpx

from core.config import AppSettings

logger = logging.getLogger(__name__)


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` nuevo para una única llamada.

    Reglas:
    - Un cliente por llamada: no hay pool compartido entre comandos.
    - `verify_tls=False` (default) acepta certificados autofirmados.
    - `http_timeout_seconds=None` deja la petición sin timeout.
    """

    settings = settings or AppSettings()
    headers = {"User-Agent": settings.user_agent}

    if not settings.verify_tls:
        logger.info("TLS certificate validation is disabled for this request")

    return httpx.AsyncClient(
        verify=settings.verify_tls,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
