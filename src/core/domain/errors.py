"""Errores del dominio.

Por qué pocos y planos:
- La frontera con el front end solo transporta un mensaje de texto.
- El detalle estructurado de httpx/OSError se encadena (`from exc`) para
  logging, pero no viaja a la UI.
"""

from __future__ import annotations

UNSUPPORTED_METHOD_ERROR = "Unsupported HTTP method"


class CommandError(Exception):
    """Fallo de un comando invocable desde el front end.

    `str(error)` es el mensaje opaco que recibe el llamador.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ApiError(Exception):
    """El servidor SFS respondió con error o la respuesta no es utilizable."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)
