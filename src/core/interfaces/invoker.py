"""Contrato para invocar comandos del backend por nombre.

Por qué Protocol:
- El API client solo necesita `invoke(nombre, args)`, igual que la UI.
- Permite sustituir la app real por un doble en tests sin herencia.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CommandInvoker(Protocol):
    """Contrato mínimo del runtime que despacha comandos.

    Reglas de diseño:
    - `invoke` es asíncrono porque los comandos hacen I/O.
    - Devuelve el payload serializado (`{ok, status, body}`) o lanza
      `CommandError` con el mensaje de error.
    """

    async def invoke(self, command: str, args: Mapping[str, Any]) -> dict[str, Any]:
        ...
