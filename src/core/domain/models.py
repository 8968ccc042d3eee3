"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta en el borde con el front end (payloads de `invoke`).
- Serialización estable hacia el formato de respuesta que espera la UI.

Nota:
- Estos modelos describen *qué* cruza la frontera, no *cómo* se obtiene.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class FetchOptions(BaseModel):
    """Opciones de una petición `secure_fetch`.

    `method` se deja como texto libre: un verbo no soportado debe llegar al
    handler para producir su error, no fallar en la validación.
    """

    model_config = ConfigDict(extra="ignore")

    method: str = Field(
        ...,
        description="Verbo HTTP (GET, POST, PUT, DELETE).",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Cabeceras aplicadas tal cual a la petición.",
    )
    body: str | None = Field(
        default=None,
        description="Cuerpo opcional, enviado sin modificar.",
    )


class FetchResponse(BaseModel):
    """Respuesta normalizada de ambos comandos."""

    ok: bool = Field(
        ...,
        description="True si el status está en el rango 200-299.",
    )
    status: int = Field(
        ...,
        ge=0,
        le=65535,
        description="Código de estado HTTP.",
    )
    body: str = Field(
        default="",
        description="Cuerpo de la respuesta como texto.",
    )

    @classmethod
    def from_status(cls, status: int, body: str) -> "FetchResponse":
        return cls(ok=200 <= status <= 299, status=status, body=body)

    def to_wire(self) -> dict[str, Any]:
        """Forma `{ok, status, body}` que recibe el front end."""

        return self.model_dump(mode="json")


class FileStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    INDEXING = "indexing"
    COMPLETE = "complete"
    ERROR = "error"


class UploadJob(BaseModel):
    """Entrada de la cola de subida/indexado."""

    id: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1, description="Ruta local del fichero.")
    file_name: str = Field(..., min_length=1, description="Nombre remoto del fichero.")
    status: FileStatus = FileStatus.PENDING
    job_id: str | None = Field(default=None, description="Job de indexado asignado por el servidor.")
    error: str | None = None
    progress: int = Field(default=0, ge=0, le=100)

    @property
    def is_finished(self) -> bool:
        return self.status in (FileStatus.COMPLETE, FileStatus.ERROR)


class JobAccepted(BaseModel):
    """Respuesta del servidor al aceptar un indexado o un borrado."""

    model_config = ConfigDict(extra="ignore")

    job_id: str = Field(..., min_length=1)


class JobStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    job_id: str
    status: str = Field(..., description="p.ej. 'pending', 'complete', 'failed'.")


class FileListing(BaseModel):
    model_config = ConfigDict(extra="ignore")

    files: list[str] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)


class SearchPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_path: str
    text: str = ""
    start: int = 0
    end: int = 0
    chunk_index: int = 0


class SearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    score: float
    payload: SearchPayload
