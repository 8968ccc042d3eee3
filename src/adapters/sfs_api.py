"""Cliente del servidor SFS (indexado, ficheros y búsqueda).

Todas las llamadas pasan por los comandos del backend (`secure_fetch`,
`secure_upload`) a través de un `CommandInvoker`, igual que la UI: así
heredan la política TLS y el formato de respuesta normalizado.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from adapters.secure_http import API_KEY_HEADER
from core.config import AppSettings
from core.domain.errors import ApiError, CommandError
from core.domain.http_method import HttpMethod
from core.domain.models import (
    FetchResponse,
    FileListing,
    JobAccepted,
    JobStatus,
    SearchResult,
)
from core.interfaces.invoker import CommandInvoker

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def filter_files(files: list[str], query: str) -> list[str]:
    """Filtro de la lista de ficheros: subcadena sin distinguir mayúsculas."""

    needle = query.lower()
    return [name for name in files if needle in name.lower()]


def _decode_json(response: FetchResponse, error: str) -> Any:
    try:
        return json.loads(response.body)
    except json.JSONDecodeError as exc:
        raise ApiError(f"{error}: invalid JSON response", status=response.status) from exc


def _parse(response: FetchResponse, model: type[ModelT], error: str) -> ModelT:
    data = _decode_json(response, error)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ApiError(f"{error}: unexpected response shape", status=response.status) from exc


class SFSApiClient:
    """Operaciones de alto nivel sobre el servidor configurado en `settings.api_url`."""

    def __init__(self, invoker: CommandInvoker, settings: AppSettings | None = None) -> None:
        self._invoker = invoker
        self._settings = settings or AppSettings()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def _auth_headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self._settings.api_key}

    async def _fetch(
        self,
        url: str,
        method: HttpMethod,
        *,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> FetchResponse:
        options = {
            "method": method.value,
            "headers": {**self._auth_headers(), **(headers or {})},
            "body": body,
        }
        try:
            payload = await self._invoker.invoke("secure_fetch", {"url": url, "options": options})
        except CommandError as exc:
            raise ApiError(exc.message) from exc
        return FetchResponse.model_validate(payload)

    async def upload_file(self, file_path: str, file_name: str, update: bool = False) -> JobAccepted:
        """Sube y encola el indexado de un fichero; devuelve el `job_id`."""

        args = {
            "url": self._settings.endpoint("index"),
            "filePath": file_path,
            "fileName": file_name,
            "apiKey": self._settings.api_key,
            "update": update,
        }
        try:
            payload = await self._invoker.invoke("secure_upload", args)
        except CommandError as exc:
            raise ApiError(exc.message) from exc

        response = FetchResponse.model_validate(payload)
        if not response.ok:
            raise ApiError(response.body or "Upload failed", status=response.status)
        accepted = _parse(response, JobAccepted, "Upload failed")
        logger.info("uploaded %s as %s (job %s)", file_path, file_name, accepted.job_id)
        return accepted

    async def get_job_status(self, job_id: str) -> JobStatus:
        response = await self._fetch(self._settings.endpoint(f"index/status/{job_id}"), HttpMethod.GET)
        if not response.ok:
            raise ApiError("Status check failed", status=response.status)
        return _parse(response, JobStatus, "Status check failed")

    async def health_check(self) -> dict[str, Any]:
        response = await self._fetch(self._settings.endpoint("health"), HttpMethod.GET)
        if not response.ok:
            raise ApiError("Health check failed", status=response.status)
        data = _decode_json(response, "Health check failed")
        if not isinstance(data, dict):
            raise ApiError("Health check failed: unexpected response shape", status=response.status)
        return data

    async def list_files(self, prefix: str | None = None) -> FileListing:
        url = httpx.URL(self._settings.endpoint("files/"))
        if prefix:
            url = url.copy_merge_params({"prefix": prefix})
        response = await self._fetch(str(url), HttpMethod.GET)
        if not response.ok:
            raise ApiError("Failed to list files", status=response.status)
        return _parse(response, FileListing, "Failed to list files")

    async def download_file(self, file_name: str) -> bytes:
        """Contenido del fichero remoto.

        El comando devuelve el cuerpo como texto; aquí se vuelve a codificar
        en UTF-8, así que solo es fiel para ficheros de texto.
        """

        response = await self._fetch(self._settings.endpoint(f"files/{file_name}"), HttpMethod.GET)
        if not response.ok:
            raise ApiError("Download failed", status=response.status)
        return response.body.encode("utf-8")

    async def delete_file(self, file_name: str) -> JobAccepted:
        response = await self._fetch(self._settings.endpoint(f"index/{file_name}"), HttpMethod.DELETE)
        if not response.ok:
            raise ApiError("Delete failed", status=response.status)
        return _parse(response, JobAccepted, "Delete failed")

    async def search(
        self,
        query: str,
        limit: int | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Búsqueda semántica. `limit`/`score_threshold` por defecto desde settings."""

        body = json.dumps(
            {
                "query": query,
                "limit": self._settings.search_limit if limit is None else limit,
                "score_threshold": (
                    self._settings.search_score_threshold if score_threshold is None else score_threshold
                ),
            }
        )
        response = await self._fetch(
            self._settings.endpoint("search"),
            HttpMethod.POST,
            headers={"Content-Type": "application/json"},
            body=body,
        )
        if not response.ok:
            raise ApiError("Search failed", status=response.status)

        data = _decode_json(response, "Search failed")
        raw_results = data.get("results") if isinstance(data, dict) else None
        try:
            return [SearchResult.model_validate(item) for item in raw_results or []]
        except ValidationError as exc:
            raise ApiError("Search failed: unexpected response shape", status=response.status) from exc
