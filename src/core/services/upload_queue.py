"""Cola de subida e indexado de ficheros.

Flujo por fichero:
    pending -> uploading (50) -> indexing (75) -> complete (100)
                                         \\-> error (0)

La cola se persiste en un `JsonStore` tras cada cambio, de modo que un
reinicio puede retomar el sondeo de los jobs que quedaron en `indexing`
(`resume`). Las subidas son secuenciales; el sondeo de cada job termina
antes de pasar al siguiente fichero.
"""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError

from adapters.sfs_api import SFSApiClient
from adapters.store import JsonStore
from core.config import AppSettings
from core.domain.errors import ApiError
from core.domain.models import FileStatus, UploadJob

logger = logging.getLogger(__name__)

QUEUE_STORE_FILE = "upload-queue.json"
QUEUE_STORE_KEY = "upload-queue"

_LEADING_SEPARATOR = re.compile(r"^[/\\]")
_SEPARATORS = re.compile(r"[/\\]")


def remote_file_name(path: str) -> str:
    """Nombre remoto derivado de la ruta local completa.

    `/home/ana/notes/a.md` -> `home_ana_notes_a.md`
    """

    return _SEPARATORS.sub("_", _LEADING_SEPARATOR.sub("", path))


def _new_job_id() -> str:
    return uuid.uuid4().hex[:6]


@dataclass
class QueueHooks:
    """Callbacks opcionales para la capa de UI."""

    changed: Callable[[UploadJob], None] | None = None


class UploadQueue:
    def __init__(
        self,
        api: SFSApiClient,
        *,
        settings: AppSettings | None = None,
        store: JsonStore | None = None,
        hooks: QueueHooks | None = None,
    ) -> None:
        self._api = api
        self._settings = settings or api.settings
        self._store = store
        self._hooks = hooks or QueueHooks()
        self._jobs: list[UploadJob] = []
        self._processing = False

        if store is not None:
            self._jobs = self._load(store)

    @staticmethod
    def _load(store: JsonStore) -> list[UploadJob]:
        jobs: list[UploadJob] = []
        for raw in store.get(QUEUE_STORE_KEY) or []:
            try:
                jobs.append(UploadJob.model_validate(raw))
            except ValidationError as exc:
                logger.warning("dropping invalid queue entry %r: %s", raw, exc)
        return jobs

    @property
    def jobs(self) -> list[UploadJob]:
        return list(self._jobs)

    @property
    def is_processing(self) -> bool:
        return self._processing

    def get(self, upload_job_id: str) -> UploadJob | None:
        return next((job for job in self._jobs if job.id == upload_job_id), None)

    def _save(self) -> None:
        if self._store is None:
            return
        self._store.set(QUEUE_STORE_KEY, [job.model_dump(mode="json") for job in self._jobs])
        self._store.save()

    def _update(self, upload_job_id: str, **changes: object) -> UploadJob | None:
        for index, job in enumerate(self._jobs):
            if job.id == upload_job_id:
                updated = job.model_copy(update=changes)
                self._jobs[index] = updated
                self._save()
                if self._hooks.changed:
                    self._hooks.changed(updated)
                return updated
        return None

    def add_files(self, paths: Iterable[str]) -> list[UploadJob]:
        """Encola ficheros locales como `pending`."""

        new_jobs = [
            UploadJob(id=_new_job_id(), file_path=path, file_name=remote_file_name(path))
            for path in paths
        ]
        self._jobs.extend(new_jobs)
        self._save()
        return new_jobs

    async def poll_job_status(self, job_id: str, upload_job_id: str) -> UploadJob | None:
        """Consulta el estado del job hasta que termina o se agotan los intentos."""

        attempts = 0
        while True:
            try:
                status = await self._api.get_job_status(job_id)
            except ApiError as exc:
                logger.warning("status check for job %s failed: %s", job_id, exc)
                return self._update(
                    upload_job_id, status=FileStatus.ERROR, error="Status check failed", progress=0
                )

            if status.status == "complete":
                return self._update(upload_job_id, status=FileStatus.COMPLETE, progress=100)
            if status.status == "failed":
                return self._update(
                    upload_job_id, status=FileStatus.ERROR, error="Indexing failed", progress=0
                )

            attempts += 1
            if attempts >= self._settings.job_poll_max_attempts:
                return self._update(upload_job_id, status=FileStatus.ERROR, error="Timeout", progress=0)

            await asyncio.sleep(self._settings.job_poll_interval_seconds)

    async def process(self, *, update: bool = False) -> list[UploadJob]:
        """Sube todos los `pending` en orden. Si ya se está procesando, no hace nada."""

        if self._processing:
            return []

        pending = [job for job in self._jobs if job.status is FileStatus.PENDING]
        if not pending:
            return []

        self._processing = True
        processed: list[UploadJob] = []
        try:
            for job in pending:
                self._update(job.id, status=FileStatus.UPLOADING, progress=50)
                try:
                    accepted = await self._api.upload_file(job.file_path, job.file_name, update)
                except ApiError as exc:
                    logger.warning("upload of %s failed: %s", job.file_path, exc)
                    self._update(job.id, status=FileStatus.ERROR, error=exc.message, progress=0)
                else:
                    self._update(job.id, status=FileStatus.INDEXING, job_id=accepted.job_id, progress=75)
                    await self.poll_job_status(accepted.job_id, job.id)
                    await asyncio.sleep(self._settings.upload_pause_seconds)

                final = self.get(job.id)
                if final is not None:
                    processed.append(final)
        finally:
            self._processing = False
        return processed

    async def resume(self) -> list[UploadJob]:
        """Retoma el sondeo de los jobs persistidos en `indexing`."""

        indexing = [job for job in self._jobs if job.status is FileStatus.INDEXING and job.job_id]
        results = await asyncio.gather(
            *(self.poll_job_status(job.job_id, job.id) for job in indexing if job.job_id)
        )
        return [job for job in results if job is not None]

    def clear_completed(self) -> int:
        """Quita los jobs terminados (complete o error). Devuelve cuántos."""

        before = len(self._jobs)
        self._jobs = [job for job in self._jobs if not job.is_finished]
        self._save()
        return before - len(self._jobs)

    def clear_all(self) -> int:
        removed = len(self._jobs)
        self._jobs = []
        self._save()
        return removed
