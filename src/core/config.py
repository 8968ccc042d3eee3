"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP, store, API client) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import Theme

APP_DIR_NAME = "sfs-desktop"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias).

    `SFS_CONFIG_DIR` lo sobreescribe (tests, instalaciones portables).
    """

    override = (os.environ.get("SFS_CONFIG_DIR") or "").strip()
    if override:
        return Path(override)

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except OSError:
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# SFS desktop user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Los defaults replican los del cliente de escritorio: servidor local con
    certificado autofirmado en `https://localhost`.
    """

    model_config = SettingsConfigDict(
        env_prefix="SFS_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_url: str = Field(
        default="https://localhost",
        min_length=1,
        description="Base URL del servidor de indexado/búsqueda.",
    )
    api_key: str = Field(
        default="",
        description="API key enviada en la cabecera X-API-Key.",
    )
    download_path: Path | None = Field(
        default=None,
        description="Directorio por defecto para descargas.",
    )
    theme: Theme = Field(
        default=Theme.SYSTEM,
        description="Tema de la interfaz (light/dark/system).",
    )

    search_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Número máximo de resultados por búsqueda.",
    )
    search_score_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Score mínimo para aceptar un resultado de búsqueda.",
    )

    verify_tls: bool = Field(
        default=False,
        description="Validar certificados TLS. Desactivado por defecto (servidor autofirmado).",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout por request (segundos). None = sin timeout.",
    )
    user_agent: str = Field(
        default="sfs-desktop/0.1",
        min_length=1,
        description="User-Agent de las peticiones salientes.",
    )

    job_poll_interval_seconds: float = Field(
        default=0.2,
        ge=0,
        description="Intervalo entre consultas de estado de un job de indexado.",
    )
    job_poll_max_attempts: int = Field(
        default=60,
        ge=1,
        description="Consultas máximas antes de marcar un job como Timeout.",
    )
    upload_pause_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Pausa entre subidas consecutivas de la cola.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
    log_file: Path | None = Field(
        default=None,
        description="Fichero de log opcional (rotativo).",
    )

    def endpoint(self, path: str) -> str:
        """Une `api_url` con un path relativo del servidor."""

        return f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"
