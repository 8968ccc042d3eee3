"""Store clave-valor persistido en JSON.

Mismo modelo que el plugin `store` del host: `load(path)`, `get`/`set` en
memoria y `save()` explícito al disco.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from core.config import get_user_config_dir


class JsonStore:
    def __init__(self, path: Path, data: dict[str, Any] | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(data or {})

    @classmethod
    def load(cls, name_or_path: str | Path) -> "JsonStore":
        """Abre (o crea vacío) un store.

        Un nombre relativo (p.ej. `upload-queue.json`) se resuelve en el
        directorio de configuración del usuario.
        """

        path = Path(name_or_path)
        if not path.is_absolute():
            path = get_user_config_dir() / path

        data: dict[str, Any] = {}
        if path.exists():
            raw = path.read_text(encoding="utf-8")
            if raw.strip():
                loaded = json.loads(raw)
                if not isinstance(loaded, dict):
                    raise ValueError(f"Store file is not a JSON object: {path}")
                data = loaded
        return cls(path, data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def keys(self) -> list[str]:
        return list(self._data)

    def save(self) -> Path:
        """Escribe el JSON de forma atómica (fichero temporal + replace)."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(
            json.dumps(self._data, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        os.replace(tmp, self.path)
        return self.path
