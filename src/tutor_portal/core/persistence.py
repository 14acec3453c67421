"""Almacenamiento local clave/valor (equivalente de localStorage)."""

from __future__ import annotations

import json
from pathlib import Path

from ..utils.logging import get_logger

logger = get_logger(__name__)


class LocalStore:
    """Guarda cadenas en un archivo JSON dentro del directorio de datos."""

    def __init__(self, path: Path) -> None:
        """Inicializar con la ruta del archivo."""
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Almacenamiento local ilegible, se ignora: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def get_item(self, key: str) -> str | None:
        """Obtener valor o None si no existe."""
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """Guardar valor."""
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        """Eliminar clave si existe."""
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        """Eliminar todo el almacenamiento."""
        if self.path.exists():
            self.path.unlink()
