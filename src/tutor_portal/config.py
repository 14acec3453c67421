"""Configuración global de la aplicación."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_data_dir


@dataclass(frozen=True)
class Config:
    """Configuración inmutable de la aplicación."""

    # API REST
    api_url: str = "http://localhost:8000/api"
    api_timeout: int = 30

    # Sesión de administrador
    token_check_interval: int = 30 * 60  # segundos
    restore_validation_delay: float = 1.0  # segundos

    # Paths
    data_dir: Path = Path(user_data_dir("tutor-portal", "tutor-portal"))
    storage_path: Path = field(init=False)
    log_path: Path = field(init=False)

    # App
    app_name: str = "Tutor Portal"
    version: str = "0.1.0"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "storage_path", self.data_dir / "storage.json")
        object.__setattr__(self, "log_path", self.data_dir / "portal.log")

    @classmethod
    def from_env(cls) -> Config:
        """Crear configuración desde variables de entorno."""
        data_dir = os.getenv("TUTOR_DATA_DIR")

        return cls(
            api_url=os.getenv("TUTOR_API_URL", "http://localhost:8000/api").rstrip("/"),
            api_timeout=int(os.getenv("TUTOR_API_TIMEOUT", "30")),
            token_check_interval=int(os.getenv("TUTOR_TOKEN_CHECK_INTERVAL", str(30 * 60))),
            restore_validation_delay=float(os.getenv("TUTOR_RESTORE_DELAY", "1.0")),
            data_dir=Path(data_dir) if data_dir else Path(user_data_dir("tutor-portal", "tutor-portal")),
            log_level=os.getenv("TUTOR_LOG_LEVEL", "INFO").upper(),
        )

    def ensure_dirs(self) -> None:
        """Crear directorios necesarios si no existen."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


# Instancia global
_config: Config | None = None


def get_config() -> Config:
    """Obtener instancia de configuración (singleton)."""
    global _config
    if _config is None:
        _config = Config.from_env()
        _config.ensure_dirs()
    return _config


def set_config(config: Config) -> None:
    """Establecer configuración (para tests)."""
    global _config
    _config = config
    _config.ensure_dirs()
