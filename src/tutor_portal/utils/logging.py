"""
Utilidades de logging del portal.

Los registros van a un archivo dentro del directorio de datos para no
mezclarse con la interfaz de consola.

Reglas:
- NUNCA registrar tokens de sesión ni cabeceras Authorization
- NUNCA registrar contraseñas ni respuestas de seguridad
- Registrar solo eventos de alto nivel (método, URL, código de estado)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(config: Config) -> None:
    """
    Configurar el logger raíz para escribir en el archivo de log.

    Args:
        config: Configuración con `log_path` y `log_level`
    """
    config.ensure_dirs()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        filename=str(config.log_path),
        encoding="utf-8",
    )


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Obtener un logger para el módulo indicado.

    Args:
        name: Nombre del módulo (normalmente __name__)
        level: Nivel opcional; si se omite hereda del logger raíz

    Usage:
        >>> from tutor_portal.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Quiz enviado")
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
