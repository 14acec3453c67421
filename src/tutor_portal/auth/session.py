"""
Sesión persistente del administrador.

La sesión se restaura de forma optimista desde el almacenamiento local y
se valida con el servidor en segundo plano. Las validaciones fallidas se
registran pero nunca cierran la sesión; solo un token con formato
inválido o un usuario ilegible la cierran.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
from typing import Any

from ..api.client import ApiConnectionError, ApiError
from ..api.resources import PortalAPI
from ..config import get_config
from ..core.models import AdminUser
from ..core.persistence import LocalStore
from ..utils.logging import get_logger
from ..utils.tasks import create_task

logger = get_logger(__name__)

TOKEN_KEY = "adminToken"
USER_KEY = "adminUser"


class NotAuthenticatedError(Exception):
    """No hay token de administrador en la sesión."""

    def __init__(self, message: str = "No hay sesión de administrador. Inicia sesión de nuevo.") -> None:
        super().__init__(message)


def _decode_segment(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def is_token_format_valid(token: str) -> bool:
    """Verificar que el token tenga formato JWT con `_id` y `role`."""
    parts = token.split(".")
    if len(parts) != 3:
        return False
    try:
        payload = json.loads(_decode_segment(parts[1]))
    except (binascii.Error, ValueError):
        return False
    return isinstance(payload, dict) and bool(payload.get("_id")) and bool(payload.get("role"))


class AdminSession:
    """Estado de autenticación del administrador."""

    def __init__(self, api: PortalAPI, store: LocalStore) -> None:
        """Inicializar sesión vacía."""
        self.api = api
        self.store = store
        self.admin_token: str | None = None
        self.admin_user: AdminUser | None = None
        self.is_logged_in = False

        self._validation_task: asyncio.Task | None = None
        self._revalidation_task: asyncio.Task | None = None

    async def validate_token(self, token: str) -> bool:
        """
        Validar token con el servidor.

        Returns:
            True si el servidor lo acepta o no se pudo contactar
        """
        if not is_token_format_valid(token):
            return False
        try:
            response = await self.api.auth.verify_token(token)
        except ApiConnectionError:
            # Servidor caído: no se invalida la sesión
            logger.warning("Validación de token omitida: servidor no disponible")
            return True
        except ApiError as e:
            logger.warning(f"Token rechazado por el servidor (status: {e.status_code})")
            return False

        user = response.raw.get("user")
        if isinstance(user, dict) and user.get("_id"):
            self.admin_user = AdminUser.from_dict(user)
        return True

    async def restore(self) -> bool:
        """
        Restaurar sesión desde el almacenamiento local.

        Returns:
            True si hay sesión restaurada
        """
        token = self.store.get_item(TOKEN_KEY)
        user_json = self.store.get_item(USER_KEY)
        if not token or not user_json:
            return False

        try:
            user_data = json.loads(user_json)
            if not isinstance(user_data, dict):
                raise ValueError("usuario inválido")
        except ValueError:
            logger.warning("Usuario guardado ilegible, cerrando sesión")
            await self.logout()
            return False

        if not is_token_format_valid(token):
            logger.warning("Token guardado con formato inválido, cerrando sesión")
            await self.logout()
            return False

        self.admin_token = token
        self.admin_user = AdminUser.from_dict(user_data)
        self.is_logged_in = True
        logger.info("Sesión de administrador restaurada")

        self._cancel(self._validation_task)
        self._validation_task = create_task(self._delayed_validation(token), "validacion-token")
        return True

    async def _delayed_validation(self, token: str) -> None:
        await asyncio.sleep(get_config().restore_validation_delay)
        if not await self.validate_token(token):
            logger.warning("El token restaurado no es válido; la sesión se mantiene")

    def start_revalidation(self) -> None:
        """Iniciar la validación periódica del token."""
        if self._revalidation_task is None or self._revalidation_task.done():
            self._revalidation_task = create_task(self._revalidate_loop(), "revalidacion-token")

    def stop_revalidation(self) -> None:
        """Detener la validación periódica."""
        self._cancel(self._revalidation_task)
        self._revalidation_task = None

    async def _revalidate_loop(self) -> None:
        interval = get_config().token_check_interval
        while True:
            await asyncio.sleep(interval)
            if self.admin_token and not await self.validate_token(self.admin_token):
                logger.warning("Revalidación periódica fallida; la sesión se mantiene")

    def login(self, token: str, user: AdminUser | dict[str, Any]) -> None:
        """Guardar token y usuario tras un inicio de sesión correcto."""
        if isinstance(user, dict):
            user = AdminUser.from_dict(user)
        self.store.set_item(TOKEN_KEY, token)
        self.store.set_item(USER_KEY, json.dumps(user.to_dict(), ensure_ascii=False))
        self.admin_token = token
        self.admin_user = user
        self.is_logged_in = True
        logger.info("Administrador autenticado")

    async def logout(self) -> None:
        """Cerrar sesión; el almacenamiento se limpia aunque falle el servidor."""
        try:
            if self.admin_token:
                await self.api.auth.logout(f"Bearer {self.admin_token}")
        except ApiError as e:
            logger.warning(f"Logout en el servidor falló: {e.message}")
        finally:
            self.store.remove_item(TOKEN_KEY)
            self.store.remove_item(USER_KEY)
            self.admin_token = None
            self.admin_user = None
            self.is_logged_in = False
            self._cancel(self._validation_task)
            self._validation_task = None
            logger.info("Sesión de administrador cerrada")

    def get_auth_headers(self) -> dict[str, str]:
        """Cabecera Authorization para peticiones protegidas."""
        if not self.admin_token:
            raise NotAuthenticatedError()
        return {"Authorization": f"Bearer {self.admin_token}"}

    @property
    def authorization(self) -> str:
        return self.get_auth_headers()["Authorization"]

    async def refresh(self) -> bool:
        """Volver a restaurar la sesión desde el almacenamiento."""
        return await self.restore()

    def debug_session(self) -> dict[str, Any]:
        """Resumen de la sesión sin exponer el token."""
        info = {
            "admin_token": "presente" if self.admin_token else "ausente",
            "admin_user": self.admin_user.to_dict() if self.admin_user else None,
            "is_logged_in": self.is_logged_in,
            "stored_token": "presente" if self.store.get_item(TOKEN_KEY) else "ausente",
            "stored_user": self.store.get_item(USER_KEY),
        }
        if self.admin_token:
            info["token_format_valid"] = is_token_format_valid(self.admin_token)
        logger.debug(f"Sesión: {info}")
        return info

    async def close(self) -> None:
        """Cancelar tareas en segundo plano."""
        self.stop_revalidation()
        self._cancel(self._validation_task)
        self._validation_task = None

    @staticmethod
    def _cancel(task: asyncio.Task | None) -> None:
        if task is not None and not task.done():
            task.cancel()
