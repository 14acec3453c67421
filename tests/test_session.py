"""Tests para la sesión del administrador."""

import asyncio
import dataclasses
import json

import httpx
import pytest

from conftest import make_token
from tutor_portal.auth.session import (
    TOKEN_KEY,
    USER_KEY,
    AdminSession,
    NotAuthenticatedError,
    is_token_format_valid,
)
from tutor_portal.config import set_config
from tutor_portal.core.persistence import LocalStore


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "store.json")


@pytest.fixture
def session(api, store) -> AdminSession:
    return AdminSession(api, store)


async def wait_for(condition, attempts: int = 200) -> None:
    """Ceder el event loop hasta que se cumpla la condición."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("La condición no se cumplió a tiempo")


class TestTokenFormat:
    """Tests de formato del token."""

    def test_valid_token(self, admin_token) -> None:
        """Test token con _id y role."""
        assert is_token_format_valid(admin_token)

    @pytest.mark.parametrize(
        "token",
        [
            "no-es-jwt",
            "a.b",
            "a.%%%.c",
            make_token({"_id": "a1"}),
            make_token({"role": 1}),
            make_token({"_id": "a1", "role": 0}),
        ],
    )
    def test_invalid_tokens(self, token) -> None:
        """Test tokens inválidos."""
        assert not is_token_format_valid(token)


class TestRestore:
    """Tests de restauración de sesión."""

    @pytest.mark.asyncio
    async def test_restore_is_optimistic(self, session, store, server, admin_token, admin_user) -> None:
        """Test que la validación fallida en segundo plano no cierra la sesión."""
        store.set_item(TOKEN_KEY, admin_token)
        store.set_item(USER_KEY, json.dumps(admin_user))
        server.add("POST", "/auth/verify-token", {"success": False, "message": "Token expirado"}, status=401)

        assert await session.restore()
        assert session.is_logged_in
        assert session.admin_user.email == "admin@academy.com"

        await session._validation_task
        assert session.is_logged_in
        assert store.get_item(TOKEN_KEY) == admin_token
        assert len(server.calls("POST", "/auth/verify-token")) == 1
        await session.close()

    @pytest.mark.asyncio
    async def test_restore_without_data(self, session) -> None:
        """Test sin datos guardados."""
        assert not await session.restore()
        assert not session.is_logged_in

    @pytest.mark.asyncio
    async def test_restore_bad_token_logs_out(self, session, store, admin_user) -> None:
        """Test token con formato inválido."""
        store.set_item(TOKEN_KEY, "basura")
        store.set_item(USER_KEY, json.dumps(admin_user))
        assert not await session.restore()
        assert store.get_item(TOKEN_KEY) is None
        assert store.get_item(USER_KEY) is None

    @pytest.mark.asyncio
    async def test_restore_bad_user_logs_out(self, session, store, admin_token) -> None:
        """Test usuario ilegible."""
        store.set_item(TOKEN_KEY, admin_token)
        store.set_item(USER_KEY, "{no json")
        assert not await session.restore()
        assert store.get_item(TOKEN_KEY) is None


class TestValidation:
    """Tests de validación con el servidor."""

    @pytest.mark.asyncio
    async def test_server_down_keeps_session(self, session, server, admin_token) -> None:
        """Test que un servidor caído no invalida el token."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        server.add("POST", "/auth/verify-token", refuse)
        assert await session.validate_token(admin_token)

    @pytest.mark.asyncio
    async def test_rejected_token(self, session, server, admin_token) -> None:
        """Test token rechazado."""
        server.add("POST", "/auth/verify-token", {"success": False}, status=401)
        assert not await session.validate_token(admin_token)

    @pytest.mark.asyncio
    async def test_valid_token_refreshes_user(self, session, server, admin_token) -> None:
        """Test usuario actualizado desde la respuesta."""
        server.add(
            "POST",
            "/auth/verify-token",
            {"success": True, "user": {"_id": "admin-1", "name": "Nuevo", "email": "n@academy.com", "role": 1}},
        )
        assert await session.validate_token(admin_token)
        assert session.admin_user.name == "Nuevo"

    @pytest.mark.asyncio
    async def test_malformed_token_skips_request(self, session, server) -> None:
        """Test token mal formado sin petición."""
        assert not await session.validate_token("basura")
        assert server.requests == []


    @pytest.mark.asyncio
    async def test_refresh_reads_store_again(self, session, store, server, admin_token, admin_user) -> None:
        """Test refrescar con datos guardados por otra instancia."""
        server.add("POST", "/auth/verify-token", {"success": True})
        assert not await session.refresh()

        store.set_item(TOKEN_KEY, admin_token)
        store.set_item(USER_KEY, json.dumps(admin_user))

        assert await session.refresh()
        assert session.is_logged_in
        assert session.admin_user.email == "admin@academy.com"
        await session.close()


class TestRevalidation:
    """Tests de la validación periódica del token."""

    @pytest.mark.asyncio
    async def test_failures_keep_session(self, session, store, server, test_config, admin_token, admin_user) -> None:
        """Test que ni el rechazo ni un servidor caído cierran la sesión."""
        set_config(dataclasses.replace(test_config, token_check_interval=0))
        server.add("POST", "/auth/verify-token", {"success": False, "message": "Token expirado"}, status=401)
        session.login(admin_token, admin_user)

        session.start_revalidation()
        await wait_for(lambda: len(server.calls("POST", "/auth/verify-token")) >= 2)

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        server.add("POST", "/auth/verify-token", refuse)
        rejected = len(server.calls("POST", "/auth/verify-token"))
        await wait_for(lambda: len(server.calls("POST", "/auth/verify-token")) >= rejected + 2)

        assert session.is_logged_in
        assert store.get_item(TOKEN_KEY) == admin_token
        assert json.loads(server.last.content)["token"] == admin_token
        await session.close()

    @pytest.mark.asyncio
    async def test_stop_cancels_task(self, session, admin_token, admin_user) -> None:
        """Test detener la validación periódica."""
        session.login(admin_token, admin_user)
        session.start_revalidation()
        task = session._revalidation_task
        session.start_revalidation()
        assert session._revalidation_task is task

        session.stop_revalidation()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert session._revalidation_task is None


class TestLoginLogout:
    """Tests de inicio y cierre de sesión."""

    def test_login_persists(self, session, store, admin_token, admin_user) -> None:
        """Test datos guardados al iniciar sesión."""
        session.login(admin_token, admin_user)
        assert store.get_item(TOKEN_KEY) == admin_token
        assert json.loads(store.get_item(USER_KEY))["email"] == admin_user["email"]
        assert session.authorization == f"Bearer {admin_token}"

    @pytest.mark.asyncio
    async def test_logout_clears_even_if_server_fails(self, session, store, server, admin_token, admin_user) -> None:
        """Test cierre de sesión con error del servidor."""
        session.login(admin_token, admin_user)
        server.add("POST", "/auth/logout", {"success": False, "message": "Error"}, status=500)

        await session.logout()

        assert server.last.headers["Authorization"] == f"Bearer {admin_token}"
        assert not session.is_logged_in
        assert store.get_item(TOKEN_KEY) is None
        assert store.get_item(USER_KEY) is None

    def test_auth_headers_require_token(self, session) -> None:
        """Test cabeceras sin sesión."""
        with pytest.raises(NotAuthenticatedError):
            session.get_auth_headers()

    def test_debug_session_hides_token(self, session, admin_token, admin_user) -> None:
        """Test resumen sin exponer el token."""
        session.login(admin_token, admin_user)
        info = session.debug_session()
        assert admin_token not in json.dumps(info)
        assert info["token_format_valid"]
