"""
Configuración de pytest para los tests del portal.

Cada test usa un directorio de datos temporal y un servidor falso
montado sobre httpx.MockTransport (nunca se usa la red).
"""

import base64
import json
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from tutor_portal import config as config_module
from tutor_portal.api.client import ApiClient
from tutor_portal.api.resources import PortalAPI
from tutor_portal.config import Config, set_config
from tutor_portal.tui.console import Console

API_URL = "http://test.local/api"

Body = Union[dict, list, Callable[[httpx.Request], httpx.Response]]


class FakeServer:
    """Servidor falso: responde según método y ruta, y guarda las peticiones."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Body]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Body, status: int = 200) -> None:
        self.routes[(method, f"/api{path}")] = (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": f"Ruta no encontrada: {request.url.path}"})
        status, body = route
        if callable(body):
            return body(request)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == f"/api{path}"]


class ScriptedInput:
    """Entrada de consola con respuestas predefinidas; al agotarse lanza EOFError."""

    def __init__(self, lines: Optional[list[str]] = None) -> None:
        self.lines = list(lines or [])
        self.prompts: list[str] = []

    def feed(self, *lines: str) -> None:
        self.lines.extend(lines)

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


def make_token(payload: dict[str, Any]) -> str:
    """Crear un JWT (sin firma válida) con el payload indicado."""

    def segment(data: dict[str, Any]) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(payload)}.firma"


@pytest.fixture(autouse=True)
def test_config(tmp_path):
    """Configuración aislada en un directorio temporal."""
    config = Config(api_url=API_URL, data_dir=tmp_path / "data", restore_validation_delay=0.0)
    set_config(config)
    yield config
    config_module._config = None


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api(server) -> PortalAPI:
    """API del portal conectada al servidor falso."""
    return PortalAPI(ApiClient(transport=httpx.MockTransport(server)))


@pytest.fixture
def scripted_input() -> ScriptedInput:
    return ScriptedInput()


@pytest.fixture
def console(scripted_input) -> Console:
    return Console(input_func=scripted_input)


@pytest.fixture
def admin_token() -> str:
    return make_token({"_id": "admin-1", "role": 1})


@pytest.fixture
def admin_user() -> dict[str, Any]:
    return {"_id": "admin-1", "name": "Admin", "email": "admin@academy.com", "role": 1}
