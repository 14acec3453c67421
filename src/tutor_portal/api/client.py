"""Cliente HTTP para la API REST de la academia."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from ..config import get_config
from ..utils.logging import get_logger
from .uploads import MultipartForm

logger = get_logger(__name__)


class ApiError(Exception):
    """Error devuelto por el servidor."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiConnectionError(ApiError):
    """No se pudo contactar al servidor."""

    pass


@dataclass
class Pagination:
    """Datos de paginación de una respuesta."""

    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: int | None = None
    has_next_page: bool = False
    has_prev_page: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pagination:
        """Crear desde diccionario (acepta los nombres de todos los endpoints)."""
        current = int(data.get("currentPage") or data.get("page") or 1)
        total_pages = int(data.get("totalPages") or data.get("pages") or 1)
        total_items = int(
            data.get("totalItems") or data.get("total") or data.get("count") or 0
        )
        return cls(
            current_page=current,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=data.get("itemsPerPage") or data.get("limit"),
            has_next_page=bool(data.get("hasNextPage", current < total_pages)),
            has_prev_page=bool(data.get("hasPrevPage", current > 1)),
        )


@dataclass
class ApiResponse:
    """Envoltura `{success, data, message, pagination}` del servidor."""

    success: bool = True
    data: Any = None
    message: str = ""
    pagination: Pagination | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ApiResponse:
        """Crear desde el cuerpo JSON de la respuesta."""
        pagination = None
        if isinstance(payload.get("pagination"), dict):
            pagination = Pagination.from_dict(payload["pagination"])
        elif "totalPages" in payload:
            # El catálogo de cursos pone la paginación en el nivel superior
            pagination = Pagination.from_dict(payload)

        return cls(
            success=bool(payload.get("success", True)),
            data=payload.get("data"),
            message=payload.get("message") or "",
            pagination=pagination,
            raw=payload,
        )

    def items(self) -> list[Any]:
        """Datos como lista (vacía si el servidor no envió nada)."""
        if isinstance(self.data, list):
            return self.data
        return []


def build_query(params: dict[str, Any] | None) -> str:
    """Construir query string omitiendo valores None."""
    if not params:
        return ""
    pairs = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((key, str(value)))
    return urlencode(pairs)


def with_query(url: str, params: dict[str, Any] | None) -> str:
    """Añadir query string a la URL solo si hay parámetros."""
    query = build_query(params)
    return f"{url}?{query}" if query else url


def encode_segment(value: str) -> str:
    """Codificar un segmento de ruta (como encodeURIComponent)."""
    return quote(str(value), safe="")


class ApiClient:
    """Cliente para la API REST de la academia."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Inicializar cliente."""
        config = get_config()
        self.base_url = (base_url or config.api_url).rstrip("/")
        self.timeout = timeout or config.api_timeout
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    @property
    def origin(self) -> str:
        """URL del servidor sin el prefijo /api."""
        return self.base_url.split("/api")[0]

    def endpoint(self, resource: str, *parts: str) -> str:
        """Construir URL `{base}/{resource}/{parts...}`."""
        url = f"{self.base_url}/{resource}"
        for part in parts:
            url += f"/{part}"
        return url

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        form: MultipartForm | None = None,
        authorization: str | None = None,
    ) -> ApiResponse:
        """Ejecutar petición y normalizar la respuesta o el error."""
        headers: dict[str, str] = {}
        if authorization:
            headers["Authorization"] = authorization

        kwargs: dict[str, Any] = {"headers": headers}
        if form is not None:
            # httpx pone el Content-Type multipart con su boundary
            kwargs.update(form.to_httpx())
        elif json is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = json

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"API request failed: {method} {url} ({type(e).__name__})")
            raise ApiConnectionError(
                f"Conexión fallida. Verifica que el servidor esté ejecutándose en {self.origin}"
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                f"API request failed: {method} {url} -> {response.status_code} (respuesta no JSON)"
            )
            raise ApiError(
                f"Respuesta inválida del servidor (status: {response.status_code})",
                response.status_code,
            ) from e

        if not isinstance(payload, dict):
            payload = {"data": payload}

        if not response.is_success:
            message = (
                payload.get("message")
                or payload.get("error")
                or f"HTTP error! status: {response.status_code}"
            )
            logger.error(f"API request failed: {method} {url} -> {response.status_code}: {message}")
            raise ApiError(str(message), response.status_code)

        logger.debug(f"{method} {url} -> {response.status_code}")
        return ApiResponse.from_dict(payload)

    async def get(self, url: str, authorization: str | None = None) -> ApiResponse:
        return await self.request("GET", url, authorization=authorization)

    async def post(
        self,
        url: str,
        *,
        json: Any = None,
        form: MultipartForm | None = None,
        authorization: str | None = None,
    ) -> ApiResponse:
        return await self.request("POST", url, json=json, form=form, authorization=authorization)

    async def put(
        self,
        url: str,
        *,
        json: Any = None,
        form: MultipartForm | None = None,
        authorization: str | None = None,
    ) -> ApiResponse:
        return await self.request("PUT", url, json=json, form=form, authorization=authorization)

    async def delete(self, url: str, authorization: str | None = None) -> ApiResponse:
        return await self.request("DELETE", url, authorization=authorization)

    async def download(self, url: str) -> bytes:
        """Descargar un archivo estático del servidor."""
        try:
            response = await self.client.get(url)
        except httpx.TransportError as e:
            logger.error(f"Download failed: {url} ({type(e).__name__})")
            raise ApiConnectionError(
                f"Conexión fallida. Verifica que el servidor esté ejecutándose en {self.origin}"
            ) from e
        if not response.is_success:
            raise ApiError(f"HTTP error! status: {response.status_code}", response.status_code)
        return response.content

    async def close(self) -> None:
        """Cerrar cliente HTTP."""
        await self.client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
