"""Tests para el cliente HTTP."""

import json

import httpx
import pytest

from tutor_portal.api.client import (
    ApiClient,
    ApiConnectionError,
    ApiError,
    ApiResponse,
    Pagination,
    build_query,
    encode_segment,
    with_query,
)

URL = "http://test.local/api/courses/getall"


def client_for(handler) -> ApiClient:
    return ApiClient(transport=httpx.MockTransport(handler))


class TestQueryBuilding:
    """Tests para construcción de URLs."""

    def test_build_query_skips_none_and_lowercases_bools(self) -> None:
        """Test que None se omite y los booleanos van en minúscula."""
        query = build_query({"page": 2, "search": None, "isActive": False})
        assert query == "page=2&isActive=false"

    def test_with_query_without_params_keeps_url(self) -> None:
        """Test URL sin parámetros."""
        assert with_query(URL, None) == URL
        assert with_query(URL, {}) == URL
        assert with_query(URL, {"q": None}) == URL

    def test_with_query_encodes_values(self) -> None:
        """Test codificación de valores."""
        assert with_query(URL, {"search": "ielts prep"}) == f"{URL}?search=ielts+prep"

    def test_encode_segment(self) -> None:
        """Test codificación de segmentos de ruta."""
        assert encode_segment("English Proficiency") == "English%20Proficiency"
        assert encode_segment("a/b") == "a%2Fb"


class TestResponseParsing:
    """Tests para la envoltura de respuestas."""

    def test_nested_pagination(self) -> None:
        """Test paginación anidada."""
        response = ApiResponse.from_dict(
            {
                "success": True,
                "data": [1, 2],
                "pagination": {"currentPage": 2, "totalPages": 3, "totalItems": 25},
            }
        )
        assert response.pagination == Pagination(
            current_page=2, total_pages=3, total_items=25, has_next_page=True, has_prev_page=True
        )
        assert response.items() == [1, 2]

    def test_top_level_pagination(self) -> None:
        """Test paginación en el nivel superior (catálogo de cursos)."""
        response = ApiResponse.from_dict(
            {"success": True, "count": 9, "total": 30, "currentPage": 1, "totalPages": 4, "data": []}
        )
        assert response.pagination is not None
        assert response.pagination.total_pages == 4
        assert response.pagination.total_items == 30
        assert response.pagination.has_next_page

    def test_items_with_non_list_data(self) -> None:
        """Test items() cuando data no es lista."""
        assert ApiResponse.from_dict({"data": {"a": 1}}).items() == []
        assert ApiResponse.from_dict({}).items() == []


class TestApiClient:
    """Tests para ApiClient."""

    @pytest.mark.asyncio
    async def test_sends_json_with_authorization(self) -> None:
        """Test cabeceras y cuerpo JSON."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"success": True, "data": {"ok": 1}, "message": "hecho"})

        client = client_for(handler)
        response = await client.post(URL, json={"a": 1}, authorization="Bearer abc")

        request = seen["request"]
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"a": 1}
        assert response.data == {"ok": 1}
        assert response.message == "hecho"
        await client.close()

    @pytest.mark.asyncio
    async def test_get_without_authorization_header(self) -> None:
        """Test petición pública sin Authorization."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"success": True, "data": []})

        client = client_for(handler)
        await client.get(URL)
        assert "Authorization" not in seen["request"].headers
        await client.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"success": False, "message": "Curso no encontrado"}, "Curso no encontrado"),
            ({"success": False, "error": "Token inválido"}, "Token inválido"),
            ({"success": False}, "HTTP error! status: 404"),
        ],
    )
    async def test_error_message_precedence(self, body, expected) -> None:
        """Test mensaje de error: message, luego error, luego el código."""
        client = client_for(lambda request: httpx.Response(404, json=body))
        with pytest.raises(ApiError) as exc_info:
            await client.get(URL)
        assert exc_info.value.message == expected
        assert exc_info.value.status_code == 404
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self) -> None:
        """Test respuesta que no es JSON."""
        client = client_for(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))
        with pytest.raises(ApiError) as exc_info:
            await client.get(URL)
        assert exc_info.value.status_code == 502
        assert not isinstance(exc_info.value, ApiConnectionError)
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_raises_connection_error(self) -> None:
        """Test servidor inaccesible."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler)
        with pytest.raises(ApiConnectionError) as exc_info:
            await client.get(URL)
        assert "http://test.local" in exc_info.value.message
        await client.close()

    @pytest.mark.asyncio
    async def test_download_returns_bytes(self) -> None:
        """Test descarga de archivo estático."""
        client = client_for(lambda request: httpx.Response(200, content=b"%PDF-1.4"))
        assert await client.download("http://test.local/uploads/notes/a.pdf") == b"%PDF-1.4"
        await client.close()

    def test_origin_and_endpoint(self) -> None:
        """Test URLs derivadas de la base."""
        client = ApiClient(base_url="http://test.local/api/")
        assert client.origin == "http://test.local"
        assert client.endpoint("quizzes", "abc", "submit") == "http://test.local/api/quizzes/abc/submit"
