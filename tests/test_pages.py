"""Tests de la aplicación de consola con entrada simulada."""

import asyncio
import json
import threading
import time

import httpx
import pytest

from tutor_portal.auth.session import TOKEN_KEY, USER_KEY
from tutor_portal.core.persistence import LocalStore
from tutor_portal.quiz.session import QuizState
from tutor_portal.tui.app import PortalApp
from tutor_portal.tui.console import Console

QUIZ = {
    "_id": "q1",
    "title": "Gramática",
    "category": "English",
    "difficulty": "easy",
    "timeLimit": 10,
    "totalQuestions": 2,
    "questions": [
        {"question": "¿1?", "options": ["a", "b", "c", "d"], "correctAnswer": 1},
        {"question": "¿2?", "options": ["a", "b", "c", "d"], "correctAnswer": 2},
    ],
}


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "store.json")


@pytest.fixture
def app(api, console, store) -> PortalApp:
    return PortalApp(api=api, console=console, store=store)


@pytest.fixture
def login_route(server, admin_token, admin_user):
    server.add("POST", "/auth/admin-login", {"success": True, "token": admin_token, "user": admin_user})
    return server


class TestPublicPages:
    """Tests de páginas públicas."""

    @pytest.mark.asyncio
    async def test_courses_listing(self, app, server, capsys) -> None:
        """Test catálogo de cursos."""
        server.add(
            "GET",
            "/courses/getall",
            {
                "success": True,
                "data": [{"_id": "c1", "title": "IELTS Intensivo", "category": "IELTS", "instructorName": "Sara"}],
                "currentPage": 1,
                "totalPages": 2,
                "total": 10,
            },
        )
        await app.process_command("/courses 1 ielts")

        output = capsys.readouterr().out
        assert "IELTS Intensivo" in output
        assert "Página 1 de 2" in output
        assert server.last.url.params["search"] == "ielts"
        await app.close()

    @pytest.mark.asyncio
    async def test_contact_invalid_email_sends_nothing(self, app, server, scripted_input, capsys) -> None:
        """Test validación antes de enviar."""
        scripted_input.feed("Ana", "ana-sin-arroba", "Hola", "Quiero info")
        await app.process_command("/contact")

        assert server.requests == []
        assert "Ingresa un email válido" in capsys.readouterr().out
        await app.close()

    @pytest.mark.asyncio
    async def test_contact_submitted(self, app, server, scripted_input) -> None:
        """Test mensaje enviado."""
        server.add("POST", "/contacts", {"success": True, "message": "Gracias"})
        scripted_input.feed("Ana", "ana@example.com", "Hola", "Quiero info")
        await app.process_command("/contact")

        assert json.loads(server.last.content)["emailAddress"] == "ana@example.com"
        await app.close()

    @pytest.mark.asyncio
    async def test_take_quiz(self, app, server, scripted_input, capsys) -> None:
        """Test rendir un quiz completo."""
        server.add("GET", "/quizzes/active", {"success": True, "data": [QUIZ]})
        server.add("GET", "/quizzes/q1", {"success": True, "data": QUIZ})
        server.add(
            "POST",
            "/quizzes/q1/submit",
            {"success": True, "data": {"score": 1, "totalQuestions": 2, "percentage": 50, "passed": False}},
        )

        await app.process_command("/quizzes")
        assert [q.id for q in app.quiz_catalog] == ["q1"]

        scripted_input.feed("Ana", "ana@example.com", "2", "3", "n", "1", "e")
        await app.process_command("/quiz 1")

        body = json.loads(server.calls("POST", "/quizzes/q1/submit")[0].content)
        assert body["answers"] == [1, 0]
        assert body["studentEmail"] == "ana@example.com"
        output = capsys.readouterr().out
        assert "¡Correcto!" in output
        assert "No puedes cambiar tu respuesta" in output
        assert "1/2" in output
        assert app.quiz_session.state is QuizState.NOT_STARTED
        await app.close()

    @pytest.mark.asyncio
    async def test_timeout_while_typing_shows_result(self, api, server, store, capsys) -> None:
        """Test envío automático que termina mientras se espera una respuesta."""
        posted = threading.Event()

        async def slow_submit(request: httpx.Request) -> httpx.Response:
            posted.set()
            await asyncio.sleep(0.3)
            return httpx.Response(
                200, json={"success": True, "data": {"score": 1, "totalQuestions": 2, "percentage": 50, "passed": False}}
            )

        server.add("GET", "/quizzes/q1", {"success": True, "data": QUIZ})
        server.add("POST", "/quizzes/q1/submit", slow_submit)
        answers = iter(["Ana", "ana@example.com"])

        def type_line(prompt: str) -> str:
            if "quiz> " not in prompt:
                return next(answers)
            if posted.is_set():
                raise EOFError
            app.quiz_session.time_left = 1
            posted.wait(timeout=5)
            return ""

        app = PortalApp(api=api, console=Console(input_func=type_line), store=store)
        await app.process_command("/quiz q1")

        assert len(server.calls("POST", "/quizzes/q1/submit")) == 1
        output = capsys.readouterr().out
        assert "¡Se acabó el tiempo!" in output
        assert "Puntaje:" in output
        assert app.quiz_session.state is QuizState.NOT_STARTED
        await app.close()

    @pytest.mark.asyncio
    async def test_post_rejects_comment_number_below_one(self, app, server, scripted_input, capsys) -> None:
        """Test números de comentario 0 y negativos."""
        server.add("GET", "/blogs/slug/consejos", {"success": True, "data": {"_id": "b1", "title": "Consejos", "slug": "consejos"}})
        server.add("GET", "/blogs/published", {"success": True, "data": []})
        server.add(
            "GET",
            "/comments/blog/b1",
            {
                "success": True,
                "data": [
                    {"_id": "c1", "content": "Primero", "author": {"name": "Luis"}},
                    {"_id": "c2", "content": "Segundo", "author": {"name": "Eva"}},
                ],
            },
        )
        server.add("POST", "/comments/create", {"success": True, "message": "Comentario creado"})
        scripted_input.feed("r 0", "k -1", "r 1", "Gracias", "Ana", "ana@example.com", "")

        await app.process_command("/post consejos")

        assert capsys.readouterr().out.count("Número de comentario inválido") == 2
        assert server.calls("POST", "/comments/c1/like") == []
        assert server.calls("POST", "/comments/c2/like") == []
        created = server.calls("POST", "/comments/create")
        assert len(created) == 1
        assert json.loads(created[0].content)["parentComment"] == "c1"
        await app.close()

    @pytest.mark.asyncio
    async def test_quiz_invalid_number(self, app, server, capsys) -> None:
        """Test número de quiz fuera del catálogo."""
        await app.process_command("/quiz 3")
        assert "Número de quiz inválido" in capsys.readouterr().out
        assert server.requests == []
        await app.close()

    @pytest.mark.asyncio
    async def test_download_notes(self, app, server, test_config) -> None:
        """Test descarga de notas."""
        server.add(
            "GET",
            "/notes/public",
            {"success": True, "data": [{"_id": "n1", "title": "Vocabulario", "fileUrl": "uploads/notes/v.pdf",
                                        "fileName": "v.pdf"}]},
        )
        server.add("POST", "/notes/download/n1", {"success": True})

        def static_file(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"%PDF-1.4")

        server.routes[("GET", "/uploads/notes/v.pdf")] = (200, static_file)

        await app.process_command("/notes")
        await app.process_command("/download 1")

        assert len(server.calls("POST", "/notes/download/n1")) == 1
        assert (test_config.data_dir / "downloads" / "v.pdf").read_bytes() == b"%PDF-1.4"
        await app.close()

    @pytest.mark.asyncio
    async def test_unknown_command(self, app, capsys) -> None:
        """Test comando desconocido."""
        await app.process_command("/nada")
        assert "Comando desconocido: nada" in capsys.readouterr().out
        await app.close()


class TestAdminPages:
    """Tests de páginas de administración."""

    @pytest.mark.asyncio
    async def test_admin_requires_login(self, app, server, scripted_input, capsys) -> None:
        """Test redirección al inicio de sesión."""
        server.add("POST", "/auth/admin-login", {"success": False, "message": "Credenciales inválidas"}, status=401)
        scripted_input.feed("admin@academy.com", "mala")

        await app.process_command("/admin")

        output = capsys.readouterr().out
        assert "Debes iniciar sesión como administrador" in output
        assert "Credenciales inválidas" in output
        assert not app.session.is_logged_in
        assert server.calls("GET", "/students") == []
        await app.close()

    @pytest.mark.asyncio
    async def test_login_then_logout(self, app, login_route, scripted_input, store, admin_token) -> None:
        """Test ciclo de sesión."""
        login_route.add("POST", "/auth/logout", {"success": True})
        scripted_input.feed("admin@academy.com", "secret")

        await app.process_command("/login")
        assert app.session.is_logged_in
        assert store.get_item(TOKEN_KEY) == admin_token

        await app.process_command("/logout")
        assert not app.session.is_logged_in
        assert store.get_item(TOKEN_KEY) is None
        assert store.get_item(USER_KEY) is None
        await app.close()

    @pytest.mark.asyncio
    async def test_comment_moderation(self, app, login_route, scripted_input, admin_token) -> None:
        """Test aprobar un comentario."""
        login_route.add("PUT", "/comments/admin/c1/status", {"success": True})
        scripted_input.feed("admin@academy.com", "secret")

        await app.process_command("/login")
        await app.process_command("/admin-comments approve c1")

        request = login_route.last
        assert json.loads(request.content) == {"status": "approved"}
        assert request.headers["Authorization"] == f"Bearer {admin_token}"
        await app.close()

    @pytest.mark.asyncio
    async def test_delete_requires_confirmation(self, app, login_route, scripted_input) -> None:
        """Test eliminación cancelada."""
        scripted_input.feed("admin@academy.com", "secret", "n")

        await app.process_command("/login")
        await app.process_command("/admin-quizzes delete q1")

        assert login_route.calls("DELETE", "/quizzes/q1") == []
        await app.close()


class TestRun:
    """Tests del bucle principal."""

    @pytest.mark.asyncio
    async def test_run_until_end_of_input(self, app, scripted_input, capsys) -> None:
        """Test salida al terminar la entrada."""
        scripted_input.feed("/about")
        await app.run()

        output = capsys.readouterr().out
        assert "Sobre nosotros" in output
        assert "¡Hasta luego!" in output

    @pytest.mark.asyncio
    async def test_run_restores_session(self, app, server, store, admin_token, admin_user, scripted_input, capsys) -> None:
        """Test sesión restaurada al iniciar."""
        store.set_item(TOKEN_KEY, admin_token)
        store.set_item(USER_KEY, json.dumps(admin_user))
        server.add("POST", "/auth/verify-token", {"success": True})
        scripted_input.feed("/quit")

        await app.run()

        assert "Sesión de administrador restaurada: admin@academy.com" in capsys.readouterr().out
        assert app.session.is_logged_in

    @pytest.mark.asyncio
    async def test_background_error_is_reported(self, api, server, store, admin_token, admin_user, capsys) -> None:
        """Test error en una tarea en segundo plano sin cerrar la aplicación."""
        store.set_item(TOKEN_KEY, admin_token)
        store.set_item(USER_KEY, json.dumps(admin_user))

        def crash(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("fallo interno")

        server.add("POST", "/auth/verify-token", crash)

        def wait_then_quit(prompt: str) -> str:
            time.sleep(0.2)
            raise EOFError

        app = PortalApp(api=api, console=Console(input_func=wait_then_quit), store=store)
        await app.run()

        output = capsys.readouterr().out
        assert "Algo salió mal. Intenta de nuevo." in output
        assert "¡Hasta luego!" in output
        assert app.session.is_logged_in
        assert store.get_item(TOKEN_KEY) == admin_token
