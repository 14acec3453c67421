"""Aplicación de consola - Tutor Portal."""

from __future__ import annotations

import asyncio

from ..api.resources import PortalAPI
from ..auth.session import AdminSession
from ..config import get_config
from ..core.models import Notes, Quiz
from ..core.persistence import LocalStore
from ..quiz.session import QuizSession
from ..utils.logging import get_logger
from .admin_pages import AdminPages
from .console import CYAN, ORANGE, RESET, YELLOW, Console
from .public_pages import PublicPages

logger = get_logger(__name__)


class PortalApp(PublicPages, AdminPages):
    """Portal de la academia en la consola."""

    def __init__(
        self,
        api: PortalAPI | None = None,
        console: Console | None = None,
        store: LocalStore | None = None,
    ) -> None:
        self.config = get_config()
        self.api = api or PortalAPI()
        self.console = console or Console()
        self.store = store or LocalStore(self.config.storage_path)
        self.session = AdminSession(self.api, self.store)
        self.quiz_session = QuizSession(self.api)
        self.quiz_catalog: list[Quiz] = []
        self.notes_catalog: list[Notes] = []
        self.running = False

    def print_logo(self) -> None:
        """Imprimir logo."""
        self.console.print(ORANGE + r"""
          ____
         /    \
        | o  o |   Tutor Portal
         \ __ /
        """ + RESET)

    def show_welcome(self) -> None:
        """Mostrar mensaje de bienvenida."""
        self.print_logo()
        self.console.print_header(f"¡{self.config.app_name}! v{self.config.version}")
        self.console.print_info("Escribe '/home' para ver los cursos destacados")
        self.console.print_info("Escribe '/help' para ver todos los comandos")
        if self.session.is_logged_in and self.session.admin_user:
            self.console.print_success(f"Sesión de administrador restaurada: {self.session.admin_user.email}")
        self.console.print()

    @property
    def handlers(self) -> dict:
        return {
            "help": self.cmd_help,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "q": self.cmd_quit,
            "home": self.cmd_home,
            "courses": self.cmd_courses,
            "course": self.cmd_course,
            "about": self.cmd_about,
            "contact": self.cmd_contact,
            "apply-teacher": self.cmd_apply_teacher,
            "enroll": self.cmd_enroll,
            "quizzes": self.cmd_quizzes,
            "quiz": self.cmd_quiz,
            "blog": self.cmd_blog,
            "post": self.cmd_post,
            "notes": self.cmd_notes,
            "download": self.cmd_download,
            "login": self.cmd_login,
            "logout": self.cmd_logout,
            "admin": self.cmd_admin,
            "admin-courses": self.cmd_admin_courses,
            "admin-enrollments": self.cmd_admin_enrollments,
            "admin-teachers": self.cmd_admin_teachers,
            "admin-reviews": self.cmd_admin_reviews,
            "admin-contacts": self.cmd_admin_contacts,
            "admin-comments": self.cmd_admin_comments,
            "admin-notes": self.cmd_admin_notes,
            "admin-quizzes": self.cmd_admin_quizzes,
            "admin-blogs": self.cmd_admin_blogs,
        }

    async def run(self) -> None:
        """Ejecutar la aplicación."""
        logger.info(f"{self.config.app_name} iniciado ({self.config.api_url})")
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(self.handle_background_error)
        if await self.session.restore():
            self.session.start_revalidation()
        self.show_welcome()
        self.running = True

        try:
            while self.running:
                try:
                    command = await self.console.ask("> ")
                    if command:
                        await self.process_command(command)
                except (KeyboardInterrupt, EOFError):
                    self.console.print(f"\n{YELLOW}¡Hasta luego!{RESET}")
                    break
        finally:
            await self.close()
            loop.set_exception_handler(None)

    def handle_background_error(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        """Errores de tareas en segundo plano: notificar sin cerrar la aplicación."""
        error = context.get("exception")
        if error is None:
            logger.error(context.get("message", "Error en segundo plano"))
            return
        self.console.handle_error(error)

    async def process_command(self, command: str) -> None:
        """Procesar comando del usuario."""
        command = command.removeprefix("/")
        parts = command.split()
        if not parts:
            return
        cmd = parts[0].lower()
        args = parts[1:]

        handler = self.handlers.get(cmd)
        if handler is None:
            self.console.print_error(f"Comando desconocido: {cmd}")
            self.console.print_info("Escribe '/help' para ver los comandos disponibles")
            return

        try:
            await handler(args)
        except EOFError:
            raise
        except Exception as e:
            self.console.handle_error(e)

    async def cmd_help(self, args) -> None:
        """Mostrar ayuda."""
        self.console.print_title("📖 Páginas públicas")
        for usage, description in (
            ("/home", "Cursos destacados y testimonios"),
            ("/courses [página] [búsqueda]", "Catálogo de cursos"),
            ("/course <id>", "Detalle de un curso"),
            ("/about", "Sobre la academia"),
            ("/contact", "Enviar un mensaje"),
            ("/apply-teacher", "Postular como profesor"),
            ("/enroll", "Inscribirse como estudiante"),
            ("/quizzes [categoría] [dificultad]", "Quizzes disponibles"),
            ("/quiz <n|id>", "Rendir un quiz"),
            ("/blog [página] [búsqueda]", "Artículos del blog"),
            ("/post <slug>", "Leer un artículo y sus comentarios"),
            ("/notes [página] [búsqueda]", "Notas descargables"),
            ("/download <n|id>", "Descargar notas"),
        ):
            self.console.print(f"  {CYAN}{usage:<36}{RESET} - {description}")
        self.console.print()
        self.console.print_title("🔐 Administración")
        for usage, description in (
            ("/login", "Iniciar sesión"),
            ("/logout", "Cerrar sesión"),
            ("/admin", "Panel con estadísticas"),
            ("/admin-courses", "list · create <yaml> · delete <id>"),
            ("/admin-enrollments", "list · search <texto> · delete <id>"),
            ("/admin-teachers", "list · show <id> · search <texto> · delete <id>"),
            ("/admin-reviews", "list · create <yaml> · toggle <id> · delete <id>"),
            ("/admin-contacts", "list · show <id> · delete <id>"),
            ("/admin-comments", "list [estado] · approve|reject|pending <id> · delete <id> · stats"),
            ("/admin-notes", "list · create <yaml> · delete <id> · stats"),
            ("/admin-quizzes", "list · create <yaml> · toggle <id> · results <id> · delete <id>"),
            ("/admin-blogs", "list · create <yaml> · publish <id> · delete <id> · stats"),
        ):
            self.console.print(f"  {CYAN}{usage:<36}{RESET} - {description}")
        self.console.print()
        self.console.print(f"  {CYAN}{'/quit':<36}{RESET} - Salir")

    async def cmd_quit(self, args) -> None:
        """Salir."""
        self.console.print(f"{YELLOW}¡Hasta luego!{RESET}")
        self.running = False

    async def close(self) -> None:
        """Detener tareas y cerrar el cliente HTTP."""
        self.quiz_session.close()
        await self.session.close()
        await self.api.close()


async def main() -> None:
    """Función principal."""
    app = PortalApp()
    await app.run()
