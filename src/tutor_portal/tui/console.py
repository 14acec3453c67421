"""Entrada y salida de la consola con colores ANSI."""

from __future__ import annotations

import asyncio
import sys
from typing import Callable, TextIO

from ..api.client import ApiConnectionError, ApiError
from ..api.uploads import UploadValidationError
from ..auth.session import NotAuthenticatedError
from ..core.forms import FormValidationError
from ..quiz.session import QuizSessionError
from ..utils.logging import get_logger

if sys.platform == "win32":
    import colorama
    colorama.init()

logger = get_logger(__name__)

ORANGE = "\033[38;5;208m"
YELLOW = "\033[33m"
GREEN = "\033[32m"
RED = "\033[31m"
CYAN = "\033[36m"
DIM = "\033[2m"
RESET = "\033[0m"


class Console:
    """Impresión con colores y lectura de líneas sin bloquear el event loop."""

    def __init__(self, input_func: Callable[[str], str] = input, out: TextIO | None = None) -> None:
        self.input_func = input_func
        self.out = out

    def print(self, message: str = "") -> None:
        print(message, file=self.out or sys.stdout)

    def print_header(self, title: str) -> None:
        """Imprimir encabezado."""
        self.print(f"{YELLOW}{'=' * 50}{RESET}")
        self.print(f"{YELLOW}  {title}{RESET}")
        self.print(f"{YELLOW}{'=' * 50}{RESET}")

    def print_title(self, message: str) -> None:
        self.print(f"{YELLOW}{message}{RESET}")

    def print_info(self, message: str) -> None:
        """Imprimir mensaje informativo."""
        self.print(f"{ORANGE}ℹ {message}{RESET}")

    def print_success(self, message: str) -> None:
        """Imprimir mensaje de éxito."""
        self.print(f"{GREEN}✓ {message}{RESET}")

    def print_error(self, message: str) -> None:
        """Imprimir mensaje de error."""
        self.print(f"{RED}✗ {message}{RESET}")

    def print_item(self, label: str, detail: str = "") -> None:
        line = f"  {CYAN}{label}{RESET}"
        if detail:
            line += f" {DIM}{detail}{RESET}"
        self.print(line)

    def print_loading(self, what: str) -> None:
        self.print(f"{DIM}Cargando {what}...{RESET}")

    async def ask(self, prompt: str = "> ") -> str:
        """Leer una línea en un hilo aparte (el temporizador del quiz sigue corriendo)."""
        value = await asyncio.to_thread(self.input_func, f"{ORANGE}{prompt}{RESET}")
        return value.strip()

    async def ask_optional(self, prompt: str, default: str = "") -> str:
        suffix = f" [{default}]" if default else ""
        value = await self.ask(f"{prompt}{suffix}: ")
        return value or default

    async def confirm(self, message: str) -> bool:
        """Pedir confirmación s/n."""
        answer = await self.ask(f"{message} (s/n): ")
        return answer.lower() in ("s", "si", "sí", "y", "yes")

    def handle_error(self, error: Exception, title: str | None = None) -> None:
        """Mostrar un error como notificación."""
        prefix = f"{title}: " if title else ""
        if isinstance(error, FormValidationError):
            self.print_error(f"{prefix}revisa los campos del formulario")
            for name, message in error.errors.items():
                self.print_item(name, message)
        elif isinstance(error, ApiConnectionError):
            self.print_error(f"{prefix}{error.message}")
            self.print_info("El servidor no respondió; revisa TUTOR_API_URL")
        elif isinstance(error, ApiError):
            self.print_error(f"{prefix}{error.message}")
        elif isinstance(error, (UploadValidationError, NotAuthenticatedError, QuizSessionError)):
            self.print_error(f"{prefix}{error}")
        else:
            logger.exception("Error inesperado", exc_info=error)
            self.print_error(f"{prefix}Algo salió mal. Intenta de nuevo.")
