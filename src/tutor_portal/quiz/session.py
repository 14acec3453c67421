"""
Flujo para rendir un quiz.

Estados: not-started -> taking -> submitted -> result-shown.

Las respuestas correctas se cargan junto con el quiz para dar
retroalimentación inmediata; la nota final la calcula el servidor.
"""

from __future__ import annotations

import asyncio
import inspect
import random
import string
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from ..api.client import ApiError
from ..api.resources import PortalAPI
from ..core.models import Question, Quiz, QuizResult
from ..utils.logging import get_logger
from ..utils.tasks import create_task

logger = get_logger(__name__)

UNANSWERED = -1
DEFAULT_ANSWER = 0

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


class QuizState(str, Enum):
    NOT_STARTED = "not-started"
    TAKING = "taking"
    SUBMITTED = "submitted"
    RESULT_SHOWN = "result-shown"


class QuizSessionError(Exception):
    """Operación no permitida en el estado actual del quiz."""

    pass


class AnswerLockedError(QuizSessionError):
    """La pregunta ya tiene una respuesta y no se puede cambiar."""

    def __init__(self) -> None:
        super().__init__("No puedes cambiar tu respuesta una vez seleccionada")


class MissingStudentInfoError(QuizSessionError):
    """Falta el nombre o email del estudiante."""

    def __init__(self) -> None:
        super().__init__("Ingresa tu nombre y email")


@dataclass
class AnswerFeedback:
    """Retroalimentación inmediata tras elegir una opción."""

    question_index: int
    selected: int
    correct_answer: Optional[int]

    @property
    def is_correct(self) -> bool:
        return self.correct_answer is not None and self.selected == self.correct_answer


def format_time(seconds: int) -> str:
    """Formatear segundos como m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def generate_student_id() -> str:
    """Identificador `student_<ms>_<9 caracteres base36>`."""
    alphabet = string.digits + string.ascii_lowercase
    suffix = "".join(random.choice(alphabet) for _ in range(9))
    return f"student_{int(time.time() * 1000)}_{suffix}"


async def _confirmed(confirm: ConfirmCallback | None, message: str) -> bool:
    if confirm is None:
        return True
    answer = confirm(message)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


class QuizSession:
    """Estado en memoria de un intento de quiz."""

    def __init__(self, api: PortalAPI) -> None:
        """Inicializar en el catálogo (sin quiz)."""
        self.api = api
        self.state = QuizState.NOT_STARTED
        self.result: QuizResult | None = None
        self.last_error: str | None = None
        self.on_timeout: Callable[[], None] | None = None
        self._timer_task: asyncio.Task | None = None
        self._reset()

    def _reset(self) -> None:
        self.quiz: Quiz | None = None
        self.questions: list[Question] = []
        self.answers: list[int] = []
        self.correct_answers: list[Optional[int]] = []
        self.current_index = 0
        self.time_left = 0
        self.student_name = ""
        self.student_email = ""
        self._auto_submitted = False

    # --- Entrada ---

    async def start(self, quiz: Quiz) -> None:
        """Cargar preguntas con respuestas y arrancar el intento."""
        response = await self.api.quizzes.get_quiz_by_id(quiz.id, include_answers=True)
        full = Quiz.from_dict(response.data or {})
        if not full.questions:
            raise QuizSessionError("El quiz no tiene preguntas")

        self.stop_timer()
        self._reset()
        self.result = None
        self.last_error = None
        self.quiz = quiz
        self.questions = full.questions
        self.answers = [UNANSWERED] * len(full.questions)
        self.correct_answers = [q.correct_answer for q in full.questions]
        self.time_left = quiz.time_limit * 60
        self.state = QuizState.TAKING
        logger.info(f"Quiz iniciado: {quiz.id} ({len(self.questions)} preguntas)")

    # --- Respuestas y navegación ---

    @property
    def current_question(self) -> Question | None:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def unanswered_count(self) -> int:
        return sum(1 for answer in self.answers if answer == UNANSWERED)

    def select_answer(self, option: int) -> AnswerFeedback | None:
        """
        Elegir opción para la pregunta actual.

        Returns:
            Retroalimentación, o None si no se está rindiendo el quiz

        Raises:
            AnswerLockedError: Si la pregunta ya fue respondida
        """
        if self.state is not QuizState.TAKING:
            return None
        question = self.questions[self.current_index]
        if not 0 <= option < len(question.options):
            raise QuizSessionError(f"Opción fuera de rango: {option + 1}")
        if self.answers[self.current_index] != UNANSWERED:
            raise AnswerLockedError()

        self.answers[self.current_index] = option
        return AnswerFeedback(
            question_index=self.current_index,
            selected=option,
            correct_answer=self.correct_answers[self.current_index],
        )

    def next_question(self) -> bool:
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            return True
        return False

    def previous_question(self) -> bool:
        if self.current_index > 0:
            self.current_index -= 1
            return True
        return False

    def set_student_info(self, name: str, email: str) -> None:
        """Registrar nombre y email (solo en la primera pregunta)."""
        if self.state is not QuizState.TAKING:
            raise QuizSessionError("No hay un quiz en curso")
        if self.current_index != 0:
            raise QuizSessionError("Tus datos se ingresan en la primera pregunta")
        self.student_name = name
        self.student_email = email

    # --- Temporizador ---

    def tick(self) -> bool:
        """
        Avanzar un segundo.

        Returns:
            True si el tiempo llegó a cero en este tick y corresponde el envío automático
        """
        if self.state is not QuizState.TAKING:
            return False
        if self.time_left > 0:
            self.time_left -= 1
        if self.time_left == 0 and not self._auto_submitted:
            self._auto_submitted = True
            return True
        return False

    async def run_timer(self) -> None:
        """Cuenta regresiva de un segundo; al llegar a cero envía una sola vez."""
        # Mientras se envía manualmente el reloj se pausa; si el envío falla, continúa
        while self.state in (QuizState.TAKING, QuizState.SUBMITTED):
            await asyncio.sleep(1)
            if self.tick():
                logger.info("Tiempo agotado, envío automático")
                if self.on_timeout:
                    self.on_timeout()
                try:
                    await self.submit(auto=True)
                except (QuizSessionError, ApiError) as e:
                    logger.warning(f"Envío automático fallido: {e}")
                    self.last_error = str(e)
                except Exception:
                    logger.exception("Error inesperado en el envío automático")
                    self.last_error = "Algo salió mal al enviar el quiz. Intenta de nuevo."
                return

    def start_timer(self) -> asyncio.Task:
        """Lanzar la cuenta regresiva como tarea."""
        self.stop_timer()
        self._timer_task = create_task(self.run_timer(), "cuenta-regresiva")
        return self._timer_task

    async def wait_for_auto_submit(self) -> None:
        """Esperar a que termine un envío automático en curso."""
        task = self._timer_task
        if task is not None and not task.done() and self.state is QuizState.SUBMITTED:
            await task

    def stop_timer(self) -> None:
        task = self._timer_task
        self._timer_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # --- Envío ---

    async def submit(self, confirm: ConfirmCallback | None = None, auto: bool = False) -> QuizResult | None:
        """
        Enviar respuestas al servidor.

        Args:
            confirm: Confirmación opcional si hay preguntas sin responder
            auto: Envío por tiempo agotado (sin confirmación)

        Returns:
            Resultado, o None si el usuario canceló el envío

        Raises:
            MissingStudentInfoError: Si falta nombre o email
            ApiError: Si el servidor rechaza el envío
        """
        if self.state is not QuizState.TAKING or self.quiz is None:
            raise QuizSessionError("No hay un quiz en curso")
        if not self.student_name.strip() or not self.student_email.strip():
            raise MissingStudentInfoError()

        unanswered = self.unanswered_count
        if unanswered and not auto:
            message = f"Tienes {unanswered} preguntas sin responder. ¿Enviar de todos modos?"
            if not await _confirmed(confirm, message):
                return None

        payload = {
            "studentId": generate_student_id(),
            "studentName": self.student_name.strip(),
            "studentEmail": self.student_email.strip(),
            "answers": [DEFAULT_ANSWER if a == UNANSWERED else a for a in self.answers],
            "timeTaken": self.quiz.time_limit * 60 - self.time_left,
        }

        self.state = QuizState.SUBMITTED
        try:
            response = await self.api.quizzes.submit_quiz_result(self.quiz.id, payload)
            result = QuizResult.from_dict(response.data or {})
        except BaseException:
            # Incluye la cancelación: nunca queda en SUBMITTED sin resultado
            self.state = QuizState.TAKING
            raise

        self.stop_timer()
        self.result = result
        quiz_id = self.quiz.id
        self._reset()
        self.state = QuizState.RESULT_SHOWN
        logger.info(f"Quiz enviado: {quiz_id} ({self.result.percentage}%)")
        return self.result

    # --- Salida ---

    async def cancel(self, confirm: ConfirmCallback | None = None) -> bool:
        """Abandonar el intento y volver al catálogo."""
        if self.state is not QuizState.TAKING:
            return False
        message = "¿Seguro que quieres cancelar el quiz? Se perderá todo tu progreso."
        if not await _confirmed(confirm, message):
            return False
        self.stop_timer()
        self._reset()
        self.state = QuizState.NOT_STARTED
        logger.info("Quiz cancelado")
        return True

    def dismiss_result(self) -> None:
        """Cerrar el resultado y volver al catálogo."""
        if self.state is QuizState.RESULT_SHOWN:
            self.result = None
            self.state = QuizState.NOT_STARTED

    def close(self) -> None:
        """Detener la cuenta regresiva."""
        self.stop_timer()
