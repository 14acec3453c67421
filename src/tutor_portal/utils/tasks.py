"""Tareas en segundo plano cuyos errores llegan al manejador del event loop."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from .logging import get_logger

logger = get_logger(__name__)


def create_task(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    """
    Lanzar una tarea en segundo plano.

    Si la tarea termina con una excepción (no por cancelación), se entrega
    a `loop.call_exception_handler` en cuanto termina.
    """
    task = asyncio.create_task(coro, name=name)
    task.add_done_callback(_report_error)
    return task


def _report_error(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is None:
        return
    logger.debug(f"Tarea {task.get_name()} terminó con {type(error).__name__}")
    task.get_loop().call_exception_handler(
        {"message": f"Error en la tarea {task.get_name()}", "exception": error, "task": task}
    )
