"""Estadísticas del panel de administración."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..api.resources import PortalAPI
from .models import Course, QuizAttempt, Student, parse_list

SCORE_BUCKETS = (
    ("0-49%", 0, 50),
    ("50-69%", 50, 70),
    ("70-89%", 70, 90),
    ("90-100%", 90, 101),
)
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ScoreBucket:
    range: str
    count: int
    percentage: float


@dataclass
class MonthlyAttempts:
    month: str
    attempts: int
    average_score: int


@dataclass
class DashboardStats:
    """Resumen calculado a partir de datos reales (sin datos de ejemplo)."""

    total_courses: int = 0
    total_students: int = 0
    total_teachers: int = 0
    total_reviews: int = 0
    total_quizzes: int = 0
    total_notes: int = 0
    total_downloads: int = 0
    total_attempts: int = 0
    average_score: int = 0
    passing_rate: int = 0
    failing_rate: int = 0
    score_distribution: list[ScoreBucket] = field(default_factory=list)
    monthly_attempts: list[MonthlyAttempts] = field(default_factory=list)
    recent_attempts: list[QuizAttempt] = field(default_factory=list)
    recent_enrollments: list[Student] = field(default_factory=list)
    top_courses: list[Course] = field(default_factory=list)


def _as_utc(moment: datetime | None) -> datetime:
    if moment is None:
        return _OLDEST
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def score_distribution(attempts: list[QuizAttempt]) -> list[ScoreBucket]:
    """Agrupar intentos por porcentaje obtenido."""
    total = len(attempts)
    buckets = []
    for label, low, high in SCORE_BUCKETS:
        count = sum(1 for a in attempts if low <= a.percentage < high)
        buckets.append(ScoreBucket(label, count, count / total * 100 if total else 0.0))
    return buckets


def monthly_attempts(attempts: list[QuizAttempt]) -> list[MonthlyAttempts]:
    """Intentos por mes ("Mon YYYY") en orden cronológico."""
    months: dict[tuple[int, int], list[float]] = {}
    for attempt in attempts:
        if attempt.completed_at is None:
            continue
        key = (attempt.completed_at.year, attempt.completed_at.month)
        months.setdefault(key, []).append(attempt.percentage)

    result = []
    for (year, month), scores in sorted(months.items()):
        label = datetime(year, month, 1).strftime("%b %Y")
        result.append(MonthlyAttempts(label, len(scores), round(sum(scores) / len(scores))))
    return result


def build_dashboard(
    courses: list[Course],
    students: list[Student],
    teachers: list[Any],
    reviews: list[Any],
    quizzes: list[Any],
    attempts: list[QuizAttempt],
    notes_stats: dict[str, Any] | None = None,
) -> DashboardStats:
    """Calcular las estadísticas del panel."""
    notes_stats = notes_stats or {}
    total = len(attempts)
    passed = sum(1 for a in attempts if a.passed)
    average = sum(a.percentage for a in attempts) / total if total else 0.0
    passing_rate = passed / total * 100 if total else 0.0

    return DashboardStats(
        total_courses=len(courses),
        total_students=len(students),
        total_teachers=len(teachers),
        total_reviews=len(reviews),
        total_quizzes=len(quizzes),
        total_notes=int(notes_stats.get("totalNotes") or 0),
        total_downloads=int(notes_stats.get("totalDownloads") or 0),
        total_attempts=total,
        average_score=round(average),
        passing_rate=round(passing_rate),
        failing_rate=round(100 - passing_rate) if total else 0,
        score_distribution=score_distribution(attempts),
        monthly_attempts=monthly_attempts(attempts),
        recent_attempts=sorted(attempts, key=lambda a: _as_utc(a.completed_at), reverse=True)[:5],
        recent_enrollments=sorted(students, key=lambda s: _as_utc(s.created_at), reverse=True)[:5],
        top_courses=sorted(courses, key=lambda c: c.title.lower())[:3],
    )


async def fetch_dashboard(api: PortalAPI, authorization: str) -> DashboardStats:
    """Obtener todos los datos en paralelo y calcular el panel."""
    (
        courses,
        students,
        teachers,
        reviews,
        quizzes,
        results,
        notes_stats,
    ) = await asyncio.gather(
        api.courses.get_all_courses(),
        api.students.get_all_students(authorization),
        api.teachers.get_all_teachers(authorization),
        api.reviews.get_all_reviews(authorization),
        api.quizzes.get_all_quizzes(authorization),
        api.quizzes.get_all_quiz_results(authorization, {"limit": 100}),
        api.notes.get_notes_stats(authorization),
    )

    return build_dashboard(
        courses=parse_list(Course, courses.data),
        students=parse_list(Student, students.data),
        teachers=teachers.items(),
        reviews=reviews.items(),
        quizzes=quizzes.items(),
        attempts=parse_list(QuizAttempt, results.data),
        notes_stats=notes_stats.data if isinstance(notes_stats.data, dict) else {},
    )
