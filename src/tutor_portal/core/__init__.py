"""Core: modelos, formularios, persistencia y estadísticas."""

from .forms import FormValidationError, validate_form
from .models import (
    AdminUser,
    Blog,
    Comment,
    Contact,
    Course,
    Notes,
    Question,
    Quiz,
    QuizAttempt,
    QuizResult,
    Review,
    Student,
    Teacher,
)
from .persistence import LocalStore

__all__ = [
    "AdminUser",
    "Blog",
    "Comment",
    "Contact",
    "Course",
    "Notes",
    "Question",
    "Quiz",
    "QuizAttempt",
    "QuizResult",
    "Review",
    "Student",
    "Teacher",
    "FormValidationError",
    "validate_form",
    "LocalStore",
]
