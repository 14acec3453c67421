"""
Formularios del portal validados con pydantic.

Cada formulario valida al momento de enviarse; los errores se convierten
en FormValidationError con un mensaje por campo para mostrarlos en la
consola antes de hacer cualquier petición.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Any, Literal, Optional, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


FormT = TypeVar("FormT", bound="PortalForm")


class FormValidationError(Exception):
    """Formulario con campos inválidos."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__(next(iter(errors.values()), "Formulario inválido"))


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Ingresa un email válido")
    return value


def _split_tags(value: Any) -> Any:
    """Aceptar etiquetas separadas por comas."""
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


class PortalForm(BaseModel):
    """Base: recorta espacios y acepta nombres camelCase o snake_case."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Campos con los nombres que espera el servidor."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StudentEnrollmentForm(PortalForm):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    phone: str = Field(..., min_length=10, max_length=15)
    city: str = Field(..., min_length=2, max_length=50)
    qualifications: str = Field(..., min_length=2, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class TeacherApplicationForm(PortalForm):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    contact_number: str = Field(..., alias="contactNumber", min_length=10, max_length=15)
    address: str = Field(..., min_length=5, max_length=200)
    city: str = Field(..., min_length=2, max_length=50)
    country: str = Field(..., min_length=2, max_length=50)
    state: str = Field(..., min_length=2, max_length=50)
    zip_code: str = Field(..., alias="zipCode", min_length=3, max_length=10)
    gender: Literal["Male", "Female", "Other"]
    date_of_birth: date = Field(..., alias="dateOfBirth")
    qualification: str = Field(..., min_length=2, max_length=100)
    subject: str = Field(..., min_length=2, max_length=50)
    expert_at: str = Field(..., alias="expertAt", min_length=5, max_length=200)
    applied_for: Literal["IELTS", "English", "Quran"] = Field(..., alias="appliedFor")
    why_fit_for_job: str = Field(..., alias="whyFitForJob", min_length=10, max_length=1000)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["dateOfBirth"] = self.date_of_birth.isoformat()
        return payload


class ContactForm(PortalForm):
    full_name: str = Field(..., alias="fullName", min_length=1)
    email_address: str = Field(..., alias="emailAddress")
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)

    @field_validator("email_address")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class CommentForm(PortalForm):
    content: str = Field(..., min_length=1, max_length=1000)
    blog_id: str = Field(..., alias="blogId", min_length=1)
    author_name: str = Field(..., min_length=1)
    author_email: str
    parent_comment: Optional[str] = Field(None, alias="parentComment")

    @field_validator("author_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": self.content,
            "blogId": self.blog_id,
            "author": {"name": self.author_name, "email": self.author_email},
        }
        if self.parent_comment:
            payload["parentComment"] = self.parent_comment
        return payload


class LoginForm(PortalForm):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class QuestionForm(PortalForm):
    question: str
    options: list[str] = Field(default_factory=lambda: ["", "", "", ""])
    correct_answer: int = Field(0, alias="correctAnswer", ge=0)
    explanation: Optional[str] = None


class QuizForm(PortalForm):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = "General"
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    passing_score: int = Field(28, alias="passingScore", ge=0)
    time_limit: int = Field(30, alias="timeLimit", gt=0)
    is_active: bool = Field(True, alias="isActive")
    questions: list[QuestionForm] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_questions(self) -> QuizForm:
        """Cada pregunta y cada opción deben tener texto."""
        for i, question in enumerate(self.questions, start=1):
            if not question.question.strip():
                raise ValueError(f"La pregunta {i} es obligatoria")
            for j, option in enumerate(question.options, start=1):
                if not option.strip():
                    raise ValueError(f"Pregunta {i}, opción {j} es obligatoria")
            if question.correct_answer >= len(question.options):
                raise ValueError(f"Pregunta {i}: la respuesta correcta no está entre las opciones")
        return self


class BlogForm(PortalForm):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    excerpt: str = Field(..., min_length=1)
    category: str = "General"
    tags: list[str] = Field(default_factory=list)
    status: Literal["draft", "published"] = "draft"
    featured_image: Optional[str] = Field(None, alias="featuredImage")
    meta_title: Optional[str] = Field(None, alias="metaTitle")
    meta_description: Optional[str] = Field(None, alias="metaDescription")

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> Any:
        return _split_tags(v)


class CourseForm(PortalForm):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: Literal["IELTS", "English Proficiency", "Quran"]
    syllabus: str = Field(..., min_length=1)
    instructor_name: str = Field(..., alias="instructorName", min_length=1)
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    price: float = Field(0, ge=0)
    level: Optional[str] = None
    status: Optional[str] = None
    features: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self) -> CourseForm:
        if self.start_date >= self.end_date:
            raise ValueError("La fecha de fin debe ser posterior a la de inicio")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"start_date", "end_date"})
        payload["duration"] = {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }
        return payload


class ReviewForm(PortalForm):
    name: str = Field(..., min_length=1)
    review: str = Field(..., min_length=1)
    rating: int = Field(5, ge=1, le=5)
    course: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")


class NotesForm(PortalForm):
    title: str = Field(..., min_length=1)
    description: str = ""
    subject: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    difficulty: Literal["beginner", "intermediate", "advanced"]
    status: Literal["draft", "published"] = "published"
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> Any:
        return _split_tags(v)


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "formulario"


def validate_form(form_cls: type[FormT], data: dict[str, Any]) -> FormT:
    """
    Validar datos de un formulario.

    Raises:
        FormValidationError: Con un mensaje por campo inválido
    """
    try:
        return form_cls.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            name = _field_name(error["loc"])
            message = error["msg"].removeprefix("Value error, ")
            errors.setdefault(name, message)
        raise FormValidationError(errors) from e


def load_form_file(path: str | Path) -> dict[str, Any]:
    """Leer la definición de un formulario desde YAML (quiz, curso, blog...)."""
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise FormValidationError({"archivo": f"Archivo no encontrado: {file_path}"})
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise FormValidationError({"archivo": f"YAML inválido: {e}"}) from e
    if not isinstance(data, dict):
        raise FormValidationError({"archivo": "El archivo debe contener un diccionario YAML"})
    return data
