"""Modelos de datos devueltos por la API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def parse_datetime(value: Any) -> datetime | None:
    """Convertir fecha ISO del servidor (con sufijo Z) a datetime."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _id(data: dict[str, Any]) -> str:
    return str(data.get("_id") or data.get("id") or "")


@dataclass
class Duration:
    """Fechas de inicio y fin de un curso."""

    start_date: datetime | None = None
    end_date: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Duration:
        data = data or {}
        return cls(
            start_date=parse_datetime(data.get("startDate")),
            end_date=parse_datetime(data.get("endDate")),
        )


@dataclass
class Course:
    """Un curso del catálogo."""

    id: str
    title: str
    description: str = ""
    category: str = ""
    syllabus: str = ""
    instructor_name: str = ""
    price: float = 0.0
    level: str = ""
    status: str = ""
    image: str = ""
    video: str = ""
    features: list[str] = field(default_factory=list)
    duration: Duration = field(default_factory=Duration)
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Course:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            syllabus=data.get("syllabus", ""),
            instructor_name=data.get("instructorName", ""),
            price=float(data.get("price") or 0),
            level=data.get("level", ""),
            status=data.get("status", ""),
            image=data.get("image", ""),
            video=data.get("video", ""),
            features=list(data.get("features") or []),
            duration=Duration.from_dict(data.get("duration")),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Student:
    """Inscripción de un estudiante."""

    id: str
    name: str
    email: str = ""
    phone: str = ""
    city: str = ""
    qualifications: str = ""
    course: str = ""
    image: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Student:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            city=data.get("city", ""),
            qualifications=data.get("qualifications", ""),
            course=data.get("course") or "",
            image=data.get("image", ""),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Teacher:
    """Solicitud de profesor."""

    id: str
    name: str
    email: str = ""
    contact_number: str = ""
    city: str = ""
    country: str = ""
    subject: str = ""
    qualification: str = ""
    applied_for: str = ""
    expert_at: str = ""
    image: str = ""
    resume: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Teacher:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            name=data.get("name", ""),
            email=data.get("email", ""),
            contact_number=str(data.get("contactNumber", "")),
            city=data.get("city", ""),
            country=data.get("country", ""),
            subject=data.get("subject", ""),
            qualification=data.get("qualification", ""),
            applied_for=data.get("appliedFor", ""),
            expert_at=data.get("expertAt", ""),
            image=data.get("image", ""),
            resume=data.get("resume", ""),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Blog:
    """Entrada del blog."""

    id: str
    title: str
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    author: str = ""
    category: str = ""
    status: str = "draft"
    tags: list[str] = field(default_factory=list)
    featured_image: str = ""
    reading_time: int = 0
    views: int = 0
    like_emails: list[str] = field(default_factory=list)
    published_at: datetime | None = None

    @property
    def like_count(self) -> int:
        return len(self.like_emails)

    def is_liked_by(self, email: str) -> bool:
        return email in self.like_emails

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Blog:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            excerpt=data.get("excerpt", ""),
            content=data.get("content", ""),
            author=data.get("author", ""),
            category=data.get("category", ""),
            status=data.get("status", "draft"),
            tags=list(data.get("tags") or []),
            featured_image=data.get("featuredImage", ""),
            reading_time=int(data.get("readingTime") or 0),
            views=int(data.get("views") or 0),
            like_emails=[like.get("userEmail", "") for like in data.get("likes") or []],
            published_at=parse_datetime(data.get("publishedAt")),
        )


@dataclass
class Comment:
    """Comentario de un blog, con sus respuestas anidadas."""

    id: str
    content: str
    author_name: str = ""
    author_email: str = ""
    status: str = "pending"
    like_emails: list[str] = field(default_factory=list)
    like_count: int = 0
    replies: list[Comment] = field(default_factory=list)
    is_admin_comment: bool = False
    blog_title: str = ""
    created_at: datetime | None = None

    def is_liked_by(self, email: str) -> bool:
        return email in self.like_emails

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Comment:
        """Crear desde diccionario."""
        author = data.get("author") or {}
        likes = [like.get("userEmail", "") for like in data.get("likes") or []]
        blog = data.get("blog")
        return cls(
            id=_id(data),
            content=data.get("content", ""),
            author_name=author.get("name", ""),
            author_email=author.get("email", ""),
            status=data.get("status", "pending"),
            like_emails=likes,
            like_count=int(data.get("likeCount", len(likes))),
            replies=[cls.from_dict(r) for r in data.get("replies") or []],
            is_admin_comment=bool(data.get("isAdminComment", False)),
            blog_title=blog.get("title", "") if isinstance(blog, dict) else "",
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Review:
    """Reseña de un estudiante."""

    id: str
    name: str
    review: str = ""
    rating: int = 5
    course: str = ""
    image: str = ""
    is_active: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Review:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            name=data.get("name", ""),
            review=data.get("review", ""),
            rating=int(data.get("rating") or 5),
            course=data.get("course", ""),
            image=data.get("image", ""),
            is_active=bool(data.get("isActive", True)),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Question:
    """Pregunta de opción múltiple."""

    question: str
    options: list[str] = field(default_factory=list)
    correct_answer: int | None = None
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario (carga útil de creación/edición)."""
        data: dict[str, Any] = {"question": self.question, "options": self.options}
        if self.correct_answer is not None:
            data["correctAnswer"] = self.correct_answer
        if self.explanation:
            data["explanation"] = self.explanation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Crear desde diccionario."""
        correct = data.get("correctAnswer")
        return cls(
            question=data.get("question", ""),
            options=list(data.get("options") or []),
            correct_answer=int(correct) if correct is not None else None,
            explanation=data.get("explanation", ""),
        )


@dataclass
class Quiz:
    """Quiz con sus preguntas (si el servidor las incluye)."""

    id: str
    title: str
    description: str = ""
    category: str = "General"
    difficulty: str = "medium"
    time_limit: int = 30  # minutos
    passing_score: int = 28
    is_active: bool = True
    total_questions: int = 0
    total_attempts: int = 0
    average_score: float = 0.0
    questions: list[Question] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Quiz:
        """Crear desde diccionario."""
        questions = [Question.from_dict(q) for q in data.get("questions") or []]
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            description=data.get("description", ""),
            category=data.get("category", "General"),
            difficulty=data.get("difficulty", "medium"),
            time_limit=int(data.get("timeLimit") or 30),
            passing_score=int(data.get("passingScore") or 28),
            is_active=bool(data.get("isActive", True)),
            total_questions=int(data.get("totalQuestions") or len(questions)),
            total_attempts=int(data.get("totalAttempts") or 0),
            average_score=float(data.get("averageScore") or 0),
            questions=questions,
        )


@dataclass
class QuizResult:
    """Resultado calculado por el servidor al enviar un quiz."""

    score: int
    total_questions: int
    percentage: float
    passed: bool
    passing_score: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizResult:
        """Crear desde diccionario."""
        return cls(
            score=int(data.get("score") or 0),
            total_questions=int(data.get("totalQuestions") or 0),
            percentage=float(data.get("percentage") or 0),
            passed=bool(data.get("passed", False)),
            passing_score=int(data.get("passingScore") or 0),
        )


@dataclass
class QuizAttempt:
    """Intento guardado (listados del panel de administración)."""

    id: str
    quiz_title: str
    student_name: str
    student_email: str = ""
    score: int = 0
    total_questions: int = 0
    passed: bool = False
    time_taken: int = 0
    completed_at: datetime | None = None

    @property
    def percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return self.score / self.total_questions * 100

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizAttempt:
        """Crear desde diccionario."""
        quiz = data.get("quizId")
        title = data.get("quizTitle") or (quiz.get("title") if isinstance(quiz, dict) else "")
        return cls(
            id=_id(data),
            quiz_title=title or "Unknown Quiz",
            student_name=data.get("studentName") or data.get("name") or "Unknown Student",
            student_email=data.get("studentEmail", ""),
            score=int(data.get("score") or 0),
            total_questions=int(data.get("totalQuestions") or 0),
            passed=bool(data.get("passed", False)),
            time_taken=int(data.get("timeTaken") or 0),
            completed_at=parse_datetime(data.get("completedAt") or data.get("createdAt")),
        )


@dataclass
class Contact:
    """Mensaje del formulario de contacto."""

    id: str
    full_name: str
    email_address: str = ""
    subject: str = ""
    message: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Contact:
        """Crear desde diccionario."""
        return cls(
            id=_id(data),
            full_name=data.get("fullName", ""),
            email_address=data.get("emailAddress", ""),
            subject=data.get("subject", ""),
            message=data.get("message", ""),
            created_at=parse_datetime(data.get("createdAt")),
        )


@dataclass
class Notes:
    """Material descargable."""

    id: str
    title: str
    description: str = ""
    subject: str = ""
    category: str = ""
    difficulty: str = ""
    status: str = ""
    file_url: str = ""
    file_name: str = ""
    file_size: int = 0
    file_type: str = ""
    tags: list[str] = field(default_factory=list)
    downloads: int = 0
    views: int = 0
    created_by: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Notes:
        """Crear desde diccionario."""
        creator = data.get("createdBy")
        return cls(
            id=_id(data),
            title=data.get("title", ""),
            description=data.get("description", ""),
            subject=data.get("subject", ""),
            category=data.get("category", ""),
            difficulty=data.get("difficulty", ""),
            status=data.get("status", ""),
            file_url=data.get("fileUrl", ""),
            file_name=data.get("fileName", ""),
            file_size=int(data.get("fileSize") or 0),
            file_type=data.get("fileType", ""),
            tags=list(data.get("tags") or []),
            downloads=int(data.get("downloads") or 0),
            views=int(data.get("views") or 0),
            created_by=creator.get("name", "") if isinstance(creator, dict) else "",
        )


@dataclass
class AdminUser:
    """Perfil del administrador en sesión."""

    id: str
    name: str
    email: str
    role: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario (formato del servidor)."""
        return {**self.extra, "_id": self.id, "name": self.name, "email": self.email, "role": self.role}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdminUser:
        """Crear desde diccionario."""
        known = {"_id", "id", "name", "email", "role"}
        return cls(
            id=_id(data),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role"),
            extra={k: v for k, v in data.items() if k not in known},
        )


def parse_list(model: type, items: Any) -> list:
    """Convertir una lista de diccionarios al modelo indicado."""
    if not isinstance(items, list):
        return []
    return [model.from_dict(item) for item in items if isinstance(item, dict)]
