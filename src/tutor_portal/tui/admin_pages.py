"""Páginas del panel de administración (requieren sesión)."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..api.client import ApiError
from ..api.uploads import MultipartForm, UploadFile, UploadValidationError, validate_image, validate_video
from ..auth.session import NotAuthenticatedError
from ..core.dashboard import fetch_dashboard
from ..core.forms import (
    BlogForm,
    CourseForm,
    FormValidationError,
    LoginForm,
    NotesForm,
    QuizForm,
    ReviewForm,
    load_form_file,
    validate_form,
)
from ..core.models import (
    Blog,
    Comment,
    Contact,
    Course,
    Notes,
    Quiz,
    QuizAttempt,
    Review,
    Student,
    Teacher,
    parse_list,
)
from .console import DIM, GREEN, RED, RESET

if TYPE_CHECKING:
    from ..api.resources import PortalAPI
    from ..auth.session import AdminSession
    from .console import Console

ADMIN_ERRORS = (ApiError, FormValidationError, UploadValidationError, NotAuthenticatedError)


def admin_required(handler: Callable[..., Awaitable[None]]) -> Callable[..., Awaitable[None]]:
    """Redirigir al inicio de sesión si no hay sesión de administrador."""

    @functools.wraps(handler)
    async def wrapper(self: AdminPages, args) -> None:
        if not self.session.is_logged_in:
            self.console.print_error("Debes iniciar sesión como administrador")
            await self.cmd_login([])
            if not self.session.is_logged_in:
                return
        await handler(self, args)

    return wrapper


def _short_date(value: Any) -> str:
    return f"{value:%d/%m/%Y}" if value else "-"


class AdminPages:
    """Comandos del panel de administración (se mezcla en PortalApp)."""

    api: PortalAPI
    console: Console
    session: AdminSession

    @property
    def auth(self) -> str:
        return self.session.authorization

    async def _dispatch(self, args: list[str], actions: dict[str, Callable[[list[str]], Awaitable[None]]]) -> None:
        """Ejecutar subcomando (`list` por defecto)."""
        action = args[0].lower() if args else "list"
        handler = actions.get(action)
        if handler is None:
            self.console.print_error(f"Subcomando desconocido: {action}")
            self.console.print_info(f"Disponibles: {', '.join(actions)}")
            return
        try:
            await handler(args[1:])
        except ADMIN_ERRORS as e:
            self.console.handle_error(e)

    async def _confirm_delete(self, what: str) -> bool:
        return await self.console.confirm(f"¿Eliminar {what}? Esta acción no se puede deshacer")

    def _require(self, rest: list[str], usage: str) -> str | None:
        if not rest:
            self.console.print_error(f"Uso: {usage}")
            return None
        return rest[0]

    # --- Sesión ---

    async def cmd_login(self, args) -> None:
        """Iniciar sesión de administrador."""
        if self.session.is_logged_in and self.session.admin_user:
            self.console.print_info(f"Sesión activa como {self.session.admin_user.email}")
            return
        self.console.print_header("Acceso de administrador")
        data = {
            "email": await self.console.ask("Email: "),
            "password": await self.console.ask("Contraseña: "),
        }
        try:
            form = validate_form(LoginForm, data)
            response = await self.api.auth.admin_login(form.email, form.password)
        except (FormValidationError, ApiError) as e:
            self.console.handle_error(e, "No se pudo iniciar sesión")
            return

        payload = response.data if isinstance(response.data, dict) else {}
        token = response.raw.get("token") or payload.get("token")
        user = response.raw.get("user") or payload.get("user")
        if not token or not isinstance(user, dict):
            self.console.print_error(response.message or "Respuesta de inicio de sesión inválida")
            return
        self.session.login(token, user)
        self.session.start_revalidation()
        self.console.print_success(f"Bienvenido, {self.session.admin_user.name or self.session.admin_user.email}")

    async def cmd_logout(self, args) -> None:
        """Cerrar sesión de administrador."""
        if not self.session.is_logged_in:
            self.console.print_info("No hay sesión activa")
            return
        self.session.stop_revalidation()
        await self.session.logout()
        self.console.print_success("Sesión cerrada")

    # --- Panel ---

    @admin_required
    async def cmd_admin(self, args) -> None:
        """Panel con estadísticas."""
        self.console.print_loading("panel")
        try:
            stats = await fetch_dashboard(self.api, self.auth)
        except ADMIN_ERRORS as e:
            self.console.handle_error(e, "No se pudo cargar el panel")
            return

        self.console.print_header("Panel de administración")
        self.console.print_item("Cursos:", str(stats.total_courses))
        self.console.print_item("Estudiantes:", str(stats.total_students))
        self.console.print_item("Profesores:", str(stats.total_teachers))
        self.console.print_item("Reseñas:", str(stats.total_reviews))
        self.console.print_item("Quizzes:", str(stats.total_quizzes))
        self.console.print_item("Notas:", f"{stats.total_notes} ({stats.total_downloads} descargas)")
        self.console.print()

        self.console.print_title("🧠 Rendimiento en quizzes")
        self.console.print_item("Intentos:", str(stats.total_attempts))
        if stats.total_attempts:
            self.console.print_item("Promedio:", f"{stats.average_score}%")
            self.console.print_item(
                "Aprobados / reprobados:", f"{stats.passing_rate}% / {stats.failing_rate}%"
            )
            for bucket in stats.score_distribution:
                bar = "█" * round(bucket.percentage / 5)
                self.console.print(f"  {bucket.range:>8} {bar} {bucket.count}")
            self.console.print()
            self.console.print_title("Por mes")
            for month in stats.monthly_attempts:
                self.console.print_item(month.month, f"{month.attempts} intentos · {month.average_score}%")
            self.console.print()
            self.console.print_title("Intentos recientes")
            for attempt in stats.recent_attempts:
                mark = f"{GREEN}✓{RESET}" if attempt.passed else f"{RED}✗{RESET}"
                self.console.print(
                    f"  {mark} {attempt.student_name} · {attempt.quiz_title} · "
                    f"{round(attempt.percentage)}% {DIM}{_short_date(attempt.completed_at)}{RESET}"
                )
        else:
            self.console.print_info("Todavía no hay intentos registrados")

        self.console.print()
        self.console.print_title("Inscripciones recientes")
        for student in stats.recent_enrollments:
            self.console.print_item(student.name, f"{student.email} · {student.course or 'Sin especificar'}")
        if stats.top_courses:
            self.console.print()
            self.console.print_title("Cursos principales")
            for course in stats.top_courses:
                self.console.print_item(course.title, course.instructor_name or "Desconocido")

    # --- Cursos ---

    @admin_required
    async def cmd_admin_courses(self, args) -> None:
        """/admin-courses [list|create <yaml>|delete <id>]."""

        async def list_courses(rest: list[str]) -> None:
            response = await self.api.courses.get_all_courses({"limit": 100})
            self.console.print_title("📚 Cursos")
            for course in parse_list(Course, response.data):
                self.console.print_item(course.title, f"{course.category} · {course.status or '-'} · id: {course.id}")

        async def create(rest: list[str]) -> None:
            path = self._require(rest, "/admin-courses create <archivo.yaml>")
            if path is None:
                return
            data = load_form_file(path)
            form = validate_form(CourseForm, data)
            multipart = MultipartForm.from_fields(form.to_payload())
            if data.get("image"):
                multipart.add_file("image", validate_image(UploadFile.open(data["image"])))
            if data.get("video"):
                multipart.add_file("video", validate_video(UploadFile.open(data["video"])))
            response = await self.api.courses.create_course(multipart, self.auth)
            self.console.print_success(response.message or f"Curso creado: {form.title}")

        async def delete(rest: list[str]) -> None:
            course_id = self._require(rest, "/admin-courses delete <id>")
            if course_id and await self._confirm_delete("el curso"):
                await self.api.courses.delete_course(course_id, self.auth)
                self.console.print_success("Curso eliminado")

        await self._dispatch(args, {"list": list_courses, "create": create, "delete": delete})

    # --- Inscripciones ---

    @admin_required
    async def cmd_admin_enrollments(self, args) -> None:
        """/admin-enrollments [list|search <texto>|delete <id>]."""

        def show(students: list[Student]) -> None:
            self.console.print_title("🎓 Inscripciones")
            if not students:
                self.console.print_info("No hay inscripciones")
            for student in students:
                self.console.print_item(
                    student.name,
                    f"{student.email} · {student.phone} · {student.city} · {_short_date(student.created_at)} · id: {student.id}",
                )

        async def list_students(rest: list[str]) -> None:
            response = await self.api.students.get_all_students(self.auth)
            show(parse_list(Student, response.data))

        async def search(rest: list[str]) -> None:
            response = await self.api.students.search_students(" ".join(rest), self.auth)
            show(parse_list(Student, response.data))

        async def delete(rest: list[str]) -> None:
            student_id = self._require(rest, "/admin-enrollments delete <id>")
            if student_id and await self._confirm_delete("la inscripción"):
                await self.api.students.delete_student(student_id, self.auth)
                self.console.print_success("Inscripción eliminada")

        await self._dispatch(args, {"list": list_students, "search": search, "delete": delete})

    # --- Profesores ---

    @admin_required
    async def cmd_admin_teachers(self, args) -> None:
        """/admin-teachers [list|show <id>|search <texto>|delete <id>]."""

        def show_list(teachers: list[Teacher]) -> None:
            self.console.print_title("👩‍🏫 Solicitudes de profesores")
            if not teachers:
                self.console.print_info("No hay solicitudes")
            for teacher in teachers:
                self.console.print_item(
                    teacher.name, f"{teacher.subject} · {teacher.applied_for} · {teacher.email} · id: {teacher.id}"
                )

        async def list_teachers(rest: list[str]) -> None:
            response = await self.api.teachers.get_all_teachers(self.auth)
            show_list(parse_list(Teacher, response.data))

        async def show(rest: list[str]) -> None:
            teacher_id = self._require(rest, "/admin-teachers show <id>")
            if teacher_id is None:
                return
            response = await self.api.teachers.get_teacher_by_id(teacher_id, self.auth)
            teacher = Teacher.from_dict(response.data or {})
            self.console.print_header(teacher.name)
            self.console.print_item("Email:", teacher.email)
            self.console.print_item("Teléfono:", teacher.contact_number)
            self.console.print_item("Ubicación:", f"{teacher.city}, {teacher.country}")
            self.console.print_item("Titulación:", teacher.qualification)
            self.console.print_item("Especialidad:", teacher.expert_at)
            if teacher.resume:
                self.console.print_item("Currículum:", self.api.file_url(teacher.resume))

        async def search(rest: list[str]) -> None:
            response = await self.api.teachers.search_teachers(" ".join(rest), self.auth)
            show_list(parse_list(Teacher, response.data))

        async def delete(rest: list[str]) -> None:
            teacher_id = self._require(rest, "/admin-teachers delete <id>")
            if teacher_id and await self._confirm_delete("la solicitud"):
                await self.api.teachers.delete_teacher(teacher_id, self.auth)
                self.console.print_success("Solicitud eliminada")

        await self._dispatch(
            args, {"list": list_teachers, "show": show, "search": search, "delete": delete}
        )

    # --- Reseñas ---

    @admin_required
    async def cmd_admin_reviews(self, args) -> None:
        """/admin-reviews [list|create <yaml>|toggle <id>|delete <id>]."""

        async def list_reviews(rest: list[str]) -> None:
            response = await self.api.reviews.get_all_reviews(self.auth, {"limit": 100})
            self.console.print_title("💬 Reseñas")
            for review in parse_list(Review, response.data):
                state = "activa" if review.is_active else "oculta"
                self.console.print_item(f"{review.name} ({review.rating}★)", f"{state} · id: {review.id}")

        async def create(rest: list[str]) -> None:
            path = self._require(rest, "/admin-reviews create <archivo.yaml>")
            if path is None:
                return
            form = validate_form(ReviewForm, load_form_file(path))
            response = await self.api.reviews.create_review(form.to_payload(), self.auth)
            self.console.print_success(response.message or "Reseña creada")

        async def toggle(rest: list[str]) -> None:
            review_id = self._require(rest, "/admin-reviews toggle <id>")
            if review_id is None:
                return
            response = await self.api.reviews.get_review_by_id(review_id, self.auth)
            review = Review.from_dict(response.data or {})
            await self.api.reviews.update_review(review_id, {"isActive": not review.is_active}, self.auth)
            self.console.print_success("Reseña " + ("ocultada" if review.is_active else "activada"))

        async def delete(rest: list[str]) -> None:
            review_id = self._require(rest, "/admin-reviews delete <id>")
            if review_id and await self._confirm_delete("la reseña"):
                await self.api.reviews.delete_review(review_id, self.auth)
                self.console.print_success("Reseña eliminada")

        await self._dispatch(
            args, {"list": list_reviews, "create": create, "toggle": toggle, "delete": delete}
        )

    # --- Contactos ---

    @admin_required
    async def cmd_admin_contacts(self, args) -> None:
        """/admin-contacts [list|show <id>|delete <id>]."""

        async def list_contacts(rest: list[str]) -> None:
            response = await self.api.contacts.get_all_contacts(self.auth)
            self.console.print_title("✉ Mensajes")
            for contact in parse_list(Contact, response.data):
                self.console.print_item(
                    f"{contact.full_name}: {contact.subject}",
                    f"{contact.email_address} · {_short_date(contact.created_at)} · id: {contact.id}",
                )

        async def show(rest: list[str]) -> None:
            contact_id = self._require(rest, "/admin-contacts show <id>")
            if contact_id is None:
                return
            response = await self.api.contacts.get_contact_by_id(contact_id, self.auth)
            contact = Contact.from_dict(response.data or {})
            self.console.print_header(contact.subject)
            self.console.print_item("De:", f"{contact.full_name} <{contact.email_address}>")
            self.console.print()
            self.console.print(contact.message)

        async def delete(rest: list[str]) -> None:
            contact_id = self._require(rest, "/admin-contacts delete <id>")
            if contact_id and await self._confirm_delete("el mensaje"):
                await self.api.contacts.delete_contact(contact_id, self.auth)
                self.console.print_success("Mensaje eliminado")

        await self._dispatch(args, {"list": list_contacts, "show": show, "delete": delete})

    # --- Comentarios ---

    @admin_required
    async def cmd_admin_comments(self, args) -> None:
        """/admin-comments [list [estado]|approve <id>|reject <id>|delete <id>|stats]."""

        async def list_comments(rest: list[str]) -> None:
            params = {"status": rest[0]} if rest else None
            response = await self.api.comments.get_all_comments(self.auth, params)
            self.console.print_title("💬 Comentarios")
            for comment in parse_list(Comment, response.data):
                self.console.print_item(
                    f"[{comment.status}] {comment.author_name}",
                    f"{comment.blog_title} · id: {comment.id}",
                )
                self.console.print(f"     {comment.content}")

        def set_status(status: str) -> Callable[[list[str]], Awaitable[None]]:
            async def action(rest: list[str]) -> None:
                comment_id = self._require(rest, f"/admin-comments {status} <id>")
                if comment_id:
                    await self.api.comments.update_comment_status(comment_id, status, self.auth)
                    self.console.print_success(f"Comentario marcado como {status}")

            return action

        async def delete(rest: list[str]) -> None:
            comment_id = self._require(rest, "/admin-comments delete <id>")
            if comment_id and await self._confirm_delete("el comentario"):
                await self.api.comments.delete_comment(comment_id, self.auth)
                self.console.print_success("Comentario eliminado")

        async def stats(rest: list[str]) -> None:
            response = await self.api.comments.get_comment_stats(self.auth)
            for key, value in (response.data or {}).items():
                self.console.print_item(f"{key}:", str(value))

        await self._dispatch(
            args,
            {
                "list": list_comments,
                "approve": set_status("approved"),
                "reject": set_status("rejected"),
                "pending": set_status("pending"),
                "delete": delete,
                "stats": stats,
            },
        )

    # --- Notas ---

    @admin_required
    async def cmd_admin_notes(self, args) -> None:
        """/admin-notes [list|create <yaml>|delete <id>|stats]."""

        async def list_notes(rest: list[str]) -> None:
            response = await self.api.notes.get_all_notes(self.auth, {"limit": 100})
            self.console.print_title("📒 Notas")
            for notes in parse_list(Notes, response.data):
                self.console.print_item(
                    notes.title, f"{notes.subject} · {notes.status} · ⬇ {notes.downloads} · id: {notes.id}"
                )

        async def create(rest: list[str]) -> None:
            path = self._require(rest, "/admin-notes create <archivo.yaml>")
            if path is None:
                return
            data = load_form_file(path)
            form = validate_form(NotesForm, data)
            if not data.get("file"):
                raise FormValidationError({"file": "Selecciona un archivo"})
            multipart = MultipartForm.from_fields(form.to_payload())
            multipart.add_file("file", UploadFile.open(data["file"]))
            response = await self.api.notes.create_notes(self.auth, multipart)
            self.console.print_success(response.message or "Notas creadas")

        async def delete(rest: list[str]) -> None:
            notes_id = self._require(rest, "/admin-notes delete <id>")
            if notes_id and await self._confirm_delete("las notas"):
                await self.api.notes.delete_notes(self.auth, notes_id)
                self.console.print_success("Notas eliminadas")

        async def stats(rest: list[str]) -> None:
            response = await self.api.notes.get_notes_stats(self.auth)
            data = response.data or {}
            self.console.print_item("Notas:", str(data.get("totalNotes", 0)))
            self.console.print_item("Descargas:", str(data.get("totalDownloads", 0)))

        await self._dispatch(
            args, {"list": list_notes, "create": create, "delete": delete, "stats": stats}
        )

    # --- Quizzes ---

    @admin_required
    async def cmd_admin_quizzes(self, args) -> None:
        """/admin-quizzes [list|create <yaml>|toggle <id>|results <id>|delete <id>]."""

        async def list_quizzes(rest: list[str]) -> None:
            response = await self.api.quizzes.get_all_quizzes(self.auth, {"limit": 100})
            self.console.print_title("🧠 Quizzes")
            for quiz in parse_list(Quiz, response.data):
                state = "activo" if quiz.is_active else "inactivo"
                self.console.print_item(
                    quiz.title, f"{quiz.category} · {quiz.difficulty} · {state} · id: {quiz.id}"
                )

        async def create(rest: list[str]) -> None:
            path = self._require(rest, "/admin-quizzes create <archivo.yaml>")
            if path is None:
                return
            form = validate_form(QuizForm, load_form_file(path))
            response = await self.api.quizzes.create_quiz(form.to_payload(), self.auth)
            self.console.print_success(response.message or f"Quiz creado: {form.title}")

        async def toggle(rest: list[str]) -> None:
            quiz_id = self._require(rest, "/admin-quizzes toggle <id>")
            if quiz_id is None:
                return
            response = await self.api.quizzes.get_quiz_by_id(quiz_id)
            quiz = Quiz.from_dict(response.data or {})
            await self.api.quizzes.update_quiz(quiz_id, {"isActive": not quiz.is_active}, self.auth)
            self.console.print_success("Quiz " + ("desactivado" if quiz.is_active else "activado"))

        async def results(rest: list[str]) -> None:
            quiz_id = self._require(rest, "/admin-quizzes results <id>")
            if quiz_id is None:
                return
            response = await self.api.quizzes.get_quiz_results(quiz_id, self.auth)
            attempts = parse_list(QuizAttempt, response.data)
            self.console.print_title("Resultados")
            if not attempts:
                self.console.print_info("Sin intentos registrados")
            for attempt in attempts:
                mark = f"{GREEN}✓{RESET}" if attempt.passed else f"{RED}✗{RESET}"
                self.console.print(
                    f"  {mark} {attempt.student_name} <{attempt.student_email}> "
                    f"{attempt.score}/{attempt.total_questions} {DIM}{_short_date(attempt.completed_at)}{RESET}"
                )

        async def delete(rest: list[str]) -> None:
            quiz_id = self._require(rest, "/admin-quizzes delete <id>")
            if quiz_id and await self._confirm_delete("el quiz y sus resultados"):
                await self.api.quizzes.delete_quiz(quiz_id, self.auth)
                self.console.print_success("Quiz eliminado")

        await self._dispatch(
            args,
            {"list": list_quizzes, "create": create, "toggle": toggle, "results": results, "delete": delete},
        )

    # --- Blog ---

    @admin_required
    async def cmd_admin_blogs(self, args) -> None:
        """/admin-blogs [list|create <yaml>|publish <id>|delete <id>|stats]."""

        async def list_blogs(rest: list[str]) -> None:
            response = await self.api.blogs.get_all_blogs(self.auth, {"limit": 100})
            self.console.print_title("📰 Artículos")
            for blog in parse_list(Blog, response.data):
                self.console.print_item(f"[{blog.status}] {blog.title}", f"/{blog.slug} · id: {blog.id}")

        async def create(rest: list[str]) -> None:
            path = self._require(rest, "/admin-blogs create <archivo.yaml>")
            if path is None:
                return
            data = load_form_file(path)
            form = validate_form(BlogForm, data)
            payload = form.to_payload()
            if data.get("image"):
                upload = MultipartForm().add_file("image", validate_image(UploadFile.open(data["image"])))
                uploaded = await self.api.blogs.upload_blog_image(upload, self.auth)
                image = uploaded.data.get("imageUrl") if isinstance(uploaded.data, dict) else None
                if image:
                    payload["featuredImage"] = image
            response = await self.api.blogs.create_blog(payload, self.auth)
            self.console.print_success(response.message or f"Artículo creado: {form.title}")

        async def publish(rest: list[str]) -> None:
            blog_id = self._require(rest, "/admin-blogs publish <id>")
            if blog_id:
                await self.api.blogs.update_blog(blog_id, {"status": "published"}, self.auth)
                self.console.print_success("Artículo publicado")

        async def delete(rest: list[str]) -> None:
            blog_id = self._require(rest, "/admin-blogs delete <id>")
            if blog_id and await self._confirm_delete("el artículo"):
                await self.api.blogs.delete_blog(blog_id, self.auth)
                self.console.print_success("Artículo eliminado")

        async def stats(rest: list[str]) -> None:
            response = await self.api.blogs.get_blog_stats(self.auth)
            for key, value in (response.data or {}).items():
                self.console.print_item(f"{key}:", str(value))

        await self._dispatch(
            args,
            {"list": list_blogs, "create": create, "publish": publish, "delete": delete, "stats": stats},
        )
