"""Páginas públicas del portal."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..api.client import ApiError, Pagination
from ..api.uploads import (
    MultipartForm,
    UploadFile,
    UploadValidationError,
    validate_image,
    validate_resume,
)
from ..core.forms import (
    CommentForm,
    ContactForm,
    FormValidationError,
    StudentEnrollmentForm,
    TeacherApplicationForm,
    validate_form,
)
from ..core.models import Blog, Comment, Course, Notes, Quiz, Review, parse_list
from ..quiz.session import AnswerLockedError, QuizSessionError, QuizState, format_time
from .console import CYAN, DIM, GREEN, RED, RESET

if TYPE_CHECKING:
    from ..api.resources import PortalAPI
    from ..auth.session import AdminSession
    from ..config import Config
    from ..quiz.session import QuizSession
    from .console import Console

BLOG_PAGE_SIZE = 12
NOTES_PAGE_SIZE = 12
COMMENTS_PAGE_SIZE = 10


def parse_page_args(args: list[str]) -> tuple[int, str]:
    """`[página] [búsqueda...]` -> (página, búsqueda)."""
    page = 1
    if args and args[0].isdigit():
        page = max(1, int(args[0]))
        args = args[1:]
    return page, " ".join(args)


def _pick_comment(comments: list[Comment], ref: str) -> Comment:
    """Comentario por número (desde 1). IndexError si está fuera de la lista."""
    number = int(ref)
    if number < 1:
        raise IndexError(number)
    return comments[number - 1]


class PublicPages:
    """Comandos de las páginas públicas (se mezcla en PortalApp)."""

    api: PortalAPI
    console: Console
    session: AdminSession
    quiz_session: QuizSession
    config: Config

    quiz_catalog: list[Quiz]
    notes_catalog: list[Notes]

    def _print_pagination(self, pagination: Pagination | None) -> None:
        if pagination and pagination.total_pages > 1:
            self.console.print(
                f"{DIM}Página {pagination.current_page} de {pagination.total_pages}"
                f" ({pagination.total_items} en total){RESET}"
            )

    def _print_course(self, index: int, course: Course) -> None:
        detail = f"{course.category} · {course.instructor_name}"
        if course.price:
            detail += f" · ${course.price:g}"
        self.console.print_item(f"{index}. {course.title}", detail)
        self.console.print(f"     {DIM}id: {course.id}{RESET}")

    # --- Inicio ---

    async def cmd_home(self, args) -> None:
        """Cursos destacados y testimonios."""
        self.console.print_header(f"{self.config.app_name}")
        self.console.print_loading("inicio")
        try:
            courses = await self.api.courses.get_all_courses({"limit": 3})
            reviews = await self.api.reviews.get_public_reviews({"limit": 3})
        except ApiError as e:
            self.console.handle_error(e, "No se pudo cargar el inicio")
            return

        self.console.print_title("📚 Cursos destacados")
        featured = parse_list(Course, courses.data)
        if not featured:
            self.console.print_info("Aún no hay cursos publicados")
        for i, course in enumerate(featured, start=1):
            self._print_course(i, course)

        self.console.print()
        self.console.print_title("💬 Lo que dicen nuestros estudiantes")
        for review in parse_list(Review, reviews.data):
            stars = "★" * review.rating + "☆" * (5 - review.rating)
            self.console.print_item(f"{review.name} {stars}", review.course)
            self.console.print(f"     \"{review.review}\"")
        self.console.print()
        self.console.print_info("Escribe '/help' para ver todos los comandos")

    async def cmd_about(self, args) -> None:
        """Información de la academia."""
        self.console.print_header("Sobre nosotros")
        self.console.print("Academia en línea de idiomas y estudios coránicos.")
        self.console.print()
        self.console.print_title("Programas")
        self.console.print_item("IELTS", "preparación completa para el examen")
        self.console.print_item("English Proficiency", "inglés general y de negocios")
        self.console.print_item("Quran", "lectura, tajweed y memorización")
        self.console.print()
        self.console.print_info("¿Quieres enseñar con nosotros? Usa '/apply-teacher'")

    # --- Cursos ---

    async def cmd_courses(self, args) -> None:
        """Catálogo de cursos: /courses [página] [búsqueda]."""
        page, search = parse_page_args(args)
        params = {"page": page, "limit": 9}
        if search:
            params["search"] = search

        self.console.print_loading("cursos")
        try:
            response = await self.api.courses.get_all_courses(params)
        except ApiError as e:
            self.console.handle_error(e, "No se pudieron cargar los cursos")
            return

        courses = parse_list(Course, response.data)
        self.console.print_title("📚 Cursos")
        if not courses:
            self.console.print_info("No se encontraron cursos")
            return
        for i, course in enumerate(courses, start=1):
            self._print_course(i, course)
        self._print_pagination(response.pagination)
        self.console.print_info("Usa '/course <id>' para ver el detalle")

    async def cmd_course(self, args) -> None:
        """Detalle de un curso."""
        if not args:
            self.console.print_error("Uso: /course <id>")
            return
        try:
            response = await self.api.courses.get_course_by_id(args[0])
        except ApiError as e:
            self.console.handle_error(e, "Curso no disponible")
            return

        course = Course.from_dict(response.data or {})
        self.console.print_header(course.title)
        self.console.print_item("Categoría:", course.category)
        self.console.print_item("Instructor:", course.instructor_name)
        if course.duration.start_date and course.duration.end_date:
            self.console.print_item(
                "Duración:",
                f"{course.duration.start_date:%d/%m/%Y} - {course.duration.end_date:%d/%m/%Y}",
            )
        if course.price:
            self.console.print_item("Precio:", f"${course.price:g}")
        self.console.print()
        self.console.print(course.description)
        if course.syllabus:
            self.console.print()
            self.console.print_title("Temario")
            self.console.print(course.syllabus)
        for feature in course.features:
            self.console.print(f"  {GREEN}✓{RESET} {feature}")
        self.console.print()
        self.console.print_info("Inscríbete con '/enroll'")

    # --- Formularios ---

    async def cmd_contact(self, args) -> None:
        """Enviar mensaje de contacto."""
        self.console.print_header("Contacto")
        data = {
            "fullName": await self.console.ask("Nombre completo: "),
            "emailAddress": await self.console.ask("Email: "),
            "subject": await self.console.ask("Asunto: "),
            "message": await self.console.ask("Mensaje: "),
        }
        try:
            form = validate_form(ContactForm, data)
            response = await self.api.contacts.submit_contact(form.to_payload())
        except (FormValidationError, ApiError) as e:
            self.console.handle_error(e, "No se pudo enviar el mensaje")
            return
        self.console.print_success(response.message or "¡Mensaje enviado! Te responderemos pronto.")

    async def cmd_apply_teacher(self, args) -> None:
        """Solicitud para trabajar como profesor."""
        self.console.print_header("Solicitud de profesor")
        ask = self.console.ask
        data = {
            "name": await ask("Nombre: "),
            "email": await ask("Email: "),
            "contactNumber": await ask("Teléfono: "),
            "address": await ask("Dirección: "),
            "city": await ask("Ciudad: "),
            "state": await ask("Estado/Provincia: "),
            "country": await ask("País: "),
            "zipCode": await ask("Código postal: "),
            "gender": await ask("Género (Male/Female/Other): "),
            "dateOfBirth": await ask("Fecha de nacimiento (AAAA-MM-DD): "),
            "qualification": await ask("Titulación: "),
            "subject": await ask("Materia: "),
            "expertAt": await ask("Especialidad: "),
            "appliedFor": await ask("Puesto (IELTS/English/Quran): "),
            "whyFitForJob": await ask("¿Por qué eres idóneo para el puesto?: "),
        }
        try:
            form = validate_form(TeacherApplicationForm, data)
            image = validate_image(UploadFile.open(await ask("Ruta de tu foto: ")))
            resume = validate_resume(UploadFile.open(await ask("Ruta de tu currículum: ")))
        except (FormValidationError, UploadValidationError) as e:
            self.console.handle_error(e, "Solicitud incompleta")
            return

        multipart = MultipartForm.from_fields(form.to_payload())
        multipart.add_file("image", image).add_file("resume", resume)
        self.console.print_loading("solicitud")
        try:
            response = await self.api.teachers.submit_application(multipart)
        except ApiError as e:
            self.console.handle_error(e, "No se pudo enviar la solicitud")
            return
        self.console.print_success(response.message or "¡Solicitud enviada correctamente!")

    async def cmd_enroll(self, args) -> None:
        """Inscripción de estudiante."""
        self.console.print_header("Inscripción")
        ask = self.console.ask
        data = {
            "name": await ask("Nombre: "),
            "email": await ask("Email: "),
            "phone": await ask("Teléfono: "),
            "city": await ask("Ciudad: "),
            "qualifications": await ask("Estudios: "),
        }
        try:
            form = validate_form(StudentEnrollmentForm, data)
            image_path = await ask("Ruta de tu foto (opcional): ")
            image = validate_image(UploadFile.open(image_path)) if image_path else None
        except (FormValidationError, UploadValidationError) as e:
            self.console.handle_error(e, "Inscripción incompleta")
            return

        multipart = MultipartForm.from_fields(form.to_payload()).add_file("image", image)
        try:
            response = await self.api.students.submit_enrollment(multipart)
        except ApiError as e:
            self.console.handle_error(e, "No se pudo enviar la inscripción")
            return
        self.console.print_success(response.message or "¡Inscripción enviada correctamente!")

    # --- Quizzes ---

    async def cmd_quizzes(self, args) -> None:
        """Quizzes activos: /quizzes [categoría] [dificultad]."""
        params = {}
        if len(args) > 0 and args[0] != "all":
            params["category"] = args[0]
        if len(args) > 1 and args[1] != "all":
            params["difficulty"] = args[1]

        self.console.print_loading("quizzes")
        try:
            response = await self.api.quizzes.get_active_quizzes(params)
        except ApiError as e:
            self.console.handle_error(e, "No se pudieron cargar los quizzes")
            self.quiz_catalog = []
            return

        self.quiz_catalog = parse_list(Quiz, response.data)
        self.console.print_title("🧠 Quizzes disponibles")
        if not self.quiz_catalog:
            self.console.print_info("No hay quizzes con esos filtros")
            return
        for i, quiz in enumerate(self.quiz_catalog, start=1):
            detail = f"{quiz.category} · {quiz.difficulty} · {quiz.total_questions} preguntas · {quiz.time_limit} min"
            self.console.print_item(f"{i}. {quiz.title}", detail)
        self.console.print_info("Usa '/quiz <n>' para comenzar")

    async def _resolve_quiz(self, ref: str) -> Quiz | None:
        if ref.isdigit():
            index = int(ref) - 1
            if 0 <= index < len(self.quiz_catalog):
                return self.quiz_catalog[index]
            self.console.print_error("Número de quiz inválido. Usa '/quizzes' para ver la lista")
            return None
        for quiz in self.quiz_catalog:
            if quiz.id == ref:
                return quiz
        response = await self.api.quizzes.get_quiz_by_id(ref)
        return Quiz.from_dict(response.data or {})

    def _render_question(self) -> None:
        session = self.quiz_session
        question = session.current_question
        if question is None:
            return
        number = session.current_index + 1
        self.console.print()
        self.console.print(
            f"{CYAN}Pregunta {number}/{len(session.questions)}{RESET}"
            f"   ⏱ {format_time(session.time_left)}"
            f"   {DIM}sin responder: {session.unanswered_count}{RESET}"
        )
        self.console.print(question.question)
        selected = session.answers[session.current_index]
        correct = session.correct_answers[session.current_index]
        for i, option in enumerate(question.options):
            marker = " "
            if selected != -1:
                if i == correct:
                    marker = f"{GREEN}✓{RESET}"
                elif i == selected:
                    marker = f"{RED}✗{RESET}"
            self.console.print(f"  {marker} {i + 1}. {option}")

    async def _ask_student_info(self) -> None:
        name = await self.console.ask("Tu nombre: ")
        email = await self.console.ask("Tu email: ")
        self.quiz_session.set_student_info(name, email)

    async def cmd_quiz(self, args) -> None:
        """Rendir un quiz: /quiz <n|id>."""
        if not args:
            self.console.print_error("Uso: /quiz <n|id>")
            return
        session = self.quiz_session
        try:
            quiz = await self._resolve_quiz(args[0])
            if quiz is None:
                return
            await session.start(quiz)
        except (ApiError, QuizSessionError) as e:
            self.console.handle_error(e, "No se pudo iniciar el quiz")
            return

        session.on_timeout = lambda: self.console.print_error(
            "¡Se acabó el tiempo! El quiz se enviará automáticamente."
        )
        session.start_timer()
        self.console.print_header(quiz.title)
        self.console.print_info(
            "1-9 elige opción · n siguiente · p anterior · i tus datos · e enviar · c cancelar"
        )
        try:
            try:
                await self._ask_student_info()
            except QuizSessionError as e:
                self.console.handle_error(e)
            await self._quiz_loop()
        finally:
            session.close()

        if session.state is QuizState.RESULT_SHOWN:
            self._render_result()
            session.dismiss_result()

    async def _quiz_loop(self) -> None:
        session = self.quiz_session
        while session.state is QuizState.TAKING:
            if session.last_error:
                self.console.print_error(session.last_error)
                session.last_error = None
            self._render_question()
            command = (await self.console.ask("quiz> ")).lower()
            if session.state is QuizState.SUBMITTED:
                # Envío automático en curso: esperar su resultado antes de seguir
                await session.wait_for_auto_submit()
                continue
            if session.state is not QuizState.TAKING:
                break

            try:
                if command.isdigit():
                    feedback = session.select_answer(int(command) - 1)
                    if feedback is not None:
                        if feedback.is_correct:
                            self.console.print_success("¡Correcto!")
                        else:
                            self.console.print_error("Incorrecto")
                elif command == "n":
                    session.next_question()
                elif command == "p":
                    session.previous_question()
                elif command == "i":
                    await self._ask_student_info()
                elif command == "e":
                    await session.submit(confirm=self.console.confirm)
                elif command == "c":
                    if await session.cancel(confirm=self.console.confirm):
                        self.console.print_info("Quiz cancelado")
                elif command:
                    self.console.print_error(f"Opción desconocida: {command}")
            except AnswerLockedError as e:
                self.console.print_info(str(e))
            except (QuizSessionError, ApiError) as e:
                self.console.handle_error(e)

    def _render_result(self) -> None:
        result = self.quiz_session.result
        if result is None:
            return
        self.console.print()
        if result.passed:
            self.console.print_success("🎉 ¡Felicitaciones! Aprobaste el quiz")
        else:
            self.console.print_error("💪 ¡Sigue aprendiendo! Esta vez no alcanzó")
        self.console.print_item("Puntaje:", f"{result.score}/{result.total_questions}")
        self.console.print_item("Porcentaje:", f"{result.percentage:g}%")
        if result.passing_score:
            self.console.print_item("Mínimo para aprobar:", str(result.passing_score))

    # --- Blog ---

    async def cmd_blog(self, args) -> None:
        """Blog: /blog [página] [búsqueda]."""
        page, search = parse_page_args(args)
        params = {"page": page, "limit": BLOG_PAGE_SIZE}
        if search:
            params["search"] = search
        self.console.print_loading("blog")
        try:
            response = await self.api.blogs.get_published_blogs(params)
        except ApiError as e:
            self.console.handle_error(e, "No se pudo cargar el blog")
            return

        blogs = parse_list(Blog, response.data)
        self.console.print_title("📰 Blog")
        if not blogs:
            self.console.print_info("No hay artículos publicados")
            return
        for blog in blogs:
            self.console.print_item(blog.title, f"{blog.category} · {blog.reading_time} min · /post {blog.slug}")
            if blog.excerpt:
                self.console.print(f"     {DIM}{blog.excerpt}{RESET}")
        self._print_pagination(response.pagination)

    async def cmd_post(self, args) -> None:
        """Leer un artículo con sus comentarios: /post <slug>."""
        if not args:
            self.console.print_error("Uso: /post <slug>")
            return
        try:
            response = await self.api.blogs.get_blog_by_slug(args[0])
        except ApiError as e:
            self.console.handle_error(e, "Artículo no encontrado")
            return
        if not response.success or not response.data:
            self.console.print_error(response.message or "Artículo no encontrado")
            return

        blog = Blog.from_dict(response.data)
        self.console.print_header(blog.title)
        published = f"{blog.published_at:%d/%m/%Y}" if blog.published_at else ""
        self.console.print(f"{DIM}{blog.author} · {published} · {blog.reading_time} min · 👁 {blog.views} · ♥ {blog.like_count}{RESET}")
        if blog.tags:
            self.console.print(f"{DIM}#{' #'.join(blog.tags)}{RESET}")
        self.console.print()
        self.console.print(blog.content)

        await self._print_related(blog)
        comments_page = await self._show_comments(blog, 1)
        await self._post_loop(blog, comments_page)

    async def _print_related(self, blog: Blog) -> None:
        try:
            response = await self.api.blogs.get_published_blogs({"category": blog.category, "limit": 4})
        except ApiError:
            return
        related = [b for b in parse_list(Blog, response.data) if b.id != blog.id][:3]
        if related:
            self.console.print()
            self.console.print_title("Artículos relacionados")
            for item in related:
                self.console.print_item(item.title, f"/post {item.slug}")

    async def _show_comments(self, blog: Blog, page: int) -> list[Comment]:
        try:
            response = await self.api.comments.get_blog_comments(
                blog.id, {"page": page, "limit": COMMENTS_PAGE_SIZE}
            )
        except ApiError as e:
            self.console.handle_error(e, "No se pudieron cargar los comentarios")
            return []

        comments = parse_list(Comment, response.data)
        self.console.print()
        self.console.print_title(f"💬 Comentarios (página {page})")
        if not comments:
            self.console.print_info("Sé el primero en comentar")
        for i, comment in enumerate(comments, start=1):
            badge = " [admin]" if comment.is_admin_comment else ""
            self.console.print_item(f"{i}. {comment.author_name}{badge}", f"♥ {comment.like_count}")
            self.console.print(f"     {comment.content}")
            for reply in comment.replies:
                self.console.print(f"       {DIM}↳ {reply.author_name}: {reply.content}{RESET}")
        return comments

    async def _post_loop(self, blog: Blog, comments: list[Comment]) -> None:
        self.console.print_info("l me gusta · c comentar · r <n> responder · k <n> me gusta al comentario · m más · Enter salir")
        page = 1
        while True:
            command = await self.console.ask("post> ")
            if not command:
                return
            action, _, ref = command.partition(" ")
            try:
                if action == "l":
                    email = await self.console.ask("Tu email: ")
                    response = await self.api.blogs.toggle_blog_like(blog.id, email)
                    self.console.print_success(response.message or "Me gusta actualizado")
                elif action in ("c", "r"):
                    parent = _pick_comment(comments, ref).id if action == "r" else None
                    await self._write_comment(blog, parent)
                elif action == "k":
                    comment = _pick_comment(comments, ref)
                    email = await self.console.ask("Tu email: ")
                    response = await self.api.comments.toggle_like(comment.id, email)
                    self.console.print_success(response.message or "Me gusta actualizado")
                elif action == "m":
                    page += 1
                    comments = await self._show_comments(blog, page)
                else:
                    self.console.print_error(f"Opción desconocida: {action}")
            except (ValueError, IndexError):
                self.console.print_error("Número de comentario inválido")
            except (FormValidationError, ApiError) as e:
                self.console.handle_error(e)

    async def _write_comment(self, blog: Blog, parent_id: str | None) -> None:
        data = {
            "content": await self.console.ask("Comentario: "),
            "blogId": blog.id,
            "author_name": await self.console.ask_optional("Tu nombre", "Anonymous"),
            "author_email": await self.console.ask("Tu email: "),
            "parentComment": parent_id,
        }
        form = validate_form(CommentForm, data)
        await self.api.comments.create_comment(form.to_payload())
        self.console.print_success("¡Comentario enviado! Será visible tras ser aprobado.")

    # --- Notas ---

    async def cmd_notes(self, args) -> None:
        """Biblioteca de notas: /notes [página] [búsqueda]."""
        page, search = parse_page_args(args)
        params = {"page": page, "limit": NOTES_PAGE_SIZE, "search": search}
        self.console.print_loading("notas")
        try:
            response = await self.api.notes.get_public_notes(params)
        except ApiError as e:
            self.console.handle_error(e, "No se pudieron cargar las notas")
            return

        self.notes_catalog = parse_list(Notes, response.data)
        self.console.print_title("📒 Notas")
        if not self.notes_catalog:
            self.console.print_info("No se encontraron notas")
            return
        for i, notes in enumerate(self.notes_catalog, start=1):
            size_kb = notes.file_size / 1024 if notes.file_size else 0
            self.console.print_item(
                f"{i}. {notes.title}",
                f"{notes.subject} · {notes.difficulty} · {size_kb:.0f} KB · ⬇ {notes.downloads}",
            )
        self._print_pagination(response.pagination)
        self.console.print_info("Usa '/download <n>' para descargar")

    async def cmd_download(self, args) -> None:
        """Descargar notas: /download <n|id>."""
        if not args:
            self.console.print_error("Uso: /download <n|id>")
            return
        ref = args[0]
        try:
            if ref.isdigit() and 0 < int(ref) <= len(self.notes_catalog):
                notes = self.notes_catalog[int(ref) - 1]
            else:
                response = await self.api.notes.get_notes_by_id(ref)
                notes = Notes.from_dict(response.data or {})

            await self.api.notes.download_notes(notes.id)
            content = await self.api.client.download(self.api.file_url(notes.file_url))
        except ApiError as e:
            self.console.handle_error(e, "No se pudo descargar")
            return

        target_dir = self.config.data_dir / "downloads"
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / Path(notes.file_name or f"{notes.id}.bin").name
        target.write_bytes(content)
        self.console.print_success(f"Descarga guardada en {target}")
