"""Espacios de nombres de la API: un grupo de funciones por recurso."""

from __future__ import annotations

from typing import Any

from .client import ApiClient, ApiResponse, encode_segment, with_query
from .uploads import MultipartForm

COMMENT_STATUSES = ("pending", "approved", "rejected")


def _truthy(params: dict[str, Any] | None, *keys: str) -> dict[str, Any]:
    """Quedarse solo con los parámetros no vacíos."""
    if not params:
        return {}
    return {key: params[key] for key in keys if params.get(key)}


class Resource:
    """Base para un espacio de nombres de recurso."""

    resource = ""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.base = client.endpoint(self.resource)

    def url(self, *parts: str) -> str:
        return "/".join([self.base, *parts])


class AuthAPI(Resource):
    """Autenticación de usuarios y administradores."""

    resource = "auth"

    async def admin_login(self, email: str, password: str) -> ApiResponse:
        return await self.client.post(
            self.url("admin-login"), json={"email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> ApiResponse:
        return await self.client.post(
            self.url("login"), json={"email": email, "password": password}
        )

    async def register(self, user_data: dict[str, Any]) -> ApiResponse:
        return await self.client.post(self.url("register"), json=user_data)

    async def verify_token(self, token: str) -> ApiResponse:
        """Verificar token para sesiones persistentes."""
        return await self.client.post(self.url("verify-token"), json={"token": token})

    async def logout(self, authorization: str) -> ApiResponse:
        return await self.client.post(self.url("logout"), authorization=authorization)

    async def forgot_password(self, email: str, answer: str, new_password: str) -> ApiResponse:
        return await self.client.post(
            self.url("ForgetPassword"),
            json={"email": email, "answer": answer, "newPassword": new_password},
        )

    async def update_profile(self, profile_data: dict[str, Any]) -> ApiResponse:
        return await self.client.put(self.url("profile"), json=profile_data)

    async def test_auth(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("test"), authorization=authorization)

    async def user_auth(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("user-auth"), authorization=authorization)

    async def admin_auth(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("admin-auth"), authorization=authorization)


class TeacherAPI(Resource):
    """Solicitudes de profesores."""

    resource = "teachers"

    async def submit_application(self, form: MultipartForm) -> ApiResponse:
        return await self.client.post(self.url("add"), form=form)

    async def get_all_teachers(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("getall"), authorization=authorization)

    async def get_teacher_by_id(self, teacher_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("get", teacher_id), authorization=authorization)

    async def update_teacher(
        self, teacher_id: str, form: MultipartForm, authorization: str
    ) -> ApiResponse:
        return await self.client.put(
            self.url("update", teacher_id), form=form, authorization=authorization
        )

    async def delete_teacher(self, teacher_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url(teacher_id), authorization=authorization)

    async def search_teachers(self, query: str, authorization: str) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("search"), {"q": query}), authorization=authorization
        )

    async def get_teachers_by_subject(self, subject: str, authorization: str) -> ApiResponse:
        return await self.client.get(
            self.url("subject", encode_segment(subject)), authorization=authorization
        )


class ContactAPI(Resource):
    """Mensajes del formulario de contacto."""

    resource = "contacts"

    async def submit_contact(self, contact_data: dict[str, str]) -> ApiResponse:
        return await self.client.post(self.base, json=contact_data)

    async def get_all_contacts(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("getAll"), authorization=authorization)

    async def get_contact_by_id(self, contact_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("get", contact_id), authorization=authorization)

    async def delete_contact(self, contact_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url("delete", contact_id), authorization=authorization)


class CourseAPI(Resource):
    """Catálogo de cursos."""

    resource = "courses"

    async def get_all_courses(self, params: dict[str, Any] | None = None) -> ApiResponse:
        """Listar cursos (category, status, level, instructor, search, page, limit, sortBy, sortOrder)."""
        return await self.client.get(with_query(self.url("getall"), params))

    async def get_course_by_id(self, course_id: str) -> ApiResponse:
        return await self.client.get(self.url("get", course_id))

    async def create_course(
        self, course_data: MultipartForm | dict[str, Any], authorization: str
    ) -> ApiResponse:
        if isinstance(course_data, MultipartForm):
            return await self.client.post(
                self.url("create"), form=course_data, authorization=authorization
            )
        return await self.client.post(
            self.url("create"), json=course_data, authorization=authorization
        )

    async def update_course(
        self, course_id: str, course_data: MultipartForm | dict[str, Any], authorization: str
    ) -> ApiResponse:
        if isinstance(course_data, MultipartForm):
            return await self.client.put(
                self.url("update", course_id), form=course_data, authorization=authorization
            )
        return await self.client.put(
            self.url("update", course_id), json=course_data, authorization=authorization
        )

    async def delete_course(self, course_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url("delete", course_id), authorization=authorization)

    async def get_courses_by_category(
        self, category: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("category", encode_segment(category)), params)
        )

    async def get_courses_by_instructor(
        self, instructor_name: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("instructor", encode_segment(instructor_name)), params)
        )

    async def search_courses(self, query: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.client.get(with_query(self.url("search"), {"q": query, **(params or {})}))

    async def get_course_stats(self) -> ApiResponse:
        return await self.client.get(self.url("stats"))


class StudentAPI(Resource):
    """Inscripciones de estudiantes."""

    resource = "students"

    async def submit_enrollment(self, form: MultipartForm) -> ApiResponse:
        return await self.client.post(self.base, form=form)

    async def get_all_students(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.base, authorization=authorization)

    async def get_student_by_id(self, student_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(self.url(student_id), authorization=authorization)

    async def update_student(
        self, student_id: str, form: MultipartForm, authorization: str
    ) -> ApiResponse:
        return await self.client.put(self.url(student_id), form=form, authorization=authorization)

    async def delete_student(self, student_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url(student_id), authorization=authorization)

    async def search_students(self, query: str, authorization: str) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("search"), {"q": query}), authorization=authorization
        )

    async def get_students_by_course(self, course_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(
            self.url("course", encode_segment(course_id)), authorization=authorization
        )


class VideoAPI(Resource):
    """Videos de cursos."""

    resource = "videos"

    async def upload_video(self, form: MultipartForm, authorization: str) -> ApiResponse:
        return await self.client.post(self.url("upload"), form=form, authorization=authorization)

    async def get_all_videos(
        self, params: dict[str, Any] | None = None, authorization: str | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("getall"), params), authorization=authorization
        )

    async def get_video_by_id(self, video_id: str) -> ApiResponse:
        return await self.client.get(self.url("get", video_id))

    async def update_video(
        self, video_id: str, video_data: dict[str, Any], authorization: str
    ) -> ApiResponse:
        return await self.client.put(
            self.url("update", video_id), json=video_data, authorization=authorization
        )

    async def delete_video(self, video_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url("delete", video_id), authorization=authorization)

    async def get_videos_by_category(
        self, category: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("category", encode_segment(category)), params)
        )

    async def search_videos(self, query: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.client.get(with_query(self.url("search"), {"q": query, **(params or {})}))

    async def get_video_stats(self) -> ApiResponse:
        return await self.client.get(self.url("stats"))


class ReviewAPI(Resource):
    """Reseñas de estudiantes."""

    resource = "reviews"

    async def get_all_reviews(
        self, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(with_query(self.base, params), authorization=authorization)

    async def get_public_reviews(self, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.client.get(with_query(self.url("public"), params))

    async def create_review(self, review_data: dict[str, Any], authorization: str) -> ApiResponse:
        return await self.client.post(self.base, json=review_data, authorization=authorization)

    async def get_review_by_id(self, review_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(self.url(review_id), authorization=authorization)

    async def update_review(
        self, review_id: str, review_data: dict[str, Any], authorization: str
    ) -> ApiResponse:
        return await self.client.put(
            self.url(review_id), json=review_data, authorization=authorization
        )

    async def delete_review(self, review_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url(review_id), authorization=authorization)

    async def upload_review_image(self, form: MultipartForm, authorization: str) -> ApiResponse:
        return await self.client.post(
            self.url("upload-image"), form=form, authorization=authorization
        )

    async def get_review_stats(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("stats"), authorization=authorization)


class BlogAPI(Resource):
    """Entradas del blog."""

    resource = "blogs"

    async def get_all_blogs(
        self, authorization: str | None = None, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(with_query(self.base, params), authorization=authorization)

    async def get_published_blogs(self, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.client.get(with_query(self.url("published"), params))

    async def get_blog_by_id(self, blog_id: str, authorization: str) -> ApiResponse:
        return await self.client.get(self.url(blog_id), authorization=authorization)

    async def get_blog_by_slug(self, slug: str) -> ApiResponse:
        return await self.client.get(self.url("slug", slug))

    async def toggle_blog_like(self, blog_id: str, user_email: str) -> ApiResponse:
        return await self.client.post(self.url(blog_id, "like"), json={"userEmail": user_email})

    async def create_blog(self, blog_data: dict[str, Any], authorization: str) -> ApiResponse:
        return await self.client.post(self.base, json=blog_data, authorization=authorization)

    async def update_blog(
        self, blog_id: str, blog_data: dict[str, Any], authorization: str
    ) -> ApiResponse:
        return await self.client.put(self.url(blog_id), json=blog_data, authorization=authorization)

    async def upload_blog_image(self, form: MultipartForm, authorization: str) -> ApiResponse:
        return await self.client.post(
            self.url("upload-image"), form=form, authorization=authorization
        )

    async def delete_blog(self, blog_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url(blog_id), authorization=authorization)

    async def get_blog_stats(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("stats"), authorization=authorization)


class QuizAPI(Resource):
    """Quizzes y resultados."""

    resource = "quizzes"

    async def get_all_quizzes(
        self, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        query = _truthy(params, "page", "limit")
        if params and params.get("isActive") is not None:
            query["isActive"] = params["isActive"]
        query.update(_truthy(params, "category", "difficulty"))
        return await self.client.get(with_query(self.base, query), authorization=authorization)

    async def get_all_quiz_results(
        self, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("all-results"), _truthy(params, "page", "limit")),
            authorization=authorization,
        )

    async def get_active_quizzes(self, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.client.get(with_query(self.url("active"), params))

    async def get_quiz_by_id(self, quiz_id: str, include_answers: bool = False) -> ApiResponse:
        url = self.url(quiz_id)
        if include_answers:
            url = with_query(url, {"includeAnswers": True})
        return await self.client.get(url)

    async def create_quiz(self, quiz_data: dict[str, Any], authorization: str) -> ApiResponse:
        return await self.client.post(self.base, json=quiz_data, authorization=authorization)

    async def update_quiz(
        self, quiz_id: str, quiz_data: dict[str, Any], authorization: str
    ) -> ApiResponse:
        return await self.client.put(self.url(quiz_id), json=quiz_data, authorization=authorization)

    async def delete_quiz(self, quiz_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url(quiz_id), authorization=authorization)

    async def submit_quiz_result(self, quiz_id: str, result_data: dict[str, Any]) -> ApiResponse:
        """Enviar respuestas del estudiante; el servidor calcula la nota."""
        return await self.client.post(self.url(quiz_id, "submit"), json=result_data)

    async def get_quiz_results(
        self, quiz_id: str, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url(quiz_id, "results"), params), authorization=authorization
        )

    async def get_quiz_stats(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("stats"), authorization=authorization)


class CommentAPI(Resource):
    """Comentarios del blog y moderación."""

    resource = "comments"

    async def create_comment(self, comment_data: dict[str, Any]) -> ApiResponse:
        return await self.client.post(self.url("create"), json=comment_data)

    async def get_blog_comments(
        self, blog_id: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(with_query(self.url("blog", blog_id), params))

    async def toggle_like(self, comment_id: str, user_email: str) -> ApiResponse:
        return await self.client.post(self.url(comment_id, "like"), json={"userEmail": user_email})

    async def get_all_comments(
        self, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        return await self.client.get(
            with_query(self.url("admin", "all"), params), authorization=authorization
        )

    async def update_comment_status(
        self, comment_id: str, status: str, authorization: str
    ) -> ApiResponse:
        if status not in COMMENT_STATUSES:
            raise ValueError(f"Estado de comentario inválido: {status}")
        return await self.client.put(
            self.url("admin", comment_id, "status"),
            json={"status": status},
            authorization=authorization,
        )

    async def delete_comment(self, comment_id: str, authorization: str) -> ApiResponse:
        return await self.client.delete(self.url("admin", comment_id), authorization=authorization)

    async def get_comment_stats(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("admin", "stats"), authorization=authorization)


class NotesAPI(Resource):
    """Biblioteca de notas descargables."""

    resource = "notes"

    async def get_all_notes(
        self, authorization: str, params: dict[str, Any] | None = None
    ) -> ApiResponse:
        query = _truthy(params, "page", "limit", "search", "category", "difficulty", "status")
        return await self.client.get(with_query(self.base, query), authorization=authorization)

    async def get_public_notes(self, params: dict[str, Any] | None = None) -> ApiResponse:
        query = _truthy(params, "page", "limit", "search", "category", "difficulty")
        return await self.client.get(with_query(self.url("public"), query))

    async def get_notes_by_id(self, notes_id: str, authorization: str | None = None) -> ApiResponse:
        if authorization:
            return await self.client.get(self.url(notes_id), authorization=authorization)
        return await self.client.get(self.url("public", notes_id))

    async def create_notes(self, authorization: str, form: MultipartForm) -> ApiResponse:
        return await self.client.post(self.base, form=form, authorization=authorization)

    async def update_notes(
        self, authorization: str, notes_id: str, form: MultipartForm
    ) -> ApiResponse:
        return await self.client.put(self.url(notes_id), form=form, authorization=authorization)

    async def delete_notes(self, authorization: str, notes_id: str) -> ApiResponse:
        return await self.client.delete(self.url(notes_id), authorization=authorization)

    async def download_notes(self, notes_id: str) -> ApiResponse:
        """Registrar la descarga (incrementa el contador)."""
        return await self.client.post(self.url("download", notes_id))

    async def get_notes_stats(self, authorization: str) -> ApiResponse:
        return await self.client.get(self.url("stats"), authorization=authorization)


class PortalAPI:
    """Todos los espacios de nombres sobre un mismo cliente."""

    def __init__(self, client: ApiClient | None = None) -> None:
        self.client = client or ApiClient()
        self.auth = AuthAPI(self.client)
        self.teachers = TeacherAPI(self.client)
        self.students = StudentAPI(self.client)
        self.courses = CourseAPI(self.client)
        self.videos = VideoAPI(self.client)
        self.reviews = ReviewAPI(self.client)
        self.blogs = BlogAPI(self.client)
        self.quizzes = QuizAPI(self.client)
        self.comments = CommentAPI(self.client)
        self.contacts = ContactAPI(self.client)
        self.notes = NotesAPI(self.client)

    def file_url(self, relative_path: str) -> str:
        """URL pública de un archivo subido (p. ej. notas)."""
        return f"{self.client.origin}/{relative_path.lstrip('/')}"

    async def close(self) -> None:
        await self.client.close()
