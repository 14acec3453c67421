"""Tests para los formularios."""

import pytest

from tutor_portal.core.forms import (
    CommentForm,
    ContactForm,
    CourseForm,
    FormValidationError,
    NotesForm,
    QuizForm,
    StudentEnrollmentForm,
    TeacherApplicationForm,
    load_form_file,
    validate_form,
)


def quiz_data(**overrides):
    data = {
        "title": "Gramática básica",
        "description": "Tiempos verbales",
        "questions": [
            {"question": "¿Cuál es correcta?", "options": ["a", "b", "c", "d"], "correctAnswer": 1},
        ],
    }
    data.update(overrides)
    return data


class TestPublicForms:
    """Tests para formularios públicos."""

    def test_contact_invalid_email(self) -> None:
        """Test email inválido en contacto."""
        with pytest.raises(FormValidationError) as exc_info:
            validate_form(
                ContactForm,
                {"fullName": "Ana", "emailAddress": "ana@", "subject": "Hola", "message": "Info"},
            )
        assert exc_info.value.errors == {"emailAddress": "Ingresa un email válido"}

    def test_contact_payload_uses_server_names(self) -> None:
        """Test nombres camelCase en la carga útil."""
        form = validate_form(
            ContactForm,
            {"fullName": "  Ana  ", "emailAddress": "ana@example.com", "subject": "Hola", "message": "Info"},
        )
        assert form.to_payload() == {
            "fullName": "Ana",
            "emailAddress": "ana@example.com",
            "subject": "Hola",
            "message": "Info",
        }

    def test_enrollment_length_limits(self) -> None:
        """Test límites de longitud."""
        with pytest.raises(FormValidationError) as exc_info:
            validate_form(
                StudentEnrollmentForm,
                {"name": "A", "email": "a@b.co", "phone": "123", "city": "Lahore", "qualifications": "BSc"},
            )
        assert set(exc_info.value.errors) == {"name", "phone"}

    def test_teacher_payload_formats_date(self) -> None:
        """Test fecha de nacimiento en formato ISO."""
        form = validate_form(
            TeacherApplicationForm,
            {
                "name": "Omar",
                "email": "omar@example.com",
                "contactNumber": "03001234567",
                "address": "Calle 123",
                "city": "Lahore",
                "country": "Pakistan",
                "state": "Punjab",
                "zipCode": "54000",
                "gender": "Male",
                "dateOfBirth": "1990-05-04",
                "qualification": "MA English",
                "subject": "English",
                "expertAt": "IELTS speaking",
                "appliedFor": "IELTS",
                "whyFitForJob": "Diez años de experiencia",
            },
        )
        payload = form.to_payload()
        assert payload["dateOfBirth"] == "1990-05-04"
        assert payload["zipCode"] == "54000"

    def test_comment_payload_nests_author(self) -> None:
        """Test autor anidado en el comentario."""
        form = validate_form(
            CommentForm,
            {"content": "Muy útil", "blogId": "b1", "author_name": "Ana", "author_email": "ana@example.com"},
        )
        assert form.to_payload() == {
            "content": "Muy útil",
            "blogId": "b1",
            "author": {"name": "Ana", "email": "ana@example.com"},
        }

    def test_comment_reply_includes_parent(self) -> None:
        """Test respuesta a otro comentario."""
        form = validate_form(
            CommentForm,
            {
                "content": "Gracias",
                "blogId": "b1",
                "author_name": "Ana",
                "author_email": "ana@example.com",
                "parentComment": "c1",
            },
        )
        assert form.to_payload()["parentComment"] == "c1"


class TestAdminForms:
    """Tests para formularios de administración."""

    def test_quiz_defaults(self) -> None:
        """Test valores por defecto del quiz."""
        payload = validate_form(QuizForm, quiz_data()).to_payload()
        assert payload["category"] == "General"
        assert payload["difficulty"] == "medium"
        assert payload["passingScore"] == 28
        assert payload["timeLimit"] == 30
        assert payload["questions"][0]["correctAnswer"] == 1

    def test_quiz_empty_option_message(self) -> None:
        """Test opción vacía."""
        data = quiz_data(questions=[{"question": "¿?", "options": ["a", " ", "c", "d"]}])
        with pytest.raises(FormValidationError) as exc_info:
            validate_form(QuizForm, data)
        assert "Pregunta 1, opción 2 es obligatoria" in exc_info.value.errors.values()

    def test_quiz_empty_question_message(self) -> None:
        """Test pregunta vacía."""
        data = quiz_data(questions=[{"question": "", "options": ["a", "b"]}])
        with pytest.raises(FormValidationError) as exc_info:
            validate_form(QuizForm, data)
        assert "La pregunta 1 es obligatoria" in exc_info.value.errors.values()

    def test_quiz_requires_questions(self) -> None:
        """Test quiz sin preguntas."""
        with pytest.raises(FormValidationError) as exc_info:
            validate_form(QuizForm, quiz_data(questions=[]))
        assert "questions" in exc_info.value.errors

    def test_course_dates_order(self) -> None:
        """Test fechas de curso."""
        data = {
            "title": "IELTS Intensivo",
            "description": "Preparación",
            "category": "IELTS",
            "syllabus": "Módulos 1-4",
            "instructorName": "Sara",
            "startDate": "2024-03-01",
            "endDate": "2024-02-01",
        }
        with pytest.raises(FormValidationError):
            validate_form(CourseForm, data)

        data["endDate"] = "2024-06-01"
        payload = validate_form(CourseForm, data).to_payload()
        assert payload["duration"] == {"startDate": "2024-03-01", "endDate": "2024-06-01"}
        assert "startDate" not in payload

    def test_notes_tags_from_string(self) -> None:
        """Test etiquetas separadas por comas."""
        form = validate_form(
            NotesForm,
            {
                "title": "Vocabulario",
                "subject": "English",
                "category": "IELTS",
                "difficulty": "beginner",
                "tags": "vocab, ielts,  ",
            },
        )
        assert form.tags == ["vocab", "ielts"]


class TestLoadFormFile:
    """Tests para lectura de YAML."""

    def test_reads_dictionary(self, tmp_path) -> None:
        """Test archivo válido."""
        path = tmp_path / "quiz.yaml"
        path.write_text("title: Quiz\ntimeLimit: 15\n", encoding="utf-8")
        assert load_form_file(path) == {"title": "Quiz", "timeLimit": 15}

    def test_missing_file(self, tmp_path) -> None:
        """Test archivo inexistente."""
        with pytest.raises(FormValidationError) as exc_info:
            load_form_file(tmp_path / "nada.yaml")
        assert "archivo" in exc_info.value.errors

    def test_non_dictionary(self, tmp_path) -> None:
        """Test YAML que no es diccionario."""
        path = tmp_path / "lista.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(FormValidationError):
            load_form_file(path)

    def test_malformed_yaml(self, tmp_path) -> None:
        """Test YAML con sintaxis inválida."""
        path = tmp_path / "roto.yaml"
        path.write_text("title: [sin cerrar\n", encoding="utf-8")
        with pytest.raises(FormValidationError) as exc_info:
            load_form_file(path)
        assert exc_info.value.errors["archivo"].startswith("YAML inválido")
