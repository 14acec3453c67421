"""Archivos locales y formularios multipart para subir al servidor."""

from __future__ import annotations

import json
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
RESUME_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
MAX_IMAGE_SIZE = 5 * 1024 * 1024
MAX_RESUME_SIZE = 10 * 1024 * 1024

# mimetypes no conoce .webp en algunas plataformas
mimetypes.add_type("image/webp", ".webp")


class UploadValidationError(Exception):
    """Archivo rechazado antes de enviarlo."""

    pass


@dataclass
class UploadFile:
    """Archivo local listo para enviarse en un formulario."""

    path: Path
    filename: str = ""
    content_type: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not self.filename:
            self.filename = self.path.name
        if not self.content_type:
            guessed, _ = mimetypes.guess_type(self.filename)
            self.content_type = guessed or "application/octet-stream"

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read(self) -> bytes:
        return self.path.read_bytes()

    @classmethod
    def open(cls, path: str | Path) -> UploadFile:
        """Crear desde una ruta, verificando que exista."""
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise UploadValidationError(f"Archivo no encontrado: {file_path}")
        return cls(file_path)


def validate_image(upload: UploadFile) -> UploadFile:
    """Validar imagen (JPEG, PNG, GIF o WebP de hasta 5MB)."""
    if upload.content_type not in IMAGE_TYPES:
        raise UploadValidationError(
            "Selecciona una imagen válida (JPEG, PNG, GIF o WebP)"
        )
    if upload.size > MAX_IMAGE_SIZE:
        raise UploadValidationError("La imagen debe pesar menos de 5MB")
    return upload


def validate_resume(upload: UploadFile) -> UploadFile:
    """Validar currículum (PDF o Word de hasta 10MB)."""
    if upload.content_type not in RESUME_TYPES:
        raise UploadValidationError(
            "Selecciona un currículum válido (PDF o documento Word)"
        )
    if upload.size > MAX_RESUME_SIZE:
        raise UploadValidationError("El currículum debe pesar menos de 10MB")
    return upload


def validate_video(upload: UploadFile) -> UploadFile:
    """Validar video de curso."""
    if not upload.content_type.startswith("video/"):
        raise UploadValidationError("Selecciona un archivo de video válido")
    return upload


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


@dataclass
class MultipartForm:
    """Equivalente de FormData: campos de texto más archivos."""

    fields: dict[str, str] = field(default_factory=dict)
    files: list[tuple[str, UploadFile]] = field(default_factory=list)

    def add(self, name: str, value: Any) -> MultipartForm:
        """Añadir campo; listas y dicts se serializan como JSON. None se omite."""
        if value is not None:
            self.fields[name] = _form_value(value)
        return self

    def add_file(self, name: str, upload: UploadFile | None) -> MultipartForm:
        """Añadir archivo si existe."""
        if upload is not None:
            self.files.append((name, upload))
        return self

    @classmethod
    def from_fields(cls, data: dict[str, Any]) -> MultipartForm:
        """Crear formulario a partir de un diccionario de campos."""
        form = cls()
        for key, value in data.items():
            form.add(key, value)
        return form

    def to_httpx(self) -> dict[str, Any]:
        """Argumento `files` para httpx; multipart aunque no haya archivos."""
        parts: list[tuple[str, tuple]] = [(name, (None, value)) for name, value in self.fields.items()]
        parts.extend(
            (name, (upload.filename, upload.read(), upload.content_type))
            for name, upload in self.files
        )
        return {"files": parts}
