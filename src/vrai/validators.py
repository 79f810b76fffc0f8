"""
vrai/validators.py — File checks for uploads (photos, reports, avatars).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vrai.exceptions import ValidationError

IMAGE_EXTENSION_RE = re.compile(r"\.(jpeg|jpg|png|gif|bmp|webp|heic)$", re.IGNORECASE)
DOCUMENT_EXTENSION_RE = re.compile(r"\.(jpeg|jpg|png|gif|pdf|doc|docx)$", re.IGNORECASE)


@dataclass(frozen=True)
class FilePayload:
    """An uploaded file already read into memory."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and ext else "jpg"

    @property
    def size(self) -> int:
        return len(self.content)


def validate_image(file: FilePayload, max_size: int, field: str = "file") -> FilePayload:
    """Images only: ``image/*`` mime type or a known image extension."""
    mime_ok = (file.content_type or "").startswith("image/")
    ext_ok = bool(IMAGE_EXTENSION_RE.search(file.filename or ""))
    if not (mime_ok or ext_ok):
        raise ValidationError(
            f"Invalid file type for {field}. Only images are allowed.",
            details={"field": field, "content_type": file.content_type},
        )
    return validate_size(file, max_size, field)


def validate_pdf(file: FilePayload, max_size: int, field: str = "pdfFile") -> FilePayload:
    if file.content_type != "application/pdf" and not (file.filename or "").lower().endswith(".pdf"):
        raise ValidationError(
            f"Invalid file type for {field}. Only PDF files are allowed.",
            details={"field": field, "content_type": file.content_type},
        )
    return validate_size(file, max_size, field)


def validate_document(file: FilePayload, max_size: int, field: str = "files") -> FilePayload:
    """Images and documents; both extension and mime type must agree."""
    ext_ok = bool(DOCUMENT_EXTENSION_RE.search(file.filename or ""))
    mime = (file.content_type or "").lower()
    mime_ok = mime.startswith("image/") or any(
        token in mime for token in ("pdf", "msword", "officedocument")
    )
    if not (ext_ok and mime_ok):
        raise ValidationError(
            "Only images and documents are allowed",
            details={"field": field, "filename": file.filename},
        )
    return validate_size(file, max_size, field)


def validate_size(file: FilePayload, max_size: int, field: str = "file") -> FilePayload:
    if file.size == 0:
        raise ValidationError(f"Uploaded file for {field} is empty", details={"field": field})
    if file.size > max_size:
        raise ValidationError(
            f"File for {field} exceeds the {max_size // (1024 * 1024)}MB limit",
            details={"field": field, "size": file.size, "limit": max_size},
        )
    return file


def validate_file_count(count: int, limit: int, field: str = "files") -> None:
    if count == 0:
        raise ValidationError("No files were uploaded", details={"field": field})
    if count > limit:
        raise ValidationError(
            f"Too many files: {count} uploaded, at most {limit} allowed",
            details={"field": field, "count": count, "limit": limit},
        )
