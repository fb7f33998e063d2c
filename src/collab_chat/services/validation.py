from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass

MAX_MESSAGE_LENGTH = 2000
MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_FILE_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "audio/mpeg",
    "audio/wav",
    "audio/ogg",
    "video/mp4",
    "video/webm",
    "video/ogg",
})


@dataclass(frozen=True, slots=True)
class FileUpload:
    name: str
    size: int
    content_type: str

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> FileUpload:
        content_type, _ = mimetypes.guess_type(os.fspath(path))
        return cls(
            name=os.path.basename(path),
            size=os.path.getsize(path),
            content_type=content_type or "application/octet-stream",
        )


@dataclass(frozen=True, slots=True)
class FileValidation:
    valid: bool
    error: str | None = None


def validate_message(message: str) -> bool:
    stripped = message.strip()
    return 0 < len(stripped) <= MAX_MESSAGE_LENGTH


def validate_file_upload(file: FileUpload) -> FileValidation:
    if file.size > MAX_FILE_SIZE:
        return FileValidation(valid=False, error="File size must be less than 10MB")
    if file.content_type not in ALLOWED_FILE_TYPES:
        return FileValidation(valid=False, error="File type not supported")
    return FileValidation(valid=True)
