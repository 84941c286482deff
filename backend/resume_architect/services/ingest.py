from __future__ import annotations
import base64
import io
import re

from docx import Document
from starlette.datastructures import UploadFile

from resume_architect.core import ALLOWED_MIME_TYPES, MAX_FILE_BYTES, MAX_FILE_MB
from resume_architect.models import UploadedFile


class ValidationError(ValueError):
    pass


class UnsupportedType(ValidationError):
    def __init__(self, mime_type: str):
        super().__init__("Unsupported file type. Please upload PDF, DOCX, TXT, or PNG/JPG.")
        self.mime_type = mime_type


class TooLarge(ValidationError):
    def __init__(self, size: int):
        super().__init__(f"File is too large. Max {MAX_FILE_MB}MB.")
        self.size = size


def _clean_text(t: str) -> str:
    t = t.replace("\x00", " ")
    t = re.sub(r"[ \t]+", " ", t)
    t = re.sub(r"\n{3,}", "\n\n", t)
    return t.strip()


def validate(mime_type: str, size: int) -> None:
    if mime_type not in ALLOWED_MIME_TYPES:
        raise UnsupportedType(mime_type)
    if size > MAX_FILE_BYTES:
        raise TooLarge(size)


def ingest_bytes(data: bytes, mime_type: str, name: str) -> UploadedFile:
    validate(mime_type, len(data))
    return UploadedFile(
        content=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type,
        name=name,
    )


async def ingest_upload(upload: UploadFile) -> UploadedFile:
    """Read an uploaded file once and turn it into an ``UploadedFile``.

    The content type is checked before the body is read so an unsupported
    file never gets buffered.
    """
    mime_type = (upload.content_type or "").split(";")[0].strip().lower()
    if mime_type not in ALLOWED_MIME_TYPES:
        await upload.close()
        raise UnsupportedType(mime_type)

    contents = await upload.read()
    await upload.close()
    return ingest_bytes(contents, mime_type, upload.filename or "resume")


def decode(uploaded: UploadedFile) -> bytes:
    return base64.b64decode(uploaded.content)


def extract_docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    parts = [p.text for p in doc.paragraphs]
    # include tables (basic)
    for table in doc.tables:
        for row in table.rows:
            parts.append(" | ".join(cell.text.strip() for cell in row.cells))
    return _clean_text("\n".join(parts))
