import io

import pytest
from docx import Document
from starlette.datastructures import Headers, UploadFile

from resume_architect.core import DOCX_MIME, MAX_FILE_BYTES
from resume_architect.services.ingest import (
    TooLarge,
    UnsupportedType,
    ValidationError,
    decode,
    extract_docx_text,
    ingest_bytes,
    ingest_upload,
)


def _upload(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


@pytest.mark.parametrize(
    "mime_type",
    [
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/msword",
        "image/gif",
        "application/zip",
        "",
    ],
)
def test_unsupported_types_rejected(mime_type):
    with pytest.raises(UnsupportedType):
        ingest_bytes(b"data", mime_type, "file")


def test_too_large_rejected():
    with pytest.raises(TooLarge) as exc:
        ingest_bytes(b"\0" * (MAX_FILE_BYTES + 1), "application/pdf", "big.pdf")
    assert "too large" in str(exc.value)
    assert isinstance(exc.value, ValidationError)


def test_limit_is_inclusive():
    uploaded = ingest_bytes(b"\0" * MAX_FILE_BYTES, "application/pdf", "edge.pdf")
    assert len(decode(uploaded)) == MAX_FILE_BYTES


def test_type_checked_before_size():
    with pytest.raises(UnsupportedType):
        ingest_bytes(b"\0" * (MAX_FILE_BYTES + 1), "image/gif", "big.gif")


@pytest.mark.parametrize(
    "data,mime_type,name",
    [
        (b"%PDF-1.4 minimal", "application/pdf", "cv.pdf"),
        ("Zoë Müller\nEngineer".encode("utf-8"), "text/plain", "cv.txt"),
        (bytes(range(256)), "image/png", "scan.png"),
    ],
)
def test_round_trip_preserves_bytes(data, mime_type, name):
    uploaded = ingest_bytes(data, mime_type, name)
    assert uploaded.mime_type == mime_type
    assert uploaded.name == name
    assert decode(uploaded) == data


@pytest.mark.anyio
async def test_ingest_upload_reads_file():
    uploaded = await ingest_upload(_upload(b"%PDF-1.4", "resume.pdf", "application/pdf"))
    assert uploaded.name == "resume.pdf"
    assert uploaded.mime_type == "application/pdf"
    assert decode(uploaded) == b"%PDF-1.4"


@pytest.mark.anyio
async def test_ingest_upload_rejects_type():
    with pytest.raises(UnsupportedType):
        await ingest_upload(_upload(b"a,b", "sheet.csv", "text/csv"))


def test_extract_docx_text():
    doc = Document()
    doc.add_paragraph("Senior Backend Engineer")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Python"
    table.rows[0].cells[1].text = "Kubernetes"
    buf = io.BytesIO()
    doc.save(buf)

    text = extract_docx_text(buf.getvalue())
    assert "Senior Backend Engineer" in text
    assert "Python | Kubernetes" in text


def test_docx_is_allowed():
    uploaded = ingest_bytes(b"PK\x03\x04", DOCX_MIME, "cv.docx")
    assert uploaded.mime_type == DOCX_MIME
