import io
from pathlib import Path
from typing import Optional, Sequence

import pytest
from docx import Document
from pypdf import PdfWriter

from doc_consolidator.core.models import SourceFile
from doc_consolidator.core.settings import PreferenceStore


@pytest.fixture
def pdf_bytes():
    def _make(widths: Sequence[int] = (72,), password: Optional[str] = None) -> bytes:
        writer = PdfWriter()
        for width in widths:
            writer.add_blank_page(width=width, height=72)
        if password:
            writer.encrypt(password)
        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def docx_bytes():
    def _make(paragraphs: Sequence[str]) -> bytes:
        document = Document()
        for text in paragraphs:
            document.add_paragraph(text)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_pdf(pdf_bytes):
    """PDF source whose page widths identify its pages."""
    def _make(
        name: str = "doc.pdf",
        widths: Sequence[int] = (72,),
        password: Optional[str] = None,
    ) -> SourceFile:
        return SourceFile.from_bytes(name, pdf_bytes(widths, password), "application/pdf")

    return _make


@pytest.fixture
def make_csv():
    def _make(name: str, text: str, media_type: str = "text/csv") -> SourceFile:
        return SourceFile.from_bytes(name, text.encode("utf-8"), media_type)

    return _make


@pytest.fixture
def make_docx(docx_bytes):
    def _make(name: str, paragraphs: Sequence[str]) -> SourceFile:
        return SourceFile.from_bytes(
            name,
            docx_bytes(paragraphs),
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

    return _make


@pytest.fixture
def write_file(tmp_path: Path):
    """Write bytes to disk and return a path-backed source."""
    def _write(name: str, data: bytes) -> SourceFile:
        path = tmp_path / name
        path.write_bytes(data)
        return SourceFile.from_path(path)

    return _write


@pytest.fixture
def preference_store(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "config" / "settings.json")
