"""
Document validation and probing for Document Consolidator.

Opens each file just enough to confirm it is well-formed and to extract
lightweight metadata (page count for PDF, row count for CSV).
"""
import csv
import io
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Union

from docx import Document
from docx.oxml.ns import qn
from pypdf import PdfReader
from pypdf.errors import PdfReadError, FileNotDecryptedError

from .errors import CorruptOrProtectedError
from .models import (
    SourceFile, SupportedKind, ManagedFile, PdfFile, CsvFile, WordFile
)
from .sanitize import get_logger


logger = get_logger()

PDF_MAGIC = b'%PDF-'

MAX_VALIDATION_WORKERS = 4

ValidationOutcome = Union[ManagedFile, CorruptOrProtectedError]


def is_pdf_bytes(data: bytes) -> bool:
    """Quick check if content starts with PDF magic bytes."""
    return data[:1024].lstrip().startswith(PDF_MAGIC)


def open_pdf(data: bytes, name: str) -> PdfReader:
    """
    Open PDF bytes, unlocking documents that only have an owner password.

    Raises:
        CorruptOrProtectedError: if the content is not a readable PDF or
            needs a user password
    """
    if not is_pdf_bytes(data):
        raise CorruptOrProtectedError([name], "Not a valid PDF file.")

    try:
        reader = PdfReader(io.BytesIO(data))
    except PdfReadError as e:
        logger.warning(f"PDF read error for {name}: {e}")
        raise CorruptOrProtectedError([name], "PDF is not valid or is corrupted.")
    except Exception as e:
        logger.warning(f"Unexpected error opening {name}: {e}")
        raise CorruptOrProtectedError([name], f"Error reading PDF: {type(e).__name__}")

    if reader.is_encrypted:
        # Try empty password
        try:
            unlocked = reader.decrypt("")
        except Exception:
            unlocked = False
        if not unlocked:
            raise CorruptOrProtectedError([name], "PDF is password-protected.")
    return reader


def probe_pdf(data: bytes, name: str) -> int:
    """
    Validate a PDF and return its page count.

    Raises:
        CorruptOrProtectedError: if the PDF cannot be opened
    """
    reader = open_pdf(data, name)
    try:
        return len(reader.pages)
    except FileNotDecryptedError:
        raise CorruptOrProtectedError([name], "PDF is password-protected.")
    except Exception as e:
        logger.warning(f"Unexpected error probing {name}: {e}")
        raise CorruptOrProtectedError([name], f"Error reading PDF: {type(e).__name__}")


def decode_csv_text(data: bytes) -> str:
    """Decode CSV bytes best-effort; bad sequences become U+FFFD."""
    return data.decode("utf-8-sig", errors="replace")


def parse_csv_rows(text: str) -> List[List[str]]:
    """
    Parse delimited text into rows without assuming a header.

    Blank lines are skipped.

    Raises:
        csv.Error: if the text cannot be tokenized
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    return [row for row in reader if row]


def probe_csv(data: bytes, name: str) -> int:
    """Count CSV rows, header included. Never fails."""
    text = decode_csv_text(data)
    try:
        return len(parse_csv_rows(text))
    except csv.Error as e:
        logger.warning(f"CSV parse error for {name}, counting lines instead: {e}")
        return sum(1 for line in text.splitlines() if line.strip())


def extract_docx_text(data: bytes) -> str:
    """
    Extract plain text from DOCX bytes, one line per paragraph.

    Every paragraph in the body is read in document order, including the
    ones inside table cells.
    """
    document = Document(io.BytesIO(data))
    return "\n".join(
        "".join(text.text or "" for text in paragraph.iter(qn("w:t")))
        for paragraph in document.element.body.iter(qn("w:p"))
    )


def probe_docx(data: bytes, name: str) -> None:
    """
    Confirm the DOCX container opens.

    Raises:
        CorruptOrProtectedError: if python-docx cannot read the file
    """
    try:
        extract_docx_text(data)
    except Exception as e:
        logger.warning(f"DOCX read error for {name}: {e}")
        raise CorruptOrProtectedError([name], "Word document is not valid or is corrupted.")


def validate(kind: SupportedKind, source: SourceFile) -> ManagedFile:
    """
    Validate a source file as the given kind.

    Args:
        kind: Detected kind of the file
        source: Raw file handle

    Returns:
        The managed file with kind-specific metadata

    Raises:
        CorruptOrProtectedError: if the file fails structural validation
    """
    if kind == SupportedKind.WORD_DOC:
        # Legacy binary format is not introspected
        return WordFile(source=source, kind=kind)

    try:
        data = source.read_bytes()
    except OSError as e:
        logger.warning(f"Could not read {source.name}: {e}")
        raise CorruptOrProtectedError([source.name], "File could not be read.")

    if kind == SupportedKind.PDF:
        page_count = probe_pdf(data, source.name)
        logger.info(f"PDF validated: {source.name}, pages={page_count}")
        return PdfFile(source=source, kind=kind, page_count=page_count)

    if kind == SupportedKind.CSV:
        row_count = probe_csv(data, source.name)
        logger.info(f"CSV validated: {source.name}, rows={row_count}")
        return CsvFile(source=source, kind=kind, row_count=row_count)

    if kind == SupportedKind.WORD_DOCX:
        probe_docx(data, source.name)
        logger.info(f"Word document validated: {source.name}")
        return WordFile(source=source, kind=kind)

    raise ValueError(f"Unhandled document kind: {kind}")


def _validate_outcome(kind: SupportedKind, source: SourceFile) -> ValidationOutcome:
    try:
        return validate(kind, source)
    except CorruptOrProtectedError as e:
        return e


def validate_batch(
    sources: Sequence[SourceFile],
    kinds: Sequence[SupportedKind],
    max_workers: int = MAX_VALIDATION_WORKERS
) -> List[ValidationOutcome]:
    """
    Validate a batch of files concurrently.

    Args:
        sources: Files to validate
        kinds: Detected kind for each file
        max_workers: Thread pool size

    Returns:
        One ManagedFile or CorruptOrProtectedError per input, in input order
    """
    if not sources:
        return []

    workers = max(1, min(max_workers, len(sources)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="validate") as pool:
        # map() yields in submission order regardless of completion order
        return list(pool.map(_validate_outcome, kinds, sources))
