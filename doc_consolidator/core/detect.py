"""
Document kind detection for Document Consolidator.

Classifies a source file from its declared media type, falling back to the
file name extension when the media type is missing or generic.
"""
from pathlib import PurePath
from typing import Optional

from .models import (
    SourceFile, SupportedKind,
    MEDIA_TYPE_PDF, MEDIA_TYPE_CSV, MEDIA_TYPE_DOCX, MEDIA_TYPE_DOC
)


MEDIA_TYPE_KINDS = {
    MEDIA_TYPE_PDF: SupportedKind.PDF,
    MEDIA_TYPE_CSV: SupportedKind.CSV,
    "application/vnd.ms-excel": SupportedKind.CSV,
    MEDIA_TYPE_DOCX: SupportedKind.WORD_DOCX,
    MEDIA_TYPE_DOC: SupportedKind.WORD_DOC,
}

EXTENSION_KINDS = {
    ".pdf": SupportedKind.PDF,
    ".csv": SupportedKind.CSV,
    ".docx": SupportedKind.WORD_DOCX,
    ".doc": SupportedKind.WORD_DOC,
}

# Media types that carry no format information; the extension decides.
GENERIC_MEDIA_TYPES = {
    "",
    "application/octet-stream",
    "binary/octet-stream",
    "application/x-unknown",
    "text/plain",
}


def _normalize_media_type(media_type: Optional[str]) -> str:
    """Lower-case and strip parameters such as '; charset=utf-8'."""
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def detect_kind(name: str, media_type: Optional[str] = None) -> Optional[SupportedKind]:
    """
    Detect the document kind from a name and a declared media type.

    Args:
        name: File name including extension
        media_type: Declared media type (may be empty)

    Returns:
        The SupportedKind, or None if the file is not supported
    """
    normalized = _normalize_media_type(media_type)
    if normalized in MEDIA_TYPE_KINDS:
        return MEDIA_TYPE_KINDS[normalized]
    if normalized not in GENERIC_MEDIA_TYPES:
        return None
    return EXTENSION_KINDS.get(PurePath(name).suffix.lower())


def detect(source: SourceFile) -> Optional[SupportedKind]:
    """Detect the document kind of a source file."""
    return detect_kind(source.name, source.media_type)
