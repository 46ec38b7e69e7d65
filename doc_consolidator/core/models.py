"""
Data models for Document Consolidator.
"""
import mimetypes
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .errors import DocConsolidatorError


MAX_TOTAL_SIZE_BYTES = 500 * 1024 * 1024  # 500MB


class SupportedKind(Enum):
    """Document kinds that can be merged."""
    PDF = auto()
    CSV = auto()
    WORD_DOCX = auto()
    WORD_DOC = auto()

    @property
    def extension(self) -> str:
        """Canonical output extension (Word merges always produce DOCX)."""
        return _KIND_EXTENSIONS[self]

    @property
    def output_media_type(self) -> str:
        """Media type of the merged output."""
        return _KIND_MEDIA_TYPES[self]

    @property
    def label(self) -> str:
        """Short human-readable name."""
        return _KIND_LABELS[self]

    @property
    def is_word(self) -> bool:
        return self in (SupportedKind.WORD_DOCX, SupportedKind.WORD_DOC)


MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPE_CSV = "text/csv"
MEDIA_TYPE_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MEDIA_TYPE_DOC = "application/msword"

_KIND_EXTENSIONS = {
    SupportedKind.PDF: ".pdf",
    SupportedKind.CSV: ".csv",
    SupportedKind.WORD_DOCX: ".docx",
    SupportedKind.WORD_DOC: ".docx",
}

_KIND_MEDIA_TYPES = {
    SupportedKind.PDF: MEDIA_TYPE_PDF,
    SupportedKind.CSV: MEDIA_TYPE_CSV,
    SupportedKind.WORD_DOCX: MEDIA_TYPE_DOCX,
    SupportedKind.WORD_DOC: MEDIA_TYPE_DOCX,
}

_KIND_LABELS = {
    SupportedKind.PDF: "PDF",
    SupportedKind.CSV: "CSV",
    SupportedKind.WORD_DOCX: "Word",
    SupportedKind.WORD_DOC: "Word (legacy)",
}


class Direction(Enum):
    """Direction for reordering a file in the collection."""
    UP = "up"
    DOWN = "down"


class MergeState(Enum):
    """Lifecycle of the merge workflow."""
    IDLE = auto()         # Fewer than two files
    VALIDATING = auto()   # A batch is being validated
    READY = auto()        # Two or more same-kind files
    MERGING = auto()      # Merge in flight
    SUCCEEDED = auto()    # Transient, settles to IDLE/READY
    FAILED = auto()       # Transient, settles to IDLE/READY


def format_file_size(size_bytes: int) -> str:
    """Format a byte count as Bytes/KB/MB/GB with two decimals at most."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {units[unit]}"


@dataclass(frozen=True)
class SourceFile:
    """
    A raw file handle as produced by a file picker or drag-and-drop.

    Carries the declared media type (possibly empty) and a way to read
    the bytes; nothing else about the file is trusted yet.
    """

    name: str
    size_bytes: int
    media_type: str = ""
    path: Optional[Path] = None
    data: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceFile":
        """Create a handle for a file on disk, guessing its media type."""
        path = Path(path)
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size_bytes=path.stat().st_size,
            media_type=media_type or "",
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, media_type: str = "") -> "SourceFile":
        """Create a handle for in-memory content."""
        return cls(name=name, size_bytes=len(data), media_type=media_type, data=data)

    def read_bytes(self) -> bytes:
        """Read the full file content."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError(f"No content available for {self.name}")
        return self.path.read_bytes()

    def read_text(self, encoding: str = "utf-8-sig") -> str:
        """Read the content as text; undecodable bytes are replaced."""
        return self.read_bytes().decode(encoding, errors="replace")


@dataclass(frozen=True)
class ManagedFile:
    """A validated file owned by the collection."""

    source: SourceFile
    kind: SupportedKind

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def size_bytes(self) -> int:
        return self.source.size_bytes

    @property
    def size_display(self) -> str:
        return format_file_size(self.size_bytes)

    @property
    def detail_display(self) -> str:
        """Kind-specific metadata for display."""
        return "-"


@dataclass(frozen=True)
class PdfFile(ManagedFile):
    page_count: int = 0

    @property
    def detail_display(self) -> str:
        return f"{self.page_count} page{'s' if self.page_count != 1 else ''}"


@dataclass(frozen=True)
class CsvFile(ManagedFile):
    row_count: int = 0

    @property
    def detail_display(self) -> str:
        return f"{self.row_count} row{'s' if self.row_count != 1 else ''}"


@dataclass(frozen=True)
class WordFile(ManagedFile):
    pass


@dataclass
class AddResult:
    """Outcome of adding a batch of files to the collection."""

    accepted: int = 0
    rejected_names: List[str] = field(default_factory=list)
    errors: List[DocConsolidatorError] = field(default_factory=list)

    @property
    def error(self) -> Optional[DocConsolidatorError]:
        """The first error, if any."""
        return self.errors[0] if self.errors else None

    @property
    def message(self) -> str:
        """All errors joined for display."""
        lines = []
        for error in self.errors:
            if error.file_names:
                names = ", ".join(f'"{name}"' for name in error.file_names)
                lines.append(f"{error.message} {names}")
            else:
                lines.append(error.message)
        return "\n".join(lines)


@dataclass
class MergeJob:
    """Progress state of one in-flight merge."""

    kind: SupportedKind
    files: Tuple[ManagedFile, ...]
    current_index: int = 0

    @property
    def total_count(self) -> int:
        return len(self.files)


@dataclass
class MergeProgress:
    """Progress update during merge operation."""

    current_file: str = ""
    current_index: int = 0
    total_files: int = 0

    @property
    def percent_complete(self) -> float:
        if self.total_files == 0:
            return 0.0
        return (self.current_index / self.total_files) * 100

    @property
    def progress_text(self) -> str:
        """Get progress text for display."""
        if self.total_files == 0:
            return ""
        return f"Merging {self.current_index} of {self.total_files}: {self.current_file}"


ProgressCallback = Callable[[MergeProgress], None]


@dataclass(frozen=True)
class MergeOutput:
    """Merged document bytes."""

    payload: bytes
    media_type: str


@dataclass(frozen=True)
class PackagedOutput:
    """Named output ready for delivery."""

    filename: str
    media_type: str
    payload: bytes

    @property
    def size_display(self) -> str:
        return format_file_size(len(self.payload))


@dataclass
class MergeResult:
    """Result of a merge operation."""

    success: bool
    output: Optional[PackagedOutput] = None
    kind: Optional[SupportedKind] = None
    merged_count: int = 0
    total_pages: int = 0
    total_rows: int = 0
    error: Optional[DocConsolidatorError] = None
    duration_seconds: float = 0.0

    @property
    def error_message(self) -> str:
        return self.error.message if self.error else ""

    @property
    def summary(self) -> str:
        """Get summary text for display."""
        if not self.success:
            return f"Failed to merge files. {self.error_message}".strip()
        label = self.kind.label if self.kind else ""
        text = f"Successfully merged {self.merged_count} {label} files!"
        if self.total_pages:
            text += f"\nTotal pages: {self.total_pages}"
        if self.total_rows:
            text += f"\nTotal rows: {self.total_rows}"
        if self.output:
            text += f"\nOutput size: {self.output.size_display}"
        return text
