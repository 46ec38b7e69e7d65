"""
Custom exceptions and error codes for Document Consolidator.
"""
from enum import Enum, auto
from typing import Iterable, List, Optional


class ErrorCode(Enum):
    """Error codes for structured error handling."""
    UNKNOWN = auto()
    UNSUPPORTED_FORMAT = auto()
    MIXED_KINDS = auto()
    SIZE_CAP_EXCEEDED = auto()
    CORRUPT_OR_PROTECTED = auto()
    INSUFFICIENT_FILES = auto()
    MERGE_FAILED = auto()
    PASSWORD_PROTECTED = auto()
    CORRUPT = auto()
    MERGE_IN_PROGRESS = auto()
    OUTPUT_WRITE_FAILED = auto()


class DocConsolidatorError(Exception):
    """Base exception for Document Consolidator."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        file_names: Optional[Iterable[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.file_names: List[str] = list(file_names or [])

    def __str__(self) -> str:
        if self.file_names:
            return f"[{self.code.name}] {self.message} (files: {', '.join(self.file_names)})"
        return f"[{self.code.name}] {self.message}"


class UnsupportedFormatError(DocConsolidatorError):
    """Raised when one or more files are not a supported document kind."""

    def __init__(self, file_names: Iterable[str]):
        super().__init__(
            "Unsupported file type. Only PDF, CSV and Word files are supported.",
            ErrorCode.UNSUPPORTED_FORMAT,
            file_names
        )


class MixedKindsError(DocConsolidatorError):
    """Raised when files of different kinds would end up in one collection."""

    def __init__(self, file_names: Iterable[str], message: str = ""):
        super().__init__(
            message or "Files of different types cannot be merged together.",
            ErrorCode.MIXED_KINDS,
            file_names
        )


class SizeCapExceededError(DocConsolidatorError):
    """Raised when a batch would push the collection over the size cap."""

    def __init__(self, file_names: Iterable[str], limit_bytes: int):
        super().__init__(
            f"Total file size exceeds {limit_bytes // (1024 * 1024)}MB limit. "
            "Please select smaller files.",
            ErrorCode.SIZE_CAP_EXCEEDED,
            file_names
        )
        self.limit_bytes = limit_bytes


class CorruptOrProtectedError(DocConsolidatorError):
    """Raised when a file fails structural validation."""

    def __init__(self, file_names: Iterable[str], message: str = ""):
        super().__init__(
            message or "File is not valid, is corrupted or is password-protected.",
            ErrorCode.CORRUPT_OR_PROTECTED,
            file_names
        )


class InsufficientFilesError(DocConsolidatorError):
    """Raised when a merge is requested with fewer than two files."""

    def __init__(self, count: int, minimum: int = 2):
        super().__init__(
            f"Please select at least {minimum} files to merge (got {count}).",
            ErrorCode.INSUFFICIENT_FILES
        )
        self.count = count


class MergeError(DocConsolidatorError):
    """Raised when merging fails."""

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        code: ErrorCode = ErrorCode.MERGE_FAILED
    ):
        super().__init__(message, code, [file_name] if file_name else None)


class PasswordProtectedError(MergeError):
    """Raised when a document is encrypted and cannot be read during merge."""

    def __init__(self, file_name: str):
        super().__init__(
            "One or more PDFs are password-protected and cannot be merged.",
            file_name,
            ErrorCode.PASSWORD_PROTECTED
        )


class CorruptFileError(MergeError):
    """Raised when a document cannot be parsed during merge."""

    def __init__(self, file_name: str, message: str = ""):
        super().__init__(
            message or "One or more files are corrupted.",
            file_name,
            ErrorCode.CORRUPT
        )


class MergeInProgressError(DocConsolidatorError):
    """Raised when a merge is requested while another one is running."""

    def __init__(self):
        super().__init__(
            "A merge is already in progress.",
            ErrorCode.MERGE_IN_PROGRESS
        )


class OutputWriteError(DocConsolidatorError):
    """Raised when output file cannot be written."""

    def __init__(self, message: str, file_name: str):
        super().__init__(message, ErrorCode.OUTPUT_WRITE_FAILED, [file_name])
