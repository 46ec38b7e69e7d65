"""
Output naming and delivery for Document Consolidator.
"""
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Union

from .errors import OutputWriteError
from .models import PackagedOutput, SupportedKind
from .sanitize import get_logger, sanitize_path_for_log
from .settings import DEFAULT_FILENAME_STEM


logger = get_logger()


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing invalid characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename safe for Windows/Unix (may be empty)
    """
    # Remove or replace invalid characters
    invalid_chars = r'[<>:"/\\|?*\x00-\x1f]'
    sanitized = re.sub(invalid_chars, '_', filename)

    # Remove leading/trailing spaces and dots
    return sanitized.strip(' .')


def output_filename(kind: SupportedKind, stem: str) -> str:
    """
    Build the output filename for a kind from a user-supplied stem.

    The canonical extension is appended unless the stem already ends
    with it (case-insensitive).
    """
    extension = kind.extension
    stem = (stem or "").strip()
    name = "" if stem.lower() == extension else sanitize_filename(stem)
    if not name:
        name = DEFAULT_FILENAME_STEM
    if name.lower().endswith(extension):
        return name
    return name + extension


def package_output(
    kind: SupportedKind,
    payload: Union[bytes, str],
    stem: str
) -> PackagedOutput:
    """
    Wrap merged content for delivery.

    Args:
        kind: Kind of the merged documents
        payload: Merged bytes (text is encoded as UTF-8)
        stem: Requested output name, with or without extension

    Returns:
        PackagedOutput with filename, media type and payload
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return PackagedOutput(
        filename=output_filename(kind, stem),
        media_type=kind.output_media_type,
        payload=payload,
    )


def find_unique_path(base_path: Path) -> Path:
    """
    Find a unique path by appending numbers if file exists.

    Uses format: name_01.pdf, name_02.pdf, etc.

    Args:
        base_path: Desired path

    Returns:
        Unique path that doesn't exist
    """
    if not base_path.exists():
        return base_path

    stem = base_path.stem
    suffix = base_path.suffix
    parent = base_path.parent

    counter = 1
    while True:
        new_path = parent / f"{stem}_{counter:02d}{suffix}"
        if not new_path.exists():
            return new_path
        counter += 1
        if counter > 1000:  # Safety limit
            raise ValueError("Could not find unique filename")


def deliver(packaged: PackagedOutput, destination: Union[str, Path]) -> Path:
    """
    Save packaged output, writing atomically via a temp file.

    Args:
        packaged: Output to save
        destination: Target file path, or a directory to save
            packaged.filename into

    Returns:
        Path the output was written to

    Raises:
        OutputWriteError: if the file cannot be written
    """
    destination = Path(destination)
    if destination.is_dir():
        destination = destination / packaged.filename

    safe_output = sanitize_path_for_log(destination)
    temp_path = None
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)

        # Temp file in the target directory so the final move is a rename
        temp_fd, temp_name = tempfile.mkstemp(
            suffix=destination.suffix, dir=destination.parent
        )
        temp_path = Path(temp_name)
        with os.fdopen(temp_fd, 'wb') as f:
            f.write(packaged.payload)

        shutil.move(str(temp_path), str(destination))
        temp_path = None
    except OSError as e:
        logger.error(f"Failed to write output {safe_output}: {e}")
        raise OutputWriteError(f"Failed to write output: {e}", packaged.filename)
    finally:
        # Clean up temp file on error
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()

    logger.info(f"Output written to {safe_output} ({len(packaged.payload)} bytes)")
    return destination
