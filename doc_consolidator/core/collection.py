"""
Ordered file collection for Document Consolidator.

Holds the validated files in merge order, enforces the single-kind and
total-size invariants, and tracks the keyboard selection.
"""
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .detect import detect
from .errors import (
    UnsupportedFormatError, MixedKindsError, SizeCapExceededError,
    CorruptOrProtectedError
)
from .models import (
    AddResult, Direction, ManagedFile, PdfFile, CsvFile, SourceFile,
    SupportedKind, MAX_TOTAL_SIZE_BYTES
)
from .sanitize import get_logger
from .validate import validate_batch


logger = get_logger()


class FileCollection:
    """
    Ordered, mutable list of accepted files.

    Insertion order is the merge order. All members share one kind and
    their summed size never exceeds ``max_total_bytes``. Only add(),
    remove(), clear() and move() change the contents.
    """

    def __init__(self, max_total_bytes: int = MAX_TOTAL_SIZE_BYTES):
        self.max_total_bytes = max_total_bytes
        self._files: List[ManagedFile] = []
        self._selected: Optional[int] = None

    # === Read-only views ===

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[ManagedFile]:
        return iter(tuple(self._files))

    def __getitem__(self, index: int) -> ManagedFile:
        return self._files[index]

    def snapshot(self) -> Tuple[ManagedFile, ...]:
        """Immutable copy of the current order."""
        return tuple(self._files)

    @property
    def names(self) -> List[str]:
        return [f.name for f in self._files]

    @property
    def kind(self) -> Optional[SupportedKind]:
        """Kind shared by all members, or None when empty."""
        return self._files[0].kind if self._files else None

    @property
    def total_size_bytes(self) -> int:
        return sum(f.size_bytes for f in self._files)

    @property
    def total_pages(self) -> int:
        return sum(f.page_count for f in self._files if isinstance(f, PdfFile))

    @property
    def total_rows(self) -> int:
        return sum(f.row_count for f in self._files if isinstance(f, CsvFile))

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected

    # === Mutations ===

    def add(self, sources: Sequence[SourceFile]) -> AddResult:
        """
        Detect, validate and append a batch of files.

        A batch that mixes kinds, conflicts with the existing kind or
        would exceed the size cap is rejected as a whole. Otherwise every
        file that passes validation is appended in submission order, and
        unsupported or invalid files are reported by name.

        Args:
            sources: Raw files in the order the user supplied them

        Returns:
            AddResult with the accepted count, rejected names and errors
        """
        result = AddResult()
        if not sources:
            return result

        supported: List[SourceFile] = []
        kinds: List[SupportedKind] = []
        unsupported: List[str] = []
        for source in sources:
            kind = detect(source)
            if kind is None:
                unsupported.append(source.name)
            else:
                supported.append(source)
                kinds.append(kind)

        if unsupported:
            result.rejected_names.extend(unsupported)
            result.errors.append(UnsupportedFormatError(unsupported))
            logger.warning(f"Rejected {len(unsupported)} unsupported file(s)")

        if not supported:
            return result

        batch_names = [s.name for s in supported]

        distinct = set(kinds)
        if self.kind is not None:
            distinct.add(self.kind)
        if len(distinct) > 1:
            if self.kind is not None and len(set(kinds)) == 1:
                message = (
                    f"Only {self.kind.label} files can be added to the current list."
                )
            else:
                message = "Files of different types cannot be merged together."
            result.rejected_names.extend(batch_names)
            result.errors.append(MixedKindsError(batch_names, message))
            logger.warning(
                f"Rejected batch of {len(supported)} file(s): mixed kinds "
                f"{sorted(k.name for k in distinct)}"
            )
            return result

        prospective = self.total_size_bytes + sum(s.size_bytes for s in supported)
        if prospective > self.max_total_bytes:
            result.rejected_names.extend(batch_names)
            result.errors.append(SizeCapExceededError(batch_names, self.max_total_bytes))
            logger.warning(
                f"Rejected batch of {len(supported)} file(s): total size "
                f"{prospective} exceeds {self.max_total_bytes}"
            )
            return result

        invalid: List[str] = []
        accepted: List[ManagedFile] = []
        for outcome in validate_batch(supported, kinds):
            if isinstance(outcome, CorruptOrProtectedError):
                invalid.extend(outcome.file_names)
            else:
                accepted.append(outcome)

        if invalid:
            result.rejected_names.extend(invalid)
            result.errors.append(CorruptOrProtectedError(invalid))
            logger.warning(f"Rejected {len(invalid)} invalid file(s)")

        self._files.extend(accepted)
        result.accepted = len(accepted)
        if accepted:
            logger.info(
                f"Added {len(accepted)} {accepted[0].kind.name} file(s), "
                f"collection now has {len(self._files)}"
            )
        return result

    def remove(self, index: int) -> ManagedFile:
        """
        Remove one entry, keeping the others in order.

        If the removed entry was selected, the selection moves to the
        previous entry, else to the first one, else clears. If an earlier
        entry was removed, the selection keeps pointing at the same file.

        Raises:
            IndexError: if index is out of range
        """
        self._check_index(index)
        removed = self._files.pop(index)

        if self._selected is not None:
            if self._selected == index:
                if index > 0:
                    self._selected = index - 1
                elif self._files:
                    self._selected = 0
                else:
                    self._selected = None
            elif self._selected > index:
                self._selected -= 1

        logger.info(f"Removed {removed.name} from position {index + 1}")
        return removed

    def clear(self) -> None:
        """Remove all entries."""
        self._files.clear()
        self._selected = None
        logger.info("Collection cleared")

    def move(self, index: int, direction: Union[Direction, str]) -> bool:
        """
        Swap an entry with its neighbor.

        The first entry cannot move up and the last cannot move down;
        those calls change nothing. After a swap the selection follows
        the moved entry.

        Returns:
            True if the entry moved

        Raises:
            IndexError: if index is out of range
        """
        direction = Direction(direction)
        self._check_index(index)

        target = index - 1 if direction == Direction.UP else index + 1
        if target < 0 or target >= len(self._files):
            return False

        self._files[index], self._files[target] = self._files[target], self._files[index]
        self._selected = target
        return True

    def select(self, index: Optional[int]) -> None:
        """
        Select one entry for keyboard actions, or clear with None.

        Raises:
            IndexError: if index is out of range
        """
        if index is not None:
            self._check_index(index)
        self._selected = index

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._files):
            raise IndexError(f"No file at position {index}")
