"""
Document merging service for Document Consolidator.

Handles the core merge logic without any Qt dependencies for testability.
Each document kind has a merge strategy written as a fold over the ordered
file list: start() creates the accumulator, step() consumes one file and
finish() serializes the result.
"""
import csv
import io
import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from docx import Document
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError, FileNotDecryptedError

from .collection import FileCollection
from .errors import (
    DocConsolidatorError, MergeError, PasswordProtectedError, CorruptFileError,
    InsufficientFilesError, MixedKindsError, MergeInProgressError
)
from .models import (
    Direction, ManagedFile, MergeJob, MergeOutput, MergeProgress, MergeResult,
    MergeState, PdfFile, CsvFile, ProgressCallback, SourceFile, SupportedKind,
    AddResult
)
from .packaging import package_output
from .sanitize import get_logger
from .settings import OutputPreference
from .validate import decode_csv_text, extract_docx_text, is_pdf_bytes, parse_csv_rows
from .version import __app_name__


logger = get_logger()


MIN_MERGE_FILES = 2

LEGACY_DOC_PLACEHOLDER = "[Could not process legacy Word document: {name}]"

StateListener = Callable[[MergeState], None]


class MergeStrategy:
    """Base class for per-kind merge folds."""

    media_type = ""

    def start(self) -> Any:
        """Create the empty accumulator."""
        raise NotImplementedError

    def step(self, acc: Any, managed: ManagedFile, data: bytes) -> Any:
        """Consume one file and return the new accumulator."""
        raise NotImplementedError

    def finish(self, acc: Any) -> bytes:
        """Serialize the accumulator."""
        raise NotImplementedError


class PdfMergeStrategy(MergeStrategy):
    """Appends every page of every input, in order."""

    media_type = SupportedKind.PDF.output_media_type

    def __init__(self, normalize_metadata: bool = True):
        self.normalize_metadata = normalize_metadata

    def start(self) -> PdfWriter:
        return PdfWriter()

    def step(self, acc: PdfWriter, managed: ManagedFile, data: bytes) -> PdfWriter:
        if not is_pdf_bytes(data):
            raise CorruptFileError(managed.name)
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted and not reader.decrypt(""):
                raise PasswordProtectedError(managed.name)
            for page in reader.pages:
                acc.add_page(page)
        except FileNotDecryptedError:
            raise PasswordProtectedError(managed.name)
        except PdfReadError as e:
            logger.warning(f"Failed to read PDF {managed.name}: {e}")
            raise CorruptFileError(managed.name)
        return acc

    def finish(self, acc: PdfWriter) -> bytes:
        if self.normalize_metadata:
            acc.add_metadata({
                '/Producer': __app_name__,
                '/Creator': __app_name__,
                '/Author': '',
            })
        buffer = io.BytesIO()
        acc.write(buffer)
        return buffer.getvalue()


class CsvAccumulator(NamedTuple):
    """Running CSV merge state."""
    header: Optional[Tuple[str, ...]]
    rows: Tuple[Tuple[str, ...], ...]
    files_seen: int


class CsvMergeStrategy(MergeStrategy):
    """
    Concatenates rows, keeping the header of the first file only.

    Row 0 of every file after the first is treated as a repeated header
    and dropped. If the first file was empty the header ends up missing
    from the output; finish() puts the captured header back at the top.

    Blank lines are not rows, so blank lines inside an input do not
    appear in the merged output.
    """

    media_type = SupportedKind.CSV.output_media_type

    def start(self) -> CsvAccumulator:
        return CsvAccumulator(header=None, rows=(), files_seen=0)

    def step(self, acc: CsvAccumulator, managed: ManagedFile, data: bytes) -> CsvAccumulator:
        try:
            table = [tuple(row) for row in parse_csv_rows(decode_csv_text(data))]
        except csv.Error as e:
            logger.warning(f"Failed to parse CSV {managed.name}: {e}")
            raise CorruptFileError(managed.name, "One or more CSV files could not be parsed.")

        header = acc.header
        if header is None and table:
            header = table[0]
        taken = table if acc.files_seen == 0 else table[1:]
        return CsvAccumulator(
            header=header,
            rows=acc.rows + tuple(taken),
            files_seen=acc.files_seen + 1,
        )

    def finish(self, acc: CsvAccumulator) -> bytes:
        rows = list(acc.rows)
        if acc.header is not None and (not rows or rows[0] != acc.header):
            rows.insert(0, acc.header)
        buffer = io.StringIO(newline="")
        writer = csv.writer(buffer)
        writer.writerows(rows)
        return buffer.getvalue().encode("utf-8")


class WordMergeStrategy(MergeStrategy):
    """
    Rebuilds documents as plain paragraphs, one per non-empty line.

    Formatting is not carried over. Legacy .doc files cannot be read
    and get a placeholder paragraph instead.
    """

    media_type = SupportedKind.WORD_DOCX.output_media_type

    def start(self) -> List[Tuple[str, ...]]:
        return []

    def step(self, acc: List[Tuple[str, ...]], managed: ManagedFile, data: bytes) -> List[Tuple[str, ...]]:
        if managed.kind == SupportedKind.WORD_DOC:
            lines = (LEGACY_DOC_PLACEHOLDER.format(name=managed.name),)
        else:
            try:
                text = extract_docx_text(data)
            except Exception as e:
                logger.warning(f"Failed to read Word document {managed.name}: {e}")
                raise CorruptFileError(managed.name, "One or more Word documents are corrupted.")
            lines = tuple(line for line in text.splitlines() if line.strip())
        return acc + [lines]

    def finish(self, acc: List[Tuple[str, ...]]) -> bytes:
        document = Document()
        for position, lines in enumerate(acc):
            if position > 0:
                document.add_page_break()
            for line in lines:
                document.add_paragraph(line)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()


def default_strategies(normalize_metadata: bool = True) -> Dict[SupportedKind, MergeStrategy]:
    """Strategy table keyed by document kind."""
    word = WordMergeStrategy()
    return {
        SupportedKind.PDF: PdfMergeStrategy(normalize_metadata=normalize_metadata),
        SupportedKind.CSV: CsvMergeStrategy(),
        SupportedKind.WORD_DOCX: word,
        SupportedKind.WORD_DOC: word,
    }


class MergeEngine:
    """
    Runs the merge strategy for one kind over an ordered file list.

    Files are processed strictly in order. Any failure discards the
    partial result.
    """

    def __init__(self, strategies: Optional[Dict[SupportedKind, MergeStrategy]] = None):
        self.strategies = strategies or default_strategies()

    def merge(
        self,
        kind: SupportedKind,
        files: Sequence[ManagedFile],
        on_progress: Optional[ProgressCallback] = None
    ) -> MergeOutput:
        """
        Merge files of one kind into a single document.

        Args:
            kind: Kind shared by all files
            files: Files in merge order
            on_progress: Called once per file after it has been appended

        Returns:
            MergeOutput with the merged bytes and media type

        Raises:
            InsufficientFilesError: fewer than two files
            MixedKindsError: a file has a different kind
            MergeError: a file could not be read or merged
        """
        if len(files) < MIN_MERGE_FILES:
            raise InsufficientFilesError(len(files), MIN_MERGE_FILES)
        mismatched = [f.name for f in files if f.kind != kind]
        if mismatched:
            raise MixedKindsError(mismatched)

        strategy = self.strategies[kind]
        job = MergeJob(kind=kind, files=tuple(files))
        acc = strategy.start()

        for index, managed in enumerate(job.files):
            job.current_index = index
            data = self._read(managed)
            try:
                acc = strategy.step(acc, managed, data)
            except DocConsolidatorError:
                raise
            except Exception as e:
                logger.error(f"Error processing {managed.name}: {e}")
                raise MergeError(f"Failed to merge {managed.name}: {e}", managed.name)
            logger.info(f"Merged {managed.name} ({index + 1}/{job.total_count})")

            if on_progress:
                on_progress(MergeProgress(
                    current_file=managed.name,
                    current_index=index + 1,
                    total_files=job.total_count,
                ))

        try:
            payload = strategy.finish(acc)
        except Exception as e:
            logger.error(f"Failed to serialize merged {kind.name} output: {e}")
            raise MergeError(f"Failed to write merged output: {e}")

        return MergeOutput(payload=payload, media_type=strategy.media_type)

    @staticmethod
    def _read(managed: ManagedFile) -> bytes:
        if managed.kind == SupportedKind.WORD_DOC:
            # Legacy files are never parsed, so don't load them
            return b""
        try:
            return managed.source.read_bytes()
        except OSError as e:
            logger.warning(f"Could not read {managed.name}: {e}")
            raise MergeError(f"Could not read file: {e}", managed.name)


class MergeService:
    """
    Merge workflow around a file collection.

    Owns the lifecycle state machine:

        IDLE -> VALIDATING -> READY -> MERGING -> SUCCEEDED/FAILED -> IDLE/READY

    A merge may only start from READY, so a second merge request while
    one is running is rejected.
    """

    def __init__(
        self,
        preference: Optional[OutputPreference] = None,
        collection: Optional[FileCollection] = None,
        engine: Optional[MergeEngine] = None
    ):
        self.preference = preference or OutputPreference()
        self.collection = collection if collection is not None else FileCollection()
        self.engine = engine or MergeEngine()
        self._state = MergeState.IDLE
        self._listeners: List[StateListener] = []
        self._settle()

    @property
    def state(self) -> MergeState:
        return self._state

    @property
    def is_merging(self) -> bool:
        return self._state == MergeState.MERGING

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked on every state transition."""
        self._listeners.append(listener)

    def _set_state(self, state: MergeState) -> None:
        if state == self._state:
            return
        logger.debug(f"Merge state {self._state.name} -> {state.name}")
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _settle(self) -> None:
        self._set_state(
            MergeState.READY if len(self.collection) >= MIN_MERGE_FILES else MergeState.IDLE
        )

    def _guard_mutation(self) -> None:
        if self.is_merging:
            raise MergeInProgressError()

    # === Collection operations ===

    def add_files(self, sources: Sequence[SourceFile]) -> AddResult:
        """Validate and add a batch of files."""
        self._guard_mutation()
        self._set_state(MergeState.VALIDATING)
        try:
            return self.collection.add(sources)
        finally:
            self._settle()

    def remove_file(self, index: int) -> ManagedFile:
        self._guard_mutation()
        try:
            return self.collection.remove(index)
        finally:
            self._settle()

    def move_file(self, index: int, direction: Union[Direction, str]) -> bool:
        self._guard_mutation()
        return self.collection.move(index, direction)

    def clear(self) -> None:
        self._guard_mutation()
        self.collection.clear()
        self._settle()

    # === Merge ===

    def merge(self, progress_callback: Optional[ProgressCallback] = None) -> MergeResult:
        """
        Merge the current collection and package the output.

        The collection is left untouched whatever the outcome.

        Args:
            progress_callback: Optional callback for progress updates

        Returns:
            MergeResult; on failure ``error`` holds the reason

        Raises:
            MergeInProgressError: if a merge is already running
        """
        if self._state == MergeState.MERGING:
            raise MergeInProgressError()

        files = self.collection.snapshot()
        kind = self.collection.kind
        if self._state != MergeState.READY or kind is None:
            error = InsufficientFilesError(len(files), MIN_MERGE_FILES)
            logger.warning(error.message)
            return MergeResult(success=False, kind=kind, error=error)

        self._set_state(MergeState.MERGING)
        start_time = time.time()
        logger.info(f"Starting merge of {len(files)} {kind.name} files")

        try:
            output = self.engine.merge(kind, files, progress_callback)
        except DocConsolidatorError as e:
            logger.error(f"Merge failed: {e}")
            self._set_state(MergeState.FAILED)
            self._settle()
            return MergeResult(
                success=False,
                kind=kind,
                error=e,
                duration_seconds=time.time() - start_time,
            )
        except Exception as e:
            logger.exception("Unexpected merge error")
            self._set_state(MergeState.FAILED)
            self._settle()
            return MergeResult(
                success=False,
                kind=kind,
                error=MergeError(str(e) or type(e).__name__),
                duration_seconds=time.time() - start_time,
            )

        packaged = package_output(kind, output.payload, self.preference.filename_stem)
        result = MergeResult(
            success=True,
            output=packaged,
            kind=kind,
            merged_count=len(files),
            total_pages=sum(f.page_count for f in files if isinstance(f, PdfFile)),
            total_rows=sum(f.row_count for f in files if isinstance(f, CsvFile)),
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            f"Merge complete: {result.merged_count} files, "
            f"{len(packaged.payload)} bytes, {result.duration_seconds:.1f}s"
        )
        self._set_state(MergeState.SUCCEEDED)
        self._settle()
        return result
