"""
Main window for Document Consolidator application.
"""
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import Qt, Signal, Slot, QThread, QObject
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QTableWidget, QTableWidgetItem, QHeaderView, QFileDialog, QMessageBox,
    QGroupBox, QLineEdit, QAbstractItemView
)

from ..core.errors import DocConsolidatorError
from ..core.models import (
    AddResult, Direction, MergeProgress, MergeResult, MergeState, SourceFile,
    format_file_size
)
from ..core.merge_service import MergeService
from ..core.packaging import deliver, find_unique_path, output_filename
from ..core.sanitize import get_logger
from ..core.settings import OutputPreference
from ..core.version import __app_name__, get_full_app_title

from .widgets import DropZone, ProgressDialog


logger = get_logger()

SUCCESS_MESSAGE_TIMEOUT_MS = 5000

OPEN_FILE_FILTER = (
    "Supported Files (*.pdf *.csv *.docx *.doc);;"
    "PDF Files (*.pdf);;CSV Files (*.csv);;Word Files (*.docx *.doc);;"
    "All Files (*.*)"
)


class AddFilesWorker(QObject):
    """
    Worker for validating and adding files in a background thread.
    """

    finished = Signal(object)  # AddResult
    error = Signal(str)

    def __init__(self, service: MergeService, paths: List[str]):
        super().__init__()
        self.service = service
        self.paths = paths

    @Slot()
    def run(self):
        """Build source handles and add them to the collection."""
        try:
            sources = [SourceFile.from_path(p) for p in self.paths]
            result = self.service.add_files(sources)
            self.finished.emit(result)
        except Exception as e:
            logger.exception("Add files worker error")
            self.error.emit(str(e))


class MergeWorker(QObject):
    """
    Worker for running merge operations in a background thread.
    """

    progress = Signal(int, int, str)  # current, total, current_file
    finished = Signal(object)  # MergeResult
    error = Signal(str)

    def __init__(self, service: MergeService):
        super().__init__()
        self.service = service

    @Slot()
    def run(self):
        """Run the merge operation."""
        try:
            def progress_callback(p: MergeProgress):
                self.progress.emit(p.current_index, p.total_files, p.current_file)

            logger.info("MergeWorker: Starting merge...")
            result = self.service.merge(progress_callback=progress_callback)
            logger.info(f"MergeWorker: Merge returned - success={result.success}")
            self.finished.emit(result)
        except Exception as e:
            logger.exception("Merge worker error")
            self.error.emit(str(e))


class MainWindow(QMainWindow):
    """
    Main application window for Document Consolidator.
    """

    state_changed = Signal(object)  # MergeState

    def __init__(self, preference: OutputPreference):
        super().__init__()
        self.setWindowTitle(get_full_app_title())
        self.preference = preference
        self.service = MergeService(preference=preference)
        self.worker_thread: Optional[QThread] = None
        self.worker: Optional[QObject] = None
        self.progress_dialog: Optional[ProgressDialog] = None
        self.last_save_dir = Path.home()

        self._setup_ui()
        self._setup_shortcuts()
        self._connect_signals()
        self._refresh_table()
        self._update_status()

        logger.info(f"{__app_name__} window created")

    # === Layout ===

    def _setup_ui(self):
        """Set up the user interface."""
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setSpacing(12)
        main_layout.setContentsMargins(16, 16, 16, 16)

        title = QLabel(__app_name__)
        title.setStyleSheet("font-size: 24px; font-weight: bold; color: #212529;")
        main_layout.addWidget(title)

        self.drop_zone = DropZone()
        main_layout.addWidget(self.drop_zone)

        main_layout.addLayout(self._create_button_row())

        self.file_table = self._create_file_table()
        main_layout.addWidget(self.file_table, stretch=1)

        main_layout.addWidget(self._create_output_section())

        self.status_bar = self.statusBar()
        self.resize(900, 650)

    def _setup_shortcuts(self):
        """Set up keyboard shortcuts."""
        QShortcut(QKeySequence("Ctrl+O"), self).activated.connect(self._on_add_files)
        QShortcut(QKeySequence("Ctrl+M"), self).activated.connect(self._on_merge)

        # Table-scoped so typing in the filename field is unaffected
        for key in (QKeySequence.Delete, QKeySequence(Qt.Key_Backspace)):
            shortcut = QShortcut(key, self.file_table)
            shortcut.setContext(Qt.WidgetShortcut)
            shortcut.activated.connect(self._on_remove_selected)

        move_up = QShortcut(QKeySequence("Alt+Up"), self.file_table)
        move_up.setContext(Qt.WidgetShortcut)
        move_up.activated.connect(self._on_move_up)

        move_down = QShortcut(QKeySequence("Alt+Down"), self.file_table)
        move_down.setContext(Qt.WidgetShortcut)
        move_down.activated.connect(self._on_move_down)

    def _create_button_row(self) -> QHBoxLayout:
        """Create action buttons row."""
        layout = QHBoxLayout()

        self.add_files_btn = QPushButton("Add Files")
        self.add_files_btn.setToolTip("Select files to add (Ctrl+O)")
        layout.addWidget(self.add_files_btn)

        layout.addStretch()

        self.move_up_btn = QPushButton("▲ Up")
        self.move_up_btn.setToolTip("Move selected file up (Alt+Up)")
        layout.addWidget(self.move_up_btn)

        self.move_down_btn = QPushButton("▼ Down")
        self.move_down_btn.setToolTip("Move selected file down (Alt+Down)")
        layout.addWidget(self.move_down_btn)

        self.remove_btn = QPushButton("Remove")
        self.remove_btn.setToolTip("Remove selected file (Delete)")
        layout.addWidget(self.remove_btn)

        layout.addStretch()

        self.clear_btn = QPushButton("Clear All")
        self.clear_btn.setToolTip("Remove all files")
        layout.addWidget(self.clear_btn)

        self.merge_btn = QPushButton("  Merge  ")
        self.merge_btn.setToolTip("Merge all files in order (Ctrl+M)")
        self.merge_btn.setStyleSheet("""
            QPushButton {
                background-color: #0d6efd;
                color: white;
                font-weight: bold;
                padding: 8px 16px;
                border: none;
                border-radius: 4px;
            }
            QPushButton:hover {
                background-color: #0b5ed7;
            }
            QPushButton:disabled {
                background-color: #6c757d;
            }
        """)
        layout.addWidget(self.merge_btn)

        return layout

    def _create_file_table(self) -> QTableWidget:
        """Create file list table."""
        table = QTableWidget()
        table.setColumnCount(5)
        table.setHorizontalHeaderLabels(["#", "File Name", "Type", "Size", "Details"])

        header = table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.Fixed)
        header.setSectionResizeMode(1, QHeaderView.Stretch)
        header.setSectionResizeMode(2, QHeaderView.Fixed)
        header.setSectionResizeMode(3, QHeaderView.Fixed)
        header.setSectionResizeMode(4, QHeaderView.Fixed)

        table.setColumnWidth(0, 40)
        table.setColumnWidth(2, 100)
        table.setColumnWidth(3, 90)
        table.setColumnWidth(4, 90)

        table.setSelectionBehavior(QAbstractItemView.SelectRows)
        table.setSelectionMode(QAbstractItemView.SingleSelection)
        table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        table.setAlternatingRowColors(True)
        table.verticalHeader().setVisible(False)

        return table

    def _create_output_section(self) -> QGroupBox:
        """Create output configuration section."""
        group = QGroupBox("Output")
        layout = QHBoxLayout(group)

        layout.addWidget(QLabel("Filename:"))

        self.filename_edit = QLineEdit()
        self.filename_edit.setText(self.preference.filename_stem)
        self.filename_edit.setToolTip("The extension is added automatically")
        layout.addWidget(self.filename_edit, stretch=1)

        self.extension_label = QLabel("")
        self.extension_label.setStyleSheet("color: #6c757d;")
        layout.addWidget(self.extension_label)

        return group

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.drop_zone.files_dropped.connect(self._on_files_dropped)
        self.drop_zone.clicked.connect(self._on_add_files)

        self.add_files_btn.clicked.connect(self._on_add_files)
        self.move_up_btn.clicked.connect(self._on_move_up)
        self.move_down_btn.clicked.connect(self._on_move_down)
        self.remove_btn.clicked.connect(self._on_remove_selected)
        self.clear_btn.clicked.connect(self._on_clear)
        self.merge_btn.clicked.connect(self._on_merge)

        self.file_table.itemSelectionChanged.connect(self._on_selection_changed)
        self.filename_edit.editingFinished.connect(self._on_filename_changed)

        # State listeners fire on worker threads; the signal queues to the UI thread
        self.state_changed.connect(self._on_state_changed)
        self.service.add_state_listener(self.state_changed.emit)

    # === Display ===

    def _refresh_table(self):
        """Refresh the file table display and restore the selection."""
        collection = self.service.collection
        self.file_table.blockSignals(True)
        self.file_table.setRowCount(len(collection))

        for i, managed in enumerate(collection):
            cells = [
                str(i + 1),
                managed.name,
                managed.kind.label,
                managed.size_display,
                managed.detail_display,
            ]
            for column, text in enumerate(cells):
                item = QTableWidgetItem(text)
                if column in (0, 4):
                    item.setTextAlignment(Qt.AlignCenter)
                elif column == 3:
                    item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.file_table.setItem(i, column, item)

        self.file_table.clearSelection()
        selected = collection.selected_index
        if selected is not None:
            self.file_table.selectRow(selected)
        self.file_table.blockSignals(False)

    def _update_status(self):
        """Update status bar and button states."""
        collection = self.service.collection
        busy = self.service.state in (MergeState.VALIDATING, MergeState.MERGING)
        selected = collection.selected_index
        total = len(collection)

        self.add_files_btn.setEnabled(not busy)
        self.drop_zone.setEnabled(not busy)
        self.clear_btn.setEnabled(not busy and total > 0)
        self.remove_btn.setEnabled(not busy and selected is not None)
        self.move_up_btn.setEnabled(not busy and selected is not None and selected > 0)
        self.move_down_btn.setEnabled(
            not busy and selected is not None and selected < total - 1
        )
        self.merge_btn.setEnabled(self.service.state == MergeState.READY)

        kind = collection.kind
        self.extension_label.setText(kind.extension if kind else "")
        if kind is not None:
            self.merge_btn.setText(f"  Merge {kind.label} Files  ")
        else:
            self.merge_btn.setText("  Merge  ")

        if total == 0:
            self.status_bar.showMessage("Ready - Add files to begin")
            return

        parts = [f"{total} file{'s' if total != 1 else ''}", format_file_size(collection.total_size_bytes)]
        if collection.total_pages:
            parts.append(f"{collection.total_pages} pages")
        if collection.total_rows:
            parts.append(f"{collection.total_rows} rows")
        if total < 2:
            parts.append("add at least one more file to merge")
        self.status_bar.showMessage(" | ".join(parts))

    # === Background work ===

    def _start_worker(self, worker: QObject):
        """Move a worker to a fresh thread and start it."""
        self.worker_thread = QThread()
        self.worker = worker
        worker.moveToThread(self.worker_thread)

        self.worker_thread.started.connect(worker.run)
        worker.finished.connect(self.worker_thread.quit)
        worker.error.connect(self.worker_thread.quit)
        self.worker_thread.finished.connect(self._cleanup_worker_thread)

        self.worker_thread.start()

    @Slot()
    def _cleanup_worker_thread(self):
        """Clean up thread and worker after completion."""
        if self.worker is not None:
            self.worker.deleteLater()
            self.worker = None
        if self.worker_thread is not None:
            self.worker_thread.deleteLater()
            self.worker_thread = None

    def _add_files(self, file_paths: List[str]):
        """Validate and add files in the background."""
        if not file_paths or self.worker_thread is not None:
            return

        logger.info(f"Adding {len(file_paths)} file(s)")
        worker = AddFilesWorker(self.service, file_paths)
        worker.finished.connect(self._on_files_added)
        worker.error.connect(self._on_worker_error)
        self._start_worker(worker)

    # === Slots ===

    @Slot(object)
    def _on_state_changed(self, state: MergeState):
        logger.debug(f"UI sees merge state {state.name}")
        self._update_status()

    @Slot(list)
    def _on_files_dropped(self, paths: List[str]):
        """Handle files dropped on drop zone."""
        logger.info(f"Files dropped: {len(paths)} items")
        self._add_files(paths)

    @Slot()
    def _on_add_files(self):
        """Handle Add Files button click."""
        if self.worker_thread is not None:
            return
        files, _ = QFileDialog.getOpenFileNames(
            self,
            "Select Files",
            "",
            OPEN_FILE_FILTER
        )
        if files:
            self._add_files(files)

    @Slot(object)
    def _on_files_added(self, result: AddResult):
        """Show the outcome of an add operation."""
        self._refresh_table()
        self._update_status()

        if result.errors:
            QMessageBox.warning(self, "Some Files Were Not Added", result.message)
        elif result.accepted:
            self.status_bar.showMessage(
                f"Added {result.accepted} file{'s' if result.accepted != 1 else ''}",
                SUCCESS_MESSAGE_TIMEOUT_MS
            )

    @Slot()
    def _on_selection_changed(self):
        """Mirror the table selection into the collection."""
        rows = {index.row() for index in self.file_table.selectionModel().selectedRows()}
        self.service.collection.select(min(rows) if rows else None)
        self._update_status()

    @Slot()
    def _on_move_up(self):
        self._move_selected(Direction.UP)

    @Slot()
    def _on_move_down(self):
        self._move_selected(Direction.DOWN)

    def _move_selected(self, direction: Direction):
        """Move the selected file one position."""
        selected = self.service.collection.selected_index
        if selected is None or self.worker_thread is not None:
            return
        if self.service.move_file(selected, direction):
            self._refresh_table()
            self._update_status()

    @Slot()
    def _on_remove_selected(self):
        """Remove the selected file."""
        selected = self.service.collection.selected_index
        if selected is None or self.worker_thread is not None:
            return
        self.service.remove_file(selected)
        self._refresh_table()
        self._update_status()

    @Slot()
    def _on_clear(self):
        """Handle Clear button click."""
        if self.worker_thread is not None or not len(self.service.collection):
            return
        result = QMessageBox.question(
            self,
            "Clear List",
            f"Remove all {len(self.service.collection)} files from the list?",
            QMessageBox.Yes | QMessageBox.No
        )
        if result == QMessageBox.Yes:
            self.service.clear()
            self._refresh_table()
            self._update_status()

    @Slot()
    def _on_filename_changed(self):
        """Persist the output filename preference."""
        self.preference.set_stem(self.filename_edit.text().strip())

    @Slot()
    def _on_merge(self):
        """Handle Merge button click."""
        if self.worker_thread is not None:
            return
        if self.service.state != MergeState.READY:
            QMessageBox.warning(
                self,
                "Not Enough Files",
                "Please select at least 2 files to merge."
            )
            return

        self._on_filename_changed()

        self.progress_dialog = ProgressDialog(self, "Merging Files...")
        worker = MergeWorker(self.service)
        worker.progress.connect(self._on_merge_progress)
        worker.finished.connect(self._on_merge_finished)
        worker.error.connect(self._on_worker_error)
        self._start_worker(worker)
        self.progress_dialog.show()

    @Slot(int, int, str)
    def _on_merge_progress(self, current: int, total: int, current_file: str):
        """Handle merge progress update."""
        if self.progress_dialog is not None:
            self.progress_dialog.update_progress(current, total, current_file)

    @Slot(object)
    def _on_merge_finished(self, result: MergeResult):
        """Handle merge completion and hand the output to a save dialog."""
        self._close_progress_dialog()
        self._update_status()

        if not result.success:
            QMessageBox.critical(self, "Merge Failed", result.summary)
            return

        packaged = result.output
        suggested = find_unique_path(self.last_save_dir / packaged.filename)
        path_str, _ = QFileDialog.getSaveFileName(
            self,
            "Save Merged File",
            str(suggested),
            f"{result.kind.label} (*{result.kind.extension})"
        )
        if not path_str:
            logger.info("Save cancelled by user")
            return

        path = Path(path_str)
        if path.suffix.lower() != result.kind.extension:
            path = path.with_name(output_filename(result.kind, path.name))

        try:
            saved = deliver(packaged, path)
        except DocConsolidatorError as e:
            QMessageBox.critical(self, "Save Failed", e.message)
            return

        self.last_save_dir = saved.parent
        self.status_bar.showMessage(result.summary.replace("\n", " | "), SUCCESS_MESSAGE_TIMEOUT_MS)

    @Slot(str)
    def _on_worker_error(self, error_message: str):
        """Handle an unexpected worker error."""
        self._close_progress_dialog()
        self._refresh_table()
        self._update_status()
        QMessageBox.critical(
            self,
            "Error",
            f"An error occurred:\n\n{error_message}"
        )
        logger.error(f"Worker error: {error_message}")

    def _close_progress_dialog(self):
        if self.progress_dialog is not None:
            self.progress_dialog.close()
            self.progress_dialog = None

    def closeEvent(self, event):
        """Refuse to close while a worker thread is running."""
        if self.worker_thread is not None:
            if self.service.is_merging:
                message = "Please wait for the merge to finish."
            else:
                message = "Please wait for the files to finish loading."
            QMessageBox.information(self, "Please Wait", message)
            event.ignore()
            return
        self._on_filename_changed()
        logger.info("Application closed")
        event.accept()
