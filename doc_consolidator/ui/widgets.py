"""
Reusable UI widgets for Document Consolidator.
"""
from pathlib import Path
from typing import Optional, List

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QDragEnterEvent, QDropEvent
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QDialog, QProgressBar, QFrame, QSizePolicy
)


DROP_ZONE_STYLE = """
    DropZone {
        background-color: #f8f9fa;
        border: 2px dashed #dee2e6;
        border-radius: 8px;
    }
    DropZone:hover {
        border-color: #6c757d;
        background-color: #e9ecef;
    }
"""

DROP_ZONE_ACTIVE_STYLE = """
    DropZone {
        background-color: #e7f5ff;
        border: 2px dashed #339af0;
        border-radius: 8px;
    }
"""

DROP_ZONE_TEXT = "Drop PDF, CSV or Word files here"


class DropZone(QFrame):
    """
    A widget that accepts drag-and-drop of files.

    Folders are expanded to the files directly inside them, in name order.
    """

    files_dropped = Signal(list)  # List of file paths
    clicked = Signal()  # Emitted when zone is clicked

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setMinimumHeight(120)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setStyleSheet(DROP_ZONE_STYLE)
        self._setup_ui()

    def _setup_ui(self):
        """Set up the drop zone appearance."""
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)

        self.icon_label = QLabel("📄")
        self.icon_label.setStyleSheet("font-size: 32px; border: none; background: transparent;")
        self.icon_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.icon_label)

        self.main_label = QLabel(DROP_ZONE_TEXT)
        self.main_label.setStyleSheet("""
            font-size: 16px;
            font-weight: bold;
            color: #495057;
            border: none;
            background: transparent;
        """)
        self.main_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.main_label)

        self.sub_label = QLabel("or click to browse · all files must be the same type")
        self.sub_label.setStyleSheet("""
            font-size: 12px;
            color: #6c757d;
            border: none;
            background: transparent;
        """)
        self.sub_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.sub_label)

    def _reset_appearance(self):
        self.setStyleSheet(DROP_ZONE_STYLE)
        self.main_label.setText(DROP_ZONE_TEXT)

    def mousePressEvent(self, event):
        """Handle mouse click to trigger file browser."""
        if event.button() == Qt.LeftButton:
            self.clicked.emit()
        super().mousePressEvent(event)

    def dragEnterEvent(self, event: QDragEnterEvent):
        """Handle drag enter events."""
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
            self.setStyleSheet(DROP_ZONE_ACTIVE_STYLE)
            self.main_label.setText("Release to add files")

    def dragLeaveEvent(self, event):
        """Handle drag leave events."""
        self._reset_appearance()

    def dropEvent(self, event: QDropEvent):
        """Handle drop events."""
        self._reset_appearance()

        files: List[Path] = []
        for url in event.mimeData().urls():
            path = Path(url.toLocalFile())
            if path.is_dir():
                files.extend(sorted(p for p in path.iterdir() if p.is_file()))
            elif path.is_file():
                files.append(path)

        if files:
            self.files_dropped.emit([str(f) for f in files])

        event.acceptProposedAction()


class ProgressDialog(QDialog):
    """
    Progress dialog for merge operations.

    Merges cannot be cancelled, so the dialog has no buttons; the owner
    closes it when the merge finishes.
    """

    def __init__(self, parent: Optional[QWidget] = None, title: str = "Merging..."):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self.setMinimumWidth(400)
        self.setWindowFlags(
            self.windowFlags()
            & ~Qt.WindowContextHelpButtonHint
            & ~Qt.WindowCloseButtonHint
        )
        self._setup_ui()

    def _setup_ui(self):
        """Set up the dialog UI."""
        layout = QVBoxLayout(self)
        layout.setSpacing(12)

        self.status_label = QLabel("Preparing...")
        self.status_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.status_label)

        self.file_label = QLabel("")
        self.file_label.setStyleSheet("color: #666;")
        layout.addWidget(self.file_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        layout.addWidget(self.progress_bar)

    def update_progress(self, current: int, total: int, current_file: str = ""):
        """Update the progress display."""
        percent = (current / total) * 100 if total else 0
        self.progress_bar.setValue(int(percent))
        self.status_label.setText(f"Merging {current} of {total}...")
        if current_file:
            # Truncate long filenames
            if len(current_file) > 50:
                current_file = "..." + current_file[-47:]
            self.file_label.setText(current_file)
