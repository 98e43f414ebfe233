"""
Reusable UI widgets for PDF Joiner.
"""
import base64
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from PySide6.QtCore import Qt, Signal, QSize
from PySide6.QtGui import QDragEnterEvent, QDropEvent, QFont, QIcon, QPixmap
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QDialog, QTextEdit, QMessageBox, QProgressBar, QFrame, QSizePolicy,
    QGroupBox, QListWidget, QListWidgetItem, QAbstractItemView, QApplication
)

from ..core.models import DocumentRef, GhostscriptStatus
from ..core.utils import is_valid_pdf_extension


PAGE_ID_ROLE = Qt.UserRole


def pixmap_from_data_url(url: str) -> QPixmap:
    """Decode a base64 image data URL into a pixmap (null if undecodable)."""
    pixmap = QPixmap()
    header, _, payload = url.partition(",")
    if header.endswith(";base64") and payload:
        pixmap.loadFromData(base64.b64decode(payload))
    return pixmap


class DropZone(QFrame):
    """
    A widget that accepts drag-and-drop of PDF files.

    Emits files_dropped with the dropped PDF paths, or clicked when the
    zone is clicked so the caller can open a file browser.
    """

    files_dropped = Signal(list)  # List of file paths
    clicked = Signal()

    IDLE_STYLE = """
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

    ACTIVE_STYLE = """
        DropZone {
            background-color: #e7f5ff;
            border: 2px dashed #339af0;
            border-radius: 8px;
        }
    """

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setMinimumHeight(90)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self._setup_ui()

    def _setup_ui(self):
        self.setStyleSheet(self.IDLE_STYLE)

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)

        self.main_label = QLabel("Drop PDF files here")
        self.main_label.setStyleSheet("""
            font-size: 16px;
            font-weight: bold;
            color: #495057;
            border: none;
            background: transparent;
        """)
        self.main_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.main_label)

        self.sub_label = QLabel("or click to browse")
        self.sub_label.setStyleSheet("""
            font-size: 12px;
            color: #6c757d;
            border: none;
            background: transparent;
        """)
        self.sub_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.sub_label)

    def _reset(self):
        self.setStyleSheet(self.IDLE_STYLE)
        self.main_label.setText("Drop PDF files here")

    def mousePressEvent(self, event):
        """Handle mouse click to trigger file browser."""
        if event.button() == Qt.LeftButton:
            self.clicked.emit()
        super().mousePressEvent(event)

    def dragEnterEvent(self, event: QDragEnterEvent):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
            self.setStyleSheet(self.ACTIVE_STYLE)
            self.main_label.setText("Release to add files")

    def dragLeaveEvent(self, event):
        self._reset()

    def dropEvent(self, event: QDropEvent):
        self._reset()

        files: List[str] = []
        for url in event.mimeData().urls():
            path = Path(url.toLocalFile())
            if path.is_file() and is_valid_pdf_extension(path):
                files.append(str(path))

        if files:
            self.files_dropped.emit(files)
        event.acceptProposedAction()


class FileListWidget(QListWidget):
    """
    List of selected documents with their page counts.

    Emits remove_requested with the document index when the user presses
    Delete on a row.
    """

    remove_requested = Signal(int)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setAlternatingRowColors(True)
        self.setMaximumHeight(160)

    def set_documents(self, documents: Iterable[Tuple[DocumentRef, int]]):
        """Replace the rows with (document, page_count) pairs."""
        self.clear()
        for number, (document, page_count) in enumerate(documents, start=1):
            item = QListWidgetItem(
                f"{number}. {document.file_name}  ({page_count} page(s))"
            )
            item.setToolTip(str(document.file_path))
            self.addItem(item)

    def selected_index(self) -> int:
        """Row of the selected document, or -1."""
        return self.currentRow() if self.selectedItems() else -1

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Delete and self.selected_index() >= 0:
            self.remove_requested.emit(self.selected_index())
            return
        super().keyPressEvent(event)


class ThumbnailGrid(QListWidget):
    """
    Grid of page thumbnails that can be reordered by dragging.

    The grid never reorders itself. A drop onto another thumbnail emits
    reorder_requested(moved_id, target_id) and the owner rebuilds the grid
    from the new sequence.
    """

    reorder_requested = Signal(str, str)

    THUMB_SIZE = QSize(120, 160)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setViewMode(QListWidget.IconMode)
        self.setIconSize(self.THUMB_SIZE)
        self.setGridSize(QSize(150, 200))
        self.setResizeMode(QListWidget.Adjust)
        self.setMovement(QListWidget.Snap)
        self.setSpacing(8)
        self.setWordWrap(True)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setDragEnabled(True)
        self.setAcceptDrops(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.InternalMove)
        self.setDefaultDropAction(Qt.MoveAction)

    def set_pages(self, pages: Iterable[Tuple[str, str, Optional[str]]]):
        """
        Replace the grid contents.

        Args:
            pages: (page_id, caption, image_url) in display order; image_url
                may be None while the thumbnail is still being rendered
        """
        self.clear()
        for page_id, caption, image_url in pages:
            item = QListWidgetItem(caption)
            item.setData(PAGE_ID_ROLE, page_id)
            item.setTextAlignment(Qt.AlignHCenter | Qt.AlignBottom)
            if image_url:
                item.setIcon(QIcon(pixmap_from_data_url(image_url)))
            self.addItem(item)

    def set_thumbnail(self, page_id: str, image_url: str):
        """Update the icon of one page if it is shown."""
        for row in range(self.count()):
            item = self.item(row)
            if item.data(PAGE_ID_ROLE) == page_id:
                item.setIcon(QIcon(pixmap_from_data_url(image_url)))
                return

    def dropEvent(self, event: QDropEvent):
        if event.source() is not self:
            event.ignore()
            return

        moved = self.currentItem()
        target = self.itemAt(event.position().toPoint())
        # Leave item order to the owner
        event.setDropAction(Qt.IgnoreAction)
        event.accept()

        if moved is None or target is None or moved is target:
            return
        self.reorder_requested.emit(moved.data(PAGE_ID_ROLE), target.data(PAGE_ID_ROLE))


class GhostscriptStatusPanel(QGroupBox):
    """
    Shows whether Ghostscript is available and offers installation.
    """

    install_requested = Signal()
    decline_requested = Signal()
    reset_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__("Ghostscript", parent)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        row = QHBoxLayout()
        self.status_label = QLabel("Checking...")
        self.status_label.setStyleSheet("font-weight: bold;")
        row.addWidget(self.status_label)

        self.path_label = QLabel("")
        self.path_label.setStyleSheet("color: #6c757d;")
        row.addWidget(self.path_label, stretch=1)

        self.install_btn = QPushButton("Install Ghostscript")
        self.install_btn.clicked.connect(self.install_requested.emit)
        row.addWidget(self.install_btn)

        self.decline_btn = QPushButton("Don't ask again")
        self.decline_btn.setToolTip("Stop offering automatic installation for this session")
        self.decline_btn.clicked.connect(self.decline_requested.emit)
        row.addWidget(self.decline_btn)

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.setToolTip("Offer automatic installation again")
        self.reset_btn.clicked.connect(self.reset_requested.emit)
        row.addWidget(self.reset_btn)

        layout.addLayout(row)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setVisible(False)
        layout.addWidget(self.progress_bar)

        self.hint_label = QLabel(
            "Ghostscript is needed for page previews and PDF/A conversion. "
            "Merging works without it."
        )
        self.hint_label.setWordWrap(True)
        self.hint_label.setStyleSheet("color: #6c757d;")
        layout.addWidget(self.hint_label)

    def set_status(self, status: GhostscriptStatus):
        """Refresh labels and buttons from a status snapshot."""
        color = "#28a745" if status.available else "#dc3545"
        if status.installing:
            color = "#fd7e14"
        self.status_label.setText(status.status_display)
        self.status_label.setStyleSheet(f"font-weight: bold; color: {color};")
        self.path_label.setText(status.path or "")

        offer = not status.available and not status.installing
        self.install_btn.setVisible(offer and status.can_install)
        self.decline_btn.setVisible(offer and status.can_install and not status.declined)
        self.reset_btn.setVisible(offer and status.declined)
        self.hint_label.setVisible(not status.available)
        self.progress_bar.setVisible(status.installing)
        if not status.installing:
            self.progress_bar.setRange(0, 100)
            self.progress_bar.setValue(0)

    def set_progress(self, percent: float):
        """Show download progress."""
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(int(percent))

    def set_busy(self):
        """Indeterminate progress while the installer runs."""
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, 0)


class ProgressDialog(QDialog):
    """
    Modal busy indicator for merge and conversion.

    Operations cannot be cancelled, so the dialog has no buttons.
    """

    def __init__(self, parent: Optional[QWidget] = None, title: str = "Processing..."):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self.setMinimumWidth(400)
        self.setWindowFlags(
            (self.windowFlags() & ~Qt.WindowContextHelpButtonHint)
            & ~Qt.WindowCloseButtonHint
        )
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(12)

        self.status_label = QLabel("Working...")
        self.status_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.status_label)

        self.file_label = QLabel("")
        self.file_label.setStyleSheet("color: #666;")
        layout.addWidget(self.file_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)
        layout.addWidget(self.progress_bar)

    def update_status(self, status: str, current_file: str = ""):
        self.status_label.setText(status)
        if current_file:
            # Truncate long filenames
            if len(current_file) > 50:
                current_file = "..." + current_file[-47:]
            self.file_label.setText(current_file)

    def reject(self):
        # Escape must not hide a running operation
        pass


class SummaryDialog(QDialog):
    """
    Dialog showing the outcome of a merge or conversion.
    """

    open_folder_requested = Signal()
    copy_path_requested = Signal()

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        title: str = "Done",
        summary: str = "",
        output_path: str = "",
        warning: bool = False
    ):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self.setMinimumWidth(450)
        self.output_path = output_path
        self._setup_ui(title, summary, output_path, warning)

    def _setup_ui(self, title: str, summary: str, output_path: str, warning: bool):
        layout = QVBoxLayout(self)
        layout.setSpacing(16)

        header_color = "#fd7e14" if warning else "#28a745"
        header = QLabel(title)
        header.setStyleSheet(f"""
            font-size: 18px;
            font-weight: bold;
            color: {header_color};
        """)
        layout.addWidget(header)

        summary_label = QLabel(summary)
        summary_label.setWordWrap(True)
        summary_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout.addWidget(summary_label)

        button_layout = QHBoxLayout()

        if output_path:
            open_folder_btn = QPushButton("Open Folder")
            open_folder_btn.clicked.connect(self.open_folder_requested.emit)
            button_layout.addWidget(open_folder_btn)

            copy_path_btn = QPushButton("Copy Path")
            copy_path_btn.clicked.connect(self.copy_path_requested.emit)
            button_layout.addWidget(copy_path_btn)

        button_layout.addStretch()

        close_btn = QPushButton("Close")
        close_btn.setDefault(True)
        close_btn.clicked.connect(self.accept)
        button_layout.addWidget(close_btn)

        layout.addLayout(button_layout)


class LogViewerDialog(QDialog):
    """
    Non-modal viewer for the application log file.
    """

    def __init__(self, parent: Optional[QWidget] = None, log_path: Optional[Path] = None):
        super().__init__(parent)
        self.setWindowTitle("Application Logs")
        self.setModal(False)
        self.setMinimumSize(600, 400)
        self.log_path = log_path
        self._setup_ui()
        self.reload()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        self.log_text = QTextEdit()
        self.log_text.setReadOnly(True)
        self.log_text.setFont(QFont("Consolas", 9))
        layout.addWidget(self.log_text)

        button_layout = QHBoxLayout()

        reload_btn = QPushButton("Reload")
        reload_btn.clicked.connect(self.reload)
        button_layout.addWidget(reload_btn)

        copy_btn = QPushButton("Copy to Clipboard")
        copy_btn.clicked.connect(self._on_copy)
        button_layout.addWidget(copy_btn)

        button_layout.addStretch()

        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        button_layout.addWidget(close_btn)

        layout.addLayout(button_layout)

    def reload(self):
        """Read the log file again and scroll to the end."""
        if self.log_path is None or not self.log_path.exists():
            content = "(No log file found)"
        else:
            try:
                content = self.log_path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                content = "(Could not read log file)"
        self.log_text.setPlainText(content)
        self.log_text.verticalScrollBar().setValue(
            self.log_text.verticalScrollBar().maximum()
        )

    def _on_copy(self):
        QApplication.clipboard().setText(self.log_text.toPlainText())
        QMessageBox.information(self, "Copied", "Logs copied to clipboard.")
