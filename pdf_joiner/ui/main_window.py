"""
Main window for PDF Joiner application.
"""
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from PySide6.QtCore import Signal, Slot, QThread, QObject
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QFileDialog, QMessageBox, QToolButton, QApplication
)

from ..core.commands import (
    Command, ConvertRequest, InstallRequest, MergeRequest, Response, ToolOrchestrator
)
from ..core.errors import ErrorCode, UserCancelledError
from ..core.ghostscript import GhostscriptService
from ..core.models import ConversionResult, DocumentRef, MergeResult
from ..core.pdf_probe import probe_pdf
from ..core.sanitize import get_logger, sanitize_path_for_log
from ..core.sequencer import PageSequencer
from ..core.settings import SettingsManager, get_log_path
from ..core.thumbnails import ThumbnailRenderer
from ..core.utils import suggest_output_path
from ..core.version import __version__, __app_name__, get_full_app_title

from .widgets import (
    DropZone, FileListWidget, GhostscriptStatusPanel, LogViewerDialog,
    ProgressDialog, SummaryDialog, ThumbnailGrid
)


logger = get_logger()


class LoadWorker(QObject):
    """
    Counts pages of newly selected files, then renders their thumbnails.

    Page counts are reported first for every file so the sequence can be
    built before any thumbnail arrives. Documents passed in `documents` are
    already counted and only get their thumbnails rendered.
    """

    document_loaded = Signal(str, int)  # path, page_count
    document_rejected = Signal(str, str)  # path, reason
    thumbnail_ready = Signal(str, int, str)  # path, page_index, image_url
    finished = Signal()

    def __init__(
        self,
        renderer: ThumbnailRenderer,
        paths: Sequence[str] = (),
        documents: Sequence[Tuple[DocumentRef, int]] = ()
    ):
        super().__init__()
        self.renderer = renderer
        self.paths = list(paths)
        self.documents = list(documents)

    @Slot()
    def run(self):
        accepted: List[Tuple[DocumentRef, int]] = list(self.documents)
        try:
            for path in self.paths:
                document = DocumentRef.from_path(path)
                is_valid, page_count, error = probe_pdf(document.file_path)
                if not is_valid:
                    self.document_rejected.emit(str(document.file_path), error)
                    continue
                accepted.append((document, page_count))
                self.document_loaded.emit(str(document.file_path), page_count)

            for document, page_count in accepted:
                for thumb in self.renderer.iter_document(document, page_count):
                    self.thumbnail_ready.emit(
                        str(document.file_path), thumb.page_index, thumb.image_url
                    )
        except Exception:
            logger.exception("Load worker error")
        finally:
            self.finished.emit()


class CommandWorker(QObject):
    """
    Runs one orchestrator command on a background thread.
    """

    progress = Signal(float)
    finished = Signal(object)  # Response

    def __init__(self, orchestrator: ToolOrchestrator, command: Command, payload=None):
        super().__init__()
        self.orchestrator = orchestrator
        self.command = command
        self.payload = payload

    @Slot()
    def run(self):
        try:
            response = self.orchestrator.handle(self.command, self.payload)
        except Exception as e:
            logger.exception(f"{self.command.name} worker error")
            response = Response(ok=False, error_code=ErrorCode.UNKNOWN, error_message=str(e))
        self.finished.emit(response)


class StartupCheckWorker(QObject):
    """
    Locates Ghostscript at start-up and installs it automatically if allowed.
    """

    progress = Signal(float)
    finished = Signal(bool)

    def __init__(self, service: GhostscriptService):
        super().__init__()
        self.service = service

    @Slot()
    def run(self):
        available = False
        try:
            available = self.service.ensure_available(self.progress.emit)
        except Exception:
            logger.exception("Ghostscript start-up check failed")
        self.finished.emit(available)


class MainWindow(QMainWindow):
    """
    Main application window for PDF Joiner.
    """

    APP_NAME = __app_name__
    APP_VERSION = __version__

    def __init__(self, service: GhostscriptService, settings_manager: SettingsManager):
        super().__init__()
        self.setWindowTitle(get_full_app_title())
        self.service = service
        self.settings_manager = settings_manager
        settings = settings_manager.settings

        self.renderer = ThumbnailRenderer(service, settings.thumbnail_resolution)
        self.orchestrator = ToolOrchestrator(service, renderer=self.renderer)
        self.orchestrator.converter.pdfa_level = settings.pdfa_level

        self.sequencer = PageSequencer()
        # Rendered thumbnails by (file path, page index); survives reorders and removals
        self.thumbnails: Dict[Tuple[str, int], str] = {}
        self.merged_file_path: Optional[Path] = None
        self.progress_dialog: Optional[ProgressDialog] = None
        self.log_dialog: Optional[LogViewerDialog] = None
        self._threads: Set[QThread] = set()
        self._workers: Set[QObject] = set()
        self._pending_loads = 0

        self._setup_ui()
        self._setup_shortcuts()
        self._connect_signals()
        self._refresh_views()
        self._start_ghostscript_check()

        logger.info(f"{self.APP_NAME} v{self.APP_VERSION} started")

    def _setup_ui(self):
        """Set up the user interface."""
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setSpacing(12)
        main_layout.setContentsMargins(16, 16, 16, 16)

        main_layout.addWidget(self._create_header())

        self.gs_panel = GhostscriptStatusPanel()
        main_layout.addWidget(self.gs_panel)

        self.drop_zone = DropZone()
        main_layout.addWidget(self.drop_zone)

        main_layout.addLayout(self._create_button_row())

        self.file_list = FileListWidget()
        main_layout.addWidget(self.file_list)

        pages_label = QLabel("Pages (drag a page onto another to move it)")
        pages_label.setStyleSheet("font-weight: bold;")
        main_layout.addWidget(pages_label)

        self.thumbnail_grid = ThumbnailGrid()
        main_layout.addWidget(self.thumbnail_grid, stretch=1)

        main_layout.addLayout(self._create_action_row())

        self.status_bar = self.statusBar()
        self.status_bar.showMessage("Ready")

        settings = self.settings_manager.settings
        self.resize(settings.window_width, settings.window_height)

        self._apply_styles()

    def _setup_shortcuts(self):
        """Set up keyboard shortcuts."""
        QShortcut(QKeySequence("Ctrl+O"), self).activated.connect(self._on_add_files)
        QShortcut(QKeySequence("Ctrl+M"), self).activated.connect(self._on_merge)

    def _create_header(self) -> QWidget:
        header = QWidget()
        layout = QHBoxLayout(header)
        layout.setContentsMargins(0, 0, 0, 8)

        title = QLabel(self.APP_NAME)
        title.setStyleSheet("""
            font-size: 24px;
            font-weight: bold;
            color: #212529;
        """)
        layout.addWidget(title)

        layout.addStretch()

        version = QLabel(f"v{self.APP_VERSION}")
        version.setStyleSheet("color: #6c757d;")
        layout.addWidget(version)

        log_btn = QToolButton()
        log_btn.setText("📋")
        log_btn.setToolTip("View Logs")
        log_btn.clicked.connect(self._show_logs)
        layout.addWidget(log_btn)

        return header

    def _create_button_row(self) -> QHBoxLayout:
        layout = QHBoxLayout()

        self.add_files_btn = QPushButton("Add Files")
        self.add_files_btn.setToolTip("Select PDF files to add (Ctrl+O)")
        layout.addWidget(self.add_files_btn)

        self.remove_btn = QPushButton("Remove File")
        self.remove_btn.setToolTip("Remove the selected file and its pages")
        layout.addWidget(self.remove_btn)

        layout.addStretch()

        self.clear_btn = QPushButton("Clear All")
        self.clear_btn.setToolTip("Remove all files")
        layout.addWidget(self.clear_btn)

        return layout

    def _create_action_row(self) -> QHBoxLayout:
        layout = QHBoxLayout()

        self.convert_single_btn = QPushButton("Convert File to PDF/A...")
        self.convert_single_btn.setToolTip("Pick any PDF and convert it to PDF/A")
        layout.addWidget(self.convert_single_btn)

        self.convert_merged_btn = QPushButton("Convert Merged to PDF/A")
        self.convert_merged_btn.setToolTip("Convert the last merged file to PDF/A")
        layout.addWidget(self.convert_merged_btn)

        layout.addStretch()

        self.merge_btn = QPushButton("  Merge PDFs  ")
        self.merge_btn.setToolTip("Merge pages in the order shown (Ctrl+M)")
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

    def _apply_styles(self):
        """Apply application-wide styles."""
        self.setStyleSheet("""
            QMainWindow {
                background-color: #ffffff;
            }
            QGroupBox {
                font-weight: bold;
                border: 1px solid #dee2e6;
                border-radius: 6px;
                margin-top: 12px;
                padding-top: 12px;
            }
            QGroupBox::title {
                subcontrol-origin: margin;
                left: 12px;
                padding: 0 8px;
            }
            QListWidget {
                border: 1px solid #dee2e6;
                border-radius: 4px;
            }
            QPushButton {
                padding: 6px 12px;
                border: 1px solid #ced4da;
                border-radius: 4px;
                background-color: #ffffff;
            }
            QPushButton:hover {
                background-color: #e9ecef;
            }
            QPushButton:disabled {
                color: #adb5bd;
            }
        """)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.drop_zone.files_dropped.connect(self._add_files)
        self.drop_zone.clicked.connect(self._on_add_files)

        self.add_files_btn.clicked.connect(self._on_add_files)
        self.remove_btn.clicked.connect(self._on_remove_selected)
        self.clear_btn.clicked.connect(self._on_clear)
        self.merge_btn.clicked.connect(self._on_merge)
        self.convert_single_btn.clicked.connect(self._on_convert_single)
        self.convert_merged_btn.clicked.connect(self._on_convert_merged)

        self.file_list.remove_requested.connect(self._remove_document)
        self.file_list.itemSelectionChanged.connect(self._update_buttons)
        self.thumbnail_grid.reorder_requested.connect(self._on_reorder)

        self.gs_panel.install_requested.connect(self._on_install_ghostscript)
        self.gs_panel.decline_requested.connect(self._on_decline_install)
        self.gs_panel.reset_requested.connect(self._on_reset_preference)

    def closeEvent(self, event):
        """Save window geometry on close."""
        settings = self.settings_manager.settings
        settings.window_width = self.width()
        settings.window_height = self.height()
        self.settings_manager.save()
        logger.info("Application closed")
        event.accept()

    # === Background work ===

    def _run_in_thread(self, worker: QObject, on_finished: Callable):
        """Move worker to a new QThread, run it and clean both up afterwards."""
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(on_finished)
        worker.finished.connect(thread.quit)

        def cleanup():
            self._workers.discard(worker)
            self._threads.discard(thread)
            worker.deleteLater()
            thread.deleteLater()

        thread.finished.connect(cleanup)
        self._workers.add(worker)
        self._threads.add(thread)
        thread.start()

    def _run_command(self, command: Command, payload, on_finished: Callable) -> CommandWorker:
        worker = CommandWorker(self.orchestrator, command, payload)
        self._run_in_thread(worker, on_finished)
        return worker

    def _show_progress(self, title: str, status: str, current_file: str = ""):
        self.progress_dialog = ProgressDialog(self, title)
        self.progress_dialog.update_status(status, current_file)
        self.progress_dialog.show()

    def _close_progress(self):
        if self.progress_dialog:
            self.progress_dialog.hide()
            self.progress_dialog.deleteLater()
            self.progress_dialog = None

    # === Dialogs ===

    def _ask_open_paths(self, title: str, multiple: bool = True) -> List[str]:
        """
        Ask for PDF files to open.

        Raises:
            UserCancelledError: if the dialog was dismissed
        """
        settings = self.settings_manager.settings
        if multiple:
            paths, _ = QFileDialog.getOpenFileNames(
                self, title, settings.last_open_directory, "PDF Files (*.pdf)"
            )
        else:
            path, _ = QFileDialog.getOpenFileName(
                self, title, settings.last_open_directory, "PDF Files (*.pdf)"
            )
            paths = [path] if path else []

        if not paths:
            raise UserCancelledError()

        settings.last_open_directory = str(Path(paths[0]).parent)
        self.settings_manager.save()
        return paths

    def _ask_save_path(self, title: str, suggested_name: str) -> Path:
        """
        Ask where to save a PDF.

        Raises:
            UserCancelledError: if the dialog was dismissed
        """
        settings = self.settings_manager.settings
        path, _ = QFileDialog.getSaveFileName(
            self,
            title,
            suggest_output_path(settings.last_save_directory, suggested_name),
            "PDF Files (*.pdf)"
        )
        if not path:
            raise UserCancelledError()

        output_path = Path(path)
        if output_path.suffix.lower() != ".pdf":
            output_path = output_path.with_suffix(".pdf")

        settings.last_save_directory = str(output_path.parent)
        self.settings_manager.save()
        return output_path

    # === File Management ===

    @Slot()
    def _on_add_files(self):
        try:
            paths = self._ask_open_paths("Select PDF Files")
        except UserCancelledError:
            return
        self._add_files(paths)

    @Slot(list)
    def _add_files(self, paths: List[str]):
        """Count pages and render thumbnails for the given files in the background."""
        if not paths:
            return

        logger.info(f"Adding {len(paths)} file(s)")
        self._pending_loads += 1
        self.status_bar.showMessage(f"Loading {len(paths)} file(s)...")

        worker = LoadWorker(self.renderer, paths=paths)
        worker.document_loaded.connect(self._on_document_loaded)
        worker.document_rejected.connect(self._on_document_rejected)
        worker.thumbnail_ready.connect(self._on_thumbnail_ready)
        self._run_in_thread(worker, self._on_load_finished)

    @Slot(str, int)
    def _on_document_loaded(self, path: str, page_count: int):
        self.sequencer.append(DocumentRef(Path(path)), page_count)
        self._refresh_views()

    @Slot(str, str)
    def _on_document_rejected(self, path: str, reason: str):
        logger.warning(f"Rejected {sanitize_path_for_log(path)}: {reason}")
        QMessageBox.warning(
            self,
            "File Not Added",
            f"{Path(path).name} could not be added:\n\n{reason}"
        )

    @Slot(str, int, str)
    def _on_thumbnail_ready(self, path: str, page_index: int, image_url: str):
        self.thumbnails[(path, page_index)] = image_url
        for page in self.sequencer.pages:
            document = self.sequencer.document_for(page)
            if str(document.file_path) == path and page.page_index == page_index:
                self.thumbnail_grid.set_thumbnail(page.id, image_url)

    @Slot()
    def _on_load_finished(self):
        self._pending_loads -= 1
        if self._pending_loads == 0:
            self.status_bar.showMessage("Ready")
        self._refresh_views()

    @Slot()
    def _on_remove_selected(self):
        index = self.file_list.selected_index()
        if index >= 0:
            self._remove_document(index)

    @Slot(int)
    def _remove_document(self, index: int):
        try:
            self.sequencer.remove_document(index)
        except IndexError:
            return
        self._refresh_views()

    @Slot()
    def _on_clear(self):
        if self.sequencer.is_empty():
            return

        reply = QMessageBox.question(
            self,
            "Clear All",
            "Remove all files?",
            QMessageBox.Yes | QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.sequencer.clear()
            self.merged_file_path = None
            self._refresh_views()
            logger.info("Selection cleared")

    @Slot(str, str)
    def _on_reorder(self, moved_id: str, target_id: str):
        try:
            self.sequencer.reorder(moved_id, target_id)
        except KeyError as e:
            logger.warning(f"Ignoring drop of unknown page {e}")
            return
        self._refresh_grid()

    def _refresh_views(self):
        self.file_list.set_documents(
            (document, self.sequencer.page_count_for(index))
            for index, document in enumerate(self.sequencer.documents)
        )
        self._refresh_grid()
        self._update_buttons()
        self._update_status()

    def _refresh_grid(self):
        pages = []
        for page in self.sequencer.pages:
            document = self.sequencer.document_for(page)
            pages.append((
                page.id,
                f"{document.file_name}\nPage {page.page_number}",
                self.thumbnails.get((str(document.file_path), page.page_index))
            ))
        self.thumbnail_grid.set_pages(pages)

    def _update_buttons(self):
        busy = self.progress_dialog is not None
        has_pages = len(self.sequencer) > 0
        self.merge_btn.setEnabled(has_pages and not busy)
        self.remove_btn.setEnabled(self.file_list.selected_index() >= 0)
        self.clear_btn.setEnabled(not self.sequencer.is_empty())
        self.convert_merged_btn.setEnabled(self.merged_file_path is not None and not busy)

    def _update_status(self):
        documents = len(self.sequencer.documents)
        if documents:
            self.status_bar.showMessage(
                f"{documents} file(s), {len(self.sequencer)} page(s)"
            )

    # === Merge ===

    @Slot()
    def _on_merge(self):
        if len(self.sequencer) == 0:
            QMessageBox.warning(self, "Nothing to Merge", "Add at least one PDF file first.")
            return

        try:
            output_path = self._ask_save_path("Save Merged PDF", "merged.pdf")
        except UserCancelledError:
            return

        logger.info(f"Merging {len(self.sequencer)} page(s)")
        self._show_progress("Merging PDFs...", "Merging pages...", output_path.name)
        self._update_buttons()
        self._run_command(
            Command.MERGE_SEQUENCE,
            MergeRequest(output_path=output_path, entries=self.sequencer.entries()),
            self._on_merge_finished
        )

    @Slot(object)
    def _on_merge_finished(self, response: Response):
        self._close_progress()

        if not response.ok:
            self._update_buttons()
            self._show_error("Merge Error", "An error occurred during merge", response)
            return

        result: MergeResult = response.value
        self.merged_file_path = result.output_path
        self._update_buttons()
        self._show_summary("Merge Complete", result.summary, result.output_path)

    # === PDF/A conversion ===

    @Slot()
    def _on_convert_single(self):
        try:
            input_path = Path(self._ask_open_paths("Select PDF to Convert", multiple=False)[0])
            output_path = self._ask_save_path("Save PDF/A File", "converted.pdf")
        except UserCancelledError:
            return
        self._start_conversion(input_path, output_path)

    @Slot()
    def _on_convert_merged(self):
        if self.merged_file_path is None:
            return
        try:
            output_path = self._ask_save_path("Save PDF/A File", "merged-converted.pdf")
        except UserCancelledError:
            return
        self._start_conversion(self.merged_file_path, output_path)

    def _start_conversion(self, input_path: Path, output_path: Path):
        logger.info(
            f"Converting {sanitize_path_for_log(input_path)} "
            f"to {sanitize_path_for_log(output_path)}"
        )
        self._show_progress("Converting to PDF/A...", "Running Ghostscript...", input_path.name)
        self._update_buttons()
        self._run_command(
            Command.CONVERT_TO_PDFA,
            ConvertRequest(input_path=input_path, output_path=output_path),
            self._on_convert_finished
        )

    @Slot(object)
    def _on_convert_finished(self, response: Response):
        self._close_progress()
        self._update_buttons()

        if not response.ok:
            self._show_error("Conversion Error", "PDF/A conversion failed", response)
            return

        result: ConversionResult = response.value
        title = "Conversion Complete" if result.pdfa_markers_found else "Converted with Warnings"
        self._show_summary(title, result.summary, result.output_path, warning=bool(result.warnings))

    # === Ghostscript ===

    def _start_ghostscript_check(self):
        self.gs_panel.set_status(self.service.status())
        worker = StartupCheckWorker(self.service)
        worker.progress.connect(self._on_install_progress)
        self._run_in_thread(worker, self._on_ghostscript_checked)

    @Slot(bool)
    def _on_ghostscript_checked(self, available: bool):
        self.gs_panel.set_status(self.service.status())
        if available:
            self.status_bar.showMessage("Ghostscript ready", 3000)
            self._refresh_placeholders()

    @Slot()
    def _on_install_ghostscript(self):
        logger.info("Ghostscript installation requested")
        request = InstallRequest()
        worker = CommandWorker(self.orchestrator, Command.INSTALL_GHOSTSCRIPT, request)
        # Progress is reported from the worker thread through a queued signal
        request.on_progress = worker.progress.emit
        worker.progress.connect(self._on_install_progress)
        self.gs_panel.set_progress(0)
        self._run_in_thread(worker, self._on_install_finished)

    @Slot(float)
    def _on_install_progress(self, percent: float):
        self.gs_panel.set_status(self.service.status())
        if percent >= 100:
            self.gs_panel.set_busy()
        else:
            self.gs_panel.set_progress(percent)

    @Slot(object)
    def _on_install_finished(self, response: Response):
        self.gs_panel.set_status(self.service.status())
        if not response.ok:
            if response.error_code == ErrorCode.INSTALL_IN_PROGRESS:
                self.status_bar.showMessage(response.error_message, 5000)
                return
            self._show_error("Installation Failed", "Ghostscript could not be installed", response)
            return

        QMessageBox.information(
            self,
            "Ghostscript Installed",
            f"Ghostscript is ready:\n\n{response.value}"
        )
        self._refresh_placeholders()

    @Slot()
    def _on_decline_install(self):
        self.orchestrator.handle(Command.DECLINE_INSTALL)
        self.gs_panel.set_status(self.service.status())

    @Slot()
    def _on_reset_preference(self):
        self.orchestrator.handle(Command.RESET_PREFERENCE)
        self.gs_panel.set_status(self.service.status())

    def _refresh_placeholders(self):
        """Render real thumbnails for documents loaded while Ghostscript was missing."""
        if self.sequencer.is_empty():
            return
        self.thumbnails.clear()

        # The same file selected twice only needs rendering once
        documents: Dict[str, Tuple[DocumentRef, int]] = {}
        for index, document in enumerate(self.sequencer.documents):
            documents.setdefault(
                str(document.file_path),
                (document, self.sequencer.page_count_for(index))
            )

        self._pending_loads += 1
        worker = LoadWorker(self.renderer, documents=list(documents.values()))
        worker.thumbnail_ready.connect(self._on_thumbnail_ready)
        self._run_in_thread(worker, self._on_load_finished)

    # === Results ===

    def _show_error(self, title: str, prefix: str, response: Response):
        logger.error(f"{title}: {response.error_message}")
        box = QMessageBox(
            QMessageBox.Critical,
            title,
            f"{prefix}:\n\n{response.error_message}",
            QMessageBox.Ok,
            self
        )
        if response.details:
            box.setDetailedText(response.details)
        box.exec()

    def _show_summary(self, title: str, summary: str, output_path: Path, warning: bool = False):
        dialog = SummaryDialog(
            self,
            title=title,
            summary=summary,
            output_path=str(output_path),
            warning=warning
        )
        dialog.open_folder_requested.connect(lambda: self._open_folder(output_path.parent))
        dialog.copy_path_requested.connect(lambda: self._copy_to_clipboard(str(output_path)))
        dialog.exec()

    def _open_folder(self, folder_path: Optional[Path]):
        """Open folder in file explorer."""
        if not folder_path:
            return

        try:
            if sys.platform == 'win32':
                os.startfile(str(folder_path))
            elif sys.platform == 'darwin':
                subprocess.run(['open', str(folder_path)])
            else:
                subprocess.run(['xdg-open', str(folder_path)])
        except OSError as e:
            logger.warning(f"Failed to open folder: {e}")

    def _copy_to_clipboard(self, text: str):
        QApplication.clipboard().setText(text)
        self.status_bar.showMessage("Path copied to clipboard", 3000)

    def _show_logs(self):
        if self.log_dialog is None:
            self.log_dialog = LogViewerDialog(self, get_log_path())
        else:
            self.log_dialog.reload()
        self.log_dialog.show()
        self.log_dialog.raise_()
