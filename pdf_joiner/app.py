#!/usr/bin/env python3
"""
PDF Joiner - desktop tool for joining pages of several PDFs into one.

Pages from any number of PDF files can be reordered freely before merging,
and any PDF can be converted to PDF/A with Ghostscript, which the app can
download and install on Windows.

Usage:
    python -m pdf_joiner.app
"""
import sys
import logging
from pathlib import Path

# Ensure the package can be imported when running directly
if __name__ == "__main__":
    parent = Path(__file__).parent.parent
    if str(parent) not in sys.path:
        sys.path.insert(0, str(parent))

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont

from pdf_joiner.core.ghostscript import GhostscriptLocator, GhostscriptService, default_candidates
from pdf_joiner.core.provisioner import GhostscriptProvisioner, installed_executables
from pdf_joiner.core.sanitize import setup_logging
from pdf_joiner.core.settings import (
    AppSettings, get_app_data_dir, get_log_path, get_settings_manager
)
from pdf_joiner.core.version import __app_name__, __version__
from pdf_joiner.ui.main_window import MainWindow


def configure_high_dpi():
    """Configure high DPI settings for crisp rendering."""
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )


def configure_logging():
    """Set up application logging."""
    log_path = get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    return setup_logging(
        log_level=logging.INFO,
        log_file=log_path,
        redact_usernames=True
    )


def create_ghostscript_service(settings: AppSettings) -> GhostscriptService:
    """
    Build the single Ghostscript service shared by the whole application.

    The locator also looks in the directory the provisioner installs into, so
    a fresh installation is found by the post-install check.
    """
    candidates = default_candidates()
    if sys.platform.startswith('win'):
        candidates = installed_executables(settings.install_dir) + candidates

    locator = GhostscriptLocator(
        candidates=candidates,
        preferred_path=settings.ghostscript_path
    )
    provisioner = GhostscriptProvisioner.from_settings(settings, locator)
    return GhostscriptService(
        locator=locator,
        provisioner=provisioner,
        auto_install=settings.auto_install_ghostscript
    )


def create_application() -> QApplication:
    """Create and configure the Qt application."""
    app = QApplication(sys.argv)

    app.setApplicationName(__app_name__)
    app.setApplicationVersion(__version__)
    app.setApplicationDisplayName(__app_name__)
    app.setOrganizationName("PDFJoiner")

    app.setFont(QFont("Segoe UI", 10))
    app.setStyle("Fusion")

    return app


def main():
    """Main entry point for the application."""
    configure_high_dpi()

    logger = configure_logging()
    logger.info("=" * 50)
    logger.info(f"{__app_name__} starting...")
    logger.info(f"Python version: {sys.version}")
    logger.info(f"App data directory: {get_app_data_dir()}")

    settings_manager = get_settings_manager()
    service = create_ghostscript_service(settings_manager.settings)

    app = create_application()

    window = MainWindow(service, settings_manager)
    window.show()

    logger.info("Main window displayed")

    try:
        exit_code = app.exec()
    except Exception:
        logger.exception("Unhandled exception in event loop")
        exit_code = 1

    logger.info(f"Application exiting with code {exit_code}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
