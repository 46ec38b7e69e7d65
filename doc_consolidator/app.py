#!/usr/bin/env python3
"""
Document Consolidator - merge PDF, CSV or Word files into one document.

A desktop application that combines several files of the same type,
entirely on the local machine.

Usage:
    python -m doc_consolidator
"""
import sys
import logging

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont

from doc_consolidator.core.sanitize import setup_logging
from doc_consolidator.core.settings import (
    OutputPreference, PreferenceStore, get_app_data_dir, get_log_path
)
from doc_consolidator.core.version import __app_name__, __version__
from doc_consolidator.ui.main_window import MainWindow


def configure_high_dpi():
    """Configure high DPI settings for crisp rendering."""
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )


def configure_logging():
    """Set up application logging."""
    log_path = get_log_path()

    # Ensure log directory exists
    log_path.parent.mkdir(parents=True, exist_ok=True)

    return setup_logging(
        log_level=logging.INFO,
        log_file=log_path,
        redact_usernames=True
    )


def create_application() -> QApplication:
    """Create and configure the Qt application."""
    app = QApplication(sys.argv)

    app.setApplicationName(__app_name__)
    app.setApplicationVersion(__version__)
    app.setOrganizationName("DocConsolidator")

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

    app = create_application()

    # Output filename is the only preference kept between sessions
    preference = OutputPreference.load(PreferenceStore())

    window = MainWindow(preference)
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
