"""
Version information for PDF Joiner.

This is the single source of truth for the application version.
"""

__version__ = "1.0.0"
__app_name__ = "PDF Joiner"
__description__ = "Desktop application for joining PDF pages and converting to PDF/A"


def get_full_app_title():
    """Return full application title with version."""
    return f"{__app_name__} v{__version__}"
