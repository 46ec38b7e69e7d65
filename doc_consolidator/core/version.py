"""
Version information for Document Consolidator.

This is the single source of truth for the application version.
"""

__version__ = "1.0.0"
__app_name__ = "Document Consolidator"
__description__ = "Desktop application for merging PDF, CSV and Word files"


def get_version_string():
    """Return formatted version string."""
    return f"v{__version__}"


def get_full_app_title():
    """Return full application title with version."""
    return f"{__app_name__} {get_version_string()}"
