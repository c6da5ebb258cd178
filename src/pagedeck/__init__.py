"""
PageDeck - page selection and organization for PDF tools

This package provides the page editor models (range strings, page
collection, selection, grid virtualization), a client for the PDF
processing service, and a GTK4 front end built on them.
"""

import locale
import os
import sys

__version__ = "1.0.0"
__license__ = "GPL-3.0"


def setup_i18n() -> None:
    """Initialize internationalization."""
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        # Fallback to C locale if system locale is not properly configured
        locale.setlocale(locale.LC_ALL, "C")


def _check_gtk_dependencies() -> bool:
    """Check if GTK dependencies are available.

    Returns:
        True if dependencies are met, False otherwise
    """
    try:
        import gi

        gi.require_version("Gtk", "4.0")
        gi.require_version("Adw", "1")

        from gi.repository import (
            Adw,  # noqa: F401
            Gtk,  # noqa: F401
        )

        return True
    except (ImportError, ValueError) as e:
        print(f"Error: Missing dependencies: {e}", file=sys.stderr)
        print("Please make sure GTK4, libadwaita and PyGObject are installed", file=sys.stderr)
        return False


def main() -> int:
    """Main entry point for the application.

    Returns:
        The application exit code.
    """
    setup_i18n()

    if not _check_gtk_dependencies():
        return 1

    from pagedeck.application import PageDeckApp
    from pagedeck.config import CONFIG_DIR

    os.makedirs(CONFIG_DIR, exist_ok=True)

    app = PageDeckApp()
    return app.run(sys.argv)


__all__ = ["main", "__version__", "__license__", "setup_i18n"]
