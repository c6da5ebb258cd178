"""
PageDeck - Widget Helpers

Stylesheet loading shared by the application windows.
"""

import os

import gi

gi.require_version("Gtk", "4.0")
from gi.repository import Gdk, Gio, Gtk

from pagedeck.config import RESOURCES_DIR
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger


def load_css() -> bool:
    """Load custom CSS styles for the application

    Returns:
        True if CSS loaded successfully, False otherwise
    """
    css_file = os.path.join(RESOURCES_DIR, "styles.css")
    if not os.path.exists(css_file):
        logger.error(_("CSS file not found: {0}").format(css_file))
        return False

    css_provider = Gtk.CssProvider()
    css_provider.load_from_file(Gio.File.new_for_path(css_file))
    Gtk.StyleContext.add_provider_for_display(
        Gdk.Display.get_default(),
        css_provider,
        Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION,
    )
    logger.info(_("Custom CSS styles loaded successfully"))
    return True
