"""
PageDeck - Application Module

This module contains the main application class for PageDeck.
"""

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Adw, Gio, GLib, Gtk

from pagedeck.config import APP_ID, APP_NAME, APP_VERSION
from pagedeck.ui.widgets import load_css
from pagedeck.utils.exceptions import PageDeckError
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger
from pagedeck.window import PageDeckWindow


class PageDeckApp(Adw.Application):
    """Application class for PageDeck."""

    def __init__(self) -> None:
        super().__init__(application_id=APP_ID, flags=Gio.ApplicationFlags.HANDLES_OPEN)

        self.add_main_option(
            "version",
            ord("v"),
            GLib.OptionFlags.NONE,
            GLib.OptionArg.NONE,
            _("Print version information and exit"),
            None,
        )

        self.connect("activate", self.on_activate)
        self.connect("open", self.on_open)
        self.connect("handle-local-options", self.on_handle_local_options)

        quit_action = Gio.SimpleAction.new("quit", None)
        quit_action.connect("activate", lambda *_args: self.quit())
        self.add_action(quit_action)
        self.set_accels_for_action("app.quit", ["<Control>q"])

    def on_handle_local_options(self, _app: Adw.Application, options: GLib.VariantDict) -> int:
        if options.contains("version"):
            print(f"{APP_NAME} {APP_VERSION}")
            return 0
        return -1

    def _get_window(self) -> PageDeckWindow:
        win = self.get_active_window()
        if win is None:
            load_css()
            win = PageDeckWindow(self)
        return win

    def on_activate(self, _app: Adw.Application) -> None:
        try:
            self._get_window().present()
            logger.info(_("Application started successfully"))
        except PageDeckError as e:
            logger.error(f"{_('Error activating application')}: {e}")
            error_dialog = Gtk.AlertDialog()
            error_dialog.set_message(_("Error starting application"))
            error_dialog.set_detail(e.message)
            error_dialog.show()

    def on_open(self, _app: Adw.Application, files: list, _n_files: int, _hint: str) -> None:
        """Open the first file passed on the command line."""
        win = self._get_window()
        win.present()
        paths = [f.get_path() for f in files if f.get_path()]
        if paths:
            if len(paths) > 1:
                logger.warning(f"Only one document can be edited at a time, opening {paths[0]}")
            win.open_document(paths[0])
