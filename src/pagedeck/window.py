"""
PageDeck - Window Module

Main window: pick a PDF, load its page manifest, then select, reorder,
rotate and delete pages before sending them to one of the page tools.
"""

import os
from concurrent.futures import ThreadPoolExecutor

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Adw, Gio, GLib, Gtk

from pagedeck.config import (
    APP_NAME,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    WINDOW_STATE_KEY,
)
from pagedeck.editor import range_codec
from pagedeck.editor.page_model import DocumentIdentity, PageCollection
from pagedeck.editor.page_operations import build_organize_payload
from pagedeck.editor.preview_session import PreviewSession, SessionSnapshot, SessionState
from pagedeck.editor.selection import SelectionController, build_removal_payload
from pagedeck.editor.thumbnail_loader import ThumbnailLoader
from pagedeck.editor.virtualizer import ViewportVirtualizer
from pagedeck.services.pdf_api import PdfApiClient, run_tool
from pagedeck.ui.page_grid import PageGrid
from pagedeck.utils.config_manager import get_config_manager
from pagedeck.utils.exceptions import PageDeckError
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger
from pagedeck.utils.main_loop import glib_dispatch


class PageDeckWindow(Adw.ApplicationWindow):
    """Main application window."""

    def __init__(self, app: Adw.Application, client: PdfApiClient | None = None) -> None:
        """Initialize application window.

        Args:
            app: The parent Adw.Application instance
            client: Processing service client (built from settings when omitted)
        """
        width, height = self._load_window_size()
        super().__init__(
            application=app,
            title=APP_NAME,
            default_width=width,
            default_height=height,
        )
        self.set_size_request(480, 360)

        config = get_config_manager()
        self._client = client or PdfApiClient.from_config(config)
        self._collection = PageCollection()
        self._selection = SelectionController()
        self._virtualizer = ViewportVirtualizer.from_config(0, 0, config)
        self._loader = ThumbnailLoader.from_config(self._client.fetch_image, config)
        self._session = PreviewSession(
            self._client.preview,
            collection=self._collection,
            selection=self._selection,
            virtualizer=self._virtualizer,
        )
        self._tasks = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pagedeck-tool")
        self._source_path: str | None = None
        self._busy = False

        self._setup_ui()
        self._unsubscribe_session = self._session.subscribe(self._on_session_changed)
        self._on_session_changed(self._session.snapshot())

        self.connect("close-request", self._on_close_request)

    # --- Window size ---

    def _load_window_size(self) -> tuple[int, int]:
        config = get_config_manager()
        width = config.get(f"{WINDOW_STATE_KEY}.width", DEFAULT_WINDOW_WIDTH)
        height = config.get(f"{WINDOW_STATE_KEY}.height", DEFAULT_WINDOW_HEIGHT)
        return max(width, 480), max(height, 360)

    def _save_window_size(self) -> None:
        config = get_config_manager()
        width = self.get_width()
        height = self.get_height()
        if width > 0 and height > 0:
            config.set(f"{WINDOW_STATE_KEY}.width", width, save_immediately=False)
            config.set(f"{WINDOW_STATE_KEY}.height", height, save_immediately=True)
            logger.info(f"Window size saved: {width}x{height}")

    def _on_close_request(self, _window: Gtk.Window) -> bool:
        self._save_window_size()
        self._unsubscribe_session()
        self._grid.unbind()
        self._session.shutdown()
        self._loader.shutdown()
        self._tasks.shutdown(wait=False, cancel_futures=True)
        self._client.close()
        return False

    # --- UI ---

    def _setup_ui(self) -> None:
        """Create the header bar, status page, range bar and page grid."""
        self._toast_overlay = Adw.ToastOverlay()
        toolbar_view = Adw.ToolbarView()

        header = Adw.HeaderBar()
        open_btn = Gtk.Button(label=_("Open"))
        open_btn.set_tooltip_text(_("Choose a PDF"))
        open_btn.connect("clicked", self._on_open_clicked)
        header.pack_start(open_btn)

        self._reset_btn = Gtk.Button.new_from_icon_name("edit-undo-symbolic")
        self._reset_btn.set_tooltip_text(_("Restore every page and clear rotations"))
        self._reset_btn.connect("clicked", self._on_reset_clicked)
        header.pack_start(self._reset_btn)

        self._export_btn = Gtk.Button(label=_("Export"))
        self._export_btn.add_css_class("suggested-action")
        self._export_btn.set_tooltip_text(_("Export pages in the current order and rotation"))
        self._export_btn.connect("clicked", self._on_export_clicked)
        header.pack_end(self._export_btn)

        self._extract_btn = Gtk.Button(label=_("Extract"))
        self._extract_btn.set_tooltip_text(_("Extract the pages in the range"))
        self._extract_btn.connect("clicked", self._on_extract_clicked)
        header.pack_end(self._extract_btn)

        self._remove_btn = Gtk.Button(label=_("Remove"))
        self._remove_btn.add_css_class("destructive-action")
        self._remove_btn.set_tooltip_text(_("Remove the pages in the range"))
        self._remove_btn.connect("clicked", self._on_remove_clicked)
        header.pack_end(self._remove_btn)

        toolbar_view.add_top_bar(header)

        # Range bar: mirrors the selection and accepts hand-edited ranges
        range_bar = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)
        range_bar.set_margin_start(12)
        range_bar.set_margin_end(12)
        range_bar.set_margin_top(6)
        range_bar.set_margin_bottom(6)
        range_bar.append(Gtk.Label(label=_("Pages:")))
        self._range_entry = Gtk.Entry()
        self._range_entry.set_hexpand(True)
        self._range_entry.set_placeholder_text(_("e.g. 1-3,5"))
        self._range_entry.connect("activate", self._on_range_activated)
        range_bar.append(self._range_entry)
        self._count_label = Gtk.Label()
        self._count_label.add_css_class("dim-label")
        range_bar.append(self._count_label)

        self._status_page = Adw.StatusPage()
        self._status_page.set_icon_name("document-open-symbolic")

        self._grid = PageGrid(self._collection, self._selection, self._loader, self._virtualizer)
        self._grid.connect("selection-changed", self._on_selection_changed)
        self._grid.connect("collection-changed", self._on_collection_changed)

        grid_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        grid_box.append(range_bar)
        grid_box.append(self._grid)

        self._stack = Gtk.Stack()
        self._stack.add_named(self._status_page, "status")
        self._stack.add_named(grid_box, "grid")

        toolbar_view.set_content(self._stack)
        self._toast_overlay.set_child(toolbar_view)
        self.set_content(self._toast_overlay)

    def _update_actions(self) -> None:
        ready = self._session.state == SessionState.READY and not self._busy
        self._reset_btn.set_sensitive(ready)
        self._export_btn.set_sensitive(ready and self._collection.can_export())
        self._remove_btn.set_sensitive(ready)
        self._extract_btn.set_sensitive(ready)

    def _show_toast(self, message: str) -> None:
        self._toast_overlay.add_toast(Adw.Toast(title=message))

    # --- Document loading ---

    def _on_open_clicked(self, _button: Gtk.Button) -> None:
        dialog = Gtk.FileDialog()
        dialog.set_title(_("Choose a PDF"))

        pdf_filter = Gtk.FileFilter()
        pdf_filter.set_name(_("PDF documents"))
        pdf_filter.add_mime_type("application/pdf")
        pdf_filter.add_pattern("*.pdf")

        store = Gio.ListStore.new(Gtk.FileFilter)
        store.append(pdf_filter)
        dialog.set_filters(store)

        dialog.open(self, None, self._on_file_chosen)

    def _on_file_chosen(self, dialog: Gtk.FileDialog, result: Gio.AsyncResult) -> None:
        try:
            gfile = dialog.open_finish(result)
        except GLib.Error as e:
            if "dismissed" not in str(e).lower():
                logger.error(f"Error choosing file: {e}")
            return
        if gfile is not None and gfile.get_path():
            self.open_document(gfile.get_path())

    def open_document(self, path: str) -> None:
        """Start loading the page manifest of ``path``."""
        try:
            identity = DocumentIdentity.from_path(path)
        except OSError as e:
            logger.error(f"Cannot open {path}: {e}")
            self._show_toast(_("Cannot open {0}").format(os.path.basename(path)))
            return

        if identity != self._session.identity:
            self._loader.clear()
            self._range_entry.set_text("")
        self._source_path = path
        self.set_title(f"{identity.name} - {APP_NAME}")
        self._session.start(path, identity)

    def _on_session_changed(self, snapshot: SessionSnapshot) -> None:
        if snapshot.state == SessionState.READY:
            self._stack.set_visible_child_name("grid")
            self._grid.refresh()
        elif snapshot.state == SessionState.LOADING:
            self._status_page.set_icon_name("content-loading-symbolic")
            self._status_page.set_title(_("Loading pages…"))
            self._status_page.set_description(snapshot.identity.name if snapshot.identity else "")
            self._stack.set_visible_child_name("status")
        elif snapshot.state == SessionState.ERROR:
            self._status_page.set_icon_name("dialog-error-symbolic")
            self._status_page.set_title(_("Could not load the pages"))
            self._status_page.set_description(snapshot.error or "")
            self._stack.set_visible_child_name("status")
        else:
            self._status_page.set_icon_name("document-open-symbolic")
            self._status_page.set_title(_("Choose a PDF"))
            self._status_page.set_description(_("Its pages will appear here"))
            self._stack.set_visible_child_name("status")
        self._update_actions()

    # --- Selection / collection ---

    def _on_selection_changed(self, _grid: PageGrid, range_string: str) -> None:
        self._range_entry.set_text(range_string)

    def _on_collection_changed(self, _grid: PageGrid, active_count: int) -> None:
        self._count_label.set_text(
            _("{0} of {1} pages kept").format(active_count, len(self._collection))
        )
        self._update_actions()

    def _on_range_activated(self, entry: Gtk.Entry) -> None:
        text = entry.get_text()
        invalid = range_codec.invalid_tokens(text)
        if invalid:
            self._show_toast(_("Ignored: {0}").format(", ".join(invalid)))
        self._selection.load(text, len(self._collection))

    def _on_reset_clicked(self, _button: Gtk.Button) -> None:
        self._collection.reset_all()

    # --- Page tools ---

    def _on_export_clicked(self, _button: Gtk.Button) -> None:
        try:
            payload = build_organize_payload(self._collection)
        except PageDeckError as e:
            self._show_toast(e.message)
            return
        self._run_tool(lambda path: self._client.organize(path, payload))

    def _on_remove_clicked(self, _button: Gtk.Button) -> None:
        self._run_range_tool(self._client.remove_pages)

    def _on_extract_clicked(self, _button: Gtk.Button) -> None:
        self._run_range_tool(self._client.extract_pages)

    def _run_range_tool(self, tool) -> None:
        try:
            pages = build_removal_payload(self._range_entry.get_text())
        except PageDeckError as e:
            self._show_toast(e.message)
            return
        self._run_tool(lambda path: tool(path, pages))

    def _run_tool(self, call) -> None:
        """Run a blocking service call off the main loop and report its result."""
        if self._source_path is None or self._busy:
            return
        path = self._source_path
        self._busy = True
        self._update_actions()

        def worker() -> None:
            url, error = run_tool(call, path)
            glib_dispatch(lambda: self._on_tool_finished(url, error))

        self._tasks.submit(worker)

    def _on_tool_finished(self, url: str | None, error: PageDeckError | None) -> None:
        self._busy = False
        self._update_actions()
        if error is not None:
            logger.error(f"Page tool failed: {error}")
            self._show_toast(error.message)
            return

        logger.info(f"Result ready: {url}")
        toast = Adw.Toast(title=_("Your PDF is ready"))
        toast.set_button_label(_("Open"))
        toast.connect(
            "button-clicked", lambda *_args: Gtk.UriLauncher.new(url).launch(self, None, None)
        )
        self._toast_overlay.add_toast(toast)
