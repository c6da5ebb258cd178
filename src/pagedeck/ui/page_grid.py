"""
PageDeck - Virtualized Page Grid Widget

A scrolled grid of PageCards laid out on a Gtk.Fixed sized to the full
content height. Only rows inside the virtualizer's window are materialized;
cards scrolled out of it are destroyed and rebuilt on demand, and each card
requests its thumbnail once it comes near the viewport.
"""

import gi

gi.require_version("Gtk", "4.0")
from gi.repository import GLib, GObject, Gtk
from PIL import Image

from pagedeck.editor.page_model import CollectionSnapshot, PageCollection, PageEntry
from pagedeck.editor.selection import SelectionController, SelectionSnapshot
from pagedeck.editor.thumbnail_loader import ThumbnailLoader
from pagedeck.editor.virtualizer import Cell, ViewportSpec, ViewportVirtualizer
from pagedeck.ui.page_card import PageCard
from pagedeck.utils.exceptions import PageDeckError
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger


class PageGrid(Gtk.ScrolledWindow):
    """Grid display of a PageCollection.

    Features:
    - Column count derived from the available width
    - Row windowing with overscan so large documents stay cheap
    - Lazy thumbnail requests, never repeated for the same reference
    - Click / Shift+Click selection through a SelectionController
    - Per-page rotate and delete controls, drag-and-drop reordering
    """

    __gsignals__ = {
        "selection-changed": (GObject.SignalFlags.RUN_FIRST, None, (str,)),
        "collection-changed": (GObject.SignalFlags.RUN_FIRST, None, (int,)),
    }

    def __init__(
        self,
        collection: PageCollection,
        selection: SelectionController,
        loader: ThumbnailLoader,
        virtualizer: ViewportVirtualizer | None = None,
    ) -> None:
        """Initialize the page grid.

        Args:
            collection: Pages to display, in visual order
            selection: Selection driven by card clicks
            loader: Thumbnail loader shared with the rest of the editor
            virtualizer: Layout and windowing (default constraints when omitted)
        """
        super().__init__()

        self._collection = collection
        self._selection = selection
        self._loader = loader
        self._virtualizer = virtualizer or ViewportVirtualizer(ViewportSpec(0, 0))
        self._cards: dict[int, PageCard] = {}
        self._handler_ids: dict[int, list[int]] = {}
        self._resize_pending = False

        self._unsubscribers = [
            collection.subscribe(self._on_collection_changed),
            selection.subscribe(self._on_selection_changed),
        ]

        self.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)
        self.set_vexpand(True)
        self.set_hexpand(True)

        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the grid UI."""
        self._fixed = Gtk.Fixed()
        self._fixed.add_css_class("page-grid")
        self._fixed.set_accessible_role(Gtk.AccessibleRole.LIST)
        self._fixed.update_property(
            [Gtk.AccessibleProperty.LABEL],
            [_("Page thumbnails. Click to select, Shift+Click to select a range")],
        )
        self.set_child(self._fixed)

        vadj = self.get_vadjustment()
        vadj.connect("value-changed", self._on_scroll_changed)
        vadj.connect("notify::page-size", self._on_viewport_resized)
        self.get_hadjustment().connect("notify::page-size", self._on_viewport_resized)

    @property
    def virtualizer(self) -> ViewportVirtualizer:
        return self._virtualizer

    def materialized_pages(self) -> list[int]:
        """Page numbers that currently have a card, in visual order."""
        return [n for n in self._collection.page_numbers() if n in self._cards]

    # --- Layout ---

    def _on_scroll_changed(self, *_args) -> None:
        self.refresh()

    def _on_viewport_resized(self, *_args) -> None:
        # Resizing the content during allocation is not allowed; defer it
        if not self._resize_pending:
            self._resize_pending = True
            GLib.idle_add(self._refresh_idle)

    def _refresh_idle(self) -> bool:
        self._resize_pending = False
        self.refresh()
        return False

    def refresh(self) -> None:
        """Lay out the grid and materialize the rows in the current window."""
        width, height = self.get_width(), self.get_height()
        if width <= 0 or height <= 0:
            return

        self._virtualizer.resize(width, height)
        if self._virtualizer.page_count != len(self._collection):
            self._virtualizer.set_page_count(len(self._collection))
        self._fixed.set_size_request(width, self._virtualizer.total_height)

        scroll = self.get_vadjustment().get_value()
        entries = list(self._collection)

        wanted: dict[int, tuple[Cell, PageEntry]] = {}
        for cell in self._virtualizer.visible_cells(scroll):
            entry = entries[cell.index]
            wanted[entry.page_number] = (cell, entry)

        for page_number in list(self._cards):
            if page_number not in wanted:
                self._remove_card(page_number)

        for page_number, (cell, entry) in wanted.items():
            card = self._cards.get(page_number)
            if card is None:
                card = self._create_card(entry, cell)
                self._fixed.put(card, cell.x, cell.y)
            else:
                self._fixed.move(card, cell.x, cell.y)
                card.set_cell_size(cell.width, cell.height)
                card.update_from_entry()

        self._request_thumbnails(scroll, entries)

    def _request_thumbnails(self, scroll: float, entries: list[PageEntry]) -> None:
        references = [entry.image_reference for entry in entries]
        for _cell, reference in self._virtualizer.cells_to_request(scroll, references):
            self._loader.request(reference, self._on_thumbnail_loaded)

    # --- Cards ---

    def _create_card(self, entry: PageEntry, cell: Cell) -> PageCard:
        card = PageCard(entry, cell.width, cell.height)
        card.selected = self._selection.is_selected(entry.page_number)

        # A card rebuilt after scrolling back reuses what was already loaded
        image = self._loader.cached(entry.image_reference)
        if image is not None:
            card.set_thumbnail(image)
        elif self._virtualizer.state(entry.image_reference).errored:
            card.show_placeholder()

        page_number = entry.page_number
        self._handler_ids[page_number] = [
            card.connect("card-clicked", self._on_card_clicked, page_number),
            card.connect("rotate-left-clicked", self._on_card_rotate_left, page_number),
            card.connect("rotate-right-clicked", self._on_card_rotate_right, page_number),
            card.connect("delete-toggled", self._on_card_delete_toggled, page_number),
            card.connect("page-dropped", self._on_card_page_dropped, page_number),
        ]
        self._cards[page_number] = card
        return card

    def _remove_card(self, page_number: int) -> None:
        card = self._cards.pop(page_number)
        for handler_id in self._handler_ids.pop(page_number, []):
            card.disconnect(handler_id)
        self._fixed.remove(card)

    def _remove_all_cards(self) -> None:
        for page_number in list(self._cards):
            self._remove_card(page_number)

    def _on_card_clicked(self, _card: PageCard, extend_range: bool, page_number: int) -> None:
        self._selection.handle_click(page_number, extend_range=extend_range)

    def _on_card_rotate_left(self, _card: PageCard, page_number: int) -> None:
        self._collection.rotate_left(page_number)

    def _on_card_rotate_right(self, _card: PageCard, page_number: int) -> None:
        self._collection.rotate_right(page_number)

    def _on_card_delete_toggled(self, _card: PageCard, page_number: int) -> None:
        self._collection.toggle_deleted(page_number)

    def _on_card_page_dropped(self, _card: PageCard, source_page: int, page_number: int) -> None:
        if self._collection.reorder(source_page, page_number) is not None:
            logger.info(f"Page {source_page} moved to the position of page {page_number}")

    # --- Model observers ---

    def _on_collection_changed(self, snapshot: CollectionSnapshot) -> None:
        if not snapshot.order:
            # New document: drop every card so nothing of the old one lingers
            self._remove_all_cards()
            self._virtualizer.reset()
            self._virtualizer.set_page_count(0)
            self._fixed.set_size_request(-1, 0)
            self.get_vadjustment().set_value(0)
        self.refresh()
        self.emit("collection-changed", len(snapshot.export_order))

    def _on_selection_changed(self, snapshot: SelectionSnapshot) -> None:
        selected = set(snapshot.pages)
        for page_number, card in self._cards.items():
            card.selected = page_number in selected
        self.emit("selection-changed", snapshot.range_string)

    def _on_thumbnail_loaded(
        self, reference: str, image: Image.Image | None, error: PageDeckError | None
    ) -> None:
        if error is not None:
            self._virtualizer.mark_errored(reference)
        for card in self._cards.values():
            if card.image_reference != reference:
                continue
            if image is not None:
                card.set_thumbnail(image)
            else:
                card.show_placeholder()

    def unbind(self) -> None:
        """Stop observing the collection and selection (the grid is being destroyed)."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._remove_all_cards()
