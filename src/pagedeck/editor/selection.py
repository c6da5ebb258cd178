"""
PageDeck - Page Selection Controller

Tracks the set of marked page numbers with click / shift-click semantics
and serializes it as a range string.
"""

from collections.abc import Callable
from dataclasses import dataclass

from pagedeck.editor import range_codec
from pagedeck.editor.page_model import DocumentIdentity
from pagedeck.utils.exceptions import PreconditionFailure
from pagedeck.utils.i18n import _


@dataclass(frozen=True)
class SelectionSnapshot:
    """Selection state handed to subscribers after every change."""

    pages: tuple[int, ...]
    anchor: int | None
    range_string: str


SelectionListener = Callable[[SelectionSnapshot], None]


class SelectionController:
    """Selection of page numbers with an anchor for shift-click ranges.

    A plain click toggles one page and moves the anchor there. A shift-click
    adds every page between the anchor and the target; it never removes
    pages, so a non-contiguous selection can be built from several ranges.
    """

    def __init__(self) -> None:
        self._selected: set[int] = set()
        self._anchor: int | None = None
        self._identity: DocumentIdentity | None = None
        self._listeners: list[SelectionListener] = []

    @property
    def anchor(self) -> int | None:
        return self._anchor

    def selected(self) -> list[int]:
        return sorted(self._selected)

    def is_selected(self, page_number: int) -> bool:
        return page_number in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            pages=tuple(self.selected()),
            anchor=self._anchor,
            range_string=self.serialize(),
        )

    def _changed(self) -> SelectionSnapshot:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    # --- Input ---

    def click(self, page_number: int) -> SelectionSnapshot:
        """Toggle one page and make it the new anchor."""
        if page_number in self._selected:
            self._selected.discard(page_number)
        else:
            self._selected.add(page_number)
        self._anchor = page_number
        return self._changed()

    def shift_click(self, page_number: int) -> SelectionSnapshot:
        """Add the inclusive span from the anchor to ``page_number``.

        Without an anchor this is a plain click.
        """
        if self._anchor is None:
            return self.click(page_number)

        low = min(self._anchor, page_number)
        high = max(self._anchor, page_number)
        self._selected.update(range(low, high + 1))
        self._anchor = page_number
        return self._changed()

    def handle_click(self, page_number: int, extend_range: bool = False) -> SelectionSnapshot:
        """Dispatch a pointer click, with ``extend_range`` set when Shift is held."""
        if extend_range:
            return self.shift_click(page_number)
        return self.click(page_number)

    def select_all(self, page_count: int) -> SelectionSnapshot:
        self._selected = set(range(1, page_count + 1))
        self._anchor = page_count if page_count > 0 else None
        return self._changed()

    def load(self, range_string: str, valid_count: int) -> SelectionSnapshot:
        """Replace the selection with the pages named by a hand-edited range string."""
        self._selected = range_codec.decode(range_string, valid_count)
        self._anchor = None
        return self._changed()

    def clear(self) -> SelectionSnapshot:
        """Empty the selection and forget the anchor."""
        self._selected.clear()
        self._anchor = None
        return self._changed()

    def bind_identity(self, identity: DocumentIdentity | None) -> bool:
        """Attach the selection to a document; clears it when the document changed.

        Returns:
            True if the selection was cleared
        """
        if identity == self._identity:
            return False
        self._identity = identity
        self.clear()
        return True

    # --- Output ---

    def serialize(self) -> str:
        return range_codec.encode(self._selected)


def build_removal_payload(source: SelectionController | str) -> str:
    """Validate the range string sent to page removal / extraction tools.

    Accepts a hand-edited range string or a controller, whose selection is
    serialized.

    Raises:
        PreconditionFailure: If the string is blank
    """
    range_string = source.serialize() if isinstance(source, SelectionController) else source
    trimmed = (range_string or "").strip()
    if not trimmed:
        raise PreconditionFailure(
            _("Enter the pages you want to remove (for example 1-3,5).")
        )
    return trimmed
