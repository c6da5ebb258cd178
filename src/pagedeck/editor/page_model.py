"""
PageDeck - Page Model

Data models for page entries and the ordered, editable page collection.
"""

import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pagedeck.constants import FULL_TURN, QUARTER_TURN
from pagedeck.utils.logger import logger


def normalize_rotation(degrees: int) -> int:
    """Wrap an angle into [0, 360) and snap it to the nearest quarter turn."""
    wrapped = ((degrees % FULL_TURN) + FULL_TURN) % FULL_TURN
    return round(wrapped / QUARTER_TURN) * QUARTER_TURN % FULL_TURN


@dataclass
class PageEntry:
    """State of a single page in the working collection.

    Attributes:
        page_number: Original page number (1-indexed), stable and unique
        image_reference: Opaque URL or token used to fetch the thumbnail
        deleted: Whether the page is marked for deletion (soft delete)
        rotation: Rotation angle in degrees (0, 90, 180, 270)
    """

    page_number: int
    image_reference: str
    deleted: bool = False
    rotation: int = 0

    def __post_init__(self) -> None:
        """Validate page number and normalize rotation angle."""
        if self.page_number < 1:
            raise ValueError(f"page_number must be positive, got {self.page_number}")
        self.rotation = normalize_rotation(self.rotation)

    def rotate(self, degrees: int) -> None:
        """Rotate page by specified degrees."""
        self.rotation = normalize_rotation(self.rotation + degrees)

    def rotate_left(self) -> None:
        """Rotate page 90 degrees counter-clockwise."""
        self.rotate(-QUARTER_TURN)

    def rotate_right(self) -> None:
        """Rotate page 90 degrees clockwise."""
        self.rotate(QUARTER_TURN)

    def to_dict(self) -> dict:
        return {
            "pageNumber": self.page_number,
            "imageReference": self.image_reference,
            "deleted": self.deleted,
            "rotation": self.rotation,
        }


@dataclass(frozen=True)
class DocumentIdentity:
    """Identity signature of a source document.

    Two selections of the same file (same name, size and modification
    time) are treated as the same document and keep their edits.
    """

    name: str
    size: int
    modified: float

    @property
    def signature(self) -> str:
        return f"{self.name}:{self.size}:{self.modified}"

    @classmethod
    def from_path(cls, path: str) -> "DocumentIdentity":
        """Build the identity of a file on disk."""
        stat = os.stat(path)
        return cls(name=os.path.basename(path), size=stat.st_size, modified=stat.st_mtime)


@dataclass(frozen=True)
class CollectionSnapshot:
    """Derived view of a collection after a mutation.

    Attributes:
        order: Every page number in visual order, deleted pages included
        export_order: Page numbers that will be exported, in order
        rotations: Rotation overrides for exported pages
    """

    order: tuple[int, ...]
    export_order: tuple[int, ...]
    rotations: tuple[tuple[int, int], ...] = field(default_factory=tuple)

    def rotation_payload(self) -> list[dict[str, int]]:
        return [{"pageNumber": page, "degrees": degrees} for page, degrees in self.rotations]


CollectionListener = Callable[[CollectionSnapshot], None]


class PageCollection:
    """Ordered, editable sequence of PageEntry objects.

    The collection is empty until a full manifest arrives. The first
    successful hydrate claims it; later hydrates for the same document are
    ignored so in-progress edits survive a repeated preview fetch.

    Mutations run synchronously. Each one that changes state returns the new
    CollectionSnapshot and passes it to every subscriber; no-ops return None.
    """

    def __init__(self) -> None:
        self._entries: list[PageEntry] = []
        self._listeners: list[CollectionListener] = []

    # --- Container protocol ---

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PageEntry]:
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        return bool(self._entries)

    def get(self, page_number: int) -> PageEntry | None:
        index = self._index_of(page_number)
        return self._entries[index] if index is not None else None

    def page_numbers(self) -> list[int]:
        return [entry.page_number for entry in self._entries]

    def _index_of(self, page_number: int) -> int | None:
        for i, entry in enumerate(self._entries):
            if entry.page_number == page_number:
                return i
        return None

    # --- Observers ---

    def subscribe(self, listener: CollectionListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> CollectionSnapshot:
        return CollectionSnapshot(
            order=tuple(self.page_numbers()),
            export_order=tuple(self.export_order()),
            rotations=tuple((o["pageNumber"], o["degrees"]) for o in self.rotation_overrides()),
        )

    def _changed(self) -> CollectionSnapshot:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    # --- Lifecycle ---

    def hydrate(self, entries: Iterable[PageEntry]) -> CollectionSnapshot | None:
        """Fill an empty collection from a freshly loaded manifest.

        Args:
            entries: Page entries in manifest order

        Returns:
            The new snapshot, or None when the collection was already claimed
        """
        if self._entries:
            logger.debug("Collection already hydrated, keeping current edits")
            return None

        new_entries = list(entries)
        seen: set[int] = set()
        for entry in new_entries:
            if entry.page_number in seen:
                raise ValueError(f"Duplicate page number in manifest: {entry.page_number}")
            seen.add(entry.page_number)

        self._entries = new_entries
        logger.info(f"Hydrated collection with {len(new_entries)} page(s)")
        return self._changed()

    def clear(self) -> CollectionSnapshot | None:
        """Drop every entry (the source document changed)."""
        if not self._entries:
            return None
        self._entries = []
        return self._changed()

    # --- Mutations ---

    def reorder(self, from_page: int, to_page: int) -> CollectionSnapshot | None:
        """Move one entry to the position currently held by another.

        Entries between the two positions shift by one; page numbers are
        never rewritten.

        Args:
            from_page: Page number of the entry being moved
            to_page: Page number whose position the entry takes
        """
        if from_page == to_page:
            return None
        from_idx = self._index_of(from_page)
        to_idx = self._index_of(to_page)
        if from_idx is None or to_idx is None:
            return None

        moved = self._entries.pop(from_idx)
        self._entries.insert(to_idx, moved)
        logger.debug(f"Moved page {from_page} from position {from_idx} to {to_idx}")
        return self._changed()

    def toggle_deleted(self, page_number: int) -> CollectionSnapshot | None:
        """Flip the soft-delete flag; the entry keeps its position."""
        entry = self.get(page_number)
        if entry is None:
            return None
        entry.deleted = not entry.deleted
        return self._changed()

    def set_deleted(self, page_number: int, deleted: bool) -> CollectionSnapshot | None:
        entry = self.get(page_number)
        if entry is None or entry.deleted == deleted:
            return None
        entry.deleted = deleted
        return self._changed()

    def rotate(self, page_number: int, delta_degrees: int) -> CollectionSnapshot | None:
        """Rotate one entry, wrapping into [0, 360) and snapping to 90 degrees."""
        entry = self.get(page_number)
        if entry is None:
            return None
        entry.rotate(delta_degrees)
        return self._changed()

    def rotate_left(self, page_number: int) -> CollectionSnapshot | None:
        return self.rotate(page_number, -QUARTER_TURN)

    def rotate_right(self, page_number: int) -> CollectionSnapshot | None:
        return self.rotate(page_number, QUARTER_TURN)

    def reset_all(self) -> CollectionSnapshot | None:
        """Restore every page and clear every rotation. Order is unchanged."""
        if not self._entries:
            return None
        for entry in self._entries:
            entry.deleted = False
            entry.rotation = 0
        return self._changed()

    # --- Derived queries ---

    def export_order(self) -> list[int]:
        """Page numbers of the pages that will be exported, in visual order."""
        return [entry.page_number for entry in self._entries if not entry.deleted]

    def rotation_overrides(self) -> list[dict[str, Any]]:
        """Rotation overrides for exported pages that are not upright."""
        return [
            {"pageNumber": entry.page_number, "degrees": entry.rotation}
            for entry in self._entries
            if not entry.deleted and entry.rotation != 0
        ]

    def active_count(self) -> int:
        return sum(1 for entry in self._entries if not entry.deleted)

    def can_export(self) -> bool:
        """Cheap precondition check callers run before an export request."""
        return any(not entry.deleted for entry in self._entries)
