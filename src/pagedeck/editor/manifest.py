"""
PageDeck - Page Manifest

The ordered list of page descriptors a preview fetch delivers, and its
validation.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pagedeck.editor.page_model import PageEntry
from pagedeck.utils.exceptions import ManifestError


@dataclass(frozen=True)
class Manifest:
    """Ordered page descriptors returned by a preview call."""

    pages: tuple[PageEntry, ...]

    def __len__(self) -> int:
        return len(self.pages)

    def entries(self) -> list[PageEntry]:
        """Fresh PageEntry copies, safe to hand to a collection."""
        return [PageEntry(p.page_number, p.image_reference) for p in self.pages]


def parse_manifest(data: Any, source: str | None = None) -> Manifest:
    """Validate a decoded manifest body.

    Accepts ``{"pages": [{"pageNumber": 1, "imageUrl": "..."}]}``; the key
    ``imageReference`` is accepted in place of ``imageUrl``.

    Raises:
        ManifestError: If ``pages`` is missing or any descriptor is invalid
    """
    if not isinstance(data, Mapping) or not isinstance(data.get("pages"), list):
        raise ManifestError("Invalid PDF preview response", source=source)

    pages: list[PageEntry] = []
    seen: set[int] = set()
    for position, item in enumerate(data["pages"]):
        if not isinstance(item, Mapping):
            raise ManifestError(f"Invalid page descriptor at position {position}", source=source)

        number = item.get("pageNumber")
        reference = item.get("imageUrl", item.get("imageReference"))
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            raise ManifestError(f"Invalid page number at position {position}", source=source)
        if not isinstance(reference, str) or not reference:
            raise ManifestError(f"Missing image reference for page {number}", source=source)
        if number in seen:
            raise ManifestError(f"Duplicate page number {number}", source=source)

        seen.add(number)
        pages.append(PageEntry(page_number=number, image_reference=reference))

    return Manifest(pages=tuple(pages))
