"""
PageDeck - Page Operations

Bulk operations over a PageCollection (usually applied to the current
selection) and builders for the payloads sent to the processing service.
"""

from collections.abc import Iterable
from typing import Any

from pagedeck.editor.page_model import PageCollection
from pagedeck.editor.range_codec import encode_order
from pagedeck.utils.exceptions import PreconditionFailure
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger


def rotate_pages(collection: PageCollection, page_numbers: Iterable[int], degrees: int) -> int:
    """Rotate several pages by the same angle.

    Args:
        collection: The collection to modify
        page_numbers: Page numbers to rotate
        degrees: Rotation angle (90, 180, 270, or -90)

    Returns:
        Number of pages that were rotated
    """
    rotated = 0
    for page_number in page_numbers:
        if collection.rotate(page_number, degrees) is not None:
            rotated += 1

    if rotated:
        logger.info(f"Rotated {rotated} page(s) by {degrees}°")
    return rotated


def set_pages_deleted(
    collection: PageCollection, page_numbers: Iterable[int], deleted: bool
) -> int:
    """Mark several pages deleted (or restored). Pages keep their position.

    Returns:
        Number of pages whose flag actually changed
    """
    changed = 0
    for page_number in page_numbers:
        if collection.set_deleted(page_number, deleted) is not None:
            changed += 1

    if changed:
        action = "Deleted" if deleted else "Restored"
        logger.info(f"{action} {changed} page(s)")
    return changed


def delete_pages(collection: PageCollection, page_numbers: Iterable[int]) -> int:
    return set_pages_deleted(collection, page_numbers, True)


def restore_pages(collection: PageCollection, page_numbers: Iterable[int]) -> int:
    return set_pages_deleted(collection, page_numbers, False)


def toggle_deleted_pages(collection: PageCollection, page_numbers: Iterable[int]) -> int:
    """Flip the deleted flag of every given page that exists."""
    toggled = 0
    for page_number in page_numbers:
        if collection.toggle_deleted(page_number) is not None:
            toggled += 1
    return toggled


def build_organize_payload(collection: PageCollection) -> dict[str, Any]:
    """Build the organize request body from the collection.

    Args:
        collection: The edited collection

    Returns:
        ``{"order": "3,1-2", "rotations": [{"pageNumber": 3, "degrees": 90}]}``

    Raises:
        PreconditionFailure: If no pages are loaded or every page is deleted
    """
    if not collection:
        raise PreconditionFailure(_("Choose a PDF first so its pages can be loaded."))
    if not collection.can_export():
        raise PreconditionFailure(
            _("You deleted every page. Restore at least one page to export.")
        )

    return {
        "order": encode_order(collection.export_order()),
        "rotations": collection.rotation_overrides(),
    }
