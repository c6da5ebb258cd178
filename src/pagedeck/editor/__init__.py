"""
PageDeck - Page Editor Core

Framework-free models behind the page editor: range strings, the ordered
page collection, selection, grid virtualization and manifest parsing.

Main Components:
- PageCollection: Ordered page entries with rotation and deletion state
- SelectionController: Click / shift-click selection serialized as a range string
- ViewportVirtualizer: Grid layout, row windowing and lazy-load bookkeeping
- Manifest: Validated page manifest returned by the preview service
"""

from pagedeck.editor.manifest import Manifest, parse_manifest
from pagedeck.editor.page_model import (
    CollectionSnapshot,
    DocumentIdentity,
    PageCollection,
    PageEntry,
)
from pagedeck.editor.page_operations import (
    build_organize_payload,
    delete_pages,
    restore_pages,
    rotate_pages,
)
from pagedeck.editor.range_codec import decode, encode
from pagedeck.editor.selection import SelectionController, build_removal_payload
from pagedeck.editor.virtualizer import ViewportSpec, ViewportVirtualizer

__all__ = [
    "CollectionSnapshot",
    "DocumentIdentity",
    "Manifest",
    "PageCollection",
    "PageEntry",
    "SelectionController",
    "ViewportSpec",
    "ViewportVirtualizer",
    "build_organize_payload",
    "build_removal_payload",
    "decode",
    "delete_pages",
    "encode",
    "parse_manifest",
    "restore_pages",
    "rotate_pages",
]
