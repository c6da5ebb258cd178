#!/usr/bin/env python3
"""
PageDeck CLI - page range and layout helpers from the terminal.

Usage:
    python -m pagedeck.cli <command> [options]

Commands:
    encode      Compress page numbers into a range string
    decode      Expand a range string into page numbers
    layout      Show the grid layout and visible rows for a viewport
    preview     Fetch the page manifest of a PDF from the processing service
    organize    Export pages in a new order with optional rotations
    remove      Remove pages from a PDF
    extract     Extract pages from a PDF

Examples:
    pagedeck-cli encode 1 2 3 5
    pagedeck-cli decode "1-3,5" --count 10
    pagedeck-cli layout --width 1000 --height 800 --pages 120 --scroll 2400
    pagedeck-cli preview document.pdf --api http://localhost:8080/api/pdf
    pagedeck-cli organize document.pdf --order "3,1-2" --rotate 3:90
    pagedeck-cli remove document.pdf --pages "2,4-6"
"""

import argparse
import logging
import sys
from pathlib import Path

from pagedeck.utils.i18n import _

# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _parse_rotation(text: str) -> tuple[int, int]:
    """Parse a ``PAGE:DEGREES`` rotation override."""
    try:
        page_s, degrees_s = text.split(":", 1)
        page, degrees = int(page_s.strip()), int(degrees_s.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid rotation '{text}'. Use PAGE:DEGREES, e.g. 3:90."
        ) from None
    if page < 1:
        raise argparse.ArgumentTypeError(f"Invalid page number in '{text}'.")
    return page, degrees


# ---------------------------------------------------------------------------
# Argument parser construction
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with subcommands."""
    p = argparse.ArgumentParser(
        prog="pagedeck-cli",
        description="PageDeck - page selection and layout toolbox.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", "--verbose", action="store_true", help=_("Verbose logging (DEBUG)"))

    sub = p.add_subparsers(dest="command", help=_("Available commands"))

    # --- encode ---
    enc_p = sub.add_parser("encode", help=_("Compress page numbers into a range string"))
    enc_p.add_argument("pages", type=int, nargs="*", help=_("Page numbers (1-based)"))
    enc_p.add_argument(
        "--keep-order",
        action="store_true",
        help=_("Keep the given order instead of sorting (organize order strings)"),
    )

    # --- decode ---
    dec_p = sub.add_parser("decode", help=_("Expand a range string into page numbers"))
    dec_p.add_argument("range_string", help=_("Range string, e.g. '1-3,5'"))
    dec_p.add_argument(
        "--count", type=int, required=True, help=_("Number of pages in the document")
    )

    # --- layout ---
    lay_p = sub.add_parser("layout", help=_("Show the grid layout for a viewport"))
    lay_p.add_argument("--width", type=int, required=True, help=_("Viewport width in pixels"))
    lay_p.add_argument("--height", type=int, required=True, help=_("Viewport height in pixels"))
    lay_p.add_argument("--pages", type=int, required=True, help=_("Number of pages"))
    lay_p.add_argument(
        "--scroll", type=float, default=0.0, help=_("Vertical scroll offset (default: 0)")
    )

    # --- service tools ---
    def add_service_args(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("input", type=Path, help=_("Input PDF file"))
        parser.add_argument(
            "--api", default=None, help=_("Processing service base URL (default: from settings)")
        )

    prev_p = sub.add_parser("preview", help=_("Fetch the page manifest of a PDF"))
    add_service_args(prev_p)

    org_p = sub.add_parser("organize", help=_("Export pages in a new order"))
    add_service_args(org_p)
    org_p.add_argument(
        "--order", required=True, help=_("Pages in export order, e.g. '3,1-2,5'")
    )
    org_p.add_argument(
        "--rotate",
        type=_parse_rotation,
        action="append",
        default=[],
        metavar="PAGE:DEGREES",
        help=_("Rotate a page clockwise (repeatable)"),
    )

    rem_p = sub.add_parser("remove", help=_("Remove pages from a PDF"))
    add_service_args(rem_p)
    rem_p.add_argument("--pages", required=True, help=_("Pages to remove, e.g. '1-3,5'"))

    ext_p = sub.add_parser("extract", help=_("Extract pages from a PDF"))
    add_service_args(ext_p)
    ext_p.add_argument("--pages", required=True, help=_("Pages to extract, e.g. '1-3,5'"))

    return p


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_encode(args, _logger) -> int:
    """Handle the 'encode' command."""
    from pagedeck.editor.range_codec import encode, encode_order

    if any(page < 1 for page in args.pages):
        print("Error: page numbers start at 1", file=sys.stderr)
        return 1
    print(encode_order(args.pages) if args.keep_order else encode(args.pages))
    return 0


def _cmd_decode(args, logger) -> int:
    """Handle the 'decode' command."""
    from pagedeck.editor.range_codec import decode, invalid_tokens

    for token in invalid_tokens(args.range_string):
        logger.warning(f"Ignoring invalid range token '{token}'")
    pages = sorted(decode(args.range_string, args.count))
    print(" ".join(str(page) for page in pages))
    return 0


def _cmd_layout(args, _logger) -> int:
    """Handle the 'layout' command."""
    from pagedeck.editor.range_codec import encode
    from pagedeck.editor.virtualizer import ViewportVirtualizer
    from pagedeck.utils.config_manager import get_config_manager

    virtualizer = ViewportVirtualizer.from_config(
        args.width, args.height, get_config_manager(), page_count=args.pages
    )
    layout = virtualizer.layout
    rows = virtualizer.visible_rows(args.scroll)
    cells = virtualizer.visible_cells(args.scroll)

    print(f"Columns:    {layout.column_count}")
    print(f"Cell:       {layout.cell_width} x {layout.cell_height} px")
    print(f"Rows:       {layout.row_count}")
    print(f"Height:     {layout.total_height} px")
    if rows:
        print(f"Visible:    rows {rows.start}-{rows.stop - 1}")
        print(f"Pages:      {encode(cell.index + 1 for cell in cells)}")
    else:
        print("Visible:    none")
    return 0


def _make_client(args):
    from pagedeck.services.pdf_api import PdfApiClient
    from pagedeck.utils.config_manager import get_config_manager

    if args.api:
        return PdfApiClient(args.api)
    return PdfApiClient.from_config(get_config_manager())


def _cmd_preview(args, _logger) -> int:
    """Handle the 'preview' command."""
    from pagedeck.editor.range_codec import encode

    with _make_client(args) as client:
        manifest = client.preview(str(args.input))

    print(f"File:       {args.input}")
    print(f"Pages:      {len(manifest)}")
    print(f"Range:      {encode(entry.page_number for entry in manifest.pages)}")
    return 0


def _cmd_organize(args, _logger) -> int:
    """Handle the 'organize' command."""
    from pagedeck.editor.page_model import PageCollection, PageEntry
    from pagedeck.editor.page_operations import build_organize_payload
    from pagedeck.editor.range_codec import parse_order

    with _make_client(args) as client:
        manifest = client.preview(str(args.input))
        by_number: dict[int, PageEntry] = {e.page_number: e for e in manifest.entries()}

        # Pages missing from --order are kept at the end as deleted
        order = [n for n in parse_order(args.order, len(manifest)) if n in by_number]
        ordered = set(order)
        dropped = [e for n, e in by_number.items() if n not in ordered]
        for entry in dropped:
            entry.deleted = True
        for page, degrees in args.rotate:
            if page in by_number:
                by_number[page].rotate(degrees)

        collection = PageCollection()
        collection.hydrate([by_number[n] for n in order] + dropped)
        payload = build_organize_payload(collection)
        url = client.organize(str(args.input), payload)

    print(f"Organized: {payload['order']} → {url}")
    return 0


def _cmd_remove(args, _logger) -> int:
    """Handle the 'remove' command."""
    from pagedeck.editor.selection import build_removal_payload

    pages = build_removal_payload(args.pages)
    with _make_client(args) as client:
        url = client.remove_pages(str(args.input), pages)
    print(f"Removed: {pages} → {url}")
    return 0


def _cmd_extract(args, _logger) -> int:
    """Handle the 'extract' command."""
    from pagedeck.editor.selection import build_removal_payload

    pages = build_removal_payload(args.pages)
    with _make_client(args) as client:
        url = client.extract_pages(str(args.input), pages)
    print(f"Extracted: {pages} → {url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    from pagedeck.utils.exceptions import PageDeckError
    from pagedeck.utils.logger import logger, set_log_level

    if args.verbose:
        set_log_level(logging.DEBUG)

    # Validate input file existence for service commands
    if hasattr(args, "input") and args.input and not args.input.exists():
        print(f"Error: {args.input} not found", file=sys.stderr)
        return 1

    handlers = {
        "encode": _cmd_encode,
        "decode": _cmd_decode,
        "layout": _cmd_layout,
        "preview": _cmd_preview,
        "organize": _cmd_organize,
        "remove": _cmd_remove,
        "extract": _cmd_extract,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, logger)
    except PageDeckError as e:
        logger.debug(f"{args.command} failed: {e.details}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
