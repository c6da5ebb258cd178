"""
PageDeck - Page Range Codec

Converts between sets of 1-based page numbers and compact range strings
such as ``"1-3,5,7-9"``.
"""

import re
from collections.abc import Iterable, Iterator

_TOKEN_RE = re.compile(r"^(\d+)(?:\s*-\s*(\d+))?$", re.ASCII)


def iter_runs(page_numbers: Iterable[int]) -> Iterator[tuple[int, int]]:
    """Yield maximal runs of consecutive page numbers as ``(start, end)``.

    Input is deduplicated and sorted first.
    """
    ordered = sorted(set(page_numbers))
    if not ordered:
        return

    start = prev = ordered[0]
    for current in ordered[1:]:
        if current == prev + 1:
            prev = current
            continue
        yield start, prev
        start = prev = current
    yield start, prev


def _format_run(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def encode(page_numbers: Iterable[int]) -> str:
    """Encode page numbers as a canonical range string.

    Args:
        page_numbers: Any iterable of positive integers (duplicates allowed)

    Returns:
        Comma-joined runs, e.g. ``{1, 2, 3, 5}`` -> ``"1-3,5"``; ``""`` if empty
    """
    return ",".join(_format_run(start, end) for start, end in iter_runs(page_numbers))


def _parse_span(token: str) -> tuple[int, int] | None:
    """Return ``(first, last)`` as written, or None if the token is invalid."""
    match = _TOKEN_RE.match(token)
    if not match:
        return None
    try:
        first = int(match.group(1))
        last = int(match.group(2)) if match.group(2) is not None else first
    except ValueError:
        # Longer than the interpreter's integer conversion limit
        return None
    if first < 1 or last < 1:
        return None
    return first, last


def _parse_token(token: str) -> tuple[int, int] | None:
    """Return the inclusive bounds a token describes, or None if it is invalid."""
    span = _parse_span(token)
    if span is None:
        return None
    return min(span), max(span)


def _tokens(range_string: str) -> Iterator[str]:
    for raw in (range_string or "").split(","):
        token = raw.strip()
        if token:
            yield token


def decode(range_string: str, valid_count: int) -> set[int]:
    """Decode a range string into the set of page numbers it names.

    Parsing is best effort: tokens that are not numbers, or that have zero or
    negative bounds, are skipped instead of failing the whole string. Every
    result is clamped to ``[1, valid_count]``.

    Args:
        range_string: Comma separated tokens (``"3"``, ``"1-5"``, ``"9-7"``)
        valid_count: Number of pages in the document

    Returns:
        Set of page numbers within the document
    """
    pages: set[int] = set()
    if valid_count < 1:
        return pages

    for token in _tokens(range_string):
        bounds = _parse_token(token)
        if bounds is None:
            continue
        low = max(bounds[0], 1)
        high = min(bounds[1], valid_count)
        if low <= high:
            pages.update(range(low, high + 1))
    return pages


def invalid_tokens(range_string: str) -> list[str]:
    """Return the tokens ``decode`` would skip as malformed.

    Out-of-range but well formed tokens are not reported; they are clamped.
    """
    return [token for token in _tokens(range_string) if _parse_token(token) is None]


def encode_order(page_numbers: Iterable[int]) -> str:
    """Encode an ordered page sequence without sorting it.

    Consecutive ascending neighbours collapse into ``a-b``; everything else
    stays in its position, so ``[3, 1, 2, 5]`` -> ``"3,1-2,5"``.
    """
    parts: list[str] = []
    start: int | None = None
    prev: int | None = None
    for page in page_numbers:
        if prev is not None and page == prev + 1:
            prev = page
            continue
        if start is not None:
            parts.append(_format_run(start, prev))
        start = prev = page
    if start is not None:
        parts.append(_format_run(start, prev))
    return ",".join(parts)


def parse_order(range_string: str, valid_count: int) -> list[int]:
    """Expand a range string into an ordered page list.

    Token order is kept and repeated pages are dropped after their first
    appearance. Invalid tokens are skipped as in ``decode``.
    """
    seen: set[int] = set()
    order: list[int] = []
    if valid_count < 1:
        return order

    for token in _tokens(range_string):
        span = _parse_span(token)
        if span is None or min(span) > valid_count:
            continue
        # Bounds are >= 1 already; clamp the top so huge spans stay cheap
        first, last = min(span[0], valid_count), min(span[1], valid_count)
        step = 1 if last >= first else -1
        for page in range(first, last + step, step):
            if page not in seen:
                seen.add(page)
                order.append(page)
    return order


__all__ = ["decode", "encode", "encode_order", "invalid_tokens", "iter_runs", "parse_order"]
