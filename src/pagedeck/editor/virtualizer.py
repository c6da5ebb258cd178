"""
PageDeck - Viewport Virtualizer

Grid layout and windowing for large page collections. Only the rows near
the visible area are materialized, and each materialized cell requests its
thumbnail once it comes within a preload margin of the viewport.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from pagedeck.constants import (
    CELL_ASPECT_HEIGHT,
    CELL_ASPECT_WIDTH,
    DEFAULT_CELL_GAP_PX,
    DEFAULT_FOOTER_HEIGHT_PX,
    DEFAULT_MAX_COLUMNS,
    DEFAULT_MIN_CELL_WIDTH_PX,
    DEFAULT_OVERSCAN_ROWS,
    DEFAULT_PRELOAD_MARGIN_PX,
    MIN_COLUMNS,
)
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.logger import logger


@dataclass(frozen=True)
class ViewportSpec:
    """Container size and grid constraints, all in pixels."""

    available_width: int
    available_height: int
    min_cell_width: int = DEFAULT_MIN_CELL_WIDTH_PX
    max_columns: int = DEFAULT_MAX_COLUMNS
    cell_gap: int = DEFAULT_CELL_GAP_PX
    footer_height: int = DEFAULT_FOOTER_HEIGHT_PX

    @classmethod
    def from_config(cls, width: int, height: int, config: ConfigManager) -> "ViewportSpec":
        """Build a spec for the given container size using the ``viewport`` settings."""
        return cls(
            available_width=width,
            available_height=height,
            min_cell_width=config.get_int("viewport.min_cell_width", DEFAULT_MIN_CELL_WIDTH_PX, 1),
            max_columns=config.get_int("viewport.max_columns", DEFAULT_MAX_COLUMNS, MIN_COLUMNS),
            cell_gap=config.get_int("viewport.cell_gap", DEFAULT_CELL_GAP_PX),
            footer_height=config.get_int("viewport.footer_height", DEFAULT_FOOTER_HEIGHT_PX),
        )

    def column_count(self) -> int:
        fitting = (self.available_width + self.cell_gap) // (self.min_cell_width + self.cell_gap)
        upper = max(MIN_COLUMNS, self.max_columns)
        return max(MIN_COLUMNS, min(fitting, upper))

    def layout(self, page_count: int) -> "GridLayout":
        """Compute the grid for ``page_count`` pages."""
        columns = self.column_count()
        cell_width = max(0, (self.available_width - self.cell_gap * (columns - 1)) // columns)
        cell_height = cell_width * CELL_ASPECT_HEIGHT // CELL_ASPECT_WIDTH + self.footer_height
        rows = math.ceil(page_count / columns) if page_count > 0 else 0
        return GridLayout(
            column_count=columns,
            cell_width=cell_width,
            cell_height=cell_height,
            row_count=rows,
            cell_gap=self.cell_gap,
            page_count=max(0, page_count),
        )


@dataclass(frozen=True)
class Cell:
    """Position of one page in the grid, relative to the top of the content."""

    index: int
    row: int
    column: int
    x: int
    y: int
    width: int
    height: int

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class GridLayout:
    """Result of laying out a page count on a ViewportSpec."""

    column_count: int
    cell_width: int
    cell_height: int
    row_count: int
    cell_gap: int
    page_count: int

    @property
    def row_stride(self) -> int:
        return self.cell_height + self.cell_gap

    @property
    def total_height(self) -> int:
        """Height of the scrollable content, gaps between rows included."""
        if self.row_count == 0:
            return 0
        return self.row_count * self.cell_height + (self.row_count - 1) * self.cell_gap

    def cell(self, index: int) -> Cell:
        if not 0 <= index < self.page_count:
            raise IndexError(f"cell index {index} out of range for {self.page_count} page(s)")
        row, column = divmod(index, self.column_count)
        return Cell(
            index=index,
            row=row,
            column=column,
            x=column * (self.cell_width + self.cell_gap),
            y=row * self.row_stride,
            width=self.cell_width,
            height=self.cell_height,
        )

    def cells_in_row(self, row: int) -> list[Cell]:
        first = row * self.column_count
        last = min(first + self.column_count, self.page_count)
        return [self.cell(i) for i in range(first, last)]


@dataclass
class LazyLoadState:
    """Thumbnail request state of one image reference."""

    requested: bool = False
    errored: bool = False


class ViewportVirtualizer:
    """Windowing over a grid of page cells.

    Rows outside ``[scroll - overscan, scroll + height + overscan]`` produce
    no cells but still count toward ``total_height``. Lazy-load state is kept
    per image reference: a reference is requested at most once and a failed
    reference is never retried automatically.
    """

    def __init__(
        self,
        spec: ViewportSpec,
        page_count: int = 0,
        overscan_rows: int = DEFAULT_OVERSCAN_ROWS,
        preload_margin: int = DEFAULT_PRELOAD_MARGIN_PX,
    ) -> None:
        """Initialize the virtualizer.

        Args:
            spec: Container size and grid constraints
            page_count: Number of pages to lay out
            overscan_rows: Extra rows materialized above and below the viewport
            preload_margin: Distance in pixels at which a cell requests its image
        """
        self._spec = spec
        self._page_count = max(0, page_count)
        self._overscan_rows = max(0, overscan_rows)
        self._preload_margin = max(0, preload_margin)
        self._layout = spec.layout(self._page_count)
        self._load_states: dict[str, LazyLoadState] = {}

    @classmethod
    def from_config(
        cls, width: int, height: int, config: ConfigManager, page_count: int = 0
    ) -> "ViewportVirtualizer":
        return cls(
            ViewportSpec.from_config(width, height, config),
            page_count=page_count,
            overscan_rows=config.get_int("viewport.overscan_rows", DEFAULT_OVERSCAN_ROWS),
            preload_margin=config.get_int("viewport.preload_margin", DEFAULT_PRELOAD_MARGIN_PX),
        )

    @property
    def spec(self) -> ViewportSpec:
        return self._spec

    @property
    def layout(self) -> GridLayout:
        return self._layout

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def total_height(self) -> int:
        return self._layout.total_height

    # --- Layout changes ---

    def resize(self, width: int, height: int) -> GridLayout:
        """Recompute the layout for a new container size."""
        if (width, height) != (self._spec.available_width, self._spec.available_height):
            self._spec = ViewportSpec(
                available_width=width,
                available_height=height,
                min_cell_width=self._spec.min_cell_width,
                max_columns=self._spec.max_columns,
                cell_gap=self._spec.cell_gap,
                footer_height=self._spec.footer_height,
            )
            self._layout = self._spec.layout(self._page_count)
        return self._layout

    def set_page_count(self, page_count: int) -> GridLayout:
        """Recompute the layout for a new number of pages."""
        self._page_count = max(0, page_count)
        self._layout = self._spec.layout(self._page_count)
        logger.debug(
            f"Layout: {self._layout.column_count} column(s), {self._layout.row_count} row(s) "
            f"for {self._page_count} page(s)"
        )
        return self._layout

    def reset(self) -> None:
        """Forget every lazy-load state (a new document was selected)."""
        self._load_states.clear()

    # --- Windowing ---

    def clamp_scroll(self, scroll_offset: float) -> float:
        max_scroll = max(0, self._layout.total_height - self._spec.available_height)
        return min(max(0.0, float(scroll_offset)), float(max_scroll))

    def visible_rows(self, scroll_offset: float) -> range:
        """Rows intersecting the viewport grown by the overscan rows."""
        layout = self._layout
        if layout.row_count == 0:
            return range(0)

        stride = layout.row_stride
        if stride <= 0:
            return range(layout.row_count)

        scroll = self.clamp_scroll(scroll_offset)
        overscan_px = self._overscan_rows * stride
        window_top = scroll - overscan_px
        window_bottom = scroll + self._spec.available_height + overscan_px

        # Row r spans [r * stride, r * stride + cell_height]
        first = max(0, math.ceil((window_top - layout.cell_height) / stride))
        last = min(layout.row_count - 1, math.floor(window_bottom / stride))
        if first > last:
            return range(0)
        return range(first, last + 1)

    def visible_cells(self, scroll_offset: float) -> list[Cell]:
        """Cells of the materialized rows, in index order."""
        cells: list[Cell] = []
        for row in self.visible_rows(scroll_offset):
            cells.extend(self._layout.cells_in_row(row))
        return cells

    def is_near_viewport(self, cell: Cell, scroll_offset: float) -> bool:
        """Whether a cell lies within the preload margin of the visible area."""
        scroll = self.clamp_scroll(scroll_offset)
        top = scroll - self._preload_margin
        bottom = scroll + self._spec.available_height + self._preload_margin
        return cell.bottom >= top and cell.y <= bottom

    # --- Lazy loading ---

    def state(self, image_reference: str) -> LazyLoadState:
        return self._load_states.setdefault(image_reference, LazyLoadState())

    def mark_requested(self, image_reference: str) -> bool:
        """Record that the image was requested.

        Returns:
            True the first time, False if it had been requested before
        """
        state = self.state(image_reference)
        if state.requested:
            return False
        state.requested = True
        return True

    def mark_errored(self, image_reference: str) -> None:
        """Record a failed image so it shows a placeholder and is not retried."""
        state = self.state(image_reference)
        state.requested = True
        state.errored = True
        logger.warning(f"Thumbnail failed, keeping placeholder: {image_reference}")

    def should_request(self, cell: Cell, image_reference: str, scroll_offset: float) -> bool:
        state = self._load_states.get(image_reference)
        if state is not None and state.requested:
            return False
        return self.is_near_viewport(cell, scroll_offset)

    def cells_to_request(
        self, scroll_offset: float, image_references: Sequence[str]
    ) -> list[tuple[Cell, str]]:
        """Materialized cells whose image should be requested now.

        Every returned reference is marked requested, so the next call does
        not return it again no matter how the viewport moves.

        Args:
            scroll_offset: Current vertical scroll position
            image_references: Image reference of each page, in visual order
        """
        due: list[tuple[Cell, str]] = []
        for cell in self.visible_cells(scroll_offset):
            if cell.index >= len(image_references):
                break
            reference = image_references[cell.index]
            if self.should_request(cell, reference, scroll_offset):
                self.mark_requested(reference)
                due.append((cell, reference))
        return due
