"""Tests for grid layout, row windowing and lazy-load bookkeeping."""

import os
import tempfile

import pytest

from pagedeck.editor.virtualizer import ViewportSpec, ViewportVirtualizer
from pagedeck.utils.config_manager import ConfigManager


def _virtualizer(page_count=100, width=1000, height=800, **kwargs):
    return ViewportVirtualizer(ViewportSpec(width, height), page_count=page_count, **kwargs)


class TestLayout:
    def test_reference_layout(self):
        layout = ViewportSpec(1000, 800).layout(100)
        assert layout.column_count == 5
        assert layout.cell_width == 187
        assert layout.cell_height == 289
        assert layout.row_stride == 305
        assert layout.row_count == 20
        assert layout.total_height == 20 * 289 + 19 * 16

    @pytest.mark.parametrize("width,columns", [(0, 2), (300, 2), (600, 3), (3000, 5)])
    def test_column_count_clamped(self, width, columns):
        assert ViewportSpec(width, 800).column_count() == columns

    def test_zero_width_has_no_negative_cells(self):
        layout = ViewportSpec(0, 800).layout(4)
        assert layout.cell_width == 0
        assert layout.cell_height == 40

    def test_partial_last_row(self):
        layout = ViewportSpec(1000, 800).layout(12)
        assert layout.row_count == 3
        assert [c.index for c in layout.cells_in_row(2)] == [10, 11]

    def test_no_pages(self):
        layout = ViewportSpec(1000, 800).layout(0)
        assert layout.row_count == 0
        assert layout.total_height == 0

    def test_cell_position(self):
        cell = ViewportSpec(1000, 800).layout(100).cell(7)
        assert (cell.row, cell.column) == (1, 2)
        assert (cell.x, cell.y) == (2 * (187 + 16), 305)
        assert cell.bottom == 305 + 289

    def test_cell_out_of_range(self):
        with pytest.raises(IndexError):
            ViewportSpec(1000, 800).layout(3).cell(3)

    def test_from_config(self):
        with tempfile.TemporaryDirectory() as d:
            config = ConfigManager(config_path=os.path.join(d, "settings.json"))
            config.set("viewport.max_columns", 3, save_immediately=False)
            spec = ViewportSpec.from_config(1000, 800, config)
            assert spec.column_count() == 3


class TestWindowing:
    def test_top_of_document(self):
        assert _virtualizer().visible_rows(0) == range(0, 6)

    def test_middle_of_document(self):
        assert _virtualizer().visible_rows(3050) == range(7, 16)

    def test_without_overscan(self):
        assert _virtualizer(overscan_rows=0).visible_rows(3050) == range(10, 13)

    def test_scroll_is_clamped(self):
        v = _virtualizer()
        max_scroll = v.total_height - 800
        assert v.clamp_scroll(-50) == 0
        assert v.clamp_scroll(10**6) == max_scroll
        assert v.visible_rows(10**6) == v.visible_rows(max_scroll)

    def test_last_row_reachable(self):
        v = _virtualizer()
        assert v.visible_rows(10**6)[-1] == 19

    def test_empty_collection(self):
        v = _virtualizer(page_count=0)
        assert v.visible_rows(0) == range(0)
        assert v.visible_cells(0) == []

    def test_visible_cells_are_only_materialized_rows(self):
        cells = _virtualizer().visible_cells(0)
        assert [c.index for c in cells] == list(range(30))

    def test_short_document_fits(self):
        v = _virtualizer(page_count=3)
        assert v.clamp_scroll(500) == 0
        assert [c.index for c in v.visible_cells(0)] == [0, 1, 2]

    def test_resize_relayouts(self):
        v = _virtualizer()
        layout = v.resize(400, 800)
        assert layout.column_count == 2
        assert v.layout.row_count == 50

    def test_set_page_count(self):
        v = _virtualizer(page_count=0)
        v.set_page_count(11)
        assert v.layout.row_count == 3


class TestLazyLoading:
    def test_near_viewport_uses_preload_margin(self):
        v = _virtualizer()
        layout = v.layout
        assert v.is_near_viewport(layout.cell(15), 0)
        assert not v.is_near_viewport(layout.cell(20), 0)

    def test_cells_to_request_marks_requested(self):
        v = _virtualizer()
        refs = [f"/img/{n}.png" for n in range(1, 101)]
        due = v.cells_to_request(0, refs)
        assert [ref for _cell, ref in due] == refs[:20]
        assert v.cells_to_request(0, refs) == []

    def test_never_rerequested_after_scrolling_back(self):
        v = _virtualizer()
        refs = [f"/img/{n}.png" for n in range(1, 101)]
        first = {ref for _cell, ref in v.cells_to_request(0, refs)}
        v.cells_to_request(3050, refs)
        again = {ref for _cell, ref in v.cells_to_request(0, refs)}
        assert first and not again

    def test_errored_reference_not_retried(self):
        v = _virtualizer()
        v.mark_errored("/img/1.png")
        state = v.state("/img/1.png")
        assert state.errored and state.requested
        assert not v.should_request(v.layout.cell(0), "/img/1.png", 0)

    def test_mark_requested_once(self):
        v = _virtualizer()
        assert v.mark_requested("a") is True
        assert v.mark_requested("a") is False

    def test_reset_forgets_state(self):
        v = _virtualizer()
        v.mark_errored("a")
        v.reset()
        assert v.state("a").errored is False
