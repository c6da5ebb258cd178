"""Tests for the page range codec."""

import pytest

from pagedeck.editor.range_codec import (
    decode,
    encode,
    encode_order,
    invalid_tokens,
    iter_runs,
    parse_order,
)


class TestEncode:
    def test_empty(self):
        assert encode([]) == ""

    def test_single_page(self):
        assert encode([4]) == "4"

    def test_collapses_runs(self):
        assert encode([1, 2, 3, 5, 7, 8, 9]) == "1-3,5,7-9"

    def test_sorts_and_deduplicates(self):
        assert encode([5, 3, 1, 2, 3, 2]) == "1-3,5"

    def test_pair_is_a_run(self):
        assert encode([7, 8]) == "7-8"

    def test_accepts_generators(self):
        assert encode(n for n in (10, 11, 12)) == "10-12"

    def test_iter_runs(self):
        assert list(iter_runs([9, 1, 2, 4])) == [(1, 2), (4, 4), (9, 9)]


class TestDecode:
    def test_simple_ranges(self):
        assert decode("1-3,5", 10) == {1, 2, 3, 5}

    def test_whitespace_tolerated(self):
        assert decode(" 1 - 3 , 5 ", 10) == {1, 2, 3, 5}

    def test_reversed_range(self):
        assert decode("9-7", 10) == {7, 8, 9}

    def test_clamps_to_document(self):
        assert decode("8-12", 10) == {8, 9, 10}

    def test_out_of_range_single_dropped(self):
        assert decode("15", 10) == set()

    def test_skips_malformed_tokens(self):
        assert decode("1,abc,3-x,4", 10) == {1, 4}

    def test_skips_zero_and_negative(self):
        assert decode("0,-2,0-3,2", 10) == {2}

    def test_empty_parts_skipped(self):
        assert decode(",1,,2,", 5) == {1, 2}

    def test_blank_string(self):
        assert decode("", 5) == set()
        assert decode("   ", 5) == set()

    def test_no_pages_in_document(self):
        assert decode("1-3", 0) == set()

    def test_overlapping_tokens_merge(self):
        assert decode("1-3,2-4", 10) == {1, 2, 3, 4}

    @pytest.mark.parametrize(
        "pages",
        [set(), {1}, {10}, set(range(1, 11)), {1, 2, 3, 6, 9, 10}, {2, 4, 6, 8}, {1, 10}],
    )
    def test_roundtrip_from_encoded(self, pages):
        assert decode(encode(pages), 10) == pages

    def test_oversized_number_skipped(self):
        assert decode("1-" + "9" * 5000 + ",3", 10) == {3}
        assert decode("9" * 5000, 10) == set()


class TestInvalidTokens:
    def test_reports_malformed(self):
        assert invalid_tokens("1,abc, 2-,3") == ["abc", "2-"]

    def test_out_of_range_is_not_invalid(self):
        assert invalid_tokens("99") == []

    def test_zero_is_invalid(self):
        assert invalid_tokens("0,1") == ["0"]

    def test_oversized_number_is_invalid(self):
        huge = "9" * 5000
        assert invalid_tokens(f"1,{huge}") == [huge]


class TestOrder:
    def test_encode_order_keeps_sequence(self):
        assert encode_order([3, 1, 2, 5]) == "3,1-2,5"

    def test_encode_order_descending_not_collapsed(self):
        assert encode_order([3, 2, 1]) == "3,2,1"

    def test_encode_order_empty(self):
        assert encode_order([]) == ""

    def test_parse_order_keeps_token_order(self):
        assert parse_order("3,1-2,5", 5) == [3, 1, 2, 5]

    def test_parse_order_descending_span(self):
        assert parse_order("4-2", 5) == [4, 3, 2]

    def test_parse_order_drops_repeats(self):
        assert parse_order("2,1-3", 5) == [2, 1, 3]

    def test_parse_order_clamps(self):
        assert parse_order("4-7,x,1", 5) == [4, 5, 1]

    def test_parse_order_huge_span_is_clamped(self):
        assert parse_order("1-100000000000", 5) == [1, 2, 3, 4, 5]
        assert parse_order("100000000000-4", 5) == [5, 4]

    def test_parse_order_out_of_document_skipped(self):
        assert parse_order("7-9,2", 5) == [2]
        assert parse_order("1-3", 0) == []

    def test_parse_order_oversized_number_skipped(self):
        assert parse_order("2,1-" + "9" * 5000, 5) == [2]

    def test_order_roundtrip(self):
        order = [5, 6, 1, 3, 2]
        assert parse_order(encode_order(order), 6) == order
