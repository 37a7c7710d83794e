"""
tests/test_tokenizer.py

Unit tests for app/parsing/tokenizer.py.
"""

from __future__ import annotations

import csv

import pytest

from app.parsing.tokenizer import build_raw_row, detect_delimiter, rejoin_split_number, tokenize


class TestDetectDelimiter:
    @pytest.mark.parametrize(
        ("header_line", "expected"),
        [
            ("Artist Name,On-Demand Audio Streams,Week", ","),
            ("Artist\tStreams\tWeek", "\t"),
            ("Artist;Streams;Week", ";"),
            ("Artist|Streams|Week", "|"),
        ],
    )
    def test_detects_candidates(self, header_line: str, expected: str) -> None:
        assert detect_delimiter(header_line) == expected

    def test_defaults_to_comma(self) -> None:
        assert detect_delimiter("Artist") == ","
        assert detect_delimiter("   ") == ","


class TestTokenize:
    def test_skips_blank_rows_and_keeps_line_numbers(self) -> None:
        table = tokenize("Artist,Streams\nA,1\n\n,\nB,2")

        assert table.headers == ("Artist", "Streams")
        assert table.rows == [["A", "1"], ["B", "2"]]
        assert table.row_numbers == [2, 5]
        assert table.delimiter == ","

    def test_row_numbers_follow_physical_lines_after_multiline_field(self) -> None:
        table = tokenize('Artist,Streams\n"Tyler,\nThe Creator",1\nB,2')

        assert table.rows == [["Tyler,\nThe Creator", "1"], ["B", "2"]]
        assert table.row_numbers == [2, 4]

    def test_unbalanced_quote_past_field_limit_raises(self) -> None:
        with pytest.raises(csv.Error):
            tokenize('Artist,Streams\n"A,1\n' + "x" * 200_000)

    def test_header_cells_are_trimmed(self) -> None:
        table = tokenize(" Artist ; Streams \nA;1")

        assert table.headers == ("Artist", "Streams")
        assert table.delimiter == ";"

    def test_quoted_thousands_stay_in_one_cell(self) -> None:
        table = tokenize('Artist,Streams\n"Drake","1,234"')

        assert table.rows == [["Drake", "1,234"]]

    def test_empty_text_has_no_header(self) -> None:
        assert tokenize("").headers == ()
        assert tokenize("\n\n   \n").headers == ()

    def test_explicit_delimiter_overrides_detection(self) -> None:
        table = tokenize("Artist|Streams\nA|1", delimiter="|")

        assert table.rows == [["A", "1"]]


class TestRejoinSplitNumber:
    def test_rejoins_thousands_groups(self) -> None:
        cells = ["Drake", "1", "234", "567", "01/06/2025"]

        assert rejoin_split_number(cells, header_count=3, column_index=1) == [
            "Drake",
            "1,234,567",
            "01/06/2025",
        ]

    def test_leaves_rows_with_expected_width(self) -> None:
        cells = ["Drake", "1234", "01/06/2025"]

        assert rejoin_split_number(cells, header_count=3, column_index=1) == cells

    def test_leaves_rows_that_are_not_thousands_groups(self) -> None:
        cells = ["A", "1", "22", "x"]

        assert rejoin_split_number(cells, header_count=3, column_index=1) == cells

    def test_unknown_column_is_a_no_op(self) -> None:
        cells = ["A", "1", "234", "x"]

        assert rejoin_split_number(cells, header_count=3, column_index=None) == cells


class TestBuildRawRow:
    def test_first_duplicate_header_wins(self) -> None:
        assert build_raw_row(("a", "b", "a"), ["1", "2", "3"]) == {"a": "1", "b": "2"}

    def test_short_rows_fill_with_none(self) -> None:
        assert build_raw_row(("a", "b"), ["1"]) == {"a": "1", "b": None}
