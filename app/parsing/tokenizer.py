"""
app/parsing/tokenizer.py

Delimited-text tokenizing for cleaned stream exports.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Sequence

CANDIDATE_DELIMITERS: tuple[str, ...] = (",", "\t", ";", "|")
DEFAULT_DELIMITER = ","

_LEADING_GROUP = re.compile(r"-?\d{1,3}")
_THOUSANDS_GROUP = re.compile(r"\d{3}(\.\d+)?")


@dataclass(frozen=True)
class TokenizedTable:
    """
    Header cells plus the raw cell lists of every non-blank data row.

    ``row_numbers`` holds the 1-based physical line on which each data row
    starts within the cleaned text, so a quoted field spanning several lines
    does not shift the rows after it.
    """

    headers: tuple[str, ...]
    rows: list[list[str]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    delimiter: str = DEFAULT_DELIMITER


def _clean_header_cell(cell: str) -> str:
    return cell.replace("\ufeff", "").strip()


def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter of a header line among comma, tab, semicolon and pipe.
    """

    if not header_line.strip():
        return DEFAULT_DELIMITER
    try:
        dialect = csv.Sniffer().sniff(header_line, delimiters="".join(CANDIDATE_DELIMITERS))
        if dialect.delimiter in CANDIDATE_DELIMITERS:
            return dialect.delimiter
    except csv.Error:
        pass

    counts = {candidate: header_line.count(candidate) for candidate in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda candidate: counts[candidate])
    return best if counts[best] > 0 else DEFAULT_DELIMITER


def tokenize(text: str, *, delimiter: str | None = None) -> TokenizedTable:
    """
    Split cleaned text into a header row and data rows.

    Fully blank rows are skipped. Returns an empty header tuple when the text
    holds no header row at all. Malformed quoting that overruns the csv field
    size limit raises ``csv.Error``.
    """

    stripped = text.lstrip("\r\n")
    leading_lines = text[: len(text) - len(stripped)].count("\n")
    if not stripped.strip():
        return TokenizedTable(headers=(), delimiter=delimiter or DEFAULT_DELIMITER)

    header_line = stripped.splitlines()[0]
    chosen = delimiter or detect_delimiter(header_line)

    reader = csv.reader(io.StringIO(stripped), delimiter=chosen)
    headers: tuple[str, ...] = ()
    rows: list[list[str]] = []
    row_numbers: list[int] = []

    # reader.line_num is the last physical line consumed so far.
    last_line = leading_lines
    for cells in reader:
        line_number = last_line + 1
        last_line = leading_lines + reader.line_num
        if not headers:
            if not any(cell.strip() for cell in cells):
                continue
            headers = tuple(_clean_header_cell(cell) for cell in cells)
            continue
        if not any(cell.strip() for cell in cells):
            continue
        rows.append(cells)
        row_numbers.append(line_number)

    return TokenizedTable(headers=headers, rows=rows, row_numbers=row_numbers, delimiter=chosen)


def rejoin_split_number(
    cells: Sequence[str],
    *,
    header_count: int,
    column_index: int | None,
) -> list[str]:
    """
    Rejoin an unquoted thousands-separated number that the comma split apart.

    ``Drake,1,234,567,01/06/2025`` against three headers has two surplus
    cells; when exactly that many 3-digit groups follow the numeric column
    they are merged back into ``1,234,567``. Rows that do not fit this shape
    are returned unchanged.
    """

    surplus = len(cells) - header_count
    if surplus <= 0 or column_index is None or column_index >= len(cells):
        return list(cells)
    if not _LEADING_GROUP.fullmatch(cells[column_index].strip()):
        return list(cells)

    groups = 0
    while groups < surplus:
        position = column_index + 1 + groups
        if position >= len(cells) or not _THOUSANDS_GROUP.fullmatch(cells[position].strip()):
            break
        groups += 1

    if groups != surplus:
        return list(cells)

    end = column_index + 1 + groups
    merged = ",".join(cell.strip() for cell in cells[column_index:end])
    return [*cells[:column_index], merged, *cells[end:]]


def build_raw_row(headers: Sequence[str], cells: Sequence[str]) -> dict[str, str | None]:
    """
    Key a row's cells by header. The first of any duplicated header wins.
    """

    raw_row: dict[str, str | None] = {}
    for index, header in enumerate(headers):
        if header in raw_row:
            continue
        raw_row[header] = cells[index] if index < len(cells) else None
    return raw_row
