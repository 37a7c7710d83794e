"""
app/parsing package marker.
"""

from app.parsing.row_cleaner import CleanedText, find_header_index, is_footer_line, preclean, preclean_text
from app.parsing.tokenizer import (
    TokenizedTable,
    build_raw_row,
    detect_delimiter,
    rejoin_split_number,
    tokenize,
)

__all__ = [
    "CleanedText",
    "TokenizedTable",
    "build_raw_row",
    "detect_delimiter",
    "find_header_index",
    "is_footer_line",
    "preclean",
    "preclean_text",
    "rejoin_split_number",
    "tokenize",
]
