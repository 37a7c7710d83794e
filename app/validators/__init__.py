"""
app/validators package marker.
"""

from app.validators.row_validator import StreamRowValidator
from app.validators.value_coercers import (
    DEFAULT_WEEK_FORMAT,
    clamp_streams,
    coerce_date,
    coerce_number,
    parse_iso_date,
    to_strptime_format,
    week_start_of,
)

__all__ = [
    "DEFAULT_WEEK_FORMAT",
    "StreamRowValidator",
    "clamp_streams",
    "coerce_date",
    "coerce_number",
    "parse_iso_date",
    "to_strptime_format",
    "week_start_of",
]
