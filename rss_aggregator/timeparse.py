from __future__ import annotations

from datetime import datetime, timezone
from typing import Tuple

from .exceptions import ParseError

# Tried in order; the first layout that parses wins.
# Layouts without a zone are read as UTC.
LAYOUTS: Tuple[str, ...] = (
    "%a, %d %b %Y %H:%M:%S GMT",
    "%a, %d %b %Y %H:%M:%S %z",
    "%Y-%m-%d",                  # yyyy-MM-dd
    "%d-%m-%Y",                  # dd-MM-yyyy
    "%Y-%m-%d %H:%M:%S",         # yyyy-MM-dd HH:mm:ss
    "%d-%m-%Y %H:%M:%S",         # dd-MM-yyyy HH:mm:ss
    "%b %d, %Y",                 # MMM dd, yyyy
    "%B %d, %Y",                 # Month dd, yyyy
    "%a, %b %d, %Y",             # Mon, MMM dd, yyyy
    "%a, %B %d, %Y",             # Mon, Month dd, yyyy
    "%b %d, %Y %H:%M:%S",        # MMM dd, yyyy HH:mm:ss
    "%B %d, %Y %H:%M:%S",        # Month dd, yyyy HH:mm:ss
    "%a, %b %d, %Y %H:%M:%S",    # Mon, MMM dd, yyyy HH:mm:ss
    "%a, %B %d, %Y %H:%M:%S",    # Mon, Month dd, yyyy HH:mm:ss
)


def parse_publish_date(value: str) -> datetime:
    """
    Parse a feed publish-date string into a timezone-aware UTC datetime.

    Raises ParseError naming the offending string when no known layout matches.
    """
    text = (value or "").strip()
    for layout in LAYOUTS:
        try:
            dt = datetime.strptime(text, layout)
        except ValueError:
            continue
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    raise ParseError(f"unable to parse time from input string: {value!r}")
