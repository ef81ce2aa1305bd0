"""Date parsing helpers for uploaded documents."""

import re
from datetime import date, datetime
from typing import Optional, Union

from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)

MONTH_NAMES = {
    'jan': 1, 'january': 1, 'feb': 2, 'february': 2, 'mar': 3, 'march': 3,
    'apr': 4, 'april': 4, 'may': 5, 'jun': 6, 'june': 6, 'jul': 7, 'july': 7,
    'aug': 8, 'august': 8, 'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10, 'nov': 11, 'november': 11, 'dec': 12, 'december': 12,
}

# (pattern, format type); ISO first so it always wins
DATE_PATTERNS = [
    (r'^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$', 'ymd'),
    (r'^(\d{4})/(\d{1,2})/(\d{1,2})$', 'ymd'),
    (r'^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$', 'mdy'),
    (r'^(\d{1,2})(?:st|nd|rd|th)?[\s-]+([A-Za-z]+)\.?,?[\s-]+(\d{4})$', 'dmy_text'),
    (r'^([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$', 'mdy_text'),
]


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a document date value.

    Accepts ISO ``YYYY-MM-DD`` (optionally with a time part), ``YYYY/MM/DD``,
    ``MM/DD/YYYY`` and textual forms such as ``12 Dec 2025`` or
    ``Dec 12, 2025``.

    Returns:
        The parsed date, or None when the value is empty or not a real date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for pattern, format_type in DATE_PATTERNS:
        match = re.match(pattern, text, re.IGNORECASE)
        if not match:
            continue
        try:
            if format_type == 'ymd':
                year, month, day = match.groups()
                return date(int(year), int(month), int(day))
            if format_type == 'mdy':
                month, day, year = match.groups()
                return date(int(year), int(month), int(day))
            if format_type == 'dmy_text':
                day, month_name, year = match.groups()
                month = MONTH_NAMES.get(month_name.lower())
                if month:
                    return date(int(year), month, int(day))
            if format_type == 'mdy_text':
                month_name, day, year = match.groups()
                month = MONTH_NAMES.get(month_name.lower())
                if month:
                    return date(int(year), month, int(day))
        except ValueError as e:
            LOGGER.debug(f"Failed to parse date: {text}", extra={"error": str(e)})
            return None

    LOGGER.debug(f"Could not parse date: {text}")
    return None
