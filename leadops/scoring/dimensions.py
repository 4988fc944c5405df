"""
Scoring dimensions — the five categorical axes a lead is scored on.

Each dimension maps to a typed accessor via DIMENSION_ACCESSORS so there is no
string-keyed attribute access on leads. The lead_date dimension is bucketed to
an English month name ("January"); the same month in different years falls
into one bucket.
"""
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from leadops.scoring.base import LeadSnapshot


class ScoringDataError(ValueError):
    """Lead data that cannot be bucketed into a dimension value."""


class Dimension(str, Enum):
    SERVICE = 'service'
    AD_SET_NAME = 'ad_set_name'
    AD_NAME = 'ad_name'
    LEAD_DATE = 'lead_date'
    ZIP = 'zip'


# Iteration order is the order records are emitted in.
DIMENSIONS = (
    Dimension.SERVICE,
    Dimension.AD_SET_NAME,
    Dimension.AD_NAME,
    Dimension.LEAD_DATE,
    Dimension.ZIP,
)

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)

MONTH_INDEX = {name.lower(): i for i, name in enumerate(MONTH_NAMES)}

# Fallback formats for lead dates that are not ISO-8601 (sheet imports).
_DATE_FORMATS = ('%m/%d/%Y', '%Y/%m/%d', '%m-%d-%Y')

_MISSING = object()


DIMENSION_ACCESSORS: Dict[Dimension, Callable[[LeadSnapshot], object]] = {
    Dimension.SERVICE: lambda lead: lead.service,
    Dimension.AD_SET_NAME: lambda lead: lead.ad_set_name,
    Dimension.AD_NAME: lambda lead: lead.ad_name,
    Dimension.LEAD_DATE: lambda lead: lead.lead_date,
    Dimension.ZIP: lambda lead: lead.zip,
}


def raw_value(lead: LeadSnapshot, dimension: Dimension):
    return DIMENSION_ACCESSORS[dimension](lead)


def clean_value(value) -> str:
    """Trimmed string form of a free-text dimension value ('' for None)."""
    if value is None:
        return ''
    return str(value).strip()


def normalize(value) -> str:
    """Matching form: trimmed and lower-cased."""
    return clean_value(value).lower()


def is_empty(value) -> bool:
    return clean_value(value) == ''


def month_index(month_name: str) -> int:
    """0-based index of an English month name. Raises ScoringDataError."""
    idx = MONTH_INDEX.get(clean_value(month_name).lower())
    if idx is None:
        raise ScoringDataError(f"Invalid month name: {month_name}")
    return idx


def _as_utc(value: datetime) -> datetime:
    # Offset timestamps bucket by their UTC month; naive ones are taken as UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def parse_lead_date(value) -> Optional[datetime]:
    """Parse a stored lead date. Returns None when it is empty or unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = clean_value(value)
    if not text:
        return None
    try:
        return _as_utc(datetime.fromisoformat(text.replace('Z', '+00:00')))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


class MonthNameCache:
    """
    Bounded memo of lead date -> month name.

    Construct one per engine and pass it to the calculator and scorer. When the
    cache grows past max_size it is cleared and restarted with the latest entry.
    """

    def __init__(self, max_size=1000):
        self.max_size = max_size
        self._cache = {}

    def get(self, value) -> Optional[str]:
        try:
            cached = self._cache.get(value, _MISSING)
        except TypeError:
            # Unhashable input, resolve without caching
            return self._resolve(value)
        if cached is not _MISSING:
            return cached

        result = self._resolve(value)
        self._cache[value] = result
        if len(self._cache) > self.max_size:
            self._cache.clear()
            self._cache[value] = result
        return result

    def clear(self):
        self._cache.clear()

    def __len__(self):
        return len(self._cache)

    @staticmethod
    def _resolve(value) -> Optional[str]:
        parsed = parse_lead_date(value)
        if parsed is None:
            return None
        return MONTH_NAMES[parsed.month - 1]


def bucket_value(lead: LeadSnapshot, dimension: Dimension, months: MonthNameCache) -> str:
    """
    The key_name a lead contributes for a dimension, or '' when it has none.

    Free-text dimensions are trimmed (case preserved); lead_date becomes the
    month name.
    """
    value = raw_value(lead, dimension)
    if dimension is Dimension.LEAD_DATE:
        return months.get(value) or ''
    return clean_value(value)
