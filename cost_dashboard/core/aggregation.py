"""
Cost aggregation engine.

Filters records by date, groups them by a business dimension and a time
bucket, and sums consumption per group.

The engine is a pure computation over caller-supplied records:
1. No side effects and no shared state
2. Any unparseable date aborts the whole call
3. Unknown dimensions and time groups fall back silently
"""

import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from cost_dashboard.storage.models import AggregationGroup, TimeBucketTotal

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
UNKNOWN = "Unknown"
MAX_DISPLAY_ALL = "all"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

DateLike = Union[str, date]


class ParseError(ValueError):
    """Raised when a date or a max-display value cannot be parsed."""


class Dimension(str, Enum):
    """Business dimensions records can be grouped by."""
    CLOUD_PROVIDER = "CloudProvider"
    REGION = "Region"
    ACCOUNT = "Account"
    SERVICE = "Service"
    FINANCIAL_DOMAIN = "FinancialDomain"


class TimeGroup(str, Enum):
    """Calendar granularities for time buckets.

    Any other value buckets by the raw record date.
    """
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


# Fields joined with "-" to build the key for each dimension
_DIMENSION_FIELDS = {
    Dimension.CLOUD_PROVIDER.value: ("providerName",),
    Dimension.REGION.value: ("providerName", "region"),
    Dimension.ACCOUNT.value: ("providerName", "accountId"),
    Dimension.SERVICE.value: ("providerName", "serviceName"),
    Dimension.FINANCIAL_DOMAIN.value: ("domain",),
}


def parse_date(value: DateLike, what: str = "date") -> date:
    """Parse a calendar date in strict YYYY-MM-DD form.

    Args:
        value: Date string, or a date/datetime object
        what: Description used in error messages

    Returns:
        The parsed date

    Raises:
        ParseError: If the value is not a valid YYYY-MM-DD date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise ParseError(f"Invalid {what}: {value!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise ParseError(f"Invalid {what}: {value!r} ({e})") from e


def parse_max_display(max_display: Union[str, int, None]) -> Optional[int]:
    """Parse a max-display value.

    Args:
        max_display: "all" (any case), None, or a non-negative decimal integer

    Returns:
        The group limit, or None for no limit

    Raises:
        ParseError: If the value is neither "all" nor a non-negative integer
    """
    if max_display is None:
        return None
    if isinstance(max_display, bool):
        raise ParseError(f"Invalid maxDisplay: {max_display!r}")
    if isinstance(max_display, int):
        limit = max_display
    else:
        text = str(max_display).strip()
        if text.lower() == MAX_DISPLAY_ALL:
            return None
        if not _INTEGER_PATTERN.match(text):
            raise ParseError(f"Invalid maxDisplay: {max_display!r}")
        limit = int(text)
    if limit < 0:
        raise ParseError(f"maxDisplay cannot be negative: {max_display!r}")
    return limit


def _field(record: Dict[str, Any], name: str) -> str:
    value = record.get(name)
    return UNKNOWN if value is None else str(value)


def dimension_key(record: Dict[str, Any], dimension: str) -> str:
    """Build the grouping key of a record for a dimension.

    Missing fields read as "Unknown"; an unknown dimension maps every
    record to the key "Unknown".
    """
    fields = _DIMENSION_FIELDS.get(dimension)
    if fields is None:
        return UNKNOWN
    return "-".join(_field(record, name) for name in fields)


def time_bucket(record: Dict[str, Any], time_group: str, index: Optional[int] = None) -> str:
    """Build the time bucket label of a record.

    Args:
        record: Record with a ``date`` field
        time_group: "month", "quarter", "year", or anything else for the
            raw date
        index: Record position in the input, used in error messages

    Returns:
        "YYYY-MM", "YYYY-Qn", "YYYY" or the raw "YYYY-MM-DD" date

    Raises:
        ParseError: If the record date cannot be parsed
    """
    raw = record.get("date")
    what = "record date" if index is None else f"date in record {index}"
    day = parse_date(raw, what)

    if time_group == TimeGroup.MONTH.value:
        return f"{day.year}-{day.month:02d}"
    if time_group == TimeGroup.QUARTER.value:
        quarter = (day.month - 1) // 3 + 1
        return f"{day.year}-Q{quarter}"
    if time_group == TimeGroup.YEAR.value:
        return str(day.year)
    return raw if isinstance(raw, str) else day.strftime(DATE_FORMAT)


def consumption_of(record: Dict[str, Any]) -> float:
    """Numeric consumption of a record; anything non-numeric counts as 0."""
    value = record.get("consumption")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def filter_by_date(
    records: Iterable[Dict[str, Any]],
    from_date: date,
    to_date: date
) -> List[Dict[str, Any]]:
    """Keep records dated within [from_date, to_date], inclusive.

    Raises:
        ParseError: If any record date cannot be parsed
    """
    filtered = []
    for i, record in enumerate(records):
        day = parse_date(record.get("date"), f"date in record {i}")
        if from_date <= day <= to_date:
            filtered.append(record)
    return filtered


def group_records(
    records: Iterable[Dict[str, Any]],
    dimension: str
) -> Dict[str, List[Dict[str, Any]]]:
    """Group records by dimension key, keeping first-appearance order."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for record in records:
        groups.setdefault(dimension_key(record, dimension), []).append(record)
    return groups


def _aggregate_group(
    key: str,
    records: List[Dict[str, Any]],
    time_group: str,
    dimension: str
) -> AggregationGroup:
    totals: Dict[str, float] = {}
    for record in records:
        bucket = time_bucket(record, time_group)
        totals[bucket] = totals.get(bucket, 0.0) + consumption_of(record)

    values = [TimeBucketTotal(period, total) for period, total in totals.items()]

    # Budget comes from the first record of the group
    if dimension == Dimension.FINANCIAL_DOMAIN.value:
        return AggregationGroup(
            key=key,
            aggregated_values=values,
            budget=records[0].get("budget"),
            has_budget=True
        )
    return AggregationGroup(key=key, aggregated_values=values)


def filter_and_aggregate(
    records: Iterable[Dict[str, Any]],
    dimension: str,
    time_group: str,
    from_date: DateLike,
    to_date: DateLike,
    max_display: Union[str, int, None] = MAX_DISPLAY_ALL
) -> List[AggregationGroup]:
    """Filter records by date and aggregate consumption per group.

    Groups come out in first-appearance order. With a numeric
    ``max_display`` they are ranked by total consumption (descending,
    ties keep their order) and only the top N are kept.

    Args:
        records: Flat records with at least a ``date`` field
        dimension: CloudProvider, Region, Account, Service or FinancialDomain
        time_group: month, quarter, year, or anything else for raw dates
        from_date: Inclusive start date (YYYY-MM-DD)
        to_date: Inclusive end date (YYYY-MM-DD)
        max_display: "all" or a non-negative integer

    Returns:
        List of aggregation groups

    Raises:
        ParseError: If a bound, a record date or max_display is invalid
    """
    start = parse_date(from_date, "from date")
    end = parse_date(to_date, "to date")
    limit = parse_max_display(max_display)

    if dimension not in _DIMENSION_FIELDS:
        logger.warning("Unknown dimension %r, grouping all records under %r", dimension, UNKNOWN)

    records = list(records)
    filtered = filter_by_date(records, start, end)
    grouped = group_records(filtered, dimension)

    groups = [
        _aggregate_group(key, group, time_group, dimension)
        for key, group in grouped.items()
    ]

    if limit is not None:
        groups = sorted(groups, key=lambda g: g.total, reverse=True)[:limit]

    logger.debug(
        "Aggregated %d of %d records into %d groups (dimension=%s, groupBy=%s)",
        len(filtered), len(records), len(groups), dimension, time_group
    )
    return groups


def aggregate_to_dicts(
    records: Iterable[Dict[str, Any]],
    dimension: str,
    time_group: str,
    from_date: DateLike,
    to_date: DateLike,
    max_display: Union[str, int, None] = MAX_DISPLAY_ALL
) -> List[Dict[str, Any]]:
    """Same as filter_and_aggregate, rendered in the wire format."""
    groups = filter_and_aggregate(records, dimension, time_group, from_date, to_date, max_display)
    return [group.to_dict() for group in groups]
