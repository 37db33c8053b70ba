"""Run classification and unit normalization for raw activities."""

import logging
import re
from datetime import date, datetime, timezone
from typing import Iterable, List, Union

import pandas as pd

from ..exceptions import InvalidInputError
from ..models import Activity

logger = logging.getLogger(__name__)

RUN_TYPES = frozenset({"Run", "TrailRun", "VirtualRun"})

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def is_run(activity: Activity) -> bool:
    """True iff the sport type is one of the run types (case-sensitive)."""
    return activity.sport_type in RUN_TYPES


def to_km(distance_m: float) -> float:
    return distance_m / 1000.0


def parse_local_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a local start timestamp into a naive wall-clock datetime.

    Strava suffixes `start_date_local` with a `Z` even though the value is
    local time, so any offset is dropped rather than converted.

    Raises:
        InvalidInputError: if the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidInputError(f"Invalid timestamp: {value!r}") from e
    return parsed.replace(tzinfo=None)


def parse_utc_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a UTC timestamp into a naive UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"Invalid timestamp: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidInputError(f"Invalid timestamp: {value!r}") from e
    return parse_utc_timestamp(parsed) if parsed.tzinfo is not None else parsed


def to_local_date_key(timestamp: Union[str, date, datetime]) -> str:
    """Return the YYYY-MM-DD grouping key of a local start time."""
    if isinstance(timestamp, str):
        if _DATE_PREFIX.match(timestamp):
            return timestamp[:10]
        return parse_local_timestamp(timestamp).strftime("%Y-%m-%d")
    return timestamp.strftime("%Y-%m-%d")


def filter_runs(activities: Iterable[Activity]) -> List[Activity]:
    """Keep run-like activities only."""
    return [a for a in activities if is_run(a)]


def daily_run_km(activities: Iterable[Activity]) -> pd.Series:
    """Sum run distance (km) per local calendar day.

    Returns:
        Series indexed by midnight timestamps, one entry per day with runs
    """
    runs = filter_runs(activities)
    if not runs:
        return pd.Series(dtype=float)

    days = pd.DatetimeIndex([pd.Timestamp(a.start_local.date()) for a in runs])
    km = pd.Series([to_km(a.distance_m) for a in runs], index=days, dtype=float)
    daily = km.groupby(level=0).sum().sort_index()

    logger.debug(f"Aggregated {len(runs)} runs into {len(daily)} active days")
    return daily
