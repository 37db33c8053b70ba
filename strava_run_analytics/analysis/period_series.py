"""Day / week / month run-distance series for charting."""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

import pandas as pd

from ..exceptions import InvalidInputError
from ..models import Activity, Bucket
from .activity_filter import daily_run_km

PERIOD_COUNTS = {
    "day": 30,
    "week": 16,
    "month": 12,
}

PERIOD_ALIASES = {
    "1m": "day",
    "4m": "week",
    "12m": "month",
}

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def resolve_period(period: str) -> str:
    """Map a period name or UI alias to one of day/week/month."""
    name = PERIOD_ALIASES.get(period, period)
    if name not in PERIOD_COUNTS:
        raise InvalidInputError(
            f"Unknown period {period!r}; expected one of "
            f"{', '.join(list(PERIOD_COUNTS) + list(PERIOD_ALIASES))}"
        )
    return name


def bucket_start(day: date, period: str) -> date:
    """First day of the bucket containing `day` (weeks start on Monday)."""
    if period == "month":
        return day.replace(day=1)
    if period == "week":
        return day - timedelta(days=day.weekday())
    return day


def bucket_starts(today: date, period: str, count: int) -> List[date]:
    """`count` consecutive bucket starts, oldest first, ending with today's bucket."""
    current = pd.Timestamp(bucket_start(today, period))
    freq = {"day": "D", "week": "W-MON", "month": "MS"}[period]
    return [ts.date() for ts in pd.date_range(end=current, periods=count, freq=freq)]


def bucket_label(start: date, period: str) -> str:
    if period == "month":
        return f"{MONTH_ABBR[start.month - 1]} {start.year}"
    return f"{start.day:02d} {MONTH_ABBR[start.month - 1]}"


def build_series(
    activities: Iterable[Activity],
    period: str,
    today: Union[date, datetime],
    count: Optional[int] = None,
) -> List[Bucket]:
    """Bucket run distance into a gap-free series ending with today's bucket.

    Args:
        activities: Activity snapshot (non-runs are ignored)
        period: "day", "week" or "month" (or the aliases 1m, 4m, 12m)
        today: Reference local date
        count: Number of buckets (defaults to 30 days, 16 weeks or 12 months)

    Returns:
        Buckets ordered oldest first; empty buckets have km == 0
    """
    period = resolve_period(period)
    if count is None:
        count = PERIOD_COUNTS[period]
    if count <= 0:
        raise InvalidInputError(f"Bucket count must be positive, got {count}")
    if isinstance(today, datetime):
        today = today.date()

    starts = bucket_starts(today, period, count)

    daily = daily_run_km(activities)
    if daily.empty:
        totals = pd.Series(dtype=float)
    else:
        keys = [pd.Timestamp(bucket_start(ts.date(), period)) for ts in daily.index]
        totals = daily.groupby(keys).sum()

    km = totals.reindex(pd.DatetimeIndex([pd.Timestamp(s) for s in starts]), fill_value=0.0)

    return [
        Bucket(
            key=start.strftime("%Y-%m-%d"),
            label=bucket_label(start, period),
            km=float(value),
            start=start,
        )
        for start, value in zip(starts, km.to_numpy(dtype=float))
    ]
