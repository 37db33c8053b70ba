"""Headline running KPIs: volume, pace and ISO-week totals."""

from typing import Dict, Iterable

import numpy as np

from ..models import Activity, RunningKpis
from .activity_filter import filter_runs, to_km


def iso_week_key(activity: Activity) -> str:
    year, week, _ = activity.start_local.isocalendar()
    return f"{year}-W{week:02d}"


def weekly_km(activities: Iterable[Activity]) -> Dict[str, float]:
    """Run km per ISO week, keyed YYYY-Www and sorted by key."""
    totals: Dict[str, float] = {}
    for activity in filter_runs(activities):
        key = iso_week_key(activity)
        totals[key] = totals.get(key, 0.0) + to_km(activity.distance_m)
    return dict(sorted(totals.items()))


def compute_kpis(activities: Iterable[Activity], period_label: str = "all_time") -> RunningKpis:
    """Summarize a set of runs.

    `km4` and `km12` sum the last 4 and 12 weeks that have runs, so an idle
    week does not count as a zero week.
    """
    runs = filter_runs(activities)

    km = np.array([to_km(a.distance_m) for a in runs], dtype=float)
    seconds = np.array([a.moving_time_s for a in runs], dtype=float)

    total_km = float(km.sum())
    avg_pace = float(seconds.sum()) / total_km if total_km > 0 else None

    moving = km > 0
    best_pace = float(np.min(seconds[moving] / km[moving])) if moving.any() else None
    longest = float(km.max()) if len(km) else 0.0

    weeks = weekly_km(runs)
    values = list(weeks.values())
    km4 = float(sum(values[-4:]))
    km12 = float(sum(values[-12:]))
    ratio = (km4 / 4.0) / (km12 / 12.0) if km12 > 0 else None

    return RunningKpis(
        period_label=period_label,
        count=len(runs),
        total_km=total_km,
        avg_pace_s_per_km=avg_pace,
        best_pace_s_per_km=best_pace,
        longest_km=longest,
        weekly_km=weeks,
        km4=km4,
        km12=km12,
        acute_chronic_ratio=ratio,
    )
