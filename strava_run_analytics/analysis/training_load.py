"""Acute:chronic training load and the daily distance recommendation.

Two 28-day windows of daily run distance are built, one ending today and one
ending yesterday. Each window yields an ACR-limited cap for its last day,
adjusted by a recovery boost and a fatigue penalty. Yesterday's window then
decides whether yesterday overran its own cap, which carries a penalty into
today's final cap. Only one day of carry-over is applied.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple, Optional, Union

import numpy as np
import pandas as pd

from ..config import config
from ..models import Activity, LoadMetrics, LoadZone, WindowMetrics
from .activity_filter import daily_run_km

logger = logging.getLogger(__name__)

WINDOW_DAYS = 28
ACUTE_DAYS = 7
CHRONIC_WEEKS = 4

MIN_TARGET_LAST2_KM = 0.1
MIN_OVERRUN_BASELINE_KM = 0.1


class CarryOver(NamedTuple):
    overrun_km: float
    penalty_ratio: float
    cap_km: float


def build_window(daily_km: pd.Series, end_date: Union[date, datetime]) -> np.ndarray:
    """Daily km for the 28 days ending at `end_date` (inclusive), zero filled.

    Index 0 is 27 days before `end_date`, index 27 is `end_date`.
    """
    end = pd.Timestamp(end_date).normalize()
    days = pd.date_range(end=end, periods=WINDOW_DAYS, freq="D")
    return daily_km.reindex(days, fill_value=0.0).to_numpy(dtype=float)


def rest_days_before_today(window: np.ndarray) -> int:
    """Consecutive zero-distance days counted back from yesterday."""
    rest_days = 0
    for km in window[-2::-1]:
        if km > 0:
            break
        rest_days += 1
    return rest_days


def recovery_boost_ratio(rest_days: int) -> float:
    """Cap relaxation earned by consecutive rest days."""
    return min(rest_days * config.RECOVERY_BOOST_PER_REST_DAY, config.RECOVERY_BOOST_MAX)


def fatigue_penalty_ratio(window: np.ndarray, chronic_daily_avg_km: float) -> float:
    """Cap reduction when the previous two days exceed twice the chronic daily average."""
    km_last2 = float(window[-3] + window[-2])
    target_last2 = max(chronic_daily_avg_km * 2, MIN_TARGET_LAST2_KM)
    overload_ratio = max(0.0, (km_last2 - target_last2) / target_last2)
    return min(overload_ratio * config.FATIGUE_PENALTY_FACTOR, config.FATIGUE_PENALTY_MAX)


def raw_cap_km(chronic_weekly_avg_km: float, acute7_before_today_km: float) -> float:
    """Largest distance today that keeps the 7-day load within the ACR limit."""
    return max(0.0, config.ACR_LIMIT * chronic_weekly_avg_km - acute7_before_today_km)


def adjusted_cap_km(raw_cap: float, recovery_boost: float, fatigue_penalty: float) -> float:
    return max(0.0, raw_cap * (1 + recovery_boost) * (1 - fatigue_penalty))


def compute_window_metrics(window: np.ndarray) -> WindowMetrics:
    """Compute load values for the last day of a 28-day window."""
    if len(window) != WINDOW_DAYS:
        raise ValueError(f"Load window must span {WINDOW_DAYS} days, got {len(window)}")

    sum28 = float(np.sum(window))
    chronic_weekly = sum28 / CHRONIC_WEEKS
    chronic_daily = chronic_weekly / 7
    acute7 = float(np.sum(window[-ACUTE_DAYS:]))
    km_today = float(window[-1])
    km_yesterday = float(window[-2])
    acute7_before_today = max(0.0, acute7 - km_today)

    raw_cap = raw_cap_km(chronic_weekly, acute7_before_today)
    rest_days = rest_days_before_today(window)
    boost = recovery_boost_ratio(rest_days)
    penalty = fatigue_penalty_ratio(window, chronic_daily)

    return WindowMetrics(
        acute7_km=acute7,
        chronic_weekly_avg_km=chronic_weekly,
        chronic_daily_avg_km=chronic_daily,
        km_today=km_today,
        km_yesterday=km_yesterday,
        acute7_before_today_km=acute7_before_today,
        raw_cap_km=raw_cap,
        rest_days_before_today=rest_days,
        recovery_boost_ratio=boost,
        fatigue_penalty_ratio=penalty,
        adjusted_cap_km=adjusted_cap_km(raw_cap, boost, penalty),
        acr=acute7 / chronic_weekly if chronic_weekly > 0 else None,
    )


def yesterday_overrun_km(km_yesterday: float, yesterday_adjusted_cap: float) -> float:
    return max(0.0, km_yesterday - yesterday_adjusted_cap)


def carryover_penalty_ratio(overrun_km: float, yesterday_adjusted_cap: float) -> float:
    """Penalty carried into today when yesterday exceeded its own cap."""
    overrun_ratio = overrun_km / max(yesterday_adjusted_cap, MIN_OVERRUN_BASELINE_KM)
    return min(overrun_ratio * config.CARRYOVER_PENALTY_FACTOR, config.CARRYOVER_PENALTY_MAX)


def apply_carryover(today: WindowMetrics, yesterday: WindowMetrics) -> CarryOver:
    """Apply the one-day carry-over from yesterday to today's adjusted cap."""
    overrun = yesterday_overrun_km(today.km_yesterday, yesterday.adjusted_cap_km)
    penalty = carryover_penalty_ratio(overrun, yesterday.adjusted_cap_km)

    cap = today.adjusted_cap_km * (1 - penalty)
    if overrun > 0:
        cap = min(cap, yesterday.adjusted_cap_km * config.OVERRUN_CAP_RATIO)
    return CarryOver(overrun, penalty, max(0.0, cap))


def final_cap_km(today: WindowMetrics, yesterday: WindowMetrics) -> float:
    return apply_carryover(today, yesterday).cap_km


def zone_from_acr(acr: Optional[float]) -> LoadZone:
    if acr is None:
        return LoadZone.INSUFFICIENT_DATA
    if acr <= config.ACR_LIMIT:
        return LoadZone.GREEN
    if acr <= config.ACR_ORANGE_LIMIT:
        return LoadZone.ORANGE
    return LoadZone.RED


def compute_training_load(activities: Iterable[Activity], today: Union[date, datetime]) -> LoadMetrics:
    """Compute today's training-load metrics and distance recommendation.

    Args:
        activities: Activity snapshot (non-runs are ignored)
        today: Reference local date

    Returns:
        LoadMetrics for `today`
    """
    if isinstance(today, datetime):
        today = today.date()

    daily_km = daily_run_km(activities)
    today_metrics = compute_window_metrics(build_window(daily_km, today))
    yesterday_metrics = compute_window_metrics(build_window(daily_km, today - timedelta(days=1)))

    carry = apply_carryover(today_metrics, yesterday_metrics)
    final_cap = carry.cap_km
    zone = zone_from_acr(today_metrics.acr)

    logger.debug(
        f"Load {today}: acute {today_metrics.acute7_km:.1f} km, chronic "
        f"{today_metrics.chronic_weekly_avg_km:.1f} km/wk, zone {zone.value}, "
        f"cap raw {today_metrics.raw_cap_km:.3f} adj {today_metrics.adjusted_cap_km:.3f} "
        f"final {final_cap:.3f}"
    )

    return LoadMetrics(
        acute7_km=today_metrics.acute7_km,
        chronic28_avg_km=today_metrics.chronic_weekly_avg_km,
        acr=today_metrics.acr,
        zone=zone,
        max_km_today=final_cap,
        remaining_km_today=max(0.0, final_cap - today_metrics.km_today),
        overrun_today=max(0.0, today_metrics.km_today - final_cap),
        km_today=today_metrics.km_today,
        km_yesterday=today_metrics.km_yesterday,
        rest_days_before_today=today_metrics.rest_days_before_today,
        recovery_boost_ratio=today_metrics.recovery_boost_ratio,
        fatigue_penalty_ratio=today_metrics.fatigue_penalty_ratio,
        carryover_penalty_ratio=carry.penalty_ratio,
        yesterday_overrun_km=carry.overrun_km,
        raw_cap_km=today_metrics.raw_cap_km,
        adjusted_cap_km=today_metrics.adjusted_cap_km,
        yesterday_raw_cap_km=yesterday_metrics.raw_cap_km,
        yesterday_adjusted_cap_km=yesterday_metrics.adjusted_cap_km,
    )
