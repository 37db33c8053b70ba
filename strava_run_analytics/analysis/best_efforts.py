"""Best-effort extraction from whole run activities.

Only whole activities are matched against a target distance: a 10K best
effort hidden inside a half-marathon run is not extracted.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from ..config import config
from ..exceptions import InvalidInputError
from ..models import Activity, BestEffort, RaceKind, RaceReference
from .activity_filter import filter_runs, to_km

logger = logging.getLogger(__name__)

MIN_CANDIDATE_KM = 2.0
MIN_CANDIDATE_SECONDS = 600

# Float slack so that targetKm + tolerance is included for every preset distance.
_TOLERANCE_EPSILON = 1e-9

BEST_EFFORT_TARGETS: Dict[str, Tuple[float, str]] = {
    "5k": (5_000, "5K"),
    "10k": (10_000, "10K"),
    "half": (21_097.5, "HM"),
    "marathon": (42_195, "M"),
}

# (kind, target km, tolerance km) in ascending preference.
REFERENCE_TARGETS: List[Tuple[RaceKind, float, float]] = [
    (RaceKind.FIVE_K, 5.0, 0.25),
    (RaceKind.TEN_K, 10.0, 0.5),
    (RaceKind.HALF_MARATHON, 21.0975, 0.8),
]

REFERENCE_RANK = {
    RaceKind.FIVE_K: 1,
    RaceKind.TEN_K: 2,
    RaceKind.HALF_MARATHON: 3,
}


class _Candidate(NamedTuple):
    activity: Activity
    km: float
    seconds: int


def tolerance_km(target_km: float) -> float:
    """Tolerance band around a target distance."""
    if target_km <= 5.1:
        return 0.25
    elif target_km <= 10.5:
        return 0.50
    elif target_km <= 22.0:
        return 0.80
    return 1.00


def within_tolerance(km: float, target_km: float, tolerance: float) -> bool:
    return abs(km - target_km) <= tolerance + _TOLERANCE_EPSILON


def _candidates(activities: Iterable[Activity]) -> List[_Candidate]:
    """Run activities long enough to count as an effort."""
    candidates = []
    for activity in filter_runs(activities):
        km = to_km(activity.distance_m)
        seconds = int(round(activity.moving_time_s))
        if km > MIN_CANDIDATE_KM and seconds > MIN_CANDIDATE_SECONDS:
            candidates.append(_Candidate(activity, km, seconds))
    return candidates


def find_best(
    activities: Iterable[Activity],
    target_distance_m: float,
    window_days: int,
    limit: int,
    now: datetime,
    label: Optional[str] = None,
) -> List[BestEffort]:
    """Find the fastest whole-activity efforts near a target distance.

    Args:
        activities: Activity snapshot (any sport; non-runs are ignored)
        target_distance_m: Target race distance in meters
        window_days: Lookback window ending at `now` (local time)
        limit: Maximum number of results
        now: Reference local time
        label: Used to name efforts whose activity has no name

    Returns:
        Best efforts ordered fastest first, at most `limit` long
    """
    if target_distance_m <= 0:
        raise InvalidInputError(f"Target distance must be positive, got {target_distance_m}")
    if limit <= 0:
        return []

    target_km = to_km(target_distance_m)
    tolerance = tolerance_km(target_km)
    window_start = now - timedelta(days=window_days)

    in_window = [a for a in activities if window_start <= a.start_local <= now]
    matches = [
        c for c in _candidates(in_window)
        if within_tolerance(c.km, target_km, tolerance)
    ]
    matches.sort(key=lambda c: c.seconds)

    fallback_name = f"{label or f'{target_km:g}K'} run"
    efforts = [
        BestEffort(
            activity_id=c.activity.id,
            activity_name=c.activity.name or fallback_name,
            date_local=c.activity.start_local,
            dist_km=c.km,
            seconds=c.seconds,
            start_km=0.0,
            end_km=c.km,
        )
        for c in matches[:limit]
    ]

    logger.debug(
        f"{len(matches)} efforts within {tolerance} km of {target_km} km "
        f"over {window_days} days, returning {len(efforts)}"
    )
    return efforts


def find_best_for(
    preset: str,
    activities: Iterable[Activity],
    now: datetime,
    window_days: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[BestEffort]:
    """Best efforts for one of the preset race distances (5k, 10k, half, marathon)."""
    try:
        distance_m, label = BEST_EFFORT_TARGETS[preset.lower()]
    except KeyError:
        raise InvalidInputError(
            f"Unknown race distance {preset!r}; expected one of {', '.join(BEST_EFFORT_TARGETS)}"
        ) from None

    return find_best(
        activities,
        distance_m,
        window_days if window_days is not None else config.BEST_EFFORT_WINDOW_DAYS,
        limit if limit is not None else config.BEST_EFFORT_LIMIT,
        now,
        label=label,
    )


def _reference_start(activity: Activity) -> datetime:
    return activity.start_utc if activity.start_utc is not None else activity.start_local


def pick_best_reference(activities: Iterable[Activity], since: datetime) -> Optional[RaceReference]:
    """Select the race reference used for prediction.

    The fastest effort is found for each of 5K, 10K and half marathon; among
    the distances that have one, the longest wins regardless of speed.

    Args:
        activities: Activity snapshot
        since: Earliest UTC start considered; records without `start_utc`
            are compared by `start_local`

    Returns:
        The chosen reference, or None when no distance qualifies
    """
    candidates = [c for c in _candidates(activities) if _reference_start(c.activity) >= since]

    best: Optional[RaceReference] = None
    for kind, target_km, tolerance in REFERENCE_TARGETS:
        near = [c for c in candidates if within_tolerance(c.km, target_km, tolerance)]
        if not near:
            continue

        fastest = min(near, key=lambda c: c.seconds)
        reference = RaceReference(kind, fastest.km, fastest.seconds, _reference_start(fastest.activity))
        if best is None or REFERENCE_RANK[reference.kind] > REFERENCE_RANK[best.kind]:
            best = reference

    if best is None:
        logger.info(f"No 5K/10K/HM reference effort since {since:%Y-%m-%d}")
    return best
