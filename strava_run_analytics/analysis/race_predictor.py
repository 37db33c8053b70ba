"""Riegel race-time prediction."""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..config import config
from ..exceptions import InvalidInputError
from ..models import Activity, MarathonPrediction
from .best_efforts import pick_best_reference

logger = logging.getLogger(__name__)

MARATHON_KM = 42.195
DISTANCE_EPSILON_KM = 1e-6
MIN_MARATHON_SECONDS = 2 * 3600

# (threshold, penalty seconds); first threshold the value falls under applies.
WEEKLY_VOLUME_PENALTIES = [(25, 4 * 60), (35, 2 * 60), (40, 60)]
LONG_RUN_PENALTIES = [(24, 3 * 60), (28, 2 * 60), (30, 60)]


def predict_seconds(
    reference_seconds: float,
    reference_km: float,
    target_km: float,
    exponent: Optional[float] = None,
) -> int:
    """Predict a finish time with Riegel's power law.

    T2 = T1 * (D2 / D1) ^ exponent

    Args:
        reference_seconds: Reference performance time
        reference_km: Reference distance
        target_km: Distance to predict for
        exponent: Fatigue exponent (defaults to config.RIEGEL_EXPONENT, 1.06)

    Returns:
        Predicted time in whole seconds

    Raises:
        InvalidInputError: for non-positive distances or reference time
    """
    if exponent is None:
        exponent = config.RIEGEL_EXPONENT
    if reference_km <= 0:
        raise InvalidInputError(f"Reference distance must be positive, got {reference_km}")
    if reference_seconds <= 0:
        raise InvalidInputError(f"Reference time must be positive, got {reference_seconds}")
    if target_km <= 0:
        raise InvalidInputError(f"Target distance must be positive, got {target_km}")

    if reference_km == target_km:
        return int(round(reference_seconds))

    return int(round(reference_seconds * (target_km / reference_km) ** exponent))


def _penalty(value: Optional[float], table) -> int:
    if value is None:
        return 0
    for threshold, seconds in table:
        if value < threshold:
            return seconds
    return 0


def readiness_penalty_seconds(weekly_avg_km: Optional[float], longest_km: Optional[float]) -> int:
    """Extra marathon seconds for low weekly volume or a short longest run."""
    return _penalty(weekly_avg_km, WEEKLY_VOLUME_PENALTIES) + _penalty(longest_km, LONG_RUN_PENALTIES)


def predict_marathon_from_time(
    reference_seconds: float,
    reference_km: float,
    exponent: Optional[float] = None,
    weekly_avg_km: Optional[float] = None,
    longest_km: Optional[float] = None,
) -> MarathonPrediction:
    """Predict a marathon from a manually entered reference performance.

    The readiness penalty is added to the Riegel time. A marathon reference
    is returned as is, with no penalty.

    Raises:
        InvalidInputError: for a reference longer than a marathon, or a
            marathon reference under two hours
    """
    if exponent is None:
        exponent = config.RIEGEL_EXPONENT
    if reference_km > MARATHON_KM + DISTANCE_EPSILON_KM:
        raise InvalidInputError(f"Reference distance cannot exceed {MARATHON_KM} km, got {reference_km}")

    if abs(reference_km - MARATHON_KM) < DISTANCE_EPSILON_KM:
        if reference_seconds < MIN_MARATHON_SECONDS:
            raise InvalidInputError(
                f"Unrealistic marathon time {reference_seconds}s; use a 10K or half marathon reference"
            )
        seconds = int(round(reference_seconds))
        return MarathonPrediction(
            reference_km=reference_km,
            reference_seconds=seconds,
            exponent=exponent,
            target_km=MARATHON_KM,
            raw_seconds=seconds,
            adjusted_seconds=seconds,
        )

    raw = predict_seconds(reference_seconds, reference_km, MARATHON_KM, exponent)
    penalty = readiness_penalty_seconds(weekly_avg_km, longest_km)
    return MarathonPrediction(
        reference_km=reference_km,
        reference_seconds=int(round(reference_seconds)),
        exponent=exponent,
        target_km=MARATHON_KM,
        raw_seconds=raw,
        adjusted_seconds=raw + penalty,
        penalty_seconds=penalty,
    )


def predict_marathon(
    activities: Iterable[Activity],
    now_utc: datetime,
    window_days: Optional[int] = None,
    exponent: Optional[float] = None,
) -> Optional[MarathonPrediction]:
    """Predict a marathon time from the best recent reference effort.

    Args:
        activities: Activity snapshot
        now_utc: Current time in UTC (naive); the window ends here
        window_days: Lookback window for the reference effort
        exponent: Riegel exponent

    Returns:
        The prediction, or None when no 5K/10K/HM effort qualifies
    """
    if window_days is None:
        window_days = config.BEST_EFFORT_WINDOW_DAYS
    if exponent is None:
        exponent = config.RIEGEL_EXPONENT

    reference = pick_best_reference(activities, now_utc - timedelta(days=window_days))
    if reference is None:
        return None

    raw = predict_seconds(reference.seconds, reference.distance_km, MARATHON_KM, exponent)
    logger.debug(
        f"Marathon from {reference.kind.value} {reference.distance_km:.2f} km in "
        f"{reference.seconds}s: {raw}s"
    )
    return MarathonPrediction(
        reference_km=reference.distance_km,
        reference_seconds=reference.seconds,
        exponent=exponent,
        target_km=MARATHON_KM,
        raw_seconds=raw,
        adjusted_seconds=raw,
        reference=reference,
    )
