"""Value types shared by the analytics components."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional

from .exceptions import InvalidInputError


@dataclass(frozen=True)
class Activity:
    """A normalized activity record supplied by the activity source.

    `start_local` is the athlete's local wall-clock start time (naive).
    `start_utc` is optional and only used where a UTC cut-off is compared.
    """

    id: int
    sport_type: str
    distance_m: float  # meters
    moving_time_s: float  # seconds
    start_local: datetime
    name: Optional[str] = None
    average_speed: Optional[float] = None  # m/s
    start_utc: Optional[datetime] = None

    def __post_init__(self):
        if not math.isfinite(self.distance_m) or self.distance_m < 0:
            raise InvalidInputError(f"Activity {self.id}: invalid distance {self.distance_m}")
        if not math.isfinite(self.moving_time_s) or self.moving_time_s < 0:
            raise InvalidInputError(f"Activity {self.id}: invalid moving time {self.moving_time_s}")


class RaceKind(Enum):
    """Race distances a reference effort can stand for."""

    FIVE_K = "5K"
    TEN_K = "10K"
    HALF_MARATHON = "HM"
    MARATHON = "Marathon"


@dataclass(frozen=True)
class RaceReference:
    """Best effort chosen to feed the race predictor."""

    kind: RaceKind
    distance_km: float
    seconds: int
    start: datetime


@dataclass(frozen=True)
class BestEffort:
    """One ranked best-effort result."""

    activity_id: int
    activity_name: str
    date_local: datetime
    dist_km: float
    seconds: int
    start_km: float
    end_km: float


@dataclass(frozen=True)
class MarathonPrediction:
    """Riegel marathon prediction from a reference performance.

    `reference` is only set when the reference was picked from activities.
    """

    reference_km: float
    reference_seconds: int
    exponent: float
    target_km: float
    raw_seconds: int
    adjusted_seconds: int
    penalty_seconds: int = 0
    reference: Optional[RaceReference] = None


class LoadZone(Enum):
    """ACR risk zone."""

    GREEN = "green"
    ORANGE = "orange"
    RED = "red"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class WindowMetrics:
    """Intermediate values computed from one 28-day window."""

    acute7_km: float
    chronic_weekly_avg_km: float
    chronic_daily_avg_km: float
    km_today: float
    km_yesterday: float
    acute7_before_today_km: float
    raw_cap_km: float
    rest_days_before_today: int
    recovery_boost_ratio: float
    fatigue_penalty_ratio: float
    adjusted_cap_km: float
    acr: Optional[float]


@dataclass(frozen=True)
class LoadMetrics:
    """Daily training-load recommendation."""

    acute7_km: float
    chronic28_avg_km: float
    acr: Optional[float]
    zone: LoadZone
    max_km_today: float
    remaining_km_today: float
    overrun_today: float
    km_today: float
    km_yesterday: float
    rest_days_before_today: int
    recovery_boost_ratio: float
    fatigue_penalty_ratio: float
    carryover_penalty_ratio: float
    yesterday_overrun_km: float
    raw_cap_km: float
    adjusted_cap_km: float
    yesterday_raw_cap_km: float
    yesterday_adjusted_cap_km: float


@dataclass(frozen=True)
class Bucket:
    """One chart point of a distance series."""

    key: str
    label: str
    km: float
    start: date


@dataclass(frozen=True)
class RunningKpis:
    """Headline numbers over a set of runs."""

    period_label: str
    count: int
    total_km: float
    avg_pace_s_per_km: Optional[float]
    best_pace_s_per_km: Optional[float]
    longest_km: float
    weekly_km: Dict[str, float] = field(default_factory=dict)
    km4: float = 0.0
    km12: float = 0.0
    acute_chronic_ratio: Optional[float] = None


class WearLevel(Enum):
    """Shoe wear level by accumulated distance."""

    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True)
class ShoeUsage:
    """Accumulated distance on one pair of shoes."""

    id: Optional[str]
    name: Optional[str]
    km: float
    wear: WearLevel
