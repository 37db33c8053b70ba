"""Tests for the acute:chronic training-load engine."""

from dataclasses import replace
from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from strava_run_analytics.analysis.training_load import (
    WINDOW_DAYS,
    apply_carryover,
    build_window,
    carryover_penalty_ratio,
    compute_training_load,
    compute_window_metrics,
    fatigue_penalty_ratio,
    final_cap_km,
    recovery_boost_ratio,
    rest_days_before_today,
    zone_from_acr,
)
from strava_run_analytics.models import Activity, LoadZone

TODAY = date(2024, 6, 30)


def _history(daily_km, today=TODAY, sport_type="Run"):
    """Activities for a list of daily distances; the last entry is `today`."""
    activities = []
    for offset, km in enumerate(reversed(daily_km)):
        if km <= 0:
            continue
        day = today - timedelta(days=offset)
        activities.append(Activity(
            id=offset,
            sport_type=sport_type,
            distance_m=km * 1000,
            moving_time_s=km * 330,
            start_local=datetime(day.year, day.month, day.day, 7, 30),
        ))
    return activities


class TestBuildWindow:
    """Test the 28-day window."""

    @pytest.mark.parametrize("days_with_runs", [[], [0], [3, 40], list(range(60))])
    def test_length_always_28(self, days_with_runs):
        index = pd.DatetimeIndex([pd.Timestamp(TODAY - timedelta(days=d)) for d in days_with_runs])
        daily = pd.Series([5.0] * len(days_with_runs), index=index, dtype=float)

        window = build_window(daily, TODAY)

        assert len(window) == WINDOW_DAYS

    def test_ordering_and_zero_fill(self):
        daily = pd.Series(
            [3.0, 7.0],
            index=pd.DatetimeIndex([pd.Timestamp(TODAY), pd.Timestamp(TODAY - timedelta(days=27))]),
        )

        window = build_window(daily, TODAY)

        assert window[27] == 3.0
        assert window[0] == 7.0
        assert np.count_nonzero(window) == 2

    def test_empty_history(self):
        window = build_window(pd.Series(dtype=float), TODAY)
        assert len(window) == WINDOW_DAYS
        assert not window.any()


class TestAdjustmentRatios:
    """Test each named adjustment independently."""

    def test_rest_days_counted_back_from_yesterday(self):
        window = np.zeros(WINDOW_DAYS)
        window[20] = 10
        window[27] = 5  # today does not break the streak
        assert rest_days_before_today(window) == 6

        window[26] = 4
        assert rest_days_before_today(window) == 0

    def test_rest_days_empty_window(self):
        assert rest_days_before_today(np.zeros(WINDOW_DAYS)) == 27

    def test_recovery_boost(self):
        assert recovery_boost_ratio(0) == 0
        assert recovery_boost_ratio(1) == pytest.approx(0.08)
        assert recovery_boost_ratio(2) == pytest.approx(0.16)
        assert recovery_boost_ratio(3) == pytest.approx(0.24)
        assert recovery_boost_ratio(10) == pytest.approx(0.24)

    def test_fatigue_penalty(self):
        window = np.zeros(WINDOW_DAYS)
        window[25] = 10
        window[26] = 10

        assert fatigue_penalty_ratio(window, chronic_daily_avg_km=10.0) == 0
        assert fatigue_penalty_ratio(window, chronic_daily_avg_km=5.0) == pytest.approx(0.25)
        assert fatigue_penalty_ratio(window, chronic_daily_avg_km=2.0) == pytest.approx(0.3)

    def test_fatigue_penalty_ignores_today(self):
        window = np.zeros(WINDOW_DAYS)
        window[27] = 30
        assert fatigue_penalty_ratio(window, chronic_daily_avg_km=1.0) == 0

    def test_carryover_penalty(self):
        assert carryover_penalty_ratio(0, 10) == 0
        assert carryover_penalty_ratio(5, 10) == pytest.approx(0.175)
        assert carryover_penalty_ratio(20, 10) == pytest.approx(0.35)
        # A zero cap falls back to a 0.1 km baseline
        assert carryover_penalty_ratio(1, 0) == pytest.approx(0.35)

    def test_zone_from_acr(self):
        assert zone_from_acr(None) == LoadZone.INSUFFICIENT_DATA
        assert zone_from_acr(0.0) == LoadZone.GREEN
        assert zone_from_acr(1.3) == LoadZone.GREEN
        assert zone_from_acr(1.31) == LoadZone.ORANGE
        assert zone_from_acr(1.5) == LoadZone.ORANGE
        assert zone_from_acr(1.51) == LoadZone.RED


class TestWindowMetrics:
    """Test per-window computation."""

    def test_raw_cap(self):
        window = np.full(WINDOW_DAYS, 5.0)

        metrics = compute_window_metrics(window)

        assert metrics.chronic_weekly_avg_km == pytest.approx(35.0)
        assert metrics.acute7_before_today_km == pytest.approx(30.0)
        assert metrics.raw_cap_km == pytest.approx(15.5)
        assert metrics.adjusted_cap_km == pytest.approx(15.5)

    def test_adjusted_cap_applies_boost_then_penalty(self):
        window = np.zeros(WINDOW_DAYS)
        window[:10] = 10.0  # 100 km, chronic 25 km/week

        metrics = compute_window_metrics(window)

        assert metrics.rest_days_before_today == 17
        assert metrics.recovery_boost_ratio == pytest.approx(0.24)
        assert metrics.fatigue_penalty_ratio == 0
        assert metrics.raw_cap_km == pytest.approx(32.5)
        assert metrics.adjusted_cap_km == pytest.approx(32.5 * 1.24)

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            compute_window_metrics(np.zeros(7))


class TestComputeTrainingLoad:
    """Test the full recommendation."""

    def test_steady_daily_runs(self):
        metrics = compute_training_load(_history([5.0] * 28), TODAY)

        assert metrics.chronic28_avg_km == pytest.approx(35.0)
        assert metrics.acute7_km == pytest.approx(35.0)
        assert metrics.acr == pytest.approx(1.0)
        assert metrics.zone == LoadZone.GREEN
        assert metrics.max_km_today == pytest.approx(15.5)
        assert metrics.remaining_km_today == pytest.approx(10.5)
        assert metrics.overrun_today == 0
        assert metrics.carryover_penalty_ratio == 0

    def test_no_history(self):
        metrics = compute_training_load([], TODAY)

        assert metrics.acr is None
        assert metrics.zone == LoadZone.INSUFFICIENT_DATA
        assert metrics.chronic28_avg_km == 0
        assert metrics.raw_cap_km == 0
        assert metrics.max_km_today == 0
        assert metrics.remaining_km_today == 0

    def test_runs_older_than_window_are_insufficient(self):
        old = _history([10.0] + [0.0] * 40)
        metrics = compute_training_load(old, TODAY)

        assert metrics.acr is None
        assert metrics.zone == LoadZone.INSUFFICIENT_DATA

    def test_non_runs_ignored(self):
        rides = _history([50.0] * 28, sport_type="Ride")
        assert compute_training_load(rides, TODAY).zone == LoadZone.INSUFFICIENT_DATA

    def test_accepts_datetime(self):
        activities = _history([5.0] * 28)
        by_date = compute_training_load(activities, TODAY)
        by_datetime = compute_training_load(activities, datetime(2024, 6, 30, 21, 0))
        assert by_date == by_datetime

    def test_overrun_today(self):
        metrics = compute_training_load(_history([5.0] * 27 + [25.0]), TODAY)

        assert metrics.remaining_km_today == 0
        assert metrics.overrun_today == pytest.approx(25.0 - metrics.max_km_today)

    def test_yesterday_overrun_carries_over(self):
        metrics = compute_training_load(_history([5.0] * 26 + [30.0, 0.0]), TODAY)

        assert metrics.yesterday_overrun_km > 0
        assert metrics.carryover_penalty_ratio > 0
        assert metrics.max_km_today <= metrics.yesterday_adjusted_cap_km * 0.9 + 1e-9

    def test_spike_goes_red(self):
        metrics = compute_training_load(_history([0.0] * 21 + [15.0] * 7), TODAY)

        assert metrics.acr == pytest.approx(4.0)
        assert metrics.zone == LoadZone.RED

    @pytest.mark.parametrize("base", [0.0, 3.0, 5.0, 8.0])
    def test_carryover_monotonic_in_yesterday_km(self, base):
        caps = [
            compute_training_load(_history([base] * 26 + [km, 0.0]), TODAY).max_km_today
            for km in (0.0, 5.0, 10.0, 20.0, 40.0, 80.0)
        ]
        assert all(later <= earlier + 1e-9 for earlier, later in zip(caps, caps[1:]))


class TestFinalCap:
    """Test the carry-over step with fixed window metrics."""

    def _metrics(self, km_yesterday=0.0, adjusted_cap=10.0):
        window = np.full(WINDOW_DAYS, 5.0)
        base = compute_window_metrics(window)
        return replace(base, km_yesterday=km_yesterday, adjusted_cap_km=adjusted_cap)

    def test_no_overrun_keeps_today_cap(self):
        today = self._metrics(km_yesterday=8.0, adjusted_cap=12.0)
        yesterday = self._metrics(adjusted_cap=10.0)

        assert final_cap_km(today, yesterday) == pytest.approx(12.0)

    def test_overrun_clamps_to_ninety_percent(self):
        today = self._metrics(km_yesterday=11.0, adjusted_cap=20.0)
        yesterday = self._metrics(adjusted_cap=10.0)

        # carry-over 0.035 would leave 19.3; the 90% clamp wins
        assert final_cap_km(today, yesterday) == pytest.approx(9.0)

    def test_monotonic_in_overrun(self):
        yesterday = self._metrics(adjusted_cap=10.0)
        caps = [
            final_cap_km(self._metrics(km_yesterday=km, adjusted_cap=12.0), yesterday)
            for km in (0, 5, 10, 10.5, 12, 15, 30, 100)
        ]
        assert all(later <= earlier + 1e-9 for earlier, later in zip(caps, caps[1:]))

    def test_apply_carryover_matches_parts(self):
        today = self._metrics(km_yesterday=11.0, adjusted_cap=20.0)
        yesterday = self._metrics(adjusted_cap=10.0)

        carry = apply_carryover(today, yesterday)

        assert carry.overrun_km == pytest.approx(1.0)
        assert carry.penalty_ratio == pytest.approx(carryover_penalty_ratio(1.0, 10.0))
        assert carry.cap_km == final_cap_km(today, yesterday)

    @pytest.mark.parametrize("yesterday_km", [0.0, 12.0, 30.0])
    def test_reported_carryover_is_the_applied_one(self, yesterday_km):
        metrics = compute_training_load(_history([5.0] * 26 + [yesterday_km, 0.0]), TODAY)

        expected = metrics.adjusted_cap_km * (1 - metrics.carryover_penalty_ratio)
        if metrics.yesterday_overrun_km > 0:
            expected = min(expected, metrics.yesterday_adjusted_cap_km * 0.9)
        assert metrics.max_km_today == pytest.approx(max(0.0, expected))
