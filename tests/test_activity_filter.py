"""Tests for run classification and unit normalization."""

from datetime import date, datetime

import pytest

from strava_run_analytics.analysis.activity_filter import (
    daily_run_km,
    filter_runs,
    is_run,
    parse_local_timestamp,
    parse_utc_timestamp,
    to_km,
    to_local_date_key,
)
from strava_run_analytics.exceptions import InvalidInputError
from strava_run_analytics.models import Activity


def _activity(sport_type="Run", distance_m=5000, start=datetime(2024, 5, 1, 7, 0), activity_id=1):
    return Activity(
        id=activity_id,
        sport_type=sport_type,
        distance_m=distance_m,
        moving_time_s=1500,
        start_local=start,
    )


class TestIsRun:
    """Test run classification."""

    def test_run_types(self):
        assert is_run(_activity("Run"))
        assert is_run(_activity("TrailRun"))
        assert is_run(_activity("VirtualRun"))

    def test_other_sports(self):
        assert not is_run(_activity("Ride"))
        assert not is_run(_activity("Walk"))
        assert not is_run(_activity(""))

    def test_case_sensitive(self):
        assert not is_run(_activity("run"))
        assert not is_run(_activity("TRAILRUN"))

    def test_filter_runs(self):
        activities = [_activity("Run"), _activity("Ride"), _activity("TrailRun")]
        assert [a.sport_type for a in filter_runs(activities)] == ["Run", "TrailRun"]


class TestUnits:
    """Test distance and date normalization."""

    def test_to_km(self):
        assert to_km(10200) == pytest.approx(10.2)
        assert to_km(0) == 0

    def test_local_date_key_from_datetime(self):
        assert to_local_date_key(datetime(2024, 5, 1, 23, 30)) == "2024-05-01"
        assert to_local_date_key(date(2024, 12, 31)) == "2024-12-31"

    def test_local_date_key_keeps_local_day_of_strava_string(self):
        # start_date_local carries a misleading Z; the date must not shift
        assert to_local_date_key("2024-05-01T23:45:00Z") == "2024-05-01"

    def test_parse_local_timestamp_drops_offset(self):
        parsed = parse_local_timestamp("2024-05-01T23:45:00Z")
        assert parsed == datetime(2024, 5, 1, 23, 45)
        assert parsed.tzinfo is None

    def test_parse_local_timestamp_invalid(self):
        with pytest.raises(InvalidInputError):
            parse_local_timestamp("yesterday")
        with pytest.raises(InvalidInputError):
            parse_local_timestamp("")

    def test_parse_utc_timestamp_converts_offset(self):
        parsed = parse_utc_timestamp("2024-05-01T09:00:00+02:00")
        assert parsed == datetime(2024, 5, 1, 7, 0)
        assert parse_utc_timestamp("2024-05-01T07:00:00Z") == datetime(2024, 5, 1, 7, 0)


class TestDailyRunKm:
    """Test per-day run aggregation."""

    def test_groups_by_local_day(self):
        activities = [
            _activity(distance_m=5000, start=datetime(2024, 5, 1, 6, 0)),
            _activity(distance_m=3000, start=datetime(2024, 5, 1, 23, 50)),
            _activity(distance_m=8000, start=datetime(2024, 5, 2, 0, 10)),
            _activity("Ride", distance_m=40000, start=datetime(2024, 5, 2, 9, 0)),
        ]

        daily = daily_run_km(activities)

        assert len(daily) == 2
        assert daily.iloc[0] == pytest.approx(8.0)
        assert daily.iloc[1] == pytest.approx(8.0)

    def test_empty(self):
        assert daily_run_km([]).empty
        assert daily_run_km([_activity("Ride")]).empty


class TestActivityInvariants:
    """Test record validation."""

    def test_negative_distance_rejected(self):
        with pytest.raises(InvalidInputError):
            _activity(distance_m=-1)

    def test_negative_moving_time_rejected(self):
        with pytest.raises(InvalidInputError):
            Activity(id=1, sport_type="Run", distance_m=1000, moving_time_s=-5,
                     start_local=datetime(2024, 5, 1))

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_values_rejected(self, value):
        with pytest.raises(InvalidInputError):
            _activity(distance_m=value)
        with pytest.raises(InvalidInputError):
            Activity(id=1, sport_type="Run", distance_m=1000, moving_time_s=value,
                     start_local=datetime(2024, 5, 1))
