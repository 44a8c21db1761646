"""Tests for next-run computation"""

from datetime import datetime, timedelta, timezone

import pytest

from docweave.core.cadence import compute_next_run, parse_time_of_day


class TestParseTimeOfDay:
    def test_valid(self) -> None:
        assert parse_time_of_day("02:00") == (2, 0)
        assert parse_time_of_day(" 23:59 ") == (23, 59)

    @pytest.mark.parametrize("value", ["2am", "24:00", "12:60", "", "1:2:3"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_time_of_day(value)


class TestComputeNextRun:
    def test_hourly(self, fixed_now: datetime) -> None:
        assert compute_next_run("hourly", now=fixed_now) == fixed_now + timedelta(hours=1)

    def test_daily_rolls_to_tomorrow_when_passed(self, fixed_now: datetime) -> None:
        assert compute_next_run("daily", "02:00", now=fixed_now) == datetime(
            2024, 3, 7, 2, 0, tzinfo=timezone.utc
        )

    def test_daily_later_today(self, fixed_now: datetime) -> None:
        assert compute_next_run("daily", "13:30", now=fixed_now) == datetime(
            2024, 3, 6, 13, 30, tzinfo=timezone.utc
        )

    def test_daily_at_exact_time_is_tomorrow(self, fixed_now: datetime) -> None:
        assert compute_next_run("daily", "12:00", now=fixed_now) == datetime(
            2024, 3, 7, 12, 0, tzinfo=timezone.utc
        )

    def test_weekly_next_sunday(self, fixed_now: datetime) -> None:
        next_run = compute_next_run("weekly", "02:00", now=fixed_now)
        assert next_run == datetime(2024, 3, 10, 2, 0, tzinfo=timezone.utc)
        assert next_run.weekday() == 6

    def test_weekly_on_sunday_after_time_waits_a_week(self) -> None:
        sunday = datetime(2024, 3, 10, 3, 0, tzinfo=timezone.utc)
        assert compute_next_run("weekly", "02:00", now=sunday) == datetime(
            2024, 3, 17, 2, 0, tzinfo=timezone.utc
        )

    def test_weekly_on_sunday_before_time_is_today(self) -> None:
        sunday = datetime(2024, 3, 10, 1, 0, tzinfo=timezone.utc)
        assert compute_next_run("weekly", "02:00", now=sunday) == datetime(
            2024, 3, 10, 2, 0, tzinfo=timezone.utc
        )

    def test_converts_to_utc(self) -> None:
        eastern = timezone(timedelta(hours=-5))
        now = datetime(2024, 3, 6, 22, 0, tzinfo=eastern)  # 03:00 UTC on the 7th
        next_run = compute_next_run("daily", "02:00", now=now)
        assert next_run == datetime(2024, 3, 8, 2, 0, tzinfo=timezone.utc)
        assert next_run.tzinfo == timezone.utc

    def test_unknown_interval(self, fixed_now: datetime) -> None:
        with pytest.raises(ValueError):
            compute_next_run("monthly", now=fixed_now)
