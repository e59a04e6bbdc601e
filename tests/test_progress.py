"""Tests for the Progress Calculator."""

from datetime import date, datetime, timedelta, timezone

import pytest

from athlos_core.errors import InvariantViolation
from athlos_core.models.activity import Run
from athlos_core.progress.calculator import ProgressCalculator, local_day

NOW = datetime(2026, 3, 10, 15, 0)


def _run(steps: int, start) -> Run:
    return Run(user_id=1, start_time=start, total_steps=steps)


class TestTodaySteps:
    def setup_method(self):
        self.calc = ProgressCalculator()

    def test_empty_history(self):
        assert self.calc.today_steps([], NOW) == 0

    def test_only_today_counts(self):
        runs = [
            _run(100, NOW.replace(hour=7)),
            _run(50, NOW - timedelta(days=1)),
        ]
        assert self.calc.today_steps(runs, NOW) == 100

    def test_midnight_boundaries(self):
        runs = [
            _run(10, datetime(2026, 3, 10, 0, 0)),
            _run(20, datetime(2026, 3, 10, 23, 59, 59)),
            _run(40, datetime(2026, 3, 11, 0, 0)),
            _run(80, datetime(2026, 3, 9, 23, 59, 59)),
        ]
        assert self.calc.today_steps(runs, NOW) == 30

    def test_runs_without_start_are_excluded(self):
        runs = [_run(500, None), _run(25, NOW)]
        assert self.calc.today_steps(runs, NOW) == 25

    def test_reference_can_be_a_date(self):
        runs = [_run(70, NOW)]
        assert self.calc.today_steps(runs, date(2026, 3, 10)) == 70

    def test_aware_timestamps_use_local_day(self):
        start = NOW.astimezone().astimezone(timezone.utc)
        runs = [_run(60, start)]
        assert self.calc.today_steps(runs, NOW) == 60

    def test_local_day(self):
        assert local_day(NOW) == date(2026, 3, 10)
        assert local_day(date(2026, 1, 1)) == date(2026, 1, 1)


class TestProgressPercent:
    def setup_method(self):
        self.calc = ProgressCalculator()

    @pytest.mark.parametrize("current,goal,expected", [
        (0, 6000, 0.0),
        (3000, 6000, 50.0),
        (6000, 6000, 100.0),
        (9000, 6000, 100.0),
        (1, 3, 100 / 3),
    ])
    def test_bounded_ratio(self, current, goal, expected):
        assert self.calc.progress_percent(current, goal) == pytest.approx(expected)

    def test_always_within_bounds(self):
        for current in range(0, 20001, 997):
            for goal in (1, 250, 6000, 12345):
                percent = self.calc.progress_percent(current, goal)
                assert 0 <= percent <= 100
                assert percent == pytest.approx(min(current / goal * 100, 100))

    @pytest.mark.parametrize("goal", [0, -1])
    def test_non_positive_goal_is_a_programming_error(self, goal):
        with pytest.raises(InvariantViolation):
            self.calc.progress_percent(100, goal)

    def test_negative_steps_is_a_programming_error(self):
        with pytest.raises(AssertionError):
            self.calc.progress_percent(-1, 6000)

    def test_summary(self):
        summary = self.calc.summarize(4000, 6000)
        assert summary.rounded_percent == 67
        assert summary.remaining_steps == 2000
        assert summary.reached is False

        done = self.calc.summarize(7000, 6000)
        assert done.percent == 100.0
        assert done.remaining_steps == 0
        assert done.reached is True
