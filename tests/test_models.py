"""Tests for core data models."""

from datetime import datetime, timedelta

import pytest

from athlos_core.models import (
    CoreConfig,
    FriendCandidate,
    GoalSource,
    LeaderboardEntry,
    LeaderboardSnapshot,
    LeaderboardWindow,
    ResolvedGoal,
    Run,
    User,
)


class TestLeaderboardEntry:
    def test_accepts_camel_case_payload(self):
        entry = LeaderboardEntry.model_validate({
            "userId": 1,
            "name": "Madhavi",
            "totalSteps": 12500,
            "rank": 1,
            "totalDistance": 8.2,
            "territoriesClaimed": 3,
        })
        assert entry.user_id == 1
        assert entry.total_steps == 12500
        assert entry.total_distance == 8.2
        assert entry.territories_claimed == 3

    def test_optional_fields_default_to_absent(self):
        entry = LeaderboardEntry(user_id=1, name="A", total_steps=10)
        assert entry.total_distance is None
        assert entry.territories_claimed is None

    def test_negative_steps_rejected(self):
        with pytest.raises(Exception):
            LeaderboardEntry(user_id=1, name="A", total_steps=-1)

    def test_entries_are_frozen(self):
        entry = LeaderboardEntry(user_id=1, name="A", total_steps=10)
        with pytest.raises(Exception):
            entry.total_steps = 20


class TestLeaderboardSnapshot:
    def test_valid_ranking(self):
        snapshot = LeaderboardSnapshot(
            window=LeaderboardWindow.DAILY,
            entries=(
                LeaderboardEntry(user_id=1, name="A", total_steps=300, rank=1),
                LeaderboardEntry(user_id=2, name="B", total_steps=300, rank=2),
                LeaderboardEntry(user_id=3, name="C", total_steps=100, rank=3),
            ),
        )
        assert len(snapshot) == 3
        assert [e.user_id for e in snapshot.top(2)] == [1, 2]

    def test_rank_gap_rejected(self):
        with pytest.raises(Exception):
            LeaderboardSnapshot(
                window=LeaderboardWindow.DAILY,
                entries=(
                    LeaderboardEntry(user_id=1, name="A", total_steps=300, rank=1),
                    LeaderboardEntry(user_id=2, name="B", total_steps=200, rank=3),
                ),
            )

    def test_ascending_steps_rejected(self):
        with pytest.raises(Exception):
            LeaderboardSnapshot(
                window=LeaderboardWindow.DAILY,
                entries=(
                    LeaderboardEntry(user_id=1, name="A", total_steps=100, rank=1),
                    LeaderboardEntry(user_id=2, name="B", total_steps=200, rank=2),
                ),
            )

    def test_empty(self):
        snapshot = LeaderboardSnapshot.empty(LeaderboardWindow.WEEKLY)
        assert snapshot.window == LeaderboardWindow.WEEKLY
        assert len(snapshot) == 0

    def test_generated_at_is_timezone_aware(self):
        snapshot = LeaderboardSnapshot.empty(LeaderboardWindow.DAILY)
        assert snapshot.generated_at.utcoffset() == timedelta(0)

    def test_window_values(self):
        assert LeaderboardWindow("all-time") == LeaderboardWindow.ALL_TIME


class TestRunAndUser:
    def test_run_from_payload(self):
        run = Run.model_validate({
            "userId": 7,
            "startTime": "2026-03-01T07:30:00",
            "totalSteps": 2400,
        })
        assert run.user_id == 7
        assert run.start_time == datetime(2026, 3, 1, 7, 30)

    def test_run_without_start(self):
        run = Run(user_id=7, total_steps=100)
        assert run.start_time is None

    def test_user_goal_alias(self):
        user = User.model_validate({"id": 1, "name": "A", "dailyStepGoal": 8000})
        assert user.daily_step_goal == 8000

    def test_friend_candidate(self):
        friend = FriendCandidate(id=6, name="Priya")
        assert friend.avatar is None


class TestResolvedGoal:
    def test_positive_only(self):
        assert ResolvedGoal(value=6000, source=GoalSource.DEFAULT).value == 6000
        with pytest.raises(Exception):
            ResolvedGoal(value=0, source=GoalSource.DEFAULT)


class TestCoreConfig:
    def test_defaults(self):
        config = CoreConfig()
        assert config.default_step_goal == 6000
        assert config.multiplier_for(LeaderboardWindow.DAILY) == 1
        assert config.multiplier_for(LeaderboardWindow.WEEKLY) == 7
        assert config.multiplier_for(LeaderboardWindow.ALL_TIME) == 30
        assert config.keep_inactive_subscriptions is False

    def test_from_env(self):
        config = CoreConfig.from_env({
            "ATHLOS_DEFAULT_STEP_GOAL": "8000",
            "ATHLOS_DEFAULT_WINDOW": "weekly",
            "ATHLOS_KEEP_INACTIVE_SUBSCRIPTIONS": "true",
            "ATHLOS_LOG_LEVEL": "debug",
        })
        assert config.default_step_goal == 8000
        assert config.default_window == LeaderboardWindow.WEEKLY
        assert config.keep_inactive_subscriptions is True
        assert config.log_level == "DEBUG"

    def test_from_env_without_overrides(self):
        assert CoreConfig.from_env({}) == CoreConfig()

    @pytest.mark.parametrize("multipliers", [
        {LeaderboardWindow.WEEKLY: -7},
        {LeaderboardWindow.ALL_TIME: 0},
        {LeaderboardWindow.DAILY: 2},
    ])
    def test_rejects_bad_window_multipliers(self, multipliers):
        with pytest.raises(ValueError):
            CoreConfig(window_multipliers=multipliers)
