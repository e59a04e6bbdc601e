"""Tests for the Goal Resolver precedence chain."""

import json
import logging

import pytest

from athlos_core.errors import GoalParseError
from athlos_core.goals.resolver import (
    DefaultGoalProvider,
    GoalResolver,
    PersistedProfileGoalProvider,
    UserGoalProvider,
    parse_goal_value,
    parse_profile_record,
)
from athlos_core.models.goal import GoalSource
from athlos_core.models.user import User
from athlos_core.sources.profile_store import InMemoryProfileStore


def _store(record) -> InMemoryProfileStore:
    raw = record if isinstance(record, str) else json.dumps(record)
    return InMemoryProfileStore(raw)


class TestParsing:
    def test_integer(self):
        assert parse_goal_value(8000) == 8000

    def test_integral_float_and_digit_string(self):
        assert parse_goal_value(8000.0) == 8000
        assert parse_goal_value(" 7500 ") == 7500

    @pytest.mark.parametrize(
        "value", [0, -5, 7.5, "abc", True, None, [8000], "\u00b2", "9" * 5000]
    )
    def test_malformed_values(self, value):
        with pytest.raises(GoalParseError):
            parse_goal_value(value)

    def test_record_without_goal_is_absent(self):
        assert parse_profile_record(json.dumps({"name": "A"})) is None

    def test_invalid_json(self):
        with pytest.raises(GoalParseError):
            parse_profile_record("{not json")

    def test_non_object_record(self):
        with pytest.raises(GoalParseError):
            parse_profile_record("[1, 2, 3]")


class TestGoalResolver:
    def setup_method(self):
        self.resolver = GoalResolver()

    def test_persisted_goal_wins_over_user(self):
        store = _store({"dailyStepGoal": 9000})
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=7000), store)
        assert goal.value == 9000
        assert goal.source == GoalSource.PERSISTED_PROFILE

    def test_user_goal_when_nothing_persisted(self):
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=7000), InMemoryProfileStore())
        assert goal.value == 7000
        assert goal.source == GoalSource.USER

    def test_default_when_no_sources(self):
        goal = self.resolver.resolve_for(None, None)
        assert goal.value == 6000
        assert goal.source == GoalSource.DEFAULT

    def test_malformed_record_falls_through_to_user(self, caplog):
        store = _store("{corrupted")
        with caplog.at_level(logging.WARNING, logger="athlos"):
            goal = self.resolver.resolve_for(User(id=1, daily_step_goal=7000), store)
        assert goal.value == 7000
        assert goal.source == GoalSource.USER
        assert any("falling through" in r.getMessage() for r in caplog.records)

    def test_unconvertible_digit_string_falls_through(self):
        store = _store({"dailyStepGoal": "\u00b2"})
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=8000), store)
        assert goal.value == 8000
        assert goal.source == GoalSource.USER

        store = _store({"dailyStepGoal": "7" * 5000})
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=8000), store)
        assert goal.value == 8000

    def test_non_positive_persisted_goal_falls_through(self):
        store = _store({"dailyStepGoal": 0})
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=None), store)
        assert goal.value == 6000
        assert goal.source == GoalSource.DEFAULT

    def test_non_positive_user_goal_uses_default(self):
        goal = self.resolver.resolve_for(User(id=1, daily_step_goal=-10), None)
        assert goal.value == 6000

    def test_configured_default(self):
        goal = GoalResolver(default_goal=10000).resolve_for(None, None)
        assert goal.value == 10000

    def test_invalid_default_rejected(self):
        with pytest.raises(ValueError):
            GoalResolver(default_goal=0)

    def test_idempotent(self):
        store = _store({"dailyStepGoal": 9000})
        user = User(id=1, daily_step_goal=7000)
        chain = self.resolver.chain(user, store)
        first = self.resolver.resolve(chain)
        second = self.resolver.resolve(chain)
        assert first == second
        assert store.read_raw() == json.dumps({"dailyStepGoal": 9000})

    def test_custom_chain_order(self):
        user = User(id=1, daily_step_goal=7000)
        chain = [UserGoalProvider(user), DefaultGoalProvider(6000)]
        assert self.resolver.resolve(chain).value == 7000

    def test_empty_chain_uses_resolver_default(self):
        goal = self.resolver.resolve([])
        assert goal.value == 6000
        assert goal.source == GoalSource.DEFAULT

    def test_persisted_provider_reads_store_each_call(self):
        store = InMemoryProfileStore()
        provider = PersistedProfileGoalProvider(store)
        assert provider.provide() is None
        store.write_profile({"dailyStepGoal": 8500})
        assert provider.provide() == 8500
