"""
Goal Resolver — the authoritative daily step goal.

Candidates are an ordered chain of providers, highest precedence first:
  1. the locally persisted profile record (when well-formed)
  2. the goal on the in-memory User
  3. a fixed default (6000)

Behavioral Contract:
- A provider returning None is absent; resolution moves to the next one.
- A provider raising GoalParseError is also absent; the failure is logged
  as a recoverable event and never reaches the caller.
- Resolution keeps no state between calls: identical inputs give an
  identical result.
"""

import json
from typing import Optional, Protocol, Sequence

from athlos_core.errors import GoalParseError
from athlos_core.logging.logger import get_logger
from athlos_core.models.goal import GoalSource, ResolvedGoal
from athlos_core.models.user import User
from athlos_core.sources.profile_store import ProfileStore

logger = get_logger("goals.resolver")

DEFAULT_STEP_GOAL = 6000
PROFILE_GOAL_FIELD = "dailyStepGoal"


class GoalProvider(Protocol):
    """One candidate source in the precedence chain."""

    source: GoalSource

    def provide(self) -> Optional[int]: ...


def parse_goal_value(value: object) -> int:
    """
    Coerce a stored goal to a positive integer.
    Accepts ints, integral floats and digit strings; raises GoalParseError otherwise.
    """
    if isinstance(value, bool):
        raise GoalParseError(f"goal must be a number, got {value!r}")

    if isinstance(value, int):
        goal = value
    elif isinstance(value, float) and value.is_integer():
        goal = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        try:
            goal = int(value.strip())
        except ValueError as e:
            # isdigit admits superscripts and strings past the int conversion limit
            raise GoalParseError(f"goal is not an integer: {value!r}") from e
    else:
        raise GoalParseError(f"goal is not an integer: {value!r}")

    if goal <= 0:
        raise GoalParseError(f"goal must be positive, got {goal}")
    return goal


def parse_profile_record(raw: str, field: str = PROFILE_GOAL_FIELD) -> Optional[int]:
    """Extract the goal from a raw profile record; None if the record has no goal."""
    try:
        record = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise GoalParseError(f"profile record is not valid JSON: {e}") from e

    if not isinstance(record, dict):
        raise GoalParseError(f"profile record is a {type(record).__name__}, not an object")

    value = record.get(field)
    if value is None:
        return None
    return parse_goal_value(value)


class PersistedProfileGoalProvider:
    """Reads dailyStepGoal from the local profile record."""

    source = GoalSource.PERSISTED_PROFILE

    def __init__(self, store: ProfileStore, field: str = PROFILE_GOAL_FIELD):
        self.store = store
        self.field = field

    def provide(self) -> Optional[int]:
        raw = self.store.read_raw()
        if raw is None:
            return None
        return parse_profile_record(raw, self.field)


class UserGoalProvider:
    """The goal carried on the User object."""

    source = GoalSource.USER

    def __init__(self, user: Optional[User]):
        self.user = user

    def provide(self) -> Optional[int]:
        if self.user is None or self.user.daily_step_goal is None:
            return None
        if self.user.daily_step_goal <= 0:
            # Non-positive counts as unset, matching the persisted record
            return None
        return self.user.daily_step_goal


class DefaultGoalProvider:
    source = GoalSource.DEFAULT

    def __init__(self, value: int = DEFAULT_STEP_GOAL):
        self.value = value

    def provide(self) -> Optional[int]:
        return self.value


class GoalResolver:
    """Walks a provider chain and returns the first usable goal."""

    def __init__(self, default_goal: int = DEFAULT_STEP_GOAL):
        if default_goal <= 0:
            raise ValueError(f"default goal must be positive, got {default_goal}")
        self.default_goal = default_goal

    def chain(
        self, user: Optional[User], store: Optional[ProfileStore] = None
    ) -> Sequence[GoalProvider]:
        """The standard precedence chain: persisted profile, user, default."""
        providers = []
        if store is not None:
            providers.append(PersistedProfileGoalProvider(store))
        providers.append(UserGoalProvider(user))
        providers.append(DefaultGoalProvider(self.default_goal))
        return providers

    def resolve(self, candidates: Sequence[GoalProvider]) -> ResolvedGoal:
        """Return the goal of the highest-precedence usable provider."""
        for provider in candidates:
            try:
                value = provider.provide()
            except GoalParseError as e:
                logger.warning(
                    "Ignoring %s goal, falling through: %s", provider.source.value, e
                )
                continue
            if value is None:
                continue
            return ResolvedGoal(value=value, source=provider.source)

        return ResolvedGoal(value=self.default_goal, source=GoalSource.DEFAULT)

    def resolve_for(
        self, user: Optional[User], store: Optional[ProfileStore] = None
    ) -> ResolvedGoal:
        return self.resolve(self.chain(user, store))
