"""Athlos core data models."""

from athlos_core.models.activity import Run
from athlos_core.models.config import CoreConfig
from athlos_core.models.feed import FeedState
from athlos_core.models.goal import GoalSource, ResolvedGoal
from athlos_core.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardSnapshot,
    LeaderboardWindow,
)
from athlos_core.models.user import FriendCandidate, User

__all__ = [
    "CoreConfig",
    "FeedState",
    "FriendCandidate",
    "GoalSource",
    "LeaderboardEntry",
    "LeaderboardSnapshot",
    "LeaderboardWindow",
    "ResolvedGoal",
    "Run",
    "User",
]
