"""Leaderboard models — ranked entries grouped into per-window snapshots."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class LeaderboardWindow(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    ALL_TIME = "all-time"


class LeaderboardEntry(BaseModel):
    """One competitor's standing within a single time window."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    user_id: int
    name: str
    total_steps: int = Field(ge=0)
    rank: int = Field(ge=1, default=1)      # 1-based, dense
    total_distance: Optional[float] = Field(ge=0, default=None)
    territories_claimed: Optional[int] = Field(ge=0, default=None)
    avatar: Optional[str] = None


class LeaderboardSnapshot(BaseModel):
    """
    An ordered, ranked view of one window.

    Snapshots are replaced whole on every update and never mutated in place.
    Ranks run 1..n in order and total_steps never increases down the list.
    """

    model_config = ConfigDict(frozen=True)

    window: LeaderboardWindow
    entries: Tuple[LeaderboardEntry, ...] = ()
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_ranking(self) -> "LeaderboardSnapshot":
        previous_steps = None
        for position, entry in enumerate(self.entries, start=1):
            if entry.rank != position:
                raise ValueError(
                    f"rank {entry.rank} at position {position}: ranks must be contiguous from 1"
                )
            if previous_steps is not None and entry.total_steps > previous_steps:
                raise ValueError(
                    f"entry {entry.user_id} out of order: {entry.total_steps} > {previous_steps}"
                )
            previous_steps = entry.total_steps
        return self

    @classmethod
    def empty(cls, window: LeaderboardWindow) -> "LeaderboardSnapshot":
        return cls(window=window, entries=())

    def __len__(self) -> int:
        return len(self.entries)

    def top(self, count: int = 3) -> Tuple[LeaderboardEntry, ...]:
        """The podium shown on the home screen."""
        return self.entries[:count]
