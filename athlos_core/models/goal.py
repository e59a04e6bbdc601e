"""Resolved daily step goal."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GoalSource(str, Enum):
    PERSISTED_PROFILE = "persisted_profile"
    USER = "user"
    DEFAULT = "default"


class ResolvedGoal(BaseModel):
    """The authoritative goal for one resolution call."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(gt=0)
    source: GoalSource
