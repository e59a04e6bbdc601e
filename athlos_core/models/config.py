"""Core configuration."""

import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator

from athlos_core.models.leaderboard import LeaderboardWindow


def _default_multipliers() -> Dict[LeaderboardWindow, int]:
    return {
        LeaderboardWindow.DAILY: 1,
        LeaderboardWindow.WEEKLY: 7,
        LeaderboardWindow.ALL_TIME: 30,
    }


class CoreConfig(BaseModel):
    """Configuration for the progress and leaderboard subsystem."""

    default_step_goal: int = Field(gt=0, default=6000)
    window_multipliers: Dict[LeaderboardWindow, PositiveInt] = Field(default_factory=_default_multipliers)
    default_window: LeaderboardWindow = LeaderboardWindow.DAILY
    keep_inactive_subscriptions: bool = False   # Hold non-selected windows open
    profile_db_path: str = ":memory:"
    profile_key: str = "athlos_user"
    log_level: str = "INFO"

    @field_validator("window_multipliers")
    @classmethod
    def daily_is_identity(cls, v: Dict[LeaderboardWindow, int]) -> Dict[LeaderboardWindow, int]:
        if v.get(LeaderboardWindow.DAILY, 1) != 1:
            raise ValueError("the daily window multiplier must be 1")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CoreConfig":
        """Build a config from ATHLOS_* environment variables."""
        env = os.environ if environ is None else environ
        overrides = {}
        if "ATHLOS_DEFAULT_STEP_GOAL" in env:
            overrides["default_step_goal"] = int(env["ATHLOS_DEFAULT_STEP_GOAL"])
        if "ATHLOS_DEFAULT_WINDOW" in env:
            overrides["default_window"] = LeaderboardWindow(env["ATHLOS_DEFAULT_WINDOW"])
        if "ATHLOS_KEEP_INACTIVE_SUBSCRIPTIONS" in env:
            overrides["keep_inactive_subscriptions"] = (
                env["ATHLOS_KEEP_INACTIVE_SUBSCRIPTIONS"].lower() in ("1", "true", "yes")
            )
        if "ATHLOS_PROFILE_DB_PATH" in env:
            overrides["profile_db_path"] = env["ATHLOS_PROFILE_DB_PATH"]
        if "ATHLOS_LOG_LEVEL" in env:
            overrides["log_level"] = env["ATHLOS_LOG_LEVEL"].upper()
        return cls(**overrides)

    def multiplier_for(self, window: LeaderboardWindow) -> int:
        return self.window_multipliers.get(window, 1)
