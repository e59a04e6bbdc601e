"""
Athlos Core API — FastAPI endpoints.

Exposes one dashboard session to a rendering client:
- Step progress against the resolved goal
- The visible leaderboard and window switching
- Friend and player search
- Re-triggering loads after a connectivity failure
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from athlos_core.dashboard.session import DashboardSession
from athlos_core.errors import AthlosError, GoalParseError
from athlos_core.feed.memory import InMemoryFeedConnection
from athlos_core.fixtures.demo import demo_fixtures
from athlos_core.friends.search import filter_by_name
from athlos_core.leaderboard.projector import LeaderboardWindowProjector
from athlos_core.logging.logger import configure_logging
from athlos_core.models.config import CoreConfig
from athlos_core.models.feed import FeedState
from athlos_core.models.leaderboard import LeaderboardWindow
from athlos_core.models.user import User
from athlos_core.sources.leaderboard import PolledLeaderboardSource, PushedLeaderboardSource
from athlos_core.sources.profile_store import SqliteProfileStore


# --- Request/Response Models ---

class WindowSelectRequest(BaseModel):
    window: LeaderboardWindow


class GoalUpdateRequest(BaseModel):
    daily_step_goal: int


class ProgressResponse(BaseModel):
    goal: int
    goal_source: str
    today_steps: int
    percent: float
    rounded_percent: int
    remaining_steps: int
    unavailable: list


# --- Application Factory ---

def build_demo_session(config: Optional[CoreConfig] = None) -> DashboardSession:
    """A session over the demo fixtures, an in-memory feed and a local profile store."""
    config = config or CoreConfig()
    fixtures = demo_fixtures()
    projector = LeaderboardWindowProjector(config.window_multipliers)
    polled = PolledLeaderboardSource(fixtures.fetch_canonical, projector)
    return DashboardSession(
        user=User(id=1, name="Madhavi", daily_step_goal=None),
        run_source=fixtures,
        leaderboard_source=PushedLeaderboardSource(fallback=polled, projector=projector),
        roster_source=fixtures,
        profile_store=SqliteProfileStore(config.profile_db_path, key=config.profile_key),
        feed_connection=InMemoryFeedConnection(),
        config=config,
    )


def create_app(
    session: Optional[DashboardSession] = None,
    config: Optional[CoreConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    config = config or (session.config if session else CoreConfig())
    configure_logging(config.log_level)
    ds = session or build_demo_session(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ds.mount()
        try:
            yield
        finally:
            await ds.teardown()

    app = FastAPI(
        title="Athlos Core API",
        description="Step progress and multi-window leaderboard",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store the session on app state for access in endpoints
    app.state.session = ds

    # === PROGRESS ===

    @app.get("/progress", response_model=ProgressResponse)
    def get_progress():
        """Today's steps against the resolved goal."""
        summary = ds.progress
        return ProgressResponse(
            goal=summary.goal_steps,
            goal_source=ds.goal.source.value,
            today_steps=summary.current_steps,
            percent=summary.percent,
            rounded_percent=summary.rounded_percent,
            remaining_steps=summary.remaining_steps,
            unavailable=sorted(ds.unavailable),
        )

    @app.put("/profile/goal")
    def update_goal(req: GoalUpdateRequest):
        """Persist a new daily goal in the local profile record."""
        try:
            goal = ds.persist_goal(req.daily_step_goal)
        except GoalParseError as e:
            raise HTTPException(422, str(e))
        except AthlosError as e:
            raise HTTPException(409, str(e))
        return goal.model_dump(mode="json")

    @app.post("/runs/reload")
    async def reload_runs():
        """Re-fetch run history."""
        steps = await ds.reload_runs()
        return {"today_steps": steps, "unavailable": sorted(ds.unavailable)}

    # === LEADERBOARD ===

    @app.get("/leaderboard")
    def get_leaderboard(q: str = ""):
        """The visible leaderboard, optionally filtered by player name."""
        snapshot = ds.visible_leaderboard
        entries = filter_by_name(snapshot.entries, q)
        return {
            "window": ds.selected_window.value,
            "feed_state": ds.feed_state.value,
            "loading": ds.leaderboard_loading,
            "unavailable": sorted(ds.unavailable),
            "generated_at": snapshot.generated_at.isoformat(),
            "entries": [e.model_dump(mode="json", by_alias=True) for e in entries],
        }

    @app.put("/leaderboard/window")
    async def select_window(req: WindowSelectRequest):
        """Switch the selected window."""
        snapshot = await ds.select_window(req.window)
        return {
            "window": ds.selected_window.value,
            "feed_state": ds.feed_state.value,
            "entries": len(snapshot),
        }

    @app.post("/leaderboard/reload")
    async def reload_leaderboard():
        """Re-load the selected window and reconnect its live feed if it dropped."""
        if ds.feed_state == FeedState.IDLE:
            await ds.select_window(ds.selected_window)
        else:
            await ds.reload_leaderboard()
        return {
            "window": ds.selected_window.value,
            "feed_state": ds.feed_state.value,
            "unavailable": sorted(ds.unavailable),
        }

    # === FRIENDS ===

    @app.get("/friends")
    def get_friends(q: str = ""):
        """Suggested friends whose name contains q."""
        friends = filter_by_name(ds.roster, q)
        return [f.model_dump(mode="json", by_alias=True) for f in friends]

    return app
