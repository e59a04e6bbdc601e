"""
Dashboard Session — owns the progress and leaderboard state for one screen.

Single writer for the resolved goal, today's steps, the visible leaderboard
and the friend roster; the rendering layer only reads. Every value is
replaced whole, never mutated field by field.

Lifecycle:
  created → mount() → (select_window / set_user / reload_* / queries)* → teardown()

Behavioral Contract:
- Every public method returns a defined value when a collaborator fails.
  Connectivity failures keep the last good state and raise a flag in
  `unavailable`; nothing propagates to the caller.
- The goal is re-resolved on mount and whenever the user's goal field
  changes, never in response to its own value.
- Loads that finish after the window changed, after a newer load started,
  or after teardown are dropped without writing.
"""

import asyncio
import json
from datetime import datetime
from typing import Callable, Optional, Set, Tuple, Union

from athlos_core.errors import AthlosError, ConnectivityError
from athlos_core.feed.live import LeaderboardFeed
from athlos_core.friends.search import FriendSearchFilter
from athlos_core.goals.resolver import PROFILE_GOAL_FIELD, GoalResolver, parse_goal_value
from athlos_core.logging.logger import get_logger
from athlos_core.models.config import CoreConfig
from athlos_core.models.feed import FeedState
from athlos_core.models.goal import ResolvedGoal
from athlos_core.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardSnapshot,
    LeaderboardWindow,
)
from athlos_core.models.user import FriendCandidate, User
from athlos_core.progress.calculator import GoalSummary, ProgressCalculator
from athlos_core.sources.contracts import (
    FeedConnection,
    LeaderboardSource,
    RosterSource,
    RunHistorySource,
)
from athlos_core.sources.leaderboard import PushedLeaderboardSource
from athlos_core.sources.profile_store import ProfileStore

logger = get_logger("dashboard.session")


class DashboardSession:

    def __init__(
        self,
        user: Optional[User],
        run_source: RunHistorySource,
        leaderboard_source: LeaderboardSource,
        roster_source: Optional[RosterSource] = None,
        profile_store: Optional[ProfileStore] = None,
        feed_connection: Optional[FeedConnection] = None,
        config: Optional[CoreConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or CoreConfig()
        self.run_source = run_source
        self.leaderboard_source = leaderboard_source
        self.roster_source = roster_source
        self.profile_store = profile_store
        self._clock = clock or datetime.now

        self.resolver = GoalResolver(self.config.default_step_goal)
        self.calculator = ProgressCalculator()
        self.friend_filter: FriendSearchFilter[FriendCandidate] = FriendSearchFilter()
        self.player_filter: FriendSearchFilter[LeaderboardEntry] = FriendSearchFilter()
        self.feed: Optional[LeaderboardFeed] = None
        if feed_connection is not None:
            self.feed = LeaderboardFeed(
                feed_connection,
                on_visible=self._apply_live_snapshot,
                keep_inactive=self.config.keep_inactive_subscriptions,
            )

        self._user = user
        self._goal = self.resolver.resolve_for(user, profile_store)
        self._today_steps = 0
        self._selected = self.config.default_window
        self._visible = LeaderboardSnapshot.empty(self._selected)
        self._roster: Tuple[FriendCandidate, ...] = ()
        self._friend_query = ""
        self._player_query = ""

        self.unavailable: Set[str] = set()
        self.leaderboard_loading = False
        self._alive = False
        self._torn_down = False
        self._runs_generation = 0
        self._board_generation = 0
        self._live_generation = 0
        self._tasks: Set[asyncio.Task] = set()

    # === READ-ONLY STATE ===

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def goal(self) -> ResolvedGoal:
        return self._goal

    @property
    def resolved_goal(self) -> int:
        return self._goal.value

    @property
    def today_steps(self) -> int:
        return self._today_steps

    @property
    def progress_percent(self) -> float:
        return self.calculator.progress_percent(self._today_steps, self._goal.value)

    @property
    def progress(self) -> GoalSummary:
        return self.calculator.summarize(self._today_steps, self._goal.value)

    @property
    def selected_window(self) -> LeaderboardWindow:
        return self._selected

    @property
    def visible_leaderboard(self) -> LeaderboardSnapshot:
        return self._visible

    @property
    def feed_state(self) -> FeedState:
        if self.feed is None:
            return FeedState.IDLE
        return self.feed.state(self._selected)

    @property
    def roster(self) -> Tuple[FriendCandidate, ...]:
        return self._roster

    @property
    def friend_query(self) -> str:
        return self._friend_query

    @property
    def filtered_friends(self) -> Tuple[FriendCandidate, ...]:
        return self.friend_filter.filter(self._roster, self._friend_query)

    @property
    def filtered_players(self) -> Tuple[LeaderboardEntry, ...]:
        return self.player_filter.filter(self._visible.entries, self._player_query)

    # === LIFECYCLE ===

    async def mount(self) -> None:
        """Resolve the goal and start every initial load."""
        if self._alive or self._torn_down:
            return
        self._alive = True
        self.refresh_goal()
        logger.info("Mounting dashboard for user %s", self._user.id if self._user else None)

        tasks = [
            self._spawn(self.reload_runs()),
            self._spawn(self.reload_leaderboard()),
            self._spawn(self.reload_roster()),
        ]
        if self.feed is not None:
            tasks.append(self._spawn(self._connect_feed(self._selected)))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            # CancelledError is a BaseException and means teardown won the race
            if isinstance(result, Exception):
                raise result

    async def teardown(self) -> None:
        """Cancel pending work and release the feed. Idempotent."""
        if self._torn_down:
            return
        self._torn_down = True
        self._alive = False

        for task in list(self._tasks):
            task.cancel()
        if self.feed is not None:
            await self.feed.dispose()
        logger.info("Dashboard torn down")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # === GOAL ===

    def refresh_goal(self) -> ResolvedGoal:
        self._goal = self.resolver.resolve_for(self._user, self.profile_store)
        logger.debug("Resolved goal %d from %s", self._goal.value, self._goal.source.value)
        return self._goal

    async def set_user(self, user: Optional[User]) -> None:
        """Swap in new user data; re-resolves only when the goal field moved."""
        previous = self._user
        self._user = user

        old_goal = previous.daily_step_goal if previous else None
        new_goal = user.daily_step_goal if user else None
        if old_goal != new_goal:
            self.refresh_goal()

        old_id = previous.id if previous else None
        new_id = user.id if user else None
        if old_id != new_id and self._alive:
            await self.reload_runs()

    def persist_goal(self, goal: object) -> ResolvedGoal:
        """
        Write a new goal into the local profile record and re-resolve.
        Raises GoalParseError for a non-positive or non-integer goal.
        """
        value = parse_goal_value(goal)
        writer = getattr(self.profile_store, "write_profile", None)
        if writer is None:
            raise AthlosError("profile store is read-only")

        record = {}
        raw = self.profile_store.read_raw()
        if raw is not None:
            try:
                existing = json.loads(raw)
            except ValueError:
                existing = None
            if isinstance(existing, dict):
                record = existing
        record[PROFILE_GOAL_FIELD] = value
        writer(record)
        return self.refresh_goal()

    # === RUNS ===

    async def reload_runs(self) -> int:
        """Fetch the user's runs and recompute today's steps."""
        self._runs_generation += 1
        generation = self._runs_generation

        user = self._user
        if user is None or user.id is None:
            if self._alive:
                self._today_steps = 0
            return self._today_steps

        try:
            runs = await self.run_source.fetch_user_runs(user.id)
        except ConnectivityError as e:
            if not self._is_current(generation, self._runs_generation):
                return self._today_steps
            logger.warning("Run history unavailable, counting zero steps today: %s", e)
            self.unavailable.add("runs")
            self._today_steps = 0
            return 0

        if not self._is_current(generation, self._runs_generation):
            logger.debug("Dropping stale run history for user %s", user.id)
            return self._today_steps

        self._today_steps = self.calculator.today_steps(runs, self._clock())
        self.unavailable.discard("runs")
        logger.info("User %s has %d steps today", user.id, self._today_steps)
        return self._today_steps

    # === LEADERBOARD ===

    async def select_window(self, window: Union[LeaderboardWindow, str]) -> LeaderboardSnapshot:
        """Switch the visible window. The previous window stops delivering first."""
        window = LeaderboardWindow(window)
        if not self._alive:
            self._selected = window
            return self._visible

        if window == self._selected and self.feed_state != FeedState.IDLE:
            return self._visible

        self._selected = window
        # Invalidate loads still in flight for the old window
        self._board_generation += 1
        if self.feed is not None:
            await self._connect_feed(window)
        if self._alive:
            await self.reload_leaderboard()
        return self._visible

    async def reload_leaderboard(self) -> LeaderboardSnapshot:
        """Load the selected window's snapshot from the leaderboard source."""
        self._board_generation += 1
        generation = self._board_generation
        window = self._selected
        live_mark = self._live_generation
        self.leaderboard_loading = True

        try:
            snapshot = await self.leaderboard_source.fetch_snapshot(window)
        except ConnectivityError as e:
            if self._is_current(generation, self._board_generation):
                logger.warning("Leaderboard %s unavailable, keeping last snapshot: %s", window.value, e)
                self.unavailable.add("leaderboard")
                self.leaderboard_loading = False
            return self._visible

        if not self._is_current(generation, self._board_generation) or window != self._selected:
            logger.debug("Dropping stale %s snapshot", window.value)
            return self._visible

        self.leaderboard_loading = False
        self.unavailable.discard("leaderboard")
        if self._live_generation != live_mark:
            # A live push landed while loading and is newer
            return self._visible

        self._visible = snapshot
        logger.info("Loaded %s leaderboard (%d entries)", window.value, len(snapshot))
        return snapshot

    async def _connect_feed(self, window: LeaderboardWindow) -> bool:
        ok = await self.feed.select(window)
        if not self._alive:
            return False
        if ok:
            self.unavailable.discard("feed")
        else:
            self.unavailable.add("feed")
        return ok

    def _apply_live_snapshot(self, snapshot: LeaderboardSnapshot) -> None:
        if not self._alive or snapshot.window != self._selected:
            return
        self._visible = snapshot
        self._live_generation += 1
        self.leaderboard_loading = False
        self.unavailable.discard("leaderboard")
        if isinstance(self.leaderboard_source, PushedLeaderboardSource):
            self.leaderboard_source.accept(snapshot)

    # === FRIENDS & SEARCH ===

    async def reload_roster(self) -> Tuple[FriendCandidate, ...]:
        if self.roster_source is None:
            return self._roster
        try:
            roster = await self.roster_source.fetch_roster()
        except ConnectivityError as e:
            if self._alive:
                logger.warning("Friend roster unavailable: %s", e)
                self.unavailable.add("roster")
            return self._roster

        if self._alive:
            self._roster = tuple(roster)
            self.unavailable.discard("roster")
        return self._roster

    def set_friend_query(self, query: str) -> Tuple[FriendCandidate, ...]:
        self._friend_query = query or ""
        return self.filtered_friends

    def set_player_query(self, query: str) -> Tuple[LeaderboardEntry, ...]:
        self._player_query = query or ""
        return self.filtered_players

    def _is_current(self, generation: int, latest: int) -> bool:
        return self._alive and generation == latest
