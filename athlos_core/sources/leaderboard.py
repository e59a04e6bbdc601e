"""
Leaderboard sources — one capability, two transports.

Polled: fetch the canonical daily snapshot on demand and project it.
Pushed: serve the latest snapshot delivered over the live channel, falling
back to a polled source until the first push arrives.
"""

from typing import Awaitable, Callable, Dict, Optional

from athlos_core.errors import ConnectivityError
from athlos_core.leaderboard.projector import LeaderboardWindowProjector, coerce_snapshot
from athlos_core.logging.logger import get_logger
from athlos_core.models.leaderboard import LeaderboardSnapshot, LeaderboardWindow
from athlos_core.sources.contracts import LeaderboardSource

logger = get_logger("sources.leaderboard")

CanonicalFetcher = Callable[[], Awaitable[object]]


class PolledLeaderboardSource:
    """Loads the daily snapshot through a fetch callable on every request."""

    kind = "polled"

    def __init__(
        self,
        fetch_canonical: CanonicalFetcher,
        projector: Optional[LeaderboardWindowProjector] = None,
    ):
        self._fetch_canonical = fetch_canonical
        self.projector = projector or LeaderboardWindowProjector()
        self.fetch_count = 0

    async def fetch_snapshot(self, window: LeaderboardWindow) -> LeaderboardSnapshot:
        self.fetch_count += 1
        payload = await self._fetch_canonical()
        try:
            canonical = coerce_snapshot(LeaderboardWindow.DAILY, payload)
        except ValueError as e:
            # A garbled response is as good as no response
            raise ConnectivityError("leaderboard", f"malformed snapshot: {e}") from e
        return self.projector.project(canonical, window)


class PushedLeaderboardSource:
    """Latest pushed snapshot per window, with an optional polled fallback."""

    kind = "pushed"

    def __init__(
        self,
        fallback: Optional[LeaderboardSource] = None,
        projector: Optional[LeaderboardWindowProjector] = None,
    ):
        self.fallback = fallback
        self.projector = projector or LeaderboardWindowProjector()
        self._latest: Dict[LeaderboardWindow, LeaderboardSnapshot] = {}

    def accept(self, snapshot: LeaderboardSnapshot) -> None:
        """Record a pushed snapshot, replacing the previous one for its window."""
        self._latest[snapshot.window] = snapshot
        logger.debug(
            "Accepted pushed %s snapshot (%d entries)",
            snapshot.window.value, len(snapshot),
        )

    def latest(self, window: LeaderboardWindow) -> Optional[LeaderboardSnapshot]:
        return self._latest.get(window)

    async def fetch_snapshot(self, window: LeaderboardWindow) -> LeaderboardSnapshot:
        snapshot = self._latest.get(window)
        if snapshot is not None:
            return snapshot

        canonical = self._latest.get(LeaderboardWindow.DAILY)
        if canonical is not None:
            return self.projector.project(canonical, window)

        if self.fallback is not None:
            return await self.fallback.fetch_snapshot(window)

        raise ConnectivityError("leaderboard", f"no {window.value} snapshot pushed yet")
