"""Contracts consumed from the transport and data collaborators."""

from typing import Callable, List, Protocol

from athlos_core.models.activity import Run
from athlos_core.models.leaderboard import LeaderboardSnapshot, LeaderboardWindow
from athlos_core.models.user import FriendCandidate


class RunHistorySource(Protocol):
    """Activity history for one user. May raise ConnectivityError."""

    async def fetch_user_runs(self, user_id: int) -> List[Run]: ...


class RosterSource(Protocol):
    """Suggested-friends roster."""

    async def fetch_roster(self) -> List[FriendCandidate]: ...


class LeaderboardSource(Protocol):
    """
    Snapshot loads for a window, independent of the backing transport.
    `kind` is "polled" or "pushed".
    """

    kind: str

    async def fetch_snapshot(self, window: LeaderboardWindow) -> LeaderboardSnapshot: ...


SnapshotListener = Callable[[object], None]


class FeedConnection(Protocol):
    """
    An explicitly owned push-channel handle.

    The feed calls connect() once, then subscribe/unsubscribe per window,
    and dispose() on teardown. Listeners receive a snapshot payload: a
    LeaderboardSnapshot or a list of entry dicts.
    """

    async def connect(self) -> None: ...

    async def subscribe(self, window: LeaderboardWindow, listener: SnapshotListener) -> None: ...

    async def unsubscribe(self, window: LeaderboardWindow) -> None: ...

    async def dispose(self) -> None: ...

