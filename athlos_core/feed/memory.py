"""
In-memory push channel.

Deterministic FeedConnection for tests and the demo app: pushes are
delivered synchronously to whichever listener is registered for the window.
"""

import asyncio
from typing import Dict, List, Optional

from athlos_core.errors import ConnectivityError
from athlos_core.models.leaderboard import LeaderboardWindow
from athlos_core.sources.contracts import SnapshotListener


class InMemoryFeedConnection:

    def __init__(self, fail_connect: bool = False):
        self.fail_connect = fail_connect
        self.connect_gate: Optional[asyncio.Event] = None   # Holds connect() open until set
        self.unsubscribe_gate: Optional[asyncio.Event] = None
        self.connected = False
        self.disposed = False
        self.connect_calls = 0
        self.subscribe_calls: List[LeaderboardWindow] = []
        self.unsubscribe_calls: List[LeaderboardWindow] = []
        self._listeners: Dict[LeaderboardWindow, SnapshotListener] = {}

    @property
    def subscribed_windows(self) -> List[LeaderboardWindow]:
        return list(self._listeners)

    def listener_for(self, window: LeaderboardWindow) -> Optional[SnapshotListener]:
        """The registered listener, e.g. to replay a push after teardown."""
        return self._listeners.get(window)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_connect:
            raise ConnectivityError("feed", "handshake refused")
        self.connected = True
        self.disposed = False

    async def subscribe(self, window: LeaderboardWindow, listener: SnapshotListener) -> None:
        if not self.connected:
            raise ConnectivityError("feed", "subscribe before connect")
        self.subscribe_calls.append(window)
        self._listeners[window] = listener

    async def unsubscribe(self, window: LeaderboardWindow) -> None:
        self.unsubscribe_calls.append(window)
        if self.unsubscribe_gate is not None:
            await self.unsubscribe_gate.wait()
        self._listeners.pop(window, None)

    async def dispose(self) -> None:
        self._listeners.clear()
        self.connected = False
        self.disposed = True

    def push(self, window: LeaderboardWindow, payload: object) -> bool:
        """Deliver a payload to the window's listener. False if nobody listens."""
        listener = self._listeners.get(window)
        if listener is None:
            return False
        listener(payload)
        return True
