"""
Leaderboard Feed — live push subscriptions, one lifecycle per window.

States (per window):
  IDLE → CONNECTING → SUBSCRIBED → (UPDATING)* → UNSUBSCRIBING → IDLE

Behavioral Contract:
- Only the selected window delivers to visible state. Pushes for any other
  window never reach the visible snapshot.
- Every push replaces the window's snapshot whole, in receipt order.
- Switching windows tears the previous window down before the new one
  connects, unless inactive subscriptions are kept warm, in which case the
  previous channel stays open but stops delivering.
- Teardown is idempotent. Once a window is torn down, pushes that were
  already in flight for it are discarded.
- A failed handshake returns the window to IDLE and is reported as a
  recoverable connectivity error; the last known snapshot stays visible.
"""

import asyncio
from itertools import count
from typing import Callable, Dict, List, Optional

from athlos_core.errors import ConnectivityError
from athlos_core.leaderboard.projector import coerce_snapshot
from athlos_core.logging.logger import get_logger
from athlos_core.models.feed import FeedState
from athlos_core.models.leaderboard import LeaderboardSnapshot, LeaderboardWindow
from athlos_core.sources.contracts import FeedConnection

logger = get_logger("feed.live")

VisibleSink = Callable[[LeaderboardSnapshot], None]

_LIVE_STATES = (FeedState.CONNECTING, FeedState.SUBSCRIBED, FeedState.UPDATING)


class LeaderboardFeed:
    """Owns the subscription lifecycle over an injected FeedConnection."""

    def __init__(
        self,
        connection: FeedConnection,
        on_visible: VisibleSink,
        keep_inactive: bool = False,
    ):
        self.connection = connection
        self._on_visible = on_visible
        self.keep_inactive = keep_inactive

        self._states: Dict[LeaderboardWindow, FeedState] = {
            window: FeedState.IDLE for window in LeaderboardWindow
        }
        self._tokens: Dict[LeaderboardWindow, int] = {}
        self._token_counter = count(1)
        self._snapshots: Dict[LeaderboardWindow, LeaderboardSnapshot] = {}
        self._selected: Optional[LeaderboardWindow] = None
        self._connected = False
        self._disposed = False
        self._lock = asyncio.Lock()

        self.last_error: Optional[ConnectivityError] = None
        self.delivered = 0
        self.discarded = 0
        self.transitions: List[tuple] = []

    # --- Inspection ---

    @property
    def selected(self) -> Optional[LeaderboardWindow]:
        return self._selected

    @property
    def disposed(self) -> bool:
        return self._disposed

    def state(self, window: LeaderboardWindow) -> FeedState:
        return self._states[window]

    @property
    def open_windows(self) -> List[LeaderboardWindow]:
        """Windows whose channel is subscribed, delivering or not."""
        return [
            w for w, s in self._states.items()
            if s in (FeedState.SUBSCRIBED, FeedState.UPDATING)
        ]

    @property
    def delivering_window(self) -> Optional[LeaderboardWindow]:
        """The one window allowed to replace visible state, if any."""
        if self._selected is not None and self._selected in self.open_windows:
            return self._selected
        return None

    def latest(self, window: LeaderboardWindow) -> Optional[LeaderboardSnapshot]:
        return self._snapshots.get(window)

    # --- Lifecycle ---

    async def select(self, window: LeaderboardWindow) -> bool:
        """
        Make `window` the delivering window.
        Returns True when it ends up subscribed, False when connecting failed
        or the feed was disposed meanwhile. Selecting the current window again
        is a no-op unless it dropped back to IDLE.
        """
        async with self._lock:
            if self._disposed:
                return False

            previous = self._selected
            self._selected = window
            if previous is not None and previous != window:
                if self.keep_inactive:
                    logger.debug("Keeping %s open, delivery stopped", previous.value)
                else:
                    await self._teardown_window(previous)
                    if self._disposed:
                        return False

            if self._states[window] in (FeedState.SUBSCRIBED, FeedState.UPDATING):
                warm = self._snapshots.get(window)
                if warm is not None and previous != window:
                    self._deliver(window, warm)
                return True

            return await self._subscribe_window(window)

    async def teardown(self, window: LeaderboardWindow) -> bool:
        """Unsubscribe one window. Returns False if it was already idle."""
        async with self._lock:
            if self._selected == window:
                self._selected = None
            return await self._teardown_window(window)

    async def dispose(self) -> None:
        """Tear down every window and release the connection. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._selected = None

        for window in [w for w, s in self._states.items() if s in _LIVE_STATES]:
            await self._teardown_window(window)

        await self._release_connection()
        logger.debug("Feed disposed (%d delivered, %d discarded)", self.delivered, self.discarded)

    # --- Internals ---

    def _set_state(self, window: LeaderboardWindow, state: FeedState) -> None:
        old = self._states[window]
        self._states[window] = state
        self.transitions.append((window, old, state))
        logger.debug("%s: %s -> %s", window.value, old.value, state.value)

    async def _subscribe_window(self, window: LeaderboardWindow) -> bool:
        token = next(self._token_counter)
        self._tokens[window] = token
        self._set_state(window, FeedState.CONNECTING)

        try:
            if not self._connected:
                await self.connection.connect()
                self._connected = True
            await self.connection.subscribe(window, self._listener(window, token))
        except ConnectivityError as e:
            self.last_error = e
            logger.warning("Live feed for %s unavailable: %s", window.value, e)
            if self._tokens.get(window) == token:
                self._tokens.pop(window, None)
                self._set_state(window, FeedState.IDLE)
            return False

        if self._disposed or self._tokens.get(window) != token:
            # Torn down while the handshake was in flight
            logger.debug("Dropping %s subscription completed after teardown", window.value)
            if self._disposed:
                await self._release_connection()
            else:
                await self._safe_unsubscribe(window)
            return False

        self.last_error = None
        self._set_state(window, FeedState.SUBSCRIBED)
        return True

    async def _teardown_window(self, window: LeaderboardWindow) -> bool:
        if self._states[window] not in _LIVE_STATES:
            return False

        # From here on, in-flight pushes for this window carry a dead token
        self._tokens.pop(window, None)
        self._snapshots.pop(window, None)
        self._set_state(window, FeedState.UNSUBSCRIBING)
        try:
            await self._safe_unsubscribe(window)
        finally:
            self._set_state(window, FeedState.IDLE)
        return True

    async def _release_connection(self) -> None:
        if not self._connected:
            return
        self._connected = False
        try:
            await self.connection.dispose()
        except ConnectivityError as e:
            logger.warning("Feed connection dispose failed: %s", e)

    async def _safe_unsubscribe(self, window: LeaderboardWindow) -> None:
        try:
            await self.connection.unsubscribe(window)
        except ConnectivityError as e:
            logger.warning("Unsubscribe from %s failed: %s", window.value, e)

    def _listener(self, window: LeaderboardWindow, token: int) -> Callable[[object], None]:
        def on_snapshot(payload: object) -> None:
            self._receive(window, token, payload)
        return on_snapshot

    def _receive(self, window: LeaderboardWindow, token: int, payload: object) -> bool:
        if self._disposed or self._tokens.get(window) != token:
            self.discarded += 1
            logger.debug("Discarding late push for %s", window.value)
            return False

        if self._states[window] != FeedState.SUBSCRIBED:
            self.discarded += 1
            logger.debug("Discarding push for %s while %s", window.value, self._states[window].value)
            return False

        try:
            snapshot = coerce_snapshot(window, payload)
        except ValueError as e:
            self.discarded += 1
            logger.warning("Discarding malformed %s push: %s", window.value, e)
            return False

        if window != self._selected:
            if self.keep_inactive:
                self._snapshots[window] = snapshot
            return False

        self._snapshots[window] = snapshot
        self._set_state(window, FeedState.UPDATING)
        try:
            self._deliver(window, snapshot)
        finally:
            self._set_state(window, FeedState.SUBSCRIBED)
        return True

    def _deliver(self, window: LeaderboardWindow, snapshot: LeaderboardSnapshot) -> None:
        self.delivered += 1
        self._on_visible(snapshot)
