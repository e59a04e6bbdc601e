"""Live feed subscription state."""

from enum import Enum


class FeedState(str, Enum):
    """
    Per-window subscription lifecycle:

      IDLE → CONNECTING → SUBSCRIBED → (UPDATING)* → UNSUBSCRIBING → IDLE
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    UPDATING = "updating"
    UNSUBSCRIBING = "unsubscribing"
