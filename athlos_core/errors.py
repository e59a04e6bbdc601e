"""Error taxonomy for the progress and leaderboard subsystem."""


class AthlosError(Exception):
    """Base class for all core errors."""
    pass


class GoalParseError(AthlosError):
    """Raised when a persisted goal record cannot be parsed to a positive integer."""
    pass


class ConnectivityError(AthlosError):
    """Raised by transport collaborators when a fetch or handshake fails."""

    def __init__(self, resource: str, message: str = ""):
        self.resource = resource
        super().__init__(message or f"{resource} unavailable")


class InvariantViolation(AthlosError, AssertionError):
    """A programming error: a value that a correct composition never produces."""
    pass
