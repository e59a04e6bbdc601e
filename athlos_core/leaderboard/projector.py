"""
Leaderboard Window Projector — derives per-window snapshots from the daily one.

Weekly and all-time figures are the canonical daily figures scaled by a
fixed multiplier (7x and 30x by default). Scaling is monotonic, so the
derived order always matches the canonical order; ranks are still
recomputed from a stable descending sort so every emitted snapshot holds
the ranking invariant on its own.

Behavioral Contract:
- Input must be a daily snapshot; anything else is a programming error.
- total_steps and total_distance scale; territories_claimed does not.
- An absent total_distance stays absent.
- Ranks are dense, contiguous from 1, ties kept in original order.
"""

from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from athlos_core.errors import InvariantViolation
from athlos_core.models.config import CoreConfig
from athlos_core.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardSnapshot,
    LeaderboardWindow,
)


def assign_ranks(entries: Iterable[LeaderboardEntry]) -> Tuple[LeaderboardEntry, ...]:
    """Sort by total_steps descending (stable) and number ranks 1..n."""
    ordered = sorted(entries, key=lambda e: -e.total_steps)
    return tuple(
        entry if entry.rank == position else entry.model_copy(update={"rank": position})
        for position, entry in enumerate(ordered, start=1)
    )


def coerce_snapshot(window: LeaderboardWindow, payload: object) -> LeaderboardSnapshot:
    """
    Normalize a snapshot payload from a loader or push channel.

    Accepts a LeaderboardSnapshot or a sequence of entries / entry dicts
    (camelCase or snake_case keys). Raises ValueError on anything else,
    including pydantic validation failures.
    """
    if isinstance(payload, LeaderboardSnapshot):
        if payload.window != window:
            raise ValueError(
                f"snapshot for {payload.window.value} delivered on {window.value}"
            )
        return payload

    if isinstance(payload, (str, bytes)) or not isinstance(payload, Sequence):
        raise ValueError(f"unsupported snapshot payload: {type(payload).__name__}")

    entries = [
        item if isinstance(item, LeaderboardEntry) else LeaderboardEntry.model_validate(item)
        for item in payload
    ]
    return LeaderboardSnapshot(window=window, entries=assign_ranks(entries))


class LeaderboardWindowProjector:
    """Scales the canonical daily snapshot into other windows."""

    def __init__(self, multipliers: Optional[Mapping[LeaderboardWindow, int]] = None):
        if multipliers is None:
            multipliers = CoreConfig().window_multipliers
        else:
            # Same bounds as the config: positive factors, daily fixed at 1
            multipliers = CoreConfig(window_multipliers=dict(multipliers)).window_multipliers
        self._multipliers: Dict[LeaderboardWindow, int] = dict(multipliers)

    def multiplier(self, window: LeaderboardWindow) -> int:
        return self._multipliers.get(window, 1)

    def project(
        self, canonical: LeaderboardSnapshot, window: LeaderboardWindow
    ) -> LeaderboardSnapshot:
        """Derive the snapshot for `window` from a daily snapshot."""
        if canonical.window != LeaderboardWindow.DAILY:
            raise InvariantViolation(
                f"projection source must be the daily snapshot, got {canonical.window.value}"
            )

        factor = self.multiplier(window)
        if factor == 1:
            scaled = list(canonical.entries)
        else:
            scaled = [self._scale(entry, factor) for entry in canonical.entries]

        return LeaderboardSnapshot(
            window=window,
            entries=assign_ranks(scaled),
            generated_at=canonical.generated_at,
        )

    def project_all(
        self, canonical: LeaderboardSnapshot
    ) -> Dict[LeaderboardWindow, LeaderboardSnapshot]:
        """Every window at once, keyed by window."""
        return {window: self.project(canonical, window) for window in LeaderboardWindow}

    @staticmethod
    def _scale(entry: LeaderboardEntry, factor: int) -> LeaderboardEntry:
        update = {"total_steps": entry.total_steps * factor}
        if entry.total_distance is not None:
            update["total_distance"] = entry.total_distance * factor
        return entry.model_copy(update=update)
