"""
Fixture Provider — pluggable stand-in for the REST collaborator.

Serves a canonical daily leaderboard, a suggested-friends roster and run
histories from plain data handed in at construction. `demo_fixtures()`
returns the campus demo data set.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from athlos_core.errors import ConnectivityError
from athlos_core.models.activity import Run
from athlos_core.models.leaderboard import LeaderboardSnapshot, LeaderboardWindow
from athlos_core.models.user import FriendCandidate
from athlos_core.leaderboard.projector import coerce_snapshot


class FixtureProvider:
    """
    In-process data source. Set `offline` to make every fetch raise
    ConnectivityError, the way a dropped network would.
    """

    def __init__(
        self,
        leaderboard: Sequence[dict] = (),
        roster: Sequence[dict] = (),
        runs: Optional[Dict[int, Iterable[dict]]] = None,
    ):
        self._leaderboard = [dict(e) for e in leaderboard]
        self._roster = [FriendCandidate.model_validate(f) for f in roster]
        self._runs: Dict[int, List[Run]] = {
            user_id: [Run.model_validate({"userId": user_id, **r}) for r in records]
            for user_id, records in (runs or {}).items()
        }
        self.offline = False
        self.calls: List[str] = []

    def _check_online(self, resource: str) -> None:
        self.calls.append(resource)
        if self.offline:
            raise ConnectivityError(resource, f"{resource} fetch failed: offline")

    async def fetch_canonical(self) -> LeaderboardSnapshot:
        self._check_online("leaderboard")
        return coerce_snapshot(LeaderboardWindow.DAILY, self._leaderboard)

    async def fetch_roster(self) -> List[FriendCandidate]:
        self._check_online("roster")
        return list(self._roster)

    async def fetch_user_runs(self, user_id: int) -> List[Run]:
        self._check_online("runs")
        return list(self._runs.get(user_id, []))

    def add_run(self, run: Run) -> None:
        self._runs.setdefault(run.user_id, []).append(run)

    def set_leaderboard(self, entries: Sequence[dict]) -> None:
        self._leaderboard = [dict(e) for e in entries]


DEMO_LEADERBOARD = [
    {"userId": 1, "name": "Madhavi", "totalSteps": 12500, "totalDistance": 8.2, "territoriesClaimed": 3},
    {"userId": 2, "name": "Rohan", "totalSteps": 11800, "totalDistance": 7.8, "territoriesClaimed": 2},
    {"userId": 3, "name": "Ridhi", "totalSteps": 10900, "totalDistance": 7.1, "territoriesClaimed": 2},
    {"userId": 4, "name": "Devyanshi", "totalSteps": 9750, "totalDistance": 6.4, "territoriesClaimed": 1},
    {"userId": 5, "name": "Arjun", "totalSteps": 8900, "totalDistance": 5.8, "territoriesClaimed": 1},
]

DEMO_ROSTER = [
    {"id": 6, "name": "Priya"},
    {"id": 7, "name": "Karan"},
    {"id": 8, "name": "Sneha"},
    {"id": 9, "name": "Vikram"},
    {"id": 10, "name": "Ananya"},
]


def demo_fixtures(now: Optional[datetime] = None) -> FixtureProvider:
    """The campus demo data set, with two of today's runs for user 1."""
    now = now or datetime.now()
    today = now.replace(hour=7, minute=30, second=0, microsecond=0)
    return FixtureProvider(
        leaderboard=DEMO_LEADERBOARD,
        roster=DEMO_ROSTER,
        runs={
            1: [
                {"id": 101, "startTime": today.isoformat(), "totalSteps": 2400, "totalDistance": 1.7},
                {"id": 102, "startTime": today.replace(hour=18).isoformat(), "totalSteps": 1600},
            ],
        },
    )
