"""
Progress Calculator — today's step total and bounded goal progress.

Dates are compared as local calendar days: aware timestamps are converted
to the local zone first, naive ones are taken as already local.
"""

from datetime import date, datetime
from typing import Iterable, Union

from pydantic import BaseModel

from athlos_core.errors import InvariantViolation
from athlos_core.models.activity import Run


class GoalSummary(BaseModel):
    """Everything the progress card shows."""

    current_steps: int
    goal_steps: int
    percent: float
    rounded_percent: int
    remaining_steps: int
    reached: bool


def local_day(moment: Union[date, datetime]) -> date:
    """The local calendar day a timestamp falls on."""
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone()
        return moment.date()
    return moment


class ProgressCalculator:

    def today_steps(
        self, runs: Iterable[Run], reference_date: Union[date, datetime, None] = None
    ) -> int:
        """
        Sum total_steps over runs that started on the reference day.
        Runs without a start_time are skipped. Empty input gives 0.
        """
        day = local_day(reference_date if reference_date is not None else datetime.now())
        return sum(
            run.total_steps
            for run in runs
            if run.start_time is not None and local_day(run.start_time) == day
        )

    def progress_percent(self, current: int, goal: int) -> float:
        """min(current / goal * 100, 100). Goal must be positive, current non-negative."""
        if goal <= 0:
            raise InvariantViolation(f"goal must be positive, got {goal}")
        if current < 0:
            raise InvariantViolation(f"step count must be non-negative, got {current}")
        return min(current / goal * 100, 100.0)

    def summarize(self, current: int, goal: int) -> GoalSummary:
        percent = self.progress_percent(current, goal)
        return GoalSummary(
            current_steps=current,
            goal_steps=goal,
            percent=percent,
            rounded_percent=round(percent),
            remaining_steps=max(goal - current, 0),
            reached=current >= goal,
        )
