"""Activity records — runs logged by a user."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Run(BaseModel):
    """A single recorded run. Immutable once created."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    user_id: int
    start_time: Optional[datetime] = None   # Runs without a start are skipped by date filters
    total_steps: int = Field(ge=0, default=0)
    total_distance: Optional[float] = Field(ge=0, default=None)
