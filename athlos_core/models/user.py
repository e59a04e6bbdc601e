"""User and roster models — read-only views of externally owned people."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """The signed-in user. Owned externally; the core only reads it."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    name: str = ""
    daily_step_goal: Optional[int] = None   # Authoritative default source when positive


class FriendCandidate(BaseModel):
    """An entry of the suggested-friends roster."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    avatar: Optional[str] = None
