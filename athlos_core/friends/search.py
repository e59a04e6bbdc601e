"""Friend Search Filter — case-insensitive name search over a roster."""

from typing import Generic, Optional, Sequence, Tuple, TypeVar

from athlos_core.logging.logger import get_logger

logger = get_logger("friends.search")

T = TypeVar("T")


def filter_by_name(items: Sequence[T], query: str) -> Tuple[T, ...]:
    """Items whose name contains query, ignoring case. Order is preserved."""
    if not query:
        return tuple(items)
    needle = query.casefold()
    return tuple(item for item in items if needle in item.name.casefold())


class FriendSearchFilter(Generic[T]):
    """
    Memoized filter. The result is derived again only when the roster or the
    query differs from the previous call.
    """

    def __init__(self):
        self._roster: Optional[Tuple[T, ...]] = None
        self._query: Optional[str] = None
        self._result: Tuple[T, ...] = ()
        self.recompute_count = 0

    def filter(self, roster: Sequence[T], query: str) -> Tuple[T, ...]:
        roster = tuple(roster)
        if roster == self._roster and query == self._query:
            return self._result

        self._result = filter_by_name(roster, query)
        self._roster = roster
        self._query = query
        self.recompute_count += 1
        logger.debug("Filtered %d names by %r: %d match", len(roster), query, len(self._result))
        return self._result
