"""Tests for the Friend Search Filter."""

from athlos_core.fixtures.demo import DEMO_ROSTER
from athlos_core.friends.search import FriendSearchFilter, filter_by_name
from athlos_core.models.user import FriendCandidate

ROSTER = tuple(FriendCandidate.model_validate(f) for f in DEMO_ROSTER)


class TestFilterByName:
    def test_empty_query_returns_roster_unchanged(self):
        assert filter_by_name(ROSTER, "") == ROSTER

    def test_case_insensitive_substring(self):
        names = [f.name for f in filter_by_name(ROSTER, "AN")]
        assert names == ["Karan", "Ananya"]

    def test_preserves_roster_order(self):
        names = [f.name for f in filter_by_name(ROSTER, "a")]
        assert names == ["Priya", "Karan", "Sneha", "Vikram", "Ananya"]

    def test_no_match(self):
        assert filter_by_name(ROSTER, "zz") == ()


class TestFriendSearchFilter:
    def test_memoizes_unchanged_inputs(self):
        search = FriendSearchFilter()
        first = search.filter(ROSTER, "an")
        second = search.filter(ROSTER, "an")
        assert first is second
        assert search.recompute_count == 1

    def test_recomputes_on_query_change(self):
        search = FriendSearchFilter()
        search.filter(ROSTER, "an")
        result = search.filter(ROSTER, "pri")
        assert [f.name for f in result] == ["Priya"]
        assert search.recompute_count == 2

    def test_recomputes_on_roster_change(self):
        search = FriendSearchFilter()
        search.filter(ROSTER, "an")
        grown = ROSTER + (FriendCandidate(id=11, name="Anand"),)
        result = search.filter(grown, "an")
        assert [f.name for f in result] == ["Karan", "Ananya", "Anand"]
        assert search.recompute_count == 2

    def test_equal_roster_copy_does_not_recompute(self):
        search = FriendSearchFilter()
        search.filter(list(ROSTER), "an")
        search.filter(list(ROSTER), "an")
        assert search.recompute_count == 1
