"""
tests/test_matching.py — Community Matching Rule Tests
=======================================================
Pure-function tests for recommendation scoring, rotation selection,
interest overlap and dynamic-member filtering.  Plain namespaces stand in
for ORM rows.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from conftest import LOS_ANGELES, OAKLAND, SACRAMENTO, SF
from triplace.engine.geo import haversine_miles
from triplace.engine.matching import (
    filter_dynamic_members,
    interest_overlap,
    interest_score,
    normalize_interests,
    rank_communities,
    select_rotation_drop,
)


def _community(cid: int, name: str, description: str = "", category: str = "social"):
    return SimpleNamespace(id=cid, name=name, description=description, category=category)


def _membership(mid: int, minutes_ago: int | None):
    base = datetime(2026, 1, 1, 12, 0, 0)
    ts = None if minutes_ago is None else base - timedelta(minutes=minutes_ago)
    return SimpleNamespace(id=mid, last_activity_at=ts)


def _user(uid: int, interests, coords=SF, location=None):
    lat, lon = coords if coords else (None, None)
    return SimpleNamespace(
        id=uid, interests=interests, latitude=lat, longitude=lon, location=location,
    )


# ===========================================================================
# Interest normalisation & scoring
# ===========================================================================
class TestInterestScore:
    def test_normalize_drops_blanks(self):
        assert normalize_interests([" Yoga ", "", "  ", "HIKING"]) == ["yoga", "hiking"]

    def test_empty_interests_score_zero(self):
        assert interest_score(_community(1, "Yoga Club"), []) == 0.0
        assert interest_score(_community(1, "Yoga Club"), None) == 0.0

    def test_fraction_of_interests_matched(self):
        c = _community(1, "Mindful Yoga", "Weekly sessions in the park", "fitness")
        assert interest_score(c, ["yoga", "park", "chess", "jazz"]) == pytest.approx(0.5)

    def test_matches_are_case_insensitive_substrings(self):
        c = _community(1, "SF Tech Meetup", "Developers and founders", "technology")
        assert interest_score(c, ["TECH", "develop"]) == 1.0

    def test_category_counts(self):
        c = _community(1, "Sunday Crew", "We meet on Sundays", "outdoor")
        assert interest_score(c, ["outdoor"]) == 1.0


class TestRankCommunities:
    def test_threshold_is_strict(self):
        # one hit of three -> 0.333 kept; one hit of four -> 0.25 dropped
        c = _community(1, "Yoga")
        assert len(rank_communities([c], ["yoga", "qq", "zz"])) == 1
        assert rank_communities([c], ["yoga", "qq", "zz", "vv"]) == []

    def test_exact_threshold_excluded(self):
        c = _community(1, "Yoga")
        assert rank_communities([c], ["yoga", "qq"], threshold=0.5) == []

    def test_sorted_by_score_descending(self):
        low = _community(1, "Yoga")
        high = _community(2, "Yoga and Hiking")
        ranked = rank_communities([low, high], ["yoga", "hiking"])
        assert [s.community.id for s in ranked] == [2, 1]
        assert ranked[0].score == 1.0
        assert ranked[1].score == 0.5

    def test_ties_keep_input_order(self):
        cs = [_community(i, "Yoga") for i in (3, 5, 9)]
        ranked = rank_communities(cs, ["yoga"])
        assert [s.community.id for s in ranked] == [3, 5, 9]

    def test_limit(self):
        cs = [_community(i, "Yoga") for i in range(1, 16)]
        ranked = rank_communities(cs, ["yoga"])
        assert len(ranked) == 10
        assert [s.community.id for s in ranked] == list(range(1, 11))


# ===========================================================================
# Rotation
# ===========================================================================
class TestSelectRotationDrop:
    def test_under_cap_drops_nothing(self):
        ms = [_membership(i, i) for i in range(1, 5)]
        assert select_rotation_drop(ms) is None

    def test_at_cap_drops_least_recent(self):
        ms = [_membership(1, 5), _membership(2, 100), _membership(3, 1),
              _membership(4, 30), _membership(5, 2)]
        assert select_rotation_drop(ms).id == 2

    def test_tie_drops_oldest_membership(self):
        ms = [_membership(i, 10) for i in (4, 2, 7, 9, 5)]
        assert select_rotation_drop(ms).id == 2

    def test_missing_timestamp_is_least_recent(self):
        ms = [_membership(1, 500), _membership(2, None), _membership(3, 1),
              _membership(4, 2), _membership(5, 3)]
        assert select_rotation_drop(ms).id == 2

    def test_custom_cap(self):
        ms = [_membership(1, 1), _membership(2, 2)]
        assert select_rotation_drop(ms, cap=2).id == 2
        assert select_rotation_drop(ms, cap=3) is None


# ===========================================================================
# Dynamic membership
# ===========================================================================
class TestInterestOverlap:
    def test_divides_by_smaller_set(self):
        assert interest_overlap(["a", "b"], ["a", "b", "c", "d"]) == 1.0

    def test_partial(self):
        assert interest_overlap(["a", "b", "c"], ["a", "b", "x"]) == pytest.approx(2 / 3)

    def test_normalised_and_deduplicated(self):
        assert interest_overlap([" Yoga", "yoga", "HIKING"], ["yoga", "hiking"]) == 1.0

    def test_empty_side_is_zero(self):
        assert interest_overlap([], ["a"]) == 0.0
        assert interest_overlap(["a"], None) == 0.0


class TestFilterDynamicMembers:
    WANTED = ["yoga", "hiking", "coffee"]

    def test_filters_by_distance(self):
        users = [
            _user(1, self.WANTED, OAKLAND),
            _user(2, self.WANTED, SACRAMENTO),
            _user(3, self.WANTED, LOS_ANGELES),
        ]
        assert [u.id for u in filter_dynamic_members(users, SF, self.WANTED)] == [1]
        wide = filter_dynamic_members(users, SF, self.WANTED, radius_miles=100)
        assert [u.id for u in wide] == [1, 2]

    def test_filters_by_overlap(self):
        users = [
            _user(1, ["yoga", "hiking", "coffee"]),
            _user(2, ["yoga", "chess", "jazz"]),        # 1/3
            _user(3, ["yoga", "hiking", "jazz"]),       # 2/3 < 0.7
            _user(4, ["yoga", "hiking"]),               # 2/2
        ]
        result = filter_dynamic_members(users, SF, self.WANTED)
        assert [u.id for u in result] == [1, 4]

    def test_overlap_threshold_is_inclusive(self):
        wanted = [f"i{n}" for n in range(10)]
        users = [
            _user(1, wanted[:7] + ["x1", "x2", "x3"]),  # 7/10
            _user(2, wanted[:6] + ["x1", "x2", "x3", "x4"]),  # 6/10
        ]
        result = filter_dynamic_members(users, SF, wanted)
        assert [u.id for u in result] == [1]

    def test_radius_is_inclusive(self):
        exact = haversine_miles(*SF, *OAKLAND)
        users = [_user(1, self.WANTED, OAKLAND)]
        assert len(filter_dynamic_members(users, SF, self.WANTED, radius_miles=exact)) == 1
        assert filter_dynamic_members(users, SF, self.WANTED, radius_miles=exact - 1e-6) == []

    def test_city_location_without_coordinates(self):
        users = [
            _user(1, self.WANTED, coords=None, location="Oakland, CA"),
            _user(2, self.WANTED, coords=None, location="Los Angeles"),
            _user(3, self.WANTED, coords=None, location="Nowhereville"),
        ]
        assert [u.id for u in filter_dynamic_members(users, SF, self.WANTED)] == [1]

    def test_skips_users_without_location_or_interests(self):
        users = [
            _user(1, self.WANTED, coords=None),
            _user(2, [], SF),
            _user(3, None, SF),
            _user(4, self.WANTED, SF),
        ]
        assert [u.id for u in filter_dynamic_members(users, SF, self.WANTED)] == [4]

    def test_excludes_requester(self):
        users = [_user(1, self.WANTED), _user(2, self.WANTED)]
        result = filter_dynamic_members(users, SF, self.WANTED, exclude_user_id=1)
        assert [u.id for u in result] == [2]

    def test_truncates_in_input_order(self):
        users = [_user(i, self.WANTED) for i in range(1, 31)]
        result = filter_dynamic_members(users, SF, self.WANTED)
        assert [u.id for u in result] == list(range(1, 21))
