# SPDX-License-Identifier: MIT
"""Tests for the stored-duplicate review scan."""

from pipeline.deduplication import find_potential_duplicates


class TestFindPotentialDuplicates:
    """Test grouping of similar stored places."""

    def test_groups_exclude_self(self, db_session, place_factory):
        tower = place_factory("Galata Tower", lat=41.0256, lon=28.9741)
        towers = place_factory("Galata Towers", lat=41.0257, lon=28.9742)
        place_factory("Poveglia", lat=45.38, lon=12.33)

        groups = find_potential_duplicates(db_session, threshold=0.7)

        by_place = {g["place"]["id"]: g for g in groups}
        assert set(by_place) == {str(tower.id), str(towers.id)}
        assert [m["place_id"] for m in by_place[str(tower.id)]["similar_places"]] == [str(towers.id)]

    def test_places_without_coordinates_skipped(self, db_session, place_factory):
        place_factory("Galata Tower")
        place_factory("Galata Towers")

        assert find_potential_duplicates(db_session, threshold=0.7) == []

    def test_nothing_similar(self, db_session, place_factory):
        place_factory("Galata Tower", lat=41.0256, lon=28.9741)

        assert find_potential_duplicates(db_session) == []
