"""Tests for roommate preference clustering."""

from __future__ import annotations

from housing.planner.roommates import build_roommate_graph, normalize_name, roommate_clusters, split_preference
from tests.fixtures.factories import create_individual


class TestNameParsing:
    def test_normalize_name(self) -> None:
        assert normalize_name("  O'Brien,   Pat ") == "obrien pat"

    def test_split_on_separators_and_and(self) -> None:
        assert split_preference("Mike Jones and Tom Reed; Sam Lee") == ["mike jones", "tom reed", "sam lee"]

    def test_split_ignores_empty_parts(self) -> None:
        assert split_preference(" , ") == []


class TestRoommateGraph:
    def test_resolved_request_is_an_edge(self) -> None:
        mike = create_individual("p1", "Mike", "Jones")
        tom = create_individual("p2", "Tom", "Reed", roommate_preference="mike jones")
        graph = build_roommate_graph([mike, tom])
        assert graph.has_edge("p1", "p2")

    def test_ambiguous_name_ignored(self) -> None:
        twins = [create_individual("p1", "Sam", "Lee"), create_individual("p2", "Sam", "Lee")]
        asker = create_individual("p3", "Tom", "Reed", roommate_preference="Sam Lee")
        graph = build_roommate_graph([*twins, asker])
        assert graph.number_of_edges() == 0

    def test_self_request_ignored(self) -> None:
        solo = create_individual("p1", "Tom", "Reed", roommate_preference="Tom Reed")
        assert build_roommate_graph([solo]).number_of_edges() == 0


class TestClusters:
    def test_chained_requests_form_one_cluster(self) -> None:
        a = create_individual("a", "Ann", "One", roommate_preference="Bea Two")
        b = create_individual("b", "Bea", "Two")
        c = create_individual("c", "Cat", "Three", roommate_preference="Bea Two")
        d = create_individual("d", "Dee", "Four")

        clusters = roommate_clusters([d, a, b, c])

        assert [[p.id for p in cluster] for cluster in clusters] == [["d"], ["a", "b", "c"]]

    def test_no_preferences_keep_input_order(self) -> None:
        people = [create_individual(pid) for pid in ("x", "y", "z")]
        assert [[p.id for p in cluster] for cluster in roommate_clusters(people)] == [["x"], ["y"], ["z"]]
