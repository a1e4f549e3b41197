"""Tests for the displayed subset and its edges."""

from keyword_atlas.config import AggregationPolicy
from keyword_atlas.graph import build_keyword_graph
from keyword_atlas.selection import DisplayEdge, apply_visibility, select_display


class TestDisplayEdges:
    """Edges are limited to pairs of displayed keywords."""

    def test_two_displayed_keywords_yield_one_edge(self, scenario_records):
        """Showing only a and b gives exactly the a-b line."""
        graph = build_keyword_graph(scenario_records)
        graph.get("c").show = False

        nodes, edges = select_display(graph)

        assert [n.id for n in nodes] == ["a", "b"]
        assert edges == [DisplayEdge("a", "b")]

    def test_undirected_pairs_emitted_once(self, scenario_records):
        graph = build_keyword_graph(scenario_records)
        _, edges = select_display(graph)
        assert edges == [DisplayEdge("a", "b"), DisplayEdge("a", "c")]

    def test_forward_only_graph(self, scenario_records):
        graph = build_keyword_graph(scenario_records, AggregationPolicy(symmetric_links=False))
        _, edges = select_display(graph)
        assert edges == [DisplayEdge("a", "b"), DisplayEdge("a", "c")]

    def test_nothing_shown(self, scenario_records):
        graph = build_keyword_graph(scenario_records)
        apply_visibility(graph, [])
        assert select_display(graph) == ([], [])


class TestSelection:
    """Selection is pure and driven by the show flags."""

    def test_idempotent(self, mixed_records):
        graph = build_keyword_graph(mixed_records, AggregationPolicy(initial_keywords=5))
        first = select_display(graph)
        second = select_display(graph)
        assert first == second

    def test_hiding_removes_node_and_incident_edges(self, scenario_records):
        """Hiding 'a' drops it and both its lines but keeps its statistics."""
        graph = build_keyword_graph(scenario_records)
        a = graph.get("a")

        a.show = False
        nodes, edges = select_display(graph)

        assert [n.id for n in nodes] == ["b", "c"]
        assert edges == []
        assert a.dataset_count == 2
        assert a.connections == ["b", "c"]

    def test_visible_override_leaves_flags(self, scenario_records):
        graph = build_keyword_graph(scenario_records)
        nodes, edges = select_display(graph, visible=["c", "a"])

        assert [n.id for n in nodes] == ["a", "c"]
        assert edges == [DisplayEdge("a", "c")]
        assert graph.get("b").show

    def test_apply_visibility(self, mixed_records):
        graph = build_keyword_graph(mixed_records)
        shown = apply_visibility(graph, ["police", "crime", "unknown"])

        assert shown == 2
        assert {n.id for n in graph.shown()} == {"police", "crime"}
