# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.depgraph.graph_analyzer: cycles, ordering, importance,
layers and change impact."""

from graphlib import CycleError

import pytest

from tools.depgraph.graph_analyzer import (
    analyze,
    analyze_layers,
    betweenness_centrality,
    calculate_node_importance,
    calculate_statistics,
    detect_cycles,
    find_isolated_nodes,
    impact_of,
    importance_bucket,
    page_rank,
    topological_order,
)
from tools.depgraph.graph_builder import build_graph
from tools.depgraph.graph_model import (
    DependencyGraph,
    EdgeType,
    GraphEdge,
    GraphNode,
    NodeType,
)


def _graph(node_ids, edges, node_type=NodeType.USE_CASE):
    return DependencyGraph(
        nodes=[GraphNode(nid, nid, node_type) for nid in node_ids],
        edges=[GraphEdge(src, dst, EdgeType.DEPENDS_ON) for src, dst in edges],
    )


@pytest.fixture
def chain():
    """A -> B -> C, plus an unconnected D."""
    return _graph(["A", "B", "C", "D"], [("A", "B"), ("B", "C")])


@pytest.fixture
def triangle():
    """A -> B -> C -> A."""
    return _graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])


# ---------------------------------------------------------------------------
# TestCycles
# ---------------------------------------------------------------------------

class TestCycles:

    def test_three_cycle_is_detected_once(self, triangle):
        cycles = detect_cycles(triangle)
        assert len(cycles) == 1
        assert cycles[0].cycle == ["A", "B", "C"]
        assert cycles[0].length == 3
        assert cycles[0].severity == "high"
        assert cycles[0].edge_types == ["depends-on"]

    def test_cycle_is_rotated_to_smallest_id(self):
        graph = _graph(["C", "B", "A"], [("C", "A"), ("A", "B"), ("B", "C")])
        assert detect_cycles(graph)[0].cycle == ["A", "B", "C"]

    def test_self_loop_is_a_cycle(self):
        graph = _graph(["A"], [("A", "A")])
        cycles = detect_cycles(graph)
        assert [c.cycle for c in cycles] == [["A"]]

    def test_two_disjoint_cycles(self):
        graph = _graph(["A", "B", "C", "D"], [("A", "B"), ("B", "A"), ("C", "D"), ("D", "C")])
        assert sorted(c.cycle for c in detect_cycles(graph)) == [["A", "B"], ["C", "D"]]

    def test_long_cycle_severity(self):
        ids = [f"N{i}" for i in range(6)]
        edges = [(ids[i], ids[(i + 1) % 6]) for i in range(6)]
        assert detect_cycles(_graph(ids, edges))[0].severity == "low"

    def test_acyclic_graph(self, chain):
        assert detect_cycles(chain) == []


# ---------------------------------------------------------------------------
# TestOrderingAndStructure
# ---------------------------------------------------------------------------

class TestOrderingAndStructure:

    def test_topological_order_respects_edges(self, chain):
        order = topological_order(chain)
        assert set(order) == {"A", "B", "C", "D"}
        for edge in chain.edges:
            assert order.index(edge.source) < order.index(edge.target)

    def test_topological_order_raises_on_cycle(self, triangle):
        with pytest.raises(CycleError):
            topological_order(triangle)

    def test_isolated_nodes(self, chain):
        assert find_isolated_nodes(chain) == ["D"]

    def test_statistics(self, chain):
        stats = calculate_statistics(chain)
        assert stats.node_count == 4
        assert stats.edge_count == 2
        assert stats.max_depth == 2
        assert stats.connected_components == 2
        assert stats.isolated_nodes == 1
        assert stats.cycle_count == 0
        assert stats.average_in_degree == pytest.approx(0.5)
        assert stats.edges_by_type == {"depends-on": 2}

    def test_empty_graph(self):
        result = analyze(DependencyGraph())
        assert result.statistics.node_count == 0
        assert result.statistics.max_depth == 0
        assert result.topological_order == []
        assert result.circular_dependencies == []
        assert result.warnings == []


# ---------------------------------------------------------------------------
# TestImportance
# ---------------------------------------------------------------------------

class TestImportance:

    def test_page_rank_sums_to_one(self, chain):
        ranks, converged = page_rank(chain)
        assert converged is True
        assert sum(ranks.values()) == pytest.approx(1.0)
        assert ranks["C"] > ranks["A"]

    def test_page_rank_reports_non_convergence(self, chain):
        _, converged = page_rank(chain, max_iterations=1, tolerance=1e-12)
        assert converged is False

    def test_betweenness_of_middle_node(self, chain):
        between = betweenness_centrality(chain)
        assert between["B"] == pytest.approx(1.0)
        assert between["A"] == 0.0

    @pytest.mark.parametrize("in_degree,between,bucket", [
        (10, 0, "critical"), (0, 50, "critical"), (5, 0, "high"),
        (2, 0, "medium"), (1, 1, "low"),
    ])
    def test_importance_bucket(self, in_degree, between, bucket):
        assert importance_bucket(in_degree, between) == bucket

    def test_importance_is_sorted_by_in_degree(self, default_config):
        graph = _graph(["hub", "a", "b", "c"], [("a", "hub"), ("b", "hub"), ("c", "a")])
        scores, _ = calculate_node_importance(graph, default_config)
        assert scores[0].node_id == "hub"
        assert scores[0].in_degree == 2
        assert scores[0].importance == "medium"


# ---------------------------------------------------------------------------
# TestLayers
# ---------------------------------------------------------------------------

class TestLayers:

    def test_chain_layers(self, chain, default_config):
        layers = analyze_layers(chain, default_config)
        levels = {layer["level"]: layer["nodes"] for layer in layers.layers}
        assert levels[0] == ["A", "D"]
        assert levels[2] == ["C"]
        assert layers.violations == []
        assert layers.health_score == 100

    def test_cycle_members_stay_at_level_zero(self, triangle, default_config):
        layers = analyze_layers(triangle, default_config)
        assert layers.layers[0]["nodes"] == ["A", "B", "C"]


# ---------------------------------------------------------------------------
# TestChangeImpact
# ---------------------------------------------------------------------------

class TestChangeImpact:

    def test_dependents_by_level(self, chain, default_config):
        impact = impact_of(chain, "C", config=default_config)
        assert impact.direct_impact == ["B"]
        assert impact.indirect_impact == ["A"]
        assert impact.impact_by_level == {1: ["B"], 2: ["A"]}
        assert impact.total_impact_count == 2
        assert impact.estimated_effort == "small"
        assert impact.critical_nodes == []

    def test_critical_nodes_are_important_dependents(self, default_config):
        users = [f"U{i}" for i in range(10)]
        graph = _graph(["T", "HUB"] + users, [("HUB", "T")] + [(u, "HUB") for u in users])
        impact = impact_of(graph, "T", config=default_config)
        assert impact.direct_impact == ["HUB"]
        assert sorted(impact.indirect_impact) == users
        assert impact.critical_nodes == ["HUB"]

    def test_precomputed_importance_is_used(self, chain, default_config):
        scores, _ = calculate_node_importance(chain, default_config)
        for entry in scores:
            if entry.node_id == "A":
                entry.importance = "high"
        impact = impact_of(chain, "C", importance=scores, config=default_config)
        assert impact.critical_nodes == ["A"]

    def test_full_reverse_reachable_set_by_default(self, default_config):
        ids = [f"N{i}" for i in range(8)]
        graph = _graph(ids, list(zip(ids, ids[1:])))
        impact = impact_of(graph, "N7", config=default_config)
        assert impact.total_impact_count == 7
        assert impact.impact_by_level[7] == ["N0"]

    def test_configured_depth_limit(self, chain):
        impact = impact_of(chain, "C", config={"graph": {"impact_max_depth": 1}})
        assert impact.indirect_impact == []

    def test_depth_limit(self, chain, default_config):
        impact = impact_of(chain, "C", max_depth=1, config=default_config)
        assert impact.direct_impact == ["B"]
        assert impact.indirect_impact == []

    def test_cycle_terminates(self, triangle, default_config):
        impact = impact_of(triangle, "A", config=default_config)
        assert sorted(impact.direct_impact + impact.indirect_impact) == ["B", "C"]

    def test_unknown_node_raises(self, chain, default_config):
        with pytest.raises(ValueError, match="Unknown node"):
            impact_of(chain, "Z", config=default_config)


# ---------------------------------------------------------------------------
# TestAnalyze
# ---------------------------------------------------------------------------

class TestAnalyze:

    def test_cycle_warning_and_no_order(self, triangle, default_config):
        result = analyze(triangle, default_config)
        assert result.topological_order is None
        assert result.statistics.cycle_count == 1
        assert "1 circular dependency detected" in result.warnings

    def test_self_referencing_record_is_a_cycle(self, default_config):
        graph = build_graph({"use-case": [{"id": "UC-1", "prerequisiteUseCases": ["UC-1"]}]})
        result = analyze(graph, default_config)
        assert [c.cycle for c in result.circular_dependencies] == [["UC-1"]]
        assert result.isolated_nodes == []
        assert result.topological_order is None

    def test_shop_project(self, shop_records, default_config):
        result = analyze(build_graph(shop_records), default_config)
        assert result.isolated_nodes == ["auditor"]
        assert result.circular_dependencies == []
        assert result.topological_order is not None
        assert result.importance_of("customer").in_degree >= 1
        assert result.broken_links == []

    def test_broken_links_warning(self, shop_records, default_config):
        shop_records["screen"][0]["businessRules"] = ["BR-MISSING"]
        result = analyze(build_graph(shop_records), default_config)
        assert result.statistics.broken_links == 1
        assert any("broken reference" in w for w in result.warnings)

    def test_to_dict_optionally_includes_graph(self, chain, default_config):
        result = analyze(chain, default_config)
        assert "graph" not in result.to_dict()
        assert len(result.to_dict(include_graph=True)["graph"]["nodes"]) == 4
