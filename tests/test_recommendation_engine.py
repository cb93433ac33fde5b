# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.maturity.recommendation_engine: priority mapping,
recommendation sources, filtering and grouping."""

import pytest

from tools.depgraph.graph_analyzer import analyze
from tools.depgraph.graph_builder import build_graph
from tools.depgraph.graph_model import DependencyGraph, EdgeType, GraphEdge, GraphNode, NodeType
from tools.maturity.context_engine import apply_context
from tools.maturity.maturity_assessor import assess_project
from tools.maturity.recommendation_engine import criterion_priority, finding_id, generate

TRIANGLE_ID = finding_id("cycle", "A", "B", "C")


@pytest.fixture
def triangle_analysis(default_config):
    graph = DependencyGraph(
        nodes=[GraphNode(n, n, NodeType.USE_CASE) for n in ("A", "B", "C")],
        edges=[GraphEdge("A", "B", EdgeType.DEPENDS_ON), GraphEdge("B", "C", EdgeType.DEPENDS_ON),
               GraphEdge("C", "A", EdgeType.DEPENDS_ON)],
    )
    return analyze(graph, default_config)


@pytest.fixture
def minimal_maturity(minimal_use_case, default_config):
    return assess_project({"use-case": [minimal_use_case]}, config=default_config)


# ---------------------------------------------------------------------------
# TestCriterionPriority
# ---------------------------------------------------------------------------

class TestCriterionPriority:

    @pytest.mark.parametrize("weight,dim_weight,priority", [
        (1.0, 1.5, "critical"), (1.2, 1.0, "critical"), (1.0, 1.0, "high"),
        (0.8, 1.0, "high"), (0.6, 1.0, "medium"), (0.5, 1.0, "medium"),
        (0.4, 1.0, "low"), (0.6, 0.5, "low"),
    ])
    def test_thresholds(self, weight, dim_weight, priority):
        assert criterion_priority(weight, dim_weight) == priority

    def test_custom_thresholds(self):
        thresholds = {"critical": 2.0, "high": 1.5, "medium": 1.0}
        assert criterion_priority(1.2, 1.0, thresholds) == "medium"


# ---------------------------------------------------------------------------
# TestSources
# ---------------------------------------------------------------------------

class TestSources:

    def test_no_inputs_no_recommendations(self, default_config):
        result = generate(config=default_config)
        assert result.recommendations == []
        assert result.summary["total"] == 0
        assert result.summary["expected_maturity_increase"] == 0.0

    def test_unsatisfied_required_criteria(self, minimal_maturity, default_config):
        result = generate(minimal_maturity, config=default_config)
        ids = [r.id for r in result.recommendations]
        assert finding_id("criterion", "uc-initial-actors", "UC-001") in ids
        assert finding_id("criterion", "uc-initial-flow", "UC-001") in ids
        # optional criteria are never recommended
        assert finding_id("criterion", "uc-defined-alternative-flows", "UC-001") not in ids
        assert all(r.source == "maturity" for r in result.recommendations)

    def test_context_weight_raises_priority(self, minimal_maturity, default_config):
        plain = generate(minimal_maturity, config=default_config)
        context = apply_context({"criticality": "mission_critical"}, config=default_config)
        weighted = generate(minimal_maturity, context, config=default_config)
        rec_id = finding_id("criterion", "uc-initial-actors", "UC-001")
        assert next(r for r in plain.recommendations if r.id == rec_id).priority == "high"
        assert next(r for r in weighted.recommendations if r.id == rec_id).priority == "critical"

    def test_short_cycle_is_critical(self, triangle_analysis, default_config):
        result = generate(graph_analysis=triangle_analysis, config=default_config)
        cycle = next(r for r in result.recommendations if r.id == TRIANGLE_ID)
        assert cycle.priority == "critical"
        assert cycle.category == "architecture"
        assert cycle.hours == 9
        assert "A -> B -> C -> A" in cycle.problem

    def test_broken_and_isolated_elements(self, shop_records, default_config):
        shop_records["screen"][0]["businessRules"] = ["BR-MISSING"]
        analysis = analyze(build_graph(shop_records), default_config)
        result = generate(graph_analysis=analysis, config=default_config)
        ids = [r.id for r in result.recommendations]
        assert "rec-isolated-auditor" in ids
        assert finding_id("broken", "SCR-CART", "businessRules", "BR-MISSING") in ids

    def test_repeated_dangling_actor_gives_one_recommendation(self, default_config):
        steps = [{"stepId": str(i), "actor": "ghost", "action": f"Step {i}"}
                 for i in range(1, 4)]
        graph = build_graph({"use-case": [{"id": "UC-1", "mainFlow": steps}]})
        analysis = analyze(graph, default_config)
        result = generate(graph_analysis=analysis, config=default_config)
        broken = [r for r in result.recommendations if r.problem.startswith("UC-1.steps.actor")]
        assert [r.id for r in broken] == [finding_id("broken", "UC-1", "steps.actor", "ghost")]

    def test_duplicate_findings_are_merged(self, shop_records, default_config):
        shop_records["screen"][0]["businessRules"] = ["BR-MISSING"]
        analysis = analyze(build_graph(shop_records), default_config)
        analysis.broken_links.append(analysis.broken_links[0])
        result = generate(graph_analysis=analysis, config=default_config)
        ids = [r.id for r in result.recommendations]
        assert len(ids) == len(set(ids))

    def test_ids_do_not_collide_on_separator(self):
        assert finding_id("cycle", "a-b", "c") != finding_id("cycle", "a", "b-c")
        assert finding_id("cycle", "a", "b").startswith("rec-cycle-")

    def test_context_recommendations(self, default_config):
        poc = apply_context({"stage": "poc"}, config=default_config)
        assert [r.id for r in generate(context_result=poc, config=default_config).recommendations] \
            == ["rec-context-stage-poc"]
        critical = apply_context({"criticality": "mission_critical"}, config=default_config)
        recs = generate(context_result=critical, config=default_config).recommendations
        assert [r.id for r in recs] == ["rec-context-criticality-mission_critical"]
        assert recs[0].priority == "critical"

    def test_generation_is_deterministic(self, minimal_maturity, triangle_analysis,
                                         default_config):
        first = generate(minimal_maturity, graph_analysis=triangle_analysis, config=default_config)
        second = generate(minimal_maturity, graph_analysis=triangle_analysis, config=default_config)
        assert first.to_dict() == second.to_dict()


# ---------------------------------------------------------------------------
# TestOrderingAndFilters
# ---------------------------------------------------------------------------

class TestOrderingAndFilters:

    def test_sorted_by_priority(self, minimal_maturity, triangle_analysis, default_config):
        result = generate(minimal_maturity, graph_analysis=triangle_analysis, config=default_config)
        order = ["critical", "high", "medium", "low"]
        ranks = [order.index(r.priority) for r in result.recommendations]
        assert ranks == sorted(ranks)
        assert result.recommendations[0].id == TRIANGLE_ID
        assert len(result.top_priority) == 5

    def test_min_priority_filter(self, minimal_maturity, triangle_analysis, default_config):
        result = generate(minimal_maturity, graph_analysis=triangle_analysis,
                          min_priority="critical", config=default_config)
        assert [r.id for r in result.recommendations] == [TRIANGLE_ID]

    def test_unknown_min_priority_raises(self, default_config):
        with pytest.raises(ValueError, match="Unknown priority"):
            generate(min_priority="urgent", config=default_config)

    def test_category_filter(self, minimal_maturity, triangle_analysis, default_config):
        result = generate(minimal_maturity, graph_analysis=triangle_analysis,
                          categories=["architecture"], config=default_config)
        assert {r.category for r in result.recommendations} == {"architecture"}

    def test_quick_wins_are_small_and_simple(self, minimal_maturity, default_config):
        result = generate(minimal_maturity, config=default_config)
        assert result.quick_wins
        for rec in result.quick_wins:
            assert rec.quick_win is True
            assert rec.hours <= 4
            assert rec.complexity == "simple"
        hours = [r.hours for r in result.quick_wins]
        assert hours == sorted(hours)

    def test_project_scope_advice_is_long_term(self, default_config):
        context = apply_context({"criticality": "mission_critical"}, config=default_config)
        result = generate(context_result=context, config=default_config)
        assert [r.id for r in result.long_term] == ["rec-context-criticality-mission_critical"]

    def test_bundles_group_categories(self, minimal_maturity, default_config):
        result = generate(minimal_maturity, config=default_config)
        bundle = next(b for b in result.bundles if b.category == "structure")
        assert bundle.id == "bundle-structure"
        assert len(bundle.recommendation_ids) >= 3
        assert bundle.total_hours == len(bundle.recommendation_ids)


# ---------------------------------------------------------------------------
# TestSummary
# ---------------------------------------------------------------------------

class TestSummary:

    def test_summary_counts(self, minimal_maturity, triangle_analysis, default_config):
        result = generate(minimal_maturity, graph_analysis=triangle_analysis, config=default_config)
        summary = result.summary
        assert summary["total"] == len(result.recommendations)
        assert sum(summary["by_priority"].values()) == summary["total"]
        assert summary["critical_count"] == summary["by_priority"]["critical"]
        assert summary["estimated_total_hours"] == sum(r.hours for r in result.recommendations)
        assert 0.0 < summary["expected_maturity_increase"] <= 1.0

    def test_to_dict_references_ids(self, minimal_maturity, default_config):
        data = generate(minimal_maturity, config=default_config).to_dict()
        all_ids = {r["id"] for r in data["recommendations"]}
        assert set(data["top_priority"]) <= all_ids
        assert set(data["quick_wins"]) <= all_ids
