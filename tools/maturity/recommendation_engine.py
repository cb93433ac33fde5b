#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Recommendation engine.

Turns maturity gaps, graph findings and project context into a prioritized
list of structured recommendations. Output is fully deterministic: ids are
derived from the finding they describe and nothing reads the clock. Findings
keyed by more than one id (criterion gaps, cycles, broken references) get a
hashed key so ids that contain the separator cannot collide.

Sources:
  1. unsatisfied required criteria (one per criterion per element)
  2. circular dependencies
  3. broken references
  4. isolated nodes
  5. highly depended-on nodes (top 3)
  6. project context (early stage, high criticality)

Usage:
    python tools/maturity/recommendation_engine.py --records records.json --json
    python tools/maturity/recommendation_engine.py --records records.json --criticality high --human
"""

import argparse
import hashlib
import json
import logging
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.config import get_section
from tools.maturity.context_engine import ContextApplicationResult
from tools.maturity.context_rules import Criticality, DevelopmentStage
from tools.maturity.maturity_model import Dimension, ProjectMaturityAssessment

logger = logging.getLogger("reqgraph.maturity.recommendations")

PRIORITIES = ("critical", "high", "medium", "low")
_PRIORITY_RANK = {p: i for i, p in enumerate(PRIORITIES)}

_DEFAULT_RECOMMENDATIONS: Dict[str, Any] = {
    "top_priority_count": 5,
    "quick_win_max_hours": 4,
    "long_term_min_hours": 16,
    "long_term_count": 3,
    "bundle_min_size": 3,
    "hub_count": 3,
    # criterion weight x dimension weight -> priority (lower bounds)
    "priority_thresholds": {"critical": 1.2, "high": 0.8, "medium": 0.5},
    "criterion_effort": {
        "structure": {"hours": 1, "complexity": "simple"},
        "detail": {"hours": 2, "complexity": "simple"},
        "traceability": {"hours": 3, "complexity": "moderate"},
        "testability": {"hours": 4, "complexity": "moderate"},
        "maintainability": {"hours": 3, "complexity": "moderate"},
    },
    "maturity_increase": {"critical": 0.1, "high": 0.05},
}


def _settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return get_section("recommendations", _DEFAULT_RECOMMENDATIONS, config)


def finding_id(kind: str, *parts: str) -> str:
    """Return ``rec-<kind>-<hash>`` for a finding keyed by several ids."""
    digest = hashlib.sha256(json.dumps(list(parts)).encode("utf-8")).hexdigest()[:12]
    return f"rec-{kind}-{digest}"


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass
class Recommendation:
    id: str
    title: str
    priority: str
    category: str
    problem: str
    impact: Dict[str, Any]
    solution: Dict[str, Any]
    effort: Dict[str, Any]
    rationale: str
    source: str
    quick_win: bool = False

    @property
    def hours(self) -> float:
        return float(self.effort.get("hours", 0))

    @property
    def complexity(self) -> str:
        return self.effort.get("complexity", "moderate")

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RecommendationBundle:
    id: str
    category: str
    recommendation_ids: List[str]
    total_hours: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RecommendationSet:
    recommendations: List[Recommendation] = field(default_factory=list)
    top_priority: List[Recommendation] = field(default_factory=list)
    quick_wins: List[Recommendation] = field(default_factory=list)
    long_term: List[Recommendation] = field(default_factory=list)
    bundles: List[RecommendationBundle] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "recommendations": [r.to_dict() for r in self.recommendations],
            "top_priority": [r.id for r in self.top_priority],
            "quick_wins": [r.id for r in self.quick_wins],
            "long_term": [r.id for r in self.long_term],
            "bundles": [b.to_dict() for b in self.bundles],
            "summary": dict(self.summary),
        }


# ---------------------------------------------------------------------------
# Priority / effort tables
# ---------------------------------------------------------------------------

def criterion_priority(weight: float, dimension_weight: float = 1.0,
                       thresholds: Optional[Dict[str, float]] = None) -> str:
    """Map criterion weight x context dimension weight to a priority."""
    thresholds = thresholds or _DEFAULT_RECOMMENDATIONS["priority_thresholds"]
    score = weight * dimension_weight
    for priority in ("critical", "high", "medium"):
        if score >= thresholds[priority]:
            return priority
    return "low"


def _impact(scope: str, affected: Sequence[str], severity: str) -> Dict[str, Any]:
    return {"scope": scope, "affected_elements": list(affected), "severity": severity}


def _solution(description: str, *steps: str) -> Dict[str, Any]:
    return {"description": description, "steps": list(steps)}


def _effort(hours: float, complexity: str) -> Dict[str, Any]:
    return {"hours": hours, "complexity": complexity}


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

def _maturity_recommendations(maturity: ProjectMaturityAssessment,
                              context_result: Optional[ContextApplicationResult],
                              settings: Dict[str, Any]) -> List[Recommendation]:
    recs: List[Recommendation] = []
    seen = set()
    for element in maturity.elements:
        for evaluation in element.evaluations:
            crit = evaluation.criterion
            if evaluation.satisfied or not crit.required:
                continue
            key = (crit.id, element.element_id)
            if key in seen:
                continue
            seen.add(key)
            dim_weight = context_result.weight(crit.dimension) if context_result else 1.0
            priority = criterion_priority(crit.weight, dim_weight,
                                          settings["priority_thresholds"])
            effort = settings["criterion_effort"].get(
                crit.dimension, {"hours": 2, "complexity": "moderate"})
            recs.append(Recommendation(
                id=finding_id("criterion", crit.id, element.element_id),
                title=f"{crit.name} for {element.element_id}",
                priority=priority,
                category=crit.dimension,
                problem=f"{element.element_type} '{element.element_id}' does not meet "
                        f"required level-{crit.level} criterion '{crit.name}'",
                impact=_impact("element", [element.element_id],
                               "high" if priority in ("critical", "high") else "medium"),
                solution=_solution(crit.description, f"Ensure {crit.condition}",
                                   "Re-run the assessment to confirm the criterion passes"),
                effort=_effort(effort["hours"], effort["complexity"]),
                rationale=f"weight {crit.weight} x {crit.dimension} weight {dim_weight:g}"
                          + (f"; {evaluation.evidence}" if evaluation.evidence else ""),
                source="maturity",
            ))
    return recs


def _graph_recommendations(graph_analysis: Any, settings: Dict[str, Any]) -> List[Recommendation]:
    recs: List[Recommendation] = []
    for cycle in graph_analysis.circular_dependencies:
        path = " -> ".join(cycle.cycle + cycle.cycle[:1])
        recs.append(Recommendation(
            id=finding_id("cycle", *cycle.cycle),
            title=f"Break circular dependency of length {cycle.length}",
            priority="critical" if cycle.severity == "high" else "high",
            category="architecture",
            problem=f"Circular dependency: {path}",
            impact=_impact("module", cycle.cycle, cycle.severity),
            solution=_solution("Remove or invert one dependency in the cycle",
                               "Identify the weakest link in the cycle",
                               "Extract shared content into a separate record",
                               "Re-run the graph analysis"),
            effort=_effort(cycle.length * 3, "complex"),
            rationale="Circular references make change impact unbounded",
            source="graph",
        ))
    for link in graph_analysis.broken_links:
        recs.append(Recommendation(
            id=finding_id("broken", link.source, link.field, link.reference),
            title=f"Fix broken reference '{link.reference}' on {link.source}",
            priority="high",
            category="traceability",
            problem=f"{link.source}.{link.field} references '{link.reference}', "
                    f"which does not exist",
            impact=_impact("element", [link.source], "high"),
            solution=_solution("Point the reference at an existing record or add the record",
                               f"Check the id '{link.reference}' for typos",
                               "Add the missing record if it should exist"),
            effort=_effort(1, "simple"),
            rationale="Dangling references break traceability",
            source="graph",
        ))
    for node_id in graph_analysis.isolated_nodes:
        recs.append(Recommendation(
            id=f"rec-isolated-{node_id}",
            title=f"Connect isolated element {node_id}",
            priority="medium",
            category="traceability",
            problem=f"'{node_id}' neither references nor is referenced by any record",
            impact=_impact("element", [node_id], "medium"),
            solution=_solution("Link the element to the records it relates to",
                               "Reference it from a use case, or remove it if obsolete"),
            effort=_effort(0.5, "simple"),
            rationale="Elements without links cannot be traced to business value",
            source="graph",
        ))
    hubs = [n for n in graph_analysis.node_importance if n.importance in ("critical", "high")]
    for node in hubs[:settings["hub_count"]]:
        recs.append(Recommendation(
            id=f"rec-hub-{node.node_id}",
            title=f"Review change impact of {node.node_id}",
            priority="high",
            category="architecture",
            problem=f"'{node.node_id}' is depended on by {node.in_degree} element(s) "
                    f"(importance {node.importance})",
            impact=_impact("module", [node.node_id], "high"),
            solution=_solution("Stabilize and document the highly depended-on element",
                               "Document the element thoroughly",
                               "Run a change impact analysis before editing it"),
            effort=_effort(8, "moderate"),
            rationale="Changes to hub elements ripple widely",
            source="graph",
        ))
    return recs


def _context_recommendations(context_result: ContextApplicationResult) -> List[Recommendation]:
    recs: List[Recommendation] = []
    ctx = context_result.context
    if ctx.stage in (DevelopmentStage.POC, DevelopmentStage.MVP):
        recs.append(Recommendation(
            id=f"rec-context-stage-{ctx.stage.value}",
            title="Keep documentation lean for an early-stage project",
            priority="medium",
            category=Dimension.MAINTAINABILITY.value,
            problem="Excessive detail slows down early validation",
            impact=_impact("project", [], "medium"),
            solution=_solution("Document the essentials only",
                               "Prioritize use cases for core features",
                               "Keep pre- and postconditions short",
                               "Add detailed alternative flows after implementation"),
            effort=_effort(4, "simple"),
            rationale=f"{ctx.stage.value} stage favours fast experimentation",
            source="context",
        ))
    if ctx.criticality in (Criticality.HIGH, Criticality.MISSION_CRITICAL) \
            and context_result.weight(Dimension.TRACEABILITY.value) > 1.0:
        recs.append(Recommendation(
            id=f"rec-context-criticality-{ctx.criticality.value}",
            title="Strengthen traceability for a high-criticality project",
            priority="critical",
            category=Dimension.TRACEABILITY.value,
            problem="High-criticality projects require complete traceability",
            impact=_impact("project", [], "high"),
            solution=_solution("Make every cross-record reference explicit",
                               "Reference business requirements from every use case",
                               "State which security policies apply",
                               "Start recording change history"),
            effort=_effort(16, "moderate"),
            rationale=f"{ctx.criticality.value} criticality requires full traceability",
            source="context",
        ))
    return recs


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def _sort_key(rec: Recommendation):
    return (_PRIORITY_RANK[rec.priority], rec.hours, rec.id)


def _bundles(recs: List[Recommendation], min_size: int) -> List[RecommendationBundle]:
    by_category: Dict[str, List[Recommendation]] = {}
    for rec in recs:
        by_category.setdefault(rec.category, []).append(rec)
    return [
        RecommendationBundle(id=f"bundle-{cat}", category=cat,
                             recommendation_ids=[r.id for r in members],
                             total_hours=sum(r.hours for r in members))
        for cat, members in sorted(by_category.items())
        if len(members) >= min_size
    ]


def generate(maturity: Optional[ProjectMaturityAssessment] = None,
             context_result: Optional[ContextApplicationResult] = None,
             graph_analysis: Any = None,
             min_priority: Optional[str] = None,
             categories: Optional[Sequence[str]] = None,
             config: Optional[Dict[str, Any]] = None) -> RecommendationSet:
    """Build the prioritized recommendation set.

    Args:
        maturity: project maturity assessment (criteria gaps).
        context_result: applied project context (dimension weights,
            context-specific advice).
        graph_analysis: ``GraphAnalysisResult`` (cycles, broken links,
            isolated nodes, hubs).
        min_priority: drop recommendations below this priority.
        categories: keep only these categories.

    Raises:
        ValueError: if ``min_priority`` is not a known priority.
    """
    settings = _settings(config)
    if min_priority is not None and min_priority not in _PRIORITY_RANK:
        raise ValueError(f"Unknown priority: {min_priority}")

    recs: List[Recommendation] = []
    if maturity is not None:
        recs.extend(_maturity_recommendations(maturity, context_result, settings))
    if graph_analysis is not None:
        recs.extend(_graph_recommendations(graph_analysis, settings))
    if context_result is not None:
        recs.extend(_context_recommendations(context_result))

    unique: Dict[str, Recommendation] = {}
    for rec in recs:
        unique.setdefault(rec.id, rec)
    recs = list(unique.values())

    if min_priority is not None:
        recs = [r for r in recs if _PRIORITY_RANK[r.priority] <= _PRIORITY_RANK[min_priority]]
    if categories:
        recs = [r for r in recs if r.category in categories]

    recs.sort(key=_sort_key)
    for rec in recs:
        rec.quick_win = rec.hours <= settings["quick_win_max_hours"] and rec.complexity == "simple"

    quick_wins = sorted((r for r in recs if r.quick_win), key=lambda r: r.hours)
    long_term = [r for r in recs
                 if (r.hours >= settings["long_term_min_hours"] and r.category == "architecture")
                 or r.impact.get("scope") == "project"][:settings["long_term_count"]]

    by_priority = {p: sum(1 for r in recs if r.priority == p) for p in PRIORITIES}
    by_category: Dict[str, int] = {}
    for rec in recs:
        by_category[rec.category] = by_category.get(rec.category, 0) + 1
    increase = settings["maturity_increase"]
    expected = min(by_priority["critical"] * increase["critical"]
                   + by_priority["high"] * increase["high"], 1.0)

    result = RecommendationSet(
        recommendations=recs,
        top_priority=recs[:settings["top_priority_count"]],
        quick_wins=quick_wins,
        long_term=long_term,
        bundles=_bundles(recs, settings["bundle_min_size"]),
        summary={
            "total": len(recs),
            "by_priority": by_priority,
            "by_category": dict(sorted(by_category.items())),
            "critical_count": by_priority["critical"],
            "high_priority_count": by_priority["high"],
            "estimated_total_hours": sum(r.hours for r in recs),
            "quick_win_count": len(quick_wins),
            "expected_maturity_increase": round(expected, 2) if maturity is not None else 0.0,
        },
    )
    logger.debug("Generated %d recommendation(s), %d quick win(s)", len(recs), len(quick_wins))
    return result


# ---------------------------------------------------------------------------
# Human-readable output (--human)
# ---------------------------------------------------------------------------

_PRIORITY_COLORS = {"critical": "1;31", "high": "31", "medium": "33", "low": "36"}


def _color(code: str, text: str) -> str:
    """Wrap *text* in ANSI escape if stdout is a TTY."""
    if not sys.stdout.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def print_human(result: RecommendationSet) -> None:
    summary = result.summary
    print()
    print(_color("1;34", "=" * 60))
    print(_color("1;34", "  Improvement Recommendations"))
    print(_color("1;34", "=" * 60))
    counts = ", ".join(f"{p}={n}" for p, n in summary.get("by_priority", {}).items())
    print(f"\n  Total: {summary.get('total', 0)}  ({counts})")
    print(f"  Estimated hours: {summary.get('estimated_total_hours', 0):g}  "
          f"Expected level gain: +{summary.get('expected_maturity_increase', 0):.2f}")

    print(f"\n  {_color('4', 'Top priority')}:")
    for rec in result.top_priority:
        tag = _color(_PRIORITY_COLORS[rec.priority], f"[{rec.priority.upper():<8}]")
        print(f"    {tag} {rec.title}  ({rec.hours:g}h, {rec.complexity})")
    if result.quick_wins:
        print(f"\n  {_color('4', 'Quick wins')}:")
        for rec in result.quick_wins[:10]:
            print(f"    - {rec.title}  ({rec.hours:g}h)")
    print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.maturity.quality_pipeline import execute, load_records

    parser = argparse.ArgumentParser(description="Generate improvement recommendations")
    parser.add_argument("--records", required=True,
                        help="JSON/YAML file mapping record type -> list of records")
    parser.add_argument("--stage", default=None)
    parser.add_argument("--criticality", default=None)
    parser.add_argument("--min-priority", default=None, choices=PRIORITIES)
    parser.add_argument("--json", dest="json_mode", action="store_true",
                        help="Output results as JSON")
    parser.add_argument("--human", action="store_true",
                        help="Output results as colored terminal tables")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        records = load_records(args.records)
    except (OSError, ValueError) as exc:
        print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
        sys.exit(1)

    context = {k: v for k, v in (("stage", args.stage), ("criticality", args.criticality)) if v}
    run = execute(records, context=context)
    result = run.recommendations
    if args.min_priority:
        result = generate(run.maturity, run.context_result, run.graph_analysis,
                          min_priority=args.min_priority)

    if args.json_mode:
        print(json.dumps(result.to_dict(), indent=2))
    elif args.human:
        print_human(result)
    else:
        print(f"Recommendations: {result.summary['total']}  |  "
              f"Critical: {result.summary['critical_count']}  |  "
              f"Quick wins: {result.summary['quick_win_count']}")
        for rec in result.top_priority:
            print(f"  [{rec.priority}] {rec.title}")


if __name__ == "__main__":
    main()
