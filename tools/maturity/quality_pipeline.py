#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""End-to-end requirements quality run.

Pipeline:
  1. resolve the project context (explicit fields + name/tag inference)
  2. apply context rules -> dimension weights and required overrides
  3. assess maturity with the overrides
  4. build and analyze the dependency graph
  5. check use case / screen flow coherence
  6. generate recommendations
  7. snapshot, health score and alerts

Every step is a pure function of the records and context; the only side
effects are the optional snapshot history write and the CLI output.

Usage:
    python tools/maturity/quality_pipeline.py --records records.json --json
    python tools/maturity/quality_pipeline.py --records records.yaml --criticality high --human
    python tools/maturity/quality_pipeline.py --records records.json --project-name shop --store
    python tools/maturity/quality_pipeline.py --records records.json --export markdown
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import yaml

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.depgraph.graph_analyzer import GraphAnalysisResult, analyze
from tools.depgraph.graph_builder import build_graph
from tools.depgraph.graph_model import DependencyGraph
from tools.maturity.coherence_validator import validate_coherence
from tools.maturity.context_engine import (
    ContextApplicationResult,
    apply_context,
    generate_contextual_recommendations,
    infer_context,
)
from tools.maturity.context_rules import ProjectContext
from tools.maturity.maturity_assessor import assess_project
from tools.maturity.maturity_model import ProjectMaturityAssessment, level_name
from tools.maturity.metrics_dashboard import (
    Alert,
    HealthScore,
    MetricsDashboard,
    MetricsSnapshot,
    calculate_health_score,
    create_snapshot,
    generate_alerts,
)
from tools.maturity.recommendation_engine import RecommendationSet, generate
from tools.maturity.records import RecordType, group_records

logger = logging.getLogger("reqgraph.maturity.pipeline")


# ---------------------------------------------------------------------------
# Record loading
# ---------------------------------------------------------------------------

def load_records(path: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    """Read a records file (JSON or YAML) mapping type tag -> list of records.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file cannot be parsed or is not a mapping of lists.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Records file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    if path.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of record type -> list of records")
    records: Dict[str, List[Dict[str, Any]]] = {}
    for tag, entries in data.items():
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise ValueError(f"{path}: records under '{tag}' must be a list")
        records[str(tag)] = entries
    return records


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

@dataclass
class PipelineResult:
    context_result: ContextApplicationResult
    maturity: ProjectMaturityAssessment
    graph: DependencyGraph
    graph_analysis: GraphAnalysisResult
    coherence: Dict[str, Any]
    recommendations: RecommendationSet
    snapshot: MetricsSnapshot
    health: HealthScore
    alerts: List[Alert] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "context": self.context_result.to_dict(),
            "contextual_recommendations": generate_contextual_recommendations(
                self.context_result),
            "maturity": self.maturity.to_dict(),
            "graph": self.graph.to_dict(),
            "graph_analysis": self.graph_analysis.to_dict(),
            "coherence": self.coherence,
            "recommendations": self.recommendations.to_dict(),
            "snapshot": self.snapshot.to_dict(),
            "health": self.health.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "skipped": len(self.maturity.skipped),
            "unresolved": len(self.graph.broken_links),
        }


def resolve_context(context: Union[ProjectContext, Mapping[str, Any], None],
                    project_name: str = "") -> ProjectContext:
    """Explicit context fields win; missing ones are inferred from name/tags."""
    if isinstance(context, ProjectContext):
        return context
    explicit = dict(context or {})
    name = project_name or explicit.get("project_name") or explicit.get("projectName") or ""
    return infer_context(name, explicit.get("tags"), explicit)


def execute(records_by_type: Mapping[Any, List[Mapping]],
            context: Union[ProjectContext, Mapping[str, Any], None] = None,
            project_name: str = "",
            custom_rules: Optional[Sequence[Any]] = None,
            timestamp: Optional[str] = None,
            previous_snapshot: Optional[MetricsSnapshot] = None,
            config: Optional[Dict[str, Any]] = None) -> PipelineResult:
    """Run every stage and return the live result objects.

    Raises:
        TypeError: if ``records_by_type`` is None.
    """
    grouped = group_records(records_by_type)
    project_context = resolve_context(context, project_name)
    context_result = apply_context(project_context, custom_rules, config)

    maturity = assess_project(grouped, context_result.required_overrides(),
                              timestamp=timestamp, config=config)
    graph = build_graph(grouped)
    graph_analysis = analyze(graph, config)
    coherence = validate_coherence(grouped.get(RecordType.USE_CASE.value, []),
                                   grouped.get(RecordType.SCREEN_FLOW.value, []))
    recommendations = generate(maturity, context_result, graph_analysis, config=config)

    snapshot = create_snapshot(maturity, recommendations, graph_analysis,
                               project_context, timestamp=maturity.timestamp)
    health = calculate_health_score(snapshot, config)
    alerts = generate_alerts(snapshot, previous_snapshot, config)

    logger.info("Pipeline complete: level %d, %d recommendation(s), health %d",
                maturity.project_level, len(recommendations.recommendations), health.overall)
    return PipelineResult(
        context_result=context_result,
        maturity=maturity,
        graph=graph,
        graph_analysis=graph_analysis,
        coherence=coherence,
        recommendations=recommendations,
        snapshot=snapshot,
        health=health,
        alerts=alerts,
    )


def run_pipeline(records_by_type: Mapping[Any, List[Mapping]],
                 context: Union[ProjectContext, Mapping[str, Any], None] = None,
                 project_name: str = "",
                 custom_rules: Optional[Sequence[Any]] = None,
                 timestamp: Optional[str] = None,
                 previous_snapshot: Optional[MetricsSnapshot] = None,
                 config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run the pipeline and return a plain nested dict of every result."""
    return execute(records_by_type, context, project_name, custom_rules,
                   timestamp, previous_snapshot, config).to_dict()


# ---------------------------------------------------------------------------
# Human-readable output (--human)
# ---------------------------------------------------------------------------

def _color(code: str, text: str) -> str:
    """Wrap *text* in ANSI escape if stdout is a TTY."""
    if not sys.stdout.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def print_human(result: PipelineResult) -> None:
    ctx = result.context_result.context
    stats = result.graph_analysis.statistics
    print()
    print(_color("1;34", "=" * 60))
    print(_color("1;34", "  Requirements Quality Report"))
    print(_color("1;34", "=" * 60))
    print(f"\n  Context  : {ctx.domain.value} / {ctx.stage.value} / "
          f"{ctx.team_size.value} / {ctx.criticality.value}")
    print(f"  Maturity : level {result.maturity.project_level} "
          f"({level_name(result.maturity.project_level)}), "
          f"{len(result.maturity.elements)} element(s), {len(result.maturity.skipped)} skipped")
    print(f"  Graph    : {stats.node_count} nodes, {stats.edge_count} edges, "
          f"{stats.cycle_count} cycle(s), {stats.isolated_nodes} isolated, "
          f"{stats.broken_links} broken")
    print(f"  Health   : {result.health.overall}/100 ({result.health.level})")
    if not result.coherence["valid"]:
        print(f"  Coherence: {result.coherence['total_issues']} issue(s)")

    print(f"\n  {_color('4', 'Dimension weights')}:")
    for dim, weight in result.context_result.dimension_weights.items():
        completion = result.maturity.overall_dimensions.get(dim)
        rate = completion.completion_rate * 100 if completion else 0.0
        print(f"    {dim:<16} {weight:4.2f}x  {rate:5.1f}%")

    if result.recommendations.top_priority:
        print(f"\n  {_color('4', 'Top priority')}:")
        for rec in result.recommendations.top_priority:
            print(f"    [{rec.priority:<8}] {rec.title}")
    for alert in result.alerts:
        code = "31" if alert.severity == "error" else "33"
        print(f"\n  {_color(code, alert.severity.upper())}: {alert.message}")
    print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.maturity.snapshot_store import DB_PATH, append_snapshot, load_snapshots

    parser = argparse.ArgumentParser(description="Run the full requirements quality pipeline")
    parser.add_argument("--records", required=True,
                        help="JSON/YAML file mapping record type -> list of records")
    parser.add_argument("--project-name", default="")
    parser.add_argument("--domain", default=None)
    parser.add_argument("--stage", default=None)
    parser.add_argument("--team-size", default=None)
    parser.add_argument("--criticality", default=None)
    parser.add_argument("--tag", action="append", default=[], help="Project tag (repeatable)")
    parser.add_argument("--store", action="store_true",
                        help="Append the snapshot to the history DB")
    parser.add_argument("--db-path", default=None, help=f"History DB (default {DB_PATH})")
    parser.add_argument("--export", default=None, choices=("json", "markdown", "html", "csv"),
                        help="Export the dashboard (history + this run)")
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

    history: List[MetricsSnapshot] = []
    db_path = Path(args.db_path) if args.db_path else DB_PATH
    if db_path.exists():
        history = [MetricsSnapshot.from_dict(p)
                   for p in load_snapshots(db_path, project_name=args.project_name)]

    context = {
        "project_name": args.project_name,
        "domain": args.domain,
        "stage": args.stage,
        "team_size": args.team_size,
        "criticality": args.criticality,
        "tags": args.tag,
    }
    result = execute(records, context, project_name=args.project_name,
                     previous_snapshot=history[-1] if history else None)

    if args.store:
        append_snapshot(result.snapshot, db_path, project_name=args.project_name)

    if args.export:
        dashboard = MetricsDashboard(history)
        if not any(s.id == result.snapshot.id for s in history):
            dashboard.add_snapshot(result.snapshot)
        print(dashboard.export(args.export))
    elif args.json_mode:
        print(json.dumps(result.to_dict(), indent=2))
    elif args.human:
        print_human(result)
    else:
        print(f"Level: {result.maturity.project_level}  |  Health: {result.health.overall} "
              f"({result.health.level})  |  Recommendations: "
              f"{result.recommendations.summary['total']}  |  Skipped: "
              f"{len(result.maturity.skipped)}  |  Unresolved: {len(result.graph.broken_links)}")


if __name__ == "__main__":
    main()
