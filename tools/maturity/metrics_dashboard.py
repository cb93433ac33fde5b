#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Quality metrics dashboard.

Condenses one assessment run into a MetricsSnapshot, scores project health
over five weighted categories, raises threshold alerts and, across a
bounded in-memory history of snapshots, tracks milestones, trends and
snapshot-to-snapshot comparisons. Reports export as JSON, Markdown, HTML
or CSV.

Health categories (0-100 each):
  maturity      project level / 5
  completeness  mean element completion rate
  consistency   100 - 200 x variance of the dimension scores
  traceability  traceability dimension score
  architecture  100 - 10 x cycles - 5 x isolated nodes

Usage:
    python tools/maturity/metrics_dashboard.py --json
    python tools/maturity/metrics_dashboard.py --export markdown
    python tools/maturity/metrics_dashboard.py --project-name shop --trend completion_rate
"""

import argparse
import csv
import hashlib
import html
import io
import json
import logging
import statistics
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.config import get_section
from tools.maturity.maturity_model import MAX_LEVEL, ProjectMaturityAssessment

logger = logging.getLogger("reqgraph.maturity.dashboard")

EXPORT_FORMATS = ("json", "markdown", "html", "csv")
TREND_METRICS = ("maturity_level", "completion_rate", "recommendation_count",
                 "critical_recommendations", "node_count", "circular_dependencies")
REPORT_TREND_METRICS = ("maturity_level", "completion_rate", "recommendation_count")
# metrics where a falling value is an improvement
_LOWER_IS_BETTER = ("recommendation_count", "critical_recommendations", "circular_dependencies")

_DEFAULT_DASHBOARD: Dict[str, Any] = {
    "max_snapshots": 100,
    "health_thresholds": {"excellent": 90, "good": 75, "fair": 60, "poor": 40},
    "category_weights": {
        "maturity": 0.3,
        "completeness": 0.25,
        "consistency": 0.15,
        "traceability": 0.15,
        "architecture": 0.15,
    },
    "strength_threshold": 80,
    "weakness_threshold": 60,
    "trend_stable_band": 5.0,
    "cycle_penalty": 10,
    "isolated_penalty": 5,
    "alerts": {
        "low_maturity_level": 2,
        "low_completion_rate": 0.5,
        "health_regression_points": 5,
    },
    "milestone_min_level": 2,
    "milestone_completion_rate": 0.8,
    "max_next_actions": 5,
}

_HEALTH_DESCRIPTIONS = {
    "excellent": "Quality is excellent. Maintain the current level and keep improving.",
    "good": "Quality is good. Some room for improvement, but the project is healthy overall.",
    "fair": "Quality is fair. Some areas need focused improvement.",
    "poor": "Quality has problems. Improvement is needed soon.",
    "critical": "Quality has serious problems. Act immediately.",
}


def _settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return get_section("dashboard", _DEFAULT_DASHBOARD, config)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_time(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass
class MetricsSnapshot:
    id: str
    timestamp: str
    maturity_level: int
    dimension_scores: Dict[str, float] = field(default_factory=dict)
    element_counts: Dict[str, int] = field(default_factory=dict)
    overall_completion_rate: float = 0.0
    unsatisfied_criteria_count: int = 0
    recommendation_count: Dict[str, int] = field(
        default_factory=lambda: {"total": 0, "critical": 0, "high": 0})
    graph_stats: Optional[Dict[str, int]] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsSnapshot":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            maturity_level=int(data.get("maturity_level", 1)),
            dimension_scores=dict(data.get("dimension_scores") or {}),
            element_counts=dict(data.get("element_counts") or {}),
            overall_completion_rate=float(data.get("overall_completion_rate", 0.0)),
            unsatisfied_criteria_count=int(data.get("unsatisfied_criteria_count", 0)),
            recommendation_count=dict(data.get("recommendation_count")
                                      or {"total": 0, "critical": 0, "high": 0}),
            graph_stats=data.get("graph_stats"),
            context=data.get("context"),
        )


@dataclass
class HealthScore:
    overall: int
    level: str  # excellent, good, fair, poor, critical
    categories: Dict[str, int]
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    assessment: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Alert:
    id: str
    severity: str  # info, warning, error
    metric: str
    message: str
    actual_value: float
    triggered_at: str
    threshold: Optional[float] = None
    recommended_action: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Milestone:
    id: str
    name: str
    type: str  # maturity-level, completion-rate
    achieved_at: str
    snapshot_id: str
    details: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MetricsTrend:
    metric: str
    start: str
    end: str
    data_points: List[Dict[str, Any]]
    minimum: float
    maximum: float
    average: float
    median: float
    change_rate: float
    trend: str  # improving, stable, declining

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Snapshot / health / alerts
# ---------------------------------------------------------------------------

def create_snapshot(maturity: ProjectMaturityAssessment,
                    recommendations: Any = None,
                    graph_analysis: Any = None,
                    context: Any = None,
                    timestamp: Optional[str] = None) -> MetricsSnapshot:
    """Condense one assessment run into a snapshot.

    The id combines the timestamp with a hash of the snapshot content, so
    identical input at the same timestamp yields the same id.
    """
    timestamp = timestamp or maturity.timestamp or _now()
    element_counts: Dict[str, int] = {}
    for element in maturity.elements:
        element_counts[element.element_type] = element_counts.get(element.element_type, 0) + 1
    rates = [e.overall_completion_rate for e in maturity.elements]

    rec_count = {"total": 0, "critical": 0, "high": 0}
    if recommendations is not None:
        summary = recommendations.summary
        rec_count = {"total": summary.get("total", 0),
                     "critical": summary.get("critical_count", 0),
                     "high": summary.get("high_priority_count", 0)}

    graph_stats = None
    if graph_analysis is not None:
        graph_stats = {
            "node_count": graph_analysis.statistics.node_count,
            "edge_count": graph_analysis.statistics.edge_count,
            "circular_dependencies": len(graph_analysis.circular_dependencies),
            "isolated_nodes": len(graph_analysis.isolated_nodes),
            "broken_links": len(graph_analysis.broken_links),
        }

    if context is not None and hasattr(context, "to_dict"):
        context = context.to_dict()

    snapshot = MetricsSnapshot(
        id="",
        timestamp=timestamp,
        maturity_level=maturity.project_level,
        dimension_scores={d: round(m.completion_rate, 4)
                          for d, m in maturity.overall_dimensions.items()},
        element_counts=element_counts,
        overall_completion_rate=round(sum(rates) / len(rates), 4) if rates else 0.0,
        unsatisfied_criteria_count=sum(len(e.unsatisfied_criteria) for e in maturity.elements),
        recommendation_count=rec_count,
        graph_stats=graph_stats,
        context=context,
    )
    digest = hashlib.sha256(
        json.dumps(snapshot.to_dict(), sort_keys=True, default=str).encode("utf-8")
    ).hexdigest()[:12]
    stamp = "".join(ch for ch in timestamp if ch.isdigit())[:14]
    snapshot.id = f"snap-{stamp}-{digest}"
    return snapshot


def _health_level(overall: float, thresholds: Dict[str, float]) -> str:
    for level in ("excellent", "good", "fair", "poor"):
        if overall >= thresholds[level]:
            return level
    return "critical"


def calculate_health_score(snapshot: MetricsSnapshot,
                           config: Optional[Dict[str, Any]] = None) -> HealthScore:
    """Score project health from a snapshot."""
    settings = _settings(config)
    maturity_score = snapshot.maturity_level / MAX_LEVEL * 100
    completeness_score = snapshot.overall_completion_rate * 100

    values = list(snapshot.dimension_scores.values())
    variance = statistics.pvariance(values) if values else 0.0
    consistency_score = max(0.0, 100 - variance * 200)

    traceability_score = snapshot.dimension_scores.get("traceability", 0.0) * 100

    architecture_score = 100.0
    if snapshot.graph_stats:
        architecture_score -= snapshot.graph_stats.get("circular_dependencies", 0) \
            * settings["cycle_penalty"]
        architecture_score -= snapshot.graph_stats.get("isolated_nodes", 0) \
            * settings["isolated_penalty"]
        architecture_score = max(0.0, architecture_score)

    raw = {
        "maturity": maturity_score,
        "completeness": completeness_score,
        "consistency": consistency_score,
        "traceability": traceability_score,
        "architecture": architecture_score,
    }
    weights = settings["category_weights"]
    overall = round(sum(raw[name] * weights.get(name, 0.0) for name in raw))
    categories = {name: round(value) for name, value in raw.items()}
    level = _health_level(overall, settings["health_thresholds"])

    strengths = [f"{name}: {value}" for name, value in categories.items()
                 if value >= settings["strength_threshold"]]
    weaknesses = [f"{name}: {value}" for name, value in categories.items()
                  if value < settings["weakness_threshold"]]

    assessment = _HEALTH_DESCRIPTIONS[level]
    lowest_name, lowest_value = min(categories.items(), key=lambda kv: kv[1])
    if lowest_value < settings["weakness_threshold"]:
        assessment += f" Improving {lowest_name} matters most."

    return HealthScore(overall=overall, level=level, categories=categories,
                       strengths=strengths, weaknesses=weaknesses, assessment=assessment)


def generate_alerts(snapshot: MetricsSnapshot,
                    previous: Optional[MetricsSnapshot] = None,
                    config: Optional[Dict[str, Any]] = None) -> List[Alert]:
    """Raise threshold alerts for a snapshot, optionally against its predecessor."""
    settings = _settings(config)
    limits = settings["alerts"]
    alerts: List[Alert] = []

    def _alert(metric, severity, message, actual, action, threshold=None):
        alerts.append(Alert(id=f"alert-{metric}-{snapshot.id}", severity=severity,
                            metric=metric, message=message, actual_value=actual,
                            triggered_at=snapshot.timestamp, threshold=threshold,
                            recommended_action=action))

    if snapshot.maturity_level <= limits["low_maturity_level"]:
        _alert("maturity_level", "warning",
               f"Project maturity is low (level {snapshot.maturity_level})",
               snapshot.maturity_level, "Review the maturity recommendations",
               limits["low_maturity_level"])
    if snapshot.overall_completion_rate < limits["low_completion_rate"]:
        _alert("completion_rate", "error",
               f"Completion rate is low ({snapshot.overall_completion_rate * 100:.0f}%)",
               snapshot.overall_completion_rate, "Satisfy the outstanding criteria first",
               limits["low_completion_rate"])
    cycles = (snapshot.graph_stats or {}).get("circular_dependencies", 0)
    if cycles > 0:
        _alert("circular_dependencies", "error",
               f"{cycles} circular dependenc{'y' if cycles == 1 else 'ies'} detected",
               cycles, "Break the circular dependencies first", 0)

    if previous is not None:
        now_health = calculate_health_score(snapshot, config).overall
        before_health = calculate_health_score(previous, config).overall
        drop = before_health - now_health
        if drop >= limits["health_regression_points"]:
            _alert("health_score", "warning",
                   f"Health score regressed from {before_health} to {now_health}",
                   now_health, "Compare the two snapshots to find the regression",
                   before_health)
        before_cycles = (previous.graph_stats or {}).get("circular_dependencies", 0)
        if cycles > before_cycles:
            _alert("new_circular_dependencies", "error",
                   f"{cycles - before_cycles} new circular dependenc"
                   f"{'y' if cycles - before_cycles == 1 else 'ies'} since the previous snapshot",
                   cycles, "Break the newly introduced cycles", before_cycles)
    return alerts


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def _metric_value(snapshot: MetricsSnapshot, metric: str) -> Optional[float]:
    graph = snapshot.graph_stats or {}
    values = {
        "maturity_level": snapshot.maturity_level,
        "completion_rate": snapshot.overall_completion_rate,
        "recommendation_count": snapshot.recommendation_count.get("total", 0),
        "critical_recommendations": snapshot.recommendation_count.get("critical", 0),
        "node_count": graph.get("node_count", 0),
        "circular_dependencies": graph.get("circular_dependencies", 0),
    }
    return values.get(metric)


class MetricsDashboard:
    """Bounded snapshot history with milestones, trends and reports."""

    def __init__(self, snapshots: Optional[List[MetricsSnapshot]] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.config = config
        self.settings = _settings(config)
        self.snapshots: List[MetricsSnapshot] = []
        self.milestones: List[Milestone] = []
        for snapshot in snapshots or []:
            self.add_snapshot(snapshot)

    # -- history ----------------------------------------------------------

    def add_snapshot(self, snapshot: MetricsSnapshot) -> List[Milestone]:
        """Append a snapshot (dropping the oldest past the bound).

        Returns milestones newly reached by this snapshot.
        """
        self.snapshots.append(snapshot)
        overflow = len(self.snapshots) - self.settings["max_snapshots"]
        if overflow > 0:
            del self.snapshots[:overflow]
        return self._check_milestones(snapshot)

    def get_snapshot(self, snapshot_id: str) -> Optional[MetricsSnapshot]:
        for snapshot in self.snapshots:
            if snapshot.id == snapshot_id:
                return snapshot
        return None

    @property
    def latest(self) -> Optional[MetricsSnapshot]:
        return self.snapshots[-1] if self.snapshots else None

    def _check_milestones(self, snapshot: MetricsSnapshot) -> List[Milestone]:
        reached: List[Milestone] = []
        known = {m.id for m in self.milestones}
        level = snapshot.maturity_level
        level_id = f"milestone-level-{level}"
        if level >= self.settings["milestone_min_level"] and level_id not in known:
            reached.append(Milestone(
                id=level_id, name=f"Maturity level {level} reached", type="maturity-level",
                achieved_at=snapshot.timestamp, snapshot_id=snapshot.id,
                details=f"Project reached maturity level {level}"))
        target = self.settings["milestone_completion_rate"]
        completion_id = f"milestone-completion-{round(target * 100)}"
        if snapshot.overall_completion_rate >= target and completion_id not in known:
            reached.append(Milestone(
                id=completion_id, name=f"Completion rate {target * 100:.0f}% reached",
                type="completion-rate", achieved_at=snapshot.timestamp,
                snapshot_id=snapshot.id,
                details=f"Project completion rate exceeded {target * 100:.0f}%"))
        for milestone in reached:
            logger.info("Milestone reached: %s", milestone.name)
        self.milestones.extend(reached)
        return reached

    # -- analysis ---------------------------------------------------------

    def analyze_trend(self, metric: str, start: Optional[str] = None,
                      end: Optional[str] = None) -> Optional[MetricsTrend]:
        """Summarize a metric over the history (None with fewer than 2 points).

        Raises:
            ValueError: for an unknown metric name.
        """
        if metric not in TREND_METRICS:
            raise ValueError(f"Unknown metric: {metric}")
        snapshots = self.snapshots
        if start or end:
            lo = _parse_time(start) if start else None
            hi = _parse_time(end) if end else None
            filtered = []
            for snap in snapshots:
                when = _parse_time(snap.timestamp)
                if when is None:
                    continue
                if (lo and when < lo) or (hi and when > hi):
                    continue
                filtered.append(snap)
            snapshots = filtered
        if len(snapshots) < 2:
            return None

        points = [{"timestamp": s.timestamp, "value": _metric_value(s, metric)}
                  for s in snapshots]
        values = [p["value"] for p in points]
        first, last = values[0], values[-1]
        if first:
            change_rate = (last - first) / abs(first) * 100
        else:
            change_rate = 0.0 if last == first else (100.0 if last > first else -100.0)

        direction = change_rate if metric not in _LOWER_IS_BETTER else -change_rate
        if abs(change_rate) < self.settings["trend_stable_band"]:
            trend = "stable"
        elif direction > 0:
            trend = "improving"
        else:
            trend = "declining"

        return MetricsTrend(
            metric=metric, start=snapshots[0].timestamp, end=snapshots[-1].timestamp,
            data_points=points, minimum=min(values), maximum=max(values),
            average=round(statistics.fmean(values), 4),
            median=statistics.median(values),
            change_rate=round(change_rate, 2), trend=trend,
        )

    def compare_snapshots(self, before_id: str, after_id: str) -> Optional[Dict[str, Any]]:
        """Diff two stored snapshots; None if either id is unknown."""
        before = self.get_snapshot(before_id)
        after = self.get_snapshot(after_id)
        if before is None or after is None:
            return None

        dimensions = {}
        for dim, after_score in after.dimension_scores.items():
            before_score = before.dimension_scores.get(dim, 0.0)
            change = round(after_score - before_score, 4)
            dimensions[dim] = {"before": before_score, "after": after_score,
                               "change": change, "improved": change > 0}

        days = hours = 0
        t0, t1 = _parse_time(before.timestamp), _parse_time(after.timestamp)
        if t0 and t1:
            seconds = int((t1 - t0).total_seconds())
            days, rem = divmod(seconds, 86400)
            hours = rem // 3600

        level_change = after.maturity_level - before.maturity_level
        completion_change = round(after.overall_completion_rate
                                  - before.overall_completion_rate, 4)
        parts = []
        if level_change:
            parts.append(f"maturity level {'up' if level_change > 0 else 'down'} "
                         f"{abs(level_change)}")
        if completion_change:
            parts.append(f"completion {'up' if completion_change > 0 else 'down'} "
                         f"{abs(completion_change) * 100:.1f}%")
        summary = ", ".join(parts) or "no change"
        if days > 0:
            summary = f"Over {days} day(s): {summary}"

        return {
            "before": before.id,
            "after": after.id,
            "maturity_level": {"before": before.maturity_level, "after": after.maturity_level,
                               "change": level_change, "improved": level_change > 0},
            "completion_rate": {"before": before.overall_completion_rate,
                                "after": after.overall_completion_rate,
                                "change": completion_change,
                                "improved": completion_change > 0},
            "dimension_scores": dimensions,
            "duration": {"days": days, "hours": hours},
            "summary": summary,
        }

    # -- reporting --------------------------------------------------------

    def _key_metrics(self, snapshot: MetricsSnapshot) -> List[Dict[str, Any]]:
        metrics = [
            {"name": "maturity_level", "current": snapshot.maturity_level, "unit": "level"},
            {"name": "completion_rate", "current": round(snapshot.overall_completion_rate * 100),
             "unit": "%"},
            {"name": "recommendations", "current": snapshot.recommendation_count.get("total", 0),
             "unit": "count"},
        ]
        if len(self.snapshots) >= 2:
            previous = self.snapshots[-2]
            prior = [previous.maturity_level,
                     round(previous.overall_completion_rate * 100),
                     previous.recommendation_count.get("total", 0)]
            for metric, value in zip(metrics, prior):
                metric["previous"] = value
                metric["change"] = metric["current"] - value
        return metrics

    @staticmethod
    def _insights(health: HealthScore, trends: List[MetricsTrend]) -> List[str]:
        insights = []
        if health.level == "excellent":
            insights.append("The project maintains excellent quality")
        elif health.level in ("poor", "critical"):
            insights.append("Quality improvement is urgent")
        for trend in trends:
            if trend.trend == "improving":
                insights.append(f"{trend.metric} is improving ({trend.change_rate:+.1f}%)")
            elif trend.trend == "declining":
                insights.append(f"{trend.metric} is declining ({trend.change_rate:+.1f}%)")
        if health.strengths:
            insights.append(f"Strengths: {', '.join(health.strengths)}")
        return insights

    def _next_actions(self, health: HealthScore, snapshot: MetricsSnapshot) -> List[str]:
        actions = [f"Improve {weakness}" for weakness in health.weaknesses]
        if snapshot.unsatisfied_criteria_count:
            actions.append(f"Satisfy {snapshot.unsatisfied_criteria_count} outstanding criteria")
        if snapshot.recommendation_count.get("critical"):
            actions.append(f"Carry out {snapshot.recommendation_count['critical']} "
                           f"critical recommendation(s)")
        graph = snapshot.graph_stats or {}
        if graph.get("circular_dependencies"):
            actions.append(f"Break {graph['circular_dependencies']} circular dependencies")
        if graph.get("isolated_nodes"):
            actions.append(f"Connect {graph['isolated_nodes']} isolated element(s)")
        return actions[:self.settings["max_next_actions"]]

    def generate_report(self, generated_at: Optional[str] = None) -> Dict[str, Any]:
        """Summarize the latest snapshot in the context of the history.

        Raises:
            ValueError: if the dashboard holds no snapshots.
        """
        if not self.snapshots:
            raise ValueError("No snapshots to report on")
        latest = self.snapshots[-1]
        health = calculate_health_score(latest, self.config)
        trends = [t for t in (self.analyze_trend(m) for m in REPORT_TREND_METRICS) if t]
        previous = self.snapshots[-2] if len(self.snapshots) >= 2 else None
        return {
            "id": f"report-{latest.id}",
            "generated_at": generated_at or _now(),
            "health": health.to_dict(),
            "latest_snapshot": latest.to_dict(),
            "trends": [t.to_dict() for t in trends],
            "milestones": [m.to_dict() for m in self.milestones],
            "key_metrics": self._key_metrics(latest),
            "alerts": [a.to_dict() for a in generate_alerts(latest, previous, self.config)],
            "insights": self._insights(health, trends),
            "next_actions": self._next_actions(health, latest),
        }

    def export(self, fmt: str, exported_at: Optional[str] = None) -> str:
        """Render the history as json, markdown, html or csv.

        Raises:
            ValueError: for an unsupported format.
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        data = {
            "exported_at": exported_at or _now(),
            "snapshots": [s.to_dict() for s in self.snapshots],
            "milestones": [m.to_dict() for m in self.milestones],
            "trends": [t.to_dict() for t in
                       (self.analyze_trend(m) for m in ("maturity_level", "completion_rate")) if t],
        }
        if fmt == "json":
            return json.dumps(data, indent=2)
        if fmt == "markdown":
            return self._export_markdown(data)
        if fmt == "html":
            return self._export_html(data)
        return self._export_csv()

    def _export_markdown(self, data: Dict[str, Any]) -> str:
        lines = ["# Quality Metrics Dashboard", "", f"Exported: {data['exported_at']}", ""]
        latest = self.latest
        if latest is not None:
            health = calculate_health_score(latest, self.config)
            lines += [
                "## Latest snapshot", "",
                f"- Maturity level: {latest.maturity_level}",
                f"- Completion rate: {latest.overall_completion_rate * 100:.1f}%",
                f"- Recommendations: {latest.recommendation_count.get('total', 0)}",
                f"- Health: {health.overall} ({health.level})", "",
            ]
        if data["trends"]:
            lines += ["## Trends", ""]
            for trend in data["trends"]:
                lines += [f"### {trend['metric']}",
                          f"- Trend: {trend['trend']}",
                          f"- Change rate: {trend['change_rate']:.1f}%", ""]
        if data["milestones"]:
            lines += ["## Milestones", ""]
            lines += [f"- {m['achieved_at']}: {m['name']}" for m in data["milestones"]]
            lines.append("")
        return "\n".join(lines)

    def _export_html(self, data: Dict[str, Any]) -> str:
        parts = ['<!DOCTYPE html><html><head><meta charset="UTF-8">',
                 "<title>Quality Metrics Dashboard</title></head><body>",
                 "<h1>Quality Metrics Dashboard</h1>",
                 f"<p>Exported: {html.escape(data['exported_at'])}</p>"]
        latest = self.latest
        if latest is not None:
            parts += ["<h2>Latest snapshot</h2><ul>",
                      f"<li>Maturity level: {latest.maturity_level}</li>",
                      f"<li>Completion rate: {latest.overall_completion_rate * 100:.1f}%</li>",
                      f"<li>Recommendations: {latest.recommendation_count.get('total', 0)}</li>",
                      "</ul>"]
        if data["milestones"]:
            parts.append("<h2>Milestones</h2><ul>")
            parts += [f"<li>{html.escape(m['achieved_at'])}: {html.escape(m['name'])}</li>"
                      for m in data["milestones"]]
            parts.append("</ul>")
        parts.append("</body></html>")
        return "".join(parts)

    def _export_csv(self) -> str:
        if not self.snapshots:
            return ""
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(["timestamp", "maturity_level", "completion_rate",
                         "recommendation_count"])
        for snap in self.snapshots:
            writer.writerow([snap.timestamp, snap.maturity_level,
                             snap.overall_completion_rate,
                             snap.recommendation_count.get("total", 0)])
        return buf.getvalue()


# ---------------------------------------------------------------------------
# Human-readable output (--human)
# ---------------------------------------------------------------------------

_LEVEL_COLORS = {"excellent": "32", "good": "32", "fair": "33", "poor": "31", "critical": "1;31"}


def _color(code: str, text: str) -> str:
    """Wrap *text* in ANSI escape if stdout is a TTY."""
    if not sys.stdout.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def print_human(report: Dict[str, Any]) -> None:
    health = report["health"]
    print()
    print(_color("1;34", "=" * 60))
    print(_color("1;34", "  Quality Dashboard"))
    print(_color("1;34", "=" * 60))
    level = _color(_LEVEL_COLORS.get(health["level"], "0"), health["level"].upper())
    print(f"\n  Health: {health['overall']}/100  {level}")
    print(f"  {health['assessment']}")
    print(f"\n  {_color('4', 'Categories')}:")
    for name, value in health["categories"].items():
        print(f"    {name:<14} {value:>3}")
    for alert in report["alerts"]:
        code = "31" if alert["severity"] == "error" else "33"
        print(f"\n  {_color(code, alert['severity'].upper())}: {alert['message']}")
    if report["next_actions"]:
        print(f"\n  {_color('4', 'Next actions')}:")
        for action in report["next_actions"]:
            print(f"    - {action}")
    print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.maturity.snapshot_store import DB_PATH, load_snapshots

    parser = argparse.ArgumentParser(description="Quality metrics dashboard over stored snapshots")
    parser.add_argument("--db-path", default=None, help=f"History DB (default {DB_PATH})")
    parser.add_argument("--project-name", default=None)
    parser.add_argument("--trend", default=None, choices=TREND_METRICS)
    parser.add_argument("--export", default=None, choices=EXPORT_FORMATS)
    parser.add_argument("--json", dest="json_mode", action="store_true",
                        help="Output results as JSON")
    parser.add_argument("--human", action="store_true",
                        help="Output results as colored terminal tables")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        payloads = load_snapshots(db_path=args.db_path, project_name=args.project_name)
    except FileNotFoundError as exc:
        print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
        sys.exit(1)
    dashboard = MetricsDashboard([MetricsSnapshot.from_dict(p) for p in payloads])
    if not dashboard.snapshots:
        print(json.dumps({"error": "no snapshots recorded"}, indent=2), file=sys.stderr)
        sys.exit(1)

    if args.export:
        print(dashboard.export(args.export))
        return
    if args.trend:
        trend = dashboard.analyze_trend(args.trend)
        print(json.dumps(trend.to_dict() if trend else None, indent=2))
        return

    report = dashboard.generate_report()
    if args.json_mode:
        print(json.dumps(report, indent=2))
    elif args.human:
        print_human(report)
    else:
        health = report["health"]
        print(f"Health: {health['overall']} ({health['level']})  |  "
              f"Snapshots: {len(dashboard.snapshots)}  |  "
              f"Milestones: {len(dashboard.milestones)}  |  Alerts: {len(report['alerts'])}")


if __name__ == "__main__":
    main()
