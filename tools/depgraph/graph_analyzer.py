#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Dependency graph analyzer.

Computes, for a DependencyGraph:
  - circular dependencies (DFS back edges, canonicalized and deduplicated)
  - node importance: exact in/out degree, PageRank, Brandes betweenness,
    and a critical/high/medium/low bucket
  - isolated nodes (no incoming and no outgoing edges)
  - a topological order when the graph is acyclic (graphlib)
  - statistics, layer analysis and warnings
  - change impact of a single node (reverse BFS, optionally depth bounded)

A zero-node graph is analyzed like any other and yields zeroed statistics.

Usage:
    python tools/depgraph/graph_analyzer.py --records records.json --json
    python tools/depgraph/graph_analyzer.py --records records.yaml --human
    python tools/depgraph/graph_analyzer.py --records records.json --impact uc-login --json
"""

import argparse
import json
import logging
import sys
from collections import deque
from dataclasses import asdict, dataclass, field
from graphlib import TopologicalSorter
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.depgraph.graph_model import BrokenLink, DependencyGraph
from tools.maturity.config import get_section

logger = logging.getLogger("reqgraph.depgraph.analyzer")

_DEFAULT_GRAPH: Dict[str, Any] = {
    "pagerank_damping": 0.85,
    "pagerank_tolerance": 1e-6,
    "pagerank_max_iterations": 100,
    # None walks the full reverse-reachable set
    "impact_max_depth": None,
    "hub_in_degree": 10,
    # (in_degree, betweenness) lower bounds per bucket; either one suffices
    "importance_thresholds": {
        "critical": [10, 50],
        "high": [5, 20],
        "medium": [2, 5],
    },
    # total impacted nodes -> effort (upper bounds, inclusive)
    "impact_effort_buckets": {"small": 3, "medium": 10, "large": 20},
    "layer_violation_penalty": 5,
}

def _settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return get_section("graph", _DEFAULT_GRAPH, config)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class CircularDependency:
    cycle: List[str]
    length: int
    edge_types: List[str]
    severity: str  # high, medium, low

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class NodeImportance:
    node_id: str
    in_degree: int
    out_degree: int
    page_rank: float
    betweenness: float
    importance: str  # critical, high, medium, low

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GraphStatistics:
    node_count: int = 0
    edge_count: int = 0
    nodes_by_type: Dict[str, int] = field(default_factory=dict)
    edges_by_type: Dict[str, int] = field(default_factory=dict)
    average_in_degree: float = 0.0
    average_out_degree: float = 0.0
    max_depth: int = 0
    connected_components: int = 0
    cycle_count: int = 0
    isolated_nodes: int = 0
    broken_links: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LayerViolation:
    source: str
    target: str
    source_level: int
    target_level: int
    severity: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LayerAnalysis:
    layers: List[Dict[str, Any]] = field(default_factory=list)
    violations: List[LayerViolation] = field(default_factory=list)
    health_score: int = 100

    def to_dict(self) -> dict:
        return {
            "layers": [dict(layer) for layer in self.layers],
            "violations": [v.to_dict() for v in self.violations],
            "health_score": self.health_score,
        }


@dataclass
class ChangeImpactAnalysis:
    target_node: str
    direct_impact: List[str] = field(default_factory=list)
    indirect_impact: List[str] = field(default_factory=list)
    impact_by_level: Dict[int, List[str]] = field(default_factory=dict)
    critical_nodes: List[str] = field(default_factory=list)
    estimated_effort: str = "small"

    @property
    def total_impact_count(self) -> int:
        return len(self.direct_impact) + len(self.indirect_impact)

    def to_dict(self) -> dict:
        return {
            "target_node": self.target_node,
            "direct_impact": list(self.direct_impact),
            "indirect_impact": list(self.indirect_impact),
            "total_impact_count": self.total_impact_count,
            "impact_by_level": {str(k): list(v) for k, v in sorted(self.impact_by_level.items())},
            "critical_nodes": list(self.critical_nodes),
            "estimated_effort": self.estimated_effort,
        }


@dataclass
class GraphAnalysisResult:
    graph: DependencyGraph
    statistics: GraphStatistics
    circular_dependencies: List[CircularDependency] = field(default_factory=list)
    node_importance: List[NodeImportance] = field(default_factory=list)
    isolated_nodes: List[str] = field(default_factory=list)
    topological_order: Optional[List[str]] = None
    broken_links: List[BrokenLink] = field(default_factory=list)
    layer_analysis: LayerAnalysis = field(default_factory=LayerAnalysis)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    page_rank_converged: bool = True

    def importance_of(self, node_id: str) -> Optional[NodeImportance]:
        for entry in self.node_importance:
            if entry.node_id == node_id:
                return entry
        return None

    def to_dict(self, include_graph: bool = False) -> dict:
        data = {
            "statistics": self.statistics.to_dict(),
            "circular_dependencies": [c.to_dict() for c in self.circular_dependencies],
            "node_importance": [n.to_dict() for n in self.node_importance],
            "isolated_nodes": list(self.isolated_nodes),
            "topological_order": (list(self.topological_order)
                                  if self.topological_order is not None else None),
            "broken_links": [b.to_dict() for b in self.broken_links],
            "layer_analysis": self.layer_analysis.to_dict(),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "page_rank_converged": self.page_rank_converged,
        }
        if include_graph:
            data["graph"] = self.graph.to_dict()
        return data


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------

def _cycle_severity(length: int) -> str:
    if length <= 3:
        return "high"
    if length <= 5:
        return "medium"
    return "low"


def _canonical(cycle: List[str]) -> Tuple[str, ...]:
    """Rotate a cycle so it starts at its smallest node id."""
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


def detect_cycles(graph: DependencyGraph) -> List[CircularDependency]:
    """Find circular dependencies with an iterative DFS.

    Every back edge closes one cycle (the DFS path slice from the edge's
    target). Start nodes are taken in node insertion order; cycles are
    rotated to start at their smallest id and deduplicated.
    """
    visited: set = set()
    found: Dict[Tuple[str, ...], None] = {}

    for root in graph.node_ids:
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(graph.adjacency.get(root, []))]
        while stack:
            advanced = False
            for neighbor in stack[-1]:
                if neighbor in on_path:
                    cycle = path[path.index(neighbor):]
                    found.setdefault(_canonical(cycle), None)
                elif neighbor not in visited:
                    visited.add(neighbor)
                    path.append(neighbor)
                    on_path.add(neighbor)
                    stack.append(iter(graph.adjacency.get(neighbor, [])))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                on_path.discard(path.pop())

    edge_types: Dict[Tuple[str, str], List[str]] = {}
    for edge in graph.edges:
        edge_types.setdefault((edge.source, edge.target), []).append(edge.type.value)

    cycles = []
    for canonical in found:
        nodes = list(canonical)
        types: List[str] = []
        for i, node in enumerate(nodes):
            nxt = nodes[(i + 1) % len(nodes)]
            for etype in edge_types.get((node, nxt), []):
                if etype not in types:
                    types.append(etype)
        cycles.append(CircularDependency(cycle=nodes, length=len(nodes),
                                         edge_types=types,
                                         severity=_cycle_severity(len(nodes))))
    return cycles


# ---------------------------------------------------------------------------
# Ordering and structure
# ---------------------------------------------------------------------------

def topological_order(graph: DependencyGraph) -> List[str]:
    """Return nodes so every edge points forward.

    Raises:
        graphlib.CycleError: if the graph has a cycle.
    """
    sorter = TopologicalSorter()
    for node_id in graph.node_ids:
        sorter.add(node_id, *graph.reverse_adjacency.get(node_id, []))
    return list(sorter.static_order())


def find_isolated_nodes(graph: DependencyGraph) -> List[str]:
    return [nid for nid in graph.node_ids
            if graph.in_degree(nid) == 0 and graph.out_degree(nid) == 0]


def _roots(graph: DependencyGraph) -> List[str]:
    return [nid for nid in graph.node_ids if graph.in_degree(nid) == 0]


def _max_depth(graph: DependencyGraph, order: Optional[List[str]]) -> int:
    """Longest root-to-node path; BFS eccentricity of roots if cyclic."""
    if not len(graph):
        return 0
    if order is not None:
        depth = {nid: 0 for nid in order}
        for nid in order:
            for succ in graph.adjacency.get(nid, []):
                depth[succ] = max(depth[succ], depth[nid] + 1)
        return max(depth.values())

    best = 0
    for root in _roots(graph) or graph.node_ids:
        seen = {root: 0}
        queue = deque([root])
        while queue:
            nid = queue.popleft()
            for succ in graph.adjacency.get(nid, []):
                if succ not in seen:
                    seen[succ] = seen[nid] + 1
                    queue.append(succ)
        best = max(best, max(seen.values()))
    return best


def _connected_components(graph: DependencyGraph) -> int:
    seen: set = set()
    components = 0
    for start in graph.node_ids:
        if start in seen:
            continue
        components += 1
        seen.add(start)
        queue = deque([start])
        while queue:
            nid = queue.popleft()
            for other in graph.adjacency.get(nid, []) + graph.reverse_adjacency.get(nid, []):
                if other not in seen:
                    seen.add(other)
                    queue.append(other)
    return components


def calculate_statistics(graph: DependencyGraph,
                         cycles: Optional[List[CircularDependency]] = None,
                         order: Optional[List[str]] = None) -> GraphStatistics:
    if cycles is None:
        cycles = detect_cycles(graph)
        order = topological_order(graph) if not cycles else None
    node_count = len(graph)
    result = GraphStatistics(
        node_count=node_count,
        edge_count=len(graph.edges),
        cycle_count=len(cycles),
        broken_links=len(graph.broken_links),
    )
    for node in graph.nodes.values():
        result.nodes_by_type[node.type.value] = result.nodes_by_type.get(node.type.value, 0) + 1
    for edge in graph.edges:
        result.edges_by_type[edge.type.value] = result.edges_by_type.get(edge.type.value, 0) + 1
    if node_count:
        result.average_in_degree = sum(graph.in_degree(n) for n in graph.node_ids) / node_count
        result.average_out_degree = sum(graph.out_degree(n) for n in graph.node_ids) / node_count
    result.max_depth = _max_depth(graph, order)
    result.connected_components = _connected_components(graph)
    result.isolated_nodes = len(find_isolated_nodes(graph))
    return result


# ---------------------------------------------------------------------------
# Importance
# ---------------------------------------------------------------------------

def page_rank(graph: DependencyGraph, damping: float = 0.85, tolerance: float = 1e-6,
              max_iterations: int = 100) -> Tuple[Dict[str, float], bool]:
    """Power-iteration PageRank.

    Rank held by nodes without outgoing edges is spread evenly over all
    nodes. Returns the ranks (summing to 1) and whether the L1 change fell
    below ``tolerance`` within ``max_iterations``; on non-convergence the
    last iterate is returned.
    """
    nodes = graph.node_ids
    n = len(nodes)
    if n == 0:
        return {}, True
    rank = {nid: 1.0 / n for nid in nodes}
    converged = False
    for _ in range(max_iterations):
        dangling = sum(rank[nid] for nid in nodes if graph.out_degree(nid) == 0)
        base = (1.0 - damping) / n + damping * dangling / n
        new_rank = {}
        for nid in nodes:
            incoming = sum(rank[src] / graph.out_degree(src)
                           for src in graph.reverse_adjacency.get(nid, []))
            new_rank[nid] = base + damping * incoming
        delta = sum(abs(new_rank[nid] - rank[nid]) for nid in nodes)
        rank = new_rank
        if delta < tolerance:
            converged = True
            break
    total = sum(rank.values())
    if total > 0:
        rank = {nid: value / total for nid, value in rank.items()}
    if not converged:
        logger.warning("PageRank did not converge within %d iterations", max_iterations)
    return rank, converged


def betweenness_centrality(graph: DependencyGraph) -> Dict[str, float]:
    """Brandes betweenness for an unweighted directed graph."""
    nodes = graph.node_ids
    centrality = {nid: 0.0 for nid in nodes}
    for source in nodes:
        order: List[str] = []
        preds: Dict[str, List[str]] = {nid: [] for nid in nodes}
        sigma = {nid: 0 for nid in nodes}
        dist = {nid: -1 for nid in nodes}
        sigma[source] = 1
        dist[source] = 0
        queue = deque([source])
        while queue:
            v = queue.popleft()
            order.append(v)
            for w in graph.adjacency.get(v, []):
                if dist[w] < 0:
                    dist[w] = dist[v] + 1
                    queue.append(w)
                if dist[w] == dist[v] + 1:
                    sigma[w] += sigma[v]
                    preds[w].append(v)
        delta = {nid: 0.0 for nid in nodes}
        while order:
            w = order.pop()
            for v in preds[w]:
                delta[v] += sigma[v] / sigma[w] * (1.0 + delta[w])
            if w != source:
                centrality[w] += delta[w]
    return centrality


def importance_bucket(in_degree: int, betweenness: float,
                      thresholds: Optional[Dict[str, List[float]]] = None) -> str:
    thresholds = thresholds or _DEFAULT_GRAPH["importance_thresholds"]
    for bucket in ("critical", "high", "medium"):
        min_in, min_between = thresholds[bucket]
        if in_degree >= min_in or betweenness >= min_between:
            return bucket
    return "low"


def calculate_node_importance(graph: DependencyGraph,
                              config: Optional[Dict[str, Any]] = None
                              ) -> Tuple[List[NodeImportance], bool]:
    """Score every node; sorted by in-degree descending (stable)."""
    settings = _settings(config)
    ranks, converged = page_rank(graph, settings["pagerank_damping"],
                                 settings["pagerank_tolerance"],
                                 settings["pagerank_max_iterations"])
    between = betweenness_centrality(graph)
    scores = []
    for nid in graph.node_ids:
        in_deg = graph.in_degree(nid)
        scores.append(NodeImportance(
            node_id=nid,
            in_degree=in_deg,
            out_degree=graph.out_degree(nid),
            page_rank=round(ranks.get(nid, 0.0), 6),
            betweenness=round(between.get(nid, 0.0), 6),
            importance=importance_bucket(in_deg, between.get(nid, 0.0),
                                         settings["importance_thresholds"]),
        ))
    scores.sort(key=lambda s: -s.in_degree)
    return scores, converged


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

def _layer_description(level: int, max_level: int) -> str:
    if level == 0:
        return "foundation"
    if level == max_level:
        return "presentation"
    ratio = level / max_level
    if ratio < 0.33:
        return "domain"
    if ratio < 0.67:
        return "application"
    return "interface"


def analyze_layers(graph: DependencyGraph,
                   config: Optional[Dict[str, Any]] = None) -> LayerAnalysis:
    """Assign Kahn levels and flag edges that point to a lower layer.

    Nodes on a cycle never reach in-degree zero and stay at level 0.
    """
    settings = _settings(config)
    remaining = {nid: graph.in_degree(nid) for nid in graph.node_ids}
    levels = {nid: 0 for nid in graph.node_ids}
    queue = deque(nid for nid, deg in remaining.items() if deg == 0)
    while queue:
        nid = queue.popleft()
        for succ in graph.adjacency.get(nid, []):
            remaining[succ] -= 1
            levels[succ] = max(levels[succ], levels[nid] + 1)
            if remaining[succ] == 0:
                queue.append(succ)

    analysis = LayerAnalysis()
    max_level = max(levels.values()) if levels else 0
    for level in range(max_level + 1) if levels else []:
        members = [nid for nid in graph.node_ids if levels[nid] == level]
        if members:
            analysis.layers.append({"level": level, "nodes": members,
                                    "description": _layer_description(level, max_level)})

    for edge in graph.edges:
        src_level = levels.get(edge.source, 0)
        dst_level = levels.get(edge.target, 0)
        if src_level > dst_level:
            gap = src_level - dst_level
            severity = "high" if gap > 2 else "medium" if gap > 1 else "low"
            analysis.violations.append(LayerViolation(edge.source, edge.target,
                                                      src_level, dst_level, severity))
    penalty = settings["layer_violation_penalty"]
    analysis.health_score = max(0, 100 - penalty * len(analysis.violations))
    return analysis


# ---------------------------------------------------------------------------
# Change impact
# ---------------------------------------------------------------------------

def _impact_effort(total: int, buckets: Dict[str, int]) -> str:
    for label in ("small", "medium", "large"):
        if total <= buckets[label]:
            return label
    return "xlarge"


def impact_of(graph: DependencyGraph, node_id: str, max_depth: Optional[int] = None,
              importance: Optional[List[NodeImportance]] = None,
              config: Optional[Dict[str, Any]] = None) -> ChangeImpactAnalysis:
    """Collect the nodes that depend on ``node_id``, level by level.

    Walks incoming edges breadth-first over the full reverse-reachable set,
    or up to ``max_depth`` hops when a limit is given. Level 1 is the direct
    impact; deeper levels are indirect. Impacted nodes whose importance
    bucket is critical or high are listed as critical nodes.

    Args:
        importance: precomputed ``calculate_node_importance`` scores;
            computed from ``graph`` when omitted.

    Raises:
        ValueError: if ``node_id`` is not in the graph.
    """
    if not graph.has_node(node_id):
        raise ValueError(f"Unknown node: {node_id}")
    settings = _settings(config)
    depth_limit = settings["impact_max_depth"] if max_depth is None else max_depth

    result = ChangeImpactAnalysis(target_node=node_id)
    visited = {node_id}
    queue = deque([(node_id, 0)])
    while queue:
        current, level = queue.popleft()
        if depth_limit is not None and level >= depth_limit:
            continue
        for dependent in graph.reverse_adjacency.get(current, []):
            if dependent in visited:
                continue
            visited.add(dependent)
            (result.direct_impact if level == 0 else result.indirect_impact).append(dependent)
            result.impact_by_level.setdefault(level + 1, []).append(dependent)
            queue.append((dependent, level + 1))

    if importance is None:
        importance, _ = calculate_node_importance(graph, config)
    buckets = {entry.node_id: entry.importance for entry in importance}
    result.critical_nodes = [nid for nid in result.direct_impact + result.indirect_impact
                             if buckets.get(nid) in ("critical", "high")]
    result.estimated_effort = _impact_effort(result.total_impact_count,
                                             settings["impact_effort_buckets"])
    return result


# ---------------------------------------------------------------------------
# Full analysis
# ---------------------------------------------------------------------------

def analyze(graph: DependencyGraph,
            config: Optional[Dict[str, Any]] = None) -> GraphAnalysisResult:
    """Run every analysis over ``graph`` and collect warnings."""
    settings = _settings(config)
    cycles = detect_cycles(graph)
    order = topological_order(graph) if not cycles else None
    importance, converged = calculate_node_importance(graph, config)
    isolated = find_isolated_nodes(graph)

    result = GraphAnalysisResult(
        graph=graph,
        statistics=calculate_statistics(graph, cycles, order),
        circular_dependencies=cycles,
        node_importance=importance,
        isolated_nodes=isolated,
        topological_order=order,
        broken_links=list(graph.broken_links),
        layer_analysis=analyze_layers(graph, config),
        page_rank_converged=converged,
    )

    if cycles:
        result.warnings.append(f"{len(cycles)} circular dependenc"
                               f"{'y' if len(cycles) == 1 else 'ies'} detected")
        result.recommendations.append("Review the dependency chain to break each cycle")
    if isolated:
        result.warnings.append(f"{len(isolated)} isolated node(s) detected")
        result.recommendations.append("Isolated nodes lack traceability to other records")
    hubs = [n for n in importance if n.in_degree > settings["hub_in_degree"]]
    if hubs:
        result.warnings.append(f"{len(hubs)} node(s) are depended on by more than "
                               f"{settings['hub_in_degree']} elements")
        result.recommendations.append("Changes to highly depended-on nodes have wide impact")
    if graph.broken_links:
        result.warnings.append(f"{len(graph.broken_links)} broken reference(s) detected")
        result.recommendations.append("Fix or remove references to records that do not exist")

    logger.debug("Analyzed graph: %d nodes, %d cycles, %d isolated",
                 len(graph), len(cycles), len(isolated))
    return result


# ---------------------------------------------------------------------------
# Human-readable output (--human)
# ---------------------------------------------------------------------------

def _color(code: str, text: str) -> str:
    """Wrap *text* in ANSI escape if stdout is a TTY."""
    if not sys.stdout.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def print_human(result: GraphAnalysisResult) -> None:
    st = result.statistics
    print()
    print(_color("1;34", "=" * 60))
    print(_color("1;34", "  Dependency Graph Analysis"))
    print(_color("1;34", "=" * 60))
    print(f"\n  Nodes: {st.node_count}  Edges: {st.edge_count}  "
          f"Components: {st.connected_components}  Max depth: {st.max_depth}")
    print(f"  Avg in/out degree: {st.average_in_degree:.2f} / {st.average_out_degree:.2f}")
    print(f"  Layer health: {result.layer_analysis.health_score}")

    if result.circular_dependencies:
        print(f"\n  {_color('4', 'Cycles')}:")
        for cyc in result.circular_dependencies:
            code = "31" if cyc.severity == "high" else "33"
            print(f"    {_color(code, cyc.severity.upper()):<8} {' -> '.join(cyc.cycle)}")
    if result.isolated_nodes:
        print(f"\n  {_color('4', 'Isolated')}: {', '.join(result.isolated_nodes)}")
    if result.broken_links:
        print(f"\n  {_color('4', 'Broken references')}:")
        for link in result.broken_links:
            print(f"    {link.source}.{link.field} -> {_color('31', link.reference)}")

    print(f"\n  {_color('4', 'Most depended-on')}:")
    for entry in result.node_importance[:10]:
        print(f"    {entry.node_id:<32} in={entry.in_degree:<3} out={entry.out_degree:<3} "
              f"pr={entry.page_rank:.4f}  {entry.importance}")
    for warning in result.warnings:
        print(f"\n  {_color('33', 'WARNING')}: {warning}")
    print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.depgraph.graph_builder import build_graph
    from tools.maturity.quality_pipeline import load_records

    parser = argparse.ArgumentParser(description="Analyze the requirement dependency graph")
    parser.add_argument("--records", required=True,
                        help="JSON/YAML file mapping record type -> list of records")
    parser.add_argument("--impact", default=None, help="Node id to run change impact for")
    parser.add_argument("--details", action="store_true",
                        help="Include use case step and data requirement nodes")
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

    graph = build_graph(records, include_details=args.details)
    result = analyze(graph)
    impact = None
    if args.impact:
        try:
            impact = impact_of(graph, args.impact, importance=result.node_importance)
        except ValueError as exc:
            print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
            sys.exit(1)

    if args.json_mode:
        output = result.to_dict()
        if impact:
            output["impact"] = impact.to_dict()
        print(json.dumps(output, indent=2))
    elif args.human:
        print_human(result)
        if impact:
            print(f"  Impact of {impact.target_node}: {impact.total_impact_count} node(s), "
                  f"effort {impact.estimated_effort}")
    else:
        st = result.statistics
        print(f"Nodes: {st.node_count}  |  Edges: {st.edge_count}  |  "
              f"Cycles: {st.cycle_count}  |  Isolated: {st.isolated_nodes}  |  "
              f"Broken: {st.broken_links}")
        if impact:
            print(f"Impact of {impact.target_node}: {impact.total_impact_count} "
                  f"({impact.estimated_effort})")


if __name__ == "__main__":
    main()
