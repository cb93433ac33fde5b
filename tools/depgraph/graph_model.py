#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Dependency graph data model.

Nodes are kept in insertion order; edges in a list. The forward and reverse
adjacency indices are derived from the edge list and rebuilt whenever edges
change, so they cannot drift from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class NodeType(str, Enum):
    BUSINESS_REQUIREMENT = "business-requirement"
    BUSINESS_GOAL = "business-goal"
    BUSINESS_RULE = "business-rule"
    SECURITY_POLICY = "security-policy"
    ACTOR = "actor"
    USE_CASE = "use-case"
    USE_CASE_STEP = "use-case-step"
    DATA_REQUIREMENT = "data-requirement"
    SCREEN = "screen"
    SCREEN_FLOW = "screen-flow"
    VALIDATION_RULE = "validation-rule"
    UNKNOWN = "unknown"


class EdgeType(str, Enum):
    REFERENCES = "references"
    IMPLEMENTS = "implements"
    USES = "uses"
    CONTAINS = "contains"
    DEPENDS_ON = "depends-on"
    AFFECTS = "affects"
    TRIGGERS = "triggers"


@dataclass
class GraphNode:
    id: str
    name: str
    type: NodeType
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "type": self.type.value,
                "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: EdgeType
    weight: float = 1.0
    label: str = ""

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.target, self.type.value)

    def to_dict(self) -> dict:
        data = {"from": self.source, "to": self.target, "type": self.type.value,
                "weight": self.weight}
        if self.label:
            data["label"] = self.label
        return data


@dataclass(frozen=True)
class BrokenLink:
    """A cross-reference whose target id matches no node."""
    source: str
    reference: str
    field: str
    edge_type: EdgeType

    def to_dict(self) -> dict:
        return {"source": self.source, "reference": self.reference,
                "field": self.field, "edge_type": self.edge_type.value}


class DependencyGraph:
    """Directed graph of record cross-references."""

    def __init__(self, nodes: Optional[Iterable[GraphNode]] = None,
                 edges: Optional[Iterable[GraphEdge]] = None):
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: List[GraphEdge] = []
        self._edge_keys: set = set()
        self.adjacency: Dict[str, List[str]] = {}
        self.reverse_adjacency: Dict[str, List[str]] = {}
        self.broken_links: List[BrokenLink] = []
        self.skipped_records: List[Dict[str, Any]] = []
        for node in nodes or []:
            self.add_node(node)
        for edge in edges or []:
            self._append_edge(edge)
        self.rebuild_indices()

    # -- nodes --------------------------------------------------------------

    @property
    def nodes(self) -> Dict[str, GraphNode]:
        return dict(self._nodes)

    @property
    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def add_node(self, node: GraphNode) -> bool:
        """Add a node; returns False if the id already exists."""
        if node.id in self._nodes:
            return False
        self._nodes[node.id] = node
        self.adjacency.setdefault(node.id, [])
        self.reverse_adjacency.setdefault(node.id, [])
        return True

    # -- edges --------------------------------------------------------------

    @property
    def edges(self) -> List[GraphEdge]:
        return list(self._edges)

    def _append_edge(self, edge: GraphEdge) -> bool:
        for endpoint in (edge.source, edge.target):
            if endpoint not in self._nodes:
                raise ValueError(f"edge endpoint '{endpoint}' is not a node")
        if edge.key in self._edge_keys:
            return False
        self._edge_keys.add(edge.key)
        self._edges.append(edge)
        return True

    def add_edge(self, edge: GraphEdge) -> bool:
        """Add an edge and rebuild adjacency.

        Raises:
            ValueError: if either endpoint is not a node.
        """
        added = self._append_edge(edge)
        if added:
            self.rebuild_indices()
        return added

    def add_edges(self, edges: Iterable[GraphEdge]) -> int:
        count = sum(1 for e in edges if self._append_edge(e))
        self.rebuild_indices()
        return count

    def rebuild_indices(self) -> None:
        """Recompute both adjacency maps from the edge list."""
        adjacency: Dict[str, List[str]] = {nid: [] for nid in self._nodes}
        reverse: Dict[str, List[str]] = {nid: [] for nid in self._nodes}
        for edge in self._edges:
            if edge.target not in adjacency[edge.source]:
                adjacency[edge.source].append(edge.target)
            if edge.source not in reverse[edge.target]:
                reverse[edge.target].append(edge.source)
        self.adjacency = adjacency
        self.reverse_adjacency = reverse

    def edges_between(self, source: str, target: str) -> List[GraphEdge]:
        return [e for e in self._edges if e.source == source and e.target == target]

    def in_degree(self, node_id: str) -> int:
        return len(self.reverse_adjacency.get(node_id, []))

    def out_degree(self, node_id: str) -> int:
        return len(self.adjacency.get(node_id, []))

    def __len__(self) -> int:
        return len(self._nodes)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self._nodes.values()],
            "edges": [e.to_dict() for e in self._edges],
            "broken_links": [b.to_dict() for b in self.broken_links],
            "skipped_records": list(self.skipped_records),
        }
