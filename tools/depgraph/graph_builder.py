#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Build a dependency graph from typed requirement records.

Node sources:
  - business requirements, with one child node per business goal,
    business rule and security policy (``<req>-goal-<item>`` etc.)
  - actors, use cases, screens, screen flows, validation rules
  - records under an unrecognized type tag (as ``unknown`` nodes)

Edge sources:
  - requirement  -CONTAINS->    goal / rule / policy
  - use case     -USES->        primary, secondary and step actors
  - use case     -IMPLEMENTS->  covered requirement and goals
  - use case     -DEPENDS_ON->  business rules, security policies,
                                prerequisite use cases
  - use case     -REFERENCES->  screens named by its steps
  - screen flow  -CONTAINS->    screens; -REFERENCES-> related use case
  - screen       -REFERENCES->  validation rules; -DEPENDS_ON-> business rules
  - validation   -IMPLEMENTS->  related business rule

A reference that resolves to no node is recorded on ``graph.broken_links``
(once per source, field and reference) and logged; it never becomes an edge.
A record that references itself gets a self edge, which the analyzer
reports as a cycle of length one.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from tools.depgraph.graph_model import (
    BrokenLink,
    DependencyGraph,
    EdgeType,
    GraphEdge,
    GraphNode,
    NodeType,
)
from tools.maturity.records import (
    RecordType,
    display_name,
    field,
    group_records,
    items,
    record_id,
    ref_id,
    ref_ids,
    text,
    use_case_actor_ids,
    use_case_steps,
)

logger = logging.getLogger("reqgraph.depgraph.builder")

_RECORD_NODE_TYPES: Dict[str, NodeType] = {
    RecordType.BUSINESS_REQUIREMENT.value: NodeType.BUSINESS_REQUIREMENT,
    RecordType.ACTOR.value: NodeType.ACTOR,
    RecordType.USE_CASE.value: NodeType.USE_CASE,
    RecordType.SCREEN.value: NodeType.SCREEN,
    RecordType.SCREEN_FLOW.value: NodeType.SCREEN_FLOW,
    RecordType.VALIDATION_RULE.value: NodeType.VALIDATION_RULE,
}

# (record field, child node type, id infix)
_REQUIREMENT_CHILDREN = (
    ("businessGoals", NodeType.BUSINESS_GOAL, "goal"),
    ("businessRules", NodeType.BUSINESS_RULE, "rule"),
    ("securityPolicies", NodeType.SECURITY_POLICY, "policy"),
)

_BUILD_ORDER = [
    RecordType.BUSINESS_REQUIREMENT.value,
    RecordType.ACTOR.value,
    RecordType.USE_CASE.value,
    RecordType.SCREEN.value,
    RecordType.SCREEN_FLOW.value,
    RecordType.VALIDATION_RULE.value,
]


class _Resolver:
    """Map reference ids onto node ids.

    Record nodes resolve by their own id. Requirement children resolve both
    by their generated node id and by the item id written in the record,
    scoped by child type so a goal id never resolves to a rule node.
    """

    def __init__(self, graph: DependencyGraph):
        self.graph = graph
        self.children: Dict[NodeType, Dict[str, str]] = {
            NodeType.BUSINESS_GOAL: {},
            NodeType.BUSINESS_RULE: {},
            NodeType.SECURITY_POLICY: {},
        }

    def register_child(self, node_type: NodeType, item_id: str, node_id: str) -> None:
        table = self.children[node_type]
        if item_id in table and table[item_id] != node_id:
            logger.warning("%s id '%s' is declared by more than one requirement; "
                           "references resolve to %s", node_type.value, item_id, table[item_id])
            return
        table[item_id] = node_id

    def resolve(self, reference: str, *node_types: NodeType) -> Optional[str]:
        node = self.graph.get_node(reference)
        if node is not None and node.type in node_types:
            return reference
        for node_type in node_types:
            target = self.children.get(node_type, {}).get(reference)
            if target:
                return target
        return None


class _Builder:
    def __init__(self, include_details: bool):
        self.graph = DependencyGraph()
        self.resolver = _Resolver(self.graph)
        self.include_details = include_details
        self._pending: List[GraphEdge] = []
        self._broken_seen: set = set()

    # -- nodes ----------------------------------------------------------------

    def add_record_node(self, record: Mapping, node_type: NodeType, type_tag: str,
                        metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        rid = record_id(record)
        if rid is None:
            self.graph.skipped_records.append({"type": type_tag, "reason": "missing id"})
            logger.warning("Skipping %s record without an id", type_tag)
            return None
        node = GraphNode(id=rid, name=display_name(record) or rid, type=node_type,
                         metadata={k: v for k, v in (metadata or {}).items() if v is not None})
        if not self.graph.add_node(node):
            self.graph.skipped_records.append(
                {"type": type_tag, "id": rid, "reason": "duplicate id"})
            logger.warning("Duplicate node id '%s' (%s), keeping the first", rid, type_tag)
            return None
        return rid

    def add_requirement(self, req: Mapping) -> None:
        req_id = self.add_record_node(req, NodeType.BUSINESS_REQUIREMENT,
                                      RecordType.BUSINESS_REQUIREMENT.value)
        if req_id is None:
            return
        for field_name, child_type, infix in _REQUIREMENT_CHILDREN:
            for index, item in enumerate(items(req, field_name)):
                item_id = ref_id(item) or str(index)
                child_id = f"{req_id}-{infix}-{item_id}"
                label = ""
                if isinstance(item, Mapping):
                    label = text(item, "description") or text(item, "name")
                self.graph.add_node(GraphNode(
                    id=child_id, name=label or item_id, type=child_type,
                    metadata={"requirement": req_id, "item_id": item_id}))
                self.resolver.register_child(child_type, item_id, child_id)
                self.link(req_id, child_id, EdgeType.CONTAINS)

    # -- edges ----------------------------------------------------------------

    def link(self, source: str, target: str, edge_type: EdgeType, label: str = "") -> None:
        self._pending.append(GraphEdge(source=source, target=target, type=edge_type, label=label))

    def link_ref(self, source: str, reference: Optional[str], field_name: str,
                 edge_type: EdgeType, *target_types: NodeType) -> None:
        """Link ``source`` to a referenced node, or record a broken link."""
        if not reference:
            return
        target = self.resolver.resolve(reference, *target_types)
        if target is None:
            key = (source, field_name, reference)
            if key in self._broken_seen:
                return
            self._broken_seen.add(key)
            self.graph.broken_links.append(BrokenLink(
                source=source, reference=reference, field=field_name, edge_type=edge_type))
            logger.warning("Broken reference %s.%s -> '%s'", source, field_name, reference)
            return
        if target == source:
            logger.warning("Self reference on %s.%s", source, field_name)
        self.link(source, target, edge_type, label=field_name)

    def link_use_case(self, uc: Mapping, uc_id: str) -> None:
        declared = use_case_actor_ids(uc)
        for actor in declared["primary"]:
            self.link_ref(uc_id, actor, "actors.primary", EdgeType.USES, NodeType.ACTOR)
        for actor in declared["secondary"]:
            self.link_ref(uc_id, actor, "actors.secondary", EdgeType.USES, NodeType.ACTOR)

        steps = use_case_steps(uc, include_alternatives=True)
        for step in steps:
            self.link_ref(uc_id, ref_id(field(step, "actor")), "steps.actor",
                          EdgeType.USES, NodeType.ACTOR)
            self.link_ref(uc_id, ref_id(field(step, "screen")), "steps.screen",
                          EdgeType.REFERENCES, NodeType.SCREEN)

        coverage = field(uc, "businessRequirementCoverage")
        if isinstance(coverage, Mapping):
            self.link_ref(uc_id, ref_id(coverage.get("requirement")),
                          "businessRequirementCoverage.requirement",
                          EdgeType.IMPLEMENTS, NodeType.BUSINESS_REQUIREMENT)
            for goal in ref_ids(coverage.get("businessGoals")):
                self.link_ref(uc_id, goal, "businessRequirementCoverage.businessGoals",
                              EdgeType.IMPLEMENTS, NodeType.BUSINESS_GOAL)
            for rule in ref_ids(coverage.get("businessRules")):
                self.link_ref(uc_id, rule, "businessRequirementCoverage.businessRules",
                              EdgeType.DEPENDS_ON, NodeType.BUSINESS_RULE)
            for policy in ref_ids(coverage.get("securityPolicies")):
                self.link_ref(uc_id, policy, "businessRequirementCoverage.securityPolicies",
                              EdgeType.DEPENDS_ON, NodeType.SECURITY_POLICY)

        for rule in ref_ids(field(uc, "businessRules")):
            self.link_ref(uc_id, rule, "businessRules", EdgeType.DEPENDS_ON, NodeType.BUSINESS_RULE)
        for policy in ref_ids(field(uc, "securityPolicies")):
            self.link_ref(uc_id, policy, "securityPolicies", EdgeType.DEPENDS_ON,
                          NodeType.SECURITY_POLICY)
        for prereq in ref_ids(field(uc, "prerequisiteUseCases")):
            self.link_ref(uc_id, prereq, "prerequisiteUseCases", EdgeType.DEPENDS_ON,
                          NodeType.USE_CASE)

        if self.include_details:
            self.add_use_case_details(uc, uc_id)

    def add_use_case_details(self, uc: Mapping, uc_id: str) -> None:
        for index, step in enumerate(use_case_steps(uc), start=1):
            step_key = text(step, "stepId") or str(index)
            step_id = f"{uc_id}-step-{step_key}"
            self.graph.add_node(GraphNode(
                id=step_id, name=text(step, "action") or step_id, type=NodeType.USE_CASE_STEP,
                metadata={"use_case": uc_id, "order": index}))
            self.link(uc_id, step_id, EdgeType.CONTAINS)
            # broken step actors are already reported against the use case
            actor = self.resolver.resolve(ref_id(field(step, "actor")) or "", NodeType.ACTOR)
            if actor:
                self.link(step_id, actor, EdgeType.USES)
        for index, requirement in enumerate(items(uc, "dataRequirements"), start=1):
            data_id = f"{uc_id}-data-{index}"
            self.graph.add_node(GraphNode(
                id=data_id, name=str(requirement), type=NodeType.DATA_REQUIREMENT,
                metadata={"use_case": uc_id}))
            self.link(uc_id, data_id, EdgeType.USES)

    def link_screen(self, screen: Mapping, screen_id: str) -> None:
        for input_field in items(screen, "inputFields"):
            if not isinstance(input_field, Mapping):
                continue
            for rule in ref_ids(input_field.get("validationRules")):
                self.link_ref(screen_id, rule, "inputFields.validationRules",
                              EdgeType.REFERENCES, NodeType.VALIDATION_RULE)
        for rule in ref_ids(field(screen, "businessRules")):
            self.link_ref(screen_id, rule, "businessRules", EdgeType.DEPENDS_ON,
                          NodeType.BUSINESS_RULE)

    def link_screen_flow(self, flow: Mapping, flow_id: str) -> None:
        screens = ref_ids(field(flow, "screens"))
        for transition in items(flow, "transitions"):
            if isinstance(transition, Mapping):
                for end in ("from", "to"):
                    sid = ref_id(transition.get(end))
                    if sid and sid not in screens:
                        screens.append(sid)
        for sid in screens:
            self.link_ref(flow_id, sid, "screens", EdgeType.CONTAINS, NodeType.SCREEN)
        self.link_ref(flow_id, ref_id(field(flow, "relatedUseCase")), "relatedUseCase",
                      EdgeType.REFERENCES, NodeType.USE_CASE)

    def link_validation_rule(self, rule: Mapping, rule_id: str) -> None:
        self.link_ref(rule_id, ref_id(field(rule, "relatedBusinessRule")),
                      "relatedBusinessRule", EdgeType.IMPLEMENTS, NodeType.BUSINESS_RULE)

    def flush(self) -> None:
        self.graph.add_edges(self._pending)
        self._pending = []


def build_graph(records_by_type: Mapping[Any, List[Mapping]],
                include_details: bool = False) -> DependencyGraph:
    """Build a ``DependencyGraph`` from records grouped by type tag.

    Every node is created before any edge so references resolve regardless
    of the order records appear in. Records under an unknown tag become
    ``unknown`` nodes with no edges.

    Args:
        records_by_type: mapping of record type tag to list of records.
        include_details: also add use case step and data requirement nodes.

    Raises:
        TypeError: if ``records_by_type`` is None.
    """
    grouped = group_records(records_by_type)
    builder = _Builder(include_details)

    created: Dict[str, List[tuple]] = {tag: [] for tag in _BUILD_ORDER}
    for tag in _BUILD_ORDER:
        for record in grouped.get(tag, []):
            if tag == RecordType.BUSINESS_REQUIREMENT.value:
                builder.add_requirement(record)
                continue
            metadata: Dict[str, Any] = {}
            if tag == RecordType.ACTOR.value:
                metadata = {"role": field(record, "role")}
            elif tag == RecordType.USE_CASE.value:
                metadata = {"priority": field(record, "priority"),
                            "complexity": field(record, "complexity")}
            node_id = builder.add_record_node(record, _RECORD_NODE_TYPES[tag], tag, metadata)
            if node_id:
                created[tag].append((record, node_id))

    for tag, records in grouped.items():
        if tag in _RECORD_NODE_TYPES:
            continue
        logger.warning("Unrecognized record type '%s' (%d record(s)), adding as unknown nodes",
                       tag, len(records))
        for record in records:
            builder.add_record_node(record, NodeType.UNKNOWN, tag, {"record_type": tag})

    for record, node_id in created[RecordType.USE_CASE.value]:
        builder.link_use_case(record, node_id)
    for record, node_id in created[RecordType.SCREEN.value]:
        builder.link_screen(record, node_id)
    for record, node_id in created[RecordType.SCREEN_FLOW.value]:
        builder.link_screen_flow(record, node_id)
    for record, node_id in created[RecordType.VALIDATION_RULE.value]:
        builder.link_validation_rule(record, node_id)
    builder.flush()

    graph = builder.graph
    logger.info("Built graph: %d nodes, %d edges, %d broken link(s)",
                len(graph), len(graph.edges), len(graph.broken_links))
    return graph
