#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Static maturity criteria catalog.

One row per record type x level x dimension condition. Rows are frozen
``Criterion`` values built once at import; lookups go through the index
helpers at the bottom of the module. Each criterion id maps to an evaluator
``fn(record, ctx) -> (satisfied, evidence)``.

Usage:
    python tools/maturity/criteria_catalog.py --type use-case --json
    python tools/maturity/criteria_catalog.py --type actor --level 3
"""

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.maturity_model import Criterion, Dimension, MaturityLevel
from tools.maturity.records import (
    RecordType,
    field as get_field,
    has_items,
    items,
    ref_id,
    ref_ids,
    text,
    use_case_actor_ids,
    use_case_steps,
)

L1 = MaturityLevel.INITIAL.value
L2 = MaturityLevel.REPEATABLE.value
L3 = MaturityLevel.DEFINED.value
L4 = MaturityLevel.MANAGED.value
L5 = MaturityLevel.OPTIMIZED.value

STRUCTURE = Dimension.STRUCTURE.value
DETAIL = Dimension.DETAIL.value
TRACEABILITY = Dimension.TRACEABILITY.value
TESTABILITY = Dimension.TESTABILITY.value
MAINTAINABILITY = Dimension.MAINTAINABILITY.value


@dataclass
class AssessmentContext:
    """Project-wide records available to cross-record criteria."""
    use_cases: List[Mapping] = field(default_factory=list)
    actors: List[Mapping] = field(default_factory=list)
    business_requirements: List[Mapping] = field(default_factory=list)


Evaluator = Callable[[Mapping, AssessmentContext], Tuple[bool, str]]


# ---------------------------------------------------------------------------
# Use case criteria
# ---------------------------------------------------------------------------

USE_CASE_CRITERIA: Tuple[Criterion, ...] = (
    Criterion("uc-initial-basic-info", "Basic information",
              "The use case has an id, a name and a description.",
              L1, STRUCTURE, True, "id, name and description are set", 1.0),
    Criterion("uc-initial-actors", "Primary actor",
              "The acting party of the use case is identified.",
              L1, STRUCTURE, True, "actors.primary is set", 1.0),
    Criterion("uc-initial-flow", "Main flow",
              "The basic course of events is written down.",
              L1, STRUCTURE, True, "mainFlow has at least 1 step", 1.0),
    Criterion("uc-repeatable-description", "Detailed description",
              "The description explains purpose and scope.",
              L2, DETAIL, True, "description is at least 50 characters", 0.8),
    Criterion("uc-repeatable-preconditions", "Preconditions",
              "The state required before the use case starts is stated.",
              L2, STRUCTURE, True, "preconditions has at least 1 entry", 0.9),
    Criterion("uc-repeatable-postconditions", "Postconditions",
              "The state guaranteed after completion is stated.",
              L2, STRUCTURE, True, "postconditions has at least 1 entry", 0.9),
    Criterion("uc-repeatable-steps-quality", "Step quality",
              "Every main flow step names its actor, action and expected result.",
              L2, STRUCTURE, True,
              "every step has an actor, an action and an expectedResult of 5+ characters", 0.7),
    Criterion("uc-repeatable-priority", "Priority",
              "The use case carries a delivery priority.",
              L2, STRUCTURE, True, "priority is set", 0.6),
    Criterion("uc-defined-step-detail", "Complete step structure",
              "Every main flow step is addressable and complete.",
              L3, DETAIL, True,
              "every step has stepId, actor, action and expectedResult", 0.9),
    Criterion("uc-defined-alternative-flows", "Alternative flows",
              "Exception and branch paths are described.",
              L3, DETAIL, False, "alternativeFlows has at least 1 entry", 0.7),
    Criterion("uc-defined-business-coverage", "Business coverage",
              "The use case is traced to the business requirement it serves.",
              L3, TRACEABILITY, True, "businessRequirementCoverage is set", 0.8),
    Criterion("uc-defined-prerequisite-usecases", "Prerequisite use cases",
              "Use cases that must run first are referenced.",
              L3, TRACEABILITY, False, "prerequisiteUseCases has at least 1 entry", 0.6),
    Criterion("uc-defined-acceptance-criteria", "Acceptance criteria",
              "Testable acceptance criteria are listed.",
              L3, TESTABILITY, False, "acceptanceCriteria has at least 1 entry", 0.7),
    Criterion("uc-defined-complexity", "Complexity rating",
              "Implementation complexity has been judged.",
              L3, MAINTAINABILITY, False, "complexity is set", 0.5),
    Criterion("uc-managed-effort", "Effort estimate",
              "An implementation effort estimate exists.",
              L4, MAINTAINABILITY, False, "estimatedEffort is set", 0.6),
    Criterion("uc-managed-data-requirements", "Data requirements",
              "Data items read or written are listed.",
              L4, DETAIL, False, "dataRequirements has at least 1 entry", 0.7),
    Criterion("uc-managed-performance", "Performance requirements",
              "Response time or throughput targets are stated.",
              L4, DETAIL, False, "performanceRequirements has at least 1 entry", 0.6),
    Criterion("uc-managed-security", "Security policies",
              "Applicable security policies are referenced.",
              L4, TRACEABILITY, False, "securityPolicies has at least 1 entry", 0.7),
    Criterion("uc-managed-business-rules", "Business rules",
              "Applicable business rules are referenced.",
              L4, TRACEABILITY, False, "businessRules has at least 1 entry", 0.7),
    Criterion("uc-optimized-ui-requirements", "UI requirements",
              "User interface expectations are captured.",
              L5, DETAIL, False, "uiRequirements has at least 1 entry", 0.5),
    Criterion("uc-optimized-error-handling", "Step error handling",
              "Every step says how failures are handled.",
              L5, TESTABILITY, False, "every step has a non-empty errorHandling", 0.6),
    Criterion("uc-optimized-validation", "Step validation",
              "Every step lists its input validation rules.",
              L5, TESTABILITY, False, "every step has at least 1 validationRules entry", 0.6),
    Criterion("uc-optimized-business-value", "Business value",
              "The value delivered to the business is explained.",
              L5, TRACEABILITY, False, "businessValue is at least 20 characters", 0.5),
)


# ---------------------------------------------------------------------------
# Actor criteria
# ---------------------------------------------------------------------------

ACTOR_CRITERIA: Tuple[Criterion, ...] = (
    Criterion("actor-initial-basic-info", "Basic information",
              "The actor has an id and a name.",
              L1, STRUCTURE, True, "id and name are set", 1.0),
    Criterion("actor-repeatable-description", "Description",
              "The actor is described.",
              L2, DETAIL, True, "description is not empty", 0.9),
    Criterion("actor-repeatable-role", "Role",
              "The actor's role (primary, secondary, external) is set.",
              L2, STRUCTURE, True, "role is set", 0.8),
    Criterion("actor-defined-responsibilities", "Responsibilities",
              "The actor's responsibilities are enumerated.",
              L3, DETAIL, True, "responsibilities has at least 2 entries", 0.8),
    Criterion("actor-defined-description-detail", "Detailed description",
              "The description gives enough context to identify the actor.",
              L3, DETAIL, True, "description is at least 30 characters", 0.6),
    Criterion("actor-managed-usecase-coverage", "Use case coverage",
              "At least one use case names this actor.",
              L4, TRACEABILITY, True,
              "referenced as primary or secondary actor by a use case", 0.9),
    Criterion("actor-managed-description-quality", "Description quality",
              "The description is thorough.",
              L4, DETAIL, True, "description is at least 50 characters", 0.7),
    Criterion("actor-optimized-goals", "Goals",
              "The actor's own goals are documented.",
              L5, DETAIL, True, "goals has at least 1 entry", 0.5),
    Criterion("actor-optimized-comprehensive-description", "Comprehensive description",
              "The description is comprehensive.",
              L5, DETAIL, True, "description is at least 80 characters", 0.6),
)


# ---------------------------------------------------------------------------
# Business requirement criteria
# ---------------------------------------------------------------------------

BUSINESS_REQUIREMENT_CRITERIA: Tuple[Criterion, ...] = (
    Criterion("br-initial-basic-info", "Basic information",
              "The business requirement has an id and a name.",
              L1, STRUCTURE, True, "id and name are set", 1.0),
    Criterion("br-repeatable-summary", "Summary",
              "A summary of the requirement exists.",
              L2, DETAIL, True, "summary is not empty", 0.9),
    Criterion("br-repeatable-goals", "Business goals",
              "The goals the requirement pursues are listed.",
              L2, STRUCTURE, True, "businessGoals has at least 1 entry", 1.0),
    Criterion("br-repeatable-scope", "Scope",
              "What is in scope is stated.",
              L2, STRUCTURE, True, "scope.inScope has at least 1 entry", 0.9),
    Criterion("br-defined-stakeholders", "Stakeholders",
              "Stakeholders are identified.",
              L3, DETAIL, True, "stakeholders has at least 2 entries", 0.8),
    Criterion("br-defined-metrics", "Success metrics",
              "Measurable success metrics are defined.",
              L3, DETAIL, False, "successMetrics has at least 1 entry", 0.7),
    Criterion("br-defined-assumptions", "Assumptions",
              "Assumptions are documented.",
              L3, DETAIL, False, "assumptions has at least 1 entry", 0.6),
    Criterion("br-defined-constraints", "Constraints",
              "Constraints are documented.",
              L3, DETAIL, False, "constraints has at least 1 entry", 0.6),
    Criterion("br-managed-business-rules", "Business rules",
              "Business rules are captured in detail.",
              L4, DETAIL, False, "businessRules has at least 3 entries", 0.7),
    Criterion("br-managed-security", "Security policies",
              "Security policies are defined.",
              L4, DETAIL, False, "securityPolicies has at least 1 entry", 0.7),
    Criterion("br-optimized-coverage", "Goal coverage",
              "Every business goal is implemented by at least one use case.",
              L5, TRACEABILITY, False,
              "every businessGoals entry is covered by a use case", 0.8),
)


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------

def _count(record: Mapping, name: str, minimum: int, label: str) -> Tuple[bool, str]:
    n = len(items(record, name))
    if n >= minimum:
        return True, f"{label}: {n}"
    return False, f"{label}: {n} (need {minimum})"


def _min_length(record: Mapping, name: str, minimum: int) -> Tuple[bool, str]:
    n = len(text(record, name))
    return n >= minimum, f"{name} length {n} (need {minimum})"


def _present(record: Mapping, name: str) -> Tuple[bool, str]:
    value = get_field(record, name)
    if value is None or value == "" or value == [] or value == {}:
        return False, f"{name} not set"
    return True, f"{name}: {value}" if isinstance(value, (str, int, float)) else f"{name} set"


def _every_step(use_case: Mapping, predicate: Callable[[Mapping], bool],
                label: str) -> Tuple[bool, str]:
    steps = use_case_steps(use_case)
    if not steps:
        return False, "main flow is empty"
    failing = [i + 1 for i, step in enumerate(steps) if not predicate(step)]
    if failing:
        return False, f"{label} missing on step(s) {failing}"
    return True, f"{label} present on all {len(steps)} step(s)"


def _step_actor(step: Mapping) -> Optional[str]:
    return ref_id(get_field(step, "actor"))


def _uc_basic_info(uc, ctx):
    ok = bool(text(uc, "id") and text(uc, "name") and text(uc, "description"))
    return ok, "id, name and description set" if ok else "basic information incomplete"


def _uc_actors(uc, ctx):
    primary = use_case_actor_ids(uc)["primary"]
    return (True, f"primary actor: {primary[0]}") if primary else (False, "primary actor not set")


def _uc_steps_quality(uc, ctx):
    return _every_step(
        uc,
        lambda s: bool(_step_actor(s))
        and len(text(s, "action")) >= 5
        and len(text(s, "expectedResult")) >= 5,
        "actor/action/expectedResult",
    )


def _uc_step_detail(uc, ctx):
    return _every_step(
        uc,
        lambda s: bool(text(s, "stepId") and _step_actor(s)
                       and text(s, "action") and text(s, "expectedResult")),
        "stepId/actor/action/expectedResult",
    )


def _uc_business_coverage(uc, ctx):
    coverage = get_field(uc, "businessRequirementCoverage")
    if isinstance(coverage, Mapping) and ref_id(coverage.get("requirement")):
        return True, f"covers {ref_id(coverage.get('requirement'))}"
    return False, "business requirement coverage not set"


def _uc_error_handling(uc, ctx):
    return _every_step(uc, lambda s: bool(text(s, "errorHandling")), "errorHandling")


def _uc_validation(uc, ctx):
    return _every_step(uc, lambda s: has_items(s, "validationRules"), "validationRules")


def _actor_basic_info(actor, ctx):
    ok = bool(text(actor, "id") and text(actor, "name"))
    return ok, "id and name set" if ok else "basic information incomplete"


def _actor_usecase_coverage(actor, ctx):
    actor_id = text(actor, "id")
    using = []
    for uc in ctx.use_cases:
        declared = use_case_actor_ids(uc)
        if actor_id in declared["primary"] or actor_id in declared["secondary"]:
            using.append(text(uc, "id"))
    if using:
        return True, f"used by {len(using)} use case(s)"
    return False, "not referenced by any use case"


def _br_scope(br, ctx):
    scope = get_field(br, "scope")
    in_scope = items(scope, "inScope") if isinstance(scope, Mapping) else []
    if in_scope:
        return True, f"in-scope items: {len(in_scope)}"
    return False, "scope.inScope not set"


def _br_goal_coverage(br, ctx):
    goal_ids = ref_ids(items(br, "businessGoals"))
    if not goal_ids:
        return False, "no business goals to cover"
    br_id = text(br, "id")
    covered = set()
    for uc in ctx.use_cases:
        coverage = get_field(uc, "businessRequirementCoverage")
        if not isinstance(coverage, Mapping):
            continue
        if ref_id(coverage.get("requirement")) not in (None, br_id):
            continue
        covered.update(ref_ids(coverage.get("businessGoals")))
    uncovered = [g for g in goal_ids if g not in covered]
    if uncovered:
        return False, f"uncovered goals: {uncovered}"
    return True, f"all {len(goal_ids)} goal(s) covered"


_EVALUATORS: Dict[str, Evaluator] = {
    # use case
    "uc-initial-basic-info": _uc_basic_info,
    "uc-initial-actors": _uc_actors,
    "uc-initial-flow": lambda uc, ctx: _count(uc, "mainFlow", 1, "main flow steps"),
    "uc-repeatable-description": lambda uc, ctx: _min_length(uc, "description", 50),
    "uc-repeatable-preconditions": lambda uc, ctx: _count(uc, "preconditions", 1, "preconditions"),
    "uc-repeatable-postconditions": lambda uc, ctx: _count(uc, "postconditions", 1, "postconditions"),
    "uc-repeatable-steps-quality": _uc_steps_quality,
    "uc-repeatable-priority": lambda uc, ctx: _present(uc, "priority"),
    "uc-defined-step-detail": _uc_step_detail,
    "uc-defined-alternative-flows": lambda uc, ctx: _count(uc, "alternativeFlows", 1, "alternative flows"),
    "uc-defined-business-coverage": _uc_business_coverage,
    "uc-defined-prerequisite-usecases": lambda uc, ctx: _count(uc, "prerequisiteUseCases", 1, "prerequisite use cases"),
    "uc-defined-acceptance-criteria": lambda uc, ctx: _count(uc, "acceptanceCriteria", 1, "acceptance criteria"),
    "uc-defined-complexity": lambda uc, ctx: _present(uc, "complexity"),
    "uc-managed-effort": lambda uc, ctx: _present(uc, "estimatedEffort"),
    "uc-managed-data-requirements": lambda uc, ctx: _count(uc, "dataRequirements", 1, "data requirements"),
    "uc-managed-performance": lambda uc, ctx: _count(uc, "performanceRequirements", 1, "performance requirements"),
    "uc-managed-security": lambda uc, ctx: _count(uc, "securityPolicies", 1, "security policies"),
    "uc-managed-business-rules": lambda uc, ctx: _count(uc, "businessRules", 1, "business rules"),
    "uc-optimized-ui-requirements": lambda uc, ctx: _count(uc, "uiRequirements", 1, "UI requirements"),
    "uc-optimized-error-handling": _uc_error_handling,
    "uc-optimized-validation": _uc_validation,
    "uc-optimized-business-value": lambda uc, ctx: _min_length(uc, "businessValue", 20),
    # actor
    "actor-initial-basic-info": _actor_basic_info,
    "actor-repeatable-description": lambda a, ctx: _min_length(a, "description", 1),
    "actor-repeatable-role": lambda a, ctx: _present(a, "role"),
    "actor-defined-responsibilities": lambda a, ctx: _count(a, "responsibilities", 2, "responsibilities"),
    "actor-defined-description-detail": lambda a, ctx: _min_length(a, "description", 30),
    "actor-managed-usecase-coverage": _actor_usecase_coverage,
    "actor-managed-description-quality": lambda a, ctx: _min_length(a, "description", 50),
    "actor-optimized-goals": lambda a, ctx: _count(a, "goals", 1, "goals"),
    "actor-optimized-comprehensive-description": lambda a, ctx: _min_length(a, "description", 80),
    # business requirement
    "br-initial-basic-info": _actor_basic_info,
    "br-repeatable-summary": lambda br, ctx: _min_length(br, "summary", 1),
    "br-repeatable-goals": lambda br, ctx: _count(br, "businessGoals", 1, "business goals"),
    "br-repeatable-scope": _br_scope,
    "br-defined-stakeholders": lambda br, ctx: _count(br, "stakeholders", 2, "stakeholders"),
    "br-defined-metrics": lambda br, ctx: _count(br, "successMetrics", 1, "success metrics"),
    "br-defined-assumptions": lambda br, ctx: _count(br, "assumptions", 1, "assumptions"),
    "br-defined-constraints": lambda br, ctx: _count(br, "constraints", 1, "constraints"),
    "br-managed-business-rules": lambda br, ctx: _count(br, "businessRules", 3, "business rules"),
    "br-managed-security": lambda br, ctx: _count(br, "securityPolicies", 1, "security policies"),
    "br-optimized-coverage": _br_goal_coverage,
}


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

_CATALOG: Dict[str, Tuple[Criterion, ...]] = {
    RecordType.USE_CASE.value: USE_CASE_CRITERIA,
    RecordType.ACTOR.value: ACTOR_CRITERIA,
    RecordType.BUSINESS_REQUIREMENT.value: BUSINESS_REQUIREMENT_CRITERIA,
}

_BY_ID: Dict[str, Criterion] = {
    c.id: c for rows in _CATALOG.values() for c in rows
}

_BY_LEVEL_DIMENSION: Dict[Tuple[str, int, str], Tuple[Criterion, ...]] = {}
for _rtype, _rows in _CATALOG.items():
    for _c in _rows:
        _key = (_rtype, _c.level, _c.dimension)
        _BY_LEVEL_DIMENSION[_key] = _BY_LEVEL_DIMENSION.get(_key, ()) + (_c,)


def criteria_for(record_type: str) -> Tuple[Criterion, ...]:
    """Return every criterion for a record type (empty for unknown types)."""
    return _CATALOG.get(record_type, ())


def criteria_at(record_type: str, level: int, dimension: str) -> Tuple[Criterion, ...]:
    return _BY_LEVEL_DIMENSION.get((record_type, level, dimension), ())


def get_criterion(criterion_id: str) -> Optional[Criterion]:
    return _BY_ID.get(criterion_id)


def all_criteria() -> List[Criterion]:
    return list(_BY_ID.values())


def evaluator_for(criterion_id: str) -> Optional[Evaluator]:
    return _EVALUATORS.get(criterion_id)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="List maturity criteria")
    parser.add_argument("--type", dest="record_type", default=None,
                        choices=sorted(_CATALOG.keys()),
                        help="Only criteria for this record type")
    parser.add_argument("--level", type=int, default=None, help="Only this level")
    parser.add_argument("--json", dest="json_mode", action="store_true")
    args = parser.parse_args()

    rows = criteria_for(args.record_type) if args.record_type else all_criteria()
    if args.level:
        rows = [c for c in rows if c.level == args.level]

    if args.json_mode:
        print(json.dumps([c.to_dict() for c in rows], indent=2))
        return
    for c in rows:
        flag = "REQ" if c.required else "opt"
        print(f"  L{c.level} [{flag}] {c.id:<45} {c.dimension:<16} w={c.weight:.1f}  {c.condition}")


if __name__ == "__main__":
    main()
