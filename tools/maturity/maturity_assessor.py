#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Maturity assessor for requirement records.

Evaluates each actor, use case and business requirement record against the
criteria catalog and derives:
  - per-criterion pass/fail with evidence
  - per-dimension level and weighted completion rate
  - an overall level, climbed sequentially: level L is reached only when
    every required criterion at levels 1..L is satisfied (floor INITIAL)
  - next steps toward the following level

The project level is the minimum element level (weakest link).

Usage:
    python tools/maturity/maturity_assessor.py --records records.json --json
    python tools/maturity/maturity_assessor.py --records records.yaml --human
    python tools/maturity/maturity_assessor.py --records new.json --compare old.json --json
"""

import argparse
import dataclasses
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.config import get_section
from tools.maturity.criteria_catalog import (
    AssessmentContext,
    criteria_for,
    evaluator_for,
)
from tools.maturity.maturity_model import (
    DIMENSIONS,
    LEVELS,
    MAX_LEVEL,
    MIN_LEVEL,
    Criterion,
    CriterionEvaluation,
    DimensionMaturity,
    ElementMaturityAssessment,
    MaturityComparison,
    NextStep,
    ProjectDimension,
    ProjectMaturityAssessment,
    level_name,
)
from tools.maturity.records import (
    ASSESSABLE_TYPES,
    RecordType,
    display_name,
    group_records,
    normalize_type,
    record_id,
)

logger = logging.getLogger("reqgraph.maturity.assessor")

_DEFAULT_ASSESSMENT: Dict[str, Any] = {
    "strength_threshold": 0.8,
    "improvement_threshold": 0.6,
    "weak_dimension_threshold": 0.7,
    "max_next_steps": 5,
    "weak_dimensions_considered": 2,
    # unsatisfied-criteria count -> effort bucket (upper bounds, inclusive)
    "effort_buckets": {"small": 3, "medium": 8, "large": 15},
}

EFFORT_LABELS: Dict[str, str] = {
    "small": "small (1-2 hours)",
    "medium": "medium (half a day)",
    "large": "large (1-2 days)",
    "xlarge": "xlarge (3+ days)",
}

# Element ordering within a project assessment.
_TYPE_ORDER = [
    RecordType.BUSINESS_REQUIREMENT.value,
    RecordType.ACTOR.value,
    RecordType.USE_CASE.value,
]


def _settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return get_section("assessment", _DEFAULT_ASSESSMENT, config)


def _rate(satisfied: float, total: float) -> float:
    return round(satisfied / total, 4) if total > 0 else 0.0


def estimate_effort(unsatisfied_count: int, settings: Optional[Dict[str, Any]] = None) -> str:
    """Map the number of unsatisfied criteria to an effort bucket."""
    buckets = (settings or _settings())["effort_buckets"]
    if unsatisfied_count <= buckets["small"]:
        return "small"
    if unsatisfied_count <= buckets["medium"]:
        return "medium"
    if unsatisfied_count <= buckets["large"]:
        return "large"
    return "xlarge"


# ---------------------------------------------------------------------------
# Criterion evaluation
# ---------------------------------------------------------------------------

def _effective_criteria(record_type: str,
                        required_overrides: Optional[Mapping[str, bool]]) -> List[Criterion]:
    """Return the catalog rows for a type with context overrides applied.

    The catalog itself is never modified; overridden rows are copies.
    """
    rows = list(criteria_for(record_type))
    if not required_overrides:
        return rows
    return [
        dataclasses.replace(c, required=bool(required_overrides[c.id]))
        if c.id in required_overrides and required_overrides[c.id] != c.required
        else c
        for c in rows
    ]


def evaluate_criterion(record: Mapping, criterion: Criterion,
                       ctx: AssessmentContext) -> CriterionEvaluation:
    """Evaluate one criterion; malformed fields count as a failure."""
    evaluator = evaluator_for(criterion.id)
    if evaluator is None:
        satisfied, evidence = False, "no evaluator registered"
    else:
        try:
            satisfied, evidence = evaluator(record, ctx)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Criterion %s failed on %s: %s",
                           criterion.id, record_id(record), exc)
            satisfied, evidence = False, f"evaluation error: {exc}"
    suggestion = None if satisfied else f"{criterion.name}: ensure {criterion.condition}"
    return CriterionEvaluation(
        criterion=criterion,
        satisfied=bool(satisfied),
        score=1 if satisfied else 0,
        evidence=evidence,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Level and dimension computation
# ---------------------------------------------------------------------------

def compute_overall_level(evaluations: List[CriterionEvaluation]) -> int:
    """Highest level L with every required criterion at levels <= L satisfied.

    Levels are climbed one at a time; the first level with an unsatisfied
    required criterion stops the climb. INITIAL is the floor.
    """
    level = MIN_LEVEL
    for candidate in LEVELS:
        required = [e for e in evaluations
                    if e.criterion.level == candidate and e.criterion.required]
        if all(e.satisfied for e in required):
            level = candidate
        else:
            break
    return level


def compute_dimension(dimension: str,
                      evaluations: List[CriterionEvaluation]) -> DimensionMaturity:
    """Level, completion and missing criteria for one dimension."""
    dim_evals = [e for e in evaluations if e.criterion.dimension == dimension]

    level_completion: Dict[int, float] = {}
    for level in LEVELS:
        upto = [e for e in dim_evals if e.criterion.level <= level]
        total = sum(e.criterion.weight for e in upto)
        done = sum(e.criterion.weight for e in upto if e.satisfied)
        level_completion[level] = _rate(done, total)

    # Levels without criteria in this dimension neither raise nor block.
    current = MIN_LEVEL
    missing: List[Criterion] = []
    for level in LEVELS:
        at_level = [e for e in dim_evals if e.criterion.level == level]
        if not at_level:
            continue
        unsatisfied = [e.criterion for e in at_level if not e.satisfied]
        if unsatisfied:
            missing = unsatisfied
            break
        current = level

    return DimensionMaturity(
        dimension=dimension,
        current_level=current,
        completion_rate=level_completion[MAX_LEVEL],
        level_completion=level_completion,
        evaluations=dim_evals,
        missing_criteria=missing,
    )


def generate_next_steps(overall_level: int,
                        evaluations: List[CriterionEvaluation],
                        dimensions: Dict[str, DimensionMaturity],
                        settings: Optional[Dict[str, Any]] = None) -> List[NextStep]:
    """Required criteria for the next level first, then weak dimensions."""
    settings = settings or _settings()
    unsatisfied = [e.criterion for e in evaluations if not e.satisfied]
    next_level = min(overall_level + 1, MAX_LEVEL)
    steps: List[NextStep] = []
    seen = set()

    blocking = sorted(
        (c for c in unsatisfied if c.level == next_level and c.required),
        key=lambda c: -c.weight,
    )
    for c in blocking:
        seen.add(c.id)
        steps.append(NextStep(
            priority="high",
            action=f"{c.name}: {c.description}",
            rationale=f"Required to reach level {next_level} ({level_name(next_level)})",
            unlocks_criteria=[c.id],
            estimated_time="small",
        ))

    weak = sorted(
        (d for d in dimensions.values()
         if d.completion_rate < settings["weak_dimension_threshold"]),
        key=lambda d: d.completion_rate,
    )
    for dim in weak[:settings["weak_dimensions_considered"]]:
        candidates = sorted(
            (c for c in unsatisfied if c.dimension == dim.dimension and c.id not in seen),
            key=lambda c: (c.level, -c.weight),
        )
        if candidates:
            c = candidates[0]
            seen.add(c.id)
            steps.append(NextStep(
                priority="medium",
                action=f"{c.name}: {c.description}",
                rationale=f"Strengthen {dim.dimension} "
                          f"(currently {dim.completion_rate * 100:.0f}%)",
                unlocks_criteria=[c.id],
                estimated_time="medium",
            ))

    return steps[:settings["max_next_steps"]]


# ---------------------------------------------------------------------------
# Element assessment
# ---------------------------------------------------------------------------

def _build_context(collection: Optional[Mapping[str, List[Mapping]]]) -> AssessmentContext:
    if not collection:
        return AssessmentContext()
    return AssessmentContext(
        use_cases=list(collection.get(RecordType.USE_CASE.value, [])),
        actors=list(collection.get(RecordType.ACTOR.value, [])),
        business_requirements=list(collection.get(RecordType.BUSINESS_REQUIREMENT.value, [])),
    )


def assess(record: Mapping, record_type: Any,
           collection: Optional[Mapping[Any, List[Mapping]]] = None,
           required_overrides: Optional[Mapping[str, bool]] = None,
           config: Optional[Dict[str, Any]] = None) -> ElementMaturityAssessment:
    """Assess a single record.

    Args:
        record: The record mapping (needs at least ``id``).
        record_type: Explicit type tag (``RecordType`` or its string value).
        collection: Optional records-by-type for cross-record criteria.
        required_overrides: criterion id -> effective required flag.

    Never raises for incomplete records; an unrecognized type produces an
    empty assessment with ``recognized=False``.
    """
    settings = _settings(config)
    rtype = normalize_type(record_type)
    elem_id = record_id(record) or ""
    criteria = _effective_criteria(rtype, required_overrides)

    if not criteria:
        logger.info("No maturity criteria for record type '%s' (%s)", rtype, elem_id)
        return ElementMaturityAssessment(
            element_id=elem_id,
            element_type=rtype,
            dimensions={d: DimensionMaturity(dimension=d,
                                             level_completion={lv: 0.0 for lv in LEVELS})
                        for d in DIMENSIONS},
            estimated_effort=estimate_effort(0, settings),
            recognized=False,
            element_name=display_name(record) if isinstance(record, Mapping) else "",
        )

    grouped = group_records(collection) if collection else {}
    ctx = _build_context(grouped)
    evaluations = [evaluate_criterion(record, c, ctx) for c in criteria]

    overall_level = compute_overall_level(evaluations)
    total = sum(e.criterion.weight for e in evaluations)
    done = sum(e.criterion.weight for e in evaluations if e.satisfied)
    dimensions = {d: compute_dimension(d, evaluations) for d in DIMENSIONS}
    unsatisfied_count = sum(1 for e in evaluations if not e.satisfied)

    return ElementMaturityAssessment(
        element_id=elem_id,
        element_type=rtype,
        overall_level=overall_level,
        overall_completion_rate=_rate(done, total),
        dimensions=dimensions,
        evaluations=evaluations,
        next_steps=generate_next_steps(overall_level, evaluations, dimensions, settings),
        estimated_effort=estimate_effort(unsatisfied_count, settings),
        recognized=True,
        element_name=display_name(record),
    )


# ---------------------------------------------------------------------------
# Project assessment
# ---------------------------------------------------------------------------

def _overall_dimensions(elements: List[ElementMaturityAssessment]) -> Dict[str, ProjectDimension]:
    result: Dict[str, ProjectDimension] = {}
    for dim in DIMENSIONS:
        values = [e.dimensions[dim] for e in elements if dim in e.dimensions]
        if not values:
            result[dim] = ProjectDimension(dimension=dim, current_level=MIN_LEVEL,
                                           completion_rate=0.0)
            continue
        result[dim] = ProjectDimension(
            dimension=dim,
            current_level=min(v.current_level for v in values),
            completion_rate=round(sum(v.completion_rate for v in values) / len(values), 4),
        )
    return result


def _project_actions(elements: List[ElementMaturityAssessment],
                     dimensions: Dict[str, ProjectDimension],
                     settings: Dict[str, Any]) -> List[NextStep]:
    actions: List[NextStep] = []
    if elements:
        lowest = min(e.overall_level for e in elements)
        laggards = [e.element_id for e in elements if e.overall_level == lowest]
        actions.append(NextStep(
            priority="high",
            action=f"Raise the {len(laggards)} element(s) at level {lowest} "
                   f"({level_name(lowest)})",
            rationale="The project level is capped by its weakest element",
            unlocks_criteria=[],
            estimated_time="large",
        ))
    if dimensions:
        weakest = min(dimensions.values(), key=lambda d: (d.completion_rate, DIMENSIONS.index(d.dimension)))
        if weakest.completion_rate < settings["weak_dimension_threshold"]:
            missing = sorted({
                c.id for e in elements
                for c in e.dimensions[weakest.dimension].missing_criteria
            })
            actions.append(NextStep(
                priority="high",
                action=f"Strengthen {weakest.dimension} across the project",
                rationale=f"Current completion {weakest.completion_rate * 100:.0f}%",
                unlocks_criteria=missing,
                estimated_time="large",
            ))
    return actions


def assess_project(records_by_type: Mapping[Any, List[Mapping]],
                   required_overrides: Optional[Mapping[str, bool]] = None,
                   timestamp: Optional[str] = None,
                   config: Optional[Dict[str, Any]] = None) -> ProjectMaturityAssessment:
    """Assess every record in a grouped collection.

    Records of types without criteria, and records lacking an ``id``, are
    listed under ``skipped`` instead of being assessed.

    Raises:
        TypeError: if ``records_by_type`` is None.
    """
    settings = _settings(config)
    grouped = group_records(records_by_type)
    skipped: List[Dict[str, Any]] = []
    elements: List[ElementMaturityAssessment] = []

    assessable = {t.value for t in ASSESSABLE_TYPES}
    ordered_types = [t for t in _TYPE_ORDER if t in grouped] + \
        [t for t in grouped if t not in _TYPE_ORDER]

    for rtype in ordered_types:
        for record in grouped[rtype]:
            rid = record_id(record)
            if rtype not in assessable:
                skipped.append({"element_id": rid, "element_type": rtype,
                                "reason": "no maturity criteria for record type"})
                continue
            if not rid:
                logger.warning("Skipping %s record without an id", rtype)
                skipped.append({"element_id": None, "element_type": rtype,
                                "reason": "missing id"})
                continue
            elements.append(assess(record, rtype, grouped, required_overrides, config))

    levels = [e.overall_level for e in elements]
    project_level = min(levels) if levels else MIN_LEVEL
    distribution = {lv: levels.count(lv) for lv in LEVELS}

    dimensions = _overall_dimensions(elements)
    strengths = [
        f"{d.dimension} is mature ({d.completion_rate * 100:.0f}%)"
        for d in dimensions.values() if d.completion_rate >= settings["strength_threshold"]
    ]
    improvement_areas = [
        f"{d.dimension} needs strengthening ({d.completion_rate * 100:.0f}%)"
        for d in dimensions.values() if d.completion_rate < settings["improvement_threshold"]
    ]

    if skipped:
        logger.info("Skipped %d record(s) during maturity assessment", len(skipped))

    return ProjectMaturityAssessment(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        project_level=project_level,
        elements=elements,
        overall_dimensions=dimensions,
        strengths=strengths,
        improvement_areas=improvement_areas,
        recommended_actions=_project_actions(elements, dimensions, settings),
        level_distribution=distribution,
        skipped=skipped,
    )


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def compare_assessments(before: ProjectMaturityAssessment,
                        after: ProjectMaturityAssessment) -> MaturityComparison:
    """Element-by-element level and completion deltas between two runs."""
    before_map = {e.element_id: e for e in before.elements}
    after_map = {e.element_id: e for e in after.elements}
    comparison = MaturityComparison(
        before_level=before.project_level,
        after_level=after.project_level,
        added_elements=[eid for eid in after_map if eid not in before_map],
        removed_elements=[eid for eid in before_map if eid not in after_map],
    )
    for eid, new in after_map.items():
        old = before_map.get(eid)
        if old is None:
            continue
        delta = round(new.overall_completion_rate - old.overall_completion_rate, 4)
        entry = {
            "element_id": eid,
            "element_type": new.element_type,
            "before_level": old.overall_level,
            "after_level": new.overall_level,
            "completion_change": delta,
        }
        if new.overall_level > old.overall_level:
            comparison.level_ups.append(entry)
        if new.overall_level < old.overall_level or delta < 0:
            comparison.regressions.append(entry)
        elif delta > 0 or new.overall_level > old.overall_level:
            comparison.improvements.append(entry)
    return comparison


# ---------------------------------------------------------------------------
# Human-readable output (--human)
# ---------------------------------------------------------------------------

def _color(code: str, text: str) -> str:
    """Wrap *text* in ANSI escape if stdout is a TTY."""
    if not sys.stdout.isatty():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def print_human(assessment: ProjectMaturityAssessment) -> None:
    print()
    print(_color("1;34", "=" * 60))
    print(_color("1;34", "  Requirements Maturity Assessment"))
    print(_color("1;34", "=" * 60))
    print(f"\n  Project level : {_color('1', str(assessment.project_level))} "
          f"({level_name(assessment.project_level)})")
    print(f"  Elements      : {len(assessment.elements)}  (skipped {len(assessment.skipped)})")
    dist = ", ".join(f"L{k}={v}" for k, v in sorted(assessment.level_distribution.items()))
    print(f"  Distribution  : {dist}")

    print(f"\n  {_color('4', 'Dimensions')}:")
    for dim in assessment.overall_dimensions.values():
        pct = dim.completion_rate * 100
        code = "32" if pct >= 80 else "33" if pct >= 60 else "31"
        print(f"    {dim.dimension:<16} L{dim.current_level}  {_color(code, f'{pct:5.1f}%')}")

    print(f"\n  {_color('4', 'Elements')}:")
    for elem in assessment.elements:
        print(f"    [{elem.element_type:<20}] {elem.element_id:<28} "
              f"L{elem.overall_level}  {elem.overall_completion_rate * 100:5.1f}%  "
              f"effort={EFFORT_LABELS[elem.estimated_effort]}")

    if assessment.recommended_actions:
        print(f"\n  {_color('4', 'Recommended actions')}:")
        for action in assessment.recommended_actions:
            print(f"    - [{action.priority}] {action.action}")
    print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.maturity.quality_pipeline import load_records

    parser = argparse.ArgumentParser(description="Assess requirement record maturity")
    parser.add_argument("--records", required=True,
                        help="JSON/YAML file mapping record type -> list of records")
    parser.add_argument("--compare", default=None,
                        help="Earlier records file to compare against")
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
        baseline = load_records(args.compare) if args.compare else None
    except (OSError, ValueError) as exc:
        print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
        sys.exit(1)

    assessment = assess_project(records)
    comparison = None
    if baseline is not None:
        comparison = compare_assessments(assess_project(baseline), assessment)

    if args.json_mode:
        result = assessment.to_dict()
        if comparison:
            result["comparison"] = comparison.to_dict()
        print(json.dumps(result, indent=2))
    elif args.human:
        print_human(assessment)
        if comparison:
            print(f"  Level change vs baseline: {comparison.level_change:+d}  "
                  f"(level-ups {len(comparison.level_ups)}, "
                  f"regressions {len(comparison.regressions)})")
    else:
        print(f"Project level: {assessment.project_level} "
              f"({level_name(assessment.project_level)})  |  "
              f"Elements: {len(assessment.elements)}  |  Skipped: {len(assessment.skipped)}")
        for dim in assessment.overall_dimensions.values():
            print(f"  {dim.dimension}: {dim.completion_rate * 100:.1f}% (L{dim.current_level})")


if __name__ == "__main__":
    main()
