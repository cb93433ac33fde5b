#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Use case / screen flow coherence checks.

Pairs every screen flow with the use case named by its ``relatedUseCase``
and checks that the two describe the same navigation:

  screen-sequence-mismatch      (high)   main-flow screens != flow screens
  transition-missing            (high)   consecutive steps on different
                                         screens with no matching transition
  transition-condition-missing  (low)    transition exists but has no
                                         condition while the step states an
                                         expected result
  start-screen-mismatch         (medium) first step screen != startScreen
  end-screen-mismatch           (medium) last step screen not in endScreens

Use cases with no screen flow are not checked. A flow without an explicit
``screens`` list, ``startScreen`` or ``endScreens`` has them derived from
its transitions.

Usage:
    python tools/maturity/coherence_validator.py --records records.json --json
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.records import field as get_field
from tools.maturity.records import items, record_id, ref_id, ref_ids, text

logger = logging.getLogger("reqgraph.maturity.coherence")

SEVERITIES = ("high", "medium", "low")


@dataclass
class CoherenceIssue:
    type: str
    severity: str
    description: str
    use_case_id: str
    screen_flow_id: str
    expected: str = ""
    actual: str = ""
    affected_step_ids: List[str] = field(default_factory=list)
    affected_screen_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Flow helpers
# ---------------------------------------------------------------------------

def _transitions(flow: Mapping) -> List[Dict[str, Any]]:
    result = []
    for t in items(flow, "transitions"):
        if not isinstance(t, Mapping):
            continue
        src, dst = ref_id(t.get("from")), ref_id(t.get("to"))
        if src and dst:
            result.append({"from": src, "to": dst, "condition": t.get("condition"),
                           "trigger": t.get("trigger")})
    return result


def flow_screens(flow: Mapping) -> List[str]:
    """Declared screens, or the transition endpoints in first-seen order."""
    declared = ref_ids(get_field(flow, "screens"))
    if declared:
        return declared
    seen: List[str] = []
    for t in _transitions(flow):
        for sid in (t["from"], t["to"]):
            if sid not in seen:
                seen.append(sid)
    return seen


def flow_start_screen(flow: Mapping) -> Optional[str]:
    start = ref_id(get_field(flow, "startScreen"))
    if start:
        return start
    targets = {t["to"] for t in _transitions(flow)}
    candidates = [s for s in flow_screens(flow) if s not in targets]
    return candidates[0] if len(candidates) == 1 else None


def flow_end_screens(flow: Mapping) -> List[str]:
    declared = ref_ids(get_field(flow, "endScreens"))
    if declared:
        return declared
    sources = {t["from"] for t in _transitions(flow)}
    if not sources:
        return []
    return [s for s in flow_screens(flow) if s not in sources]


def use_case_screen_sequence(use_case: Mapping) -> List[str]:
    """Main-flow screens with consecutive repeats collapsed."""
    sequence: List[str] = []
    for step in items(use_case, "mainFlow"):
        sid = ref_id(get_field(step, "screen")) if isinstance(step, Mapping) else None
        if sid and (not sequence or sequence[-1] != sid):
            sequence.append(sid)
    return sequence


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _check_sequence(uc_id: str, flow_id: str, use_case: Mapping,
                    flow: Mapping) -> List[CoherenceIssue]:
    expected = use_case_screen_sequence(use_case)
    actual = flow_screens(flow)
    if expected == actual:
        return []
    affected = list(dict.fromkeys(expected + actual))
    return [CoherenceIssue(
        type="screen-sequence-mismatch", severity="high",
        description=f"Screen order differs. Use case: [{' -> '.join(expected)}], "
                    f"screen flow: [{' -> '.join(actual)}]",
        use_case_id=uc_id, screen_flow_id=flow_id,
        expected=" -> ".join(expected), actual=" -> ".join(actual),
        affected_screen_ids=affected,
    )]


def _check_transitions(uc_id: str, flow_id: str, use_case: Mapping,
                       flow: Mapping) -> List[CoherenceIssue]:
    issues: List[CoherenceIssue] = []
    steps = [s for s in items(use_case, "mainFlow") if isinstance(s, Mapping)]
    transitions = _transitions(flow)
    for current, nxt in zip(steps, steps[1:]):
        src = ref_id(get_field(current, "screen"))
        dst = ref_id(get_field(nxt, "screen"))
        if not src or not dst or src == dst:
            continue
        match = next((t for t in transitions if t["from"] == src and t["to"] == dst), None)
        step_ids = [sid for sid in (text(current, "stepId"), text(nxt, "stepId")) if sid]
        if match is None:
            issues.append(CoherenceIssue(
                type="transition-missing", severity="high",
                description=f"No transition defined for {src} -> {dst}",
                use_case_id=uc_id, screen_flow_id=flow_id,
                expected=f"{src} -> {dst}", actual="undefined",
                affected_step_ids=step_ids, affected_screen_ids=[src, dst],
            ))
        elif not match["condition"] and text(current, "expectedResult"):
            expected_result = text(current, "expectedResult")
            issues.append(CoherenceIssue(
                type="transition-condition-missing", severity="low",
                description=f"Transition {src} -> {dst} has no condition "
                            f"(use case expects '{expected_result}')",
                use_case_id=uc_id, screen_flow_id=flow_id,
                expected=expected_result, actual="undefined",
                affected_step_ids=step_ids[:1], affected_screen_ids=[src, dst],
            ))
    return issues


def _check_boundaries(uc_id: str, flow_id: str, use_case: Mapping,
                      flow: Mapping) -> List[CoherenceIssue]:
    issues: List[CoherenceIssue] = []
    steps = [s for s in items(use_case, "mainFlow") if isinstance(s, Mapping)]
    if not steps:
        return issues
    first = ref_id(get_field(steps[0], "screen"))
    start = flow_start_screen(flow)
    if first and start and first != start:
        issues.append(CoherenceIssue(
            type="start-screen-mismatch", severity="medium",
            description=f"Start screen differs: use case={first}, screen flow={start}",
            use_case_id=uc_id, screen_flow_id=flow_id, expected=first, actual=start,
            affected_screen_ids=[first, start],
        ))
    last = ref_id(get_field(steps[-1], "screen"))
    ends = flow_end_screens(flow)
    if last and ends and last not in ends:
        issues.append(CoherenceIssue(
            type="end-screen-mismatch", severity="medium",
            description=f"Last use case screen '{last}' is not an end screen of the flow",
            use_case_id=uc_id, screen_flow_id=flow_id, expected=last,
            actual=", ".join(ends), affected_screen_ids=[last] + ends,
        ))
    return issues


def validate_coherence(use_cases: Sequence[Mapping],
                       screen_flows: Sequence[Mapping]) -> Dict[str, Any]:
    """Check every use case that has a screen flow against that flow."""
    flows_by_use_case: Dict[str, Mapping] = {}
    for flow in screen_flows or []:
        uc_ref = ref_id(get_field(flow, "relatedUseCase"))
        if not uc_ref:
            continue
        if uc_ref in flows_by_use_case:
            logger.warning("Use case %s has more than one screen flow; checking the first",
                           uc_ref)
            continue
        flows_by_use_case[uc_ref] = flow

    issues: List[CoherenceIssue] = []
    by_use_case: Dict[str, List[dict]] = {}
    for use_case in use_cases or []:
        uc_id = record_id(use_case)
        flow = flows_by_use_case.get(uc_id) if uc_id else None
        if flow is None:
            continue
        flow_id = record_id(flow) or ""
        found = (_check_sequence(uc_id, flow_id, use_case, flow)
                 + _check_transitions(uc_id, flow_id, use_case, flow)
                 + _check_boundaries(uc_id, flow_id, use_case, flow))
        if found:
            by_use_case[uc_id] = [i.to_dict() for i in found]
            issues.extend(found)

    return {
        "valid": not issues,
        "total_use_cases": len(use_cases or []),
        "total_screen_flows": len(screen_flows or []),
        "total_issues": len(issues),
        "issues": [i.to_dict() for i in issues],
        "issues_by_severity": {s: sum(1 for i in issues if i.severity == s) for s in SEVERITIES},
        "issues_by_use_case": by_use_case,
    }


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    from tools.maturity.quality_pipeline import load_records
    from tools.maturity.records import group_records

    parser = argparse.ArgumentParser(description="Check use case / screen flow coherence")
    parser.add_argument("--records", required=True,
                        help="JSON/YAML file mapping record type -> list of records")
    parser.add_argument("--json", dest="json_mode", action="store_true",
                        help="Output results as JSON")
    args = parser.parse_args()

    try:
        grouped = group_records(load_records(args.records))
    except (OSError, ValueError) as exc:
        print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
        sys.exit(1)

    result = validate_coherence(grouped.get("use-case", []), grouped.get("screen-flow", []))
    if args.json_mode:
        print(json.dumps(result, indent=2))
    else:
        sev = result["issues_by_severity"]
        print(f"Coherent: {result['valid']}  |  Issues: {result['total_issues']} "
              f"(high={sev['high']}, medium={sev['medium']}, low={sev['low']})")
        for issue in result["issues"]:
            print(f"  [{issue['severity']}] {issue['use_case_id']}: {issue['description']}")
    sys.exit(0 if result["valid"] else 1)


if __name__ == "__main__":
    main()
