#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Context engine: reweights maturity dimensions for a project context.

Every dimension starts at 1.0. Each matching rule (built-in rules first,
then custom rules, in list order) contributes its multipliers; the product
is then scaled once by the criticality strictness factor. Per-dimension
products are taken over the sorted multipliers so the result does not
depend on rule order; the adjustment log follows rule order.

Usage:
    python tools/maturity/context_engine.py --domain finance --criticality high --json
    python tools/maturity/context_engine.py --project-name shop-cart-poc --human
"""

import argparse
import json
import logging
import math
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.maturity.config import get_section
from tools.maturity.context_rules import (
    BUILT_IN_RULES,
    CRITICALITY_FOCUS,
    DOMAIN_FOCUS,
    STAGE_FOCUS,
    TEAM_FOCUS,
    ContextualEvaluationRule,
    Criticality,
    DevelopmentStage,
    ProjectContext,
    ProjectDomain,
    rule_from_dict,
)
from tools.maturity.maturity_model import DIMENSIONS

logger = logging.getLogger("reqgraph.maturity.context_engine")

_DEFAULT_CONTEXT: Dict[str, Any] = {
    "strictness": {c.value: f["strictness"] for c, f in CRITICALITY_FOCUS.items()},
    "focus_threshold": 1.2,
    "relaxed_threshold": 0.7,
    "custom_rules": [],
}

# Keyword tables for inference, checked in order; first match wins.
_DOMAIN_KEYWORDS = [
    (ProjectDomain.ECOMMERCE, {"shop", "shopping", "store", "cart", "ecommerce", "ec", "retail", "checkout"}),
    (ProjectDomain.FINANCE, {"bank", "banking", "finance", "financial", "payment", "payments", "fintech"}),
    (ProjectDomain.HEALTHCARE, {"health", "healthcare", "medical", "hospital", "clinic", "patient"}),
    (ProjectDomain.IOT, {"iot", "device", "devices", "sensor", "sensors"}),
    (ProjectDomain.DATA_ANALYTICS, {"analytics", "data", "ml", "bi", "warehouse"}),
]

_STAGE_KEYWORDS = [
    (DevelopmentStage.POC, {"poc", "prototype"}),
    (DevelopmentStage.MVP, {"mvp"}),
    (DevelopmentStage.LEGACY_MIGRATION, {"legacy", "migration"}),
]

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def _settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return get_section("context", _DEFAULT_CONTEXT, config)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class ContextApplicationResult:
    context: ProjectContext
    applied_rules: List[ContextualEvaluationRule] = field(default_factory=list)
    dimension_weights: Dict[str, float] = field(default_factory=dict)
    adjustments: List[str] = field(default_factory=list)
    relaxed_requirements: List[str] = field(default_factory=list)
    additional_requirements: List[str] = field(default_factory=list)
    strictness_factor: float = 1.0

    def required_overrides(self) -> Dict[str, bool]:
        """criterion id -> effective required flag (additions win over relaxations)."""
        overrides = {cid: False for cid in self.relaxed_requirements}
        overrides.update({cid: True for cid in self.additional_requirements})
        return overrides

    def weight(self, dimension: str) -> float:
        return self.dimension_weights.get(dimension, 1.0)

    def to_dict(self) -> dict:
        return {
            "context": self.context.to_dict(),
            "applied_rules": [r.id for r in self.applied_rules],
            "dimension_weights": dict(self.dimension_weights),
            "adjustments": list(self.adjustments),
            "relaxed_requirements": list(self.relaxed_requirements),
            "additional_requirements": list(self.additional_requirements),
            "strictness_factor": self.strictness_factor,
        }


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def strictness_for(criticality: Criticality,
                   settings: Optional[Dict[str, Any]] = None) -> float:
    table = (settings or _settings())["strictness"]
    return float(table.get(criticality.value, CRITICALITY_FOCUS[criticality]["strictness"]))


def _union(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return seen


def apply_context(context: Union[ProjectContext, Mapping[str, Any], None],
                  custom_rules: Optional[Sequence[Union[ContextualEvaluationRule, Mapping]]] = None,
                  config: Optional[Dict[str, Any]] = None) -> ContextApplicationResult:
    """Compose dimension weights for ``context``.

    ``custom_rules`` may hold rule objects or config-style dicts; rules from
    the ``context.custom_rules`` config section are appended after them.
    The built-in rule tuple is never modified.
    """
    settings = _settings(config)
    if not isinstance(context, ProjectContext):
        context = ProjectContext.from_dict(context)

    rules: List[ContextualEvaluationRule] = list(BUILT_IN_RULES)
    for rule in list(custom_rules or []) + list(settings.get("custom_rules") or []):
        rules.append(rule if isinstance(rule, ContextualEvaluationRule) else rule_from_dict(rule))

    applied = [r for r in rules if r.matches(context)]

    multipliers: Dict[str, List[float]] = {d: [] for d in DIMENSIONS}
    log: List[str] = []
    running = {d: 1.0 for d in DIMENSIONS}
    for rule in applied:
        log.append(f"{rule.name} ({rule.id}): {rule.description}")
        for adj in rule.weight_adjustments:
            if adj.dimension not in multipliers:
                logger.warning("Rule %s adjusts unknown dimension %s", rule.id, adj.dimension)
                continue
            before = running[adj.dimension]
            running[adj.dimension] = before * adj.multiplier
            multipliers[adj.dimension].append(adj.multiplier)
            log.append(f"  - {adj.dimension}: {before:.2f}x -> "
                       f"{running[adj.dimension]:.2f}x ({adj.rationale})")

    factor = strictness_for(context.criticality, settings)
    log.append(f"Criticality {context.criticality.value}: all dimensions x{factor:.2f}")

    weights = {
        d: round(math.prod(sorted(multipliers[d])) * factor, 6)
        for d in DIMENSIONS
    }

    logger.debug("Applied %d context rule(s): %s", len(applied), [r.id for r in applied])
    return ContextApplicationResult(
        context=context,
        applied_rules=applied,
        dimension_weights=weights,
        adjustments=log,
        relaxed_requirements=_union(c for r in applied for c in r.relaxed_requirements),
        additional_requirements=_union(c for r in applied for c in r.additional_requirements),
        strictness_factor=factor,
    )


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------

def _tokens(project_name: str, tags: Optional[Iterable[str]]) -> set:
    text = " ".join([project_name or ""] + [str(t) for t in (tags or [])]).lower()
    return {t for t in _TOKEN_SPLIT.split(text) if t}


def infer_context(project_name: str = "", tags: Optional[List[str]] = None,
                  explicit: Optional[Mapping[str, Any]] = None) -> ProjectContext:
    """Fill missing context fields from keywords in the project name and tags.

    Fields supplied in ``explicit`` are never overridden; anything neither
    supplied nor inferred takes the default.
    """
    explicit = {k: v for k, v in dict(explicit or {}).items() if v not in (None, "", [])}
    tokens = _tokens(project_name, tags or explicit.get("tags"))
    merged: Dict[str, Any] = {"project_name": project_name, "tags": list(tags or [])}

    for domain, words in _DOMAIN_KEYWORDS:
        if tokens & words:
            merged["domain"] = domain.value
            break
    for stage, words in _STAGE_KEYWORDS:
        if tokens & words:
            merged["stage"] = stage.value
            break

    if "team_size" not in explicit and "teamSize" in explicit:
        explicit["team_size"] = explicit.pop("teamSize")
    if "project_name" not in explicit and "projectName" in explicit:
        explicit["project_name"] = explicit.pop("projectName")
    merged.update(explicit)
    inferred = {k for k in ("domain", "stage") if k in merged and k not in explicit}
    if inferred:
        logger.info("Inferred context fields %s from name/tags", sorted(inferred))
    return ProjectContext.from_dict(merged)


# ---------------------------------------------------------------------------
# Narrative output
# ---------------------------------------------------------------------------

def generate_contextual_recommendations(result: ContextApplicationResult,
                                        config: Optional[Dict[str, Any]] = None) -> List[str]:
    """Plain-text guidance for the context and its weighting."""
    settings = _settings(config)
    ctx = result.context
    stage = STAGE_FOCUS[ctx.stage]
    lines = [
        f"Domain {ctx.domain.value}: {DOMAIN_FOCUS[ctx.domain]['description']}",
        f"Stage {ctx.stage.value}: {stage['description']} "
        f"(recommended minimum level {stage['min_level']})",
        f"Team {ctx.team_size.value}: {TEAM_FOCUS[ctx.team_size]['description']}",
        f"Criticality {ctx.criticality.value}: "
        f"{CRITICALITY_FOCUS[ctx.criticality]['description']}",
    ]
    focus = [d for d in DIMENSIONS if result.weight(d) >= settings["focus_threshold"]]
    relaxed = [d for d in DIMENSIONS if result.weight(d) <= settings["relaxed_threshold"]]
    if focus:
        lines.append(f"Focus on: {', '.join(focus)}")
    if relaxed:
        lines.append(f"May defer: {', '.join(relaxed)}")
    return lines


def generate_context_summary(result: ContextApplicationResult,
                             config: Optional[Dict[str, Any]] = None) -> str:
    ctx = result.context
    lines = ["Project context", "=" * 60]
    if ctx.project_name:
        lines.append(f"Project     : {ctx.project_name}")
    lines.append(f"Domain      : {ctx.domain.value}")
    lines.append(f"Stage       : {ctx.stage.value}")
    lines.append(f"Team size   : {ctx.team_size.value}")
    lines.append(f"Criticality : {ctx.criticality.value}")
    if ctx.tags:
        lines.append(f"Tags        : {', '.join(ctx.tags)}")
    lines += ["", "Applied rules", "=" * 60]
    lines += result.adjustments or ["(none)"]
    lines += ["", "Final dimension weights", "=" * 60]
    for dim in DIMENSIONS:
        w = result.weight(dim)
        lines.append(f"{dim:<16}: {'#' * round(w * 10):<25} {w:.2f}x")
    lines += ["", "Recommendations", "=" * 60]
    lines += generate_contextual_recommendations(result, config)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Apply project context weighting")
    parser.add_argument("--project-name", default="")
    parser.add_argument("--domain", default=None)
    parser.add_argument("--stage", default=None)
    parser.add_argument("--team-size", default=None)
    parser.add_argument("--criticality", default=None)
    parser.add_argument("--tag", action="append", default=[], help="Project tag (repeatable)")
    parser.add_argument("--json", dest="json_mode", action="store_true")
    parser.add_argument("--human", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    context = infer_context(args.project_name, args.tag, explicit={
        "domain": args.domain, "stage": args.stage,
        "team_size": args.team_size, "criticality": args.criticality,
    })
    result = apply_context(context)

    if args.json_mode:
        data = result.to_dict()
        data["recommendations"] = generate_contextual_recommendations(result)
        print(json.dumps(data, indent=2))
    elif args.human:
        print(generate_context_summary(result))
    else:
        weights = "  ".join(f"{d}={w:.2f}" for d, w in result.dimension_weights.items())
        print(f"Rules: {', '.join(r.id for r in result.applied_rules) or 'none'}")
        print(f"Weights: {weights}")
    sys.exit(0)


if __name__ == "__main__":
    main()
