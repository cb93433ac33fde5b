#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Project context model and the built-in contextual evaluation rules.

A rule is a predicate over ``ProjectContext`` plus per-dimension weight
multipliers and optional criterion ids to relax (no longer required) or
add (now required). Rules are evaluated in list order; new rules are added
by appending to the list, never by special-casing the engine.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from tools.maturity.maturity_model import Dimension

logger = logging.getLogger("reqgraph.maturity.context_rules")


class ProjectDomain(str, Enum):
    ECOMMERCE = "ecommerce"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    MANUFACTURING = "manufacturing"
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    IOT = "iot"
    DATA_ANALYTICS = "data_analytics"
    GENERAL = "general"


class DevelopmentStage(str, Enum):
    POC = "poc"
    MVP = "mvp"
    EARLY_DEVELOPMENT = "early_development"
    ACTIVE_DEVELOPMENT = "active_development"
    MAINTENANCE = "maintenance"
    LEGACY_MIGRATION = "legacy_migration"


class TeamSize(str, Enum):
    SOLO = "solo"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Criticality(str, Enum):
    EXPERIMENTAL = "experimental"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MISSION_CRITICAL = "mission_critical"


DEFAULT_DOMAIN = ProjectDomain.GENERAL
DEFAULT_STAGE = DevelopmentStage.ACTIVE_DEVELOPMENT
DEFAULT_TEAM_SIZE = TeamSize.MEDIUM
DEFAULT_CRITICALITY = Criticality.MEDIUM


def _coerce(enum_cls, value: Any, default):
    """Map a raw value onto ``enum_cls``; unknown values fall back to default."""
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return enum_cls(key)
    except ValueError:
        logger.warning("Unknown %s value %r, using %s",
                       enum_cls.__name__, value, default.value)
        return default


@dataclass
class ProjectContext:
    project_name: str = ""
    domain: ProjectDomain = DEFAULT_DOMAIN
    stage: DevelopmentStage = DEFAULT_STAGE
    team_size: TeamSize = DEFAULT_TEAM_SIZE
    criticality: Criticality = DEFAULT_CRITICALITY
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ProjectContext":
        """Build a context from a loose mapping (camelCase keys accepted)."""
        data = data or {}
        tags = data.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        return cls(
            project_name=str(data.get("project_name") or data.get("projectName") or ""),
            domain=_coerce(ProjectDomain, data.get("domain"), DEFAULT_DOMAIN),
            stage=_coerce(DevelopmentStage, data.get("stage"), DEFAULT_STAGE),
            team_size=_coerce(TeamSize, data.get("team_size") or data.get("teamSize"),
                              DEFAULT_TEAM_SIZE),
            criticality=_coerce(Criticality, data.get("criticality"), DEFAULT_CRITICALITY),
            tags=[str(t) for t in tags],
        )

    def to_dict(self) -> dict:
        return {
            "project_name": self.project_name,
            "domain": self.domain.value,
            "stage": self.stage.value,
            "team_size": self.team_size.value,
            "criticality": self.criticality.value,
            "tags": list(self.tags),
        }


# ---------------------------------------------------------------------------
# Recommended focus tables
# ---------------------------------------------------------------------------

S, D, T, TE, M = (Dimension.STRUCTURE.value, Dimension.DETAIL.value,
                  Dimension.TRACEABILITY.value, Dimension.TESTABILITY.value,
                  Dimension.MAINTAINABILITY.value)

DOMAIN_FOCUS: Dict[ProjectDomain, Dict[str, Any]] = {
    ProjectDomain.ECOMMERCE: {
        "dimensions": [TE, M, D],
        "description": "Frequent change makes testability and maintainability key",
    },
    ProjectDomain.FINANCE: {
        "dimensions": [T, D, S],
        "description": "Regulation demands traceability and precise specifications",
    },
    ProjectDomain.HEALTHCARE: {
        "dimensions": [T, TE, D],
        "description": "Safety and compliance make every dimension important",
    },
    ProjectDomain.MANUFACTURING: {
        "dimensions": [S, T, M],
        "description": "System stability and long-term maintenance matter most",
    },
    ProjectDomain.EDUCATION: {
        "dimensions": [S, D, M],
        "description": "Clear structure and easy maintenance matter most",
    },
    ProjectDomain.ENTERTAINMENT: {
        "dimensions": [M, TE, S],
        "description": "Fast feature delivery depends on maintainability",
    },
    ProjectDomain.IOT: {
        "dimensions": [T, D, TE],
        "description": "Device integration needs tracing and detailed specifications",
    },
    ProjectDomain.DATA_ANALYTICS: {
        "dimensions": [T, D, S],
        "description": "Data flows need tracing and detailed definitions",
    },
    ProjectDomain.GENERAL: {
        "dimensions": [S, D, M],
        "description": "Balanced overall quality",
    },
}

STAGE_FOCUS: Dict[DevelopmentStage, Dict[str, Any]] = {
    DevelopmentStage.POC: {
        "dimensions": [S], "min_level": 1,
        "description": "Establish the basic structure first; detail can wait",
    },
    DevelopmentStage.MVP: {
        "dimensions": [S, D], "min_level": 2,
        "description": "Structure and basic detail are needed",
    },
    DevelopmentStage.EARLY_DEVELOPMENT: {
        "dimensions": [S, D, T], "min_level": 2,
        "description": "Establish structure, detail and traceability",
    },
    DevelopmentStage.ACTIVE_DEVELOPMENT: {
        "dimensions": [S, D, T, TE], "min_level": 3,
        "description": "High maturity including testability is expected",
    },
    DevelopmentStage.MAINTENANCE: {
        "dimensions": [M, T, TE], "min_level": 3,
        "description": "Maintainability, traceability and testability matter most",
    },
    DevelopmentStage.LEGACY_MIGRATION: {
        "dimensions": [T, D, S], "min_level": 3,
        "description": "Detailed specifications and traceability are essential",
    },
}

TEAM_FOCUS: Dict[TeamSize, Dict[str, Any]] = {
    TeamSize.SOLO: {
        "dimensions": [S, M],
        "description": "Clear structure and maintainability for your future self",
    },
    TeamSize.SMALL: {
        "dimensions": [S, D, M],
        "description": "Structure and detail support team communication",
    },
    TeamSize.MEDIUM: {
        "dimensions": [S, D, T, M],
        "description": "Traceability becomes important for cross-team work",
    },
    TeamSize.LARGE: {
        "dimensions": [S, D, T, TE, M],
        "description": "High maturity is needed on every dimension",
    },
}

CRITICALITY_FOCUS: Dict[Criticality, Dict[str, Any]] = {
    Criticality.EXPERIMENTAL: {
        "min_level": 1, "strictness": 0.5,
        "description": "Favor flexibility over rigor",
    },
    Criticality.LOW: {
        "min_level": 2, "strictness": 0.7,
        "description": "Secure basic quality",
    },
    Criticality.MEDIUM: {
        "min_level": 3, "strictness": 1.0,
        "description": "Standard maturity is expected",
    },
    Criticality.HIGH: {
        "min_level": 4, "strictness": 1.3,
        "description": "High maturity and strict evaluation are required",
    },
    Criticality.MISSION_CRITICAL: {
        "min_level": 4, "strictness": 1.5,
        "description": "The highest maturity is mandatory",
    },
}


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeightAdjustment:
    dimension: str
    multiplier: float
    rationale: str

    def to_dict(self) -> dict:
        return {"dimension": self.dimension, "multiplier": self.multiplier,
                "rationale": self.rationale}


@dataclass(frozen=True)
class ContextualEvaluationRule:
    id: str
    name: str
    description: str
    predicate: Callable[[ProjectContext], bool]
    weight_adjustments: Tuple[WeightAdjustment, ...] = ()
    relaxed_requirements: Tuple[str, ...] = ()
    additional_requirements: Tuple[str, ...] = ()

    def matches(self, context: ProjectContext) -> bool:
        return bool(self.predicate(context))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "weight_adjustments": [w.to_dict() for w in self.weight_adjustments],
            "relaxed_requirements": list(self.relaxed_requirements),
            "additional_requirements": list(self.additional_requirements),
        }


def _adjust(*entries: Tuple[str, float, str]) -> Tuple[WeightAdjustment, ...]:
    return tuple(WeightAdjustment(d, m, r) for d, m, r in entries)


# Criticality weighting is applied once as the strictness factor, so the
# criticality rules below carry requirement changes only.
BUILT_IN_RULES: Tuple[ContextualEvaluationRule, ...] = (
    ContextualEvaluationRule(
        id="domain-finance-strict",
        name="Finance domain rigor",
        description="Finance needs regulatory traceability and precise detail",
        predicate=lambda ctx: ctx.domain == ProjectDomain.FINANCE,
        weight_adjustments=_adjust(
            (T, 1.5, "Audit trails require end-to-end traceability"),
            (D, 1.3, "Monetary calculations require precise specifications"),
        ),
    ),
    ContextualEvaluationRule(
        id="domain-healthcare-comprehensive",
        name="Healthcare comprehensive evaluation",
        description="Patient safety and compliance demand thorough coverage",
        predicate=lambda ctx: ctx.domain == ProjectDomain.HEALTHCARE,
        weight_adjustments=_adjust(
            (T, 1.5, "Regulatory compliance requires traceability"),
            (TE, 1.4, "Patient safety requires verifiable behavior"),
            (D, 1.3, "Clinical workflows require precise specifications"),
        ),
    ),
    ContextualEvaluationRule(
        id="domain-ecommerce-agile",
        name="E-commerce agility",
        description="Frequent releases favor testability and maintainability",
        predicate=lambda ctx: ctx.domain == ProjectDomain.ECOMMERCE,
        weight_adjustments=_adjust(
            (TE, 1.3, "Frequent releases need regression safety"),
            (M, 1.2, "Rapid change needs maintainable specifications"),
        ),
    ),
    ContextualEvaluationRule(
        id="stage-poc-relaxed",
        name="PoC relaxed evaluation",
        description="Proofs of concept only need the basic structure",
        predicate=lambda ctx: ctx.stage == DevelopmentStage.POC,
        weight_adjustments=_adjust(
            (S, 1.2, "The basic structure is what a PoC validates"),
            (D, 0.5, "Detail is expected to change"),
            (T, 0.5, "Traceability can follow later"),
            (TE, 0.3, "Tests are premature in a PoC"),
            (M, 0.3, "PoC artifacts are often discarded"),
        ),
        relaxed_requirements=(
            "uc-repeatable-preconditions",
            "uc-repeatable-postconditions",
            "uc-defined-alternative-flows",
            "uc-defined-acceptance-criteria",
        ),
    ),
    ContextualEvaluationRule(
        id="stage-maintenance-strict",
        name="Maintenance stage rigor",
        description="Systems in maintenance must stay changeable and verifiable",
        predicate=lambda ctx: ctx.stage == DevelopmentStage.MAINTENANCE,
        weight_adjustments=_adjust(
            (M, 1.5, "Ongoing change is the main activity"),
            (T, 1.4, "Impact analysis depends on traceability"),
            (TE, 1.3, "Regression prevention depends on tests"),
        ),
    ),
    ContextualEvaluationRule(
        id="team-solo-pragmatic",
        name="Solo developer pragmatism",
        description="A single developer needs structure more than cross-references",
        predicate=lambda ctx: ctx.team_size == TeamSize.SOLO,
        weight_adjustments=_adjust(
            (S, 1.2, "Clear structure helps your future self"),
            (T, 0.7, "Little cross-team coordination to trace"),
        ),
    ),
    ContextualEvaluationRule(
        id="team-large-comprehensive",
        name="Large team comprehensiveness",
        description="Large teams coordinate through detailed, traceable specs",
        predicate=lambda ctx: ctx.team_size == TeamSize.LARGE,
        weight_adjustments=_adjust(
            (T, 1.4, "Many hands need explicit dependencies"),
            (D, 1.3, "Shared understanding needs detail"),
            (TE, 1.2, "Integration needs verifiable criteria"),
        ),
    ),
    ContextualEvaluationRule(
        id="criticality-mission-critical",
        name="Mission-critical requirements",
        description="Failure is unacceptable; exception paths and controls are mandatory",
        predicate=lambda ctx: ctx.criticality == Criticality.MISSION_CRITICAL,
        additional_requirements=(
            "uc-defined-alternative-flows",
            "uc-defined-acceptance-criteria",
            "uc-managed-performance",
            "uc-managed-security",
        ),
    ),
    ContextualEvaluationRule(
        id="criticality-experimental",
        name="Experimental leniency",
        description="Experiments trade rigor for speed",
        predicate=lambda ctx: ctx.criticality == Criticality.EXPERIMENTAL,
        relaxed_requirements=(
            "uc-repeatable-preconditions",
            "uc-repeatable-postconditions",
            "uc-defined-acceptance-criteria",
            "uc-defined-business-coverage",
        ),
    ),
)


def rule_from_dict(data: Mapping[str, Any]) -> ContextualEvaluationRule:
    """Build a custom rule from config data.

    ``when`` maps context field names to an accepted value or list of
    values; the rule matches when every listed field matches.

    Raises:
        ValueError: if ``id`` is missing.
    """
    rule_id = data.get("id")
    if not rule_id:
        raise ValueError("custom context rule requires an 'id'")
    when = data.get("when") or {}
    expected: Dict[str, List[str]] = {}
    for key, value in when.items():
        values = value if isinstance(value, list) else [value]
        expected[key] = [str(v).strip().lower().replace("-", "_") for v in values]

    def _predicate(ctx: ProjectContext) -> bool:
        for key, accepted in expected.items():
            if key == "tags":
                if not any(t.lower() in accepted for t in ctx.tags):
                    return False
                continue
            current = getattr(ctx, key, None)
            current = current.value if isinstance(current, Enum) else current
            if current not in accepted:
                return False
        return True

    adjustments = tuple(
        WeightAdjustment(str(a["dimension"]), float(a["multiplier"]), str(a.get("rationale", "")))
        for a in data.get("weight_adjustments") or []
    )
    for adj in adjustments:
        if adj.multiplier <= 0:
            raise ValueError(f"rule {rule_id}: multiplier for {adj.dimension} must be positive")
    return ContextualEvaluationRule(
        id=str(rule_id),
        name=str(data.get("name") or rule_id),
        description=str(data.get("description") or ""),
        predicate=_predicate,
        weight_adjustments=adjustments,
        relaxed_requirements=tuple(data.get("relaxed_requirements") or ()),
        additional_requirements=tuple(data.get("additional_requirements") or ()),
    )
