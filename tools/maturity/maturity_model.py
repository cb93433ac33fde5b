#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Maturity model data types.

Five ordered maturity levels (INITIAL .. OPTIMIZED) crossed with five
quality dimensions. Every assessment object below is produced fresh per run
and exposes ``to_dict()`` for renderers.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MaturityLevel(int, Enum):
    INITIAL = 1
    REPEATABLE = 2
    DEFINED = 3
    MANAGED = 4
    OPTIMIZED = 5


class Dimension(str, Enum):
    STRUCTURE = "structure"
    DETAIL = "detail"
    TRACEABILITY = "traceability"
    TESTABILITY = "testability"
    MAINTAINABILITY = "maintainability"


LEVELS: List[int] = [lvl.value for lvl in MaturityLevel]
DIMENSIONS: List[str] = [dim.value for dim in Dimension]
MIN_LEVEL = MaturityLevel.INITIAL.value
MAX_LEVEL = MaturityLevel.OPTIMIZED.value

LEVEL_NAMES: Dict[int, str] = {lvl.value: lvl.name.title() for lvl in MaturityLevel}


def level_name(level: int) -> str:
    return LEVEL_NAMES.get(level, f"Level {level}")


# ---------------------------------------------------------------------------
# Criteria and evaluations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Criterion:
    """One testable maturity condition for a record type."""
    id: str
    name: str
    description: str
    level: int
    dimension: str
    required: bool
    condition: str
    weight: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CriterionEvaluation:
    criterion: Criterion
    satisfied: bool
    score: int
    evidence: str = ""
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "criterion_id": self.criterion.id,
            "name": self.criterion.name,
            "level": self.criterion.level,
            "dimension": self.criterion.dimension,
            "required": self.criterion.required,
            "weight": self.criterion.weight,
            "satisfied": self.satisfied,
            "score": self.score,
            "evidence": self.evidence,
            "suggestion": self.suggestion,
        }


@dataclass
class DimensionMaturity:
    """Maturity reached within a single quality dimension."""
    dimension: str
    current_level: int = MIN_LEVEL
    completion_rate: float = 0.0
    level_completion: Dict[int, float] = field(default_factory=dict)
    evaluations: List[CriterionEvaluation] = field(default_factory=list)
    missing_criteria: List[Criterion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "dimension": self.dimension,
            "current_level": self.current_level,
            "completion_rate": self.completion_rate,
            "level_completion": {str(k): v for k, v in sorted(self.level_completion.items())},
            "evaluations": [e.to_dict() for e in self.evaluations],
            "missing_criteria": [c.id for c in self.missing_criteria],
        }


@dataclass
class NextStep:
    """A concrete action that unlocks one or more criteria."""
    priority: str  # high, medium, low
    action: str
    rationale: str
    unlocks_criteria: List[str] = field(default_factory=list)
    estimated_time: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ElementMaturityAssessment:
    element_id: str
    element_type: str
    overall_level: int = MIN_LEVEL
    overall_completion_rate: float = 0.0
    dimensions: Dict[str, DimensionMaturity] = field(default_factory=dict)
    evaluations: List[CriterionEvaluation] = field(default_factory=list)
    next_steps: List[NextStep] = field(default_factory=list)
    estimated_effort: str = "small"
    recognized: bool = True
    element_name: str = ""

    @property
    def satisfied_criteria(self) -> List[Criterion]:
        return [e.criterion for e in self.evaluations if e.satisfied]

    @property
    def unsatisfied_criteria(self) -> List[Criterion]:
        return [e.criterion for e in self.evaluations if not e.satisfied]

    def to_dict(self) -> dict:
        return {
            "element_id": self.element_id,
            "element_type": self.element_type,
            "element_name": self.element_name,
            "recognized": self.recognized,
            "overall_level": self.overall_level,
            "overall_level_name": level_name(self.overall_level),
            "overall_completion_rate": self.overall_completion_rate,
            "dimensions": {d: m.to_dict() for d, m in self.dimensions.items()},
            "satisfied_criteria": [c.id for c in self.satisfied_criteria],
            "unsatisfied_criteria": [c.id for c in self.unsatisfied_criteria],
            "next_steps": [s.to_dict() for s in self.next_steps],
            "estimated_effort": self.estimated_effort,
        }


@dataclass
class ProjectDimension:
    """Project-wide view of one dimension (mean completion, weakest level)."""
    dimension: str
    current_level: int
    completion_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProjectMaturityAssessment:
    timestamp: str
    project_level: int
    elements: List[ElementMaturityAssessment] = field(default_factory=list)
    overall_dimensions: Dict[str, ProjectDimension] = field(default_factory=dict)
    strengths: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)
    recommended_actions: List[NextStep] = field(default_factory=list)
    level_distribution: Dict[int, int] = field(default_factory=dict)
    skipped: List[Dict[str, Any]] = field(default_factory=list)

    def element(self, element_id: str) -> Optional[ElementMaturityAssessment]:
        for elem in self.elements:
            if elem.element_id == element_id:
                return elem
        return None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "project_level": self.project_level,
            "project_level_name": level_name(self.project_level),
            "element_count": len(self.elements),
            "elements": [e.to_dict() for e in self.elements],
            "overall_dimensions": {d: m.to_dict() for d, m in self.overall_dimensions.items()},
            "strengths": list(self.strengths),
            "improvement_areas": list(self.improvement_areas),
            "recommended_actions": [a.to_dict() for a in self.recommended_actions],
            "level_distribution": {str(k): v for k, v in sorted(self.level_distribution.items())},
            "skipped": list(self.skipped),
        }


@dataclass
class MaturityComparison:
    """Element-level deltas between two project assessments."""
    before_level: int
    after_level: int
    improvements: List[Dict[str, Any]] = field(default_factory=list)
    regressions: List[Dict[str, Any]] = field(default_factory=list)
    level_ups: List[Dict[str, Any]] = field(default_factory=list)
    added_elements: List[str] = field(default_factory=list)
    removed_elements: List[str] = field(default_factory=list)

    @property
    def level_change(self) -> int:
        return self.after_level - self.before_level

    def to_dict(self) -> dict:
        data = asdict(self)
        data["level_change"] = self.level_change
        return data
