#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Record type tags and field access helpers for requirement records.

Records arrive as plain mappings (loaded from JSON or YAML by the caller)
grouped under an explicit type tag. Nothing here guesses a record's type
from its shape.

Cross-references may be written either as a bare id string or as a
``{"id": ..., "displayName": ...}`` mapping; ``ref_id`` / ``ref_ids``
accept both.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional


class RecordType(str, Enum):
    BUSINESS_REQUIREMENT = "business-requirement"
    ACTOR = "actor"
    USE_CASE = "use-case"
    SCREEN = "screen"
    SCREEN_FLOW = "screen-flow"
    VALIDATION_RULE = "validation-rule"


# Record types that have maturity criteria in the catalog.
ASSESSABLE_TYPES = (
    RecordType.BUSINESS_REQUIREMENT,
    RecordType.ACTOR,
    RecordType.USE_CASE,
)

_TYPE_ALIASES: Dict[str, str] = {
    "business_requirement": "business-requirement",
    "businessrequirement": "business-requirement",
    "business-requirements": "business-requirement",
    "actors": "actor",
    "usecase": "use-case",
    "use_case": "use-case",
    "use-cases": "use-case",
    "usecases": "use-case",
    "screens": "screen",
    "screen_flow": "screen-flow",
    "screenflow": "screen-flow",
    "screen-flows": "screen-flow",
    "validation_rule": "validation-rule",
    "validation-rules": "validation-rule",
}


def normalize_type(tag: Any) -> str:
    """Return the canonical string for a record type tag.

    Unknown tags are returned lower-cased but otherwise untouched so the
    caller can still report them.
    """
    if isinstance(tag, RecordType):
        return tag.value
    text = str(tag).strip().lower()
    return _TYPE_ALIASES.get(text, text)


def record_type(tag: Any) -> Optional[RecordType]:
    """Map a tag to a ``RecordType`` or ``None`` when unrecognized."""
    try:
        return RecordType(normalize_type(tag))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------

def ref_id(value: Any) -> Optional[str]:
    """Extract the referenced id from a string or ``{id}`` mapping."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        rid = value.get("id")
        if isinstance(rid, str) and rid.strip():
            return rid.strip()
    return None


def ref_ids(values: Any) -> List[str]:
    """Normalize a reference or list of references to a list of ids.

    Invalid entries are skipped; order is preserved and duplicates removed.
    """
    if values is None:
        return []
    if isinstance(values, (str, Mapping)):
        values = [values]
    seen: List[str] = []
    for item in values:
        rid = ref_id(item)
        if rid and rid not in seen:
            seen.append(rid)
    return seen


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------

def field(record: Mapping, name: str) -> Any:
    """Return a field value, or ``None`` when the field is absent.

    A present-but-empty value (``""``, ``[]``) is returned as is so callers
    can tell "missing" from "empty".
    """
    if not isinstance(record, Mapping):
        return None
    return record.get(name)


def text(record: Mapping, name: str) -> str:
    """Return a string field stripped, or ``""`` when absent or not a string."""
    value = field(record, name)
    return value.strip() if isinstance(value, str) else ""


def items(record: Mapping, name: str) -> List[Any]:
    """Return a list field, or ``[]`` when absent or not a list."""
    value = field(record, name)
    return list(value) if isinstance(value, (list, tuple)) else []


def has_items(record: Mapping, name: str, minimum: int = 1) -> bool:
    return len(items(record, name)) >= minimum


def display_name(record: Mapping) -> str:
    return text(record, "name") or text(record, "title") or text(record, "id")


def record_id(record: Mapping) -> Optional[str]:
    """Return the record's identity, or ``None`` if it has none."""
    value = field(record, "id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# ---------------------------------------------------------------------------
# Use case helpers
# ---------------------------------------------------------------------------

def use_case_actor_ids(use_case: Mapping) -> Dict[str, List[str]]:
    """Return primary/secondary actor ids declared on a use case."""
    actors = field(use_case, "actors")
    if not isinstance(actors, Mapping):
        return {"primary": [], "secondary": []}
    return {
        "primary": ref_ids(actors.get("primary")),
        "secondary": ref_ids(actors.get("secondary")),
    }


def use_case_steps(use_case: Mapping, include_alternatives: bool = False) -> List[Mapping]:
    """Return main flow steps, optionally followed by alternative flow steps."""
    steps = [s for s in items(use_case, "mainFlow") if isinstance(s, Mapping)]
    if include_alternatives:
        for flow in items(use_case, "alternativeFlows"):
            if isinstance(flow, Mapping):
                steps.extend(s for s in items(flow, "steps") if isinstance(s, Mapping))
    return steps


def group_records(records_by_type: Mapping[Any, Iterable[Mapping]]) -> Dict[str, List[Mapping]]:
    """Normalize the type tags of a grouped record collection.

    Raises:
        TypeError: if the collection itself is missing.
    """
    if records_by_type is None:
        raise TypeError("records_by_type is required (use {} for an empty project)")
    grouped: Dict[str, List[Mapping]] = {}
    for tag, records in records_by_type.items():
        key = normalize_type(tag)
        grouped.setdefault(key, [])
        for record in records or []:
            if isinstance(record, Mapping):
                grouped[key].append(record)
    return grouped
