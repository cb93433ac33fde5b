#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Configuration loader for the maturity and dependency-graph tools.

Tunables live in ``args/maturity_config.yaml``. Each consuming module keeps
its own ``_DEFAULT_*`` dict and asks for a section; keys present in the
YAML override the defaults, everything else falls back. A missing or
unreadable file yields the defaults.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger("reqgraph.maturity.config")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = BASE_DIR / "args" / "maturity_config.yaml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the YAML config as a dict ({} when absent or invalid)."""
    path = Path(config_path) if config_path else CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Could not read %s, using defaults: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("%s is not a mapping, using defaults", path)
        return {}
    return data


def get_section(name: str, defaults: Dict[str, Any],
                config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return ``defaults`` overlaid with the ``name`` section of the config.

    Nested dicts are merged one level deep so a YAML file may override a
    single threshold without restating its siblings.
    """
    if config is None:
        config = load_config()
    merged = copy.deepcopy(defaults)
    section = config.get(name) or {}
    if not isinstance(section, dict):
        logger.warning("Config section '%s' is not a mapping, ignoring", name)
        return merged
    for key, value in section.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
