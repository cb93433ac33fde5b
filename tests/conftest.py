#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the reqgraph test suite.

Record fixtures are plain dicts shaped like the JSON/YAML record files the
CLIs load. ``shop_records`` is a small but fully cross-referenced project:

    BR-001 --contains--> goal G1, rule BR-R1, policy SP-1
    UC-001 --uses--> customer, clerk
    UC-001 --references--> SCR-CART, SCR-CONFIRM
    UC-001 --implements--> BR-001, G1 ; --depends-on--> BR-R1
    SCR-CART --references--> VR-QTY
    SF-001 --contains--> SCR-CART, SCR-CONFIRM ; --references--> UC-001
    VR-QTY --implements--> BR-R1

The ``auditor`` actor is referenced by nothing.
"""

import copy
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))


FIXED_TIMESTAMP = "2024-05-01T12:00:00+00:00"


# ---------------------------------------------------------------------------
# Single records
# ---------------------------------------------------------------------------

MINIMAL_USE_CASE = {"id": "UC-001", "name": "Place order"}

REPEATABLE_USE_CASE = {
    "id": "UC-001",
    "name": "Place order",
    "description": "A registered customer places an order for the items in the shopping cart.",
    "actors": {"primary": "customer"},
    "preconditions": ["The customer is signed in"],
    "postconditions": ["The order is stored with status 'received'"],
    "priority": "high",
    "mainFlow": [
        {"stepId": "1", "actor": "customer", "action": "Open the shopping cart",
         "expectedResult": "The cart contents are listed"},
        {"stepId": "2", "actor": "customer", "action": "Confirm the order",
         "expectedResult": "An order confirmation is shown"},
    ],
}


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

SHOP_RECORDS = {
    "business-requirement": [
        {
            "id": "BR-001",
            "name": "Online ordering",
            "summary": "Customers can order products online",
            "businessGoals": [{"id": "G1", "description": "Increase online sales"}],
            "businessRules": [{"id": "BR-R1", "description": "Quantity must be positive"}],
            "securityPolicies": [{"id": "SP-1", "description": "Customers must sign in"}],
            "scope": {"inScope": ["ordering"], "outOfScope": ["returns"]},
        },
    ],
    "actor": [
        {"id": "customer", "name": "Customer", "role": "user",
         "description": "A person buying products"},
        {"id": "clerk", "name": "Clerk", "role": "staff",
         "description": "Shop staff confirming orders"},
        {"id": "auditor", "name": "Auditor", "role": "external",
         "description": "External auditor"},
    ],
    "use-case": [
        {
            "id": "UC-001",
            "name": "Place order",
            "description": "A registered customer places an order for the items in the cart.",
            "actors": {"primary": "customer", "secondary": ["clerk"]},
            "mainFlow": [
                {"stepId": "1", "actor": "customer", "action": "Submit the cart",
                 "expectedResult": "The order is sent for confirmation", "screen": "SCR-CART"},
                {"stepId": "2", "actor": "clerk", "action": "Confirm the order",
                 "expectedResult": "The confirmation is displayed", "screen": "SCR-CONFIRM"},
            ],
            "businessRequirementCoverage": {
                "requirement": "BR-001",
                "businessGoals": ["G1"],
                "businessRules": ["BR-R1"],
            },
        },
    ],
    "screen": [
        {"id": "SCR-CART", "name": "Cart",
         "inputFields": [{"name": "quantity", "validationRules": ["VR-QTY"]}]},
        {"id": "SCR-CONFIRM", "name": "Confirmation"},
    ],
    "screen-flow": [
        {
            "id": "SF-001",
            "name": "Ordering flow",
            "relatedUseCase": "UC-001",
            "screens": ["SCR-CART", "SCR-CONFIRM"],
            "transitions": [
                {"from": "SCR-CART", "to": "SCR-CONFIRM", "trigger": "submit",
                 "condition": "cart is not empty"},
            ],
            "startScreen": "SCR-CART",
            "endScreens": ["SCR-CONFIRM"],
        },
    ],
    "validation-rule": [
        {"id": "VR-QTY", "name": "Positive quantity", "relatedBusinessRule": "BR-R1"},
    ],
}


@pytest.fixture
def minimal_use_case():
    return copy.deepcopy(MINIMAL_USE_CASE)


@pytest.fixture
def repeatable_use_case():
    return copy.deepcopy(REPEATABLE_USE_CASE)


@pytest.fixture
def shop_records():
    """Fully linked project with one unreferenced actor."""
    return copy.deepcopy(SHOP_RECORDS)


@pytest.fixture
def default_config():
    """Empty config so module defaults apply regardless of args/ overrides."""
    return {}


@pytest.fixture
def history_db(tmp_path):
    """Path for a throwaway snapshot history database."""
    return tmp_path / "history" / "reqgraph.db"
