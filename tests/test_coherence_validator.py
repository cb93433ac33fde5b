# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.maturity.coherence_validator: use case vs screen flow."""

from tools.maturity.coherence_validator import (
    flow_end_screens,
    flow_screens,
    flow_start_screen,
    use_case_screen_sequence,
    validate_coherence,
)


def _types(report):
    return [issue["type"] for issue in report["issues"]]


class TestFlowHelpers:

    def test_screens_derived_from_transitions(self):
        flow = {"transitions": [{"from": "A", "to": "B"}, {"from": "B", "to": "C"}]}
        assert flow_screens(flow) == ["A", "B", "C"]
        assert flow_start_screen(flow) == "A"
        assert flow_end_screens(flow) == ["C"]

    def test_declared_values_win(self):
        flow = {"screens": ["X", "Y"], "startScreen": "Y", "endScreens": ["X"],
                "transitions": [{"from": "X", "to": "Y"}]}
        assert flow_screens(flow) == ["X", "Y"]
        assert flow_start_screen(flow) == "Y"
        assert flow_end_screens(flow) == ["X"]

    def test_repeated_screens_collapse(self):
        use_case = {"mainFlow": [{"screen": "A"}, {"screen": "A"}, {"screen": "B"},
                                 {"action": "no screen"}, {"screen": "A"}]}
        assert use_case_screen_sequence(use_case) == ["A", "B", "A"]


class TestValidateCoherence:

    def test_consistent_project(self, shop_records):
        report = validate_coherence(shop_records["use-case"], shop_records["screen-flow"])
        assert report["valid"] is True
        assert report["total_use_cases"] == 1
        assert report["total_screen_flows"] == 1
        assert report["issues_by_severity"] == {"high": 0, "medium": 0, "low": 0}

    def test_screen_order_mismatch(self, shop_records):
        shop_records["screen-flow"][0]["screens"] = ["SCR-CONFIRM", "SCR-CART"]
        report = validate_coherence(shop_records["use-case"], shop_records["screen-flow"])
        assert "screen-sequence-mismatch" in _types(report)
        assert report["valid"] is False

    def test_missing_transition(self, shop_records):
        shop_records["screen-flow"][0]["transitions"] = []
        report = validate_coherence(shop_records["use-case"], shop_records["screen-flow"])
        missing = [i for i in report["issues"] if i["type"] == "transition-missing"]
        assert missing[0]["affected_step_ids"] == ["1", "2"]
        assert missing[0]["severity"] == "high"

    def test_transition_without_condition(self, shop_records):
        del shop_records["screen-flow"][0]["transitions"][0]["condition"]
        report = validate_coherence(shop_records["use-case"], shop_records["screen-flow"])
        assert _types(report) == ["transition-condition-missing"]
        assert report["issues_by_severity"]["low"] == 1

    def test_boundary_mismatches(self, shop_records):
        flow = shop_records["screen-flow"][0]
        flow["startScreen"] = "SCR-CONFIRM"
        flow["endScreens"] = ["SCR-CART"]
        report = validate_coherence(shop_records["use-case"], shop_records["screen-flow"])
        assert "start-screen-mismatch" in _types(report)
        assert "end-screen-mismatch" in _types(report)
        assert list(report["issues_by_use_case"]) == ["UC-001"]

    def test_use_case_without_flow_is_not_checked(self, shop_records):
        report = validate_coherence(shop_records["use-case"], [])
        assert report["valid"] is True
        assert report["total_issues"] == 0

    def test_none_inputs(self):
        report = validate_coherence(None, None)
        assert report["valid"] is True
        assert report["total_use_cases"] == 0
