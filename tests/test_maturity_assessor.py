# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.maturity.maturity_assessor: element levels, dimension
completion, project roll-up and comparison."""

import pytest

from tools.maturity.maturity_assessor import (
    assess,
    assess_project,
    compare_assessments,
    compute_overall_level,
    estimate_effort,
)
from tools.maturity.maturity_model import DIMENSIONS, LEVELS

from conftest import FIXED_TIMESTAMP


# ---------------------------------------------------------------------------
# TestElementAssessment
# ---------------------------------------------------------------------------

class TestElementAssessment:
    """assess: one record against its catalog rows."""

    def test_minimal_use_case_is_initial(self, minimal_use_case, default_config):
        result = assess(minimal_use_case, "use-case", config=default_config)
        assert result.overall_level == 1
        assert result.recognized is True
        for dim in DIMENSIONS:
            assert result.dimensions[dim].completion_rate == 0.0

    def test_repeatable_use_case_reaches_level_two(self, repeatable_use_case, default_config):
        result = assess(repeatable_use_case, "use-case", config=default_config)
        assert result.overall_level == 2
        assert "uc-defined-business-coverage" in [c.id for c in result.unsatisfied_criteria]

    def test_type_alias_is_accepted(self, repeatable_use_case, default_config):
        result = assess(repeatable_use_case, "use_case", config=default_config)
        assert result.element_type == "use-case"
        assert result.overall_level == 2

    def test_unrecognized_type_yields_empty_assessment(self, default_config):
        result = assess({"id": "SCR-1", "name": "Cart"}, "screen", config=default_config)
        assert result.recognized is False
        assert result.evaluations == []
        assert result.overall_level == 1

    def test_malformed_fields_do_not_raise(self, default_config):
        record = {"id": "UC-9", "name": "Odd", "mainFlow": "not a list",
                  "actors": ["customer"], "preconditions": 5}
        result = assess(record, "use-case", config=default_config)
        assert result.overall_level == 1

    def test_completion_rate_is_weighted(self, repeatable_use_case, default_config):
        result = assess(repeatable_use_case, "use-case", config=default_config)
        total = sum(e.criterion.weight for e in result.evaluations)
        done = sum(e.criterion.weight for e in result.evaluations if e.satisfied)
        assert result.overall_completion_rate == pytest.approx(done / total, abs=1e-4)

    def test_level_completion_is_reported_per_level(self, repeatable_use_case, default_config):
        structure = assess(repeatable_use_case, "use-case",
                           config=default_config).dimensions["structure"]
        assert set(structure.level_completion) == set(LEVELS)
        assert structure.level_completion[1] == 1.0
        assert structure.level_completion[2] == 1.0

    def test_next_steps_target_the_next_level(self, repeatable_use_case, default_config):
        result = assess(repeatable_use_case, "use-case", config=default_config)
        high = [s for s in result.next_steps if s.priority == "high"]
        assert high
        assert high[0].unlocks_criteria == ["uc-defined-business-coverage"]


# ---------------------------------------------------------------------------
# TestLevelRules
# ---------------------------------------------------------------------------

class TestLevelRules:
    """Overall level is the highest fully satisfied prefix of levels."""

    def test_no_evaluations_is_initial(self):
        assert compute_overall_level([]) == 1

    def test_adding_a_field_never_lowers_the_level(self, repeatable_use_case, default_config):
        before = assess(repeatable_use_case, "use-case", config=default_config)
        repeatable_use_case["acceptanceCriteria"] = ["Order total is correct"]
        repeatable_use_case["businessValue"] = "Drives online revenue growth"
        after = assess(repeatable_use_case, "use-case", config=default_config)
        assert after.overall_level >= before.overall_level
        assert after.overall_completion_rate >= before.overall_completion_rate

    def test_relaxed_requirement_lifts_the_level(self, repeatable_use_case, default_config):
        del repeatable_use_case["preconditions"]
        del repeatable_use_case["postconditions"]
        strict = assess(repeatable_use_case, "use-case", config=default_config)
        relaxed = assess(repeatable_use_case, "use-case", required_overrides={
            "uc-repeatable-preconditions": False,
            "uc-repeatable-postconditions": False,
        }, config=default_config)
        assert strict.overall_level == 1
        assert relaxed.overall_level == 2

    def test_overrides_do_not_touch_the_catalog(self, repeatable_use_case, default_config):
        from tools.maturity.criteria_catalog import get_criterion

        assess(repeatable_use_case, "use-case",
               required_overrides={"uc-repeatable-priority": False}, config=default_config)
        assert get_criterion("uc-repeatable-priority").required is True

    @pytest.mark.parametrize("count,bucket", [(0, "small"), (3, "small"), (4, "medium"),
                                              (8, "medium"), (15, "large"), (16, "xlarge")])
    def test_effort_buckets(self, count, bucket, default_config):
        from tools.maturity.maturity_assessor import _settings
        assert estimate_effort(count, _settings(default_config)) == bucket


# ---------------------------------------------------------------------------
# TestProjectAssessment
# ---------------------------------------------------------------------------

class TestProjectAssessment:
    """assess_project: weakest-link roll-up over every assessable record."""

    def test_project_level_is_the_weakest_element(self, minimal_use_case,
                                                  repeatable_use_case, default_config):
        minimal_use_case["id"] = "UC-002"
        result = assess_project({"use-case": [repeatable_use_case, minimal_use_case]},
                                timestamp=FIXED_TIMESTAMP, config=default_config)
        assert result.project_level == 1
        assert result.level_distribution[1] == 1
        assert result.level_distribution[2] == 1
        assert result.timestamp == FIXED_TIMESTAMP

    def test_empty_project(self, default_config):
        result = assess_project({}, config=default_config)
        assert result.project_level == 1
        assert result.elements == []
        assert all(d.completion_rate == 0.0 for d in result.overall_dimensions.values())

    def test_none_collection_raises(self, default_config):
        with pytest.raises(TypeError):
            assess_project(None, config=default_config)

    def test_unassessable_and_idless_records_are_skipped(self, shop_records, default_config):
        shop_records["use-case"].append({"name": "No id"})
        result = assess_project(shop_records, config=default_config)
        reasons = [s["reason"] for s in result.skipped]
        assert "missing id" in reasons
        assert reasons.count("no maturity criteria for record type") == 4
        assessed_types = {e.element_type for e in result.elements}
        assert assessed_types == {"business-requirement", "actor", "use-case"}

    def test_dimension_completion_is_the_element_mean(self, shop_records, default_config):
        result = assess_project(shop_records, config=default_config)
        for dim in DIMENSIONS:
            rates = [e.dimensions[dim].completion_rate for e in result.elements]
            expected = round(sum(rates) / len(rates), 4)
            assert result.overall_dimensions[dim].completion_rate == expected

    def test_project_actions_name_the_laggards(self, minimal_use_case, default_config):
        result = assess_project({"use-case": [minimal_use_case]}, config=default_config)
        assert result.recommended_actions[0].priority == "high"
        assert "level 1" in result.recommended_actions[0].action

    def test_to_dict_is_json_friendly(self, shop_records, default_config):
        import json

        data = assess_project(shop_records, timestamp=FIXED_TIMESTAMP,
                              config=default_config).to_dict()
        assert json.loads(json.dumps(data))["element_count"] == len(data["elements"])


# ---------------------------------------------------------------------------
# TestCompareAssessments
# ---------------------------------------------------------------------------

class TestCompareAssessments:

    def test_level_up_is_reported(self, minimal_use_case, repeatable_use_case, default_config):
        before = assess_project({"use-case": [minimal_use_case]}, config=default_config)
        after = assess_project({"use-case": [repeatable_use_case]}, config=default_config)
        comparison = compare_assessments(before, after)
        assert comparison.level_change == 1
        assert [e["element_id"] for e in comparison.level_ups] == ["UC-001"]
        assert comparison.regressions == []

    def test_added_and_removed_elements(self, minimal_use_case, default_config):
        other = {"id": "UC-002", "name": "Cancel order"}
        before = assess_project({"use-case": [minimal_use_case]}, config=default_config)
        after = assess_project({"use-case": [other]}, config=default_config)
        comparison = compare_assessments(before, after)
        assert comparison.added_elements == ["UC-002"]
        assert comparison.removed_elements == ["UC-001"]
