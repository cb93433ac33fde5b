# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.maturity.context_engine and context_rules: weight
composition, requirement overrides and context inference."""

import pytest

from tools.maturity.context_engine import (
    apply_context,
    generate_context_summary,
    generate_contextual_recommendations,
    infer_context,
)
from tools.maturity.context_rules import (
    BUILT_IN_RULES,
    Criticality,
    DevelopmentStage,
    ProjectContext,
    ProjectDomain,
    TeamSize,
    rule_from_dict,
)
from tools.maturity.maturity_model import DIMENSIONS


# ---------------------------------------------------------------------------
# TestApplyContext
# ---------------------------------------------------------------------------

class TestApplyContext:
    """apply_context: rule matching and weight composition."""

    def test_default_context_has_unit_weights(self, default_config):
        result = apply_context({}, config=default_config)
        assert result.applied_rules == []
        assert all(result.weight(d) == 1.0 for d in DIMENSIONS)

    def test_mission_critical_scales_every_dimension_once(self, default_config):
        result = apply_context({"criticality": "mission-critical"}, config=default_config)
        assert result.strictness_factor == 1.5
        for dim in DIMENSIONS:
            assert result.weight(dim) == pytest.approx(1.5)
        assert [r.id for r in result.applied_rules] == ["criticality-mission-critical"]

    def test_mission_critical_adds_requirements(self, default_config):
        result = apply_context({"criticality": "mission_critical"}, config=default_config)
        overrides = result.required_overrides()
        assert overrides["uc-managed-security"] is True
        assert overrides["uc-defined-acceptance-criteria"] is True

    def test_domain_and_stage_multipliers_compose(self, default_config):
        result = apply_context({"domain": "finance", "stage": "maintenance"},
                               config=default_config)
        # finance 1.5 x maintenance 1.4 on traceability
        assert result.weight("traceability") == pytest.approx(2.1)
        assert result.weight("structure") == pytest.approx(1.0)

    def test_additions_win_over_relaxations(self, default_config):
        result = apply_context({"stage": "poc", "criticality": "mission_critical"},
                               config=default_config)
        overrides = result.required_overrides()
        assert overrides["uc-defined-acceptance-criteria"] is True
        assert overrides["uc-repeatable-preconditions"] is False

    def test_rule_order_does_not_change_weights(self, default_config):
        rules = [
            {"id": "a", "when": {"domain": "finance"},
             "weight_adjustments": [{"dimension": "detail", "multiplier": 1.1}]},
            {"id": "b", "when": {"domain": "finance"},
             "weight_adjustments": [{"dimension": "detail", "multiplier": 0.7}]},
        ]
        forward = apply_context({"domain": "finance"}, rules, config=default_config)
        backward = apply_context({"domain": "finance"}, list(reversed(rules)),
                                 config=default_config)
        assert forward.dimension_weights == backward.dimension_weights

    def test_custom_rules_from_config(self):
        config = {"context": {"custom_rules": [
            {"id": "iot-tests", "when": {"tags": ["sensor"]},
             "weight_adjustments": [{"dimension": "testability", "multiplier": 2.0}]},
        ]}}
        result = apply_context({"tags": ["sensor"]}, config=config)
        assert result.weight("testability") == pytest.approx(2.0)
        assert apply_context({"tags": ["web"]}, config=config).weight("testability") == 1.0

    def test_strictness_table_is_configurable(self):
        config = {"context": {"strictness": {"high": 2.0}}}
        result = apply_context({"criticality": "high"}, config=config)
        assert result.weight("detail") == pytest.approx(2.0)

    def test_built_in_rules_are_not_mutated(self, default_config):
        before = len(BUILT_IN_RULES)
        apply_context({"domain": "finance"}, [{"id": "extra"}], config=default_config)
        assert len(BUILT_IN_RULES) == before

    def test_to_dict_lists_applied_rule_ids(self, default_config):
        data = apply_context({"team_size": "large"}, config=default_config).to_dict()
        assert data["applied_rules"] == ["team-large-comprehensive"]
        assert data["context"]["team_size"] == "large"


# ---------------------------------------------------------------------------
# TestContextParsing
# ---------------------------------------------------------------------------

class TestContextParsing:

    def test_unknown_enum_value_falls_back(self):
        ctx = ProjectContext.from_dict({"domain": "space", "stage": "beta"})
        assert ctx.domain == ProjectDomain.GENERAL
        assert ctx.stage == DevelopmentStage.ACTIVE_DEVELOPMENT

    def test_camel_case_keys(self):
        ctx = ProjectContext.from_dict({"projectName": "shop", "teamSize": "solo"})
        assert ctx.project_name == "shop"
        assert ctx.team_size == TeamSize.SOLO

    def test_rule_without_id_raises(self):
        with pytest.raises(ValueError, match="id"):
            rule_from_dict({"when": {"domain": "finance"}})

    def test_non_positive_multiplier_raises(self):
        with pytest.raises(ValueError, match="positive"):
            rule_from_dict({"id": "bad", "weight_adjustments": [
                {"dimension": "detail", "multiplier": 0}]})


# ---------------------------------------------------------------------------
# TestInferContext
# ---------------------------------------------------------------------------

class TestInferContext:

    def test_domain_and_stage_from_name(self):
        ctx = infer_context("online-shop-poc")
        assert ctx.domain == ProjectDomain.ECOMMERCE
        assert ctx.stage == DevelopmentStage.POC

    def test_tags_are_considered(self):
        ctx = infer_context("portal", tags=["Hospital"])
        assert ctx.domain == ProjectDomain.HEALTHCARE

    def test_explicit_fields_win(self):
        ctx = infer_context("bank-prototype", explicit={"domain": "finance", "stage": "mvp",
                                                        "criticality": "high"})
        assert ctx.domain == ProjectDomain.FINANCE
        assert ctx.stage == DevelopmentStage.MVP
        assert ctx.criticality == Criticality.HIGH

    def test_empty_explicit_values_do_not_block_inference(self):
        ctx = infer_context("shop", explicit={"domain": None, "stage": ""})
        assert ctx.domain == ProjectDomain.ECOMMERCE

    def test_nothing_to_infer_uses_defaults(self):
        ctx = infer_context("portal")
        assert ctx.domain == ProjectDomain.GENERAL
        assert ctx.criticality == Criticality.MEDIUM


# ---------------------------------------------------------------------------
# TestNarrative
# ---------------------------------------------------------------------------

class TestNarrative:

    def test_recommendations_name_focus_dimensions(self, default_config):
        result = apply_context({"criticality": "mission_critical"}, config=default_config)
        lines = generate_contextual_recommendations(result, default_config)
        assert any(line.startswith("Focus on:") for line in lines)
        assert not any(line.startswith("May defer:") for line in lines)

    def test_poc_defers_testability(self, default_config):
        result = apply_context({"stage": "poc"}, config=default_config)
        lines = generate_contextual_recommendations(result, default_config)
        defer = [line for line in lines if line.startswith("May defer:")]
        assert defer and "testability" in defer[0]

    def test_summary_includes_weights(self, default_config):
        result = apply_context({"project_name": "shop", "domain": "ecommerce"},
                               config=default_config)
        summary = generate_context_summary(result, default_config)
        assert "Project     : shop" in summary
        assert "Final dimension weights" in summary
