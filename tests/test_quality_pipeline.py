# CUI // SP-CTI
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

"""Tests for tools.maturity.quality_pipeline: record loading and the
end-to-end run."""

import json

import pytest
import yaml

from tools.maturity.context_rules import Criticality, ProjectContext, ProjectDomain
from tools.maturity.quality_pipeline import execute, load_records, resolve_context, run_pipeline

from conftest import FIXED_TIMESTAMP


# ---------------------------------------------------------------------------
# TestLoadRecords
# ---------------------------------------------------------------------------

class TestLoadRecords:

    def test_json_file(self, tmp_path, shop_records):
        path = tmp_path / "records.json"
        path.write_text(json.dumps(shop_records), encoding="utf-8")
        assert load_records(path) == shop_records

    def test_yaml_file(self, tmp_path, shop_records):
        path = tmp_path / "records.yaml"
        path.write_text(yaml.safe_dump(shop_records), encoding="utf-8")
        assert load_records(path) == shop_records

    def test_null_section_becomes_empty_list(self, tmp_path):
        path = tmp_path / "records.yaml"
        path.write_text("actor:\nuse-case:\n  - id: UC-1\n    name: Order\n", encoding="utf-8")
        assert load_records(path) == {"actor": [], "use-case": [{"id": "UC-1", "name": "Order"}]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "missing.json")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "records.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_records(path)

    def test_section_not_a_list(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps({"actor": {"id": "a"}}), encoding="utf-8")
        with pytest.raises(ValueError, match="must be a list"):
            load_records(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "records.yml"
        path.write_text("actor: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Could not parse"):
            load_records(path)


# ---------------------------------------------------------------------------
# TestResolveContext
# ---------------------------------------------------------------------------

class TestResolveContext:

    def test_context_object_passes_through(self):
        ctx = ProjectContext(project_name="bank")
        assert resolve_context(ctx, "ignored") is ctx

    def test_dict_is_merged_with_inference(self):
        ctx = resolve_context({"criticality": "high"}, project_name="online-shop")
        assert ctx.domain == ProjectDomain.ECOMMERCE
        assert ctx.criticality == Criticality.HIGH

    def test_no_context(self):
        assert resolve_context(None).domain == ProjectDomain.GENERAL


# ---------------------------------------------------------------------------
# TestExecute
# ---------------------------------------------------------------------------

class TestExecute:

    def test_shop_project(self, shop_records, default_config):
        result = execute(shop_records, timestamp=FIXED_TIMESTAMP, config=default_config)
        assert len(result.graph) == 12
        assert result.graph_analysis.isolated_nodes == ["auditor"]
        assert result.coherence["valid"] is True
        assert result.snapshot.timestamp == FIXED_TIMESTAMP
        assert result.snapshot.graph_stats["isolated_nodes"] == 1
        assert "rec-isolated-auditor" in [r.id for r in result.recommendations.recommendations]
        assert 0 <= result.health.overall <= 100

    def test_fixed_timestamp_makes_runs_identical(self, shop_records, default_config):
        first = run_pipeline(shop_records, {"domain": "finance"}, timestamp=FIXED_TIMESTAMP,
                             config=default_config)
        second = run_pipeline(shop_records, {"domain": "finance"}, timestamp=FIXED_TIMESTAMP,
                              config=default_config)
        assert first == second
        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)

    def test_context_shapes_the_run(self, shop_records, default_config):
        result = execute(shop_records, {"criticality": "mission_critical"},
                         timestamp=FIXED_TIMESTAMP, config=default_config)
        assert result.context_result.weight("traceability") == pytest.approx(1.5)
        ids = [r.id for r in result.recommendations.recommendations]
        assert "rec-context-criticality-mission_critical" in ids
        assert result.snapshot.context["criticality"] == "mission_critical"

    def test_counts_in_dict(self, shop_records, default_config):
        shop_records["use-case"].append({"name": "No id"})
        shop_records["use-case"][0]["prerequisiteUseCases"] = ["UC-404"]
        data = run_pipeline(shop_records, timestamp=FIXED_TIMESTAMP, config=default_config)
        assert data["unresolved"] == 1
        assert data["skipped"] >= 1
        assert data["graph_analysis"]["statistics"]["broken_links"] == 1

    def test_repeated_dangling_reference_counts_once(self, shop_records, default_config):
        for step in shop_records["use-case"][0]["mainFlow"]:
            step["actor"] = "ghost"
        data = run_pipeline(shop_records, timestamp=FIXED_TIMESTAMP, config=default_config)
        assert data["unresolved"] == 1
        ids = [r["id"] for r in data["recommendations"]["recommendations"]]
        assert len(ids) == len(set(ids))

    def test_previous_snapshot_feeds_alerts(self, shop_records, default_config):
        first = execute(shop_records, timestamp=FIXED_TIMESTAMP, config=default_config)
        shop_records["use-case"].append({"id": "UC-002", "name": "Pay order",
                                         "prerequisiteUseCases": ["UC-001"]})
        shop_records["use-case"][0]["prerequisiteUseCases"] = ["UC-002"]
        second = execute(shop_records, timestamp="2024-05-02T12:00:00+00:00",
                         previous_snapshot=first.snapshot, config=default_config)
        metrics = [a.metric for a in second.alerts]
        assert "new_circular_dependencies" in metrics

    def test_empty_records(self, default_config):
        result = execute({}, timestamp=FIXED_TIMESTAMP, config=default_config)
        assert result.maturity.project_level == 1
        assert len(result.graph) == 0
        assert result.recommendations.summary["total"] == 0

    def test_none_records_raise(self, default_config):
        with pytest.raises(TypeError):
            execute(None, config=default_config)
