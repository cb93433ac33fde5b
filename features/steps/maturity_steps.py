# CUI // SP-CTI
"""Step definitions for requirements quality assessment BDD scenarios."""

import json
import os
import subprocess
import sys

from behave import given, then, when

PIPELINE = os.path.join('tools', 'maturity', 'quality_pipeline.py')

ORDERING_RECORDS = {
    "actor": [
        {"id": "customer", "name": "Customer", "role": "user",
         "description": "A person buying products"},
        {"id": "auditor", "name": "Auditor", "role": "external",
         "description": "External auditor"},
    ],
    "use-case": [
        {"id": "UC-001", "name": "Place order",
         "actors": {"primary": "customer"},
         "mainFlow": [{"stepId": "1", "actor": "customer", "action": "Submit the cart",
                       "expectedResult": "The order is confirmed"}]},
    ],
}


def _run(context, *extra):
    """Run the pipeline CLI from the project root."""
    context.result = subprocess.run(
        [sys.executable, PIPELINE, *extra],
        capture_output=True, text=True, timeout=60, cwd=context.project_root
    )
    if context.result.returncode == 0 and '--json' in extra:
        context.output = json.loads(context.result.stdout)


def _write_records(context):
    with open(context.records_path, 'w', encoding='utf-8') as f:
        json.dump(context.records, f)


@given('a records file for a small ordering project')
def step_records_file(context):
    """Write the ordering project records to a scratch JSON file."""
    context.records = json.loads(json.dumps(ORDERING_RECORDS))
    context.records_path = os.path.join(context.work_dir, 'records.json')
    _write_records(context)


@given('use case "{uc_id}" references prerequisite "{ref}"')
def step_add_prerequisite(context, uc_id, ref):
    """Add a prerequisite reference to a use case."""
    for uc in context.records["use-case"]:
        if uc["id"] == uc_id:
            uc["prerequisiteUseCases"] = [ref]
    _write_records(context)


@when('I run the quality pipeline with JSON output')
def step_run_json(context):
    """Run the pipeline and parse its JSON output."""
    _run(context, '--records', context.records_path, '--db-path', context.db_path, '--json')


@when('I run the quality pipeline with JSON output and criticality "{criticality}"')
def step_run_json_criticality(context, criticality):
    """Run the pipeline with an explicit criticality."""
    _run(context, '--records', context.records_path, '--db-path', context.db_path,
         '--criticality', criticality, '--json')


@when('I run the quality pipeline and store the snapshot')
def step_run_store(context):
    """Run the pipeline and append its snapshot to the scratch history."""
    _run(context, '--records', context.records_path, '--db-path', context.db_path,
         '--project-name', 'ordering', '--store')
    assert context.result.returncode == 0, f"Store failed: {context.result.stderr}"


@when('I export the dashboard as "{fmt}"')
def step_export(context, fmt):
    """Run the pipeline again and export the dashboard."""
    _run(context, '--records', context.records_path, '--db-path', context.db_path,
         '--project-name', 'ordering', '--export', fmt)


@when('I run the quality pipeline on a missing file')
def step_run_missing(context):
    """Point the pipeline at a file that does not exist."""
    _run(context, '--records', os.path.join(context.work_dir, 'missing.json'))


@then('the command should succeed')
def step_command_succeeds(context):
    """Verify a zero exit code."""
    assert context.result.returncode == 0, (
        f"Exit {context.result.returncode}: {context.result.stderr}"
    )


@then('the command should fail')
def step_command_fails(context):
    """Verify a non-zero exit code."""
    assert context.result.returncode != 0


@then('the graph should have {count:d} nodes')
def step_graph_nodes(context, count):
    """Verify the node count of the dependency graph."""
    assert context.output["graph_analysis"]["statistics"]["node_count"] == count


@then('"{node_id}" should be reported as isolated')
def step_isolated(context, node_id):
    """Verify a node is listed as isolated."""
    assert node_id in context.output["graph_analysis"]["isolated_nodes"]


@then('the project maturity level should be {level:d}')
def step_maturity_level(context, level):
    """Verify the weakest-link project level."""
    assert context.output["maturity"]["project_level"] == level


@then('the "{dimension}" dimension weight should be {weight:g}')
def step_dimension_weight(context, dimension, weight):
    """Verify a context-adjusted dimension weight."""
    actual = context.output["context"]["dimension_weights"][dimension]
    assert abs(actual - weight) < 1e-6, f"Expected {weight}, got {actual}"


@then('a recommendation "{rec_id}" should be present')
def step_recommendation_present(context, rec_id):
    """Verify a recommendation id appears in the output."""
    ids = [r["id"] for r in context.output["recommendations"]["recommendations"]]
    assert rec_id in ids, f"{rec_id} not in {ids}"


@then('{count:d} unresolved reference should be reported')
def step_unresolved(context, count):
    """Verify the broken reference count."""
    assert context.output["unresolved"] == count


@then('the export should start with the CSV header')
def step_csv_header(context):
    """Verify the CSV export layout."""
    lines = context.result.stdout.strip().splitlines()
    assert lines[0] == "timestamp,maturity_level,completion_rate,recommendation_count"
    assert len(lines) >= 2


@then('the error output should mention "{text}"')
def step_error_mentions(context, text):
    """Verify the JSON error printed to stderr."""
    error = json.loads(context.result.stderr)
    assert text in error["error"], error
