"""Tests for the workflow guard (duplicate and dependency checks)."""

import pytest

from artiflow.agents.workflow_guard import ARTIFACT_EXISTS, DEPENDENCIES_UNMET, WorkflowGuardAgent
from artiflow.workflow.models import (
    ArtifactSummary,
    DecisionTrace,
    NextInstruction,
    WorkflowAction,
)


@pytest.fixture
def guard(definition):
    return WorkflowGuardAgent(definition)


def _instruction(definition, action, node_id, name=None):
    node = definition.nodes[node_id]
    return NextInstruction(
        action=action,
        current_state=None,
        next_candidates=[node_id],
        decision_trace=DecisionTrace(detected_state="none"),
        artifact_type=node.artifact_type,
        spec_name=node.spec_name,
        artifact_name=name or node.artifact_name,
    )


def test_generate_with_met_dependencies_passes(definition, guard, make_artifact, snapshot_of):
    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "1.7"),
                           snapshot_of([make_artifact("1.1")]))

    assert result.passed is True
    assert result.reason is None


def test_generate_existing_artifact_is_rejected(definition, guard, make_artifact, snapshot_of):
    snapshot = snapshot_of([make_artifact("1.1")])

    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "1.1"), snapshot)

    assert result.passed is False
    assert result.reason == ARTIFACT_EXISTS
    assert result.suggested_action == WorkflowAction.NO_OP


def test_duplicate_check_normalizes_names(definition, guard, artifacts_through, snapshot_of):
    existing = ArtifactSummary(id="t1", artifact_type="tests", spec_name="test-json-api",
                               artifact_name="Test JSON API")
    snapshot = snapshot_of(artifacts_through("3.4") + [existing])

    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "7.1"), snapshot)

    assert result.reason == ARTIFACT_EXISTS


def test_update_of_existing_artifact_passes(definition, guard, make_artifact, snapshot_of):
    snapshot = snapshot_of([make_artifact("1.1")])

    result = guard.execute(_instruction(definition, WorkflowAction.UPDATE, "1.1"), snapshot)

    assert result.passed is True


def test_unmet_dependencies_are_rejected(definition, guard, artifacts_through, snapshot_of):
    snapshot = snapshot_of(artifacts_through("3.6", skip=("3.5",)))

    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "3.4"), snapshot)

    assert result.passed is False
    assert result.reason == DEPENDENCIES_UNMET
    assert result.suggested_action == WorkflowAction.WAIT_FOR_INPUT


def test_missing_optional_dependency_does_not_block(definition, guard, make_artifact, snapshot_of):
    """2.1 depends on the optional 1.2; skipping it is allowed."""
    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "2.1"),
                           snapshot_of([make_artifact("1.1")]))

    assert result.passed is True


@pytest.mark.parametrize("action", [WorkflowAction.NO_OP, WorkflowAction.WAIT_FOR_INPUT])
def test_non_actions_always_pass(definition, guard, action, snapshot_of):
    """Even a target that exists with unmet dependencies is fine when nothing is generated."""
    existing = ArtifactSummary(id="x", artifact_type="lld", spec_name="technical-details-code",
                               artifact_name="technical-details-code")

    result = guard.execute(_instruction(definition, action, "3.4"), snapshot_of([existing]))

    assert result.passed is True


def test_acknowledged_dependencies_satisfy_the_guard(definition, guard, snapshot_of):
    instruction = _instruction(definition, WorkflowAction.GENERATE, "1.7")

    assert guard.execute(instruction, snapshot_of([])).reason == DEPENDENCIES_UNMET
    assert guard.execute(instruction, snapshot_of([]), completed_hint=["1.1"]).passed is True


def test_acknowledged_node_is_not_an_existing_artifact(definition, guard, snapshot_of):
    """Only the snapshot proves an artifact exists; acknowledgements do not."""
    result = guard.execute(_instruction(definition, WorkflowAction.GENERATE, "1.1"), snapshot_of([]),
                           completed_hint=["1.1"])

    assert result.passed is True
