"""Tests for resolving the current workflow node from existing artifacts."""

from artiflow.agents.workflow_state import WorkflowStateAgent
from artiflow.workflow.models import ArtifactSummary, WorkflowAction
from artiflow.workflow.resolver import resolve_workflow_node, skipped_node_ids


def test_empty_project_starts_at_first_node(definition):
    resolved = resolve_workflow_node(definition, [])

    assert resolved.current_node is None
    assert resolved.next_candidates == ["1.1"]
    assert resolved.completed_nodes == []
    assert resolved.recommended_action == WorkflowAction.GENERATE
    assert resolved.reasoning == ["No artifacts; start at node 1.1"]


def test_overview_only_offers_optional_and_next_required(definition, make_artifact):
    """After 1.1 the optional 1.2 is offered, with 2.1 as the required alternative."""
    resolved = resolve_workflow_node(definition, [make_artifact("1.1")])

    assert resolved.current_node == "1.1"
    assert resolved.completed_nodes == ["1.1"]
    assert resolved.next_candidates == ["1.2", "2.1"]
    assert resolved.recommended_action == WorkflowAction.GENERATE
    assert "2.1" not in resolved.blocked_nodes


def test_downstream_node_is_blocked_until_dependencies_exist(definition, artifacts_through):
    resolved = resolve_workflow_node(definition, artifacts_through("3.3"))

    assert resolved.current_node == "3.3"
    assert resolved.next_candidates == ["1.6"]
    assert resolved.recommended_action == WorkflowAction.GENERATE
    assert "3.4" in resolved.blocked_nodes


def test_blocked_successor_waits_for_input(definition, artifacts_through):
    """3.4 needs 3.5; with 3.5 missing the engine waits instead of generating."""
    resolved = resolve_workflow_node(definition, artifacts_through("3.6", skip=("3.5",)))

    assert resolved.current_node == "3.6"
    assert resolved.next_candidates == ["3.4"]
    assert resolved.recommended_action == WorkflowAction.WAIT_FOR_INPUT
    assert "3.4" in resolved.blocked_nodes
    assert resolved.reasoning[-1] == "Next node 3.4 blocked by dependencies: 3.5"


def test_optional_nodes_never_block(definition, make_artifact):
    resolved = resolve_workflow_node(definition, [make_artifact("1.1"), make_artifact("2.1")])

    assert resolved.current_node == "2.1"
    assert resolved.next_candidates == ["4.2", "1.7"]
    assert resolved.recommended_action == WorkflowAction.GENERATE
    assert "1.2" not in resolved.blocked_nodes
    assert "1.2" in resolved.skippable_nodes
    assert skipped_node_ids(definition, resolved) == ["1.2"]


def test_optional_primary_candidate_skips_past_other_optional_nodes(definition, artifacts_through):
    resolved = resolve_workflow_node(definition, artifacts_through("3.4"))

    assert resolved.next_candidates == ["5.1", "7.1"]
    assert resolved.reasoning == ["Next node: 5.1", "Node 5.1 is optional; 7.1 can be generated instead"]


def test_completed_create_only_if_asked_node_is_not_offered_again(definition, make_artifact):
    resolved = resolve_workflow_node(definition, [make_artifact("1.1"), make_artifact("1.2")])

    assert resolved.completed_nodes == ["1.1", "1.2"]
    assert resolved.next_candidates == ["2.1"]


def test_workflow_complete(definition, artifacts_through):
    resolved = resolve_workflow_node(definition, artifacts_through("6.2"))

    assert resolved.current_node == "6.2"
    assert resolved.next_candidates == []
    assert resolved.recommended_action == WorkflowAction.NO_OP
    assert resolved.reasoning == ["Workflow complete"]
    assert resolved.completed_nodes == definition.order


def test_completed_nodes_are_exactly_the_nodes_with_artifacts(definition, make_artifact):
    present = ["1.1", "1.7", "3.1", "6.2"]
    artifacts = [make_artifact(node_id) for node_id in reversed(present)]

    resolved = resolve_workflow_node(definition, artifacts)

    assert resolved.completed_nodes == present
    assert resolved.current_node == "6.2"


def test_relaxed_nodes_accept_any_name_in_spec(definition):
    """Screens acceptance criteria are per-screen files; any name counts."""
    artifacts = [
        ArtifactSummary(id="a", artifact_type="requirement", spec_name="overview", artifact_name="9f1e-uuid"),
        ArtifactSummary(id="b", artifact_type="requirement", spec_name="acceptance-criteria-screens",
                        artifact_name="login-screen"),
    ]

    resolved = resolve_workflow_node(definition, artifacts)

    assert resolved.completed_nodes == ["1.1", "1.3"]


def test_exact_nodes_compare_normalized_names(definition):
    matching = ArtifactSummary(id="a", artifact_type="tests", spec_name="test-json-api",
                               artifact_name="Test JSON API")
    other = ArtifactSummary(id="b", artifact_type="tests", spec_name="test-json-api",
                            artifact_name="smoke")

    assert resolve_workflow_node(definition, [matching]).completed_nodes == ["7.1"]
    assert resolve_workflow_node(definition, [other]).completed_nodes == []


def test_last_known_state_ahead_overrides_successor(definition, make_artifact):
    artifacts = [make_artifact("1.1")]

    resolved = resolve_workflow_node(definition, artifacts, last_known_state="2.1")

    assert resolved.next_candidates == ["2.1"]
    assert resolved.recommended_action == WorkflowAction.GENERATE
    assert resolved.reasoning[-1] == "Using lastKnownState 2.1 as next candidate"


def test_last_known_state_with_unmet_dependencies_waits(definition, make_artifact):
    resolved = resolve_workflow_node(definition, [make_artifact("1.1")], last_known_state="3.1")

    assert resolved.next_candidates == ["3.1"]
    assert resolved.recommended_action == WorkflowAction.WAIT_FOR_INPUT


def test_last_known_state_is_ignored_when_behind_completed_or_unknown(definition, make_artifact):
    artifacts = [make_artifact("1.1"), make_artifact("2.1")]
    baseline = resolve_workflow_node(definition, artifacts)

    for last_known in ("1.2", "2.1", "9.9"):
        resolved = resolve_workflow_node(definition, artifacts, last_known_state=last_known)
        assert resolved.next_candidates == baseline.next_candidates
        assert resolved.recommended_action == baseline.recommended_action


def test_last_known_state_equal_to_successor_keeps_alternative(definition, make_artifact):
    resolved = resolve_workflow_node(definition, [make_artifact("1.1")], last_known_state="1.2")

    assert resolved.next_candidates == ["1.2", "2.1"]


def test_resolution_is_pure(definition, artifacts_through):
    artifacts = artifacts_through("1.3")
    before = list(artifacts)

    first = resolve_workflow_node(definition, artifacts)
    second = resolve_workflow_node(definition, iter(artifacts))

    assert artifacts == before
    assert first == second


def test_workflow_state_agent_uses_snapshot(definition, make_artifact, snapshot_of):
    agent = WorkflowStateAgent(definition)

    resolved = agent.execute(snapshot_of([make_artifact("1.1")]), last_known_state=None)

    assert agent.rule == "resolveWorkflowNode"
    assert resolved.current_node == "1.1"


def test_optional_last_known_state_also_offers_next_required(definition, artifacts_through):
    resolved = resolve_workflow_node(definition, artifacts_through("3.4"), last_known_state="5.2")

    assert resolved.next_candidates == ["5.2", "7.1"]
    assert resolved.reasoning[-1] == "Node 5.2 is optional; 7.1 can be generated instead"


def test_completed_hint_counts_acknowledged_nodes(definition):
    """An acknowledged node whose artifact is not visible yet is still done."""
    resolved = resolve_workflow_node(definition, [], last_known_state="1.2", completed_hint=["1.1"])

    assert resolved.current_node == "1.1"
    assert resolved.completed_nodes == ["1.1"]
    assert resolved.next_candidates == ["1.2", "2.1"]
    assert resolved.recommended_action == WorkflowAction.GENERATE
