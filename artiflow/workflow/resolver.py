"""
Deterministic resolution of the current workflow node.

Pure function of (definition, artifacts, last known node): no I/O, so it can
be exercised on synthetic artifact lists and reused anywhere a position in
the workflow is needed.
"""
from typing import Iterable, List, Optional, Set

from .matching import node_has_artifact, unmet_dependencies
from .models import (
    ArtifactSummary,
    ResolvedWorkflowState,
    WorkflowAction,
    WorkflowDefinition,
    WorkflowNodeDef,
)


def resolve_workflow_node(definition: WorkflowDefinition,
                          artifacts: Iterable[ArtifactSummary],
                          last_known_state: Optional[str] = None,
                          completed_hint: Iterable[str] = ()) -> ResolvedWorkflowState:
    """
    Map the artifacts that exist onto a position in the canonical order.

    Empty project -> first node. Otherwise the successor of the last
    completed node, or a node the caller already knows is next
    (`last_known_state`) when that one is further ahead.

    `completed_hint` names nodes acknowledged as done whose artifacts the
    snapshot may not show yet; they count as completed.
    """
    artifacts = list(artifacts)
    hinted = set(completed_hint)
    reasoning: List[str] = []
    completed: List[str] = []
    blocked: List[str] = []
    skippable: List[str] = []
    completed_set: Set[str] = set()

    for node in definition.nodes_in_order():
        if node.node_id in hinted or node_has_artifact(artifacts, node):
            completed.append(node.node_id)
            completed_set.add(node.node_id)
        elif unmet_dependencies(definition, node, completed_set):
            blocked.append(node.node_id)
        elif node.is_optional:
            skippable.append(node.node_id)

    current_node: Optional[str] = None
    next_candidates: List[str] = []
    action = WorkflowAction.GENERATE

    if not completed:
        first = definition.first_node_id
        next_candidates = [first] if first else []
        reasoning.append(f"No artifacts; start at node {first}")
    else:
        current_node = completed[-1]
        candidate = _successor(definition, current_node, completed_set)
        if candidate is None:
            action = WorkflowAction.NO_OP
            reasoning.append("Workflow complete")
        else:
            unmet = unmet_dependencies(definition, candidate, completed_set)
            next_candidates = [candidate.node_id]
            if unmet:
                if candidate.node_id not in blocked:
                    blocked.append(candidate.node_id)
                action = WorkflowAction.WAIT_FOR_INPUT
                reasoning.append(
                    f"Next node {candidate.node_id} blocked by dependencies: {', '.join(unmet)}"
                )
            else:
                reasoning.append(f"Next node: {candidate.node_id}")
                if candidate.is_optional:
                    required = _next_required(definition, candidate.node_id, completed_set)
                    if required:
                        next_candidates.append(required)
                        reasoning.append(
                            f"Node {candidate.node_id} is optional; {required} can be generated instead"
                        )

    if last_known_state and definition.get(last_known_state):
        known_idx = definition.index_of(last_known_state)
        current_idx = definition.index_of(current_node)
        already_primary = next_candidates[:1] == [last_known_state]
        if known_idx > current_idx and last_known_state not in completed_set and not already_primary:
            known = definition.nodes[last_known_state]
            next_candidates = [last_known_state]
            unmet = unmet_dependencies(definition, known, completed_set)
            action = WorkflowAction.WAIT_FOR_INPUT if unmet else WorkflowAction.GENERATE
            reasoning.append(f"Using lastKnownState {last_known_state} as next candidate")
            if not unmet and known.is_optional:
                required = _next_required(definition, last_known_state, completed_set)
                if required:
                    next_candidates.append(required)
                    reasoning.append(
                        f"Node {last_known_state} is optional; {required} can be generated instead"
                    )

    return ResolvedWorkflowState(
        current_node=current_node,
        next_candidates=next_candidates,
        blocked_nodes=blocked,
        completed_nodes=completed,
        skippable_nodes=skippable,
        recommended_action=action,
        reasoning=reasoning,
    )


def _successor(definition: WorkflowDefinition, node_id: str,
               completed: Set[str]) -> Optional[WorkflowNodeDef]:
    # completed create-only-if-asked nodes are covered here too: never re-offered
    for candidate_id in definition.order[definition.index_of(node_id) + 1:]:
        if candidate_id in completed:
            continue
        return definition.nodes[candidate_id]
    return None


def _next_required(definition: WorkflowDefinition, after_id: str,
                   completed: Set[str]) -> Optional[str]:
    """First required node past `after_id`, if nothing required and unmet is in the way."""
    for candidate_id in definition.order[definition.index_of(after_id) + 1:]:
        node = definition.nodes[candidate_id]
        if candidate_id in completed or node.is_optional:
            continue
        if unmet_dependencies(definition, node, completed):
            return None
        return candidate_id
    return None


def skipped_node_ids(definition: WorkflowDefinition, resolved: ResolvedWorkflowState) -> List[str]:
    """Optional nodes left behind the current node without an artifact."""
    current_idx = definition.index_of(resolved.current_node)
    return [node_id for node_id in resolved.skippable_nodes
            if definition.index_of(node_id) < current_idx]
