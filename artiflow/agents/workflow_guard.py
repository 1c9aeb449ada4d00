"""
Last check on an instruction before it leaves the engine: no duplicate
artifacts, no jumping ahead of unmet dependencies.
"""
from typing import Iterable

from ..workflow.matching import artifact_matches_ref, completed_node_ids, unmet_dependencies
from ..workflow.models import (
    ArtifactGraphSnapshot,
    GuardResult,
    NextInstruction,
    WorkflowAction,
)
from .base import BaseAgent

ARTIFACT_EXISTS = "Artifact already exists; use UPDATE or skip."
DEPENDENCIES_UNMET = "Dependencies for next node not satisfied."


class WorkflowGuardAgent(BaseAgent):
    rule = "workflowGuard"

    def execute(self, instruction: NextInstruction, snapshot: ArtifactGraphSnapshot,
                completed_hint: Iterable[str] = ()) -> GuardResult:
        """
        `completed_hint` holds acknowledged nodes the snapshot may not show
        yet; they satisfy dependencies but never count as existing artifacts.
        """
        if instruction.action in (WorkflowAction.NO_OP, WorkflowAction.WAIT_FOR_INPUT):
            return GuardResult(passed=True)

        target = instruction.target_ref()
        if target is not None and instruction.action == WorkflowAction.GENERATE:
            exists = any(
                artifact_matches_ref(a, target.artifact_type, target.spec_name, target.artifact_name)
                for a in snapshot.artifacts
            )
            if exists:
                return GuardResult(
                    passed=False,
                    reason=ARTIFACT_EXISTS,
                    suggested_action=WorkflowAction.NO_OP,
                )

        next_node = self.definition.get(
            instruction.next_candidates[0] if instruction.next_candidates else None
        )
        if next_node is not None and next_node.dependencies:
            completed = set(completed_node_ids(self.definition, snapshot.artifacts))
            completed.update(completed_hint)
            if unmet_dependencies(self.definition, next_node, completed):
                return GuardResult(
                    passed=False,
                    reason=DEPENDENCIES_UNMET,
                    suggested_action=WorkflowAction.WAIT_FOR_INPUT,
                )

        return GuardResult(passed=True)
