from dataclasses import dataclass
from typing import List, Optional

from ..workflow.models import (
    ArtifactRef,
    ExpectedOutcome,
    LinkRequirement,
    WorkflowAction,
)
from .base import BaseAgent

FORBIDDEN_ACTIONS = ["create_duplicate", "skip_mentions"]

_CREATING_ACTIONS = (WorkflowAction.GENERATE, WorkflowAction.UPDATE)


@dataclass
class CompiledInstruction:
    prompt: str
    expected_outcome: ExpectedOutcome


class InstructionCompilerAgent(BaseAgent):
    """ Builds the generation prompt and the expected outcome for one artifact. """
    rule = "instructionCompiler"

    def execute(self, action: WorkflowAction, node_id: Optional[str],
                target: Optional[ArtifactRef], context_artifacts: List[ArtifactRef],
                rules: List[str]) -> CompiledInstruction:
        parts: List[str] = []
        if target is not None:
            statement = f"You are generating artifact: {target.artifact_type} -> {target.artifact_name}"
            if node_id:
                statement += f" (workflow node {node_id})"
            parts.append(statement + ".")
        if context_artifacts:
            mentions = ", ".join(ref.mention for ref in context_artifacts)
            parts.append(f"Context artifacts to reference: {mentions}.")
        parts.extend(rule for rule in rules if rule)

        must_create = [target] if target is not None and action in _CREATING_ACTIONS else []
        must_link = []
        if target is not None:
            must_link = [LinkRequirement(src=target, dest=ref) for ref in context_artifacts]

        return CompiledInstruction(
            prompt="\n\n".join(parts),
            expected_outcome=ExpectedOutcome(
                must_create=must_create,
                must_link=must_link,
                forbidden_actions=list(FORBIDDEN_ACTIONS),
            ),
        )
