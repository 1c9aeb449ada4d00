from typing import Iterable, Optional

from ..workflow.models import ArtifactGraphSnapshot, ResolvedWorkflowState
from ..workflow.resolver import resolve_workflow_node
from .base import BaseAgent


class WorkflowStateAgent(BaseAgent):
    """ Computes current node, next candidates and blocked nodes from a snapshot. """
    rule = "resolveWorkflowNode"

    def execute(self, snapshot: ArtifactGraphSnapshot,
                last_known_state: Optional[str] = None,
                completed_hint: Iterable[str] = ()) -> ResolvedWorkflowState:
        return resolve_workflow_node(self.definition, snapshot.artifacts, last_known_state,
                                     completed_hint)
