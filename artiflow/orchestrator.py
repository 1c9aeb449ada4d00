"""
Workflow orchestrator: decides and hands out one step at a time.

Two-phase protocol per project:
1. get_next_instruction - offer one step (action + prompt + expected outcome)
   and remember it as the single pending instruction
2. record_progress      - acknowledge that step; advances state exactly once,
   stale or repeated acknowledgements are no-ops

Each call runs under a per-project lock held by the state store, so
concurrent calls for the same project cannot lose each other's updates.
"""

import logging
import uuid
from dataclasses import replace
from typing import List, Optional

from .agents.context_assembly import ContextAssemblyAgent
from .agents.instruction_compiler import InstructionCompilerAgent
from .agents.workflow_guard import WorkflowGuardAgent
from .agents.workflow_state import WorkflowStateAgent
from .artifacts.graph import ArtifactGraphBuilder
from .artifacts.store import ArtifactStore
from .config import DEFAULT_SOURCE, EngineConfig
from .store.state_store import WorkflowStateStore
from .workflow.compiler import default_definition
from .workflow.matching import completed_node_ids
from .workflow.models import (
    ContextPolicy,
    DecisionTrace,
    NextInstruction,
    ProgressResult,
    WorkflowAction,
    WorkflowDefinition,
)
from .workflow.resolver import skipped_node_ids
from .workflow.schema import utc_now

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """
    Composes the agents in a fixed order:
    state + intent -> snapshot -> resolve -> context -> compile -> guard -> persist.

    All collaborators are passed in; nothing here is process-global.
    """

    def __init__(self, state_store: WorkflowStateStore, graph_builder: ArtifactGraphBuilder,
                 definition: Optional[WorkflowDefinition] = None, source: str = DEFAULT_SOURCE,
                 context_policy: Optional[ContextPolicy] = None):
        """
        Args:
            state_store: Persists per-project state and intent
            graph_builder: Builds a fresh artifact snapshot per request
            definition: Workflow nodes and order (bundled default when omitted)
            source: Who drives the workflow, recorded on new state
            context_policy: Context budget and selection order
        """
        self.state_store = state_store
        self.graph_builder = graph_builder
        self.definition = definition or default_definition()
        self.source = source
        self.state_agent = WorkflowStateAgent(self.definition)
        self.context_agent = ContextAssemblyAgent(self.definition, context_policy)
        self.compiler_agent = InstructionCompilerAgent(self.definition)
        self.guard_agent = WorkflowGuardAgent(self.definition)

    @classmethod
    def from_config(cls, config: EngineConfig, artifact_store: ArtifactStore,
                    definition: Optional[WorkflowDefinition] = None) -> "WorkflowOrchestrator":
        return cls(
            state_store=WorkflowStateStore(config.data_root),
            graph_builder=ArtifactGraphBuilder(artifact_store, max_workers=config.fetch_workers),
            definition=definition,
            source=config.source,
            context_policy=ContextPolicy(max_artifacts=config.max_context_artifacts),
        )

    # -------------------------
    # OFFER
    # -------------------------

    def get_next_instruction(self, project_id: str, user_intent: str,
                             last_known_state: Optional[str] = None) -> NextInstruction:
        """
        Decide the next step for a project and record it as pending.

        Returns:
            NextInstruction; a guard failure comes back as a downgraded action
            with an empty prompt, never as an exception.
        """
        with self.state_store.project_lock(project_id):
            state = self.state_store.get_or_create_state(project_id, self.source)
            self.state_store.get_or_create_intent(project_id, user_intent)
            snapshot = self.graph_builder.build(project_id)

            resolved = self.state_agent.execute(
                snapshot, last_known_state or state.current_node, completed_hint=state.inferred_nodes
            )

            next_id = resolved.primary_candidate
            node = self.definition.get(next_id)
            action = resolved.recommended_action if node is not None else WorkflowAction.NO_OP
            target = node.target_ref() if node is not None else None

            context = self.context_agent.execute(resolved, snapshot)
            compiled = self.compiler_agent.execute(
                action, next_id, target, context.context_artifacts, context.rules
            )

            draft = NextInstruction(
                action=action,
                artifact_type=target.artifact_type if target else None,
                spec_name=target.spec_name if target else None,
                artifact_name=target.artifact_name if target else None,
                current_state=resolved.current_node,
                next_candidates=list(resolved.next_candidates),
                context_artifacts=context.context_artifacts,
                prompt=compiled.prompt,
                rules=context.rules,
                expected_outcome=compiled.expected_outcome,
                decision_trace=DecisionTrace(
                    detected_state=resolved.current_node or "none",
                    reasoning=list(resolved.reasoning),
                    rules_applied=[self.state_agent.rule, self.context_agent.rule,
                                   self.compiler_agent.rule],
                    llm_used=False,
                ),
                pending_instruction_id=str(uuid.uuid4()),
            )

            guard = self.guard_agent.execute(draft, snapshot, completed_hint=state.inferred_nodes)
            draft.decision_trace.rules_applied.append(self.guard_agent.rule)

            if not guard.passed:
                reason = guard.reason or "Guard failed"
                fallback = guard.suggested_action or WorkflowAction.NO_OP
                recompiled = self.compiler_agent.execute(
                    fallback, next_id, target, context.context_artifacts, context.rules
                )
                downgraded = replace(
                    draft,
                    action=fallback,
                    prompt="",
                    expected_outcome=recompiled.expected_outcome,
                    pending_instruction_id=None,
                    decision_trace=replace(
                        draft.decision_trace,
                        reasoning=draft.decision_trace.reasoning + [reason],
                    ),
                )
                self.state_store.save_state(state.model_copy(update={
                    "last_decision_reason": reason,
                    "last_user_intent": user_intent,
                    "updated_at": utc_now(),
                }))
                logger.warning("Guard downgraded %s for project %s to %s: %s",
                               draft.action.value, project_id, downgraded.action.value, reason)
                return downgraded

            # acknowledged nodes stay inferred until the snapshot shows their artifact
            seen = set(completed_node_ids(self.definition, snapshot.artifacts))
            self.state_store.save_state(state.model_copy(update={
                "current_node": resolved.current_node,
                "completed_nodes": list(resolved.completed_nodes),
                "blocked_nodes": list(resolved.blocked_nodes),
                "skipped_nodes": skipped_node_ids(self.definition, resolved),
                "inferred_nodes": [n for n in state.inferred_nodes if n not in seen],
                "last_user_intent": user_intent,
                "last_decision_reason": resolved.reasoning[-1] if resolved.reasoning else None,
                "pending_instruction_id": draft.pending_instruction_id,
                "updated_at": utc_now(),
            }))
            logger.info("Project %s: %s %s (current=%s, pending=%s)", project_id,
                        draft.action.value, next_id, resolved.current_node,
                        draft.pending_instruction_id)
            return draft

    # -------------------------
    # ACKNOWLEDGE
    # -------------------------

    def record_progress(self, project_id: str, artifact_type: str, spec_name: str,
                        artifact_name: Optional[str] = None, artifact_id: Optional[str] = None,
                        pending_instruction_id: Optional[str] = None) -> ProgressResult:
        """
        Acknowledge that an artifact was created and advance the workflow.

        A pending_instruction_id that does not match the stored one is a stale
        or repeated acknowledgement: success, state untouched.
        """
        with self.state_store.project_lock(project_id):
            state = self.state_store.load_state(project_id)
            if state is None:
                logger.warning("No workflow state for project %s; nothing to advance", project_id)
                return ProgressResult(success=False)

            if pending_instruction_id and state.pending_instruction_id != pending_instruction_id:
                logger.info("Ignoring stale acknowledgement %s for project %s",
                            pending_instruction_id, project_id)
                return ProgressResult(success=True, current_node=state.current_node,
                                      completed_nodes=list(state.completed_nodes))

            completed_node = self.definition.node_id_for_artifact(
                artifact_type, spec_name, artifact_name or ""
            )
            if completed_node is None:
                logger.warning("Artifact %s/%s/%s matches no workflow node", artifact_type,
                               spec_name, artifact_name)
            next_id = self.definition.next_node_id(completed_node) if completed_node else None

            completed_nodes = self._merge_completed(state.completed_nodes, completed_node)
            inferred = list(state.inferred_nodes)
            if completed_node and completed_node not in state.completed_nodes \
                    and completed_node not in inferred:
                inferred.append(completed_node)

            new_state = state.model_copy(update={
                "current_node": next_id or completed_node or state.current_node,
                "completed_nodes": completed_nodes,
                "inferred_nodes": inferred,
                "pending_instruction_id": None,
                "last_artifact_id": artifact_id or state.last_artifact_id,
                "updated_at": utc_now(),
            })
            self.state_store.save_state(new_state)
            logger.info("Project %s: recorded %s, current node now %s", project_id,
                        completed_node, new_state.current_node)
            return ProgressResult(success=True, current_node=new_state.current_node,
                                  completed_nodes=list(new_state.completed_nodes))

    def _merge_completed(self, completed: List[str], node_id: Optional[str]) -> List[str]:
        """Set union kept in canonical order; unknown ids go last."""
        merged = set(completed)
        if node_id:
            merged.add(node_id)
        return sorted(merged, key=lambda n: (self.definition.index_of(n) < 0,
                                             self.definition.index_of(n), n))
