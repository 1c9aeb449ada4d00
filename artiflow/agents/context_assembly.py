"""
Policy-driven selection of the artifacts handed to the generator.

Phases run in `ContextPolicy.priority_order` and stop as soon as the budget
(`max_artifacts`) is used up:
- currentNodeDependencies: artifacts satisfying the primary candidate's dependencies
- directParents: artifacts satisfying the current node
- LLMContextArtifacts: artifacts flagged is_llm_context
- recentArtifacts: everything else, in snapshot order
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from ..workflow.matching import artifacts_for_node
from ..workflow.models import (
    ArtifactGraphSnapshot,
    ArtifactRef,
    ArtifactSummary,
    ContextPolicy,
    ResolvedWorkflowState,
    WorkflowDefinition,
)
from .base import BaseAgent

CONTEXT_RULES = [
    "Embed dependencies using @ mentions in format @artifact_type.specName.artifactName.",
    "Output ONLY the artifact content; do not add meta-commentary.",
]

PRIORITY_KEYS = (
    "currentNodeDependencies",
    "directParents",
    "LLMContextArtifacts",
    "recentArtifacts",
)

FALLBACKS = ("summarize", "truncate")


@dataclass
class ContextAssembly:
    context_artifacts: List[ArtifactRef] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    omitted: int = 0


class ContextAssemblyAgent(BaseAgent):
    rule = "contextAssembly"

    def __init__(self, definition: Optional[WorkflowDefinition] = None,
                 policy: Optional[ContextPolicy] = None):
        super().__init__(definition)
        self.policy = policy or ContextPolicy()
        for key in self.policy.priority_order:
            if key not in PRIORITY_KEYS:
                raise ValueError(f"Unknown context priority: {key}")
        if self.policy.fallback not in FALLBACKS:
            raise ValueError(f"Unknown context fallback: {self.policy.fallback}")

    def execute(self, resolved: ResolvedWorkflowState,
                snapshot: ArtifactGraphSnapshot) -> ContextAssembly:
        selected: List[ArtifactRef] = []
        seen: Set[Tuple[str, str, str]] = set()

        for key in self.policy.priority_order:
            for artifact in self._phase(key, resolved, snapshot):
                if len(selected) >= self.policy.max_artifacts:
                    break
                ref = artifact.to_ref()
                if ref.key in seen:
                    continue
                seen.add(ref.key)
                selected.append(ref)

        rules = list(CONTEXT_RULES)
        omitted = 0
        if len(selected) >= self.policy.max_artifacts:
            omitted = len({a.to_ref().key for a in snapshot.artifacts} - seen)
        if omitted and self.policy.fallback == "summarize":
            rules.append(
                f"{omitted} more artifact(s) exist beyond the context budget; "
                "rely on their summaries instead of reproducing them."
            )
        return ContextAssembly(context_artifacts=selected, rules=rules, omitted=omitted)

    def _phase(self, key: str, resolved: ResolvedWorkflowState,
               snapshot: ArtifactGraphSnapshot) -> Iterable[ArtifactSummary]:
        if key == "currentNodeDependencies":
            node = self.definition.get(resolved.primary_candidate)
            if node is None:
                return []
            found: List[ArtifactSummary] = []
            for dep_id in node.dependencies:
                found.extend(artifacts_for_node(snapshot.artifacts, self.definition.nodes[dep_id]))
            return found
        if key == "directParents":
            node = self.definition.get(resolved.current_node)
            return artifacts_for_node(snapshot.artifacts, node) if node else []
        if key == "LLMContextArtifacts":
            return [a for a in snapshot.artifacts if a.is_llm_context]
        return snapshot.artifacts
