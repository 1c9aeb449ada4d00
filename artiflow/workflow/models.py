""" Data models for workflow definitions, artifact snapshots and instructions """

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import DEFAULT_MAX_CONTEXT_ARTIFACTS

DEFAULT_SPEC_NAME = "default"


class WorkflowAction(str, Enum):
    """ What the caller is told to do next. Explicit non-actions included. """
    GENERATE = "GENERATE"
    UPDATE = "UPDATE"
    LINK_ONLY = "LINK_ONLY"
    WAIT_FOR_INPUT = "WAIT_FOR_INPUT"
    NO_OP = "NO_OP"


def normalize_name(name: str) -> str:
    """Lower-case a name and collapse whitespace runs into '-'."""
    return re.sub(r"\s+", "-", (name or "").lower())


def spec_or_default(spec_name: Optional[str]) -> str:
    return spec_name or DEFAULT_SPEC_NAME


def names_match(left: str, right: str) -> bool:
    return left == right or normalize_name(left) == normalize_name(right)


# -------------------------
# WORKFLOW DEFINITION
# -------------------------

@dataclass(frozen=True)
class WorkflowNodeDef:
    node_id: str
    artifact_type: str
    spec_name: str
    artifact_name: str
    dependencies: Tuple[str, ...] = ()
    used_by: Tuple[str, ...] = ()
    label: str = ""
    category: str = ""
    is_optional: bool = False
    any_in_spec: bool = False   # any artifact with this type and spec_name counts (names may be UUIDs)
    multi_file: bool = False    # several files per spec, e.g. per-screen acceptance criteria
    create_only_if_user_asks: bool = False

    @property
    def relaxed_match(self) -> bool:
        return self.any_in_spec or self.multi_file

    def target_ref(self) -> "ArtifactRef":
        return ArtifactRef(self.artifact_type, spec_or_default(self.spec_name), self.artifact_name)


@dataclass
class WorkflowDefinition:
    name: str
    order: List[str]
    nodes: Dict[str, WorkflowNodeDef]
    version: Optional[int] = None
    description: str = ""

    @property
    def first_node_id(self) -> Optional[str]:
        return self.order[0] if self.order else None

    def get(self, node_id: Optional[str]) -> Optional[WorkflowNodeDef]:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def index_of(self, node_id: Optional[str]) -> int:
        """Position in canonical order, -1 when unknown or None."""
        if node_id is None or node_id not in self.nodes:
            return -1
        return self.order.index(node_id)

    def next_node_id(self, node_id: Optional[str]) -> Optional[str]:
        """
        Node after `node_id` in canonical order. None starts the workflow;
        the last node and unknown ids have no successor.
        """
        if node_id is None:
            return self.first_node_id
        idx = self.index_of(node_id)
        if idx < 0 or idx >= len(self.order) - 1:
            return None
        return self.order[idx + 1]

    def is_optional(self, node_id: str) -> bool:
        node = self.get(node_id)
        return bool(node and node.is_optional)

    def nodes_in_order(self) -> List[WorkflowNodeDef]:
        return [self.nodes[node_id] for node_id in self.order]

    def node_id_for_artifact(self, artifact_type: str, spec_name: Optional[str],
                             artifact_name: str = "") -> Optional[str]:
        """Node satisfied by an artifact with these coordinates, if any."""
        spec = spec_or_default(spec_name)
        for node in self.nodes_in_order():
            if node.artifact_type != artifact_type:
                continue
            if spec_or_default(node.spec_name) != spec:
                continue
            if node.relaxed_match:
                return node.node_id
            if names_match(node.artifact_name, artifact_name or ""):
                return node.node_id
        return None


# -------------------------
# ARTIFACT SNAPSHOT
# -------------------------

@dataclass
class ArtifactSummary:
    id: str
    artifact_type: str
    spec_name: str
    artifact_name: str
    root_id: Optional[str] = None   # stable identity across versions
    version: Optional[int] = None
    is_latest: bool = True
    is_llm_context: bool = False

    def __post_init__(self):
        self.spec_name = spec_or_default(self.spec_name)
        if not self.root_id:
            self.root_id = self.id

    def to_ref(self) -> "ArtifactRef":
        return ArtifactRef(self.artifact_type, self.spec_name, self.artifact_name)


@dataclass
class ArtifactLinkRecord:
    from_id: str
    to_id: str
    type: Optional[str] = None


@dataclass
class ArtifactGraphSnapshot:
    artifacts: List[ArtifactSummary] = field(default_factory=list)
    links: List[ArtifactLinkRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ArtifactRef:
    artifact_type: str
    spec_name: str
    artifact_name: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.artifact_type, self.spec_name, self.artifact_name)

    @property
    def mention(self) -> str:
        return f"@{self.artifact_type}.{self.spec_name}.{self.artifact_name}"

    def to_dict(self) -> Dict[str, str]:
        return {
            "artifactType": self.artifact_type,
            "specName": self.spec_name,
            "artifactName": self.artifact_name,
        }


# -------------------------
# RESOLUTION AND INSTRUCTIONS
# -------------------------

@dataclass
class ResolvedWorkflowState:
    current_node: Optional[str]
    next_candidates: List[str] = field(default_factory=list)
    blocked_nodes: List[str] = field(default_factory=list)
    completed_nodes: List[str] = field(default_factory=list)
    skippable_nodes: List[str] = field(default_factory=list)
    recommended_action: WorkflowAction = WorkflowAction.GENERATE
    reasoning: List[str] = field(default_factory=list)

    @property
    def primary_candidate(self) -> Optional[str]:
        return self.next_candidates[0] if self.next_candidates else None


@dataclass
class ContextPolicy:
    max_artifacts: int = DEFAULT_MAX_CONTEXT_ARTIFACTS
    priority_order: List[str] = field(default_factory=lambda: [
        "currentNodeDependencies",
        "directParents",
        "LLMContextArtifacts",
        "recentArtifacts",
    ])
    fallback: str = "summarize"


@dataclass
class LinkRequirement:
    src: ArtifactRef
    dest: ArtifactRef
    type: str = "depends_on"

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.src.to_dict(), "to": self.dest.to_dict(), "type": self.type}


@dataclass
class ExpectedOutcome:
    """ Post-conditions the caller can check after acting on an instruction """
    must_create: List[ArtifactRef] = field(default_factory=list)
    may_create: List[ArtifactRef] = field(default_factory=list)
    must_link: List[LinkRequirement] = field(default_factory=list)
    forbidden_actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mustCreate": [ref.to_dict() for ref in self.must_create],
            "mayCreate": [ref.to_dict() for ref in self.may_create],
            "mustLink": [link.to_dict() for link in self.must_link],
            "forbiddenActions": list(self.forbidden_actions),
        }


@dataclass
class DecisionTrace:
    detected_state: str
    reasoning: List[str] = field(default_factory=list)
    rules_applied: List[str] = field(default_factory=list)
    llm_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detectedState": self.detected_state,
            "reasoning": list(self.reasoning),
            "rulesApplied": list(self.rules_applied),
            "llmUsed": self.llm_used,
        }


@dataclass
class NextInstruction:
    action: WorkflowAction
    current_state: Optional[str]
    next_candidates: List[str]
    decision_trace: DecisionTrace
    artifact_type: Optional[str] = None
    spec_name: Optional[str] = None
    artifact_name: Optional[str] = None
    context_artifacts: List[ArtifactRef] = field(default_factory=list)
    prompt: str = ""
    rules: List[str] = field(default_factory=list)
    expected_outcome: Optional[ExpectedOutcome] = None
    pending_instruction_id: Optional[str] = None

    def target_ref(self) -> Optional[ArtifactRef]:
        if not (self.artifact_type and self.spec_name and self.artifact_name):
            return None
        return ArtifactRef(self.artifact_type, self.spec_name, self.artifact_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "artifactType": self.artifact_type,
            "specName": self.spec_name,
            "artifactName": self.artifact_name,
            "currentState": self.current_state,
            "nextCandidates": list(self.next_candidates),
            "contextArtifacts": [ref.to_dict() for ref in self.context_artifacts],
            "prompt": self.prompt,
            "rules": list(self.rules),
            "expectedOutcome": self.expected_outcome.to_dict() if self.expected_outcome else None,
            "decisionTrace": self.decision_trace.to_dict(),
            "pendingInstructionId": self.pending_instruction_id,
        }


@dataclass
class GuardResult:
    passed: bool
    reason: Optional[str] = None
    suggested_action: Optional[WorkflowAction] = None


@dataclass
class ProgressResult:
    success: bool
    current_node: Optional[str] = None
    completed_nodes: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.success:
            out["currentNode"] = self.current_node
            out["completedNodes"] = list(self.completed_nodes or [])
        return out
