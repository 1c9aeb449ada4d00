from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..config import DEFAULT_SOURCE


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# -------------------------
# DEFINITION DOCUMENT (YAML)
# -------------------------

class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    artifact_type: str
    spec_name: str
    artifact_name: str
    dependencies: List[str] = Field(default_factory=list)
    used_by: List[str] = Field(default_factory=list)
    label: str = ""
    category: str = ""
    optional: bool = False
    any_in_spec: bool = False
    multi_file: bool = False
    create_only_if_user_asks: bool = False


class WorkflowDefinitionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")  # typos in the node table should not pass silently

    name: str
    description: Optional[str] = None
    version: Optional[int] = None
    order: List[str]
    nodes: List[NodeSpec] = Field(default_factory=list)


def validate_definition(raw: Dict[str, Any]) -> Tuple[WorkflowDefinitionSpec, Dict[str, Any]]:
    """Validate a raw YAML dict against WorkflowDefinitionSpec."""
    try:
        spec = WorkflowDefinitionSpec.model_validate(raw)
        return spec, spec.model_dump()
    except ValidationError as e:
        raise ValueError(f"YAML validation error: {e}")


# -------------------------
# PERSISTED RECORDS (JSON)
# -------------------------

class _Record(BaseModel):
    """ camelCase on disk, snake_case in code """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class WorkflowState(_Record):
    """ One per project; mutated only by the orchestrator """
    project_id: str
    current_node: Optional[str] = None
    completed_nodes: List[str] = Field(default_factory=list)
    blocked_nodes: List[str] = Field(default_factory=list)
    skipped_nodes: List[str] = Field(default_factory=list)
    inferred_nodes: List[str] = Field(default_factory=list)
    source: str = DEFAULT_SOURCE
    last_user_intent: Optional[str] = None
    last_decision_reason: Optional[str] = None
    pending_instruction_id: Optional[str] = None
    last_artifact_id: Optional[str] = None
    updated_at: str = Field(default_factory=utc_now)


class WorkflowIntent(_Record):
    project_id: str
    root_intent: str     # first intent ever given
    active_intent: str   # most recent
    updated_at: str = Field(default_factory=utc_now)
