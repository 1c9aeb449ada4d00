"""
Artifact-to-node matching shared by the resolver, context assembly and guard.
"""
from typing import Iterable, List, Optional, Set

from .models import (
    ArtifactSummary,
    WorkflowDefinition,
    WorkflowNodeDef,
    names_match,
    spec_or_default,
)


def artifact_matches_ref(artifact: ArtifactSummary, artifact_type: str,
                         spec_name: Optional[str], artifact_name: str) -> bool:
    """Exact match on type + spec + (normalized) name."""
    return (
        artifact.artifact_type == artifact_type
        and spec_or_default(artifact.spec_name) == spec_or_default(spec_name)
        and names_match(artifact.artifact_name, artifact_name)
    )


def artifact_matches_node(artifact: ArtifactSummary, node: WorkflowNodeDef) -> bool:
    """Exact match, or type + spec only for any_in_spec / multi_file nodes."""
    if node.relaxed_match:
        return (
            artifact.artifact_type == node.artifact_type
            and spec_or_default(artifact.spec_name) == spec_or_default(node.spec_name)
        )
    return artifact_matches_ref(artifact, node.artifact_type, node.spec_name, node.artifact_name)


def artifacts_for_node(artifacts: Iterable[ArtifactSummary],
                       node: WorkflowNodeDef) -> List[ArtifactSummary]:
    return [a for a in artifacts if artifact_matches_node(a, node)]


def node_has_artifact(artifacts: Iterable[ArtifactSummary], node: WorkflowNodeDef) -> bool:
    return any(artifact_matches_node(a, node) for a in artifacts)


def dependency_satisfied(definition: WorkflowDefinition, dep_id: str,
                         completed: Set[str]) -> bool:
    """Completed dependencies are satisfied; optional ones never block."""
    return dep_id in completed or definition.is_optional(dep_id)


def unmet_dependencies(definition: WorkflowDefinition, node: WorkflowNodeDef,
                       completed: Set[str]) -> List[str]:
    return [dep for dep in node.dependencies
            if not dependency_satisfied(definition, dep, completed)]


def completed_node_ids(definition: WorkflowDefinition,
                       artifacts: Iterable[ArtifactSummary]) -> List[str]:
    """Nodes with at least one matching artifact, in canonical order."""
    artifacts = list(artifacts)
    return [node.node_id for node in definition.nodes_in_order()
            if node_has_artifact(artifacts, node)]
