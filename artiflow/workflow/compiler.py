""" Load and validate a WorkflowDefinition from YAML. """

from functools import lru_cache
from pathlib import Path

import yaml

from .models import WorkflowDefinition, WorkflowNodeDef
from .schema import validate_definition

DEFAULT_DEFINITION_PATH = Path(__file__).with_name("default_workflow.yaml")


def load_definition(yaml_text: str) -> WorkflowDefinition:
    """
    Load a WorkflowDefinition from a YAML string.
    """
    data = yaml.safe_load(yaml_text)
    if not isinstance(data, dict):
        raise ValueError("Workflow definition must be a YAML mapping")

    spec, _ = validate_definition(data)

    nodes = {}
    for node_spec in spec.nodes:
        if node_spec.id in nodes:
            raise ValueError(f"Duplicate node id: {node_spec.id}")
        nodes[node_spec.id] = WorkflowNodeDef(
            node_id=node_spec.id,
            artifact_type=node_spec.artifact_type,
            spec_name=node_spec.spec_name,
            artifact_name=node_spec.artifact_name,
            dependencies=tuple(node_spec.dependencies),
            used_by=tuple(node_spec.used_by),
            label=node_spec.label,
            category=node_spec.category,
            is_optional=node_spec.optional,
            any_in_spec=node_spec.any_in_spec,
            multi_file=node_spec.multi_file,
            create_only_if_user_asks=node_spec.create_only_if_user_asks,
        )

    definition = WorkflowDefinition(
        name=spec.name,
        description=spec.description or "",
        version=spec.version,
        order=list(spec.order),
        nodes=nodes,
    )
    _validate_definition(definition)

    return definition


def load_definition_file(path) -> WorkflowDefinition:
    with open(path, "r", encoding="utf-8") as f:
        return load_definition(f.read())


@lru_cache(maxsize=1)
def default_definition() -> WorkflowDefinition:
    """The bundled canonical workflow, loaded and validated once per process."""
    return load_definition_file(DEFAULT_DEFINITION_PATH)


def _validate_definition(definition: WorkflowDefinition) -> None:
    """
    Order covers every node exactly once, dependencies are known,
    the graph is acyclic (Kahn) and consistent with the order.
    """
    node_ids = set(definition.nodes)

    if len(set(definition.order)) != len(definition.order):
        raise ValueError("Workflow order lists a node more than once.")
    for node_id in definition.order:
        if node_id not in node_ids:
            raise ValueError(f"Workflow order references unknown node: {node_id}")
    for node_id in node_ids:
        if node_id not in definition.order:
            raise ValueError(f"Node missing from workflow order: {node_id}")

    indegree = {node_id: 0 for node_id in node_ids}
    adjacency = {node_id: [] for node_id in node_ids}
    for node in definition.nodes.values():
        for dep in node.dependencies:
            if dep not in node_ids:
                raise ValueError(f"Dependency references unknown node: {node.node_id} -> {dep}")
            adjacency[dep].append(node.node_id)
            indegree[node.node_id] += 1

    queue = [node_id for node_id in definition.order if indegree[node_id] == 0]
    visited = 0
    while queue:
        current = queue.pop(0)
        visited += 1
        for neighbor in adjacency[current]:
            indegree[neighbor] -= 1
            if indegree[neighbor] == 0:
                queue.append(neighbor)

    if visited != len(node_ids):
        raise ValueError("Cycle detected in workflow definition.")

    position = {node_id: idx for idx, node_id in enumerate(definition.order)}
    for node in definition.nodes.values():
        for dep in node.dependencies:
            if position[dep] > position[node.node_id]:
                raise ValueError(
                    f"Node {node.node_id} is ordered before its dependency {dep}."
                )
