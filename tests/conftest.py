"""Shared fixtures: the bundled definition and synthetic artifacts for its nodes."""

import itertools

import pytest

from artiflow.workflow.compiler import default_definition
from artiflow.workflow.models import ArtifactGraphSnapshot, ArtifactSummary


@pytest.fixture
def definition():
    return default_definition()


@pytest.fixture
def make_artifact(definition):
    """Build an ArtifactSummary that satisfies a node; name/flags can be overridden."""
    counter = itertools.count(1)

    def _make(node_id, name=None, **kwargs):
        node = definition.nodes[node_id]
        return ArtifactSummary(
            id=f"art-{node_id}-{next(counter)}",
            artifact_type=node.artifact_type,
            spec_name=node.spec_name,
            artifact_name=name or node.artifact_name,
            **kwargs,
        )

    return _make


@pytest.fixture
def artifacts_through(definition, make_artifact):
    """One artifact per node up to and including `last_id`, minus `skip`."""

    def _through(last_id, skip=()):
        stop = definition.index_of(last_id) + 1
        return [make_artifact(node_id) for node_id in definition.order[:stop] if node_id not in skip]

    return _through


@pytest.fixture
def snapshot_of():
    def _snapshot(artifacts):
        return ArtifactGraphSnapshot(artifacts=list(artifacts), links=[])

    return _snapshot
