"""Tests for engine configuration."""

from pathlib import Path

import pytest

from artiflow.config import (
    DEFAULT_DATA_DIR,
    DEFAULT_FETCH_WORKERS,
    DEFAULT_MAX_CONTEXT_ARTIFACTS,
    EngineConfig,
    WorkflowSource,
)


def test_defaults_from_empty_environment(tmp_path):
    config = EngineConfig.from_env(project_root=tmp_path, environ={})

    assert config.data_root == tmp_path / DEFAULT_DATA_DIR
    assert config.source == WorkflowSource.CLAUDE.value
    assert config.max_context_artifacts == DEFAULT_MAX_CONTEXT_ARTIFACTS
    assert config.fetch_workers == DEFAULT_FETCH_WORKERS


def test_environment_overrides(tmp_path):
    config = EngineConfig.from_env(project_root=tmp_path, environ={
        "ARTIFLOW_DATA_ROOT": "/srv/artiflow",
        "ARTIFLOW_SOURCE": "api",
        "ARTIFLOW_MAX_CONTEXT_ARTIFACTS": "3",
        "ARTIFLOW_FETCH_WORKERS": " ",
    })

    assert config.data_root == Path("/srv/artiflow")
    assert config.source == "api"
    assert config.max_context_artifacts == 3
    assert config.fetch_workers == DEFAULT_FETCH_WORKERS


def test_invalid_values_are_rejected(tmp_path):
    with pytest.raises(ValueError, match="must be an integer"):
        EngineConfig.from_env(project_root=tmp_path, environ={"ARTIFLOW_MAX_CONTEXT_ARTIFACTS": "many"})
    with pytest.raises(ValueError, match="Unknown workflow source"):
        EngineConfig(data_root=tmp_path, source="robot")
    with pytest.raises(ValueError, match="fetch_workers"):
        EngineConfig(data_root=tmp_path, fetch_workers=0)
    with pytest.raises(ValueError, match="max_context_artifacts"):
        EngineConfig(data_root=tmp_path, max_context_artifacts=-1)
