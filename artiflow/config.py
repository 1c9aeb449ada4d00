"""Centralized configuration for the workflow engine.

Module constants hold the defaults; ``EngineConfig`` bundles the values a
caller may override, either directly or from ``ARTIFLOW_*`` environment
variables.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple


class WorkflowSource(str, Enum):
    """Who is driving the workflow for a project."""

    CLAUDE = "claude"
    CLI = "cli"
    API = "api"

    @classmethod
    def values(cls) -> list:
        return [source.value for source in cls]


# =============================================================================
# Storage
# =============================================================================

DEFAULT_DATA_DIR = ".artiflow"
WORKFLOW_STATE_FILE = "workflow-state.json"
WORKFLOW_INTENT_FILE = "workflow-intent.json"

DEFAULT_SOURCE = WorkflowSource.CLAUDE.value


# =============================================================================
# Context budget
# =============================================================================

DEFAULT_MAX_CONTEXT_ARTIFACTS = 8


# =============================================================================
# Artifact store fetches
# =============================================================================

# Kinds fetched for every snapshot, in the order their artifacts are listed.
ARTIFACT_KINDS: Tuple[str, ...] = (
    "requirements",
    "hld",
    "lld",
    "tasks",
    "er_diagrams",
    "wireframes",
    "contexts",
    "tests",
)

DEFAULT_FETCH_WORKERS = len(ARTIFACT_KINDS)


@dataclass(frozen=True)
class EngineConfig:
    """Settings needed to wire up an orchestrator."""

    data_root: Path
    source: str = DEFAULT_SOURCE
    max_context_artifacts: int = DEFAULT_MAX_CONTEXT_ARTIFACTS
    fetch_workers: int = DEFAULT_FETCH_WORKERS

    def __post_init__(self):
        if self.source not in WorkflowSource.values():
            raise ValueError(f"Unknown workflow source: {self.source}")
        if self.max_context_artifacts < 0:
            raise ValueError("max_context_artifacts must not be negative")
        if self.fetch_workers < 1:
            raise ValueError("fetch_workers must be at least 1")

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a config from ARTIFLOW_* variables, falling back to defaults.

        Without ARTIFLOW_DATA_ROOT, state lives in ``<project_root>/.artiflow``
        (current directory when no project root is given).
        """
        env = os.environ if environ is None else environ
        root = Path(project_root) if project_root is not None else Path.cwd()

        data_root = env.get("ARTIFLOW_DATA_ROOT")
        return cls(
            data_root=Path(data_root) if data_root else root / DEFAULT_DATA_DIR,
            source=env.get("ARTIFLOW_SOURCE", DEFAULT_SOURCE),
            max_context_artifacts=_int_setting(env, "ARTIFLOW_MAX_CONTEXT_ARTIFACTS",
                                               DEFAULT_MAX_CONTEXT_ARTIFACTS),
            fetch_workers=_int_setting(env, "ARTIFLOW_FETCH_WORKERS", DEFAULT_FETCH_WORKERS),
        )


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")
