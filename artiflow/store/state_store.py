"""
File-based persistence for per-project workflow state and intent.

Layout: ``<data_root>/<project_id>/workflow-state.json`` and
``<data_root>/<project_id>/workflow-intent.json``. Reads tolerate missing or
corrupt files (treated as absent); writes are atomic and raise on failure.
"""
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

from pydantic import ValidationError

from ..config import DEFAULT_SOURCE, WORKFLOW_INTENT_FILE, WORKFLOW_STATE_FILE
from ..workflow.schema import WorkflowIntent, WorkflowState, utc_now

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", WorkflowState, WorkflowIntent)


class WorkflowStateStore:
    def __init__(self, data_root):
        self.data_root = Path(data_root)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_lock = threading.Lock()

    # -------------------------
    # LOCKING
    # -------------------------

    @contextmanager
    def project_lock(self, project_id: str) -> Iterator[None]:
        """Serialize read-modify-write cycles for one project within this process."""
        with self._locks_lock:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[project_id] = lock
        with lock:
            yield

    # -------------------------
    # PATHS
    # -------------------------

    def project_dir(self, project_id: str) -> Path:
        if not project_id or "/" in project_id or "\\" in project_id or project_id in (".", ".."):
            raise ValueError(f"Invalid project id: {project_id!r}")
        return self.data_root / project_id

    def state_path(self, project_id: str) -> Path:
        return self.project_dir(project_id) / WORKFLOW_STATE_FILE

    def intent_path(self, project_id: str) -> Path:
        return self.project_dir(project_id) / WORKFLOW_INTENT_FILE

    # -------------------------
    # STATE
    # -------------------------

    def load_state(self, project_id: str) -> Optional[WorkflowState]:
        return self._load(self.state_path(project_id), WorkflowState)

    def save_state(self, state: WorkflowState) -> None:
        _atomic_write_json(self.state_path(state.project_id), state.to_json())

    def get_or_create_state(self, project_id: str, source: str = DEFAULT_SOURCE) -> WorkflowState:
        existing = self.load_state(project_id)
        if existing is not None:
            return existing
        state = WorkflowState(project_id=project_id, source=source)
        self.save_state(state)
        logger.info("Created workflow state for project %s", project_id)
        return state

    # -------------------------
    # INTENT
    # -------------------------

    def load_intent(self, project_id: str) -> Optional[WorkflowIntent]:
        return self._load(self.intent_path(project_id), WorkflowIntent)

    def save_intent(self, intent: WorkflowIntent) -> None:
        _atomic_write_json(self.intent_path(intent.project_id), intent.to_json())

    def get_or_create_intent(self, project_id: str, active_intent: str,
                             root_intent: Optional[str] = None) -> WorkflowIntent:
        """
        Load the intent record and make `active_intent` current.
        Writes only when the record is new or the active intent changed.
        """
        existing = self.load_intent(project_id)
        if existing is None:
            intent = WorkflowIntent(
                project_id=project_id,
                root_intent=root_intent if root_intent is not None else active_intent,
                active_intent=active_intent,
            )
        elif existing.active_intent != active_intent:
            intent = existing.model_copy(update={"active_intent": active_intent,
                                                 "updated_at": utc_now()})
        else:
            return existing
        self.save_intent(intent)
        return intent

    # -------------------------
    # HELPERS
    # -------------------------

    def _load(self, path: Path, model: Type[RecordT]) -> Optional[RecordT]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return model.model_validate(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Corrupt %s at %s: %s (treating as absent)", model.__name__, path, e)
        except ValidationError as e:
            logger.warning("Invalid %s at %s: %s (treating as absent)", model.__name__, path, e)
        except OSError as e:
            logger.warning("Failed to read %s at %s: %s", model.__name__, path, e)
        return None


def _atomic_write_json(path: Path, data: Any) -> None:
    """Write JSON via temp file + os.replace so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.name + ".", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
