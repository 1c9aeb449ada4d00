""" The artifact store the engine reads from (a remote project service in production). """
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple


class ArtifactStore(ABC):
    """
    Read-only view of the artifacts that exist for a project.

    Responses may be a bare list of records or a ``{"data": [...]}`` envelope;
    the per-kind adapters deal with both.
    """

    @abstractmethod
    def fetch_artifacts_of_kind(self, project_id: str, kind: str) -> Any:
        pass

    def fetch_links(self, project_id: str) -> List[Dict[str, Any]]:
        """ Links between artifacts, as {fromId, toId, type} records. None by default. """
        return []


class InMemoryArtifactStore(ArtifactStore):
    """ Dict-backed store, for tests, demos and local runs. """

    def __init__(self, envelope: bool = False):
        self.envelope = envelope
        self._records: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self._links: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def add(self, project_id: str, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._records.setdefault((project_id, kind), []).append(dict(record))
        return record

    def add_link(self, project_id: str, from_id: str, to_id: str, type: str = "depends_on") -> None:
        with self._lock:
            self._links.setdefault(project_id, []).append(
                {"fromId": from_id, "toId": to_id, "type": type}
            )

    def fetch_artifacts_of_kind(self, project_id: str, kind: str) -> Any:
        with self._lock:
            records = [dict(r) for r in self._records.get((project_id, kind), [])]
        return {"data": records} if self.envelope else records

    def fetch_links(self, project_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(link) for link in self._links.get(project_id, [])]
