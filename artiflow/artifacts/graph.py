""" Builds the ArtifactGraphSnapshot for one request. """
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import ARTIFACT_KINDS
from ..workflow.models import ArtifactGraphSnapshot, ArtifactLinkRecord, ArtifactSummary
from .registry import DEFAULT_ADAPTERS, Adapter, adapt_records, get_adapter
from .store import ArtifactStore

logger = logging.getLogger(__name__)


class ArtifactGraphBuilder:
    """
    One round of parallel reads (every kind at once), then links.
    Never mutates the store; snapshots are not cached.
    """

    def __init__(self, store: ArtifactStore, kinds: Sequence[str] = ARTIFACT_KINDS,
                 max_workers: Optional[int] = None,
                 adapters: Optional[Mapping[str, Adapter]] = None):
        self.adapters = dict(DEFAULT_ADAPTERS if adapters is None else adapters)
        for kind in kinds:
            get_adapter(kind, self.adapters)  # unknown kinds fail at construction, not mid-request
        self.store = store
        self.kinds = list(kinds)
        self.max_workers = max_workers or max(len(self.kinds), 1)

    def build(self, project_id: str) -> ArtifactGraphSnapshot:
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            responses = list(pool.map(
                lambda kind: self.store.fetch_artifacts_of_kind(project_id, kind),
                self.kinds,
            ))

        artifacts: List[ArtifactSummary] = []
        for kind, response in zip(self.kinds, responses):
            summaries = adapt_records(kind, response, self.adapters)
            logger.debug("Fetched %d %s artifact(s) for project %s", len(summaries), kind, project_id)
            artifacts.extend(summaries)

        links = [_link(record) for record in self.store.fetch_links(project_id)]
        return ArtifactGraphSnapshot(
            artifacts=artifacts,
            links=[link for link in links if link is not None],
        )


def _link(record: Dict[str, Any]) -> Optional[ArtifactLinkRecord]:
    from_id = record.get("fromId")
    to_id = record.get("toId")
    if not from_id or not to_id:
        return None
    return ArtifactLinkRecord(from_id=str(from_id), to_id=str(to_id), type=record.get("type"))
