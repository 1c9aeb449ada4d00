"""
One adapter per artifact kind, turning raw store records into ArtifactSummary.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..workflow.models import ArtifactSummary

logger = logging.getLogger(__name__)

Adapter = Callable[[Dict[str, Any]], Optional[ArtifactSummary]]

# Built once at import by the decorators below; builders take a copy.
DEFAULT_ADAPTERS: Dict[str, Adapter] = {}


def register_adapter(kind: str):
    def _wrap(fn):
        DEFAULT_ADAPTERS[kind] = fn
        return fn
    return _wrap


def get_adapter(kind: str, adapters: Optional[Mapping[str, Adapter]] = None) -> Adapter:
    table = DEFAULT_ADAPTERS if adapters is None else adapters
    if kind not in table:
        raise ValueError(f"No adapter for artifact kind: {kind}")
    return table[kind]


def registered_kinds() -> List[str]:
    return list(DEFAULT_ADAPTERS)


def unwrap_records(response: Any) -> List[Dict[str, Any]]:
    """ Accept a bare list or a {"data": [...]} envelope; anything else is empty. """
    if isinstance(response, dict):
        response = response.get("data")
    if not isinstance(response, list):
        if response is not None:
            logger.warning("Unexpected artifact store response of type %s", type(response).__name__)
        return []
    return [record for record in response if isinstance(record, dict)]


def adapt_records(kind: str, response: Any,
                  adapters: Optional[Mapping[str, Adapter]] = None) -> List[ArtifactSummary]:
    adapter = get_adapter(kind, adapters)
    summaries = []
    for record in unwrap_records(response):
        summary = adapter(record)
        if summary is not None:
            summaries.append(summary)
    return summaries


def _summary(record: Dict[str, Any], artifact_type: str, name: Any,
             llm_context_default: bool = False) -> Optional[ArtifactSummary]:
    artifact_id = str(record.get("id") or "")
    if not artifact_id:
        return None
    version = record.get("version")
    root_id = record.get("rootId")
    return ArtifactSummary(
        id=artifact_id,
        artifact_type=artifact_type,
        spec_name=str(record.get("specName") or "default"),
        artifact_name=str(name),
        root_id=root_id if isinstance(root_id, str) else None,
        version=version if isinstance(version, int) and not isinstance(version, bool) else None,
        is_latest=bool(record.get("isLatest", True)),
        is_llm_context=bool(record.get("isLLMContext", llm_context_default)),
    )


def _wrong_type(record: Dict[str, Any], expected: str) -> bool:
    # design endpoints can return mixed hld/lld records
    return "type" in record and record["type"] != expected


@register_adapter("requirements")
def adapt_requirement(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    return _summary(record, "requirement", record.get("name") or "requirement")


@register_adapter("hld")
def adapt_hld(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    if _wrong_type(record, "hld"):
        return None
    return _summary(record, "hld", record.get("name") or "hld")


@register_adapter("lld")
def adapt_lld(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    if _wrong_type(record, "lld"):
        return None
    return _summary(record, "lld", record.get("name") or record.get("componentName") or "lld")


@register_adapter("tasks")
def adapt_tasks(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    return _summary(record, "tasks", record.get("title") or record.get("name") or "tasks")


@register_adapter("er_diagrams")
def adapt_flow_diagram(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    return _summary(record, "flow_diagram", record.get("name") or "flow_diagram")


@register_adapter("wireframes")
def adapt_wireframe(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    return _summary(record, "wireframe_files", record.get("name") or "wireframe")


@register_adapter("contexts")
def adapt_context(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    """ Context documents exist to be shown to the generator. """
    name = record.get("title") or record.get("name") or "context"
    return _summary(record, "context", name, llm_context_default=True)


@register_adapter("tests")
def adapt_tests(record: Dict[str, Any]) -> Optional[ArtifactSummary]:
    return _summary(record, "tests", record.get("name") or "tests")
