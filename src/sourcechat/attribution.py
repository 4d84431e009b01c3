"""
Attribute retrieved evidence back to named source documents.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence

from .exceptions import AttributionLookupError
from .rag.evidence import EvidenceItem, Source, decode_sources, dedupe_evidence, order_evidence
from .rag.tools import SOURCES_TOOL_NAME
from .types import Message, ToolResultContent

if TYPE_CHECKING:
    from .datastore import DocumentNameLookup

logger = logging.getLogger(__name__)


class SourceAttributor:
    """
    Collects the evidence a completion retrieved and resolves document names.

    Every retrieval result of the completion counts, not only the last one.
    Chunks seen in several turns are reported once (first occurrence), and
    the output is ordered by document id, then position. A document whose
    name cannot be resolved is still reported, with an empty name.
    """

    def __init__(
        self,
        lookup: "DocumentNameLookup",
        tool_names: Iterable[str] = (SOURCES_TOOL_NAME,),
    ):
        self.lookup = lookup
        self.tool_names = frozenset(tool_names)

    def collect(self, messages: Sequence[Message]) -> List[EvidenceItem]:
        """Return evidence from retrieval tool results in history order."""
        items: List[EvidenceItem] = []
        for message in messages:
            content = message.content
            if not isinstance(content, ToolResultContent):
                continue
            result = content.result
            if result.tool_name not in self.tool_names or result.is_error:
                continue
            try:
                items.extend(decode_sources(result.payload))
            except ValueError as exc:
                logger.warning(
                    "Skipping unreadable %s result %s: %s", result.tool_name, result.call_id, exc
                )
        return items

    def attribute(self, caller_id: str, messages: Sequence[Message]) -> List[Source]:
        """Dedupe, order, and name the evidence found in `messages`."""
        items = order_evidence(dedupe_evidence(self.collect(messages)))

        names: Dict[str, str] = {}
        for item in items:
            if item.document_id not in names:
                names[item.document_id] = self._resolve_name(caller_id, item.document_id)

        return [Source.from_evidence(item, names[item.document_id]) for item in items]

    def _resolve_name(self, caller_id: str, document_id: str) -> str:
        try:
            return self.lookup.get_document_name(caller_id, document_id)
        except Exception as exc:  # noqa: BLE001
            failure = exc
            if not isinstance(exc, AttributionLookupError):
                failure = AttributionLookupError(document_id, exc)
            logger.warning("%s", failure)
            return ""


__all__ = ["SourceAttributor"]
