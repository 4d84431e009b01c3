"""Built-in retrieval tool that lets the model fetch evidence from a collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..datastore import ModelUsageRecord
from ..exceptions import UsageTrackingError
from ..tools import Tool, ToolContext, ToolParameter
from .evidence import encode_sources, order_evidence

if TYPE_CHECKING:
    from ..datastore import UsageRecorder
    from .evidence import Retriever

logger = logging.getLogger(__name__)

SOURCES_TOOL_NAME = "get_sources"


class SourcesTool:
    """
    The `get_sources` tool bound to one caller and one collection.

    The model proposes a query; the tool searches the collection, records the
    embedding usage of the search, and returns the evidence grouped by
    document and ordered by position within each document.

    Example:
        >>> sources = SourcesTool(retriever, caller_id="u1", collection_id=cid,
        ...                       limit=10, threshold=0.5, usage_recorder=datastore)
        >>> request = CompletionRequest(..., tools=[sources.as_tool()])
    """

    description = (
        "Retrieves the sources for the prompt. The prompt should be optimized for "
        "embedding retrieval. The tool returns a JSON object with a 'sources' list; "
        "each source has the fields id, document_id, text, score and position."
    )

    def __init__(
        self,
        retriever: "Retriever",
        *,
        caller_id: str,
        collection_id: str,
        limit: int = 10,
        threshold: float = 0.0,
        usage_recorder: Optional["UsageRecorder"] = None,
        name: str = SOURCES_TOOL_NAME,
    ):
        self.retriever = retriever
        self.caller_id = caller_id
        self.collection_id = collection_id
        self.limit = limit
        self.threshold = threshold
        self.usage_recorder = usage_recorder
        self.name = name

    def as_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            parameters=[
                ToolParameter(
                    name="prompt",
                    param_type=str,
                    description=(
                        "The topic for which to retrieve sources. The prompt should be "
                        "optimized for embedding retrieval."
                    ),
                )
            ],
            handler=self.get_sources,
        )

    def get_sources(self, context: ToolContext, arguments: Dict[str, Any]) -> str:
        query = arguments.get("prompt")
        if not isinstance(query, str) or not query.strip():
            raise ValueError("prompt missing")

        caller_id = context.caller_id or self.caller_id
        logger.info("get_sources: %s", query)
        result = self.retriever.search(
            caller_id=caller_id,
            collection_id=self.collection_id,
            query=query,
            limit=self.limit,
            threshold=self.threshold,
        )

        try:
            self._record_usage(caller_id, result.usage.model_id, result.usage.tokens)
        except UsageTrackingError as exc:
            logger.warning("%s", exc)

        items = order_evidence(result.items)
        logger.debug("get_sources returned %d items for %r", len(items), query)
        return encode_sources(items)

    def _record_usage(self, caller_id: str, model_id: str, tokens: int) -> None:
        if self.usage_recorder is None:
            return
        try:
            self.usage_recorder.insert_model_usage(
                ModelUsageRecord(caller_id=caller_id, model_id=model_id, input_tokens=tokens)
            )
        except Exception as exc:  # noqa: BLE001
            raise UsageTrackingError("retrieval", exc) from exc


__all__ = ["SourcesTool", "SOURCES_TOOL_NAME"]
