"""Retrieval evidence types and the built-in get_sources tool."""

from .evidence import (
    EvidenceItem,
    RetrievalResult,
    RetrievalUsage,
    Retriever,
    Source,
    decode_sources,
    dedupe_evidence,
    encode_sources,
    order_evidence,
)
from .tools import SOURCES_TOOL_NAME, SourcesTool

__all__ = [
    "EvidenceItem",
    "Source",
    "RetrievalResult",
    "RetrievalUsage",
    "Retriever",
    "SourcesTool",
    "SOURCES_TOOL_NAME",
    "decode_sources",
    "dedupe_evidence",
    "encode_sources",
    "order_evidence",
]
