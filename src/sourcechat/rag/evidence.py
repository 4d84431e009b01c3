"""
Evidence items returned by retrieval, and the retrieval interface.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Protocol, runtime_checkable

SOURCES_KEY = "sources"


@dataclass(frozen=True)
class EvidenceItem:
    """
    A scored passage retrieved from a document.

    Attributes:
        id: Chunk id, unique within one retrieval result set.
        document_id: Id of the document the chunk belongs to.
        text: Passage text.
        score: Retrieval score (higher is more relevant).
        position: Position of the chunk within its document.
    """

    id: str
    document_id: str
    text: str
    score: float = 0.0
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvidenceItem":
        return cls(
            id=str(data["id"]),
            document_id=str(data["document_id"]),
            text=data.get("text", ""),
            score=float(data.get("score", 0.0)),
            position=int(data.get("position", 0)),
        )


@dataclass(frozen=True)
class Source:
    """An evidence item attributed to a human-readable document name."""

    id: str
    document_id: str
    name: str
    text: str
    score: float = 0.0
    position: int = 0

    @property
    def resolved(self) -> bool:
        return bool(self.name)

    @classmethod
    def from_evidence(cls, item: EvidenceItem, name: str = "") -> "Source":
        return cls(
            id=item.id,
            document_id=item.document_id,
            name=name,
            text=item.text,
            score=item.score,
            position=item.position,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RetrievalUsage:
    """Tokens the retrieval backend spent embedding the query."""

    model_id: str = ""
    tokens: int = 0


@dataclass
class RetrievalResult:
    items: List[EvidenceItem] = field(default_factory=list)
    usage: RetrievalUsage = field(default_factory=RetrievalUsage)


@runtime_checkable
class Retriever(Protocol):
    """External retrieval capability searched by the get_sources tool."""

    def search(
        self,
        *,
        caller_id: str,
        collection_id: str,
        query: str,
        limit: int,
        threshold: float,
    ) -> RetrievalResult:
        ...


def order_evidence(items: Iterable[EvidenceItem]) -> List[EvidenceItem]:
    """Group by document id, then order by position; ties keep input order."""
    return sorted(items, key=lambda item: (item.document_id, item.position))


def dedupe_evidence(items: Iterable[EvidenceItem]) -> List[EvidenceItem]:
    """Drop repeated chunk ids, keeping the first occurrence."""
    seen = set()
    unique: List[EvidenceItem] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


def encode_sources(items: Iterable[EvidenceItem]) -> str:
    """Serialize evidence as the JSON object returned to the model."""
    return json.dumps({SOURCES_KEY: [item.to_dict() for item in items]})


def decode_sources(payload: str) -> List[EvidenceItem]:
    """
    Parse a payload produced by encode_sources().

    Raises:
        ValueError: If the payload is not a sources object.
    """
    data = json.loads(payload)
    if not isinstance(data, dict) or not isinstance(data.get(SOURCES_KEY), list):
        raise ValueError(f"payload has no '{SOURCES_KEY}' list")
    try:
        return [EvidenceItem.from_dict(entry) for entry in data[SOURCES_KEY]]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed evidence entry: {exc}") from exc


__all__ = [
    "EvidenceItem",
    "Source",
    "RetrievalUsage",
    "RetrievalResult",
    "Retriever",
    "order_evidence",
    "dedupe_evidence",
    "encode_sources",
    "decode_sources",
    "SOURCES_KEY",
]
