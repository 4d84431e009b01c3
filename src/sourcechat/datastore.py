"""
Datastore interface consumed by the chat service, plus an in-memory implementation.

The service only needs threads, document names, and usage records; the SQL
schema behind them is somebody else's concern.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

from .exceptions import NotFoundError
from .types import Message


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Thread:
    """Persisted conversation tied to a caller and a document collection."""

    id: str
    caller_id: str
    collection_id: str
    timestamp: datetime = field(default_factory=_utcnow)
    messages: List[Message] = field(default_factory=list)

    @classmethod
    def new(cls, caller_id: str, collection_id: str) -> "Thread":
        return cls(id=str(uuid.uuid4()), caller_id=caller_id, collection_id=collection_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "caller_id": self.caller_id,
            "collection_id": self.collection_id,
            "timestamp": self.timestamp.isoformat(),
            "messages": [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Thread":
        return cls(
            id=data["id"],
            caller_id=data["caller_id"],
            collection_id=data["collection_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            messages=[Message.from_dict(entry) for entry in data.get("messages", [])],
        )


@dataclass(frozen=True)
class ModelUsageRecord:
    """One billed model or embedding call."""

    caller_id: str
    model_id: str
    input_tokens: int = 0
    output_tokens: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)


@runtime_checkable
class UsageRecorder(Protocol):
    def insert_model_usage(self, record: ModelUsageRecord) -> None:
        ...


@runtime_checkable
class DocumentNameLookup(Protocol):
    def get_document_name(self, caller_id: str, document_id: str) -> str:
        ...


@runtime_checkable
class Datastore(UsageRecorder, DocumentNameLookup, Protocol):
    """Everything the chat service reads from or writes to storage."""

    def load_thread(self, caller_id: str, thread_id: str) -> Thread:
        ...

    def store_thread(self, thread: Thread) -> None:
        ...


class InMemoryDatastore(Datastore):
    """
    Process-local datastore for tests and local runs.

    Threads are kept in serialized form so a stored history always goes
    through Message.to_dict() / Message.from_dict(), like a real backend.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._threads: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._documents: Dict[Tuple[str, str], str] = {}
        self.usage_records: List[ModelUsageRecord] = []
        self.store_calls = 0

    def add_document(self, caller_id: str, document_id: str, name: str) -> None:
        with self._lock:
            self._documents[(caller_id, document_id)] = name

    def get_document_name(self, caller_id: str, document_id: str) -> str:
        with self._lock:
            name = self._documents.get((caller_id, document_id))
        if name is None:
            raise NotFoundError("document", document_id)
        return name

    def load_thread(self, caller_id: str, thread_id: str) -> Thread:
        with self._lock:
            data = self._threads.get((caller_id, thread_id))
        if data is None:
            raise NotFoundError("thread", thread_id)
        return Thread.from_dict(data)

    def store_thread(self, thread: Thread) -> None:
        data = thread.to_dict()
        with self._lock:
            self._threads[(thread.caller_id, thread.id)] = data
            self.store_calls += 1

    def insert_model_usage(self, record: ModelUsageRecord) -> None:
        with self._lock:
            self.usage_records.append(record)

    def list_threads(self, caller_id: str) -> List[str]:
        with self._lock:
            return [tid for (cid, tid) in self._threads if cid == caller_id]


__all__ = [
    "Thread",
    "ModelUsageRecord",
    "UsageRecorder",
    "DocumentNameLookup",
    "Datastore",
    "InMemoryDatastore",
]
