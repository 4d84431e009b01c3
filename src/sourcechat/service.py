"""
Request-level chat use case: validate, load the thread, complete, persist.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .attribution import SourceAttributor
from .config import ServiceConfig
from .datastore import Datastore, ModelUsageRecord, Thread
from .driver import CancellationToken, run_completion
from .exceptions import InvalidRequestError, UsageTrackingError
from .providers.base import ProviderAdapter
from .providers.selector import select_provider
from .rag.evidence import Retriever, Source
from .rag.tools import SourcesTool
from .types import CompletionRequest, Message
from .usage import CompletionUsage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelOptions:
    model_id: str
    max_tokens: int = 1024
    temperature: float = 0.0
    top_p: Optional[float] = None


@dataclass(frozen=True)
class RetrievalOptions:
    documents: int = 10
    threshold: float = 0.0


@dataclass(frozen=True)
class Prompt:
    """
    A user question against one document collection.

    Attributes:
        prompt: The question text.
        collection_id: UUID of the collection to retrieve evidence from.
        thread_id: UUID of an existing thread to continue, or None for a new one.
        model_options: Model id and sampling settings.
        retrieval_options: How many chunks to retrieve and the score threshold.
    """

    prompt: str
    collection_id: str
    thread_id: Optional[str] = None
    model_options: Optional[ModelOptions] = None
    retrieval_options: Optional[RetrievalOptions] = None


@dataclass
class ChatReply:
    thread_id: str
    prompt: str
    completion: str
    sources: List[Source] = field(default_factory=list)
    usage: CompletionUsage = field(default_factory=CompletionUsage)


def _parse_uuid(value: str, what: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidRequestError(f"invalid {what}") from exc


class ChatService:
    """
    Answers prompts over a document collection and keeps the thread history.

    The thread is written only after the completion succeeds; a failed or
    cancelled completion leaves the stored thread untouched. Two concurrent
    posts to the same thread are not coordinated: the last store wins.

    Example:
        >>> service = ChatService(
        ...     providers=[AnthropicProvider(), GeminiProvider()],
        ...     retriever=retriever,
        ...     datastore=datastore,
        ... )
        >>> reply = service.post_message("user-1", Prompt(
        ...     prompt="What is the main result?",
        ...     collection_id=collection_id,
        ...     model_options=ModelOptions(model_id="claude-3-5-sonnet-20241022"),
        ...     retrieval_options=RetrievalOptions(documents=10, threshold=0.3),
        ... ))
    """

    def __init__(
        self,
        providers: Sequence[ProviderAdapter],
        retriever: Retriever,
        datastore: Datastore,
        config: Optional[ServiceConfig] = None,
    ):
        self.providers = list(providers)
        self.retriever = retriever
        self.datastore = datastore
        self.config = config or ServiceConfig()

    def post_message(
        self,
        caller_id: str,
        prompt: Prompt,
        cancellation: Optional[CancellationToken] = None,
    ) -> ChatReply:
        """
        Run one completion for `prompt` and persist the updated thread.

        Raises:
            InvalidRequestError: Malformed ids, missing options, or unknown model.
            NotFoundError: `thread_id` does not name a thread of this caller.
            CompletionError: Any fatal completion failure; nothing is persisted.
        """
        logger.info("post_message: caller=%s collection=%s", caller_id, prompt.collection_id)

        collection_id = _parse_uuid(prompt.collection_id, "collection id")
        model_options = prompt.model_options
        if model_options is None:
            raise InvalidRequestError("options missing")
        retrieval_options = prompt.retrieval_options
        if retrieval_options is None:
            raise InvalidRequestError("retrieval options missing")
        if not prompt.prompt or not prompt.prompt.strip():
            raise InvalidRequestError("prompt is empty")
        provider = select_provider(model_options.model_id, self.providers)

        if prompt.thread_id:
            thread_id = _parse_uuid(prompt.thread_id, "thread id")
            thread = self.datastore.load_thread(caller_id, thread_id)
        else:
            thread = Thread.new(caller_id=caller_id, collection_id=collection_id)

        sources_tool = SourcesTool(
            self.retriever,
            caller_id=caller_id,
            collection_id=collection_id,
            limit=retrieval_options.documents,
            threshold=retrieval_options.threshold,
            usage_recorder=self.datastore,
        )
        request = CompletionRequest(
            system_prompt=self.config.system_prompt,
            history=thread.messages,
            message=Message.user(prompt.prompt),
            model=model_options.model_id,
            max_tokens=model_options.max_tokens,
            top_p=model_options.top_p,
            temperature=model_options.temperature,
            caller_id=caller_id,
            tools=[sources_tool.as_tool()],
        )

        response = run_completion(
            request,
            provider,
            attributor=SourceAttributor(self.datastore),
            config=self.config.driver,
            cancellation=cancellation,
        )

        thread.messages = response.history
        self.datastore.store_thread(thread)

        try:
            self._record_usage(caller_id, model_options.model_id, response.usage)
        except UsageTrackingError as exc:
            logger.warning("%s", exc)

        return ChatReply(
            thread_id=thread.id,
            prompt=prompt.prompt,
            completion=response.content,
            sources=response.sources,
            usage=response.usage,
        )

    def _record_usage(self, caller_id: str, model_id: str, usage: CompletionUsage) -> None:
        try:
            self.datastore.insert_model_usage(
                ModelUsageRecord(
                    caller_id=caller_id,
                    model_id=model_id,
                    input_tokens=usage.input_tokens,
                    output_tokens=usage.output_tokens,
                )
            )
        except Exception as exc:  # noqa: BLE001
            raise UsageTrackingError("completion", exc) from exc


__all__ = ["ChatService", "ChatReply", "Prompt", "ModelOptions", "RetrievalOptions"]
