"""
Provider-agnostic completion driver: the bounded tool-calling turn loop.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from ..exceptions import (
    EmptyModelResponseError,
    InvalidRequestError,
    ProviderTransportError,
    SourcechatError,
    ToolExecutionError,
    ToolLoopExceededError,
)
from ..providers.base import ProviderAdapter
from ..tools import ToolContext, ToolRegistry
from ..types import (
    CompletionRequest,
    CompletionResponse,
    GenerationOptions,
    Message,
    NeutralTurn,
    Role,
    TextContent,
    ToolResult,
)
from ..usage import CompletionUsage
from .cancellation import CancellationToken
from .config import DriverConfig

if TYPE_CHECKING:
    from ..attribution import SourceAttributor

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    AWAITING_MODEL_TURN = "awaiting_model_turn"
    TOOL_EXECUTING = "tool_executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CompletionDriver:
    """
    Runs one completion: model turn, tool round, model turn, ... until text.

    Each iteration sends the full history through the provider adapter and
    adds the turn's usage to the running total. A turn with tool calls is
    recorded as one assistant message, its tools run strictly in the order
    the provider listed them, and one tool-result message per call is
    appended before the next model turn. A text-only turn ends the
    completion; the evidence retrieved along the way is then attributed.

    Every failure is fatal: unknown tool, handler error, too many tool
    rounds, transport error, empty turn, or cancellation. The driver never
    returns a partial answer.

    A driver owns its history, usage, and round counter and runs exactly one
    completion. Build a new one per request (see run_completion()).

    Example:
        >>> driver = CompletionDriver(AnthropicProvider(), attributor=attributor)
        >>> response = driver.run(request)
        >>> print(response.content, response.usage.total_tokens)
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        *,
        attributor: Optional["SourceAttributor"] = None,
        config: Optional[DriverConfig] = None,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.provider = provider
        self.attributor = attributor
        self.config = config or DriverConfig()
        self.cancellation = cancellation or CancellationToken()
        self.state = DriverState.AWAITING_MODEL_TURN
        self.usage = CompletionUsage()
        self.tool_rounds = 0
        self._history: List[Message] = []
        self._started = False

    @property
    def history(self) -> List[Message]:
        """Snapshot of the history built so far."""
        return list(self._history)

    def _call_hook(self, hook_name: str, *args: Any) -> None:
        """Call a hook if configured; hook failures never break the completion."""
        if not self.config.hooks or hook_name not in self.config.hooks:
            return
        try:
            self.config.hooks[hook_name](*args)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Hook %s raised %s: %s", hook_name, type(exc).__name__, exc)

    def _trace(self, message: str, *args: Any) -> None:
        logger.debug(message, *args)
        if self.config.verbose:
            print("[driver] " + (message % args if args else message))

    def run(self, request: CompletionRequest) -> CompletionResponse:
        """
        Drive the completion to a terminal state.

        Returns:
            CompletionResponse with the final assistant message, the full
            history (prior messages plus everything generated), cumulative
            usage, and attributed sources.

        Raises:
            InvalidRequestError: Malformed request, before any provider call.
            UnknownToolError, ToolExecutionError, ToolLoopExceededError,
            ProviderTransportError, EmptyModelResponseError,
            CompletionCancelledError: The completion failed.
        """
        if self._started:
            raise RuntimeError("A CompletionDriver runs exactly one completion")
        self._started = True

        _validate_request(request)
        registry = ToolRegistry(request.tools)
        options = request.options()
        context = ToolContext(caller_id=request.caller_id, cancellation=self.cancellation)

        self._history = list(request.history) + [request.message]
        generated_from = len(request.history)
        self._call_hook("on_completion_start", request)

        try:
            while True:
                turn_number = len(self.usage.iterations) + 1
                self.cancellation.raise_if_cancelled("before provider call")
                self._call_hook("on_turn_start", turn_number, self.history)

                turn = self._call_provider(registry, options)
                self.cancellation.raise_if_cancelled("after provider call")

                if turn.tool_calls:
                    self._run_tool_round(turn, registry, context)
                    continue

                if turn.is_empty:
                    raise EmptyModelResponseError(self.provider.name, options.model)

                final = Message.assistant(turn.text or "")
                self._history.append(final)

                self.cancellation.raise_if_cancelled("before attribution")
                sources = []
                if self.attributor is not None:
                    sources = self.attributor.attribute(
                        request.caller_id, self._history[generated_from:]
                    )

                self.state = DriverState.SUCCEEDED
                response = CompletionResponse(
                    message=final,
                    history=self.history,
                    usage=self.usage,
                    sources=sources,
                    tool_rounds=self.tool_rounds,
                )
                self._trace(
                    "completed after %d turn(s), %d tool round(s), %d tokens",
                    len(self.usage.iterations),
                    self.tool_rounds,
                    self.usage.total_tokens,
                )
                self._call_hook("on_completion_end", response)
                return response
        except Exception as exc:
            self.state = DriverState.FAILED
            logger.info("Completion failed in %s: %s", self.provider.name, type(exc).__name__)
            self._call_hook(
                "on_error",
                exc,
                {"tool_rounds": self.tool_rounds, "turns": len(self.usage.iterations)},
            )
            raise

    def _call_provider(self, registry: ToolRegistry, options: GenerationOptions) -> NeutralTurn:
        self.state = DriverState.AWAITING_MODEL_TURN
        try:
            wire_request = self.provider.translate_request(
                tuple(self._history), registry.list_tools(), options
            )
        except SourcechatError:
            raise
        except Exception as exc:
            raise ProviderTransportError(
                self.provider.name, f"could not translate request: {exc}"
            ) from exc

        turn = self.provider.send_and_parse(wire_request)
        self.usage.add_usage(turn.usage)
        self._call_hook("on_llm_end", turn, turn.usage)
        self._trace(
            "turn %d: %d tool call(s), tokens in=%d out=%d",
            len(self.usage.iterations),
            len(turn.tool_calls),
            turn.usage.input_tokens,
            turn.usage.output_tokens,
        )
        return turn

    def _run_tool_round(
        self, turn: NeutralTurn, registry: ToolRegistry, context: ToolContext
    ) -> None:
        calls = list(turn.tool_calls)
        if self.tool_rounds >= self.config.max_tool_rounds:
            raise ToolLoopExceededError(
                self.config.max_tool_rounds, [call.tool_name for call in calls]
            )

        # Resolve every call before running any, so an unknown name fails the
        # round without side effects.
        tools = [registry.resolve(call) for call in calls]

        self.state = DriverState.TOOL_EXECUTING
        self._history.append(Message.tool_calls(calls, turn.text))

        results: List[Message] = []
        for call, tool in zip(calls, tools):
            self.cancellation.raise_if_cancelled(f"before tool {call.tool_name}")
            self._trace(
                "round %d: tool=%s params=%s", self.tool_rounds + 1, call.tool_name, call.parameters
            )
            self._call_hook("on_tool_start", call.tool_name, call.parameters)

            start_time = time.time()
            try:
                payload = tool.execute(context, call.parameters)
            except ToolExecutionError as exc:
                self._call_hook("on_tool_error", call.tool_name, exc, call.parameters)
                raise
            duration = time.time() - start_time

            self.usage.record_tool(call.tool_name)
            self._call_hook("on_tool_end", call.tool_name, payload, duration)
            results.append(
                Message.tool_result(
                    ToolResult(call_id=call.id, tool_name=call.tool_name, payload=payload)
                )
            )

        self._history.extend(results)
        self.tool_rounds += 1
        self.state = DriverState.AWAITING_MODEL_TURN


def _validate_request(request: CompletionRequest) -> None:
    if not request.model:
        raise InvalidRequestError("model id missing")
    if request.max_tokens <= 0:
        raise InvalidRequestError(f"max_tokens must be positive, got {request.max_tokens}")
    if request.temperature < 0:
        raise InvalidRequestError(f"temperature must be >= 0, got {request.temperature}")
    if request.top_p is not None and not 0 < request.top_p <= 1:
        raise InvalidRequestError(f"top_p must be in (0, 1], got {request.top_p}")
    message = request.message
    if message.role != Role.USER or not isinstance(message.content, TextContent):
        raise InvalidRequestError("the new message must be a user text message")


def run_completion(
    request: CompletionRequest,
    provider: ProviderAdapter,
    *,
    attributor: Optional["SourceAttributor"] = None,
    config: Optional[DriverConfig] = None,
    cancellation: Optional[CancellationToken] = None,
) -> CompletionResponse:
    """Run one completion on a fresh driver and return its response."""
    driver = CompletionDriver(
        provider, attributor=attributor, config=config, cancellation=cancellation
    )
    return driver.run(request)


__all__ = ["CompletionDriver", "DriverState", "run_completion"]
