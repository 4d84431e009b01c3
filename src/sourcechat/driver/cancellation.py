"""
Cooperative cancellation for a running completion.
"""

from __future__ import annotations

import threading
from typing import Optional

from ..exceptions import CompletionCancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag checked by the driver between steps.

    The driver cannot interrupt a vendor call or tool handler that is already
    running; it observes the flag at its next checkpoint and aborts there.

    Example:
        >>> token = CancellationToken()
        >>> threading.Timer(30.0, token.cancel).start()
        >>> run_completion(request, provider, cancellation=token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self, checkpoint: str) -> None:
        """
        Raises:
            CompletionCancelledError: If cancel() has been called.
        """
        if self._event.is_set():
            raise CompletionCancelledError(f"{checkpoint}: {self._reason}")


__all__ = ["CancellationToken"]
