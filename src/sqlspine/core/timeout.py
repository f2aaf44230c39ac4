"""Statement deadlines.

Every statement runs under a bounded deadline.  The driver call is handed to
a one-shot worker thread and the calling thread waits on the future with a
timeout; if the deadline passes, the adapter's cancel hook aborts the
in-flight call and the caller gets ``QueryTimeoutError``.  The caller still
blocks for the whole call: there is no background queue, one thread lives
exactly as long as one statement.

Guardrails:
    - The cancel hook must be safe to call from another thread
      (``sqlite3.Connection.interrupt``, ``KILL QUERY`` on a second connection)
    - Deadlines below one second are never applied; see ``effective_timeout``
"""

from __future__ import annotations

import concurrent.futures
import time
from collections.abc import Callable
from typing import Any, TypeVar

from sqlspine.core.errors import QueryTimeoutError
from sqlspine.core.logging import get_logger
from sqlspine.core.settings import DEFAULT_TIMEOUT, MIN_TIMEOUT

T = TypeVar("T")

logger = get_logger(__name__)


def effective_timeout(override: float | None, default: float = DEFAULT_TIMEOUT) -> float:
    """Deadline to apply: the override when it is at least one second, else ``default``."""
    if override is not None and override >= MIN_TIMEOUT:
        return float(override)
    if default >= MIN_TIMEOUT:
        return float(default)
    return DEFAULT_TIMEOUT


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    operation: str | None = None,
    args: tuple[Any, ...] | None = None,
    kwargs: dict[str, Any] | None = None,
    on_timeout: Callable[[], None] | None = None,
) -> T:
    """Run a callable with a timeout using a one-shot worker thread.

    Args:
        func: Callable to execute
        timeout_seconds: Maximum execution time
        operation: Name for error context
        args: Positional arguments for func
        kwargs: Keyword arguments for func
        on_timeout: Called once when the deadline passes, before raising;
            its own failure is logged, not raised

    Returns:
        Result of func(*args, **kwargs)

    Raises:
        QueryTimeoutError: If execution exceeds timeout
        Exception: Any exception raised by func
    """
    if timeout_seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")

    start = time.monotonic()
    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="sqlspine-stmt"
    )
    try:
        future = executor.submit(func, *(args or ()), **(kwargs or {}))
        try:
            return future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError:
            if on_timeout is not None:
                try:
                    on_timeout()
                except Exception as e:
                    # The deadline still wins; a failed cancel only leaves the call running.
                    logger.warning("cancel_failed", operation=operation, error=str(e))
            raise QueryTimeoutError(
                timeout_seconds,
                elapsed=time.monotonic() - start,
            ).with_context(operation=operation) from None
    finally:
        # Do not wait for a timed-out call: it is unblocked by on_timeout
        executor.shutdown(wait=False)


__all__ = [
    "effective_timeout",
    "run_with_timeout",
]
