"""
Background executor for engine operations.

Simple thread-pool approach for single-process use: every orchestrator
operation is submitted here and the caller gets a ``Future`` back at once.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from .config import TrainingConfig

logger = logging.getLogger(__name__)

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def get_executor(config: Optional[TrainingConfig] = None) -> ThreadPoolExecutor:
    """Return the process-wide executor, creating it on first use."""
    global _executor
    with _executor_lock:
        if _executor is None:
            config = config or TrainingConfig()
            _executor = ThreadPoolExecutor(
                max_workers=config.max_workers,
                thread_name_prefix="training-runner",
            )
            logger.info("Started engine executor with %d workers", config.max_workers)
        return _executor


def shutdown_executor(wait: bool = True) -> None:
    """Stop the process-wide executor; a later call to ``get_executor`` restarts it."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait)
            _executor = None


def run_in_background(
    executor: ThreadPoolExecutor,
    fn: Callable[..., Any],
    *args: Any,
    name: str = "operation",
) -> Future:
    """Submit ``fn(*args)`` and log its failure once it completes."""

    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Background %s failed: %s", name, exc)

    future = executor.submit(fn, *args)
    future.add_done_callback(_log_failure)
    return future
