"""
Scoped bookkeeping for transient tensors.

Every tensor an engine call creates (per-image embeddings, stacked batches,
one-hot targets, inference outputs) is registered in a ``TensorScope``.
Leaving the scope drops the scope's references, on success and on failure.
A weak-reference finalizer follows each tracked tensor, so
``live_allocations()`` reports the tracked tensors that are still reachable
from anywhere: a tensor kept alive past its call (a cached embedding, a
forgotten local) shows up there instead of silently holding memory.
"""

from __future__ import annotations

import gc
import logging
import threading
import weakref
from typing import Any, List

logger = logging.getLogger(__name__)

_live_count = 0
# Re-entrant: a finalizer may fire from a collection triggered while held.
_count_lock = threading.RLock()


def live_allocations() -> int:
    """Return the number of tracked tensors that are still alive.

    Runs a garbage collection first so that only tensors with a real
    referrer are counted.
    """
    gc.collect()
    with _count_lock:
        return _live_count


def _adjust(delta: int) -> None:
    global _live_count
    with _count_lock:
        _live_count += delta


def _register(tensor: Any) -> None:
    _adjust(1)
    weakref.finalize(tensor, _adjust, -1)


class TensorScope:
    """Context manager owning the transient tensors of one engine call.

    Usage::

        with TensorScope() as scope:
            batch = scope.track(tf.expand_dims(pixels, 0))
            activation = scope.track(backbone(batch, training=False))
            scores = activation.numpy()
        # batch and activation are released here

    Values returned out of the scope must be plain Python / numpy copies,
    never tracked tensors.
    """

    def __init__(self, name: str = "scope"):
        self.name = name
        self._tensors: List[Any] = []

    def track(self, tensor: Any) -> Any:
        """Register *tensor* for release when the scope exits; return it."""
        self._tensors.append(tensor)
        _register(tensor)
        return tensor

    def track_all(self, tensors: List[Any]) -> List[Any]:
        for tensor in tensors:
            self.track(tensor)
        return tensors

    def release(self) -> None:
        """Drop every tracked tensor now."""
        count = len(self._tensors)
        self._tensors.clear()
        if count:
            logger.debug("Released %d transient tensor(s) from %s", count, self.name)

    def __len__(self) -> int:
        return len(self._tensors)

    def __enter__(self) -> "TensorScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False
