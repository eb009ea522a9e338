from __future__ import annotations

import logging
from typing import Any, List, Optional


logger = logging.getLogger(__name__)


class TensorScope:
    """
    Arena for the intermediate arrays of one detection call.

    Every array produced while handling a frame is registered with `track()`;
    `release()` drops all of them at once. Use it as a context manager so the
    release also happens when a step raises:

        with TensorScope("detect") as scope:
            tensor = scope.track(prep.tensor)
            ...

    A scope is single-use and not shared between calls.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or "scope"
        self._tensors: List[Any] = []
        self._closed = False
        self.released_count = 0

    def __enter__(self) -> "TensorScope":
        if self._closed:
            raise RuntimeError(f"TensorScope '{self.name}' was already closed")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def __len__(self) -> int:
        return len(self._tensors)

    @property
    def closed(self) -> bool:
        return self._closed

    def track(self, value):
        """Register `value` with the scope and hand it back unchanged."""
        if self._closed:
            raise RuntimeError(f"Cannot track into closed TensorScope '{self.name}'")
        self._tensors.append(value)
        return value

    def release(self) -> int:
        """Drop every tracked array. Safe to call more than once."""
        count = len(self._tensors)
        self._tensors.clear()
        self.released_count += count
        self._closed = True
        logger.debug("Released %d tensors from %s", count, self.name)
        return count
