"""Closable FIFO hand-off queues connecting the pipeline stages."""

from __future__ import annotations

import enum
import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised by `put` after close, and by `get` once a closed channel is drained."""


class StageState(enum.Enum):
    ACTIVE = "active"
    DRAINING = "draining"
    CLOSED = "closed"


class Channel(Generic[T]):
    """A `queue.Queue` that producers can close.

    Closing enqueues a marker behind any pending items, so consumers still see
    everything that was put before the close. A consumer that takes the marker
    puts it back for its peers, which lets any number of workers share one
    channel and all of them exit.
    """

    def __init__(self, maxsize: int = 0, name: str = "") -> None:
        self.name = name
        self._queue: queue.Queue = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T, timeout: Optional[float] = None) -> None:
        """Enqueue `item`; raises `queue.Full` if `timeout` elapses first."""
        if self._queue.maxsize <= 0:
            # unbounded puts never block, so an item can't slip in behind the close marker
            with self._lock:
                if self._closed:
                    raise ChannelClosed(self.name)
                self._queue.put(item)
            return
        if self._closed:
            raise ChannelClosed(self.name)
        self._queue.put(item, timeout=timeout)

    def get(self, block: bool = True, timeout: Optional[float] = None) -> T:
        """Dequeue one item; raises `queue.Empty` on timeout."""
        item = self._queue.get(block=block, timeout=timeout)
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            raise ChannelClosed(self.name)
        return item

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def qsize(self) -> int:
        return self._queue.qsize()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
