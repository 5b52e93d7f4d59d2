from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from .channels import Channel, ChannelClosed, StageState
from .models import URLJob


class Frontier:
    """Feeds the seed URL, then every derived URL, into the fetch queue.

    Nobody knows up front how many next-page links parsing will turn up, so
    the frontier stops on inactivity: once `idle_timeout` seconds pass with no
    derived URL it closes its input, forwards whatever is still queued and
    closes the fetch queue. This is a best-effort guess, not a proof that
    discovery is over; a site slower than the timeout is cut short.
    """

    def __init__(
        self,
        seed: URLJob,
        derived: Channel[URLJob],
        outbound: Channel[URLJob],
        *,
        idle_timeout: float,
        logger: logging.LoggerAdapter,
    ) -> None:
        self.seed = seed
        self.derived = derived
        self.outbound = outbound
        self.idle_timeout = idle_timeout
        self.logger = logger
        self.state = StageState.ACTIVE
        self.forwarded = 0
        self._thread = threading.Thread(target=self.run, name="frontier", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def run(self) -> None:
        try:
            if self.seed.is_terminal:
                self.logger.info(f"Seed URL {self.seed.url!r} marks no pages, nothing to fetch")
            else:
                self._forward(self.seed)
                self._pump()
        finally:
            self._shutdown()

    def _pump(self) -> None:
        while True:
            try:
                job = self.derived.get(timeout=self.idle_timeout)
            except queue.Empty:
                self.logger.info(f"No derived URL for {self.idle_timeout:g}s, generate url work done")
                return
            except ChannelClosed:
                return
            self._forward(job)

    def _shutdown(self) -> None:
        self.state = StageState.DRAINING
        self.derived.close()
        while True:
            try:
                job = self.derived.get(block=False)
            except (queue.Empty, ChannelClosed):
                break
            self._forward(job)
        self.outbound.close()
        self.state = StageState.CLOSED
        self.logger.debug(f"Frontier closed after forwarding {self.forwarded} URL(s)")

    def _forward(self, job: URLJob) -> None:
        if job.is_terminal:
            self.logger.debug(f"Dropping terminal URL {job.url!r}")
            return
        self.outbound.put(job)
        self.forwarded += 1
