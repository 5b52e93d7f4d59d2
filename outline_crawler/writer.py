from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .channels import Channel, StageState
from .models import CrawlStats, TextSaveJob, safe_stem


def text_path(job: TextSaveJob) -> Path:
    return Path(job.directory) / f"{safe_stem(job.stem)}.txt"


def write_text_job(job: TextSaveJob) -> Path:
    """Write one page, replacing any earlier file of the same name."""
    Path(job.directory).mkdir(parents=True, exist_ok=True)
    path = text_path(job)
    path.write_text(job.text, encoding="utf-8")
    return path


class OutputWriter:
    """Single consumer of the text queue. Sets `done` once the queue is closed and drained."""

    def __init__(
        self,
        inbound: Channel[TextSaveJob],
        done: threading.Event,
        *,
        logger: logging.LoggerAdapter,
        stats: Optional[CrawlStats] = None,
    ) -> None:
        self.inbound = inbound
        self.done = done
        self.logger = logger
        self.stats = stats or CrawlStats()
        self.state = StageState.ACTIVE
        self._thread = threading.Thread(target=self.run, name="output-writer", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def run(self) -> None:
        try:
            for job in self.inbound:
                self.save(job)
            self.state = StageState.CLOSED
            self.logger.info("parse output work done")
        finally:
            self.done.set()

    def save(self, job: TextSaveJob) -> Optional[Path]:
        try:
            path = write_text_job(job)
        except OSError as e:
            self.stats.incr("save_failed")
            self.logger.error(f"save file failed: {e}, filename: {job.stem}")
            return None
        self.stats.incr("saved")
        self.logger.info(f"file saved: {path}")
        return path
