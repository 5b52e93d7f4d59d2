from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .channels import Channel
from .config import Config
from .extract import PageExtractor
from .fetcher import PageFetcher
from .frontier import Frontier
from .images import ImageEngine
from .logs import get_logger
from .models import CrawlStats, ResponseJob, SeedDescriptor, TextSaveJob, URLJob
from .pools import FetchPool, ParsePool
from .ratelimit import TokenBucket
from .writer import OutputWriter


class CrawlTask:
    """Crawls one outline line end to end.

    The task owns its four queues and the completion event; none of them are
    shared with other tasks. Only the HTTP client and the image engine are.
    """

    def __init__(
        self,
        seed: SeedDescriptor,
        cfg: Config,
        *,
        fetcher: PageFetcher,
        extractor: PageExtractor,
        images: ImageEngine,
        logger: Optional[logging.LoggerAdapter] = None,
    ) -> None:
        self.seed = seed
        self.cfg = cfg
        self.directory: Path = seed.directory(cfg.output_path)
        self.logger = logger or get_logger(seed.label, name="task")
        self.stats = CrawlStats(seed.label)
        self.done = threading.Event()

        self.urls: Channel[URLJob] = Channel(cfg.queue_size, name="urls")
        self.derived: Channel[URLJob] = Channel(name="derived")
        self.responses: Channel[ResponseJob] = Channel(cfg.queue_size, name="responses")
        self.texts: Channel[TextSaveJob] = Channel(cfg.queue_size, name="texts")

        self.frontier = Frontier(
            URLJob(url=seed.url, directory=self.directory),
            self.derived,
            self.urls,
            idle_timeout=cfg.frontier_idle_timeout,
            logger=self.logger,
        )
        self.fetch_pool = FetchPool(
            cfg.fetch_workers,
            self.urls,
            self.responses,
            fetcher=fetcher,
            limiter=TokenBucket(cfg.fetch_qps),
            logger=self.logger,
            stats=self.stats,
        )
        self.parse_pool = ParsePool(
            cfg.parse_workers,
            self.responses,
            self.texts,
            self.derived,
            extractor=extractor,
            images=images,
            image_submit_timeout=cfg.image_submit_timeout,
            logger=self.logger,
            stats=self.stats,
        )
        self.writer = OutputWriter(self.texts, self.done, logger=self.logger, stats=self.stats)

    def run(self) -> CrawlStats:
        self.logger.info(f"Starting crawl: {self.seed.url} -> {self.directory}")
        self.writer.start()
        self.parse_pool.start()
        self.fetch_pool.start()
        self.frontier.start()
        self.wait()
        self.logger.info(f"Completed: {self.stats.as_dict()}")
        return self.stats

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.done.wait(timeout)
