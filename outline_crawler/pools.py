"""Fan-out worker pools for the fetch and parse stages."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Generic, Optional, Sequence, TypeVar
from urllib.parse import urljoin

from .channels import Channel, ChannelClosed, StageState
from .extract import PageExtractor
from .fetcher import FetchError, PageFetcher
from .images import ImageEngine
from .models import (
    CrawlStats,
    ImageSaveJob,
    ResponseJob,
    TextSaveJob,
    URLJob,
    fallback_stem,
    is_terminal_url,
)
from .ratelimit import TokenBucket

J = TypeVar("J")


class StagePool(Generic[J]):
    """`size` threads draining `inbound`; closes `outputs` after the last one exits."""

    name = "stage"

    def __init__(
        self,
        size: int,
        inbound: Channel[J],
        outputs: Sequence[Channel],
        *,
        logger: logging.LoggerAdapter,
        stats: Optional[CrawlStats] = None,
    ) -> None:
        self.size = size
        self.inbound = inbound
        self.outputs = list(outputs)
        self.logger = logger
        self.stats = stats or CrawlStats()
        self.state = StageState.ACTIVE
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closer: Optional[threading.Thread] = None

    def start(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=self.size, thread_name_prefix=self.name)
        futures = [self._executor.submit(self._worker) for _ in range(self.size)]
        self._closer = threading.Thread(
            target=self._close_when_done, args=(futures,), name=f"{self.name}-closer", daemon=True
        )
        self._closer.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._closer is not None:
            self._closer.join(timeout)

    def handle(self, job: J) -> None:
        raise NotImplementedError

    def _worker(self) -> None:
        for job in self.inbound:
            try:
                self.handle(job)
            except Exception as e:
                self.logger.exception(f"Unhandled error in {self.name} worker for {job!r}: {e}")
        self.state = StageState.DRAINING

    def _close_when_done(self, futures) -> None:
        wait(futures)
        if self._executor is not None:
            self._executor.shutdown(wait=False)
        for channel in self.outputs:
            channel.close()
        self.state = StageState.CLOSED
        self.logger.info(f"{self.name} work done")


class FetchPool(StagePool[URLJob]):
    name = "fetch"

    def __init__(
        self,
        size: int,
        inbound: Channel[URLJob],
        responses: Channel[ResponseJob],
        *,
        fetcher: PageFetcher,
        limiter: TokenBucket,
        logger: logging.LoggerAdapter,
        stats: Optional[CrawlStats] = None,
    ) -> None:
        super().__init__(size, inbound, [responses], logger=logger, stats=stats)
        self.responses = responses
        self.fetcher = fetcher
        self.limiter = limiter

    def handle(self, job: URLJob) -> None:
        if job.is_terminal:
            return
        self.limiter.acquire(1)
        self.logger.info(f"begin to fetch page by url {job.url}")
        try:
            content = self.fetcher.fetch(job.url)
        except FetchError as e:
            self.stats.incr("fetch_failed")
            self.logger.warning(f"fetchPage error: {e}")
            return
        self.stats.incr("fetched")
        self.responses.put(ResponseJob(content=content, directory=job.directory, url=job.url))


class ParsePool(StagePool[ResponseJob]):
    name = "parse"

    def __init__(
        self,
        size: int,
        inbound: Channel[ResponseJob],
        texts: Channel[TextSaveJob],
        derived: Channel[URLJob],
        *,
        extractor: PageExtractor,
        images: ImageEngine,
        image_submit_timeout: float,
        logger: logging.LoggerAdapter,
        stats: Optional[CrawlStats] = None,
    ) -> None:
        super().__init__(size, inbound, [texts, derived], logger=logger, stats=stats)
        self.texts = texts
        self.derived = derived
        self.extractor = extractor
        self.images = images
        self.image_submit_timeout = image_submit_timeout

    def handle(self, job: ResponseJob) -> None:
        try:
            page = self.extractor(job.content)
        except Exception as e:
            self.stats.incr("parse_failed")
            self.logger.warning(f"extract failed for {job.url}: {e}")
            return
        if page.is_empty:
            self.stats.incr("discarded")
            self.logger.info(f"nothing to extract from {job.url}, page discarded")
            return
        self.stats.incr("parsed")

        stem = page.title or fallback_stem()
        self.texts.put(TextSaveJob(stem=stem, text=page.text, directory=job.directory))

        if not is_terminal_url(page.next_url):
            self._derive(job, page.next_url)

        for image_url in page.image_urls:
            if not image_url:
                continue
            image_job = ImageSaveJob(stem=stem, image_url=image_url, directory=job.directory, page_url=job.url)
            if self.images.submit(image_job, timeout=self.image_submit_timeout):
                self.stats.incr("images_submitted")
            else:
                self.stats.incr("images_dropped")

    def _derive(self, job: ResponseJob, next_url: str) -> None:
        url = urljoin(job.url, next_url) if job.url else next_url
        if is_terminal_url(url):
            return
        try:
            self.derived.put(URLJob(url=url, directory=job.directory))
        except ChannelClosed:
            self.stats.incr("derived_dropped")
            self.logger.warning(f"next page {url} found after the frontier closed, dropped")
            return
        self.stats.incr("derived")
