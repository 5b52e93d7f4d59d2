from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import httpx

from .config import Config, ConfigError
from .extract import PageExtractor, SelectorExtractor, SelectorRules
from .fetcher import PageFetcher, build_client
from .images import ImageEngine
from .logs import get_logger
from .models import CrawlStats, SeedDescriptor, SeedFormatError, parse_seed_line
from .task import CrawlTask


def iter_seeds(path: Path, logger: logging.LoggerAdapter) -> Iterator[SeedDescriptor]:
    """Yield the descriptors of an outline file, skipping blank and malformed lines."""
    with Path(path).open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                yield parse_seed_line(line)
            except SeedFormatError as e:
                logger.warning(f"line {lineno}: {e}")


def build_extractor(cfg: Config) -> PageExtractor:
    try:
        extractor = SelectorExtractor(SelectorRules.from_mapping(cfg.selectors))
        extractor.check()
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid selectors: {e}") from e
    return extractor


class CrawlEngine:
    """Runs one `CrawlTask` per outline line, one after another."""

    def __init__(
        self,
        cfg: Config,
        *,
        client: Optional[httpx.Client] = None,
        extractor: Optional[PageExtractor] = None,
        images: Optional[ImageEngine] = None,
        logger: Optional[logging.LoggerAdapter] = None,
    ) -> None:
        self.cfg = cfg
        self.logger = logger or get_logger()
        self.extractor = extractor or build_extractor(cfg)
        self._owns_client = client is None
        self.client = client or build_client(cfg)
        self.fetcher = PageFetcher(self.client)
        self._owns_images = images is None
        self.images = images or ImageEngine(
            self.client,
            origin=cfg.origin,
            delay=cfg.image_delay,
            queue_size=cfg.image_queue_size,
        )

    def run(self) -> list[CrawlStats]:
        if self._owns_images and not self.images.running:
            self.images.start()
        results: list[CrawlStats] = []
        for seed in iter_seeds(self.cfg.outline_path, self.logger):
            task = CrawlTask(
                seed,
                self.cfg,
                fetcher=self.fetcher,
                extractor=self.extractor,
                images=self.images,
                logger=get_logger(seed.label, name="task"),
            )
            results.append(task.run())
        self.logger.info(f"All done: {len(results)} task(s)")
        return results

    def close(self, image_timeout: Optional[float] = None) -> None:
        """Let queued image downloads finish, then release the HTTP client."""
        if self._owns_images:
            self.images.close()
            if self.images.running and not self.images.join(image_timeout):
                self.logger.warning(f"{self.images.queue.qsize()} image download(s) still pending at exit")
        if self._owns_client:
            self.client.close()
