"""Process-wide image downloader shared by every crawl task."""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin, urlsplit

import httpx

from .channels import Channel, ChannelClosed
from .logs import get_logger
from .models import ImageSaveJob, safe_stem


def image_basename(image_url: str) -> str:
    return urlsplit(image_url).path.split("/")[-1]


class ImageEngine:
    """Single-consumer download loop with its own bounded queue.

    Started once per process. Tasks hand it jobs through `submit`, which waits
    at most `timeout` seconds for room in the queue and drops the job
    otherwise, so a slow image backlog never stalls page parsing.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        origin: str = "",
        delay: float = 1.0,
        queue_size: int = 100_000,
        logger: Optional[logging.LoggerAdapter] = None,
    ) -> None:
        self.client = client
        self.origin = origin
        self.delay = delay
        self.logger = logger or get_logger("images", name="images")
        self.queue: Channel[ImageSaveJob] = Channel(queue_size, name="images")
        self.saved = 0
        self.failed = 0
        self._thread = threading.Thread(target=self.run, name="image-engine", daemon=True)

    # --------------------------- Public API -------------------------------- #

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> "ImageEngine":
        self._thread.start()
        return self

    def submit(self, job: ImageSaveJob, timeout: Optional[float] = 60) -> bool:
        try:
            self.queue.put(job, timeout=timeout)
            return True
        except queue.Full:
            self.logger.warning(f"timeout to submit job: {job.image_url} -> {job.directory}")
        except ChannelClosed:
            self.logger.warning(f"image engine closed, dropping job: {job.image_url}")
        return False

    def close(self) -> None:
        """Stop accepting jobs; the loop exits after the queued ones are done."""
        self.queue.close()

    def join(self, timeout: Optional[float] = None) -> bool:
        self._thread.join(timeout)
        return not self._thread.is_alive()

    # --------------------------- Internal ---------------------------------- #

    def run(self) -> None:
        for job in self.queue:
            if self.delay > 0:
                time.sleep(self.delay)
            try:
                ok = self.download(job)
            except Exception as e:
                self.logger.exception(f"Unhandled error downloading {job.image_url}: {e}")
                ok = False
            if ok:
                self.saved += 1
            else:
                self.failed += 1
        self.logger.info(f"Image engine stopped: {self.saved} saved, {self.failed} failed")

    def absolute_url(self, job: ImageSaveJob) -> str:
        return urljoin(self.origin or job.page_url, job.image_url)

    def download(self, job: ImageSaveJob) -> bool:
        url = self.absolute_url(job)
        name = image_basename(job.image_url)
        if not name:
            self.logger.warning(f"image url has no file name: {job.image_url}")
            return False
        self.logger.info(f"begin to download pic: {url}")
        try:
            with self.client.stream("GET", url) as resp:
                if resp.status_code != 200:
                    resp.read()
                    self.logger.warning(f"err to download image {url}: response code {resp.status_code}")
                    return False
                try:
                    Path(job.directory).mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    self.logger.error(f"create save directory failed: {e}")
                    return False
                path = Path(job.directory) / f"{safe_stem(job.stem)}{name}"
                part = path.with_name(f"{path.name}.part")
                try:
                    with part.open("wb") as f:
                        for chunk in resp.iter_bytes():
                            if chunk:
                                f.write(chunk)
                    part.replace(path)
                except (OSError, httpx.HTTPError) as e:
                    part.unlink(missing_ok=True)
                    self.logger.error(f"save image failed: {e}, filename: {path.name}")
                    return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning(f"err to download image {url}: {e}")
            return False
        self.logger.info(f"Downloaded image: {url} -> {path}")
        return True
