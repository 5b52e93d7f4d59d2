"""
Shared fixtures: a fake site served through httpx.MockTransport and a fast config.
"""
import threading
from pathlib import Path
from typing import Dict, List, Tuple, Union

import httpx
import pytest

from outline_crawler.config import Config
from outline_crawler.logs import get_logger

Body = Union[str, bytes]


class FakeSite:
    """Routes absolute URLs to canned responses and records every request."""

    def __init__(self, routes: Dict[str, Tuple[int, Body]]):
        self.routes = dict(routes)
        self.requested: List[str] = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requested.append(url)
        status, body = self.routes.get(url, (404, "not found"))
        content = body.encode("utf-8") if isinstance(body, str) else body
        return httpx.Response(status, content=content)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def logger():
    return get_logger("test", name="test")


@pytest.fixture
def make_site():
    clients = []

    def _make(routes):
        site = FakeSite(routes)
        client = site.client()
        clients.append(client)
        return site, client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def output_root(tmp_path) -> Path:
    root = tmp_path / "out"
    root.mkdir()
    return root


@pytest.fixture
def fast_config(tmp_path, output_root) -> Config:
    """Config tuned so a whole pipeline finishes in well under a second."""
    outline = tmp_path / "outline.txt"
    outline.write_text("", encoding="utf-8")
    return Config(
        output_dir=str(output_root),
        outline=str(outline),
        fetch_workers=2,
        parse_workers=3,
        fetch_qps=1000,
        timeout=5,
        frontier_idle_timeout=0.3,
        image_submit_timeout=1.0,
        image_delay=0,
        queue_size=100,
        image_queue_size=100,
    )
