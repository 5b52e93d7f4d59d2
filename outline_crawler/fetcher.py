from __future__ import annotations

import httpx

from .config import Config


class FetchError(Exception):
    """A page could not be fetched. The job is dropped, never retried."""


class BadStatusError(FetchError):
    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"invalid request, response code: {status_code}, url: {url}")
        self.status_code = status_code
        self.url = url


class TransportError(FetchError):
    def __init__(self, url: str, cause: Exception) -> None:
        super().__init__(f"request to {url} failed: {cause!r}")
        self.url = url
        self.cause = cause


def build_client(cfg: Config) -> httpx.Client:
    """HTTP client shared by all fetch workers and the image engine."""
    headers = {
        "User-Agent": cfg.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    limits = httpx.Limits(max_keepalive_connections=20, max_connections=max(cfg.fetch_workers + 1, 10))
    timeout = httpx.Timeout(cfg.timeout)
    return httpx.Client(headers=headers, limits=limits, timeout=timeout, follow_redirects=True)


class PageFetcher:
    def __init__(self, client: httpx.Client) -> None:
        self.client = client

    def fetch(self, url: str) -> str:
        """GET `url` and return the body text of a 200 response."""
        try:
            with self.client.stream("GET", url) as resp:
                # read even on error statuses so the connection goes back to the pool
                resp.read()
                if resp.status_code != 200:
                    raise BadStatusError(resp.status_code, url)
                return resp.text
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(url, e) from e
