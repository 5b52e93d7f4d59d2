"""Jobs passed between pipeline stages, plus outline (seed) line parsing."""

from __future__ import annotations

import dataclasses
import threading
import time
from collections import Counter
from pathlib import Path
from typing import Optional

# A next-page link ending with this suffix means "no further pages".
SENTINEL_SUFFIX = "/#"


class SeedFormatError(ValueError):
    """An outline line that is not `category,subcategory,item,url`."""


def is_terminal_url(url: Optional[str]) -> bool:
    return not url or url.endswith(SENTINEL_SUFFIX)


@dataclasses.dataclass(frozen=True)
class SeedDescriptor:
    category: str
    subcategory: str
    item: str
    url: str

    @property
    def label(self) -> str:
        return f"{self.category}/{self.subcategory}/{self.item}"

    def directory(self, output_root: Path) -> Path:
        return Path(output_root) / self.category / self.subcategory / self.item


def parse_seed_line(line: str) -> SeedDescriptor:
    parts = [p.strip() for p in line.strip().split(",")]
    if len(parts) != 4:
        raise SeedFormatError(f"invalid format line: {line.strip()!r} ({len(parts)} fields, expected 4)")
    return SeedDescriptor(*parts)


@dataclasses.dataclass(frozen=True)
class URLJob:
    url: str
    directory: Path

    @property
    def is_terminal(self) -> bool:
        return is_terminal_url(self.url)


@dataclasses.dataclass(frozen=True)
class ResponseJob:
    content: str
    directory: Path
    url: str = ""


@dataclasses.dataclass(frozen=True)
class ExtractedPage:
    title: Optional[str] = None
    text: str = ""
    next_url: Optional[str] = None
    image_urls: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.next_url


def fallback_stem() -> str:
    """File name stem for pages without a title."""
    return f"unknown:{time.time_ns()}"


def safe_stem(stem: str) -> str:
    """Keep a title-derived file name inside its directory."""
    return stem.replace("/", "_").replace("\\", "_").replace("\x00", "_")


@dataclasses.dataclass(frozen=True)
class TextSaveJob:
    stem: str
    text: str
    directory: Path


@dataclasses.dataclass(frozen=True)
class ImageSaveJob:
    stem: str
    image_url: str
    directory: Path
    page_url: str = ""


class CrawlStats:
    """Per-task counters, safe to bump from any worker thread."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def incr(self, key: str, n: int = 1) -> None:
        with self._lock:
            self._counts[key] += n

    def __getitem__(self, key: str) -> int:
        with self._lock:
            return self._counts[key]

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def __repr__(self) -> str:
        return f"CrawlStats({self.label!r}, {self.as_dict()})"
