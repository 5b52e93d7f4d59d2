"""Page extraction: raw HTML in, `ExtractedPage` out.

The pipeline treats the extractor as an opaque callable, so any function with
the signature `(html: str) -> ExtractedPage` can be plugged in. The default
`SelectorExtractor` is driven by CSS selectors; its defaults match the article
layout of the site this crawler was first written for.
"""

from __future__ import annotations

import dataclasses
from typing import Callable, Mapping, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from .models import ExtractedPage

PageExtractor = Callable[[str], ExtractedPage]


@dataclasses.dataclass(frozen=True)
class SelectorRules:
    title: str = "#ContentDiv > h2"
    paragraphs: str = "#ContentDiv > p"
    next_link: str = "#ContentDiv > div > a:nth-child(2)"
    images: str = "img[src]"
    image_suffixes: tuple[str, ...] = (".png", ".jpg")

    @staticmethod
    def from_mapping(data: Mapping[str, object]) -> "SelectorRules":
        known = {f.name for f in dataclasses.fields(SelectorRules)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown selector keys: {', '.join(sorted(unknown))}")
        values = dict(data)
        if "image_suffixes" in values:
            values["image_suffixes"] = tuple(str(s).lower() for s in values["image_suffixes"])  # type: ignore[union-attr]
        return SelectorRules(**values)  # type: ignore[arg-type]


def _paragraph_text(p: Tag) -> str:
    # Article text lives in <span>s inside each <p>; nested spans are counted once.
    spans = [s for s in p.find_all("span") if s.find_parent("span") is None]
    text = "".join(s.get_text() for s in spans) if spans else p.get_text()
    return text.replace("\u00a0", " ").rstrip()


def _attr_text(val: object) -> str:
    if isinstance(val, list):
        return str(val[0]) if val else ""
    return str(val or "")


class SelectorExtractor:
    def __init__(self, rules: Optional[SelectorRules] = None) -> None:
        self.rules = rules or SelectorRules()

    def check(self) -> None:
        """Run every selector against an empty document; raises ValueError on a bad one."""
        soup = BeautifulSoup("", "lxml")
        for field in ("title", "paragraphs", "next_link", "images"):
            selector = getattr(self.rules, field)
            try:
                soup.select(selector)
            except Exception as e:
                raise ValueError(f"{field} selector {selector!r}: {e}") from e

    def __call__(self, html: str) -> ExtractedPage:
        soup = BeautifulSoup(html, "lxml")
        rules = self.rules

        title_el = soup.select_one(rules.title)
        title = title_el.get_text().strip() if title_el else ""

        lines = [_paragraph_text(p) for p in soup.select(rules.paragraphs)]
        text = "\n".join(lines) + "\n" if any(ln.strip() for ln in lines) else ""

        next_url = None
        link = soup.select_one(rules.next_link)
        if link is not None:
            next_url = _attr_text(link.get("href")).strip() or None

        return ExtractedPage(
            title=title or None,
            text=text,
            next_url=next_url,
            image_urls=tuple(self._image_urls(soup)),
        )

    def _image_urls(self, soup: BeautifulSoup) -> list[str]:
        urls: list[str] = []
        for img in soup.select(self.rules.images):
            src = _attr_text(img.get("src")).strip()
            if src and urlsplit(src).path.lower().endswith(self.rules.image_suffixes):
                urls.append(src)
        return urls
