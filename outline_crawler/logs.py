from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "outline_crawler"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(site)s] %(message)s"


class _SiteDefault(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "site"):
            record.site = "-"
        return True


def setup_root_logger(output_root: Optional[Path], level: int = logging.INFO) -> None:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)
        h.close()
    handlers: list[logging.Handler] = []
    if output_root is not None:
        output_root.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(output_root / "crawl.log", encoding="utf-8"))
    handlers.append(logging.StreamHandler(stream=sys.stdout))
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(formatter)
        h.addFilter(_SiteDefault())
        root_logger.addHandler(h)


def get_logger(site: str = "ALL", name: str = "") -> logging.LoggerAdapter:
    logger = logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
    return logging.LoggerAdapter(logger, extra={"site": site})
