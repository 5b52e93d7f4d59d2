from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

DEFAULT_USER_AGENT = "OutlineCrawler/1.0 (+https://example.com/bot)"


class ConfigError(Exception):
    """Invalid startup configuration; the crawl does not start."""


@dataclasses.dataclass(frozen=True)
class Config:
    output_dir: str = ""
    outline: str = ""
    fetch_workers: int = 5
    parse_workers: int = 20
    fetch_qps: float = 2
    origin: str = ""  # base for relative image paths; empty means "the page's own URL"
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 20  # seconds per request
    frontier_idle_timeout: float = 10.0
    image_submit_timeout: float = 60.0
    image_delay: float = 1.0  # seconds between image downloads
    queue_size: int = 100_000
    image_queue_size: int = 100_000
    selectors: Mapping[str, str] = dataclasses.field(default_factory=dict)

    @staticmethod
    def from_yaml(path: Path) -> "Config":
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        defaults = Config()
        try:
            return Config(
                output_dir=str(data.get("output_dir", defaults.output_dir) or ""),
                outline=str(data.get("outline", defaults.outline) or ""),
                fetch_workers=int(data.get("fetch_workers", defaults.fetch_workers)),
                parse_workers=int(data.get("parse_workers", defaults.parse_workers)),
                fetch_qps=float(data.get("fetch_qps", defaults.fetch_qps)),
                origin=str(data.get("origin", defaults.origin) or ""),
                user_agent=str(data.get("user_agent", defaults.user_agent)),
                timeout=float(data.get("timeout", defaults.timeout)),
                frontier_idle_timeout=float(data.get("frontier_idle_timeout", defaults.frontier_idle_timeout)),
                image_submit_timeout=float(data.get("image_submit_timeout", defaults.image_submit_timeout)),
                image_delay=float(data.get("image_delay", defaults.image_delay)),
                queue_size=int(data.get("queue_size", defaults.queue_size)),
                image_queue_size=int(data.get("image_queue_size", defaults.image_queue_size)),
                selectors=dict(data.get("selectors") or {}),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid value in {path}: {e}") from e

    def with_overrides(self, **overrides: Any) -> "Config":
        """Return a copy with every non-None override applied (CLI flags win over the file)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def outline_path(self) -> Path:
        return Path(self.outline)

    def stall_warning(self) -> Optional[str]:
        """Message for a timeout pair that can end a task before a slow page arrives, else None."""
        if self.frontier_idle_timeout > self.timeout:
            return None
        return (
            f"frontier_idle_timeout ({self.frontier_idle_timeout:g}s) is not longer than the request "
            f"timeout ({self.timeout:g}s): next-page links of slow pages may be dropped"
        )

    def validate(self) -> None:
        if not self.output_dir:
            raise ConfigError("no output directory")
        if self.output_path.exists() and not self.output_path.is_dir():
            raise ConfigError(f"output directory illegal: {self.output_dir} is not a directory")
        if not self.outline:
            raise ConfigError("no outline file")
        if not self.outline_path.is_file():
            raise ConfigError(f"outline file not found: {self.outline}")
        if self.fetch_workers < 1 or self.parse_workers < 1:
            raise ConfigError("worker counts must be at least 1")
        if self.fetch_qps <= 0:
            raise ConfigError(f"fetch_qps must be positive, got {self.fetch_qps}")
        for name in ("timeout", "frontier_idle_timeout", "image_submit_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        if self.image_delay < 0:
            raise ConfigError("image_delay must not be negative")
