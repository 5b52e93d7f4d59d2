from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from .config import Config, ConfigError
from .engine import CrawlEngine, iter_seeds
from .logs import get_logger, setup_root_logger

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="outline-crawler",
        description="Crawl article pages listed in an outline file into a category tree.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="fetch data from website")
    fetch.add_argument("--config", "-c", type=Path, help="Path to YAML configuration file.")
    fetch.add_argument("--outline", help="outline file path")
    fetch.add_argument("--output", dest="output_dir", help="output directory of data")
    fetch.add_argument("--fetch-workers", type=int, help="num of fetch web page workers (default 5)")
    fetch.add_argument("--parse-workers", type=int, help="num of parse response workers (default 20)")
    fetch.add_argument("--fetch-qps", type=float, help="QPS of fetch web page (default 2)")
    fetch.add_argument("--origin", help="site origin that relative image paths are joined to")
    fetch.add_argument(
        "--idle-timeout",
        type=float,
        dest="frontier_idle_timeout",
        help="seconds without a new next-page link before a task stops (default 10)",
    )
    fetch.add_argument("--verbose", "-v", action="store_true", help="debug logging")

    outline = sub.add_parser("outline", help="list the crawl tasks an outline file describes")
    outline.add_argument("outline", type=Path, help="outline file path")
    outline.add_argument("--output", dest="output_dir", default=".", help="output directory to resolve against")

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    cfg = Config.from_yaml(args.config) if args.config else Config()
    cfg = cfg.with_overrides(
        outline=args.outline,
        output_dir=args.output_dir,
        fetch_workers=args.fetch_workers,
        parse_workers=args.parse_workers,
        fetch_qps=args.fetch_qps,
        origin=args.origin,
        frontier_idle_timeout=args.frontier_idle_timeout,
    )
    cfg.validate()
    return cfg


def run_fetch(args: argparse.Namespace) -> int:
    setup_root_logger(None, logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger()
    try:
        cfg = load_config(args)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    setup_root_logger(cfg.output_path, logging.DEBUG if args.verbose else logging.INFO)
    logger.info(
        f"Starting: outline={cfg.outline} output={cfg.output_dir} fetch_workers={cfg.fetch_workers} "
        f"parse_workers={cfg.parse_workers} fetch_qps={cfg.fetch_qps:g}"
    )
    warning = cfg.stall_warning()
    if warning:
        logger.warning(warning)
    try:
        engine = CrawlEngine(cfg)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    try:
        engine.run()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_FAILURE
    finally:
        engine.close()
    return EXIT_OK


def run_outline(args: argparse.Namespace) -> int:
    setup_root_logger(None)
    logger = get_logger("outline")
    root = Path(args.output_dir)
    try:
        seeds = list(iter_seeds(args.outline, logger))
    except OSError as e:
        logger.error(f"cannot read outline {args.outline}: {e}")
        return EXIT_FAILURE
    for seed in seeds:
        print(f"{seed.directory(root)}\t{seed.url}")
    logger.info(f"{len(seeds)} task(s) in {args.outline}")
    return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "outline":
        return run_outline(args)
    return run_fetch(args)


if __name__ == "__main__":
    sys.exit(main())
