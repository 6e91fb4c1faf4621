#!/usr/bin/env python
"""CLI for the Chornex News highlight engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from chornex_news.config import get_default_config_path, load_config
from chornex_news.config.factory import create_from_config
from chornex_news.data import AcquisitionResult, Language
from chornex_news.feed import NewsFeed

logger = logging.getLogger(__name__)


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    config: Path
    lang: Language | None = None
    watch: bool = False
    interval: float | None = None
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v

    @field_validator("interval")
    @classmethod
    def interval_must_be_positive(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("Interval must be positive")
        return v


def print_result(feed: NewsFeed, result: AcquisitionResult) -> None:
    """Log the highlights currently on display."""
    data = result.data
    logger.info(f"\n[{data.status.value}] {data.generated_at} ({data.language.value}, via {result.origin.value})")
    if result.degraded:
        logger.info("Serving archival data: live feed unavailable")

    for i, highlight in enumerate(data.highlights, 1):
        logger.info(f"{i}. [{highlight.category.value}] {highlight.headline}")
        logger.info(f"   {highlight.summary}")
        if highlight.url:
            logger.info(f"   URL: {highlight.url}")
        if highlight.timestamp:
            logger.info(f"   {highlight.timestamp}")

    if feed.sources:
        logger.info("\nSources:")
        for source in feed.sources:
            logger.info(f"- {source.label}: {source.uri}")

    if result.usage.api_calls:
        logger.info(
            f"\nProvider calls: {len(result.usage.api_calls)}, "
            f"tokens in/out: {result.usage.input_tokens:,}/{result.usage.output_tokens:,}, "
            f"web searches: {result.usage.web_searches}"
        )


async def run(args: CLIArgs) -> None:
    """Fetch highlights once, or keep refreshing with ``--watch``.

    Args:
        args: Validated CLI arguments.
    """
    config = load_config(args.config)
    pipeline, run_logger = create_from_config(
        config,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )
    feed = NewsFeed(pipeline, args.lang or config.refresh.language)

    logger.info(f"Config: {args.config}")

    if args.watch:
        interval = args.interval or config.refresh.interval_seconds
        logger.info(f"Refreshing every {interval:g}s, Ctrl-C to stop")
        await feed.run(interval, on_update=print_result)
    else:
        result = await feed.refresh()
        print_result(feed, result)

    if run_logger and run_logger.last_log_path:
        logger.info(f"\nRun log written to: {run_logger.last_log_path}")


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Fetch AI-synthesized news highlights.")
    parser.add_argument(
        "--lang",
        "-l",
        choices=[lang.value for lang in Language],
        default=None,
        help="Highlight language (default: from config)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--watch",
        "-w",
        action="store_true",
        default=False,
        help="Keep refreshing on an interval",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Refresh interval in seconds for --watch (default: from config)",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Write a JSON trace of every acquisition",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()

    try:
        args = CLIArgs(
            config=config_path,
            lang=ns.lang,
            watch=ns.watch,
            interval=ns.interval,
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except (yaml.YAMLError, ValidationError) as e:
        logger.error(f"Invalid config {args.config}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
