"""
Command line entry point: scrape a year of reading history, or rebuild the
report from files saved by an earlier scrape.
"""

from __future__ import annotations

import argparse
import datetime
import logging
import sys

import requests

import storage
from ao3_scraper import AuthenticationError, PageFetchFailed, env_credentials, scrape_ao3_history
from config import load_settings
from image_generator import generate_all_stat_images
from report import build_summary, render_text

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ao3-wrapped",
        description="Summarize a year of your AO3 reading history.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scrape = subparsers.add_parser("scrape", help="Log in and scrape your reading history")
    scrape.add_argument(
        "-y", "--year", type=int, default=None,
        help="The year you want to summarize, defaults to the current year",
    )
    scrape.add_argument(
        "-d", "--delay-ms", type=int, default=None,
        help="Delay between page loads in milliseconds (default 6000)",
    )

    stats_only = subparsers.add_parser("stats-only", help="Rebuild the report from saved files")
    stats_only.add_argument("year", type=int, help="The year to load")

    for sub in (scrape, stats_only):
        sub.add_argument("--output-dir", default=None, help="Where the stats and works files live")
        sub.add_argument("--images", action="store_true", help="Also render summary images")
    return parser


def run(args, settings=None, credentials=env_credentials):
    settings = settings or load_settings()
    if args.output_dir:
        settings = settings.replace(output_dir=args.output_dir)

    if args.command == "scrape":
        if args.delay_ms is not None:
            settings = settings.replace(page_delay_ms=args.delay_ms)
        year = args.year or datetime.date.today().year
        result = scrape_ao3_history(credentials, year, settings)
        tables, dataset = result.tables, result.dataset
        storage.save(tables, dataset, year, settings.output_dir)
    else:
        year = args.year
        tables, dataset = storage.load(year, settings.output_dir)

    summary = build_summary(tables, dataset)
    print(render_text(summary, year))

    if args.images:
        for name, path in generate_all_stat_images(summary, year, settings.output_dir).items():
            logger.info("Wrote %s image to %s", name, path)
    return summary


def main(argv=None):
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format="%(asctime)s  %(levelname)s  %(message)s",
    )
    args = build_arg_parser().parse_args(argv)
    try:
        run(args)
    except (AuthenticationError, PageFetchFailed, storage.ArtifactMissing, requests.RequestException) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
