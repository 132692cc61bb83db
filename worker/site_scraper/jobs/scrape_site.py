"""CLI job that scrapes one website and prints the result as JSON."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from site_scraper.core.config import get_settings
from site_scraper.core.models import ScrapeOptions
from site_scraper.core.scraper import WebScraper

logger = logging.getLogger(__name__)


def run_scrape_job(*, url: str, options: ScrapeOptions, output: Optional[str] = None) -> bool:
    with WebScraper(get_settings()) as scraper:
        result = scraper.scrape_website(url, options)

    payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as handle:
            handle.write(payload)
        logger.info("Wrote result for %s to %s", url, output)
    else:
        print(payload)

    if not result.success:
        logger.error("Scrape of %s failed: %s", url, result.error)
    return result.success


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Scrape a business website into a company profile")
    parser.add_argument("url", help="Absolute http(s) URL of the website")
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=int,
        default=settings.max_pages,
        help="Maximum number of pages to fetch",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout",
        type=int,
        default=settings.timeout_ms,
        help="Per-page timeout in milliseconds",
    )
    parser.add_argument(
        "--no-crawl",
        dest="enable_crawl",
        action="store_false",
        default=settings.enable_crawl,
        help="Only scrape the given URL",
    )
    parser.add_argument(
        "--path",
        dest="additional_paths",
        action="append",
        default=[],
        help="Extra site path to scrape (repeatable)",
    )
    parser.add_argument("--output", dest="output", help="Write JSON to this file instead of stdout")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    options = ScrapeOptions(
        enable_crawl=args.enable_crawl,
        max_pages=args.max_pages,
        timeout=args.timeout,
        additional_paths=args.additional_paths,
    )
    succeeded = run_scrape_job(url=args.url, options=options, output=args.output)
    sys.exit(0 if succeeded else 1)


if __name__ == "__main__":
    main()
