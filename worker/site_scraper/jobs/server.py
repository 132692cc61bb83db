"""HTTP entrypoint that scrapes business websites on demand."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from site_scraper.analysis.lemmatizer import get_lemmatizer
from site_scraper.core.config import get_settings
from site_scraper.core.models import ScrapeOptions
from site_scraper.core.scraper import WebScraper

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

MAX_PAGES_RANGE = (1, 20)
TIMEOUT_RANGE_MS = (5000, 120000)

# ---------- App ----------
app = Flask(__name__)


def get_scraper() -> WebScraper:
    """Build a scraper for one request; each request gets its own HTTP session."""
    return WebScraper(get_settings())


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Liveness probe; does not touch Firecrawl."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "mode": "firecrawl" if settings.firecrawl_enabled else "native",
                "lemmatizer": get_lemmatizer().state,
            }
        ),
        200,
    )


@app.get("/scrape/health")
def scrape_health() -> Any:
    with get_scraper() as scraper:
        health = scraper.check_health()
    return jsonify(health), 200


@app.post("/scrape")
def scrape() -> Any:
    """
    Scrape a website synchronously.
    Required JSON fields: url
    Optional: options.enable_crawl (bool), options.max_pages (1-20),
    options.timeout (5000-120000 ms), options.additional_paths (list of paths)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    url = str(payload.get("url") or "").strip()
    if not url:
        return jsonify({"error": "url is required"}), 400

    try:
        options = parse_options(payload.get("options"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    with get_scraper() as scraper:
        result = scraper.scrape_website(url, options)
    if not result.success:
        return jsonify({"success": False, "error": result.error, "duration": result.duration}), 422

    body = result.to_dict()
    return (
        jsonify(
            {
                "success": True,
                "data": body["data"],
                "text_analysis": body["text_analysis"],
                "meta": {
                    "duration": result.duration,
                    "pages_scraped": result.pages_scraped,
                    "has_raw_data": bool(result.raw_html or result.raw_markdown),
                },
            }
        ),
        200,
    )


# ---------- Internals ----------


def _option(options: Dict[str, Any], name: str, alias: str) -> Any:
    return options[name] if name in options else options.get(alias)


def _bounded_int(value: Any, name: str, bounds: tuple) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be numeric") from None
    low, high = bounds
    if not low <= number <= high:
        raise ValueError(f"{name} must be between {low} and {high}")
    return number


def parse_options(raw: Optional[Dict[str, Any]]) -> ScrapeOptions:
    """Build scrape options from a request payload, filling gaps from settings."""
    if raw is not None and not isinstance(raw, dict):
        raise ValueError("options must be an object")
    raw = raw or {}
    settings = get_settings()
    options = ScrapeOptions(
        enable_crawl=settings.enable_crawl,
        max_pages=settings.max_pages,
        timeout=settings.timeout_ms,
    )

    enable_crawl = _option(raw, "enable_crawl", "enableCrawl")
    if isinstance(enable_crawl, str):
        options.enable_crawl = enable_crawl.lower() in {"1", "true", "yes"}
    elif enable_crawl is not None:
        options.enable_crawl = bool(enable_crawl)

    max_pages = _option(raw, "max_pages", "maxPages")
    if max_pages is not None:
        options.max_pages = _bounded_int(max_pages, "max_pages", MAX_PAGES_RANGE)

    timeout = raw.get("timeout")
    if timeout is not None:
        options.timeout = _bounded_int(timeout, "timeout", TIMEOUT_RANGE_MS)

    paths = _option(raw, "additional_paths", "additionalPaths")
    if paths is not None:
        if not isinstance(paths, list) or not all(isinstance(path, str) for path in paths):
            raise ValueError("additional_paths must be a list of strings")
        options.additional_paths = [path.strip() for path in paths if path.strip()]

    return options


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    get_lemmatizer().start()
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
