"""Direct HTTP page fetching for sites scraped without Firecrawl."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests

from site_scraper.core.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
ACCEPT_LANGUAGE_HEADER = "ru-RU,ru;q=0.9,en-US;q=0.8,en;q=0.7"


class PageFetchError(RuntimeError):
    """Raised when a page cannot be downloaded as HTML."""


def build_session(user_agent: str = DEFAULT_USER_AGENT, session: Optional[requests.Session] = None) -> requests.Session:
    session = session or requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": ACCEPT_HEADER,
            "Accept-Language": ACCEPT_LANGUAGE_HEADER,
        }
    )
    return session


def fetch_page(session: requests.Session, url: str, *, timeout: float) -> Tuple[str, str]:
    """Fetch a URL and return the final URL + HTML body.

    ``timeout`` is in seconds and bounds both connect and read.
    """
    try:
        response = session.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as exc:
        raise PageFetchError(f"Failed to fetch {url}: {exc}") from exc

    if not response.ok:
        raise PageFetchError(f"HTTP {response.status_code} for {url}")

    content_type = response.headers.get("Content-Type", "").lower()
    if content_type and "html" not in content_type:
        raise PageFetchError(f"Non-HTML content at {url} (content-type={content_type})")

    logger.debug("Fetched %s (%d bytes)", response.url, len(response.text))
    return response.url, response.text
