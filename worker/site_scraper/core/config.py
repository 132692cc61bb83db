"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_FIRECRAWL_API_URL = "https://api.firecrawl.dev/v1"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class Settings:
    firecrawl_api_key: str = ""
    firecrawl_api_url: str = DEFAULT_FIRECRAWL_API_URL
    max_pages: int = 5
    enable_crawl: bool = True
    timeout_ms: int = 30000
    user_agent: str = DEFAULT_USER_AGENT
    lemmatizer_init_timeout: float = 10.0
    worker_port: int = 9000

    @property
    def firecrawl_enabled(self) -> bool:
        return bool(self.firecrawl_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    firecrawl_api_key = os.getenv("FIRECRAWL_API_KEY", "").strip()
    firecrawl_api_url = os.getenv("FIRECRAWL_API_URL", "").strip() or DEFAULT_FIRECRAWL_API_URL
    max_pages = int(os.getenv("SCRAPER_MAX_PAGES", "5"))
    enable_crawl = os.getenv("SCRAPER_ENABLE_CRAWL", "true").lower() in {"1", "true", "yes"}
    timeout_ms = int(os.getenv("SCRAPER_TIMEOUT_MS", "30000"))
    user_agent = os.getenv("SCRAPER_USER_AGENT", "").strip() or DEFAULT_USER_AGENT
    lemmatizer_init_timeout = float(os.getenv("LEMMATIZER_INIT_TIMEOUT", "10"))
    worker_port = int(os.getenv("WORKER_PORT", "9000"))

    if not firecrawl_api_key:
        logger.warning("FIRECRAWL_API_KEY is not configured; websites will be fetched directly.")

    return Settings(
        firecrawl_api_key=firecrawl_api_key,
        firecrawl_api_url=firecrawl_api_url.rstrip("/"),
        max_pages=max_pages,
        enable_crawl=enable_crawl,
        timeout_ms=timeout_ms,
        user_agent=user_agent,
        lemmatizer_init_timeout=lemmatizer_init_timeout,
        worker_port=worker_port,
    )
