"""End-to-end website scraping: page discovery, fetching, extraction and analysis."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from site_scraper.analysis.categories import reconcile_category
from site_scraper.analysis.service import TextAnalysisService, get_text_analysis_service
from site_scraper.core.config import Settings, get_settings
from site_scraper.core.fetcher import PageFetchError, build_session, fetch_page
from site_scraper.core.models import (
    MAX_SERVICES,
    ScrapedCompanyData,
    ScrapeOptions,
    ScrapeResult,
    TextAnalysisResult,
)
from site_scraper.etl.transform import metadata_from_firecrawl, normalize_extracted
from site_scraper.extract.fields import extract_metadata
from site_scraper.extract.links import (
    build_candidate_urls,
    extract_all_links,
    extract_navigation_links,
    normalize_link,
    origin_of,
)
from site_scraper.extract.profile import parse_company_data
from site_scraper.vendors.firecrawl import (
    COMPANY_EXTRACTION_PROMPT,
    COMPANY_EXTRACTION_SCHEMA,
    COMPANY_EXTRACTION_SYSTEM_PROMPT,
    FirecrawlClient,
    FirecrawlError,
)

logger = logging.getLogger(__name__)

NO_PAGES_ERROR = "No page content could be fetched"


class InvalidURLError(ValueError):
    """Raised for URLs that are not absolute http(s) URLs."""


def validate_url(url: str) -> str:
    """Return the origin of ``url`` or raise ``InvalidURLError``."""
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidURLError("URL must start with http:// or https://")
    return origin_of(parsed.geturl())


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _unique(links: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(links))


class WebScraper:
    """Scrape a business website into a company profile plus text analytics.

    With a Firecrawl client the home page is scraped through Firecrawl and the
    relevant pages go through schema-guided extraction; a failed extraction
    falls back to scraping the pages one by one and mining them with regex
    heuristics. Without Firecrawl the pages are downloaded directly.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        firecrawl: Optional[FirecrawlClient] = None,
        session: Optional[requests.Session] = None,
        text_analyzer: Optional[TextAnalysisService] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if firecrawl is None and self.settings.firecrawl_enabled:
            firecrawl = FirecrawlClient(self.settings.firecrawl_api_key, self.settings.firecrawl_api_url)
        self.firecrawl = firecrawl
        self.session = build_session(self.settings.user_agent, session)
        self._text_analyzer = text_analyzer

    @property
    def mode(self) -> str:
        return "native" if self.firecrawl is None else "firecrawl"

    @property
    def text_analyzer(self) -> TextAnalysisService:
        if self._text_analyzer is None:
            self._text_analyzer = get_text_analysis_service()
        return self._text_analyzer

    def default_options(self) -> ScrapeOptions:
        return ScrapeOptions(
            enable_crawl=self.settings.enable_crawl,
            max_pages=self.settings.max_pages,
            timeout=self.settings.timeout_ms,
        )

    def scrape_website(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        """Scrape ``url``; failures are reported in the result, never raised."""
        started = time.monotonic()
        options = options or self.default_options()

        try:
            origin = validate_url(url)
            logger.info("Scraping %s in %s mode", url, self.mode)
            if self.firecrawl is None:
                result = self._scrape_native(url, origin, options)
            else:
                result = self._scrape_managed(url, origin, options)
        except InvalidURLError as exc:
            logger.warning("Rejected %r: %s", url, exc)
            result = ScrapeResult(success=False, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Scraping %s failed: %s", url, exc)
            result = ScrapeResult(success=False, error=str(exc) or exc.__class__.__name__)

        return replace(result, duration=_elapsed_ms(started))

    def check_health(self) -> Dict[str, Any]:
        if self.firecrawl is None:
            return {"available": True, "mode": "native", "error": None}

        try:
            self.firecrawl.test_connection()
        except FirecrawlError as exc:
            return {"available": False, "mode": "firecrawl", "error": str(exc)}
        except Exception as exc:  # noqa: BLE001
            logger.warning("Firecrawl health check failed (%s); native mode remains available", exc)
            return {"available": True, "mode": "native", "error": None}
        return {"available": True, "mode": "firecrawl", "error": None}

    def _candidate_urls(self, url: str, links: Sequence[str], options: ScrapeOptions) -> List[str]:
        if options.enable_crawl:
            candidates = build_candidate_urls(url, links, additional_paths=options.additional_paths)
        else:
            candidates = build_candidate_urls(
                url, [], additional_paths=options.additional_paths, fallback_paths=()
            )
        pages = candidates[: max(1, options.max_pages)]
        logger.info("Selected %d of %d candidate pages for %s", len(pages), len(candidates), url)
        return pages

    def _scrape_managed(self, url: str, origin: str, options: ScrapeOptions) -> ScrapeResult:
        try:
            home = self.firecrawl.scrape(
                url,
                formats=("markdown", "links", "rawHtml"),
                only_main_content=False,
                timeout=options.timeout,
            )
        except FirecrawlError as exc:
            logger.warning("Firecrawl could not scrape %s (%s); scraping pages individually", url, exc)
            return self._scrape_with_firecrawl_pages([url], options)

        raw_html = home.get("rawHtml") or ""
        links: List[str] = []
        if options.enable_crawl:
            navigation = extract_navigation_links(raw_html, origin) if raw_html else []
            reported = [normalize_link(link, origin) for link in home.get("links") or []]
            links = _unique(navigation + [link for link in reported if link])
            logger.info("Found %d links (%d from navigation) on %s", len(links), len(navigation), url)

        pages = self._candidate_urls(url, links, options)
        try:
            extracted = self.firecrawl.extract(
                pages,
                prompt=COMPANY_EXTRACTION_PROMPT,
                schema=COMPANY_EXTRACTION_SCHEMA,
                system_prompt=COMPANY_EXTRACTION_SYSTEM_PROMPT,
            )
        except FirecrawlError as exc:
            logger.warning("Firecrawl extract failed (%s); scraping pages individually", exc)
            return self._scrape_with_firecrawl_pages(pages, options)

        if not isinstance(extracted, dict):
            logger.warning(
                "Firecrawl extract returned %s for %s; scraping pages individually", type(extracted).__name__, url
            )
            return self._scrape_with_firecrawl_pages(pages, options)

        data = normalize_extracted(extracted, url)
        analysis = self._analyze(raw_html)
        if analysis is not None and not data.category and analysis.suggested_category:
            data = replace(data, category=analysis.suggested_category)

        logger.info(
            "Extracted %s: %d phones, %d emails, category=%s",
            url,
            len(data.phones),
            len(data.emails),
            data.category or "unknown",
        )
        return ScrapeResult(
            success=True,
            data=data,
            raw_markdown=home.get("markdown") or None,
            raw_html=raw_html or None,
            pages_scraped=len(pages),
            text_analysis=analysis,
        )

    def _scrape_with_firecrawl_pages(self, urls: Sequence[str], options: ScrapeOptions) -> ScrapeResult:
        markdown_parts: List[str] = []
        html_parts: List[str] = []
        metadata: Dict[str, str] = {}
        last_error: Optional[str] = None

        for page_url in urls:
            try:
                page = self.firecrawl.scrape(
                    page_url,
                    formats=("markdown", "html"),
                    only_main_content=False,
                    timeout=options.timeout,
                )
            except FirecrawlError as exc:
                logger.warning("Skipping %s: %s", page_url, exc)
                last_error = str(exc)
                continue

            markdown_parts.append(page.get("markdown") or "")
            html_parts.append(page.get("html") or "")
            if not metadata.get("title"):
                metadata = metadata_from_firecrawl(page.get("metadata")) or metadata

        if not html_parts:
            return ScrapeResult(success=False, error=last_error or NO_PAGES_ERROR)

        logger.info("Scraped %d/%d pages through Firecrawl", len(html_parts), len(urls))
        markdown = "\n\n".join(markdown_parts)
        html = "\n\n".join(html_parts)
        data = parse_company_data(markdown, html, metadata, urls[0])
        return self._finish_heuristic(
            data,
            f"{markdown} {html}",
            pages_scraped=len(html_parts),
            raw_markdown=markdown,
            raw_html=html,
        )

    def _fetch(self, url: str, options: ScrapeOptions) -> Tuple[str, str]:
        return fetch_page(self.session, url, timeout=options.timeout / 1000)

    def _scrape_native(self, url: str, origin: str, options: ScrapeOptions) -> ScrapeResult:
        pages_html: List[str] = []
        last_error: Optional[str] = None

        try:
            _, home_html = self._fetch(url, options)
        except PageFetchError as exc:
            logger.warning("Home page of %s unavailable: %s", url, exc)
            last_error = str(exc)
            home_html = None

        links: List[str] = []
        if home_html is not None:
            pages_html.append(home_html)
            if options.enable_crawl:
                links = _unique(extract_navigation_links(home_html, origin) + extract_all_links(home_html, origin))
                logger.info("Found %d links on %s", len(links), url)

        pages = self._candidate_urls(url, links, options)
        for page_url in pages[1:]:
            try:
                _, html = self._fetch(page_url, options)
            except PageFetchError as exc:
                logger.warning("Skipping %s: %s", page_url, exc)
                last_error = str(exc)
                continue
            pages_html.append(html)

        if not pages_html:
            return ScrapeResult(success=False, error=last_error or NO_PAGES_ERROR)

        logger.info("Fetched %d/%d pages for %s", len(pages_html), len(pages), url)
        html = "\n\n".join(pages_html)
        metadata = extract_metadata(BeautifulSoup(pages_html[0], "html.parser"))
        data = parse_company_data("", html, metadata, url)
        return self._finish_heuristic(data, html, pages_scraped=len(pages_html), raw_html=html)

    def _finish_heuristic(
        self,
        data: ScrapedCompanyData,
        content: str,
        *,
        pages_scraped: int,
        raw_markdown: Optional[str] = None,
        raw_html: Optional[str] = None,
    ) -> ScrapeResult:
        analysis = self._analyze(content)
        if analysis is not None:
            category = reconcile_category(data.category, analysis.suggested_category, content)
            services = data.services or list(analysis.entities.products)[:MAX_SERVICES]
            data = replace(data, category=category, services=services)

        return ScrapeResult(
            success=True,
            data=data,
            raw_markdown=raw_markdown,
            raw_html=raw_html,
            pages_scraped=pages_scraped,
            text_analysis=analysis,
        )

    def _analyze(self, html: str) -> Optional[TextAnalysisResult]:
        try:
            return self.text_analyzer.analyze_text(html)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Text analysis failed: %s", exc)
            return None

    def close(self) -> None:
        self.session.close()
        if self.firecrawl is not None:
            self.firecrawl.close()

    def __enter__(self) -> "WebScraper":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.close()
