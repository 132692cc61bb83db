"""Link discovery: navigation-scoped harvesting and relevance filtering."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Positional window used when a page has no structural navigation blocks.
HEADER_WINDOW_RATIO = 0.2
FOOTER_WINDOW_RATIO = 0.9

NAVIGATION_TAGS = ("header", "nav", "footer")
NAVIGATION_DIV_CLASS_REGEX = re.compile(r"menu|nav|header|footer", re.IGNORECASE)
NAVIGATION_LIST_CLASS_REGEX = re.compile(r"menu|nav", re.IGNORECASE)

SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")

RELEVANT_LINK_KEYWORDS = (
    # contacts
    "contact", "kontakt", "контакт", "связь", "svyaz", "обратн",
    # about
    "about", "o-nas", "о-нас", "компани", "company", "who-we",
    # services and catalogue
    "service", "uslug", "услуг", "catalog", "katalog", "каталог",
    "product", "tovar", "товар", "price", "прайс", "цен",
    # delivery
    "deliver", "dostav", "доставк", "shipping",
    # payment
    "payment", "oplat", "оплат", "pay",
)
EXCLUDED_LINK_KEYWORDS = ("login", "register", "cart", "checkout", "admin", "account")
EXCLUDED_EXTENSION_REGEX = re.compile(r"\.(?:jpg|png|gif|pdf|doc|zip)$", re.IGNORECASE)

FALLBACK_PATHS = ("/contacts", "/contact", "/kontakty", "/about", "/o-nas", "/services", "/uslugi")


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _host_key(url: str) -> str:
    host = urlparse(url).netloc.lower()
    return host[4:] if host.startswith("www.") else host


def is_same_origin(url: str, base_url: str) -> bool:
    return _host_key(url) == _host_key(base_url)


def normalize_link(href: str, base_url: str) -> Optional[str]:
    href = (href or "").strip()
    if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
        return None

    absolute = urljoin(base_url.rstrip("/") + "/", href)
    parsed = urlparse(absolute)
    if parsed.scheme not in {"http", "https"} or not is_same_origin(absolute, base_url):
        return None
    return urlunparse(parsed._replace(fragment=""))


def _collect_links(soups: Iterable[BeautifulSoup], base_url: str) -> List[str]:
    links: List[str] = []
    for soup in soups:
        for anchor in soup.find_all("a", href=True):
            link = normalize_link(anchor["href"], base_url)
            if link:
                links.append(link)
    return list(dict.fromkeys(links))


def navigation_blocks(soup: BeautifulSoup) -> List[BeautifulSoup]:
    blocks = list(soup.find_all(NAVIGATION_TAGS))
    blocks.extend(soup.find_all("div", class_=NAVIGATION_DIV_CLASS_REGEX))
    blocks.extend(soup.find_all("ul", class_=NAVIGATION_LIST_CLASS_REGEX))
    return blocks


def positional_window(html: str) -> str:
    """Return the first 20% and the last 10% of a document."""
    length = len(html)
    return html[: int(length * HEADER_WINDOW_RATIO)] + html[int(length * FOOTER_WINDOW_RATIO) :]


def extract_navigation_links(html: str, base_url: str) -> List[str]:
    """Same-origin links found in header, nav, footer and menu blocks.

    Pages without such blocks fall back to the positional window of the raw
    markup.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    blocks = navigation_blocks(soup)
    if not blocks:
        logger.debug("No navigation blocks on %s; scanning header/footer window", base_url)
        blocks = [BeautifulSoup(positional_window(html or ""), "html.parser")]
    return _collect_links(blocks, base_url)


def extract_all_links(html: str, base_url: str) -> List[str]:
    return _collect_links([BeautifulSoup(html or "", "html.parser")], base_url)


def is_excluded_link(link: str) -> bool:
    lowered = link.lower()
    if any(keyword in lowered for keyword in EXCLUDED_LINK_KEYWORDS):
        return True
    return bool(EXCLUDED_EXTENSION_REGEX.search(urlparse(lowered).path))


def filter_relevant_links(links: Iterable[str]) -> List[str]:
    relevant: List[str] = []
    for link in links:
        lowered = link.lower()
        if is_excluded_link(link):
            continue
        if any(keyword in lowered for keyword in RELEVANT_LINK_KEYWORDS):
            relevant.append(link)
    return list(dict.fromkeys(relevant))


def build_candidate_urls(
    url: str,
    links: Sequence[str],
    *,
    additional_paths: Sequence[str] = (),
    fallback_paths: Sequence[str] = FALLBACK_PATHS,
    max_pages: Optional[int] = None,
) -> List[str]:
    """Order the pages to fetch: the start URL, relevant links, then fallbacks."""
    origin = origin_of(url)
    candidates: List[str] = [url]

    for link in filter_relevant_links(links):
        if link not in candidates:
            candidates.append(link)

    if len(candidates) == 1 and fallback_paths:
        logger.info("No relevant links on %s; adding canonical paths", url)
        candidates.extend(f"{origin}{path}" for path in fallback_paths)

    for path in additional_paths:
        extra = normalize_link(path, origin)
        if extra and extra not in candidates:
            candidates.append(extra)

    if max_pages is not None:
        candidates = candidates[:max_pages]
    return candidates
