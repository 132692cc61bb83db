"""Service list mining from service sections, cards and explicit phrases."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Set

from bs4 import BeautifulSoup, Tag

from site_scraper.analysis.tokenizer import collapse_whitespace
from site_scraper.core.models import MAX_SERVICES

logger = logging.getLogger(__name__)

MIN_SERVICE_LENGTH = 5
MAX_SERVICE_LENGTH = 80
MAX_EXPLICIT_LENGTH = 60
EXPLICIT_PREFIX_LENGTH = 20
MAX_SECTION_LABEL_LENGTH = 100
MAX_SECTION_GAP = 500
MAX_LABEL_DEPTH = 2

SERVICE_SECTION_REGEX = re.compile(r"услуг|сервис|service", re.IGNORECASE)
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
SECTION_LABEL_TAGS = HEADING_TAGS + ("strong",)
SECTION_CONTAINER_TAGS = ("div", "section", "p")
EXCLUDED_LABEL_PARENTS = ("head", "nav", "footer")
LIST_TAGS = ("ul", "ol")
SERVICE_CARD_CLASS_REGEX = re.compile(r"service|card|item", re.IGNORECASE)
CARD_TITLE_TAGS = ("h2", "h3", "h4", "strong", "b")
CARD_NAVIGATION_REGEX = re.compile(r"корзин|cart|login|вход|регистр", re.IGNORECASE)

JUNK_PATTERNS = (
    re.compile(r"contact\.", re.IGNORECASE),
    re.compile(r"^адрес", re.IGNORECASE),
    re.compile(r"^телефон", re.IGNORECASE),
    re.compile(r"^email", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile(r"^['\"]"),
    re.compile(r"\+\s*['\"]$"),
    re.compile(r"^почему", re.IGNORECASE),
    re.compile(r"^основные", re.IGNORECASE),
    re.compile(r"условия\s+гарантийного", re.IGNORECASE),
    re.compile(r"политика", re.IGNORECASE),
    re.compile(r"правила", re.IGNORECASE),
    re.compile(r"юридическ", re.IGNORECASE),
)

EXPLICIT_SERVICE_PATTERNS = (
    re.compile(r"подъ[её]м\s+(?:техники|товар).{0,30}", re.IGNORECASE),
    re.compile(r"установка\s+(?:и\s+)?настройка.{0,50}", re.IGNORECASE),
    re.compile(r"(?:персональная\s+)?сборка\s+(?:компьютер|пк|pc).{0,30}", re.IGNORECASE),
    re.compile(r"ремонт\s+.{5,40}", re.IGNORECASE),
    re.compile(r"доставка\s+(?:по\s+)?.{5,40}", re.IGNORECASE),
    re.compile(r"монтаж\s+.{5,40}", re.IGNORECASE),
    re.compile(r"(?:гарантийное\s+)?обслуживани[ея].{0,30}", re.IGNORECASE),
    re.compile(r"заправка\s+(?:картридж|принтер).{0,30}", re.IGNORECASE),
    re.compile(r"настройка\s+(?:программ|по|оборудован).{0,30}", re.IGNORECASE),
)

HTML_TAG_REGEX = re.compile(r"<[^>]+>")
HTML_ENTITY_REGEX = re.compile(r"&[a-z]+;", re.IGNORECASE)


def clean_service_text(text: str) -> str:
    """Strip quote, markup and entity leftovers from a service candidate."""
    cleaned = re.sub(r"[\"'\\]+$", "", text or "")
    cleaned = re.sub(r"^[\"'\\]+", "", cleaned)
    cleaned = cleaned.replace('">', "")
    cleaned = HTML_TAG_REGEX.sub("", cleaned)
    cleaned = HTML_ENTITY_REGEX.sub("", cleaned)
    return collapse_whitespace(cleaned)


def is_junk_service(text: str, brand: Optional[str] = None) -> bool:
    cleaned = clean_service_text(text)
    if not MIN_SERVICE_LENGTH <= len(cleaned) <= MAX_SERVICE_LENGTH:
        return True
    if brand and len(brand) >= 3 and brand.lower() in cleaned.lower():
        return True
    return any(pattern.search(cleaned) for pattern in JUNK_PATTERNS)


def _following_list(node: Tag) -> Optional[Tag]:
    gap = 0
    for sibling in node.find_next_siblings():
        if sibling.name in LIST_TAGS:
            return sibling
        if sibling.name in HEADING_TAGS or sibling.find(HEADING_TAGS) is not None:
            return None
        listing = sibling.find(LIST_TAGS)
        if listing is not None:
            return listing
        gap += len(sibling.get_text())
        if gap > MAX_SECTION_GAP:
            return None
    return None


def _section_list(label: Tag) -> Optional[Tag]:
    node = label
    for _ in range(MAX_LABEL_DEPTH):
        listing = _following_list(node)
        if listing is not None:
            return listing
        parent = node.parent
        if parent is None or parent.name not in SECTION_CONTAINER_TAGS:
            return None
        node = parent
    return None


def _section_list_items(soup: BeautifulSoup) -> List[str]:
    items: List[str] = []
    visited: Set[int] = set()
    for label in soup.find_all(SECTION_LABEL_TAGS):
        text = label.get_text(" ", strip=True)
        if len(text) > MAX_SECTION_LABEL_LENGTH or not SERVICE_SECTION_REGEX.search(text):
            continue
        if label.find_parent(EXCLUDED_LABEL_PARENTS) is not None:
            continue
        listing = _section_list(label)
        if listing is None or id(listing) in visited:
            continue
        visited.add(id(listing))
        for item in listing.find_all("li", recursive=False):
            if item.find(LIST_TAGS) is not None:
                continue
            items.append(item.get_text(" ", strip=True))
    return items


def _card_titles(soup: BeautifulSoup) -> List[str]:
    titles: List[str] = []
    for card in soup.find_all(["div", "article", "section"], class_=SERVICE_CARD_CLASS_REGEX):
        heading = card.find(CARD_TITLE_TAGS)
        if heading is None:
            continue
        title = heading.get_text(" ", strip=True)
        if MIN_SERVICE_LENGTH <= len(title) <= MAX_SERVICE_LENGTH:
            titles.append(title)
    return titles


def _drop_contained(services: List[str]) -> List[str]:
    unique: List[str] = []
    for index, service in enumerate(services):
        lowered = service.lower()
        contained = any(
            other_index != index and len(other) > len(service) and lowered in other.lower()
            for other_index, other in enumerate(services)
        )
        if not contained:
            unique.append(service)
    return unique


def extract_services(soup: BeautifulSoup, brand: Optional[str] = None) -> List[str]:
    """Collect up to 15 service names from a page with scripts and styles removed."""
    services: List[str] = []

    for raw in _section_list_items(soup):
        service = clean_service_text(raw)
        if not is_junk_service(service, brand) and service not in services:
            services.append(service)

    for raw in _card_titles(soup):
        title = clean_service_text(raw)
        if is_junk_service(title, brand) or CARD_NAVIGATION_REGEX.search(title) or title in services:
            continue
        services.append(title)

    fragments = list(soup.stripped_strings)
    for pattern in EXPLICIT_SERVICE_PATTERNS:
        for fragment in fragments:
            for match in pattern.finditer(fragment):
                service = re.sub(r"[;,]$", "", clean_service_text(match.group(0)))[:MAX_EXPLICIT_LENGTH].strip()
                if is_junk_service(service, brand):
                    continue
                prefix = service.lower()[:EXPLICIT_PREFIX_LENGTH]
                if any(prefix in existing.lower() for existing in services):
                    continue
                services.append(service[:1].upper() + service[1:])

    unique = _drop_contained(services)
    logger.info("Extracted %d services", len(unique))
    return unique[:MAX_SERVICES]
