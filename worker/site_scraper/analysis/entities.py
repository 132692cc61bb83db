"""Heuristic named-entity extraction over visible page text."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from site_scraper.core.models import Entities, FrequentWord

MAX_ORGANIZATIONS = 5
MAX_LOCATIONS = 5
MAX_PRODUCTS = 10
PRODUCT_CANDIDATES = 10
PRODUCT_MIN_COUNT = 3

SERVICE_LEMMAS = ("продажа", "услуга", "доставка", "ремонт", "установка", "монтаж")

_CAPITALIZED = r"[А-ЯЁA-Z][А-ЯЁа-яёA-Za-z0-9-]*"

ORGANIZATION_PATTERNS = (
    re.compile(r"\b(?:ООО|ОАО|ЗАО|ПАО|АО|ИП)\s*[«\"]\s*([^»\"\n]{2,60}?)\s*[»\"]"),
    re.compile(rf"\b(?:ООО|ОАО|ЗАО|ПАО|АО|ИП)\s+({_CAPITALIZED}(?:\s+{_CAPITALIZED}){{0,2}})"),
    re.compile(r"\b(?i:компания|фирма|организация)\s+[«\"]\s*([^»\"\n]{2,60}?)\s*[»\"]"),
    re.compile(rf"\b(?i:компания|фирма|организация)\s+({_CAPITALIZED}(?:\s+{_CAPITALIZED}){{0,2}})"),
)

LOCATION_PATTERNS = (
    re.compile(r"(?<![А-ЯЁа-яё])(?i:г\.|гор\.|город)\s*([А-ЯЁ][а-яё]+(?:-[А-ЯЁа-яё][а-яё]+)*)"),
    re.compile(rf"(?<![А-ЯЁа-яё])(?i:ул\.|улица)\s*({_CAPITALIZED}(?:\s+{_CAPITALIZED})?)"),
    re.compile(rf"(?<![А-ЯЁа-яё])(?i:пр\.|проспект)\s*({_CAPITALIZED}(?:\s+{_CAPITALIZED})?)"),
)


def _collect(text: str, patterns: Iterable[re.Pattern]) -> List[str]:
    found: List[str] = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            value = match.group(1).strip()
            if len(value) > 2:
                found.append(value)
    return list(dict.fromkeys(found))


def extract_organizations(text: str) -> List[str]:
    return _collect(text or "", ORGANIZATION_PATTERNS)[:MAX_ORGANIZATIONS]


def extract_locations(text: str) -> List[str]:
    return _collect(text or "", LOCATION_PATTERNS)[:MAX_LOCATIONS]


def extract_products(frequent_words: Sequence[FrequentWord]) -> List[str]:
    """Pick service-like or repeated words among the most frequent ones."""
    products: List[str] = []
    for item in frequent_words[:PRODUCT_CANDIDATES]:
        is_service = any(keyword in item.lemma for keyword in SERVICE_LEMMAS)
        if is_service or item.count >= PRODUCT_MIN_COUNT:
            products.append(item.word)
    return list(dict.fromkeys(products))[:MAX_PRODUCTS]


def extract_entities(text: str, frequent_words: Sequence[FrequentWord]) -> Entities:
    return Entities(
        organizations=extract_organizations(text),
        locations=extract_locations(text),
        products=extract_products(frequent_words),
    )
