"""Single-value profile fields mined from page markup and text."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from site_scraper.core.models import MAX_PHOTOS, Coordinates

logger = logging.getLogger(__name__)

DESCRIPTION_FALLBACK_LENGTH = 300
DAY_OFF = "выходной"

TITLE_SEPARATOR_REGEX = re.compile(r"\s*\|\s*|\s+[-–—]\s+")

ADDRESS_PATTERNS = (
    re.compile(
        r"(?:г\.|город)\s*[А-ЯЁа-яё-]+,?\s*(?:ул\.|улица|пр\.|проспект|пер\.|переулок)"
        r"\s*[А-ЯЁа-яё0-9\s,.-]{1,60}?(?:д\.\s*|дом\s*)?\d+[а-яё]?",
        re.IGNORECASE,
    ),
    re.compile(r"(?:ул\.|улица)\s*[А-ЯЁа-яё-]+,?\s*(?:д\.|дом)?\s*\d+[а-яё]?", re.IGNORECASE),
)

COORDINATE_PATTERNS = (
    re.compile(
        r"[\"']?(?<![a-z])lat(?:itude)?[\"']?\s*[:=]\s*[\"']?(-?[\d.]+)[\"']?"
        r".{0,80}?[\"']?(?<![a-z])l(?:ng|on(?:g(?:itude)?)?)[\"']?\s*[:=]\s*[\"']?(-?[\d.]+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?<![a-z])coords?\s*[:=]\s*\[?\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)", re.IGNORECASE),
)

SOCIAL_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("vk", re.compile(r"https?://(?:www\.)?vk\.com/[a-zA-Z0-9_.-]+", re.IGNORECASE)),
    ("telegram", re.compile(r"https?://(?:www\.)?t(?:elegram)?\.me/[a-zA-Z0-9_]+", re.IGNORECASE)),
    ("whatsapp", re.compile(r"https?://(?:www\.)?wa\.me/\d+|whatsapp://send\?phone=\d+", re.IGNORECASE)),
    ("instagram", re.compile(r"https?://(?:www\.)?instagram\.com/[a-zA-Z0-9_.-]+", re.IGNORECASE)),
    ("facebook", re.compile(r"https?://(?:www\.)?facebook\.com/[a-zA-Z0-9_.-]+", re.IGNORECASE)),
    ("youtube", re.compile(r"https?://(?:www\.)?youtube\.com/(?:channel|c|user)/[a-zA-Z0-9_-]+", re.IGNORECASE)),
    ("tiktok", re.compile(r"https?://(?:www\.)?tiktok\.com/@[a-zA-Z0-9_.-]+", re.IGNORECASE)),
    ("twitter", re.compile(r"https?://(?:www\.)?(?:twitter|x)\.com/[a-zA-Z0-9_]+", re.IGNORECASE)),
    ("linkedin", re.compile(r"https?://(?:www\.)?linkedin\.com/(?:company|in)/[a-zA-Z0-9_-]+", re.IGNORECASE)),
    ("ok", re.compile(r"https?://(?:www\.)?ok\.ru/[a-zA-Z0-9_.-]+", re.IGNORECASE)),
)

TIME_RANGE_REGEX = re.compile(r"(\d{1,2})[:.](\d{2})\s*[-–]\s*(\d{1,2})[:.](\d{2})")
WEEKDAYS = ("mon", "tue", "wed", "thu", "fri")

PHOTO_EXCLUDED_MARKERS = ("icon", "logo", "avatar", "1x1", "pixel")
PHOTO_EXCLUDED_EXTENSIONS = (".svg", ".gif")


def resolve_url(url: str, base: str) -> Optional[str]:
    """Make an asset URL absolute; inline ``data:`` URIs are dropped."""
    url = (url or "").strip()
    if not url or url.startswith("data:"):
        return None
    if url.startswith("//"):
        return f"https:{url}"

    resolved = urljoin(base, url)
    if urlparse(resolved).scheme not in {"http", "https"}:
        return None
    return resolved


def _meta_content(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    matchers = {key: re.compile(rf"^{re.escape(value)}$", re.IGNORECASE) for key, value in attrs.items()}
    tag = soup.find("meta", attrs=matchers)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def extract_metadata(soup: BeautifulSoup) -> Dict[str, str]:
    """Collect title, description and Open Graph fields of a page."""
    metadata: Dict[str, str] = {}
    if soup.title is not None:
        title = soup.title.get_text(" ", strip=True)
        if title:
            metadata["title"] = title

    fields = {
        "description": {"name": "description"},
        "og_title": {"property": "og:title"},
        "og_description": {"property": "og:description"},
        "og_image": {"property": "og:image"},
    }
    for key, attrs in fields.items():
        value = _meta_content(soup, **attrs)
        if value:
            metadata[key] = value
    return metadata


def extract_company_name(metadata: Mapping[str, Any], soup: BeautifulSoup) -> Optional[str]:
    if metadata.get("og_title"):
        return str(metadata["og_title"]).strip()

    if metadata.get("title"):
        name = TITLE_SEPARATOR_REGEX.split(str(metadata["title"]))[0].strip()
        if name:
            return name

    heading = soup.find("h1")
    if heading is not None:
        text = heading.get_text(" ", strip=True)
        if text:
            return text
    return None


def extract_description(metadata: Mapping[str, Any], text: str) -> Optional[str]:
    if metadata.get("og_description"):
        return str(metadata["og_description"])
    if metadata.get("description"):
        return str(metadata["description"])
    return (text or "").strip()[:DESCRIPTION_FALLBACK_LENGTH] or None


def extract_address(text: str) -> Optional[str]:
    for pattern in ADDRESS_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return match.group(0).strip()
    return None


def extract_coordinates(content: str) -> Optional[Coordinates]:
    """Find a ``lat``/``lng`` pair; unparsable or out-of-range values yield ``None``."""
    for pattern in COORDINATE_PATTERNS:
        match = pattern.search(content or "")
        if not match:
            continue
        try:
            lat = float(match.group(1))
            lng = float(match.group(2))
        except ValueError:
            logger.debug("Ignoring malformed coordinates %r", match.group(0))
            continue
        if -90 <= lat <= 90 and -180 <= lng <= 180:
            return Coordinates(lat=lat, lng=lng)
    return None


def extract_social_links(content: str) -> Dict[str, str]:
    links: Dict[str, str] = {}
    for platform, pattern in SOCIAL_PATTERNS:
        match = pattern.search(content or "")
        if match:
            links[platform] = match.group(0)
    return links


def _valid_time(hours: str, minutes: str) -> bool:
    return int(hours) <= 24 and int(minutes) < 60


def find_time_ranges(text: str) -> List[str]:
    ranges: List[str] = []
    for match in TIME_RANGE_REGEX.finditer(text or ""):
        start_h, start_m, end_h, end_m = match.groups()
        if _valid_time(start_h, start_m) and _valid_time(end_h, end_m):
            ranges.append(match.group(0))
    return ranges


def extract_working_hours(text: str) -> Optional[Dict[str, str]]:
    """Apply the first time range found to every weekday.

    Saturday takes the second range when there is one; Sunday is a day off.
    """
    ranges = find_time_ranges(text)
    if not ranges:
        return None

    first = ranges[0]
    hours = {day: first for day in WEEKDAYS}
    hours["sat"] = ranges[1] if len(ranges) > 1 else first
    hours["sun"] = DAY_OFF
    return hours


def _attribute_text(tag: Any, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").lower()


def _is_icon_link(rel: Any) -> bool:
    if not rel:
        return False
    values = rel if isinstance(rel, list) else str(rel).split()
    return "icon" in [value.lower() for value in values]


def extract_logo(soup: BeautifulSoup, source_url: str) -> Optional[str]:
    images = soup.find_all("img", src=True)
    for attribute in ("class", "id", "alt"):
        for image in images:
            if "logo" in _attribute_text(image, attribute):
                return resolve_url(image["src"], source_url)

    icon = soup.find("link", rel=_is_icon_link, href=True)
    if icon is not None:
        return resolve_url(icon["href"], source_url)
    return None


def extract_photos(soup: BeautifulSoup, source_url: str) -> List[str]:
    photos: List[str] = []
    for image in soup.find_all("img", src=True):
        src = image["src"].strip()
        lowered = src.lower()
        if any(marker in lowered for marker in PHOTO_EXCLUDED_MARKERS):
            continue
        if lowered.endswith(PHOTO_EXCLUDED_EXTENSIONS):
            continue
        resolved = resolve_url(src, source_url)
        if resolved and resolved not in photos:
            photos.append(resolved)
    return photos[:MAX_PHOTOS]
