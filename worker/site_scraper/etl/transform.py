"""Utilities for transforming Firecrawl responses into company profiles."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from site_scraper.core.models import (
    MANAGED_CONFIDENCE,
    MAX_PHOTOS,
    MAX_SERVICES,
    Branch,
    Coordinates,
    EmailContact,
    PhoneContact,
    ScrapedCompanyData,
)
from site_scraper.extract.contacts import phone_key

logger = logging.getLogger(__name__)

_METADATA_KEYS = {
    "title": "title",
    "description": "description",
    "ogTitle": "og_title",
    "ogDescription": "og_description",
    "ogImage": "og_image",
}
_ESCAPED_QUOTE_MARKERS = ("u0022", "\\u0022", '"')


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [text for text in (_text(value) for value in values) if text]


def _string_map(values: Any) -> Dict[str, str]:
    if not isinstance(values, dict):
        return {}
    return {str(key): text for key, text in ((key, _text(value)) for key, value in values.items()) if text}


def parse_coordinates(value: Any) -> Optional[Coordinates]:
    if not isinstance(value, dict):
        return None
    try:
        lat = float(value.get("lat"))
        lng = float(value.get("lng"))
    except (TypeError, ValueError):
        return None
    if -90 <= lat <= 90 and -180 <= lng <= 180:
        return Coordinates(lat=lat, lng=lng)
    return None


def _phone_entries(values: Iterable[Any]) -> List[PhoneContact]:
    phones: List[PhoneContact] = []
    seen = set()
    for value in values or []:
        if isinstance(value, dict):
            number = _text(value.get("number") or value.get("phone"))
            label = _text(value.get("label"))
        else:
            number, label = _text(value), None
        key = phone_key(number or "")
        if not key or key in seen:
            continue
        seen.add(key)
        phones.append(PhoneContact(number=number, label=label))
    return phones


def _email_entries(values: Iterable[Any]) -> List[EmailContact]:
    emails: List[EmailContact] = []
    seen = set()
    for value in values or []:
        if isinstance(value, dict):
            email = _text(value.get("email") or value.get("address"))
            label = _text(value.get("label"))
        else:
            email, label = _text(value), None
        if not email or email.startswith(_ESCAPED_QUOTE_MARKERS) or "@" not in email:
            continue
        key = email.lower()
        if key in seen:
            continue
        seen.add(key)
        emails.append(EmailContact(email=key, label=label))
    return emails


def _branch_entries(values: Any) -> List[Branch]:
    branches: List[Branch] = []
    if not isinstance(values, list):
        return branches
    for value in values:
        if not isinstance(value, dict):
            continue
        address = _text(value.get("address"))
        if not address:
            continue
        branches.append(
            Branch(
                address=address,
                name=_text(value.get("name")),
                city=_text(value.get("city")),
                phones=_string_list(value.get("phones")),
                email=_text(value.get("email")),
                working_hours=_string_map(value.get("workingHours")) or None,
                coordinates=parse_coordinates(value.get("coordinates")),
                type=_text(value.get("type")),
            )
        )
    return branches


def normalize_extracted(raw: Optional[Dict[str, Any]], source_url: str) -> ScrapedCompanyData:
    """Map Firecrawl's structured extraction output onto a company profile."""
    data = raw or {}
    phones = data.get("phones") if isinstance(data.get("phones"), list) else []
    emails = data.get("emails") if isinstance(data.get("emails"), list) else []

    return ScrapedCompanyData(
        website=source_url,
        source_url=source_url,
        confidence=MANAGED_CONFIDENCE,
        name=_text(data.get("name")),
        description=_text(data.get("description")),
        category=_text(data.get("category")),
        phones=_phone_entries(phones),
        emails=_email_entries(emails),
        address=_text(data.get("address")),
        coordinates=parse_coordinates(data.get("coordinates")),
        branches=_branch_entries(data.get("branches")),
        social_links=_string_map(data.get("socialLinks")),
        working_hours=_string_map(data.get("workingHours")) or None,
        logo_url=_text(data.get("logoUrl")),
        photos=_string_list(data.get("photos"))[:MAX_PHOTOS],
        services=_string_list(data.get("services"))[:MAX_SERVICES],
    )


def metadata_from_firecrawl(metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Rename Firecrawl page metadata to the keys used by the field extractors."""
    result: Dict[str, str] = {}
    for source, target in _METADATA_KEYS.items():
        value = (metadata or {}).get(source)
        if isinstance(value, list):
            value = value[0] if value else None
        text = _text(value)
        if text:
            result[target] = text
    return result
