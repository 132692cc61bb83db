"""Assemble a company profile from fetched markup with regex heuristics."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from site_scraper.analysis.categories import classify_by_content
from site_scraper.analysis.tokenizer import clean_soup, html_to_text
from site_scraper.core.models import HEURISTIC_CONFIDENCE, Branch, PhoneContact, ScrapedCompanyData
from site_scraper.extract.branches import extract_branches
from site_scraper.extract.contacts import extract_emails, extract_phones, phone_key
from site_scraper.extract.fields import (
    extract_address,
    extract_company_name,
    extract_coordinates,
    extract_description,
    extract_logo,
    extract_photos,
    extract_social_links,
    extract_working_hours,
)
from site_scraper.extract.services import extract_services

logger = logging.getLogger(__name__)

# Used when every phone found on the site belongs to a branch.
BRANCH_ONLY_PHONE_LIMIT = 3


def select_general_phones(phones: List[PhoneContact], branches: List[Branch]) -> List[PhoneContact]:
    """Drop phones already attributed to a branch."""
    branch_keys = {phone_key(number) for branch in branches for number in branch.phones}
    general = [phone for phone in phones if phone_key(phone.number) not in branch_keys]
    return general or phones[:BRANCH_ONLY_PHONE_LIMIT]


def page_text(markdown: str, html: str) -> str:
    return " ".join(part for part in (html_to_text(markdown), html_to_text(html)) if part)


def parse_company_data(
    markdown: str,
    html: str,
    metadata: Optional[Mapping[str, Any]],
    source_url: str,
) -> ScrapedCompanyData:
    """Run every field extractor over the merged pages of a site."""
    metadata = metadata or {}
    markdown = markdown or ""
    html = html or ""
    raw_content = f"{markdown} {html}"
    text = page_text(markdown, html)
    soup = clean_soup(html)

    branches = extract_branches(html_to_text(html))
    phones = select_general_phones(extract_phones(text), branches)
    name = extract_company_name(metadata, soup)

    data = ScrapedCompanyData(
        website=source_url,
        source_url=source_url,
        confidence=HEURISTIC_CONFIDENCE,
        name=name,
        description=extract_description(metadata, text),
        category=classify_by_content(metadata, text),
        phones=phones,
        emails=extract_emails(text),
        address=extract_address(text),
        coordinates=extract_coordinates(raw_content),
        branches=branches,
        social_links=extract_social_links(raw_content),
        working_hours=extract_working_hours(text),
        logo_url=extract_logo(soup, source_url),
        photos=extract_photos(soup, source_url),
        services=extract_services(soup, brand=name),
    )
    logger.info(
        "Parsed %s: %d phones, %d emails, %d branches, %d services",
        source_url,
        len(data.phones),
        len(data.emails),
        len(data.branches),
        len(data.services),
    )
    return data
