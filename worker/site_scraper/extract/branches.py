"""Branch (store / office) records mined from page text."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from site_scraper.core.models import Branch
from site_scraper.extract.contacts import PHONE_REGEX, format_phone

logger = logging.getLogger(__name__)

BRANCH_TYPE = "store"
HOURS_SEARCH_WINDOW = 300

BRANCH_REGEX = re.compile(
    r"г\.\s*(?P<city>[А-ЯЁа-яё-]+(?:\s*\([^)]+\))?)"
    r"[^г]{0,200}?"
    r"(?P<address>(?:ул\.|улица|пр\.|проспект|бул\.|бульвар|пер\.|переулок)\D{0,60}\d+[А-ЯЁа-яё]?(?:\s*\([^)]+\))?)"
    r"[^+]{0,200}?"
    r"(?:час[ыа]\s*работы|работ|график)?[:\s]*"
    r"(?P<hours>\d{1,2}[:.]\d{2}\s*[-–]\s*\d{1,2}[:.]\d{2})?"
    r"[^+]{0,200}?"
    r"(?P<phone>\+7\s*[\d\s()-]{10,20})",
    re.IGNORECASE,
)

SIMPLE_BRANCH_REGEX = re.compile(
    r"г\.\s*(?P<city>[А-ЯЁа-яё-]+)"
    r"[^г]{0,200}?"
    r"(?P<address>(?:ул\.|пр\.|бул\.)[^+]{5,80})"
    r"(?P<phone>\+7\s*[\d\s()-]+)",
    re.IGNORECASE,
)

WEEKDAY_TAIL_REGEX = re.compile(r"\s*(?:Пн|Вт|Ср|Чт|Пт|Сб|Вс)[.:-].*", re.IGNORECASE | re.DOTALL)
TIME_TAIL_REGEX = re.compile(r"\s*\d{1,2}[:.]\d{2}\s*[-–].*", re.DOTALL)
PARENTHETICAL_REGEX = re.compile(r"\s*\([^)]+\)")


def _clean_address(address: str) -> str:
    address = WEEKDAY_TAIL_REGEX.sub("", address.strip())
    return TIME_TAIL_REGEX.sub("", address).strip()


def _branch_phone(raw: str) -> List[str]:
    match = PHONE_REGEX.search(raw or "")
    number = format_phone(match.group(0)) if match else None
    return [number] if number else []


def _is_known(branches: List[Branch], address: str, prefix_length: int) -> bool:
    prefix = address.lower()[:prefix_length]
    return any(prefix in branch.address.lower() for branch in branches)


def _find_hours_near(text: str, address: str) -> Optional[str]:
    anchor = re.escape(address[:20])
    pattern = re.compile(
        anchor + r".{0,%d}?(\d{1,2}[:.]\d{2}\s*[-–]\s*\d{1,2}[:.]\d{2})" % HOURS_SEARCH_WINDOW,
        re.IGNORECASE | re.DOTALL,
    )
    match = pattern.search(text)
    return match.group(1) if match else None


def extract_branches(text: str) -> List[Branch]:
    """Find branches as "city, street address, optional hours, phone" runs in plain text."""
    text = text or ""
    branches: List[Branch] = []

    for match in BRANCH_REGEX.finditer(text):
        city_full = match.group("city").strip()
        city = PARENTHETICAL_REGEX.sub("", city_full).strip()
        address = _clean_address(match.group("address"))
        if len(address) <= 5 or _is_known(branches, address, 15):
            continue

        hours = match.group("hours")
        branches.append(
            Branch(
                name=f"г. {city_full if '(' in city_full else city}",
                address=address,
                city=city or None,
                phones=_branch_phone(match.group("phone")),
                working_hours={"note": hours.strip().replace(".", ":")} if hours else None,
                type=BRANCH_TYPE,
            )
        )

    if not branches:
        for match in SIMPLE_BRANCH_REGEX.finditer(text):
            city = match.group("city").strip()
            address = _clean_address(match.group("address"))
            if len(address) <= 3 or _is_known(branches, address, 10):
                continue
            branches.append(
                Branch(
                    name=f"г. {city}",
                    address=address,
                    city=city or None,
                    phones=_branch_phone(match.group("phone")),
                    type=BRANCH_TYPE,
                )
            )

    for branch in branches:
        if branch.working_hours is None:
            hours = _find_hours_near(text, branch.address)
            if hours:
                branch.working_hours = {"note": hours.replace(".", ":")}

    logger.info("Extracted %d branches", len(branches))
    return branches
