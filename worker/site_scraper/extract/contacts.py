"""Phone and email discovery with validation, dedup and contextual labels."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Set, Tuple

import phonenumbers

from site_scraper.core.models import EmailContact, PhoneContact

logger = logging.getLogger(__name__)

DEFAULT_PHONE_REGION = "RU"

PHONE_REGEX = re.compile(
    r"\+7\s*[(\s]?\d{3}[)\s]?\s*\d{3}[\s-]?\d{2}[\s-]?\d{2}(?!\d)"
    r"|\+7\s*\d{3}\s*\d[\s-]?\d{5}[\s-]?\d(?!\d)"
    r"|\+(?!7)\d{1,3}[\s-]?\(?\d{1,4}\)?(?:[\s-]?\d{2,4}){2,3}(?!\d)"
)
EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

PHONE_CONTEXT_BEFORE = 100
PHONE_CONTEXT_AFTER = 50
EMAIL_CONTEXT_BEFORE = 80
EMAIL_CONTEXT_AFTER = 30

PHONE_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Корпоративный отдел", ("корпоратив", "corporate", "b2b", "юрлиц", "организаци", "оптов")),
    ("Сервисный центр", ("сервис", "service", "ремонт", "repair", "гарантий")),
    ("Интернет-магазин", ("интернет-магазин", "интернет магазин", "online", "онлайн", "заказ", "им ")),
    ("Доставка", ("доставк", "delivery", "склад", "warehouse")),
    ("Горячая линия", ("горяч", "hotline", "справ", "info", "единый")),
    ("Отдел продаж", ("продаж", "sales", "отдел продаж")),
    ("Поддержка", ("поддержк", "support", "помощь")),
    ("Бухгалтерия", ("бухгалтер", "accounting", "финанс")),
    ("Точка выдачи", ("точка выдачи", "самовывоз", "pickup")),
)

EMAIL_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Корпоративный отдел", ("корпоратив", "corporate", "b2b", "юрлиц", "организаци", "оптов")),
    ("Сервисный центр", ("сервис", "service", "ремонт", "repair", "гарантий")),
    ("Интернет-магазин", ("онлайн", "online", "заказ", "order", "интернет-магазин")),
    ("Поддержка", ("поддержк", "support", "помощь", "help")),
    ("Общий", ("info", "инфо", "общ", "general")),
    ("Отдел продаж", ("продаж", "sales", "отдел продаж")),
    ("Бухгалтерия", ("бухгалтер", "accounting", "финанс", "оплат")),
    ("HR / Кадры", ("hr", "кадр", "работ", "вакан", "career", "job")),
    ("Маркетинг", ("рекла", "pr", "маркет", "advert", "marketing")),
    ("Руководство", ("директор", "руковод", "ceo", "director")),
)

# Checked in order against the local part of the address.
EMAIL_PREFIX_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Общий", ("info",)),
    ("Поддержка", ("support", "help")),
    ("Отдел продаж", ("sales", "order")),
    ("HR / Кадры", ("hr", "job", "career")),
    ("Сервисный центр", ("service", "repair")),
    ("Маркетинг", ("advert", "market", "pr")),
    ("Бухгалтерия", ("account", "buh", "finance")),
    ("Корпоративный отдел", ("corporate", "b2b", "korporativ")),
    ("Интернет-магазин", ("online", "shop", "store")),
    ("Руководство", ("director", "ceo", "boss")),
)

IGNORED_EMAIL_MARKERS = ("example.com", "domain.com", "sentry", "webpack")
IGNORED_EMAIL_PREFIXES = ("noreply@", "no-reply@", "u0022")
IGNORED_EMAIL_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")

PLACEHOLDER_PREFIXES = ("1234567", "999999")
ASCENDING_DIGITS = "0123456789"


def detect_label(context: str, table: Sequence[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    lowered = context.lower()
    for label, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


def detect_label_from_email(email: str) -> Optional[str]:
    prefix = email.split("@", 1)[0].lower()
    if prefix == "mail":
        return "Общий"
    return detect_label(prefix, EMAIL_PREFIX_LABELS)


def phone_key(number: str) -> str:
    """Digits-only canonical key of a display phone number."""
    return re.sub(r"\D", "", number or "")


def _parse_phone(raw: str, region: str) -> Optional[phonenumbers.PhoneNumber]:
    try:
        parsed = phonenumbers.parse(raw, region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_possible_number(parsed):
        return None
    return parsed


def is_placeholder_number(national: str) -> bool:
    if not national:
        return True
    if len(set(national)) == 1:
        return True
    if national.startswith(PLACEHOLDER_PREFIXES):
        return True
    return national in ASCENDING_DIGITS


def format_phone(raw: str, region: str = DEFAULT_PHONE_REGION) -> Optional[str]:
    """Return the display form of a phone or ``None`` when it is not a usable number.

    Russian ten-digit national numbers render as ``+7 (XXX) XXX-XX-XX``; other
    numbers use the international format.
    """
    parsed = _parse_phone(raw, region)
    if parsed is None:
        return None

    national = str(parsed.national_number)
    if is_placeholder_number(national):
        return None

    if parsed.country_code == 7 and len(national) == 10:
        return f"+7 ({national[:3]}) {national[3:6]}-{national[6:8]}-{national[8:10]}"
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)


def extract_phones(text: str, region: str = DEFAULT_PHONE_REGION) -> List[PhoneContact]:
    """Find phone numbers in plain text, labelled by the words around them."""
    phones: List[PhoneContact] = []
    seen: Set[str] = set()
    text = text or ""

    for match in PHONE_REGEX.finditer(text):
        number = format_phone(match.group(0), region)
        if number is None:
            continue
        key = phone_key(number)
        if key in seen:
            continue

        before = text[max(0, match.start() - PHONE_CONTEXT_BEFORE) : match.start()]
        after = text[match.end() : match.end() + PHONE_CONTEXT_AFTER]
        label = detect_label(before, PHONE_LABELS) or detect_label(after, PHONE_LABELS)

        phones.append(PhoneContact(number=number, label=label))
        seen.add(key)

    return phones


def is_ignored_email(email: str) -> bool:
    lowered = email.lower()
    return (
        any(marker in lowered for marker in IGNORED_EMAIL_MARKERS)
        or lowered.startswith(IGNORED_EMAIL_PREFIXES)
        or lowered.endswith(IGNORED_EMAIL_SUFFIXES)
    )


def extract_emails(text: str) -> List[EmailContact]:
    """Find email addresses in plain text, skipping technical placeholders."""
    emails: List[EmailContact] = []
    seen: Set[str] = set()
    text = text or ""

    for match in EMAIL_REGEX.finditer(text):
        email = match.group(0).lower()
        if is_ignored_email(email) or email in seen:
            continue

        before = text[max(0, match.start() - EMAIL_CONTEXT_BEFORE) : match.start()]
        after = text[match.end() : match.end() + EMAIL_CONTEXT_AFTER]
        label = (
            detect_label(before, EMAIL_LABELS)
            or detect_label(after, EMAIL_LABELS)
            or detect_label_from_email(email)
        )

        emails.append(EmailContact(email=email, label=label))
        seen.add(email)

    return emails
