"""Client utilities for the Firecrawl v1 scraping and extraction API."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TIMEOUT_MS = 30000
HTTP_TIMEOUT_MARGIN = 10
EXTRACT_POLL_INTERVAL = 2.0
EXTRACT_MAX_WAIT = 120.0
TEST_URL = "https://example.com"

STATUS_MESSAGES = {
    401: "Invalid API key",
    402: "Insufficient Firecrawl credits",
    429: "Firecrawl rate limit exceeded",
}


class FirecrawlError(RuntimeError):
    """Raised when Firecrawl rejects a request or reports an unsuccessful job."""


COMPANY_EXTRACTION_SYSTEM_PROMPT = (
    "Ты - помощник для извлечения структурированной информации о компаниях с веб-сайтов. "
    "Извлекай только достоверную информацию, найденную на странице."
)

COMPANY_EXTRACTION_PROMPT = """
Извлеки полную информацию о компании с веб-страницы.

## Обязательные поля:

1. **Название компании** (name) - официальное название организации
2. **Описание** (description) - чем занимается компания, основные направления работы,
   особенности и преимущества. Максимум 300 слов.
3. **Категория** (category) - ОДНА основная категория бизнеса.
   Примеры: магазин электроники, автобусные перевозки, магазин одежды, автосервис,
   салон красоты, ресторан, стоматология
4. **Услуги/товары** (services) - список основных услуг или категорий товаров

## Контактные данные:
- Телефоны (phones) - ОБЩИЕ номера (горячая линия, call-центр)
- Email (emails) - все адреса
- Адрес (address) - ГЛАВНЫЙ/основной адрес (если один)
- Координаты (coordinates) - GPS если есть

## ФИЛИАЛЫ (branches) - для сетевых компаний
Если у компании несколько магазинов/офисов/точек - извлеки КАЖДЫЙ филиал отдельно:
name, address, city, phones и workingHours ЭТОГО филиала,
type (store - магазин, office - офис, service - сервис, pickup - точка выдачи).

## Соцсети (socialLinks):
VK, Telegram, WhatsApp, Instagram, Facebook, YouTube, TikTok, Twitter, LinkedIn, OK

## Дополнительно:
- Режим работы (workingHours) - ОБЩИЙ режим работы компании
- Логотип (logoUrl) - URL изображения
- Фото (photos) - URL фотографий
""".strip()

_WORKING_HOURS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        day: {"type": "string"} for day in ("mon", "tue", "wed", "thu", "fri", "sat", "sun", "note")
    },
}

COMPANY_EXTRACTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Название компании или организации"},
        "description": {
            "type": "string",
            "description": "Краткое описание деятельности компании (до 300 слов)",
        },
        "category": {
            "type": "string",
            "description": (
                "Категория бизнеса. Примеры: автобусные перевозки, продажа и доставка цветов, "
                "автошины, автосервис, ресторан, кафе, магазин одежды, салон красоты, стоматология, "
                "юридические услуги, грузоперевозки, такси, туристическое агентство, фитнес-клуб, "
                "отель, магазин электроники"
            ),
        },
        "phones": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Общие номера телефонов компании (горячая линия, call-центр)",
        },
        "emails": {"type": "array", "items": {"type": "string"}, "description": "Email адреса"},
        "address": {"type": "string", "description": "Главный/основной адрес компании"},
        "coordinates": {
            "type": "object",
            "properties": {"lat": {"type": "number"}, "lng": {"type": "number"}},
            "description": "GPS координаты (если найдены)",
        },
        "branches": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Название филиала/магазина"},
                    "address": {"type": "string", "description": "Полный адрес филиала"},
                    "city": {"type": "string", "description": "Город"},
                    "phones": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Телефоны филиала",
                    },
                    "email": {"type": "string", "description": "Email филиала"},
                    "workingHours": _WORKING_HOURS_SCHEMA,
                    "type": {"type": "string", "description": "Тип: store, office, warehouse, service, pickup"},
                },
                "required": ["address"],
            },
            "description": "Список филиалов/магазинов/точек выдачи (для сетевых компаний)",
        },
        "socialLinks": {
            "type": "object",
            "properties": {
                platform: {"type": "string"}
                for platform in (
                    "vk",
                    "telegram",
                    "whatsapp",
                    "instagram",
                    "facebook",
                    "youtube",
                    "tiktok",
                    "twitter",
                    "linkedin",
                    "ok",
                )
            },
            "description": "Ссылки на социальные сети",
        },
        "workingHours": {**_WORKING_HOURS_SCHEMA, "description": "Общий режим работы компании"},
        "logoUrl": {"type": "string", "description": "URL логотипа компании"},
        "photos": {
            "type": "array",
            "items": {"type": "string"},
            "description": "URL фотографий компании/товаров",
        },
        "services": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Список услуг или товаров",
        },
    },
    "required": ["name"],
}


class FirecrawlClient:
    """Thin wrapper around the Firecrawl REST endpoints used by the scraper."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        *,
        session: Optional[requests.Session] = None,
        poll_interval: float = EXTRACT_POLL_INTERVAL,
        max_wait: float = EXTRACT_MAX_WAIT,
    ) -> None:
        if not api_key:
            raise ValueError("A Firecrawl API key is required")
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        self.poll_interval = poll_interval
        self.max_wait = max_wait

    def _request(self, method: str, path: str, *, timeout: float, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=timeout)
        except requests.RequestException as exc:
            raise FirecrawlError(f"Request to {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            message = message or STATUS_MESSAGES.get(response.status_code) or f"HTTP {response.status_code}"
            logger.error("Firecrawl %s %s failed: status=%s, error=%s", method, path, response.status_code, message)
            raise FirecrawlError(message)

        if not isinstance(body, dict) or body.get("success") is False:
            message = body.get("error") if isinstance(body, dict) else None
            raise FirecrawlError(message or f"Firecrawl {path} was not successful")
        return body

    def scrape(
        self,
        url: str,
        *,
        formats: Sequence[str] = ("markdown",),
        only_main_content: bool = True,
        timeout: int = DEFAULT_PAGE_TIMEOUT_MS,
    ) -> Dict[str, Any]:
        """Scrape one page and return its ``data`` object (markdown, html, rawHtml, links, metadata)."""
        payload = {
            "url": url,
            "formats": list(formats),
            "onlyMainContent": only_main_content,
            "timeout": timeout,
        }
        body = self._request("POST", "/scrape", payload=payload, timeout=timeout / 1000 + HTTP_TIMEOUT_MARGIN)
        data = body.get("data")
        if not data:
            raise FirecrawlError(f"Firecrawl returned no content for {url}")
        return data

    def extract(
        self,
        urls: List[str],
        *,
        prompt: str,
        schema: Dict[str, Any],
        system_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run schema-guided extraction over ``urls``; waits for asynchronous jobs."""
        payload: Dict[str, Any] = {"urls": urls, "prompt": prompt, "schema": schema}
        if system_prompt:
            payload["systemPrompt"] = system_prompt

        body = self._request("POST", "/extract", payload=payload, timeout=self.max_wait)
        data = body.get("data")
        if not data and body.get("id"):
            data = self._wait_for_extract(str(body["id"]))
        if not data:
            raise FirecrawlError("Firecrawl extract returned no data")
        if not isinstance(data, dict):
            raise FirecrawlError(f"Firecrawl extract returned {type(data).__name__} instead of an object")
        return data

    def _wait_for_extract(self, job_id: str) -> Optional[Dict[str, Any]]:
        deadline = time.monotonic() + self.max_wait
        while True:
            body = self._request("GET", f"/extract/{job_id}", timeout=HTTP_TIMEOUT_MARGIN)
            status = body.get("status")
            if status == "completed":
                return body.get("data")
            if status in {"failed", "cancelled"}:
                raise FirecrawlError(body.get("error") or f"Extract job {job_id} {status}")
            if time.monotonic() >= deadline:
                raise FirecrawlError(f"Extract job {job_id} did not finish in {self.max_wait:.0f}s")
            logger.debug("Extract job %s is %s; polling again", job_id, status)
            time.sleep(self.poll_interval)

    def test_connection(self) -> bool:
        """Scrape a known page to validate the API key and quota."""
        self.scrape(TEST_URL, formats=("markdown",), only_main_content=True, timeout=10000)
        return True

    def close(self) -> None:
        self.session.close()
