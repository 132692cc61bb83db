import json

import pytest

from site_scraper.core.config import Settings
from site_scraper.core.models import (
    HEURISTIC_CONFIDENCE,
    MANAGED_CONFIDENCE,
    Entities,
    ScrapeOptions,
    TextAnalysisResult,
)
from site_scraper.core.scraper import InvalidURLError, WebScraper, validate_url
from site_scraper.vendors.firecrawl import FirecrawlError

HOME_HTML = """
<html><head>
  <title>Мебель Комфорт | Казань</title>
  <meta name="description" content="Диваны и кровати">
</head><body>
  <header><a href="/contacts">Контакты</a><a href="/blog">Блог</a></header>
  <h1>Мебель Комфорт</h1>
  <img class="logo" src="/logo.png">
</body></html>
"""

CONTACTS_HTML = """
<html><body>
  <p>Отдел продаж: +7 (843) 222-33-44</p>
  <p>Почта: hello@mebel.ru</p>
  <p>Адрес: г. Казань, ул. Баумана, д. 15</p>
  <p>Пн-Пт 10:00-21:00</p>
  <a href="https://vk.com/mebel_kzn">VK</a>
</body></html>
"""


class DummyResponse:
    def __init__(self, url, status_code=200, text="", content_type="text/html; charset=utf-8"):
        self.url = url
        self.status_code = status_code
        self.text = text
        self.headers = {"Content-Type": content_type}

    @property
    def ok(self):
        return self.status_code < 400


class DummySession:
    def __init__(self, pages):
        self.headers = {}
        self.pages = pages
        self.requested = []

    def get(self, url, timeout=None, allow_redirects=True):
        self.requested.append(url)
        if url in self.pages:
            return DummyResponse(url, text=self.pages[url])
        return DummyResponse(url, status_code=404)

    def close(self):
        pass


class StubAnalyzer:
    def __init__(self, suggested_category=None, products=None, error=None):
        self.result = TextAnalysisResult(
            suggested_category=suggested_category,
            entities=Entities(products=list(products or [])),
        )
        self.error = error
        self.calls = []

    def analyze_text(self, html):
        self.calls.append(html)
        if self.error is not None:
            raise self.error
        return self.result


class DummyFirecrawl:
    def __init__(self, home=None, pages=None, extracted=None, extract_error=None, health_error=None):
        self.home = home
        self.pages = pages or {}
        self.extracted = extracted
        self.extract_error = extract_error
        self.health_error = health_error
        self.scraped = []
        self.extract_urls = None

    def scrape(self, url, *, formats=("markdown",), only_main_content=True, timeout=30000):
        self.scraped.append((url, tuple(formats)))
        if "rawHtml" in formats:
            if self.home is None:
                raise FirecrawlError("home unavailable")
            return self.home
        if url not in self.pages:
            raise FirecrawlError(f"no content for {url}")
        return self.pages[url]

    def extract(self, urls, *, prompt, schema, system_prompt=None):
        self.extract_urls = list(urls)
        if self.extract_error is not None:
            raise self.extract_error
        return self.extracted

    def test_connection(self):
        if self.health_error is not None:
            raise self.health_error
        return True

    def close(self):
        pass


def make_native(pages, analyzer=None):
    session = DummySession(pages)
    scraper = WebScraper(Settings(), session=session, text_analyzer=analyzer or StubAnalyzer())
    return scraper, session


def test_validate_url():
    assert validate_url("https://mebel.ru/catalog?page=2") == "https://mebel.ru"
    with pytest.raises(InvalidURLError):
        validate_url("ftp://mebel.ru")
    with pytest.raises(InvalidURLError):
        validate_url("mebel.ru")


def test_invalid_url_fails_without_network():
    scraper, session = make_native({})

    result = scraper.scrape_website("ftp://mebel.ru")

    assert result.success is False
    assert result.error == "URL must start with http:// or https://"
    assert result.duration >= 0
    assert session.requested == []


def test_native_scrape_builds_profile_from_relevant_pages():
    analyzer = StubAnalyzer(suggested_category="Мебельный магазин", products=["диваны"])
    scraper, session = make_native(
        {"https://mebel.ru": HOME_HTML, "https://mebel.ru/contacts": CONTACTS_HTML},
        analyzer,
    )

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is True
    assert session.requested == ["https://mebel.ru", "https://mebel.ru/contacts"]
    assert result.pages_scraped == 2
    data = result.data
    assert data.confidence == HEURISTIC_CONFIDENCE
    assert data.name == "Мебель Комфорт"
    assert data.description == "Диваны и кровати"
    assert [phone.number for phone in data.phones] == ["+7 (843) 222-33-44"]
    assert data.phones[0].label == "Отдел продаж"
    assert [email.email for email in data.emails] == ["hello@mebel.ru"]
    assert data.address == "г. Казань, ул. Баумана, д. 15"
    assert data.working_hours["mon"] == "10:00-21:00"
    assert data.working_hours["sun"] == "выходной"
    assert data.social_links == {"vk": "https://vk.com/mebel_kzn"}
    assert data.logo_url == "https://mebel.ru/logo.png"
    assert data.category == "Мебельный магазин"
    assert data.services == ["диваны"]
    assert result.text_analysis is analyzer.result
    assert result.raw_html is not None
    json.dumps(result.to_dict(), ensure_ascii=False)


def test_native_scrape_without_crawl_only_fetches_start_page():
    scraper, session = make_native({"https://mebel.ru": HOME_HTML})

    result = scraper.scrape_website("https://mebel.ru", ScrapeOptions(enable_crawl=False))

    assert result.success is True
    assert session.requested == ["https://mebel.ru"]
    assert result.pages_scraped == 1


def test_native_scrape_respects_max_pages_and_additional_paths():
    scraper, session = make_native({"https://mebel.ru": HOME_HTML, "https://mebel.ru/dostavka": CONTACTS_HTML})

    result = scraper.scrape_website(
        "https://mebel.ru",
        ScrapeOptions(max_pages=2, additional_paths=["/dostavka"]),
    )

    assert session.requested == ["https://mebel.ru", "https://mebel.ru/contacts"]
    assert result.pages_scraped == 1


def test_native_scrape_falls_back_to_canonical_paths_when_home_fails():
    scraper, session = make_native({"https://mebel.ru/contacts": CONTACTS_HTML})

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is True
    assert result.pages_scraped == 1
    assert session.requested[:2] == ["https://mebel.ru", "https://mebel.ru/contacts"]
    assert [phone.number for phone in result.data.phones] == ["+7 (843) 222-33-44"]


def test_native_scrape_reports_failure_when_nothing_is_fetched():
    scraper, session = make_native({})

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is False
    assert "HTTP 404" in result.error
    assert len(session.requested) == 5


def test_category_is_replaced_when_content_does_not_back_it():
    page = "<html><body><p>Шиномонтаж и ремонт автомобилей</p></body></html>"
    scraper, _ = make_native({"https://sto.ru": page}, StubAnalyzer(suggested_category="Автосервис"))

    result = scraper.scrape_website("https://sto.ru", ScrapeOptions(enable_crawl=False))

    assert result.data.category == "Автосервис"


def test_category_is_kept_when_content_backs_it():
    page = "<html><body><p>Автошины и диски в наличии</p></body></html>"
    scraper, _ = make_native({"https://shiny.ru": page}, StubAnalyzer(suggested_category="Автосервис"))

    result = scraper.scrape_website("https://shiny.ru", ScrapeOptions(enable_crawl=False))

    assert result.data.category == "Автошины и диски"


def test_text_analysis_failure_does_not_fail_scrape():
    analyzer = StubAnalyzer(error=RuntimeError("analyzer down"))
    scraper, _ = make_native({"https://mebel.ru": HOME_HTML}, analyzer)

    result = scraper.scrape_website("https://mebel.ru", ScrapeOptions(enable_crawl=False))

    assert result.success is True
    assert result.text_analysis is None
    assert result.data.category == "Мебельный магазин"


def test_managed_scrape_uses_structured_extraction():
    firecrawl = DummyFirecrawl(
        home={
            "markdown": "# Мебель Комфорт",
            "rawHtml": HOME_HTML,
            "links": ["https://mebel.ru/uslugi", "https://other.ru/contacts"],
        },
        extracted={"name": "Мебель Комфорт", "phones": ["+7 (843) 222-33-44"], "category": ""},
    )
    analyzer = StubAnalyzer(suggested_category="Мебельный магазин")
    scraper = WebScraper(Settings(), firecrawl=firecrawl, session=DummySession({}), text_analyzer=analyzer)

    result = scraper.scrape_website("https://mebel.ru")

    assert scraper.mode == "firecrawl"
    assert result.success is True
    assert firecrawl.extract_urls == ["https://mebel.ru", "https://mebel.ru/contacts", "https://mebel.ru/uslugi"]
    assert result.pages_scraped == 3
    assert result.data.confidence == MANAGED_CONFIDENCE
    assert result.data.name == "Мебель Комфорт"
    assert result.data.category == "Мебельный магазин"
    assert result.raw_markdown == "# Мебель Комфорт"
    assert analyzer.calls == [HOME_HTML]


def test_managed_scrape_falls_back_to_page_scrapes_when_extract_fails():
    firecrawl = DummyFirecrawl(
        home={"markdown": "", "rawHtml": HOME_HTML, "links": []},
        pages={
            "https://mebel.ru": {"markdown": "", "html": HOME_HTML, "metadata": {"title": "Мебель Комфорт | Казань"}},
            "https://mebel.ru/contacts": {"markdown": "", "html": CONTACTS_HTML, "metadata": {}},
        },
        extract_error=FirecrawlError("Insufficient Firecrawl credits"),
    )
    scraper = WebScraper(
        Settings(),
        firecrawl=firecrawl,
        session=DummySession({}),
        text_analyzer=StubAnalyzer(suggested_category="Мебельный магазин"),
    )

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is True
    assert result.data.confidence == HEURISTIC_CONFIDENCE
    assert result.data.name == "Мебель Комфорт"
    assert [phone.number for phone in result.data.phones] == ["+7 (843) 222-33-44"]
    assert result.pages_scraped == 2


def test_managed_scrape_falls_back_when_extract_returns_a_list():
    firecrawl = DummyFirecrawl(
        home={"markdown": "", "rawHtml": HOME_HTML, "links": []},
        pages={"https://mebel.ru/contacts": {"markdown": "", "html": CONTACTS_HTML, "metadata": {}}},
        extracted=[{"name": "Мебель Комфорт"}],
    )
    scraper = WebScraper(Settings(), firecrawl=firecrawl, session=DummySession({}), text_analyzer=StubAnalyzer())

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is True
    assert result.data.confidence == HEURISTIC_CONFIDENCE
    assert [phone.number for phone in result.data.phones] == ["+7 (843) 222-33-44"]


def test_managed_scrape_fails_when_no_page_can_be_scraped():
    scraper = WebScraper(
        Settings(),
        firecrawl=DummyFirecrawl(home=None),
        session=DummySession({}),
        text_analyzer=StubAnalyzer(),
    )

    result = scraper.scrape_website("https://mebel.ru")

    assert result.success is False
    assert "no content" in result.error


def test_check_health():
    native, _ = make_native({})
    assert native.check_health() == {"available": True, "mode": "native", "error": None}

    def managed(error=None):
        return WebScraper(
            Settings(),
            firecrawl=DummyFirecrawl(health_error=error),
            session=DummySession({}),
            text_analyzer=StubAnalyzer(),
        )

    assert managed().check_health() == {"available": True, "mode": "firecrawl", "error": None}
    assert managed(FirecrawlError("Invalid API key")).check_health() == {
        "available": False,
        "mode": "firecrawl",
        "error": "Invalid API key",
    }
    assert managed(RuntimeError("dns")).check_health() == {"available": True, "mode": "native", "error": None}
