import pytest

from site_scraper.core.models import ScrapedCompanyData, ScrapeResult, TextAnalysisResult
from site_scraper.jobs import server


class DummyScraper:
    def __init__(self, result=None):
        self.result = result
        self.calls = []
        self.exits = 0

    def scrape_website(self, url, options):
        self.calls.append((url, options))
        return self.result

    def check_health(self):
        return {"available": True, "mode": "native", "error": None}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exits += 1
        return None


@pytest.fixture
def scraper(monkeypatch):
    dummy = DummyScraper(
        ScrapeResult(
            success=True,
            data=ScrapedCompanyData(website="https://mebel.ru", source_url="https://mebel.ru", confidence=60, name="Мебель"),
            raw_html="<html></html>",
            duration=120,
            pages_scraped=2,
            text_analysis=TextAnalysisResult(suggested_category="Мебельный магазин"),
        )
    )
    monkeypatch.setattr(server, "get_scraper", lambda: dummy)
    return dummy


def test_health_endpoint(scraper):
    client = server.app.test_client()
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["mode"] == "native"


def test_scrape_health_endpoint(scraper):
    client = server.app.test_client()
    response = client.get("/scrape/health")
    assert response.status_code == 200
    assert response.get_json() == {"available": True, "mode": "native", "error": None}


def test_scrape_validates_payload(scraper):
    client = server.app.test_client()
    assert client.post("/scrape", json={}).status_code == 400
    assert client.post("/scrape", json={"url": "https://mebel.ru", "options": "fast"}).status_code == 400
    assert client.post("/scrape", json={"url": "https://mebel.ru", "options": {"max_pages": 0}}).status_code == 400
    assert client.post("/scrape", json={"url": "https://mebel.ru", "options": {"max_pages": "bad"}}).status_code == 400
    assert client.post("/scrape", json={"url": "https://mebel.ru", "options": {"timeout": 1000}}).status_code == 400
    assert client.post(
        "/scrape", json={"url": "https://mebel.ru", "options": {"additional_paths": "/contacts"}}
    ).status_code == 400
    assert scraper.calls == []


def test_scrape_passes_options_and_returns_profile(scraper):
    client = server.app.test_client()
    payload = {
        "url": "https://mebel.ru",
        "options": {"enable_crawl": False, "maxPages": 3, "timeout": 60000, "additional_paths": ["/dostavka", " "]},
    }

    response = client.post("/scrape", json=payload)

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["data"]["name"] == "Мебель"
    assert body["text_analysis"]["suggested_category"] == "Мебельный магазин"
    assert body["meta"] == {"duration": 120, "pages_scraped": 2, "has_raw_data": True}

    url, options = scraper.calls[0]
    assert url == "https://mebel.ru"
    assert options.enable_crawl is False
    assert options.max_pages == 3
    assert options.timeout == 60000
    assert options.additional_paths == ["/dostavka"]
    assert scraper.exits == 1


def test_scrape_uses_settings_defaults(scraper):
    client = server.app.test_client()
    client.post("/scrape", json={"url": "https://mebel.ru"})

    _, options = scraper.calls[0]
    assert options.enable_crawl is True
    assert options.max_pages == 5
    assert options.timeout == 30000


def test_scrape_failure_returns_422(scraper):
    scraper.result = ScrapeResult(success=False, error="URL must start with http:// or https://", duration=3)
    client = server.app.test_client()

    response = client.post("/scrape", json={"url": "ftp://mebel.ru"})

    assert response.status_code == 422
    assert response.get_json() == {
        "success": False,
        "error": "URL must start with http:// or https://",
        "duration": 3,
    }


def test_each_request_gets_its_own_scraper():
    first = server.get_scraper()
    second = server.get_scraper()
    try:
        assert first is not second
        assert first.session is not second.session
    finally:
        first.close()
        second.close()
