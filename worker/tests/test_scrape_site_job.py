import json

import pytest

from site_scraper.core.models import ScrapedCompanyData, ScrapeOptions, ScrapeResult
from site_scraper.jobs import scrape_site


class DummyScraper:
    def __init__(self, settings):
        self.settings = settings
        self.calls = []

    def scrape_website(self, url, options):
        self.calls.append((url, options))
        return ScrapeResult(
            success=True,
            data=ScrapedCompanyData(website=url, source_url=url, confidence=60, name="Мебель"),
            pages_scraped=1,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None


def test_build_parser_defaults():
    args = scrape_site.build_parser().parse_args(["https://mebel.ru"])

    assert args.url == "https://mebel.ru"
    assert args.max_pages == 5
    assert args.timeout == 30000
    assert args.enable_crawl is True
    assert args.additional_paths == []
    assert args.output is None


def test_build_parser_flags():
    args = scrape_site.build_parser().parse_args(
        ["https://mebel.ru", "--max-pages", "2", "--timeout", "10000", "--no-crawl", "--path", "/uslugi"]
    )

    assert args.max_pages == 2
    assert args.timeout == 10000
    assert args.enable_crawl is False
    assert args.additional_paths == ["/uslugi"]


def test_run_scrape_job_writes_json(monkeypatch, tmp_path):
    monkeypatch.setattr(scrape_site, "WebScraper", DummyScraper)
    output = tmp_path / "result.json"

    succeeded = scrape_site.run_scrape_job(url="https://mebel.ru", options=ScrapeOptions(), output=str(output))

    assert succeeded is True
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["data"]["name"] == "Мебель"
    assert payload["pages_scraped"] == 1


def test_main_exits_with_status(monkeypatch, capsys):
    monkeypatch.setattr(scrape_site, "WebScraper", DummyScraper)

    with pytest.raises(SystemExit) as excinfo:
        scrape_site.main(["https://mebel.ru", "--no-crawl"])

    assert excinfo.value.code == 0
    assert json.loads(capsys.readouterr().out)["success"] is True
