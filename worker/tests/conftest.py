import sys
from pathlib import Path

import pytest

# Ensure `site_scraper` package is importable when running pytest from the worker directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from site_scraper.core import config  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep a developer's .env and shell from leaking into tests."""
    for name in (
        "FIRECRAWL_API_KEY",
        "FIRECRAWL_API_URL",
        "SCRAPER_MAX_PAGES",
        "SCRAPER_ENABLE_CRAWL",
        "SCRAPER_TIMEOUT_MS",
        "SCRAPER_USER_AGENT",
        "LEMMATIZER_INIT_TIMEOUT",
        "WORKER_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda *args, **kwargs: False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


class StubParse:
    def __init__(self, normal_form):
        self.normal_form = normal_form


class StubMorph:
    """Analyzer double: looks words up in a table, otherwise echoes them."""

    def __init__(self, lemmas=None):
        self.lemmas = lemmas or {}

    def parse(self, word):
        return [StubParse(self.lemmas.get(word, word))]


@pytest.fixture
def stub_morph():
    return StubMorph(
        {
            "планшеты": "планшет",
            "диваны": "диван",
            "диванов": "диван",
            "мебели": "мебель",
            "шкафы": "шкаф",
            "кровати": "кровать",
            "столы": "стол",
        }
    )
