from site_scraper.core import config


def setup_function(function):
    config.get_settings.cache_clear()


def teardown_function(function):
    config.get_settings.cache_clear()


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("FIRECRAWL_API_KEY", "fc-abc123")
    monkeypatch.setenv("FIRECRAWL_API_URL", "https://firecrawl.internal/v1/")
    monkeypatch.setenv("SCRAPER_MAX_PAGES", "8")
    monkeypatch.setenv("SCRAPER_ENABLE_CRAWL", "false")
    monkeypatch.setenv("SCRAPER_TIMEOUT_MS", "45000")
    monkeypatch.setenv("LEMMATIZER_INIT_TIMEOUT", "2.5")
    monkeypatch.setenv("WORKER_PORT", "9100")

    settings = config.get_settings()

    assert settings.firecrawl_api_key == "fc-abc123"
    assert settings.firecrawl_api_url == "https://firecrawl.internal/v1"
    assert settings.firecrawl_enabled is True
    assert settings.max_pages == 8
    assert settings.enable_crawl is False
    assert settings.timeout_ms == 45000
    assert settings.lemmatizer_init_timeout == 2.5
    assert settings.worker_port == 9100


def test_get_settings_warns_when_missing(caplog):
    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "FIRECRAWL_API_KEY is not configured" in " ".join(caplog.messages)
    assert settings.firecrawl_enabled is False
    assert settings.firecrawl_api_url == config.DEFAULT_FIRECRAWL_API_URL
    assert settings.max_pages == 5
    assert settings.enable_crawl is True
    assert settings.timeout_ms == 30000
    assert settings.user_agent == config.DEFAULT_USER_AGENT
    assert settings.worker_port == 9000


def test_get_settings_is_cached(monkeypatch):
    first = config.get_settings()
    monkeypatch.setenv("SCRAPER_MAX_PAGES", "12")
    assert config.get_settings() is first
