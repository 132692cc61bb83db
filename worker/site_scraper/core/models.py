"""Core data models shared by the scraping and text analysis pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

MANAGED_CONFIDENCE = 85
HEURISTIC_CONFIDENCE = 60
MAX_PHOTOS = 10
MAX_SERVICES = 15


@dataclass(slots=True)
class PhoneContact:
    number: str
    label: Optional[str] = None


@dataclass(slots=True)
class EmailContact:
    email: str
    label: Optional[str] = None


@dataclass(slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class Branch:
    """A store, office or pickup point of a company with several locations."""

    address: str
    name: Optional[str] = None
    city: Optional[str] = None
    phones: List[str] = field(default_factory=list)
    email: Optional[str] = None
    working_hours: Optional[Dict[str, str]] = None
    coordinates: Optional[Coordinates] = None
    type: Optional[str] = None


@dataclass(slots=True)
class ScrapedCompanyData:
    """Structured business profile assembled from a website."""

    website: str
    source_url: str
    confidence: int
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    phones: List[PhoneContact] = field(default_factory=list)
    emails: List[EmailContact] = field(default_factory=list)
    address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    branches: List[Branch] = field(default_factory=list)
    social_links: Dict[str, str] = field(default_factory=dict)
    working_hours: Optional[Dict[str, str]] = None
    logo_url: Optional[str] = None
    photos: List[str] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    scraped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class Keyword:
    word: str
    lemma: str
    score: float


@dataclass(slots=True)
class FrequentWord:
    word: str
    lemma: str
    count: int


@dataclass(slots=True)
class FrequentPhrase:
    phrase: str
    lemma_phrase: str
    count: int
    variants: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Entities:
    organizations: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)


@dataclass(slots=True)
class TextAnalysisResult:
    keywords: List[Keyword] = field(default_factory=list)
    frequent_words: List[FrequentWord] = field(default_factory=list)
    frequent_phrases: List[FrequentPhrase] = field(default_factory=list)
    suggested_category: Optional[str] = None
    entities: Entities = field(default_factory=Entities)


@dataclass(slots=True)
class ScrapeOptions:
    enable_crawl: bool = True
    max_pages: int = 5
    timeout: int = 30000
    additional_paths: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ScrapeResult:
    success: bool
    data: Optional[ScrapedCompanyData] = None
    raw_markdown: Optional[str] = None
    raw_html: Optional[str] = None
    error: Optional[str] = None
    duration: int = 0
    pages_scraped: int = 0
    text_analysis: Optional[TextAnalysisResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """Transform the result into a JSON-serialisable dictionary."""
        payload = asdict(self)
        data = payload.get("data")
        if data is not None:
            data["scraped_at"] = self.data.scraped_at.isoformat()
        return payload
