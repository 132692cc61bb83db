"""Text analytics over a website's visible content."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from site_scraper.analysis.categories import classify_by_lemmas
from site_scraper.analysis.entities import extract_entities
from site_scraper.analysis.lemmatizer import Lemmatizer, get_lemmatizer
from site_scraper.analysis.phrases import PHRASE_SIMILARITY_THRESHOLD, extract_bigrams, group_similar_phrases
from site_scraper.analysis.tfidf import TfIdfRanker
from site_scraper.analysis.tokenizer import STOP_WORDS, extract_visible_text, tokenize
from site_scraper.core.models import FrequentPhrase, FrequentWord, Keyword, TextAnalysisResult

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 15
KEYWORD_CANDIDATES = 30
MAX_FREQUENT_WORDS = 20
MAX_FREQUENT_PHRASES = 20
MIN_PHRASE_COUNT = 2


class TextAnalysisService:
    """Keyword, phrase, category and entity mining for one HTML document."""

    def __init__(self, lemmatizer: Optional[Lemmatizer] = None) -> None:
        self._lemmatizer = lemmatizer

    @property
    def lemmatizer(self) -> Lemmatizer:
        if self._lemmatizer is None:
            self._lemmatizer = get_lemmatizer()
        return self._lemmatizer

    def lemmatize_phrase(self, phrase: str) -> str:
        return " ".join(self.lemmatizer.lemmatize(word) for word in phrase.split(" "))

    def analyze_text(self, html: str) -> TextAnalysisResult:
        self.lemmatizer.ensure_ready()

        visible_text = extract_visible_text(html)
        tokens = tokenize(visible_text)
        logger.info("Text analysis: %d visible characters, %d tokens", len(visible_text), len(tokens))

        frequent_words = self._frequent_words(tokens)
        keywords = self._keywords(tokens)
        frequent_phrases = self._frequent_phrases(tokens)

        return TextAnalysisResult(
            keywords=keywords,
            frequent_words=frequent_words,
            frequent_phrases=frequent_phrases,
            suggested_category=classify_by_lemmas(word.lemma for word in frequent_words),
            entities=extract_entities(visible_text, frequent_words),
        )

    def _frequent_words(self, tokens: List[str]) -> List[FrequentWord]:
        lemmas: Dict[str, FrequentWord] = {}
        for token in tokens:
            lemma = self.lemmatizer.lemmatize(token)
            entry = lemmas.get(lemma)
            if entry is None:
                lemmas[lemma] = FrequentWord(word=token, lemma=lemma, count=1)
            else:
                entry.count += 1

        ranked = sorted(lemmas.values(), key=lambda item: item.count, reverse=True)
        logger.debug("Top lemmas: %s", ", ".join(f"{item.lemma}({item.count})" for item in ranked[:5]))
        return ranked[:MAX_FREQUENT_WORDS]

    def _keywords(self, tokens: List[str]) -> List[Keyword]:
        ranker = TfIdfRanker()
        index = ranker.add_tokens(tokens)

        keywords: List[Keyword] = []
        for term, weight in ranker.list_terms(index)[:KEYWORD_CANDIDATES]:
            lemma = self.lemmatizer.lemmatize(term)
            if lemma in STOP_WORDS or len(lemma) < 3:
                continue
            keywords.append(Keyword(word=term, lemma=lemma, score=round(weight, 2)))
        return keywords[:MAX_KEYWORDS]

    def _frequent_phrases(self, tokens: List[str]) -> List[FrequentPhrase]:
        bigrams = extract_bigrams(tokens)
        groups = group_similar_phrases(bigrams, PHRASE_SIMILARITY_THRESHOLD)

        phrases = [
            FrequentPhrase(
                phrase=canonical,
                lemma_phrase=self.lemmatize_phrase(canonical),
                count=group.count,
                variants=[variant for variant in group.variants if variant != canonical],
            )
            for canonical, group in groups.items()
            if group.count >= MIN_PHRASE_COUNT
        ]
        phrases.sort(key=lambda item: item.count, reverse=True)
        logger.debug("Text analysis: %d bigrams, %d repeated phrases", len(bigrams), len(phrases))
        return phrases[:MAX_FREQUENT_PHRASES]


@lru_cache(maxsize=1)
def get_text_analysis_service() -> TextAnalysisService:
    return TextAnalysisService()
