"""Minimal TF-IDF ranker over an in-memory corpus."""

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, Iterable, List, Tuple

from site_scraper.analysis.tokenizer import STOP_WORDS, WORD_REGEX


class TfIdfRanker:
    """Rank the terms of a document against every document added so far.

    ``idf = ln((N + 1) / (df + 1)) + 1``. With a single document every term
    has ``df == 1`` and the ranking degrades to smoothed term frequency.
    """

    def __init__(self) -> None:
        self._documents: List[Dict[str, int]] = []

    def __len__(self) -> int:
        return len(self._documents)

    def add_document(self, text: str) -> int:
        words = WORD_REGEX.findall((text or "").lower())
        self._documents.append(dict(Counter(word for word in words if word not in STOP_WORDS)))
        return len(self._documents) - 1

    def add_tokens(self, tokens: Iterable[str]) -> int:
        return self.add_document(" ".join(tokens))

    def list_terms(self, index: int) -> List[Tuple[str, float]]:
        """Return ``(term, tfidf)`` pairs for a document, highest weight first."""
        if index < 0 or index >= len(self._documents):
            return []

        document = self._documents[index]
        total = sum(document.values())
        if not total:
            return []

        corpus_size = len(self._documents)
        ranked: List[Tuple[str, float]] = []
        for term, count in document.items():
            df = sum(1 for other in self._documents if term in other)
            idf = math.log((corpus_size + 1) / (df + 1)) + 1
            ranked.append((term, (count / total) * idf))

        ranked.sort(key=lambda item: item[1], reverse=True)
        return ranked
