"""Bigram extraction and fuzzy grouping of near-duplicate phrases."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from site_scraper.analysis.tokenizer import STOP_WORDS
from site_scraper.core.similarity import string_similarity

PHRASE_SIMILARITY_THRESHOLD = 0.9


@dataclass(slots=True)
class PhraseGroup:
    variants: List[str] = field(default_factory=list)
    count: int = 0


def extract_bigrams(tokens: Sequence[str]) -> List[str]:
    """Return adjacent token pairs, skipping any pair that touches a stop word."""
    bigrams: List[str] = []
    for first, second in zip(tokens, tokens[1:]):
        if first in STOP_WORDS or second in STOP_WORDS:
            continue
        bigrams.append(f"{first} {second}")
    return bigrams


def group_similar_phrases(
    phrases: Sequence[str],
    threshold: float = PHRASE_SIMILARITY_THRESHOLD,
) -> Dict[str, PhraseGroup]:
    """Cluster phrases whose similarity to a canonical phrase is at least ``threshold``.

    The first-seen phrase of a cluster is its key and first variant; the
    cluster count is the sum of its members' occurrences.
    """
    counts = Counter(phrases)
    unique = list(counts)
    grouped = [False] * len(unique)
    groups: Dict[str, PhraseGroup] = {}

    for i, canonical in enumerate(unique):
        if grouped[i]:
            continue
        grouped[i] = True
        group = PhraseGroup(variants=[canonical], count=counts[canonical])
        for j in range(i + 1, len(unique)):
            if grouped[j]:
                continue
            candidate = unique[j]
            if string_similarity(canonical, candidate) >= threshold:
                group.variants.append(candidate)
                group.count += counts[candidate]
                grouped[j] = True
        groups[canonical] = group

    return groups
