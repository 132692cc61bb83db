import math

from site_scraper.analysis.phrases import extract_bigrams, group_similar_phrases
from site_scraper.analysis.tfidf import TfIdfRanker


def test_tfidf_single_document_ranks_by_frequency():
    ranker = TfIdfRanker()
    index = ranker.add_document("диван диван диван шкаф стол и для")

    terms = ranker.list_terms(index)

    assert [term for term, _ in terms] == ["диван", "шкаф", "стол"]
    assert math.isclose(terms[0][1], 3 / 5)
    assert len(ranker) == 1


def test_tfidf_downweights_terms_shared_across_documents():
    ranker = TfIdfRanker()
    first = ranker.add_tokens(["диван", "доставка"])
    ranker.add_tokens(["доставка", "цветы"])

    weights = dict(ranker.list_terms(first))

    assert weights["диван"] > weights["доставка"]


def test_tfidf_unknown_index_is_empty():
    assert TfIdfRanker().list_terms(3) == []


def test_extract_bigrams_skips_stop_words():
    assert extract_bigrams(["купить", "диван", "для", "дома"]) == ["купить диван"]


def test_group_similar_phrases_merges_near_duplicates():
    phrases = ["купить диваны", "купить диване", "купить диваны", "доставка мебели"]

    groups = group_similar_phrases(phrases, threshold=0.9)

    assert list(groups) == ["купить диваны", "доставка мебели"]
    assert groups["купить диваны"].variants == ["купить диваны", "купить диване"]
    assert groups["купить диваны"].count == 3
    assert groups["доставка мебели"].count == 1
