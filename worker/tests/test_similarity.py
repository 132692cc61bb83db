from site_scraper.core.similarity import levenshtein_distance, string_similarity


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3
    assert levenshtein_distance("диван", "диван") == 0


def test_string_similarity_bounds():
    assert string_similarity("Купить Диван", "купить диван") == 1.0
    assert string_similarity("", "диван") == 0.0
    assert string_similarity("abc", "xyz") == 0.0


def test_string_similarity_near_duplicates():
    score = string_similarity("купить диваны", "купить диване")
    assert 0.9 < score < 1.0
    assert round(score, 3) == 0.923
