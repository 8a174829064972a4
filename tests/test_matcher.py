import pytest

from bookfilm_app.linkage.matcher import RecordMatcher, author_similarity, score, string_similarity
from bookfilm_app.linkage.models import NormalizedRecord


def _record(title, authors=(), isbn=None, source='Open Library'):
    return NormalizedRecord(source_name=source, title=title, authors=frozenset(authors), isbn=isbn)


def test_identical_record_scores_one():
    record = _record('the hobbit', ['j r r tolkien'])

    assert score(record, record) == pytest.approx(1.0)


def test_equal_isbns_score_exactly_095():
    a = _record('the hobbit', ['tolkien'], isbn='9780261103344')
    b = _record('hobbit the', [], isbn='9780261103344', source='Google Books')

    assert score(a, b) == 0.95


def test_different_isbns_fall_back_to_weighted_score():
    a = _record('dune', ['frank herbert'], isbn='1')
    b = _record('dune', ['frank herbert'], isbn='2')

    assert score(a, b) == pytest.approx(1.0)


def test_missing_authors_cap_score_at_title_weight():
    a = _record('dune')
    b = _record('dune', ['frank herbert'])

    assert score(a, b) == pytest.approx(0.7)


def test_string_similarity_is_normalized_levenshtein():
    assert string_similarity('kitten', 'sitting') == pytest.approx(1 - 3 / 7)
    assert string_similarity('', '') == 1.0
    assert string_similarity('abc', '') == 0.0


def test_author_similarity_divides_by_larger_set():
    assert author_similarity(frozenset({'frank herbert', 'brian herbert'}), frozenset({'frank herbert'})) == 0.5
    assert author_similarity(frozenset(), frozenset({'x'})) == 0.0
    # "tolkien jrr" vs "jrr tolkien" is too far apart to count as the same author
    assert author_similarity(frozenset({'tolkien jrr'}), frozenset({'jrr tolkien'})) == 0.0


def test_custom_weights():
    matcher = RecordMatcher(title_weight=0.5, author_weight=0.5)

    assert matcher.score(_record('dune'), _record('dune')) == pytest.approx(0.5)
