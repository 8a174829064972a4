from bookfilm_app.linkage.models import SourceShape
from bookfilm_app.linkage.normalizer import (
    RecordNormalizer,
    extract_items,
    normalize_isbn,
    normalize_text,
    replace_items,
)

from factories import google_volume, openlibrary_doc

LIBRIS = SourceShape.LIBRIS.value


def test_normalize_text_strips_punctuation_and_spacing():
    assert normalize_text('  The Hobbit: or There and Back Again! ') == 'the hobbit or there and back again'
    assert normalize_text('J.R.R.   Tolkien') == 'jrr tolkien'


def test_normalize_isbn():
    assert normalize_isbn('978-0-261-10334-4') == '9780261103344'
    assert normalize_isbn(' 0-261-10334-x ') == '026110334X'
    assert normalize_isbn('') is None
    assert normalize_isbn(None) is None


def test_google_books_item():
    item = google_volume('Dune', ['Frank Herbert'], isbn13='978-0-441-17271-9')

    record = RecordNormalizer().normalize(item, 'Google Books', origin_index=2)

    assert record.title == 'dune'
    assert record.authors == frozenset({'frank herbert'})
    assert record.isbn == '9780441172719'
    assert record.origin_index == 2
    assert record.raw_item is item
    assert record.priority == 3


def test_google_books_prefers_first_isbn_identifier():
    item = {'volumeInfo': {'title': 'X', 'industryIdentifiers': [
        {'type': 'OTHER', 'identifier': 'OCLC:1'},
        {'type': 'ISBN_10', 'identifier': '0441172717'},
        {'type': 'ISBN_13', 'identifier': '9780441172719'},
    ]}}

    assert RecordNormalizer().normalize(item, 'Google Books').isbn == '0441172717'


def test_open_library_doc():
    record = RecordNormalizer().normalize(
        openlibrary_doc('Dune!', ['Frank Herbert'], isbn='0441172717'), 'Open Library',
    )

    assert record.title == 'dune'
    assert record.isbn == '0441172717'
    assert record.priority == 2


def test_libris_accepts_strings_or_lists():
    normalizer = RecordNormalizer()

    listed = normalizer.normalize({'title': ['Röda rummet', 'alt'], 'author': ['Strindberg, August']}, LIBRIS)
    plain = normalizer.normalize({'title': 'Röda rummet', 'author': 'Strindberg, August', 'isbn': '91-0-012345-6'}, LIBRIS)

    assert listed.title == plain.title == 'röda rummet'
    assert listed.authors == plain.authors == frozenset({'strindberg august'})
    assert plain.isbn == '9100123456'


def test_unusable_items_yield_none():
    normalizer = RecordNormalizer()

    assert normalizer.normalize(openlibrary_doc('Dune'), 'Unknown Catalogue') is None
    assert normalizer.normalize({'author_name': ['Nobody']}, 'Open Library') is None
    assert normalizer.normalize({'title': '!!!'}, 'Open Library') is None
    assert normalizer.normalize({'title': 42}, 'Open Library') is None
    assert normalizer.normalize('not a dict', 'Google Books') is None
    assert normalizer.normalize({'volumeInfo': None}, 'Google Books') is None


def test_extract_and_replace_items():
    nested = {'xsearch': {'records': 2, 'list': [{'title': 'a'}, {'title': 'b'}]}}
    flat = {'list': [{'title': 'c'}]}

    assert extract_items(SourceShape.LIBRIS, nested) == nested['xsearch']['list']
    assert extract_items(SourceShape.LIBRIS, flat) == flat['list']
    assert extract_items(SourceShape.GOOGLE_BOOKS, {'totalItems': 0}) == []
    assert extract_items(SourceShape.OPEN_LIBRARY, {'docs': 'bad'}) is None
    assert extract_items(SourceShape.UNKNOWN, {'items': []}) is None

    replaced = replace_items(SourceShape.LIBRIS, nested, [{'title': 'a'}])
    assert replaced['xsearch']['list'] == [{'title': 'a'}]
    assert replaced['xsearch']['records'] == 2
    assert len(nested['xsearch']['list']) == 2
