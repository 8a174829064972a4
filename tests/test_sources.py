import asyncio

import httpx
import pytest

from sources import SearchPreconditionError, SourceRegistry
from sources.http_client import RetryingFetcher
from sources.response_cache import ResponseCache


class Recorder:
    def __init__(self, payload=None, content_type='application/json'):
        self.payload = {} if payload is None else payload
        self.content_type = content_type
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content_type == 'application/json':
            return httpx.Response(200, json=self.payload)
        return httpx.Response(200, text=self.payload, headers={'content-type': self.content_type})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _registry(recorder, cache=None, **keys):
    fetcher = RetryingFetcher(cache=cache, transport=httpx.MockTransport(recorder), retries=0)
    return SourceRegistry(fetcher, **keys)


def test_registry_lists_every_provider():
    registry = _registry(Recorder())

    assert set(registry.sources) == {
        'openlibrary', 'googlebooks', 'libris', 'openalex', 'crossref', 'tmdb', 'omdb',
    }
    categories = {s['id']: s['category'] for s in registry.get_available_sources()}
    assert categories['openalex'] == 'scholarly'
    assert categories['tmdb'] == 'film'
    assert categories['libris'] == 'books'


def test_openlibrary_olid_prefix_is_optional():
    recorder = Recorder()
    registry = _registry(recorder)

    asyncio.run(registry.openlibrary.get_work('OL27448W'))
    assert recorder.last.url.path == '/works/OL27448W.json'
    asyncio.run(registry.openlibrary.get_work('/works/OL27448W'))
    assert recorder.last.url.path == '/works/OL27448W.json'
    asyncio.run(registry.openlibrary.get_edition('OL7058607M'))
    assert recorder.last.url.path == '/books/OL7058607M.json'


def test_google_books_sends_key_when_configured():
    recorder = Recorder()
    registry = _registry(recorder, google_books_key='secret')

    asyncio.run(registry.googlebooks.search_volumes('intitle:dune', max_results=5))

    assert recorder.last.url.params['key'] == 'secret'
    assert recorder.last.url.params['maxResults'] == '5'
    assert 'startIndex' not in recorder.last.url.params


def test_libris_oai_resumption_token_replaces_other_arguments():
    recorder = Recorder('<OAI-PMH/>', content_type='text/xml')
    registry = _registry(recorder)

    xml = asyncio.run(registry.libris.oai_list_records(from_='2024-01-01', resumption_token='abc'))

    assert xml == '<OAI-PMH/>'
    assert dict(recorder.last.url.params) == {'verb': 'ListRecords', 'resumptionToken': 'abc'}


def test_openalex_accepts_full_urls():
    recorder = Recorder()
    registry = _registry(recorder)

    asyncio.run(registry.openalex.get_work('https://openalex.org/W2741809807'))

    assert str(recorder.last.url) == 'https://api.openalex.org/works/W2741809807'


def test_crossref_doi_lookup_encodes_slashes_and_sends_user_agent():
    recorder = Recorder()
    registry = _registry(recorder, crossref_mailto='me@example.org', user_agent='books-film-api/test')

    asyncio.run(registry.crossref.get_work_by_doi('10.1000/xyz123'))

    assert recorder.last.url.raw_path.startswith(b'/works/10.1000%2Fxyz123')
    assert recorder.last.url.params['mailto'] == 'me@example.org'
    assert recorder.last.headers['User-Agent'] == 'books-film-api/test'


def test_tmdb_bearer_token_bypasses_cache():
    recorder = Recorder({'results': []})
    cache = ResponseCache()
    registry = _registry(recorder, cache=cache, tmdb_access_token='tok', tmdb_api_key='key')

    for _ in range(2):
        asyncio.run(registry.tmdb.search_movie('Alien'))

    assert len(recorder.requests) == 2
    assert recorder.last.headers['Authorization'] == 'Bearer tok'
    assert 'api_key' not in recorder.last.url.params
    assert len(cache) == 0


def test_tmdb_api_key_requests_are_cached():
    recorder = Recorder({'id': 348})
    registry = _registry(recorder, cache=ResponseCache(), tmdb_api_key='key')

    for _ in range(2):
        asyncio.run(registry.tmdb.get_movie(348, append_to_response='credits'))

    assert len(recorder.requests) == 1
    assert recorder.last.url.params['api_key'] == 'key'
    assert recorder.last.url.path == '/3/movie/348'


def test_omdb_requires_api_key():
    recorder = Recorder()
    registry = _registry(recorder)

    with pytest.raises(SearchPreconditionError):
        asyncio.run(registry.omdb.search('Alien'))
    assert recorder.requests == []


def test_omdb_lookup_needs_id_or_title():
    recorder = Recorder({'Response': 'True'})
    registry = _registry(recorder, omdb_api_key='k')

    with pytest.raises(SearchPreconditionError):
        asyncio.run(registry.omdb.by_id())

    asyncio.run(registry.omdb.by_id(imdb_id='tt0078748', plot='full'))
    assert dict(recorder.last.url.params) == {'apikey': 'k', 'i': 'tt0078748', 'plot': 'full'}
