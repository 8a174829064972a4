import asyncio

import httpx
import pytest

from sources.http_client import FetchError, RetryingFetcher, build_url
from sources.rate_limiter import DomainRateLimiter, RateLimit
from sources.response_cache import ResponseCache

from factories import RecordingSleep

URL = 'https://api.example.org/works'


class Responder:
    """MockTransport handler replaying a scripted list of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(step, Exception):
            raise step
        return httpx.Response(step.status_code, headers=step.headers, content=step.content)


def _fetcher(responder, **kwargs):
    kwargs.setdefault('sleep', RecordingSleep())
    return RetryingFetcher(transport=httpx.MockTransport(responder), **kwargs)


def test_success_returns_parsed_json():
    responder = Responder(httpx.Response(200, json={'results': [1, 2]}))
    fetcher = _fetcher(responder)

    assert asyncio.run(fetcher.fetch(URL, {'search': 'dune'})) == {'results': [1, 2]}
    assert str(responder.requests[0].url) == 'https://api.example.org/works?search=dune'


def test_non_json_body_is_returned_as_text():
    responder = Responder(httpx.Response(200, text='<OAI-PMH/>', headers={'content-type': 'text/xml'}))

    assert asyncio.run(_fetcher(responder).fetch(URL)) == '<OAI-PMH/>'


def test_retryable_status_then_success_backs_off_exponentially():
    responder = Responder(
        httpx.Response(503, text='busy'),
        httpx.Response(503, text='busy'),
        httpx.Response(200, json={'ok': True}),
    )
    sleep = RecordingSleep()
    fetcher = _fetcher(responder, sleep=sleep, retries=2, retry_delay_ms=1000)

    assert asyncio.run(fetcher.fetch(URL)) == {'ok': True}
    assert len(responder.requests) == 3
    assert sleep.calls == [1.0, 2.0]


def test_retries_exhausted_raises_with_last_status():
    responder = Responder(httpx.Response(429, text='slow down'))
    sleep = RecordingSleep()
    fetcher = _fetcher(responder, sleep=sleep, retries=2, retry_delay_ms=100)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))

    assert excinfo.value.status == 429
    assert excinfo.value.attempts == 3
    assert len(responder.requests) == 3
    assert sleep.calls == [0.1, 0.2]


def test_fatal_status_is_not_retried():
    responder = Responder(httpx.Response(404, text='no such work'))
    sleep = RecordingSleep()
    fetcher = _fetcher(responder, sleep=sleep, retries=2)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))

    assert len(responder.requests) == 1
    assert sleep.calls == []
    assert excinfo.value.status == 404
    assert 'HTTP 404' in str(excinfo.value)
    assert 'no such work' in str(excinfo.value)


def test_error_body_is_truncated():
    responder = Responder(httpx.Response(400, text='x' * 1000))

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(_fetcher(responder).fetch(URL))

    message = str(excinfo.value)
    assert 'x' * 400 in message
    assert 'x' * 401 not in message


def test_timeouts_and_network_errors_are_retried():
    request = httpx.Request('GET', URL)
    responder = Responder(
        httpx.ReadTimeout('timed out', request=request),
        httpx.ConnectError('refused', request=request),
        httpx.Response(200, json={'ok': True}),
    )
    fetcher = _fetcher(responder, retries=2)

    assert asyncio.run(fetcher.fetch(URL)) == {'ok': True}
    assert len(responder.requests) == 3


def test_timeout_on_final_attempt_has_no_status():
    request = httpx.Request('GET', URL)
    responder = Responder(httpx.ReadTimeout('timed out', request=request))

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(_fetcher(responder, retries=1).fetch(URL))

    assert excinfo.value.status is None
    assert excinfo.value.attempts == 2
    assert 'Timeout' in str(excinfo.value)


def test_malformed_json_is_fatal():
    responder = Responder(httpx.Response(
        200, content=b'{not json', headers={'content-type': 'application/json'},
    ))

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(responder, retries=2).fetch(URL))
    assert len(responder.requests) == 1


def test_cache_hit_skips_network():
    responder = Responder(httpx.Response(200, json={'n': 1}))
    fetcher = _fetcher(responder, cache=ResponseCache())

    first = asyncio.run(fetcher.fetch(URL, {'b': 2, 'a': 1}))
    second = asyncio.run(fetcher.fetch(URL, {'a': 1, 'b': 2}))

    assert first == second == {'n': 1}
    assert len(responder.requests) == 1


def test_authorized_requests_are_not_cached():
    responder = Responder(httpx.Response(200, json={'n': 1}))
    cache = ResponseCache()
    fetcher = _fetcher(responder, cache=cache)

    for _ in range(2):
        asyncio.run(fetcher.fetch(URL, headers={'Authorization': 'Bearer t'}))

    assert len(responder.requests) == 2
    assert len(cache) == 0


def test_failures_are_not_cached():
    responder = Responder(httpx.Response(404), httpx.Response(200, json={'n': 1}))
    cache = ResponseCache()
    fetcher = _fetcher(responder, cache=cache, retries=0)

    with pytest.raises(FetchError):
        asyncio.run(fetcher.fetch(URL))
    assert asyncio.run(fetcher.fetch(URL)) == {'n': 1}


def test_rate_limiter_gates_each_logical_request(clock, sleeper):
    responder = Responder(httpx.Response(200, json={}))
    limiter = DomainRateLimiter({'api.example.org': RateLimit(1, 1000)}, clock=clock, sleep=sleeper)
    fetcher = _fetcher(responder, rate_limiter=limiter)

    asyncio.run(fetcher.fetch(URL, {'page': 1}))
    asyncio.run(fetcher.fetch(URL, {'page': 2}))

    assert sleeper.calls == [pytest.approx(1.0)]


def test_cache_hit_skips_rate_limiter(clock, sleeper):
    responder = Responder(httpx.Response(200, json={'n': 1}))
    limiter = DomainRateLimiter({'api.example.org': RateLimit(1, 60000)}, clock=clock, sleep=sleeper)
    fetcher = _fetcher(responder, cache=ResponseCache(), rate_limiter=limiter)

    for _ in range(3):
        assert asyncio.run(fetcher.fetch(URL, {'page': 1})) == {'n': 1}

    assert len(responder.requests) == 1
    assert sleeper.calls == []
    assert limiter.stats()['api.example.org']['in_window'] == 1


def test_negative_retries_still_make_one_attempt():
    responder = Responder(httpx.Response(503, text='busy'))
    sleep = RecordingSleep()
    fetcher = _fetcher(responder, sleep=sleep, retries=-1)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetcher.fetch(URL))

    assert excinfo.value.status == 503
    assert excinfo.value.attempts == 1
    assert len(responder.requests) == 1
    assert sleep.calls == []


def test_build_url_sorts_and_drops_empty_values():
    url = build_url('https://x.org/a?z=1', {'b': '2', 'c': None, 'd': '', 'e': True, 'f': False})

    assert url == 'https://x.org/a?b=2&e=true&f=false&z=1'
