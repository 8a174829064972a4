import asyncio
import threading
import time

import pytest

from sources.rate_limiter import DEFAULT_RATE_LIMITS, DomainRateLimiter, RateLimit, RateWindow

from factories import FakeClock, RecordingSleep


def _limiter(clock, sleeper, **limits):
    return DomainRateLimiter(limits=limits, clock=clock, sleep=sleeper)


def test_admits_immediately_under_limit(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{'api.example.org': RateLimit(2, 1000)})

    waited = [asyncio.run(limiter.admit('https://api.example.org/a')) for _ in range(2)]

    assert waited == [0.0, 0.0]
    assert sleeper.calls == []


def test_over_limit_waits_for_oldest_to_age_out(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{'api.example.org': RateLimit(2, 1000)})

    asyncio.run(limiter.admit('https://api.example.org/a'))
    asyncio.run(limiter.admit('https://api.example.org/b'))
    waited = asyncio.run(limiter.admit('https://api.example.org/c'))

    assert waited == pytest.approx(1.0)
    assert sleeper.calls == [pytest.approx(1.0)]


def test_wait_is_window_minus_elapsed(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{'api.example.org': RateLimit(1, 1000)})

    asyncio.run(limiter.admit('https://api.example.org/a'))
    clock.advance(0.4)
    waited = asyncio.run(limiter.admit('https://api.example.org/b'))

    assert waited == pytest.approx(0.6)


def test_window_never_exceeds_limit_under_concurrency(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{'api.example.org': RateLimit(3, 1000)})

    async def burst():
        await asyncio.gather(*(limiter.admit('https://api.example.org/x') for _ in range(7)))

    asyncio.run(burst())

    window = limiter._windows['api.example.org']
    window.prune(clock() * 1000.0)
    assert len(window.timestamps) <= 3
    assert limiter.stats()['api.example.org']['in_window'] <= 3


def test_unknown_and_disabled_hosts_are_not_throttled(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{'off.example.org': RateLimit(0, 1000)})

    for _ in range(5):
        asyncio.run(limiter.admit('https://off.example.org/'))
        asyncio.run(limiter.admit('https://unknown.example.org/'))

    assert sleeper.calls == []
    assert limiter.stats() == {}


def test_hosts_are_independent(clock, sleeper):
    limiter = _limiter(clock, sleeper, **{
        'a.example.org': RateLimit(1, 1000),
        'b.example.org': RateLimit(1, 1000),
    })

    asyncio.run(limiter.admit('https://a.example.org/'))
    waited = asyncio.run(limiter.admit('https://b.example.org/'))

    assert waited == 0.0


def test_origin_of_and_bare_host():
    assert DomainRateLimiter.origin_of('https://API.Crossref.org/works?q=1') == 'api.crossref.org'

    limiter = DomainRateLimiter()
    assert limiter.limits == DEFAULT_RATE_LIMITS
    assert limiter.limits['api.crossref.org'] == RateLimit(50, 60000)


def test_rate_window_prunes_entries_at_window_edge():
    window = RateWindow(limit=1, window_ms=1000)
    window.record(0)

    assert window.wait_time_ms(999) == pytest.approx(1)
    assert window.wait_time_ms(1000) == 0.0
    assert len(window.timestamps) == 0


class SlowClock(FakeClock):
    """Fake clock that yields the GIL on every read."""

    def __call__(self) -> float:
        time.sleep(0.02)
        return self.now


def test_window_holds_under_concurrent_threads():
    clock = SlowClock()
    limiter = DomainRateLimiter(
        limits={'api.example.org': RateLimit(1, 60000)},
        clock=clock,
        sleep=RecordingSleep(clock),
    )
    waited = []

    def worker():
        waited.append(asyncio.run(limiter.admit('https://api.example.org/a')))

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(waited) == [0.0, pytest.approx(60.0)]
    assert limiter.stats()['api.example.org']['in_window'] == 1
