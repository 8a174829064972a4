"""Shared fakes and payload builders for the test suite."""


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep stand-in: records delays and advances an optional clock."""

    def __init__(self, clock: FakeClock = None):
        self.calls = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


def google_volume(title, authors=None, isbn13=None):
    info = {'title': title}
    if authors is not None:
        info['authors'] = authors
    if isbn13:
        info['industryIdentifiers'] = [{'type': 'ISBN_13', 'identifier': isbn13}]
    return {'volumeInfo': info}


def openlibrary_doc(title, authors=None, isbn=None):
    doc = {'title': title}
    if authors is not None:
        doc['author_name'] = authors
    if isbn:
        doc['isbn'] = [isbn]
    return doc
