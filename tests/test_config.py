import pytest

from bookfilm_app.config import ConfigError, Settings, parse_rate_limits
from sources.rate_limiter import RateLimit


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.user_agent == 'books-film-api/0.1.0'
    assert settings.cache_ttl == 3600
    assert settings.timeout_ms == 20000
    assert settings.retries == 2
    assert settings.retry_delay_ms == 1000
    assert settings.rate_limits == {}
    assert settings.google_books_api_key is None
    assert settings.debug is False


def test_values_from_environment():
    settings = Settings.from_env({
        'GOOGLE_BOOKS_API_KEY': 'g',
        'OMDB_API_KEY': 'o',
        'CROSSREF_MAILTO': 'me@example.org',
        'HTTP_RETRIES': '5',
        'FLASK_PORT': '8080',
        'FLASK_DEBUG': 'yes',
        'LOG_LEVEL': 'debug',
        'RATE_LIMITS': 'api.crossref.org=10/1000',
    })

    assert settings.google_books_api_key == 'g'
    assert settings.omdb_api_key == 'o'
    assert settings.crossref_mailto == 'me@example.org'
    assert settings.retries == 5
    assert settings.port == 8080
    assert settings.debug is True
    assert settings.log_level == 'DEBUG'
    assert settings.rate_limits == {'api.crossref.org': RateLimit(10, 1000)}


def test_parse_rate_limits_accepts_urls_and_zero_limits():
    limits = parse_rate_limits('https://API.OpenAlex.org/ = 0/60000, libris.kb.se=5/1000,')

    assert limits == {
        'api.openalex.org': RateLimit(0, 60000),
        'libris.kb.se': RateLimit(5, 1000),
    }


@pytest.mark.parametrize('raw', ['api.crossref.org', 'api.crossref.org=10', 'api.crossref.org=x/1000'])
def test_parse_rate_limits_rejects_malformed_entries(raw):
    with pytest.raises(ConfigError):
        parse_rate_limits(raw)


def test_non_integer_setting_is_rejected():
    with pytest.raises(ConfigError):
        Settings.from_env({'HTTP_TIMEOUT_MS': 'soon'})


@pytest.mark.parametrize('name,value', [
    ('HTTP_RETRIES', '-1'),
    ('HTTP_TIMEOUT_MS', '0'),
    ('HTTP_RETRY_DELAY_MS', '-5'),
    ('HTTP_CACHE_TTL', '-1'),
])
def test_negative_http_settings_are_rejected(name, value):
    with pytest.raises(ConfigError, match=name):
        Settings.from_env({name: value})
