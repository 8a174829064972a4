"""
================================================================================
Books/Film API - Configuration
================================================================================
Settings come from the process environment, with `.env` loaded first.

RATE_LIMITS overrides the built-in per-host table:
  RATE_LIMITS="api.crossref.org=10/60000,api.openalex.org=0/60000"
A limit of 0 disables throttling for that host. Full URLs are reduced to
their host name.
================================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from sources.http_client import DEFAULT_RETRIES, DEFAULT_RETRY_DELAY_MS, DEFAULT_TIMEOUT_MS
from sources.rate_limiter import DomainRateLimiter, RateLimit

DEFAULT_USER_AGENT = 'books-film-api/0.1.0'
DEFAULT_CACHE_TTL = 3600


class ConfigError(ValueError):
    """Raised when an environment value cannot be parsed."""


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


def _env_int(env: Mapping[str, str], name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def parse_rate_limits(raw: Optional[str]) -> Dict[str, RateLimit]:
    """
    Parse RATE_LIMITS into a host -> RateLimit table.

    Example:
        "api.crossref.org=10/60000" → {"api.crossref.org": RateLimit(10, 60000)}
    """
    limits: Dict[str, RateLimit] = {}
    if not raw:
        return limits

    for entry in raw.split(','):
        entry = entry.strip()
        if not entry:
            continue
        try:
            host, rate = entry.split('=', 1)
            limit, window_ms = rate.split('/', 1)
            rate = RateLimit(limit=int(limit), window_ms=int(window_ms))
        except ValueError:
            raise ConfigError(f"Bad RATE_LIMITS entry '{entry}' (expected host=limit/window_ms)")

        host = host.strip()
        if '://' in host:
            host = DomainRateLimiter.origin_of(host)
        limits[host.lower()] = rate

    return limits


@dataclass
class Settings:
    """Runtime configuration for the service."""

    # Provider credentials
    google_books_api_key: Optional[str] = None
    tmdb_access_token: Optional[str] = None
    tmdb_api_key: Optional[str] = None
    omdb_api_key: Optional[str] = None
    crossref_mailto: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT

    # Fetch layer
    cache_ttl: int = DEFAULT_CACHE_TTL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    rate_limits: Dict[str, RateLimit] = field(default_factory=dict)

    # Server
    host: str = '127.0.0.1'
    port: int = 5000
    debug: bool = False

    # Logging
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from the environment.

        Args:
            env: Mapping to read instead of os.environ (`.env` is only
                 loaded when reading the real environment)
        """
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            google_books_api_key=env.get('GOOGLE_BOOKS_API_KEY') or None,
            tmdb_access_token=env.get('TMDB_ACCESS_TOKEN') or None,
            tmdb_api_key=env.get('TMDB_API_KEY') or None,
            omdb_api_key=env.get('OMDB_API_KEY') or None,
            crossref_mailto=env.get('CROSSREF_MAILTO') or None,
            user_agent=env.get('USER_AGENT_EXTRA') or DEFAULT_USER_AGENT,
            cache_ttl=_env_int(env, 'HTTP_CACHE_TTL', DEFAULT_CACHE_TTL, minimum=0),
            timeout_ms=_env_int(env, 'HTTP_TIMEOUT_MS', DEFAULT_TIMEOUT_MS, minimum=1),
            retries=_env_int(env, 'HTTP_RETRIES', DEFAULT_RETRIES, minimum=0),
            retry_delay_ms=_env_int(env, 'HTTP_RETRY_DELAY_MS', DEFAULT_RETRY_DELAY_MS, minimum=0),
            rate_limits=parse_rate_limits(env.get('RATE_LIMITS')),
            host=env.get('FLASK_HOST', '127.0.0.1'),
            port=_env_int(env, 'FLASK_PORT', 5000),
            debug=_env_bool(env.get('FLASK_DEBUG')),
            log_level=(env.get('LOG_LEVEL') or 'INFO').upper(),
            log_file=env.get('LOG_FILE') or None,
        )
