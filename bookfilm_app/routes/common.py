"""Shared helpers for the API blueprints."""

import asyncio
from typing import Any, Awaitable

from flask import current_app

from ..extensions import Services


def run_async(coro: Awaitable[Any]) -> Any:
    """
    Run async coroutine in sync Flask context.

    Flask routes are sync, but the provider clients are async. Each call
    gets its own event loop; the fetcher opens a fresh HTTP client per
    request, so nothing is bound to a previous loop.
    """
    return asyncio.run(coro)


def get_services() -> Services:
    return current_app.extensions['bookfilm']
