"""
Request-scoped access to the process-wide sheet fetcher.

`portal/main.py` builds it in the lifespan and stores it on `app.state`.
"""

from __future__ import annotations

from fastapi import Request

from .fetcher import CachedFetcher


def get_fetcher(request: Request) -> CachedFetcher:
    return request.app.state.sheet_fetcher
