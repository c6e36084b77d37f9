"""Favicon download for feeds of a freshly decoded tree."""

import logging
from collections.abc import Awaitable, Callable

import httpx

from .tree import CategoryTree, IconCandidate

logger = logging.getLogger(__name__)

ICON_TIMEOUT = 1.0

IconFetcher = Callable[[list[IconCandidate]], Awaitable[bytes | None]]


class HttpIconFetcher:
    """Tries icon candidates in order and returns the first usable body."""

    def __init__(self, http: httpx.AsyncClient, timeout: float = ICON_TIMEOUT):
        self._http = http
        self._timeout = timeout

    @staticmethod
    def _icon_url(url: str, direct: bool) -> str:
        if direct:
            return url
        page = httpx.URL(url)
        return str(httpx.URL(scheme=page.scheme, host=page.host, port=page.port, path="/favicon.ico"))

    async def __call__(self, candidates: list[IconCandidate]) -> bytes | None:
        for url, direct in candidates:
            if not url:
                continue
            try:
                response = await self._http.get(self._icon_url(url, direct), timeout=self._timeout)
                response.raise_for_status()
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug("Icon candidate %s failed: %s", url, e)
                continue
            if response.content:
                return response.content
        return None


async def attach_icons(tree: CategoryTree, fetcher: IconFetcher) -> int:
    """Download icons for every feed node; returns how many were found."""
    found = 0
    for feed in tree.feeds:
        feed.icon = await fetcher(feed.icon_candidates)
        if feed.icon is not None:
            found += 1
    return found
