"""Single HTTP round trip with failure classification."""

import logging

import httpx

from .errors import NetworkError

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def perform_request(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    timeout: float,
    content: str | bytes | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Issue one request and return the response.

    Raises:
        NetworkError: On any transport failure (timeouts included) and on
            every non-2xx response.
    """
    logger.debug("%s %s", method, url)
    try:
        response = await http.request(method, url, content=content, headers=headers, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise NetworkError(
            f"{method} {url} failed: {e.response.status_code}", e.response.status_code
        ) from e
    except httpx.HTTPError as e:
        raise NetworkError(f"{method} {url} failed: {e}") from e
    return response


def form_body(pairs: list[tuple[str, str]]) -> str:
    """Join already-encoded ``key=value`` pairs into a form body."""
    return "&".join(f"{key}={value}" for key, value in pairs)
