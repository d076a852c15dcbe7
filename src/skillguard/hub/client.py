"""Async HTTP download of skill archives from the skill hub.

Thin wrapper around ``httpx.AsyncClient`` with a fixed user agent and
timeout. Unlike scan-time problems, a failed download is fatal for the
command that asked for it and is raised as ``HubFetchError``.
"""

from __future__ import annotations

import logging

import httpx

from skillguard import __version__
from skillguard.exceptions import HubFetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 30.0
USER_AGENT: str = f"SkillGuard/{__version__}"
MAX_ARCHIVE_BYTES = 50 * 1024 * 1024


async def download_archive(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """Download ``url`` and return the response body.

    Args:
        url: Archive URL.
        timeout: Request timeout in seconds.

    Returns:
        The raw archive bytes.

    Raises:
        HubFetchError: On timeouts, HTTP errors, transport errors or an
            oversized body.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.TimeoutException as exc:
        raise HubFetchError(f"Timed out downloading {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise HubFetchError(f"HTTP {exc.response.status_code} from {url}") from exc
    except httpx.RequestError as exc:
        raise HubFetchError(f"Cannot download {url}: {exc}") from exc

    body = resp.content
    if len(body) > MAX_ARCHIVE_BYTES:
        raise HubFetchError(f"Archive from {url} exceeds {MAX_ARCHIVE_BYTES} bytes")
    logger.debug("Downloaded %d bytes from %s", len(body), url)
    return body
