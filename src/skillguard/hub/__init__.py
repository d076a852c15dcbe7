"""Fetch skills from the remote hub for ``scan-hub`` and ``install <slug>``.

Usage::

    with fetch_skill("weather") as package:
        report = scanner.scan(package)

The archive is downloaded, unpacked into a temporary directory and removed
again when the ``with`` block exits.
"""

from __future__ import annotations

import asyncio
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import quote

from skillguard.config import HubSettings
from skillguard.core.manifest import locate_package
from skillguard.exceptions import HubFetchError
from skillguard.hub.archive import extract_zip
from skillguard.hub.client import DEFAULT_TIMEOUT, download_archive

_SLUG_RE = re.compile(r"^@?[A-Za-z0-9][A-Za-z0-9._@/-]*$")


def is_slug(value: str) -> bool:
    """True if ``value`` looks like a hub slug rather than a local path."""
    return bool(_SLUG_RE.match(value)) and ".." not in value and not Path(value).exists()


@contextmanager
def fetch_skill(
    slug: str,
    download_url: str = HubSettings.download_url,
    timeout: float = DEFAULT_TIMEOUT,
) -> Iterator[Path]:
    """Download and unpack a hub skill, yielding its package root.

    Args:
        slug: Hub identifier of the skill.
        download_url: URL template with a ``{slug}`` placeholder.
        timeout: Download timeout in seconds.

    Yields:
        The package root inside a temporary directory.

    Raises:
        HubFetchError: If the slug is invalid or the download fails.
        NotAPackageError: If the archive holds no skill package.
    """
    if not _SLUG_RE.match(slug) or ".." in slug:
        raise HubFetchError(f"Invalid skill slug: {slug!r}")
    url = download_url.format(slug=quote(slug, safe="@/"))
    data = asyncio.run(download_archive(url, timeout=timeout))

    with tempfile.TemporaryDirectory(prefix="skillguard-hub-") as tmp:
        unpack_dir = Path(tmp) / slug.rsplit("/", 1)[-1]
        extract_zip(data, unpack_dir)
        yield locate_package(unpack_dir)


__all__ = ["download_archive", "extract_zip", "fetch_skill", "is_slug"]
