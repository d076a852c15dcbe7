"""Safe extraction of downloaded skill archives."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path

from skillguard.exceptions import HubFetchError

logger = logging.getLogger(__name__)


def extract_zip(data: bytes, dest: Path) -> list[Path]:
    """Extract a zip archive into ``dest``.

    Every member is checked before anything is written: absolute names and
    names that climb out of ``dest`` (``../``) reject the whole archive.

    Args:
        data: Zip archive bytes.
        dest: Target directory (created if missing).

    Returns:
        Paths of the extracted files.

    Raises:
        HubFetchError: If the data is not a zip archive or a member would
            escape ``dest``.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise HubFetchError("Downloaded file is not a zip archive") from exc

    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    with archive:
        members = archive.infolist()
        for member in members:
            target = (root / member.filename).resolve()
            if target != root and root not in target.parents:
                raise HubFetchError(f"Archive member escapes target directory: {member.filename}")

        written: list[Path] = []
        for member in members:
            if member.is_dir():
                continue
            path = archive.extract(member, root)
            written.append(Path(path))
    logger.debug("Extracted %d files into %s", len(written), root)
    return written
