"""Tests for hub download, archive extraction and slug handling.

Network access is never used: ``download_archive`` is either patched with
an ``AsyncMock`` or driven through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import io
import zipfile
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from skillguard.exceptions import HubFetchError, NotAPackageError
from skillguard.hub import extract_zip, fetch_skill, is_slug
from skillguard.hub.client import download_archive


def _zip(files: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buf.getvalue()


def _patch_download(return_value: bytes) -> Any:
    return patch(
        "skillguard.hub.download_archive",
        new_callable=AsyncMock,
        return_value=return_value,
    )


def _patch_transport(handler: Callable[[httpx.Request], httpx.Response]) -> Any:
    """Route every AsyncClient in the hub client through a mock transport."""
    real_client = httpx.AsyncClient

    def _client(**kwargs: Any) -> httpx.AsyncClient:
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    return patch("skillguard.hub.client.httpx.AsyncClient", side_effect=_client)


SKILL_MD = "---\nname: weather\n---\nForecasts.\n"


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


class TestIsSlug:
    @pytest.mark.parametrize("value", ["weather", "acme/weather", "@scope/tool", "tool-1.2"])
    def test_valid(self, value: str) -> None:
        assert is_slug(value) is True

    @pytest.mark.parametrize("value", ["../etc", "a/../b", "", "-flag", "has space"])
    def test_invalid(self, value: str) -> None:
        assert is_slug(value) is False

    def test_existing_path_is_not_a_slug(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "weather").mkdir()
        monkeypatch.chdir(tmp_path)
        assert is_slug("weather") is False


# ---------------------------------------------------------------------------
# Archive extraction
# ---------------------------------------------------------------------------


class TestExtractZip:
    def test_extracts_files(self, tmp_path: Path) -> None:
        written = extract_zip(_zip({"pkg/SKILL.md": SKILL_MD, "pkg/a.js": "x"}), tmp_path / "out")
        assert sorted(p.name for p in written) == ["SKILL.md", "a.js"]
        assert (tmp_path / "out" / "pkg" / "a.js").read_text() == "x"

    def test_zip_slip_rejected_before_writing(self, tmp_path: Path) -> None:
        data = _zip({"ok.txt": "fine", "../escape.txt": "bad"})
        with pytest.raises(HubFetchError, match="escapes"):
            extract_zip(data, tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()
        assert not (tmp_path / "out" / "ok.txt").exists()

    def test_not_a_zip(self, tmp_path: Path) -> None:
        with pytest.raises(HubFetchError, match="not a zip"):
            extract_zip(b"<html>nope</html>", tmp_path / "out")


# ---------------------------------------------------------------------------
# fetch_skill
# ---------------------------------------------------------------------------


class TestFetchSkill:
    def test_yields_package_root_and_cleans_up(self) -> None:
        data = _zip({"weather-1.0/SKILL.md": SKILL_MD, "weather-1.0/index.js": "export {}"})
        with _patch_download(data) as mock_download:
            with fetch_skill("weather", download_url="https://hub.test/{slug}.zip") as package:
                assert (package / "SKILL.md").is_file()
                assert package.name == "weather-1.0"
                kept = package
        assert not kept.exists()
        assert mock_download.await_args.args[0] == "https://hub.test/weather.zip"

    def test_scoped_slug_quoted(self) -> None:
        with _patch_download(_zip({"SKILL.md": SKILL_MD})) as mock_download:
            with fetch_skill("@acme/weather", download_url="https://hub.test/d?slug={slug}"):
                pass
        assert mock_download.await_args.args[0] == "https://hub.test/d?slug=@acme/weather"

    def test_invalid_slug_never_downloads(self) -> None:
        with _patch_download(b"") as mock_download:
            with pytest.raises(HubFetchError, match="Invalid skill slug"):
                with fetch_skill("../../etc"):
                    pass
        mock_download.assert_not_awaited()

    def test_archive_without_package(self) -> None:
        with _patch_download(_zip({"README.txt": "hello"})):
            with pytest.raises(NotAPackageError):
                with fetch_skill("weather"):
                    pass


# ---------------------------------------------------------------------------
# download_archive error mapping
# ---------------------------------------------------------------------------


class TestDownloadArchive:
    def test_returns_body_with_user_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"PK-data")

        with _patch_transport(handler):
            body = asyncio.run(download_archive("https://hub.test/a.zip"))
        assert body == b"PK-data"
        assert seen[0].headers["User-Agent"].startswith("SkillGuard/")

    def test_http_error(self) -> None:
        with _patch_transport(lambda request: httpx.Response(404)):
            with pytest.raises(HubFetchError, match="HTTP 404"):
                asyncio.run(download_archive("https://hub.test/missing.zip"))

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with _patch_transport(handler):
            with pytest.raises(HubFetchError, match="Timed out"):
                asyncio.run(download_archive("https://hub.test/a.zip"))

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with _patch_transport(handler):
            with pytest.raises(HubFetchError, match="Cannot download"):
                asyncio.run(download_archive("https://hub.test/a.zip"))

    def test_oversized_body(self) -> None:
        with patch("skillguard.hub.client.MAX_ARCHIVE_BYTES", 4):
            with _patch_transport(lambda request: httpx.Response(200, content=b"123456")):
                with pytest.raises(HubFetchError, match="exceeds"):
                    asyncio.run(download_archive("https://hub.test/a.zip"))
