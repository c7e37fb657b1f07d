"""Tests for the banner provider."""

from pathlib import Path

import pytest

from toastrank.decorations.service import BannerProvider


@pytest.mark.asyncio
async def test_pick_returns_public_path(banner_dir: Path) -> None:
    assert await BannerProvider(banner_dir).pick() == "/banners/toast.gif"


@pytest.mark.asyncio
async def test_hidden_files_ignored(tmp_path: Path) -> None:
    (tmp_path / ".DS_Store").write_bytes(b"")
    assert await BannerProvider(tmp_path).pick() is None


@pytest.mark.asyncio
async def test_missing_directory(tmp_path: Path) -> None:
    assert await BannerProvider(tmp_path / "nope").pick() is None
