"""Shared fixtures for the dev server tests."""

from __future__ import annotations

import asyncio
import io
from pathlib import Path

import pytest
from rich.console import Console

from compiler import Artifact
from theme_api import SyncError


class FakeSyncClient:
    """Records sync calls; optionally blocks or fails them."""

    def __init__(self, fail_with: str | None = None):
        self.calls: list[list[str]] = []
        self.fail_with = fail_with
        self.active = 0
        self.max_active = 0
        self.release: asyncio.Event | None = None

    async def sync(self, upload=(), remove=()):
        self.calls.append(list(upload))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.release is not None:
                await self.release.wait()
            else:
                await asyncio.sleep(0)
            if self.fail_with:
                raise SyncError(self.fail_with)
        finally:
            self.active -= 1


class FakeTransport:
    def __init__(self):
        self.events: list[dict] = []

    def publish(self, event: dict) -> int:
        self.events.append(event)
        return 1


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(file=output, force_terminal=False, width=200)


@pytest.fixture
def dist_dir(tmp_path: Path) -> Path:
    dist = tmp_path / "dist"
    dist.mkdir()
    return dist


@pytest.fixture
def write_dist(dist_dir: Path):
    """Factory: write a file under dist, return an emitted Artifact for it."""

    def _write(rel: str, content: str = "x", emitted: bool = True) -> Artifact:
        path = dist_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return Artifact(name=rel, emitted=emitted, exists_at=path)

    return _write


@pytest.fixture
def sync_client() -> FakeSyncClient:
    return FakeSyncClient()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
