"""Tests for the serialized upload gate.

The Shopify client and the livereload transport are replaced by fakes
that record calls; nothing leaves the process.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from notify import UPLOAD_FINISHED, LiveReloadNotifier
from upload import SyncStatus, UploadGate, is_suppressed


@pytest.fixture
def gate(sync_client, transport, console):
    return UploadGate(sync_client, LiveReloadNotifier(transport), console=console)


class TestIsSuppressed:
    def test_layout_alone(self):
        assert is_suppressed(["/layout/theme.liquid"]) is True

    def test_layout_with_others(self):
        assert is_suppressed(["/layout/theme.liquid", "/assets/a.js"]) is False

    def test_empty(self):
        assert is_suppressed([]) is False


class TestSubmit:
    @pytest.mark.asyncio
    async def test_empty_set_is_trivial_success(self, gate, sync_client, transport):
        operation = await gate.submit([])

        assert operation.status is SyncStatus.SUCCEEDED
        assert sync_client.calls == []
        assert transport.events == []

    @pytest.mark.asyncio
    async def test_success_notifies_once(self, gate, sync_client, transport, output):
        operation = await gate.submit(["/assets/a.js"])

        assert operation.status is SyncStatus.SUCCEEDED
        assert operation.notified is True
        assert sync_client.calls == [["/assets/a.js"]]
        assert transport.events == [{"action": UPLOAD_FINISHED}]
        assert "/assets/a.js" in output.getvalue()
        assert "Files uploaded successfully!" in output.getvalue()

    @pytest.mark.asyncio
    async def test_layout_only_upload_is_silent(
        self, gate, sync_client, transport, output
    ):
        operation = await gate.submit(["/layout/theme.liquid"])

        assert operation.status is SyncStatus.SUCCEEDED
        assert operation.notified is False
        assert sync_client.calls == [["/layout/theme.liquid"]]
        assert transport.events == []
        assert "Files uploaded successfully!" not in output.getvalue()

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_reported(
        self, transport, console, output
    ):
        """Any exception from the client fails the operation, not the task."""
        client = AsyncMock()
        client.sync.side_effect = RuntimeError("auth rejected")
        gate = UploadGate(client, LiveReloadNotifier(transport), console=console)

        operation = await gate.dispatch(["/assets/a.js"])

        assert operation.status is SyncStatus.FAILED
        assert operation.error == "auth rejected"
        assert operation.notified is False
        assert transport.events == []
        assert "auth rejected" in output.getvalue()
        assert gate.in_flight is None

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_block_next_submit(
        self, transport, console
    ):
        client = AsyncMock()
        client.sync.side_effect = [RuntimeError(), None]
        gate = UploadGate(client, LiveReloadNotifier(transport), console=console)

        first = await gate.submit(["/assets/a.js"])
        second = await gate.submit(["/assets/b.js"])

        assert first.status is SyncStatus.FAILED
        assert first.error == "RuntimeError"
        assert second.status is SyncStatus.SUCCEEDED
        assert transport.events == [{"action": UPLOAD_FINISHED}]

    @pytest.mark.asyncio
    async def test_failure_reports_and_skips_notify(
        self, gate, sync_client, transport, output
    ):
        sync_client.fail_with = "PUT assets/a.js failed (422): value: invalid"

        operation = await gate.submit(["/assets/a.js"])

        assert operation.status is SyncStatus.FAILED
        assert operation.error == "PUT assets/a.js failed (422): value: invalid"
        assert operation.notified is False
        assert transport.events == []
        assert "failed (422)" in output.getvalue()

    @pytest.mark.asyncio
    async def test_failure_does_not_block_next_submit(
        self, gate, sync_client, transport
    ):
        sync_client.fail_with = "network down"
        first = await gate.submit(["/assets/a.js"])
        sync_client.fail_with = None

        second = await gate.submit(["/assets/b.js"])

        assert first.status is SyncStatus.FAILED
        assert second.status is SyncStatus.SUCCEEDED
        assert transport.events == [{"action": UPLOAD_FINISHED}]
        assert gate.in_flight is None


class TestSerialization:
    @pytest.mark.asyncio
    async def test_concurrent_submits_never_overlap(self, gate, sync_client):
        sync_client.release = asyncio.Event()

        first = asyncio.ensure_future(gate.submit(["/assets/a.js"]))
        second = asyncio.ensure_future(gate.submit(["/assets/b.js"]))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert sync_client.calls == [["/assets/a.js"]]
        assert gate.in_flight.files == ("/assets/a.js",)

        sync_client.release.set()
        await asyncio.gather(first, second)

        assert sync_client.calls == [["/assets/a.js"], ["/assets/b.js"]]
        assert sync_client.max_active == 1

    @pytest.mark.asyncio
    async def test_second_waits_for_failed_first(self, gate, sync_client):
        sync_client.release = asyncio.Event()
        sync_client.fail_with = "boom"

        first = asyncio.ensure_future(gate.submit(["/assets/a.js"]))
        second = asyncio.ensure_future(gate.submit(["/assets/b.js"]))
        await asyncio.sleep(0)

        assert len(sync_client.calls) == 1

        sync_client.release.set()
        results = await asyncio.gather(first, second)

        assert [r.status for r in results] == [SyncStatus.FAILED, SyncStatus.FAILED]
        assert sync_client.max_active == 1

    @pytest.mark.asyncio
    async def test_arrival_order_kept(self, gate, sync_client):
        batches = [[f"/assets/{n}.js"] for n in range(5)]

        tasks = [gate.dispatch(batch) for batch in batches]
        await gate.drain()

        assert sync_client.calls == batches
        assert all(task.done() for task in tasks)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_returns_operation(self, gate, transport):
        task = gate.dispatch(["/assets/a.js"])

        operation = await task

        assert operation.status is SyncStatus.SUCCEEDED
        assert transport.events == [{"action": UPLOAD_FINISHED}]

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, gate):
        await gate.drain()
