"""Serialized theme uploads.

Every completed build gets its own sync attempt. Attempts run one at a
time in arrival order so partial uploads never interleave on the remote
theme. A failed attempt is reported and left behind; the next one still
runs.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from rich.console import Console

from notify import UPLOAD_FINISHED, LiveReloadNotifier
from paths import LAYOUT_TEMPLATE

logger = logging.getLogger(__name__)


class SyncClient(Protocol):
    async def sync(self, upload: Iterable[str] = (), remove: Iterable[str] = ()): ...


class SyncStatus(enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class SyncOperation:
    files: tuple[str, ...]
    status: SyncStatus = SyncStatus.PENDING
    error: str | None = None
    notified: bool = False


def is_suppressed(files: Iterable[str]) -> bool:
    """theme.liquid alone is re-uploaded whenever styles or scripts change."""
    return list(files) == [LAYOUT_TEMPLATE]


class UploadGate:
    def __init__(
        self,
        client: SyncClient,
        notifier: LiveReloadNotifier,
        console: Console | None = None,
    ):
        self.client = client
        self.notifier = notifier
        self.console = console or Console()
        self.in_flight: SyncOperation | None = None
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, files: Iterable[str]) -> SyncOperation:
        """Sync files to the theme once no other sync is running."""
        operation = SyncOperation(files=tuple(files))
        if not operation.files:
            operation.status = SyncStatus.SUCCEEDED
            return operation

        async with self._lock:
            self.in_flight = operation
            try:
                await self._run(operation)
            finally:
                self.in_flight = None
        return operation

    async def _run(self, operation: SyncOperation):
        self.console.print("[cyan]Uploading files to Shopify...[/cyan]")
        self.console.print()
        for path in operation.files:
            self.console.print(f"  {path}")
        self.console.print()

        try:
            await self.client.sync(upload=list(operation.files))
        except Exception as exc:
            logger.debug("Sync failed for %s", operation.files, exc_info=True)
            operation.status = SyncStatus.FAILED
            operation.error = str(exc) or type(exc).__name__
            self.console.print(operation.error, style="red", markup=False)
            return

        operation.status = SyncStatus.SUCCEEDED
        # theme.liquid alone is a side effect of other uploads, stay quiet
        if is_suppressed(operation.files):
            return

        self.notifier.notify(UPLOAD_FINISHED)
        operation.notified = True
        self.console.print("[green]Files uploaded successfully![/green]")
        self.console.print()

    def dispatch(self, files: Iterable[str]) -> asyncio.Task:
        """Schedule submit() on the running loop."""
        task = asyncio.ensure_future(self.submit(files))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        """Wait for every dispatched sync to finish."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
