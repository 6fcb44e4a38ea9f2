from __future__ import annotations

import asyncio
from typing import Optional

from rich.console import Console

from assets import AssetClassifier
from compiler import Compiler
from config import Settings
from notify import LiveReloadNotifier, LiveReloadTransport, Transport
from router import DONE, INVALIDATED, BuildEventRouter
from theme_api import ShopifyClient
from upload import SyncClient, SyncOperation, UploadGate


class DevSession:
    """Owns one dev server's build-to-upload pipeline."""

    def __init__(
        self,
        settings: Settings,
        console: Console | None = None,
        compiler: Compiler | None = None,
        client: SyncClient | None = None,
        transport: Transport | None = None,
    ):
        self.settings = settings
        self.console = console or Console()
        self.compiler = compiler or Compiler(
            settings.build_command, settings.dist_dir, cwd=settings.root
        )
        self.client = client or ShopifyClient(
            store=settings.store,
            theme_id=settings.theme_id,
            access_token=settings.access_token,
            dist_dir=settings.dist_dir,
            api_version=settings.api_version,
        )
        self.notifier = LiveReloadNotifier(transport or LiveReloadTransport())
        self.gate = UploadGate(self.client, self.notifier, console=self.console)
        self.classifier = AssetClassifier(settings.dist_dir)
        self.router = BuildEventRouter(
            self.classifier,
            self.gate,
            console=self.console,
            preview_url=settings.preview_url,
        )

    def rebuild(self) -> Optional["asyncio.Task[SyncOperation]"]:
        """Run one build cycle and schedule its upload."""
        self.router.handle(INVALIDATED)
        stats = self.compiler.run()
        return self.router.handle(DONE, stats)

    async def aclose(self):
        await self.gate.drain()
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()
