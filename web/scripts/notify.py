from __future__ import annotations

import logging
from typing import Protocol

from livereload.handlers import LiveReloadHandler
from tornado.websocket import WebSocketClosedError

logger = logging.getLogger(__name__)

UPLOAD_FINISHED = "shopify_upload_finished"


class Transport(Protocol):
    def publish(self, event: dict) -> int: ...


class LiveReloadTransport:
    """Broadcast events to browsers connected to the livereload socket."""

    def publish(self, event: dict) -> int:
        message = {
            "command": "reload",
            "path": "*",
            "liveCSS": True,
            "liveImg": True,
            **event,
        }
        delivered = 0
        for waiter in list(LiveReloadHandler.waiters):
            try:
                waiter.write_message(message)
            except WebSocketClosedError:
                logger.debug("Dropping closed livereload client")
                LiveReloadHandler.waiters.discard(waiter)
                continue
            delivered += 1
        return delivered


class LiveReloadNotifier:
    def __init__(self, transport: Transport):
        self.transport = transport

    def notify(self, action: str) -> int:
        """Publish action to connected clients, return how many got it."""
        delivered = self.transport.publish({"action": action})
        logger.info("Published %s to %d client(s)", action, delivered)
        return delivered
