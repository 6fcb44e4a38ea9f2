"""Shopify theme asset client.

Uploads and removes files of one theme through the Admin Asset API:

    PUT    /admin/api/{version}/themes/{theme_id}/assets.json
    DELETE /admin/api/{version}/themes/{theme_id}/assets.json?asset[key]=...

Text files are sent as ``value``, anything that is not UTF-8 as a base64
``attachment``. The first failing request aborts the batch with SyncError.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Iterable

import httpx

logger = logging.getLogger(__name__)

# Per request; the batch as a whole has no timeout
API_TIMEOUT = 30


class SyncError(Exception):
    """Raised when a theme sync fails."""


def asset_key(path: str) -> str:
    """Map '/assets/a.js' to the theme key 'assets/a.js'."""
    return path.lstrip("/")


def asset_payload(key: str, content: bytes) -> dict:
    try:
        return {"key": key, "value": content.decode("utf-8")}
    except UnicodeDecodeError:
        return {"key": key, "attachment": base64.b64encode(content).decode("ascii")}


def describe_errors(response: httpx.Response) -> str:
    """Pull the error text out of a Shopify error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    errors = body.get("errors", body) if isinstance(body, dict) else body
    if isinstance(errors, dict):
        parts = []
        for field, messages in errors.items():
            if isinstance(messages, list):
                messages = ", ".join(str(m) for m in messages)
            parts.append(f"{field}: {messages}")
        return "; ".join(parts)
    return str(errors)


class ShopifyClient:
    def __init__(
        self,
        store: str,
        theme_id: str,
        access_token: str,
        dist_dir: Path,
        api_version: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.theme_id = theme_id
        self.dist_dir = dist_dir
        self._client = httpx.AsyncClient(
            base_url=f"https://{store}/admin/api/{api_version}",
            headers={"X-Shopify-Access-Token": access_token},
            timeout=API_TIMEOUT,
            transport=transport,
        )

    @property
    def assets_url(self) -> str:
        return f"/themes/{self.theme_id}/assets.json"

    async def sync(self, upload: Iterable[str] = (), remove: Iterable[str] = ()):
        """Upload and remove theme files given as dist-relative paths."""
        uploaded = 0
        for path in upload:
            await self._upload(asset_key(path))
            uploaded += 1

        removed = 0
        for path in remove:
            await self._remove(asset_key(path))
            removed += 1

        logger.info(
            "Synced theme %s: %d uploaded, %d removed",
            self.theme_id,
            uploaded,
            removed,
        )

    async def _upload(self, key: str):
        try:
            content = (self.dist_dir / key).read_bytes()
        except OSError as exc:
            raise SyncError(f"Cannot read {key}: {exc}") from exc

        await self._request(
            "PUT", key, json={"asset": asset_payload(key, content)}
        )
        logger.debug("Uploaded %s", key)

    async def _remove(self, key: str):
        await self._request("DELETE", key, params={"asset[key]": key})
        logger.debug("Removed %s", key)

    async def _request(self, method: str, key: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, self.assets_url, **kwargs)
        except httpx.HTTPError as exc:
            raise SyncError(f"{method} {key} failed: {exc}") from exc

        if response.status_code >= 400:
            raise SyncError(
                f"{method} {key} failed ({response.status_code}): "
                f"{describe_errors(response)}"
            )
        return response

    async def aclose(self):
        await self._client.aclose()
