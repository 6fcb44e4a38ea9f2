from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from paths import CONFIG_FILE, DIST_DIR, ROOT, SRC_DIR

DEFAULT_PORT = 3000
DEFAULT_API_VERSION = "2024-01"
DEFAULT_BUILD_COMMAND = ["npx", "webpack", "--json"]

ENV_OVERRIDES = {
    "SHOPIFY_STORE": "store",
    "SHOPIFY_THEME_ID": "theme_id",
    "SHOPIFY_ACCESS_TOKEN": "access_token",
}


class ConfigError(ValueError):
    """Raised when the dev server cannot be configured."""


@dataclass
class Settings:
    store: str
    theme_id: str
    access_token: str = ""
    api_version: str = DEFAULT_API_VERSION
    port: int = DEFAULT_PORT
    root: Path = ROOT
    src_dir: Path = SRC_DIR
    dist_dir: Path = DIST_DIR
    build_command: list[str] = field(
        default_factory=lambda: list(DEFAULT_BUILD_COMMAND)
    )

    @property
    def shop_url(self) -> str:
        return f"https://{self.store}"

    @property
    def preview_url(self) -> str:
        return f"{self.shop_url}?preview_theme_id={self.theme_id}"


def read_config_file(path: Path) -> dict:
    """Read the JSON config file, return {} if missing."""
    if not path.exists():
        return {}
    try:
        loaded = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return loaded


def load_settings(
    environment: str = "development",
    config_file: Path = CONFIG_FILE,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build settings from the config file, overridden by env vars."""
    if environ is None:
        environ = os.environ

    raw = read_config_file(config_file)
    shopify = raw.get("shopify", {}).get(environment, {})
    if not isinstance(shopify, dict):
        raise ConfigError(f"shopify.{environment} must be an object")

    values = {
        "store": str(shopify.get("store", "")),
        "theme_id": str(shopify.get("theme_id", "")),
        "access_token": str(shopify.get("access_token", "")),
    }
    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[key] = environ[env_name]

    missing = [key for key in ("store", "theme_id") if not values[key]]
    if missing:
        raise ConfigError(
            f"Missing {', '.join(missing)} for environment '{environment}'"
        )

    port = environ.get("THEME_DEV_PORT") or raw.get("port", DEFAULT_PORT)
    try:
        port = int(port)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid port: {port!r}") from exc

    build_command = raw.get("build", DEFAULT_BUILD_COMMAND)
    if isinstance(build_command, str):
        build_command = build_command.split()

    return Settings(
        store=values["store"],
        theme_id=values["theme_id"],
        access_token=values["access_token"],
        api_version=str(shopify.get("api_version", DEFAULT_API_VERSION)),
        port=port,
        root=config_file.parent,
        src_dir=config_file.parent / raw.get("src", "src"),
        dist_dir=config_file.parent / raw.get("dist", "dist"),
        build_command=list(build_command),
    )
