from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = ROOT / "src"
DIST_DIR = ROOT / "dist"
CONFIG_FILE = ROOT / "theme.config.json"
LAYOUT_TEMPLATE = "/layout/theme.liquid"
