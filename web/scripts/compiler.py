"""Run the theme build command and read its JSON report."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    name: str
    emitted: bool
    exists_at: Path | None = None


@dataclass
class BuildStats:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    assets: dict[str, Artifact] = field(default_factory=dict)


def diagnostic_text(entry: Any) -> str:
    """Diagnostics may be plain strings or objects carrying a message."""
    if isinstance(entry, dict):
        return str(entry.get("message", entry))
    return str(entry)


def parse_diagnostics(raw: Any) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        raise ValueError(f"diagnostics must be a list: {raw!r}")
    return [diagnostic_text(entry) for entry in raw]


def parse_artifact(name: str, raw: Any, dist_dir: Path) -> Artifact:
    if not isinstance(raw, dict):
        raise ValueError(f"asset {name!r} must be an object: {raw!r}")
    exists_at = raw.get("existsAt")
    if exists_at is not None and not isinstance(exists_at, str):
        raise ValueError(f"asset {name!r} has a non-path existsAt: {exists_at!r}")
    path = Path(exists_at) if exists_at else dist_dir / name
    return Artifact(name=name, emitted=bool(raw.get("emitted")), exists_at=path)


def parse_written_files(payload: list, dist_dir: Path) -> dict[str, Artifact]:
    assets = {}
    for rel in payload:
        if not isinstance(rel, str):
            raise ValueError(f"written file must be a path: {rel!r}")
        rel = rel.lstrip("/")
        assets[rel] = Artifact(name=rel, emitted=True, exists_at=dist_dir / rel)
    return assets


def parse_assets(raw_assets: Any, dist_dir: Path) -> dict[str, Artifact]:
    if not raw_assets:
        return {}
    if isinstance(raw_assets, dict):
        return {
            name: parse_artifact(name, raw, dist_dir)
            for name, raw in raw_assets.items()
        }
    if not isinstance(raw_assets, list):
        raise ValueError(f"assets must be an object or a list: {raw_assets!r}")

    assets = {}
    for raw in raw_assets:
        if not isinstance(raw, dict):
            raise ValueError(f"asset entry must be an object: {raw!r}")
        name = raw.get("name")
        if name and not isinstance(name, str):
            raise ValueError(f"asset name must be a string: {name!r}")
        if name:
            assets[name] = parse_artifact(name, raw, dist_dir)
    return assets


def parse_stats(payload: Any, dist_dir: Path) -> BuildStats:
    """Turn a build report into BuildStats.

    A plain list is read as dist-relative paths written by this build.
    Otherwise the report is an object with errors, warnings and assets,
    where assets is either keyed by name or a list of named entries.
    A report of any other shape becomes a single compile error.
    """
    try:
        if isinstance(payload, list):
            return BuildStats(assets=parse_written_files(payload, dist_dir))
        if not isinstance(payload, dict):
            raise ValueError(repr(payload))
        return BuildStats(
            errors=parse_diagnostics(payload.get("errors")),
            warnings=parse_diagnostics(payload.get("warnings")),
            assets=parse_assets(payload.get("assets"), dist_dir),
        )
    except ValueError as exc:
        return BuildStats(errors=[f"Unexpected build report: {exc}"])


class Compiler:
    """Runs the configured build command once per build cycle."""

    def __init__(self, command: list[str], dist_dir: Path, cwd: Path):
        self.command = command
        self.dist_dir = dist_dir
        self.cwd = cwd

    def run(self) -> BuildStats:
        """Run the build, return its stats. Failures become compile errors."""
        logger.debug("Running build: %s", " ".join(self.command))
        try:
            result = subprocess.run(
                self.command, capture_output=True, text=True, cwd=self.cwd
            )
        except OSError as exc:
            return BuildStats(errors=[f"Cannot run build command: {exc}"])

        output = result.stdout.strip()
        if not output:
            if result.returncode != 0:
                message = result.stderr.strip() or (
                    f"Build exited with status {result.returncode}"
                )
                return BuildStats(errors=[message])
            return BuildStats()

        try:
            payload = json.loads(output)
        except json.JSONDecodeError:
            return BuildStats(errors=[f"Unreadable build output:\n{output}"])

        stats = parse_stats(payload, self.dist_dir)
        if result.returncode != 0 and not stats.errors:
            stats.errors.append(
                result.stderr.strip()
                or f"Build exited with status {result.returncode}"
            )
        return stats
