from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from compiler import Artifact

logger = logging.getLogger(__name__)


class AssetClassifier:
    """Select the build artifacts that should be uploaded."""

    def __init__(self, dist_dir: Path):
        self.dist_dir = Path(os.path.abspath(dist_dir))
        self.real_dist_dir = dist_dir.resolve()

    def relative_path(self, path: Path) -> str | None:
        """Return '/'-prefixed dist-relative path, None if outside dist.

        The path is matched as written first so symlinked files in dist
        keep their dist location; resolved paths are the fallback.
        """
        candidates = (
            (Path(os.path.abspath(path)), self.dist_dir),
            (path.resolve(), self.real_dist_dir),
        )
        for candidate, root in candidates:
            try:
                rel = candidate.relative_to(root)
            except ValueError:
                continue
            return "/" + rel.as_posix()
        return None

    def classify(self, assets: Mapping[str, Artifact]) -> list[str]:
        """Return dist-relative paths of emitted artifacts present on disk."""
        files = []
        for name, asset in assets.items():
            if not asset.emitted or asset.exists_at is None:
                continue
            # Emitted is reported before some writes land, so check the disk.
            if not asset.exists_at.is_file():
                continue
            rel = self.relative_path(asset.exists_at)
            if rel is None:
                logger.debug("Skipping %s outside %s", name, self.dist_dir)
                continue
            files.append(rel)
        return files
