from __future__ import annotations

import logging
import shutil
import threading
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

_cleaned_snapshot_dirs: set[Path] = set()
_cleanup_lock = threading.Lock()


class ArtifactManager:
    """Creates and manages framework artifact files."""

    def __init__(self, root: str | Path = "artifacts", snapshot_dir: str | Path = "html_snapshots") -> None:
        self.root = Path(root)
        self.snapshot_root = Path(snapshot_dir)

    def _ensure_structure(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.snapshot_root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def timestamp(moment: datetime | None = None) -> str:
        return (moment or datetime.now()).strftime("%Y%m%d_%H%M%S")

    def prepare_snapshot_dir(self) -> Path:
        """Creates the snapshot directory and, once per process, clears old snapshots from it."""

        self._ensure_structure()
        directory = self.snapshot_root.resolve()
        with _cleanup_lock:
            if directory not in _cleaned_snapshot_dirs:
                removed = self._remove_snapshots(directory)
                _cleaned_snapshot_dirs.add(directory)
                logger.info("Removed %d previous snapshot(s) from %s", removed, directory)
        return self.snapshot_root

    def write_snapshot(self, content: str, moment: datetime | None = None) -> Path:
        """Writes ``snapshot_<YYYYMMDD_HHMMSS>.html`` and returns its path.

        Names resolve to the second: a second snapshot in the same second
        overwrites the first, and an audit record written for the earlier
        attempt then points at the later content.
        """

        self.prepare_snapshot_dir()
        path = self.snapshot_root / f"snapshot_{self.timestamp(moment)}.html"
        path.write_text(content, encoding="utf-8")
        logger.info("Saved HTML snapshot to %s", path.resolve())
        return path

    def reset(self) -> Path:
        self._ensure_structure()
        for directory in (self.root, self.snapshot_root):
            if directory.exists():
                self._clear_directory(directory)
        self._ensure_structure()
        return self.root

    @staticmethod
    def _remove_snapshots(directory: Path) -> int:
        removed = 0
        for path in directory.rglob("*.html"):
            if path.is_file():
                path.unlink()
                removed += 1
        return removed

    @staticmethod
    def _clear_directory(directory: Path) -> None:
        for child in directory.iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            elif child.is_file() and child.name != ".gitkeep":
                child.unlink()
