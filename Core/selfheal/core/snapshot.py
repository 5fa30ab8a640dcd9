from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from selfheal.config.schema import SnapshotConfig
from selfheal.core.exceptions import SnapshotCaptureFailed
from selfheal.core.locator import Locator
from selfheal.core.metadata import DocumentSnapshot
from selfheal.logging.artifacts import ArtifactManager
from selfheal.utils.dom_extract import extract_relevant_markup
from selfheal.utils.xpath import StructuralPathGenerator

logger = logging.getLogger(__name__)


class DocumentSnapshotter:
    """Captures page markup annotated with its structural paths, and trims it for the oracle."""

    def __init__(
        self,
        config: SnapshotConfig,
        artifact_manager: ArtifactManager,
        path_generator: StructuralPathGenerator | None = None,
    ) -> None:
        self.config = config
        self.artifact_manager = artifact_manager
        self.path_generator = path_generator or StructuralPathGenerator()

    def capture(self, markup: str) -> DocumentSnapshot:
        captured_at = datetime.now(timezone.utc)
        try:
            document = BeautifulSoup(markup, "html.parser")
            paths = [path for _, path in self.path_generator.generate_all(document) if path]
        except (ParserRejectedMarkup, RecursionError) as exc:
            raise SnapshotCaptureFailed(f"Could not parse page markup: {exc}") from exc

        content = self._header(paths) + markup
        try:
            path = self.artifact_manager.write_snapshot(content, captured_at.astimezone())
        except OSError as exc:
            raise SnapshotCaptureFailed(f"Could not write snapshot: {exc}") from exc
        logger.info("Captured snapshot with %d structural paths", len(paths))
        return DocumentSnapshot(
            markup=markup,
            indexed_paths=paths,
            captured_at=captured_at,
            content=content,
            path=path,
        )

    def trim(self, markup: str, damaged_locators: Sequence[Locator]) -> str:
        return extract_relevant_markup(markup, damaged_locators, limit=self.config.trim_limit)

    def _header(self, paths: list[str]) -> str:
        sample = "\n".join(paths[: self.config.sample_size])
        return (
            "<!-- \n"
            "Generated HTML with all available XPaths\n"
            f"Total XPaths found: {len(paths)}\n"
            "Sample XPaths:\n"
            f"{sample}\n"
            "-->\n"
        )
