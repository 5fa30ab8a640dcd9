from __future__ import annotations

from pathlib import Path

import pytest

from selfheal.config.loader import ConfigLoader
from selfheal.logging.artifacts import ArtifactManager

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "healing.json"


@pytest.fixture()
def healing_config(tmp_path):
    config = ConfigLoader.load(CONFIG_PATH)
    return config.model_copy(
        update={
            "artifacts_root": str(tmp_path / "artifacts"),
            "snapshot": config.snapshot.model_copy(update={"output_dir": str(tmp_path / "html_snapshots")}),
            "resolver": config.resolver.model_copy(
                update={"wait_timeout_seconds": 0.05, "poll_interval_seconds": 0.01}
            ),
            "validation": config.validation.model_copy(
                update={"scroll_pause_seconds": 0, "top_reset_pause_seconds": 0}
            ),
        }
    )


@pytest.fixture()
def artifact_manager(healing_config):
    return ArtifactManager(healing_config.artifacts_root, healing_config.snapshot.output_dir)
