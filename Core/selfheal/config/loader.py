from __future__ import annotations

import json
import os
from pathlib import Path

from selfheal.config.schema import HealingConfig

ENV_OVERRIDES = {
    "HEALING_ORACLE_PROVIDER": ("oracle", "provider"),
    "HEALING_ORACLE_URL": ("oracle", "endpoint"),
    "HEALING_ORACLE_MODEL": ("oracle", "model"),
    "HEALING_ORACLE_API_KEY": ("oracle", "api_key"),
    "HEALING_WAIT_TIMEOUT": ("resolver", "wait_timeout_seconds"),
}


class ConfigLoader:
    """Loads and validates the JSON healing configuration."""

    @staticmethod
    def load(path: str | Path) -> HealingConfig:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return HealingConfig.model_validate(payload)

    @staticmethod
    def from_env(base: HealingConfig | None = None) -> HealingConfig:
        """Overlays HEALING_* environment variables on a base configuration."""

        payload = (base or HealingConfig()).model_dump()
        for variable, (section, field) in ENV_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                payload[section][field] = value
        return HealingConfig.model_validate(payload)
