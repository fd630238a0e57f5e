from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

from selfhealing.config.schema import HealingConfig

_ENV_FIELDS = {
    "SELF_HEALING_URL": "service_url",
    "SELF_HEALING_TIMEOUT": "request_timeout_seconds",
    "SELF_HEALING_ENABLED": "healing_enabled",
    "SELF_HEALING_ASYNC_REGISTRATION": "async_registration",
    "SELF_HEALING_AUDIT_ROOT": "audit_root",
}


class ConfigLoader:
    """Loads and validates healing configuration from JSON or the environment."""

    @staticmethod
    def load(path: str | Path) -> HealingConfig:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return HealingConfig.model_validate(payload)

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> HealingConfig:
        source = os.environ if environ is None else environ
        payload: dict[str, Any] = {}
        for variable, field_name in _ENV_FIELDS.items():
            value = source.get(variable)
            if value:
                payload[field_name] = value
        return HealingConfig.model_validate(payload)
