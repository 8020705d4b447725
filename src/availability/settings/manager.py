"""
Settings persistence.

`settings.json` in the data directory is the base layer. Every field can be
overridden by an `AVAILABILITY_<SECTION>_<FIELD>` environment variable, which
always wins over the file. The merged result is validated and written back,
so a first start leaves a complete file behind.
"""

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from availability.settings.models import AppModel
from availability.utils import data_dir_path

ENV_PREFIX = "AVAILABILITY"


def _coerce(raw: str, current: Any) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(current, bool):
        return raw.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, (list, dict)):
        return json.loads(raw)
    return raw


def apply_environment(values: dict[str, Any], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Return a copy of `values` with any matching environment variable applied."""

    merged: dict[str, Any] = {}
    for key, current in values.items():
        name = f"{prefix}_{key}".upper()
        if isinstance(current, dict):
            merged[key] = apply_environment(current, name)
            continue

        raw = os.getenv(name)
        merged[key] = _coerce(raw, current) if raw else current
    return merged


class SettingsManager:
    """Loads, validates and saves the application settings."""

    def __init__(self, settings_file: Path | None = None, prefix: str = ENV_PREFIX):
        self.settings_file = settings_file or data_dir_path / "settings.json"
        self.prefix = prefix
        self.settings = self.load()

    def load(self, values: dict[str, Any] | None = None) -> AppModel:
        """
        Build the settings from `values`, or from the settings file (defaults
        when it does not exist yet), with environment overrides on top.
        """

        if values is None:
            values = self._read_file()

        try:
            base = json.loads(AppModel.model_validate(values).model_dump_json())
            self.settings = AppModel.model_validate(apply_environment(base, self.prefix))
        except ValidationError as e:
            logger.error(f"Settings validation failed:\n{format_validation_error(e)}")
            raise

        self.save()
        return self.settings

    def save(self):
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        self.settings_file.write_text(self.settings.model_dump_json(indent=4), encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self.settings_file.exists():
            logger.info(f"No settings at {self.settings_file}, writing defaults")
            return {}

        try:
            return json.loads(self.settings_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing settings file {self.settings_file}: {e}")
            raise


def format_validation_error(e: ValidationError) -> str:
    """One bullet per invalid field, addressed by its dotted path."""
    return "\n".join(
        f"• {'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in e.errors()
    )


settings_manager = SettingsManager()
