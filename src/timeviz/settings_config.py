"""
User settings persistence for timeviz (platformdirs + JSON).

Persisted items (schema v1):
- pipeline: PipelineConfig dict without the time range
- display: DisplaySettings dict

Behavior:
- If the settings file is missing or unreadable -> defaults are used
- Stored dicts are deep-merged over the defaults, so keys added in newer
  versions keep their default values
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown top-level keys are ignored with warnings

Design:
- SettingsData dataclass holds JSON-friendly data
- Settings manager provides explicit API for load/save/reset
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from timeviz.state import DisplaySettings, PipelineConfig
from timeviz.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

APP_NAME = "timeviz"
SETTINGS_FILENAME = "settings.json"


def _default_pipeline_dict() -> Dict[str, Any]:
    return PipelineConfig().to_dict()


def _default_display_dict() -> Dict[str, Any]:
    return DisplaySettings().to_dict()


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge override into a copy of base.

    Nested dicts merge key by key; any other value in override replaces the
    base value.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


@dataclass
class SettingsData:
    """
    JSON-serializable settings payload.

    Schema v1:
    - pipeline: Dict[str, Any] - PipelineConfig.to_dict() without time_range
    - display: Dict[str, Any] - DisplaySettings.to_dict()
    """
    schema_version: int = SCHEMA_VERSION
    pipeline: Dict[str, Any] = field(default_factory=_default_pipeline_dict)
    display: Dict[str, Any] = field(default_factory=_default_display_dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "pipeline": self.pipeline,
            "display": self.display,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "SettingsData":
        """
        Tolerant loader:
        - ignores unknown keys
        - merges partially missing values over defaults
        """
        schema_version = int(d.get("schema_version", -1))

        pipeline = _default_pipeline_dict()
        pipeline_raw = d.get("pipeline")
        if isinstance(pipeline_raw, dict):
            pipeline = deep_merge(pipeline, pipeline_raw)
        elif pipeline_raw is not None:
            logger.warning("pipeline is not a dict, using defaults")
        # The time range depends on the loaded data; never restore it.
        pipeline.pop("time_range", None)

        display = _default_display_dict()
        display_raw = d.get("display")
        if isinstance(display_raw, dict):
            display = deep_merge(display, display_raw)
        elif display_raw is not None:
            logger.warning("display is not a dict, using defaults")

        known_keys = {"schema_version", "pipeline", "display"}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in settings, ignoring")

        return cls(schema_version=schema_version, pipeline=pipeline, display=display)


class Settings:
    """
    Manager for loading/saving SettingsData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[SettingsData] = None):
        self.path = path
        self.data = data if data is not None else SettingsData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = APP_NAME,
        filename: str = SETTINGS_FILENAME,
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user settings path.

        macOS:   ~/Library/Application Support/timeviz/settings.json
        Linux:   ~/.config/timeviz/settings.json
        Windows: %APPDATA%\\timeviz\\settings.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = APP_NAME,
        filename: str = SETTINGS_FILENAME,
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
    ) -> "Settings":
        """
        Load settings from disk. Never raises.

        If the file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = SettingsData(schema_version=schema_version)

        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(parsed, dict):
                logger.warning(f"Settings file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = SettingsData.from_json_dict(parsed)
            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Settings schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    return cls(path=path, data=default_data)
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)
        except FileNotFoundError:
            logger.debug(f"Settings file not found at {path}, using defaults")
            return cls(path=path, data=default_data)
        except json.JSONDecodeError as e:
            logger.warning(f"Settings file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        except Exception as e:
            logger.warning(f"Error loading settings from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write settings to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved settings to {self.path}")
        except Exception as e:
            logger.error(f"Error saving settings to {self.path}: {e}")
            raise

    def reset(self) -> SettingsData:
        """Delete the settings file and return to defaults."""
        try:
            self.path.unlink()
            logger.info(f"Removed settings file {self.path}")
        except FileNotFoundError:
            pass
        self.data = SettingsData(schema_version=self.data.schema_version)
        return self.data

    def exists(self) -> bool:
        """True if settings have been saved before."""
        return self.path.is_file()

    def get_pipeline_config(self) -> PipelineConfig:
        """Get PipelineConfig from settings (defaults if the stored dict is unusable)."""
        try:
            return PipelineConfig.from_dict(self.data.pipeline)
        except Exception as e:
            logger.warning(f"Error deserializing PipelineConfig from settings: {e}")
            return PipelineConfig()

    def set_pipeline_config(self, config: PipelineConfig) -> None:
        """Store config; the time range is not persisted."""
        d = config.to_dict()
        d.pop("time_range", None)
        self.data.pipeline = d

    def get_display_settings(self) -> DisplaySettings:
        try:
            return DisplaySettings.from_dict(self.data.display)
        except Exception as e:
            logger.warning(f"Error deserializing DisplaySettings from settings: {e}")
            return DisplaySettings()

    def set_display_settings(self, display: DisplaySettings) -> None:
        self.data.display = display.to_dict()
