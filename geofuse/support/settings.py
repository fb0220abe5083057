"""
Settings artifact: the merge policy plus per-entity overrides, saved as JSON.

    {
      "version": 1,
      "mergeConfig": {...},
      "countrySelections": {"Iceland": "discard", ...},
      "manualTranslations": {"ISL": {"name_de": "Island"}, ...}
    }
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..core.constants import SETTINGS_FILE_VERSION
from ..core.models import MergeConfig, MergeConfigError, SettingsError, Choice
from ..utils.files import save_json
from ..utils.time import file_stamp

SETTINGS_FILE_PREFIX = "geojson_fusion_settings"


@dataclass(frozen=True)
class Settings:
    merge_config: MergeConfig = field(default_factory=MergeConfig)
    country_selections: Mapping[str, Choice] = field(default_factory=dict)
    manual_translations: Mapping[str, Mapping[str, str]] = field(default_factory=dict)


def dump_settings(
    config: MergeConfig,
    country_selections: Optional[Mapping[str, Any]] = None,
    manual_translations: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Dict[str, Any]:
    return {
        "version": SETTINGS_FILE_VERSION,
        "mergeConfig": config.to_dict(),
        "countrySelections": {
            name: Choice(choice).value for name, choice in (country_selections or {}).items()
        },
        "manualTranslations": {
            id_value: dict(entry) for id_value, entry in (manual_translations or {}).items()
        },
    }


def load_settings(data: Any) -> Settings:
    """
    Validate and parse a settings payload.

    Raises SettingsError for a wrong version or any section of the wrong
    shape; nothing is applied partially.
    """
    if not isinstance(data, dict):
        raise SettingsError("Invalid settings file format: Not an object.")
    version = data.get("version")
    if version != SETTINGS_FILE_VERSION:
        raise SettingsError(f"Unsupported settings version. Expected {SETTINGS_FILE_VERSION}, found {version}.")

    raw_config = data.get("mergeConfig")
    if not isinstance(raw_config, dict):
        raise SettingsError('Invalid settings: Missing or invalid "mergeConfig".')
    try:
        config = MergeConfig.from_dict(raw_config)
    except MergeConfigError as e:
        raise SettingsError(f'Invalid settings: "mergeConfig" {e}') from e
    config = replace(config, id_property=config.id_property.lower())

    raw_selections = data.get("countrySelections")
    if not isinstance(raw_selections, dict):
        raise SettingsError('Invalid settings: "countrySelections" must be an object.')
    selections: Dict[str, Choice] = {}
    for name, choice in raw_selections.items():
        try:
            selections[str(name)] = Choice(choice)
        except ValueError as e:
            raise SettingsError(f'Invalid settings: country selection {choice!r} for {name!r}') from e

    raw_manual = data.get("manualTranslations")
    if not isinstance(raw_manual, dict):
        raise SettingsError('Invalid settings: "manualTranslations" should be an object.')
    manual: Dict[str, Dict[str, str]] = {}
    for id_value, entry in raw_manual.items():
        if not isinstance(entry, dict):
            raise SettingsError(f'Invalid settings: manual translations for {id_value!r} must be an object.')
        for key, value in entry.items():
            if not isinstance(value, str):
                raise SettingsError(f'Invalid settings: manual translation {id_value}.{key} must be a string.')
        manual[str(id_value)] = {str(k).lower(): v for k, v in entry.items()}

    return Settings(merge_config=config, country_selections=selections, manual_translations=manual)


def settings_file_name(stamp: Optional[str] = None) -> str:
    return f"{SETTINGS_FILE_PREFIX}_{stamp or file_stamp()}.json"


def save_settings_file(
    path: Union[str, Path],
    config: MergeConfig,
    country_selections: Optional[Mapping[str, Any]] = None,
    manual_translations: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Path:
    """Write the artifact; a directory path gets a timestamped file name."""
    path = Path(path)
    if path.is_dir():
        path = path / settings_file_name()
    save_json(path, dump_settings(config, country_selections, manual_translations))
    return path


def load_settings_file(path: Union[str, Path]) -> Settings:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsError(f"{path.name}: invalid JSON ({e.msg})") from e
    return load_settings(data)
