"""
Immutable MergeConfig updates.

Every update is addressed by a (characteristic, entity class, sub-field)
path out of a closed set and returns a new config; the old one is left
untouched. Selections and manual translations get the same treatment and
come back as read-only mappings.
"""

from dataclasses import replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .constants import MIN_GEOMETRY_PRECISION, MAX_GEOMETRY_PRECISION
from .models import (
    MergeConfig, MergeConfigError, Source, Choice, EntityClass, Characteristic,
    TranslationPreference, OtherPropertiesPreference,
)


class SubField(str, Enum):
    PRIMARY = "primary"
    ADDITIVE = "additive"
    TOGGLE_SELECTED_PROPERTY = "toggleSelectedProperty"
    SET_SELECTED_PROPERTIES = "setSelectedPropertiesMap"


VALID_PATHS = frozenset(
    [(Characteristic.TRANSLATIONS, e, f) for e in EntityClass for f in (SubField.PRIMARY, SubField.ADDITIVE)]
    + [(Characteristic.OTHER_PROPERTIES, e, f) for e in EntityClass for f in SubField]
)


def set_id_property(config: MergeConfig, id_property: str) -> MergeConfig:
    return replace(config, id_property=(id_property or "").lower())


def set_geometry_precision(config: MergeConfig, precision: int) -> MergeConfig:
    """Clamp to [0, 10]."""
    clamped = max(MIN_GEOMETRY_PRECISION, min(MAX_GEOMETRY_PRECISION, int(precision)))
    return replace(config, geometry_precision=clamped)


def _with_translation(config: MergeConfig, entity_class: EntityClass, pref: TranslationPreference) -> MergeConfig:
    ts = replace(config.translations_source, **{entity_class.value: pref})
    return replace(config, translations_source=ts)


def _with_other(config: MergeConfig, entity_class: EntityClass, pref: OtherPropertiesPreference) -> MergeConfig:
    ops = replace(config.other_properties_source, **{entity_class.value: pref})
    return replace(config, other_properties_source=ops)


def set_translations_primary(config: MergeConfig, entity_class: EntityClass, primary: Source) -> MergeConfig:
    """
    Recognized entities must keep their translations, so only fileA/fileB
    are accepted there. Choosing discard for dependents turns additive off.
    """
    entity_class, primary = EntityClass(entity_class), Source(primary)
    if entity_class is EntityClass.RECOGNIZED and primary is Source.DISCARD:
        raise MergeConfigError("translationsSource.recognized cannot be discarded")
    pref = config.translations_for(entity_class)
    additive = False if primary is Source.DISCARD else pref.additive
    return _with_translation(config, entity_class, replace(pref, primary=primary, additive=additive))


def set_translations_additive(config: MergeConfig, entity_class: EntityClass, additive: bool) -> MergeConfig:
    entity_class = EntityClass(entity_class)
    pref = config.translations_for(entity_class)
    if pref.primary is Source.DISCARD:
        return config
    return _with_translation(config, entity_class, replace(pref, additive=bool(additive)))


def set_other_properties_primary(config: MergeConfig, entity_class: EntityClass, primary: Source) -> MergeConfig:
    """Choosing discard turns additive off and clears the allow-list."""
    entity_class, primary = EntityClass(entity_class), Source(primary)
    pref = config.other_properties_for(entity_class)
    if primary is Source.DISCARD:
        new = OtherPropertiesPreference(primary=primary, additive=False, selected_properties={})
    else:
        new = replace(pref, primary=primary)
    return _with_other(config, entity_class, new)


def set_other_properties_additive(config: MergeConfig, entity_class: EntityClass, additive: bool) -> MergeConfig:
    entity_class = EntityClass(entity_class)
    pref = config.other_properties_for(entity_class)
    if pref.primary is Source.DISCARD:
        return config
    return _with_other(config, entity_class, replace(pref, additive=bool(additive)))


def toggle_selected_property(config: MergeConfig, entity_class: EntityClass, key: str, selected: bool) -> MergeConfig:
    entity_class = EntityClass(entity_class)
    pref = config.other_properties_for(entity_class)
    selected_properties = dict(pref.selected_properties)
    selected_properties[key.lower()] = bool(selected)
    return _with_other(config, entity_class, replace(pref, selected_properties=selected_properties))


def set_selected_properties(config: MergeConfig, entity_class: EntityClass, selected: Mapping[str, bool]) -> MergeConfig:
    entity_class = EntityClass(entity_class)
    pref = config.other_properties_for(entity_class)
    return _with_other(config, entity_class, replace(pref, selected_properties={k.lower(): v is True for k, v in selected.items()}))


def apply_update(
    config: MergeConfig,
    characteristic: Union[Characteristic, str],
    entity_class: Union[EntityClass, str],
    sub_field: Union[SubField, str],
    value: Any,
) -> MergeConfig:
    """
    Route one update through its builder.

    Raises MergeConfigError for a path outside VALID_PATHS or a value of
    the wrong kind.
    """
    try:
        path = (Characteristic(characteristic), EntityClass(entity_class), SubField(sub_field))
    except ValueError as e:
        raise MergeConfigError(f"unknown config path: {e}") from e
    if path not in VALID_PATHS:
        raise MergeConfigError(f"unknown config path: {'.'.join(p.value for p in path)}")
    characteristic, entity_class, sub_field = path

    if sub_field is SubField.PRIMARY:
        try:
            source = Source(value)
        except ValueError as e:
            raise MergeConfigError(f"invalid primary {value!r}") from e
        if characteristic is Characteristic.TRANSLATIONS:
            return set_translations_primary(config, entity_class, source)
        return set_other_properties_primary(config, entity_class, source)

    if sub_field is SubField.ADDITIVE:
        if not isinstance(value, bool):
            raise MergeConfigError(f"additive must be a boolean, got {value!r}")
        if characteristic is Characteristic.TRANSLATIONS:
            return set_translations_additive(config, entity_class, value)
        return set_other_properties_additive(config, entity_class, value)

    if sub_field is SubField.TOGGLE_SELECTED_PROPERTY:
        if not isinstance(value, Mapping) or "name" not in value or "selected" not in value:
            raise MergeConfigError("toggleSelectedProperty expects {'name': ..., 'selected': ...}")
        return toggle_selected_property(config, entity_class, str(value["name"]), bool(value["selected"]))

    if not isinstance(value, Mapping):
        raise MergeConfigError("setSelectedPropertiesMap expects a mapping")
    return set_selected_properties(config, entity_class, value)


def set_country_selection(
    selections: Mapping[str, Choice],
    name: str,
    choice: Optional[Union[Choice, str]],
) -> Mapping[str, Choice]:
    """None clears the entry, returning the entity to default resolution."""
    out: Dict[str, Choice] = dict(selections)
    if choice is None:
        out.pop(name, None)
    else:
        out[name] = Choice(choice)
    return MappingProxyType(out)


def set_country_selections(
    selections: Mapping[str, Choice],
    updates: Mapping[str, Optional[Union[Choice, str]]],
) -> Mapping[str, Choice]:
    out: Dict[str, Choice] = dict(selections)
    for name, choice in updates.items():
        if choice is None:
            out.pop(name, None)
        else:
            out[name] = Choice(choice)
    return MappingProxyType(out)


def set_manual_translation(
    translations: Mapping[str, Mapping[str, str]],
    id_value: str,
    key: str,
    value: str,
) -> Mapping[str, Mapping[str, str]]:
    """Keys are stored lowercased; an empty value is stored and overlaid as is."""
    out = {k: MappingProxyType(dict(v)) for k, v in translations.items()}
    entry = dict(out.get(id_value, {}))
    entry[key.lower()] = value
    out[id_value] = MappingProxyType(entry)
    return MappingProxyType(out)


def merge_manual_translations(
    translations: Mapping[str, Mapping[str, str]],
    additions: Mapping[str, Mapping[str, str]],
) -> Mapping[str, Mapping[str, str]]:
    out = {k: dict(v) for k, v in translations.items()}
    for id_value, entry in additions.items():
        target = out.setdefault(id_value, {})
        for key, value in entry.items():
            target[key.lower()] = value
    return MappingProxyType({k: MappingProxyType(v) for k, v in out.items()})
