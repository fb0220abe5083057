"""
Derived session state.

Each function recomputes one piece of state from the analyses and the
current configuration; FusionSession calls them in a fixed order after
every load or config change. All of them are pure.
"""

from typing import Dict, List, Mapping, Optional

from .constants import (
    RE_STRUCTURAL_KEY, DEFAULT_ID_PROPERTY, DEFAULT_ID_PREFERENCE, EDITABLE_ID_KEYS,
)
from .models import AnalysisResult, MergeConfig, Source, Choice, EntityClass


def default_id_property(
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
    current: Optional[str],
) -> str:
    """
    Id property to use after the analyses changed.

    With both analyses, keep `current` if it is a potential id key of both;
    otherwise prefer iso_a3, admin, id among the common keys, then the first
    common key, then A's or B's first key. With neither analysis, reset to
    the default. With only one, nothing changes yet.
    """
    current = (current or "").lower()
    if analysis_a is None and analysis_b is None:
        return DEFAULT_ID_PROPERTY
    if analysis_a is None or analysis_b is None:
        return current

    potential_a = list(analysis_a.potential_id_keys)
    potential_b = list(analysis_b.potential_id_keys)
    common = [k for k in potential_a if k in potential_b]

    if common:
        if current in common:
            return current
        for preferred in DEFAULT_ID_PREFERENCE:
            if preferred in common:
                return preferred
        return common[0].lower()
    if potential_a and current not in potential_a:
        return potential_a[0].lower()
    if potential_b and current not in potential_b:
        return potential_b[0].lower()
    return current


def core_id_keys(
    id_property: str,
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
) -> set:
    keys = set()
    if id_property:
        keys.add(id_property.lower())
    for analysis in (analysis_a, analysis_b):
        if analysis is None:
            continue
        if analysis.country_name_property:
            keys.add(analysis.country_name_property.lower())
        if analysis.sovereignty_property_key:
            keys.add(analysis.sovereignty_property_key.lower())
    return keys


def other_property_candidates(
    config: MergeConfig,
    entity_class: EntityClass,
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
) -> List[str]:
    """Non-structural keys the other-properties rule of one entity class can carry, sorted."""
    pref = config.other_properties_for(entity_class)
    if pref.primary is Source.DISCARD:
        return []
    if pref.primary is Source.FILE_A:
        primary, secondary = analysis_a, analysis_b
    else:
        primary, secondary = analysis_b, analysis_a

    keys = set(primary.common_properties if primary else [])
    if pref.additive and secondary:
        keys.update(secondary.common_properties)
    excluded = core_id_keys(config.id_property, analysis_a, analysis_b)
    return sorted(k for k in keys if not RE_STRUCTURAL_KEY.match(k) and k not in excluded)


def default_selected_properties(
    config: MergeConfig,
    entity_class: EntityClass,
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
) -> Dict[str, bool]:
    """
    Allow-list for one entity class: every candidate key selected unless the
    user explicitly turned it off. Keys that are no longer candidates drop out.
    """
    current = config.other_properties_for(entity_class).selected_properties
    return {
        key: current.get(key) is not False
        for key in other_property_candidates(config, entity_class, analysis_a, analysis_b)
    }


def editable_translation_keys(
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
) -> List[str]:
    """
    Keys offered in the manual translation editor.

    Id keys first (iso_a3, sov_a3, adm0_a3), then the detected name keys,
    then the rest alphabetically.
    """
    keys = set()
    name_keys = set()
    for analysis in (analysis_a, analysis_b):
        if analysis is None:
            continue
        for key in analysis.common_properties:
            if RE_STRUCTURAL_KEY.match(key) or key in EDITABLE_ID_KEYS:
                keys.add(key)
        if analysis.country_name_property:
            keys.add(analysis.country_name_property)
            name_keys.add(analysis.country_name_property)

    def sort_key(k: str):
        if k in EDITABLE_ID_KEYS:
            return (0, EDITABLE_ID_KEYS.index(k), k)
        if k in name_keys:
            return (1, 0, k)
        return (2, 0, k)

    return sorted(keys, key=sort_key)


def default_country_selections(
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
    current: Mapping[str, Choice],
) -> Dict[str, Choice]:
    """
    Drop selections for names gone from both analyses; names present in one
    source only default to that source. Existing choices are kept.
    Needs both analyses; otherwise `current` is returned as is.
    """
    out = dict(current)
    if analysis_a is None or analysis_b is None:
        return out
    names_a = {cd.name for cd in analysis_a.country_details}
    names_b = {cd.name for cd in analysis_b.country_details}
    all_names = names_a | names_b

    for name in list(out):
        if name not in all_names:
            del out[name]
    for name in sorted(all_names):
        if name in out:
            continue
        if name in names_a and name not in names_b:
            out[name] = Choice.A
        elif name in names_b and name not in names_a:
            out[name] = Choice.B
    return out


def has_mergeable_content(config: MergeConfig) -> bool:
    """True when at least one characteristic would contribute properties."""
    for entity_class in EntityClass:
        if config.translations_for(entity_class).primary is not Source.DISCARD:
            return True
        others = config.other_properties_for(entity_class)
        if others.primary is not Source.DISCARD and any(others.selected_properties.values()):
            return True
    return False
