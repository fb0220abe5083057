"""
Fusion of two analyzed FeatureCollections.

Per id in the union of both id indexes:

1. country selection override (discard / force A / force B)
2. effective entity class from an arbiter CountryDetail
3. geometry (A first, then B; rounded to the configured precision)
4. "other" properties per otherPropertiesSource, filtered by the allow-list
5. structural (translation / core identifier) properties per translationsSource
6. fallback fill of still unresolved structural keys
7. id assignment
8. manual translation overlay (highest precedence)

Nothing here logs or touches the filesystem; callers surface the MergeReport.
"""

from typing import Dict, Any, List, Mapping, Optional, Set, Tuple

from ..core.constants import (
    RE_STRUCTURAL_KEY, RE_AUTOFILL_KEY, ENGLISH_NAME_KEYS, NO_ID_SENTINEL,
    MIN_GEOMETRY_PRECISION, MAX_GEOMETRY_PRECISION,
    DEFAULT_DATASET_A_NAME, DEFAULT_DATASET_B_NAME, FUSED_NAME_TEMPLATE,
)
from ..core.models import (
    AnalysisResult, CountryDetail, MergeConfig, MergeConfigError, MergeReport,
    Source, Choice, EntityClass,
)
from .normalize import feature_properties, as_text
from .matching import build_feature_index, union_ids, FeatureId
from .names import find_detail
from .geometry import round_geometry


def validate_merge_config(config: MergeConfig) -> str:
    """Return the lowercased id property or raise MergeConfigError."""
    id_property = (config.id_property or "").strip().lower()
    if not id_property or id_property == NO_ID_SENTINEL:
        raise MergeConfigError("A valid feature matching id property is required")
    if not MIN_GEOMETRY_PRECISION <= config.geometry_precision <= MAX_GEOMETRY_PRECISION:
        raise MergeConfigError(
            f"geometryPrecision must be within [{MIN_GEOMETRY_PRECISION}, {MAX_GEOMETRY_PRECISION}], "
            f"got {config.geometry_precision}"
        )
    return id_property


def fill_keys(analysis_a: Optional[AnalysisResult], analysis_b: Optional[AnalysisResult]) -> List[str]:
    """Name-like keys eligible for the fallback fill: pattern matches plus each name property."""
    keys: Dict[str, None] = {}
    for analysis in (analysis_a, analysis_b):
        if analysis is None:
            continue
        for key in analysis.common_properties:
            if RE_STRUCTURAL_KEY.match(key):
                keys[key] = None
    for analysis in (analysis_a, analysis_b):
        if analysis is not None and analysis.country_name_property:
            keys[analysis.country_name_property] = None
    return list(keys)


def structural_keys(
    id_property: str,
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
) -> List[str]:
    """
    Every key governed by translationsSource.

    idProperty, each analysis' name and sovereignty keys, and every common
    property matching the structural name pattern.
    """
    keys: Dict[str, None] = {id_property: None}
    for analysis in (analysis_a, analysis_b):
        if analysis is None:
            continue
        if analysis.country_name_property:
            keys[analysis.country_name_property] = None
        if analysis.sovereignty_property_key:
            keys[analysis.sovereignty_property_key] = None
    for key in fill_keys(analysis_a, analysis_b):
        keys[key] = None
    return list(keys)


def _pick(primary: Source, props_a: Dict[str, Any], props_b: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """(primary, secondary) property maps for a primary choice; discard reads like fileB."""
    if primary is Source.FILE_A:
        return props_a, props_b
    return props_b, props_a


def _effective_primary(primary: Source, has_a: bool, has_b: bool) -> Source:
    # a lone surviving source is primary whatever the configuration says
    if primary is Source.DISCARD:
        return primary
    if has_a and not has_b:
        return Source.FILE_A
    if has_b and not has_a:
        return Source.FILE_B
    return primary


def _combine(primary: Mapping[str, Any], secondary: Mapping[str, Any], additive: bool) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if additive:
        out.update(secondary)
    out.update(primary)
    return out


def select_arbiter(
    dependent_primary: Source,
    detail_a: Optional[CountryDetail],
    detail_b: Optional[CountryDetail],
) -> Optional[CountryDetail]:
    """
    The CountryDetail that decides recognized vs dependent rules.

    The detail from the source configured as primary for dependent "other"
    properties wins; else whichever side says dependency; else any.
    """
    if dependent_primary is Source.FILE_A and detail_a is not None:
        return detail_a
    if dependent_primary is Source.FILE_B and detail_b is not None:
        return detail_b
    if detail_a is not None and detail_a.is_dependency:
        return detail_a
    if detail_b is not None and detail_b.is_dependency:
        return detail_b
    return detail_a or detail_b


def definitive_name(
    props_a: Dict[str, Any],
    props_b: Dict[str, Any],
    has_a: bool,
    has_b: bool,
    name_key_a: Optional[str],
    name_key_b: Optional[str],
    translations_primary: Source,
    id_property: str,
    fallback_id: FeatureId,
) -> str:
    """
    Name used to backfill missing name-like keys.

    Priority: the lone surviving source's name, the configured primary's
    name, any name, then the id itself.
    """
    name_a = props_a.get(name_key_a) if name_key_a else None
    name_b = props_b.get(name_key_b) if name_key_b else None

    if has_a and not has_b and name_a:
        return as_text(name_a)
    if has_b and not has_a and name_b:
        return as_text(name_b)
    if translations_primary is Source.FILE_A and name_a:
        return as_text(name_a)
    if translations_primary is Source.FILE_B and name_b:
        return as_text(name_b)
    if name_a:
        return as_text(name_a)
    if name_b:
        return as_text(name_b)

    primary, secondary = _pick(translations_primary, props_a, props_b)
    for props, key in ((primary, name_key_a or "name"), (secondary, name_key_b or "name")):
        if props.get(key):
            return as_text(props[key])
    if primary.get(id_property):
        return as_text(primary[id_property])
    return as_text(fallback_id)


def merge_with_report(
    collection_a: Mapping[str, Any],
    collection_b: Mapping[str, Any],
    config: MergeConfig,
    analysis_a: Optional[AnalysisResult] = None,
    analysis_b: Optional[AnalysisResult] = None,
    country_selections: Optional[Mapping[str, Any]] = None,
    manual_translations: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Tuple[Dict[str, Any], MergeReport]:
    """Fuse two collections; also return which ids were kept or silently dropped."""
    id_prop = validate_merge_config(config)
    country_selections = country_selections or {}
    manual_translations = manual_translations or {}

    index_a = build_feature_index(collection_a.get("features") or [], id_prop)
    index_b = build_feature_index(collection_b.get("features") or [], id_prop)

    name_key_a = analysis_a.country_name_property if analysis_a else None
    name_key_b = analysis_b.country_name_property if analysis_b else None
    sov_key_a = analysis_a.sovereignty_property_key if analysis_a else None
    sov_key_b = analysis_b.sovereignty_property_key if analysis_b else None
    details_a = analysis_a.details_by_name() if analysis_a else {}
    details_b = analysis_b.details_by_name() if analysis_b else {}

    translation_keys = structural_keys(id_prop, analysis_a, analysis_b)
    translation_key_set = set(translation_keys)
    fallback_fill_keys = fill_keys(analysis_a, analysis_b)

    report = MergeReport()
    features_out: List[Dict[str, Any]] = []

    for fid in union_ids(index_a, index_b):
        feature_a = index_a.get(fid)
        feature_b = index_b.get(fid)

        # 1. country selection override
        representative = (
            find_detail(details_a, feature_properties(feature_a), name_key_a, sov_key_a)
            or find_detail(details_b, feature_properties(feature_b), name_key_b, sov_key_b)
        )
        if representative is not None:
            selection = country_selections.get(representative.name)
            if selection == Choice.DISCARD:
                report.dropped_by_selection.append(fid)
                continue
            if selection == Choice.A:
                feature_b = None
            elif selection == Choice.B:
                feature_a = None
        if feature_a is None and feature_b is None:
            report.dropped_by_selection.append(fid)
            continue

        props_a = feature_properties(feature_a)
        props_b = feature_properties(feature_b)
        has_a, has_b = feature_a is not None, feature_b is not None

        # 2. effective entity class
        arbiter = select_arbiter(
            config.other_properties_source.dependent.primary,
            find_detail(details_a, props_a, name_key_a, sov_key_a),
            find_detail(details_b, props_b, name_key_b, sov_key_b),
        )
        is_dependent = arbiter is not None and arbiter.is_dependency
        entity_class = EntityClass.DEPENDENT if is_dependent else EntityClass.RECOGNIZED
        translations = config.translations_for(entity_class)
        others = config.other_properties_for(entity_class)

        # 3. geometry
        geometry = None
        if has_a and feature_a.get("geometry"):
            geometry = feature_a["geometry"]
        elif has_b and feature_b.get("geometry"):
            geometry = feature_b["geometry"]
        if not geometry:
            report.dropped_no_geometry.append(fid)
            continue
        geometry = round_geometry(geometry, config.geometry_precision)

        # 4. other properties
        others_primary = _effective_primary(others.primary, has_a, has_b)
        properties: Dict[str, Any] = {}
        if others_primary is not Source.DISCARD:
            primary, secondary = _pick(others_primary, props_a, props_b)
            combined = _combine(primary, secondary, others.additive)
            properties = {k: v for k, v in combined.items() if others.is_selected(k)}

        # 5. structural keys
        trans_primary = _effective_primary(translations.primary, has_a, has_b)
        name_value = definitive_name(
            props_a, props_b, has_a, has_b, name_key_a, name_key_b, trans_primary, id_prop, fid,
        )
        resolved_absent: Set[str] = set()
        if trans_primary is Source.DISCARD:
            for key in translation_keys:
                if key != id_prop:
                    properties.pop(key, None)
        else:
            primary, secondary = _pick(trans_primary, props_a, props_b)
            combined = {
                k: v for k, v in _combine(primary, secondary, translations.additive).items()
                if k in translation_key_set
            }
            for key in translation_keys:
                if key == id_prop:
                    continue
                value = combined.get(key)
                if value is not None:
                    properties[key] = value
                elif translations.additive:
                    if name_value and RE_AUTOFILL_KEY.match(key):
                        properties[key] = name_value
                elif primary.get(key) is None:
                    properties.pop(key, None)
                    resolved_absent.add(key)

        # 6. fallback fill
        fallback = next(
            (properties[k] for k in ENGLISH_NAME_KEYS if isinstance(properties.get(k), str) and properties[k]),
            name_value,
        )
        if fallback:
            for key in fallback_fill_keys:
                if properties.get(key) is not None or key in resolved_absent:
                    continue
                if is_dependent and trans_primary is Source.DISCARD and key in translation_key_set and key != id_prop:
                    continue
                properties[key] = fallback

        # 7. id
        id_value = None
        if others_primary is not Source.DISCARD:
            id_value = _pick(others_primary, props_a, props_b)[0].get(id_prop)
        if id_value is None:
            id_value = props_a.get(id_prop)
        if id_value is None:
            id_value = props_b.get(id_prop)
        if id_value is None:
            id_value = fid
        properties[id_prop] = id_value

        # 8. manual overlay
        for key, value in (manual_translations.get(as_text(id_value)) or {}).items():
            properties[key.lower()] = value

        features_out.append({"type": "Feature", "geometry": geometry, "properties": properties})
        report.kept_ids.append(fid)

    fused = {
        "type": "FeatureCollection",
        "name": FUSED_NAME_TEMPLATE.format(
            a=collection_a.get("name") or DEFAULT_DATASET_A_NAME,
            b=collection_b.get("name") or DEFAULT_DATASET_B_NAME,
        ),
        "features": features_out,
    }
    return fused, report


def merge(
    collection_a: Mapping[str, Any],
    collection_b: Mapping[str, Any],
    config: MergeConfig,
    analysis_a: Optional[AnalysisResult] = None,
    analysis_b: Optional[AnalysisResult] = None,
    country_selections: Optional[Mapping[str, Any]] = None,
    manual_translations: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Dict[str, Any]:
    """Fuse two FeatureCollections into a new one (inputs are never modified)."""
    fused, _ = merge_with_report(
        collection_a, collection_b, config, analysis_a, analysis_b, country_selections, manual_translations,
    )
    return fused
