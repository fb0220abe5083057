from typing import Dict, Any, List, Mapping, Optional, Sequence

from ..core.constants import RE_TRANSLATION_LANG, ENGLISH_NAME_KEYS
from ..core.models import AnalysisResult, TranslationRow, Choice
from .normalize import feature_properties, trimmed_str, as_text
from .names import find_detail

# Language-code aliases used by some datasets for CLDR locales.
LANG_ALIASES = {"zht": "zh-Hant", "zh-hant": "zh-Hant"}
SKIP_LANGS = ("en", "eng")


def translation_lang(key: str) -> Optional[str]:
    """
    Language code carried by a translation key suffix.

    Examples:
        >>> translation_lang("name_de")
        'de'
        >>> translation_lang("name_zht")
        'zh-Hant'
        >>> translation_lang("name") is None
        True
    """
    m = RE_TRANSLATION_LANG.search(key)
    if not m:
        return None
    code = m.group(1).lower()
    return LANG_ALIASES.get(code, code)


def _index_by_text_id(collection: Optional[Mapping[str, Any]], id_key: str) -> Dict[str, Mapping[str, Any]]:
    # first feature wins, matching a linear find()
    index: Dict[str, Mapping[str, Any]] = {}
    for feature in (collection or {}).get("features") or []:
        value = feature_properties(feature).get(id_key)
        if value is not None:
            index.setdefault(as_text(value), feature)
    return index


def missing_translation_rows(
    collection_a: Optional[Mapping[str, Any]],
    collection_b: Optional[Mapping[str, Any]],
    analysis_a: Optional[AnalysisResult],
    analysis_b: Optional[AnalysisResult],
    id_property: str,
    country_selections: Optional[Mapping[str, Any]] = None,
) -> List[TranslationRow]:
    """
    One row per distinct id (as text, sorted) for the manual translation editor.

    Display name prefers A's name value, then B's, then the id. Entities
    selected for discard, by display or canonical name, are left out.
    """
    if not (analysis_a and analysis_b and collection_a and collection_b and id_property):
        return []
    id_key = id_property.lower()
    country_selections = country_selections or {}
    index_a = _index_by_text_id(collection_a, id_key)
    index_b = _index_by_text_id(collection_b, id_key)
    details_a = analysis_a.details_by_name()
    details_b = analysis_b.details_by_name()
    name_key_a = analysis_a.country_name_property
    name_key_b = analysis_b.country_name_property
    sov_key_a = analysis_a.sovereignty_property_key
    sov_key_b = analysis_b.sovereignty_property_key

    rows: List[TranslationRow] = []
    for id_text in sorted(set(index_a) | set(index_b)):
        feature_a = index_a.get(id_text)
        feature_b = index_b.get(id_text)
        props_a = feature_properties(feature_a)
        props_b = feature_properties(feature_b)

        display = id_text
        name_a = trimmed_str(props_a, name_key_a)
        if name_a:
            display = name_a
        name_b = trimmed_str(props_b, name_key_b)
        if name_b and (display == id_text or not name_key_a):
            display = name_b

        details = [
            d for d in (
                find_detail(details_a, props_a, name_key_a, sov_key_a),
                find_detail(details_b, props_b, name_key_b, sov_key_b),
                details_a.get(display),
                details_b.get(display),
            ) if d is not None
        ]
        names = {display} | {d.name for d in details}
        if any(country_selections.get(n) == Choice.DISCARD for n in names):
            continue

        is_dep = any(d.is_dependency for d in details)

        english = None
        for key in ENGLISH_NAME_KEYS:
            english = trimmed_str(props_a, key) or trimmed_str(props_b, key)
            if english:
                break

        rows.append(TranslationRow(
            id_value=id_text,
            display_name=display,
            is_dependency=is_dep,
            feature_a=feature_a,
            feature_b=feature_b,
            english_name=english or None,
        ))
    return rows


def filter_translation_rows(rows: Sequence[TranslationRow], text: str = "", show_dependent: bool = True) -> List[TranslationRow]:
    needle = (text or "").lower()
    out = []
    for row in rows:
        if row.is_dependency and not show_dependent:
            continue
        if needle and needle not in row.display_name.lower() and needle not in row.id_value.lower():
            continue
        out.append(row)
    return out


def lookup_dictionary_entry(row: TranslationRow, dictionary: Mapping[str, Mapping[str, str]]) -> Optional[Mapping[str, str]]:
    """Dictionary entry by upper-cased id, else by lower-cased English/display name."""
    entry = dictionary.get(row.id_value.upper())
    if entry is None:
        english = row.english_name or row.display_name
        if english:
            entry = dictionary.get(english.lower())
    return entry


def propose_manual_translations(
    rows: Sequence[TranslationRow],
    translation_keys: Sequence[str],
    dictionary: Mapping[str, Mapping[str, str]],
    manual_translations: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> Dict[str, Dict[str, str]]:
    """
    New ManualTranslations entries backfilled from a translation dictionary.

    A key is proposed only when neither source feature has a value for it,
    nothing was entered manually yet, and its language suffix is not English.
    The input mappings are not modified.
    """
    manual_translations = manual_translations or {}
    proposals: Dict[str, Dict[str, str]] = {}
    for row in rows:
        entry = lookup_dictionary_entry(row, dictionary)
        if not entry:
            continue
        props_a = feature_properties(row.feature_a)
        props_b = feature_properties(row.feature_b)
        existing_manual = manual_translations.get(row.id_value) or {}
        for key in translation_keys:
            key = key.lower()
            if props_a.get(key) is not None or props_b.get(key) is not None:
                continue
            if key in existing_manual:
                continue
            lang = translation_lang(key)
            if not lang or lang in SKIP_LANGS:
                continue
            value = entry.get(lang)
            if value:
                proposals.setdefault(row.id_value, {})[key] = value
    return proposals
