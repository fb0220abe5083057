"""
Name heuristics for political entities.

Everything here is a pure function over strings so the rules can be
table-tested and extended without touching the merge algorithm:

- core_name():        comparison key with political boilerplate stripped
- names_equivalent(): decides whether a name and a sovereignty value denote
                      the same state
- classify():         name + sovereignty -> CountryDetail
- fold_country_details(): deduplicates classified records by canonical name
- find_detail():      a feature's CountryDetail via its canonical name
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.models import CountryDetail

RE_POLITICAL_TOKENS = re.compile(
    r"\b(republic|rep\.?|democratic|dem\.?|people's|p\.?d\.?r\.?|kingdom|k\.?o\.?|federation|fed\.?"
    r"|federal|islamic|state of|states|the|of|and|commonwealth|territory|islands|is\.?|province"
    r"|admin\.?|administrative|region)\b"
)
RE_PUNCTUATION = re.compile(r"[.,()'-]")
RE_WHITESPACE = re.compile(r"\s+")

# Core-name pairs that denote the same state although neither contains the other.
SPECIAL_EQUIVALENTS = (
    frozenset({"korea", "south korea"}),
    frozenset({"korea", "north korea"}),
    frozenset({"czech", "czechia"}),
)


def core_name(name: Optional[str]) -> str:
    """
    Comparison key for a political entity name.

    Lowercases, removes boilerplate tokens (republic, kingdom, islands, ...)
    and punctuation, then collapses whitespace.

    Examples:
        >>> core_name("Republic of the Congo")
        'congo'
        >>> core_name("Falkland Is.")
        'falkland'
    """
    if not name:
        return ""
    s = name.lower()
    s = RE_POLITICAL_TOKENS.sub("", s)
    s = RE_PUNCTUATION.sub("", s)
    s = RE_WHITESPACE.sub(" ", s)
    return s.strip()


def is_special_equivalent(core_a: str, core_b: str) -> bool:
    return frozenset({core_a, core_b}) in SPECIAL_EQUIVALENTS


def names_equivalent(name: str, sovereignty: str) -> bool:
    """True when `name` and `sovereignty` refer to the same sovereign state."""
    if name.strip().lower() == sovereignty.strip().lower():
        return True
    core_n = core_name(name)
    core_s = core_name(sovereignty)
    if core_n == core_s:
        return True
    if core_n and core_s and (core_s in core_n or core_n in core_s):
        return True
    return is_special_equivalent(core_n, core_s)


def classify(name: str, sovereignty: Optional[str] = None) -> CountryDetail:
    """
    Classify one feature from its name and sovereignty values.

    Returns a CountryDetail whose `name` is the canonical display identity:
    - no usable sovereignty value, or equal values: the trimmed name
    - equivalent values: the longer of the two (ties favor the name)
    - otherwise a dependency of the sovereignty value
    """
    name = name.strip()
    sov = (sovereignty or "").strip()
    if not sov or sov.lower() == name.lower():
        return CountryDetail(name=name, is_dependency=False)

    if names_equivalent(name, sov):
        canonical = sov if len(sov) > len(name) else name
        return CountryDetail(name=canonical, is_dependency=False)

    return CountryDetail(name=name, is_dependency=True, sovereign_state=sov)


def fold_country_details(details: Iterable[CountryDetail]) -> List[CountryDetail]:
    """
    Deduplicate classified records by canonical name.

    On a collision a recognized record replaces a dependency record,
    otherwise the first one stays. Distinct canonical names are never
    merged, even when their core names match ("Congo" and "Dem. Rep. Congo").

    Returns the survivors sorted by name.
    """
    folded: Dict[str, CountryDetail] = {}
    for detail in details:
        existing = folded.get(detail.name)
        if existing is None or (existing.is_dependency and not detail.is_dependency):
            folded[detail.name] = detail
    return sort_details(folded.values())


def sort_details(details: Iterable[CountryDetail]) -> List[CountryDetail]:
    return sorted(details, key=lambda cd: (cd.name.casefold(), cd.name))


def classify_properties(
    props: Mapping[str, Any],
    name_key: Optional[str],
    sovereignty_key: Optional[str],
) -> Optional[CountryDetail]:
    """
    Classify one feature from its normalized properties.

    None when the name value is missing, blank or not a string; a
    non-string sovereignty value counts as absent.
    """
    if not name_key:
        return None
    name = props.get(name_key)
    if not isinstance(name, str) or not name.strip():
        return None
    sov = props.get(sovereignty_key) if sovereignty_key else None
    return classify(name, sov if isinstance(sov, str) else None)


def find_detail(
    details_by_name: Mapping[str, CountryDetail],
    props: Mapping[str, Any],
    name_key: Optional[str],
    sovereignty_key: Optional[str],
) -> Optional[CountryDetail]:
    """Detail listed under the canonical name the feature classifies to."""
    detail = classify_properties(props, name_key, sovereignty_key)
    if detail is None:
        return None
    return details_by_name.get(detail.name)
