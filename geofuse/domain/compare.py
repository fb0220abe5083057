from typing import Dict, List, Mapping, Optional, Sequence

from ..core.models import ComparisonRow, ComparisonStats, CountryDetail, EntityClass, Choice

SORT_KEYS = ("name", "fileA", "fileB", "choice")
_CHOICE_ORDER = {Choice.A.value: 1, Choice.B.value: 2, Choice.DISCARD.value: 3}


def _name_key(name: str):
    return (name.casefold(), name)


def comparison_rows(
    details_a: Optional[Sequence[CountryDetail]],
    details_b: Optional[Sequence[CountryDetail]],
) -> List[ComparisonRow]:
    """One row per canonical name in either analysis, name-sorted; A's detail is representative."""
    map_a = {cd.name: cd for cd in details_a or []}
    map_b = {cd.name: cd for cd in details_b or []}
    rows = []
    for name in sorted(set(map_a) | set(map_b), key=_name_key):
        rep = map_a.get(name) or map_b[name]
        rows.append(ComparisonRow(
            name=rep.name,
            is_dependency=rep.is_dependency,
            sovereign_state=rep.sovereign_state or rep.name,
            in_a=name in map_a,
            in_b=name in map_b,
        ))
    return rows


def comparison_stats(rows: Sequence[ComparisonRow]) -> Dict[EntityClass, ComparisonStats]:
    """Common / unique-to-A / unique-to-B counts per entity class."""
    stats = {EntityClass.RECOGNIZED: ComparisonStats(), EntityClass.DEPENDENT: ComparisonStats()}
    for row in rows:
        bucket = stats[EntityClass.DEPENDENT if row.is_dependency else EntityClass.RECOGNIZED]
        if row.in_a and row.in_b:
            bucket.common += 1
        elif row.in_a:
            bucket.unique_a += 1
        elif row.in_b:
            bucket.unique_b += 1
    return stats


def filter_rows(rows: Sequence[ComparisonRow], text: str) -> List[ComparisonRow]:
    needle = (text or "").lower()
    return [r for r in rows if not needle or needle in r.name.lower()]


def sort_rows(
    rows: Sequence[ComparisonRow],
    key: str = "name",
    descending: bool = False,
    selections: Optional[Mapping[str, str]] = None,
    group_by_sovereign: bool = False,
) -> List[ComparisonRow]:
    """
    Sort comparison rows.

    group_by_sovereign orders by sovereign state, the sovereign itself before
    its dependencies; otherwise `key` is one of SORT_KEYS with name as tie-break.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"unknown sort key {key!r}")
    selections = selections or {}

    if group_by_sovereign:
        def sort_key(r):
            return (r.sovereign_state.casefold(), r.is_dependency, _name_key(r.name))
    elif key == "fileA":
        def sort_key(r):
            return (not r.in_a, _name_key(r.name))
    elif key == "fileB":
        def sort_key(r):
            return (not r.in_b, _name_key(r.name))
    elif key == "choice":
        def sort_key(r):
            choice = selections.get(r.name)
            return (_CHOICE_ORDER.get(getattr(choice, "value", choice), 4), _name_key(r.name))
    else:
        def sort_key(r):
            return _name_key(r.name)

    return sorted(rows, key=sort_key, reverse=descending)
