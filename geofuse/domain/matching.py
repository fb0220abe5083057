from typing import Dict, Any, Iterable, List, Mapping, Union

from .normalize import feature_properties

FeatureId = Union[str, int, float]


def is_valid_id(value: Any) -> bool:
    """Only strings and numbers identify features (bool is not a number here)."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def build_feature_index(features: Iterable[Mapping[str, Any]], id_property: str) -> Dict[FeatureId, Mapping[str, Any]]:
    """
    Map id value -> feature for every feature with a valid value at `id_property`.

    The key comparison is case-insensitive on the property name; a later
    feature with the same id replaces an earlier one.
    """
    key = id_property.lower()
    index: Dict[FeatureId, Mapping[str, Any]] = {}
    for feature in features:
        value = feature_properties(feature).get(key)
        if is_valid_id(value):
            index[value] = feature
    return index


def union_ids(index_a: Mapping[FeatureId, Any], index_b: Mapping[FeatureId, Any]) -> List[FeatureId]:
    """Ids of both indexes, A's first, in first-seen order."""
    seen = dict.fromkeys(index_a)
    seen.update(dict.fromkeys(index_b))
    return list(seen)
