from typing import Dict, Any, List, Optional, Sequence, Mapping

from ..core.constants import (
    RE_LANGUAGE_KEY,
    PREFERRED_NAME_KEYS, PREFERRED_SOVEREIGNTY_KEYS, FALLBACK_SOVEREIGNTY_KEY,
    PREFERRED_ID_KEYS, NO_ID_SENTINEL,
    MAX_VALUE_SAMPLES, NAME_COVERAGE_RATIO, ID_COVERAGE_RATIO, ID_UNIQUENESS_RATIO, ID_FALLBACK_COUNT,
)
from ..core.models import AnalysisResult, CountryDetail
from .normalize import normalize_properties, as_text
from .geometry import count_coordinates, max_decimal_places
from .names import classify_properties, fold_country_details


class _PropertyStats:
    """Per-key occurrence counts and small value samples, in first-seen key order."""

    def __init__(self):
        self.counts: Dict[str, int] = {}
        self.samples: Dict[str, List[str]] = {}

    def add(self, props: Mapping[str, Any]) -> None:
        for key, value in props.items():
            self.counts[key] = self.counts.get(key, 0) + 1
            sample = self.samples.setdefault(key, [])
            if value is None or len(sample) >= MAX_VALUE_SAMPLES:
                continue
            s = as_text(value)
            if s not in sample:
                sample.append(s)

    def keys(self) -> List[str]:
        return list(self.counts)


def select_property_key(
    preferred: Sequence[str],
    stats: _PropertyStats,
    first_props: Mapping[str, Any],
    num_features: int,
    scan_fallback: bool = True,
) -> Optional[str]:
    """
    Pick the property key holding a per-feature string attribute.

    Preferred keys are tried in order; a candidate must be a string on the
    first feature and must beat the best count so far. If nothing qualified
    or coverage is below half the features, every key is scanned for a
    string-valued key covering more than half the features.
    """
    best: Optional[str] = None
    best_count = 0
    for key in preferred:
        count = stats.counts.get(key, 0)
        if count and isinstance(first_props.get(key), str) and count > best_count:
            best, best_count = key, count

    if scan_fallback and (best is None or best_count < num_features * NAME_COVERAGE_RATIO):
        for key in stats.keys():
            count = stats.counts[key]
            if (isinstance(first_props.get(key), str)
                    and count > best_count
                    and count > num_features * NAME_COVERAGE_RATIO):
                best, best_count = key, count
    return best


def select_sovereignty_key(
    stats: _PropertyStats,
    first_props: Mapping[str, Any],
    name_key: Optional[str],
) -> Optional[str]:
    key = select_property_key(PREFERRED_SOVEREIGNTY_KEYS, stats, first_props, 0, scan_fallback=False)
    if key is None and name_key:
        fb = FALLBACK_SOVEREIGNTY_KEY
        if fb in stats.counts and fb != name_key and isinstance(first_props.get(fb), str):
            key = fb
    return key


def detect_potential_id_keys(stats: _PropertyStats, num_features: int) -> List[str]:
    """
    Keys likely to be unique identifiers.

    A key qualifies when it covers >= 80% of features and its (<=5 item)
    value sample is mostly distinct. Preferred id keys come first.
    """
    qualifying = [
        key for key, count in stats.counts.items()
        if count >= num_features * ID_COVERAGE_RATIO
        and len(stats.samples.get(key, [])) > min(num_features, MAX_VALUE_SAMPLES) * ID_UNIQUENESS_RATIO
    ]
    qualifying.sort(key=lambda k: (
        0 if k in PREFERRED_ID_KEYS else 1,
        PREFERRED_ID_KEYS.index(k) if k in PREFERRED_ID_KEYS else 0,
        k,
    ))
    if qualifying:
        return qualifying
    common = sorted(stats.keys())
    if common:
        return common[:ID_FALLBACK_COUNT]
    return [NO_ID_SENTINEL]


def classify_features(
    normalized: Sequence[Mapping[str, Any]],
    name_key: Optional[str],
    sovereignty_key: Optional[str],
) -> List[CountryDetail]:
    """Classify every feature with a non-empty string name; folded and name-sorted."""
    if not name_key:
        return []
    details = (classify_properties(props, name_key, sovereignty_key) for props in normalized)
    return fold_country_details(d for d in details if d is not None)


def analyze(file_name: str, collection: Mapping[str, Any]) -> AnalysisResult:
    """
    Analyze one FeatureCollection.

    The collection must already satisfy the FeatureCollection contract
    (see utils.files.load_feature_collection); it is not modified.
    """
    features = list(collection.get("features") or [])
    num_features = len(features)

    stats = _PropertyStats()
    languages = set()
    coord_total = 0
    max_precision = 0
    normalized: List[Dict[str, Any]] = []

    for feature in features:
        geometry = (feature or {}).get("geometry")
        coord_total += count_coordinates(geometry)
        max_precision = max(max_precision, max_decimal_places(geometry))

        props = normalize_properties((feature or {}).get("properties"))
        normalized.append(props)
        stats.add(props)
        for key in props:
            m = RE_LANGUAGE_KEY.match(key)
            if m:
                languages.add(m.group(1).upper())

    first_props = normalized[0] if normalized else {}
    name_key = select_property_key(PREFERRED_NAME_KEYS, stats, first_props, num_features)
    sovereignty_key = select_sovereignty_key(stats, first_props, name_key)

    return AnalysisResult(
        file_name=file_name,
        num_features=num_features,
        languages=sorted(languages),
        geometry_precision_score=coord_total,
        max_coordinate_precision=max_precision,
        common_properties=sorted(stats.keys()),
        potential_id_keys=detect_potential_id_keys(stats, num_features),
        country_name_property=name_key,
        sovereignty_property_key=sovereignty_key,
        country_details=classify_features(normalized, name_key, sovereignty_key),
    )
