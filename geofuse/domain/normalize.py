from typing import Dict, Any, Optional, Mapping


def normalize_properties(props: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a copy of `props` with lowercased keys (later keys win on case collisions)."""
    if not props:
        return {}
    return {str(k).lower(): v for k, v in props.items()}


def feature_properties(feature: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Normalized properties of a feature; missing feature or properties yield {}."""
    if not feature:
        return {}
    return normalize_properties(feature.get("properties"))


def trimmed_str(props: Mapping[str, Any], key: Optional[str]) -> str:
    """Stringified, stripped value at `key`; empty for missing/None."""
    if not key:
        return ""
    v = props.get(key)
    if v is None:
        return ""
    return str(v).strip()


def as_text(value: Any) -> str:
    """String form of a JSON scalar as it reads in the source file (3.0 -> "3", True -> "true")."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return "null"
    return str(value)
