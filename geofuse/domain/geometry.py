import math
from decimal import Decimal
from typing import Any, Dict, List, Optional

# Geometry types whose "coordinates" is a (possibly nested) list of positions.
COORDINATE_TYPES = ("Point", "MultiPoint", "LineString", "MultiLineString", "Polygon", "MultiPolygon")


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves toward +inf (Math.round semantics)."""
    return math.floor(x + 0.5)


def round_coordinate(num: Any, precision: int) -> Any:
    """
    Round one coordinate leaf to `precision` decimal places.

    Non-numbers, non-finite values and integral values are returned unchanged.
    precision=0 rounds to whole numbers.
    """
    if isinstance(num, bool) or not isinstance(num, (int, float)):
        return num
    if precision < 0 or not math.isfinite(num) or float(num).is_integer():
        return num
    factor = 10 ** precision
    return round_half_up(num * factor) / factor


def _round_nested(coords: Any, precision: int) -> Any:
    if isinstance(coords, (list, tuple)):
        return [_round_nested(c, precision) for c in coords]
    return round_coordinate(coords, precision)


def round_geometry(geometry: Optional[Dict[str, Any]], precision: int) -> Optional[Dict[str, Any]]:
    """
    Return a copy of `geometry` with every coordinate rounded to `precision` places.

    Recurses into GeometryCollection.geometries; unknown types are copied
    without touching coordinates. The input is never mutated.
    """
    if not geometry:
        return geometry
    out = dict(geometry)
    gtype = geometry.get("type")
    if gtype in COORDINATE_TYPES and "coordinates" in geometry:
        out["coordinates"] = _round_nested(geometry["coordinates"], precision)
    elif gtype == "GeometryCollection":
        out["geometries"] = [round_geometry(g, precision) for g in (geometry.get("geometries") or [])]
    return out


def count_coordinates(geometry: Optional[Dict[str, Any]]) -> int:
    """Number of positions in a geometry (sum over parts and collections)."""
    if not geometry:
        return 0
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Point":
        return 1
    if gtype in ("MultiPoint", "LineString"):
        return len(coords)
    if gtype in ("MultiLineString", "Polygon"):
        return sum(len(part) for part in coords)
    if gtype == "MultiPolygon":
        return sum(len(ring) for poly in coords for ring in poly)
    if gtype == "GeometryCollection":
        return sum(count_coordinates(g) for g in (geometry.get("geometries") or []))
    return 0


def decimal_places(num: Any) -> int:
    """Digits after the decimal point in positional notation; 0 for integers and non-finite."""
    if isinstance(num, bool) or not isinstance(num, (int, float)):
        return 0
    if not math.isfinite(num) or float(num).is_integer():
        return 0
    exponent = Decimal(repr(float(num))).as_tuple().exponent
    return max(0, -exponent)


def _leaves(coords: Any) -> List[Any]:
    if isinstance(coords, (list, tuple)):
        out: List[Any] = []
        for c in coords:
            out.extend(_leaves(c))
        return out
    return [coords]


def max_decimal_places(geometry: Optional[Dict[str, Any]]) -> int:
    """Largest decimal-place count over every coordinate of a geometry."""
    if not geometry:
        return 0
    gtype = geometry.get("type")
    if gtype == "GeometryCollection":
        return max((max_decimal_places(g) for g in (geometry.get("geometries") or [])), default=0)
    if gtype in COORDINATE_TYPES:
        return max((decimal_places(v) for v in _leaves(geometry.get("coordinates") or [])), default=0)
    return 0
