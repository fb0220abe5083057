import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.models import InvalidGeoJSONError


def load_json(path: Union[str, Path], default: Any) -> Any:
    """Load JSON safely.
    If file is missing or invalid JSON, return default.
    """
    path = Path(path)
    try:
        if not path.exists():
            return default
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def write_text_atomic(path: Union[str, Path], text: str) -> Path:
    """
    Write `text` through a sibling temp file and rename it over `path`.

    Readers see either the old file or the complete new one. The temp
    name is unique per call, and it is removed if anything fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=str(path.parent), prefix=path.name + ".", suffix=".tmp", delete=False,
    )
    try:
        with tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise
    return path


def save_json(path: Union[str, Path], obj: Any, indent: Optional[int] = 2) -> Path:
    """Atomic JSON write, UTF-8 kept as is; always ends with a newline."""
    return write_text_atomic(path, json.dumps(obj, ensure_ascii=False, indent=indent) + "\n")


def load_feature_collection(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a GeoJSON FeatureCollection.

    Unlike load_json this raises: a file the user asked for must exist and
    parse. The collection name defaults to the file stem.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidGeoJSONError(f"{path.name}: invalid JSON ({e.msg} at line {e.lineno})") from e

    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise InvalidGeoJSONError(f"{path.name}: not a GeoJSON FeatureCollection")
    if not isinstance(data.get("features"), list):
        raise InvalidGeoJSONError(f"{path.name}: FeatureCollection has no features array")
    if not data.get("name"):
        data["name"] = path.stem
    return data
