import threading
from pathlib import Path
from typing import Optional, Any

from .time import now_local

# Set by setup_logging(); None means stdout only
LOG_DIR: Optional[Path] = None
LOG_PATH: Optional[Path] = None

_LOG_LOCK = threading.Lock()


def setup_logging(log_dir: Path, log_name: str = "geofuse.log") -> Path:
    global LOG_DIR, LOG_PATH
    LOG_DIR = Path(log_dir)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    LOG_PATH = LOG_DIR / log_name
    return LOG_PATH


def _append(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")


def format_line(msg: Any, level: Optional[str] = None) -> str:
    """
    Single timestamped line:
    - prefix YYYY-MM-DD // HH:MM:SS+ZZ:ZZ -
    - optional level token ahead of the message (e.g. "WARN | ...")
    """
    line = str(msg).strip()
    if level and not line.startswith(level + " |"):
        line = f"{level} | {line}" if line else level

    prefix = now_local().strftime("%Y-%m-%d // %H:%M:%S%z")
    if len(prefix) >= 5:
        prefix = prefix[:-2] + ":" + prefix[-2:]
    return f"{prefix} - {line}" if line else f"{prefix} -"


def log_line(msg: Any, level: Optional[str] = None) -> None:
    with _LOG_LOCK:
        full = format_line(msg, level)
        if LOG_PATH:
            _append(LOG_PATH, full)
        print(full, flush=True)
