from datetime import datetime
from typing import Optional


def now_local() -> datetime:
    """Aware local time; used for log prefixes."""
    return datetime.now().astimezone()


def file_stamp(ts: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp for generated file names, e.g. 2024-05-01T10-22-03."""
    ts = ts or datetime.now()
    return ts.strftime("%Y-%m-%dT%H-%M-%S")
