import time
from datetime import datetime, timezone
from typing import Optional


def truncate(text: Optional[str], limit: int) -> str:
    """Cuts text to `limit` characters. None becomes an empty string."""
    if not text:
        return ""
    return text[:limit]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def elapsed_ms(start: float) -> int:
    """Milliseconds since `start` (a time.monotonic() reading)."""
    return int((time.monotonic() - start) * 1000)
