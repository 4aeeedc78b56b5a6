from __future__ import annotations

import time
import uuid


# PUBLIC_INTERFACE
def now_ms() -> int:
    """Return the current wall-clock time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


# PUBLIC_INTERFACE
def generate_id() -> str:
    """Return a fresh unique note id (UUID4 string, valid for the remote uuid column)."""
    return str(uuid.uuid4())
