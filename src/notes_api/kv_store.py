from __future__ import annotations

import os
import re
from pathlib import Path
from threading import Lock
from typing import Optional, Union

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileSlotStore:
    """
    Persistent key-value slots backed by one file per key under a base directory.

    Values are opaque strings (callers store serialized JSON). Writes go to a
    temp file that is fsynced and then renamed over the target.
    """

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir)
        self._write_lock = Lock()

    def path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Invalid slot key")
        return self.base_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        with self._write_lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
