from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any


class TraceStoreJSONL:
    """
    Append-only JSONL sink for decision records.

    Appends are serialized with a lock so concurrent gate calls never interleave lines.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: dict[str, Any]) -> None:
        line = json.dumps(event, ensure_ascii=False, default=str) + "\n"
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
