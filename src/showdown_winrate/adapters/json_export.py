from __future__ import annotations
import os, json
from typing import Any, Iterable, Mapping
from ..ports.storage import RowSink

class JSONRowSink(RowSink):
    """Writes rows as one pretty-printed JSON array (same shape as the web download)."""
    def __init__(self, path: str) -> None:
        self.path = path

    def write_rows(self, rows: Iterable[Mapping[str, Any]]) -> str:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w") as f:
            json.dump(list(rows), f, indent=2)
            f.write("\n")
        os.replace(tmp, self.path)
        return self.path
