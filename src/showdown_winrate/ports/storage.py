# showdown_winrate/ports/storage.py
from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol
from ..domain.models import MatchRecord


class MatchSink(Protocol):
    """Port for writing decoded matches to a file (e.g., Parquet)."""

    def write_matches(self, records: Iterable[MatchRecord]) -> str:
        """Persist the records and return the path written."""


class RowSink(Protocol):
    """Port for writing presentation rows (e.g., a JSON download)."""

    def write_rows(self, rows: Iterable[Mapping[str, Any]]) -> str:
        """Persist the rows and return the path written."""
