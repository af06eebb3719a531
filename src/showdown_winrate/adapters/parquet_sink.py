from __future__ import annotations
import os, pyarrow as pa, pyarrow.parquet as pq
from typing import Iterable

from ..ports.storage import MatchSink
from ..domain.models import MatchRecord

MATCH_SCHEMA = pa.schema([
    pa.field("block_number",    pa.int64()),
    pa.field("tx_hash",         pa.large_string()),
    pa.field("log_index",       pa.int32()),
    pa.field("game_number",     pa.large_string()),   # uint256, kept exact
    pa.field("game_id",         pa.large_string()),
    pa.field("started_at",      pa.large_string()),
    pa.field("winning_player",  pa.large_string()),
    pa.field("winning_classes", pa.large_string()),
    pa.field("losing_player",   pa.large_string()),
    pa.field("losing_classes",  pa.large_string()),
    pa.field("game_length",     pa.large_string()),
    pa.field("end_reason",      pa.large_string()),
])

COLS = [f.name for f in MATCH_SCHEMA]

def matches_to_table(records: Iterable[MatchRecord]) -> pa.Table:
    recs = list(records)
    cols: dict[str, list] = {name: [] for name in COLS}
    for r in recs:
        for name in COLS:
            v = getattr(r, name)
            cols[name].append(str(v) if name == "game_number" else v)
    arrays = {k: pa.array(v, type=MATCH_SCHEMA.field(k).type) for k, v in cols.items()}
    table = pa.Table.from_pydict(arrays, schema=MATCH_SCHEMA)
    return table.sort_by([("block_number", "ascending"), ("log_index", "ascending")])

class ParquetMatchSink(MatchSink):
    def __init__(self, path: str, codec: str = "zstd") -> None:
        self.path = path
        self.codec = codec

    def write_matches(self, records: Iterable[MatchRecord]) -> str:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        pq.write_table(matches_to_table(records), tmp, compression=self.codec)
        os.replace(tmp, self.path)
        return self.path
