"""Tests for JSON and Parquet exports."""

import json

import pyarrow.parquet as pq

from conftest import make_log
from showdown_winrate.adapters.json_export import JSONRowSink
from showdown_winrate.adapters.parquet_sink import MATCH_SCHEMA, ParquetMatchSink, matches_to_table
from showdown_winrate.domain.aggregation import player_matches
from showdown_winrate.domain.decoding import decode_logs


def _records():
    return decode_logs([
        make_log(20, game_number=2, winning_player="Bob", losing_player="Alice"),
        make_log(10, game_number=2**70, winning_player="Alice", losing_player="Bob"),
    ])


def test_json_rows_use_download_shape(tmp_path):
    path = tmp_path / "out" / "alice.json"
    JSONRowSink(str(path)).write_rows(v.as_row() for v in player_matches(_records(), "alice"))
    rows = json.loads(path.read_text())
    assert [r["result"] for r in rows] == ["W", "L"]
    assert rows[0]["opponent"] == "Bob"
    assert rows[0]["gameNumber"] == 2**70
    assert set(rows[1]) == {
        "blockNumber", "txHash", "gameNumber", "gameId", "startedAt", "winningPlayer",
        "winningClasses", "losingPlayer", "losingClasses", "gameLength", "endReason",
        "result", "opponent",
    }
    assert not (tmp_path / "out" / "alice.json.tmp").exists()


def test_parquet_round_trip(tmp_path):
    path = tmp_path / "matches.parquet"
    ParquetMatchSink(str(path)).write_matches(_records())
    table = pq.read_table(str(path))
    assert table.schema.equals(MATCH_SCHEMA)
    assert table.column("block_number").to_pylist() == [10, 20]
    assert table.column("game_number").to_pylist() == [str(2**70), "2"]


def test_empty_table_has_schema():
    table = matches_to_table([])
    assert table.num_rows == 0
    assert table.schema.equals(MATCH_SCHEMA)
