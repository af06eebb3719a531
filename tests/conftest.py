"""Shared fixtures: an in-memory chain behind the RPC port and GameResultEvent log builders."""

from typing import Sequence

import pytest
from eth_abi import encode

from showdown_winrate.domain.decoding import TOPIC0, GAME_RESULT_FIELDS
from showdown_winrate.domain.errors import TransportError
from showdown_winrate.domain.models import BlockRef, BlockSpan, EventLog

CONTRACT = "0xae2afe4d192127e6617cfa638a94384b53facec1"


def encode_game(
    game_number=1,
    game_id="g-1",
    started_at="2025-01-01T00:00:00Z",
    winning_player="Alice",
    winning_classes="Warrior",
    losing_player="Bob",
    losing_classes="Mage",
    game_length="12:34",
    end_reason="knockout",
) -> str:
    values = [game_number, game_id, started_at, winning_player, winning_classes,
              losing_player, losing_classes, game_length, end_reason]
    return "0x" + encode([t for _, t in GAME_RESULT_FIELDS], values).hex()


def make_log(block_number: int, log_index: int = 0, tx_hash: str | None = None,
             topics: Sequence[str] | None = None, data_hex: str | None = None, **game) -> EventLog:
    return EventLog(
        address=CONTRACT,
        topics=tuple(topics) if topics is not None else (TOPIC0,),
        data_hex=data_hex if data_hex is not None else encode_game(**game),
        block_number=block_number,
        tx_hash=tx_hash or "0x" + format(block_number, "064x"),
        log_index=log_index,
    )


class FakeChain:
    """RPCClient over a list of block timestamps and a list of logs."""

    def __init__(self, timestamps: Sequence[int], logs: Sequence[EventLog] = (),
                 genesis: int = 0, fail_on_batch: int | None = None) -> None:
        self.timestamps = list(timestamps)
        self.genesis = genesis
        self.logs = list(logs)
        self.fail_on_batch = fail_on_batch
        self.block_calls: list = []
        self.batches: list[list[BlockSpan]] = []

    @property
    def head(self) -> int:
        return self.genesis + len(self.timestamps) - 1

    async def call(self, body, cancel=None):
        raise NotImplementedError

    async def get_block(self, tag, cancel=None) -> BlockRef:
        self.block_calls.append(tag)
        n = {"earliest": self.genesis, "latest": self.head}.get(tag, tag)
        return BlockRef(number=n, timestamp=self.timestamps[n - self.genesis])

    async def get_logs_batch(self, address, topic0, spans, cancel=None):
        self.batches.append(list(spans))
        if self.fail_on_batch is not None and len(self.batches) == self.fail_on_batch:
            raise TransportError("batch of 2 failed after 5 attempts: RPC HTTP 429")
        out: list[EventLog] = []
        for s in spans:
            out.extend(l for l in self.logs if s.start <= l.block_number <= s.end)
        return out


@pytest.fixture
def chain_factory():
    return FakeChain
