from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from .value_types import Address, MatchResult

MAX_SPAN = 100_000  # eth_getLogs block-span limit of the endpoint


@dataclass(slots=True, frozen=True)
class BlockRef:
    number: int
    timestamp: int


@dataclass(slots=True, frozen=True)
class BlockSpan:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"span start {self.start} > end {self.end}")

    def span(self) -> int: return self.end - self.start + 1


@dataclass(slots=True, frozen=True)
class EventLog:
    """A raw log as returned by eth_getLogs, normalized at the transport boundary."""
    address: Address
    topics: tuple[str, ...]            # lowercased with 0x
    data_hex: str
    block_number: int
    tx_hash: str                       # lowercased with 0x
    log_index: int

    @property
    def key(self) -> tuple[str, int]:
        return (self.tx_hash, self.log_index)


@dataclass(slots=True, frozen=True)
class MatchRecord:
    block_number: int
    tx_hash: str
    log_index: int
    game_number: int
    game_id: str
    started_at: str
    winning_player: str
    winning_classes: str
    losing_player: str
    losing_classes: str
    game_length: str
    end_reason: str

    def as_row(self) -> dict[str, Any]:
        """Row in the camelCase shape of the JSON download."""
        return {
            "blockNumber":    self.block_number,
            "txHash":         self.tx_hash,
            "gameNumber":     self.game_number,
            "gameId":         self.game_id,
            "startedAt":      self.started_at,
            "winningPlayer":  self.winning_player,
            "winningClasses": self.winning_classes,
            "losingPlayer":   self.losing_player,
            "losingClasses":  self.losing_classes,
            "gameLength":     self.game_length,
            "endReason":      self.end_reason,
        }


@dataclass(slots=True, frozen=True)
class PlayerStats:
    wins: int = 0
    losses: int = 0

    @property
    def total(self) -> int: return self.wins + self.losses

    @property
    def winrate(self) -> float:
        return self.wins / self.total if self.total else 0.0


@dataclass(slots=True, frozen=True)
class PlayerMatchView:
    record: MatchRecord
    result: MatchResult
    opponent: str

    def as_row(self) -> dict[str, Any]:
        row = self.record.as_row()
        row["result"] = self.result
        row["opponent"] = self.opponent
        return row


@dataclass(slots=True, frozen=True)
class WinrateReport:
    player: str
    from_block: int | None
    to_block: int | None
    matches: tuple[MatchRecord, ...] = ()
    stats: PlayerStats = field(default_factory=PlayerStats)
    player_view: tuple[PlayerMatchView, ...] = ()
    raw_logs: int = 0

    @property
    def empty_range(self) -> bool:
        return self.from_block is None
