from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import MatchRecord, PlayerMatchView, PlayerStats


def normalize_player(name: str | None) -> str:
    return (name or "").strip().lower()


def player_matches(records: Iterable[MatchRecord], player: str) -> list[PlayerMatchView]:
    """Records where `player` won or lost, tagged with result and opponent."""
    p = normalize_player(player)
    out: list[PlayerMatchView] = []
    for r in records:
        if normalize_player(r.winning_player) == p:
            out.append(PlayerMatchView(record=r, result="W", opponent=r.losing_player))
        elif normalize_player(r.losing_player) == p:
            out.append(PlayerMatchView(record=r, result="L", opponent=r.winning_player))
    return out


def player_stats(records: Iterable[MatchRecord], player: str) -> PlayerStats:
    p = normalize_player(player)
    wins = losses = 0
    for r in records:
        if normalize_player(r.winning_player) == p: wins += 1
        if normalize_player(r.losing_player) == p: losses += 1
    return PlayerStats(wins=wins, losses=losses)


def aggregate(records: Sequence[MatchRecord], player: str) -> tuple[PlayerStats, list[PlayerMatchView]]:
    return player_stats(records, player), player_matches(records, player)


@dataclass(slots=True, frozen=True)
class OpponentTally:
    opponent: str
    wins: int
    losses: int

    @property
    def games(self) -> int: return self.wins + self.losses


def head_to_head(view: Iterable[PlayerMatchView]) -> list[OpponentTally]:
    """Per-opponent W/L, most-played first. Opponents are grouped by normalized name."""
    wins: Counter[str] = Counter()
    losses: Counter[str] = Counter()
    display: dict[str, str] = {}
    for v in view:
        key = normalize_player(v.opponent)
        display.setdefault(key, v.opponent.strip())
        if v.result == "W": wins[key] += 1
        else: losses[key] += 1
    tallies = [OpponentTally(display[k], wins[k], losses[k]) for k in display]
    tallies.sort(key=lambda t: (-t.games, normalize_player(t.opponent)))
    return tallies
