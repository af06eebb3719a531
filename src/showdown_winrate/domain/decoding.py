from __future__ import annotations

import logging
from typing import Iterable, Optional

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex

from .models import EventLog, MatchRecord

logger = logging.getLogger(__name__)

# Topic0 of GameResultEvent (lowercase, with "0x")
TOPIC0 = "0xccc938abc01344413efee36b5d484cedd3bf4ce93b496e8021ba021fed9e2725"

GAME_RESULT_SIGNATURE = (
    "GameResultEvent(uint256,string,string,string,string,string,string,string,string)"
)

# (field, abi type) in emission order; nothing is indexed
GAME_RESULT_FIELDS: tuple[tuple[str, str], ...] = (
    ("game_number",     "uint256"),
    ("game_id",         "string"),
    ("started_at",      "string"),
    ("winning_player",  "string"),
    ("winning_classes", "string"),
    ("losing_player",   "string"),
    ("losing_classes",  "string"),
    ("game_length",     "string"),
    ("end_reason",      "string"),
)
_ABI_TYPES = [t for _, t in GAME_RESULT_FIELDS]


def decode_log(log: EventLog) -> Optional[MatchRecord]:
    """Decode one GameResultEvent log; None when the log does not fit the schema."""
    if len(log.topics) != 1 or log.topics[0].lower() != TOPIC0:
        return None
    try:
        values = abi_decode(_ABI_TYPES, decode_hex(log.data_hex))
    except (DecodingError, ValueError, TypeError):
        return None

    game_number, *strings = values
    fields = dict(zip((name for name, _ in GAME_RESULT_FIELDS[1:]), (str(s) for s in strings)))
    return MatchRecord(
        block_number=log.block_number,
        tx_hash=log.tx_hash,
        log_index=log.log_index,
        game_number=int(game_number),
        **fields,
    )


def decode_logs(logs: Iterable[EventLog]) -> list[MatchRecord]:
    """Decode and order by block number; malformed entries are dropped, not fatal."""
    out: list[MatchRecord] = []
    dropped = 0
    for log in logs:
        rec = decode_log(log)
        if rec is None:
            dropped += 1
            logger.debug("dropped undecodable log %s:%d", log.tx_hash, log.log_index)
            continue
        out.append(rec)
    if dropped:
        logger.info("decoded %d logs, dropped %d", len(out), dropped)
    # list.sort is stable: ties keep fetch order
    out.sort(key=lambda r: r.block_number)
    return out
