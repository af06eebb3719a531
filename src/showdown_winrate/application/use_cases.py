from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Optional

from ..adapters.retry import RetryPolicy
from ..adapters.rpc_httpx import HttpxRPC
from ..config import WinrateQuery
from ..domain.aggregation import aggregate
from ..domain.decoding import decode_logs
from ..domain.models import WinrateReport
from ..domain.value_types import Address, Topic0
from ..ports.rpc import RPCClient
from .block_resolver import BlockResolver
from .cancel import CancelToken
from .dates import day_end_ts, day_start_ts
from .log_fetcher import ProgressFn, fetch_logs

logger = logging.getLogger(__name__)


async def compute_winrate(
    *,
    rpc: RPCClient,
    query: WinrateQuery,
    on_progress: Optional[ProgressFn] = None,
    cancel: CancelToken | None = None,
    tz: Optional[tzinfo] = None,
) -> WinrateReport:
    """
    Resolve dates → fetch logs → decode → aggregate.
    An empty block window yields an empty report; transport failures propagate.
    """
    start_ts = day_start_ts(query.start_date, tz)
    end_ts = day_end_ts(query.end_date, tz)

    span = await BlockResolver(rpc, cancel).resolve_range(start_ts, end_ts)
    if span is None:
        return WinrateReport(player=query.player, from_block=None, to_block=None)

    logs = await fetch_logs(
        rpc, Address(query.contract_address), Topic0(query.topic0),
        span.start, span.end,
        batch_size=query.batch_size,
        inter_batch_delay_ms=query.inter_batch_delay_ms,
        on_progress=on_progress,
        cancel=cancel,
    )
    matches = decode_logs(logs)
    stats, view = aggregate(matches, query.player)
    logger.info("%s: %d-%d (%.2f%%) over %d matches",
                query.player, stats.wins, stats.losses, stats.winrate * 100, len(matches))
    return WinrateReport(
        player=query.player,
        from_block=span.start,
        to_block=span.end,
        matches=tuple(matches),
        stats=stats,
        player_view=tuple(view),
        raw_logs=len(logs),
    )


def rpc_for(query: WinrateQuery) -> HttpxRPC:
    return HttpxRPC(query.rpc_url, timeout_s=query.timeout_s,
                    retry=RetryPolicy(attempts=query.attempts))


async def run_winrate_query(
    query: WinrateQuery,
    *,
    on_progress: Optional[ProgressFn] = None,
    cancel: CancelToken | None = None,
) -> WinrateReport:
    """Open an HTTP client for `query.rpc_url`, run the pipeline, close the client."""
    async with rpc_for(query) as rpc:
        return await compute_winrate(rpc=rpc, query=query, on_progress=on_progress, cancel=cancel)
