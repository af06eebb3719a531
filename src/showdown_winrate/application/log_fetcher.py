from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..domain.models import EventLog, MAX_SPAN
from ..domain.value_types import Address, Topic0
from ..ports.rpc import RPCClient
from .cancel import CancelToken, checkpoint
from .planning import batched, plan_spans

logger = logging.getLogger(__name__)

MIN_BATCH, MAX_BATCH = 1, 8

ProgressFn = Callable[[int, int], None]


def dedupe_logs(logs: list[EventLog]) -> list[EventLog]:
    """One entry per (tx_hash, log_index); first-seen order, last-seen value."""
    uniq: dict[tuple[str, int], EventLog] = {}
    for log in logs:
        uniq[log.key] = log
    return list(uniq.values())


async def fetch_logs(
    rpc: RPCClient,
    address: Address,
    topic0: Topic0,
    from_block: int,
    to_block: int,
    *,
    batch_size: int = 2,
    inter_batch_delay_ms: float = 400,
    max_span: int = MAX_SPAN,
    on_progress: Optional[ProgressFn] = None,
    cancel: CancelToken | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[EventLog]:
    """
    Fetch every log for `address`/`topic0` in [from_block, to_block].

    Spans are sent `batch_size` at a time as one batched request, one batch
    after another, pausing `inter_batch_delay_ms` between batches. A batch
    that still fails after the client's retries aborts the whole fetch.
    """
    if not MIN_BATCH <= batch_size <= MAX_BATCH:
        raise ValueError(f"batch_size must be in [{MIN_BATCH}, {MAX_BATCH}], got {batch_size}")
    if inter_batch_delay_ms < 0:
        raise ValueError("inter_batch_delay_ms must be >= 0")

    spans = plan_spans(from_block, to_block, max_span)
    total = len(spans)
    batches = list(batched(spans, batch_size))
    logger.info("fetching blocks %d-%d: %d spans in %d batches", from_block, to_block, total, len(batches))

    all_logs: list[EventLog] = []
    done = 0
    for i, group in enumerate(batches):
        checkpoint(cancel)
        logs = await rpc.get_logs_batch(address, topic0, group, cancel=cancel)
        all_logs.extend(logs)
        done += len(group)
        logger.debug("batch %d/%d: blocks %d-%d, %d logs",
                     i + 1, len(batches), group[0].start, group[-1].end, len(logs))
        if on_progress is not None:
            on_progress(done, total)
        if i + 1 < len(batches) and inter_batch_delay_ms > 0:
            await sleep(inter_batch_delay_ms / 1000.0)

    uniq = dedupe_logs(all_logs)
    if len(uniq) != len(all_logs):
        logger.info("dropped %d duplicate logs", len(all_logs) - len(uniq))
    return uniq
