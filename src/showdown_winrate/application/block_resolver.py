from __future__ import annotations

import logging
from typing import Optional

from ..domain.models import BlockRef, BlockSpan
from ..ports.rpc import RPCClient
from .cancel import CancelToken, checkpoint

logger = logging.getLogger(__name__)


class BlockResolver:
    """
    Maps Unix timestamps to block heights by binary search over block timestamps.
    Relies on timestamps being non-decreasing in block number; each lookup is one RPC call.
    """
    def __init__(self, rpc: RPCClient, cancel: CancelToken | None = None) -> None:
        self.rpc = rpc
        self.cancel = cancel

    async def _block(self, tag) -> BlockRef:
        checkpoint(self.cancel)
        return await self.rpc.get_block(tag, cancel=self.cancel)

    async def bounds(self) -> tuple[BlockRef, BlockRef]:
        earliest = await self._block("earliest")
        latest = await self._block("latest")
        return earliest, latest

    async def first_block_at_or_after(self, target_ts: int) -> int:
        """Smallest block with timestamp >= target_ts, clamped to [earliest, latest]."""
        earliest, latest = await self.bounds()
        return await self._search_after(earliest, latest, target_ts)

    async def last_block_at_or_before(self, target_ts: int) -> int:
        """Largest block with timestamp <= target_ts, clamped to [earliest, latest]."""
        earliest, latest = await self.bounds()
        return await self._search_before(earliest, latest, target_ts)

    async def _search_after(self, earliest: BlockRef, latest: BlockRef, target_ts: int) -> int:
        if target_ts <= earliest.timestamp: return earliest.number
        if target_ts > latest.timestamp: return latest.number
        lo, hi = earliest.number, latest.number
        while lo < hi:
            mid = lo + (hi - lo) // 2
            b = await self._block(mid)
            if b.timestamp >= target_ts: hi = mid
            else: lo = mid + 1
        return lo

    async def _search_before(self, earliest: BlockRef, latest: BlockRef, target_ts: int) -> int:
        if target_ts < earliest.timestamp: return earliest.number
        if target_ts >= latest.timestamp: return latest.number
        lo, hi = earliest.number, latest.number
        while lo < hi:
            mid = lo + (hi - lo + 1) // 2   # upper mid, or lo = mid never advances
            b = await self._block(mid)
            if b.timestamp <= target_ts: lo = mid
            else: hi = mid - 1
        return lo

    async def resolve_range(self, start_ts: Optional[int], end_ts: Optional[int]) -> Optional[BlockSpan]:
        """
        Block range for [start_ts, end_ts] (either side open when None).
        Returns None when no block can fall in the window: start after the
        chain head, end before genesis, or an inverted result.
        """
        earliest, latest = await self.bounds()
        if start_ts is not None and start_ts > latest.timestamp:
            logger.info("start %d is after the latest block (%d); empty range", start_ts, latest.timestamp)
            return None
        if end_ts is not None and end_ts < earliest.timestamp:
            logger.info("end %d is before the earliest block (%d); empty range", end_ts, earliest.timestamp)
            return None

        from_block = earliest.number if start_ts is None else await self._search_after(earliest, latest, start_ts)
        to_block = latest.number if end_ts is None else await self._search_before(earliest, latest, end_ts)
        if to_block < from_block:
            logger.info("resolved range is inverted (%d > %d); empty range", from_block, to_block)
            return None
        logger.info("resolved blocks %d-%d", from_block, to_block)
        return BlockSpan(start=from_block, end=to_block)
