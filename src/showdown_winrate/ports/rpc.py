# showdown_winrate/ports/rpc.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence
from ..domain.models import BlockRef, BlockSpan, EventLog
from ..domain.value_types import Address, BlockTag, Topic0

if TYPE_CHECKING:
    from ..application.cancel import CancelToken


class RPCClient(Protocol):
    """Port defining the contract for an Ethereum JSON-RPC client used by the pipeline.

    `cancel` is checked before every attempt, including retries.
    """

    async def call(self, body: dict[str, Any] | list[dict[str, Any]], cancel: CancelToken | None = None) -> Any:
        """Send one JSON-RPC request or a batch; raise TransportError once retries are spent."""

    async def get_block(self, tag: BlockTag, cancel: CancelToken | None = None) -> BlockRef:
        """Return number and timestamp of the block at `tag` ("earliest", "latest" or a height)."""

    async def get_logs_batch(
        self,
        address: Address,
        topic0: Topic0,
        spans: Sequence[BlockSpan],
        cancel: CancelToken | None = None,
    ) -> list[EventLog]:
        """Return logs for every span, issued as one batched round-trip, in span order."""
