"""Configuration for a win/loss query.

A `WinrateQuery` carries everything one pipeline run needs: endpoint,
contract, date window, player and the throttling knobs. Values are
validated on construction; the endpoint and contract fall back to the
RPC_URL / CONTRACT_ADDRESS environment variables.
"""

import logging
import os
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional
from urllib.parse import urlparse

from eth_utils import is_address

from .domain.decoding import TOPIC0
from .domain.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://carrot.megaeth.com/rpc"
DEFAULT_CONTRACT_ADDRESS = "0xae2afe4d192127e6617cfa638a94384b53facec1"
DEFAULT_BATCH_SIZE = 2
DEFAULT_DELAY_MS = 400
DEFAULT_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class WinrateQuery:
    """Input of one win/loss computation.

    Attributes:
        rpc_url: HTTP(S) JSON-RPC endpoint
        contract_address: Emitter of GameResultEvent (stored lowercase)
        player: Player name; matched trimmed and case-insensitively
        start_date: First local day included (None = from the earliest block)
        end_date: Last local day included (None = through the latest block)
        batch_size: eth_getLogs spans per batched request, 1..8
        inter_batch_delay_ms: Pause between batches
        attempts: Tries per RPC call before giving up
        timeout_s: HTTP timeout per request
        topic0: Event signature hash to filter on
    """

    rpc_url: str
    contract_address: str
    player: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    inter_batch_delay_ms: int = DEFAULT_DELAY_MS
    attempts: int = DEFAULT_ATTEMPTS
    timeout_s: float = 20.0
    topic0: str = TOPIC0

    def __post_init__(self) -> None:
        if not self.rpc_url:
            raise ConfigError("RPC URL is required (RPC_URL)")
        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid RPC URL: {self.rpc_url!r}. Expected an http(s) URL")

        if not self.contract_address or not is_address(self.contract_address):
            raise ConfigError(f"Invalid contract address: {self.contract_address!r}")
        object.__setattr__(self, "contract_address", self.contract_address.lower())

        if not self.player or not self.player.strip():
            raise ConfigError("Player name is required")

        if not 1 <= self.batch_size <= 8:
            raise ConfigError(f"batch_size must be between 1 and 8, got {self.batch_size}")
        if self.inter_batch_delay_ms < 0:
            raise ConfigError(f"inter_batch_delay_ms must be >= 0, got {self.inter_batch_delay_ms}")
        if self.attempts < 1:
            raise ConfigError(f"attempts must be >= 1, got {self.attempts}")
        if self.timeout_s <= 0:
            raise ConfigError(f"timeout_s must be > 0, got {self.timeout_s}")

        t0 = self.topic0.strip().lower()
        if not (t0.startswith("0x") and len(t0) == 66):
            raise ConfigError(f"Invalid topic0: {self.topic0!r}")
        object.__setattr__(self, "topic0", t0)

        if self.start_date and self.end_date and self.start_date > self.end_date:
            logger.warning("start date %s is after end date %s; the result will be empty",
                           self.start_date, self.end_date)

    @classmethod
    def from_env(cls, player: str, **overrides) -> "WinrateQuery":
        """Build a query taking endpoint and contract from the environment when not given."""
        rpc_url = overrides.pop("rpc_url", None) or os.getenv("RPC_URL", DEFAULT_RPC_URL)
        contract = overrides.pop("contract_address", None) or os.getenv("CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS)
        return cls(rpc_url=rpc_url, contract_address=contract, player=player, **overrides)

    def with_dates(self, start_date: Optional[date], end_date: Optional[date]) -> "WinrateQuery":
        return replace(self, start_date=start_date, end_date=end_date)
