from __future__ import annotations
import itertools, logging
from typing import Any, Iterable, Sequence
import httpx
from ..application.cancel import CancelToken
from ..domain.errors import RpcRequestError, RpcResponseError
from ..domain.models import BlockRef, BlockSpan, EventLog
from ..domain.value_types import Address, BlockTag, Topic0
from ..ports.rpc import RPCClient
from .retry import RetryableError, RetryPolicy

logger = logging.getLogger(__name__)

# parse error, invalid request, method not found: the request itself is wrong
FATAL_RPC_CODES = frozenset({-32700, -32600, -32601})
# request timeout, too early, too many requests
RETRYABLE_HTTP_CODES = frozenset({408, 425, 429})

def _to_hex_block(n: int) -> str: return hex(int(n))
def _is_topic_hash(x: str) -> bool: return isinstance(x, str) and x.startswith("0x") and len(x)==66

def _block_param(tag: BlockTag) -> str:
    if isinstance(tag, str):
        if tag not in ("earliest", "latest"):
            raise ValueError(f"Unsupported block tag: {tag!r}")
        return tag
    return _to_hex_block(tag)

def _hex_int(v: Any, what: str) -> int:
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v[:2].lower() == "0x":
        try:
            return int(v, 16)
        except ValueError:
            pass
    raise RpcResponseError(f"{what}: expected hex quantity, got {v!r}")

def _errors_of(data: Any) -> list[dict[str, Any]]:
    items = data if isinstance(data, list) else [data]
    out: list[dict[str, Any]] = []
    for it in items:
        if isinstance(it, dict) and it.get("error") is not None:
            err = it["error"]
            out.append(err if isinstance(err, dict) else {"message": str(err)})
    return out

def _parse_log(rl: Any) -> EventLog:
    if not isinstance(rl, dict):
        raise RpcResponseError(f"eth_getLogs: log entry is not an object: {rl!r}")
    try:
        topics = tuple(str(t).lower() for t in rl.get("topics") or [])
        return EventLog(
            address=Address(str(rl.get("address") or "").lower()),
            topics=topics,
            data_hex=str(rl.get("data") or "0x"),
            block_number=_hex_int(rl["blockNumber"], "log.blockNumber"),
            tx_hash=str(rl["transactionHash"]).lower(),
            log_index=_hex_int(rl["logIndex"], "log.logIndex"),
        )
    except KeyError as e:
        raise RpcResponseError(f"eth_getLogs: log entry missing {e.args[0]}") from e


class HttpxRPC(RPCClient):
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 20,
        max_conn: int = 16,
        *,
        retry: RetryPolicy | None = None,
        fatal_error_codes: Iterable[int] = FATAL_RPC_CODES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.retry = retry or RetryPolicy()
        self.fatal_error_codes = frozenset(fatal_error_codes)
        self._ids = itertools.count(1)
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_conn, max_keepalive_connections=max(1, max_conn//2)),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "HttpxRPC":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _payload(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

    async def _post_once(self, body: dict[str, Any] | list[dict[str, Any]]) -> Any:
        try:
            r = await self.client.post(self.rpc_url, json=body)
        except httpx.HTTPError as e:
            raise RetryableError(f"{type(e).__name__}: {e}") from e
        if r.status_code in RETRYABLE_HTTP_CODES or 500 <= r.status_code < 600:
            raise RetryableError(f"RPC HTTP {r.status_code}")
        if not r.is_success:
            raise RpcRequestError(f"RPC HTTP {r.status_code}: {r.text[:200]}")
        try:
            data = r.json()
        except ValueError as e:
            raise RetryableError(f"RPC returned non-JSON body: {e}") from e
        errors = _errors_of(data)
        for err in errors:
            if err.get("code") in self.fatal_error_codes:
                raise RpcRequestError(f"RPC error code={err.get('code')} message={err.get('message')}",
                                      code=err.get("code"))
        if errors:
            err = errors[0]
            what = "RPC batch error" if isinstance(data, list) else "RPC error"
            raise RetryableError(f"{what}: {err.get('message') or err}")
        return data

    async def call(self, body: dict[str, Any] | list[dict[str, Any]], cancel: CancelToken | None = None) -> Any:
        if isinstance(body, list):
            what = f"batch of {len(body)}"
        else:
            what = str(body.get("method", "rpc call"))
        logger.debug("POST %s (%s)", self.rpc_url, what)
        return await self.retry.run(lambda: self._post_once(body), what=what, cancel=cancel)

    async def get_block(self, tag: BlockTag, cancel: CancelToken | None = None) -> BlockRef:
        data = await self.call(self._payload("eth_getBlockByNumber", [_block_param(tag), False]), cancel)
        blk = data.get("result") if isinstance(data, dict) else None
        if not isinstance(blk, dict):
            raise RpcResponseError(f"Block not found: {tag}")
        return BlockRef(
            number=_hex_int(blk.get("number"), "block.number"),
            timestamp=_hex_int(blk.get("timestamp"), "block.timestamp"),
        )

    async def get_logs_batch(self, address: Address, topic0: Topic0, spans: Sequence[BlockSpan],
                             cancel: CancelToken | None = None) -> list[EventLog]:
        if not spans:
            return []
        t0 = str(topic0).strip().lower()
        if not _is_topic_hash(t0):
            raise ValueError(f"Invalid topic0: {topic0}")
        batch = [self._payload("eth_getLogs", [{
            "fromBlock": _to_hex_block(s.start),
            "toBlock": _to_hex_block(s.end),
            "address": str(address).lower(),
            "topics": [t0],
        }]) for s in spans]
        data = await self.call(batch, cancel)
        if not isinstance(data, list):
            raise RpcResponseError("eth_getLogs batch: expected a JSON array reply")
        by_id = {it.get("id"): it for it in data if isinstance(it, dict)}

        out: list[EventLog] = []
        for req, span in zip(batch, spans):
            item = by_id.get(req["id"])
            if item is None:
                raise RpcResponseError(f"eth_getLogs batch: no reply for blocks {span.start}-{span.end}")
            res = item.get("result")
            if not isinstance(res, list):
                raise RpcResponseError(f"eth_getLogs batch: result for blocks {span.start}-{span.end} is not a list")
            out.extend(_parse_log(rl) for rl in res)
        return out
