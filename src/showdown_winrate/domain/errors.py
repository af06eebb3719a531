from __future__ import annotations
import re

RATE_LIMIT_ADVICE = (
    "If rate-limited, lower the batch size to 1 and raise the delay to 600-1000 ms. "
    "Public RPCs throttle shared IPs."
)

_RATE_LIMIT_RE = re.compile(r"\b429\b|rate.?limit|too many requests", re.IGNORECASE)


class WinrateError(Exception):
    """Base class for pipeline failures surfaced to the caller."""


class TransportError(WinrateError):
    """An RPC call failed for good (retries exhausted or request rejected)."""


class RpcRequestError(TransportError):
    """The endpoint rejected the request itself; retrying cannot help."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RpcResponseError(WinrateError):
    """A reply arrived but does not have the shape the method promises."""


class PipelineCancelled(WinrateError):
    pass


class ConfigError(WinrateError, ValueError):
    pass


def user_message(exc: BaseException) -> str:
    msg = str(exc) or type(exc).__name__
    if _RATE_LIMIT_RE.search(msg):
        return f"{msg}. {RATE_LIMIT_ADVICE}"
    return msg
