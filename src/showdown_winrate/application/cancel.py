from __future__ import annotations
import asyncio
from ..domain.errors import PipelineCancelled


class CancelToken:
    """Cooperative cancellation flag, checked before every network wait."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelled("canceled")


def checkpoint(token: CancelToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
