from __future__ import annotations
from typing import Iterator, Sequence, TypeVar
from ..domain.models import BlockSpan, MAX_SPAN

T = TypeVar("T")

def plan_spans(start_block: int, end_block: int, max_span: int = MAX_SPAN) -> list[BlockSpan]:
    """Cover [start_block, end_block] with ascending, non-overlapping spans of at most `max_span` blocks."""
    if max_span < 1:
        raise ValueError("max_span must be >= 1")
    out: list[BlockSpan] = []
    b = start_block
    while b <= end_block:
        fb, tb = b, min(end_block, b + max_span - 1)
        out.append(BlockSpan(start=fb, end=tb))
        b = tb + 1
    return out

def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for i in range(0, len(items), size):
        yield items[i:i+size]
