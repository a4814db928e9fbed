"""Victim selection for a full cache set.

Both policies share a small API so the cache can call them interchangeably:

- touch(block, stamp): a resident block was hit
- fill(block, stamp): a block was (re)allocated
- victim(blocks): index of the way to evict

LRU orders ways by their last touch, FIFO by the time they were filled.
Hits never move a block in FIFO order.
"""
from typing import Sequence

from cachesim.core.config import ReplacementPolicy


class LRUReplacement:
    """Least-Recently-Used: evict the way with the oldest recency stamp."""

    def touch(self, block, stamp: int) -> None:
        block.recency = stamp

    def fill(self, block, stamp: int) -> None:
        block.recency = stamp
        block.loaded_at = stamp

    def victim(self, blocks: Sequence) -> int:
        return _oldest(blocks, 'recency')


class FIFOReplacement(LRUReplacement):
    """First-In-First-Out: evict the way that was filled first."""

    def victim(self, blocks: Sequence) -> int:
        return _oldest(blocks, 'loaded_at')


def _oldest(blocks: Sequence, field: str) -> int:
    # lowest way index wins a tie
    index = 0
    oldest = getattr(blocks[0], field)
    for i in range(1, len(blocks)):
        stamp = getattr(blocks[i], field)
        if stamp < oldest:
            oldest = stamp
            index = i
    return index


_POLICIES = {
    ReplacementPolicy.LRU: LRUReplacement,
    ReplacementPolicy.FIFO: FIFOReplacement,
}


def make_policy(replacement: ReplacementPolicy):
    return _POLICIES[replacement]()


__all__ = ["LRUReplacement", "FIFOReplacement", "make_policy"]
