"""
Busy block normalization.

Merging is an optimization for the overlap checks in slot generation, not a
correctness requirement: checking a footprint against unmerged, overlapping
blocks gives the same answer.
"""

from typing import Iterable, List, Sequence

from .models import BusyBlock, TimeRange, as_utc


def merge_busy_blocks(blocks: Iterable[TimeRange]) -> List[BusyBlock]:
    """
    Merge overlapping or adjacent busy blocks into a sorted timeline.

    Example: [10:00-11:00, 10:30-12:00, 12:00-12:30] -> [10:00-12:30]
    """
    sorted_blocks = sorted(blocks, key=lambda b: as_utc(b.start))

    if not sorted_blocks:
        return []

    first = sorted_blocks[0]
    merged: List[BusyBlock] = [BusyBlock(start=first.start, end=first.end)]

    for current in sorted_blocks[1:]:
        last = merged[-1]

        if as_utc(current.start) <= as_utc(last.end):
            merged[-1] = BusyBlock(start=last.start, end=max(last.end, current.end, key=as_utc))
        else:
            merged.append(BusyBlock(start=current.start, end=current.end))

    return merged


def has_conflict(footprint: TimeRange, busy_blocks: Sequence[TimeRange]) -> bool:
    """True if ``footprint`` overlaps any busy block."""
    return any(footprint.overlaps(busy) for busy in busy_blocks)
