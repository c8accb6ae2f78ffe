"""
Tests for busy block merging.
"""

import pendulum

from slotengine.domain.busy import has_conflict, merge_busy_blocks
from slotengine.domain.models import BusyBlock, TimeRange


def _block(start: str, end: str, tz: str = "Europe/Berlin") -> BusyBlock:
    return BusyBlock(
        start=pendulum.parse(f"2025-01-13 {start}", tz=tz),
        end=pendulum.parse(f"2025-01-13 {end}", tz=tz),
    )


class TestMergeBusyBlocks:
    """Tests for merge_busy_blocks."""

    def test_empty(self):
        assert merge_busy_blocks([]) == []

    def test_overlapping_and_adjacent_blocks_are_merged(self):
        """[10:00-11:00, 10:30-12:00, 12:00-12:30] -> [10:00-12:30]"""
        merged = merge_busy_blocks([
            _block("12:00", "12:30"),
            _block("10:00", "11:00"),
            _block("10:30", "12:00"),
        ])

        assert merged == [_block("10:00", "12:30")]

    def test_contained_block(self):
        merged = merge_busy_blocks([_block("09:00", "17:00"), _block("10:00", "11:00")])

        assert merged == [_block("09:00", "17:00")]

    def test_disjoint_blocks_sorted(self):
        merged = merge_busy_blocks([_block("14:00", "15:00"), _block("09:00", "10:00")])

        assert [b.start.hour for b in merged] == [9, 14]
        assert all(isinstance(b, BusyBlock) for b in merged)

    def test_blocks_from_different_zones(self):
        """Blocks are compared as instants."""
        merged = merge_busy_blocks([
            _block("10:00", "11:00"),
            _block("09:30", "11:00", tz="UTC"),  # 10:30-12:00 Berlin
        ])

        assert len(merged) == 1
        assert merged[0].duration_minutes() == 120

    def test_same_zone_blocks_on_either_side_of_fall_back(self):
        """01:00-01:50 EDT and 01:10-01:20 EST are an hour apart."""
        first = BusyBlock(
            start=pendulum.datetime(2025, 11, 2, 5, 0, tz="UTC").in_timezone("America/New_York"),
            end=pendulum.datetime(2025, 11, 2, 5, 50, tz="UTC").in_timezone("America/New_York"),
        )
        second = BusyBlock(
            start=pendulum.datetime(2025, 11, 2, 6, 10, tz="UTC").in_timezone("America/New_York"),
            end=pendulum.datetime(2025, 11, 2, 6, 20, tz="UTC").in_timezone("America/New_York"),
        )

        merged = merge_busy_blocks([second, first])

        assert merged == [first, second]
        assert [b.duration_minutes() for b in merged] == [50, 10]

    def test_merging_does_not_change_conflicts(self):
        blocks = [_block("10:00", "11:00"), _block("10:30", "12:00"), _block("15:00", "16:00")]
        merged = merge_busy_blocks(blocks)

        for start, end in [("09:00", "10:00"), ("11:30", "12:30"), ("12:00", "15:00"), ("15:59", "17:00")]:
            footprint = TimeRange(
                start=pendulum.parse(f"2025-01-13 {start}", tz="Europe/Berlin"),
                end=pendulum.parse(f"2025-01-13 {end}", tz="Europe/Berlin"),
            )
            assert has_conflict(footprint, blocks) == has_conflict(footprint, merged)
