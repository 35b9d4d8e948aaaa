from __future__ import annotations

from typing import Iterable, Iterator

from loguru import logger

from forgevcf.core_logic.constants import ClusterState
from forgevcf.core_logic.ranges import PosRange, site_range
from forgevcf.core_logic.records import VcfRecord


class OverlapClusterer:
    """Split a sorted record stream into runs of overlapping sites.

    Records are pushed one at a time. Each push returns the groups that the
    new record closed: a group of one is an isolated record to pass through,
    a larger group is a cluster whose site ranges transitively overlap.

    States:
        EMPTY: nothing read yet.
        AWAITING_FIRST: one record held, no partner found yet.
        ACCUMULATING: a cluster of two or more records is pending.
    """

    def __init__(self):
        self.state = ClusterState.EMPTY
        self.previous: VcfRecord | None = None
        self.merged: PosRange | None = None
        self.pending: list[VcfRecord] = []

    def _joins(self, record: VcfRecord, rng: PosRange) -> bool:
        return record.chrom == self.previous.chrom and self.merged.overlaps(rng)

    def _restart(self, record: VcfRecord, rng: PosRange) -> None:
        self.previous = record
        self.merged = rng
        self.pending = []
        self.state = ClusterState.AWAITING_FIRST

    def push(self, record: VcfRecord) -> list[list[VcfRecord]]:
        """Feed the next record.

        Args:
            record (VcfRecord): Next record, in CHROM/POS order.

        Returns:
            list[list[VcfRecord]]: Groups completed by this record, in input
            order; empty while a group is still open.
        """
        rng = site_range(record)
        if self.state is ClusterState.EMPTY:
            self._restart(record, rng)
            return []

        if self._joins(record, rng):
            if self.state is ClusterState.AWAITING_FIRST:
                self.pending = [self.previous]
                self.state = ClusterState.ACCUMULATING
            self.pending.append(record)
            self.previous = record
            self.merged = self.merged.merge(rng)
            return []

        done = self.finish()
        self._restart(record, rng)
        return done

    def finish(self) -> list[list[VcfRecord]]:
        """Close the open group, if any, and return to EMPTY."""
        if self.state is ClusterState.ACCUMULATING:
            logger.info(
                f"Found a cluster of overlapping sites of size {len(self.pending)}, "
                f"spanning {len(self.merged)} bp"
            )
            done = [self.pending]
        elif self.state is ClusterState.AWAITING_FIRST:
            done = [[self.previous]]
        else:
            done = []
        self.state = ClusterState.EMPTY
        self.previous = None
        self.merged = None
        self.pending = []
        return done


def iter_groups(records: Iterable[VcfRecord]) -> Iterator[list[VcfRecord]]:
    """Yield isolated records (as one-element lists) and clusters in order."""
    clusterer = OverlapClusterer()
    for record in records:
        yield from clusterer.push(record)
    yield from clusterer.finish()
