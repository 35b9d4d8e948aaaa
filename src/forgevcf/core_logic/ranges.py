from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forgevcf.core_logic.records import VcfRecord


@dataclass(slots=True, frozen=True)
class PosRange:
    """An inclusive 1-based interval on a reference sequence.

    Attributes:
        start (int): First position covered.
        end (int): Last position covered.
    """

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, other: PosRange) -> bool:
        """Check whether two inclusive ranges share at least one position."""
        return max(self.start, other.start) <= min(self.end, other.end)

    def merge(self, other: PosRange) -> PosRange:
        """Smallest range covering both ranges."""
        return PosRange(min(self.start, other.start), max(self.end, other.end))


def site_range(record: VcfRecord) -> PosRange:
    """Get the reference span of a record.

    The range is inclusive and used to build overlapping clusters. For
    example, a record at POS 14370 with REF ``GTTT`` has the site range
    (14370, 14373).

    Args:
        record (VcfRecord): The record.

    Returns:
        PosRange: ``[pos, pos + len(ref) - 1]``.
    """
    start = record.pos
    return PosRange(start, start + len(record.ref) - 1)


def variant_range(record: VcfRecord) -> PosRange:
    """Get the span of reference bases actually altered by a record.

    Records are assumed normalised (left-aligned and parsimonious), so the
    first base of a multi-base REF is the shared anchor base of an indel and
    is never itself variant. A record at POS 14370 with REF ``GTTT`` has the
    variant range (14371, 14373); a SNV keeps its single position.

    Args:
        record (VcfRecord): The record.

    Returns:
        PosRange: The inclusive altered span.
    """
    site = site_range(record)
    if site.start != site.end:
        return PosRange(site.start + 1, site.end)
    return site
