from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from loguru import logger

from forgevcf.core_logic.clusterer import iter_groups
from forgevcf.core_logic.constants import ResolutionPolicy
from forgevcf.core_logic.records import VcfRecord
from forgevcf.core_logic.report import ResolutionReport
from forgevcf.core_logic.resolver import resolve_cluster
from forgevcf.db.ranks import RankStore


class RecordSink(Protocol):
    """Anything records can be written to, e.g. a VcfWriter."""

    def write(self, record: VcfRecord) -> None: ...


@dataclass(slots=True)
class ResolveStats:
    """Counters of one resolve run.

    Attributes:
        read (int): Records read.
        written (int): Records written.
        clusters (int): Clusters of two or more overlapping records.
        clustered (int): Records that fell into a cluster.
    """

    read: int = 0
    written: int = 0
    clusters: int = 0
    clustered: int = 0

    @property
    def dropped(self) -> int:
        return self.read - self.written


def write_selected(
    writer: RecordSink, cluster: list[VcfRecord], selected: list[int]
) -> int:
    """Write the selected records of a cluster.

    The indices must be sorted so records keep their input order.

    Returns:
        int: Number of records written.
    """
    for idx in selected:
        writer.write(cluster[idx])
    return len(selected)


def resolve(
    records: Iterable[VcfRecord],
    writer: RecordSink,
    ranks: RankStore,
    policy: ResolutionPolicy = ResolutionPolicy.ANCHOR,
    report: ResolutionReport | None = None,
) -> ResolveStats:
    """Resolve overlapping variants by ranking.

    Isolated records are written as soon as the next record shows they have
    no overlapping partner; a cluster is resolved and its survivors written
    before any later record. The input must be sorted by CHROM and POS and
    the variants normalised.

    Args:
        records (Iterable[VcfRecord]): Input records, e.g. a VcfReader.
        writer (RecordSink): Output.
        ranks (RankStore): Site ranking.
        policy (ResolutionPolicy): How conflict groups are formed.
        report (ResolutionReport | None): Collector for cluster decisions.

    Returns:
        ResolveStats: Counters of the run.
    """
    stats = ResolveStats()
    for group in iter_groups(records):
        stats.read += len(group)
        if len(group) == 1:
            writer.write(group[0])
            stats.written += 1
            continue
        stats.clusters += 1
        stats.clustered += len(group)
        selected = resolve_cluster(group, ranks, policy, report)
        stats.written += write_selected(writer, group, selected)

    logger.info(
        f"Resolved {stats.clusters} clusters ({stats.clustered} records): "
        f"{stats.read} records read, {stats.written} written, {stats.dropped} dropped"
    )
    return stats
