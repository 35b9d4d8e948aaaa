from __future__ import annotations

from loguru import logger

from forgevcf.core_logic.constants import WORST_RANK, ResolutionPolicy
from forgevcf.core_logic.records import VcfRecord
from forgevcf.core_logic.report import ResolutionReport
from forgevcf.db.ranks import RankStore
from forgevcf.filters.conflict import are_conflicting

Group = tuple[int, list[int]]


def _anchor_groups(cluster: list[VcfRecord], ranks: list[int]) -> list[Group]:
    """Greedy sweep, testing conflicts against each unclaimed anchor only.

    Every later record is tested against the anchor, including records
    already claimed by an earlier anchor.

    Returns:
        list[Group]: ``(survivor, members)`` per anchor, in anchor order.
    """
    claimed = [False] * len(cluster)
    groups: list[Group] = []
    for idx, record in enumerate(cluster):
        if claimed[idx]:
            continue
        hi_idx = idx
        hi_rank = ranks[idx]
        members = [idx]
        for cursor in range(idx + 1, len(cluster)):
            if are_conflicting(record, cluster[cursor]):
                claimed[cursor] = True
                members.append(cursor)
                if ranks[cursor] < hi_rank:
                    hi_rank = ranks[cursor]
                    hi_idx = cursor
        groups.append((hi_idx, members))
    return groups


def _find(parent: list[int], idx: int) -> int:
    while parent[idx] != idx:
        parent[idx] = parent[parent[idx]]
        idx = parent[idx]
    return idx


def _component_groups(cluster: list[VcfRecord], ranks: list[int]) -> list[Group]:
    """Union every conflicting pair, keep the best rank per component.

    Returns:
        list[Group]: ``(survivor, members)`` per connected component, ordered
        by first member.
    """
    parent = list(range(len(cluster)))
    for i in range(len(cluster)):
        for j in range(i + 1, len(cluster)):
            if _find(parent, i) == _find(parent, j):
                continue
            if are_conflicting(cluster[i], cluster[j]):
                parent[_find(parent, j)] = _find(parent, i)

    components: dict[int, list[int]] = {}
    for idx in range(len(cluster)):
        components.setdefault(_find(parent, idx), []).append(idx)
    # min() keeps the first of equal ranks
    return [
        (min(members, key=lambda m: ranks[m]), members)
        for members in components.values()
    ]


def resolve_cluster(
    cluster: list[VcfRecord],
    ranks: RankStore,
    policy: ResolutionPolicy = ResolutionPolicy.ANCHOR,
    report: ResolutionReport | None = None,
) -> list[int]:
    """Resolve a cluster of overlapping sites.

    Overlapping sites are not necessarily conflicting with each other. For
    example, these records overlap but do not conflict::

        #CHROM  POS    ID  REF   ALT  QUAL  FILTER  INFO  FORMAT  NA00001  NA00002
        20      14370  .   GTTT  G    29    .       .     GT      0|0      1|0
        20      14370  .   G     T    29    .       .     GT      0|1      1|0
        20      14370  .   G     A    29    .       .     GT      1|0      0|0

    The first base of a normalised indel is kept in the alternative allele,
    so the first two records can co-occur in a sample, e.g. NA00002. The last
    two overlap fully, but no sample has both alleles on the same haplotype.

    Exactly one record survives per conflict group: the one with the lowest
    rank, unranked records losing to any ranked one and ties going to the
    earlier record. With ``ResolutionPolicy.ANCHOR`` a group is an unclaimed
    anchor plus every later record conflicting with it; with
    ``ResolutionPolicy.COMPONENT`` it is a connected component of the
    conflict graph.

    Args:
        cluster (list[VcfRecord]): Overlapping records in input order.
        ranks (RankStore): Site ranking.
        policy (ResolutionPolicy): How conflict groups are formed.
        report (ResolutionReport | None): Collector for the decisions.

    Returns:
        list[int]: Sorted, distinct indices of the records to keep.
    """
    raw_ranks = [ranks.rank_of(record) for record in cluster]
    priorities = [WORST_RANK if rank is None else rank for rank in raw_ranks]
    for idx, (record, rank) in enumerate(zip(cluster, raw_ranks)):
        logger.info(f"  [{idx}] {record}\trank={rank}")

    if policy is ResolutionPolicy.COMPONENT:
        groups = _component_groups(cluster, priorities)
    else:
        groups = _anchor_groups(cluster, priorities)

    # two anchors can pick the same record
    selected = sorted({survivor for survivor, _ in groups})
    logger.info(f"Selected {selected}")

    if report is not None:
        survivors = list(range(len(cluster)))
        for survivor, members in groups:
            for member in members:
                survivors[member] = survivor
        for idx in selected:
            survivors[idx] = idx
        report.add_cluster(cluster, raw_ranks, survivors)
    return selected
