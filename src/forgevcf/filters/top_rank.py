from __future__ import annotations

from typing import Iterable

from loguru import logger

from forgevcf.core_logic.constants import DEFAULT_INFO_KEY
from forgevcf.core_logic.records import VcfHeader, VcfRecord
from forgevcf.core_logic.sequencer import RecordSink
from forgevcf.db.ranks import RankStore


def annotated_header(header: VcfHeader, info_key: str) -> VcfHeader:
    """Declare the rank INFO key in a header."""
    return header.with_info(info_key, "1", "Integer", "FORGe rank of the site")


def filter_vcf(
    records: Iterable[VcfRecord],
    writer: RecordSink,
    ranks: RankStore,
    annotate: bool = False,
    info_key: str = DEFAULT_INFO_KEY,
) -> int:
    """Keep only records whose site is ranked.

    ``ranks`` is expected to be loaded with the wanted top fraction already
    applied.

    Args:
        records (Iterable[VcfRecord]): Input records.
        writer (RecordSink): Output.
        ranks (RankStore): Site ranking.
        annotate (bool): Insert ``info_key=<rank>`` into INFO.
        info_key (str): INFO key for the rank.

    Returns:
        int: Number of records written.
    """
    kept = 0
    seen = 0
    for record in records:
        seen += 1
        rank = ranks.rank_of(record)
        if rank is None:
            continue
        if annotate:
            record = record.with_info(info_key, str(rank))
        writer.write(record)
        kept += 1
    logger.info(f"Filter kept {kept} of {seen} records")
    return kept
