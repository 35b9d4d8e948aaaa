from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
from loguru import logger

from forgevcf.core_logic.records import VcfRecord

REPORT_COLS = ["cluster", "index", "chrom", "pos", "ref", "alt", "rank", "survivor", "kept"]


@dataclass(slots=True)
class ResolutionReport:
    """Collects every decision made on overlapping clusters.

    One row per clustered record: its rank (empty when unranked), the index
    of the record that survived its conflict group, and whether it was kept.
    """

    rows: list[dict[str, object]] = field(default_factory=list)
    clusters: int = 0

    def add_cluster(
        self,
        cluster: list[VcfRecord],
        ranks: list[int | None],
        survivors: list[int],
    ) -> None:
        """Record one resolved cluster.

        Args:
            cluster (list[VcfRecord]): Records of the cluster.
            ranks (list[int | None]): Rank per record.
            survivors (list[int]): For each record, the index of its group's
                survivor.
        """
        self.clusters += 1
        for idx, (record, rank, survivor) in enumerate(zip(cluster, ranks, survivors)):
            self.rows.append(
                {
                    "cluster": self.clusters,
                    "index": idx,
                    "chrom": record.chrom,
                    "pos": record.pos,
                    "ref": record.ref,
                    "alt": record.alt,
                    "rank": rank,
                    "survivor": survivor,
                    "kept": survivor == idx,
                }
            )

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(self.rows, columns=REPORT_COLS)
        df["rank"] = df["rank"].astype("Int64")
        return df

    def summary(self) -> pd.DataFrame:
        """Per-chromosome counts of clusters, clustered and dropped records."""
        df = self.to_frame()
        if df.empty:
            return pd.DataFrame(columns=["chrom", "clusters", "records", "dropped"])
        return (
            df.groupby("chrom", sort=False)
            .agg(
                clusters=("cluster", "nunique"),
                records=("index", "size"),
                dropped=("kept", lambda kept: int((~kept).sum())),
            )
            .reset_index()
        )

    def write(self, path: str | Path) -> None:
        df = self.to_frame()
        df.to_csv(path, sep="\t", index=False)
        logger.info(f"Resolution report written to {path}: {len(df)} rows")
