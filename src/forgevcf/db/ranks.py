from __future__ import annotations

from dataclasses import dataclass, field
import math
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping

from loguru import logger

from forgevcf.core_logic.errors import MalformedRankFileError, RankFileDecodeError

if TYPE_CHECKING:
    from forgevcf.core_logic.records import VcfRecord

SiteMap = dict[int, int]
RegSiteMap = dict[str, SiteMap]


def parse_rank_token(token: str) -> tuple[str, int] | None:
    """Split a ``chromosome,position`` ranking token.

    Args:
        token (str): A single token from the ranking file.

    Returns:
        tuple[str, int] | None: ``(chromosome, position)``, or None when the
        token does not have exactly two fields, the position is not a
        non-negative integer, or the chromosome is empty or not ASCII.
    """
    fields = token.split(",")
    if len(fields) != 2:
        return None
    chrom, pos = fields
    if not chrom or not chrom.isascii():
        return None
    if not (pos.isascii() and pos.isdigit()):
        return None
    return chrom, int(pos)


def read_rank_tokens(path: str | Path) -> list[str]:
    """Read all whitespace separated tokens of a ranking file, in file order."""
    with open(path, "rt", encoding="utf-8") as fh:
        return [token for line in fh for token in line.split()]


@dataclass(slots=True, frozen=True)
class RankStore:
    """Read-only lookup from a genomic site to its FORGe rank.

    Ranks are 1-based in ranking-file order; lower is better. The store is
    built once and never mutated, so it can be shared freely.

    Attributes:
        sites (Mapping[str, Mapping[int, int]]): Chromosome to position to
            rank, as read-only views.
        total_tokens (int): Tokens seen in the source, valid or not.
        target (int): Number of distinct entries requested by ``top``.
    """

    sites: Mapping[str, Mapping[int, int]]
    total_tokens: int = 0
    target: int = 0
    size: int = field(init=False)

    def __post_init__(self):
        frozen = MappingProxyType(
            {chrom: MappingProxyType(dict(smap)) for chrom, smap in self.sites.items()}
        )
        object.__setattr__(self, "sites", frozen)
        object.__setattr__(self, "size", sum(len(s) for s in frozen.values()))

    @classmethod
    def from_tokens(cls, tokens: Iterable[str], top: float = 1.0) -> RankStore:
        """Build a store from ranking tokens.

        The number of entries kept is ``floor(top * len(tokens))``, counting
        every token including malformed ones and duplicates. Loading stops as
        soon as that many distinct sites are ranked.

        Args:
            tokens (Iterable[str]): ``chromosome,position`` tokens, best first.
            top (float): Fraction of the ranking to keep, in [0, 1].

        Returns:
            RankStore: The loaded store.

        Raises:
            ValueError: If ``top`` is outside [0, 1].
            MalformedRankFileError: If the only token is malformed.
        """
        if not 0.0 <= top <= 1.0:
            raise ValueError(f"top fraction must be within [0, 1], got {top}")
        tokens = list(tokens)
        total = len(tokens)
        if total == 0:
            logger.warning("Ranking is empty, no site is ranked")
        if total == 1 and parse_rank_token(tokens[0]) is None:
            logger.error(f"Invalid input format: {tokens[0]}")
            raise MalformedRankFileError(tokens[0])

        n = math.floor(top * total)
        smap: RegSiteMap = {}
        rank = 0
        for token in tokens:
            if rank >= n:
                break
            parsed = parse_rank_token(token)
            if parsed is None:
                logger.warning(f"Invalid input format: {token}")
                continue
            chrom, pos = parsed
            positions = smap.setdefault(chrom, {})
            if pos in positions:
                logger.warning(f"Duplicated position: {token}")
                continue
            rank += 1
            positions[pos] = rank

        if rank < n:
            logger.warning(
                f"Only {rank} distinct sites ranked, {n} requested "
                f"({top} of {total} entries)"
            )
        store = cls(sites=smap, total_tokens=total, target=n)
        logger.info(f"Ranks loaded: {len(store)} sites on {len(smap)} chromosomes.")
        return store

    def lookup(self, chrom: str, pos: int) -> int | None:
        """Rank of a site, None when unranked."""
        positions = self.sites.get(chrom)
        if positions is None:
            return None
        return positions.get(pos)

    def rank_of(self, record: VcfRecord) -> int | None:
        return self.lookup(record.chrom, record.pos)

    def to_dict(self) -> RegSiteMap:
        return {chrom: dict(smap) for chrom, smap in self.sites.items()}

    def __len__(self) -> int:
        return self.size


def load_rank(path: str | Path, top: float = 1.0) -> RankStore:
    """Load a FORGe ranking file.

    Args:
        path (str | Path): Ranking file with one ``chromosome,position`` token
            per line (or tab separated).
        top (float): Fraction of the ranking to keep.

    Returns:
        RankStore: The loaded store.

    Raises:
        FileNotFoundError: If the ranking file does not exist.
        RankFileDecodeError: If the ranking file is not valid UTF-8.
    """
    logger.info(f"Attempting to load ranks from {path} (top={top})...")
    try:
        tokens = read_rank_tokens(path)
    except FileNotFoundError:
        logger.error(f"FORGe rank file not found: {path}")
        raise
    except UnicodeDecodeError as e:
        logger.error(f"FORGe rank file is not valid UTF-8: {path}")
        raise RankFileDecodeError(path, str(e)) from e
    return RankStore.from_tokens(tokens, top)
