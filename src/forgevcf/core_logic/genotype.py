from __future__ import annotations

from dataclasses import dataclass

from forgevcf.core_logic.constants import (
    MISSING_ALLELE,
    PHASED_SEP,
    UNPHASED_SEP,
    Phasing,
)


@dataclass(slots=True, frozen=True)
class Genotype:
    """A sample's call at one site, reduced to alt-presence per haplotype.

    Attributes:
        phasing (Phasing): PHASED, UNPHASED or MISSING.
        alts (tuple[bool, ...]): One flag per haplotype copy, True when that
            copy carries an alternate allele. Always empty for MISSING.
    """

    phasing: Phasing
    alts: tuple[bool, ...] = ()

    @classmethod
    def missing(cls) -> Genotype:
        return cls(Phasing.MISSING)

    @property
    def is_missing(self) -> bool:
        return self.phasing is Phasing.MISSING

    @property
    def is_phased(self) -> bool:
        return self.phasing is Phasing.PHASED

    def __str__(self) -> str:
        if self.is_missing:
            return MISSING_ALLELE
        sep = PHASED_SEP if self.is_phased else UNPHASED_SEP
        return sep.join("1" if alt else "0" for alt in self.alts)


def parse_genotype(raw: str | None) -> Genotype:
    """Parse a raw GT value such as ``0|1``, ``1/1`` or ``./.``.

    Any ``/`` separator makes the call unphased; a haploid call has no
    separator and counts as phased. A missing value, or any missing allele,
    yields a MISSING genotype.

    Args:
        raw (str | None): GT field text, None when the FORMAT key is absent.

    Returns:
        Genotype: The parsed genotype.
    """
    if raw is None:
        return Genotype.missing()
    raw = raw.strip()
    if not raw or raw == MISSING_ALLELE:
        return Genotype.missing()

    phasing = Phasing.UNPHASED if UNPHASED_SEP in raw else Phasing.PHASED
    alleles = raw.replace(UNPHASED_SEP, PHASED_SEP).split(PHASED_SEP)
    if any(allele in ("", MISSING_ALLELE) for allele in alleles):
        return Genotype.missing()
    try:
        alts = tuple(int(allele) > 0 for allele in alleles)
    except ValueError:
        # not a GT value at all, nothing can be said about the sample
        return Genotype.missing()
    return Genotype(phasing, alts)


def is_ref_hom(genotype: Genotype) -> bool | None:
    """Check whether every haplotype copy carries the reference allele.

    Returns:
        bool | None: None for a MISSING genotype.
    """
    if genotype.is_missing:
        return None
    return not any(genotype.alts)
