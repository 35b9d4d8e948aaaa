from __future__ import annotations

from loguru import logger

from forgevcf.core_logic.constants import GT_KEY, Phasing
from forgevcf.core_logic.errors import InconsistentSchemaError
from forgevcf.core_logic.genotype import Genotype, is_ref_hom, parse_genotype
from forgevcf.core_logic.ranges import variant_range
from forgevcf.core_logic.records import VcfRecord


def sample_coupled(gt1: Genotype, gt2: Genotype, sample: str = "?") -> bool:
    """Decide whether two calls of one sample may carry both alt alleles on
    the same haplotype.

    Missing calls cannot disprove coupling: two missing calls are coupled,
    and one missing call defers to whether the other call carries any alt.
    Two phased calls are coupled when some haplotype slot is alt in both.
    If either call is unphased, both calls carrying an alt is enough.

    Args:
        gt1 (Genotype): Call at the first site.
        gt2 (Genotype): Call at the second site.
        sample (str): Sample name, for logging only.

    Returns:
        bool: True when the calls are (or may be) in coupling configuration.
    """
    if gt1.is_missing and gt2.is_missing:
        logger.warning(f"Missing genotype fields for both records for sample '{sample}'")
        logger.warning("  consider sites with missing genotypes coupled")
        return True
    if gt1.is_missing or gt2.is_missing:
        present = gt2 if gt1.is_missing else gt1
        logger.warning(
            f"Missing genotype field in at least one record for sample '{sample}'"
        )
        logger.warning("  checking heterozygosity of the other site")
        return not is_ref_hom(present)
    if gt1.phasing is Phasing.PHASED and gt2.phasing is Phasing.PHASED:
        coupled = any(a1 and a2 for a1, a2 in zip(gt1.alts, gt2.alts))
        if coupled:
            logger.info(
                f"Found two alleles in coupling state in sample '{sample}' "
                f"({gt1} vs {gt2})"
            )
        return coupled
    logger.warning(f"Unphased genotypes in at least one record for sample '{sample}'")
    logger.warning("  checking heterozygosity of both sites")
    return not is_ref_hom(gt1) and not is_ref_hom(gt2)


def are_coupled(record1: VcfRecord, record2: VcfRecord, key: str = GT_KEY) -> bool:
    """Check whether two records are coupled in at least one sample.

    Needs phased genotypes to tell coupling from repulsion; otherwise any two
    non-reference calls count as coupled.

    Raises:
        InconsistentSchemaError: If the records have different sample sets.
    """
    samples = record1.header.samples
    if samples != record2.header.samples:
        raise InconsistentSchemaError(samples, record2.header.samples)

    for sample in samples:
        gt1 = parse_genotype(record1.genotype(sample, key))
        gt2 = parse_genotype(record2.genotype(sample, key))
        if sample_coupled(gt1, gt2, sample):
            return True
    return False


def are_conflicting(first: VcfRecord, second: VcfRecord) -> bool:
    """Check whether two records cannot both be kept.

    They conflict when their variant ranges overlap and they are coupled in
    some sample. For example, a ``GTTT>G`` deletion and a ``G>T`` SNV at the
    same POS never conflict, as the SNV sits on the deletion's anchor base.
    """
    return variant_range(first).overlaps(variant_range(second)) and are_coupled(
        first, second
    )
