import unittest

from forgevcf.core_logic.constants import Phasing
from forgevcf.core_logic.genotype import Genotype, is_ref_hom, parse_genotype


class TestParseGenotype(unittest.TestCase):
    """Tests for turning GT text into alt-presence flags."""

    def test_phased(self):
        gt = parse_genotype("0|1")
        self.assertEqual(gt.phasing, Phasing.PHASED)
        self.assertEqual(gt.alts, (False, True))

    def test_unphased(self):
        gt = parse_genotype("1/1")
        self.assertEqual(gt.phasing, Phasing.UNPHASED)
        self.assertEqual(gt.alts, (True, True))

    def test_multiallelic_index_is_alt(self):
        self.assertEqual(parse_genotype("2|0").alts, (True, False))

    def test_mixed_separators_are_unphased(self):
        self.assertEqual(parse_genotype("0|1/1").phasing, Phasing.UNPHASED)

    def test_haploid_counts_as_phased(self):
        gt = parse_genotype("1")
        self.assertEqual(gt.phasing, Phasing.PHASED)
        self.assertEqual(gt.alts, (True,))

    def test_missing_values(self):
        for raw in (None, "", ".", "./.", ".|.", "0/.", ".|1", "A/B"):
            with self.subTest(raw=raw):
                self.assertTrue(parse_genotype(raw).is_missing)

    def test_str(self):
        self.assertEqual(str(parse_genotype("0|2")), "0|1")
        self.assertEqual(str(parse_genotype("1/0")), "1/0")
        self.assertEqual(str(Genotype.missing()), ".")


class TestIsRefHom(unittest.TestCase):
    def test_values(self):
        self.assertTrue(is_ref_hom(parse_genotype("0|0")))
        self.assertTrue(is_ref_hom(parse_genotype("0/0")))
        self.assertFalse(is_ref_hom(parse_genotype("0/1")))
        self.assertFalse(is_ref_hom(parse_genotype("1|1")))
        self.assertIsNone(is_ref_hom(Genotype.missing()))


if __name__ == "__main__":
    unittest.main()
