import gzip
import io
import os
import tempfile
import unittest
from io import StringIO
from unittest.mock import patch

from forgevcf.core_logic.errors import RecordParseError
from forgevcf.core_logic.records import (
    VcfReader,
    VcfRecord,
    VcfWriter,
    is_gzip_path,
    open_input,
    open_output,
    path_or,
)

VCF = (
    "##fileformat=VCFv4.2\n"
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1\tS2\n"
    "1\t10\trs1\tA\tG\t50\tPASS\tDP=9\tGT:DP\t0|1:4\t1/1\n"
    "\n"
    "1\t20\trs2\tC\tT\t50\tPASS\t.\tGT\t./.\t0|0\n"
)


class TestVcfReader(unittest.TestCase):
    """Tests for reading headers and records."""

    def test_header(self):
        reader = VcfReader(StringIO(VCF))
        self.assertEqual(reader.header.meta, ("##fileformat=VCFv4.2",))
        self.assertEqual(reader.header.samples, ("S1", "S2"))
        self.assertEqual(reader.header.columns[0], "CHROM")

    def test_records_skip_blank_lines(self):
        records = list(VcfReader(StringIO(VCF)))
        self.assertEqual([r.id for r in records], ["rs1", "rs2"])
        self.assertEqual(records[0].pos, 10)
        self.assertEqual(records[0].chrom, "1")
        self.assertEqual(records[0].ref, "A")
        self.assertEqual(records[0].alt, "G")

    def test_genotype_lookup(self):
        record = next(iter(VcfReader(StringIO(VCF))))
        self.assertEqual(record.genotype("S1"), "0|1")
        self.assertEqual(record.genotype("S1", "DP"), "4")
        # S2 only carries GT
        self.assertIsNone(record.genotype("S2", "DP"))
        self.assertIsNone(record.genotype("S1", "GQ"))
        with self.assertRaises(KeyError):
            record.genotype("S3")

    def test_sites_only_record(self):
        text = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n1\t5\t.\tA\tC\t.\t.\t.\n"
        record = next(iter(VcfReader(StringIO(text))))
        self.assertEqual(record.format_keys, [])
        self.assertEqual(record.header.samples, ())

    def test_bad_pos(self):
        text = VCF + "1\tten\t.\tA\tC\t.\t.\t.\n"
        reader = VcfReader(StringIO(text))
        with self.assertRaises(RecordParseError) as ctx:
            list(reader)
        self.assertEqual(ctx.exception.line_no, 6)

    def test_too_few_columns(self):
        with self.assertRaises(RecordParseError):
            list(VcfReader(StringIO(VCF + "1\t30\t.\tA\n")))

    def test_missing_header(self):
        with self.assertRaises(RecordParseError):
            VcfReader(StringIO("1\t10\t.\tA\tG\t.\t.\t.\n"))
        with self.assertRaises(RecordParseError):
            VcfReader(StringIO("##fileformat=VCFv4.2\n"))


class TestVcfRecord(unittest.TestCase):
    def setUp(self):
        self.reader = VcfReader(StringIO(VCF))
        self.first, self.second = list(self.reader)

    def test_with_info(self):
        self.assertEqual(self.first.with_info("FORGE", "3").info, "DP=9;FORGE=3")
        self.assertEqual(self.second.with_info("FORGE", "3").info, "FORGE=3")
        again = self.first.with_info("FORGE", "3").with_info("FORGE", "4")
        self.assertEqual(again.info, "DP=9;FORGE=4")
        # the original is untouched
        self.assertEqual(self.first.info, "DP=9")

    def test_header_with_info(self):
        header = self.reader.header.with_info("FORGE", "1", "Integer", "rank")
        self.assertTrue(header.has_info("FORGE"))
        self.assertIs(header.with_info("FORGE", "1", "Integer", "rank"), header)
        self.assertEqual(header.samples, self.reader.header.samples)

    def test_from_line_roundtrip(self):
        line = "1\t10\trs1\tA\tG\t50\tPASS\tDP=9\tGT:DP\t0|1:4\t1/1"
        record = VcfRecord.from_line(line + "\r\n", self.reader.header)
        self.assertEqual(record.to_line(), line)
        self.assertEqual(str(record), "1:10 A>G")


class TestVcfWriter(unittest.TestCase):
    def test_writes_header_then_records(self):
        reader = VcfReader(StringIO(VCF))
        out = StringIO()
        writer = VcfWriter(out, reader.header)
        for record in reader:
            writer.write(record)
        self.assertEqual(writer.count, 2)
        self.assertEqual(out.getvalue(), VCF.replace("\n\n", "\n"))


class TestStreams(unittest.TestCase):
    """Tests for plain/gzip file and stdio helpers."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_gzip_detected_from_content(self):
        # no .gz suffix: detection relies on the magic bytes
        path = self.path("input.vcf")
        with gzip.open(path, "wt") as fh:
            fh.write(VCF)
        with open_input(path) as fh:
            records = list(VcfReader(fh))
        self.assertEqual(len(records), 2)

    def test_plain_input(self):
        path = self.path("input.vcf")
        with open(path, "w") as fh:
            fh.write(VCF)
        with open_input(path) as fh:
            self.assertEqual(len(list(VcfReader(fh))), 2)

    def test_invalid_utf8_input(self):
        path = self.path("input.vcf")
        with open(path, "wb") as fh:
            fh.write(VCF.encode() + b"1\t30\t.\tA\t\xff\t.\t.\t.\n")
        with open_input(path) as fh:
            with self.assertRaises(RecordParseError) as ctx:
                list(VcfReader(fh))
        self.assertIn("invalid UTF-8", ctx.exception.reason)

    def test_stdin_input(self):
        fake = io.TextIOWrapper(io.BufferedReader(io.BytesIO(VCF.encode())))
        with patch("sys.stdin", fake):
            with open_input("-") as fh:
                self.assertEqual(len(list(VcfReader(fh))), 2)

    def test_output_gzip_by_suffix(self):
        path = self.path("out.vcf.gz")
        with open_output(path) as fh:
            fh.write("hello\n")
        with gzip.open(path, "rt") as fh:
            self.assertEqual(fh.read(), "hello\n")

    def test_output_forced_gzip(self):
        path = self.path("out.vcf")
        with open_output(path, force_gzip=True) as fh:
            fh.write("hello\n")
        with open(path, "rb") as fh:
            self.assertEqual(fh.read(2), b"\x1f\x8b")

    def test_plain_output(self):
        path = self.path("out.vcf")
        with open_output(path) as fh:
            fh.write("hello\n")
        with open(path) as fh:
            self.assertEqual(fh.read(), "hello\n")

    def test_helpers(self):
        self.assertTrue(is_gzip_path("a.vcf.gz"))
        self.assertTrue(is_gzip_path("a.vcf.bgz"))
        self.assertFalse(is_gzip_path("a.vcf"))
        self.assertEqual(path_or("-", "stdin"), "stdin")
        self.assertEqual(path_or("in.vcf", "stdin"), "in.vcf")


if __name__ == "__main__":
    unittest.main()
