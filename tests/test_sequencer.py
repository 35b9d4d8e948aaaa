import unittest
from io import StringIO

from forgevcf.core_logic.constants import ResolutionPolicy
from forgevcf.core_logic.records import VcfReader, VcfWriter
from forgevcf.core_logic.sequencer import resolve
from forgevcf.db.ranks import RankStore

VCF = """##fileformat=VCFv4.2
##contig=<ID=20>
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tNA00001\tNA00002
20\t100\tlone1\tA\tG\t29\tPASS\t.\tGT\t0|1\t0|0
20\t200\tdelA\tGTTT\tG\t29\tPASS\t.\tGT\t1|0\t0|0
20\t201\tsnvB\tT\tC\t29\tPASS\t.\tGT\t1|0\t0|0
20\t203\tsnvC\tT\tA\t29\tPASS\t.\tGT\t0|1\t0|0
20\t300\tlone2\tC\tT\t29\tPASS\t.\tGT\t1/1\t0/1
21\t300\tx1\tC\tT\t29\tPASS\t.\tGT\t1|0\t0|0
21\t300\tx2\tC\tG\t29\tPASS\t.\tGT\t1|0\t0|0
"""

RANKS = ["20,201", "21,300", "20,200", "20,100", "20,300"]


class ListWriter:
    """Collects written records."""

    def __init__(self):
        self.records = []

    def write(self, record):
        self.records.append(record)


def run(text: str, tokens=RANKS, policy=ResolutionPolicy.ANCHOR):
    reader = VcfReader(StringIO(text))
    writer = ListWriter()
    stats = resolve(reader, writer, RankStore.from_tokens(tokens, 1.0), policy)
    return [record.id for record in writer.records], stats


class TestResolve(unittest.TestCase):
    """End-to-end behaviour of the resolve pipeline."""

    def test_selection_and_order(self):
        ids, stats = run(VCF)
        # delA conflicts with snvB (haplotype 1) and loses on rank; snvC sits on
        # haplotype 2 and is kept. x1/x2 share a site: the first one wins.
        self.assertEqual(ids, ["lone1", "snvB", "snvC", "lone2", "x1"])
        self.assertEqual(stats.read, 7)
        self.assertEqual(stats.written, 5)
        self.assertEqual(stats.dropped, 2)
        self.assertEqual(stats.clusters, 2)
        self.assertEqual(stats.clustered, 5)

    def test_last_record_is_flushed(self):
        ids, _ = run(VCF + "22\t5\tlast\tA\tT\t29\tPASS\t.\tGT\t0|1\t0|0\n")
        self.assertEqual(ids[-1], "last")

    def test_single_record(self):
        header = "".join(VCF.splitlines(keepends=True)[:3])
        ids, stats = run(header + "20\t100\tonly\tA\tG\t29\tPASS\t.\tGT\t0|1\t0|0\n")
        self.assertEqual(ids, ["only"])
        self.assertEqual(stats.clusters, 0)

    def test_empty_body(self):
        header = "".join(VCF.splitlines(keepends=True)[:3])
        ids, stats = run(header)
        self.assertEqual(ids, [])
        self.assertEqual(stats.read, 0)

    def test_output_is_subsequence_of_input(self):
        all_ids = [line.split("\t")[2] for line in VCF.splitlines() if not line.startswith("#")]
        ids, _ = run(VCF)
        positions = [all_ids.index(i) for i in ids]
        self.assertEqual(positions, sorted(positions))

    def test_idempotent(self):
        reader = VcfReader(StringIO(VCF))
        out = StringIO()
        ranks = RankStore.from_tokens(RANKS, 1.0)
        resolve(reader, VcfWriter(out, reader.header), ranks)
        first = out.getvalue()

        reader = VcfReader(StringIO(first))
        again = StringIO()
        stats = resolve(reader, VcfWriter(again, reader.header), ranks)
        self.assertEqual(again.getvalue(), first)
        self.assertEqual(stats.dropped, 0)

    def test_records_are_written_verbatim(self):
        reader = VcfReader(StringIO(VCF))
        out = StringIO()
        resolve(reader, VcfWriter(out, reader.header), RankStore.from_tokens(RANKS, 1.0))
        lines = out.getvalue().splitlines()
        self.assertEqual(lines[:3], VCF.splitlines()[:3])
        self.assertIn("20\t100\tlone1\tA\tG\t29\tPASS\t.\tGT\t0|1\t0|0", lines)

    def test_component_policy(self):
        ids, _ = run(VCF, policy=ResolutionPolicy.COMPONENT)
        self.assertEqual(ids, ["lone1", "snvB", "snvC", "lone2", "x1"])


if __name__ == "__main__":
    unittest.main()
