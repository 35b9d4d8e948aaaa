from enum import Enum, auto

# Define version
VERSION = "0.3.0"


COMMON_COLS = ["CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT"]
MANDATORY_COLS = 8  # CHROM..INFO, FORMAT and samples are optional

GT_KEY = "GT"
PHASED_SEP = "|"
UNPHASED_SEP = "/"
MISSING_ALLELE = "."

# Any real rank is smaller than this
WORST_RANK = 2**63 - 1

DEFAULT_RANKS_PATH = "ordered.txt"
DEFAULT_INFO_KEY = "FORGE"
STDIO = "-"
GZIP_MAGIC = b"\x1f\x8b"
GZIP_SUFFIXES = (".gz", ".bgz")


class Phasing(Enum):
    PHASED = auto()
    UNPHASED = auto()
    MISSING = auto()


class ClusterState(Enum):
    EMPTY = auto()
    AWAITING_FIRST = auto()
    ACCUMULATING = auto()


class ResolutionPolicy(Enum):
    ANCHOR = "anchor"
    COMPONENT = "component"
