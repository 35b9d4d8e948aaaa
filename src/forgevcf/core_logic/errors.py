class ForgeVcfError(Exception):
    """Base class for errors that abort a run."""


class RecordParseError(ForgeVcfError, ValueError):
    """Exception raised when a VCF line cannot be turned into a record.

    Attributes:
        line_no (int): 1-based line number in the input stream.
        reason (str): What was wrong with the line.
        message (str): Explanation of the error.
    """

    def __init__(self, line_no: int, reason: str):
        self.line_no = line_no
        self.reason = reason
        self.message = f"Malformed VCF record at line {line_no}: {reason}"
        super().__init__(self.message)


class MalformedRankFileError(ForgeVcfError, ValueError):
    """Exception raised when a ranking file holds nothing but one bad token."""

    def __init__(self, token: str):
        self.token = token
        self.message = f"Ranking file contains a single invalid entry: {token!r}"
        super().__init__(self.message)


class InconsistentSchemaError(ForgeVcfError):
    """Exception raised when two compared records come from different sample sets.

    Attributes:
        samples1 (tuple[str, ...]): Samples of the first record.
        samples2 (tuple[str, ...]): Samples of the second record.
        message (str): Explanation of the error.
    """

    def __init__(self, samples1: tuple[str, ...], samples2: tuple[str, ...]):
        self.samples1 = samples1
        self.samples2 = samples2
        self.message = (
            f"Inconsistent VCF headers: {len(samples1)} samples "
            f"({', '.join(samples1[:3])}...) vs {len(samples2)} samples "
            f"({', '.join(samples2[:3])}...)"
        )
        super().__init__(self.message)


class RankFileDecodeError(ForgeVcfError, ValueError):
    """Exception raised when a ranking file is not UTF-8 text.

    Attributes:
        path (str): The ranking file.
        reason (str): Decoder message.
        message (str): Explanation of the error.
    """

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        self.message = f"Cannot decode ranking file {self.path}: {reason}"
        super().__init__(self.message)
