from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import gzip
import io
import sys
from pathlib import Path
from typing import IO, Iterator, TextIO

from loguru import logger

from forgevcf.core_logic.constants import (
    COMMON_COLS,
    GT_KEY,
    GZIP_MAGIC,
    GZIP_SUFFIXES,
    MANDATORY_COLS,
    STDIO,
)
from forgevcf.core_logic.errors import RecordParseError


@dataclass(slots=True, frozen=True)
class VcfHeader:
    """Meta lines and column header of a VCF stream.

    Attributes:
        meta (tuple[str, ...]): ``##`` lines without trailing newline.
        columns (tuple[str, ...]): Fields of the ``#CHROM`` line, leading
            ``#`` stripped.
        samples (tuple[str, ...]): Sample names, derived from ``columns``.
    """

    meta: tuple[str, ...]
    columns: tuple[str, ...] = tuple(COMMON_COLS)
    samples: tuple[str, ...] = field(init=False)
    sample_index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        samples = tuple(self.columns[len(COMMON_COLS):])
        object.__setattr__(self, "samples", samples)
        object.__setattr__(
            self, "sample_index", {name: i for i, name in enumerate(samples)}
        )

    def lines(self) -> list[str]:
        return [*self.meta, "#" + "\t".join(self.columns)]

    def has_info(self, key: str) -> bool:
        return any(line.startswith(f"##INFO=<ID={key},") for line in self.meta)

    def with_info(self, key: str, number: str, kind: str, description: str) -> VcfHeader:
        """Return a copy of the header declaring an INFO key, if not declared yet."""
        if self.has_info(key):
            return self
        line = (
            f'##INFO=<ID={key},Number={number},Type={kind},'
            f'Description="{description}">'
        )
        return VcfHeader(meta=(*self.meta, line), columns=self.columns)


@dataclass(slots=True, frozen=True)
class VcfRecord:
    """A single VCF data line.

    The raw columns are kept so the record can be written back unchanged.

    Attributes:
        fields (tuple[str, ...]): Tab separated columns of the line.
        pos (int): 1-based position parsed from POS.
        header (VcfHeader): Header the record was read under.
    """

    fields: tuple[str, ...]
    pos: int
    header: VcfHeader = field(repr=False, compare=False)

    @classmethod
    def from_line(cls, line: str, header: VcfHeader, line_no: int = 0) -> VcfRecord:
        """Split a data line into a record.

        Raises:
            RecordParseError: Too few columns or a non-integer POS.
        """
        cols = tuple(line.rstrip("\r\n").split("\t"))
        if len(cols) < MANDATORY_COLS:
            raise RecordParseError(
                line_no, f"expected at least {MANDATORY_COLS} columns, got {len(cols)}"
            )
        try:
            pos = int(cols[1])
        except ValueError:
            raise RecordParseError(line_no, f"POS is not an integer: {cols[1]!r}")
        if not cols[3]:
            raise RecordParseError(line_no, "empty REF")
        return cls(fields=cols, pos=pos, header=header)

    @property
    def chrom(self) -> str:
        return self.fields[0]

    @property
    def id(self) -> str:
        return self.fields[2]

    @property
    def ref(self) -> str:
        return self.fields[3]

    @property
    def alt(self) -> str:
        return self.fields[4]

    @property
    def info(self) -> str:
        return self.fields[7]

    @property
    def format_keys(self) -> list[str]:
        if len(self.fields) <= MANDATORY_COLS:
            return []
        return self.fields[MANDATORY_COLS].split(":")

    def genotype(self, sample: str, key: str = GT_KEY) -> str | None:
        """Look up one FORMAT field of one sample.

        Args:
            sample (str): Sample name from the header.
            key (str): FORMAT key, GT by default.

        Returns:
            str | None: The raw value, or None when the key is not in FORMAT
            or the sample column is truncated.

        Raises:
            KeyError: If the sample is not in the header.
        """
        column = MANDATORY_COLS + 1 + self.header.sample_index[sample]
        keys = self.format_keys
        if key not in keys or column >= len(self.fields):
            return None
        values = self.fields[column].split(":")
        idx = keys.index(key)
        if idx >= len(values):
            return None
        return values[idx]

    def with_info(self, key: str, value: str) -> VcfRecord:
        """Return a copy with ``key=value`` set in INFO."""
        entries = [
            entry
            for entry in self.info.split(";")
            if entry and entry != "." and entry.split("=", 1)[0] != key
        ]
        entries.append(f"{key}={value}")
        cols = list(self.fields)
        cols[7] = ";".join(entries)
        return VcfRecord(fields=tuple(cols), pos=self.pos, header=self.header)

    def to_line(self) -> str:
        return "\t".join(self.fields)

    def __str__(self) -> str:
        return f"{self.chrom}:{self.pos} {self.ref}>{self.alt}"


class VcfReader:
    """Sequential reader over a VCF text stream.

    The header is consumed on construction; records are produced one at a
    time by :meth:`next_record` or by iterating the reader.
    """

    def __init__(self, handle: TextIO):
        self.handle = handle
        self.line_no = 0
        meta: list[str] = []
        columns: list[str] | None = None
        while True:
            line = self._readline()
            if not line:
                break
            self.line_no += 1
            if line.startswith("##"):
                meta.append(line.rstrip("\r\n"))
                continue
            if line.startswith("#CHROM"):
                columns = line.rstrip("\r\n")[1:].split("\t")
                break
            raise RecordParseError(self.line_no, "VCF header not found before records")
        if columns is None:
            raise RecordParseError(self.line_no, "missing #CHROM header line")
        self.header = VcfHeader(meta=tuple(meta), columns=tuple(columns))
        logger.debug(
            f"VCF header read: {len(meta)} meta lines, {len(self.header.samples)} samples"
        )

    def _readline(self) -> str:
        try:
            return self.handle.readline()
        except UnicodeDecodeError as e:
            raise RecordParseError(self.line_no + 1, f"invalid UTF-8: {e}")

    def next_record(self) -> VcfRecord | None:
        """Read the next record, None at end of stream."""
        while True:
            line = self._readline()
            if not line:
                return None
            self.line_no += 1
            if not line.strip():
                continue
            return VcfRecord.from_line(line, self.header, self.line_no)

    def __iter__(self) -> Iterator[VcfRecord]:
        while (record := self.next_record()) is not None:
            yield record


class VcfWriter:
    """Writes a header once, then records, to a text stream."""

    def __init__(self, handle: TextIO, header: VcfHeader):
        self.handle = handle
        self.header = header
        self.count = 0
        for line in header.lines():
            handle.write(line + "\n")

    def write(self, record: VcfRecord) -> None:
        self.handle.write(record.to_line() + "\n")
        self.count += 1


def is_gzipped(stream: IO[bytes]) -> bool:
    """Check a peekable binary stream for the gzip magic bytes."""
    return stream.peek(len(GZIP_MAGIC))[: len(GZIP_MAGIC)] == GZIP_MAGIC


def is_gzip_path(path: str | Path) -> bool:
    return str(path).endswith(GZIP_SUFFIXES)


def path_or(path: str | Path, stdio: str) -> str:
    """Display name of a path, ``stdio`` for ``-``."""
    return stdio if str(path) == STDIO else str(path)


@contextmanager
def open_input(path: str | Path) -> Iterator[TextIO]:
    """Open a plain or gzipped VCF for reading, ``-`` for stdin.

    Compression is detected from the content, not the file name; bgzip is
    read as multi-member gzip.

    Args:
        path (str | Path): Input path.

    Yields:
        TextIO: Text handle over the decompressed content.
    """
    if str(path) == STDIO:
        raw = sys.stdin.buffer
        owned = None
    else:
        raw = owned = open(path, "rb")
    try:
        if not isinstance(raw, io.BufferedReader):
            raw = io.BufferedReader(raw)
        binary = gzip.GzipFile(fileobj=raw, mode="rb") if is_gzipped(raw) else raw
        text = io.TextIOWrapper(binary, encoding="utf-8", newline="")
        try:
            yield text
        finally:
            # stdin itself stays open
            text.detach()
            if binary is not raw:
                binary.close()
    finally:
        if owned is not None:
            owned.close()


@contextmanager
def open_output(path: str | Path, force_gzip: bool = False) -> Iterator[TextIO]:
    """Open an output stream, ``-`` for stdout.

    Output is gzipped when forced or when the path ends in ``.gz``/``.bgz``.

    Args:
        path (str | Path): Output path.
        force_gzip (bool): Compress regardless of the file name.

    Yields:
        TextIO: Text handle to write VCF lines to.
    """
    if str(path) == STDIO:
        if force_gzip:
            with gzip.GzipFile(fileobj=sys.stdout.buffer, mode="wb") as gz:
                text = io.TextIOWrapper(gz, encoding="utf-8", newline="")
                yield text
                text.flush()
                text.detach()
        else:
            yield sys.stdout
            sys.stdout.flush()
        return

    if force_gzip or is_gzip_path(path):
        with gzip.open(path, "wt", encoding="utf-8", newline="") as fh:
            yield fh
    else:
        with open(path, "wt", encoding="utf-8", newline="") as fh:
            yield fh
