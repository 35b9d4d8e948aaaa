from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from forgevcf.core_logic.constants import (
    DEFAULT_INFO_KEY,
    DEFAULT_RANKS_PATH,
    STDIO,
    VERSION,
    ResolutionPolicy,
)
from forgevcf.core_logic.errors import ForgeVcfError
from forgevcf.core_logic.records import (
    VcfReader,
    VcfWriter,
    open_input,
    open_output,
    path_or,
)
from forgevcf.core_logic.report import ResolutionReport
from forgevcf.core_logic.sequencer import resolve
from forgevcf.db.ranks import load_rank
from forgevcf.filters.top_rank import annotated_header, filter_vcf


def init_logger(verbose: bool) -> None:
    """Send logs to stderr, DEBUG when verbose and WARNING otherwise."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def fraction(value: str) -> float:
    """argparse type for a float within [0, 1]."""
    try:
        top = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0.0 <= top <= 1.0:
        raise argparse.ArgumentTypeError(f"must be within [0, 1], got {top}")
    return top


def add_global_options(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Options accepted both before and after the subcommand.

    The subcommand copies use ``argparse.SUPPRESS`` as default so that a
    value given before the subcommand is not overwritten by the default.
    """

    def default(value):
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default(False),
        help="Enable verbose mode",
    )
    parser.add_argument(
        "-r",
        "--ranks-path",
        type=Path,
        default=default(Path(DEFAULT_RANKS_PATH)),
        help=f"FORGe rank file (default: {DEFAULT_RANKS_PATH})",
    )
    parser.add_argument(
        "-g",
        "--gzip",
        action="store_true",
        default=default(False),
        help="Gzip output, detected by file extension by default",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=default(Path(STDIO)),
        help="Output file, stdout if not specified",
    )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "input",
        nargs="?",
        default=Path(STDIO),
        type=Path,
        help="Input VCF file, stdin if not specified",
    )
    add_global_options(common, suppress=True)

    parser = argparse.ArgumentParser(
        prog="forgevcf", description="VCF manipulation based on FORGe ranking."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    add_global_options(parser)
    sub = parser.add_subparsers(dest="command", required=True)

    filt = sub.add_parser(
        "filter", parents=[common], help="Filter VCF records based on FORGe ranking"
    )
    filt.add_argument(
        "-t",
        "--top",
        type=fraction,
        default=1.0,
        help="Top fraction of records to keep, keeps all by default",
    )
    filt.add_argument(
        "-a",
        "--annotate",
        action="store_true",
        help="Annotate the filtered records with FORGe rank",
    )
    filt.add_argument(
        "-k",
        "--info-key",
        default=DEFAULT_INFO_KEY,
        help="Annotate key for INFO field (default: %(default)s)",
    )

    res = sub.add_parser(
        "resolve",
        parents=[common],
        help="Resolve overlapping variants based on FORGe ranking",
    )
    res.add_argument(
        "--policy",
        choices=[policy.value for policy in ResolutionPolicy],
        default=ResolutionPolicy.ANCHOR.value,
        help="How conflict groups are formed (default: %(default)s)",
    )
    res.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a TSV of every cluster decision to this path",
    )
    return parser.parse_args(args)


def run_filter(opts: argparse.Namespace) -> None:
    logger.info(f"parameter: top\t\t= {opts.top}")
    logger.info(f"parameter: annotate\t= {opts.annotate}")
    logger.info(f"parameter: info_key\t= {opts.info_key}")
    ranks = load_rank(opts.ranks_path, opts.top)
    with open_input(opts.input) as fh:
        reader = VcfReader(fh)
        header = reader.header
        if opts.annotate:
            header = annotated_header(header, opts.info_key)
        with open_output(opts.output, opts.gzip) as out:
            writer = VcfWriter(out, header)
            filter_vcf(reader, writer, ranks, opts.annotate, opts.info_key)


def run_resolve(opts: argparse.Namespace) -> None:
    policy = ResolutionPolicy(opts.policy)
    logger.info(f"parameter: policy\t\t= {policy.value}")
    ranks = load_rank(opts.ranks_path, 1.0)
    report = ResolutionReport() if opts.report is not None else None
    with open_input(opts.input) as fh:
        reader = VcfReader(fh)
        with open_output(opts.output, opts.gzip) as out:
            writer = VcfWriter(out, reader.header)
            resolve(reader, writer, ranks, policy, report)
    if report is not None:
        report.write(opts.report)
        logger.debug(f"Cluster summary:\n{report.summary()}")


def main(args: list[str] | None = None) -> int:
    opts = parse_args(args)
    init_logger(opts.verbose)

    logger.info(f"parameter: verbose\t\t= {opts.verbose}")
    logger.info(f"parameter: input\t\t= {path_or(opts.input, 'stdin')}")
    logger.info(f"parameter: ranks_path\t= {opts.ranks_path}")
    logger.info(f"parameter: gzip\t\t= {opts.gzip}")
    logger.info(f"parameter: output\t\t= {path_or(opts.output, 'stdout')}")
    logger.info(f"parameter: command\t\t= {opts.command}")

    try:
        if opts.command == "filter":
            run_filter(opts)
        else:
            run_resolve(opts)
    except (ForgeVcfError, OSError) as e:
        logger.error(f"{e}: '{path_or(opts.input, 'stdin')}'")
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
