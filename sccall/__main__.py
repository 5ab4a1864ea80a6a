#!/usr/bin/env python

"""Command line interface.

Examples
--------
>>> sccall filter -p pileup.tsv -g groups.tsv -o kept.tsv -t 8
>>> sccall call -p kept.tsv -k clusters.tsv -r genome.fa -m genome.map -o vcfs/
"""

from typing import List, Optional
import argparse
import sys
from pathlib import Path
from loguru import logger
import sccall
from sccall.core.exceptions import SCCallError
from sccall.schema import Params, load_params
from sccall.load import identity_positions, load_mapping, load_pileup, write_pileup
from sccall.filtering import filter_positions
from sccall.calling import variant_calling

logger = logger.bind(name="sccall")

VERSION = str(sccall.__version__)
HEADER = f"""
-------------------------------------------------------------
 sccall [v.{VERSION}]
 Position filtering and per-cluster genotype calls
-------------------------------------------------------------\
"""

EPILOG = """\
Examples
--------
>>> # filter: keep positions informative for distinguishing cells
>>> sccall filter -p pileup.tsv -g groups.tsv -o kept.tsv
>>> sccall filter -p pileup.tsv -g groups.tsv -o kept.tsv -t 8 -c params.json

>>> # call: genotype each cluster at each position, one VCF per cluster
>>> sccall call -p kept.tsv -k clusters.tsv -r genome.fa -o vcfs/
>>> sccall call -p kept.tsv -k clusters.tsv -r diploid.fa -m diploid.map -o vcfs/
"""


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", metavar="pileup", type=Path, required=True,
        help="Pileup TSV (chrom, pos, cell, A, C, G, T).",
    )
    parser.add_argument(
        "-c", metavar="params", type=Path, default=None,
        help="JSON file with parameters (theta, hetero_prior, seq_error_rate, ...).",
    )
    parser.add_argument(
        "--logger", metavar="level", type=str, default="INFO",
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument(
        "--log-file", metavar="path", type=Path, default=None,
        help="Write log messages to this file instead of STDERR.",
    )


def setup_parsers() -> argparse.ArgumentParser:
    """Return the sccall parser with `filter` and `call` subcommands."""
    parser = argparse.ArgumentParser(
        prog="sccall",
        description=HEADER + "\n sccall command line tool. Select a positional subcommand:",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="version", version=f"sccall {VERSION}")
    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    filt = subparsers.add_parser(
        "filter",
        description=HEADER + "\n sccall filter: keep significant positions",
        help="Keep positions that reject the single-genotype null hypothesis.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_args(filt)
    filt.add_argument(
        "-g", metavar="groups", type=Path, required=True,
        help="TSV mapping each cell id to a group id.",
    )
    filt.add_argument(
        "-o", metavar="outfile", type=Path, required=True,
        help="Path of the filtered pileup TSV.",
    )
    filt.add_argument(
        "-t", metavar="threads", type=int, default=None,
        help="Number of worker threads (overrides params).",
    )
    filt.add_argument(
        "--marker", type=str, default="",
        help="Label of the subcluster, used in log messages.",
    )

    call = subparsers.add_parser(
        "call",
        description=HEADER + "\n sccall call: genotype each cluster",
        help="Call the most likely genotype per cluster and write VCFs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_args(call)
    call.add_argument(
        "-k", metavar="clusters", type=Path, required=True,
        help="TSV mapping each cell id to a cluster id.",
    )
    call.add_argument(
        "-r", metavar="reference", type=Path, required=True,
        help="Reference FASTA (haploid, or Varsim diploid).",
    )
    call.add_argument(
        "-m", metavar="map", type=Path, default=None,
        help="Varsim map file; required if the reference is diploid.",
    )
    call.add_argument(
        "-o", metavar="outdir", type=Path, required=True,
        help="Directory where cluster_<id>.vcf files are written.",
    )
    return parser


def run_filter(args: argparse.Namespace, params: Params) -> None:
    if args.t is not None:
        params.num_threads = args.t
    pileup = load_pileup(args.p)
    id_to_group = load_mapping(args.g)
    filtered, avg_coverage = filter_positions(
        pileup,
        id_to_group,
        identity_positions(id_to_group),
        args.marker,
        params.seq_error_rate,
        params.num_threads,
        alpha=params.alpha,
        bonferroni=params.bonferroni,
    )
    write_pileup(filtered, args.o)
    print(f"average coverage: {avg_coverage:.4f}")


def run_call(args: argparse.Namespace, params: Params) -> None:
    pileup = load_pileup(args.p)
    clusters = load_mapping(args.k)
    stats = variant_calling(
        pileup,
        clusters,
        args.r,
        args.m,
        params.hetero_prior,
        params.theta,
        args.o,
    )
    print(", ".join(f"{key}: {val}" for key, val in stats.items()))


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_parsers()
    args = parser.parse_args(argv)
    sccall.set_log_level(args.logger, log_file=args.log_file)

    try:
        params = load_params(args.c) if args.c else Params()
        if args.subcommand == "filter":
            run_filter(args, params)
        else:
            run_call(args, params)
    except (SCCallError, ValueError, OSError) as inst:
        logger.error(f"{inst.__class__.__name__}: {inst}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
