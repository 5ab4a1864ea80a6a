#!/usr/bin/env python

"""API level functions for sccall.

Examples
--------
>>> import sccall
>>> pileup = sccall.load_pileup("pileup.tsv")
>>> groups = sccall.load_mapping("groups.tsv")
>>> kept, coverage = sccall.filter_positions(
>>>     pileup, groups, sccall.identity_positions(groups),
>>>     marker="", seq_error_rate=1e-3, num_threads=4)

>>> clusters = sccall.load_mapping("clusters.tsv")
>>> sccall.variant_calling(
>>>     kept, clusters, "genome.fa", "genome.map",
>>>     hetero_prior=1e-3, theta=1e-3, out_dir="vcfs")
"""

# bring nested functions to top for API access
from sccall.core.logger_setup import set_log_level
from sccall.core.exceptions import SCCallError, InvariantError
from sccall.schema import Params, PosData, load_params
from sccall.stats import (
    Genotype,
    NO_GENOTYPE,
    is_significant,
    likely_homozygous,
    log_fact,
    most_likely_genotype,
)
from sccall.filtering import filter_positions, run_subclustering, SubclusterNode
from sccall.calling import variant_calling
from sccall.load import identity_positions, load_mapping, load_pileup, write_pileup

__version__ = "0.1.0"
__author__ = "sccall developers"

# configure the logger
set_log_level("INFO")
