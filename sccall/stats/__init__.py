#!/usr/bin/env python

"""Statistical core: log-factorials, homozygosity and significance
tests, and the genotype caller.
"""

from sccall.stats.log_factorial import (
    LOG_FACT_TABLE_SIZE,
    log_fact,
    stirling_log_fact,
    log_binom_pmf,
    log_binom_tail,
)
from sccall.stats.genotype import (
    GENOTYPES,
    NO_GENOTYPE,
    Genotype,
    likely_homozygous,
    most_likely_genotype,
    rank_bases,
)
from sccall.stats.significance import (
    SIGNIFICANCE_ALPHA,
    is_significant,
    is_significant_pos,
    minor_tail_log_prob,
)
