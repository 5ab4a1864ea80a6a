#!/usr/bin/env python

"""Significance test: is a position informative for splitting cells?

Null hypothesis: all cells share one genotype and every read that
does not show the dominant base is a sequencing error at rate theta.
If the pooled counts already look homozygous the position cannot
separate sub-genotypes and is discarded. Otherwise the exact binomial
probability of seeing at least the observed number of non-dominant
reads is computed in log space, and the position is kept when it
falls below the rejection threshold.
"""

from typing import Optional, Sequence, Tuple
import math
import numpy as np
from sccall.schema.pileup import (
    PosData,
    as_base_count,
    active_cell_mask,
    check_group_mapping,
    pool_counts,
)
from sccall.stats.genotype import likely_homozygous
from sccall.stats.log_factorial import log_binom_tail

SIGNIFICANCE_ALPHA = 0.05


def _check_threshold(threshold: float) -> None:
    if not 0. < threshold <= 1.:
        raise ValueError(f"rejection threshold must be in (0, 1], got {threshold}")


def minor_tail_log_prob(base_count: Sequence[int], theta: float) -> float:
    """Return ln P(non-dominant reads >= observed | single genotype)."""
    counts = as_base_count(base_count)
    coverage = int(counts.sum())
    minor = coverage - int(counts.max())
    return log_binom_tail(minor, coverage, theta)


def is_significant(
    base_count: Sequence[int],
    theta: float,
    threshold: float = SIGNIFICANCE_ALPHA,
) -> bool:
    """Decide if a position is worth keeping, i.e. it will be useful in
    distinguishing cell genotypes.

    Parameters
    ----------
    base_count:
        counts of A,C,G and T in the pooled data at a fixed position.
    theta:
        sequencing error rate (e.g. ~0.01 on Illumina machines).
    threshold:
        rejection level for the tail probability.
    """
    _check_threshold(threshold)
    counts = as_base_count(base_count)
    if not counts.sum():
        return False
    if likely_homozygous(counts, theta) is not None:
        return False
    return minor_tail_log_prob(counts, theta) < math.log(threshold)


def is_significant_pos(
    pos_data: PosData,
    id_to_group: Sequence[int],
    id_to_pos: Sequence[Optional[int]],
    theta: float,
    threshold: float = SIGNIFICANCE_ALPHA,
    active: Optional[np.ndarray] = None,
) -> Tuple[bool, int]:
    """Pool the cells of the current subcluster at one position and
    test it. Returns (significant, pooled coverage).

    active can be passed in by callers testing many rows to avoid
    rebuilding the cell mask from the group mapping every time; such
    callers are responsible for validating the mapping once. Otherwise
    an inconsistent mapping raises InvariantError.
    """
    if active is None:
        check_group_mapping(id_to_group, id_to_pos)
        active = active_cell_mask(id_to_group, id_to_pos)
    pooled = pool_counts(pos_data, active)
    return is_significant(pooled, theta, threshold), int(pooled.sum())
