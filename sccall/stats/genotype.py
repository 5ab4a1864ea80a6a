#!/usr/bin/env python

"""Genotype models: the homozygosity test and the genotype caller.

A genotype is an unordered pair of base indices (0=A, 1=C, 2=G, 3=T),
stored with the smaller index first, so there are exactly 10 of them.
A call that cannot be made (no coverage) is None.

Error model
-----------
A read shows the true base with probability 1 - theta, otherwise one
of the 3 other bases with probability theta / 3 each. A heterozygous
site draws each read from either allele with probability 1/2.
"""

from typing import NamedTuple, Optional, Sequence, Tuple
import math
import numpy as np
from scipy.special import xlogy
from sccall.schema.pileup import BASES, as_base_count
from sccall.stats.log_factorial import log_fact


class Genotype(NamedTuple):
    """An unordered pair of base indices with first <= second."""
    first: int
    second: int

    @classmethod
    def from_bases(cls, base1: int, base2: int) -> "Genotype":
        """Return the canonical Genotype for two base indices."""
        base1, base2 = int(base1), int(base2)
        if not (0 <= base1 < 4 and 0 <= base2 < 4):
            raise ValueError(f"base index must be in [0, 3], got ({base1}, {base2})")
        return cls(min(base1, base2), max(base1, base2))

    @property
    def is_homozygous(self) -> bool:
        return self.first == self.second

    def __str__(self) -> str:
        return f"{BASES[self.first]}/{BASES[self.second]}"


NO_GENOTYPE = None
GENOTYPES = tuple(Genotype(i, j) for i in range(4) for j in range(i, 4))


def _check_probability(name: str, value: float) -> None:
    if not 0. <= value <= 1.:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def likely_homozygous(counts: Sequence[int], theta: float) -> Optional[Genotype]:
    """Return the homozygous genotype of the dominant base if the
    remaining reads are explained by sequencing error, else None.

    The non-dominant reads are compared with their binomial expectation
    (coverage * theta); a count no more than one standard deviation
    above it is treated as noise. Zero coverage returns None.
    """
    _check_probability("theta", theta)
    counts = as_base_count(counts)
    coverage = int(counts.sum())
    if not coverage:
        return NO_GENOTYPE

    dominant = int(np.argmax(counts))
    errors = coverage - int(counts[dominant])
    expected = coverage * theta
    stdev = math.sqrt(coverage * theta * (1. - theta))
    if errors <= expected + stdev:
        return Genotype(dominant, dominant)
    return NO_GENOTYPE


def rank_bases(counts: Sequence[int]) -> np.ndarray:
    """Return the indices that sort counts ascending (stable), so the
    most frequent base is last.
    """
    return np.argsort(as_base_count(counts), kind="stable")


def _log_multinomial(counts: np.ndarray, probs: np.ndarray) -> float:
    """Log multinomial probability of counts; 0 * log(0) is 0."""
    coef = log_fact(int(counts.sum())) - sum(log_fact(int(i)) for i in counts)
    return coef + float(xlogy(counts, probs).sum())


def _log_prior(prior: float) -> float:
    return math.log(prior) if prior > 0 else -math.inf


def most_likely_genotype(
    local_counts: Sequence[int],
    pooled_counts: Sequence[int],
    pooled_order: Sequence[int],
    pooled_is_homozygous: bool,
    hetero_prior: float,
    theta: float,
) -> Tuple[Optional[Genotype], int]:
    """Return (genotype, coverage) for one cluster at one position.

    Only the two most frequent bases of the pooled counts are candidate
    alleles, giving three hypotheses: homozygous for the major base,
    homozygous for the minor base, or heterozygous. Each is scored by
    its multinomial log-likelihood plus log prior (hetero_prior for the
    heterozygote, (1 - hetero_prior) / 2 for each homozygote). Ties go
    to the homozygous major, then the heterozygote.

    If the pooled data are homozygous the heterozygote is not
    considered and the homozygous major genotype is returned. A
    cluster with no coverage returns (None, 0).

    With theta of 0 a read outside the two candidate alleles makes every
    hypothesis impossible (log-likelihood -inf for all three). No
    genotype is called in that case and (None, coverage) is returned,
    so the depth is still reported. The same holds whenever the priors
    rule out the only hypotheses the reads allow (e.g. theta of 1 with
    hetero_prior of 0 and reads of both alleles).

    Parameters
    ----------
    local_counts:
        A,C,G,T counts of the cluster.
    pooled_counts:
        A,C,G,T counts over all clusters.
    pooled_order:
        Indices that sort pooled_counts ascending (see rank_bases).
    pooled_is_homozygous:
        True if likely_homozygous(pooled_counts, theta) made a call.
    """
    _check_probability("hetero_prior", hetero_prior)
    _check_probability("theta", theta)
    local = as_base_count(local_counts)
    as_base_count(pooled_counts)
    order = as_base_count(pooled_order)
    coverage = int(local.sum())
    if not coverage:
        return NO_GENOTYPE, 0

    major = int(order[3])
    minor = int(order[2])
    if pooled_is_homozygous:
        return Genotype(major, major), coverage

    err = theta / 3.
    hom_major = np.full(4, err)
    hom_major[major] = 1. - theta
    hom_minor = np.full(4, err)
    hom_minor[minor] = 1. - theta
    het = np.full(4, err)
    het[[major, minor]] = (1. - theta) / 2. + err / 2.

    homo_prior = _log_prior((1. - hetero_prior) / 2.)
    hypotheses = [
        (Genotype.from_bases(major, major), homo_prior + _log_multinomial(local, hom_major)),
        (Genotype.from_bases(major, minor), _log_prior(hetero_prior) + _log_multinomial(local, het)),
        (Genotype.from_bases(minor, minor), homo_prior + _log_multinomial(local, hom_minor)),
    ]
    best, best_score = hypotheses[0]
    for geno, score in hypotheses[1:]:
        if score > best_score:
            best, best_score = geno, score
    if best_score == -math.inf:
        return NO_GENOTYPE, coverage
    return best, coverage
