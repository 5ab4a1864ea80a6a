#!/usr/bin/env python

"""Log-space combinatorics for the significance test and genotype caller.

ln(n!) is looked up in a table of exact values for small n and
approximated with the Stirling series for larger n. Coverage at a
pooled position easily reaches the thousands, where n! overflows a
double, so every binomial probability in sccall is computed here in
log space.

All kernels are compiled with nogil=True so that the worker threads
of the position filter do not serialize on the GIL.
"""

import numpy as np
from numba import njit
from scipy.special import gammaln

LOG_FACT_TABLE_SIZE = 1024

# gammaln(n + 1) == ln(n!); 0! and 1! are set exactly.
LOG_FACT_TABLE = gammaln(np.arange(LOG_FACT_TABLE_SIZE, dtype=np.float64) + 1.)
LOG_FACT_TABLE[:2] = 0.

# terms smaller than the running sum by this many nats are dropped.
TAIL_CUTOFF = 40.


@njit(nogil=True)
def stirling_log_fact(n):
    """Stirling series for ln(n!) truncated after the 1/n^5 term."""
    x = float(n)
    x3 = x * x * x
    return (
        x * np.log(x) - x + 0.5 * np.log(2. * np.pi * x)
        + 1. / (12. * x) - 1. / (360. * x3) + 1. / (1260. * x3 * x * x)
    )


@njit(nogil=True)
def log_fact(n):
    """Return ln(n!) for a non-negative integer n."""
    if n < 0:
        raise ValueError("log_fact is only defined for non-negative integers")
    if n < LOG_FACT_TABLE_SIZE:
        return LOG_FACT_TABLE[n]
    return stirling_log_fact(n)


@njit(nogil=True)
def log_binom_coef(n, k):
    """Return ln(n choose k)."""
    return log_fact(n) - log_fact(k) - log_fact(n - k)


@njit(nogil=True)
def _log_binom_pmf(k, n, log_p, log_q):
    return log_binom_coef(n, k) + k * log_p + (n - k) * log_q


@njit(nogil=True)
def _log_add(a, b):
    if a < b:
        a, b = b, a
    if b == -np.inf:
        return a
    return a + np.log1p(np.exp(b - a))


@njit(nogil=True)
def _log_binom_tail(k, n, p):
    """Sum of the binomial pmf from k to n in log space, 0 < p < 1."""
    log_p = np.log(p)
    log_q = np.log1p(-p)
    mode = n * p
    total = -np.inf
    for i in range(k, n + 1):
        term = _log_binom_pmf(i, n, log_p, log_q)
        total = _log_add(total, term)
        # past the mode the terms only decrease
        if i > mode and term < total - TAIL_CUTOFF:
            break
    # rounding can push a full tail slightly above zero
    return min(total, 0.)


def log_binom_pmf(k: int, n: int, p: float) -> float:
    """Return ln P(X == k) for X ~ Binomial(n, p)."""
    if not 0 <= k <= n:
        return -np.inf
    if p <= 0.:
        return 0. if k == 0 else -np.inf
    if p >= 1.:
        return 0. if k == n else -np.inf
    return float(_log_binom_pmf(k, n, np.log(p), np.log1p(-p)))


def log_binom_tail(k: int, n: int, p: float) -> float:
    """Return ln P(X >= k) for X ~ Binomial(n, p).

    Degenerate error rates (p == 0 or p == 1) are resolved here, before
    a log(0) can reach the compiled kernel.
    """
    k = int(k)
    n = int(n)
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if k <= 0:
        return 0.
    if k > n:
        return -np.inf
    if p <= 0.:
        return -np.inf
    if p >= 1.:
        return 0.
    return float(_log_binom_tail(k, n, float(p)))
