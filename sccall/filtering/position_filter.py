#!/usr/bin/env python

"""Filter a pileup down to the positions informative for a subcluster.

Every row of the pileup is pooled over the cells of the current
subcluster and passed to the significance test. Rows are split into
contiguous slices, one per worker thread. Each worker writes only to
its own list of kept rows and its own coverage sum, and the slices
are concatenated back in input order once all workers have finished.
A failure in any worker is re-raised and no partial pileup is
returned.
"""

from typing import Any, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
import numpy as np
from sccall.core.logger_setup import subcluster_logger
from sccall.schema.pileup import (
    Pileup,
    PosData,
    active_cell_mask,
    check_group_mapping,
)
from sccall.stats.significance import SIGNIFICANCE_ALPHA, is_significant_pos

# (chromosome index, row index) of one pileup row
RowKey = Tuple[int, int]


@dataclass
class SliceResult:
    """Rows kept by one worker, in input order."""
    kept: List[Tuple[int, PosData]] = field(default_factory=list)
    """: (chromosome index, PosData) for each significant row."""
    coverage: int = 0
    """: Summed pooled coverage of the kept rows."""


def split_slices(nrows: int, nslices: int) -> List[Tuple[int, int]]:
    """Return [start, end) bounds of nslices contiguous, near-equal
    slices covering range(nrows). Empty slices are dropped.
    """
    nslices = max(1, min(nslices, nrows))
    size, extra = divmod(nrows, nslices)
    bounds = []
    start = 0
    for idx in range(nslices):
        end = start + size + (1 if idx < extra else 0)
        if end > start:
            bounds.append((start, end))
        start = end
    return bounds


@dataclass
class PositionFilter:
    """Significance filtering of one subcluster.

    See `filter_positions` for the functional entry point.
    """
    pileup: Pileup
    """: Rows for chromosomes 0-23, sorted by position."""
    id_to_group: Sequence[int]
    """: Group id of each cell id."""
    id_to_pos: Sequence[Optional[int]]
    """: Similarity-matrix column of each group, or None if excluded."""
    marker: str = ""
    """: Label of the subcluster, used in log messages only."""
    seq_error_rate: float = 0.001
    """: Sequencing error rate used by the significance test."""
    num_threads: int = 1
    """: Number of worker threads."""
    alpha: float = SIGNIFICANCE_ALPHA
    """: Rejection level before multiple-testing correction."""
    bonferroni: bool = True
    """: Divide alpha by the number of rows tested."""
    active: np.ndarray = field(init=False, repr=False)
    """: True for each cell id whose group is in the subcluster."""
    rows: List[RowKey] = field(init=False, repr=False)
    """: Flattened (chromosome, row) keys in pileup order."""
    log: Any = field(init=False, repr=False)
    """: loguru logger bound to this subcluster's marker."""

    def __post_init__(self):
        self.log = subcluster_logger(self.marker)
        if self.num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {self.num_threads}")
        if not 0. <= self.seq_error_rate <= 1.:
            raise ValueError(f"seq_error_rate must be in [0, 1], got {self.seq_error_rate}")
        check_group_mapping(self.id_to_group, self.id_to_pos)
        self.active = active_cell_mask(self.id_to_group, self.id_to_pos)
        self.rows = [
            (cidx, ridx)
            for cidx, chrom in enumerate(self.pileup)
            for ridx in range(len(chrom))
        ]

    @property
    def threshold(self) -> float:
        """Rejection threshold applied to each row's tail probability."""
        if self.bonferroni:
            return self.alpha / max(1, len(self.rows))
        return self.alpha

    @property
    def ncells(self) -> int:
        """Number of cells in the current subcluster."""
        return int(self.active.sum())

    def _filter_slice(self, start: int, end: int) -> SliceResult:
        """Test rows [start, end) of the flattened pileup."""
        result = SliceResult()
        threshold = self.threshold
        for cidx, ridx in self.rows[start:end]:
            pos_data = self.pileup[cidx][ridx]
            keep, coverage = is_significant_pos(
                pos_data,
                self.id_to_group,
                self.id_to_pos,
                self.seq_error_rate,
                threshold,
                active=self.active,
            )
            if keep:
                result.kept.append((cidx, pos_data))
                result.coverage += coverage
        self.log.debug(f"rows {start}-{end}: kept {len(result.kept)}")
        return result

    def run(self) -> Tuple[Pileup, float]:
        """Return (filtered pileup, average coverage per cell and row)."""
        bounds = split_slices(len(self.rows), self.num_threads)
        self.log.debug(f"testing {len(self.rows)} rows in {len(bounds)} slices")

        if len(bounds) <= 1:
            results = [self._filter_slice(*i) for i in bounds]
        else:
            with ThreadPoolExecutor(max_workers=len(bounds)) as pool:
                futures = [pool.submit(self._filter_slice, *i) for i in bounds]
                # resolve in slice order; result() re-raises worker errors
                results = [i.result() for i in futures]

        filtered: Pileup = [[] for _ in self.pileup]
        coverage = 0
        nkept = 0
        for result in results:
            for cidx, pos_data in result.kept:
                filtered[cidx].append(pos_data)
            coverage += result.coverage
            nkept += len(result.kept)

        ncells = self.ncells
        avg_coverage = coverage / (nkept * ncells) if (nkept and ncells) else 0.
        self.log.info(
            f"kept {nkept}/{len(self.rows)} "
            f"positions, {ncells} cells, avg coverage {avg_coverage:.3f}")
        return filtered, avg_coverage


def filter_positions(
    pileup: Pileup,
    id_to_group: Sequence[int],
    id_to_pos: Sequence[Optional[int]],
    marker: str,
    seq_error_rate: float,
    num_threads: int,
    alpha: float = SIGNIFICANCE_ALPHA,
    bonferroni: bool = True,
) -> Tuple[Pileup, float]:
    """Keep only the positions of pileup that reject the null hypothesis
    of 'all cells in the subcluster share the same genotype'.

    Parameters
    ----------
    pileup:
        pileup data containing all positions where not all nucleotides
        are identical across all cells.
    id_to_group:
        of size n_cells, maps cell ids to cell groups. Data from cells
        in the same group is treated as if it came from one cell.
    id_to_pos:
        of size n_groups, maps a group to its column in the similarity
        matrix, or None if the group is not in the current subcluster.
    marker:
        label of the current subcluster, e.g. 'AB' is the second
        sub-cluster (B) of the first cluster (A).
    seq_error_rate:
        error rate of the sequencer, e.g. 1e-3 for Illumina reads with
        base quality >= 30.
    num_threads:
        number of worker threads.

    Returns
    -------
    The rows of pileup relevant for the current subcluster, and the
    average coverage over kept rows and subcluster cells.
    """
    tool = PositionFilter(
        pileup=pileup,
        id_to_group=id_to_group,
        id_to_pos=id_to_pos,
        marker=marker,
        seq_error_rate=seq_error_rate,
        num_threads=num_threads,
        alpha=alpha,
        bonferroni=bonferroni,
    )
    return tool.run()
