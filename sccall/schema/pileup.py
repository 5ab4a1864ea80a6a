#!/usr/bin/env python

"""Pileup data model.

BaseCount
---------
A numpy array of shape (4,) with counts of A, C, G and T. Per-cell
counts are stored as uint16 (the sequencer coverage ceiling), pooled
counts as int64 so that sums over many cells cannot overflow.

PosData
-------
One row of a pileup: a 0-indexed genomic position with a uint32
array of the cell ids covered there, and a (ncells, 4) uint16 array
of their base counts. Rows where all cells carry identical counts are
never constructed upstream.

Pileup
------
A list of 24 lists of PosData (one per chromosome, 22=X, 23=Y), each
sorted by position.

Cell groups
-----------
id_to_group maps cell ids to group ids; id_to_pos maps group ids to a
column of the current similarity matrix, or None when the group is
not part of the current subcluster.
"""

from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
from dataclasses import dataclass
import numpy as np
from sccall.core.exceptions import InvariantError

BASES = "ACGT"
NUM_CHROMOSOMES = 24
CHROM_NAMES = [str(i) for i in range(1, 23)] + ["X", "Y"]
HAPLOTYPE_SUFFIXES = ("_maternal", "_paternal")
MAX_CELL_COUNT = int(np.iinfo(np.uint16).max)

Pileup = List[List["PosData"]]


def as_base_count(values: Iterable[int], dtype=np.int64) -> np.ndarray:
    """Return values as a validated 4-slot count array."""
    arr = np.asarray(values)
    if arr.shape != (4,):
        raise InvariantError(
            f"a base count must have exactly 4 slots (A,C,G,T), got shape {arr.shape}")
    if arr.dtype.kind not in "iu":
        raise InvariantError(f"base counts must be integers, got {arr.dtype}")
    if arr.dtype.kind == "i" and (arr < 0).any():
        raise InvariantError(f"base counts cannot be negative: {arr.tolist()}")
    return arr.astype(dtype, copy=False)


@dataclass(eq=False)
class PosData:
    """Base counts for every covered cell at one genomic position."""
    position: int
    """: 0-indexed position on the chromosome."""
    cell_ids: np.ndarray
    """: uint32 array of cell ids with coverage at this position."""
    counts: np.ndarray
    """: uint16 array of shape (ncells, 4) with A,C,G,T counts per cell."""

    def __post_init__(self):
        self.cell_ids = np.asarray(self.cell_ids, dtype=np.uint32)
        counts = np.asarray(self.counts)
        if counts.ndim != 2 or counts.shape[1] != 4:
            raise InvariantError(
                f"counts at position {self.position} must have shape "
                f"(ncells, 4), got {counts.shape}")
        if counts.shape[0] != self.cell_ids.shape[0]:
            raise InvariantError(
                f"position {self.position} has {self.cell_ids.shape[0]} "
                f"cell ids but {counts.shape[0]} count rows")
        if counts.dtype.kind not in "iu":
            raise InvariantError(
                f"counts at position {self.position} must be integers, got {counts.dtype}")
        if counts.dtype.kind == "i" and (counts < 0).any():
            raise InvariantError(f"negative base count at position {self.position}")
        if counts.size and int(counts.max()) > MAX_CELL_COUNT:
            raise InvariantError(
                f"base count {int(counts.max())} at position {self.position} "
                f"exceeds the per-cell ceiling of {MAX_CELL_COUNT}")
        self.counts = counts.astype(np.uint16, copy=False)

    def __len__(self) -> int:
        return self.cell_ids.shape[0]

    def iter_cells(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yields (cell_id, base_count) tuples."""
        for cell_id, count in zip(self.cell_ids, self.counts):
            yield int(cell_id), count

    def total(self) -> np.ndarray:
        """Return the pooled counts over all cells, ignoring groups."""
        return self.counts.sum(axis=0, dtype=np.int64)


def empty_pileup() -> Pileup:
    """Return a pileup with one empty list per chromosome."""
    return [[] for _ in range(NUM_CHROMOSOMES)]


def chrom_id(name: str) -> Optional[int]:
    """Return the 0-23 chromosome index for a name like '1', 'chrX' or
    '7_maternal', or None if the name is not a human chromosome.

    Only a trailing Varsim haplotype suffix is stripped; any other
    underscore marks a scaffold (e.g. 'chr1_KI270706v1_random').
    """
    for suffix in HAPLOTYPE_SUFFIXES:
        if name.endswith(suffix):
            name = name[:-len(suffix)]
            break
    if "_" in name:
        return None
    if name.lower().startswith("chr"):
        name = name[3:]
    name = name.upper()
    if name in CHROM_NAMES:
        return CHROM_NAMES.index(name)
    return None


def chrom_name(cid: int) -> str:
    """Return the name ('1'..'22', 'X', 'Y') of a chromosome index."""
    if not 0 <= cid < NUM_CHROMOSOMES:
        raise InvariantError(f"chromosome id must be in [0, 23], got {cid}")
    return CHROM_NAMES[cid]


def check_group_mapping(
    id_to_group: Sequence[int],
    id_to_pos: Sequence[Optional[int]],
) -> None:
    """Raise InvariantError unless every group has an id_to_pos entry."""
    ngroups = len(id_to_pos)
    for cell_id, group in enumerate(id_to_group):
        if not 0 <= group < ngroups:
            raise InvariantError(
                f"cell {cell_id} maps to group {group} but id_to_pos "
                f"only has {ngroups} entries")


def active_cell_mask(
    id_to_group: Sequence[int],
    id_to_pos: Sequence[Optional[int]],
) -> np.ndarray:
    """Return a bool array over cell ids: True if the cell's group is in
    the current subcluster.
    """
    return np.array(
        [id_to_pos[group] is not None for group in id_to_group], dtype=bool)


def pool_counts(pos_data: PosData, active: np.ndarray) -> np.ndarray:
    """Return the summed counts of the active cells at one position.

    active is the mask returned by `active_cell_mask`. A cell id past
    the end of the mask has no group and raises InvariantError.
    """
    if pos_data.cell_ids.size and int(pos_data.cell_ids.max()) >= active.shape[0]:
        raise InvariantError(
            f"cell {int(pos_data.cell_ids.max())} at position "
            f"{pos_data.position} has no entry in id_to_group "
            f"(size {active.shape[0]})")
    keep = active[pos_data.cell_ids]
    return pos_data.counts[keep].sum(axis=0, dtype=np.int64)
