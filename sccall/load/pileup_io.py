#!/usr/bin/env python

"""Read and write pileups and cell mappings as TSV files.

Pileup TSV
----------
One line per (position, cell) with a header:

chrom   pos   cell   A   C   G   T
1       1041  0      12  0   0   3
1       1041  7      0   0   0   9
X       88    3      4   4   0   0

chrom is a chromosome name (1-22, X, Y, optional 'chr' prefix) and
pos is 0-indexed. Rows of other contigs (chrM, chr1_KI270706v1_random,
...) are dropped with a warning. Per-cell counts cannot exceed 65535.

Mapping TSV
-----------
Two integer columns without header: `cell group` or `cell cluster`.
Every cell id from 0 to the max id must be present.
"""

from typing import List
from pathlib import Path
import numpy as np
import pandas as pd
from loguru import logger
from sccall.core.exceptions import SCCallError
from sccall.schema.pileup import (
    BASES,
    MAX_CELL_COUNT,
    Pileup,
    PosData,
    chrom_id,
    chrom_name,
    empty_pileup,
)

logger = logger.bind(name="sccall")

COLUMNS = ["chrom", "pos", "cell"] + list(BASES)


def load_pileup(path: Path | str) -> Pileup:
    """Return a Pileup parsed from a (optionally gzipped) TSV file."""
    data = pd.read_csv(path, sep="\t", dtype={"chrom": str})
    missing = [i for i in COLUMNS if i not in data.columns]
    if missing:
        raise SCCallError(f"pileup {path} is missing columns {missing}")

    data["cid"] = data["chrom"].map(chrom_id)
    unknown = data["cid"].isna()
    if unknown.any():
        logger.warning(
            f"dropping {int(unknown.sum())} pileup lines on contigs "
            f"{sorted(data.loc[unknown, 'chrom'].unique())}")
        data = data[~unknown]
    if (data[list(BASES)] < 0).any().any():
        raise SCCallError(f"pileup {path} contains negative counts")
    if (data[list(BASES)] > MAX_CELL_COUNT).any().any():
        raise SCCallError(
            f"pileup {path} contains per-cell counts above {MAX_CELL_COUNT}")

    pileup = empty_pileup()
    data = data.astype({"cid": int}).sort_values(["cid", "pos", "cell"], kind="stable")
    for (cid, pos), rows in data.groupby(["cid", "pos"], sort=True):
        pileup[int(cid)].append(PosData(
            position=int(pos),
            cell_ids=rows["cell"].to_numpy(dtype=np.uint32),
            counts=rows[list(BASES)].to_numpy(dtype=np.uint16),
        ))
    logger.info(
        f"loaded {sum(len(i) for i in pileup)} positions "
        f"({len(data)} cell rows) from {path}")
    return pileup


def write_pileup(pileup: Pileup, path: Path | str) -> None:
    """Write a Pileup as a TSV file readable by `load_pileup`."""
    frames = []
    for cid, rows in enumerate(pileup):
        for pos_data in rows:
            frame = pd.DataFrame(pos_data.counts.astype(np.int64), columns=list(BASES))
            frame.insert(0, "cell", pos_data.cell_ids.astype(np.int64))
            frame.insert(0, "pos", pos_data.position)
            frame.insert(0, "chrom", chrom_name(cid))
            frames.append(frame)
    if frames:
        data = pd.concat(frames, ignore_index=True)
    else:
        data = pd.DataFrame(columns=COLUMNS)
    data.to_csv(path, sep="\t", index=False)
    logger.info(f"wrote {sum(len(i) for i in pileup)} positions to {path}")


def load_mapping(path: Path | str) -> List[int]:
    """Return a list where item i is the group (or cluster) of cell i."""
    data = pd.read_csv(path, sep=r"\s+", header=None, names=["cell", "value"], comment="#")
    if data.empty:
        raise SCCallError(f"mapping {path} is empty")
    cells = data["cell"].to_numpy(dtype=np.int64)
    if (cells < 0).any() or (data["value"] < 0).any():
        raise SCCallError(f"mapping {path} contains negative ids")
    if data["cell"].duplicated().any():
        raise SCCallError(f"mapping {path} lists a cell more than once")
    ncells = int(cells.max()) + 1
    if ncells != len(cells):
        raise SCCallError(
            f"mapping {path} must list every cell from 0 to {ncells - 1}")
    mapping = np.zeros(ncells, dtype=np.int64)
    mapping[cells] = data["value"].to_numpy(dtype=np.int64)
    return mapping.tolist()


def identity_positions(id_to_group: List[int]) -> List[int]:
    """Return the root id_to_pos mapping: every group in its own column."""
    return list(range(max(id_to_group) + 1)) if id_to_group else []
