#!/usr/bin/env python

from sccall.schema.params_schema import Params, load_params
from sccall.schema.pileup import (
    BASES,
    MAX_CELL_COUNT,
    NUM_CHROMOSOMES,
    Pileup,
    PosData,
    as_base_count,
    active_cell_mask,
    check_group_mapping,
    chrom_id,
    chrom_name,
    empty_pileup,
    pool_counts,
)
