#!/usr/bin/env python

"""Loading pileups and cell mappings from TSV files."""

from sccall.load.pileup_io import (
    identity_positions,
    load_mapping,
    load_pileup,
    write_pileup,
)
