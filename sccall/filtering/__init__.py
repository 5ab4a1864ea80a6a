#!/usr/bin/env python

"""Filtering of pileup positions for each subcluster.

Substeps:
1. remap cells to groups and drop groups outside the subcluster.
2. pool counts and apply the significance test in parallel.
3. merge kept rows in input order and report average coverage.
4. optionally recurse into two child subclusters (subclusters.py).
"""

from sccall.filtering.position_filter import PositionFilter, filter_positions, split_slices
from sccall.filtering.subclusters import SubclusterNode, run_subclustering
