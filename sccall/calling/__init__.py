#!/usr/bin/env python

"""Genotype calling per cluster.

Substeps:
1. detect if the reference is a Varsim diploid genome.
2. read the Varsim map and translate positions to the haploid reference.
3. call the most likely genotype of each cluster at each position.
4. write one VCF file per cluster.
"""

from sccall.calling.reference import (
    ChrMap,
    EventIndex,
    apply_map,
    check_is_diploid,
    iter_chromosomes,
    read_map,
    translate_position,
)
from sccall.calling.vcf_writer import VCFWriter, format_genotype
from sccall.calling.variant_calling import cluster_counts, variant_calling
