#!/usr/bin/env python

"""Call the most likely genotype of every cluster at every position.

For each chromosome of the reference, each row of the pileup is pooled
over all cells (genome-wide counts) and over the cells of each cluster.
The pooled counts fix the two candidate alleles and whether the locus
is homozygous genome-wide; the per-cluster counts are then genotyped
and written to one VCF per cluster.
"""

from typing import Dict, Optional, Sequence
from pathlib import Path
import numpy as np
from loguru import logger
from sccall.core.exceptions import InvariantError, SCCallError
from sccall.schema.pileup import Pileup, PosData, chrom_name
from sccall.stats.genotype import likely_homozygous, most_likely_genotype, rank_bases
from sccall.calling.reference import (
    EventIndex,
    check_is_diploid,
    iter_chromosomes,
    read_map,
)
from sccall.calling.vcf_writer import VCFWriter

logger = logger.bind(name="sccall")


def cluster_counts(pos_data: PosData, cluster_idx: np.ndarray, nclusters: int) -> np.ndarray:
    """Return a (nclusters, 4) array with the counts of each cluster.

    cluster_idx maps each cell id to the index of its cluster.
    """
    if pos_data.cell_ids.size and int(pos_data.cell_ids.max()) >= cluster_idx.shape[0]:
        raise InvariantError(
            f"cell {int(pos_data.cell_ids.max())} at position {pos_data.position} "
            f"has no cluster assignment (clusters has {cluster_idx.shape[0]} cells)")
    local = np.zeros((nclusters, 4), dtype=np.int64)
    np.add.at(local, cluster_idx[pos_data.cell_ids], pos_data.counts)
    return local


def variant_calling(
    pos_data: Pileup,
    clusters: Sequence[int],
    reference_genome: Path | str,
    map_file: Optional[Path | str],
    hetero_prior: float,
    theta: float,
    out_dir: Path | str,
) -> Dict[str, int]:
    """Call the most likely variant at each position for each cluster.

    Parameters
    ----------
    pos_data:
        pooled reads for each chromosome at each position; chromosomes
        are indexed 0 to 23, with 22 representing chr X and 23 chr Y.
    clusters:
        the cluster to which each cell belongs.
    reference_genome:
        FASTA of the genome to call the variants against.
    map_file:
        Varsim map of a diploid reference_genome to its haploid
        ancestor. Only read if the reference is diploid.
    hetero_prior:
        the probability that a locus is heterozygous.
    theta:
        sequencing error rate.
    out_dir:
        location where the per-cluster VCF files are written.

    Returns
    -------
    Counts of positions called, records written, missing calls, and
    positions skipped because they fall in inserted sequence.
    """
    clusters = np.asarray(clusters)
    targets, cluster_idx = np.unique(clusters, return_inverse=True)
    cluster_idx = cluster_idx.reshape(-1)

    is_diploid = check_is_diploid(reference_genome)
    chr_map = {}
    if is_diploid:
        if map_file is None:
            raise SCCallError(
                f"{reference_genome} is a diploid genome; a Varsim map file is required")
        chr_map = read_map(map_file)
    logger.info(
        f"calling {len(targets)} clusters against a "
        f"{'diploid' if is_diploid else 'haploid'} reference")

    stats = {"positions": 0, "records": 0, "no_calls": 0, "skipped": 0}
    seen = set()
    with VCFWriter(out_dir, targets.tolist(), reference_genome) as writer:
        for cid, contig, chr_data in iter_chromosomes(reference_genome, chr_map, is_diploid):
            if cid in seen or cid >= len(pos_data):
                continue
            seen.add(cid)
            index = EventIndex.from_events(chr_map.get(contig, []))
            name = chrom_name(cid)

            for row in pos_data[cid]:
                pos = index.translate(row.position) if is_diploid else row.position
                if pos is None:
                    stats["skipped"] += 1
                    continue
                ref = chr(int(chr_data[pos])) if pos < chr_data.shape[0] else "N"

                pooled = row.total()
                order = rank_bases(pooled)
                pooled_homo = likely_homozygous(pooled, theta) is not None
                local = cluster_counts(row, cluster_idx, len(targets))

                for tidx, target in enumerate(targets.tolist()):
                    geno, coverage = most_likely_genotype(
                        local[tidx], pooled, order, pooled_homo, hetero_prior, theta)
                    if geno is None:
                        stats["no_calls"] += 1
                    writer.write(name, pos, target, geno, coverage, ref)
                stats["positions"] += 1
            logger.debug(f"chromosome {name}: processed {len(pos_data[cid])} positions")
        stats["records"] = writer.nrecords

    missing = [chrom_name(i) for i, rows in enumerate(pos_data) if rows and i not in seen]
    if missing:
        logger.warning(f"no reference sequence for chromosomes {missing}; not called")
    logger.info(
        f"wrote {stats['records']} records for {stats['positions']} positions to {out_dir}")
    return stats
