#!/usr/bin/env python

"""Write per-cluster genotype calls as VCF files.

One file is written per cluster, `cluster_<id>.vcf`, with a single
sample column named after the cluster. Every (position, cluster) pair
gets a record, including homozygous-reference and missing ('./.')
calls, so that all files share the same rows.
"""

from typing import Dict, Optional, Sequence, TextIO, Tuple
import datetime
from pathlib import Path
from loguru import logger
import sccall
from sccall.schema.pileup import BASES
from sccall.stats.genotype import Genotype

logger = logger.bind(name="sccall")

VCF_HEADER = """\
##fileformat=VCFv4.2
##fileDate={date}
##source=sccall_v.{version}
##reference={reference}
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Depth">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read Depth">
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{sample}
"""


def format_genotype(genotype: Optional[Genotype], ref: str) -> Tuple[str, str]:
    """Return (ALT, GT) strings for a genotype against a REF base."""
    if genotype is None:
        return ".", "./."
    alleles = [BASES[genotype.first], BASES[genotype.second]]
    alts = sorted(set(i for i in alleles if i != ref))
    codes = {ref: 0}
    codes.update({base: idx + 1 for idx, base in enumerate(alts)})
    gt = "/".join(str(codes[i]) for i in sorted(alleles, key=codes.get))
    return ",".join(alts) if alts else ".", gt


class VCFWriter:
    """Streams records to one VCF file per cluster.

    Use as a context manager so that all files are closed on errors.
    """
    def __init__(self, out_dir: Path | str, clusters: Sequence[int], reference: Path | str):
        self.out_dir = Path(out_dir)
        """: Directory where the cluster VCF files are written."""
        self.reference = str(reference)
        self.clusters = list(clusters)
        self.handles: Dict[int, TextIO] = {}
        self.nrecords = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()

    def path(self, cluster: int) -> Path:
        return self.out_dir / f"cluster_{cluster}.vcf"

    def open(self):
        """Create out_dir and write the header of every cluster file."""
        self.out_dir.mkdir(parents=True, exist_ok=True)
        date = datetime.date.today().strftime("%Y/%m/%d")
        for cluster in self.clusters:
            handle = open(self.path(cluster), 'w', encoding="utf-8")
            handle.write(VCF_HEADER.format(
                date=date,
                version=sccall.__version__,
                reference=self.reference,
                sample=f"cluster_{cluster}",
            ))
            self.handles[cluster] = handle
        logger.debug(f"opened {len(self.handles)} VCF files in {self.out_dir}")

    def write(
        self,
        chrom: str,
        pos: int,
        cluster: int,
        genotype: Optional[Genotype],
        coverage: int,
        ref: str = "N",
    ) -> None:
        """Write one record; pos is 0-indexed in reference coordinates."""
        alt, gt = format_genotype(genotype, ref)
        self.handles[cluster].write(
            f"{chrom}\t{pos + 1}\t.\t{ref}\t{alt}\t.\tPASS\t"
            f"DP={coverage}\tGT:DP\t{gt}:{coverage}\n"
        )
        self.nrecords += 1

    def close(self):
        for handle in self.handles.values():
            handle.close()
        self.handles = {}
