#!/usr/bin/env python

"""Reference genome helpers for variant calling.

Varsim generates a diploid genome with a maternal and a paternal
contig for each chromosome (`>1_maternal`, `>1_paternal`, ...). Reads
are aligned against it, so pileup positions are in the coordinates of
the generated contigs. The Varsim map file records the insertions
(bases only present in the generated genome) and deletions (bases
only present in the original reference), which is all that is needed
to translate positions back to the haploid reference.

Map file columns
----------------
<size_of_block> <host_chr> <host_loc> <ref_chr> <ref_loc>
<direction_of_block> <feature_name> <variant_id>
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import bisect
from dataclasses import dataclass
from pathlib import Path
import numpy as np
import pysam
from loguru import logger
from sccall.core.exceptions import SCCallError
from sccall.schema.pileup import chrom_id

logger = logger.bind(name="sccall")

FEATURES = {"INS": "I", "DEL": "D"}
NBASE = ord("N")


@dataclass(frozen=True)
class ChrMap:
    """An insertion or deletion on a generated contig."""
    chromosome_id: int
    """: 0 to 23, 22=X 23=Y."""
    start_pos: int
    """: 0-indexed position on the generated contig where it applies."""
    length: int
    """: Number of bases inserted or deleted."""
    kind: str
    """: 'I' (bases inserted in the new genome) or 'D' (bases deleted)."""


def read_map(map_file: Path | str) -> Dict[str, List[ChrMap]]:
    """Return {contig name: [ChrMap, ...]} sorted by start position.

    Only INS and DEL blocks are kept; SEQ and other blocks do not
    shift coordinates.
    """
    events: Dict[str, List[ChrMap]] = {}
    with open(map_file, 'r', encoding="utf-8") as infile:
        for lidx, line in enumerate(infile, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = line.split()
            if len(fields) < 7:
                raise SCCallError(
                    f"{map_file} line {lidx}: expected 8 columns, got {len(fields)}")
            kind = FEATURES.get(fields[6])
            if kind is None:
                continue
            host_chr = fields[1]
            cid = chrom_id(host_chr)
            if cid is None:
                logger.debug(f"skipping map block on contig {host_chr}")
                continue
            try:
                size = int(fields[0])
                host_loc = int(fields[2])
            except ValueError as inst:
                raise SCCallError(f"{map_file} line {lidx}: {inst}") from inst
            events.setdefault(host_chr, []).append(
                ChrMap(chromosome_id=cid, start_pos=host_loc - 1, length=size, kind=kind))

    for contig in events:
        events[contig].sort(key=lambda x: x.start_pos)
    logger.debug(
        f"read {sum(len(i) for i in events.values())} indel blocks "
        f"on {len(events)} contigs from {map_file}")
    return events


@dataclass
class EventIndex:
    """Prefix sums over the sorted events of one contig, built once so
    that each position is translated with a single bisection.
    """
    starts: List[int]
    """: start_pos of each event, ascending."""
    offsets: List[int]
    """: offsets[i] is the coordinate shift after the first i events."""
    ins_ends: List[int]
    """: ins_ends[i] is the largest insertion end among the first i events."""

    @classmethod
    def from_events(cls, events: Sequence[ChrMap]) -> "EventIndex":
        starts = []
        offsets = [0]
        ins_ends = [-1]
        for event in events:
            starts.append(event.start_pos)
            if event.kind == "I":
                offsets.append(offsets[-1] - event.length)
                ins_ends.append(max(ins_ends[-1], event.start_pos + event.length))
            else:
                offsets.append(offsets[-1] + event.length)
                ins_ends.append(ins_ends[-1])
        return cls(starts=starts, offsets=offsets, ins_ends=ins_ends)

    def translate(self, pos: int) -> Optional[int]:
        """Return the reference coordinate of pos, or None if pos lies
        inside an inserted block.
        """
        nevents = bisect.bisect_right(self.starts, pos)
        if pos < self.ins_ends[nevents]:
            return None
        return pos + self.offsets[nevents]


def translate_position(events: Sequence[ChrMap], pos: int) -> Optional[int]:
    """Return the reference coordinate of position pos on a generated
    contig, or None if pos lies inside an inserted block.

    Callers translating many positions of one contig should build an
    EventIndex once and call its translate method instead.
    """
    return EventIndex.from_events(events).translate(pos)


def apply_map(events: Sequence[ChrMap], chr_data: np.ndarray) -> np.ndarray:
    """Return chr_data (uint8 bases) in reference coordinates: inserted
    bases are dropped and deleted bases are filled with N.
    """
    pieces = []
    prev = 0
    for event in events:
        if event.start_pos > prev:
            pieces.append(chr_data[prev:event.start_pos])
            prev = event.start_pos
        if event.kind == "I":
            prev = max(prev, event.start_pos + event.length)
        else:
            pieces.append(np.full(event.length, NBASE, dtype=np.uint8))
    pieces.append(chr_data[prev:])
    return np.concatenate(pieces).astype(np.uint8, copy=False)


def check_is_diploid(fasta: Path | str) -> bool:
    """Return True if the reference is a Varsim diploid genome.

    Varsim names the first contig `>1_maternal`, so a first header that
    contains 'maternal' marks a diploid genome.
    """
    with pysam.FastxFile(str(fasta)) as fastx:
        for entry in fastx:
            return "maternal" in f"{entry.name} {entry.comment or ''}"
    raise SCCallError(f"no FASTA record found in {fasta}")


def _as_array(sequence: str) -> np.ndarray:
    return np.frombuffer(sequence.upper().encode(), dtype=np.uint8)


def iter_chromosomes(
    fasta: Path | str,
    chr_map: Dict[str, List[ChrMap]],
    is_diploid: bool,
) -> Iterator[Tuple[int, str, np.ndarray]]:
    """Yields (chromosome id, contig name, uint8 sequence) tuples.

    In diploid mode contigs are read as (maternal, paternal) pairs and
    the maternal contig is translated to reference coordinates with
    its map. Contigs that are not human chromosomes are skipped.
    """
    with pysam.FastxFile(str(fasta)) as fastx:
        entries = iter(fastx)
        for entry in entries:
            cid = chrom_id(entry.name)
            if not is_diploid:
                if cid is None:
                    logger.debug(f"skipping contig {entry.name}")
                    continue
                yield cid, entry.name, _as_array(entry.sequence)
                continue

            paternal = next(entries, None)
            if paternal is None or chrom_id(paternal.name) != cid:
                raise SCCallError(
                    f"contig {entry.name} is not followed by its paired contig "
                    f"(found {None if paternal is None else paternal.name})")
            if cid is None:
                logger.debug(f"skipping contig pair {entry.name}")
                continue
            seq = _as_array(entry.sequence)
            yield cid, entry.name, apply_map(chr_map.get(entry.name, []), seq)
