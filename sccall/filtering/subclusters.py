#!/usr/bin/env python

"""Tree of subclusters refined by recursive bipartition.

Each node holds its own id_to_pos mapping (which groups belong to it
and at which similarity-matrix column). Nodes are processed from an
explicit FIFO work queue: the pileup is filtered for the node, and if
enough signal remains the user-supplied split function is asked to
divide it into two children. The marker ('', 'A', 'AB', ...) is only
a label for logs and reports.

The split function is the clustering algorithm itself and is not part
of sccall. It is called as `split(filtered_pileup, node)` and returns
either an empty sequence (do not split) or two id_to_pos mappings.
"""

from typing import Callable, Iterator, List, Optional, Sequence
from collections import deque
from dataclasses import dataclass, field
from loguru import logger
from sccall.core.exceptions import SCCallError
from sccall.core.logger_setup import subcluster_logger
from sccall.schema.params_schema import Params
from sccall.schema.pileup import Pileup
from sccall.filtering.position_filter import filter_positions

logger = logger.bind(name="sccall")

IdToPos = Sequence[Optional[int]]
SplitFunc = Callable[[Pileup, "SubclusterNode"], Sequence[IdToPos]]


@dataclass(eq=False)
class SubclusterNode:
    """A subcluster and its filtering results."""
    marker: str
    """: Path label in the bipartition tree, '' for the root."""
    id_to_pos: IdToPos
    """: Column of each group in this subcluster, None if excluded."""
    parent: Optional["SubclusterNode"] = field(default=None, repr=False)
    children: List["SubclusterNode"] = field(default_factory=list, repr=False)
    npositions: int = 0
    """: Number of positions kept by the filter."""
    avg_coverage: float = 0.
    """: Average coverage over kept positions and cells."""

    @property
    def depth(self) -> int:
        return len(self.marker)

    @property
    def ngroups(self) -> int:
        """Number of groups in this subcluster."""
        return sum(i is not None for i in self.id_to_pos)

    def is_leaf(self) -> bool:
        return not self.children

    def iter_nodes(self) -> Iterator["SubclusterNode"]:
        """Yields this node and all descendants, breadth-first."""
        queue = deque([self])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(node.children)

    def leaves(self) -> List["SubclusterNode"]:
        return [i for i in self.iter_nodes() if i.is_leaf()]


def run_subclustering(
    pileup: Pileup,
    id_to_group: Sequence[int],
    id_to_pos: IdToPos,
    split: SplitFunc,
    params: Optional[Params] = None,
) -> SubclusterNode:
    """Filter the root and every child produced by split, breadth-first.

    A node is not split further when no positions survive filtering,
    when its average coverage is below params.min_coverage, or when it
    reached params.max_depth. Returns the root node.
    """
    params = params if params is not None else Params()
    root = SubclusterNode(marker="", id_to_pos=list(id_to_pos))
    queue = deque([root])

    while queue:
        node = queue.popleft()
        filtered, avg_coverage = filter_positions(
            pileup,
            id_to_group,
            node.id_to_pos,
            node.marker,
            params.seq_error_rate,
            params.num_threads,
            alpha=params.alpha,
            bonferroni=params.bonferroni,
        )
        node.npositions = sum(len(i) for i in filtered)
        node.avg_coverage = avg_coverage
        log = subcluster_logger(node.marker)

        if not node.npositions:
            log.debug("leaf: no informative positions")
            continue
        if avg_coverage < params.min_coverage:
            log.debug(f"leaf: coverage {avg_coverage:.3f} below {params.min_coverage}")
            continue
        if node.depth >= params.max_depth:
            log.debug("leaf: reached max depth")
            continue

        halves = split(filtered, node)
        if not halves:
            continue
        if len(halves) != 2:
            raise SCCallError(
                f"split must return 0 or 2 subclusters, got {len(halves)} "
                f"for subcluster '{node.marker}'")
        for label, child_map in zip("AB", halves):
            if len(child_map) != len(node.id_to_pos):
                raise SCCallError(
                    f"subcluster '{node.marker}{label}' has {len(child_map)} "
                    f"groups, expected {len(node.id_to_pos)}")
            child = SubclusterNode(
                marker=node.marker + label,
                id_to_pos=list(child_map),
                parent=node,
            )
            node.children.append(child)
            queue.append(child)

    logger.info(
        f"subclustering finished with {len(root.leaves())} leaf subclusters")
    return root
