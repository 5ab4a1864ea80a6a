#!/usr/bin/env python

"""Unittests for the subcluster work queue.

"""

import unittest
from sccall.core.exceptions import SCCallError
from sccall.schema import Params
from sccall.schema.pileup import PosData, empty_pileup
from sccall.filtering.subclusters import run_subclustering


def halve(filtered, node):
    """Split the groups of a node into two halves until one is left."""
    members = [g for g, col in enumerate(node.id_to_pos) if col is not None]
    if len(members) < 2:
        return []
    first = members[: len(members) // 2]
    second = members[len(members) // 2:]
    halves = []
    for part in (first, second):
        child = [None] * len(node.id_to_pos)
        for col, group in enumerate(part):
            child[group] = col
        halves.append(child)
    return halves


class TestSubclustering(unittest.TestCase):

    def setUp(self):
        # every cell is heterozygous A/C, so any subset stays informative
        self.pileup = empty_pileup()
        for pos in range(5):
            self.pileup[1].append(PosData(pos, [0, 1, 2, 3], [[15, 15, 0, 0]] * 4))
        self.id_to_group = [0, 1, 2, 3]
        self.id_to_pos = [0, 1, 2, 3]

    def test_tree(self):
        root = run_subclustering(self.pileup, self.id_to_group, self.id_to_pos, halve)
        markers = [i.marker for i in root.iter_nodes()]
        self.assertEqual(markers, ["", "A", "B", "AA", "AB", "BA", "BB"])
        self.assertEqual([i.marker for i in root.leaves()], ["AA", "AB", "BA", "BB"])
        for node in root.iter_nodes():
            self.assertEqual(node.npositions, 5)
            self.assertAlmostEqual(node.avg_coverage, 30.)
        self.assertIs(root.children[1].children[0].parent, root.children[1])
        self.assertEqual(root.children[1].id_to_pos, [None, None, 0, 1])
        self.assertEqual(root.children[1].ngroups, 2)

    def test_max_depth(self):
        root = run_subclustering(
            self.pileup, self.id_to_group, self.id_to_pos, halve, Params(max_depth=1))
        self.assertEqual([i.marker for i in root.iter_nodes()], ["", "A", "B"])

    def test_min_coverage(self):
        root = run_subclustering(
            self.pileup, self.id_to_group, self.id_to_pos, halve, Params(min_coverage=100.))
        self.assertTrue(root.is_leaf())
        self.assertEqual(root.npositions, 5)

    def test_no_signal_stops(self):
        pileup = empty_pileup()
        pileup[1].append(PosData(0, [0, 1, 2, 3], [[30, 0, 0, 0]] * 4))
        root = run_subclustering(pileup, self.id_to_group, self.id_to_pos, halve)
        self.assertTrue(root.is_leaf())
        self.assertEqual(root.npositions, 0)

    def test_invalid_split(self):
        def three_way(filtered, node):
            return [node.id_to_pos] * 3

        def short(filtered, node):
            return [[0], [0]]

        with self.assertRaises(SCCallError):
            run_subclustering(self.pileup, self.id_to_group, self.id_to_pos, three_way)
        with self.assertRaises(SCCallError):
            run_subclustering(self.pileup, self.id_to_group, self.id_to_pos, short)


if __name__ == "__main__":
    unittest.main()
