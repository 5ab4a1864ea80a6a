#!/usr/bin/env python

"""Unittests for Params and the pileup data model.

"""

import tempfile
import unittest
from pathlib import Path
import numpy as np
from pydantic import ValidationError
from sccall.core.exceptions import InvariantError
from sccall.schema import Params, load_params
from sccall.schema.pileup import (
    MAX_CELL_COUNT,
    PosData,
    active_cell_mask,
    as_base_count,
    check_group_mapping,
    chrom_id,
    chrom_name,
    empty_pileup,
    pool_counts,
)


class TestParams(unittest.TestCase):

    def test_defaults(self):
        params = Params()
        self.assertEqual(params.theta, 0.001)
        self.assertEqual(params.num_threads, 1)
        self.assertTrue(params.bonferroni)

    def test_validation(self):
        with self.assertRaises(ValidationError):
            Params(theta=1.5)
        with self.assertRaises(ValidationError):
            Params(num_threads=0)
        with self.assertRaises(ValidationError):
            Params(alpha=0.)
        params = Params()
        with self.assertRaises(ValidationError):
            params.hetero_prior = -0.2

    def test_load_params(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "params.json"
            path.write_text(Params(theta=0.01, num_threads=4).model_dump_json(), encoding="utf-8")
            params = load_params(path)
        self.assertEqual(params.theta, 0.01)
        self.assertEqual(params.num_threads, 4)
        self.assertEqual(params.max_depth, 8)


class TestPileupModel(unittest.TestCase):

    def test_base_count(self):
        self.assertEqual(as_base_count([1, 2, 3, 4]).dtype, np.int64)
        with self.assertRaises(InvariantError):
            as_base_count([1, 2, 3])
        with self.assertRaises(InvariantError):
            as_base_count([1., 2., 3., 4.])
        with self.assertRaises(InvariantError):
            as_base_count([1, -2, 3, 4])

    def test_pos_data(self):
        row = PosData(7, [4, 9], [[60000, 0, 0, 0], [60000, 1, 0, 0]])
        self.assertEqual(len(row), 2)
        self.assertEqual(row.counts.dtype, np.uint16)
        # pooled counts do not overflow uint16
        self.assertEqual(row.total().tolist(), [120000, 1, 0, 0])
        self.assertEqual([i for i, _ in row.iter_cells()], [4, 9])
        with self.assertRaises(InvariantError):
            PosData(7, [4, 9], [[1, 0, 0, 0]])
        with self.assertRaises(InvariantError):
            PosData(7, [4], [[1, 0, 0]])

    def test_pos_data_count_ceiling(self):
        row = PosData(1, [0], [[MAX_CELL_COUNT, 0, 0, 0]])
        self.assertEqual(row.counts.tolist(), [[65535, 0, 0, 0]])
        with self.assertRaises(InvariantError):
            PosData(1, [0], [[70000, 0, 0, 0]])
        with self.assertRaises(InvariantError):
            PosData(1, [0], [[1.5, 0, 0, 0]])

    def test_chromosomes(self):
        self.assertEqual(len(empty_pileup()), 24)
        self.assertEqual(chrom_id("1"), 0)
        self.assertEqual(chrom_id("chrX"), 22)
        self.assertEqual(chrom_id("Y_paternal"), 23)
        self.assertEqual(chrom_id("17_maternal"), 16)
        self.assertIsNone(chrom_id("MT"))
        self.assertIsNone(chrom_id("chrUn_gl000220"))
        self.assertIsNone(chrom_id("chr1_KI270706v1_random"))
        self.assertIsNone(chrom_id("chr1_KI270706v1_random_maternal"))
        self.assertIsNone(chrom_id("scaffold_3_maternal"))
        self.assertEqual(chrom_id("chr2_paternal"), 1)
        self.assertEqual(chrom_name(22), "X")
        with self.assertRaises(InvariantError):
            chrom_name(24)

    def test_groups(self):
        with self.assertRaises(InvariantError):
            check_group_mapping([0, 1, 2], [0, 1])
        active = active_cell_mask([0, 1, 1, 2], [None, 0, 1])
        self.assertEqual(active.tolist(), [False, True, True, True])
        row = PosData(0, [0, 1, 3], [[5, 0, 0, 0], [0, 3, 0, 0], [0, 0, 2, 0]])
        self.assertEqual(pool_counts(row, active).tolist(), [0, 3, 2, 0])


if __name__ == "__main__":
    unittest.main()
