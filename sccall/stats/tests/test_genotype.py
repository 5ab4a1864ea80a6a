#!/usr/bin/env python

"""Unittests for the homozygosity test and the genotype caller.

"""

import unittest
import numpy as np
from sccall.core.exceptions import InvariantError
from sccall.stats.genotype import (
    GENOTYPES,
    Genotype,
    likely_homozygous,
    most_likely_genotype,
    rank_bases,
)


class TestGenotype(unittest.TestCase):

    def test_canonical_order(self):
        self.assertEqual(Genotype.from_bases(3, 1), Genotype(1, 3))
        self.assertEqual(str(Genotype(0, 2)), "A/G")
        self.assertTrue(Genotype(2, 2).is_homozygous)
        self.assertFalse(Genotype(0, 2).is_homozygous)

    def test_ten_genotypes(self):
        self.assertEqual(len(GENOTYPES), 10)
        self.assertEqual(len(set(GENOTYPES)), 10)
        self.assertTrue(all(i.first <= i.second for i in GENOTYPES))

    def test_bad_base_index(self):
        with self.assertRaises(ValueError):
            Genotype.from_bases(0, 4)


class TestLikelyHomozygous(unittest.TestCase):

    def test_sequencing_noise_is_homozygous(self):
        geno = likely_homozygous([1000, 5, 3, 2], 0.01)
        self.assertEqual(geno, Genotype(0, 0))
        self.assertEqual(str(geno), "A/A")

    def test_balanced_counts_are_not_homozygous(self):
        self.assertIsNone(likely_homozygous([500, 480, 5, 5], 0.01))

    def test_dominant_base_need_not_be_first(self):
        self.assertEqual(likely_homozygous([0, 2, 0, 300], 0.01), Genotype(3, 3))

    def test_zero_coverage(self):
        self.assertIsNone(likely_homozygous([0, 0, 0, 0], 0.01))

    def test_zero_error_rate(self):
        self.assertEqual(likely_homozygous([10, 0, 0, 0], 0.), Genotype(0, 0))
        self.assertIsNone(likely_homozygous([10, 1, 0, 0], 0.))

    def test_bad_inputs(self):
        with self.assertRaises(InvariantError):
            likely_homozygous([10, 0, 0], 0.01)
        with self.assertRaises(InvariantError):
            likely_homozygous([10, -1, 0, 0], 0.01)
        with self.assertRaises(ValueError):
            likely_homozygous([10, 0, 0, 0], 1.5)


class TestMostLikelyGenotype(unittest.TestCase):

    def setUp(self):
        self.pooled = np.array([500, 480, 5, 5])
        self.order = rank_bases(self.pooled)

    def test_rank_bases(self):
        self.assertEqual(rank_bases([5, 100, 0, 40]).tolist(), [2, 0, 3, 1])
        # stable: the earlier of two equal counts ranks lower
        self.assertEqual(rank_bases([7, 7, 0, 0]).tolist(), [2, 3, 0, 1])

    def test_no_coverage(self):
        call = most_likely_genotype([0, 0, 0, 0], self.pooled, self.order, False, 0.01, 0.01)
        self.assertEqual(call, (None, 0))

    def test_pooled_homozygous_shortcut(self):
        pooled = np.array([100, 3, 0, 0])
        geno, cov = most_likely_genotype(
            [0, 3, 0, 0], pooled, rank_bases(pooled), True, 0.01, 0.01)
        self.assertEqual(geno, Genotype(0, 0))
        self.assertEqual(cov, 3)

    def test_homozygous_major(self):
        geno, cov = most_likely_genotype([30, 0, 0, 0], self.pooled, self.order, False, 0.01, 0.01)
        self.assertEqual(geno, Genotype(0, 0))
        self.assertEqual(cov, 30)

    def test_homozygous_minor(self):
        geno, _ = most_likely_genotype([0, 25, 0, 0], self.pooled, self.order, False, 0.01, 0.01)
        self.assertEqual(geno, Genotype(1, 1))

    def test_heterozygous(self):
        geno, cov = most_likely_genotype([20, 18, 0, 1], self.pooled, self.order, False, 0.01, 0.01)
        self.assertEqual(geno, Genotype(0, 1))
        self.assertEqual(cov, 39)

    def test_prior_of_one_forces_heterozygote(self):
        geno, _ = most_likely_genotype([30, 0, 0, 0], self.pooled, self.order, False, 1., 0.01)
        self.assertEqual(geno, Genotype(0, 1))

    def test_tie_goes_to_major(self):
        geno, _ = most_likely_genotype([5, 5, 0, 0], self.pooled, self.order, False, 0., 0.01)
        self.assertEqual(geno, Genotype(0, 0))

    def test_impossible_reads_are_not_called(self):
        # no error reads allowed, yet one T read among A and C
        call = most_likely_genotype([5, 4, 0, 1], self.pooled, self.order, False, 0.01, 0.)
        self.assertEqual(call, (None, 10))
        # every read is an error and the heterozygote is ruled out
        call = most_likely_genotype([5, 5, 0, 0], self.pooled, self.order, False, 0., 1.)
        self.assertEqual(call, (None, 10))
        # reads within the candidate alleles are still called at theta 0
        geno, _ = most_likely_genotype([5, 4, 0, 0], self.pooled, self.order, False, 0.01, 0.)
        self.assertEqual(geno, Genotype(0, 1))

    def test_bad_prior(self):
        with self.assertRaises(ValueError):
            most_likely_genotype([5, 5, 0, 0], self.pooled, self.order, False, -0.1, 0.01)


if __name__ == "__main__":
    unittest.main()
