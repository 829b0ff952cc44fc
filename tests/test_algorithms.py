# -*- coding: utf-8 -*-
"""
Metropolis 内核与随机流派生单元测试

覆盖范围：
- 单格点判据：dE <= 0 必接受，T = 0 拒绝升能翻转，高温几乎必接受
- 行块 / 棋盘格内核：扫描范围、颜色选择、随机数长度检查
- 随机流：SeedSequence 派生的可复现性与互不相同
"""

import unittest

import numpy as np

from ising_mc.core import algorithms as alg

L_SMALL = 8


class TestMetropolisSite(unittest.TestCase):

    def setUp(self):
        self.ones = np.ones((L_SMALL, L_SMALL), dtype=np.int8)

    def test_aligned_site_rejected_at_zero_temperature(self):
        # 全对齐: dE = +8，零温一律拒绝
        s = self.ones.copy()
        accepted = alg.metropolis_site(s, 3, 4, 0.0, 0.0)
        self.assertFalse(accepted)
        self.assertTrue(np.all(s == 1))

    def test_energy_lowering_flip_always_accepted(self):
        s = self.ones.copy()
        s[2, 2] = -1
        accepted = alg.metropolis_site(s, 2, 2, 0.0, 0.999)
        self.assertTrue(accepted)
        self.assertEqual(int(s[2, 2]), 1)

    def test_zero_delta_energy_flips(self):
        # 两个邻居 +1、两个邻居 -1 -> dE = 0，接受
        s = self.ones.copy()
        s[0, 1] = -1
        s[1, 0] = -1
        self.assertTrue(alg.metropolis_site(s, 0, 0, 0.0, 0.5))
        self.assertEqual(int(s[0, 0]), -1)

    def test_acceptance_threshold(self):
        T = 2.0
        threshold = np.exp(-8.0 / T)
        s = self.ones.copy()
        self.assertFalse(alg.metropolis_site(s, 1, 1, T, threshold + 1e-6))
        self.assertTrue(alg.metropolis_site(s, 1, 1, T, threshold - 1e-6))
        self.assertEqual(int(s[1, 1]), -1)

    def test_periodic_neighbours(self):
        # 角点 (0,0) 的邻居包含 (L-1,0) 与 (0,L-1)
        s = -self.ones.copy()
        s[0, 0] = 1
        s[L_SMALL - 1, 0] = 1
        s[0, L_SMALL - 1] = 1
        # 邻居和 = 1 + 1 - 1 - 1 = 0 -> dE = 0
        self.assertTrue(alg.metropolis_site(s, 0, 0, 0.0, 0.5))


class TestRowKernels(unittest.TestCase):

    def test_rows_kernel_touches_only_its_block(self):
        s = np.ones((L_SMALL, L_SMALL), dtype=np.int8)
        u = np.zeros(2 * L_SMALL)
        # 极高温：块内每个格点恰好翻转一次
        alg.metropolis_rows(s, 3, 5, 1e12, u)
        self.assertTrue(np.all(s[3:5] == -1))
        self.assertTrue(np.all(s[:3] == 1))
        self.assertTrue(np.all(s[5:] == 1))

    def test_rows_kernel_rejects_short_uniform_buffer(self):
        s = np.ones((L_SMALL, L_SMALL), dtype=np.int8)
        with self.assertRaises(ValueError):
            alg.metropolis_rows(s, 0, 2, 1.0, np.zeros(L_SMALL))

    def test_colour_kernel_updates_one_sublattice(self):
        s = np.ones((L_SMALL, L_SMALL), dtype=np.int8)
        n = alg.colour_site_count(0, L_SMALL, L_SMALL, 0)
        self.assertEqual(n, L_SMALL * L_SMALL // 2)
        accepts = alg.metropolis_colour_rows(s, 0, L_SMALL, 0, 1e12, np.zeros(n))
        self.assertEqual(int(accepts), n)
        ii, jj = np.indices(s.shape)
        self.assertTrue(np.all(s[(ii + jj) % 2 == 0] == -1))
        self.assertTrue(np.all(s[(ii + jj) % 2 == 1] == 1))

    def test_colour_site_count_odd_rows(self):
        self.assertEqual(alg.colour_site_count(1, 2, 5, 0), 2)  # j = 1, 3
        self.assertEqual(alg.colour_site_count(1, 2, 5, 1), 3)  # j = 0, 2, 4


class TestSeeds(unittest.TestCase):

    def test_spawn_is_reproducible_and_distinct(self):
        a = alg.spawn_stream_seeds(2025, 6)
        b = alg.spawn_stream_seeds(2025, 6)
        self.assertEqual(a, b)
        self.assertEqual(len(set(a)), 6)
        self.assertTrue(all(0 <= s < 2 ** 32 for s in a))

    def test_spawn_requires_positive_count(self):
        with self.assertRaises(ValueError):
            alg.spawn_stream_seeds(1, 0)

    def test_seed_to_generator(self):
        g1 = alg.seed_to_generator(7)
        g2 = alg.seed_to_generator(7)
        np.testing.assert_array_equal(g1.random(5), g2.random(5))
        self.assertIsNotNone(alg.seed_to_generator(None).random())
        with self.assertRaises(ValueError):
            alg.seed_to_generator("not-a-seed")

    def test_fresh_root_seed_range(self):
        s = alg.fresh_root_seed()
        self.assertTrue(0 <= s < 2 ** 32)


if __name__ == "__main__":
    unittest.main(verbosity=2)
