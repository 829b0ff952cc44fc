# -*- coding: utf-8 -*-
"""
    二维 Ising 模型 Metropolis 单自旋更新（CPU / Numba 实现）

    本模块实现所有 CPU 执行策略共享的 Metropolis 判据。为了保证可复现性，
所有随机性均来自显式传入的 uniform 随机数组（由 `numpy.random.Generator` 生成），
内核本身不持有任何随机状态。

约定：
    - 边界条件固定为周期性 (PBC)：(i±1) mod L, (j±1) mod L
    - dE = 2 * s * (四邻居之和)
    - dE <= 0 无条件接受；T == 0 时 dE > 0 一律拒绝；否则 u < exp(-dE / T) 接受

内核：
    - ``metropolis_site``: 单格点更新（其余内核与 ``Lattice.update_spin`` 共用）
    - ``metropolis_rows``: 行块逐行扫描（Sequential / Distributed worker）
    - ``metropolis_colour_rows``: 棋盘格单色子格扫描（SharedMemory 线程）

随机流：
    - ``seed_to_generator``: 整数种子 -> Philox Generator
    - ``spawn_stream_seeds``: SeedSequence.spawn 派生互相独立的子流种子
"""

from __future__ import annotations

import math
from typing import List, Optional

import numpy as np
from numba import njit
from numpy.random import Generator, Philox, SeedSequence

__all__ = [
    "metropolis_site",
    "metropolis_rows",
    "metropolis_colour_rows",
    "seed_to_generator",
    "spawn_stream_seeds",
    "fresh_root_seed",
    "colour_site_count",
]


# -----------------------
# 随机种子 / Generator 辅助
# -----------------------
def _seed32(seed: int) -> int:
    """截断为 32-bit 无符号整数，便于与 GPU 端 Philox 种子位宽一致。"""
    try:
        s = int(seed)
    except (TypeError, ValueError):
        raise ValueError(f"seed must be convertible to int, got {seed!r}")
    return s & 0xFFFFFFFF


def seed_to_generator(seed: Optional[int]) -> Generator:
    """
    根据整数种子构造 Philox Generator；seed 为 None 时使用 OS 熵（不可复现）。
    """
    if seed is None:
        return Generator(Philox(SeedSequence()))
    return Generator(Philox(_seed32(seed)))


def fresh_root_seed() -> int:
    """从 OS 熵抽取一个 32-bit 根种子（分布式模式下由 rank 0 抽取后广播）。"""
    return int(SeedSequence().generate_state(1)[0])


def spawn_stream_seeds(root_seed: int, n_streams: int) -> List[int]:
    """
    使用 SeedSequence.spawn 从根种子派生 n 个子种子，每个并发单元（线程 / rank）一个。
    返回 [0, 2^32) 区间内的整数列表。
    """
    if int(n_streams) < 1:
        raise ValueError("n_streams must be >= 1")
    children = SeedSequence(_seed32(root_seed)).spawn(int(n_streams))
    return [int(ch.generate_state(1)[0]) for ch in children]


# -----------------------
# JIT 内核：单格点 Metropolis
# -----------------------
@njit(cache=True, nogil=True)
def metropolis_site(spins: np.ndarray, i: int, j: int, temperature: float, u: float) -> bool:
    """
    对 (i, j) 应用一次 Metropolis 判据，原地翻转。返回是否接受。
    """
    L = spins.shape[0]
    ip = i + 1
    if ip == L:
        ip = 0
    im = i - 1
    if im < 0:
        im = L - 1
    jp = j + 1
    if jp == L:
        jp = 0
    jm = j - 1
    if jm < 0:
        jm = L - 1
    s = int(spins[i, j])
    neigh = int(spins[ip, j]) + int(spins[im, j]) + int(spins[i, jp]) + int(spins[i, jm])
    dE = 2.0 * s * neigh
    if dE <= 0.0:
        spins[i, j] = -spins[i, j]
        return True
    # 零温极限：能量升高的翻转一律拒绝
    if temperature <= 0.0:
        return False
    if u < math.exp(-dE / temperature):
        spins[i, j] = -spins[i, j]
        return True
    return False


@njit(cache=True, nogil=True)
def metropolis_rows(spins: np.ndarray, row_start: int, row_stop: int,
                    temperature: float, u: np.ndarray) -> int:
    """
    按行主序扫描 [row_start, row_stop) 的所有格点。
    u 长度必须 >= (row_stop - row_start) * L。返回接受次数。
    """
    L = spins.shape[1]
    if u.size < (row_stop - row_start) * L:
        raise ValueError("u must hold one uniform per site of the row block")
    accepts = 0
    t = 0
    for i in range(row_start, row_stop):
        for j in range(L):
            if metropolis_site(spins, i, j, temperature, u[t]):
                accepts += 1
            t += 1
    return accepts


@njit(cache=True, nogil=True)
def metropolis_colour_rows(spins: np.ndarray, row_start: int, row_stop: int, colour: int,
                           temperature: float, u: np.ndarray) -> int:
    """
    棋盘格单色扫描：只更新 (i + j) % 2 == colour 的格点。
    同色格点互不为邻（要求 L 为偶数），因此不同线程可并发处理不同行块。
    """
    L = spins.shape[1]
    t = 0
    accepts = 0
    for i in range(row_start, row_stop):
        j0 = (i + colour) & 1
        for j in range(j0, L, 2):
            if metropolis_site(spins, i, j, temperature, u[t]):
                accepts += 1
            t += 1
    return accepts


def colour_site_count(row_start: int, row_stop: int, size: int, colour: int) -> int:
    """行块内某一颜色的格点数（用于预生成随机数）。"""
    n = 0
    for i in range(row_start, row_stop):
        j0 = (i + colour) & 1
        n += len(range(j0, size, 2))
    return n
