# -*- coding: utf-8 -*-
"""
    GPU 加速二维 Ising 模型 Metropolis 更新（CuPy 实现）

实现算法：
    - 向量化 Metropolis: 采用棋盘格分解 (Checkerboard Decomposition)，红/黑两组子格交替更新，
      同色格点互不为邻，每个格点一个并行单元，避免并行更新时的邻居数据竞争。

实现功能：
    - Look-Up Table (LUT): 预计算接受概率 exp(-dE/T)，dE ∈ {4, 8}，T == 0 时 LUT 为 0。
    - Philox RNG: 显式种子构造 `cupy.random.Generator`，每个格点每个子格步消费一个独立 uniform。
    - 零同步设计: sweep 内全部在设备端执行，仅在 sweep 边界读回能量 / 磁化两个标量。
"""

from __future__ import annotations

from typing import Tuple
import warnings

import numpy as np

try:
    import cupy as cp  # type: ignore

    Philox = None
    for _name in ("Philox4x3210", "Philox"):
        if hasattr(cp.random, _name):
            Philox = getattr(cp.random, _name)
            break
    _HAS_CUPY_PHILOX = Philox is not None
except ImportError as e:
    raise ImportError(
        "gpu_algorithms requires CuPy but it is not available in the environment."
    ) from e

__all__ = [
    "gpu_available",
    "make_cupy_generator",
    "build_acceptance_lut",
    "checkerboard_masks",
    "device_energy",
    "device_magnetization",
    "metropolis_sweep_device",
]


def gpu_available() -> bool:
    """
    轻量 GPU 可用性检查：是否有 >=1 块 CUDA 设备，并做一次极小的设备运算。
    """
    try:
        if cp.cuda.runtime.getDeviceCount() <= 0:
            return False
        x = cp.arange(4, dtype=cp.float32)
        _ = float((x * 2).sum().get())
        return True
    except cp.cuda.runtime.CUDARuntimeError:
        return False


def make_cupy_generator(seed: int) -> "cp.random.Generator":
    """
    构造 CuPy Generator。优先使用 Philox（必须显式传 seed）。
    """
    seed32 = int(seed) & 0xFFFFFFFF
    if _HAS_CUPY_PHILOX and Philox is not None:
        for ctor_call in (lambda s: Philox(seed=s), lambda s: Philox(s)):
            try:
                return cp.random.Generator(ctor_call(seed32))
            except TypeError:
                continue
        warnings.warn(
            f"Philox construction with seed={seed32} failed; "
            "falling back to cp.random.default_rng(seed).",
            RuntimeWarning,
        )
    return cp.random.default_rng(seed32)


def build_acceptance_lut(temperature: float, dtype=cp.float32) -> "cp.ndarray":
    """
    以 (dE + 8) // 4 为下标的接受概率表，dE ∈ {-8,-4,0,4,8}。
    dE <= 0 的条目为 1；T == 0 时正 dE 条目为 0。
    """
    dE_values = np.array([-8.0, -4.0, 0.0, 4.0, 8.0])
    T = float(temperature)
    if T > 0.0:
        prob = np.where(dE_values <= 0.0, 1.0, np.exp(-np.clip(dE_values, 0.0, None) / T))
    else:
        prob = np.where(dE_values <= 0.0, 1.0, 0.0)
    return cp.asarray(prob, dtype=dtype)


def checkerboard_masks(size: int) -> Tuple["cp.ndarray", "cp.ndarray"]:
    idx = cp.arange(size, dtype=cp.int32)
    ii, jj = cp.meshgrid(idx, idx, indexing="ij")
    even = ((ii + jj) & 1) == 0
    return even, ~even


def device_energy(spins: "cp.ndarray") -> "cp.ndarray":
    """设备端总键能（周期边界，每条键计一次），返回 0 维 float64 数组。"""
    s = spins.astype(cp.int64, copy=False)
    e_bond = -cp.sum(s * (cp.roll(s, -1, axis=1) + cp.roll(s, -1, axis=0)))
    return e_bond.astype(cp.float64)


def device_magnetization(spins: "cp.ndarray") -> "cp.ndarray":
    return cp.sum(spins.astype(cp.int64, copy=False)).astype(cp.float64)


def metropolis_sweep_device(
    spins: "cp.ndarray",
    gen: "cp.random.Generator",
    lut_prob: "cp.ndarray",
    masks: Tuple["cp.ndarray", "cp.ndarray"],
) -> "cp.ndarray":
    """
    在设备上原地执行一个完整棋盘格 sweep（两种颜色依次更新）。
    返回本 sweep 的接受次数（设备端 0 维 int64，不同步）。
    """
    accepts = cp.zeros((), dtype=cp.int64)
    for mask in masks:
        s = spins.astype(cp.int32, copy=False)
        nbr = cp.roll(s, 1, 0) + cp.roll(s, -1, 0) + cp.roll(s, 1, 1) + cp.roll(s, -1, 1)
        dE = 2 * s * nbr
        u = gen.random(spins.shape, dtype=lut_prob.dtype)
        prob = lut_prob[((dE + 8) // 4).astype(cp.int32, copy=False)]
        flip = mask & ((dE <= 0) | (u < prob))
        spins *= cp.where(flip, -1, 1).astype(spins.dtype, copy=False)
        accepts += cp.sum(flip, dtype=cp.int64)
    return accepts
