# -*- coding: utf-8 -*-
"""
    二维 Ising 模型物理观测量计算与逐 sweep 统计采样

核心特性：
    - 精度控制：能量、磁化在计算过程中强制使用 `int64` 防止 int8 溢出，最终统一转换为 float 返回。
    - 边界约定：周期性边界，每条最近邻键只计一次（right + down），全对齐构型 E = -2N。
    - StatisticsCollector：每个 sweep 结束时采样一次 (E/N, M/N) 并写入 Lattice 的历史序列。

返回字段（summarize）：
    E_mean      : 每 spin 平均能量
    m_mean      : 每 spin 平均磁化
    abs_m_mean  : <|m|>
    C           : 每 spin 比热 N * Var(e) / T^2
    chi         : 每 spin 磁化率 N * Var(|m|) / T
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .lattice import Lattice

__all__ = [
    "energy_total",
    "magnetization_total",
    "Sample",
    "StatisticsCollector",
    "summarize",
]


def energy_total(spins: Any) -> float:
    """
    计算单个构型 (L,L) 的总键能（不除以 N）。
    """
    a = np.asarray(spins)
    if a.ndim != 2 or a.size == 0:
        raise ValueError("spins must be a non-empty 2D array")
    ai = a.astype(np.int64, copy=False)
    right = np.roll(ai, -1, axis=1)
    down = np.roll(ai, -1, axis=0)
    e_bond = -np.sum(ai * (right + down), dtype=np.int64)
    return float(e_bond)


def magnetization_total(spins: Any) -> int:
    """总磁化 M = sum(s)，取值范围 [-N, N]。"""
    a = np.asarray(spins)
    return int(np.sum(a, dtype=np.int64))


@dataclass(frozen=True)
class Sample:
    """单个 sweep 的统计样本（每 spin 密度）。"""
    energy: float
    magnetization: float


class StatisticsCollector:
    """
    逐 sweep 采样器。所有执行策略在每个 sweep 结束时调用一次 ``record``，
    分布式策略只在 master (rank 0) 上调用。
    """

    def collect(self, lattice: "Lattice") -> Sample:
        n = float(lattice.size * lattice.size)
        return Sample(
            energy=lattice.calculate_energy() / n,
            magnetization=lattice.calculate_magnetism() / n,
        )

    def collect_values(self, lattice: "Lattice", energy: float, magnetization: float) -> Sample:
        """GPU 路径：总量已在设备端计算并读回，这里只做归一化。"""
        n = float(lattice.size * lattice.size)
        return Sample(energy=float(energy) / n, magnetization=float(magnetization) / n)

    def record(self, lattice: "Lattice") -> Sample:
        sample = self.collect(lattice)
        lattice.record_sample(sample)
        return sample


def summarize(
    energy_history: Sequence[float],
    magnetism_history: Sequence[float],
    temperature: float,
    size: int,
    discard: int = 0,
) -> Dict[str, float]:
    """
    对历史序列做热化截断后的统计汇总。discard 为丢弃的前若干个 sweep。
    T == 0 时 C 与 chi 记为 nan。
    """
    e = np.asarray(energy_history, dtype=np.float64)[int(discard):]
    m = np.asarray(magnetism_history, dtype=np.float64)[int(discard):]
    if e.size == 0 or m.size == 0:
        raise ValueError("no samples left after discarding the equilibration window")
    N = float(size) * float(size)
    abs_m = np.abs(m)
    T = float(temperature)
    if T > 0.0:
        C = N * float(np.var(e)) / (T * T)
        chi = N * float(np.var(abs_m)) / T
    else:
        C = float("nan")
        chi = float("nan")
    return {
        "n_samples": int(e.size),
        "E_mean": float(np.mean(e)),
        "m_mean": float(np.mean(m)),
        "abs_m_mean": float(np.mean(abs_m)),
        "C": C,
        "chi": chi,
    }
