# -*- coding: utf-8 -*-
"""
    Lattice：二维 Ising 晶格状态

持有 L×L 自旋网格（int8，±1，原地修改）、温度、sweep 数、逐 sweep 的能量 / 磁化历史
以及快照输出目标。所有执行策略都只通过本类读写状态。

不变量：
    - 更新之外任何时刻 spins ∈ {-1, +1}
    - size > 0, temperature >= 0
    - len(energy_history) == len(magnetism_history) <= sweep_count
    - complete 在一次运行内单调（False -> True）；clear() 开始新的运行
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

import numpy as np

from .algorithms import metropolis_site, seed_to_generator
from .observables import Sample, energy_total, magnetization_total
from ..data.snapshot_io import save_snapshot

if TYPE_CHECKING:
    from ..utils.config import SimulationConfig

logger = logging.getLogger(__name__)

__all__ = ["Lattice"]


class Lattice:
    def __init__(
        self,
        name: str,
        sweep_count: int,
        size: int,
        temperature: float,
        output_path: Optional[Union[str, Path]] = None,
        seed: Optional[int] = None,
    ):
        if not (isinstance(sweep_count, (int, np.integer)) and sweep_count > 0):
            raise ValueError(f"sweep_count must be a positive integer, got {sweep_count!r}")
        if not (isinstance(size, (int, np.integer)) and size > 0):
            raise ValueError(f"size must be a positive integer, got {size!r}")
        try:
            T = float(temperature)
        except (TypeError, ValueError):
            raise ValueError(f"temperature must be numeric, got {temperature!r}")
        if not math.isfinite(T) or T < 0.0:
            raise ValueError(f"temperature must be finite and >= 0, got {temperature!r}")

        self.name = str(name)
        self.sweep_count = int(sweep_count)
        self.size = int(size)
        self.temperature = T
        self.seed = seed
        self.rng = seed_to_generator(seed)

        self.output_enabled = output_path is not None
        self.output_path = Path(output_path) if output_path is not None else None

        self.spins = np.ones((self.size, self.size), dtype=np.int8)
        self.energy_history: List[float] = []
        self.magnetism_history: List[float] = []
        self._complete = False

    @classmethod
    def from_config(cls, config: "SimulationConfig") -> "Lattice":
        return cls(
            name=config.name,
            sweep_count=config.sweeps,
            size=config.size,
            temperature=config.temperature,
            output_path=config.output,
            seed=config.seed,
        )

    def __repr__(self) -> str:
        return (f"Lattice(name={self.name!r}, size={self.size}, T={self.temperature}, "
                f"sweeps={len(self.energy_history)}/{self.sweep_count}, complete={self._complete})")

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------
    @property
    def complete(self) -> bool:
        return self._complete

    @complete.setter
    def complete(self, value: bool) -> None:
        if self._complete and not value:
            raise ValueError("complete cannot be reset to False; call clear() to start a new run")
        self._complete = bool(value)

    def mark_complete(self) -> None:
        self.complete = True

    def clear(self) -> None:
        """每个自旋独立均匀取 ±1，并清空历史与 complete 标志。"""
        draws = self.rng.integers(0, 2, size=(self.size, self.size), dtype=np.int8)
        self.spins[...] = 2 * draws - 1
        self.energy_history.clear()
        self.magnetism_history.clear()
        self._complete = False

    def fill(self, value: int = 1) -> None:
        """全对齐构型（冷启动 / 确定性测试）。"""
        if value not in (-1, 1):
            raise ValueError("fill value must be +1 or -1")
        self.spins.fill(value)

    def copy_spins(self) -> np.ndarray:
        return self.spins.copy()

    def save(self) -> Optional[Path]:
        """若设置了 output_path，则写出 name / size / complete / spins 快照。"""
        if not self.output_enabled:
            return None
        path = save_snapshot(self.output_path, self.name, self.size, self._complete, self.spins)
        logger.debug("snapshot written: %s (complete=%s)", path, self._complete)
        return path

    # ------------------------------------------------------------------
    # 观测量
    # ------------------------------------------------------------------
    def calculate_energy(self) -> float:
        """周期边界总键能，每条键计一次。"""
        return energy_total(self.spins)

    def calculate_magnetism(self, per_spin: bool = False) -> float:
        m = magnetization_total(self.spins)
        if per_spin:
            return m / float(self.size * self.size)
        return float(m)

    def record_sample(self, sample: Sample) -> None:
        if len(self.energy_history) >= self.sweep_count:
            raise RuntimeError(
                f"history already holds {self.sweep_count} samples; sweep_count exceeded"
            )
        self.energy_history.append(float(sample.energy))
        self.magnetism_history.append(float(sample.magnetization))

    # ------------------------------------------------------------------
    # 单格点更新
    # ------------------------------------------------------------------
    def update_spin(self, row: int, col: int) -> None:
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"site ({row}, {col}) outside {self.size}x{self.size} lattice")
        metropolis_site(self.spins, int(row), int(col), self.temperature, float(self.rng.random()))
