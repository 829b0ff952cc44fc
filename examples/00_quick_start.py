# examples/00_quick_start.py
"""
Quick start: 最简单的单次运行

- 在 CPU 上用 Sequential 策略跑一个小系统 (L=32)
- 不依赖 Config 系统，直接用裸参数
- 打印热化截断后的能量 / 磁化 / 比热 / 磁化率
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for p in (ROOT, ROOT / "src"):
    s = str(p)
    if s not in sys.path:
        sys.path.insert(0, s)

from ising_mc.core.lattice import Lattice
from ising_mc.core.observables import summarize
from ising_mc.simulation import get_strategy


def main():
    L = 32
    sweeps = 2000

    print(f"{'T':>6} {'E/N':>10} {'<|m|>':>8} {'C':>8} {'chi':>8}")
    for T in (1.5, 2.0, 2.269, 2.5, 3.0):
        lattice = Lattice(f"quick_T{T}", sweep_count=sweeps, size=L, temperature=T,
                          output_path=f"runs/quick_start/T{T}.json", seed=42)
        get_strategy("sequential").initialise(lattice)

        stats = summarize(lattice.energy_history, lattice.magnetism_history,
                          T, L, discard=sweeps // 4)
        print(f"{T:6.3f} {stats['E_mean']:10.4f} {stats['abs_m_mean']:8.4f} "
              f"{stats['C']:8.4f} {stats['chi']:8.4f}")


if __name__ == "__main__":
    main()
