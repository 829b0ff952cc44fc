# -*- coding: utf-8 -*-
"""
核心模块
========

子模块
------
- lattice: 晶格状态（自旋网格、历史、快照）
- algorithms: Numba Metropolis 内核与随机流派生
- gpu_algorithms: GPU 内核 (CuPy)
- observables: 能量 / 磁化与统计汇总
- partition: 行分解与余数策略

示例
----
>>> from ising_mc.core.lattice import Lattice
>>> lat = Lattice("cold", sweep_count=1, size=4, temperature=1.0)
>>> lat.fill(1)
>>> lat.calculate_energy(), lat.calculate_magnetism()
(-32.0, 16.0)
"""

# ising_mc/core/__init__.py
from importlib import import_module
from typing import TYPE_CHECKING

__all__ = ["lattice", "algorithms", "gpu_algorithms", "observables", "partition"]

_lazy = {
    "lattice": ".lattice",
    "algorithms": ".algorithms",
    "gpu_algorithms": ".gpu_algorithms",  # needs cupy
    "observables": ".observables",
    "partition": ".partition",
}

_dep_hints = {
    "gpu_algorithms": "cupy",
}


def __getattr__(name: str):
    if name in _lazy:
        try:
            mod = import_module(_lazy[name], __name__)
        except ModuleNotFoundError as e:
            hint = _dep_hints.get(name)
            if hint and (hint in str(e) or hint in (getattr(e, "name", "") or "")):
                raise ModuleNotFoundError(
                    f"`ising_mc.core.{name}` 需要可选依赖 `{hint}`。请先安装：pip install 'ising-mc[gpu]'"
                ) from e
            raise
        globals()[name] = mod
        return mod
    raise AttributeError(f"{__name__} has no attribute {name!r}")


def __dir__():
    return sorted(list(__all__))


if TYPE_CHECKING:
    from . import lattice, algorithms, gpu_algorithms, observables, partition
