# -*- coding: utf-8 -*-
"""
Ising Monte Carlo with interchangeable execution strategies
===========================================================

二维 Ising 模型 Metropolis 蒙特卡洛引擎：同一套物理，四种执行方式。

主要功能
--------
- Sequential：单线程逐行扫描（正确性基线）
- SharedMemory：线程池 + 棋盘格同步
- GPU：CuPy 设备端棋盘格更新（可选依赖）
- Distributed：mpi4py 行分解 + 逐 sweep 全副本重同步（可选依赖）
- 快照输出（JSON / HDF5 / 文本）、逐 sweep 能量与磁化历史

快速开始
--------
>>> from ising_mc.core.lattice import Lattice
>>> from ising_mc.simulation.base import get_strategy
>>> lat = Lattice("demo", sweep_count=500, size=32, temperature=2.0, seed=42)
>>> get_strategy("sequential").initialise(lat)
>>> abs(lat.magnetism_history[-1]) > 0.5
True

模块组织
--------
- core: 晶格状态、Metropolis 内核、观测量、行分解
- simulation: 执行策略与注册表
- data: 快照读写
- utils: 日志与配置
- cli: 命令行入口（``ising-mc``）
"""

# ising_mc/__init__.py
from importlib import import_module, util as _import_util
from typing import TYPE_CHECKING

# ---- version ----
from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("ising-mc")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "core",
    "simulation",
    "data",
    "utils",
    "cli",
    "HAS_CUPY",
    "HAS_MPI4PY",
    "__version__",
]


def _has_module(name: str) -> bool:
    try:
        return _import_util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


HAS_CUPY = _has_module("cupy")
HAS_MPI4PY = _has_module("mpi4py")

_lazy_subpackages = {
    "core": ".core",
    "simulation": ".simulation",
    "data": ".data",
    "utils": ".utils",
    "cli": ".cli",
}


def __getattr__(name: str):
    if name in _lazy_subpackages:
        mod = import_module(_lazy_subpackages[name], __name__)
        globals()[name] = mod  # cache
        return mod
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(__all__))


if TYPE_CHECKING:  # for IDE/static type checkers only
    from . import core, simulation, data, utils, cli
