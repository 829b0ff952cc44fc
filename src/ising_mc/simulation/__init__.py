# -*- coding: utf-8 -*-
"""
模拟层
======

执行策略：同一契约（initialise / simulate），启动时按名称选择。

子模块
------
- base: 策略基类、SimulationStatus、注册表 get_strategy
- sequential: 单线程基线
- shared_memory: 线程池 + 棋盘格
- gpu: CuPy（可选依赖）
- distributed: mpi4py（可选依赖）

示例
----
>>> from ising_mc.simulation import get_strategy
>>> strategy = get_strategy("threads", n_threads=4)
>>> strategy.name
'shared_memory'
"""

# ising_mc/simulation/__init__.py
from importlib import import_module
from typing import TYPE_CHECKING

from .base import (
    ExecutionStrategy,
    SimulationStatus,
    available_strategies,
    get_strategy,
    normalize_strategy_name,
)

__all__ = [
    "base", "sequential", "shared_memory", "gpu", "distributed",
    "ExecutionStrategy", "SimulationStatus",
    "available_strategies", "get_strategy", "normalize_strategy_name",
]

_lazy = {
    "base": ".base",
    "sequential": ".sequential",
    "shared_memory": ".shared_memory",
    "gpu": ".gpu",                  # needs cupy
    "distributed": ".distributed",  # needs mpi4py
}


def __getattr__(name: str):
    if name in _lazy:
        mod = import_module(_lazy[name], __name__)
        globals()[name] = mod
        return mod
    raise AttributeError(f"{__name__} has no attribute {name!r}")


def __dir__():
    return sorted(list(__all__))


if TYPE_CHECKING:
    from . import base, sequential, shared_memory, gpu, distributed
