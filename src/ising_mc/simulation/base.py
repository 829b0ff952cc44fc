# -*- coding: utf-8 -*-
"""
    执行策略公共接口与运行时注册表

所有策略实现同一契约：
    - ``initialise(lattice)``: clear -> save -> simulate -> mark_complete -> save，并计时
    - ``simulate(lattice)``: 恰好运行 sweep_count 个 sweep，每个 sweep 记录一个统计样本

策略在启动时按名称选择（``get_strategy``），不再为每种并行方式单独构建可执行文件。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from importlib import import_module
from typing import Any, Dict, Tuple

from ..core.lattice import Lattice
from ..core.observables import StatisticsCollector
from ..utils.logger import PerformanceMonitor, ProgressLogger

logger = logging.getLogger(__name__)

__all__ = [
    "SimulationStatus",
    "ExecutionStrategy",
    "normalize_strategy_name",
    "get_strategy",
    "available_strategies",
]


class SimulationStatus(IntEnum):
    SUCCESS = 0
    FAILURE = 1


class ExecutionStrategy(ABC):
    """执行策略基类。子类只需实现 ``simulate``（分布式策略另外覆盖 ``initialise``）。"""

    name: str = "base"

    def __init__(self, progress_every: int = 0):
        self.collector = StatisticsCollector()
        self.progress_every = int(progress_every)
        self.elapsed_us: int = 0

    def _progress(self, lattice: Lattice):
        if self.progress_every <= 0:
            return None
        return ProgressLogger(
            lattice.sweep_count,
            desc=f"{lattice.name} [{self.name}]",
            logger=logger,
            log_every_n=self.progress_every,
        )

    def initialise(self, lattice: Lattice) -> SimulationStatus:
        lattice.clear()
        lattice.save()
        monitor = PerformanceMonitor(logger)
        monitor.start_timer("simulate")
        status = self.simulate(lattice)
        elapsed = monitor.stop_timer("simulate", log=False)
        lattice.mark_complete()
        lattice.save()
        self.report(lattice, elapsed)
        return status

    def report(self, lattice: Lattice, elapsed_seconds: float) -> None:
        self.elapsed_us = int(round(elapsed_seconds * 1e6))
        logger.info("%s:", lattice.name)
        logger.info("Total time: %12d us", self.elapsed_us)

    @abstractmethod
    def simulate(self, lattice: Lattice) -> SimulationStatus:
        ...


# -----------------------
# 策略注册表（以规范化名称为键，惰性导入实现模块）
# -----------------------
_REGISTRY: Dict[str, Tuple[str, str]] = {
    "sequential": (".sequential", "SequentialStrategy"),
    "shared_memory": (".shared_memory", "SharedMemoryStrategy"),
    "gpu": (".gpu", "GPUStrategy"),
    "distributed": (".distributed", "DistributedStrategy"),
}


def normalize_strategy_name(name: str) -> str:
    if name is None:
        raise ValueError("Strategy name must be provided")
    s = str(name).strip().lower().replace("-", "_").replace(" ", "_")
    if s in ("sequential", "serial", "seq"):
        return "sequential"
    if s in ("shared_memory", "shared", "sharedmemory", "omp", "openmp", "threads", "threaded"):
        return "shared_memory"
    if s in ("gpu", "cuda", "cupy"):
        return "gpu"
    if s in ("distributed", "mpi", "dist"):
        return "distributed"
    return s


def available_strategies() -> Tuple[str, ...]:
    return tuple(_REGISTRY.keys())


def get_strategy(name: str, **options: Any) -> ExecutionStrategy:
    n = normalize_strategy_name(name)
    if n not in _REGISTRY:
        raise ValueError(f"Unknown strategy: {name} (normalized -> '{n}'). "
                         f"Known strategies: {list(_REGISTRY.keys())}")
    modname, clsname = _REGISTRY[n]
    module = import_module(modname, __package__)
    return getattr(module, clsname)(**options)
