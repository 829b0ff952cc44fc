# -*- coding: utf-8 -*-
"""
Sequential 策略：单控制流，每个 sweep 按行主序扫描整张网格（正确性基线）。
"""

from __future__ import annotations

import logging

from ..core.algorithms import metropolis_rows
from ..core.lattice import Lattice
from .base import ExecutionStrategy, SimulationStatus

logger = logging.getLogger(__name__)

__all__ = ["SequentialStrategy"]


class SequentialStrategy(ExecutionStrategy):
    name = "sequential"

    def simulate(self, lattice: Lattice) -> SimulationStatus:
        L = lattice.size
        n_sites = L * L
        progress = self._progress(lattice)
        accepts = 0
        for _ in range(lattice.sweep_count):
            u = lattice.rng.random(n_sites)
            accepts += metropolis_rows(lattice.spins, 0, L, lattice.temperature, u)
            self.collector.record(lattice)
            if progress is not None:
                progress.update()
        logger.debug("sequential: acceptance rate %.4f",
                     accepts / float(n_sites * lattice.sweep_count))
        return SimulationStatus.SUCCESS
