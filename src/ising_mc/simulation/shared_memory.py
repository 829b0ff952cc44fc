# -*- coding: utf-8 -*-
"""
    SharedMemory 策略：线程池 + 棋盘格同步

行按 ``partition_rows`` 分给 n_threads 个线程（与分布式策略同一分解）。
每个 sweep 分两步：先并发更新颜色 0 的格点，等待全部线程完成（颜色屏障），
再并发更新颜色 1。同色格点互不为邻，因此同一颜色步内不存在读写竞争；
这要求 L 为偶数（周期边界下奇数 L 的首尾列同色相邻）。

每个线程持有独立的 Philox 流（SeedSequence.spawn 派生），Numba 内核释放 GIL。
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..core.algorithms import (
    colour_site_count,
    metropolis_colour_rows,
    seed_to_generator,
    spawn_stream_seeds,
)
from ..core.lattice import Lattice
from ..core.partition import RowBlock, partition_rows
from .base import ExecutionStrategy, SimulationStatus

logger = logging.getLogger(__name__)

__all__ = ["SharedMemoryStrategy"]


class SharedMemoryStrategy(ExecutionStrategy):
    name = "shared_memory"

    def __init__(self, n_threads: Optional[int] = None, progress_every: int = 0):
        super().__init__(progress_every=progress_every)
        if n_threads is not None and int(n_threads) < 1:
            raise ValueError(f"n_threads must be >= 1, got {n_threads}")
        self.n_threads = int(n_threads) if n_threads is not None else None

    def _thread_count(self, lattice: Lattice) -> int:
        n = self.n_threads or (os.cpu_count() or 1)
        return max(1, min(n, lattice.size))

    def simulate(self, lattice: Lattice) -> SimulationStatus:
        L = lattice.size
        if L % 2 == 1:
            raise ValueError(f"checkerboard updates require an even lattice size, got {L}")

        n_threads = self._thread_count(lattice)
        blocks: List[RowBlock] = [b for b in partition_rows(L, n_threads) if len(b) > 0]
        root = int(lattice.rng.integers(0, 2 ** 32))
        rngs = [seed_to_generator(s) for s in spawn_stream_seeds(root, len(blocks))]
        counts = [
            [colour_site_count(b.start, b.stop, L, colour) for colour in (0, 1)]
            for b in blocks
        ]
        logger.debug("shared_memory: %d threads, blocks=%s", len(blocks),
                     [(b.start, b.stop) for b in blocks])

        progress = self._progress(lattice)
        T = lattice.temperature
        spins = lattice.spins
        accepts = 0
        with ThreadPoolExecutor(max_workers=len(blocks)) as pool:
            for _ in range(lattice.sweep_count):
                for colour in (0, 1):
                    futures = [
                        pool.submit(
                            metropolis_colour_rows,
                            spins, b.start, b.stop, colour, T,
                            rngs[k].random(counts[k][colour]),
                        )
                        for k, b in enumerate(blocks)
                    ]
                    # 颜色屏障：全部线程完成本颜色后才进入下一颜色
                    accepts += sum(int(f.result()) for f in futures)
                self.collector.record(lattice)
                if progress is not None:
                    progress.update()

        logger.debug("shared_memory: acceptance rate %.4f",
                     accepts / float(L * L * lattice.sweep_count))
        return SimulationStatus.SUCCESS
