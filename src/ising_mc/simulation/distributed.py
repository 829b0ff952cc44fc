# -*- coding: utf-8 -*-
"""
    Distributed 策略（mpi4py）：行分解 + 全副本逐 sweep 重同步

角色：
    - rank 0 (master)：不更新任何自旋；每个 sweep 收齐所有行、重建权威网格、计算统计量、
      再把整张网格广播回所有 worker
    - rank 1..P-1 (worker)：各自拥有一段连续、互不相交的行块，并持有整张网格的副本

每个 sweep 的协议（同步，sweep 屏障语义）：
    1. worker 读取自己的副本，按行主序更新本行块的所有格点
    2. worker 把每一行单独发给 master，tag = 行号
    3. master 以任意完成顺序接收恰好 expected_rows 条行消息（ANY_SOURCE / ANY_TAG），
       按 status 的 tag 放回网格；重复行或不属于发送者的行视为协议错误
    4. master 计算本 sweep 的能量 / 磁化并写入历史
    5. master 用集合通信 Bcast 把整张网格写回每个副本，随后 Barrier：
       任何 rank 在所有副本拿到第 i 个 sweep 的网格之前都不会进入第 i+1 个 sweep

全副本而非 halo 交换：每 sweep O(L^2) 通信量，换取协议简单、不存在过期邻居行。
无重试、无超时；任何通信异常都是致命的，由驱动层调用 ``DistributedContext.abort``。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Set, Union

import numpy as np

try:
    from mpi4py import MPI  # type: ignore
except ImportError as e:
    raise ImportError(
        "The distributed strategy needs the optional dependency `mpi4py`. "
        "Install it with: pip install 'ising-mc[mpi]'"
    ) from e

from ..core.algorithms import metropolis_rows, seed_to_generator, spawn_stream_seeds
from ..core.lattice import Lattice
from ..core.observables import StatisticsCollector
from ..core.partition import (
    PartitionError,
    RemainderPolicy,
    RowBlock,
    normalize_remainder_policy,
    partition_rows,
)
from .base import ExecutionStrategy, SimulationStatus

logger = logging.getLogger(__name__)

__all__ = [
    "DistributedContext",
    "DistributedCoordinator",
    "DistributedStrategy",
    "ProtocolError",
]

# MPI 标准保证的最小 MPI_TAG_UB；行号直接用作 tag
_MAX_ROW_TAG = 32767


class ProtocolError(RuntimeError):
    """master 收到了不符合行分解的消息。"""


@dataclass(frozen=True)
class DistributedContext:
    """显式的通信上下文（取代全局 rank / world_size 变量）。"""

    comm: Any
    rank: int
    size: int

    MASTER: ClassVar[int] = 0

    @classmethod
    def from_comm(cls, comm: Any) -> "DistributedContext":
        return cls(comm=comm, rank=int(comm.Get_rank()), size=int(comm.Get_size()))

    @classmethod
    def from_world(cls) -> "DistributedContext":
        return cls.from_comm(MPI.COMM_WORLD)

    @property
    def is_master(self) -> bool:
        return self.rank == self.MASTER

    @property
    def n_workers(self) -> int:
        return self.size - 1

    def abort(self, code: int = 1) -> None:
        self.comm.Abort(int(code))


class DistributedCoordinator:
    """单次运行的行分解与重同步协议。"""

    def __init__(
        self,
        context: DistributedContext,
        total_rows: int,
        remainder_policy: Union[str, RemainderPolicy] = RemainderPolicy.SPREAD,
    ):
        if context.size < 2:
            raise PartitionError(
                f"the distributed strategy needs a master and at least one worker "
                f"(world size {context.size})"
            )
        if not (0 <= context.rank < context.size):
            raise PartitionError(f"rank {context.rank} outside world of size {context.size}")
        if int(total_rows) - 1 > _MAX_ROW_TAG:
            raise PartitionError(
                f"lattice has {total_rows} rows; row indices are used as MPI tags "
                f"and must not exceed {_MAX_ROW_TAG}"
            )
        self.context = context
        self.total_rows = int(total_rows)
        self.policy = normalize_remainder_policy(remainder_policy)
        self.blocks: List[RowBlock] = partition_rows(self.total_rows, context.n_workers, self.policy)
        self.expected_rows = sum(len(b) for b in self.blocks)
        self.block: Optional[RowBlock] = None if context.is_master else self.blocks[context.rank - 1]

    def block_of_rank(self, rank: int) -> RowBlock:
        if rank == DistributedContext.MASTER:
            raise ProtocolError("the master owns no rows")
        return self.blocks[rank - 1]

    # ------------------------------------------------------------------
    # 协议步骤
    # ------------------------------------------------------------------
    def agree_stream_seed(self, lattice: Lattice) -> int:
        """rank 0 抽取根种子并广播，每个 rank 取自己的 SeedSequence 子流。"""
        comm = self.context.comm
        root = int(lattice.rng.integers(0, 2 ** 32)) if self.context.is_master else None
        root = comm.bcast(root, root=DistributedContext.MASTER)
        return spawn_stream_seeds(int(root), self.context.size)[self.context.rank]

    def synchronise(self, lattice: Lattice) -> None:
        """master 的网格覆盖所有副本，Barrier 之后才允许进入下一个 sweep。"""
        comm = self.context.comm
        comm.Bcast(lattice.spins, root=DistributedContext.MASTER)
        comm.Barrier()

    def update_block(self, lattice: Lattice, rng: np.random.Generator) -> int:
        blk = self.block
        if blk is None or len(blk) == 0:
            return 0
        u = rng.random(len(blk) * lattice.size)
        return int(metropolis_rows(lattice.spins, blk.start, blk.stop, lattice.temperature, u))

    def send_rows(self, lattice: Lattice) -> None:
        comm = self.context.comm
        for j in self.block.rows:
            comm.Send(lattice.spins[j], dest=DistributedContext.MASTER, tag=j)

    def gather_rows(self, lattice: Lattice) -> Set[int]:
        """接收恰好 expected_rows 条行消息（任意顺序），返回收到的行号集合。"""
        comm = self.context.comm
        status = MPI.Status()
        buf = np.empty(lattice.size, dtype=lattice.spins.dtype)
        received: Set[int] = set()
        for _ in range(self.expected_rows):
            comm.Recv(buf, source=MPI.ANY_SOURCE, tag=MPI.ANY_TAG, status=status)
            row = int(status.Get_tag())
            src = int(status.Get_source())
            if row in received:
                raise ProtocolError(f"row {row} received twice in one sweep (from rank {src})")
            if row not in self.block_of_rank(src).rows:
                raise ProtocolError(f"rank {src} sent row {row} it does not own")
            lattice.spins[row, :] = buf
            received.add(row)
        return received

    # ------------------------------------------------------------------
    # 主循环
    # ------------------------------------------------------------------
    def run(self, lattice: Lattice, collector: StatisticsCollector, progress=None) -> SimulationStatus:
        if lattice.size != self.total_rows:
            raise PartitionError(f"coordinator built for {self.total_rows} rows, lattice has {lattice.size}")
        ctx = self.context
        rng = seed_to_generator(self.agree_stream_seed(lattice))
        if ctx.is_master:
            logger.info("distributed: %d workers, blocks=%s, policy=%s",
                        ctx.n_workers, [(b.start, b.stop) for b in self.blocks], self.policy.value)

        # 初始网格（master 已 clear）先同步到所有副本
        self.synchronise(lattice)
        for _ in range(lattice.sweep_count):
            if ctx.is_master:
                self.gather_rows(lattice)
                collector.record(lattice)
                if progress is not None:
                    progress.update()
            else:
                self.update_block(lattice, rng)
                self.send_rows(lattice)
            self.synchronise(lattice)
        return SimulationStatus.SUCCESS


class DistributedStrategy(ExecutionStrategy):
    name = "distributed"

    def __init__(
        self,
        context: Optional[DistributedContext] = None,
        remainder_policy: Union[str, RemainderPolicy] = RemainderPolicy.SPREAD,
        progress_every: int = 0,
    ):
        super().__init__(progress_every=progress_every)
        self.context = context if context is not None else DistributedContext.from_world()
        self.remainder_policy = normalize_remainder_policy(remainder_policy)

    def initialise(self, lattice: Lattice) -> SimulationStatus:
        ctx = self.context
        start = MPI.Wtime()
        if ctx.is_master:
            lattice.clear()
            lattice.save()
        status = self.simulate(lattice)
        elapsed = MPI.Wtime() - start
        lattice.mark_complete()
        if ctx.is_master:
            lattice.save()
            self.report(lattice, elapsed)
        return status

    def simulate(self, lattice: Lattice) -> SimulationStatus:
        coordinator = DistributedCoordinator(self.context, lattice.size, self.remainder_policy)
        progress = self._progress(lattice) if self.context.is_master else None
        return coordinator.run(lattice, self.collector, progress)
