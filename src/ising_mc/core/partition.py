# -*- coding: utf-8 -*-
"""
行分解（row-decomposition）

把 [0, total_rows) 切成 n_workers 个连续、互不相交的行块。
余数行的处理方式必须显式选择：

    - ``spread``: 前 total_rows % n_workers 个 worker 各多分一行（默认，完全覆盖）
    - ``reject``: 不能整除时抛出 PartitionError

两种策略下，返回的行块都恰好覆盖每一行一次。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

__all__ = [
    "PartitionError",
    "RemainderPolicy",
    "RowBlock",
    "normalize_remainder_policy",
    "partition_rows",
]


class PartitionError(ValueError):
    """非法的行分解配置。"""


class RemainderPolicy(str, Enum):
    SPREAD = "spread"
    REJECT = "reject"


def normalize_remainder_policy(policy: Union[str, RemainderPolicy]) -> RemainderPolicy:
    if isinstance(policy, RemainderPolicy):
        return policy
    s = str(policy).strip().lower()
    if s in ("spread", "round", "rounding", "redistribute"):
        return RemainderPolicy.SPREAD
    if s in ("reject", "strict", "exact"):
        return RemainderPolicy.REJECT
    raise ValueError(f"Unknown remainder policy: {policy!r} (use 'spread' or 'reject')")


@dataclass(frozen=True)
class RowBlock:
    worker: int
    start: int
    stop: int

    @property
    def rows(self) -> range:
        return range(self.start, self.stop)

    def __len__(self) -> int:
        return self.stop - self.start


def partition_rows(
    total_rows: int,
    n_workers: int,
    policy: Union[str, RemainderPolicy] = RemainderPolicy.SPREAD,
) -> List[RowBlock]:
    """
    返回 n_workers 个 RowBlock（worker 编号 0..n_workers-1，按行号递增）。
    spread 策略下若 n_workers > total_rows，多出的 worker 得到空行块。
    """
    total_rows = int(total_rows)
    n_workers = int(n_workers)
    if total_rows <= 0:
        raise PartitionError(f"total_rows must be positive, got {total_rows}")
    if n_workers <= 0:
        raise PartitionError(f"at least one worker is required, got {n_workers}")
    pol = normalize_remainder_policy(policy)

    per_worker, extra = divmod(total_rows, n_workers)
    if extra and pol is RemainderPolicy.REJECT:
        raise PartitionError(
            f"{total_rows} rows cannot be split evenly across {n_workers} workers "
            f"({extra} remainder rows); choose a divisible worker count or use 'spread'"
        )

    blocks: List[RowBlock] = []
    offset = 0
    for w in range(n_workers):
        rows = per_worker + (1 if w < extra else 0)
        blocks.append(RowBlock(worker=w, start=offset, stop=offset + rows))
        offset += rows
    return blocks
