# -*- coding: utf-8 -*-
import pytest

from ising_mc.core.partition import (
    PartitionError,
    RemainderPolicy,
    normalize_remainder_policy,
    partition_rows,
)


def _covered(blocks):
    rows = [r for b in blocks for r in b.rows]
    return rows


@pytest.mark.parametrize("total_rows, n_workers", [
    (8, 1), (8, 2), (8, 3), (7, 3), (20, 4), (20, 6), (3, 5), (1, 1), (101, 7),
])
def test_spread_covers_every_row_exactly_once(total_rows, n_workers):
    blocks = partition_rows(total_rows, n_workers, "spread")
    assert len(blocks) == n_workers
    assert _covered(blocks) == list(range(total_rows))
    # 连续、有序，块长度差不超过 1
    for a, b in zip(blocks, blocks[1:]):
        assert a.stop == b.start
    sizes = [len(b) for b in blocks]
    assert max(sizes) - min(sizes) <= 1
    assert [b.worker for b in blocks] == list(range(n_workers))


def test_spread_gives_extra_rows_to_first_workers():
    blocks = partition_rows(20, 6)
    assert [len(b) for b in blocks] == [4, 4, 3, 3, 3, 3]


def test_reject_accepts_divisible_split():
    blocks = partition_rows(20, 4, RemainderPolicy.REJECT)
    assert [(b.start, b.stop) for b in blocks] == [(0, 5), (5, 10), (10, 15), (15, 20)]
    assert _covered(blocks) == list(range(20))


def test_reject_raises_on_remainder():
    with pytest.raises(PartitionError):
        partition_rows(20, 6, "reject")


@pytest.mark.parametrize("total_rows, n_workers", [(0, 2), (-4, 2), (8, 0), (8, -1)])
def test_invalid_arguments(total_rows, n_workers):
    with pytest.raises(PartitionError):
        partition_rows(total_rows, n_workers)


def test_partition_error_is_value_error():
    assert issubclass(PartitionError, ValueError)


def test_normalize_remainder_policy_aliases():
    assert normalize_remainder_policy("Round") is RemainderPolicy.SPREAD
    assert normalize_remainder_policy("strict") is RemainderPolicy.REJECT
    assert normalize_remainder_policy(RemainderPolicy.REJECT) is RemainderPolicy.REJECT
    with pytest.raises(ValueError):
        normalize_remainder_policy("drop")
