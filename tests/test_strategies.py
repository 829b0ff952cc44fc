# -*- coding: utf-8 -*-
"""
执行策略测试（Sequential / SharedMemory，以及注册表）

- 历史长度 == sweep_count，complete 与快照生命周期
- 极高温下一个 sweep 让每个格点恰好翻转一次（覆盖性）
- SharedMemory 奇数 L 拒绝、线程数与结果无关地覆盖全网格
- 相变合理性：L=50，T=1.5 有序、T=3.0 无序
"""

import logging

import numpy as np
import pytest

from ising_mc.core.lattice import Lattice
from ising_mc.core.observables import summarize
from ising_mc.data.snapshot_io import load_snapshot
from ising_mc.simulation import (
    ExecutionStrategy,
    SimulationStatus,
    available_strategies,
    get_strategy,
    normalize_strategy_name,
)
from ising_mc.simulation.sequential import SequentialStrategy
from ising_mc.simulation.shared_memory import SharedMemoryStrategy

HOT = 1e12


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


# ----------------------------- 注册表 -----------------------------
@pytest.mark.parametrize("alias, expected", [
    ("sequential", "sequential"), ("Serial", "sequential"),
    ("shared-memory", "shared_memory"), ("omp", "shared_memory"), ("threads", "shared_memory"),
    ("CUDA", "gpu"), ("mpi", "distributed"),
])
def test_normalize_strategy_name(alias, expected):
    assert normalize_strategy_name(alias) == expected


def test_registry():
    assert set(available_strategies()) == {"sequential", "shared_memory", "gpu", "distributed"}
    s = get_strategy("omp", n_threads=2)
    assert isinstance(s, SharedMemoryStrategy) and s.n_threads == 2
    assert isinstance(get_strategy("serial"), SequentialStrategy)
    with pytest.raises(ValueError):
        get_strategy("quantum")


def test_status_codes():
    assert int(SimulationStatus.SUCCESS) == 0
    assert int(SimulationStatus.FAILURE) == 1


# ----------------------------- 生命周期 -----------------------------
@pytest.mark.parametrize("strategy", [SequentialStrategy(), SharedMemoryStrategy(n_threads=3)])
def test_initialise_lifecycle(tmp_path, strategy):
    out = tmp_path / "run.json"
    lat = Lattice("life", sweep_count=25, size=10, temperature=2.0, output_path=out, seed=4)
    status = strategy.initialise(lat)
    assert status is SimulationStatus.SUCCESS
    assert len(lat.energy_history) == 25
    assert len(lat.magnetism_history) == 25
    assert lat.complete
    snap = load_snapshot(out)
    assert snap["complete"] is True
    np.testing.assert_array_equal(snap["spins"], lat.spins)
    assert strategy.elapsed_us >= 0


def test_initialise_reports_total_time():
    handler = _ListHandler()
    log = logging.getLogger("ising_mc.simulation.base")
    log.addHandler(handler)
    old_level = log.level
    log.setLevel(logging.INFO)
    try:
        lat = Lattice("timed", sweep_count=2, size=4, temperature=1.0, seed=0)
        SequentialStrategy().initialise(lat)
    finally:
        log.removeHandler(handler)
        log.setLevel(old_level)
    assert "timed:" in handler.messages
    assert any(m.startswith("Total time:") and m.endswith(" us") for m in handler.messages)


def test_strategy_is_abstract():
    with pytest.raises(TypeError):
        ExecutionStrategy()


def test_progress_logger_attached():
    s = SequentialStrategy(progress_every=5)
    lat = Lattice("p", sweep_count=10, size=4, temperature=1.0, seed=0)
    assert s._progress(lat) is not None
    assert SequentialStrategy()._progress(lat) is None


# ----------------------------- 覆盖性 -----------------------------
@pytest.mark.parametrize("strategy", [
    SequentialStrategy(),
    SharedMemoryStrategy(n_threads=1),
    SharedMemoryStrategy(n_threads=3),
    SharedMemoryStrategy(n_threads=16),
])
def test_every_site_updated_once_per_sweep(strategy):
    lat = Lattice("cover", sweep_count=1, size=8, temperature=HOT, seed=2)
    lat.fill(1)
    strategy.simulate(lat)
    assert np.all(lat.spins == -1)
    assert lat.magnetism_history == [-1.0]


def test_shared_memory_rejects_odd_size():
    lat = Lattice("odd", sweep_count=1, size=7, temperature=2.0, seed=0)
    with pytest.raises(ValueError):
        SharedMemoryStrategy(n_threads=2).simulate(lat)
    with pytest.raises(ValueError):
        SharedMemoryStrategy(n_threads=0)


def test_shared_memory_is_reproducible_for_fixed_seed_and_threads():
    runs = []
    for _ in range(2):
        lat = Lattice("rep", sweep_count=20, size=12, temperature=2.3, seed=99)
        SharedMemoryStrategy(n_threads=4).initialise(lat)
        runs.append((lat.copy_spins(), lat.energy_history))
    np.testing.assert_array_equal(runs[0][0], runs[1][0])
    assert runs[0][1] == runs[1][1]


def test_sequential_history_matches_final_state():
    lat = Lattice("last", sweep_count=15, size=9, temperature=2.5, seed=8)
    SequentialStrategy().initialise(lat)
    assert lat.energy_history[-1] == lat.calculate_energy() / 81.0
    assert lat.magnetism_history[-1] == lat.calculate_magnetism(per_spin=True)


# ----------------------------- 物理合理性 -----------------------------
@pytest.mark.slow
@pytest.mark.parametrize("strategy_factory", [SequentialStrategy, lambda: SharedMemoryStrategy(n_threads=4)])
def test_phase_transition_sanity(strategy_factory):
    L, sweeps = 50, 1000

    cold = Lattice("low", sweep_count=sweeps, size=L, temperature=1.5, seed=21)
    strategy_factory().initialise(cold)
    low = summarize(cold.energy_history, cold.magnetism_history, 1.5, L, discard=sweeps // 2)

    hot = Lattice("high", sweep_count=sweeps, size=L, temperature=3.0, seed=22)
    strategy_factory().initialise(hot)
    high = summarize(hot.energy_history, hot.magnetism_history, 3.0, L, discard=sweeps // 2)

    # 能量对残留畴壁不敏感：T=1.5 约 -1.95，T=3.0 约 -0.8
    assert low["E_mean"] < -1.7
    assert high["E_mean"] > -1.2
    assert high["abs_m_mean"] < 0.3

    # 冷启动避开畴壁亚稳态，检查序参量
    ordered = Lattice("low-cold", sweep_count=300, size=L, temperature=1.5, seed=23)
    ordered.fill(1)
    strategy_factory().simulate(ordered)
    assert summarize(ordered.energy_history, ordered.magnetism_history, 1.5, L,
                     discard=100)["abs_m_mean"] > 0.9
