# -*- coding: utf-8 -*-
import math

import numpy as np
import pytest

from ising_mc.core.lattice import Lattice
from ising_mc.core.observables import (
    Sample,
    StatisticsCollector,
    energy_total,
    magnetization_total,
    summarize,
)


def test_aligned_energy_counts_each_bond_once():
    for L in (2, 3, 8):
        spins = np.ones((L, L), dtype=np.int8)
        assert energy_total(spins) == -2.0 * L * L
        assert energy_total(-spins) == -2.0 * L * L


def test_checkerboard_energy_is_maximal():
    L = 6
    ii, jj = np.indices((L, L))
    spins = np.where((ii + jj) % 2 == 0, 1, -1).astype(np.int8)
    assert energy_total(spins) == 2.0 * L * L
    assert magnetization_total(spins) == 0


def test_int8_does_not_overflow():
    spins = np.ones((64, 64), dtype=np.int8)
    assert magnetization_total(spins) == 4096
    assert energy_total(spins) == -8192.0


def test_energy_requires_2d():
    with pytest.raises(ValueError):
        energy_total(np.ones(4, dtype=np.int8))


def test_collector_records_per_spin_densities():
    lat = Lattice("obs", sweep_count=2, size=4, temperature=1.0, seed=1)
    lat.fill(-1)
    sample = StatisticsCollector().record(lat)
    assert sample == Sample(energy=-2.0, magnetization=-1.0)
    assert lat.energy_history == [-2.0]
    assert lat.magnetism_history == [-1.0]


def test_collect_values_normalises():
    lat = Lattice("obs", sweep_count=1, size=4, temperature=1.0, seed=1)
    s = StatisticsCollector().collect_values(lat, -16.0, 8.0)
    assert s.energy == -1.0
    assert s.magnetization == 0.5


def test_summarize():
    e = [-2.0, -1.0, -2.0, -1.0]
    m = [1.0, -0.5, 1.0, -0.5]
    out = summarize(e, m, temperature=2.0, size=2, discard=0)
    assert out["n_samples"] == 4
    assert out["E_mean"] == pytest.approx(-1.5)
    assert out["m_mean"] == pytest.approx(0.25)
    assert out["abs_m_mean"] == pytest.approx(0.75)
    assert out["C"] == pytest.approx(4 * 0.25 / 4.0)
    assert out["chi"] == pytest.approx(4 * 0.0625 / 2.0)


def test_summarize_discard_and_zero_temperature():
    out = summarize([-9.0, -2.0, -2.0], [0.0, 1.0, 1.0], temperature=0.0, size=4, discard=1)
    assert out["n_samples"] == 2
    assert out["E_mean"] == -2.0
    assert math.isnan(out["C"]) and math.isnan(out["chi"])
    with pytest.raises(ValueError):
        summarize([1.0], [1.0], temperature=1.0, size=1, discard=1)
