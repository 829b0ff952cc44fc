# tests/test_gpu_strategy_smoke.py
import numpy as np
import pytest

cp = pytest.importorskip("cupy")

from ising_mc.core import gpu_algorithms as ga  # noqa: E402
from ising_mc.core.lattice import Lattice  # noqa: E402
from ising_mc.core.observables import energy_total, magnetization_total  # noqa: E402
from ising_mc.simulation.gpu import GPUStrategy  # noqa: E402

if not ga.gpu_available():
    pytest.skip("no usable CUDA device", allow_module_level=True)


def random_spins(L, seed=123):
    rng = np.random.default_rng(seed)
    return rng.choice([-1, 1], size=(L, L)).astype(np.int8)


def test_lut_shape_and_zero_temperature():
    lut = cp.asnumpy(ga.build_acceptance_lut(2.0))
    np.testing.assert_allclose(lut, [1.0, 1.0, 1.0, np.exp(-2.0), np.exp(-4.0)], rtol=1e-6)
    lut0 = cp.asnumpy(ga.build_acceptance_lut(0.0))
    np.testing.assert_array_equal(lut0, [1.0, 1.0, 1.0, 0.0, 0.0])


def test_device_observables_match_host():
    spins = random_spins(16)
    d = cp.asarray(spins)
    assert float(ga.device_energy(d).get()) == energy_total(spins)
    assert float(ga.device_magnetization(d).get()) == magnetization_total(spins)


def test_philox_generator_reproducible():
    a = ga.make_cupy_generator(42).random((4, 4), dtype=cp.float32)
    b = ga.make_cupy_generator(42).random((4, 4), dtype=cp.float32)
    assert cp.array_equal(a, b)


def test_hot_sweep_flips_every_site_once():
    lat = Lattice("gpu", sweep_count=1, size=16, temperature=1e12, seed=0)
    lat.fill(1)
    GPUStrategy().simulate(lat)
    assert np.all(lat.spins == -1)
    assert lat.magnetism_history == [-1.0]


def test_zero_temperature_aligned_is_fixed():
    lat = Lattice("gpu", sweep_count=5, size=16, temperature=0.0, seed=0)
    lat.fill(-1)
    GPUStrategy().simulate(lat)
    assert np.all(lat.spins == -1)


def test_initialise_history_and_odd_size(tmp_path):
    lat = Lattice("gpu", sweep_count=30, size=32, temperature=2.269, output_path=tmp_path / "g.h5", seed=7)
    GPUStrategy().initialise(lat)
    assert len(lat.energy_history) == 30 and lat.complete
    assert lat.energy_history[-1] == pytest.approx(lat.calculate_energy() / 1024.0)
    with pytest.raises(ValueError):
        GPUStrategy().simulate(Lattice("odd", sweep_count=1, size=9, temperature=1.0))
