"""
Tests for simulation clocks and seeding helpers.
"""

import itertools

import pytest

from rts_sim import ConfigurationError, ConstStep, ExponentialStep, RandomSource, derive_seed


def test_const_step_times():
    clock = ConstStep(0.5)
    steps = list(itertools.islice(clock, 4))
    assert steps == [(0.5, 0.5), (1.0, 0.5), (1.5, 0.5), (2.0, 0.5)]


def test_const_step_horizon_and_renew():
    clock = ConstStep(0.25, tmax=1.0)
    assert [t for t, _ in clock] == [0.25, 0.5, 0.75, 1.0]
    assert list(clock) == []
    clock.renew()
    assert len(list(clock)) == 4
    clock.set_tmax(0.0)
    clock.renew()
    assert len(list(itertools.islice(clock, 1000))) == 1000


def test_const_step_validation():
    with pytest.raises(ConfigurationError):
        ConstStep(1e-16)
    with pytest.raises(ConfigurationError):
        ConstStep(0.1, tmax=-1.0)
    clock = ConstStep(0.1)
    with pytest.raises(ConfigurationError):
        clock.set_tmax(-0.5)


def test_exponential_step_growth():
    clock = ExponentialStep(0.1, 1.0, 2, inc=2.0)
    dts = [dt for _, dt in itertools.islice(clock, 9)]
    assert dts == pytest.approx([0.1, 0.1, 0.2, 0.2, 0.4, 0.4, 0.8, 0.8, 1.0])
    times = [t for t, _ in itertools.islice(ExponentialStep(0.1, 1.0, 2, inc=2.0), 4)]
    assert times == pytest.approx([0.1, 0.2, 0.4, 0.6])


def test_exponential_default_increment_and_renew():
    assert ExponentialStep(0.1, 1.0, 1).inc == pytest.approx(1.2)
    assert ExponentialStep(0.1, 1.0, 6).inc == pytest.approx(3.0)
    assert ExponentialStep(0.1, 1.0, 20).inc == pytest.approx(10.0)
    clock = ExponentialStep(0.1, 1.0, 1, inc=2.0)
    list(itertools.islice(clock, 5))
    clock.renew()
    assert clock.dt == 0.1 and clock.current == 0.0 and clock.count == 0
    with pytest.raises(ConfigurationError):
        ExponentialStep(0.1, 0.01, 10)
    with pytest.raises(ConfigurationError):
        ExponentialStep(0.1, 1.0, 10, inc=0.5)


def test_random_source_is_reproducible():
    a = RandomSource(42)
    b = RandomSource(42)
    assert [a.uniform() for _ in range(5)] == [b.uniform() for _ in range(5)]
    assert a.gaussian_vec(3) == b.gaussian_vec(3)
    for _ in range(1000):
        u = a.uniform()
        assert 0.0 < u < 1.0


def test_gaussian_draws_are_standard_normal():
    a = RandomSource(99)
    b = RandomSource(99)
    assert [a.gaussian() for _ in range(5)] == [b.gaussian() for _ in range(5)]
    draws = [a.gaussian() for _ in range(20_000)]
    assert all(isinstance(x, float) for x in draws[:10])
    mean = sum(draws) / len(draws)
    var = sum((x - mean) ** 2 for x in draws) / len(draws)
    assert mean == pytest.approx(0.0, abs=0.05)
    assert var == pytest.approx(1.0, abs=0.05)


def test_derive_seed_mixes_parameters():
    base = derive_seed(100, 10.0, 2, 1.0, 1, 1.0, 0.05, 0)
    assert base == 100 + int(628398227 * 10 + 431710567 * 2 + 277627711 + 719236607 + 917299259 + 367276621 * 0.05)
    assert derive_seed(100, 10.0, 2, 1.0, 1, 1.0, 0.05, 1) != base
    with pytest.raises(ConfigurationError):
        derive_seed(0, *range(8))
