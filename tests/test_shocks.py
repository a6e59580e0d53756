"""Tests for the shock-process builders."""

import numpy as np
import pytest

from ag_default import (
    AGDefaultConfig,
    InvalidConfiguration,
    ShockConfig,
    ShockProcess,
    build_shocks,
    default_long_run_risk,
)
from ag_default.shocks import build_trend_shock, tauchen_process


class TestShockProcess:
    def test_degenerate(self):
        p = ShockProcess.degenerate("g", 1.006)
        assert p.n == 1
        np.testing.assert_array_equal(p.grid, [1.006])
        np.testing.assert_array_equal(p.transition, [[1.0]])

    def test_grid_length_must_match(self):
        with pytest.raises(InvalidConfiguration, match="grid has 2 points"):
            ShockProcess(name="z", grid=np.zeros(2), transition=np.eye(3))

    def test_arrays_are_read_only(self):
        p = ShockProcess(name="z", grid=np.zeros(2), transition=np.eye(2))
        with pytest.raises(ValueError):
            p.grid[0] = 1.0


class TestTauchen:
    def test_single_point_is_degenerate(self):
        p = tauchen_process("z", ShockConfig(n=1), center=0.3)
        np.testing.assert_array_equal(p.grid, [0.3])

    def test_rows_are_distributions(self):
        p = tauchen_process("z", ShockConfig(n=7, rho=0.9, sigma=0.034, span=2.5))
        np.testing.assert_allclose(p.transition.sum(axis=1), 1.0, atol=1e-8)
        assert np.all(np.diff(p.grid) > 0)

    def test_trend_grid_centred_on_log_mean(self):
        g = build_trend_shock(ShockConfig(n=5, mu=1.006, rho=0.17, sigma=0.03, span=4.1458))
        assert (g.grid > 0).all()
        assert np.log(g.grid).mean() == pytest.approx(np.log(1.006))

    def test_trend_mean_must_be_positive(self):
        with pytest.raises(InvalidConfiguration):
            build_trend_shock(ShockConfig(n=5, mu=0.0))


class TestBuildShocks:
    def test_permanent_mode_collapses_transitory_shock(self):
        shocks = build_shocks(AGDefaultConfig(mode="permanent", trend=ShockConfig(n=5, mu=1.006)))
        assert list(shocks) == ["z", "g"]
        np.testing.assert_array_equal(shocks["z"].grid, [0.0])
        assert shocks["g"].n == 5

    def test_transitory_mode_fixes_trend_at_mean(self):
        config = AGDefaultConfig(mode="transitory", transitory=ShockConfig(n=5, mu=-0.000578))
        shocks = build_shocks(config)
        np.testing.assert_array_equal(shocks["g"].grid, [config.trend.mu])
        assert shocks["z"].grid.mean() == pytest.approx(-0.000578)

    def test_complete_mode_with_long_run_risk(self):
        lrr = default_long_run_risk()
        lrr.n = 4
        config = AGDefaultConfig(
            mode="complete",
            trend=ShockConfig(n=3, mu=1.006),
            transitory=ShockConfig(n=3),
            long_run_risk=lrr,
        )
        shocks = build_shocks(config)
        assert list(shocks) == ["x", "z", "g"]
        assert [p.n for p in shocks.values()] == [4, 3, 3]

    def test_unknown_mode(self):
        with pytest.raises(InvalidConfiguration, match="mode"):
            build_shocks(AGDefaultConfig(mode="both"))
