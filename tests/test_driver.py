"""Tests for the command-line driver."""

import numpy as np
import pytest

import run_AG_discrete
from ag_default import NonConvergence, SolveResult


class TestBuildDefaultConfig:
    def test_risk_neutral_has_no_lender_state(self):
        config = run_AG_discrete.build_default_config(mode="transitory")
        assert config.long_run_risk is None
        assert config.debt.a_min == -0.3

    def test_risk_averse_adds_lender_state(self):
        config = run_AG_discrete.build_default_config(mode="permanent", risk_averse=True)
        assert config.long_run_risk is not None
        assert config.long_run_risk.n == 30
        assert config.debt.a_min == -0.22


class TestMain:
    def test_sdf_option_solves_risk_averse_variant(self, tmp_path, capsys):
        sdf_path = tmp_path / "sdf.npy"
        np.save(sdf_path, np.full((30, 30), 1.0 / 1.01))

        argv = [
            "--mode", "permanent",
            "--n-a", "3",
            "--max-iter", "2",
            "--sdf", str(sdf_path),
            "--output", str(tmp_path),
            "--quiet",
        ]
        with pytest.warns(NonConvergence):
            run_AG_discrete.main(argv)

        assert "risk-averse" in capsys.readouterr().out
        result = SolveResult.load(tmp_path / "ag_solution_permanent_ra.npz")
        assert result.state_names == ("x", "z", "g")
        assert result.state_sizes == (30, 1, 25)
