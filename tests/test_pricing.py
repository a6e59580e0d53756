"""Tests for the lender pricing kernels."""

import numpy as np
import pytest

from ag_default import InvalidConfiguration, JointTransition, PricingKernel, ShockProcess


@pytest.fixture
def transition():
    x = ShockProcess(name="x", grid=np.array([-0.01, 0.01]), transition=np.array([[0.9, 0.1], [0.2, 0.8]]))
    z = ShockProcess(name="z", grid=np.array([-0.05, 0.05]), transition=np.array([[0.6, 0.4], [0.4, 0.6]]))
    g = ShockProcess.degenerate("g", 1.006)
    return JointTransition.compose([x, z, g])


class TestRiskNeutral:
    def test_no_default_prices_at_risk_free_rate(self, transition):
        kernel = PricingKernel.from_risk_free_rate(transition, r=0.01)
        q = kernel.price(np.zeros((4, 3), dtype=bool))
        np.testing.assert_allclose(q, 1.0 / 1.01)
        np.testing.assert_allclose(kernel.riskless_price(), 1.0 / 1.01)

    def test_certain_default_prices_at_zero(self, transition):
        kernel = PricingKernel.from_risk_free_rate(transition, r=0.01)
        np.testing.assert_allclose(kernel.price(np.ones((4, 3), dtype=bool)), 0.0)

    def test_price_is_discounted_repayment_probability(self, transition):
        kernel = PricingKernel.from_risk_free_rate(transition, r=0.05)
        default = np.zeros((4, 2), dtype=bool)
        default[3, 0] = True
        q = kernel.price(default)
        expected = (1.0 - transition.matrix[:, 3]) / 1.05
        np.testing.assert_allclose(q[:, 0], expected)
        np.testing.assert_allclose(q[:, 1], 1.0 / 1.05)

    def test_rejects_rate_at_minus_one(self, transition):
        with pytest.raises(InvalidConfiguration):
            PricingKernel.from_risk_free_rate(transition, r=-1.0)


class TestStochasticDiscountFactor:
    def test_constant_sdf_matches_risk_neutral(self, transition):
        neutral = PricingKernel.from_risk_free_rate(transition, r=0.01)
        averse = PricingKernel.from_sdf(transition, np.full((2, 2), 1.0 / 1.01), dim="x")
        np.testing.assert_allclose(averse.discounted, neutral.discounted)

    def test_lender_state_table_is_lifted(self, transition):
        m = np.array([[0.99, 1.02], [0.95, 0.97]])
        kernel = PricingKernel.from_sdf(transition, m, dim="x")
        index = transition.index
        for s in range(4):
            for t in range(4):
                xs, xt = index.unflat(s)[0], index.unflat(t)[0]
                assert kernel.discounted[s, t] == pytest.approx(transition.matrix[s, t] * m[xs, xt])

    def test_next_state_vector(self, transition):
        m = np.array([0.9, 1.0, 0.95, 0.99])
        kernel = PricingKernel.from_sdf(transition, m)
        np.testing.assert_allclose(kernel.riskless_price(), transition.matrix @ m)

    def test_wrong_shape(self, transition):
        with pytest.raises(InvalidConfiguration):
            PricingKernel.from_sdf(transition, np.ones(3))

    def test_negative_sdf(self, transition):
        with pytest.raises(InvalidConfiguration, match="non-negative"):
            PricingKernel.from_sdf(transition, -np.ones(4))
