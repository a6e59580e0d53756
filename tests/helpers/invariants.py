"""Assertions that every Bellman sweep must satisfy."""

import numpy as np


def assert_sweep_invariants(model, snapshot, atol=1e-12):
    S, n_a = model.n_states, model.a_grid.shape[0]
    m = model.config.model

    assert snapshot.good.shape == (S, n_a)
    assert snapshot.bad.shape == (S,), "bad-credit value must not depend on debt"
    assert np.isfinite(snapshot.good).all()
    assert np.isfinite(snapshot.bad).all()

    # Combined value is the pointwise max, ties going to good credit.
    expected = np.maximum(snapshot.good, snapshot.bad[:, np.newaxis])
    np.testing.assert_array_equal(snapshot.combined, expected)
    np.testing.assert_array_equal(snapshot.default, snapshot.good < snapshot.bad[:, np.newaxis])

    # Less debt (higher a) never lowers the good-credit value.
    assert (np.diff(snapshot.good, axis=1) >= -atol).all()

    # Defaulting at some debt implies defaulting at every larger debt.
    assert (np.diff(snapshot.default.astype(int), axis=1) <= 0).all()

    assert (snapshot.price >= 0.0).all()
    assert (snapshot.price <= 1.0 / (1.0 + m.r) + atol).all()
