"""Optimal debt choice given utility and continuation-value surfaces."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


def best_response(
    utility: np.ndarray,
    continuation: np.ndarray,
    beta: float,
    tie_tol: float = 0.0,
    feasible: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Maximise ``utility[s, a, a'] + beta * continuation[s, a']`` over ``a'``.

    Returns the maximised value and the maximising ``a'`` index, both with
    shape ``(S, n_a)``.  Among choices within ``tie_tol`` of the maximum the
    smallest grid index wins.  The debt grid ascends from ``a_min`` to zero,
    so the smallest index is the *largest* debt among the tied choices.

    ``feasible``, when given, is a boolean mask shaped like ``utility``;
    masked-out choices are never selected whatever their utility.
    """
    objective = utility + beta * continuation[:, np.newaxis, :]
    if feasible is not None:
        objective = np.where(feasible, objective, -np.inf)
    values = objective.max(axis=2)
    # argmax on a boolean array returns the first True entry.
    index = np.argmax(objective >= values[..., np.newaxis] - tie_tol, axis=2)
    return values, index


def extract_policy(
    utility: np.ndarray,
    continuation: np.ndarray,
    beta: float,
    tie_tol: float = 0.0,
    feasible: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Index of the optimal next-period debt for every ``(s, a)``."""
    _, index = best_response(utility, continuation, beta, tie_tol, feasible)
    return index
