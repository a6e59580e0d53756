"""Lender pricing kernels for one-period defaultable bonds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import InvalidConfiguration
from .transitions import JointTransition, as_readonly


@dataclass(frozen=True, eq=False)
class PricingKernel:
    """Probability-weighted discount factors ``K[s, s'] = P[s, s'] * M[s, s']``.

    A bond promising one unit next period is worth ``K @ (1 - D)`` where ``D``
    is next period's default indicator at the chosen debt level.
    """

    discounted: np.ndarray
    risk_neutral: bool = False

    @classmethod
    def from_risk_free_rate(cls, transition: JointTransition, r: float) -> "PricingKernel":
        """Risk-neutral lender discounting at the world interest rate."""
        if r <= -1.0:
            raise InvalidConfiguration("r must be greater than -1")
        return cls(discounted=as_readonly(transition.matrix / (1.0 + r)), risk_neutral=True)

    @classmethod
    def from_sdf(
        cls,
        transition: JointTransition,
        sdf,
        dim: Optional[str] = None,
    ) -> "PricingKernel":
        """Risk-averse lender with a precomputed stochastic discount factor.

        ``sdf`` is indexed either by the composite state (shape ``(S,)`` for
        ``M[s']`` or ``(S, S)`` for ``M[s, s']``) or, when ``dim`` is given,
        by that single dimension only.
        """
        index = transition.index
        S = index.n_states
        table = np.asarray(sdf, dtype=float)

        if dim is not None and dim in index.names and table.shape not in {(S,), (S, S)}:
            try:
                table = index.expand(table, dim)
            except ValueError as exc:
                raise InvalidConfiguration(str(exc)) from exc

        if table.shape == (S,):
            M = np.broadcast_to(table[np.newaxis, :], (S, S))
        elif table.shape == (S, S):
            M = table
        else:
            raise InvalidConfiguration(
                f"sdf must have shape ({S},) or ({S}, {S}) for {index}, got {table.shape}"
            )

        if not np.all(np.isfinite(M)) or np.any(M < 0.0):
            raise InvalidConfiguration("stochastic discount factor must be finite and non-negative")
        return cls(discounted=as_readonly(transition.matrix * M))

    def riskless_price(self) -> np.ndarray:
        """Price of a bond that is repaid in every state, per current state."""
        return self.discounted.sum(axis=1)

    def price(self, default: np.ndarray) -> np.ndarray:
        """Bond price schedule ``q(s, a')`` implied by the default indicator."""
        repay = 1.0 - np.asarray(default, dtype=float)
        return self.discounted @ repay
