"""Value-function iteration for the Aguiar-Gopinath sovereign default model.

This module contains the Bellman operator and the fixed-point loop; shock
discretization, pricing kernels, and policy extraction live in their own
modules.
"""

from __future__ import annotations

import math
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Mapping, Optional

import numpy as np

from .config import MODES, AGDefaultConfig
from .errors import CalibrationError, InvalidConfiguration, NonConvergence
from .policy import best_response, extract_policy
from .pricing import PricingKernel
from .results import BellmanSnapshot, SolveResult
from .shocks import ShockProcess, build_shocks
from .transitions import JointTransition, as_readonly


# Utility reported for non-positive consumption; such choices are masked out
# of the maximisation.
UTILITY_FLOOR = -1e18

# Upper bound on (state, a, a') elements materialised at once.
BLOCK_ELEMENTS = 1 << 22


def crra(consumption, gamma: float) -> np.ndarray:
    """CRRA utility with ``UTILITY_FLOOR`` where consumption is not positive."""
    c = np.asarray(consumption, dtype=float)
    out = np.full(c.shape, UTILITY_FLOOR)
    positive = c > 0.0
    out[positive] = c[positive] ** (1.0 - gamma) / (1.0 - gamma)
    return out


class AGDefaultModel:
    """Solve the sovereign default model by value-function iteration.

    ``shocks`` may be supplied directly as a mapping of ``ShockProcess``
    objects ordered fastest-varying first (it must contain ``"z"`` and
    ``"g"``); otherwise they are built from ``config``.  ``sdf`` switches the
    lender from risk-neutral to the given stochastic discount factor.
    """

    def __init__(
        self,
        config: AGDefaultConfig,
        shocks: Optional[Mapping[str, ShockProcess]] = None,
        sdf=None,
        sdf_dim: Optional[str] = "x",
    ):
        self.config = config
        self._validate_config()

        if shocks is None:
            shocks = build_shocks(config)
        self.shocks = dict(shocks)
        for name in ("z", "g"):
            if name not in self.shocks:
                raise InvalidConfiguration(f"missing shock process {name!r}")
        if len(self.shocks) not in (2, 3):
            raise InvalidConfiguration("expected 2 or 3 shock processes")

        self.transition = JointTransition.compose(self.shocks.values())
        self.index = self.transition.index

        d = config.debt
        if d.n > 1:
            self.a_grid = as_readonly(np.linspace(d.a_min, d.a_max, d.n))
        else:
            self.a_grid = as_readonly([d.a_max])
        self.zero_debt = d.n - 1

        g = self.index.values("g", self.shocks["g"].grid)
        z = self.index.values("z", self.shocks["z"].grid)
        if np.any(g <= 0.0):
            raise InvalidConfiguration("trend shock grid must be strictly positive")
        self.trend = as_readonly(g)
        self.endowment = as_readonly(np.exp(z) * g / config.trend.mu)

        m = config.model
        self.autarky_utility = as_readonly(crra((1.0 - m.delta) * self.endowment, m.gamma))

        if sdf is None:
            self.kernel = PricingKernel.from_risk_free_rate(self.transition, m.r)
        else:
            self.kernel = PricingKernel.from_sdf(self.transition, sdf, dim=sdf_dim)

        self._blocks = self._state_blocks()

    def _validate_config(self) -> None:
        """Validate parameter restrictions before building anything."""
        c = self.config
        m = c.model
        d = c.debt
        s = c.solver

        if c.mode not in MODES:
            raise InvalidConfiguration(f"mode must be one of {MODES}, got {c.mode!r}")

        if math.isclose(m.gamma, 1.0):
            raise InvalidConfiguration("gamma = 1 (log utility) is not supported")
        if m.gamma <= 0:
            raise InvalidConfiguration("gamma must be strictly positive")
        if not (0.0 < m.beta < 1.0):
            raise InvalidConfiguration("beta must be in (0,1)")
        if m.r <= -1.0:
            raise InvalidConfiguration("r must be greater than -1")
        if not (0.0 <= m.delta < 1.0):
            raise InvalidConfiguration("delta must be in [0,1)")
        if not (0.0 <= m.lam <= 1.0):
            raise InvalidConfiguration("lam must be in [0,1]")

        if d.n < 1:
            raise InvalidConfiguration("debt grid size must be >= 1")
        if d.a_max != 0.0:
            raise InvalidConfiguration("a_max must be 0; saving (a > 0) is not modelled")
        if d.n > 1 and d.a_min >= d.a_max:
            raise InvalidConfiguration("a_min must be below a_max")

        shock_cfgs = [("trend", c.trend), ("transitory", c.transitory)]
        if c.long_run_risk is not None:
            shock_cfgs.append(("long_run_risk", c.long_run_risk))
        for name, cfg in shock_cfgs:
            if cfg.n < 1:
                raise InvalidConfiguration(f"{name} grid size must be >= 1")
            if cfg.sigma < 0:
                raise InvalidConfiguration(f"{name} sigma must be non-negative")
            if abs(cfg.rho) >= 1:
                raise InvalidConfiguration(f"{name} rho must be in (-1,1)")
            if cfg.span <= 0:
                raise InvalidConfiguration(f"{name} span must be strictly positive")
        if c.trend.mu <= 0:
            raise InvalidConfiguration("trend mean mu must be strictly positive")

        if s.tol <= 0:
            raise InvalidConfiguration("tol must be strictly positive")
        if s.max_iter < 1:
            raise InvalidConfiguration("max_iter must be >= 1")
        if s.tie_tol < 0:
            raise InvalidConfiguration("tie_tol must be non-negative")
        if s.n_workers < 1:
            raise InvalidConfiguration("n_workers must be >= 1")
        if s.report_every < 1:
            raise InvalidConfiguration("report_every must be >= 1")

    def _state_blocks(self) -> List[np.ndarray]:
        """Contiguous groups of exogenous states processed together."""
        S = self.index.n_states
        n_a = self.a_grid.shape[0]
        by_memory = math.ceil(S * n_a * n_a / BLOCK_ELEMENTS)
        n_blocks = min(S, max(self.config.solver.n_workers, by_memory, 1))
        return np.array_split(np.arange(S), n_blocks)

    def _make_executor(self) -> Optional[ThreadPoolExecutor]:
        """Thread pool for the state blocks, or ``None`` when running serially."""
        n_workers = self.config.solver.n_workers
        if n_workers > 1 and len(self._blocks) > 1:
            return ThreadPoolExecutor(max_workers=n_workers)
        return None

    def _map_blocks(
        self,
        func: Callable[[np.ndarray], np.ndarray],
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> np.ndarray:
        """Apply ``func`` to every state block and stack the results in order.

        Without an ``executor`` a temporary pool is created when
        ``n_workers > 1``; ``solve`` passes one pool for the whole run.
        """
        if executor is not None:
            parts = list(executor.map(func, self._blocks))
        else:
            own = self._make_executor()
            if own is None:
                parts = [func(block) for block in self._blocks]
            else:
                with own:
                    parts = list(own.map(func, self._blocks))
        return np.concatenate(parts, axis=0)

    @property
    def n_states(self) -> int:
        return self.index.n_states

    def initial_snapshot(self) -> BellmanSnapshot:
        """Zero value functions and the riskless price schedule."""
        S = self.index.n_states
        n_a = self.a_grid.shape[0]
        riskless = self.kernel.riskless_price()
        return BellmanSnapshot(
            good=np.zeros((S, n_a)),
            bad=np.zeros(S),
            combined=np.zeros((S, n_a)),
            default=np.zeros((S, n_a), dtype=bool),
            price=np.repeat(riskless[:, np.newaxis], n_a, axis=1),
        )

    def consumption(self, price: np.ndarray, states: Optional[np.ndarray] = None) -> np.ndarray:
        """Consumption ``c[s, a, a']`` when repaying and issuing ``a'``."""
        if states is None:
            states = np.arange(self.index.n_states)
        y = self.endowment[states][:, np.newaxis, np.newaxis]
        g = self.trend[states][:, np.newaxis, np.newaxis]
        a = self.a_grid[np.newaxis, :, np.newaxis]
        proceeds = (price[states] * self.a_grid[np.newaxis, :])[:, np.newaxis, :]
        return y + a - proceeds * g

    def period_utility(self, price: np.ndarray, states: Optional[np.ndarray] = None) -> np.ndarray:
        """Flow utility surface ``u[s, a, a']`` under the price schedule."""
        return crra(self.consumption(price, states), self.config.model.gamma)

    def expected_continuation(self, combined: np.ndarray) -> np.ndarray:
        """``E[V(s', a') | s]`` for every current state and debt choice."""
        return self.transition.expectation(combined)

    def _choice_surfaces(self, price: np.ndarray, states: np.ndarray):
        """Utility surface and the ``c > 0`` mask for one block of states."""
        c = self.consumption(price, states)
        return crra(c, self.config.model.gamma), c > 0.0

    def _good_block(self, states: np.ndarray, price: np.ndarray, continuation: np.ndarray) -> np.ndarray:
        """Good-credit values for one block of exogenous states."""
        m = self.config.model
        utility, feasible = self._choice_surfaces(price, states)

        has_choice = feasible.any(axis=2)
        if not has_choice.all():
            k, i = np.argwhere(~has_choice)[0]
            state = dict(zip(self.index.names, self.index.unflat(states[k])))
            raise CalibrationError(
                f"no debt choice yields positive consumption at state {state}, "
                f"a={self.a_grid[i]:.6f}; check the debt grid"
            )

        values, _ = best_response(
            utility, continuation[states], m.beta, self.config.solver.tie_tol, feasible
        )
        return values

    def sweep(
        self, snapshot: BellmanSnapshot, executor: Optional[ThreadPoolExecutor] = None
    ) -> BellmanSnapshot:
        """Apply the Bellman operator and the pricing update once.

        Only ``snapshot`` is read; the returned snapshot is built from fresh
        arrays.
        """
        m = self.config.model

        continuation = self.expected_continuation(snapshot.combined)
        good = self._map_blocks(
            lambda states: self._good_block(states, snapshot.price, continuation),
            executor,
        )

        ev_redeemed = self.transition.expectation(snapshot.good[:, self.zero_debt])
        ev_excluded = self.transition.expectation(snapshot.bad)
        bad = self.autarky_utility + m.beta * (
            m.lam * ev_redeemed + (1.0 - m.lam) * ev_excluded
        )

        # Indifferent governments repay.
        default = good < bad[:, np.newaxis]
        combined = np.where(default, bad[:, np.newaxis], good)
        price = self.kernel.price(default)

        return BellmanSnapshot(good=good, bad=bad, combined=combined, default=default, price=price)

    @staticmethod
    def distance(old: BellmanSnapshot, new: BellmanSnapshot) -> float:
        """Largest L1 change of the good and bad value functions."""
        return float(
            max(
                np.sum(np.abs(new.good - old.good)),
                np.sum(np.abs(new.bad - old.bad)),
            )
        )

    def policy(
        self, snapshot: BellmanSnapshot, executor: Optional[ThreadPoolExecutor] = None
    ) -> np.ndarray:
        """Optimal ``a'`` index for the sweep that starts from ``snapshot``."""
        m = self.config.model
        continuation = self.expected_continuation(snapshot.combined)

        def block_policy(states: np.ndarray) -> np.ndarray:
            utility, feasible = self._choice_surfaces(snapshot.price, states)
            return extract_policy(
                utility, continuation[states], m.beta, self.config.solver.tie_tol, feasible
            )

        return self._map_blocks(block_policy, executor)

    def solve(self, verbose: bool = False, initial: Optional[BellmanSnapshot] = None) -> SolveResult:
        """Iterate the Bellman operator to its fixed point."""
        s = self.config.solver

        snapshot = self.initial_snapshot() if initial is None else initial
        expected = (self.index.n_states, self.a_grid.shape[0])
        if snapshot.good.shape != expected or snapshot.bad.shape != expected[:1]:
            raise InvalidConfiguration(f"initial snapshot does not match state shape {expected}")

        previous = snapshot
        errors: List[float] = []
        error = math.inf
        converged = False

        executor = self._make_executor()
        try:
            for it in range(1, s.max_iter + 1):
                previous = snapshot
                snapshot = self.sweep(previous, executor)
                error = self.distance(previous, snapshot)
                errors.append(error)

                if verbose and it % s.report_every == 0:
                    print(
                        f"Iteration {it:05d} | diff={error:.3e} | "
                        f"default share={np.mean(snapshot.default):.4f} | "
                        f"q range: [{snapshot.price.min():.4f}, {snapshot.price.max():.4f}]"
                    )

                if error < s.tol:
                    converged = True
                    break

            # The policy belongs to the last sweep, which started from ``previous``.
            policy_index = self.policy(previous, executor)
        finally:
            if executor is not None:
                executor.shutdown()

        iterations = len(errors)
        if converged:
            if verbose:
                print(f"Converged after {iterations} iterations (diff={error:.3e}).")
        else:
            if verbose:
                print(f"Reached max_iter={s.max_iter} without convergence (diff={error:.3e}).")
            warnings.warn(
                f"value function iteration stopped after {iterations} iterations "
                f"with diff={error:.3e} >= tol={s.tol:.1e}",
                NonConvergence,
                stacklevel=2,
            )

        return SolveResult(
            snapshot=snapshot,
            policy_index=policy_index,
            policy_asset=self.a_grid[policy_index],
            iterations=iterations,
            error=float(error),
            errors=np.asarray(errors),
            converged=converged,
            a_grid=self.a_grid,
            state_names=self.index.names,
            state_sizes=self.index.sizes,
            state_grids={name: p.grid for name, p in self.shocks.items()},
        )
