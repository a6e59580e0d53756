"""Structured result containers used by the sovereign default solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

import numpy as np

from .transitions import StateIndex, as_readonly


@dataclass(frozen=True, eq=False)
class BellmanSnapshot:
    """Value functions and prices produced by one sweep.

    Arrays are indexed by composite exogenous state on the first axis and by
    debt on the second (current debt for values, next-period debt for prices).
    """

    good: np.ndarray
    bad: np.ndarray
    combined: np.ndarray
    default: np.ndarray
    price: np.ndarray

    def __post_init__(self):
        for name in ("good", "bad", "combined", "price"):
            object.__setattr__(self, name, as_readonly(getattr(self, name)))
        object.__setattr__(self, "default", as_readonly(self.default, dtype=bool))


@dataclass
class SolveResult:
    """Converged (or best-effort) solution of the default model."""

    snapshot: BellmanSnapshot
    policy_index: np.ndarray
    policy_asset: np.ndarray
    iterations: int
    error: float
    errors: np.ndarray
    converged: bool
    a_grid: np.ndarray
    state_names: Tuple[str, ...]
    state_sizes: Tuple[int, ...]
    state_grids: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def index(self) -> StateIndex:
        return StateIndex(self.state_names, self.state_sizes)

    @property
    def default_share(self) -> float:
        """Fraction of (state, debt) pairs in which the government defaults."""
        return float(np.mean(self.snapshot.default))

    def save(self, path) -> Path:
        """Dump all arrays to a ``.npz`` archive and return its path."""
        path = Path(path)
        if path.suffix != ".npz":
            path = path.with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        snap = self.snapshot
        grids = {f"grid_{name}": values for name, values in self.state_grids.items()}
        np.savez(
            path,
            good=snap.good,
            bad=snap.bad,
            combined=snap.combined,
            default=snap.default,
            price=snap.price,
            policy_index=self.policy_index,
            policy_asset=self.policy_asset,
            iterations=np.array(self.iterations),
            error=np.array(self.error),
            errors=self.errors,
            converged=np.array(self.converged),
            a_grid=self.a_grid,
            state_names=np.array(self.state_names),
            state_sizes=np.array(self.state_sizes),
            **grids,
        )
        return path

    @classmethod
    def load(cls, path) -> "SolveResult":
        """Restore a result written by ``save``."""
        with np.load(Path(path)) as data:
            names = tuple(str(n) for n in data["state_names"])
            snapshot = BellmanSnapshot(
                good=data["good"],
                bad=data["bad"],
                combined=data["combined"],
                default=data["default"],
                price=data["price"],
            )
            return cls(
                snapshot=snapshot,
                policy_index=data["policy_index"],
                policy_asset=data["policy_asset"],
                iterations=int(data["iterations"]),
                error=float(data["error"]),
                errors=data["errors"],
                converged=bool(data["converged"]),
                a_grid=data["a_grid"],
                state_names=names,
                state_sizes=tuple(int(n) for n in data["state_sizes"]),
                state_grids={n: data[f"grid_{n}"] for n in names if f"grid_{n}" in data.files},
            )
