"""Composite exogenous state index and joint Markov transition.

States are enumerated with the *first* listed dimension varying fastest, so
for dimensions ``("z", "g")`` the flat index is ``iz + n_z * ig``.  Value
functions, default indicators, and bond prices all use this ordering along
their first axis.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Sequence, Tuple

import numpy as np

from .errors import InvalidConfiguration, InvalidTransitionMatrix


STOCHASTIC_ATOL = 1e-8


def as_readonly(values, dtype=float) -> np.ndarray:
    """Return a private, non-writeable copy of ``values``."""
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


def validate_transition(matrix, name: str = "transition", atol: float = STOCHASTIC_ATOL) -> np.ndarray:
    """Check that ``matrix`` is row-stochastic and return it as a float array.

    Row ``i`` holds the distribution of next period's state given state ``i``.
    """
    P = np.asarray(matrix, dtype=float)
    if P.ndim != 2 or P.shape[0] != P.shape[1] or P.shape[0] == 0:
        raise InvalidTransitionMatrix(f"{name}: expected a non-empty square matrix, got shape {P.shape}")
    if not np.all(np.isfinite(P)):
        raise InvalidTransitionMatrix(f"{name}: entries must be finite")
    if np.any(P < 0.0):
        raise InvalidTransitionMatrix(f"{name}: entries must be non-negative (min={P.min():.3e})")

    row_sums = P.sum(axis=1)
    worst = float(np.max(np.abs(row_sums - 1.0)))
    if worst > atol:
        raise InvalidTransitionMatrix(
            f"{name}: rows must sum to 1 within {atol:.0e} (max deviation {worst:.3e})"
        )
    return P


class StateIndex:
    """Bijection between exogenous-state tuples and flat indices."""

    def __init__(self, names: Sequence[str], sizes: Sequence[int]):
        names = tuple(names)
        sizes = tuple(int(n) for n in sizes)
        if len(names) != len(sizes) or not names:
            raise InvalidConfiguration("StateIndex needs one size per dimension name")
        if len(set(names)) != len(names):
            raise InvalidConfiguration(f"duplicate state dimension names: {names}")
        if any(n < 1 for n in sizes):
            raise InvalidConfiguration(f"state dimension sizes must be >= 1, got {sizes}")

        self.names: Tuple[str, ...] = names
        self.sizes: Tuple[int, ...] = sizes
        self.n_states = int(np.prod(sizes))

        # Column d holds the index along dimension d of every flat state.
        grid = np.unravel_index(np.arange(self.n_states), sizes, order="F")
        self._components = np.stack(grid, axis=1)
        self._components.setflags(write=False)

    def __repr__(self) -> str:
        dims = ", ".join(f"{name}={size}" for name, size in zip(self.names, self.sizes))
        return f"StateIndex({dims})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateIndex):
            return NotImplemented
        return self.names == other.names and self.sizes == other.sizes

    def __hash__(self) -> int:
        return hash((self.names, self.sizes))

    def _axis(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"unknown state dimension {name!r}; have {self.names}") from None

    def flat(self, *idx: int) -> int:
        """Flat index of the state with per-dimension indices ``idx``."""
        if len(idx) != len(self.sizes):
            raise ValueError(f"expected {len(self.sizes)} indices, got {len(idx)}")
        return int(np.ravel_multi_index(idx, self.sizes, order="F"))

    def unflat(self, k: int) -> Tuple[int, ...]:
        """Per-dimension indices of flat state ``k``."""
        return tuple(int(i) for i in self._components[k])

    def component(self, name: str) -> np.ndarray:
        """Index along dimension ``name`` for every flat state."""
        return self._components[:, self._axis(name)]

    def values(self, name: str, grid) -> np.ndarray:
        """Grid value of dimension ``name`` for every flat state."""
        grid = np.asarray(grid, dtype=float)
        if grid.shape != (self.sizes[self._axis(name)],):
            raise ValueError(f"grid for {name!r} has shape {grid.shape}")
        return grid[self.component(name)]

    def expand(self, table, name: str) -> np.ndarray:
        """Lift a table defined on one dimension to the composite state.

        A 1-D table ``t[i]`` becomes ``T[s] = t[i(s)]``; a 2-D table
        ``t[i, j]`` becomes ``T[s, s'] = t[i(s), i(s')]``.
        """
        table = np.asarray(table, dtype=float)
        n = self.sizes[self._axis(name)]
        idx = self.component(name)
        if table.shape == (n,):
            return table[idx]
        if table.shape == (n, n):
            return table[np.ix_(idx, idx)]
        raise ValueError(f"table for {name!r} must have shape ({n},) or ({n}, {n}), got {table.shape}")


@dataclass(frozen=True, eq=False)
class JointTransition:
    """Transition over the composite exogenous state (independent shocks)."""

    index: StateIndex
    matrix: np.ndarray

    @classmethod
    def compose(cls, processes) -> "JointTransition":
        """Combine per-shock processes, listed fastest-varying first."""
        processes = list(processes)
        if not processes:
            raise InvalidConfiguration("at least one shock process is required")

        matrices = [validate_transition(p.transition, name=p.name) for p in processes]
        index = StateIndex([p.name for p in processes], [P.shape[0] for P in matrices])

        # kron(B, A) enumerates A fastest, so fold later dimensions on the left.
        joint = reduce(lambda acc, P: np.kron(P, acc), matrices[1:], matrices[0])
        return cls(index=index, matrix=as_readonly(joint))

    @property
    def n_states(self) -> int:
        return self.index.n_states

    def expectation(self, values: np.ndarray) -> np.ndarray:
        """E[values(s', ...) | s] for every current state ``s``."""
        return self.matrix @ values
