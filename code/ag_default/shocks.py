"""Finite Markov chains for the exogenous shocks.

Discretization itself is delegated to ``quantecon``; this module only maps
the model's shock parameters onto its Tauchen routine and packages the
results in the order the solver expects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict

import numpy as np
import quantecon as qe

from .config import AGDefaultConfig, MODES, ShockConfig
from .errors import InvalidConfiguration
from .transitions import as_readonly, validate_transition


@dataclass(frozen=True, eq=False)
class ShockProcess:
    """Grid and row-stochastic transition matrix for one shock."""

    name: str
    grid: np.ndarray
    transition: np.ndarray

    def __post_init__(self):
        P = validate_transition(self.transition, name=self.name)
        grid = np.asarray(self.grid, dtype=float).reshape(-1)
        if grid.shape[0] != P.shape[0]:
            raise InvalidConfiguration(
                f"{self.name}: grid has {grid.shape[0]} points but transition is {P.shape}"
            )
        object.__setattr__(self, "grid", as_readonly(grid))
        object.__setattr__(self, "transition", as_readonly(P))

    @classmethod
    def degenerate(cls, name: str, value: float) -> "ShockProcess":
        """A shock that never moves from ``value``."""
        return cls(name=name, grid=np.array([value]), transition=np.ones((1, 1)))

    @property
    def n(self) -> int:
        return self.grid.shape[0]


def tauchen_process(name: str, cfg: ShockConfig, center: float = 0.0) -> ShockProcess:
    """Tauchen chain for ``y' = rho * y + sigma * eps`` shifted by ``center``."""
    if cfg.n == 1:
        return ShockProcess.degenerate(name, center)
    mc = qe.markov.tauchen(cfg.n, cfg.rho, cfg.sigma, n_std=cfg.span)
    return ShockProcess(name=name, grid=mc.state_values + center, transition=mc.P)


def build_trend_shock(cfg: ShockConfig) -> ShockProcess:
    """Trend growth ``g`` in levels, equally spaced in logs around ``log(mu)``."""
    if cfg.mu <= 0:
        raise InvalidConfiguration("trend mean mu must be strictly positive")
    log_chain = tauchen_process("g", cfg, center=math.log(cfg.mu))
    return ShockProcess(name="g", grid=np.exp(log_chain.grid), transition=log_chain.transition)


def build_transitory_shock(cfg: ShockConfig) -> ShockProcess:
    """Transitory shock ``z`` in logs, centred on ``mu``."""
    return tauchen_process("z", cfg, center=cfg.mu)


def build_long_run_risk(cfg: ShockConfig) -> ShockProcess:
    """Lender long-run growth state ``x``."""
    return tauchen_process("x", cfg, center=cfg.mu)


def build_shocks(config: AGDefaultConfig) -> Dict[str, ShockProcess]:
    """Shock processes for ``config.mode``, fastest-varying dimension first."""
    if config.mode not in MODES:
        raise InvalidConfiguration(f"mode must be one of {MODES}, got {config.mode!r}")

    if config.mode == "permanent":
        z = ShockProcess.degenerate("z", 0.0)
    else:
        z = build_transitory_shock(config.transitory)

    if config.mode == "transitory":
        g = ShockProcess.degenerate("g", config.trend.mu)
    else:
        g = build_trend_shock(config.trend)

    shocks: Dict[str, ShockProcess] = {}
    if config.long_run_risk is not None:
        shocks["x"] = build_long_run_risk(config.long_run_risk)
    shocks["z"] = z
    shocks["g"] = g
    return shocks
