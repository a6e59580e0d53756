"""Configuration dataclasses for the Aguiar-Gopinath sovereign default model.

The configuration is split into small pieces so economic parameters, shock
processes, the debt grid, and solver controls stay explicit.
"""

from dataclasses import dataclass, field
from typing import Optional


MODES = ("permanent", "transitory", "complete")


@dataclass
class ModelConfig:
    """Economic parameters of the borrowing government."""

    gamma: float = 2.0
    beta: float = 0.8
    r: float = 0.01
    # Share of output lost while in autarky.
    delta: float = 0.02
    # Probability of regaining market access each period.
    lam: float = 0.1


@dataclass
class ShockConfig:
    """AR(1) parameters and grid size for one exogenous shock."""

    n: int = 25
    mu: float = 0.0
    rho: float = 0.9
    sigma: float = 0.034
    # Number of unconditional standard deviations covered by the grid.
    span: float = 2.5


def default_trend_shock() -> ShockConfig:
    """Trend shock ``g``; ``mu`` is the mean growth factor in levels."""
    return ShockConfig(n=25, mu=1.006, rho=0.17, sigma=0.03, span=4.1458)


def default_transitory_shock() -> ShockConfig:
    """Transitory shock ``z``; ``mu`` is the mean in logs."""
    return ShockConfig(n=25, mu=-0.5 * 0.034 ** 2, rho=0.9, sigma=0.034, span=2.5)


def default_long_run_risk() -> ShockConfig:
    """Lender long-run growth state ``x`` (quarterly AG06 units)."""
    return ShockConfig(n=30, mu=0.0, rho=0.979, sigma=0.0079 * 4 * 0.044, span=3.0)


@dataclass
class DebtGridConfig:
    """Equally spaced asset grid; negative values are debt owed."""

    n: int = 400
    a_min: float = -0.22
    a_max: float = 0.0


@dataclass
class SolverConfig:
    """Numerical controls for the value-function iteration."""

    tol: float = 1e-6
    max_iter: int = 10000
    # Debt choices within tie_tol of the best one count as ties.
    tie_tol: float = 1e-12
    n_workers: int = 1
    report_every: int = 20


@dataclass
class AGDefaultConfig:
    """Top-level model configuration."""

    mode: str = "permanent"
    trend: ShockConfig = field(default_factory=default_trend_shock)
    transitory: ShockConfig = field(default_factory=default_transitory_shock)
    long_run_risk: Optional[ShockConfig] = None
    debt: DebtGridConfig = field(default_factory=DebtGridConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
