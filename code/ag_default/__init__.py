"""Aguiar-Gopinath sovereign default model solved by value-function iteration."""

from .config import (
    AGDefaultConfig,
    DebtGridConfig,
    ModelConfig,
    ShockConfig,
    SolverConfig,
    default_long_run_risk,
    default_transitory_shock,
    default_trend_shock,
)
from .errors import CalibrationError, InvalidConfiguration, InvalidTransitionMatrix, NonConvergence
from .model import AGDefaultModel, crra
from .policy import best_response, extract_policy
from .pricing import PricingKernel
from .results import BellmanSnapshot, SolveResult
from .shocks import ShockProcess, build_shocks
from .transitions import JointTransition, StateIndex, validate_transition

__all__ = [
    "AGDefaultConfig",
    "AGDefaultModel",
    "BellmanSnapshot",
    "CalibrationError",
    "DebtGridConfig",
    "InvalidConfiguration",
    "InvalidTransitionMatrix",
    "JointTransition",
    "ModelConfig",
    "NonConvergence",
    "PricingKernel",
    "ShockConfig",
    "ShockProcess",
    "SolveResult",
    "SolverConfig",
    "StateIndex",
    "best_response",
    "build_shocks",
    "crra",
    "default_long_run_risk",
    "default_transitory_shock",
    "default_trend_shock",
    "extract_policy",
    "validate_transition",
]
