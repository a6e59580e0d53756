"""Exceptions and warnings raised by the sovereign default solver."""


class InvalidConfiguration(ValueError):
    """The calibration or solver settings cannot be used."""


class InvalidTransitionMatrix(ValueError):
    """A shock transition matrix is not a stochastic matrix."""


class CalibrationError(RuntimeError):
    """Some state has no debt choice with positive consumption."""


class NonConvergence(RuntimeWarning):
    """The iteration budget ran out before the tolerance was reached."""
