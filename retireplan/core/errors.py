# retireplan/core/errors.py
"""Exceptions and warnings raised by the projection engine."""


class InvalidInputError(ValueError):
    """Malformed or out-of-range argument (negative income, bad state rate, ...)."""


class ConfigurationError(ValueError):
    """A scenario asks for a configuration the engine cannot run."""


class ConvergenceWarning(UserWarning):
    """The gross-up solver ran out of iterations before closing its interval."""


class SimulationCancelled(RuntimeError):
    """The caller abandoned a running simulation."""
