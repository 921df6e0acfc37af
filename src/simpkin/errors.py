"""Exceptions raised by SimpKin."""


class SimpKinError(Exception):
    """Base class for kinetics evaluation errors."""


class NumericalError(SimpKinError, ArithmeticError):
    """A rate constant, rate of progress or reduced pressure is not finite."""

    def __init__(self, vector: str, index: int, where: str | None = None) -> None:
        self.vector = vector
        self.index = index
        message = f"{vector}[{index}] is not finite."
        if where:
            message = f"{where}: {message}"
        super().__init__(message)


class ConfigurationError(SimpKinError, ValueError):
    """Invalid reaction definition or option passed at install time."""


class LegacyRateError(SimpKinError):
    """Derivatives requested for reactions installed through the legacy path."""
