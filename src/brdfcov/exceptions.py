"""
Error types raised while building a BRDF covariance matrix.

Configuration and I/O problems are detected locally and reported with a
diagnostic. Numerical invalidity means the matrix can no longer be trusted
and is never recovered from.
"""


class CovarianceError(Exception):
    """Base class for all brdfcov errors."""


class ConfigurationError(CovarianceError, ValueError):
    """Raised for malformed or inconsistent configuration values."""


class SampleReadError(CovarianceError, OSError):
    """Raised when a sample file cannot be opened or is shorter than expected."""

    def __init__(self, path, message: str):
        self.path = str(path)
        super().__init__(f'{message}: "{self.path}"')


class NumericalInvalidityError(CovarianceError, ArithmeticError):
    """Raised when a NaN (or a floating point fault) reaches a buffer or matrix entry."""
