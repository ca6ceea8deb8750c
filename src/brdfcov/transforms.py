"""
Per-vector transform pipeline.

Turns a raw BRDF sample into the form used for the covariance: an optional
sign-preserving natural log and an optional mean subtraction, applied in the
configured order.
"""

import logging
from enum import Enum

import numpy as np

from .config import CovarianceConfig
from .exceptions import ConfigurationError, NumericalInvalidityError
from .vector_ops import SMALL_VALUE, NumpyVectorOps, VectorOps

logger = logging.getLogger(__name__)


class TransformStep(Enum):
    """Steps a sample vector can go through."""

    LOG = "log"
    SUBTRACT_MEAN = "subtract_mean"


def signed_log(vector: np.ndarray, ops: VectorOps | None = None) -> np.ndarray:
    """
    Sign-preserving natural log, applied in place.

    For each element x: |x| < 1e-10 becomes 0, x > 0 becomes ln(x) and
    x < 0 becomes -ln(-x). Slightly negative measurements (noise) stay in
    the domain and the transform is continuous around zero.

    Args:
        vector: float64 array, modified in place
        ops: Backend providing the kernel (numpy if omitted)

    Returns:
        The same array, for chaining

    Raises:
        NumericalInvalidityError: If a floating point error is raised during the pass.
            Only numpy ufuncs honour errstate; the numba kernel never raises here
            and relies on the NaN check of the caller instead.
    """
    ops = ops or NumpyVectorOps()
    try:
        with np.errstate(divide="raise", invalid="raise", over="raise"):
            ops.signed_log(vector)
    except FloatingPointError as e:
        raise NumericalInvalidityError(f"Floating point error in log transform: {e}") from e
    return vector


def build_steps(config: CovarianceConfig) -> list[TransformStep]:
    """Ordered transform steps for a configuration."""
    steps = []
    if config.whiten_data and config.whiten_before_log:
        steps.append(TransformStep.SUBTRACT_MEAN)
    if config.take_log:
        steps.append(TransformStep.LOG)
    if config.whiten_data and not config.whiten_before_log:
        steps.append(TransformStep.SUBTRACT_MEAN)
    return steps


class TransformPipeline:
    """
    Applies the configured transform steps to one vector at a time.

    The pipeline is a pure function of its input, so a vector transformed
    twice gives bit-identical results.
    """

    def __init__(
        self,
        config: CovarianceConfig,
        ops: VectorOps | None = None,
        mean: np.ndarray | None = None,
    ):
        self.config = config
        self.ops = ops or NumpyVectorOps()
        self.steps = build_steps(config)

        if TransformStep.SUBTRACT_MEAN in self.steps:
            if mean is None:
                raise ConfigurationError("whiten_data is enabled but no mean vector was given")
            if mean.shape != (config.dimension,):
                raise ConfigurationError(
                    f"Mean vector has shape {mean.shape}, expected ({config.dimension},)"
                )
        self.mean = mean

    def apply(self, vector: np.ndarray) -> np.ndarray:
        """
        Transform a vector in place.

        Args:
            vector: Raw sample, float64 of length config.dimension

        Returns:
            The same array, transformed

        Raises:
            NumericalInvalidityError: If the result contains a NaN
        """
        for step in self.steps:
            if step is TransformStep.SUBTRACT_MEAN:
                self.ops.sub(vector, self.mean)
            elif step is TransformStep.LOG:
                signed_log(vector, self.ops)

        if self.ops.has_nan(vector):
            raise NumericalInvalidityError("Transformed sample vector contains NaN")
        return vector

    def describe(self) -> str:
        if not self.steps:
            return "identity"
        return " -> ".join(step.value for step in self.steps)

    def __repr__(self):
        return f"TransformPipeline({self.describe()})"


__all__ = [
    "SMALL_VALUE",
    "TransformStep",
    "TransformPipeline",
    "build_steps",
    "signed_log",
]
