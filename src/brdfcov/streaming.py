"""
Mean BRDF computed in a single pass over the samples.
"""

import logging

import numpy as np

from .config import CovarianceConfig
from .exceptions import NumericalInvalidityError
from .io_utils import SampleReader
from .transforms import signed_log
from .vector_ops import NumpyVectorOps, VectorOps

logger = logging.getLogger(__name__)


class MeanAccumulator:
    """
    Accumulates a running sum of vectors and turns it into the mean.

    Memory use is one vector of length `dimension`, independent of how many
    samples are added.
    """

    def __init__(self, dimension: int, ops: VectorOps | None = None):
        self.dimension = dimension
        self.ops = ops or NumpyVectorOps()
        self.count = 0
        self.sum_x = np.zeros(dimension, dtype=np.float64)
        self._mean = None

    def update(self, vector: np.ndarray):
        """
        Add one sample to the running sum.

        Args:
            vector: float64 array of length dimension
        """
        if self._mean is not None:
            raise RuntimeError("MeanAccumulator is already finalized")
        self.ops.add(self.sum_x, vector)
        self.count += 1

    def finalize(self) -> np.ndarray:
        """
        Scale the sum by 1/count and freeze it.

        Returns:
            Read-only mean vector
        """
        if self._mean is not None:
            return self._mean
        if self.count == 0:
            raise ValueError("Cannot compute the mean of zero samples")

        self.ops.scale(self.sum_x, 1.0 / float(self.count))
        if self.ops.has_nan(self.sum_x):
            raise NumericalInvalidityError("Mean vector contains NaN")

        self.sum_x.flags.writeable = False
        self._mean = self.sum_x
        return self._mean


def compute_mean_vector(
    paths,
    config: CovarianceConfig,
    reader: SampleReader | None = None,
    ops: VectorOps | None = None,
) -> np.ndarray | None:
    """
    Mean of all samples, in the domain it will be subtracted in.

    When whiten_before_log is False the mean is subtracted from log values,
    so each sample is log transformed before it is accumulated. Otherwise
    raw values are accumulated.

    Args:
        paths: Sample files
        config: Run configuration
        reader: Sample reader (built from config if omitted)
        ops: Vector backend

    Returns:
        Frozen mean vector, or None when whitening is disabled
    """
    if not config.whiten_data:
        logger.info("Skipped data whitening (aka mean BRDF subtraction).")
        return None

    ops = ops or NumpyVectorOps()
    reader = reader or SampleReader(config.dimension, config.header_size_bytes)
    log_first = config.take_log and not config.whiten_before_log

    logger.info("Computing average BRDF for whitening...")
    accumulator = MeanAccumulator(config.dimension, ops)
    buffer = reader.allocate()
    for path in paths:
        reader.read(path, out=buffer)
        if log_first:
            signed_log(buffer, ops)
        accumulator.update(buffer)

    mean = accumulator.finalize()
    logger.info("Done computing average BRDF.")
    return mean
