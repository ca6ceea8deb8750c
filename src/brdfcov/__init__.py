"""
brdfcov - Out-of-core covariance matrices for measured BRDF datasets

Each BRDF is one very long vector stored in its own file. The covariance
matrix of N such vectors is built by streaming them from disk, so memory
use stays at a few vectors no matter how large N gets. The matrix is the
input to a PCA eigen-analysis.
"""

__version__ = "0.1.0"

from .config import NUMEL_1_BRDF_CHANNEL as NUMEL_1_BRDF_CHANNEL
from .config import BackendType as BackendType
from .config import CacheMode as CacheMode
from .config import CovarianceConfig as CovarianceConfig
from .config import create_covariance_config as create_covariance_config

from .engine import CovarianceEngine as CovarianceEngine
from .engine import CovarianceResult as CovarianceResult
from .engine import ProgressReporter as ProgressReporter
from .engine import compute_covariance_matrix as compute_covariance_matrix

from .exceptions import ConfigurationError as ConfigurationError
from .exceptions import CovarianceError as CovarianceError
from .exceptions import NumericalInvalidityError as NumericalInvalidityError
from .exceptions import SampleReadError as SampleReadError

from .io_utils import SampleReader as SampleReader
from .io_utils import read_header as read_header
from .io_utils import write_sample as write_sample

from .matrix import CovarianceMatrix as CovarianceMatrix

from .streaming import MeanAccumulator as MeanAccumulator
from .streaming import compute_mean_vector as compute_mean_vector

from .transforms import TransformPipeline as TransformPipeline
from .transforms import TransformStep as TransformStep
from .transforms import signed_log as signed_log

from .vector_ops import CountingVectorOps as CountingVectorOps
from .vector_ops import VectorOps as VectorOps
from .vector_ops import VectorOpsFactory as VectorOpsFactory

from .writer import read_covariance_matrix as read_covariance_matrix
from .writer import write_covariance_matrix as write_covariance_matrix


def get_available_backends():
    """Returns a list of available vector backend names."""
    return [backend.value for backend in VectorOpsFactory.get_available_backends()]


__all__ = [
    # Configuration
    "NUMEL_1_BRDF_CHANNEL",
    "BackendType",
    "CacheMode",
    "CovarianceConfig",
    "create_covariance_config",
    # Engine
    "CovarianceEngine",
    "CovarianceResult",
    "ProgressReporter",
    "compute_covariance_matrix",
    # Errors
    "CovarianceError",
    "ConfigurationError",
    "SampleReadError",
    "NumericalInvalidityError",
    # Building blocks
    "SampleReader",
    "read_header",
    "write_sample",
    "CovarianceMatrix",
    "MeanAccumulator",
    "compute_mean_vector",
    "TransformPipeline",
    "TransformStep",
    "signed_log",
    "VectorOps",
    "VectorOpsFactory",
    "CountingVectorOps",
    "get_available_backends",
    # Output
    "write_covariance_matrix",
    "read_covariance_matrix",
]
