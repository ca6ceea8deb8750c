"""
Elementary operations over fixed-length float64 vectors.

Every backend implements the same contract:

- dot(a, b): plain inner product, never rescaled by 1/N
- add(a, b): a += b, in place
- sub(a, b): a -= b, in place
- scale(a, c): a *= c, in place

Backends:
- NumpyVectorOps: numpy ufuncs (default)
- BlasVectorOps: scipy.linalg.blas ddot/daxpy/dscal
- ReferenceVectorOps: literal elementwise loops compiled with numba
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from .config import BackendType
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Values with a smaller magnitude are clamped to zero by the signed log.
SMALL_VALUE = 1e-10


class VectorOps(ABC):
    """Abstract base class for vector operation backends."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        """Inner product of a and b."""

    @abstractmethod
    def add(self, a: np.ndarray, b: np.ndarray) -> None:
        """Perform a += b."""

    @abstractmethod
    def sub(self, a: np.ndarray, b: np.ndarray) -> None:
        """Perform a -= b."""

    @abstractmethod
    def scale(self, a: np.ndarray, c: float) -> None:
        """Perform a *= c."""

    def signed_log(self, a: np.ndarray) -> None:
        """
        In-place sign-preserving natural log.

        |x| < SMALL_VALUE -> 0, x > 0 -> ln(x), x < 0 -> -ln(-x).
        Only boolean masks are allocated, never a second float buffer.
        """
        near_zero = np.abs(a) < SMALL_VALUE
        negative = a < 0.0
        np.abs(a, out=a)
        a[near_zero] = 1.0
        np.log(a, out=a)
        np.negative(a, out=a, where=negative)
        a[near_zero] = 0.0

    def has_nan(self, a: np.ndarray) -> bool:
        return bool(np.isnan(a).any())

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class NumpyVectorOps(VectorOps):
    """numpy backed operations."""

    def __init__(self):
        super().__init__("numpy")

    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.dot(a, b))

    def add(self, a: np.ndarray, b: np.ndarray) -> None:
        np.add(a, b, out=a)

    def sub(self, a: np.ndarray, b: np.ndarray) -> None:
        np.subtract(a, b, out=a)

    def scale(self, a: np.ndarray, c: float) -> None:
        np.multiply(a, c, out=a)


class BlasVectorOps(VectorOps):
    """Level 1 BLAS calls through scipy."""

    def __init__(self):
        super().__init__("blas")
        from scipy.linalg import blas

        self._blas = blas

    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self._blas.ddot(a, b))

    def add(self, a: np.ndarray, b: np.ndarray) -> None:
        self._axpy(a, b, 1.0)

    def sub(self, a: np.ndarray, b: np.ndarray) -> None:
        self._axpy(a, b, -1.0)

    def scale(self, a: np.ndarray, c: float) -> None:
        result = self._blas.dscal(c, a)
        if result is not a:
            a[:] = result

    def _axpy(self, a: np.ndarray, b: np.ndarray, alpha: float) -> None:
        # daxpy computes y + alpha * x and overwrites y when it is a contiguous float64 array
        result = self._blas.daxpy(b, a, a=alpha)
        if result is not a:
            a[:] = result


class ReferenceVectorOps(VectorOps):
    """Elementwise loops compiled with numba."""

    def __init__(self):
        super().__init__("reference")
        from . import numba_utils

        self._kernels = numba_utils

    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self._kernels.dot_kernel(a, b))

    def add(self, a: np.ndarray, b: np.ndarray) -> None:
        self._kernels.add_kernel(a, b)

    def sub(self, a: np.ndarray, b: np.ndarray) -> None:
        self._kernels.sub_kernel(a, b)

    def scale(self, a: np.ndarray, c: float) -> None:
        self._kernels.scale_kernel(a, float(c))

    def signed_log(self, a: np.ndarray) -> None:
        self._kernels.signed_log_kernel(a, SMALL_VALUE)

    def has_nan(self, a: np.ndarray) -> bool:
        return bool(self._kernels.has_nan_kernel(a))


class CountingVectorOps(VectorOps):
    """
    Wraps another backend and counts dot product evaluations.

    Used to check that a run performs exactly N(N+1)/2 dot products.
    """

    def __init__(self, inner: VectorOps):
        super().__init__(f"counting[{inner.name}]")
        self.inner = inner
        self.dot_count = 0

    def dot(self, a: np.ndarray, b: np.ndarray) -> float:
        self.dot_count += 1
        return self.inner.dot(a, b)

    def add(self, a: np.ndarray, b: np.ndarray) -> None:
        self.inner.add(a, b)

    def sub(self, a: np.ndarray, b: np.ndarray) -> None:
        self.inner.sub(a, b)

    def scale(self, a: np.ndarray, c: float) -> None:
        self.inner.scale(a, c)

    def signed_log(self, a: np.ndarray) -> None:
        self.inner.signed_log(a)

    def has_nan(self, a: np.ndarray) -> bool:
        return self.inner.has_nan(a)


class VectorOpsFactory:
    """Factory class for creating VectorOps backends."""

    _backends = {
        BackendType.NUMPY: NumpyVectorOps,
        BackendType.BLAS: BlasVectorOps,
        BackendType.REFERENCE: ReferenceVectorOps,
    }

    @classmethod
    def create(cls, backend: BackendType | str) -> VectorOps:
        """Create a backend instance by type or name."""
        if not isinstance(backend, BackendType):
            try:
                backend = BackendType(str(backend).lower())
            except ValueError:
                raise ConfigurationError(f"Unknown vector backend: {backend}") from None

        ops = cls._backends[backend]()
        logger.debug(f"Using vector backend: {ops.name}")
        return ops

    @classmethod
    def get_available_backends(cls) -> list[BackendType]:
        """Get list of available backend types."""
        return list(cls._backends.keys())
