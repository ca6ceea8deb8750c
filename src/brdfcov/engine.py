"""
Out-of-core covariance engine.

Builds the N x N matrix M[r][c] = dot(T(v_r), T(v_c)) over N sample files,
where T is the configured transform pipeline. Samples are too large to keep
resident, so they are re-read from disk whenever they are needed:

    for r in 0..N-1:
        read + transform v_r into the row buffer
        for c in 0..r:
            read + transform v_c into the column buffer
            M[r][c] = M[c][r] = dot(row, column)

That is exactly N(N+1)/2 dot products with at most three vectors (mean,
row, column) in memory. The matrix is symmetric because the dot product is
commutative, so each unique entry is computed once and stored twice.

Re-reading costs O(N^2) reads for O(N) distinct vectors. If the transformed
vectors fit in RAM the engine can cache them instead (CacheMode.ALWAYS or
CacheMode.AUTO); results are identical since the transform is pure.
"""

import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np

from .config import CacheMode, CovarianceConfig, create_covariance_config
from .exceptions import ConfigurationError, NumericalInvalidityError
from .io_utils import SampleReader, check_sample_files, fits_in_memory
from .matrix import CovarianceMatrix
from .streaming import compute_mean_vector
from .transforms import TransformPipeline
from .vector_ops import VectorOps, VectorOpsFactory

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int, float], None]


class ProgressReporter:
    """
    Reports completion of the triangular loop in coarse steps.

    A status is emitted whenever the completed percentage has advanced by
    at least `step` points since the previous one, always at 0%. Reported
    percentages never decrease and stay within 0..100.
    """

    REQ_PERC_JUMP_FOR_UPDATE = 5

    def __init__(
        self,
        total: int,
        step: int = REQ_PERC_JUMP_FOR_UPDATE,
        callback: ProgressCallback | None = None,
    ):
        self.total = total
        self.step = step
        self.callback = callback
        self.count = 0
        self.prev_percent = -step * 2
        self.emitted: list[int] = []

    def update(self, row: int, col: int, value: float):
        """Record one finished dot product."""
        percent = int(100.0 * self.count / self.total)
        if percent >= self.prev_percent + self.step:
            self._emit(percent, row, col, value)
        self.count += 1

    def finish(self, row: int, col: int, value: float):
        if not self.emitted or self.emitted[-1] != 100:
            self._emit(100, row, col, value)

    def _emit(self, percent: int, row: int, col: int, value: float):
        logger.info(f"The computation is: {percent} percent complete.")
        logger.debug(f"Most recent covariance entry: cov({row}, {col}) = {value}")
        self.prev_percent = percent
        self.emitted.append(percent)
        if self.callback is not None:
            self.callback(percent, row, col, value)


class CovarianceResult:
    """Result container for a covariance run."""

    def __init__(
        self,
        matrix: CovarianceMatrix,
        mean: np.ndarray | None,
        config: CovarianceConfig,
        paths: list[Path],
        dot_products: int,
        cached: bool,
    ):
        self.matrix = matrix
        self.mean = mean
        self.config = config
        self.paths = paths
        self.dot_products = dot_products
        self.cached = cached

    @property
    def num_samples(self) -> int:
        return self.matrix.num_rows

    def to_array(self) -> np.ndarray:
        return self.matrix.to_array()

    def save(self, filepath, **kwargs):
        """Write the matrix as a plain-text grid."""
        from .writer import write_covariance_matrix

        return write_covariance_matrix(self.matrix, filepath, **kwargs)

    def __repr__(self):
        return f"CovarianceResult({self.num_samples}x{self.num_samples}, dots={self.dot_products})"


class CovarianceEngine:
    """
    Fills a CovarianceMatrix from sample files with the triangular loop.

    Args:
        config: Run configuration (defaults if omitted)
        reader: Sample reader (built from config if omitted)
        ops: Vector backend (built from config.backend if omitted)
        progress_callback: Called as (percent, row, col, value) on each status update
    """

    def __init__(
        self,
        config: CovarianceConfig | None = None,
        reader: SampleReader | None = None,
        ops: VectorOps | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.config = config or CovarianceConfig()
        self.ops = ops or VectorOpsFactory.create(self.config.backend)
        self.reader = reader or SampleReader(self.config.dimension, self.config.header_size_bytes)
        self.progress_callback = progress_callback

        if self.reader.dimension != self.config.dimension:
            raise ConfigurationError(
                f"Reader dimension {self.reader.dimension} does not match "
                f"configured dimension {self.config.dimension}"
            )

    def compute(self, paths) -> CovarianceResult:
        """
        Compute the covariance matrix of the given samples.

        Args:
            paths: Sample files, one row/column of the matrix each, in order

        Returns:
            CovarianceResult holding the filled matrix

        Raises:
            ConfigurationError: If no samples are given
            SampleReadError: If a sample is missing or truncated
            NumericalInvalidityError: If a NaN shows up anywhere
        """
        paths = list(paths)
        if not paths:
            raise ConfigurationError("At least one input sample is required")

        config = self.config
        paths = check_sample_files(paths, config.dimension, config.header_size_bytes)
        num_rows = len(paths)
        logger.info(f"Each BRDF is being considered as a vector from R^{config.dimension}")

        mean = compute_mean_vector(paths, config, self.reader, self.ops)
        pipeline = TransformPipeline(config, self.ops, mean)
        logger.debug(f"Transform pipeline: {pipeline.describe()}")

        matrix = CovarianceMatrix(num_rows)
        total = (num_rows * (num_rows + 1)) // 2
        progress = ProgressReporter(total, callback=self.progress_callback)

        cached = self._should_cache(num_rows)
        logger.info("Computing covariance matrix entries...")
        if cached:
            last = self._fill_cached(paths, pipeline, matrix, progress)
        else:
            last = self._fill_streaming(paths, pipeline, matrix, progress)
        progress.finish(*last)

        if progress.count != total:
            raise RuntimeError(f"Computed {progress.count} covariance entries, expected {total}")
        logger.info("Done computing covariance matrix.")

        return CovarianceResult(
            matrix=matrix,
            mean=mean,
            config=config,
            paths=paths,
            dot_products=progress.count,
            cached=cached,
        )

    def _should_cache(self, num_rows: int) -> bool:
        mode = self.config.cache_vectors
        if mode is CacheMode.ALWAYS:
            return True
        if mode is CacheMode.AUTO:
            return fits_in_memory(num_rows, self.config.dimension)
        return False

    def _load(self, path: Path, buffer: np.ndarray, pipeline: TransformPipeline) -> np.ndarray:
        self.reader.read(path, out=buffer)
        return pipeline.apply(buffer)

    def _fill_streaming(self, paths, pipeline, matrix, progress):
        row_buf = self.reader.allocate()
        col_buf = self.reader.allocate()
        last = (0, 0, 0.0)

        for r in range(len(paths)):
            self._load(paths[r], row_buf, pipeline)
            for c in range(r + 1):
                self._load(paths[c], col_buf, pipeline)
                value = self._store(matrix, r, c, self.ops.dot(row_buf, col_buf))
                progress.update(r, c, value)
                last = (r, c, value)
        return last

    def _fill_cached(self, paths, pipeline, matrix, progress):
        logger.info(f"Caching {len(paths)} transformed BRDFs in memory")
        vectors = [self._load(path, self.reader.allocate(), pipeline) for path in paths]
        last = (0, 0, 0.0)

        for r in range(len(vectors)):
            for c in range(r + 1):
                value = self._store(matrix, r, c, self.ops.dot(vectors[r], vectors[c]))
                progress.update(r, c, value)
                last = (r, c, value)
        return last

    def _store(self, matrix: CovarianceMatrix, r: int, c: int, value: float) -> float:
        if self.config.scale_covariances:
            value /= float(self.config.dimension)
        if np.isnan(value):
            raise NumericalInvalidityError(f"cov({r}, {c}) is NaN")
        matrix.set_symmetric(r, c, value)
        return value


def compute_covariance_matrix(
    paths,
    config: CovarianceConfig | None = None,
    progress_callback: ProgressCallback | None = None,
    **kwargs,
) -> CovarianceResult:
    """
    Convenience wrapper: build the engine and run it.

    Args:
        paths: Sample files
        config: Run configuration; if omitted it is built from kwargs
        progress_callback: Optional status callback
        **kwargs: CovarianceConfig fields used when config is None

    Returns:
        CovarianceResult
    """
    if config is None:
        config = create_covariance_config(**kwargs)
    elif kwargs:
        raise ConfigurationError("Pass either a config or keyword options, not both")

    engine = CovarianceEngine(config, progress_callback=progress_callback)
    return engine.compute(paths)
