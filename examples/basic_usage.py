"""
Basic usage examples for brdfcov.

Builds a small synthetic BRDF dataset on disk and computes its covariance
matrix with a few different settings.
"""

import tempfile
from pathlib import Path

import numpy as np

from brdfcov import (
    CountingVectorOps,
    CovarianceEngine,
    compute_covariance_matrix,
    create_covariance_config,
    write_sample,
)
from brdfcov.vector_ops import NumpyVectorOps

# A real BRDF has 90 * 90 * 180 values per channel; keep the example small.
PER_CHANNEL_ELEMENTS = 1000


def create_dataset(folder: Path, n_brdfs: int = 6) -> list[Path]:
    """Write n_brdfs synthetic reflectance vectors with a little negative noise."""
    rng = np.random.default_rng(0)
    base = rng.uniform(0.05, 2.0, size=PER_CHANNEL_ELEMENTS * 3)
    paths = []
    for i in range(n_brdfs):
        brdf = base * rng.uniform(0.5, 1.5) + rng.normal(0.0, 0.01, size=base.shape)
        paths.append(write_sample(folder / f"material_{i:02d}.binary", brdf))
    return paths


def example_default_settings(paths):
    """Log on, whitening before the log, unscaled covariances."""
    print("=== Default settings ===")
    result = compute_covariance_matrix(paths, per_channel_elements=PER_CHANNEL_ELEMENTS)
    print(f"Matrix shape: {result.matrix.shape}")
    print(f"Symmetric: {result.matrix.is_symmetric()}")
    print(result.to_array().round(3))
    return result


def example_scaled_log_then_whiten(paths):
    """Subtract the mean of the log values and scale by 1/dimension."""
    print("\n=== Log, then whiten, scaled ===")
    result = compute_covariance_matrix(
        paths,
        per_channel_elements=PER_CHANNEL_ELEMENTS,
        whiten_before_log=False,
        scale_covariances=True,
    )
    print(result.to_array().round(5))
    return result


def example_count_dot_products(paths):
    """Instrument the engine to show it does N(N+1)/2 dot products."""
    print("\n=== Dot product count ===")
    config = create_covariance_config(per_channel_elements=PER_CHANNEL_ELEMENTS)
    ops = CountingVectorOps(NumpyVectorOps())
    CovarianceEngine(config, ops=ops).compute(paths)
    n = len(paths)
    print(f"{n} BRDFs -> {ops.dot_count} dot products (expected {n * (n + 1) // 2})")


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        folder = Path(tmp)
        paths = create_dataset(folder)

        result = example_default_settings(paths)
        example_scaled_log_then_whiten(paths)
        example_count_dot_products(paths)

        out = result.save(folder / "covariance.txt")
        print(f"\nSaved: {out.name}")
