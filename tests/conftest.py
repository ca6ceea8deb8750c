import numpy as np
import pytest

from brdfcov.config import CovarianceConfig
from brdfcov.io_utils import write_sample


@pytest.fixture
def sample_files(tmp_path):
    """Factory writing one BRDF-layout file per vector, returning the paths."""

    def _write(vectors, prefix="brdf"):
        paths = []
        for i, vector in enumerate(vectors):
            path = tmp_path / f"{prefix}_{i}.binary"
            write_sample(path, np.asarray(vector, dtype=np.float64))
            paths.append(path)
        return paths

    return _write


@pytest.fixture
def make_config():
    """Factory for configs with a small mocked dimension (one channel)."""

    def _make(dimension=4, **kwargs):
        return CovarianceConfig(per_channel_elements=dimension, num_color_channels=1, **kwargs)

    return _make
