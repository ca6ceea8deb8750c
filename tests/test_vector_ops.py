import numpy as np
import pytest

from brdfcov.config import BackendType
from brdfcov.exceptions import ConfigurationError
from brdfcov.vector_ops import CountingVectorOps, NumpyVectorOps, VectorOpsFactory


def _backends():
    """Backends whose optional imports are installed."""
    names = ["numpy"]
    for name, module in (("blas", "scipy"), ("reference", "numba")):
        try:
            __import__(module)
        except ImportError:
            continue
        names.append(name)
    return names


@pytest.mark.parametrize("backend", _backends())
class TestVectorOpsContract:
    def setup_method(self):
        rng = np.random.default_rng(7)
        self.a = rng.normal(size=32)
        self.b = rng.normal(size=32)

    def test_dot_is_unscaled(self, backend):
        ops = VectorOpsFactory.create(backend)
        a = np.full(10, 2.0)
        b = np.full(10, 3.0)
        # A 1/N scaled dot would give 6.0
        assert ops.dot(a, b) == 60.0

    def test_dot_matches_literal_sum(self, backend):
        ops = VectorOpsFactory.create(backend)
        expected = sum(x * y for x, y in zip(self.a, self.b))
        assert ops.dot(self.a, self.b) == pytest.approx(expected, rel=1e-12)

    def test_add_in_place(self, backend):
        ops = VectorOpsFactory.create(backend)
        a = self.a.copy()
        ops.add(a, self.b)
        np.testing.assert_array_equal(a, self.a + self.b)

    def test_sub_in_place(self, backend):
        ops = VectorOpsFactory.create(backend)
        a = self.a.copy()
        ops.sub(a, self.b)
        np.testing.assert_array_equal(a, self.a - self.b)

    def test_scale_in_place(self, backend):
        ops = VectorOpsFactory.create(backend)
        a = self.a.copy()
        ops.scale(a, 0.25)
        np.testing.assert_array_equal(a, self.a * 0.25)

    def test_second_argument_untouched(self, backend):
        ops = VectorOpsFactory.create(backend)
        b = self.b.copy()
        ops.add(self.a.copy(), b)
        ops.sub(self.a.copy(), b)
        np.testing.assert_array_equal(b, self.b)


class TestVectorOpsFactory:
    def test_create_by_name_and_type(self):
        assert isinstance(VectorOpsFactory.create("numpy"), NumpyVectorOps)
        assert isinstance(VectorOpsFactory.create(BackendType.NUMPY), NumpyVectorOps)
        assert isinstance(VectorOpsFactory.create("NumPy"), NumpyVectorOps)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            VectorOpsFactory.create("cuda")

    def test_available_backends(self):
        available = VectorOpsFactory.get_available_backends()
        assert set(available) == {BackendType.NUMPY, BackendType.BLAS, BackendType.REFERENCE}


class TestCountingVectorOps:
    def test_counts_only_dots(self):
        ops = CountingVectorOps(NumpyVectorOps())
        a = np.ones(4)
        b = np.ones(4)
        ops.add(a, b)
        ops.scale(a, 2.0)
        assert ops.dot_count == 0

        assert ops.dot(a, b) == 16.0
        ops.dot(a, b)
        assert ops.dot_count == 2
