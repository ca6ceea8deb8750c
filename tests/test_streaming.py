import math

import numpy as np
import pytest

from brdfcov.exceptions import NumericalInvalidityError
from brdfcov.io_utils import SampleReader
from brdfcov.streaming import MeanAccumulator, compute_mean_vector


class TestMeanAccumulator:
    def test_mean_of_vectors(self):
        acc = MeanAccumulator(3)
        acc.update(np.array([1.0, 2.0, 3.0]))
        acc.update(np.array([3.0, 4.0, 5.0]))
        mean = acc.finalize()

        np.testing.assert_array_equal(mean, [2.0, 3.0, 4.0])
        assert acc.count == 2

    def test_result_is_frozen(self):
        acc = MeanAccumulator(2)
        acc.update(np.array([1.0, 1.0]))
        mean = acc.finalize()

        assert not mean.flags.writeable
        assert acc.finalize() is mean
        with pytest.raises(RuntimeError):
            acc.update(np.array([1.0, 1.0]))

    def test_empty(self):
        with pytest.raises(ValueError):
            MeanAccumulator(2).finalize()

    def test_nan_is_fatal(self):
        acc = MeanAccumulator(2)
        acc.update(np.array([1.0, np.nan]))
        with pytest.raises(NumericalInvalidityError):
            acc.finalize()


class TestComputeMeanVector:
    def test_constant_samples(self, sample_files, make_config):
        k = [0.5, 2.0, 4.0, 8.0]
        paths = sample_files([k] * 4)
        mean = compute_mean_vector(paths, make_config())

        np.testing.assert_array_equal(mean, k)

    def test_skipped_without_whitening(self, sample_files, make_config):
        paths = sample_files([[1.0, 2.0, 3.0, 4.0]])
        reader = SampleReader(4)
        assert compute_mean_vector(paths, make_config(whiten_data=False), reader) is None
        assert reader.reads == 0

    def test_raw_values_when_whitening_before_log(self, sample_files, make_config):
        paths = sample_files([[1.0, 1.0, 1.0, 1.0], [3.0, 3.0, 3.0, 3.0]])
        mean = compute_mean_vector(paths, make_config(whiten_before_log=True))
        np.testing.assert_array_equal(mean, [2.0] * 4)

    def test_log_values_when_whitening_after_log(self, sample_files, make_config):
        paths = sample_files([[1.0, 1.0, 1.0, 1.0], [math.e**2] * 4])
        mean = compute_mean_vector(paths, make_config(whiten_before_log=False))
        np.testing.assert_allclose(mean, [1.0] * 4)

    def test_after_log_without_log_uses_raw(self, sample_files, make_config):
        paths = sample_files([[1.0, 1.0, 1.0, 1.0], [3.0, 3.0, 3.0, 3.0]])
        config = make_config(whiten_before_log=False, take_log=False)
        mean = compute_mean_vector(paths, config)
        np.testing.assert_array_equal(mean, [2.0] * 4)

    def test_single_pass(self, sample_files, make_config):
        paths = sample_files([[1.0] * 4] * 5)
        reader = SampleReader(4)
        compute_mean_vector(paths, make_config(), reader)
        assert reader.reads == 5
