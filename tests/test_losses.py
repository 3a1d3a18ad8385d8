"""
Tests for Loss Functions
========================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bran.exceptions import ConfigurationError, DimensionMismatchError
from bran.losses import CrossEntropy, MeanSquaredError, get_loss


class TestMeanSquaredError:

    def test_loss_value(self):
        mse = MeanSquaredError()
        predicted = np.array([[1.0, 2.0], [3.0, 4.0]])
        target = np.array([[1.5, 2.5], [3.5, 4.5]])

        assert mse.loss(predicted, target) == pytest.approx(0.125, abs=1e-6)

    def test_zero_for_perfect_prediction(self):
        x = np.random.randn(3, 4)
        assert MeanSquaredError().loss(x, x) == 0.0

    def test_derivative(self):
        """Gradient is (p - t) divided by the total element count."""
        predicted = np.array([[1.0, 2.0], [3.0, 4.0]])
        target = np.array([[0.0, 0.0], [0.0, 0.0]])

        grad = MeanSquaredError().derivative(predicted, target)

        np.testing.assert_array_almost_equal(grad, predicted / 4)

    def test_call_is_loss(self):
        mse = MeanSquaredError()
        a, b = np.ones((2, 2)), np.zeros((2, 2))
        assert mse(a, b) == mse.loss(a, b)

    def test_shape_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            MeanSquaredError().loss(np.ones((2, 2)), np.ones((2, 3)))


class TestCrossEntropy:

    def test_loss_value(self):
        ce = CrossEntropy()
        predicted = np.array([[0.6, 0.4], [0.3, 0.7]])
        target = np.array([[1.0, 0.0], [0.0, 1.0]])

        assert ce.loss(predicted, target) == pytest.approx(0.4337, abs=1e-4)

    def test_extreme_predictions_are_finite(self):
        """Predictions of exactly 0 and 1 are clipped before the log."""
        ce = CrossEntropy()
        predicted = np.array([[0.0, 1.0]])
        target = np.array([[1.0, 0.0]])

        loss = ce.loss(predicted, target)
        grad = ce.derivative(predicted, target)

        assert np.isfinite(loss)
        assert loss == pytest.approx(-np.log(1e-10), rel=1e-6)
        assert np.all(np.isfinite(grad))

    def test_derivative(self):
        """Gradient is (p - t) / (p(1 - p) + epsilon)."""
        predicted = np.array([[0.6, 0.4], [0.3, 0.7]])
        target = np.array([[1.0, 0.0], [0.0, 1.0]])

        grad = CrossEntropy().derivative(predicted, target)
        expected = (predicted - target) / (predicted * (1 - predicted) + 1e-10)

        np.testing.assert_allclose(grad, expected)

    def test_shape_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            CrossEntropy().derivative(np.ones((2, 2)), np.ones((3, 2)))


class TestLossRegistry:

    @pytest.mark.parametrize('name,cls', [
        ('mse', MeanSquaredError),
        ('MeanSquaredError', MeanSquaredError),
        ('mean-squared-error', MeanSquaredError),
        ('cross_entropy', CrossEntropy),
        ('CrossEntropy', CrossEntropy),
        ('bce', CrossEntropy),
    ])
    def test_get_loss(self, name, cls):
        assert isinstance(get_loss(name), cls)

    def test_instance_passthrough(self):
        loss = CrossEntropy()
        assert get_loss(loss) is loss

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            get_loss('hinge')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
