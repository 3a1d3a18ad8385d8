"""
Tests for Optimizers
====================

Optimizers update a single layer's parameters in place, given its
gradients and moment buffers.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bran.exceptions import ConfigurationError
from bran.optimizers import SGD, Adam, MomentBuffers, get_optimizer


def single_param():
    """One weight, one bias and matching moment buffers."""
    weights = np.array([[1.0]])
    biases = np.array([0.1])
    return weights, biases, MomentBuffers(weights.shape, biases.shape)


class TestSGD:

    def test_step(self):
        weights, biases, moments = single_param()
        SGD(learning_rate=0.1).update(weights, biases, np.array([[0.01]]), np.array([0.001]), moments)

        assert weights[0, 0] == pytest.approx(0.999)
        assert biases[0] == pytest.approx(0.0999)

    def test_step_on_matrix(self):
        """W <- W - lr * G elementwise for a 2x2 weight matrix."""
        weights = np.array([[1.0, 2.0], [3.0, 4.0]])
        biases = np.zeros(2)
        grads = np.array([[0.1, 0.2], [0.3, 0.4]])
        moments = MomentBuffers(weights.shape, biases.shape)

        SGD(learning_rate=0.01).update(weights, biases, grads, np.zeros(2), moments)

        assert weights[0, 0] == pytest.approx(0.999)
        np.testing.assert_allclose(weights, [[0.999, 1.998], [2.997, 3.996]])

    def test_l2_decays_weights(self):
        """W <- W - lr * (g + l2 * W) with a zero gradient."""
        weights, biases, moments = single_param()
        SGD(learning_rate=0.1, l2_reg=0.5).update(weights, biases, np.zeros((1, 1)), np.zeros(1), moments)

        assert weights[0, 0] == pytest.approx(0.95)

    def test_l2_skips_biases(self):
        weights, biases, moments = single_param()
        SGD(learning_rate=0.1, l2_reg=0.5).update(weights, biases, np.zeros((1, 1)), np.zeros(1), moments)

        assert biases[0] == 0.1

    def test_moments_untouched(self):
        weights, biases, moments = single_param()
        SGD().update(weights, biases, np.ones((1, 1)), np.ones(1), moments)

        assert np.all(moments.m_w == 0) and np.all(moments.v_w == 0)

    def test_counts_updates(self):
        weights, biases, moments = single_param()
        sgd = SGD()
        for _ in range(3):
            sgd.update(weights, biases, np.zeros((1, 1)), np.zeros(1), moments)

        assert sgd.t == 3
        sgd.reset()
        assert sgd.t == 0


class TestAdam:

    def test_first_step(self):
        """After bias correction the first step has magnitude lr."""
        weights = np.array([[0.5]])
        biases = np.array([0.0])
        moments = MomentBuffers(weights.shape, biases.shape)

        Adam(learning_rate=0.001).update(weights, biases, np.array([[0.1]]), np.array([0.1]), moments)

        assert weights[0, 0] == pytest.approx(0.499, abs=1e-6)
        assert biases[0] == pytest.approx(-0.001, abs=1e-6)

    def test_moments_after_one_step(self):
        weights, biases, moments = single_param()
        g = 0.2
        Adam().update(weights, biases, np.array([[g]]), np.array([g]), moments)

        assert moments.m_w[0, 0] == pytest.approx(0.1 * g)
        assert moments.v_w[0, 0] == pytest.approx(0.001 * g ** 2)
        assert moments.m_b[0] == pytest.approx(0.1 * g)
        assert moments.v_b[0] == pytest.approx(0.001 * g ** 2)

    def test_step_counter(self):
        weights, biases, moments = single_param()
        adam = Adam()
        adam.update(weights, biases, np.ones((1, 1)), np.ones(1), moments)
        adam.update(weights, biases, np.ones((1, 1)), np.ones(1), moments)

        assert adam.t == 2

    def test_l2_with_zero_gradient(self):
        weights, biases, moments = single_param()
        Adam(learning_rate=0.1, l2_reg=0.5).update(weights, biases, np.zeros((1, 1)), np.zeros(1), moments)

        assert weights[0, 0] == pytest.approx(0.95)
        assert biases[0] == pytest.approx(0.1)

    def test_convex_decrease(self):
        """f(w) = 0.5 * ||w||^2 decreases at every step from a distant start."""
        weights = np.array([[5.0, -3.0]])
        biases = np.zeros(1)
        moments = MomentBuffers(weights.shape, biases.shape)
        adam = Adam(learning_rate=0.01)

        losses = []
        for _ in range(50):
            losses.append(0.5 * np.sum(weights ** 2))
            adam.update(weights, biases, weights.copy(), np.zeros(1), moments)

        assert all(b < a for a, b in zip(losses, losses[1:]))


class TestMomentBuffers:

    def test_reset(self):
        moments = MomentBuffers((2, 3), (2,))
        moments.m_w += 1.0
        moments.v_b += 2.0

        moments.reset()

        assert np.all(moments.m_w == 0)
        assert np.all(moments.v_b == 0)
        assert moments.m_w.shape == (2, 3)


class TestGetOptimizer:

    def test_by_name(self):
        assert isinstance(get_optimizer('adam'), Adam)
        assert isinstance(get_optimizer('SGD', learning_rate=0.5), SGD)
        assert get_optimizer('sgd', learning_rate=0.5).learning_rate == 0.5

    def test_instance_passthrough(self):
        adam = Adam()
        assert get_optimizer(adam) is adam

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            get_optimizer('rmsprop')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
