"""
Loss Functions
==============

Loss functions measure how wrong the model's predictions are.
The goal of training is to minimize the loss.

Each loss implements:
- loss(predicted, target): Compute the scalar loss over a batch
- derivative(predicted, target): Compute gradient for backpropagation

Both arguments are 2D arrays: rows are samples, columns are output features.
"""

import numpy as np

from .exceptions import ConfigurationError, DimensionMismatchError


def _check_shapes(predicted, target):
    predicted = np.asarray(predicted, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)
    if predicted.shape != target.shape:
        raise DimensionMismatchError(
            f"Predicted shape {predicted.shape} does not match target shape {target.shape}"
        )
    return predicted, target


class Loss:
    """Base class for loss functions."""

    name = None

    def loss(self, predicted, target):
        """Compute loss value."""
        raise NotImplementedError

    def derivative(self, predicted, target):
        """Compute gradient of loss w.r.t. predictions."""
        raise NotImplementedError

    def __call__(self, predicted, target):
        return self.loss(predicted, target)

    def __repr__(self):
        return f"{type(self).__name__}()"


class MeanSquaredError(Loss):
    """
    Mean Squared Error Loss for regression.

    Formula: L = sum((y_pred - y_true)^2) / (2n)

    Gradient: dL/dy_pred = (y_pred - y_true) / n

    where n is the total number of elements in the batch. The factor 1/2
    cancels the 2 from differentiating the square.
    """

    name = 'mse'

    def loss(self, predicted, target):
        predicted, target = _check_shapes(predicted, target)
        diff = predicted - target
        return float(np.sum(diff ** 2) / (2 * target.size))

    def derivative(self, predicted, target):
        predicted, target = _check_shapes(predicted, target)
        return (predicted - target) / target.size


class CrossEntropy(Loss):
    """
    Binary Cross-Entropy, applied elementwise.

    Formula: L = mean(-[y*log(p) + (1-y)*log(1-p)])

    Use when every output is an independent probability (sigmoid outputs).

    Args:
        epsilon: Predictions are clipped into [epsilon, 1 - epsilon] before
            taking logarithms, and epsilon is added to the gradient's
            denominator.
    """

    name = 'cross_entropy'

    def __init__(self, epsilon=1e-10):
        self.epsilon = epsilon

    def loss(self, predicted, target):
        predicted, target = _check_shapes(predicted, target)

        # Clip for numerical stability
        p = np.clip(predicted, self.epsilon, 1 - self.epsilon)
        loss = -(target * np.log(p) + (1 - target) * np.log(1 - p))
        return float(np.mean(loss))

    def derivative(self, predicted, target):
        predicted, target = _check_shapes(predicted, target)
        return (predicted - target) / (predicted * (1 - predicted) + self.epsilon)


# ============================================================================
# Loss Registry
# ============================================================================

LOSSES = {
    'mse': MeanSquaredError,
    'mean_squared_error': MeanSquaredError,
    'meansquarederror': MeanSquaredError,
    'cross_entropy': CrossEntropy,
    'crossentropy': CrossEntropy,
    'ce': CrossEntropy,
    'bce': CrossEntropy,
    'binary_crossentropy': CrossEntropy,
}


def get_loss(name):
    """
    Get loss function by name.

    Args:
        name: String name or Loss instance

    Returns:
        Loss instance
    """
    if isinstance(name, Loss):
        return name

    name_lower = str(name).lower().replace('-', '_').replace(' ', '_')
    if name_lower not in LOSSES:
        available = ', '.join(sorted(set(LOSSES.keys())))
        raise ConfigurationError(f"Unknown loss '{name}'. Available: {available}")

    return LOSSES[name_lower]()
