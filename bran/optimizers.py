"""
Optimizers
==========

Optimizers update layer weights based on computed gradients.

Unlike optimizers that walk the whole network, these are called by each
layer from inside its backward pass, once per layer per mini-batch. The
moment buffers live on the layer (see ``MomentBuffers``); the optimizer only
holds hyperparameters and the step counter.

This module implements:
- SGD: Plain gradient descent with L2 weight decay
- Adam: Adaptive learning rates with bias-corrected moment estimates
"""

import numpy as np

from .exceptions import ConfigurationError


class MomentBuffers:
    """
    First and second moment estimates for one layer's weights and biases.

    All four arrays start at zero and are updated in place by Adam.
    SGD leaves them untouched.

    Args:
        weight_shape: Shape of the layer's weight matrix (out, in)
        bias_shape: Shape of the layer's bias vector (out,)
    """

    def __init__(self, weight_shape, bias_shape):
        self.m_w = np.zeros(weight_shape)
        self.v_w = np.zeros(weight_shape)
        self.m_b = np.zeros(bias_shape)
        self.v_b = np.zeros(bias_shape)

    def reset(self):
        """Zero all moment estimates in place."""
        for buf in (self.m_w, self.v_w, self.m_b, self.v_b):
            buf.fill(0.0)

    def __repr__(self):
        return f"MomentBuffers(weight_shape={self.m_w.shape}, bias_shape={self.m_b.shape})"


class Optimizer:
    """Base class for optimizers."""

    name = None

    def update(self, weights, biases, weight_grads, bias_grads, moments):
        """
        Update one layer's parameters in place.

        Args:
            weights: Weight matrix, shape (out, in), modified in place
            biases: Bias vector, shape (out,), modified in place
            weight_grads: Gradient of the loss w.r.t. weights
            bias_grads: Gradient of the loss w.r.t. biases
            moments: The layer's MomentBuffers
        """
        raise NotImplementedError

    def get_lr(self):
        """Get current learning rate."""
        return self.learning_rate

    def reset(self):
        """Reset optimizer state."""
        self.t = 0


class SGD(Optimizer):
    """
    Stochastic Gradient Descent with L2 regularization.

    Update rule:
        W <- W - lr * (dW + l2_reg * W)
        b <- b - lr * db

    Biases are never regularized.

    Args:
        learning_rate: Step size (default: 0.01)
        l2_reg: L2 regularization strength (default: 0)
    """

    name = 'SGD'

    def __init__(self, learning_rate=0.01, l2_reg=0.0):
        self.learning_rate = learning_rate
        self.l2_reg = l2_reg
        self.t = 0

    def update(self, weights, biases, weight_grads, bias_grads, moments=None):
        self.t += 1

        weights -= self.learning_rate * (weight_grads + self.l2_reg * weights)
        biases -= self.learning_rate * bias_grads

    def __repr__(self):
        return f"SGD(learning_rate={self.learning_rate}, l2_reg={self.l2_reg})"


class Adam(Optimizer):
    """
    Adam (Adaptive Moment Estimation) optimizer.

    Combines the benefits of:
    - Momentum: Uses running average of gradients
    - RMSprop: Uses running average of squared gradients

    Update rule, for each parameter p with gradient g:
        m <- beta1 * m + (1 - beta1) * g
        v <- beta2 * v + (1 - beta2) * g^2
        m_hat = m / (1 - beta1^t)
        v_hat = v / (1 - beta2^t)
        p <- p - lr * m_hat / (sqrt(v_hat) + epsilon)

    Weights additionally decay by lr * l2_reg * W. Biases do not.

    The step counter t advances on every call to update, so a network with
    several layers advances it several times per mini-batch.

    Args:
        learning_rate: Step size (default: 0.001)
        beta1: Decay rate for first moment (default: 0.9)
        beta2: Decay rate for second moment (default: 0.999)
        epsilon: Small constant for numerical stability (default: 1e-8)
        l2_reg: L2 regularization strength (default: 0)
    """

    name = 'Adam'

    def __init__(self, learning_rate=0.001, beta1=0.9, beta2=0.999,
                 epsilon=1e-8, l2_reg=0.0):
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.l2_reg = l2_reg

        self.t = 0  # Time step for bias correction

    def update(self, weights, biases, weight_grads, bias_grads, moments):
        self.t += 1

        # Update biased first and second moment estimates in place
        moments.m_w *= self.beta1
        moments.m_w += (1 - self.beta1) * weight_grads
        moments.v_w *= self.beta2
        moments.v_w += (1 - self.beta2) * weight_grads ** 2

        moments.m_b *= self.beta1
        moments.m_b += (1 - self.beta1) * bias_grads
        moments.v_b *= self.beta2
        moments.v_b += (1 - self.beta2) * bias_grads ** 2

        # Bias-corrected estimates
        bias_correction1 = 1 - self.beta1 ** self.t
        bias_correction2 = 1 - self.beta2 ** self.t

        m_w_hat = moments.m_w / bias_correction1
        v_w_hat = moments.v_w / bias_correction2
        m_b_hat = moments.m_b / bias_correction1
        v_b_hat = moments.v_b / bias_correction2

        # Decay uses the weights before this step's update
        decay = self.l2_reg * self.learning_rate * weights
        weights -= self.learning_rate * m_w_hat / (np.sqrt(v_w_hat) + self.epsilon) + decay
        biases -= self.learning_rate * m_b_hat / (np.sqrt(v_b_hat) + self.epsilon)

    def __repr__(self):
        return (f"Adam(learning_rate={self.learning_rate}, beta1={self.beta1}, "
                f"beta2={self.beta2}, epsilon={self.epsilon}, l2_reg={self.l2_reg})")


# Optimizer registry
OPTIMIZERS = {
    'adam': Adam,
    'sgd': SGD,
}


def get_optimizer(name, **kwargs):
    """
    Get optimizer by name.

    Args:
        name: 'adam' or 'sgd' (case-insensitive), or an Optimizer instance
        **kwargs: Arguments to pass to optimizer

    Returns:
        Optimizer instance
    """
    if isinstance(name, Optimizer):
        return name

    name_lower = str(name).strip().lower()
    if name_lower not in OPTIMIZERS:
        raise ConfigurationError(f"Unknown optimizer '{name}'. Available: {list(OPTIMIZERS.keys())}")

    return OPTIMIZERS[name_lower](**kwargs)
