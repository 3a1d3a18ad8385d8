"""
Activation Functions
====================

Pointwise non-linearities applied at the output of each dense layer.
Each activation implements the function and its derivative, both for a
single value and for whole arrays.

Mathematical Background:
- Without non-linearities, stacking layers = single linear transformation
- Activations introduce non-linearity, enabling universal function approximation

The set of activations is closed. ``ActivationType`` is the tag stored with
a layer and written to disk; ``ActivationType.build()`` turns the tag back
into the callable activation after a model is loaded.
"""

from enum import Enum

import numpy as np

from .exceptions import ConfigurationError


class Activation:
    """Base class for all activation functions."""

    def activate_array(self, x):
        """Apply activation function elementwise."""
        raise NotImplementedError

    def derivative_array(self, x):
        """Compute derivative of activation elementwise."""
        raise NotImplementedError

    def activate(self, x):
        """Apply activation to a scalar (or array) value."""
        if np.ndim(x) == 0:
            return float(self.activate_array(np.asarray(x, dtype=np.float64)))
        return self.activate_array(np.asarray(x, dtype=np.float64))

    def derivative(self, x):
        """Derivative at a scalar (or array) value."""
        if np.ndim(x) == 0:
            return float(self.derivative_array(np.asarray(x, dtype=np.float64)))
        return self.derivative_array(np.asarray(x, dtype=np.float64))

    def __call__(self, x):
        return self.activate(x)

    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self))

    def __repr__(self):
        return f"{type(self).__name__}()"


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Properties:
    - Computationally efficient (just a threshold)
    - Non-saturating for positive values (no vanishing gradient)
    - Sparse activation (many zeros)

    Derivative:
        f'(x) = 1 if x > 0 else 0
    """

    def activate_array(self, x):
        return np.maximum(0.0, x)

    def derivative_array(self, x):
        return (x > 0).astype(np.float64)


class Sigmoid(Activation):
    """
    Sigmoid: f(x) = 1 / (1 + exp(-x))

    Squashes output to (0, 1). Used for binary classification outputs.

    Derivative:
        f'(x) = f(x) * (1 - f(x))
    """

    def activate_array(self, x):
        # Clip for numerical stability
        x_clipped = np.clip(x, -500, 500)
        return 1.0 / (1.0 + np.exp(-x_clipped))

    def derivative_array(self, x):
        s = self.activate_array(x)
        return s * (1 - s)


class Tanh(Activation):
    """
    Hyperbolic Tangent: f(x) = tanh(x)

    Output range: (-1, 1), zero-centered.

    Derivative:
        f'(x) = 1 - tanh(x)^2
    """

    def activate_array(self, x):
        return np.tanh(x)

    def derivative_array(self, x):
        t = np.tanh(x)
        return 1 - t ** 2


class Linear(Activation):
    """
    Linear (Identity) activation: f(x) = x

    Used for regression output layers.
    """

    def activate_array(self, x):
        return np.array(x, dtype=np.float64, copy=True)

    def derivative_array(self, x):
        return np.ones_like(x, dtype=np.float64)


class ActivationType(Enum):
    """Serializable tag for the closed set of activations."""

    RELU = 'ReLU'
    SIGMOID = 'Sigmoid'
    TANH = 'Tanh'
    LINEAR = 'Linear'

    def build(self):
        """Reconstruct the activation callable for this tag."""
        return _ACTIVATION_CLASSES[self]()

    @classmethod
    def parse(cls, name):
        """
        Resolve a tag from an ActivationType, member name or value.

        Matching is case-insensitive: 'relu', 'ReLU' and 'RELU' all resolve
        to ActivationType.RELU.

        Raises:
            KeyError: if the name does not match any activation
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace('-', '_')
        for member in cls:
            if key in (member.name.lower(), member.value.lower()):
                return member
        if key in ('none', 'identity'):
            return cls.LINEAR
        raise KeyError(name)

    @classmethod
    def of(cls, activation):
        """Tag for an activation instance."""
        for tag, klass in _ACTIVATION_CLASSES.items():
            if type(activation) is klass:
                return tag
        raise TypeError(f"Unsupported activation {activation!r}")


_ACTIVATION_CLASSES = {
    ActivationType.RELU: ReLU,
    ActivationType.SIGMOID: Sigmoid,
    ActivationType.TANH: Tanh,
    ActivationType.LINEAR: Linear,
}


def get_activation(name):
    """
    Get activation function by name.

    Args:
        name: ActivationType, string name ('relu', 'Sigmoid', etc.),
            Activation instance or None (linear)

    Returns:
        Activation instance

    Example:
        >>> act = get_activation('relu')
        >>> act(np.array([-1.0, 0.0, 1.0]))
        array([0., 0., 1.])
    """
    if isinstance(name, Activation):
        return name

    if name is None:
        return Linear()

    try:
        return ActivationType.parse(name).build()
    except KeyError:
        available = ', '.join(member.value for member in ActivationType)
        raise ConfigurationError(f"Unknown activation '{name}'. Available: {available}") from None
