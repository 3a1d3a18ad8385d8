"""
Dense Layer
===========

A fully connected layer: every output is connected to every input.

    Forward:  z = x @ W.T + b,  y = f(z)
    Backward: delta = dL/dy * f'(y)
              dL/dx = delta @ W
              dL/dW = delta.T @ x
              dL/db = sum(delta, axis=0)

Shapes:
    W: (output_size, input_size)
    b: (output_size,)
    x: (batch, input_size)
    y: (batch, output_size)

The layer updates its own parameters during backward by handing the
gradients to the optimizer, together with its moment buffers.

Lifecycle:
    IDLE --forward--> FORWARD_COMPUTED --backward--> IDLE

forward caches the input and activated output; backward consumes the cache
and clears it. Calling backward from IDLE raises LayerStateError.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from .activations import ActivationType
from .exceptions import ConfigurationError, DimensionMismatchError, LayerStateError
from .optimizers import MomentBuffers


@dataclass(frozen=True)
class LayerRecord:
    """
    Persisted form of a DenseLayer: plain data only.

    A record has no activation callable, moment buffers or cache, and cannot
    run forward or backward. DenseLayer.from_record rehydrates it.
    """

    weights: np.ndarray
    biases: np.ndarray
    activation: ActivationType


class LayerState(Enum):
    IDLE = 'idle'
    FORWARD_COMPUTED = 'forward_computed'


class DenseLayer:
    """
    Fully Connected (Dense) Layer.

    Weights are drawn uniformly from [-limit, limit) with
    limit = sqrt(2 / (input_size + output_size)). Biases and optimizer
    moment buffers start at zero.

    Args:
        input_size: Number of input features
        output_size: Number of output features
        activation: ActivationType or activation name (default: 'relu')
        weights: Initial weight matrix, shape (output_size, input_size).
            Drawn at random when omitted.
        biases: Initial bias vector, shape (output_size,). Zeros when omitted.

    Example:
        >>> layer = DenseLayer(2, 3, 'relu')
        >>> layer.forward(np.array([[1.0, 2.0]])).shape
        (1, 3)
    """

    def __init__(self, input_size, output_size, activation=ActivationType.RELU,
                 weights=None, biases=None):
        if input_size <= 0 or output_size <= 0:
            raise ValueError(f"Layer sizes must be positive, got ({input_size}, {output_size})")

        self.input_size = int(input_size)
        self.output_size = int(output_size)
        try:
            self.activation_type = ActivationType.parse(activation)
        except KeyError:
            raise ConfigurationError(f"Unknown activation '{activation}'") from None
        self.activation = self.activation_type.build()

        if weights is None:
            limit = np.sqrt(2.0 / (self.input_size + self.output_size))
            weights = np.random.uniform(-limit, limit, size=(self.output_size, self.input_size))
        if biases is None:
            biases = np.zeros(self.output_size)

        self.weights = np.array(weights, dtype=np.float64)
        self.biases = np.array(biases, dtype=np.float64)
        if self.weights.shape != (self.output_size, self.input_size):
            raise DimensionMismatchError(
                f"Weights must have shape {(self.output_size, self.input_size)}, got {self.weights.shape}"
            )
        if self.biases.shape != (self.output_size,):
            raise DimensionMismatchError(
                f"Biases must have shape {(self.output_size,)}, got {self.biases.shape}"
            )

        self.moments = MomentBuffers(self.weights.shape, self.biases.shape)

        self.state = LayerState.IDLE
        self._input = None
        self._output = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def from_record(cls, record):
        """
        Rebuild a layer from a persisted LayerRecord.

        Reconstructs the activation callable from its tag and starts with
        zeroed moment buffers and an empty cache.
        """
        weights = np.asarray(record.weights, dtype=np.float64)
        if weights.ndim != 2:
            raise DimensionMismatchError(f"Weights must be 2D, got shape {weights.shape}")
        output_size, input_size = weights.shape
        return cls(input_size, output_size, record.activation,
                   weights=weights, biases=record.biases)

    def to_record(self):
        """Reduce the layer to its persisted data: weights, biases and tag."""
        return LayerRecord(
            weights=self.weights.copy(),
            biases=self.biases.copy(),
            activation=self.activation_type,
        )

    # ------------------------------------------------------------------
    # Forward / backward
    # ------------------------------------------------------------------

    def forward(self, x):
        """
        Forward pass: y = f(x @ W.T + b)

        Args:
            x: Input batch, shape (batch, input_size)

        Returns:
            Activated output, shape (batch, output_size)
        """
        x = np.asarray(x, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.input_size:
            raise DimensionMismatchError(
                f"{self!r} expects input of shape (batch, {self.input_size}), got {x.shape}"
            )

        z = x @ self.weights.T + self.biases
        output = self.activation.activate_array(z)

        self._input = x
        self._output = output
        self.state = LayerState.FORWARD_COMPUTED

        return output

    def backward(self, output_error, optimizer):
        """
        Backward pass and parameter update.

        The activation derivative is evaluated on the cached activated
        output, f'(y), for every activation type.

        Args:
            output_error: dL/dy, shape (batch, output_size) of the last forward
            optimizer: Optimizer applied to this layer's weights and biases

        Returns:
            dL/dx, shape (batch, input_size), computed with the weights as
            they were before this update
        """
        if self.state is not LayerState.FORWARD_COMPUTED:
            raise LayerStateError(f"backward called on {self!r} without a preceding forward")

        output_error = np.asarray(output_error, dtype=np.float64)
        if output_error.shape != self._output.shape:
            raise DimensionMismatchError(
                f"{self!r} expects output error of shape {self._output.shape}, "
                f"got {output_error.shape}"
            )

        delta = output_error * self.activation.derivative_array(self._output)

        input_error = delta @ self.weights

        weight_grads = delta.T @ self._input
        bias_grads = np.sum(delta, axis=0)

        optimizer.update(self.weights, self.biases, weight_grads, bias_grads, self.moments)

        self.clear_cache()
        return input_error

    def clear_cache(self):
        """Drop the cached forward pass and return to IDLE."""
        self._input = None
        self._output = None
        self.state = LayerState.IDLE

    def reset_moments(self):
        """Zero the optimizer moment buffers."""
        self.moments.reset()

    @property
    def n_params(self):
        return self.weights.size + self.biases.size

    def __repr__(self):
        return f"DenseLayer({self.input_size}, {self.output_size}, {self.activation_type.value})"
