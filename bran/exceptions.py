"""
Exceptions
==========

Errors raised by the network engine.

- DimensionMismatchError: array shapes that do not fit a layer, loss or chain
- LayerStateError: backward called on a layer with no cached forward pass
- DeserializationError: a persisted model file could not be read
- ConfigurationError: an unknown activation, optimizer or loss name
"""


class BranError(Exception):
    """Base class for all library errors."""


class DimensionMismatchError(BranError, ValueError):
    """Raised when an array's shape does not match what a component expects."""


class LayerStateError(BranError, RuntimeError):
    """Raised when backward is called without a preceding forward."""


class DeserializationError(BranError):
    """Raised when a saved model is missing, malformed or truncated."""


class ConfigurationError(BranError, ValueError):
    """Raised for unrecognized configuration tags in strict mode."""
