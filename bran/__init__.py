"""
bran: Feed-Forward Neural Networks from Scratch
===============================================

A small neural-network training engine using only NumPy for the math.
This library covers:
- Dense (fully connected) layers
- ReLU, Sigmoid, Tanh and Linear activations
- Mean squared error and binary cross-entropy losses
- SGD and Adam optimizers with L2 regularization
- Mini-batch training with per-epoch statistics
- Saving and loading trained parameters (.npz or .json)
"""

from .activations import ReLU, Sigmoid, Tanh, Linear, ActivationType, get_activation
from .layers import DenseLayer, LayerRecord, LayerState
from .losses import MeanSquaredError, CrossEntropy, get_loss
from .optimizers import SGD, Adam, MomentBuffers, get_optimizer
from .network import Network
from .stats import TrainingStats, EpochRecord
from .persistence import save_records, load_records
from .exceptions import (BranError, ConfigurationError, DeserializationError,
                         DimensionMismatchError, LayerStateError)

__version__ = "1.0.0"
__all__ = [
    # Activations
    'ReLU', 'Sigmoid', 'Tanh', 'Linear', 'ActivationType', 'get_activation',
    # Layers
    'DenseLayer', 'LayerRecord', 'LayerState',
    # Losses
    'MeanSquaredError', 'CrossEntropy', 'get_loss',
    # Optimizers
    'SGD', 'Adam', 'MomentBuffers', 'get_optimizer',
    # Main class
    'Network',
    # Training statistics
    'TrainingStats', 'EpochRecord',
    # Persistence
    'save_records', 'load_records',
    # Errors
    'BranError', 'ConfigurationError', 'DeserializationError',
    'DimensionMismatchError', 'LayerStateError',
]
