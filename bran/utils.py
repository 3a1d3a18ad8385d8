"""
Utility Functions
=================

Helper functions for:
- Batching
- Metrics
- Reproducibility
"""

import numpy as np


def as_batch(x, name='input'):
    """
    Convert array-like data to a float64 2D batch.

    A 1D vector is treated as a single sample.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        x = x[np.newaxis, :]
    if x.ndim != 2:
        raise ValueError(f"{name} must be a 2D array (samples, features), got shape {x.shape}")
    return x


def create_batches(X, y, batch_size):
    """
    Create mini-batches for training.

    Batches are contiguous slices in sample order; the last batch may be
    smaller than batch_size.

    Args:
        X: Features, shape (N, in)
        y: Targets, shape (N, out)
        batch_size: Batch size

    Yields:
        (X_batch, y_batch) tuples
    """
    n_samples = len(X)

    for start_idx in range(0, n_samples, batch_size):
        end_idx = min(start_idx + batch_size, n_samples)
        yield X[start_idx:end_idx], y[start_idx:end_idx]


def round_half_away(x):
    """Round to the nearest integer, with halves rounded away from zero."""
    return np.sign(x) * np.floor(np.abs(x) + 0.5)


def accuracy_score(y_true, y_pred):
    """
    Fraction of samples whose rounded prediction equals the rounded target.

    Halves round away from zero, so a prediction of 0.5 counts as 1.

    A sample counts as correct only when every output in its row matches.

    Args:
        y_true: Targets, shape (N, out)
        y_pred: Predictions, shape (N, out)

    Returns:
        Accuracy as float in [0, 1]
    """
    y_true = as_batch(y_true, 'y_true')
    y_pred = as_batch(y_pred, 'y_pred')
    if len(y_true) == 0:
        return 0.0

    matches = round_half_away(y_true) == round_half_away(y_pred)
    return float(np.mean(np.all(matches, axis=1)))


def set_random_seed(seed):
    """Set random seed for reproducibility."""
    np.random.seed(seed)
