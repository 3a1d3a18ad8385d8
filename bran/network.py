"""
Feed-Forward Network
====================

The main class that ties everything together:
- Layer stacking
- Forward pass
- Backward pass (backpropagation with in-layer parameter updates)
- Mini-batch training loop
- Prediction and evaluation
- Model saving/loading

Example:
    >>> from bran import Network, SGD, MeanSquaredError
    >>> net = Network()
    >>> net.add_layer(2, 8, 'relu')
    >>> net.add_layer(8, 1, 'sigmoid')
    >>> stats = net.train(X, y, epochs=100, batch_size=4,
    ...                   loss_fn=MeanSquaredError(), optimizer=SGD(0.05))
"""

import logging
import threading

import numpy as np
from tqdm import tqdm

from .exceptions import DimensionMismatchError
from .layers import DenseLayer
from .losses import get_loss
from .optimizers import get_optimizer
from .persistence import load_records, save_records
from .stats import TrainingStats
from .utils import accuracy_score, as_batch, create_batches

logger = logging.getLogger(__name__)


class Network:
    """
    Ordered stack of dense layers.

    Consecutive layers must chain: layers[i].output_size equals
    layers[i + 1].input_size. add_layer enforces this.

    Each mini-batch's forward, backward and parameter update runs while
    holding ``self.lock``, so other threads using the same network (for
    example to predict while training runs in the background) never see a
    half-updated batch.
    """

    def __init__(self, layers=None):
        self.layers = []
        self.lock = threading.RLock()
        for layer in layers or ():
            self.add_layer(layer)

    @classmethod
    def from_records(cls, records):
        """
        Rehydrate a network from inert LayerRecords.

        Each layer gets its activation callable rebuilt from the tag and
        freshly zeroed moment buffers.
        """
        return cls([DenseLayer.from_record(record) for record in records])

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_layer(self, layer, output_size=None, activation='relu'):
        """
        Append a layer.

        Args:
            layer: A DenseLayer, or the input size of a new DenseLayer
            output_size: Output size when building a new layer
            activation: Activation tag when building a new layer

        Returns:
            The appended layer

        Raises:
            DimensionMismatchError: If the layer does not chain onto the
                current last layer
        """
        if not isinstance(layer, DenseLayer):
            if output_size is None:
                raise TypeError("add_layer needs a DenseLayer or (input_size, output_size, activation)")
            layer = DenseLayer(layer, output_size, activation)

        if self.layers and self.layers[-1].output_size != layer.input_size:
            raise DimensionMismatchError(
                f"Cannot add {layer!r} after {self.layers[-1]!r}: "
                f"expected input size {self.layers[-1].output_size}"
            )

        with self.lock:
            self.layers.append(layer)
        return layer

    @property
    def input_size(self):
        return self.layers[0].input_size if self.layers else None

    @property
    def output_size(self):
        return self.layers[-1].output_size if self.layers else None

    @property
    def sizes(self):
        """Layer widths from input to output, e.g. [2, 8, 1]."""
        if not self.layers:
            return []
        return [self.layers[0].input_size] + [layer.output_size for layer in self.layers]

    # ------------------------------------------------------------------
    # Forward / backward
    # ------------------------------------------------------------------

    def forward(self, x):
        """
        Forward pass through the network.

        Refreshes every layer's cache, ready for a backward call.

        Args:
            x: Input batch, shape (batch, input_size)

        Returns:
            Output, shape (batch, output_size)
        """
        output = as_batch(x)
        with self.lock:
            for layer in self.layers:
                output = layer.forward(output)
        return output

    def backward(self, output_error, optimizer):
        """
        Backward pass through the network.

        Propagates the error backwards through each layer; every layer
        updates its own parameters with the optimizer on the way.

        Args:
            output_error: Gradient of the loss w.r.t. the network output
            optimizer: Optimizer used by every layer

        Returns:
            Gradient w.r.t. the network input

        Raises:
            LayerStateError: If forward was not called first
        """
        error = np.asarray(output_error, dtype=np.float64)
        with self.lock:
            for layer in reversed(self.layers):
                error = layer.backward(error, optimizer)
        return error

    def predict(self, x):
        """
        Inference: forward pass that leaves no cached state behind.

        Args:
            x: Input batch, shape (N, input_size), or a single sample

        Returns:
            Predictions, shape (N, output_size)
        """
        with self.lock:
            output = self.forward(x)
            for layer in self.layers:
                layer.clear_cache()
        return output

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, inputs, targets, epochs, batch_size, loss_fn, optimizer,
              stats=None, validation_data=None, early_stopping_patience=None,
              verbose=False):
        """
        Train the network with mini-batch gradient descent.

        Samples are split into contiguous batches in their given order. After
        each epoch the loss and accuracy over the whole training set are
        appended to ``stats``.

        Args:
            inputs: Training inputs, shape (N, input_size)
            targets: Training targets, shape (N, output_size)
            epochs: Number of training epochs
            batch_size: Mini-batch size; the last batch may be smaller
            loss_fn: Loss instance or name ('mse', 'cross_entropy')
            optimizer: Optimizer instance or name ('sgd', 'adam')
            stats: TrainingStats to append to (new one if None)
            validation_data: Tuple (X_val, y_val) for validation
            early_stopping_patience: Stop after this many epochs without
                validation loss improvement (requires validation_data)
            verbose: Show a progress bar per epoch

        Returns:
            The TrainingStats holding one record per completed epoch
        """
        X = as_batch(inputs, 'inputs')
        y = as_batch(targets, 'targets')
        if len(X) != len(y):
            raise ValueError(f"inputs has {len(X)} samples but targets has {len(y)}")
        if epochs <= 0 or batch_size <= 0:
            raise ValueError(f"epochs and batch_size must be positive, got {epochs} and {batch_size}")

        loss_fn = get_loss(loss_fn)
        optimizer = get_optimizer(optimizer)
        if stats is None:
            stats = TrainingStats()

        if validation_data is not None:
            X_val, y_val = validation_data
            X_val = as_batch(X_val, 'validation inputs')
            y_val = as_batch(y_val, 'validation targets')

        # Early stopping
        best_val_loss = float('inf')
        patience_counter = 0

        n_batches = (len(X) + batch_size - 1) // batch_size
        logger.info(f"Training {self!r} for {epochs} epoch(s), {n_batches} batch(es) per epoch")

        for epoch in range(epochs):
            batches = create_batches(X, y, batch_size)
            if verbose:
                batches = tqdm(batches, total=n_batches, desc=f"Epoch {epoch+1}/{epochs}")

            for X_batch, y_batch in batches:
                with self.lock:
                    predictions = self.forward(X_batch)
                    grad = loss_fn.derivative(predictions, y_batch)
                    self.backward(grad, optimizer)

            # Epoch metrics over the whole dataset
            loss, accuracy = self.evaluate(X, y, loss_fn)
            stats.log_epoch(epoch + 1, loss, accuracy)

            msg = f"Epoch {epoch+1}/{epochs} - Loss: {loss:.6f} - Accuracy: {accuracy:.4f}"

            if validation_data is not None:
                val_loss, val_accuracy = self.evaluate(X_val, y_val, loss_fn)
                msg += f" - Val Loss: {val_loss:.6f} - Val Acc: {val_accuracy:.4f}"
            logger.info(msg)

            # Early stopping
            if validation_data is not None and early_stopping_patience is not None:
                if val_loss < best_val_loss:
                    best_val_loss = val_loss
                    patience_counter = 0
                else:
                    patience_counter += 1
                    if patience_counter >= early_stopping_patience:
                        logger.info(f"Early stopping at epoch {epoch + 1}")
                        break

        return stats

    def evaluate(self, X, y, loss_fn):
        """
        Evaluate model on data.

        Args:
            X: Inputs
            y: Targets
            loss_fn: Loss instance or name

        Returns:
            Tuple of (loss, accuracy)
        """
        loss_fn = get_loss(loss_fn)
        predictions = self.predict(X)
        loss = loss_fn.loss(predictions, as_batch(y, 'targets'))
        accuracy = accuracy_score(y, predictions)
        return loss, accuracy

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_records(self):
        with self.lock:
            return [layer.to_record() for layer in self.layers]

    def save(self, path):
        """
        Save layer weights, biases and activation tags.

        Args:
            path: Destination file (.npz, or .json for a JSON document)
        """
        return save_records(self.to_records(), path)

    @classmethod
    def load(cls, path):
        """
        Load a network saved with save().

        Moment buffers are not persisted; the loaded network resumes
        training with zeroed Adam moments.

        Raises:
            DeserializationError: If the file is missing or malformed
        """
        return cls.from_records(load_records(path))

    # ------------------------------------------------------------------

    def summary(self):
        """Print model summary."""
        print("\n" + "=" * 60)
        print("Network Summary")
        print("=" * 60)

        total_params = 0
        for i, layer in enumerate(self.layers):
            total_params += layer.n_params
            print(f"{i:3d}. {str(layer):<35} Params: {layer.n_params:,}")

        print("-" * 60)
        print(f"Total trainable parameters: {total_params:,}")
        print("=" * 60 + "\n")

        return total_params

    def __len__(self):
        return len(self.layers)

    def __repr__(self):
        return f"Network(sizes={self.sizes})"
