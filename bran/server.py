"""
server.py
~~~~~~~~~

Flask REST API for training and querying a network.

Endpoints:
- POST /api/train       build a network from layer specs and train it in the background
- POST /api/test        run predictions with the current network
- GET  /api/stats       per-epoch loss/accuracy of the current or last training run
- POST /api/save_model  save the current network under the model directory
- POST /api/load_model  replace the current network with a saved one

All shared state (current network, training stats, training thread) lives
in a ModelContext handed to create_app. Handlers change it only while
holding the context lock.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from flask import Flask, jsonify, request

from .config import OptimizerSpec, build_network, build_optimizer
from .exceptions import BranError, DeserializationError, DimensionMismatchError
from .losses import get_loss
from .network import Network
from .stats import TrainingStats
from .utils import as_batch

logger = logging.getLogger(__name__)


class TrainingInProgressError(BranError):
    """Raised when a training run is requested while another is active."""


class ModelContext:
    """
    Shared state for the service.

    Args:
        model_dir: Directory that save/load filenames are resolved in
    """

    def __init__(self, model_dir='models'):
        self.model_dir = Path(model_dir)
        self.network: Optional[Network] = None
        self.stats = TrainingStats()
        self.lock = threading.RLock()
        self.last_error: Optional[str] = None
        self._training_thread: Optional[threading.Thread] = None

    @property
    def is_training(self) -> bool:
        thread = self._training_thread
        return thread is not None and thread.is_alive()

    def resolve_path(self, filename: str) -> Path:
        """Path inside model_dir; directory components of filename are dropped."""
        name = Path(str(filename).strip()).name
        if not name:
            raise ValueError("A filename is required")
        return self.model_dir / name

    def start_training(self, network, X, y, epochs, batch_size, loss_fn, optimizer):
        """
        Make network current and train it on a background thread.

        Raises:
            TrainingInProgressError: If a previous run has not finished
        """
        with self.lock:
            if self.is_training:
                raise TrainingInProgressError("A training run is already in progress")

            self.network = network
            self.stats.reset()
            self.last_error = None
            self._training_thread = threading.Thread(
                target=self._train,
                args=(network, X, y, epochs, batch_size, loss_fn, optimizer),
                name='bran-training',
                daemon=True,
            )
            self._training_thread.start()

    def _train(self, network, X, y, epochs, batch_size, loss_fn, optimizer):
        try:
            network.train(X, y, epochs, batch_size, loss_fn, optimizer, stats=self.stats)
            logger.info(f"Training finished after {len(self.stats)} epoch(s)")
        except Exception as e:
            logger.exception(f"Training failed: {e}")
            with self.lock:
                self.last_error = str(e)

    def join(self, timeout=None) -> None:
        """Wait for the current training run, if any."""
        thread = self._training_thread
        if thread is not None:
            thread.join(timeout)


def _error(message: str, status: int):
    return jsonify({'error': message}), status


def _filename_from_request() -> str:
    """Filename from a JSON body {"filename": ...}, a JSON string or raw text."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return str(data.get('filename', ''))
    if isinstance(data, str):
        return data
    return request.get_data(as_text=True)


def create_app(context: Optional[ModelContext] = None, model_dir='models') -> Flask:
    """
    Create the Flask application.

    Args:
        context: Shared ModelContext (a new one if None)
        model_dir: Model directory for a new context

    Returns:
        Flask app; the context is available as app.config['MODEL_CONTEXT']
    """
    ctx = context if context is not None else ModelContext(model_dir)

    app = Flask(__name__)
    app.config['MODEL_CONTEXT'] = ctx

    @app.route('/api/train', methods=['POST'])
    def train():
        data: Dict[str, Any] = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return _error('Request body must be a JSON object', 400)
        try:
            epochs = int(data.get('epochs', 10))
            batch_size = int(data.get('batch_size', 32))
            layer_specs = data.get('layers') or data.get('layer_specs') or []
            network = build_network(layer_specs)
            optimizer = build_optimizer(OptimizerSpec.from_dict(data))
            loss_fn = get_loss(data.get('loss', 'mse'))

            X = as_batch(data['x_train'], 'x_train')
            y = as_batch(data['y_train'], 'y_train')
            if X.shape[1] != network.input_size or y.shape[1] != network.output_size:
                raise DimensionMismatchError(
                    f"Network maps {network.input_size} -> {network.output_size} features, "
                    f"data has {X.shape[1]} -> {y.shape[1]}"
                )
            if len(X) != len(y):
                raise ValueError(f"x_train has {len(X)} samples but y_train has {len(y)}")
            if epochs <= 0 or batch_size <= 0:
                raise ValueError("epochs and batch_size must be positive")
        except KeyError as e:
            return _error(f"Missing field {e}", 400)
        except (TypeError, ValueError) as e:
            return _error(str(e), 400)

        try:
            ctx.start_training(network, X, y, epochs, batch_size, loss_fn, optimizer)
        except TrainingInProgressError as e:
            return _error(str(e), 409)

        logger.info(f"Started training {network!r} with {optimizer!r} on {len(X)} samples")
        return jsonify({'message': 'Training started'}), 202

    @app.route('/api/test', methods=['POST'])
    def test():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return _error('Request body must be a JSON object', 400)
        with ctx.lock:
            network = ctx.network
        if network is None:
            return _error('No model loaded', 400)
        try:
            predictions = network.predict(data['x_test'])
        except KeyError:
            return _error('Missing field x_test', 400)
        except (TypeError, ValueError) as e:
            return _error(str(e), 400)
        return jsonify({'predictions': np.asarray(predictions).tolist()})

    @app.route('/api/stats', methods=['GET'])
    def stats():
        records = ctx.stats.records
        return jsonify({
            'epochs': [r.epoch for r in records],
            'losses': [r.loss for r in records],
            'loss_history': [r.loss for r in records],
            'accuracies': [r.accuracy for r in records],
            'records': [r._asdict() for r in records],
            'training': ctx.is_training,
            'error': ctx.last_error,
        })

    @app.route('/api/save_model', methods=['POST'])
    def save_model():
        try:
            path = ctx.resolve_path(_filename_from_request())
        except ValueError as e:
            return _error(str(e), 400)

        with ctx.lock:
            if ctx.network is None:
                return _error('No model loaded', 400)
            ctx.network.save(path)

        return jsonify({'message': f'Model saved to {path.name}'})

    @app.route('/api/load_model', methods=['POST'])
    def load_model():
        try:
            path = ctx.resolve_path(_filename_from_request())
        except ValueError as e:
            return _error(str(e), 400)

        try:
            network = Network.load(path)
        except DeserializationError as e:
            return _error(f'Could not load model: {e}', 400)

        with ctx.lock:
            if ctx.is_training:
                return _error('Cannot replace the model while training', 409)
            ctx.network = network

        return jsonify({'message': f'Model loaded from {path.name}'})

    return app
