"""
Command-line entry point.

    python -m bran xor [--model model.npz] [--epochs 5000] [--learning-rate 0.1] [--seed N]
    python -m bran serve [--host 127.0.0.1] [--port 5000] [--model-dir models]
"""

import argparse
import logging
import os
from pathlib import Path

import numpy as np

from .losses import MeanSquaredError
from .network import Network
from .optimizers import SGD
from .utils import set_random_seed

logger = logging.getLogger(__name__)

XOR_INPUTS = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
XOR_TARGETS = np.array([[0.0], [1.0], [1.0], [0.0]])


def configure_logging() -> None:
    """Set up logging from the LOG_LEVEL environment variable (default INFO)."""
    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger('werkzeug').setLevel(logging.WARNING)


def run_xor(model_path, epochs, learning_rate, seed=None):
    """Train (or continue training) a small network on XOR and save it."""
    if seed is not None:
        set_random_seed(seed)

    model_path = Path(model_path)
    if model_path.exists():
        logger.info(f"Loading saved model from {model_path}")
        network = Network.load(model_path)
    else:
        logger.info("Creating a new model")
        network = Network()
        network.add_layer(2, 8, 'relu')
        network.add_layer(8, 1, 'sigmoid')

    stats = network.train(XOR_INPUTS, XOR_TARGETS, epochs=epochs, batch_size=4,
                          loss_fn=MeanSquaredError(), optimizer=SGD(learning_rate))

    print("\nFinal results:")
    for x, y in zip(XOR_INPUTS, network.predict(XOR_INPUTS)):
        print(f"Input: {x.tolist()}, Output: {y[0]:.4f}")

    network.save(model_path)
    print(f"Model saved to '{model_path}'")
    return stats


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog='bran', description='Feed-forward neural network engine')
    sub = p.add_subparsers(dest='mode', required=True)

    xor = sub.add_parser('xor', help='train a network on XOR')
    xor.add_argument('--model', default='model.npz', help='model file to load and save')
    xor.add_argument('--epochs', type=int, default=5000)
    xor.add_argument('--learning-rate', type=float, default=0.1)
    xor.add_argument('--seed', type=int, default=None, help='seed for weight initialisation')

    serve = sub.add_parser('serve', help='run the HTTP API')
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', type=int, default=5000)
    serve.add_argument('--model-dir', default='models')

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging()

    if args.mode == 'xor':
        run_xor(args.model, args.epochs, args.learning_rate, args.seed)
    elif args.mode == 'serve':
        from .server import create_app
        app = create_app(model_dir=args.model_dir)
        app.run(host=args.host, port=args.port, threaded=True)


if __name__ == '__main__':
    main()
