"""
Model Persistence
=================

Reading and writing trained network parameters.

A saved model is the ordered list of layer records, each reduced to its
weights, biases and activation tag. Activation callables and optimizer
moment buffers are not written. Loading is therefore two phases:

1. load_records: plain-data deserialization producing inert LayerRecord
   objects, validated as a whole (nothing is returned on any error)
2. rehydration: DenseLayer.from_record rebuilds each activation callable
   and fresh zeroed moment buffers (see Network.from_records)

Because moment buffers are not saved, training resumed after a load starts
Adam from zero moment state.

Formats are chosen by file suffix:
- .json: {"layers": [{"weights": [[...]], "biases": [...], "activation": "ReLU"}]}
- anything else: NumPy .npz archive with n_layers and layer_{i}_* entries
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, List

import numpy as np

from .activations import ActivationType
from .exceptions import DeserializationError
from .layers import LayerRecord

# Configure module logger
logger = logging.getLogger(__name__)


class NetworkEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles numpy arrays and activation tags."""

    def default(self, obj: Any) -> Any:
        """
        Convert numpy arrays to lists and tags to their names.

        Args:
            obj: Object to serialize

        Returns:
            JSON-serializable representation
        """
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.generic):
            return obj.item()
        if isinstance(obj, ActivationType):
            return obj.value
        return super().default(obj)


def _is_json(path: Path) -> bool:
    return path.suffix.lower() == '.json'


def save_records(records: List[LayerRecord], path) -> Path:
    """
    Write layer records to disk.

    Args:
        records: Ordered layer records
        path: Destination file; a .json suffix selects JSON, otherwise .npz

    Returns:
        The path written
    """
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True)

    if _is_json(path):
        document = {
            'layers': [
                {
                    'weights': record.weights,
                    'biases': record.biases,
                    'activation': record.activation,
                }
                for record in records
            ]
        }
        with open(path, 'w') as f:
            json.dump(document, f, cls=NetworkEncoder)
    else:
        arrays = {'n_layers': np.array(len(records))}
        for i, record in enumerate(records):
            arrays[f'layer_{i}_weights'] = np.ascontiguousarray(record.weights, dtype=np.float64)
            arrays[f'layer_{i}_biases'] = np.ascontiguousarray(record.biases, dtype=np.float64)
            arrays[f'layer_{i}_activation'] = np.array(ActivationType.parse(record.activation).value)
        # Pass a file object so numpy does not append .npz to the name
        with open(path, 'wb') as f:
            np.savez(f, **arrays)

    logger.info(f"Saved {len(records)} layer(s) to {path}")
    return path


def _read_json(path: Path) -> List[tuple]:
    with open(path, 'r') as f:
        document = json.load(f)

    if not isinstance(document, dict) or not isinstance(document.get('layers'), list):
        raise DeserializationError(f"{path}: expected an object with a 'layers' list")

    return [
        (layer['weights'], layer['biases'], layer['activation'])
        for layer in document['layers']
    ]


def _read_npz(path: Path) -> List[tuple]:
    with np.load(path, allow_pickle=False) as data:
        n_layers = int(data['n_layers'])
        return [
            (
                data[f'layer_{i}_weights'],
                data[f'layer_{i}_biases'],
                data[f'layer_{i}_activation'].item(),
            )
            for i in range(n_layers)
        ]


def _to_record(index: int, weights, biases, activation) -> LayerRecord:
    weights = np.array(weights, dtype=np.float64)
    biases = np.array(biases, dtype=np.float64)

    if weights.ndim != 2 or weights.size == 0:
        raise DeserializationError(f"Layer {index}: weights must be a non-empty 2D matrix, got shape {weights.shape}")
    if biases.shape != (weights.shape[0],):
        raise DeserializationError(
            f"Layer {index}: expected {weights.shape[0]} biases, got shape {biases.shape}"
        )
    try:
        tag = ActivationType.parse(activation)
    except KeyError:
        raise DeserializationError(f"Layer {index}: unknown activation '{activation}'") from None

    return LayerRecord(weights=weights, biases=biases, activation=tag)


def load_records(path) -> List[LayerRecord]:
    """
    Read layer records from disk without building any layers.

    Args:
        path: File written by save_records

    Returns:
        Ordered list of LayerRecord

    Raises:
        DeserializationError: If the file is missing, malformed, truncated
            or describes layers that do not chain
    """
    path = Path(path)
    try:
        raw = _read_json(path) if _is_json(path) else _read_npz(path)
        records = [_to_record(i, *layer) for i, layer in enumerate(raw)]
    except DeserializationError:
        raise
    except (OSError, EOFError, ValueError, KeyError, TypeError, zipfile.BadZipFile) as e:
        logger.error(f"Could not read model file {path}: {e}")
        raise DeserializationError(f"Could not read model file {path}: {e}") from e

    for i in range(len(records) - 1):
        out_size = records[i].weights.shape[0]
        in_size = records[i + 1].weights.shape[1]
        if out_size != in_size:
            raise DeserializationError(
                f"Layer {i} outputs {out_size} features but layer {i + 1} expects {in_size}"
            )

    logger.info(f"Loaded {len(records)} layer record(s) from {path}")
    return records
