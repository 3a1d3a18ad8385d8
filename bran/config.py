"""
Configuration
=============

Builds networks and optimizers from plain configuration values, such as
the JSON body of a training request or command-line options.

Unknown activation or optimizer tags do not fail by default: they fall back
to ReLU and SGD respectively and a warning is logged. Pass ``strict=True``
to raise ConfigurationError instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .activations import ActivationType
from .exceptions import ConfigurationError
from .network import Network
from .optimizers import SGD, Adam, Optimizer

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION = ActivationType.RELU
DEFAULT_OPTIMIZER = 'SGD'


@dataclass
class LayerSpec:
    input_size: int
    output_size: int
    activation: str = DEFAULT_ACTIVATION.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LayerSpec':
        try:
            return cls(
                input_size=int(data['input_size']),
                output_size=int(data['output_size']),
                activation=data.get('activation', DEFAULT_ACTIVATION.value),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid layer spec {data!r}: {e}") from e


@dataclass
class OptimizerSpec:
    kind: str = DEFAULT_OPTIMIZER
    learning_rate: float = 0.01
    l2_reg: float = 0.0
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OptimizerSpec':
        spec = cls()
        try:
            for field in ('learning_rate', 'l2_reg', 'beta1', 'beta2', 'epsilon'):
                if data.get(field) is not None:
                    setattr(spec, field, float(data[field]))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid optimizer spec {data!r}: {e}") from e
        if data.get('kind', data.get('optimizer')) is not None:
            spec.kind = str(data.get('kind', data.get('optimizer')))
        return spec


def parse_activation(tag, strict: bool = False) -> ActivationType:
    """
    Map an activation tag to ActivationType.

    Unknown tags fall back to ReLU unless strict is set.
    """
    try:
        return ActivationType.parse(tag)
    except KeyError:
        if strict:
            raise ConfigurationError(f"Unknown activation '{tag}'") from None
        logger.warning(f"Unknown activation '{tag}', using {DEFAULT_ACTIVATION.value}")
        return DEFAULT_ACTIVATION


def parse_optimizer_kind(tag, strict: bool = False) -> str:
    """
    Normalize an optimizer tag to 'SGD' or 'Adam'.

    Unknown tags fall back to SGD unless strict is set.
    """
    key = str(tag).strip().lower()
    if key == 'adam':
        return 'Adam'
    if key == 'sgd':
        return 'SGD'
    if strict:
        raise ConfigurationError(f"Unknown optimizer '{tag}'")
    logger.warning(f"Unknown optimizer '{tag}', using {DEFAULT_OPTIMIZER}")
    return DEFAULT_OPTIMIZER


def build_optimizer(spec: OptimizerSpec, strict: bool = False) -> Optimizer:
    """Instantiate the optimizer described by spec."""
    if isinstance(spec, dict):
        spec = OptimizerSpec.from_dict(spec)

    kind = parse_optimizer_kind(spec.kind, strict=strict)
    if kind == 'Adam':
        return Adam(learning_rate=spec.learning_rate, beta1=spec.beta1, beta2=spec.beta2,
                    epsilon=spec.epsilon, l2_reg=spec.l2_reg)
    return SGD(learning_rate=spec.learning_rate, l2_reg=spec.l2_reg)


def build_network(layer_specs: Iterable, strict: bool = False) -> Network:
    """
    Build a network from layer specs (LayerSpec objects or dicts).

    Raises:
        ConfigurationError: If a spec is malformed or, in strict mode,
            names an unknown activation
        DimensionMismatchError: If consecutive layers do not chain
    """
    specs: List[LayerSpec] = [
        s if isinstance(s, LayerSpec) else LayerSpec.from_dict(s)
        for s in layer_specs
    ]
    if not specs:
        raise ConfigurationError("At least one layer is required")

    network = Network()
    for spec in specs:
        network.add_layer(spec.input_size, spec.output_size,
                          parse_activation(spec.activation, strict=strict))
    return network
