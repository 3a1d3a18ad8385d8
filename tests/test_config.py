"""
Tests for Configuration
=======================
"""

import logging

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bran.activations import ActivationType
from bran.config import (LayerSpec, OptimizerSpec, build_network, build_optimizer,
                         parse_activation, parse_optimizer_kind)
from bran.exceptions import ConfigurationError, DimensionMismatchError
from bran.optimizers import SGD, Adam


class TestActivationTags:

    def test_known_tag(self):
        assert parse_activation('tanh') is ActivationType.TANH

    def test_unknown_falls_back_to_relu(self, caplog):
        with caplog.at_level(logging.WARNING):
            tag = parse_activation('softplus')

        assert tag is ActivationType.RELU
        assert 'softplus' in caplog.text

    def test_unknown_strict(self):
        with pytest.raises(ConfigurationError):
            parse_activation('softplus', strict=True)


class TestOptimizerTags:

    @pytest.mark.parametrize('tag,expected', [('adam', 'Adam'), ('ADAM', 'Adam'), ('sgd', 'SGD')])
    def test_known_tag(self, tag, expected):
        assert parse_optimizer_kind(tag) == expected

    def test_unknown_falls_back_to_sgd(self, caplog):
        with caplog.at_level(logging.WARNING):
            kind = parse_optimizer_kind('lbfgs')

        assert kind == 'SGD'
        assert 'lbfgs' in caplog.text

    def test_unknown_strict(self):
        with pytest.raises(ConfigurationError):
            parse_optimizer_kind('lbfgs', strict=True)


class TestBuildOptimizer:

    def test_defaults_to_sgd(self):
        optimizer = build_optimizer(OptimizerSpec())
        assert isinstance(optimizer, SGD)
        assert optimizer.learning_rate == 0.01

    def test_from_dict(self):
        optimizer = build_optimizer({'optimizer': 'adam', 'learning_rate': 0.05, 'l2_reg': 0.001})

        assert isinstance(optimizer, Adam)
        assert optimizer.learning_rate == 0.05
        assert optimizer.l2_reg == 0.001

    def test_kind_key(self):
        spec = OptimizerSpec.from_dict({'kind': 'Adam', 'beta1': 0.8})
        assert spec.kind == 'Adam'
        assert build_optimizer(spec).beta1 == 0.8

    def test_bad_number(self):
        with pytest.raises(ConfigurationError):
            OptimizerSpec.from_dict({'learning_rate': 'fast'})


class TestBuildNetwork:

    def test_from_dicts(self):
        network = build_network([
            {'input_size': 2, 'output_size': 4, 'activation': 'tanh'},
            {'input_size': 4, 'output_size': 1, 'activation': 'sigmoid'},
        ])

        assert network.sizes == [2, 4, 1]
        assert network.layers[0].activation_type is ActivationType.TANH
        assert network.layers[1].activation_type is ActivationType.SIGMOID

    def test_from_layer_specs(self):
        network = build_network([LayerSpec(3, 2)])
        assert network.layers[0].activation_type is ActivationType.RELU

    def test_unknown_activation_lenient(self):
        network = build_network([{'input_size': 2, 'output_size': 2, 'activation': 'gelu'}])
        assert network.layers[0].activation_type is ActivationType.RELU

    def test_unknown_activation_strict(self):
        with pytest.raises(ConfigurationError):
            build_network([{'input_size': 2, 'output_size': 2, 'activation': 'gelu'}], strict=True)

    def test_missing_field(self):
        with pytest.raises(ConfigurationError):
            build_network([{'input_size': 2}])

    def test_empty(self):
        with pytest.raises(ConfigurationError):
            build_network([])

    def test_layers_must_chain(self):
        with pytest.raises(DimensionMismatchError):
            build_network([LayerSpec(2, 3), LayerSpec(4, 1)])


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
