"""
Tests for the Command Line
==========================
"""

import logging

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bran.cli import XOR_INPUTS, main, parse_args, run_xor
from bran.network import Network


class TestParseArgs:

    def test_xor_defaults(self):
        args = parse_args(['xor'])

        assert args.mode == 'xor'
        assert args.model == 'model.npz'
        assert args.epochs == 5000
        assert args.learning_rate == 0.1
        assert args.seed is None

    def test_serve_options(self):
        args = parse_args(['serve', '--port', '8080', '--model-dir', 'out'])

        assert args.mode == 'serve'
        assert args.port == 8080
        assert args.model_dir == 'out'

    def test_mode_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestXor:

    def test_creates_model(self, tmp_path, capsys):
        np.random.seed(0)
        model_path = tmp_path / 'xor.npz'

        stats = run_xor(model_path, epochs=5, learning_rate=0.1)

        assert model_path.exists()
        assert len(stats) == 5
        assert 'Final results' in capsys.readouterr().out
        assert Network.load(model_path).sizes == [2, 8, 1]

    def test_seed_makes_runs_repeatable(self, tmp_path):
        first, second = tmp_path / 'a.npz', tmp_path / 'b.npz'

        main(['xor', '--model', str(first), '--epochs', '3', '--seed', '7'])
        main(['xor', '--model', str(second), '--epochs', '3', '--seed', '7'])

        for a, b in zip(Network.load(first).layers, Network.load(second).layers):
            np.testing.assert_array_equal(a.weights, b.weights)
            np.testing.assert_array_equal(a.biases, b.biases)

    def test_resumes_saved_model(self, tmp_path, caplog):
        model_path = tmp_path / 'xor.npz'
        run_xor(model_path, epochs=2, learning_rate=0.1)
        before = Network.load(model_path).predict(XOR_INPUTS)

        with caplog.at_level(logging.INFO):
            main(['xor', '--model', str(model_path), '--epochs', '3'])

        assert 'Loading saved model' in caplog.text
        after = Network.load(model_path).predict(XOR_INPUTS)
        assert not np.allclose(before, after)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
