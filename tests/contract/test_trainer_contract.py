from __future__ import annotations

from typing import List, Sequence

import numpy as np
import pytest

from mlpnets.core.network import Network, build_network
from mlpnets.data.utils import kfold_partitions
from mlpnets.storage import MemoryWeightStore
from mlpnets.training.callbacks import HistoryCapture
from mlpnets.training.protocols import cross_validate, train_early_stopping, train_fixed


class _ScriptedNetwork(Network):
    """Network whose epochs report scripted MSEs and stamp the epoch into every weight."""

    def __init__(self, layers, losses: Sequence[float]) -> None:
        super().__init__(layers)
        self._losses: List[float] = list(losses)
        self.epochs_seen = 0

    def _run_epoch(self, inputs, targets, learning_rate):
        self.epochs_seen += 1
        for layer in self.layers:
            for neuron in layer.neurons:
                neuron.weights[:] = float(self.epochs_seen)
                neuron.bias = float(self.epochs_seen)
        return self._losses[self.epochs_seen - 1]


def _scripted(losses):
    return _ScriptedNetwork(build_network(2, 3, 1, "sigmoid", seed=0).layers, losses)


def _all_weights(snapshot):
    values = []
    for layer in snapshot:
        for weights, bias in layer:
            values.extend(float(w) for w in weights)
            values.append(float(bias))
    return values


DATA_X = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
DATA_Y = [[0.0], [1.0], [1.0], [0.0]]


def test_early_stopping_persists_best_snapshot():
    network = _scripted([1.0, 0.5, 0.25] + [0.25] * 17)
    store = MemoryWeightStore()
    capture = HistoryCapture()

    result = train_early_stopping(
        network, DATA_X, DATA_Y, 20, 0.1, 2, callbacks=[capture], store=store
    )

    assert result.epochs_run == 5
    assert result.stopped_early_at == 5
    assert result.best_epoch == 3
    assert result.best_mse == pytest.approx(0.25)
    assert [epoch for epoch, _ in capture.history] == [1, 2, 3, 4, 5]
    assert capture.early_stop_epoch == 5
    assert set(_all_weights(store.load("early_stopping"))) == {3.0}


def test_improvements_below_min_delta_count_as_stalls():
    network = _scripted([1.0, 1.0 - 1e-5, 1.0 - 2e-5, 0.5, 0.4])
    result = network.train(
        DATA_X, DATA_Y, 5, 0.1, early_stopping=True, patience=2, min_delta=5e-5
    )
    assert result.stopped_early_at == 3
    assert result.best_epoch == 1


def test_fixed_training_persists_final_weights():
    network = _scripted([0.9, 0.8, 0.95])
    store = MemoryWeightStore()
    capture = HistoryCapture()

    result = train_fixed(network, DATA_X, DATA_Y, 3, 0.1, callbacks=[capture], store=store)

    assert result.epochs_run == 3
    assert result.stopped_early_at is None
    assert result.final_mse == pytest.approx(0.95)
    assert capture.early_stop_epoch is None
    assert set(_all_weights(store.load("normal"))) == {3.0}


def test_kfold_partitions_cover_contiguous_blocks():
    n, k = 23, 5
    folds = kfold_partitions(n, k)
    assert len(folds) == k
    validated = []
    for fold in folds:
        val = list(fold.validation_indices)
        train = fold.training_indices
        assert len(val) == n // k
        assert val == list(range(val[0], val[0] + len(val)))
        assert sorted(val + train) == list(range(n))
        assert not set(val) & set(train)
        validated.extend(val)
    assert sorted(validated) == list(range(k * (n // k)))
    for leftover in range(k * (n // k), n):
        assert all(leftover in fold.training_indices for fold in folds)


@pytest.mark.parametrize("k", [0, -1, 24])
def test_kfold_rejects_bad_fold_counts(k):
    with pytest.raises(ValueError):
        kfold_partitions(23, k)


def test_cross_validation_reports_every_fold():
    rng = np.random.default_rng(4)
    inputs = rng.standard_normal((20, 3)).tolist()
    targets = [[1.0, 0.0] if x[0] > 0 else [0.0, 1.0] for x in inputs]
    store = MemoryWeightStore()
    capture = HistoryCapture()
    factory_rng = np.random.default_rng(8)
    networks = []

    def factory():
        networks.append(build_network(3, 4, 2, "tanh", rng=factory_rng))
        return networks[-1]

    result = cross_validate(
        inputs,
        targets,
        4,
        5,
        0.2,
        factory,
        callbacks=[capture],
        store=store,
    )

    assert [epoch for epoch, _ in capture.history] == list(range(1, 21))
    assert len(result.fold_mses) == 4
    assert result.mean_mse == pytest.approx(np.mean(result.fold_mses))
    assert result.std_mse == pytest.approx(np.std(result.fold_mses))
    assert result.best_mse == min(result.fold_mses)
    assert result.best_fold == result.fold_mses.index(min(result.fold_mses))
    assert len(networks) == 4

    restored = build_network(3, 4, 2, "tanh", seed=123)
    restored.restore(store.load("cross_validation"))
    winner = networks[result.best_fold]
    for x in inputs:
        assert np.array_equal(restored.forward(x), winner.forward(x))
    loser = networks[(result.best_fold + 1) % 4]
    assert not all(np.array_equal(restored.forward(x), loser.forward(x)) for x in inputs)


def test_trained_weights_round_trip_through_files(tmp_path):
    network = build_network(3, 4, 2, "sigmoid", seed=12)
    inputs = [[0.1, 0.2, 0.3], [0.9, 0.1, 0.4], [0.5, 0.5, 0.5]]
    targets = [[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]]
    network.train(inputs, targets, 10, 0.5)
    network.save_weights(tmp_path / "hidden.txt", tmp_path / "output.txt")

    fresh = build_network(3, 4, 2, "sigmoid", seed=99)
    fresh.load_weights(tmp_path / "hidden.txt", tmp_path / "output.txt")
    for x in inputs:
        assert np.allclose(fresh.forward(x), network.forward(x), atol=1e-12)
