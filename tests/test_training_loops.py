from __future__ import annotations

import numpy as np
import pytest

from mlpnets.core.network import build_network
from mlpnets.data import get_dataset, split_data
from mlpnets.storage import MemoryWeightStore
from mlpnets.training.callbacks import HistoryCapture, LogProgress
from mlpnets.training.protocols import evaluate, train_early_stopping, train_fixed


@pytest.fixture
def blobs():
    return get_dataset("blobs", n_classes=3, n_features=4, samples_per_class=20, spread=0.2, seed=1)


def test_training_reduces_mse_on_blobs(blobs):
    network = build_network(blobs.n_inputs, 8, blobs.n_outputs, "sigmoid", seed=0)
    capture = HistoryCapture()

    result = train_fixed(network, blobs.inputs, blobs.targets, 150, 0.5, callbacks=[capture])

    history = [mse for _, mse in capture.history]
    assert len(history) == 150
    assert result.history == history
    assert history[-1] < 0.6 * history[0]
    assert np.mean(history[-10:]) < np.mean(history[:10])
    rises = sum(1 for before, after in zip(history, history[1:]) if after > before)
    assert rises <= len(history) // 10


def test_callbacks_accept_callables_and_offsets():
    seen = []

    class _Silent:
        pass

    network = build_network(2, 2, 1, "tanh", seed=0)
    network.train(
        [[0.0, 1.0], [1.0, 0.0]],
        [[1.0], [0.0]],
        3,
        0.1,
        epoch_offset=10,
        callbacks=[lambda epoch, mse: seen.append((epoch, mse)), _Silent(), LogProgress(every=2)],
    )

    assert [epoch for epoch, _ in seen] == [11, 12, 13]
    assert all(np.isfinite(mse) for _, mse in seen)


def test_train_rejects_mismatched_examples():
    network = build_network(2, 2, 1, "sigmoid", seed=0)
    with pytest.raises(ValueError):
        network.train([[0.0, 1.0]], [], 1, 0.1)
    with pytest.raises(ValueError):
        network.train([[0.0, 1.0]], [[1.0, 0.0]], 1, 0.1)


def test_early_stopping_monitors_validation_tail(blobs):
    network = build_network(blobs.n_inputs, 6, blobs.n_outputs, "sigmoid", seed=2)
    store = MemoryWeightStore()
    capture = HistoryCapture()

    result = train_early_stopping(
        network,
        blobs.inputs,
        blobs.targets,
        200,
        0.3,
        5,
        min_delta=1.0,
        validation_split=0.2,
        callbacks=[capture],
        store=store,
    )

    # Only the first epoch can beat a delta of 1.0.
    assert result.best_epoch == 1
    assert result.stopped_early_at == 6
    assert result.epochs_run == 6
    assert capture.early_stop_epoch == 6
    assert len(result.history) == 6
    assert result.best_mse == result.history[0]

    sets = split_data(blobs.inputs, blobs.targets, 0.2)
    network.restore(store.load("early_stopping"))
    validation_mse = network.test(sets.validation_inputs, sets.validation_targets)
    assert validation_mse == pytest.approx(result.best_mse)


def test_evaluate_builds_classification_report(blobs):
    network = build_network(blobs.n_inputs, 8, blobs.n_outputs, "tanh", seed=3)
    network.train(blobs.inputs, blobs.targets, 60, 0.1)

    evaluation = evaluate(network, blobs.inputs, blobs.targets, blobs.alphabet)

    assert evaluation.report is not None
    assert evaluation.report.matrix.sum() == len(blobs)
    assert evaluation.report.accuracy > 0.6
    assert evaluation.true_labels[:3] == ["A", "B", "C"]
    assert evaluation.mse == pytest.approx(network.test(blobs.inputs, blobs.targets))

    regression = evaluate(network, blobs.inputs, blobs.targets)
    assert regression.report is None
    assert regression.predicted_labels == []
