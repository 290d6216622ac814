import numpy as np
import pytest

from mlpnets.training.metrics import (
    accuracy,
    argmax_decode,
    classification_report,
    confusion_matrix,
    decode_labels,
    f1_score,
    mean_squared_error,
    population_std,
    precision,
    recall,
)


def test_confusion_matrix_example():
    matrix = confusion_matrix(["A", "B", "A"], ["A", "A", "A"], ["A", "B"])
    assert matrix.tolist() == [[2, 0], [1, 0]]
    assert accuracy(matrix) == pytest.approx(2 / 3)
    assert precision(matrix) == pytest.approx(2 / 3)
    assert recall(matrix) == pytest.approx(0.5)
    assert f1_score(matrix) == pytest.approx(2 * (2 / 3) * 0.5 / (2 / 3 + 0.5))


def test_confusion_matrix_skips_unknown_labels():
    matrix = confusion_matrix(["A", "Z", "B", "?"], ["A", "A", "?", "B"], ["A", "B"])
    assert matrix.tolist() == [[1, 0], [0, 0]]


def test_empty_matrix_metrics_are_zero():
    matrix = np.zeros((3, 3), dtype=np.int64)
    assert accuracy(matrix) == 0.0
    assert precision(matrix) == 0.0
    assert recall(matrix) == 0.0
    assert f1_score(matrix) == 0.0


def test_classification_report_bundle():
    report = classification_report(["A", "B", "B"], ["A", "B", "A"], ["A", "B"])
    payload = report.as_dict()
    assert payload["confusion_matrix"] == [[1, 0], [1, 1]]
    assert payload["accuracy"] == pytest.approx(2 / 3)
    assert payload["precision"] == pytest.approx((0.5 + 1.0) / 2)
    assert payload["recall"] == pytest.approx((1.0 + 0.5) / 2)


def test_mse_contracts():
    targets = [[1.0, 0.0], [0.5, 0.25]]
    assert mean_squared_error(targets, targets) == 0.0
    assert mean_squared_error([[1.0, 0.0]], [[0.0, 0.0]]) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        mean_squared_error(targets, targets[:1])
    with pytest.raises(ValueError):
        mean_squared_error([[1.0, 0.0]], [[1.0]])


def test_population_std():
    assert population_std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert population_std([]) == 0.0
    assert population_std([3.0]) == 0.0


def test_argmax_tie_breaks_to_first_index():
    assert argmax_decode([0.5, 0.5]) == 0
    assert argmax_decode([0.1, 0.7, 0.7]) == 1


def test_decode_labels_out_of_alphabet():
    assert decode_labels([[0.9, 0.1], [0.0, 0.2, 0.8]], ["A", "B"]) == ["A", "?"]
