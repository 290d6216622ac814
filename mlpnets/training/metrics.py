"""Evaluation metrics for trained networks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, List, Sequence

import numpy as np

from ..core.losses import mean_squared_error
from ..core.types import Array, Vector


@dataclass(frozen=True)
class ClassificationReport:
    alphabet: List[Hashable]
    matrix: Array
    accuracy: float
    precision: float
    recall: float
    f1: float

    def as_dict(self) -> Dict[str, object]:
        return {
            "alphabet": [str(label) for label in self.alphabet],
            "confusion_matrix": self.matrix.tolist(),
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
        }


def confusion_matrix(
    true_labels: Sequence[Hashable],
    predicted_labels: Sequence[Hashable],
    alphabet: Sequence[Hashable],
) -> Array:
    """Count (true, predicted) pairs; labels outside ``alphabet`` are skipped."""

    index = {label: idx for idx, label in enumerate(alphabet)}
    matrix = np.zeros((len(alphabet), len(alphabet)), dtype=np.int64)
    for true_label, predicted_label in zip(true_labels, predicted_labels):
        t = index.get(true_label)
        p = index.get(predicted_label)
        if t is None or p is None:
            continue
        matrix[t, p] += 1
    return matrix


def accuracy(matrix: Array) -> float:
    total = int(np.sum(matrix))
    if total == 0:
        return 0.0
    return float(np.trace(matrix)) / total


def _mean_ratio(tp: Array, denominators: Array) -> float:
    mask = denominators > 0
    if not np.any(mask):
        return 0.0
    return float(np.mean(tp[mask] / denominators[mask]))


def precision(matrix: Array) -> float:
    """Macro precision over the classes that were predicted at least once."""

    m = np.asarray(matrix, dtype=np.float64)
    return _mean_ratio(np.diag(m), m.sum(axis=0))


def recall(matrix: Array) -> float:
    """Macro recall over the classes that occur at least once."""

    m = np.asarray(matrix, dtype=np.float64)
    return _mean_ratio(np.diag(m), m.sum(axis=1))


def f1_score(matrix: Array) -> float:
    p = precision(matrix)
    r = recall(matrix)
    if p + r == 0:
        return 0.0
    return 2 * p * r / (p + r)


def population_std(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


def argmax_decode(output: Vector) -> int:
    # np.argmax returns the first index on ties.
    return int(np.argmax(np.asarray(output, dtype=np.float64)))


def decode_labels(outputs: Sequence[Vector], alphabet: Sequence[Hashable]) -> List[Hashable]:
    labels: List[Hashable] = []
    for output in outputs:
        idx = argmax_decode(output)
        labels.append(alphabet[idx] if idx < len(alphabet) else "?")
    return labels


def classification_report(
    true_labels: Sequence[Hashable],
    predicted_labels: Sequence[Hashable],
    alphabet: Sequence[Hashable],
) -> ClassificationReport:
    matrix = confusion_matrix(true_labels, predicted_labels, alphabet)
    return ClassificationReport(
        alphabet=list(alphabet),
        matrix=matrix,
        accuracy=accuracy(matrix),
        precision=precision(matrix),
        recall=recall(matrix),
        f1=f1_score(matrix),
    )


__all__ = [
    "ClassificationReport",
    "accuracy",
    "argmax_decode",
    "classification_report",
    "confusion_matrix",
    "decode_labels",
    "f1_score",
    "mean_squared_error",
    "population_std",
    "precision",
    "recall",
]
