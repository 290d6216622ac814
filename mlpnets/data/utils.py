"""Deterministic, order-preserving dataset splits."""

from __future__ import annotations

from typing import List, Sequence, Tuple, TypeVar

from ..core.types import Fold, TrainingSet

T = TypeVar("T")


def split_data(
    inputs: Sequence[T],
    targets: Sequence[T],
    validation_split: float = 0.1,
) -> TrainingSet:
    """Hold out the last ``int(n * validation_split)`` examples for validation."""

    if not 0 <= validation_split < 1:
        raise ValueError("validation_split must be in [0, 1)")
    if len(inputs) != len(targets):
        raise ValueError(f"{len(inputs)} inputs but {len(targets)} targets")
    cut = len(inputs) - int(len(inputs) * validation_split)
    return TrainingSet(
        training_inputs=list(inputs[:cut]),
        training_targets=list(targets[:cut]),
        validation_inputs=list(inputs[cut:]),
        validation_targets=list(targets[cut:]),
    )


def holdout(
    inputs: Sequence[T], targets: Sequence[T], test_lines: int
) -> Tuple[List[T], List[T], List[T], List[T]]:
    """Split off the last ``test_lines`` examples as a test set."""

    if test_lines < 0:
        raise ValueError("test_lines must be >= 0")
    cut = max(0, len(inputs) - test_lines)
    return list(inputs[:cut]), list(targets[:cut]), list(inputs[cut:]), list(targets[cut:])


def kfold_partitions(n: int, k: int) -> List[Fold]:
    """Contiguous validation blocks of ``n // k`` examples.

    Examples past ``k * (n // k)`` never validate but train in every fold.
    """

    if k <= 0:
        raise ValueError("k must be positive")
    if k > n:
        raise ValueError(f"Cannot build {k} folds from {n} examples")
    fold_size = n // k
    return [
        Fold(index=i, validation_start=i * fold_size, validation_end=i * fold_size + fold_size, size=n)
        for i in range(k)
    ]


def take(items: Sequence[T], indices: Sequence[int]) -> List[T]:
    return [items[i] for i in indices]


__all__ = ["holdout", "kfold_partitions", "split_data", "take"]
