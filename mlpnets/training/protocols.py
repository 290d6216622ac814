"""Training protocols built on :class:`mlpnets.core.network.Network`."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Hashable, List, Optional, Sequence

import numpy as np
import structlog

from ..core.losses import mean_squared_error
from ..core.network import MIN_DELTA, Network
from ..core.types import CrossValidationResult, TrainResult, Vector, WeightSnapshot
from ..data.utils import kfold_partitions, split_data, take
from ..storage import WeightStore
from .metrics import ClassificationReport, classification_report, decode_labels, population_std

logger = structlog.get_logger(__name__)

NetworkFactory = Callable[[], Network]


def train_fixed(
    network: Network,
    inputs: Sequence[Vector],
    targets: Sequence[Vector],
    epochs: int,
    learning_rate: float,
    *,
    callbacks: Sequence[object] | None = None,
    store: WeightStore | None = None,
    destination: str = "normal",
) -> TrainResult:
    """Train for exactly ``epochs`` epochs and persist the final weights."""

    return network.train(
        inputs,
        targets,
        epochs,
        learning_rate,
        callbacks=callbacks,
        store=store,
        destination=destination,
    )


def train_early_stopping(
    network: Network,
    inputs: Sequence[Vector],
    targets: Sequence[Vector],
    epochs: int,
    learning_rate: float,
    patience: int,
    *,
    min_delta: float = MIN_DELTA,
    validation_split: float = 0.0,
    callbacks: Sequence[object] | None = None,
    store: WeightStore | None = None,
    destination: str = "early_stopping",
) -> TrainResult:
    """Train until the monitored MSE stalls for ``patience`` epochs.

    With a non-zero ``validation_split`` the tail of the data is held out
    and its MSE is monitored instead of the training MSE.
    """

    validation = None
    if validation_split > 0:
        sets = split_data(inputs, targets, validation_split)
        if sets.validation_inputs:
            inputs, targets = sets.training_inputs, sets.training_targets
            validation = (sets.validation_inputs, sets.validation_targets)
    return network.train(
        inputs,
        targets,
        epochs,
        learning_rate,
        early_stopping=True,
        patience=patience,
        min_delta=min_delta,
        callbacks=callbacks,
        store=store,
        destination=destination,
        validation=validation,
    )


def cross_validate(
    inputs: Sequence[Vector],
    targets: Sequence[Vector],
    k: int,
    epochs: int,
    learning_rate: float,
    network_factory: NetworkFactory,
    *,
    callbacks: Sequence[object] | None = None,
    store: WeightStore | None = None,
    destination: str = "cross_validation",
) -> CrossValidationResult:
    """k-fold cross-validation with a fresh network per fold.

    Reported epochs are offset by ``epochs * fold`` so progress reads as one
    continuous run. The snapshot of the fold with the lowest validation MSE
    is persisted once all folds are done.
    """

    if len(inputs) != len(targets):
        raise ValueError(f"{len(inputs)} inputs but {len(targets)} targets")
    fold_mses: List[float] = []
    best_mse = math.inf
    best_fold = -1
    best_snapshot: Optional[WeightSnapshot] = None

    for fold in kfold_partitions(len(inputs), k):
        network = network_factory()
        train_idx = fold.training_indices
        network.train(
            take(inputs, train_idx),
            take(targets, train_idx),
            epochs,
            learning_rate,
            epoch_offset=epochs * fold.index,
            callbacks=callbacks,
        )
        val_idx = fold.validation_indices
        mse = network.test(take(inputs, val_idx), take(targets, val_idx))
        fold_mses.append(mse)
        logger.info("fold_completed", fold=fold.index, validation_mse=mse)
        if mse < best_mse:
            best_mse = mse
            best_fold = fold.index
            best_snapshot = network.snapshot()

    if store is not None and best_snapshot is not None:
        store.save(destination, best_snapshot)

    return CrossValidationResult(
        mean_mse=float(np.mean(fold_mses)),
        fold_mses=fold_mses,
        std_mse=population_std(fold_mses),
        best_fold=best_fold,
        best_mse=best_mse,
    )


@dataclass(frozen=True)
class Evaluation:
    mse: float
    predicted_labels: List[Hashable]
    true_labels: List[Hashable]
    report: Optional[ClassificationReport]


def evaluate(
    network: Network,
    inputs: Sequence[Vector],
    targets: Sequence[Vector],
    alphabet: Sequence[Hashable] = (),
) -> Evaluation:
    """Score ``network`` on held-out data; classification metrics need ``alphabet``."""

    outputs = network.predict(inputs)
    mse = mean_squared_error(targets, outputs)
    if not alphabet:
        return Evaluation(mse=mse, predicted_labels=[], true_labels=[], report=None)
    predicted = decode_labels(outputs, alphabet)
    true = decode_labels(targets, alphabet)
    return Evaluation(
        mse=mse,
        predicted_labels=predicted,
        true_labels=true,
        report=classification_report(true, predicted, alphabet),
    )


__all__ = [
    "Evaluation",
    "NetworkFactory",
    "cross_validate",
    "evaluate",
    "train_early_stopping",
    "train_fixed",
]
