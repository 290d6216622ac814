"""Core typing contracts for mlpnets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

Array = np.ndarray
Vector = Sequence[float]

# One ``(weights, bias)`` pair per neuron, in neuron order.
LayerSnapshot = List[Tuple[Array, float]]
# One ``LayerSnapshot`` per layer, in layer order.
WeightSnapshot = Tuple[LayerSnapshot, ...]


class TrainingObserver(Protocol):
    """Progress sink consumed by the training protocols.

    Both hooks are optional; objects missing one of them are skipped.
    """

    def on_epoch(self, epoch: int, mse: float) -> None:
        """Receive the (already offset) epoch number and its MSE."""

    def on_early_stop(self, epoch: int) -> None:
        """Receive the epoch at which early stopping ended the run."""


@dataclass(frozen=True)
class TrainingSet:
    """Training and validation sequences cut from one dataset."""

    training_inputs: List[Vector]
    training_targets: List[Vector]
    validation_inputs: List[Vector]
    validation_targets: List[Vector]


@dataclass(frozen=True)
class Fold:
    """Index ranges of one cross-validation fold."""

    index: int
    validation_start: int
    validation_end: int
    size: int

    @property
    def validation_indices(self) -> range:
        return range(self.validation_start, self.validation_end)

    @property
    def training_indices(self) -> List[int]:
        return list(range(0, self.validation_start)) + list(
            range(self.validation_end, self.size)
        )


@dataclass
class TrainResult:
    """Outcome of :meth:`mlpnets.core.network.Network.train`."""

    epochs_run: int
    final_mse: float
    best_mse: float
    history: List[float] = field(default_factory=list)
    stopped_early_at: Optional[int] = None
    best_epoch: Optional[int] = None
    snapshot: Optional[WeightSnapshot] = field(default=None, repr=False)


@dataclass(frozen=True)
class CrossValidationResult:
    """Summary returned by :func:`mlpnets.training.protocols.cross_validate`."""

    mean_mse: float
    fold_mses: List[float]
    std_mse: float
    best_fold: int
    best_mse: float


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`mlpnets.training.pipelines.run_pipeline`."""

    protocol: str
    epochs_run: int
    mse: float
    metrics_path: str
    manifest_path: str
    weights_dir: str = ""
    test_metrics_path: str = ""
    accuracy: float | None = None
