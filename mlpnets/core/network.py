"""Sequential multilayer perceptron trained one example at a time."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..storage import WeightStore, read_snapshot, write_snapshot
from .activations import ActivationFunction, ActivationKind, get_activation
from .layer import Layer, build_layer
from .losses import mean_squared_error
from .types import Array, TrainResult, Vector, WeightSnapshot

logger = structlog.get_logger(__name__)

MIN_DELTA = 5e-5


class Network:
    """Chain of layers; forward runs left to right, backward right to left."""

    def __init__(self, layers: Sequence[Layer]) -> None:
        layers = list(layers)
        if not layers:
            raise ValueError("A network needs at least one layer")
        for idx in range(len(layers) - 1):
            if layers[idx].size != layers[idx + 1].input_size:
                raise ValueError(
                    f"Layer {idx} emits {layers[idx].size} values but layer {idx + 1} "
                    f"expects {layers[idx + 1].input_size}"
                )
        self.layers: List[Layer] = layers

    @property
    def layer_dims(self) -> List[int]:
        return [self.layers[0].input_size] + [layer.size for layer in self.layers]

    def parameter_count(self) -> int:
        return int(sum(layer.size * (layer.input_size + 1) for layer in self.layers))

    # ------------------------------------------------------------------
    # Numerical core

    def forward(self, inputs: Vector) -> Array:
        x = np.asarray(inputs, dtype=np.float64)
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def backpropagate(self, output_error: Vector, learning_rate: float) -> None:
        error = np.asarray(output_error, dtype=np.float64)
        for layer in reversed(self.layers):
            error = layer.backpropagate(error, learning_rate)

    def _run_epoch(
        self, inputs: Sequence[Vector], targets: Sequence[Vector], learning_rate: float
    ) -> float:
        sum_squared = 0.0
        count = 0
        for x, target in zip(inputs, targets):
            output = self.forward(x)
            t = np.asarray(target, dtype=np.float64)
            if t.shape != output.shape:
                raise ValueError(
                    f"Target has {t.size} values but the network emits {output.size}"
                )
            error = t - output
            sum_squared += float(np.dot(error, error))
            count += int(t.size)
            self.backpropagate(error, learning_rate)
        return sum_squared / count if count else 0.0

    # ------------------------------------------------------------------
    # Training protocol

    def train(
        self,
        inputs: Sequence[Vector],
        targets: Sequence[Vector],
        epochs: int,
        learning_rate: float,
        *,
        early_stopping: bool = False,
        patience: int = 50,
        min_delta: float = MIN_DELTA,
        epoch_offset: int = 0,
        callbacks: Sequence[object] | None = None,
        store: WeightStore | None = None,
        destination: str | None = None,
        validation: Tuple[Sequence[Vector], Sequence[Vector]] | None = None,
    ) -> TrainResult:
        """Run up to ``epochs`` ordered passes over ``inputs``/``targets``.

        With ``early_stopping`` the loop ends once the monitored MSE has
        failed to improve by more than ``min_delta`` for ``patience``
        consecutive epochs, and the best snapshot is what gets persisted.
        The monitored MSE is the training MSE, or the validation MSE when
        ``validation`` is supplied.
        """

        if len(inputs) != len(targets):
            raise ValueError(f"{len(inputs)} inputs but {len(targets)} targets")
        callbacks = list(callbacks or [])
        best_mse = math.inf
        best_epoch: Optional[int] = None
        best_snapshot: Optional[WeightSnapshot] = None
        without_improvement = 0
        stopped_at: Optional[int] = None
        history: List[float] = []
        mse = math.inf
        epoch = 0

        for epoch in range(1, epochs + 1):
            mse = self._run_epoch(inputs, targets, learning_rate)
            if validation is not None:
                mse = self.test(*validation)
            history.append(mse)
            _emit_epoch(callbacks, epoch_offset + epoch, mse)
            if not early_stopping:
                continue
            if best_mse - mse > min_delta:
                best_mse = mse
                best_epoch = epoch
                best_snapshot = self.snapshot()
                without_improvement = 0
            else:
                without_improvement += 1
                if without_improvement >= patience:
                    stopped_at = epoch
                    logger.info("early_stop", epoch=epoch, best_epoch=best_epoch, best_mse=best_mse)
                    _emit_early_stop(callbacks, epoch)
                    break

        final = best_snapshot if best_snapshot is not None else self.snapshot()
        if store is not None:
            store.save(destination or ("early_stopping" if early_stopping else "normal"), final)

        return TrainResult(
            epochs_run=epoch,
            final_mse=mse,
            best_mse=best_mse if best_snapshot is not None else min(history, default=mse),
            history=history,
            stopped_early_at=stopped_at,
            best_epoch=best_epoch,
            snapshot=final,
        )

    def test(self, inputs: Sequence[Vector], targets: Sequence[Vector]) -> float:
        return mean_squared_error(targets, self.predict(inputs))

    def predict(self, inputs: Iterable[Vector]) -> List[Array]:
        return [self.forward(x) for x in inputs]

    # ------------------------------------------------------------------
    # Snapshots and weight files

    def snapshot(self) -> WeightSnapshot:
        return tuple(layer.snapshot() for layer in self.layers)

    def restore(self, snapshot: WeightSnapshot) -> None:
        if len(snapshot) != len(self.layers):
            raise ValueError(
                f"Snapshot holds {len(snapshot)} layers but the network has {len(self.layers)}"
            )
        for layer, stored in zip(self.layers, snapshot):
            layer.restore(stored)

    def save_weights(self, hidden_dest: str | Path, output_dest: str | Path) -> None:
        write_snapshot(self.snapshot(), [hidden_dest, output_dest])

    def load_weights(self, hidden_source: str | Path, output_source: str | Path) -> None:
        self.restore(read_snapshot([hidden_source, output_source]))


def _emit_epoch(callbacks: Sequence[object], epoch: int, mse: float) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, mse)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, mse)


def _emit_early_stop(callbacks: Sequence[object], epoch: int) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_early_stop"):
            callback.on_early_stop(epoch)  # type: ignore[attr-defined]


def build_network(
    n_inputs: int,
    n_hidden: int,
    n_outputs: int,
    activation: str | ActivationKind | ActivationFunction = ActivationKind.SIGMOID,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> Network:
    """Create a freshly initialised hidden + output layer network."""

    fn = get_activation(activation)
    rng = rng if rng is not None else np.random.default_rng(seed)
    hidden = build_layer(n_inputs, n_hidden, fn, rng)
    output = build_layer(n_hidden, n_outputs, fn, rng)
    return Network([hidden, output])


__all__ = ["MIN_DELTA", "Network", "build_network"]
