"""Fully connected layer built from independent neurons."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .activations import ActivationFunction
from .neuron import Neuron
from .types import Array, LayerSnapshot, Vector


class Layer:
    """Ordered neurons sharing the same inputs."""

    def __init__(self, neurons: Sequence[Neuron], input_size: int) -> None:
        for idx, neuron in enumerate(neurons):
            if len(neuron) != input_size:
                raise ValueError(
                    f"Neuron {idx} has {len(neuron)} weights but the layer input size is {input_size}"
                )
        self.neurons: List[Neuron] = list(neurons)
        self.input_size = int(input_size)

    @property
    def size(self) -> int:
        return len(self.neurons)

    def forward(self, inputs: Vector) -> Array:
        return np.array([neuron.activate(inputs) for neuron in self.neurons], dtype=np.float64)

    def backpropagate(self, output_errors: Vector, learning_rate: float) -> Array:
        if len(output_errors) != len(self.neurons):
            raise ValueError(
                f"Expected {len(self.neurons)} output errors, got {len(output_errors)}"
            )
        input_errors = np.zeros(self.input_size, dtype=np.float64)
        for neuron, error in zip(self.neurons, output_errors):
            input_errors += neuron.update_and_propagate(error, learning_rate)
        return input_errors

    def snapshot(self) -> LayerSnapshot:
        return [neuron.snapshot() for neuron in self.neurons]

    def restore(self, snapshot: LayerSnapshot) -> None:
        if len(snapshot) != len(self.neurons):
            raise ValueError(
                f"Snapshot holds {len(snapshot)} neurons but the layer has {len(self.neurons)}"
            )
        for neuron, (weights, bias) in zip(self.neurons, snapshot):
            neuron.assign(weights, bias)


def build_layer(
    n_inputs: int,
    n_neurons: int,
    activation: ActivationFunction,
    rng: np.random.Generator,
) -> Layer:
    """Create a layer with weights drawn from ``activation.init``."""

    neurons = [
        Neuron(
            weights=activation.init(rng, n_inputs),
            bias=float(rng.random() * 0.1 - 0.05),
            activation=activation,
        )
        for _ in range(n_neurons)
    ]
    return Layer(neurons, n_inputs)


__all__ = ["Layer", "build_layer"]
