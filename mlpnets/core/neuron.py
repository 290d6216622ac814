"""Single neuron with online weight updates."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .activations import ActivationFunction
from .types import Array, Vector


class Neuron:
    """Weight vector, bias and a shared activation function.

    ``activate`` caches the inputs, the pre-activation sum and the output of
    the current example. The cache is consumed and cleared by the matching
    ``update_and_propagate`` call, so each backward step always sees the
    values of the most recent forward step.
    """

    def __init__(self, weights: Vector, bias: float, activation: ActivationFunction) -> None:
        self.weights: Array = np.array(weights, dtype=np.float64)
        self.bias = float(bias)
        self.activation = activation
        self._last_inputs: Optional[Array] = None
        self._last_sum = 0.0
        self._last_output = 0.0

    def __len__(self) -> int:
        return int(self.weights.shape[0])

    def activate(self, inputs: Vector) -> float:
        x = np.array(inputs, dtype=np.float64)
        if x.shape != self.weights.shape:
            raise ValueError(
                f"Neuron expects {self.weights.shape[0]} inputs, got {x.shape[0] if x.ndim else 0}"
            )
        total = float(np.dot(x, self.weights)) + self.bias
        output = float(self.activation.apply(total))
        self._last_inputs = x
        self._last_sum = total
        self._last_output = output
        return output

    def update_and_propagate(self, output_error: float, learning_rate: float) -> Array:
        """Apply the delta rule and return this neuron's share of the input error."""

        if self._last_inputs is None:
            raise RuntimeError("update_and_propagate called without a preceding activate")
        cached = self._last_output if self.activation.derivative_input == "output" else self._last_sum
        delta = float(output_error) * float(self.activation.derivative(cached))
        # Propagated error uses the weights from the forward pass.
        contribution = self.weights * delta
        self.weights = self.weights + learning_rate * delta * self._last_inputs
        self.bias += learning_rate * delta
        self._last_inputs = None
        return contribution

    def snapshot(self) -> Tuple[Array, float]:
        return self.weights.copy(), self.bias

    def assign(self, weights: Vector, bias: float) -> None:
        values = np.array(weights, dtype=np.float64)
        if values.shape != self.weights.shape:
            raise ValueError(
                f"Stored weight vector has {values.size} values, neuron has {self.weights.size}"
            )
        self.weights = values
        self.bias = float(bias)


__all__ = ["Neuron"]
