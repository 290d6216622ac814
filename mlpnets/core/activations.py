"""Activation functions and their weight initialisation schemes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .types import Array

CLAMP = 20.0

ScalarFn = Callable[[float], float]
InitFn = Callable[[np.random.Generator, int], Array]


class ActivationKind(enum.Enum):
    SIGMOID = "sigmoid"
    RELU = "relu"
    TANH = "tanh"
    SWISH = "swish"
    SOFTPLUS = "softplus"


def _clamp(x):
    return np.clip(x, -CLAMP, CLAMP)


def sigmoid(x):
    return 1.0 / (1.0 + np.exp(-_clamp(x)))


def sigmoid_deriv(output):
    """Derivative of the sigmoid expressed through its output."""

    return output * (1.0 - output)


def tanh(x):
    return np.tanh(x)


def tanh_deriv(output):
    """Derivative of tanh expressed through its output."""

    return 1.0 - output * output


def relu(x):
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def relu_deriv(z):
    return (np.asarray(z) > 0).astype(np.float64)


def swish(x):
    # Linear tail above CLAMP, as for softplus.
    clamped = _clamp(x)
    return clamped * sigmoid(clamped) + np.maximum(x - clamped, 0.0)


def swish_deriv(z):
    clamped = _clamp(z)
    s = sigmoid(clamped)
    return s + clamped * s * (1.0 - s)


def softplus(x):
    # Exact for |x| <= CLAMP; linear tail beyond it.
    clamped = _clamp(x)
    return np.log1p(np.exp(clamped)) + np.maximum(x - clamped, 0.0)


def softplus_deriv(z):
    return sigmoid(z)


def uniform_init(rng: np.random.Generator, n_inputs: int) -> Array:
    return rng.random(n_inputs) * 0.1 - 0.05


def he_normal_init(rng: np.random.Generator, n_inputs: int) -> Array:
    return rng.standard_normal(n_inputs) * np.sqrt(2.0 / n_inputs)


@dataclass(frozen=True)
class ActivationFunction:
    """Named activation with the derivative matching the neuron's cache.

    ``derivative_input`` tells the neuron which cached value feeds
    ``derivative``: the last ``"output"`` or the last pre-activation ``"sum"``.
    """

    kind: ActivationKind
    apply: ScalarFn
    derivative: ScalarFn
    derivative_input: str
    init: InitFn = uniform_init

    @property
    def name(self) -> str:
        return self.kind.value

    def __call__(self, x):
        return self.apply(x)


REGISTRY: Dict[ActivationKind, ActivationFunction] = {
    ActivationKind.SIGMOID: ActivationFunction(
        ActivationKind.SIGMOID, sigmoid, sigmoid_deriv, "output"
    ),
    ActivationKind.RELU: ActivationFunction(
        ActivationKind.RELU, relu, relu_deriv, "sum", init=he_normal_init
    ),
    ActivationKind.TANH: ActivationFunction(ActivationKind.TANH, tanh, tanh_deriv, "output"),
    ActivationKind.SWISH: ActivationFunction(ActivationKind.SWISH, swish, swish_deriv, "sum"),
    ActivationKind.SOFTPLUS: ActivationFunction(
        ActivationKind.SOFTPLUS, softplus, softplus_deriv, "sum"
    ),
}


def available() -> Iterable[str]:
    return [kind.value for kind in REGISTRY]


def get_activation(name: str | ActivationKind | ActivationFunction) -> ActivationFunction:
    """Resolve ``name`` to a registered :class:`ActivationFunction`."""

    if isinstance(name, ActivationFunction):
        return name
    if isinstance(name, ActivationKind):
        return REGISTRY[name]
    try:
        return REGISTRY[ActivationKind(str(name).strip().lower())]
    except ValueError as exc:
        options = ", ".join(available())
        raise KeyError(f"Unknown activation {name!r}. Available activations: {options}") from exc


__all__ = [
    "ActivationFunction",
    "ActivationKind",
    "REGISTRY",
    "available",
    "get_activation",
    "relu",
    "sigmoid",
    "softplus",
    "swish",
    "tanh",
]
