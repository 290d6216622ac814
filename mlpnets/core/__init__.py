"""Core numerical primitives for mlpnets."""

from . import activations, layer, losses, network, neuron, types

__all__ = ["activations", "layer", "losses", "network", "neuron", "types"]
