"""mlpnets public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.activations import ActivationKind, get_activation
from .core.network import Network, build_network
from .storage import DirectoryWeightStore, MemoryWeightStore
from .training.pipelines import run_pipeline, run_safely
from .training.protocols import cross_validate, evaluate, train_early_stopping, train_fixed

__all__ = [
    "ActivationKind",
    "DirectoryWeightStore",
    "MemoryWeightStore",
    "Network",
    "activations",
    "build_network",
    "cross_validate",
    "evaluate",
    "get_activation",
    "run_pipeline",
    "run_safely",
    "train_early_stopping",
    "train_fixed",
    "types",
]
