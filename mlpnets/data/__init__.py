"""Dataset registry and split helpers."""

# Ensure built-in datasets register themselves when the package is imported.
from . import synthetic as _synthetic  # noqa: F401
from .registry import Dataset, available_datasets, get_dataset, register_dataset
from .utils import holdout, kfold_partitions, split_data

__all__ = [
    "Dataset",
    "available_datasets",
    "get_dataset",
    "holdout",
    "kfold_partitions",
    "register_dataset",
    "split_data",
]
