"""Training protocols, metrics and pipelines."""

from .protocols import cross_validate, evaluate, train_early_stopping, train_fixed

__all__ = ["cross_validate", "evaluate", "train_early_stopping", "train_fixed"]
