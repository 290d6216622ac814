"""Error functions shared by the network and the training protocols."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .types import Vector


def mean_squared_error(targets: Sequence[Vector], predictions: Sequence[Vector]) -> float:
    """Squared error summed over every scalar, divided by the scalar count."""

    if len(targets) != len(predictions):
        raise ValueError(
            f"targets and predictions differ in length: {len(targets)} != {len(predictions)}"
        )
    total = 0.0
    count = 0
    for idx, (target, prediction) in enumerate(zip(targets, predictions)):
        t = np.asarray(target, dtype=np.float64)
        p = np.asarray(prediction, dtype=np.float64)
        if t.shape != p.shape:
            raise ValueError(
                f"Target {idx} has {t.size} values but its prediction has {p.size}"
            )
        diff = t - p
        total += float(np.dot(diff, diff))
        count += int(t.size)
    if count == 0:
        raise ValueError("mean_squared_error requires at least one target value")
    return total / count


__all__ = ["mean_squared_error"]
