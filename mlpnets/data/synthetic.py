"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import string

import numpy as np

from .registry import Dataset, register_dataset


@register_dataset("blobs")
def make_blobs(
    n_classes: int = 3,
    n_features: int = 4,
    samples_per_class: int = 40,
    spread: float = 0.3,
    seed: int = 0,
    **_: object,
) -> Dataset:
    """Gaussian clusters around random centres, one target slot per class.

    Examples are interleaved class by class so that every contiguous block
    of ``n_classes`` examples covers all classes.
    """

    if n_classes > len(string.ascii_uppercase):
        raise ValueError(f"At most {len(string.ascii_uppercase)} classes are supported")
    rng = np.random.default_rng(seed)
    centres = rng.uniform(-1.0, 1.0, size=(n_classes, n_features))
    eye = np.eye(n_classes, dtype=np.float64)
    inputs = []
    targets = []
    for _ in range(samples_per_class):
        for cls in range(n_classes):
            point = centres[cls] + spread * rng.standard_normal(n_features)
            inputs.append(point.tolist())
            targets.append(eye[cls].tolist())
    provenance = {
        "type": "blobs",
        "n_classes": n_classes,
        "n_features": n_features,
        "samples_per_class": samples_per_class,
        "spread": spread,
        "seed": seed,
    }
    return Dataset(
        name="blobs",
        inputs=inputs,
        targets=targets,
        alphabet=list(string.ascii_uppercase[:n_classes]),
        provenance=provenance,
    )


@register_dataset("xor")
def make_xor(repeats: int = 1, **_: object) -> Dataset:
    base_inputs = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    base_targets = [[0.0], [1.0], [1.0], [0.0]]
    return Dataset(
        name="xor",
        inputs=[list(x) for _ in range(repeats) for x in base_inputs],
        targets=[list(t) for _ in range(repeats) for t in base_targets],
        provenance={"type": "xor", "repeats": repeats},
    )


__all__ = ["make_blobs", "make_xor"]
