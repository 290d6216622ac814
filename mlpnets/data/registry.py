"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterable, List, MutableMapping

from ..core.types import Vector


@dataclass(frozen=True)
class Dataset:
    """Parallel input/target sequences plus the labels of the target slots.

    Attributes
    ----------
    inputs:
        Feature vectors, one per example.
    targets:
        Target vectors, one per example; their length equals the number of
        output neurons the network needs.
    alphabet:
        Class label for each target position, used to decode arg-max
        predictions. Empty for pure regression data.
    provenance:
        Generator parameters, recorded in run manifests.
    """

    name: str
    inputs: List[Vector]
    targets: List[Vector]
    alphabet: List[Hashable] = field(default_factory=list)
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.inputs)

    @property
    def n_inputs(self) -> int:
        return len(self.inputs[0]) if self.inputs else 0

    @property
    def n_outputs(self) -> int:
        return len(self.targets[0]) if self.targets else 0


DatasetFactory = Callable[..., Dataset]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory, directly or as a decorator::

        @register_dataset("blobs")
        def make_blobs(**kwargs):
            ...
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(name: str, **options: Any) -> Dataset:
    """Build the dataset registered under ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    dataset = _REGISTRY[name](**options)
    _validate(dataset)
    return dataset


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate(dataset: Dataset) -> None:
    if len(dataset.inputs) != len(dataset.targets):
        raise ValueError(
            f"Dataset {dataset.name!r} has {len(dataset.inputs)} inputs "
            f"but {len(dataset.targets)} targets"
        )
    if dataset.alphabet and len(dataset.alphabet) != dataset.n_outputs:
        raise ValueError(
            f"Dataset {dataset.name!r} alphabet has {len(dataset.alphabet)} labels "
            f"for {dataset.n_outputs} target values"
        )


__all__ = ["Dataset", "available_datasets", "get_dataset", "register_dataset"]
