"""Line-oriented weight files and the snapshot store port.

Each neuron occupies two lines: its comma-separated weights, then its bias.
A layer file therefore holds ``2 * neuron_count`` lines and carries no
header, so file and network topology must agree exactly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

import numpy as np
import structlog

from .core.types import LayerSnapshot, WeightSnapshot

logger = structlog.get_logger(__name__)

LAYER_NAMES = ("hidden", "output")


def _format(value: float) -> str:
    return repr(float(value))


def write_layer_weights(path: str | Path, snapshot: LayerSnapshot) -> Path:
    """Write ``snapshot`` to ``path`` in the two-lines-per-neuron format."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = []
    for weights, bias in snapshot:
        lines.append(",".join(_format(w) for w in weights))
        lines.append(_format(bias))
    with path.open("w", encoding="utf-8") as handle:
        handle.write("".join(line + "\n" for line in lines))
    return path


def read_layer_weights(path: str | Path) -> LayerSnapshot:
    """Parse a layer file written by :func:`write_layer_weights`."""

    path = Path(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    if len(lines) % 2:
        raise ValueError(f"{path} holds {len(lines)} lines; expected weight/bias pairs")
    snapshot: LayerSnapshot = []
    for idx in range(0, len(lines), 2):
        try:
            weights = np.array([float(v) for v in lines[idx].split(",")], dtype=np.float64)
            bias = float(lines[idx + 1])
        except ValueError as exc:
            raise ValueError(f"{path}:{idx + 1}: malformed weight record") from exc
        snapshot.append((weights, bias))
    return snapshot


def write_snapshot(snapshot: WeightSnapshot, paths: Sequence[str | Path]) -> None:
    if len(paths) != len(snapshot):
        raise ValueError(f"Snapshot has {len(snapshot)} layers but {len(paths)} files were given")
    for layer, path in zip(snapshot, paths):
        write_layer_weights(path, layer)


def read_snapshot(paths: Sequence[str | Path]) -> WeightSnapshot:
    return tuple(read_layer_weights(path) for path in paths)


class WeightStore(Protocol):
    """Destination-addressed persistence for weight snapshots."""

    def save(self, destination: str, snapshot: WeightSnapshot) -> None:
        ...

    def load(self, destination: str) -> WeightSnapshot:
        ...


class DirectoryWeightStore:
    """Store snapshots as ``<destination>_<layer>_weights.txt`` files."""

    def __init__(self, root: str | Path, layer_names: Sequence[str] = LAYER_NAMES) -> None:
        self.root = Path(root)
        self.layer_names = tuple(layer_names)

    def paths(self, destination: str) -> list[Path]:
        return [self.root / f"{destination}_{name}_weights.txt" for name in self.layer_names]

    def exists(self, destination: str) -> bool:
        return all(path.exists() for path in self.paths(destination))

    def save(self, destination: str, snapshot: WeightSnapshot) -> None:
        paths = self.paths(destination)
        write_snapshot(snapshot, paths)
        logger.info("weights_saved", destination=destination, root=str(self.root))

    def load(self, destination: str) -> WeightSnapshot:
        paths = self.paths(destination)
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            raise FileNotFoundError(f"No weights stored for {destination!r}: {', '.join(missing)}")
        return read_snapshot(paths)


class MemoryWeightStore:
    """In-memory store, mainly for tests and sweeps."""

    def __init__(self) -> None:
        self.saved: dict[str, WeightSnapshot] = {}

    def save(self, destination: str, snapshot: WeightSnapshot) -> None:
        self.saved[destination] = tuple(
            [(np.array(w, copy=True), float(b)) for w, b in layer] for layer in snapshot
        )

    def load(self, destination: str) -> WeightSnapshot:
        try:
            return self.saved[destination]
        except KeyError as exc:
            raise FileNotFoundError(f"No weights stored for {destination!r}") from exc


__all__ = [
    "DirectoryWeightStore",
    "MemoryWeightStore",
    "WeightStore",
    "read_layer_weights",
    "read_snapshot",
    "write_layer_weights",
    "write_snapshot",
]
