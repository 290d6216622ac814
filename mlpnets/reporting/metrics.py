"""Metrics sinks implementing the training observer port."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping

from .artifacts import git_sha


class JsonlSink:
    """Append-only JSONL writer for per-epoch MSE."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed
        self.sha = sha or git_sha()

    def _write(self, record: Mapping[str, object]) -> None:
        payload = {"split": self.split, "seed": self.seed, "sha": self.sha}
        payload.update(record)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def on_epoch(self, epoch: int, mse: float) -> None:
        self._write({"epoch": int(epoch), "mse": float(mse)})

    def on_early_stop(self, epoch: int) -> None:
        self._write({"epoch": int(epoch), "event": "early_stop"})

    __call__ = on_epoch


class CsvSink:
    """Write per-epoch MSE to CSV with a stable schema."""

    fieldnames = ("epoch", "mse", "split")

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def on_epoch(self, epoch: int, mse: float) -> None:
        row = {"epoch": int(epoch), "mse": float(mse), "split": self.split}
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)


__all__ = ["CsvSink", "JsonlSink"]
