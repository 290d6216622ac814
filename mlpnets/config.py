"""Run configuration: built-in presets, preset files and validation."""

from __future__ import annotations

import hashlib
import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, MutableMapping

from .core.activations import available as available_activations

PROTOCOLS = ("train", "cross_validation", "early_stopping")

_PRESETS: Dict[str, Mapping[str, object]] = {
    "blobs-train": {
        "data": {
            "name": "blobs",
            "options": {"n_classes": 3, "n_features": 4, "samples_per_class": 40, "seed": 0},
            "test_lines": 12,
        },
        "model": {"n_hidden": 8, "activation": "sigmoid"},
        "train": {
            "protocol": "train",
            "epochs": 60,
            "lr": 0.3,
            "seed": 7,
            "run_dir": "runs/blobs-train",
        },
    },
    "blobs-cross-validation": {
        "data": {
            "name": "blobs",
            "options": {"n_classes": 3, "n_features": 4, "samples_per_class": 40, "seed": 0},
            "test_lines": 12,
        },
        "model": {"n_hidden": 8, "activation": "tanh"},
        "train": {
            "protocol": "cross_validation",
            "epochs": 30,
            "lr": 0.1,
            "k": 5,
            "seed": 11,
            "run_dir": "runs/blobs-cross-validation",
        },
    },
    "blobs-early-stopping": {
        "data": {
            "name": "blobs",
            "options": {"n_classes": 3, "n_features": 4, "samples_per_class": 40, "seed": 0},
            "test_lines": 12,
        },
        "model": {"n_hidden": 8, "activation": "sigmoid"},
        "train": {
            "protocol": "early_stopping",
            "epochs": 500,
            "lr": 0.3,
            "patience": 20,
            "validation_split": 0.1,
            "seed": 3,
            "run_dir": "runs/blobs-early-stopping",
        },
    },
    "xor-relu": {
        "data": {"name": "xor", "options": {"repeats": 1}, "test_lines": 0},
        "model": {"n_hidden": 4, "activation": "relu"},
        "train": {
            "protocol": "train",
            "epochs": 500,
            "lr": 0.05,
            "seed": 1,
            "run_dir": "runs/xor-relu",
        },
    },
    "blobs-sweep": {
        "sweep": {
            "lrs": [0.1, 0.3],
            "hidden": [4, 8],
            "activations": ["sigmoid", "tanh"],
            "epochs": [30],
        },
        "data": {
            "name": "blobs",
            "options": {"n_classes": 3, "n_features": 4, "samples_per_class": 40, "seed": 0},
            "test_lines": 12,
        },
        "model": {"n_hidden": 8, "activation": "sigmoid"},
        "train": {"protocol": "train", "epochs": 30, "lr": 0.3, "seed": 5, "run_dir": "runs/sweep"},
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[1] / "configs" / "presets"


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Load a JSON or YAML configuration mapping from ``path``."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    presets: Dict[str, Mapping[str, object]] = {}
    if _PRESET_DIR.exists():
        for file in sorted(_PRESET_DIR.iterdir()):
            if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                continue
            data = read_config_file(file)
            missing = {"data", "model", "train"} - set(data)
            if missing:
                raise KeyError(
                    f"Preset {file.name} is missing required sections: {', '.join(sorted(missing))}"
                )
            presets[file.stem] = json.loads(json.dumps(data))
    return presets


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Dict[str, object]:
    available = presets()
    if name not in available:
        raise KeyError(f"Unknown preset {name!r}. Available presets: {', '.join(sorted(available))}")
    return deepcopy(dict(available[name]))


def merge(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged: MutableMapping[str, object] = deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return dict(merged)


def _normalise(value):  # type: ignore[override]
    if isinstance(value, Mapping):
        return {str(k): _normalise(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalise(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    return value


def config_hash(config: Mapping[str, object]) -> str:
    """Return a stable 12-character hash for ``config``."""

    canonical = json.dumps(_normalise(config), sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:12]


def validate_config(config: Mapping[str, object]) -> None:
    """Check the preconditions the training core relies on."""

    for section in ("data", "model", "train"):
        if not isinstance(config.get(section), Mapping):
            raise ValueError(f"Config section {section!r} is missing or not a mapping")
    model = config["model"]
    train = config["train"]
    data = config["data"]

    if int(model.get("n_hidden", 0)) <= 0:  # type: ignore[union-attr]
        raise ValueError("model.n_hidden must be greater than zero")
    activation = str(model.get("activation", "sigmoid")).strip().lower()  # type: ignore[union-attr]
    if activation not in available_activations():
        raise ValueError(f"Unknown activation {activation!r}")
    for key in ("n_inputs", "n_outputs"):
        if key in model and int(model[key]) <= 0:  # type: ignore[index]
            raise ValueError(f"model.{key} must be greater than zero")

    protocol = str(train.get("protocol", "train"))  # type: ignore[union-attr]
    if protocol not in PROTOCOLS:
        raise ValueError(f"Unknown protocol {protocol!r}; expected one of {PROTOCOLS}")
    if int(train.get("epochs", 0)) <= 0:  # type: ignore[union-attr]
        raise ValueError("train.epochs must be greater than zero")
    if float(train.get("lr", 0.0)) <= 0.0:  # type: ignore[union-attr]
        raise ValueError("train.lr must be greater than zero")
    if protocol == "cross_validation" and int(train.get("k", 0)) < 2:  # type: ignore[union-attr]
        raise ValueError("train.k must be at least 2 for cross validation")
    if protocol == "early_stopping" and int(train.get("patience", 0)) <= 0:  # type: ignore[union-attr]
        raise ValueError("train.patience must be greater than zero")
    split = float(train.get("validation_split", 0.0))  # type: ignore[union-attr]
    if not 0 <= split < 1:
        raise ValueError("train.validation_split must be in [0, 1)")
    if int(data.get("test_lines", 0)) < 0:  # type: ignore[union-attr]
        raise ValueError("data.test_lines must be >= 0")


__all__ = [
    "PROTOCOLS",
    "config_hash",
    "load_preset",
    "merge",
    "presets",
    "read_config_file",
    "validate_config",
]
