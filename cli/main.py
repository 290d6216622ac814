"""Command line entry point for mlpnets training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

import structlog

from mlpnets import config as run_config
from mlpnets.training import pipelines

logger = structlog.get_logger(__name__)


def _format_result(result, run_id: str | None = None) -> str:
    payload = {
        "protocol": result.protocol,
        "epochs": result.epochs_run,
        "mse": result.mse,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "weights": result.weights_dir,
    }
    if result.accuracy is not None:
        payload["accuracy"] = result.accuracy
    if run_id is not None:
        payload["run_id"] = run_id
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(run_config.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="blobs-train",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--protocol",
        choices=run_config.PROTOCOLS,
        help="Override the training protocol",
    )
    parser.add_argument("--epochs", type=int, help="Override the epoch count")
    parser.add_argument("--lr", type=float, help="Override the learning rate")
    parser.add_argument("--hidden", type=int, help="Override the hidden layer size")
    parser.add_argument("--activation", help="Override the activation function")
    parser.add_argument("--k", type=int, help="Fold count for cross validation")
    parser.add_argument("--patience", type=int, help="Patience for early stopping")
    parser.add_argument("--seed", type=int, help="Seed used for weight initialisation")
    parser.add_argument("--run-dir", help="Directory receiving metrics and weights")
    parser.add_argument(
        "--evaluate-only",
        action="store_true",
        help="Score previously saved weights on the hold-out set instead of training",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    config = run_config.load_preset(args.preset)
    if args.config:
        override = dict(run_config.read_config_file(args.config))
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = run_config.merge(config, override)

    train = config.setdefault("train", {})
    model = config.setdefault("model", {})
    for key, value in (
        ("protocol", args.protocol),
        ("epochs", args.epochs),
        ("lr", args.lr),
        ("k", args.k),
        ("patience", args.patience),
        ("seed", args.seed),
        ("run_dir", args.run_dir),
    ):
        if value is not None:
            train[key] = value
    if args.hidden is not None:
        model["n_hidden"] = args.hidden
    if args.activation is not None:
        model["activation"] = args.activation
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(run_config.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = build_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    if args.evaluate_only:
        try:
            metrics = pipelines.evaluate_stored(config)
        except Exception as exc:  # orchestration boundary
            logger.error("evaluation_failed", error=str(exc), error_type=type(exc).__name__)
            raise SystemExit(1) from None
        if metrics is None:
            raise SystemExit(0)
        print(json.dumps(metrics, sort_keys=True))
        return

    run_id = run_config.config_hash(config)
    result = pipelines.run_safely(config)
    if result is None:
        raise SystemExit(1)
    if isinstance(result, list):
        for item in result:
            print(_format_result(item, run_id=run_id))
    else:
        print(_format_result(result, run_id=run_id))


if __name__ == "__main__":
    main()
