"""Pipeline assembly: config in, trained weights and run artifacts out."""

from __future__ import annotations

import itertools
import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np
import structlog

from ..config import config_hash, validate_config
from ..core.network import MIN_DELTA, Network, build_network
from ..core.types import RunResult
from ..data import get_dataset, holdout
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..storage import DirectoryWeightStore
from .callbacks import HistoryCapture, LogProgress
from .protocols import cross_validate, evaluate, train_early_stopping, train_fixed

logger = structlog.get_logger(__name__)

DESTINATIONS = {
    "train": "normal",
    "cross_validation": "cross_validation",
    "early_stopping": "early_stopping",
}


def run_pipeline(config: Mapping[str, object]) -> RunResult | List[RunResult]:
    if "sweep" in config:
        return run_sweep(config)
    return _run_single(config)


def run_safely(config: Mapping[str, object]) -> RunResult | List[RunResult] | None:
    """Run ``config`` and turn any failure into a logged ``run_failed`` event."""

    try:
        return run_pipeline(config)
    except Exception as exc:  # orchestration boundary
        logger.error("run_failed", error=str(exc), error_type=type(exc).__name__)
        return None


def _run_single(config: Mapping[str, object]) -> RunResult:
    validate_config(config)
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    test_lines = int(data_cfg.get("test_lines", 0))
    inputs, targets, test_inputs, test_targets = holdout(dataset.inputs, dataset.targets, test_lines)
    if not inputs:
        raise ValueError(f"No training examples left after holding out {test_lines} test lines")

    n_inputs = int(model_cfg.get("n_inputs", dataset.n_inputs))
    n_outputs = int(model_cfg.get("n_outputs", dataset.n_outputs))
    if n_inputs != dataset.n_inputs:
        raise ValueError(f"Configured n_inputs={n_inputs} but the data has {dataset.n_inputs}")
    if n_outputs != dataset.n_outputs:
        raise ValueError(f"Configured n_outputs={n_outputs} but the data has {dataset.n_outputs}")
    alphabet = _alphabet(data_cfg, dataset)
    n_hidden = int(model_cfg["n_hidden"])
    activation = str(model_cfg.get("activation", "sigmoid"))

    protocol = str(train_cfg.get("protocol", "train"))
    epochs = int(train_cfg["epochs"])
    lr = float(train_cfg["lr"])
    seed = train_cfg.get("seed")
    rng = np.random.default_rng(None if seed is None else int(seed))

    def factory() -> Network:
        return build_network(n_inputs, n_hidden, n_outputs, activation, rng=rng)

    run_dir = _resolve_run_dir(train_cfg, dataset.name, protocol)
    run_dir.mkdir(parents=True, exist_ok=True)
    store = DirectoryWeightStore(run_dir / "weights")
    destination = str(train_cfg.get("destination", DESTINATIONS[protocol]))

    _print_startup_summary(
        dataset_name=dataset.name,
        dims=[n_inputs, n_hidden, n_outputs],
        activation=activation,
        protocol=protocol,
        param_count=n_hidden * (n_inputs + 1) + n_outputs * (n_hidden + 1),
    )
    run_id = config_hash(config)
    logger.info("run_started", run_id=run_id, protocol=protocol, dataset=dataset.name)

    jsonl = JsonlSink(run_dir / "metrics_train.jsonl", seed=None if seed is None else int(seed))
    csv_sink = CsvSink(run_dir / "metrics_train.csv")
    capture = HistoryCapture()
    callbacks = [jsonl, csv_sink, capture, LogProgress(every=max(1, epochs // 10), run_id=run_id)]

    results: Dict[str, object] = {}
    if protocol == "cross_validation":
        cv = cross_validate(
            inputs,
            targets,
            int(train_cfg["k"]),
            epochs,
            lr,
            factory,
            callbacks=callbacks,
            store=store,
            destination=destination,
        )
        mse = cv.mean_mse
        epochs_run = epochs * len(cv.fold_mses)
        results.update(
            {
                "mean_mse": cv.mean_mse,
                "std_mse": cv.std_mse,
                "fold_mses": cv.fold_mses,
                "best_fold": cv.best_fold,
            }
        )
    elif protocol == "early_stopping":
        outcome = train_early_stopping(
            factory(),
            inputs,
            targets,
            epochs,
            lr,
            int(train_cfg["patience"]),
            min_delta=float(train_cfg.get("min_delta", MIN_DELTA)),
            validation_split=float(train_cfg.get("validation_split", 0.0)),
            callbacks=callbacks,
            store=store,
            destination=destination,
        )
        mse = outcome.best_mse
        epochs_run = outcome.epochs_run
        results.update(
            {
                "best_mse": outcome.best_mse,
                "best_epoch": outcome.best_epoch,
                "stopped_early_at": outcome.stopped_early_at,
            }
        )
    else:
        outcome = train_fixed(
            factory(),
            inputs,
            targets,
            epochs,
            lr,
            callbacks=callbacks,
            store=store,
            destination=destination,
        )
        mse = outcome.final_mse
        epochs_run = outcome.epochs_run
        results["final_mse"] = outcome.final_mse

    test_metrics_path = ""
    accuracy = None
    if test_inputs:
        test_metrics = _evaluate_holdout(
            factory(), store, destination, test_inputs, test_targets, alphabet
        )
        if test_metrics is not None:
            path = run_dir / "metrics_test.json"
            path.write_text(json.dumps(test_metrics, indent=2))
            test_metrics_path = str(path)
            accuracy = test_metrics.get("accuracy")  # type: ignore[assignment]
            results["test"] = test_metrics

    manifest = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        dataset_provenance=dataset.provenance,
        results=results,
        run_id=run_id,
    )
    return RunResult(
        protocol=protocol,
        epochs_run=epochs_run,
        mse=float(mse),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        weights_dir=str(store.root),
        test_metrics_path=test_metrics_path,
        accuracy=accuracy,
    )


def _evaluate_holdout(
    network: Network,
    store: DirectoryWeightStore,
    destination: str,
    inputs: Sequence,
    targets: Sequence,
    alphabet: Sequence,
) -> Dict[str, object] | None:
    """Load the snapshot saved under ``destination`` and score it on hold-out data."""

    if not store.exists(destination):
        logger.warning("weights_missing", destination=destination, root=str(store.root))
        return None
    network.restore(store.load(destination))
    evaluation = evaluate(network, inputs, targets, alphabet)
    metrics: Dict[str, object] = {"mse": evaluation.mse, "examples": len(inputs)}
    if evaluation.report is not None:
        metrics.update(evaluation.report.as_dict())
    return metrics


def evaluate_stored(config: Mapping[str, object]) -> Dict[str, object] | None:
    """Score previously saved weights of ``config``'s run on its hold-out set.

    Returns ``None`` (after logging) when nothing was saved for the run's
    destination or the config holds out no test lines.
    """

    validate_config(config)
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]
    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    _, _, test_inputs, test_targets = holdout(
        dataset.inputs, dataset.targets, int(data_cfg.get("test_lines", 0))
    )
    if not test_inputs:
        logger.warning("no_test_lines", dataset=dataset.name)
        return None
    protocol = str(train_cfg.get("protocol", "train"))
    run_dir = _resolve_run_dir(train_cfg, dataset.name, protocol)
    network = build_network(
        dataset.n_inputs,
        int(model_cfg["n_hidden"]),
        dataset.n_outputs,
        str(model_cfg.get("activation", "sigmoid")),
    )
    return _evaluate_holdout(
        network,
        DirectoryWeightStore(run_dir / "weights"),
        str(train_cfg.get("destination", DESTINATIONS[protocol])),
        test_inputs,
        test_targets,
        _alphabet(data_cfg, dataset),
    )


def run_sweep(config: Mapping[str, object]) -> List[RunResult]:
    """Train every grid combination with the plain protocol and rank by accuracy."""

    sweep_cfg = dict(config["sweep"])  # type: ignore[arg-type]
    base = deepcopy(dict(config))
    base.pop("sweep", None)
    base_train = dict(base.get("train", {}))  # type: ignore[arg-type]
    base_model = dict(base.get("model", {}))  # type: ignore[arg-type]
    root = Path(str(base_train.get("run_dir", "runs/sweep")))

    grid = itertools.product(
        sweep_cfg.get("lrs", [base_train.get("lr", 0.1)]),
        sweep_cfg.get("hidden", [base_model.get("n_hidden", 8)]),
        sweep_cfg.get("activations", [base_model.get("activation", "sigmoid")]),
        sweep_cfg.get("epochs", [base_train.get("epochs", 10)]),
    )
    results: List[RunResult] = []
    rows: List[Dict[str, object]] = []
    for lr, hidden, activation, epochs in grid:
        name = f"lr{lr}_h{hidden}_{activation}_e{epochs}"
        cfg = deepcopy(base)
        cfg["model"] = dict(base_model, n_hidden=int(hidden), activation=str(activation))
        cfg["train"] = dict(
            base_train,
            protocol="train",
            lr=float(lr),
            epochs=int(epochs),
            run_dir=str(root / name),
        )
        logger.info("sweep_combination", lr=lr, hidden=hidden, activation=activation, epochs=epochs)
        result = _run_single(cfg)
        results.append(result)
        rows.append(
            {
                "name": name,
                "lr": float(lr),
                "n_hidden": int(hidden),
                "activation": str(activation),
                "epochs": int(epochs),
                "mse": result.mse,
                "accuracy": result.accuracy,
            }
        )

    rows.sort(key=lambda row: -(row["accuracy"] or 0.0))  # type: ignore[operator]
    root.mkdir(parents=True, exist_ok=True)
    (root / "sweep.json").write_text(json.dumps(rows, indent=2))
    return results


def _alphabet(data_cfg: Mapping[str, object], dataset) -> List[object]:
    alphabet = list(data_cfg.get("alphabet") or dataset.alphabet)  # type: ignore[call-overload]
    if alphabet and len(alphabet) != dataset.n_outputs:
        raise ValueError(
            f"data.alphabet has {len(alphabet)} labels for {dataset.n_outputs} target values"
        )
    return alphabet


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str, protocol: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset / protocol


def _print_startup_summary(
    *,
    dataset_name: str,
    dims: Sequence[int],
    activation: str,
    protocol: str,
    param_count: int,
) -> None:
    print("=== mlpnets run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Dimensions    : {list(dims)}")
    print(f"Activation    : {activation}")
    print(f"Protocol      : {protocol}")
    print(f"Parameters    : {param_count}")
    print("===================")


__all__ = ["DESTINATIONS", "evaluate_stored", "run_pipeline", "run_safely", "run_sweep"]
