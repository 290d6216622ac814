from __future__ import annotations

import json
from pathlib import Path

import pytest

from mlpnets import config as run_config
from mlpnets.training import pipelines


def _preset(name, tmp_path, **train_overrides):
    config = run_config.load_preset(name)
    config["train"]["run_dir"] = str(tmp_path / name)
    config["train"].update(train_overrides)
    return config


def test_train_pipeline_produces_artifacts(tmp_path):
    config = _preset("blobs-train", tmp_path, epochs=4)

    result = pipelines.run_pipeline(config)

    assert result.protocol == "train"
    assert result.epochs_run == 4
    run_dir = Path(config["train"]["run_dir"])
    assert (run_dir / "weights" / "normal_hidden_weights.txt").exists()
    assert (run_dir / "weights" / "normal_output_weights.txt").exists()
    assert (run_dir / "metrics_train.csv").exists()

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3, 4]
    assert all(r["split"] == "train" and "sha" in r and r["seed"] == 7 for r in records)

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 7
    assert manifest["dataset"]["type"] == "blobs"
    assert manifest["run_id"] == run_config.config_hash(config)

    test_metrics = json.loads(Path(result.test_metrics_path).read_text())
    assert test_metrics["examples"] == 12
    assert sum(map(sum, test_metrics["confusion_matrix"])) == 12
    assert result.accuracy == test_metrics["accuracy"]


def test_cross_validation_pipeline_reports_continuous_epochs(tmp_path):
    config = _preset("blobs-cross-validation", tmp_path, epochs=3, k=4)

    result = pipelines.run_pipeline(config)

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["epoch"] for r in records] == list(range(1, 13))
    assert result.epochs_run == 12
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert len(manifest["results"]["fold_mses"]) == 4
    assert result.mse == pytest.approx(manifest["results"]["mean_mse"])
    assert (Path(result.weights_dir) / "cross_validation_hidden_weights.txt").exists()


def test_early_stopping_pipeline_uses_its_destination(tmp_path):
    config = _preset("blobs-early-stopping", tmp_path, epochs=15, patience=3)

    result = pipelines.run_pipeline(config)

    assert result.epochs_run <= 15
    assert (Path(result.weights_dir) / "early_stopping_output_weights.txt").exists()
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert "best_epoch" in manifest["results"]


def test_run_safely_logs_instead_of_raising(tmp_path):
    config = _preset("blobs-train", tmp_path, lr=-0.1)
    assert pipelines.run_safely(config) is None

    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)


def test_sweep_ranks_combinations(tmp_path):
    config = run_config.load_preset("blobs-sweep")
    config["sweep"] = {"lrs": [0.1, 0.3], "hidden": [3], "activations": ["sigmoid"], "epochs": [2]}
    config["train"]["run_dir"] = str(tmp_path / "sweep")

    results = pipelines.run_pipeline(config)

    assert isinstance(results, list) and len(results) == 2
    rows = json.loads((tmp_path / "sweep" / "sweep.json").read_text())
    assert {row["name"] for row in rows} == {"lr0.1_h3_sigmoid_e2", "lr0.3_h3_sigmoid_e2"}
    accuracies = [row["accuracy"] for row in rows]
    assert accuracies == sorted(accuracies, reverse=True)


def test_evaluate_stored_scores_saved_weights(tmp_path):
    config = _preset("blobs-train", tmp_path, epochs=3)
    assert pipelines.evaluate_stored(config) is None

    result = pipelines.run_pipeline(config)
    metrics = pipelines.evaluate_stored(config)

    assert metrics is not None
    assert metrics["accuracy"] == result.accuracy
    assert metrics["mse"] == pytest.approx(
        json.loads(Path(result.test_metrics_path).read_text())["mse"]
    )


def test_pipeline_determinism(tmp_path):
    first_cfg = _preset("blobs-train", tmp_path, epochs=5, run_dir=str(tmp_path / "a"))
    second_cfg = _preset("blobs-train", tmp_path, epochs=5, run_dir=str(tmp_path / "b"))

    first = pipelines.run_pipeline(first_cfg)
    second = pipelines.run_pipeline(second_cfg)

    def mses(result):
        lines = Path(result.metrics_path).read_text().splitlines()
        return [json.loads(line)["mse"] for line in lines]

    assert mses(first) == mses(second)
    assert Path(first.weights_dir, "normal_hidden_weights.txt").read_text() == Path(
        second.weights_dir, "normal_hidden_weights.txt"
    ).read_text()


def test_config_files_and_validation(tmp_path):
    assert "blobs-softplus" in run_config.presets()
    assert run_config.load_preset("blobs-softplus")["model"]["activation"] == "softplus"

    path = tmp_path / "override.yaml"
    path.write_text("train:\n  epochs: 9\n  lr: 0.2\n")
    override = run_config.read_config_file(path)
    merged = run_config.merge(run_config.load_preset("blobs-train"), override)
    assert merged["train"]["epochs"] == 9
    assert merged["train"]["seed"] == 7
    assert merged["model"]["n_hidden"] == 8

    with pytest.raises(KeyError):
        run_config.load_preset("does-not-exist")

    broken = run_config.load_preset("blobs-cross-validation")
    broken["train"]["k"] = 1
    with pytest.raises(ValueError):
        run_config.validate_config(broken)

    bad_activation = run_config.load_preset("blobs-train")
    bad_activation["model"]["activation"] = "gelu"
    with pytest.raises(ValueError):
        run_config.validate_config(bad_activation)

    padded = run_config.load_preset("blobs-train")
    padded["model"]["activation"] = " ReLU "
    run_config.validate_config(padded)


def test_configured_alphabet_labels_the_report(tmp_path):
    config = _preset("blobs-train", tmp_path, epochs=2)
    config["data"]["alphabet"] = ["red", "green", "blue"]

    result = pipelines.run_pipeline(config)

    test_metrics = json.loads(Path(result.test_metrics_path).read_text())
    assert test_metrics["alphabet"] == ["red", "green", "blue"]

    config["data"]["alphabet"] = ["red", "green"]
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)
