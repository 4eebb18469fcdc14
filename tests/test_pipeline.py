import json

import pandas as pd

from fishing_ml import config
from fishing_ml.pipeline import RunContext, explore_folds, ingest, run, shape
from fishing_ml.run_pipeline import build_parser, main

from conftest import SMALL_NETWORK, SMALL_TREES


def test_end_to_end_run(polls_csv, tmp_path):
    outputs = tmp_path / "outputs"
    ctx = run(
        data_path=polls_csv,
        outputs_dir=outputs,
        cv_folds=3,
        families=[SMALL_NETWORK, SMALL_TREES],
    )

    assert set(ctx.models) == {"network", "boosted_trees"}
    assert set(ctx.evaluations) == {"network", "boosted_trees"}
    assert len(ctx.train) == 800
    assert len(ctx.test) == 200

    for name in ("class_balance.png", "boosted_trees_feature_importances.png", "network_structure.png"):
        assert (outputs / name).stat().st_size > 0

    metrics = json.loads((outputs / "metrics.json").read_text())
    assert metrics["n_train"] == 800
    assert metrics["refit_test_scaler"] is False
    assert len(metrics["cut_points"]["length"]) == 4
    assert len(metrics["cut_points"]["hour"]) == 3
    assert "feature_importance_ranking" in metrics["models"]["boosted_trees"]
    assert "feature_importance_ranking" not in metrics["models"]["network"]
    for entry in metrics["models"].values():
        assert entry["test"]["n_scored"] == 200


def test_each_run_starts_fresh(polls_csv, tmp_path):
    first = run(data_path=polls_csv, outputs_dir=tmp_path / "a", cv_folds=3,
                families=[SMALL_TREES], make_plots=False)
    second = run(data_path=polls_csv, outputs_dir=tmp_path / "b", cv_folds=3,
                 families=[SMALL_TREES], make_plots=False)

    assert first is not second
    assert first.models["boosted_trees"] is not second.models["boosted_trees"]
    assert first.train.index.equals(second.train.index)
    assert not (tmp_path / "b" / "class_balance.png").exists()


def test_time_range_restricts_rows(polls_csv, tmp_path):
    ctx = RunContext(data_path=polls_csv, start="2016-03-01", end="2016-09-01")
    ingest(ctx)
    shape(ctx)
    assert 0 < len(ctx.dataset) < len(ctx.observations)


def test_explore_folds(prepared):
    balance = explore_folds(prepared)
    assert prepared.folds.between(1, 3).all()
    assert sorted(balance["split"].unique()) == ["fold 1", "fold 2", "fold 3"]


def test_cli_generate_writes_requested_path(tmp_path):
    data = tmp_path / "data" / "polls.csv"
    assert main(["--step", "generate", "--data", str(data), "--n-rows", "300"]) == 0

    assert data.exists()
    df = pd.read_csv(data)
    assert len(df) == 300
    assert (df["fishing"] == 1).sum() == 75


def test_cli_generated_data_feeds_later_steps(tmp_path):
    data = tmp_path / "polls.csv"
    assert main(["--step", "generate", "--data", str(data), "--n-rows", "300"]) == 0
    assert main(["--step", "folds", "--data", str(data)]) == 0


def test_cli_refit_flag_overrides_environment(monkeypatch):
    monkeypatch.setattr(config, "REFIT_TEST_SCALER", True)
    assert build_parser().parse_args([]).refit_test_scaler is True
    assert build_parser().parse_args(["--no-refit-test-scaler"]).refit_test_scaler is False

    monkeypatch.setattr(config, "REFIT_TEST_SCALER", False)
    assert build_parser().parse_args(["--refit-test-scaler"]).refit_test_scaler is True


def test_run_applies_settings_to_given_context(polls_csv, tmp_path):
    ctx = RunContext(data_path=polls_csv, outputs_dir=tmp_path / "a", cv_folds=3, families=[SMALL_TREES])
    result = run(ctx, outputs_dir=tmp_path / "b", make_plots=False)

    assert result.outputs_dir == tmp_path / "b"
    assert result.make_plots is False
    assert (tmp_path / "b" / "metrics.json").exists()
    assert not (tmp_path / "a").exists()
    assert not (tmp_path / "b" / "class_balance.png").exists()


def test_cli_folds(polls_csv, tmp_path):
    assert main(["--step", "folds", "--data", str(polls_csv), "--outputs", str(tmp_path)]) == 0
