import logging
import math

import numpy as np
import pandas as pd
import pytest

from fishing_ml.evaluate import (
    ConfusionCounts,
    build_confusion_matrix,
    plot_class_balance,
    plot_feature_importances,
)
from fishing_ml.feature_engineering import TARGET
from fishing_ml.partition import class_balance, stratified_split


def test_f1_from_known_cells():
    counts = ConfusionCounts(tp=40, fp=10, fn=20, tn=130)
    assert counts.precision == pytest.approx(0.8)
    assert round(counts.recall, 3) == 0.667
    assert round(counts.f1, 3) == 0.727
    assert counts.accuracy == pytest.approx(0.85)


def test_zero_true_positives_give_nan():
    counts = ConfusionCounts(tp=0, fp=0, fn=25, tn=75)
    assert math.isnan(counts.precision)
    assert counts.recall == 0.0
    assert math.isnan(counts.f1)

    counts = ConfusionCounts(tp=0, fp=5, fn=20, tn=75)
    assert counts.precision == 0.0
    assert math.isnan(counts.f1)


def test_confusion_matrix_orientation():
    actual = pd.Series(["fishing", "fishing", "notfishing", "notfishing", "notfishing"])
    predicted = pd.Series(["fishing", "notfishing", "fishing", "notfishing", "notfishing"])
    matrix = build_confusion_matrix(actual, predicted)

    assert matrix.index.name == "predicted"
    assert matrix.columns.name == "actual"
    assert matrix.loc["fishing", "fishing"] == 1
    assert matrix.loc["fishing", "notfishing"] == 1
    assert matrix.loc["notfishing", "fishing"] == 1
    assert matrix.loc["notfishing", "notfishing"] == 2

    counts = ConfusionCounts.from_matrix(matrix)
    assert (counts.tp, counts.fp, counts.fn, counts.tn) == (1, 1, 1, 2)


def test_majority_predictor_scenario(dataset):
    """1000 polls at 25/75: stratified split, then always predict the majority class."""
    train, test = stratified_split(dataset, train_fraction=0.8, seed=11)
    assert abs((train[TARGET] == "fishing").mean() - 0.25) < 0.02
    assert abs((train[TARGET] == "notfishing").mean() - 0.75) < 0.02

    majority = train[TARGET].value_counts().idxmax()
    assert majority == "notfishing"

    actual = test[TARGET].astype(str)
    predicted = pd.Series(majority, index=test.index)
    matrix = build_confusion_matrix(actual, predicted)

    assert (matrix.loc["fishing"] == 0).all()
    assert matrix.to_numpy().sum() == len(test)
    assert math.isnan(ConfusionCounts.from_matrix(matrix).f1)


def test_plots_written(tmp_path, dataset):
    train, test = stratified_split(dataset)
    balance = class_balance({"train": train[TARGET], "test": test[TARGET]})

    plot_class_balance(balance, tmp_path / "balance.png")
    plot_feature_importances(np.array([0.5, 0.3, 0.2]), ["speed", "bottom_depth", "hour_bin"], tmp_path / "imp.png")

    assert (tmp_path / "balance.png").stat().st_size > 0
    assert (tmp_path / "imp.png").stat().st_size > 0


def test_undefined_ratio_warned_once(caplog):
    caplog.set_level(logging.WARNING, logger="fishing_ml.evaluate")
    counts = ConfusionCounts(tp=0, fp=0, fn=25, tn=75)
    for _ in range(3):
        assert math.isnan(counts.precision)
        assert math.isnan(counts.f1)

    warnings = [r for r in caplog.records if "precision is undefined" in r.getMessage()]
    assert len(warnings) == 1
