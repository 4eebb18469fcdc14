import numpy as np
import pytest

from fishing_ml.evaluate import evaluate_model, feature_importance_ranking, plot_network
from fishing_ml.feature_engineering import TARGET
from fishing_ml.model import FAMILIES, get_family
from fishing_ml.predict import predict
from fishing_ml.train import drop_incomplete, train_model

from conftest import SMALL_NETWORK, SMALL_TREES

FEATURES = ["length_bin", "hour_bin", "bearing_rad", "speed", "bottom_depth"]


@pytest.fixture
def network(prepared):
    return train_model(SMALL_NETWORK, prepared.train, FEATURES, cv_folds=3, seed=0)


@pytest.fixture
def trees(prepared):
    return train_model(SMALL_TREES, prepared.train, FEATURES, cv_folds=3, seed=0)


def test_families_registered():
    assert set(FAMILIES) == {"network", "boosted_trees"}
    assert FAMILIES["network"].n_candidates == 9
    assert FAMILIES["boosted_trees"].n_candidates == 18
    with pytest.raises(ValueError):
        get_family("svm")


def test_network_uses_one_hot_features(network):
    assert network.best_params["hidden_layer_sizes"] == (3,)
    assert network.best_params["alpha"] in (1e-4, 1e-1)
    assert "length_bin_1" in network.encoded_columns
    assert "hour_bin_4" in network.encoded_columns
    assert "length_bin" not in network.encoded_columns
    assert len(network.cv_results) == 2
    assert 0.0 <= network.best_score <= 1.0


def test_trees_use_ordinal_features(trees):
    assert trees.encoded_columns == FEATURES
    assert trees.best_params == {"max_depth": 2, "n_estimators": 30, "learning_rate": 0.1, "min_samples_leaf": 10}
    # synthetic fishing polls are clearly separable by speed and depth
    assert trees.best_score > 0.8


def test_training_drops_incomplete_rows(prepared):
    train = prepared.train.copy()
    train.loc[train.index[:20], "bottom_depth"] = np.nan
    trained = train_model(SMALL_TREES, train, FEATURES, cv_folds=3)
    assert trained.estimator.n_features_in_ == len(FEATURES)


def test_predict_labels_and_drops_missing(prepared, trees):
    test = prepared.test.copy()
    test.loc[test.index[:5], "speed"] = np.nan

    result = predict(trees, test)
    assert len(result) == len(test) - 5
    assert set(result["predicted"]) <= {"fishing", "notfishing"}
    assert result["fishing_probability"].between(0, 1).all()
    assert (result["actual"] == test.loc[result.index, TARGET].astype(str)).all()


def test_predict_without_target(prepared, network):
    result = predict(network, prepared.test.drop(columns=TARGET), target=None)
    assert "actual" not in result.columns
    assert len(result) == len(prepared.test)


def test_evaluate_model(prepared, trees):
    evaluation = evaluate_model(trees, prepared.test)
    assert evaluation.matrix.to_numpy().sum() == len(prepared.test)
    assert evaluation.counts.f1 > 0.5
    summary = evaluation.to_dict()
    assert summary["n_scored"] == len(prepared.test)
    assert set(summary["confusion_matrix"]) == {"predicted_fishing", "predicted_notfishing"}


def test_feature_importances(trees, network):
    ranking = feature_importance_ranking(trees)
    assert {r["feature"] for r in ranking} == set(FEATURES)
    importances = [r["importance"] for r in ranking]
    assert importances == sorted(importances, reverse=True)

    with pytest.raises(ValueError):
        feature_importance_ranking(network)


def test_network_diagram(tmp_path, network, trees):
    path = tmp_path / "net.png"
    plot_network(network, path)
    assert path.stat().st_size > 0

    with pytest.raises(ValueError):
        plot_network(trees, tmp_path / "trees.png")


def test_drop_incomplete():
    import pandas as pd

    df = pd.DataFrame({"a": [1.0, None, 3.0], "b": [1, 2, None]})
    assert drop_incomplete(df, ["a"]).index.tolist() == [0, 2]
    assert drop_incomplete(df, ["a", "b"]).index.tolist() == [0]
