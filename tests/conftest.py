import dataclasses

import pytest

from fishing_ml.data_loader import load_observations
from fishing_ml.feature_engineering import engineer_features
from fishing_ml.generate_synthetic_data import generate_observations
from fishing_ml.model import BOOSTED_TREES, NETWORK
from fishing_ml.pipeline import RunContext, ingest, partition, preprocess, shape

# Single-candidate grids keep grid searches in tests fast
SMALL_NETWORK = dataclasses.replace(
    NETWORK, param_grid={"hidden_layer_sizes": [(3,)], "alpha": [1e-4, 1e-1]},
)
SMALL_TREES = dataclasses.replace(
    BOOSTED_TREES,
    param_grid={"max_depth": [2], "n_estimators": [30], "learning_rate": [0.1], "min_samples_leaf": [10]},
)


@pytest.fixture
def raw_polls():
    """1000 synthetic polls in the input file format, 25% fishing."""
    return generate_observations(n_rows=1000, fishing_rate=0.25, seed=7)


@pytest.fixture
def polls_csv(tmp_path, raw_polls):
    path = tmp_path / "polls.csv"
    raw_polls.to_csv(path, index=False)
    return path


@pytest.fixture
def observations(polls_csv):
    return load_observations(polls_csv)


@pytest.fixture
def dataset(observations):
    return engineer_features(observations)


@pytest.fixture
def prepared(polls_csv, tmp_path):
    """A RunContext taken through ingestion, shaping, partitioning and preprocessing."""
    ctx = RunContext(
        data_path=polls_csv,
        outputs_dir=tmp_path / "outputs",
        cv_folds=3,
        families=[SMALL_NETWORK, SMALL_TREES],
    )
    ingest(ctx)
    shape(ctx)
    partition(ctx)
    preprocess(ctx)
    return ctx
