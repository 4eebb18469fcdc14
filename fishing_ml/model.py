"""
Model families for fishing activity classification.

Each family pairs a scikit-learn estimator with the hyperparameter grid
searched during training and the encoding its categorical bins need:

- network: single-hidden-layer MLP, bins one-hot expanded
- boosted_trees: gradient-boosted trees, bins passed as ordinal codes
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.ensemble import GradientBoostingClassifier
from sklearn.neural_network import MLPClassifier

from .feature_engineering import CATEGORICAL_COLUMNS, encode_ordinal, one_hot_expand

logger = logging.getLogger(__name__)

ONEHOT = "onehot"
ORDINAL = "ordinal"


@dataclass(frozen=True)
class ModelFamily:
    """
    A trainable model family.

    Parameters
    ----------
    name : str
        Short identifier used on the CLI and in outputs.
    build_estimator : callable
        ``build_estimator(seed)`` returns an unfitted classifier.
    param_grid : dict
        Grid of scikit-learn parameter names to candidate values.
    encoding : str
        "onehot" or "ordinal", how categorical bins are fed to the estimator.
    """

    name: str
    build_estimator: Callable[[int], ClassifierMixin]
    param_grid: dict[str, list[Any]]
    encoding: str = ORDINAL

    def encode(self, features: pd.DataFrame) -> pd.DataFrame:
        categorical = [c for c in CATEGORICAL_COLUMNS if c in features.columns]
        if self.encoding == ONEHOT:
            return one_hot_expand(features, categorical)
        if self.encoding == ORDINAL:
            return encode_ordinal(features, categorical)
        raise ValueError(f"Unknown encoding: {self.encoding}")

    @property
    def n_candidates(self) -> int:
        n = 1
        for values in self.param_grid.values():
            n *= len(values)
        return n


def _build_network(seed: int) -> MLPClassifier:
    return MLPClassifier(
        solver="lbfgs",
        activation="logistic",
        max_iter=500,
        random_state=seed,
    )


def _build_boosted_trees(seed: int) -> GradientBoostingClassifier:
    return GradientBoostingClassifier(
        subsample=0.5,
        random_state=seed,
    )


NETWORK = ModelFamily(
    name="network",
    build_estimator=_build_network,
    param_grid={
        # hidden-layer width x weight decay
        "hidden_layer_sizes": [(1,), (3,), (5,)],
        "alpha": [0.0, 1e-4, 1e-1],
    },
    encoding=ONEHOT,
)

BOOSTED_TREES = ModelFamily(
    name="boosted_trees",
    build_estimator=_build_boosted_trees,
    param_grid={
        "max_depth": [1, 3, 5],
        "n_estimators": [50, 100, 150],
        "learning_rate": [0.1],
        "min_samples_leaf": [10, 20],
    },
    encoding=ORDINAL,
)

FAMILIES = {family.name: family for family in (NETWORK, BOOSTED_TREES)}


def get_family(name: str) -> ModelFamily:
    try:
        return FAMILIES[name]
    except KeyError:
        raise ValueError(f"Unknown model family {name!r}; choose from {sorted(FAMILIES)}") from None


@dataclass
class TrainedModel:
    """A fitted estimator plus what was learned about it during grid search."""

    family: ModelFamily
    estimator: ClassifierMixin
    feature_columns: list[str]
    encoded_columns: list[str]
    best_params: dict[str, Any]
    best_score: float
    scoring: str
    cv_results: pd.DataFrame = field(repr=False)

    @property
    def name(self) -> str:
        return self.family.name

    def encode(self, features: pd.DataFrame) -> pd.DataFrame:
        """Encode raw feature columns into the exact layout seen at fit time."""
        encoded = self.family.encode(features[self.feature_columns])
        return encoded.reindex(columns=self.encoded_columns, fill_value=0)
