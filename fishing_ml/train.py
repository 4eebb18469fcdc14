"""
Training pipeline for the fishing activity classifiers.

Runs a cross-validated grid search per model family, scored by ROC AUC,
and refits the best combination on the full training subset.
"""

import logging
import time

import pandas as pd
from sklearn.model_selection import GridSearchCV, StratifiedKFold

from .feature_engineering import FEATURE_COLUMNS, TARGET
from .model import ModelFamily, TrainedModel

logger = logging.getLogger(__name__)


def drop_incomplete(df: pd.DataFrame, columns: list[str], what: str = "rows") -> pd.DataFrame:
    """Drop rows with a missing value in any of ``columns``. No imputation."""
    complete = df.dropna(subset=columns)
    n_dropped = len(df) - len(complete)
    if n_dropped:
        logger.info("Dropped %d %s with missing values (%d remain)", n_dropped, what, len(complete))
    return complete


def resampling(cv_folds: int = 5, seed: int = 42) -> StratifiedKFold:
    """k-fold cross-validation spec used inside the grid search."""
    return StratifiedKFold(n_splits=cv_folds, shuffle=True, random_state=seed)


def train_model(
    family: ModelFamily,
    train_df: pd.DataFrame,
    feature_columns: list[str] | None = None,
    target: str = TARGET,
    cv_folds: int = 5,
    scoring: str = "roc_auc",
    seed: int = 42,
    n_jobs: int = 1,
) -> TrainedModel:
    """
    Grid search one model family on the training subset.

    1. Drop rows with missing features or label
    2. Encode categorical bins for the family
    3. GridSearchCV over the family's grid with stratified k-fold CV
    4. Refit the best combination on all training rows

    Returns a TrainedModel exposing the fitted estimator and chosen parameters.
    """
    if feature_columns is None:
        feature_columns = list(FEATURE_COLUMNS)

    complete = drop_incomplete(train_df, feature_columns + [target], what="training rows")
    X = family.encode(complete[feature_columns])
    y = complete[target].astype(str)

    logger.info(
        "Training %s on %d rows x %d encoded features: %d candidates x %d folds (%s)",
        family.name, len(X), X.shape[1], family.n_candidates, cv_folds, scoring,
    )

    search = GridSearchCV(
        estimator=family.build_estimator(seed),
        param_grid=family.param_grid,
        scoring=scoring,
        cv=resampling(cv_folds, seed),
        refit=True,
        n_jobs=n_jobs,
    )

    start = time.time()
    search.fit(X, y)
    logger.info(
        "Completed grid search for %s in %.1fs: best %s=%.4f with %s",
        family.name, time.time() - start, scoring, search.best_score_, search.best_params_,
    )

    cv_results = pd.DataFrame(search.cv_results_)
    cv_results = cv_results[["params", "mean_test_score", "std_test_score", "rank_test_score"]]
    cv_results = cv_results.sort_values("rank_test_score").reset_index(drop=True)
    for _, row in cv_results.head(5).iterrows():
        logger.debug(
            "  rank %d: %.4f ± %.4f %s",
            row["rank_test_score"], row["mean_test_score"], row["std_test_score"], row["params"],
        )

    return TrainedModel(
        family=family,
        estimator=search.best_estimator_,
        feature_columns=list(feature_columns),
        encoded_columns=list(X.columns),
        best_params=dict(search.best_params_),
        best_score=float(search.best_score_),
        scoring=scoring,
        cv_results=cv_results,
    )

