"""
Prediction module for fishing activity classifiers.

Scores a held-out frame with a TrainedModel, encoding features exactly as
they were encoded for fitting.
"""

import logging

import numpy as np
import pandas as pd

from .feature_engineering import FISHING, TARGET
from .model import TrainedModel
from .train import drop_incomplete

logger = logging.getLogger(__name__)


def predict(
    trained: TrainedModel,
    df: pd.DataFrame,
    target: str | None = TARGET,
) -> pd.DataFrame:
    """
    Predict a label per row.

    Rows with a missing feature (or label, when ``target`` is given) are
    dropped first, independently for each model.

    Returns
    -------
    DataFrame indexed like the surviving rows, with columns:
        predicted, fishing_probability, and actual (when ``target`` is given)
    """
    required = list(trained.feature_columns)
    if target is not None:
        required.append(target)
    complete = drop_incomplete(df, required, what=f"rows for {trained.name}")

    X = trained.encode(complete)
    estimator = trained.estimator

    result = pd.DataFrame(index=complete.index)
    if target is not None:
        result["actual"] = complete[target].astype(str)
    result["predicted"] = estimator.predict(X)

    classes = list(estimator.classes_)
    if FISHING in classes:
        result["fishing_probability"] = np.round(estimator.predict_proba(X)[:, classes.index(FISHING)], 4)

    logger.info(
        "%s predicted %d fishing out of %d rows",
        trained.name, int((result["predicted"] == FISHING).sum()), len(result),
    )
    return result
