"""
Range normalization of continuous features.
"""

import logging

import pandas as pd
from sklearn.preprocessing import MinMaxScaler

from .feature_engineering import CONTINUOUS_COLUMNS

logger = logging.getLogger(__name__)


class RangeNormalizer:
    """
    Min-max scaling of selected columns to [0, 1].

    Only ``columns`` are touched; every other column is returned as-is.
    Missing values are ignored when fitting and stay missing after transform.
    """

    def __init__(self, columns: list[str] | None = None):
        self.columns = list(columns) if columns is not None else list(CONTINUOUS_COLUMNS)
        self.scaler_: MinMaxScaler | None = None

    def fit(self, df: pd.DataFrame) -> "RangeNormalizer":
        self.scaler_ = MinMaxScaler(feature_range=(0, 1))
        self.scaler_.fit(df[self.columns])
        logger.debug("Fitted range normalizer on %d rows: %s", len(df), self.params)
        return self

    @property
    def params(self) -> dict[str, tuple[float, float]]:
        """Per-column (min, max) learned by ``fit``."""
        if self.scaler_ is None:
            raise ValueError("Normalizer not fitted yet")
        return {
            column: (float(lo), float(hi))
            for column, lo, hi in zip(self.columns, self.scaler_.data_min_, self.scaler_.data_max_)
        }

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.scaler_ is None:
            raise ValueError("Normalizer not fitted yet")
        df = df.copy()
        scaled = self.scaler_.transform(df[self.columns])
        df[self.columns] = pd.DataFrame(scaled, index=df.index, columns=self.columns)
        return df

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)


def normalize_splits(
    train: pd.DataFrame,
    test: pd.DataFrame,
    columns: list[str] | None = None,
    refit_test: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame, RangeNormalizer]:
    """
    Fit on train, apply to both splits.

    With ``refit_test`` a second normalizer is fitted on the test split
    itself, so test values are scaled by test-set ranges.
    """
    normalizer = RangeNormalizer(columns).fit(train)
    train_scaled = normalizer.transform(train)

    if refit_test:
        logger.warning(
            "Refitting the range normalizer on the test set; "
            "test features are scaled with test-set ranges (data leakage)"
        )
        test_scaled = RangeNormalizer(normalizer.columns).fit_transform(test)
    else:
        test_scaled = normalizer.transform(test)

    out_of_range = int(
        ((test_scaled[normalizer.columns] < 0) | (test_scaled[normalizer.columns] > 1)).sum().sum()
    )
    if out_of_range:
        logger.info("%d test values fall outside the training range after scaling", out_of_range)

    logger.info(
        "Scaled %s to [0, 1] using training ranges %s",
        normalizer.columns,
        {c: (round(lo, 3), round(hi, 3)) for c, (lo, hi) in normalizer.params.items()},
    )
    return train_scaled, test_scaled, normalizer
