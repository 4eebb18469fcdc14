"""
Feature engineering for fishing activity classification.

Derives the target label from the raw flag, restricts the time window and
column set, buckets vessel length and hour-of-day into ordered bins, and
encodes the bins for each model family.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

TARGET = "target"
FISHING = "fishing"
NOT_FISHING = "notfishing"
# Positive class first: confusion matrices and metrics use this order
CLASS_LABELS = [FISHING, NOT_FISHING]

FLAG_TO_LABEL = {1: FISHING, 0: NOT_FISHING}

# Continuous inputs rescaled to [0, 1] before fitting
CONTINUOUS_COLUMNS = ["bearing_rad", "speed", "bottom_depth"]

# Raw column → binned column
BINNED_COLUMNS = {
    "length": "length_bin",
    "hour": "hour_bin",
}
CATEGORICAL_COLUMNS = list(BINNED_COLUMNS.values())

# Feature columns used by the models (in order), before encoding
FEATURE_COLUMNS = CATEGORICAL_COLUMNS + CONTINUOUS_COLUMNS


def label_fishing(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add the categorical ``target`` column derived from the 0/1 ``fishing`` flag.

    A missing flag gives a missing label. Any other value raises ValueError.
    """
    df = df.copy()
    flags = df["fishing"]

    unexpected = set(flags.dropna().unique()) - set(FLAG_TO_LABEL)
    if unexpected:
        raise ValueError(f"Unexpected fishing flag values: {sorted(unexpected)}")

    df[TARGET] = pd.Categorical(flags.map(FLAG_TO_LABEL), categories=CLASS_LABELS)

    counts = df[TARGET].value_counts()
    logger.info(
        "Labeled %d polls: %d fishing, %d notfishing",
        len(df), counts.get(FISHING, 0), counts.get(NOT_FISHING, 0),
    )
    return df


def _as_utc(value: str | pd.Timestamp) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def restrict_time_range(
    df: pd.DataFrame,
    start: str | pd.Timestamp | None = None,
    end: str | pd.Timestamp | None = None,
    column: str = "utc_date",
) -> pd.DataFrame:
    """Keep rows with ``start <= column < end``. Either bound may be omitted."""
    mask = pd.Series(True, index=df.index)
    if start is not None:
        mask &= df[column] >= _as_utc(start)
    if end is not None:
        mask &= df[column] < _as_utc(end)

    kept = df[mask]
    if len(kept) != len(df):
        logger.info(
            "Restricted to [%s, %s): %d → %d polls",
            start or "-inf", end or "+inf", len(df), len(kept),
        )
    return kept


def select_model_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep only the raw inputs the features are built from, plus the target."""
    columns = list(BINNED_COLUMNS) + CONTINUOUS_COLUMNS + [TARGET]
    return df[columns].copy()


class EqualWidthBinner:
    """
    Equal-width bucketing of one continuous column into ordered bins 1..n.

    Cut-points are learned by ``fit``; the outer edges are open so values
    outside the fitted range land in the first or last bucket.
    """

    def __init__(self, n_bins: int):
        if n_bins < 2:
            raise ValueError("n_bins must be at least 2")
        self.n_bins = n_bins
        self.edges_: np.ndarray | None = None

    def fit(self, values: pd.Series) -> "EqualWidthBinner":
        values = values.dropna()
        if values.empty:
            raise ValueError(f"Cannot fit bins on empty column {values.name!r}")

        lo, hi = float(values.min()), float(values.max())
        if lo == hi:
            # Constant column: widen around the single value
            lo, hi = lo - 0.5, hi + 0.5
        self.edges_ = np.linspace(lo, hi, self.n_bins + 1)
        return self

    @property
    def cut_points(self) -> np.ndarray:
        """Interior boundaries between adjacent bins."""
        if self.edges_ is None:
            raise ValueError("Binner not fitted yet")
        return self.edges_[1:-1]

    def transform(self, values: pd.Series) -> pd.Series:
        edges = np.concatenate([[-np.inf], self.cut_points, [np.inf]])
        labels = list(range(1, self.n_bins + 1))
        binned = pd.cut(values, bins=edges, labels=labels, right=True)
        return binned.astype(pd.CategoricalDtype(labels, ordered=True))


def fit_binners(df: pd.DataFrame, n_bins: dict[str, int]) -> dict[str, EqualWidthBinner]:
    """Fit one EqualWidthBinner per raw column named in ``n_bins``."""
    binners = {}
    for column, bins in n_bins.items():
        binners[column] = EqualWidthBinner(bins).fit(df[column])
        logger.info(
            "Cut-points for %s (%d bins): %s",
            column, bins, np.round(binners[column].cut_points, 3).tolist(),
        )
    return binners


def apply_binners(df: pd.DataFrame, binners: dict[str, EqualWidthBinner]) -> pd.DataFrame:
    """Replace each raw column with its ``*_bin`` column, keeping column order."""
    df = df.copy()
    for column, binner in binners.items():
        position = df.columns.get_loc(column)
        binned = binner.transform(df[column])
        df = df.drop(columns=column)
        df.insert(position, BINNED_COLUMNS[column], binned)
    return df


def one_hot_expand(
    df: pd.DataFrame,
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """
    Expand categorical columns into one 0/1 indicator per level.

    Every declared category gets a column, so train and test frames
    expand to the same layout regardless of which levels they contain.
    """
    if columns is None:
        columns = CATEGORICAL_COLUMNS
    return pd.get_dummies(df, columns=columns, prefix_sep="_", dtype=np.int8)


def encode_ordinal(
    df: pd.DataFrame,
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """Replace categorical bins with their integer bucket ids."""
    if columns is None:
        columns = CATEGORICAL_COLUMNS
    df = df.copy()
    for column in columns:
        df[column] = df[column].astype(float)
    return df


def engineer_features(
    df: pd.DataFrame,
    start: str | None = None,
    end: str | None = None,
) -> pd.DataFrame:
    """
    Label → time window → column selection.

    Binning happens after partitioning since its cut-points come from the
    training subset (see ``fit_binners``/``apply_binners``).
    """
    logger.info("Starting feature engineering for %d polls...", len(df))
    labeled = label_fishing(df)
    windowed = restrict_time_range(labeled, start, end)
    return select_model_columns(windowed)
