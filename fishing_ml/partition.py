"""
Stratified train/test partitioning and fold assignment.

Both preserve the class proportions of the target column.
"""

import logging

import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from .feature_engineering import TARGET

logger = logging.getLogger(__name__)


def stratified_split(
    df: pd.DataFrame,
    target: str = TARGET,
    train_fraction: float = 0.8,
    seed: int = 42,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split rows into (train, test) keeping class proportions.

    Rows with a missing label cannot be stratified and are dropped first.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    labeled = df[df[target].notna()]
    if len(labeled) != len(df):
        logger.warning("Dropped %d polls with no label before splitting", len(df) - len(labeled))

    train, test = train_test_split(
        labeled,
        train_size=train_fraction,
        stratify=labeled[target],
        random_state=seed,
    )
    logger.info(
        "Stratified split %.0f/%.0f: %d train, %d test",
        train_fraction * 100, (1 - train_fraction) * 100, len(train), len(test),
    )
    return train, test


def assign_folds(
    df: pd.DataFrame,
    target: str = TARGET,
    n_folds: int = 5,
    seed: int = 42,
) -> pd.Series:
    """
    Assign every labeled row a fold id in 1..n_folds, stratified by class.

    Returns a Series aligned to the labeled rows of ``df``.
    """
    labeled = df[df[target].notna()]
    skf = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=seed)

    folds = pd.Series(0, index=labeled.index, name="fold", dtype=int)
    for fold_i, (_, held_out) in enumerate(skf.split(labeled, labeled[target]), start=1):
        folds.iloc[held_out] = fold_i

    logger.info("Assigned %d polls to %d stratified folds", len(folds), n_folds)
    return folds


def class_balance(splits: dict[str, pd.Series]) -> pd.DataFrame:
    """
    Class counts and proportions per split.

    ``splits`` maps a split name (e.g. "train", "test", "fold 1") to its labels.
    Returns one row per (split, class) with columns count and proportion.
    """
    rows = []
    for name, labels in splits.items():
        counts = labels.value_counts(sort=False)
        total = counts.sum()
        for label, count in counts.items():
            rows.append({
                "split": name,
                "class": str(label),
                "count": int(count),
                "proportion": count / total if total else float("nan"),
            })

    balance = pd.DataFrame(rows)
    logger.info("Class balance:\n%s", balance.to_string(index=False))
    return balance
