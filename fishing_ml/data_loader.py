"""
Data loading and validation for the fishing activity pipeline.
"""

import logging
from pathlib import Path

import pandas as pd

from . import config

logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = [
    "utc_date", "local_time", "fishing", "len", "boat",
    "hour", "bearing.rad", "speed", "bottom_depth",
]

# Raw file names → Python-friendly column names
RENAME_COLUMNS = {
    "len": "length",
    "bearing.rad": "bearing_rad",
}

DTYPES = {
    "fishing": float,
    "len": float,
    "boat": str,
    "hour": float,
    "bearing.rad": float,
    "speed": float,
    "bottom_depth": float,
}


def validate_schema(df: pd.DataFrame) -> None:
    """Validate DataFrame has all expected columns. Raises ValueError on failure."""
    missing = set(EXPECTED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}")

    extra = set(df.columns) - set(EXPECTED_COLUMNS)
    if extra:
        logger.warning("Extra columns found (will be ignored): %s", sorted(extra))


def parse_timestamps(
    df: pd.DataFrame,
    local_timezone: str | None = None,
) -> pd.DataFrame:
    """Parse utc_date (as UTC) and local_time (naive or localized) in place."""
    df["utc_date"] = pd.to_datetime(df["utc_date"], format=config.TIMESTAMP_FORMAT, utc=True)
    df["local_time"] = pd.to_datetime(df["local_time"], format=config.TIMESTAMP_FORMAT)
    if local_timezone:
        df["local_time"] = df["local_time"].dt.tz_localize(
            local_timezone, ambiguous="NaT", nonexistent="NaT",
        )
    return df


def load_observations(
    path: str | Path | None = None,
    sep: str = ",",
    local_timezone: str | None = None,
) -> pd.DataFrame:
    """
    Load vessel polls from a delimited text file.

    Validates schema, parses both timestamp columns and renames
    ``len``/``bearing.rad`` to ``length``/``bearing_rad``.
    """
    if path is None:
        path = config.DATA_PATH
    path = Path(path)
    if local_timezone is None:
        local_timezone = config.LOCAL_TIMEZONE

    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    logger.info("Loading observations from %s", path)
    df = pd.read_csv(path, sep=sep, dtype=DTYPES)

    validate_schema(df)
    df = df[EXPECTED_COLUMNS].copy()
    df = parse_timestamps(df, local_timezone)
    df = df.rename(columns=RENAME_COLUMNS)

    n_flagged = int((df["fishing"] == 1).sum())
    logger.info(
        "Loaded %d polls for %d boats (%d flagged fishing, %d with missing values)",
        len(df),
        df["boat"].nunique(),
        n_flagged,
        int(df.isna().any(axis=1).sum()),
    )
    return df


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Numeric summary of a table, logged at INFO."""
    summary = df.describe()
    logger.info("Data summary:\n%s", summary.to_string())
    return summary
