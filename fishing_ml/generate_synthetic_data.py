"""
Generate realistic synthetic vessel polls in the input file format.

Fishing polls are slow, over shallower water and mostly in daylight;
transiting polls are faster with bearings held steady per boat.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import pandas as pd

from . import config

logger = logging.getLogger(__name__)

COLUMNS = [
    "utc_date", "local_time", "fishing", "len", "boat",
    "hour", "bearing.rad", "speed", "bottom_depth",
]

# Offset of the fleet's home port from UTC
LOCAL_UTC_OFFSET_HOURS = -4


def _random_boats(rng: np.random.Generator, n_boats: int) -> pd.DataFrame:
    """Boat identities with a fixed length each."""
    return pd.DataFrame({
        "boat": [f"V{i:04d}" for i in range(1, n_boats + 1)],
        "len": np.round(rng.uniform(8.0, 45.0, size=n_boats), 1),
    })


def generate_observations(
    n_rows: int = 5000,
    fishing_rate: float = 0.25,
    n_boats: int = 40,
    missing_rate: float = 0.0,
    seed: int = 42,
) -> pd.DataFrame:
    """
    Generate ``n_rows`` polls, exactly ``round(n_rows * fishing_rate)`` of them fishing.

    ``missing_rate`` blanks that fraction of bottom_depth values to mimic
    polls without a depth lookup.
    """
    if not 0.0 <= fishing_rate <= 1.0:
        raise ValueError(f"fishing_rate must be in [0, 1], got {fishing_rate}")

    rng = np.random.default_rng(seed)
    boats = _random_boats(rng, n_boats)

    n_fishing = int(round(n_rows * fishing_rate))
    fishing = np.zeros(n_rows, dtype=int)
    fishing[:n_fishing] = 1
    rng.shuffle(fishing)

    boat_idx = rng.integers(0, n_boats, size=n_rows)

    base_time = datetime(2016, 1, 1)
    offsets = np.sort(rng.uniform(0, 365 * 24 * 3600, size=n_rows))
    local = [
        base_time + timedelta(seconds=float(s), hours=LOCAL_UTC_OFFSET_HOURS)
        for s in offsets
    ]

    # Fishing hauls cluster around local daylight; transits spread over the day
    daylight = rng.integers(5, 19, size=n_rows)
    in_daylight = (fishing == 1) & (rng.random(n_rows) < 0.8)
    local = [
        t.replace(hour=int(h)) if moved else t
        for t, h, moved in zip(local, daylight, in_daylight)
    ]
    utc = [t - timedelta(hours=LOCAL_UTC_OFFSET_HOURS) for t in local]
    hours = np.array([t.hour for t in local])

    speed = np.where(
        fishing == 1,
        np.clip(rng.normal(3.0, 1.0, n_rows), 0.2, None),
        np.clip(rng.normal(8.5, 2.5, n_rows), 0.0, None),
    )
    bottom_depth = np.where(
        fishing == 1,
        rng.gamma(4.0, 30.0, n_rows),
        rng.gamma(2.0, 120.0, n_rows),
    )
    bearing = np.where(
        fishing == 1,
        rng.uniform(0, 2 * np.pi, n_rows),
        np.mod(rng.normal(np.pi / 2, 0.6, n_rows), 2 * np.pi),
    )

    df = pd.DataFrame({
        "utc_date": [t.strftime(config.TIMESTAMP_FORMAT) for t in utc],
        "local_time": [t.strftime(config.TIMESTAMP_FORMAT) for t in local],
        "fishing": fishing,
        "len": boats["len"].to_numpy()[boat_idx],
        "boat": boats["boat"].to_numpy()[boat_idx],
        "hour": hours,
        "bearing.rad": np.round(bearing, 4),
        "speed": np.round(speed, 2),
        "bottom_depth": np.round(bottom_depth, 1),
    })

    if missing_rate > 0:
        missing = rng.random(n_rows) < missing_rate
        df.loc[missing, "bottom_depth"] = np.nan

    # Daylight moves break time order; polls are listed chronologically
    df = df.sort_values("utc_date", kind="stable").reset_index(drop=True)
    return df[COLUMNS]


def main(
    n_rows: int = 5000,
    fishing_rate: float = 0.25,
    missing_rate: float = 0.01,
    output_dir: str | Path | None = None,
    seed: int = 42,
    output_path: str | Path | None = None,
) -> Path:
    """
    Generate synthetic polls and write them to CSV.

    Writes to ``output_path`` when given, otherwise to
    ``<output_dir>/synthetic_observations.csv``.
    """
    if output_path is not None:
        path = Path(output_path)
    else:
        path = (Path(output_dir) if output_dir else config.DATA_DIR) / "synthetic_observations.csv"
    path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Generating %d polls (%.0f%% fishing)...", n_rows, fishing_rate * 100)
    df = generate_observations(
        n_rows=n_rows, fishing_rate=fishing_rate, missing_rate=missing_rate, seed=seed,
    )

    df.to_csv(path, index=False)
    logger.info("Wrote %d polls (%d fishing) to %s", len(df), int(df["fishing"].sum()), path)
    return path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s")
    main()
