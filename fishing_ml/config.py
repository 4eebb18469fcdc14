import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).parent

# ── Paths ─────────────────────────────────────────────────────────────────────
DATA_DIR = Path(os.getenv("FISHING_DATA_DIR", PACKAGE_DIR / "data"))
DATA_PATH = Path(os.getenv("FISHING_DATA_PATH", DATA_DIR / "synthetic_observations.csv"))
OUTPUTS_DIR = Path(os.getenv("FISHING_OUTPUTS_DIR", PACKAGE_DIR / "outputs"))

# ── Input format ──────────────────────────────────────────────────────────────
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# Time zone of the local_time column, e.g. "America/Halifax". Left naive if unset.
LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE") or None

# Optional window on utc_date (inclusive start, exclusive end), "YYYY-MM-DD"
TIME_RANGE_START = os.getenv("TIME_RANGE_START") or None
TIME_RANGE_END = os.getenv("TIME_RANGE_END") or None

# ── Feature shaping ───────────────────────────────────────────────────────────
LENGTH_BINS = int(os.getenv("LENGTH_BINS", "5"))
HOUR_BINS = int(os.getenv("HOUR_BINS", "4"))

# ── Partitioning & resampling ────────────────────────────────────────────────
RANDOM_SEED = int(os.getenv("RANDOM_SEED", "42"))
TRAIN_FRACTION = float(os.getenv("TRAIN_FRACTION", "0.8"))
CV_FOLDS = int(os.getenv("CV_FOLDS", "5"))
SCORING = os.getenv("SCORING", "roc_auc")

# ── Training ─────────────────────────────────────────────────────────────────
N_JOBS = int(os.getenv("N_JOBS", "1"))
# Refit a second scaler on the test set instead of reusing the training one.
# Leaks test-set ranges into preprocessing; off unless explicitly requested.
REFIT_TEST_SCALER = os.getenv("REFIT_TEST_SCALER", "false").lower() == "true"
