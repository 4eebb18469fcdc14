"""
End-to-end fishing classification run.

Every run starts from a fresh RunContext that carries all intermediate
tables and results from one stage to the next.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from . import config
from .data_loader import load_observations, summarize
from .evaluate import (
    Evaluation,
    evaluate_model,
    feature_importance_ranking,
    plot_class_balance,
    plot_feature_importances,
    plot_network,
    write_metrics,
)
from .feature_engineering import (
    BINNED_COLUMNS,
    FEATURE_COLUMNS,
    TARGET,
    EqualWidthBinner,
    apply_binners,
    engineer_features,
    fit_binners,
)
from .model import BOOSTED_TREES, NETWORK, ModelFamily, TrainedModel
from .partition import assign_folds, class_balance, stratified_split
from .preprocessing import RangeNormalizer, normalize_splits
from .train import train_model

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Settings and state of a single pipeline run."""

    data_path: Path = field(default_factory=lambda: config.DATA_PATH)
    outputs_dir: Path = field(default_factory=lambda: config.OUTPUTS_DIR)
    start: str | None = config.TIME_RANGE_START
    end: str | None = config.TIME_RANGE_END
    train_fraction: float = config.TRAIN_FRACTION
    cv_folds: int = config.CV_FOLDS
    scoring: str = config.SCORING
    seed: int = config.RANDOM_SEED
    n_jobs: int = config.N_JOBS
    refit_test_scaler: bool = config.REFIT_TEST_SCALER
    n_bins: dict[str, int] = field(
        default_factory=lambda: {"length": config.LENGTH_BINS, "hour": config.HOUR_BINS}
    )
    families: list[ModelFamily] = field(default_factory=lambda: [NETWORK, BOOSTED_TREES])
    make_plots: bool = True

    # Filled in by the stages
    observations: pd.DataFrame | None = None
    dataset: pd.DataFrame | None = None
    train: pd.DataFrame | None = None
    test: pd.DataFrame | None = None
    folds: pd.Series | None = None
    balance: pd.DataFrame | None = None
    binners: dict[str, EqualWidthBinner] = field(default_factory=dict)
    normalizer: RangeNormalizer | None = None
    models: dict[str, TrainedModel] = field(default_factory=dict)
    evaluations: dict[str, Evaluation] = field(default_factory=dict)
    metrics: dict = field(default_factory=dict)

    def __post_init__(self):
        self.data_path = Path(self.data_path)
        self.outputs_dir = Path(self.outputs_dir)


def _stage(title: str) -> float:
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)
    return time.time()


def ingest(ctx: RunContext) -> None:
    ctx.observations = load_observations(ctx.data_path)
    summarize(ctx.observations)


def shape(ctx: RunContext) -> None:
    ctx.dataset = engineer_features(ctx.observations, ctx.start, ctx.end)
    if ctx.dataset.empty:
        raise ValueError(f"No polls left in time range [{ctx.start}, {ctx.end})")


def partition(ctx: RunContext) -> None:
    ctx.train, ctx.test = stratified_split(
        ctx.dataset, TARGET, train_fraction=ctx.train_fraction, seed=ctx.seed,
    )
    ctx.balance = class_balance({
        "all": ctx.dataset[TARGET].dropna(),
        "train": ctx.train[TARGET],
        "test": ctx.test[TARGET],
    })


def explore_folds(ctx: RunContext) -> pd.DataFrame:
    """Stratified fold ids over the whole labeled dataset, with per-fold balance."""
    ctx.folds = assign_folds(ctx.dataset, TARGET, n_folds=ctx.cv_folds, seed=ctx.seed)
    labels = ctx.dataset.loc[ctx.folds.index, TARGET]
    return class_balance({
        f"fold {k}": labels[ctx.folds == k]
        for k in range(1, ctx.cv_folds + 1)
    })


def preprocess(ctx: RunContext) -> None:
    # Cut-points and scaling ranges both come from the training subset only
    ctx.binners = fit_binners(ctx.train, ctx.n_bins)
    train = apply_binners(ctx.train, ctx.binners)
    test = apply_binners(ctx.test, ctx.binners)
    ctx.train, ctx.test, ctx.normalizer = normalize_splits(
        train, test, refit_test=ctx.refit_test_scaler,
    )


def fit_models(ctx: RunContext) -> None:
    feature_columns = [BINNED_COLUMNS.get(c, c) for c in FEATURE_COLUMNS]
    for family in ctx.families:
        start = time.time()
        ctx.models[family.name] = train_model(
            family,
            ctx.train,
            feature_columns=feature_columns,
            target=TARGET,
            cv_folds=ctx.cv_folds,
            scoring=ctx.scoring,
            seed=ctx.seed,
            n_jobs=ctx.n_jobs,
        )
        logger.info("Trained %s in %.1fs", family.name, time.time() - start)


def evaluate(ctx: RunContext) -> None:
    for name, trained in ctx.models.items():
        ctx.evaluations[name] = evaluate_model(trained, ctx.test, target=TARGET)


def diagnose(ctx: RunContext) -> None:
    ctx.outputs_dir.mkdir(parents=True, exist_ok=True)

    if ctx.make_plots and ctx.balance is not None:
        plot_class_balance(ctx.balance, ctx.outputs_dir / "class_balance.png")

    metrics = {
        "data_path": str(ctx.data_path),
        "n_polls": len(ctx.dataset),
        "n_train": len(ctx.train),
        "n_test": len(ctx.test),
        "refit_test_scaler": ctx.refit_test_scaler,
        "cut_points": {c: b.cut_points.round(4).tolist() for c, b in ctx.binners.items()},
        "scaling_ranges": ctx.normalizer.params,
        "models": {},
    }

    for name, trained in ctx.models.items():
        entry = {
            "best_params": trained.best_params,
            f"cv_{trained.scoring}": round(trained.best_score, 4),
            "test": ctx.evaluations[name].to_dict() if name in ctx.evaluations else None,
        }
        if hasattr(trained.estimator, "feature_importances_"):
            ranking = feature_importance_ranking(trained)
            entry["feature_importance_ranking"] = ranking
            if ctx.make_plots:
                plot_feature_importances(
                    [r["importance"] for r in ranking],
                    [r["feature"] for r in ranking],
                    ctx.outputs_dir / f"{name}_feature_importances.png",
                )
        if hasattr(trained.estimator, "coefs_") and ctx.make_plots:
            plot_network(trained, ctx.outputs_dir / f"{name}_structure.png")
        metrics["models"][name] = entry

    ctx.metrics = metrics
    write_metrics(metrics, ctx.outputs_dir / "metrics.json")


def run(ctx: RunContext | None = None, **settings) -> RunContext:
    """
    Execute every stage in order on a fresh context.

    Keyword ``settings`` override RunContext defaults, or the fields of
    ``ctx`` when one is given.
    """
    if ctx is None:
        ctx = RunContext(**settings)
    elif settings:
        ctx = dataclasses.replace(ctx, **settings)

    total_start = time.time()
    stages = [
        ("STEP 1: Ingesting observations", ingest),
        ("STEP 2: Labeling and shaping features", shape),
        ("STEP 3: Partitioning", partition),
        ("STEP 4: Binning and range normalization", preprocess),
        ("STEP 5: Grid search with cross-validation", fit_models),
        ("STEP 6: Evaluating on the test set", evaluate),
        ("STEP 7: Diagnostics", diagnose),
    ]
    for title, stage in stages:
        start = _stage(title)
        stage(ctx)
        logger.info("%s completed in %.1fs", title.split(":")[0], time.time() - start)
        logger.info("")

    logger.info("Pipeline completed in %.1fs", time.time() - total_start)
    return ctx
