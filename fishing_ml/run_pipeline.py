"""
Fishing Activity Classification Pipeline — CLI Runner.

Usage:
    python -m fishing_ml.run_pipeline                     # generate demo data if missing, then train
    python -m fishing_ml.run_pipeline --step generate     # only write synthetic polls
    python -m fishing_ml.run_pipeline --step folds        # stratified fold assignment summary
    python -m fishing_ml.run_pipeline --step train --data polls.csv
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from . import config
from .model import FAMILIES, get_family


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _family_list(value: str) -> list[str]:
    names = [v.strip() for v in value.split(",") if v.strip()]
    unknown = [n for n in names if n not in FAMILIES]
    if unknown or not names:
        raise argparse.ArgumentTypeError(
            f"unknown model family {unknown or value!r}; choose from {sorted(FAMILIES)}"
        )
    return names


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fishing Activity Classification Pipeline")
    parser.add_argument(
        "--step",
        choices=["generate", "folds", "train", "all"],
        default="all",
        help="Pipeline step to run (default: all)",
    )
    parser.add_argument("--data", type=Path, default=config.DATA_PATH, help="Input CSV of polls")
    parser.add_argument("--outputs", type=Path, default=config.OUTPUTS_DIR, help="Directory for plots and metrics")
    parser.add_argument("--start", default=config.TIME_RANGE_START, help="First UTC date to keep (YYYY-MM-DD)")
    parser.add_argument("--end", default=config.TIME_RANGE_END, help="UTC date to stop before (YYYY-MM-DD)")
    parser.add_argument("--train-fraction", type=float, default=config.TRAIN_FRACTION)
    parser.add_argument("--cv-folds", type=int, default=config.CV_FOLDS)
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED)
    parser.add_argument("--n-jobs", type=int, default=config.N_JOBS, help="Parallel jobs for grid search")
    parser.add_argument(
        "--families",
        type=_family_list,
        default=list(FAMILIES),
        help=f"Comma-separated model families (default: {','.join(FAMILIES)})",
    )
    parser.add_argument(
        "--refit-test-scaler",
        action=argparse.BooleanOptionalAction,
        default=config.REFIT_TEST_SCALER,
        help="Fit a separate range normalizer on the test set (leaks test ranges)",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip rendering diagnostic plots")
    parser.add_argument("--n-rows", type=int, default=5000, help="Synthetic polls to generate")
    parser.add_argument("--fishing-rate", type=float, default=0.25, help="Share of synthetic polls fishing")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger("fishing_ml.pipeline")

    total_start = time.time()

    # Step 1: Generate synthetic data
    if args.step == "generate" or (args.step == "all" and not args.data.exists()):
        logger.info("=" * 60)
        logger.info("Generating synthetic polls")
        logger.info("=" * 60)
        from .generate_synthetic_data import main as generate
        args.data = generate(
            n_rows=args.n_rows,
            fishing_rate=args.fishing_rate,
            output_path=args.data,
            seed=args.seed,
        )
        if args.step == "generate":
            return 0

    from .pipeline import RunContext, explore_folds, ingest, run, shape

    ctx = RunContext(
        data_path=args.data,
        outputs_dir=args.outputs,
        start=args.start,
        end=args.end,
        train_fraction=args.train_fraction,
        cv_folds=args.cv_folds,
        seed=args.seed,
        n_jobs=args.n_jobs,
        refit_test_scaler=args.refit_test_scaler,
        families=[get_family(name) for name in args.families],
        make_plots=not args.no_plots,
    )

    if args.step == "folds":
        ingest(ctx)
        shape(ctx)
        explore_folds(ctx)
        return 0

    run(ctx)

    logger.info("RESULTS SUMMARY")
    logger.info("-" * 40)
    for name, evaluation in ctx.evaluations.items():
        trained = ctx.models[name]
        counts = evaluation.counts
        logger.info("%s", name)
        logger.info("  Best params: %s", trained.best_params)
        logger.info("  CV %s: %.4f", trained.scoring, trained.best_score)
        logger.info("  Confusion matrix:\n%s", evaluation.matrix.to_string())
        logger.info(
            "  Precision: %.3f  Recall: %.3f  F1: %.3f",
            counts.precision, counts.recall, counts.f1,
        )
        ranking = ctx.metrics["models"][name].get("feature_importance_ranking")
        if ranking:
            logger.info("  Top features:")
            for feat in ranking[:5]:
                logger.info("    %s: %.4f", feat["feature"], feat["importance"])
        logger.info("")

    logger.info("Outputs written to %s", ctx.outputs_dir)
    logger.info("Total time %.1fs", time.time() - total_start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
