"""
Evaluation metrics and visualizations for the fishing activity classifiers.
"""

import json
import logging
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from sklearn.metrics import confusion_matrix

from .feature_engineering import CLASS_LABELS, FISHING, NOT_FISHING, TARGET
from .model import TrainedModel
from .predict import predict

logger = logging.getLogger(__name__)

CLASS_COLORS = {FISHING: "#2196F3", NOT_FISHING: "#9E9E9E"}


def build_confusion_matrix(actual: pd.Series, predicted: pd.Series) -> pd.DataFrame:
    """
    2x2 contingency table of predicted (rows) vs. actual (columns).

    Both axes are ordered (fishing, notfishing) whether or not every
    class occurs.
    """
    counts = confusion_matrix(actual, predicted, labels=CLASS_LABELS)
    # sklearn puts actual on rows; flip to predicted-by-actual
    matrix = pd.DataFrame(
        counts.T,
        index=pd.Index(CLASS_LABELS, name="predicted"),
        columns=pd.Index(CLASS_LABELS, name="actual"),
    )
    return matrix


def _ratio(numerator: float, denominator: float, name: str) -> float:
    if denominator == 0:
        logger.warning("%s is undefined (zero denominator); reporting NaN", name)
        return float("nan")
    return numerator / denominator


@dataclass
class ConfusionCounts:
    """
    Cells of a binary confusion matrix with ``fishing`` as the positive class.

    Ratios are computed on first access and cached, so an undefined ratio
    is reported once.
    """

    tp: int
    fp: int
    fn: int
    tn: int

    @classmethod
    def from_matrix(cls, matrix: pd.DataFrame) -> "ConfusionCounts":
        return cls(
            tp=int(matrix.loc[FISHING, FISHING]),
            fp=int(matrix.loc[FISHING, NOT_FISHING]),
            fn=int(matrix.loc[NOT_FISHING, FISHING]),
            tn=int(matrix.loc[NOT_FISHING, NOT_FISHING]),
        )

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.fn + self.tn

    @cached_property
    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp, "precision")

    @cached_property
    def recall(self) -> float:
        return _ratio(self.tp, self.tp + self.fn, "recall")

    @cached_property
    def f1(self) -> float:
        precision, recall = self.precision, self.recall
        if np.isnan(precision) or np.isnan(recall):
            return float("nan")
        return _ratio(2 * precision * recall, precision + recall, "F1")

    @cached_property
    def accuracy(self) -> float:
        return _ratio(self.tp + self.tn, self.total, "accuracy")


@dataclass
class Evaluation:
    """Held-out results for one trained model."""

    name: str
    predictions: pd.DataFrame
    matrix: pd.DataFrame
    counts: ConfusionCounts

    def to_dict(self) -> dict:
        def _clean(value: float) -> float | None:
            return None if np.isnan(value) else round(float(value), 4)

        return {
            "n_scored": len(self.predictions),
            "confusion_matrix": {
                f"predicted_{p}": {f"actual_{a}": int(self.matrix.loc[p, a]) for a in CLASS_LABELS}
                for p in CLASS_LABELS
            },
            "precision": _clean(self.counts.precision),
            "recall": _clean(self.counts.recall),
            "f1": _clean(self.counts.f1),
            "accuracy": _clean(self.counts.accuracy),
        }


def evaluate_model(
    trained: TrainedModel,
    test_df: pd.DataFrame,
    target: str = TARGET,
) -> Evaluation:
    """Score the test split and derive the confusion matrix and metrics."""
    predictions = predict(trained, test_df, target=target)
    matrix = build_confusion_matrix(predictions["actual"], predictions["predicted"])
    counts = ConfusionCounts.from_matrix(matrix)

    logger.info("Confusion matrix for %s:\n%s", trained.name, matrix.to_string())
    logger.info(
        "%s: precision=%.3f recall=%.3f F1=%.3f",
        trained.name, counts.precision, counts.recall, counts.f1,
    )
    return Evaluation(name=trained.name, predictions=predictions, matrix=matrix, counts=counts)


def feature_importance_ranking(trained: TrainedModel) -> list[dict]:
    """Library-native importances of a tree ensemble, highest first."""
    importances = getattr(trained.estimator, "feature_importances_", None)
    if importances is None:
        raise ValueError(f"{trained.name} does not report feature importances")

    ranking = sorted(
        zip(trained.encoded_columns, importances),
        key=lambda x: x[1],
        reverse=True,
    )
    return [
        {"feature": name, "importance": round(float(imp), 4)}
        for name, imp in ranking
    ]


def plot_class_balance(balance: pd.DataFrame, output_path: Path) -> None:
    """Grouped bar chart of class counts per split (output of partition.class_balance)."""
    table = balance.pivot(index="split", columns="class", values="count").fillna(0)
    table = table.reindex(index=list(dict.fromkeys(balance["split"])))

    fig, ax = plt.subplots(figsize=(8, 5))
    x = np.arange(len(table.index))
    width = 0.8 / max(len(table.columns), 1)
    for i, label in enumerate(table.columns):
        ax.bar(
            x + i * width, table[label], width,
            label=label, color=CLASS_COLORS.get(label, None),
        )
    ax.set_xticks(x + width * (len(table.columns) - 1) / 2)
    ax.set_xticklabels(table.index)
    ax.set_ylabel("Polls")
    ax.set_title("Class counts per split")
    ax.legend()
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()
    logger.info("Saved class balance plot to %s", output_path)


def plot_feature_importances(
    importances: np.ndarray,
    feature_names: list[str],
    output_path: Path,
    title: str = "Boosted trees — feature importances",
) -> None:
    """Horizontal bar chart of feature importances."""
    importances = np.asarray(importances)
    sorted_idx = np.argsort(importances)
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.barh(
        [feature_names[i] for i in sorted_idx],
        importances[sorted_idx],
        color="#2196F3",
    )
    ax.set_xlabel("Relative influence")
    ax.set_title(title)
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()
    logger.info("Saved feature importances plot to %s", output_path)


def _layer_positions(n_nodes: int) -> np.ndarray:
    if n_nodes == 1:
        return np.array([0.5])
    return np.linspace(0.9, 0.1, n_nodes)


def plot_network(trained: TrainedModel, output_path: Path) -> None:
    """
    Structure diagram of a fitted MLP.

    Nodes are drawn per layer (I = input, H = hidden, O = output, B = bias).
    Edge color is the weight sign (black positive, grey negative) and
    edge width its relative magnitude.
    """
    estimator = trained.estimator
    coefs = getattr(estimator, "coefs_", None)
    if coefs is None:
        raise ValueError(f"{trained.name} is not a fitted neural network")
    intercepts = estimator.intercepts_

    layer_sizes = [coefs[0].shape[0]] + [w.shape[1] for w in coefs]
    max_weight = max(
        max(np.abs(w).max() for w in coefs),
        max(np.abs(b).max() for b in intercepts),
    ) or 1.0

    xs = np.linspace(0.15, 0.85, len(layer_sizes))
    ys = [_layer_positions(n) for n in layer_sizes]

    fig, ax = plt.subplots(figsize=(10, max(5, 0.45 * layer_sizes[0])))

    def _edge(x0, y0, x1, y1, weight):
        ax.plot(
            [x0, x1], [y0, y1],
            color="black" if weight >= 0 else "grey",
            linewidth=0.3 + 4.0 * abs(weight) / max_weight,
            alpha=0.8, zorder=1,
        )

    for layer, weights in enumerate(coefs):
        for i in range(weights.shape[0]):
            for j in range(weights.shape[1]):
                _edge(xs[layer], ys[layer][i], xs[layer + 1], ys[layer + 1][j], weights[i, j])

        # Bias node feeding the next layer
        bias_x = (xs[layer] + xs[layer + 1]) / 2
        for j, bias in enumerate(intercepts[layer]):
            _edge(bias_x, 0.98, xs[layer + 1], ys[layer + 1][j], bias)
        ax.scatter([bias_x], [0.98], s=500, color="white", edgecolors="black", zorder=2)
        ax.text(bias_x, 0.98, f"B{layer + 1}", ha="center", va="center", fontsize=8, zorder=3)

    prefixes = ["I"] + ["H"] * (len(layer_sizes) - 2) + ["O"]
    for layer, (x, layer_ys) in enumerate(zip(xs, ys)):
        ax.scatter([x] * len(layer_ys), layer_ys, s=700, color="#BBDEFB", edgecolors="black", zorder=2)
        for i, y in enumerate(layer_ys):
            ax.text(x, y, f"{prefixes[layer]}{i + 1}", ha="center", va="center", fontsize=8, zorder=3)

    for name, y in zip(trained.encoded_columns, ys[0]):
        ax.text(xs[0] - 0.04, y, name, ha="right", va="center", fontsize=8)
    ax.text(xs[-1] + 0.04, ys[-1][0], f"P({estimator.classes_[1]})", ha="left", va="center", fontsize=8)

    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1.04)
    ax.axis("off")
    ax.set_title(f"Network structure {'-'.join(str(n) for n in layer_sizes)}")
    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()
    logger.info("Saved network diagram to %s", output_path)


def write_metrics(metrics: dict, output_path: Path) -> None:
    with open(output_path, "w") as f:
        json.dump(metrics, f, indent=2, default=str)
    logger.info("Saved metrics to %s", output_path)
