"""Visualisation utilities for the complaint data and model results."""

import logging
import math
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from ..data_loading import complaints  # noqa: E402
from ..utils import file_io  # noqa: E402


def plot_product_counts(df, path):
    """Bar chart of complaints per product."""
    path = Path(path)
    counts = df["product"].value_counts()
    plt.figure(figsize=(8, 5))
    counts.plot(kind="bar", color="steelblue")
    plt.title("Complaints by product")
    plt.xlabel("")
    plt.ylabel("Count")
    plt.xticks(rotation=30, ha="right")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_top_terms(freqs, path, by="product"):
    """One horizontal bar panel of top terms per product.

    `freqs` is the tidy `(product, term, n)` table from
    `term_frequencies`.
    """
    path = Path(path)
    if freqs.empty:
        logging.warning("No term frequencies to plot; skipping %s", path.name)
        return None
    groups = list(freqs.groupby(by))
    ncols = 2 if len(groups) > 1 else 1
    nrows = math.ceil(len(groups) / ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(6 * ncols, 4 * nrows), squeeze=False)
    for ax, (label, grp) in zip(axes.flat, groups):
        grp = grp.sort_values("n")
        ax.barh(grp["term"].astype(str), grp["n"], color="steelblue")
        ax.set_title(str(label))
        ax.set_xlabel("n")
    for ax in list(axes.flat)[len(groups):]:
        ax.set_visible(False)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_variable_importance(importance, path, title="Variable importance"):
    """Horizontal bars of the most important features."""
    path = Path(path)
    imp = importance.sort_values("importance")
    plt.figure(figsize=(7, max(3, 0.35 * len(imp))))
    plt.barh(imp["feature"].astype(str), imp["importance"], color="darkorange")
    plt.title(title)
    plt.xlabel("Importance")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_confusion_matrix(matrix, labels, path):
    """Heatmap of a confusion matrix with counts annotated."""
    path = Path(path)
    matrix = np.asarray(matrix)
    fig, ax = plt.subplots(figsize=(7, 6))
    im = ax.imshow(matrix, cmap="Blues")
    ax.set_xticks(range(len(labels)))
    ax.set_yticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=30, ha="right", fontsize=8)
    ax.set_yticklabels(labels, fontsize=8)
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Truth")
    threshold = matrix.max() / 2 if matrix.size else 0
    for i in range(matrix.shape[0]):
        for j in range(matrix.shape[1]):
            ax.text(j, i, int(matrix[i, j]), ha="center", va="center",
                    color="white" if matrix[i, j] > threshold else "black")
    fig.colorbar(im, ax=ax)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_cv_metrics(metrics, path):
    """Best mean CV score per model for each metric."""
    path = Path(path)
    best = metrics.groupby(["model", "metric"])["mean"].max().unstack("metric")
    ax = best.plot(kind="bar", figsize=(7, 5), ylim=(0, 1.05))
    ax.set_title("Cross-validated performance (best candidate)")
    ax.set_xlabel("")
    ax.set_ylabel("Mean score")
    plt.xticks(rotation=0)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def generate_plots(results_dir, output_dir, processed_dir=None):
    """Generate every plot whose input artefact exists.

    Parameters
    ----------
    results_dir : Path or str
        Directory holding the classification/processing artefacts.
    output_dir : Path or str
        Directory where figures should be saved.
    processed_dir : Path or str, optional
        Directory holding the tidy complaint tables (product counts).

    Returns
    -------
    list of Path
        The figures that were written.
    """
    results_dir = Path(results_dir)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    if processed_dir is not None:
        tidy_train = Path(processed_dir) / complaints.TIDY_TRAIN
        if tidy_train.exists():
            written.append(plot_product_counts(complaints.read_tidy(tidy_train), output_dir / "product_counts.png"))
        else:
            logging.warning("No tidy training table at %s; skipping product counts", tidy_train)

    inputs = {
        "term_frequencies.csv": lambda df: plot_top_terms(df, output_dir / "top_terms.png"),
        "variable_importance.csv": lambda df: plot_variable_importance(df, output_dir / "variable_importance.png"),
        "cv_metrics.csv": lambda df: plot_cv_metrics(df, output_dir / "cv_metrics.png"),
    }
    for name, plot in inputs.items():
        path = results_dir / name
        if not path.exists():
            logging.warning("%s not found in %s; skipping", name, results_dir)
            continue
        figure = plot(file_io.read_csv(path))
        if figure is not None:
            written.append(figure)

    matrix_path = results_dir / "confusion_matrix.csv"
    if matrix_path.exists():
        matrix = pd.read_csv(matrix_path, index_col=0)
        written.append(plot_confusion_matrix(matrix.to_numpy(), list(matrix.columns), output_dir / "confusion_matrix.png"))
    else:
        logging.warning("confusion_matrix.csv not found in %s; skipping", results_dir)

    logging.info("Wrote %d figures to %s", len(written), output_dir)
    return written
