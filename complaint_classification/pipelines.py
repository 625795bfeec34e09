"""
High‑level pipeline orchestration functions.

Each function in this module coordinates a distinct stage of the
analysis.  The functions call into lower‑level modules defined in
`data_loading`, `data_processing`, `classification` and `analysis`,
read their locations from `config`, and merge what they produce into
the workspace snapshot (`config.WORKSPACE_FILE`) so a later session
can pick up where the last one stopped.  Use these functions from the
command line (`scripts/run_pipeline.py`) or import them into your own
scripts/notebooks.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pandas as pd

from . import config
from .analysis import visualizations
from .classification import text_classifier
from .data_loading import complaints
from .data_processing import text_features
from .utils import file_io

STAGES = ("load", "process", "classify", "analyse")


def run_data_loading() -> Tuple[pd.DataFrame, pd.DataFrame] | None:
    """Read the raw complaint extracts and write tidy tables.

    Reads `config.TRAIN_FILE` and `config.TEST_FILE` from
    `config.RAW_DATA_DIR`, normalises columns and product labels, and
    writes the tidy tables to `config.PROCESSED_DATA_DIR`.  Product
    counts go to `config.RESULTS_DIR`.  Returns the tidy tables, or
    ``None`` when an extract is missing.
    """
    logging.info("Loading complaint extracts…")
    try:
        train, test = complaints.write_tidy_datasets(config.RAW_DATA_DIR, config.PROCESSED_DATA_DIR)
    except FileNotFoundError as exc:
        logging.error("%s", exc)
        return None
    summary = complaints.summarise_products(train)
    file_io.write_csv(summary, config.RESULTS_DIR / "product_counts.csv")
    for row in summary.itertuples(index=False):
        logging.info("  %-30s %6d (%.1f%%)", row.product, row.n, 100 * row.share)
    file_io.update_workspace(config.WORKSPACE_FILE, complaints_train=train, complaints_test=test)
    return train, test


def run_data_processing() -> Tuple[pd.DataFrame, pd.DataFrame] | None:
    """Clean narratives and build the document-term matrix.

    Produces the processed tables used for modelling, per-product term
    counts, and a sparse document-term matrix (terms plus one-hot
    metadata) of the labelled complaints that is kept in the workspace
    for inspection.  Returns the processed tables, or ``None`` when
    the tidy tables are missing.
    """
    logging.info("Processing complaint narratives…")
    processed = text_features.process_datasets(
        input_dir=config.PROCESSED_DATA_DIR,
        output_dir=config.PROCESSED_DATA_DIR,
        results_dir=config.RESULTS_DIR,
        stopwords_source=config.STOPWORDS_SOURCE,
    )
    if processed is None:
        return None
    train, test = processed

    logging.info("Building document-term matrix…")
    dtm = text_features.build_document_term_matrix(
        train,
        weighting=config.TERM_WEIGHTING,
        max_sparsity=config.MAX_TERM_SPARSITY,
        min_frequency=config.METADATA_MIN_FREQUENCY,
    )
    file_io.update_workspace(
        config.WORKSPACE_FILE,
        complaints_train=train,
        complaints_test=test,
        document_term_matrix=dtm,
    )
    return train, test


def run_classification(
    n_jobs: int | None = None,
    weighting: str | None = None,
    param_grids: Dict[str, Dict[str, list]] | None = None,
) -> Dict[str, Any] | None:
    """Tune, evaluate and apply the classifiers.

    Arguments left as ``None`` fall back to `config`.  Results are
    written to `config.RESULTS_DIR` and the fitted final model plus
    metric tables are added to the workspace.
    """
    logging.info("Running complaint classification pipeline…")
    results = text_classifier.run_pipeline(
        processed_data_dir=config.PROCESSED_DATA_DIR,
        results_dir=config.RESULTS_DIR,
        weighting=weighting or config.TERM_WEIGHTING,
        n_jobs=config.N_JOBS if n_jobs is None else n_jobs,
        param_grids=param_grids,
        seed=config.RANDOM_SEED,
        train_proportion=config.TRAIN_PROPORTION,
        cv_folds=config.CV_FOLDS,
    )
    if results is None:
        return None
    file_io.update_workspace(
        config.WORKSPACE_FILE,
        best_model_name=results["best_model_name"],
        final_model=results["final_model"],
        cv_metrics=results["cv_metrics"],
        holdout_metrics=results["holdout_metrics"],
        variable_importance=results["variable_importance"],
        test_predictions=results["predictions"],
    )
    return results


def run_analysis() -> List[Path]:
    """Render plots of the data and model results to `config.FIGURES_DIR`."""
    logging.info("Generating visualisations…")
    return visualizations.generate_plots(
        results_dir=config.RESULTS_DIR,
        output_dir=config.FIGURES_DIR,
        processed_dir=config.PROCESSED_DATA_DIR,
    )


def run_all(**classification_kwargs) -> Dict[str, Any] | None:
    """Run every stage in order, stopping at the first one without input."""
    if run_data_loading() is None or run_data_processing() is None:
        return None
    results = run_classification(**classification_kwargs)
    run_analysis()
    return results
