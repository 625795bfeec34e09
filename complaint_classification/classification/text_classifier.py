"""
End‑to‑end complaint classification pipeline.

This module encapsulates supervised learning on complaint narratives.
It splits the labelled extract into training and evaluation sets,
tunes each model with cross-validated grid search, evaluates the tuned
models on the held-out split, refits the best one on every labelled
complaint and predicts the products of the unlabelled extract.  The
default models are a single decision tree (CART), a random forest and
an elastic-net logistic regression.  Extend or modify the model list
as needed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import joblib
import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score, classification_report, confusion_matrix, roc_auc_score
from sklearn.model_selection import GridSearchCV, StratifiedKFold, train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import MaxAbsScaler
from sklearn.tree import DecisionTreeClassifier
from tqdm import tqdm

from .. import config
from ..data_processing.text_features import (
    PROCESSED_TEST,
    PROCESSED_TRAIN,
    TOKENS_COL,
    build_feature_transformer,
    metadata_columns,
    prepare_narratives,
)
from ..data_processing.utils import unseen_categories
from ..utils import file_io

LOGGER = logging.getLogger(__name__)

LABEL_COL = "product"


def read_processed(path: Path) -> pd.DataFrame:
    """Read a processed complaint table, keeping every column as text."""
    return file_io.read_csv(path, dtype=str, keep_default_na=False)


def split_complaints(
    df: pd.DataFrame,
    train_proportion: float = config.TRAIN_PROPORTION,
    seed: int = config.RANDOM_SEED,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Stratified train/evaluation split of the labelled complaints.

    Metadata values that only occur in the evaluation split are logged;
    the one-hot encoder maps them to its infrequent/unknown column.
    """
    counts = df[LABEL_COL].value_counts()
    too_small = sorted(counts[counts < 2].index)
    if too_small:
        raise ValueError(f"Products with fewer than two complaints cannot be stratified: {too_small}")
    train, test = train_test_split(
        df, train_size=train_proportion, random_state=seed, stratify=df[LABEL_COL]
    )
    train = train.reset_index(drop=True)
    test = test.reset_index(drop=True)
    LOGGER.info("Split %d complaints into %d training / %d evaluation", len(df), len(train), len(test))

    for col, values in unseen_categories(train, test, metadata_columns(df)).items():
        LOGGER.warning(
            "%d %s value(s) in the evaluation split never appear in training (e.g. %s)",
            len(values), col, values[:3],
        )
    return train, test


def make_folds(n_splits: int = config.CV_FOLDS, seed: int = config.RANDOM_SEED) -> StratifiedKFold:
    """Shuffled stratified v-fold cross-validation splitter."""
    return StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=seed)


def default_param_grids() -> Dict[str, Dict[str, list]]:
    """Hyperparameter grids searched for each model."""
    return {
        "cart": {
            "clf__ccp_alpha": [0.0, 0.001, 0.01],
            "clf__max_depth": [None, 15, 30],
            "clf__min_samples_split": [2, 20],
        },
        "random_forest": {
            "clf__max_features": ["sqrt", 0.1],
            "clf__min_samples_leaf": [1, 5],
            "clf__n_estimators": [300],
        },
        "logistic_regression": {
            "clf__C": [0.1, 1.0, 10.0],
            "clf__l1_ratio": [0.0, 0.5, 1.0],
        },
    }


def get_models(
    weighting: str = config.TERM_WEIGHTING,
    metadata: list[str] | None = None,
    param_grids: Dict[str, Dict[str, list]] | None = None,
    seed: int = config.RANDOM_SEED,
) -> Dict[str, Tuple[Pipeline, Dict[str, list]]]:
    """Define models and their hyperparameter grids for grid search.

    `param_grids` replaces the default grid of the models it names and
    restricts the registry to those models.
    """
    def features():
        return build_feature_transformer(weighting=weighting, metadata=metadata)

    grids = default_param_grids()
    if param_grids is not None:
        unknown = set(param_grids) - set(grids)
        if unknown:
            raise ValueError(f"Unknown model(s) in param_grids: {sorted(unknown)}")
        grids = {name: param_grids[name] for name in grids if name in param_grids}

    pipelines = {
        "cart": Pipeline([
            ("features", features()),
            ("clf", DecisionTreeClassifier(random_state=seed)),
        ]),
        "random_forest": Pipeline([
            ("features", features()),
            ("clf", RandomForestClassifier(random_state=seed, n_jobs=1)),
        ]),
        # penalised on max-abs scaled features
        "logistic_regression": Pipeline([
            ("features", features()),
            ("scale", MaxAbsScaler()),
            ("clf", LogisticRegression(penalty="elasticnet", solver="saga", max_iter=5000, random_state=seed)),
        ]),
    }
    return {name: (pipelines[name], grid) for name, grid in grids.items()}


def run_grid_search(
    train: pd.DataFrame,
    models: Dict[str, Tuple[Pipeline, Dict[str, list]]],
    folds: StratifiedKFold | None = None,
    n_jobs: int = config.N_JOBS,
) -> Dict[str, GridSearchCV]:
    """Perform grid search for each model and return the fitted searches."""
    folds = folds if folds is not None else make_folds()
    y = train[LABEL_COL]
    searches: Dict[str, GridSearchCV] = {}
    for name, (pipeline, param_grid) in tqdm(models.items(), desc="grid search"):
        LOGGER.info("Tuning %s model", name)
        gs = GridSearchCV(
            pipeline,
            param_grid,
            cv=folds,
            scoring=SCORING,
            refit="accuracy",
            n_jobs=n_jobs,
            error_score="raise",
        )
        gs.fit(train, y)
        LOGGER.info("%s: best CV accuracy %.3f with %s", name, gs.best_score_, gs.best_params_)
        searches[name] = gs
    return searches


def collect_metrics(search: GridSearchCV) -> pd.DataFrame:
    """Tidy cross-validation metrics: one row per candidate and metric."""
    results = search.cv_results_
    n_folds = search.n_splits_
    rows = []
    for metric in SCORING:
        means = results[f"mean_test_{metric}"]
        stds = results[f"std_test_{metric}"]
        for i, params in enumerate(results["params"]):
            rows.append({
                "candidate": i,
                "params": repr(params),
                "metric": metric,
                "mean": means[i],
                "n": n_folds,
                "std": stds[i],
                "std_err": stds[i] / np.sqrt(n_folds),
            })
    return pd.DataFrame(rows)


def show_best(search: GridSearchCV, metric: str = "accuracy", n: int = 5) -> pd.DataFrame:
    """The `n` best candidates of a search for one metric."""
    if metric not in SCORING:
        raise ValueError(f"Unknown metric '{metric}' (expected one of {list(SCORING)})")
    metrics = collect_metrics(search)
    best = metrics[metrics["metric"] == metric].sort_values("mean", ascending=False)
    return best.head(n).reset_index(drop=True)


def select_best_model(searches: Dict[str, GridSearchCV], metric: str = "accuracy") -> str:
    """Name of the search with the highest mean CV score for `metric`."""
    if not searches:
        raise ValueError("No fitted searches to choose from")
    best_name, best_score = None, -np.inf
    for name, search in searches.items():
        score = np.nanmax(search.cv_results_[f"mean_test_{metric}"])
        if score > best_score:
            best_name, best_score = name, score
    return best_name


def multiclass_auc(model: Any, X: pd.DataFrame, y: pd.Series) -> float:
    """One-vs-one ROC AUC; NaN when `y` lacks some of the model's classes."""
    classes = list(model.classes_)
    if set(y) != set(classes):
        LOGGER.warning("ROC AUC undefined: evaluation labels %s differ from model classes %s",
                       sorted(set(y)), classes)
        return float("nan")
    return float(roc_auc_score(y, model.predict_proba(X), multi_class="ovo", labels=classes))


# ROC AUC of a cross-validation fold that lacks a class is NaN
SCORING = {"accuracy": "accuracy", "roc_auc": multiclass_auc}


def evaluate_models(models: Dict[str, Any], test: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
    """Accuracy, ROC AUC, report and confusion matrix for each fitted model."""
    y_true = test[LABEL_COL]
    evaluation: Dict[str, Dict[str, Any]] = {}
    for name, model in models.items():
        LOGGER.info("Evaluating model %s", name)
        y_pred = model.predict(test)
        labels = list(model.classes_)
        evaluation[name] = {
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "roc_auc": multiclass_auc(model, test, y_true),
            "report": classification_report(y_true, y_pred, labels=labels, zero_division=0),
            "labels": labels,
            "confusion_matrix": confusion_matrix(y_true, y_pred, labels=labels),
        }
    return evaluation


def variable_importance(model: Pipeline, n: int = 10) -> pd.DataFrame:
    """Top-n features by impurity importance or mean absolute coefficient."""
    names = model.named_steps["features"].get_feature_names_out()
    clf = model.named_steps["clf"]
    if hasattr(clf, "feature_importances_"):
        scores = clf.feature_importances_
    elif hasattr(clf, "coef_"):
        scores = np.abs(clf.coef_).mean(axis=0)
    else:
        raise TypeError(f"{type(clf).__name__} exposes no feature importances")
    importance = pd.DataFrame({"feature": names, "importance": scores})
    importance = importance.sort_values("importance", ascending=False, kind="stable")
    return importance.head(n).reset_index(drop=True)


def predict_complaints(model: Any, df: pd.DataFrame) -> pd.DataFrame:
    """Predicted product and class probabilities for each complaint."""
    if TOKENS_COL not in df.columns:
        df = prepare_narratives(df)
    proba = model.predict_proba(df)
    classes = list(model.classes_)
    predictions = pd.DataFrame({
        "complaint_id": df["complaint_id"].to_numpy(),
        "predicted_product": np.asarray(classes, dtype=object)[proba.argmax(axis=1)],
    })
    for j, label in enumerate(classes):
        predictions[f"prob_{label}"] = proba[:, j]
    return predictions


def save_predictions(predictions: pd.DataFrame, output_path: Path) -> None:
    """Save predictions to CSV and JSON formats."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    predictions.to_csv(output_path.with_suffix(".csv"), index=False)
    predictions.to_json(output_path.with_suffix(".json"), orient="records")


def format_report(searches: Dict[str, GridSearchCV], evaluation: Dict[str, Dict[str, Any]], best_name: str) -> str:
    """Plain-text summary of each tuned model and the selected one."""
    report_lines = []
    for name, result in evaluation.items():
        report_lines.append(f"Model: {name}\n")
        report_lines.append(f"Best parameters: {searches[name].best_params_}")
        report_lines.append(f"Cross-validated accuracy: {searches[name].best_score_:.4f}")
        report_lines.append(f"Evaluation accuracy: {result['accuracy']:.4f}")
        report_lines.append(f"Evaluation ROC AUC: {result['roc_auc']:.4f}\n")
        report_lines.append("Evaluation Classification Report:\n")
        report_lines.append(result["report"])
    report_lines.append(f"Selected model: {best_name}")
    return "\n".join(report_lines)


def run_pipeline(
    processed_data_dir: Path,
    results_dir: Path,
    weighting: str = config.TERM_WEIGHTING,
    n_jobs: int = config.N_JOBS,
    param_grids: Dict[str, Dict[str, list]] | None = None,
    seed: int = config.RANDOM_SEED,
    train_proportion: float = config.TRAIN_PROPORTION,
    cv_folds: int = config.CV_FOLDS,
) -> Dict[str, Any] | None:
    """Execute the full classification stage.

    This function expects the two processed tables written by the data
    processing stage in `processed_data_dir`.  Returns the fitted
    searches, evaluation results, final model and predictions, or
    ``None`` when the inputs are missing.
    """
    processed_data_dir = Path(processed_data_dir)
    results_dir = Path(results_dir)
    labeled_file = processed_data_dir / PROCESSED_TRAIN
    unlabeled_file = processed_data_dir / PROCESSED_TEST
    if not labeled_file.exists() or not unlabeled_file.exists():
        logging.error(
            "Expected %s and %s in %s", PROCESSED_TRAIN, PROCESSED_TEST, processed_data_dir
        )
        return None

    LOGGER.info("Loading processed complaints…")
    labeled = read_processed(labeled_file)
    unlabeled = read_processed(unlabeled_file)

    LOGGER.info("Splitting data…")
    train, test = split_complaints(labeled, train_proportion=train_proportion, seed=seed)

    LOGGER.info("Training models with grid search…")
    models = get_models(weighting=weighting, metadata=metadata_columns(labeled), param_grids=param_grids, seed=seed)
    searches = run_grid_search(train, models, folds=make_folds(cv_folds, seed), n_jobs=n_jobs)

    LOGGER.info("Evaluating models…")
    tuned = {name: gs.best_estimator_ for name, gs in searches.items()}
    evaluation = evaluate_models(tuned, test)
    best_name = select_best_model(searches)
    LOGGER.info("Using %s as the best model for unlabeled data", best_name)

    results_dir.mkdir(parents=True, exist_ok=True)
    with (results_dir / "classification_report.txt").open("w", encoding="utf-8") as f:
        f.write(format_report(searches, evaluation, best_name))

    cv_metrics = pd.concat(
        [collect_metrics(gs).assign(model=name) for name, gs in searches.items()],
        ignore_index=True,
    )
    file_io.write_csv(cv_metrics, results_dir / "cv_metrics.csv")
    holdout = pd.DataFrame([
        {"model": name, "accuracy": r["accuracy"], "roc_auc": r["roc_auc"]}
        for name, r in evaluation.items()
    ])
    file_io.write_csv(holdout, results_dir / "holdout_metrics.csv")
    best_eval = evaluation[best_name]
    matrix = pd.DataFrame(best_eval["confusion_matrix"], index=best_eval["labels"], columns=best_eval["labels"])
    matrix.rename_axis("truth").to_csv(results_dir / "confusion_matrix.csv")

    LOGGER.info("Refitting %s on all %d labelled complaints…", best_name, len(labeled))
    final_model = clone(searches[best_name].best_estimator_)
    final_model.fit(labeled, labeled[LABEL_COL])
    joblib.dump(final_model, results_dir / "best_model.joblib")

    importance = variable_importance(final_model, n=20)
    file_io.write_csv(importance, results_dir / "variable_importance.csv")

    for col, values in unseen_categories(labeled, unlabeled, metadata_columns(labeled)).items():
        LOGGER.warning("%d %s value(s) in the unlabeled extract were never seen in training", len(values), col)

    LOGGER.info("Predicting products for unlabeled data…")
    predictions = predict_complaints(final_model, unlabeled)
    save_predictions(predictions, results_dir / "test_predictions")

    return {
        "searches": searches,
        "evaluation": evaluation,
        "best_model_name": best_name,
        "final_model": final_model,
        "cv_metrics": cv_metrics,
        "holdout_metrics": holdout,
        "variable_importance": importance,
        "predictions": predictions,
    }
