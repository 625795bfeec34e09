#!/usr/bin/env python
r"""Predict products for a CSV of complaints with a saved model.

Usage examples:
# predictions for the course test extract with the model from the last run
# python scripts/predict_complaints.py data/raw_data/data_complaints_test.csv

# a different model and output location
# python scripts/predict_complaints.py new.csv --model results/best_model.joblib --output results/new_predictions
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

import joblib

from complaint_classification import config
from complaint_classification.classification import text_classifier
from complaint_classification.data_loading import complaints
from complaint_classification.data_processing import text_features

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Predict complaint products with a fitted model.")
    parser.add_argument("input", type=Path, help="Raw complaint CSV (same columns as the course extracts)")
    parser.add_argument("--model", type=Path, default=config.RESULTS_DIR / "best_model.joblib")
    parser.add_argument("--output", type=Path, default=None, help="Output path without suffix (CSV and JSON are written)")
    parser.add_argument("--stopwords", choices=["nltk", "sklearn"], default=config.STOPWORDS_SOURCE)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if not args.model.exists():
        logger.error("Model not found at %s; run the classify stage first", args.model)
        return 2
    if not args.input.exists():
        logger.error("Input CSV not found: %s", args.input)
        return 2

    model = joblib.load(args.model)
    df = text_features.prepare_narratives(complaints.load_complaints(args.input), args.stopwords)
    predictions = text_classifier.predict_complaints(model, df)
    output = args.output or args.input.with_name(f"{args.input.stem}_predictions")
    text_classifier.save_predictions(predictions, output)
    logger.info("Wrote %d predictions to %s.{csv,json}", len(predictions), output)
    print(predictions["predicted_product"].value_counts().to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
