#!/usr/bin/env python
r"""CLI entry point for the complaint classification stages.

Thin wrapper around `complaint_classification.pipelines`.

Before running
- Put the course extracts in data/raw_data/:
      data_complaints_train.csv
      data_complaints_test.csv
  (or point COMPLAINTS_BASE_DIR at a folder that has data/raw_data/).

Examples (run from project root)
    # every stage, all cores
    python scripts/run_pipeline.py

    # re-run only the modelling stage with tf-idf weights on 4 cores
    python scripts/run_pipeline.py --stage classify --weighting tfidf --n-jobs 4

    # plots from existing results
    python scripts/run_pipeline.py --stage analyse

Where files are written
- data/tidy_data/: tidy and processed tables, workspace.joblib
- results/: classification_report.txt, cv/holdout metrics, predictions,
  best_model.joblib
- results/figures/: PNG plots
"""
from __future__ import annotations

import argparse
import logging

from complaint_classification import config, pipelines


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Classify consumer complaints by product")
    p.add_argument("--stage", choices=("all",) + pipelines.STAGES, default="all", help="Stage to run (default all)")
    p.add_argument("--n-jobs", type=int, default=None, help=f"Cores for cross-validation (default {config.N_JOBS})")
    p.add_argument("--weighting", choices=["count", "tfidf"], default=None, help=f"Term weighting (default {config.TERM_WEIGHTING})")
    p.add_argument("--stopwords", choices=["nltk", "sklearn"], default=None, help=f"Stopword list (default {config.STOPWORDS_SOURCE})")
    p.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    if args.stopwords:
        config.STOPWORDS_SOURCE = args.stopwords
    if args.weighting:
        config.TERM_WEIGHTING = args.weighting

    try:
        if args.stage == "all":
            result = pipelines.run_all(n_jobs=args.n_jobs)
        elif args.stage == "load":
            result = pipelines.run_data_loading()
        elif args.stage == "process":
            result = pipelines.run_data_processing()
        elif args.stage == "classify":
            result = pipelines.run_classification(n_jobs=args.n_jobs)
        else:
            result = pipelines.run_analysis()
    except FileNotFoundError as exc:
        logging.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    if result is None:
        logging.error("Stage %s stopped: its inputs are missing", args.stage)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
