"""File input/output helper functions."""

import json
import logging
from pathlib import Path

import joblib
import pandas as pd


def read_json(path):
    """Read a JSON file and return the loaded object."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except Exception as exc:
        logging.error("Failed to read JSON file %s: %s", path, exc)
        raise


def write_json(data, path):
    """Write a Python object to a JSON file."""
    path = Path(path)
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except Exception as exc:
        logging.error("Failed to write JSON file %s: %s", path, exc)
        raise


def read_csv(path, **kwargs):
    """Read a CSV file into a DataFrame."""
    path = Path(path)
    try:
        return pd.read_csv(path, **kwargs)
    except Exception as exc:
        logging.error("Failed to read CSV file %s: %s", path, exc)
        raise


def write_csv(df, path):
    """Write a DataFrame to a CSV file."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)
    except Exception as exc:
        logging.error("Failed to write CSV file %s: %s", path, exc)
        raise


def save_workspace(objects, path):
    """Serialize a dict of named objects to a single snapshot file.

    The snapshot is what later stages resume from, so it holds data
    frames, fitted estimators and metric tables alike.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(dict(objects), path, compress=3)
    except Exception as exc:
        logging.error("Failed to write workspace %s: %s", path, exc)
        raise
    logging.info("Saved workspace (%s) to %s", ", ".join(sorted(objects)), path)


def load_workspace(path):
    """Load a snapshot written by `save_workspace`."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workspace snapshot not found: {path}")
    try:
        return joblib.load(path)
    except Exception as exc:
        logging.error("Failed to read workspace %s: %s", path, exc)
        raise


def update_workspace(path, **objects):
    """Merge `objects` into the snapshot at `path`, creating it if needed."""
    path = Path(path)
    current = load_workspace(path) if path.exists() else {}
    current.update(objects)
    save_workspace(current, path)
    return current
