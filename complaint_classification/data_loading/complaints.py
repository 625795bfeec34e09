"""
Load the consumer complaint extracts.

The course ships two CSV files: a labelled training extract and an
unlabelled test extract (same columns, with `problem_id` in place of
`Product`).  This module reads them, normalises column names to
snake_case, fills missing metadata and harmonises product labels so
the downstream stages can rely on a fixed set of columns.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pandas as pd

from .. import config
from ..utils import file_io

LOGGER = logging.getLogger(__name__)

NARRATIVE_COL = "consumer_complaint_narrative"
CATEGORICAL_COLS = ["company", "state", "zip_code", "submitted_via"]
MISSING = "unknown"

TIDY_TRAIN = "complaints_train.csv"
TIDY_TEST = "complaints_test.csv"

# Loose spellings seen in notebooks/workshop data -> canonical label
PRODUCT_ALIASES = {
    "credit card": "Credit card or prepaid card",
    "credit card or prepaid card": "Credit card or prepaid card",
    "prepaid card": "Credit card or prepaid card",
    "mortgage": "Mortgage",
    "student loan": "Student loan",
    "vehicle loan": "Vehicle loan or lease",
    "vehicle loan or lease": "Vehicle loan or lease",
    "car loan": "Vehicle loan or lease",
    "auto loan": "Vehicle loan or lease",
}


def snake_case(name: str) -> str:
    """`"ZIP code"` -> `"zip_code"`."""
    cleaned = re.sub(r"[^0-9a-zA-Z]+", "_", str(name)).strip("_")
    return cleaned.lower()


def harmonise_products(products: pd.Series) -> pd.Series:
    """Map loose product spellings onto the canonical labels.

    Values that match no alias are returned unchanged and logged, so a
    fifth category in a new extract is visible rather than silently
    merged.
    """
    canonical = {p.lower(): p for p in config.PRODUCTS}
    lookup = {**canonical, **PRODUCT_ALIASES}
    keys = products.astype(str).str.strip().str.lower()
    mapped = keys.map(lookup)
    unknown = sorted(products[mapped.isna()].dropna().astype(str).unique())
    if unknown:
        LOGGER.warning("Unrecognised product labels left unchanged: %s", unknown)
    return mapped.fillna(products)


def zip_prefix(zip_code) -> str:
    """First three digits of a (possibly redacted) zip code."""
    if not isinstance(zip_code, str):
        if pd.isna(zip_code):
            return MISSING
        zip_code = str(int(zip_code)) if isinstance(zip_code, float) else str(zip_code)
    digits = re.match(r"\s*(\d{3})", zip_code)
    return digits.group(1) if digits else MISSING


def tidy_complaints(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise column names, ids, missing metadata and product labels."""
    df = df.rename(columns=snake_case).copy()
    if NARRATIVE_COL not in df.columns:
        raise KeyError(f"Missing required column '{NARRATIVE_COL}'")

    if "problem_id" in df.columns:
        df.insert(0, "complaint_id", df["problem_id"].astype(str))
    else:
        df.insert(0, "complaint_id", [str(i) for i in range(1, len(df) + 1)])

    df[NARRATIVE_COL] = df[NARRATIVE_COL].fillna("").astype(str)
    for col in CATEGORICAL_COLS:
        if col in df.columns:
            df[col] = df[col].fillna(MISSING).astype(str).str.strip()
            df.loc[df[col] == "", col] = MISSING
    if "zip_code" in df.columns:
        df["zip3"] = df["zip_code"].map(zip_prefix)

    if "product" in df.columns:
        df = df[df["product"].notna()].copy()
        df["product"] = harmonise_products(df["product"])
    return df.reset_index(drop=True)


def load_complaints(path: Path) -> pd.DataFrame:
    """Read one complaint CSV and tidy it."""
    raw = file_io.read_csv(path, dtype={"ZIP code": str})
    LOGGER.info("Read %d complaints from %s", len(raw), Path(path).name)
    return tidy_complaints(raw)


def load_datasets(raw_dir: Path = config.RAW_DATA_DIR) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Load the labelled train extract and the unlabelled test extract."""
    raw_dir = Path(raw_dir)
    train_path = raw_dir / config.TRAIN_FILE
    test_path = raw_dir / config.TEST_FILE
    for path in (train_path, test_path):
        if not path.exists():
            raise FileNotFoundError(f"Expected complaint extract not found: {path}")
    train = load_complaints(train_path)
    test = load_complaints(test_path)
    if "product" not in train.columns:
        raise KeyError(f"Training extract {train_path.name} has no 'Product' column")
    return train, test


def summarise_products(df: pd.DataFrame) -> pd.DataFrame:
    """Counts and shares of each product label."""
    counts = df["product"].value_counts()
    return pd.DataFrame({
        "product": counts.index,
        "n": counts.to_numpy(),
        "share": (counts / counts.sum()).round(4).to_numpy(),
    })


def write_tidy_datasets(raw_dir: Path, output_dir: Path) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Load both extracts and write the tidy tables to `output_dir`."""
    train, test = load_datasets(raw_dir)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_io.write_csv(train, output_dir / TIDY_TRAIN)
    file_io.write_csv(test, output_dir / TIDY_TEST)
    LOGGER.info("Wrote %d training and %d test complaints to %s", len(train), len(test), output_dir)
    return train, test


def read_tidy(path: Path) -> pd.DataFrame:
    """Read a tidy table back, keeping ids, zip prefixes and labels as text."""
    return file_io.read_csv(path, dtype=str, keep_default_na=False)
