"""
Turn complaint narratives and metadata into model features.

Narratives are normalised, tokenised, stripped of stopwords and
stemmed once, up front, and stored as a space-joined `tokens` column.
The feature transformer then builds the document-term matrix from that
column with scikit-learn's vectorisers (pruning terms that are too
sparse) and joins one-hot encoded metadata columns next to it.  The
transformer is fitted inside each model pipeline, so cross-validation
never sees vocabulary or categories from its assessment folds.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.feature_extraction.text import CountVectorizer, TfidfVectorizer
from sklearn.preprocessing import OneHotEncoder

from .. import config
from ..data_loading import complaints
from ..utils import file_io
from .utils import (
    get_stopwords,
    normalise_text,
    remove_stopwords,
    stem_tokens,
    tokenize,
    unseen_categories,
)

LOGGER = logging.getLogger(__name__)

NARRATIVE_COL = "consumer_complaint_narrative"
TOKENS_COL = "tokens"
METADATA_COLS = ["company", "state", "zip3", "submitted_via"]

PROCESSED_TRAIN = "complaints_train_processed.csv"
PROCESSED_TEST = "complaints_test_processed.csv"

# Tokens are already lowercased and stemmed; keep every word-character run
_TOKEN_PATTERN = r"(?u)\b\w+\b"


def prepare_narratives(df: pd.DataFrame, stopwords_source: str = config.STOPWORDS_SOURCE) -> pd.DataFrame:
    """Add `narrative_clean` and `tokens` columns to a complaint frame."""
    if NARRATIVE_COL not in df.columns:
        raise KeyError(f"Missing required column '{NARRATIVE_COL}'")
    stops = get_stopwords(stopwords_source)
    df = df.copy()
    df["narrative_clean"] = df[NARRATIVE_COL].map(normalise_text)
    df[TOKENS_COL] = df["narrative_clean"].map(
        lambda text: " ".join(stem_tokens(remove_stopwords(tokenize(text), stops)))
    )
    empty = int((df[TOKENS_COL] == "").sum())
    if empty:
        LOGGER.warning("%d complaints have no tokens left after cleaning", empty)
    return df


def metadata_columns(df: pd.DataFrame) -> list[str]:
    """Metadata columns available in `df`, in a fixed order."""
    return [col for col in METADATA_COLS if col in df.columns]


def build_feature_transformer(
    weighting: str = config.TERM_WEIGHTING,
    max_sparsity: float = config.MAX_TERM_SPARSITY,
    min_frequency: int = config.METADATA_MIN_FREQUENCY,
    metadata: list[str] | None = None,
) -> ColumnTransformer:
    """Document-term matrix plus one-hot metadata as one transformer.

    Parameters
    ----------
    weighting : {"count", "tfidf"}
        Raw term counts or tf-idf weights.
    max_sparsity : float
        Terms absent from a larger share of documents than this are
        pruned.  ``1.0`` keeps every term.
    min_frequency : int
        Metadata values seen fewer times than this are pooled into one
        "infrequent" column.  Values never seen during fitting also land
        there, or are all-zero when nothing was pooled.
    metadata : list of str, optional
        Metadata columns to encode; default is `METADATA_COLS`.
    """
    if not 0.0 < max_sparsity <= 1.0:
        raise ValueError(f"max_sparsity must be in (0, 1], got {max_sparsity}")
    min_df = 1 if max_sparsity >= 1.0 else round(1.0 - max_sparsity, 6)

    if weighting == "count":
        vectoriser = CountVectorizer(token_pattern=_TOKEN_PATTERN, lowercase=False, min_df=min_df)
    elif weighting == "tfidf":
        vectoriser = TfidfVectorizer(token_pattern=_TOKEN_PATTERN, lowercase=False, min_df=min_df)
    else:
        raise ValueError(f"Unknown term weighting '{weighting}' (expected 'count' or 'tfidf')")

    transformers = [("term", vectoriser, TOKENS_COL)]
    metadata = METADATA_COLS if metadata is None else metadata
    if metadata:
        encoder = OneHotEncoder(
            handle_unknown="infrequent_if_exist",
            min_frequency=min_frequency,
            sparse_output=True,
        )
        transformers.append(("meta", encoder, list(metadata)))
    return ColumnTransformer(transformers, remainder="drop", sparse_threshold=1.0)


def build_document_term_matrix(
    df: pd.DataFrame,
    weighting: str = config.TERM_WEIGHTING,
    max_sparsity: float = config.MAX_TERM_SPARSITY,
    min_frequency: int = config.METADATA_MIN_FREQUENCY,
) -> pd.DataFrame:
    """Sparse complaint x (term + metadata) frame for inspection/export.

    Rows are indexed by `complaint_id`; the `product` column is kept in
    front when present.
    """
    if TOKENS_COL not in df.columns:
        df = prepare_narratives(df)
    transformer = build_feature_transformer(
        weighting=weighting,
        max_sparsity=max_sparsity,
        min_frequency=min_frequency,
        metadata=metadata_columns(df),
    )
    matrix = transformer.fit_transform(df)
    names = transformer.get_feature_names_out()
    index = df["complaint_id"] if "complaint_id" in df.columns else df.index
    dtm = pd.DataFrame.sparse.from_spmatrix(matrix, index=pd.Index(index, name="complaint_id"), columns=names)
    n_terms = sum(name.startswith("term__") for name in names)
    LOGGER.info("Document-term matrix: %d documents, %d terms, %d metadata columns",
                matrix.shape[0], n_terms, len(names) - n_terms)
    if "product" in df.columns:
        dtm.insert(0, "product", df["product"].to_numpy())
    return dtm


def term_frequencies(df: pd.DataFrame, by: str = "product", top_n: int = 10) -> pd.DataFrame:
    """Top-n stemmed terms per group as a tidy `(by, term, n)` table."""
    if TOKENS_COL not in df.columns:
        raise KeyError(f"Missing '{TOKENS_COL}' column; run prepare_narratives first")
    terms = (
        df[[by, TOKENS_COL]]
        .assign(term=df[TOKENS_COL].str.split())
        .explode("term")
        .dropna(subset=["term"])
    )
    counts = (
        terms.groupby([by, "term"]).size().rename("n").reset_index()
        .sort_values([by, "n", "term"], ascending=[True, False, True])
    )
    return counts.groupby(by, group_keys=False).head(top_n).reset_index(drop=True)


def process_datasets(
    input_dir: Path,
    output_dir: Path,
    results_dir: Path,
    stopwords_source: str = config.STOPWORDS_SOURCE,
) -> tuple[pd.DataFrame, pd.DataFrame] | None:
    """Clean and tokenise the tidy train/test tables.

    Reads the tables written by the loading stage from `input_dir`,
    writes the processed tables (with `narrative_clean` and `tokens`)
    to `output_dir` and per-product term counts to `results_dir`.
    """
    input_dir, output_dir, results_dir = Path(input_dir), Path(output_dir), Path(results_dir)
    train_path = input_dir / complaints.TIDY_TRAIN
    test_path = input_dir / complaints.TIDY_TEST
    if not train_path.exists() or not test_path.exists():
        logging.error("Expected %s and %s in %s", complaints.TIDY_TRAIN, complaints.TIDY_TEST, input_dir)
        return None

    LOGGER.info("Cleaning and tokenising narratives…")
    train = prepare_narratives(complaints.read_tidy(train_path), stopwords_source)
    test = prepare_narratives(complaints.read_tidy(test_path), stopwords_source)
    file_io.write_csv(train, output_dir / PROCESSED_TRAIN)
    file_io.write_csv(test, output_dir / PROCESSED_TEST)

    for col, values in unseen_categories(train, test, metadata_columns(train)).items():
        LOGGER.warning("%d %s value(s) only occur in the test extract", len(values), col)

    file_io.write_csv(term_frequencies(train, top_n=15), results_dir / "term_frequencies.csv")
    return train, test
