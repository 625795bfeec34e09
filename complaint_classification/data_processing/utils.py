"""
General utility functions for data processing.

This module provides helper functions used across multiple stages of
data processing, such as text normalisation, tokenising, stopword
removal, stemming and checks for categories that only appear in one
side of a split.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

import nltk
import pandas as pd
from nltk.corpus import stopwords
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

LOGGER = logging.getLogger(__name__)

_TOKENIZER = RegexpTokenizer(r"[a-z]+")
_STEMMER = PorterStemmer()

# CFPB narratives redact names/dates as XXXX and amounts as {$94.05}
_REDACTED = re.compile(r"\bx{2,}\b")
_AMOUNT = re.compile(r"\{\$?[^}]*\}")


def normalise_text(text: str) -> str:
    """Lowercase and strip redactions, digits and punctuation from a string."""
    if not isinstance(text, str):
        return ""
    lower = text.lower()
    lower = _AMOUNT.sub(" ", lower)
    lower = _REDACTED.sub(" ", lower)
    # Replace everything that is not a letter with spaces
    cleaned = re.sub(r"[^a-z]+", " ", lower)
    # Collapse multiple spaces and strip
    return re.sub(r"\s+", " ", cleaned).strip()


def tokenize(text: str) -> list[str]:
    """Split normalised text into word tokens."""
    return _TOKENIZER.tokenize(text or "")


def get_stopwords(source: str = "nltk") -> frozenset[str]:
    """English stopword list from NLTK or scikit-learn."""
    if source == "sklearn":
        return frozenset(ENGLISH_STOP_WORDS)
    if source != "nltk":
        raise ValueError(f"Unknown stopword source '{source}' (expected 'nltk' or 'sklearn')")
    try:
        nltk.data.find("corpora/stopwords")
    except LookupError:
        LOGGER.info("Downloading NLTK stopwords corpus…")
        nltk.download("stopwords", quiet=True)
    return frozenset(stopwords.words("english"))


def remove_stopwords(tokens: Iterable[str], stops: Iterable[str] | None = None) -> list[str]:
    """Remove English stopwords from a list of tokens."""
    stops = set(stops) if stops is not None else get_stopwords()
    return [tok for tok in tokens if tok not in stops]


def stem_tokens(tokens: Iterable[str]) -> list[str]:
    """Porter-stem each token."""
    return [_STEMMER.stem(tok) for tok in tokens]


def unseen_categories(
    train: pd.DataFrame, test: pd.DataFrame, columns: Iterable[str]
) -> dict[str, list[str]]:
    """Values per column that occur in `test` but never in `train`.

    Columns missing from either frame are skipped.
    """
    unseen: dict[str, list[str]] = {}
    for col in columns:
        if col not in train.columns or col not in test.columns:
            continue
        seen = set(train[col].dropna().astype(str))
        new = sorted(set(test[col].dropna().astype(str)) - seen)
        if new:
            unseen[col] = new
    return unseen
