"""
Subpackage for cleaning narratives and building features.

`utils` holds the text helpers (normalisation, tokenising, stopword
removal, stemming); `text_features` turns processed complaints into a
document-term matrix joined with one-hot metadata.
"""

__all__ = [
    "text_features",
    "utils",
]
