"""
Subpackage for reading the raw complaint extracts.

The `complaints` module reads the labelled training and unlabelled
test CSVs, normalises their columns and product labels, and writes
tidy tables for the processing stage.
"""

__all__ = ["complaints"]
