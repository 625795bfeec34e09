"""
Consumer Complaint Classification Package

This package classifies consumer complaint narratives into product
categories (credit card, mortgage, student loan, vehicle loan) from
bag-of-words features and complaint metadata.  Modules are organised
by stage (loading, processing, classification, analysis) and can be
used independently or orchestrated together through the high‑level
pipeline functions.
"""

from . import config  # noqa: F401
from . import pipelines  # noqa: F401

__all__ = [
    "config",
    "pipelines",
]
