"""
Subpackage for supervised complaint classification.

The `text_classifier` module implements the workflow for splitting
labelled complaints, tuning CART, random forest and logistic
regression models with cross-validated grid search, evaluating them
and predicting products for unlabelled complaints.
"""

__all__ = ["text_classifier"]
