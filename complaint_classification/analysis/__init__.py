"""
Subpackage for plots of the data and model results.
"""

__all__ = ["visualizations"]
