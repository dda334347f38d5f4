"""
NHANES systolic blood pressure analysis package.

Provides utilities for loading and cleaning an NHANES extract, filtering
outliers, exploring correlations, and fitting regression models that
predict average systolic blood pressure from survey features.
"""

__all__ = [
    "config",
    "errors",
    "data",
    "preprocessing",
    "eda",
    "modeling",
    "cli",
]
