from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

from .errors import DegenerateColumnError, EmptyPartitionError


@dataclass
class OutlierReport:
    kept: pd.DataFrame
    removed: pd.DataFrame
    passes: int = 1

    @property
    def n_removed(self) -> int:
        return int(self.removed.shape[0])


def correlation_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """Pearson correlation between the numeric columns."""

    numeric_cols = df.select_dtypes(include=np.number).columns
    return df[numeric_cols].corr()


def compute_zscores(df: pd.DataFrame) -> pd.DataFrame:
    """Column-wise z-scores using the population standard deviation."""

    std = df.std(ddof=0)
    degenerate = [col for col in df.columns if not np.isfinite(std[col]) or std[col] == 0]
    if degenerate:
        raise DegenerateColumnError(degenerate)
    scores = stats.zscore(df.to_numpy(dtype=float), axis=0, ddof=0)
    return pd.DataFrame(scores, index=df.index, columns=df.columns)


def filter_outliers(df: pd.DataFrame, threshold: float = 3.0) -> OutlierReport:
    """
    Drop rows where any column lies ``threshold`` or more standard
    deviations from its mean.

    Dropping rows shrinks the standard deviation, so the z-scores are
    recomputed on the retained rows until a pass removes nothing. The
    retained table therefore passes the same filter unchanged.

    Returns the retained and removed rows, each in their original order.
    """
    if df.empty:
        raise EmptyPartitionError("Cannot filter outliers on an empty table.")

    kept = df
    passes = 0
    while True:
        passes += 1
        zscores = compute_zscores(kept)
        within = (zscores.abs() < threshold).all(axis=1)
        if not within.any():
            raise EmptyPartitionError(f"Every row has a column with |z| >= {threshold}.")
        if within.all():
            break
        kept = kept[within]

    removed = df[~df.index.isin(kept.index)]
    return OutlierReport(kept=kept, removed=removed, passes=passes)


def split_features_response(df: pd.DataFrame, response: str) -> Tuple[pd.DataFrame, pd.Series]:
    X = df.drop(columns=[response])
    y = df[response]
    return X, y


def split_data(
    df: pd.DataFrame,
    response: str = "BPSysAve",
    test_size: float = 0.2,
    random_state: int = 123,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """
    Split data into train/test sets.

    Args:
        df: Cleaned observation table including the response column
        response: Name of the response column, removed from the features
        test_size: Proportion of rows held out for testing
        random_state: Random seed; the same seed always yields the same split
    """
    X, y = split_features_response(df, response)
    n_rows = len(df)
    # Same rounding as train_test_split: ceil for the test side, floor for train.
    if isinstance(test_size, float):
        n_test = int(np.ceil(test_size * n_rows))
        n_train = int(np.floor((1 - test_size) * n_rows))
    else:
        n_test = int(test_size)
        n_train = n_rows - n_test
    if n_test < 1 or n_train < 1:
        raise EmptyPartitionError(
            f"Cannot split {len(df)} rows with test_size={test_size}: a partition would be empty."
        )
    X_train, X_test, y_train, y_test = train_test_split(
        X,
        y,
        test_size=test_size,
        random_state=random_state,
    )
    return X_train, X_test, y_train, y_test


def standardize(
    X_train: pd.DataFrame,
    X_test: pd.DataFrame,
) -> Tuple[StandardScaler, pd.DataFrame, pd.DataFrame]:
    """Fit a scaler on the training features and apply it to both partitions."""

    # pandas output keeps column names and row indices through the scaler,
    # including when it is reused inside a persisted pipeline.
    scaler = StandardScaler().set_output(transform="pandas")
    X_train_std = scaler.fit_transform(X_train)
    X_test_std = scaler.transform(X_test)
    return scaler, X_train_std, X_test_std
