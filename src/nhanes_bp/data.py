from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from .errors import EmptyPartitionError, MissingFileError, SchemaMismatchError


def load_observations(path: Path) -> pd.DataFrame:
    """Load the NHANES extract from a delimited file with a header row."""

    path = Path(path)
    if not path.exists():
        raise MissingFileError(f"Missing expected NHANES file: {path}")
    return pd.read_csv(path)


def require_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaMismatchError(f"Columns not found in table: {missing}", missing)


def drop_missing(df: pd.DataFrame) -> pd.DataFrame:
    """Drop every row holding at least one missing value."""

    return df.dropna()


def drop_collinear(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Drop the named collinear predictors, skipping ones already absent."""

    present = [col for col in columns if col in df.columns]
    absent = [col for col in columns if col not in df.columns]
    if absent:
        print(f"[WARN] Collinear columns {absent} not in table; nothing to drop for them.")
    return df.drop(columns=present)


def clean_observations(df: pd.DataFrame, collinear_columns: Sequence[str]) -> pd.DataFrame:
    """Remove incomplete rows, then the collinear columns."""

    df = drop_missing(df)
    df = drop_collinear(df, collinear_columns)
    return df


def ensure_numeric(df: pd.DataFrame) -> pd.DataFrame:
    non_numeric = [
        col for col in df.columns if not pd.api.types.is_numeric_dtype(df[col])
    ]
    if non_numeric:
        raise SchemaMismatchError(
            f"Non-numeric columns left after cleaning: {non_numeric}", non_numeric
        )
    return df


def prepare_observations(
    path: Path,
    response: str,
    collinear_columns: Sequence[str],
) -> pd.DataFrame:
    """Load, clean and validate the table ahead of outlier filtering."""

    raw = load_observations(path)
    print(f"Loaded {raw.shape[0]} rows x {raw.shape[1]} columns from {path}")
    require_columns(raw, [response])

    cleaned = clean_observations(raw, collinear_columns)
    print(
        f"Dropped {raw.shape[0] - cleaned.shape[0]} rows with missing values "
        f"and columns {[c for c in collinear_columns if c in raw.columns]}"
    )
    if cleaned.empty:
        raise EmptyPartitionError("No complete rows remain after dropping missing values.")
    return ensure_numeric(cleaned)
