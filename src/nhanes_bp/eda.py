from __future__ import annotations

import math
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Use non-GUI backend to avoid tkinter errors
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns


def save_plot(fig: plt.Figure, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)


def summary_statistics(df: pd.DataFrame) -> pd.DataFrame:
    return df.describe().transpose()


def plot_histograms(df: pd.DataFrame, output_path: Path, n_cols: int = 4) -> None:
    columns = list(df.select_dtypes(include=np.number).columns)
    n_rows = max(1, math.ceil(len(columns) / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(4 * n_cols, 3 * n_rows), squeeze=False)
    for ax, col in zip(axes.flat, columns):
        sns.histplot(df[col], bins=20, ax=ax, color="#4e79a7")
        ax.set_title(col)
        ax.set_xlabel("")
    for ax in list(axes.flat)[len(columns):]:
        ax.set_visible(False)
    save_plot(fig, output_path)


def plot_correlation_heatmap(corr: pd.DataFrame, output_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(12, 10))
    sns.heatmap(corr, cmap="coolwarm", center=0, annot=corr.shape[0] <= 15, fmt=".2f", ax=ax)
    ax.set_title("Correlation heatmap (cleaned features)")
    save_plot(fig, output_path)


def plot_predicted_vs_observed(
    y_true: pd.Series,
    y_pred: np.ndarray,
    title: str,
    output_path: Path,
) -> None:
    fig, ax = plt.subplots(figsize=(6, 6))
    sns.scatterplot(x=np.asarray(y_true), y=np.asarray(y_pred), ax=ax, alpha=0.6, color="#4e79a7")
    lo = float(min(np.min(y_true), np.min(y_pred)))
    hi = float(max(np.max(y_true), np.max(y_pred)))
    ax.plot([lo, hi], [lo, hi], linestyle="--", color="#e15759")
    ax.set_xlabel("Observed systolic BP (mmHg)")
    ax.set_ylabel("Predicted systolic BP (mmHg)")
    ax.set_title(title)
    save_plot(fig, output_path)


def plot_residuals(
    y_pred: np.ndarray,
    resid: np.ndarray,
    title: str,
    output_path: Path,
) -> None:
    fig, (ax_scatter, ax_hist) = plt.subplots(1, 2, figsize=(12, 5))
    sns.scatterplot(x=np.asarray(y_pred), y=np.asarray(resid), ax=ax_scatter, alpha=0.6, color="#f28e2b")
    ax_scatter.axhline(0, linestyle="--", color="grey")
    ax_scatter.set_xlabel("Predicted systolic BP (mmHg)")
    ax_scatter.set_ylabel("Residual (observed - predicted)")
    sns.histplot(np.asarray(resid), kde=True, bins=20, ax=ax_hist, color="#f28e2b")
    ax_hist.set_xlabel("Residual")
    ax_hist.set_ylabel("Count")
    fig.suptitle(title)
    save_plot(fig, output_path)
