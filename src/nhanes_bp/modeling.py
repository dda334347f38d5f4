from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import joblib
import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_squared_error, r2_score
from sklearn.model_selection import GridSearchCV, KFold
from sklearn.pipeline import Pipeline

from . import eda
from .config import DEFAULT_SETTINGS, AnalysisSettings, param_grid
from .errors import MissingFileError
from .preprocessing import standardize


@dataclass
class ModelArtifacts:
    name: str
    estimator: Any
    metrics: Dict[str, float]
    predictions: np.ndarray
    residuals: np.ndarray
    observed: pd.Series | None = None
    coefficients: pd.DataFrame | None = None
    feature_importances: pd.DataFrame | None = None
    best_params: Dict[str, Any] = field(default_factory=dict)
    cv_results: pd.DataFrame | None = None
    # Fitted scaler + estimator, so persisted models accept raw features.
    pipeline: Pipeline | None = None


def score_predictions(y_true, y_pred) -> Dict[str, float]:
    """R² and mean squared error of predictions against observations."""

    return {
        "r2": float(r2_score(y_true, y_pred)),
        "mse": float(mean_squared_error(y_true, y_pred)),
    }


def residuals(y_true, y_pred) -> np.ndarray:
    return np.asarray(y_true, dtype=float) - np.asarray(y_pred, dtype=float)


def coefficient_table(model: LinearRegression, feature_names) -> pd.DataFrame:
    table = pd.DataFrame(
        {
            "feature": list(feature_names) + ["(intercept)"],
            "coefficient": list(model.coef_) + [float(model.intercept_)],
        }
    )
    return table


def fit_linear_model(
    X_train: pd.DataFrame,
    y_train: pd.Series,
    X_test: pd.DataFrame,
    y_test: pd.Series,
) -> ModelArtifacts:
    """Ordinary least squares on (already standardized) features."""

    model = LinearRegression()
    model.fit(X_train, y_train)
    y_pred = model.predict(X_test)
    return ModelArtifacts(
        name="LinearRegression",
        estimator=model,
        metrics=score_predictions(y_test, y_pred),
        predictions=y_pred,
        observed=y_test,
        residuals=residuals(y_test, y_pred),
        coefficients=coefficient_table(model, X_train.columns),
    )


def build_forest_search(settings: AnalysisSettings = DEFAULT_SETTINGS) -> GridSearchCV:
    forest = RandomForestRegressor(
        n_estimators=settings.n_estimators,
        random_state=settings.random_state,
        n_jobs=-1,
    )
    folds = KFold(n_splits=settings.cv_folds, shuffle=True, random_state=settings.random_state)
    return GridSearchCV(
        estimator=forest,
        param_grid=param_grid(settings),
        cv=folds,
        scoring="r2",
        refit=True,
    )


def fit_forest_model(
    X_train: pd.DataFrame,
    y_train: pd.Series,
    X_test: pd.DataFrame,
    y_test: pd.Series,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
) -> ModelArtifacts:
    """
    Grid search ``max_features`` x ``max_depth`` for a random forest.

    The best combination (highest mean cross-validated R²) is refit on the
    whole training partition before predicting the test rows.
    """
    search = build_forest_search(settings)
    search.fit(X_train, y_train)
    best = search.best_estimator_
    y_pred = best.predict(X_test)

    importances = pd.DataFrame(
        {"feature": list(X_train.columns), "importance": best.feature_importances_}
    ).sort_values(by="importance", ascending=False)
    cv_results = pd.DataFrame(search.cv_results_)[
        ["param_max_features", "param_max_depth", "mean_test_score", "std_test_score", "rank_test_score"]
    ].sort_values(by="rank_test_score")

    return ModelArtifacts(
        name="RandomForest",
        estimator=best,
        metrics=score_predictions(y_test, y_pred),
        predictions=y_pred,
        observed=y_test,
        residuals=residuals(y_test, y_pred),
        feature_importances=importances,
        best_params=dict(search.best_params_),
        cv_results=cv_results,
    )


def train_models(
    X_train: pd.DataFrame,
    y_train: pd.Series,
    X_test: pd.DataFrame,
    y_test: pd.Series,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
) -> Dict[str, ModelArtifacts]:
    # The scaler only ever sees training rows.
    scaler, X_train_std, X_test_std = standardize(X_train, X_test)
    print(f"\nTraining on {len(X_train)} rows, testing on {len(X_test)} rows, {X_train.shape[1]} features")

    artifacts: Dict[str, ModelArtifacts] = {}
    artifacts["LinearRegression"] = fit_linear_model(X_train_std, y_train, X_test_std, y_test)
    artifacts["RandomForest"] = fit_forest_model(X_train_std, y_train, X_test_std, y_test, settings)

    for name, artifact in artifacts.items():
        artifact.pipeline = Pipeline(
            steps=[
                ("scaler", scaler),
                ("model", artifact.estimator),
            ]
        )
        print(f"✓ {name} - R²: {artifact.metrics['r2']:.3f}, MSE: {artifact.metrics['mse']:.2f}")
    if artifacts["RandomForest"].best_params:
        print(f"Selected forest hyperparameters: {artifacts['RandomForest'].best_params}")
    return artifacts


def evaluate_model(
    model_path: Path,
    X_test: pd.DataFrame,
    y_test: pd.Series,
) -> Dict[str, float]:
    """Evaluate a saved model pipeline on raw (unscaled) test features."""
    if not Path(model_path).exists():
        raise MissingFileError(f"Model not found at {model_path}")
    pipeline = joblib.load(model_path)
    y_pred = pipeline.predict(X_test)
    return score_predictions(y_test, y_pred)


def _json_safe(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: (value.item() if isinstance(value, np.generic) else value) for key, value in params.items()}


def persist_artifacts(
    artifacts: Dict[str, ModelArtifacts],
    models_dir: Path,
    figures_dir: Path,
) -> Dict[str, Dict[str, Any]]:
    """
    Save each fitted model with its metrics and tables under
    ``models_dir/<name>/`` and its diagnostic plots under ``figures_dir``.

    Returns the metrics written to ``model_results.json``.
    """
    results: Dict[str, Dict[str, Any]] = {}
    figures_dir.mkdir(parents=True, exist_ok=True)

    for name, artifact in artifacts.items():
        slug = name.lower()
        model_dir = models_dir / slug
        model_dir.mkdir(parents=True, exist_ok=True)

        model = artifact.pipeline if artifact.pipeline is not None else artifact.estimator
        joblib.dump(model, model_dir / "model.pkl")

        metrics_path = model_dir / "metrics.json"
        pd.Series(artifact.metrics).to_json(metrics_path, indent=2)
        results[name] = dict(artifact.metrics)
        if artifact.best_params:
            results[name]["best_params"] = _json_safe(artifact.best_params)

        # Observed values are predictions plus residuals when no series was kept.
        if artifact.observed is not None:
            observed = artifact.observed
        else:
            observed = pd.Series(artifact.predictions + artifact.residuals)
        pd.DataFrame(
            {
                "observed": np.asarray(observed),
                "predicted": artifact.predictions,
                "residual": artifact.residuals,
            },
            index=observed.index,
        ).to_csv(model_dir / "predictions.csv")

        if artifact.coefficients is not None:
            artifact.coefficients.to_csv(model_dir / "coefficients.csv", index=False)
        if artifact.feature_importances is not None:
            artifact.feature_importances.to_csv(model_dir / "feature_importances.csv", index=False)
        if artifact.cv_results is not None:
            artifact.cv_results.to_csv(model_dir / "cv_results.csv", index=False)

        eda.plot_predicted_vs_observed(
            observed,
            artifact.predictions,
            title=f"{name}: predicted vs observed (R² = {artifact.metrics['r2']:.3f})",
            output_path=figures_dir / f"{slug}_predicted_vs_observed.png",
        )
        eda.plot_residuals(
            artifact.predictions,
            artifact.residuals,
            title=f"{name}: residuals",
            output_path=figures_dir / f"{slug}_residuals.png",
        )

    return results
