from __future__ import annotations

import argparse
import json
from pathlib import Path

import pandas as pd

from . import data as data_module
from . import eda, modeling, preprocessing
from .config import DEFAULT_SETTINGS, AnalysisSettings, ProjectPaths, get_project_paths
from .errors import MissingFileError

CLEAN_DATASET = "nhanes_clean.parquet"


def _settings(args: argparse.Namespace) -> AnalysisSettings:
    return DEFAULT_SETTINGS.with_overrides(
        random_state=getattr(args, "seed", None),
        test_size=getattr(args, "test_size", None),
        zscore_threshold=getattr(args, "z_threshold", None),
        cv_folds=getattr(args, "cv_folds", None),
        n_estimators=getattr(args, "n_estimators", None),
    )


def _paths(args: argparse.Namespace) -> ProjectPaths:
    root = getattr(args, "root", None)
    return get_project_paths(Path(root) if root else None)


def _load_clean(paths: ProjectPaths) -> pd.DataFrame:
    clean_path = paths.outputs / CLEAN_DATASET
    if not clean_path.exists():
        raise MissingFileError(
            f"Cleaned dataset not found at {clean_path}. Run 'clean-data' first."
        )
    return pd.read_parquet(clean_path)


def stage_clean(args: argparse.Namespace) -> None:
    paths = _paths(args)
    settings = _settings(args)
    data_path = Path(args.data) if getattr(args, "data", None) else paths.data / settings.data_file

    cleaned = data_module.prepare_observations(
        data_path, settings.response, settings.collinear_columns
    )
    report = preprocessing.filter_outliers(cleaned, settings.zscore_threshold)
    print(
        f"Removed {report.n_removed} outlier rows (|z| >= {settings.zscore_threshold}) "
        f"in {report.passes} passes; "
        f"{report.kept.shape[0]} rows remain"
    )

    clean_path = paths.outputs / CLEAN_DATASET
    report.kept.to_parquet(clean_path, index=False)
    print(f"Saved cleaned dataset to {clean_path}")


def stage_eda(args: argparse.Namespace) -> None:
    paths = _paths(args)
    df = _load_clean(paths)
    print(f"Dataset rows used for EDA: {df.shape[0]}")

    summary_path = paths.outputs / "eda_summary.csv"
    summary = eda.summary_statistics(df)
    summary.to_csv(summary_path)
    print(summary.round(2).to_string())

    corr = preprocessing.correlation_matrix(df)
    corr_path = paths.outputs / "correlation_matrix.csv"
    corr.to_csv(corr_path)

    fig_dir = paths.figures
    eda.plot_histograms(df, fig_dir / "histograms.png")
    eda.plot_correlation_heatmap(corr, fig_dir / "correlation_heatmap.png")
    print(f"EDA artifacts written to {fig_dir}, {summary_path} and {corr_path}")


def stage_train(args: argparse.Namespace) -> None:
    paths = _paths(args)
    settings = _settings(args)
    df = _load_clean(paths)

    print(f"Training models to predict: {settings.response}")
    X_train, X_test, y_train, y_test = preprocessing.split_data(
        df,
        response=settings.response,
        test_size=settings.test_size,
        random_state=settings.random_state,
    )
    artifacts = modeling.train_models(X_train, y_train, X_test, y_test, settings)
    results = modeling.persist_artifacts(artifacts, paths.models, paths.figures)

    results_path = paths.outputs / "model_results.json"
    with open(results_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)

    print("Training complete. Metrics:")
    print(json.dumps(results, indent=2))
    print(f"Saved models under {paths.models} and diagnostic plots under {paths.figures}")


def stage_evaluate(args: argparse.Namespace) -> None:
    """Evaluate a saved model on test data."""
    paths = _paths(args)
    settings = _settings(args)

    model_name = args.model_name.lower()
    model_path = paths.models / model_name / "model.pkl"
    if not model_path.exists():
        available = [d.name for d in paths.models.iterdir() if d.is_dir()]
        raise MissingFileError(
            f"Model '{model_name}' not found at {model_path}. "
            f"Available models: {available}"
        )

    if args.test_data:
        test_df = pd.read_parquet(args.test_data)
        data_module.require_columns(test_df, [settings.response])
        X_test, y_test = preprocessing.split_features_response(test_df, settings.response)
    else:
        # Same cleaned data and seed reproduce the training split.
        df = _load_clean(paths)
        _, X_test, _, y_test = preprocessing.split_data(
            df,
            response=settings.response,
            test_size=settings.test_size,
            random_state=settings.random_state,
        )

    print(f"Evaluating {model_name} on {len(X_test)} samples...")
    metrics = modeling.evaluate_model(model_path, X_test, y_test)

    print(f"\n=== Evaluation Results for {model_name} ===")
    print(f"R²: {metrics['r2']:.3f}")
    print(f"MSE: {metrics['mse']:.3f}")

    if args.output:
        output_path = Path(args.output)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(metrics, f, indent=2)
        print(f"\nResults saved to {output_path}")


def stage_all(args: argparse.Namespace) -> None:
    stage_clean(args)
    stage_eda(args)
    stage_train(args)


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", type=str, help="Project root holding data/ and outputs/ (default: repository root)")


def _add_split_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--seed",
        type=int,
        help=f"Random seed for the split and the forest (default: {DEFAULT_SETTINGS.random_state})",
    )
    parser.add_argument(
        "--test-size",
        type=float,
        help=f"Proportion of rows held out for testing (default: {DEFAULT_SETTINGS.test_size})",
    )


def _add_clean_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data",
        type=str,
        help=f"Path to the NHANES CSV (default: data/{DEFAULT_SETTINGS.data_file})",
    )
    parser.add_argument(
        "--z-threshold",
        type=float,
        help=f"Drop rows with any |z| at or above this value (default: {DEFAULT_SETTINGS.zscore_threshold})",
    )


def _add_train_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--cv-folds",
        type=int,
        help=f"Cross-validation folds for the forest grid search (default: {DEFAULT_SETTINGS.cv_folds})",
    )
    parser.add_argument(
        "--n-estimators",
        type=int,
        help=f"Trees per random forest (default: {DEFAULT_SETTINGS.n_estimators})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="NHANES systolic blood pressure regression analysis.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clean_parser = subparsers.add_parser("clean-data", help="Clean the raw table and filter outliers")
    _add_common_options(clean_parser)
    _add_clean_options(clean_parser)
    clean_parser.set_defaults(func=stage_clean)

    eda_parser = subparsers.add_parser("run-eda", help="Generate summary statistics, correlations and plots")
    _add_common_options(eda_parser)
    eda_parser.set_defaults(func=stage_eda)

    train_parser = subparsers.add_parser("train-models", help="Fit the regression models and save metrics")
    _add_common_options(train_parser)
    _add_split_options(train_parser)
    _add_train_options(train_parser)
    train_parser.set_defaults(func=stage_train)

    eval_parser = subparsers.add_parser("evaluate", help="Evaluate a saved model on test data")
    _add_common_options(eval_parser)
    _add_split_options(eval_parser)
    eval_parser.add_argument(
        "model_name",
        help="Name of the model to evaluate (e.g., 'linearregression', 'randomforest')"
    )
    eval_parser.add_argument(
        "--test-data",
        type=str,
        help="Path to test dataset (parquet file). If not provided, uses the test split from training."
    )
    eval_parser.add_argument(
        "--output",
        type=str,
        help="Path to save evaluation results (JSON file)"
    )
    eval_parser.set_defaults(func=stage_evaluate)

    all_parser = subparsers.add_parser("run-all", help="Execute the full pipeline sequentially")
    _add_common_options(all_parser)
    _add_clean_options(all_parser)
    _add_split_options(all_parser)
    _add_train_options(all_parser)
    all_parser.set_defaults(func=stage_all)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
