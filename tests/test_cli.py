import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from nhanes_bp.cli import build_parser, main
from nhanes_bp.config import DEFAULT_SETTINGS
from nhanes_bp.errors import MissingFileError

from conftest import make_observations


def write_raw_csv(tmp_path: Path) -> Path:
    df = make_observations(n=150, seed=7)
    df.loc[[2, 11, 40], "Pulse"] = np.nan
    df.loc[5, "BMI"] = np.nan
    path = tmp_path / "NHANES.csv"
    df.to_csv(path, index=False)
    return path


def test_parser_defaults_leave_settings_untouched():
    args = build_parser().parse_args(["train-models"])

    assert args.seed is None
    assert args.cv_folds is None
    assert DEFAULT_SETTINGS.random_state == 123


def test_settings_overrides():
    settings = DEFAULT_SETTINGS.with_overrides(random_state=100, cv_folds=None)

    assert settings.random_state == 100
    assert settings.cv_folds == 10
    with pytest.raises(TypeError):
        DEFAULT_SETTINGS.with_overrides(colour="blue")


def test_train_without_clean_dataset(tmp_path: Path):
    with pytest.raises(MissingFileError):
        main(["train-models", "--root", str(tmp_path)])


def test_run_all_then_evaluate(tmp_path: Path):
    csv_path = write_raw_csv(tmp_path)
    root = str(tmp_path)

    main([
        "run-all", "--root", root, "--data", str(csv_path),
        "--seed", "100", "--cv-folds", "3", "--n-estimators", "5",
    ])

    outputs = tmp_path / "outputs"
    clean = pd.read_parquet(outputs / "nhanes_clean.parquet")
    assert clean.notna().all().all()
    assert "BMI" not in clean.columns and "HHIncomeMid" not in clean.columns
    assert len(clean) <= 146
    assert (outputs / "eda_summary.csv").exists()
    assert (outputs / "correlation_matrix.csv").exists()
    assert (outputs / "figures" / "histograms.png").exists()
    assert (outputs / "figures" / "correlation_heatmap.png").exists()
    assert (outputs / "figures" / "randomforest_predicted_vs_observed.png").exists()
    assert (outputs / "figures" / "linearregression_residuals.png").exists()

    results = json.loads((outputs / "model_results.json").read_text(encoding="utf-8"))
    assert set(results) == {"LinearRegression", "RandomForest"}

    eval_path = tmp_path / "eval.json"
    main(["evaluate", "linearregression", "--root", root, "--seed", "100", "--output", str(eval_path)])
    evaluated = json.loads(eval_path.read_text(encoding="utf-8"))
    assert evaluated["r2"] == pytest.approx(results["LinearRegression"]["r2"])


def test_evaluate_unknown_model(tmp_path: Path):
    with pytest.raises(MissingFileError):
        main(["evaluate", "gradientboosting", "--root", str(tmp_path)])
