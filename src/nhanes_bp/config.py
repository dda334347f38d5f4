from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ProjectPaths:
    """Container for key project directories."""

    root: Path
    data: Path
    outputs: Path
    figures: Path
    models: Path

    @classmethod
    def from_root(cls, root: Path) -> "ProjectPaths":
        data_dir = (root / "data").resolve()
        outputs_dir = (root / "outputs").resolve()
        figures_dir = outputs_dir / "figures"
        models_dir = outputs_dir / "models"
        outputs_dir.mkdir(parents=True, exist_ok=True)
        figures_dir.mkdir(parents=True, exist_ok=True)
        models_dir.mkdir(parents=True, exist_ok=True)
        return cls(
            root=root,
            data=data_dir,
            outputs=outputs_dir,
            figures=figures_dir,
            models=models_dir,
        )


def get_project_paths(root: Path | None = None) -> ProjectPaths:
    """Return project paths rooted at ``root`` (repository root by default)."""

    if root is None:
        root = Path(__file__).resolve().parents[2]
    return ProjectPaths.from_root(Path(root))


@dataclass(frozen=True)
class AnalysisSettings:
    """Options recognised by the blood pressure analysis."""

    data_file: str = "NHANES.csv"
    response: str = "BPSysAve"
    # Collinear with Weight and Poverty respectively.
    collinear_columns: Tuple[str, ...] = ("BMI", "HHIncomeMid")
    test_size: float = 0.2
    random_state: int = 123
    zscore_threshold: float = 3.0
    cv_folds: int = 10
    n_estimators: int = 100
    max_features_grid: Tuple[str, ...] = ("auto", "sqrt", "log2")
    max_depth_grid: Tuple[Optional[int], ...] = (None, 5, 3, 1)

    def with_overrides(self, **overrides) -> "AnalysisSettings":
        """Return a copy with every non-None override applied."""

        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise TypeError(f"Unknown settings: {unknown}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


DEFAULT_SETTINGS = AnalysisSettings()


def resolve_max_features(value: str | float | int) -> str | float | int:
    # "auto" for regression forests meant every feature; newer scikit-learn
    # only accepts the explicit fraction.
    if value == "auto":
        return 1.0
    return value


def param_grid(settings: AnalysisSettings = DEFAULT_SETTINGS) -> Dict[str, List]:
    """Hyperparameter grid searched for the random forest."""

    return {
        "max_features": [resolve_max_features(v) for v in settings.max_features_grid],
        "max_depth": list(settings.max_depth_grid),
    }
