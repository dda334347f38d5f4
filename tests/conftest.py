import numpy as np
import pandas as pd
import pytest


def make_observations(n: int = 120, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    age = rng.uniform(20, 80, n)
    weight = rng.normal(80, 12, n)
    height = rng.normal(170, 9, n)
    poverty = rng.uniform(0.5, 5.0, n)
    pulse = rng.normal(72, 8, n)
    bp = 95 + 0.45 * age + 0.12 * weight - 1.5 * poverty + rng.normal(0, 4, n)
    return pd.DataFrame(
        {
            "Age": age,
            "Weight": weight,
            "Height": height,
            "BMI": weight / (height / 100) ** 2,
            "Poverty": poverty,
            "HHIncomeMid": poverty * 20000,
            "Pulse": pulse,
            "BPSysAve": bp,
        }
    )


@pytest.fixture
def observations() -> pd.DataFrame:
    return make_observations()


@pytest.fixture
def cleaned(observations) -> pd.DataFrame:
    return observations.drop(columns=["BMI", "HHIncomeMid"])
