import numpy as np
import pandas as pd
import pytest

from nhanes_bp.errors import EmptyPartitionError
from nhanes_bp.preprocessing import split_data, standardize


def test_split_is_deterministic_for_a_seed(cleaned):
    first = split_data(cleaned, "BPSysAve", test_size=0.2, random_state=123)
    second = split_data(cleaned, "BPSysAve", test_size=0.2, random_state=123)

    for a, b in zip(first, second):
        assert list(a.index) == list(b.index)


def test_different_seeds_change_the_split(cleaned):
    _, test_a, _, _ = split_data(cleaned, "BPSysAve", test_size=0.2, random_state=100)
    _, test_b, _, _ = split_data(cleaned, "BPSysAve", test_size=0.2, random_state=123)

    assert set(test_a.index) != set(test_b.index)


def test_split_partitions_every_row_once(cleaned):
    X_train, X_test, y_train, y_test = split_data(cleaned, "BPSysAve", test_size=0.2, random_state=100)

    assert set(X_train.index).isdisjoint(X_test.index)
    assert set(X_train.index) | set(X_test.index) == set(cleaned.index)
    assert len(X_test) == 24
    assert list(y_train.index) == list(X_train.index)
    assert list(y_test.index) == list(X_test.index)


def test_response_absent_from_features(cleaned):
    X_train, X_test, _, _ = split_data(cleaned, "BPSysAve")

    assert "BPSysAve" not in X_train.columns
    assert "BPSysAve" not in X_test.columns

    _, X_train_std, X_test_std = standardize(X_train, X_test)
    assert "BPSysAve" not in X_train_std.columns
    assert "BPSysAve" not in X_test_std.columns


def test_split_rejects_empty_partition():
    df = pd.DataFrame({"Age": [40.0], "BPSysAve": [120.0]})

    with pytest.raises(EmptyPartitionError):
        split_data(df, "BPSysAve", test_size=0.2)


def test_standardized_training_features_are_centred_and_scaled(cleaned):
    X_train, X_test, _, _ = split_data(cleaned, "BPSysAve")

    _, X_train_std, _ = standardize(X_train, X_test)

    np.testing.assert_allclose(X_train_std.mean().to_numpy(), 0.0, atol=1e-9)
    np.testing.assert_allclose(X_train_std.std(ddof=0).to_numpy(), 1.0, atol=1e-9)


def test_scaler_statistics_come_from_training_rows_only(cleaned):
    X_train, X_test, _, _ = split_data(cleaned, "BPSysAve")

    scaler, _, X_test_std = standardize(X_train, X_test)

    np.testing.assert_allclose(scaler.mean_, X_train.mean().to_numpy())
    expected = (X_test - X_train.mean()) / X_train.std(ddof=0)
    np.testing.assert_allclose(X_test_std.to_numpy(), expected.to_numpy())
    assert list(X_test_std.index) == list(X_test.index)


def test_split_rejects_float_rounding_that_empties_training_rows():
    # floor((1 - 0.9) * 10) is 0 in floating point even though 10 - ceil(9.0) is 1.
    df = pd.DataFrame({"Age": np.arange(10.0), "BPSysAve": np.arange(110.0, 120.0)})

    with pytest.raises(EmptyPartitionError):
        split_data(df, "BPSysAve", test_size=0.9)
