import numpy as np
import pandas as pd
import pytest

from gravity_tobit.data.preparation import DIST_LOG, INTERCEPT, OUTCOME, prepare
from gravity_tobit.exceptions import DegenerateInputError, InvalidInputError


def _flows() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "flow": [0.0, 12.0, 3.0, 0.0, 7.0, 40.0, 1.0],
            "distw": [100.0, 0.0, -5.0, np.inf, np.nan, 250.0, 80.0],
            "rta": [1.0, 0.0, 1.0, 0.0, 1.0, 0.0, 1.0],
        }
    )


def test_rows_survive_iff_distance_is_finite_and_positive():
    prepared = prepare(_flows(), "flow", "distw", ["rta"], added_constant=1.0)
    assert list(prepared.design_matrix.index) == [0, 5, 6]
    assert prepared.n_input == 7
    assert prepared.n_dropped == 4


def test_zero_flows_are_retained():
    df = pd.DataFrame({"flow": [0.0, 0.0, 5.0], "distw": [10.0, 20.0, 30.0]})
    prepared = prepare(df, "flow", "distw", added_constant=1.0)
    assert prepared.n_obs == 3
    assert (prepared.outcome == 0.0).sum() == 2


def test_transforms_match_log_definitions():
    df = _flows()
    prepared = prepare(df, "flow", "distw", ["rta"], added_constant=2.5)
    kept = df.loc[prepared.design_matrix.index]
    np.testing.assert_allclose(prepared.outcome.to_numpy(), np.log(kept["flow"] + 2.5))
    np.testing.assert_allclose(prepared.design_matrix[DIST_LOG].to_numpy(), np.log(kept["distw"]))
    assert prepared.outcome.name == OUTCOME


def test_threshold_is_minimum_transformed_outcome():
    prepared = prepare(_flows(), "flow", "distw", ["rta"], added_constant=1.0)
    assert prepared.threshold == pytest.approx(prepared.outcome.min())
    assert not (prepared.outcome < prepared.threshold).any()
    assert prepared.threshold == pytest.approx(0.0)


def test_design_matrix_column_order_and_intercept():
    df = _flows().assign(lgdp_o=np.linspace(20, 26, 7))
    prepared = prepare(df, "flow", "distw", ["rta", "lgdp_o"])
    assert prepared.column_names == [INTERCEPT, DIST_LOG, "rta", "lgdp_o"]
    assert (prepared.design_matrix[INTERCEPT] == 1.0).all()
    np.testing.assert_allclose(prepared.design_matrix["lgdp_o"], df.loc[[0, 5, 6], "lgdp_o"])
    assert prepared.formula == "y_cens_log_tobit ~ dist_log + rta + lgdp_o"


def test_as_arrays_returns_solver_inputs():
    X, y, threshold = prepare(_flows(), "flow", "distw", ["rta"]).as_arrays()
    assert X.shape == (3, 3)
    assert y.shape == (3,)
    assert isinstance(threshold, float)


def test_zero_distance_row_is_dropped_before_transformation():
    df = pd.DataFrame({"flow": [1.0, 2.0, 0.0, 9.0, 4.0], "distw": [10.0, 0.0, 30.0, 40.0, 50.0]})
    prepared = prepare(df, "flow", "distw")
    assert prepared.n_obs == len(df) - 1
    assert 1 not in prepared.outcome.index


def test_missing_flow_is_treated_as_zero():
    df = pd.DataFrame({"flow": [np.nan, 15.0, 3.0, 0.0], "distw": [10.0, 20.0, 30.0, 40.0]})
    prepared = prepare(df, "flow", "distw", added_constant=2.0)
    assert prepared.outcome.loc[0] == pytest.approx(np.log(2.0))
    assert prepared.outcome.loc[0] == pytest.approx(prepared.outcome.loc[3])


def test_nullable_integer_columns_are_accepted():
    df = pd.DataFrame(
        {
            "flow": pd.array([None, 4, 0, 9], dtype="Int64"),
            "distw": pd.array([10, 20, None, 40], dtype="Int64"),
        }
    )
    prepared = prepare(df, "flow", "distw")
    assert list(prepared.outcome.index) == [0, 1, 3]
    assert prepared.outcome.loc[0] == pytest.approx(0.0)


def test_fewer_than_two_valid_rows_is_degenerate():
    df = pd.DataFrame({"flow": [1.0, 2.0, 3.0], "distw": [0.0, 10.0, -1.0]})
    with pytest.raises(DegenerateInputError):
        prepare(df, "flow", "distw")


def test_all_zero_distances_is_degenerate():
    df = pd.DataFrame({"flow": [1.0, 2.0, 3.0], "distw": [0.0, 0.0, 0.0]})
    with pytest.raises(DegenerateInputError):
        prepare(df, "flow", "distw")


def test_constant_outcome_is_degenerate():
    df = pd.DataFrame({"flow": [0.0, np.nan, 0.0], "distw": [10.0, 20.0, 30.0]})
    with pytest.raises(DegenerateInputError, match="zero variance"):
        prepare(df, "flow", "distw")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"dependent_column": "trade"},
        {"distance_column": "dist"},
        {"other_regressor_columns": ["contig"]},
    ],
)
def test_missing_columns_are_invalid(kwargs):
    args = {
        "dependent_column": "flow",
        "distance_column": "distw",
        "other_regressor_columns": ["rta"],
    }
    args.update(kwargs)
    with pytest.raises(InvalidInputError, match="Missing required columns"):
        prepare(_flows(), **args)


@pytest.mark.parametrize("constant", [np.nan, np.inf, 0.0, -1.0, "1", None, True])
def test_bad_added_constant_is_invalid(constant):
    with pytest.raises(InvalidInputError):
        prepare(_flows(), "flow", "distw", ["rta"], added_constant=constant)


def test_non_dataframe_is_invalid():
    with pytest.raises(InvalidInputError):
        prepare({"flow": [1.0], "distw": [2.0]}, "flow", "distw")


def test_non_numeric_regressor_is_invalid():
    df = _flows().assign(iso_o=list("ABCDEFG"))
    with pytest.raises(InvalidInputError, match="numeric"):
        prepare(df, "flow", "distw", ["iso_o"])


def test_repeated_regressor_is_invalid():
    with pytest.raises(InvalidInputError, match="more than once"):
        prepare(_flows(), "flow", "distw", ["rta", "rta"])


def test_missing_regressor_value_in_retained_row_is_invalid():
    df = _flows()
    df.loc[5, "rta"] = np.nan
    with pytest.raises(InvalidInputError, match="non-finite"):
        prepare(df, "flow", "distw", ["rta"])


def test_missing_regressor_value_in_dropped_row_is_ignored():
    df = _flows()
    df.loc[1, "rta"] = np.nan
    prepared = prepare(df, "flow", "distw", ["rta"])
    assert prepared.n_obs == 3


def test_negative_flow_below_constant_is_invalid():
    df = pd.DataFrame({"flow": [-3.0, 2.0, 5.0], "distw": [10.0, 20.0, 30.0]})
    with pytest.raises(InvalidInputError, match="undefined"):
        prepare(df, "flow", "distw", added_constant=1.0)


def test_input_frame_is_not_modified():
    df = _flows()
    before = df.copy()
    prepare(df, "flow", "distw", ["rta"])
    pd.testing.assert_frame_equal(df, before)
