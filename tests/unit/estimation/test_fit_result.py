import json

import numpy as np
import pandas as pd
import pytest
from scipy.stats import norm

from gravity_tobit.estimation.models import FitResult
from gravity_tobit.exceptions import ConvergenceFailure, InvalidInputError


def _result(converged: bool = True) -> FitResult:
    names = ["(Intercept)", "dist_log", "rta"]
    params = names + ["sigma"]
    cov = np.diag([0.04, 0.01, 0.09, 0.0025])
    return FitResult(
        coefficients=pd.Series([2.0, -0.8, 0.6], index=names, name="estimate"),
        sigma=1.5,
        covariance=pd.DataFrame(cov, index=params, columns=params),
        threshold=0.0,
        log_likelihood=-120.0,
        iterations=14,
        converged=converged,
        n_obs=100,
        n_censored=30,
        gradient_norm=1e-7,
        regressor_means=pd.Series([1.0, 7.0, 0.4], index=names),
        formula="y_cens_log_tobit ~ dist_log + rta",
        log_likelihood_trace=[-150.0, -121.0, -120.0],
        message="log-likelihood change 1e-09 below 1e-08",
    )


def test_coefficient_table_statistics():
    table = _result().coefficient_table()
    assert list(table.columns) == ["estimate", "std_error", "z_value", "p_value"]
    assert list(table.index) == ["(Intercept)", "dist_log", "rta", "sigma"]
    assert table.loc["dist_log", "std_error"] == pytest.approx(0.1)
    assert table.loc["dist_log", "z_value"] == pytest.approx(-8.0)
    assert table.loc["rta", "p_value"] == pytest.approx(2 * norm.sf(2.0))
    assert table.loc["sigma", "estimate"] == pytest.approx(1.5)


def test_negative_variance_gives_nan_standard_error():
    result = _result()
    result.covariance.iloc[2, 2] = -1e-12
    assert np.isnan(result.standard_errors()["rta"])


def test_information_criteria():
    result = _result()
    assert result.n_params == 4
    assert result.aic() == pytest.approx(2 * 4 + 240.0)
    assert result.bic() == pytest.approx(4 * np.log(100) + 240.0)


def test_params_vector_appends_sigma():
    np.testing.assert_allclose(_result().params, [2.0, -0.8, 0.6, 1.5])


def test_marginal_effects_at_means():
    result = _result()
    xb = 2.0 * 1.0 - 0.8 * 7.0 + 0.6 * 0.4
    scale = norm.cdf(xb / 1.5)
    effects = result.marginal_effects()
    assert list(effects.index) == ["dist_log", "rta"]
    assert effects["dist_log"] == pytest.approx(-0.8 * scale)
    assert effects["rta"] == pytest.approx(0.6 * scale)


def test_marginal_effects_at_custom_point():
    result = _result()
    point = pd.Series({"(Intercept)": 1.0, "dist_log": 5.0, "rta": 1.0})
    scale = norm.cdf((2.0 - 4.0 + 0.6) / 1.5)
    assert result.marginal_effects(at=point)["rta"] == pytest.approx(0.6 * scale)
    with pytest.raises(InvalidInputError, match="rta"):
        result.marginal_effects(at=point.drop("rta"))


def test_raise_for_convergence():
    _result().raise_for_convergence()
    with pytest.raises(ConvergenceFailure) as excinfo:
        _result(converged=False).raise_for_convergence()
    assert excinfo.value.result.iterations == 14


def test_to_dict_is_json_serialisable():
    payload = _result().to_dict()
    decoded = json.loads(json.dumps(payload))
    assert decoded["n_uncensored"] == 70
    assert decoded["parameter_names"] == ["(Intercept)", "dist_log", "rta", "sigma"]
    assert decoded["coefficients"]["dist_log"]["estimate"] == pytest.approx(-0.8)
    assert decoded["formula"] == "y_cens_log_tobit ~ dist_log + rta"
