# tests/preprocessing/test_formula.py
"""
Testes do preprocessor por fórmula: parsing, expansão de termos e
reprodução do encoding de treino na predição.
"""

import numpy as np
import pandas as pd
import pytest

from atlas_workflows.preprocessing.formula import Formula


def test_outcome_and_explicit_terms(regression_train):
    f = Formula("y ~ x1 + x2")
    fitted = f.fit(regression_train)

    assert f.outcome == "y"
    assert fitted.outcome == "y"
    assert fitted.columns == ["x1", "x2"]
    assert fitted.required_columns == ["x1", "x2"]
    out = fitted.transform(regression_train.drop(columns=["y"]))
    np.testing.assert_allclose(out["x1"].to_numpy(), regression_train["x1"].to_numpy())


def test_dot_expands_to_all_non_outcome_columns_and_minus_removes(regression_train):
    assert Formula("y ~ .").fit(regression_train).columns == ["x1", "x2"]
    assert Formula("y ~ . - x2").fit(regression_train).columns == ["x1"]


def test_star_expands_to_main_effects_plus_interaction(regression_train):
    fitted = Formula("y ~ x1*x2").fit(regression_train)
    assert fitted.columns == ["x1", "x2", "x1:x2"]

    out = fitted.transform(regression_train)
    np.testing.assert_allclose(out["x1:x2"], regression_train["x1"] * regression_train["x2"])


def test_intercept_markers_are_ignored(regression_train):
    assert Formula("y ~ 1 + x1").fit(regression_train).columns == ["x1"]
    assert Formula("y ~ x1 - 1").fit(regression_train).columns == ["x1"]
    assert Formula("y ~ 0 + x1").fit(regression_train).columns == ["x1"]


def test_elementwise_and_basis_functions():
    df = pd.DataFrame({"x": np.linspace(1.0, 10.0, 30), "y": np.arange(30.0)})

    fitted = Formula("y ~ log(x) + poly(x, degree=3) + spline(x, df=4)").fit(df)

    assert fitted.columns[0] == "log(x)"
    assert fitted.columns[1:4] == ["poly(x, degree=3)_1", "poly(x, degree=3)_2", "poly(x, degree=3)_3"]
    assert len([c for c in fitted.columns if c.startswith("spline(")]) == 4
    out = fitted.transform(df)
    np.testing.assert_allclose(out["log(x)"], np.log(df["x"]))
    np.testing.assert_allclose(out["poly(x, degree=3)_2"], df["x"] ** 2)


def test_categorical_columns_are_one_hot_encoded_with_first_level_dropped(categorical_train):
    fitted = Formula("y ~ x1 + group").fit(categorical_train)

    assert fitted.columns == ["x1", "group_b", "group_c"]

    new = pd.DataFrame({"x1": [0.0, 0.0], "group": ["c", "zzz"]})
    out = fitted.transform(new)
    assert out[["group_b", "group_c"]].to_numpy().tolist() == [[0.0, 1.0], [0.0, 0.0]]


def test_backtick_names():
    df = pd.DataFrame({"my x": [1.0, 2.0, 3.0], "y": [1.0, 2.0, 3.0]})
    assert Formula("y ~ `my x`").fit(df).columns == ["my x"]


def test_transform_preserves_index_and_requires_columns(regression_train):
    fitted = Formula("y ~ x1 + x2").fit(regression_train)
    new = regression_train.drop(columns=["y"]).iloc[[5, 2, 9]]

    assert list(fitted.transform(new).index) == [5, 2, 9]
    with pytest.raises(ValueError, match="Missing required column"):
        fitted.transform(new.drop(columns=["x2"]))


@pytest.mark.parametrize(
    "text",
    [
        "",
        "y x1",
        "y ~ x1 ~ x2",
        "y ~ x1 +",
        "y ~ foo(x1)",
        "y ~ spline(x1, df=2)",
        "y ~ poly(x1, degree=0)",
        "y ~ log(x1, base=2)",
        "y ~ (x1",
        "y ~ . - .",
    ],
)
def test_invalid_formulas_are_rejected_at_construction(text):
    with pytest.raises(ValueError):
        Formula(text)


def test_fit_errors(regression_train):
    with pytest.raises(ValueError, match="no outcome"):
        Formula("~ x1").fit(regression_train)
    with pytest.raises(ValueError, match="Missing required column"):
        Formula("y ~ x1 + nope").fit(regression_train)
    with pytest.raises(ValueError, match="outcome"):
        Formula("y ~ x1 + y").fit(regression_train)


def test_equality_is_by_text():
    assert Formula("y ~ x1") == Formula("  y ~ x1 ")
    assert Formula("y ~ x1") != Formula("y ~ x2")
