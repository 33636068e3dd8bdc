# tests/preprocessing/test_variables.py
import pandas as pd
import pytest

from atlas_workflows.preprocessing import Variables, all_numeric, one_of, starts_with


def test_default_predictors_are_everything_but_outcome(regression_train):
    fitted = Variables(outcomes="y").fit(regression_train)

    assert fitted.outcome == "y"
    assert fitted.columns == ["x1", "x2"]


def test_predictors_pass_through_unmodified(categorical_train):
    fitted = Variables(outcomes="y", predictors=["group", "x1"]).fit(categorical_train)
    out = fitted.transform(categorical_train)

    assert list(out.columns) == ["group", "x1"]
    pd.testing.assert_series_equal(out["group"], categorical_train["group"])


def test_selectors_exclude_the_outcome(regression_train):
    fitted = Variables(outcomes=one_of("y"), predictors=all_numeric()).fit(regression_train)
    assert fitted.columns == ["x1", "x2"]

    fitted = Variables(outcomes="y", predictors=starts_with("x")).fit(regression_train)
    assert fitted.columns == ["x1", "x2"]


def test_exactly_one_outcome_is_required(regression_train):
    with pytest.raises(ValueError, match="exactly one outcome"):
        Variables(outcomes=["y", "x2"]).fit(regression_train)


def test_empty_predictor_selection_fails(regression_train):
    with pytest.raises(ValueError, match="empty"):
        Variables(outcomes="y", predictors=starts_with("zzz")).fit(regression_train)


def test_outcome_listed_as_predictor_fails(regression_train):
    with pytest.raises(ValueError):
        Variables(outcomes="y", predictors=["x1", "y"]).fit(regression_train)


def test_outcome_values_and_missing_columns(regression_train):
    fitted = Variables(outcomes="y").fit(regression_train)
    assert fitted.outcome_values(regression_train).name == "y"
    with pytest.raises(ValueError):
        fitted.transform(regression_train.drop(columns=["x1"]))
