# tests/postprocessing/test_postprocessor.py
"""
Testes do PostProcessor e dos ajustes (limiar, calibração, truncamento).
"""

import numpy as np
import pandas as pd
import pytest

from atlas_workflows.postprocessing import (
    NumericCalibration,
    NumericRange,
    PostProcessor,
    ProbabilityThreshold,
    postprocessor,
)


def _class_preds():
    return pd.DataFrame(
        {
            "pred_class": ["no", "yes", "yes", "no"],
            "prob_no": [0.9, 0.4, 0.2, 0.65],
            "prob_yes": [0.1, 0.6, 0.8, 0.35],
        },
        index=[10, 11, 12, 13],
    )


def test_builders_are_immutable_and_declare_mode():
    base = postprocessor()
    post = base.adjust_probability_threshold(0.7)

    assert base.adjustments == ()
    assert base.mode is None
    assert post.mode == "classification"
    assert post.requires_training is False
    assert base.adjust_numeric_calibration().requires_training is True


def test_mixed_modes_are_rejected():
    with pytest.raises(ValueError, match="mixes"):
        PostProcessor(adjustments=(ProbabilityThreshold(), NumericRange(lower=0.0)))


def test_probability_threshold_reclassifies_event():
    fitted = postprocessor().adjust_probability_threshold(0.7).fit(_class_preds(), None, ["no", "yes"])
    out = fitted.apply(_class_preds())

    assert out["pred_class"].tolist() == ["no", "no", "yes", "no"]
    assert list(out.index) == [10, 11, 12, 13]


def test_probability_threshold_first_level_and_binary_only():
    fitted = postprocessor().adjust_probability_threshold(0.5, event_level="first").fit(
        _class_preds(), None, ["no", "yes"]
    )
    assert fitted.apply(_class_preds())["pred_class"].tolist() == ["no", "yes", "yes", "no"]

    with pytest.raises(ValueError, match="binary"):
        postprocessor().adjust_probability_threshold().fit(_class_preds(), None, ["a", "b", "c"])
    with pytest.raises(ValueError):
        ProbabilityThreshold(threshold=1.5)


def test_probability_calibration_renormalizes():
    rng = np.random.default_rng(0)
    p = rng.uniform(size=200)
    preds = pd.DataFrame({"pred_class": np.where(p > 0.5, "yes", "no"), "prob_no": 1 - p, "prob_yes": p})
    outcomes = pd.Series(np.where(rng.uniform(size=200) < p, "yes", "no"))

    fitted = postprocessor().adjust_probability_calibration("isotonic").fit(preds, outcomes, ["no", "yes"])
    out = fitted.apply(preds)

    np.testing.assert_allclose(out["prob_no"] + out["prob_yes"], 1.0)
    assert set(out["pred_class"]) <= {"no", "yes"}


def test_numeric_calibration_linear_corrects_bias():
    x = np.linspace(0.0, 10.0, 50)
    preds = pd.DataFrame({"pred": x})
    outcomes = pd.Series(2.0 * x + 1.0)

    fitted = PostProcessor().adjust_numeric_calibration("linear").fit(preds, outcomes)
    np.testing.assert_allclose(fitted.apply(preds)["pred"], outcomes.to_numpy())


def test_calibration_requires_outcomes():
    with pytest.raises(ValueError, match="observed outcomes"):
        NumericCalibration().fit(pd.DataFrame({"pred": [1.0]}), None, ())


def test_numeric_range_clips_and_adjustments_run_in_order():
    preds = pd.DataFrame({"pred": [-3.0, 0.5, 7.0]})
    post = postprocessor().adjust_numeric_range(lower=0.0).adjust_numeric_range(upper=1.0)

    out = post.fit(preds).apply(preds)
    assert out["pred"].tolist() == [0.0, 0.5, 1.0]
    with pytest.raises(ValueError):
        NumericRange()


def test_from_adjustments_and_describe():
    post = PostProcessor.from_adjustments(
        [{"type": "numeric_range", "lower": 0.0, "upper": 1.0}, {"type": "numeric_calibration", "method": "linear"}]
    )
    assert post.describe() == {
        "mode": "regression",
        "adjustments": [
            {"type": "numeric_range", "lower": 0.0, "upper": 1.0},
            {"type": "numeric_calibration", "method": "linear"},
        ],
    }
    with pytest.raises(ValueError, match="Unknown adjustment"):
        PostProcessor.from_adjustments([{"type": "nope"}])
