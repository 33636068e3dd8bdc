# tests/core/workflow/test_workflow_state.py
"""
Testes da máquina de estados do Workflow (EMPTY / PARTIAL / FITTED).

Cobrem:
- transições por add/remove/update
- invalidação conservadora (qualquer mutação descarta todos os artefatos)
- exclusão mútua do preprocessor
- warnings ao remover slots vazios
"""

import pandas as pd
import pytest

from atlas_workflows import ConflictError, NotTrainedError, SpecificationError, Workflow, WorkflowState
from atlas_workflows.modeling import linear_reg, model_spec
from atlas_workflows.postprocessing import postprocessor
from atlas_workflows.preprocessing import Formula, Recipe, Variables


def _fitted(train):
    return Workflow().add_formula("y ~ x1 + x2").add_model(linear_reg()).fit(train)


def _fitted_variables(train):
    return Workflow().add_variables("y", ["x1", "x2"]).add_model(linear_reg()).fit(train)


def _fitted_recipe(train):
    recipe = Recipe(outcome="y").step_normalize(["x1", "x2"])
    return Workflow().add_recipe(recipe).add_model(linear_reg()).fit(train)


def _fitted_without_preprocessor(train):
    return Workflow().add_model(linear_reg(), formula="y ~ x1 + x2").fit(train)


def _fitted_with_postprocessor(train):
    return (
        Workflow()
        .add_formula("y ~ x1 + x2")
        .add_model(linear_reg())
        .add_postprocessor(postprocessor().adjust_numeric_range(lower=0.0))
        .fit(train)
    )


def test_lifecycle_empty_partial_fitted(regression_train):
    wf = Workflow()
    assert wf.state == WorkflowState.EMPTY
    assert wf.is_trained() is False

    wf.add_formula("y ~ x1 + x2")
    assert wf.state == WorkflowState.PARTIAL

    wf.add_model(linear_reg()).fit(regression_train)
    assert wf.state == WorkflowState.FITTED
    assert wf.is_trained() is True


def test_constructor_slots_match_add_calls():
    wf = Workflow("y ~ x1", linear_reg())
    assert wf.extract_preprocessor() == Formula("y ~ x1")
    assert wf.extract_spec_model().model_id == "linear_reg"


@pytest.mark.parametrize(
    "build, mutation",
    [
        (_fitted, lambda wf: wf.add_postprocessor(postprocessor().adjust_numeric_range(lower=0.0))),
        (_fitted, lambda wf: wf.remove_formula()),
        (_fitted, lambda wf: wf.remove_preprocessor()),
        (_fitted, lambda wf: wf.remove_model()),
        (_fitted, lambda wf: wf.remove_postprocessor()),
        (_fitted, lambda wf: wf.update_formula("y ~ x1")),
        (_fitted, lambda wf: wf.update_model(model_spec("ridge_reg"))),
        (_fitted_without_preprocessor, lambda wf: wf.add_formula("y ~ x1")),
        (_fitted_without_preprocessor, lambda wf: wf.add_variables("y", ["x1"])),
        (_fitted_without_preprocessor, lambda wf: wf.add_recipe(Recipe(outcome="y").step_center(["x1"]))),
        (_fitted_variables, lambda wf: wf.update_variables("y", ["x1"])),
        (_fitted_variables, lambda wf: wf.remove_variables()),
        (_fitted_recipe, lambda wf: wf.update_recipe(Recipe(outcome="y").step_center(["x1"]))),
        (_fitted_recipe, lambda wf: wf.remove_recipe()),
        (_fitted_with_postprocessor, lambda wf: wf.update_postprocessor(postprocessor().adjust_numeric_range(upper=1.0))),
        (_fitted_with_postprocessor, lambda wf: wf.remove_postprocessor()),
    ],
)
def test_any_mutation_invalidates_the_whole_workflow(regression_train, build, mutation):
    wf = build(regression_train)
    assert wf.state == WorkflowState.FITTED

    mutation(wf)

    assert wf.state in (WorkflowState.PARTIAL, WorkflowState.EMPTY)
    assert wf.is_trained() is False
    with pytest.raises(NotTrainedError):
        wf.extract_fit_model()
    with pytest.raises(NotTrainedError):
        wf.predict(regression_train)
    assert len(wf.events.find(message="workflow_invalidated")) == 1


def test_remove_then_add_formula_fits_iff_model_is_set(regression_train):
    wf = _fitted(regression_train)
    wf.remove_preprocessor().add_formula("y ~ x2")
    wf.fit(regression_train)
    assert wf.extract_fit_preprocessor().columns == ["x2"]

    no_model = Workflow().add_formula("y ~ x1")
    no_model.remove_preprocessor().add_formula("y ~ x2")
    with pytest.raises(SpecificationError) as ei:
        no_model.fit(regression_train)
    assert ei.value.slot == "model"


def test_mutual_exclusion_keeps_original_formula():
    wf = Workflow().add_formula("y ~ x1")

    with pytest.raises(ConflictError) as ei:
        wf.add_recipe(Recipe(outcome="y"))

    assert ei.value.slot == "preprocessor"
    assert wf.extract_preprocessor() == Formula("y ~ x1")
    with pytest.raises(ConflictError):
        wf.add_variables("y")
    with pytest.raises(ConflictError):
        wf.add_formula("y ~ x2")


def test_conflict_does_not_invalidate_fitted_workflow(regression_train):
    wf = _fitted(regression_train)
    with pytest.raises(ConflictError):
        wf.add_model(linear_reg())
    assert wf.state == WorkflowState.FITTED


def test_removing_absent_slot_warns_and_still_invalidates(regression_train):
    wf = _fitted(regression_train)

    wf.remove_postprocessor()

    assert wf.events.warnings["postprocessor"] == ["The workflow has no postprocessor to remove."]
    assert wf.state == WorkflowState.PARTIAL


def test_removing_wrong_preprocessor_kind_keeps_current_one():
    wf = Workflow().add_recipe(Recipe(outcome="y"))

    wf.remove_formula()

    assert isinstance(wf.extract_preprocessor(), Recipe)
    assert wf.events.warnings["preprocessor"] == ["The workflow has no formula to remove."]


def test_update_replaces_same_kind_and_rejects_other_kind():
    wf = Workflow().add_variables("y", ["x1"])
    wf.update_variables("y", ["x2"])
    assert wf.extract_preprocessor() == Variables(outcomes="y", predictors=["x2"])

    with pytest.raises(ConflictError):
        wf.update_formula("y ~ x1")
    assert isinstance(wf.extract_preprocessor(), Variables)

    empty = Workflow().update_formula("y ~ x1")
    assert empty.extract_preprocessor() == Formula("y ~ x1")


def test_update_model_and_postprocessor_replace_occupant():
    wf = Workflow().add_model(linear_reg(), formula="y ~ x1")
    wf.update_model(model_spec("ridge_reg"))
    assert wf.extract_spec_model().model_id == "ridge_reg"
    assert wf.extract_model_formula() is None

    wf.add_postprocessor(postprocessor().adjust_numeric_range(lower=0.0))
    wf.update_postprocessor(postprocessor().adjust_numeric_range(upper=1.0), calibration_prop=0.3)
    assert wf.describe()["postprocessor"]["calibration_prop"] == 0.3
    assert wf.extract_postprocessor().adjustments[0].upper == 1.0


def test_extraction_of_absent_slots_fails():
    wf = Workflow()
    with pytest.raises(SpecificationError):
        wf.extract_preprocessor()
    with pytest.raises(SpecificationError):
        wf.extract_spec_model()
    with pytest.raises(SpecificationError):
        wf.extract_postprocessor()
    with pytest.raises(SpecificationError):
        wf.extract_recipe()


def test_predict_before_fit_raises_not_trained(regression_test):
    wf = Workflow().add_formula("y ~ x1").add_model(linear_reg())
    with pytest.raises(NotTrainedError) as ei:
        wf.predict(regression_test)
    assert ei.value.details["state"] == "partial"
    assert ei.value.stage == "predict"


def test_events_record_slot_changes():
    wf = Workflow().add_formula("y ~ x1").add_model(linear_reg())
    wf.remove_model()

    slot_events = [(e["message"], e["slot"]) for e in wf.events.events]
    assert slot_events == [
        ("slot_set", "preprocessor"),
        ("slot_set", "model"),
        ("slot_removed", "model"),
    ]


def test_invalid_argument_types():
    with pytest.raises(TypeError):
        Workflow().add_recipe("y ~ x1")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Workflow().add_model("linear_reg")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        Workflow().add_formula("no tilde here")


@pytest.mark.parametrize(
    "mutation, error",
    [
        (lambda wf: wf.add_postprocessor(postprocessor().adjust_numeric_range(upper=-100.0), seed="abc"), TypeError),
        (lambda wf: wf.update_postprocessor(postprocessor().adjust_numeric_range(upper=-100.0), seed="abc"), TypeError),
        (lambda wf: wf.update_postprocessor(postprocessor(), calibration_prop=2.0), ValueError),
        (lambda wf: wf.update_model(model_spec("ridge_reg"), formula="y ~ (x1"), ValueError),
        (lambda wf: wf.update_recipe("y ~ x1"), TypeError),
    ],
)
def test_rejected_arguments_leave_slots_and_state_unchanged(regression_train, regression_test, mutation, error):
    wf = _fitted_with_postprocessor(regression_train)
    before = wf.predict(regression_test)
    post_before = wf.extract_postprocessor()
    model_before = wf.extract_spec_model()

    with pytest.raises(error):
        mutation(wf)

    assert wf.state == WorkflowState.FITTED
    assert wf.extract_postprocessor() is post_before
    assert wf.extract_spec_model() is model_before
    assert wf.describe()["postprocessor"]["seed"] == 42
    pd.testing.assert_frame_equal(wf.predict(regression_test), before)
    assert wf.events.find(message="workflow_invalidated") == []


def test_add_postprocessor_with_invalid_seed_on_empty_slot(regression_train):
    wf = _fitted(regression_train)

    with pytest.raises(TypeError):
        wf.add_postprocessor(postprocessor().adjust_numeric_range(upper=-100.0), seed="abc")
    with pytest.raises(TypeError):
        wf.add_postprocessor(postprocessor().adjust_numeric_range(upper=-100.0), seed=True)

    assert wf.state == WorkflowState.FITTED
    with pytest.raises(SpecificationError):
        wf.extract_postprocessor()
