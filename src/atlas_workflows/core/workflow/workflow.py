"""
Workflow — contêiner de preprocessor + modelo + pós-processador.

Este módulo define o `Workflow`, a unidade que agrupa uma especificação de
preprocessamento (fórmula, variáveis ou recipe), uma especificação de modelo
e um pós-processador opcional, para que o conjunto seja treinado e usado para
predição como um único objeto.

Ciclo de vida:
    EMPTY --add_*--> PARTIAL --fit--> FITTED
    FITTED --add_*/remove_*/update_*--> PARTIAL (ou EMPTY)

Decisões arquiteturais:
    - Invalidação conservadora: qualquer mutação de slot descarta TODOS os
      artefatos treinados, não apenas o do slot tocado
    - Exclusão mútua do preprocessor é validada no add (fail fast), não no fit
    - O fit é atômico: artefatos só são confirmados depois que os três
      estágios terminam; falhas delegadas preservam o estado anterior
    - Validações locais acontecem antes de qualquer chamada delegada

Invariantes:
    - No máximo um preprocessor, um modelo e um pós-processador
    - FITTED ⇔ todos os slots ocupados têm artefato treinado e nenhuma
      mutação ocorreu desde o último fit
    - Cada Workflow tem seu próprio EventLog; não existe estado global

Limites explícitos:
    - Não implementa numéricos de encoding, recipe ou modelo (delegados)
    - Não faz tuning nem reamostragem
"""

from __future__ import annotations

import copy
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from atlas_workflows.core.errors import (
    workflow_conflict,
    workflow_not_trained,
    workflow_specification,
)
from atlas_workflows.core.exceptions import (
    ConflictError,
    DelegatedFailure,
    NotTrainedError,
    SpecificationError,
    WorkflowException,
)
from atlas_workflows.core.traceability.event_log import EventLog
from atlas_workflows.modeling.model_spec import FittedModel, ModelSpec
from atlas_workflows.postprocessing.postprocessor import FittedPostProcessor, PostProcessor
from atlas_workflows.preprocessing.base import FittedPreprocessor, PreprocessorKind, as_frame
from atlas_workflows.preprocessing.formula import Formula
from atlas_workflows.preprocessing.recipe import FittedRecipe, Recipe
from atlas_workflows.preprocessing.variables import Variables

from .slots import FittedModelStage, ModelSlot, PostProcessorSlot, PreprocessorSlot, as_formula
from .types import SlotName, Stage, WorkflowState


_PREDICT_TYPES = ("numeric", "class", "prob")


def _specification_error(slot: Optional[SlotName], reason: str) -> SpecificationError:
    return SpecificationError.from_payload(
        workflow_specification(slot=slot.value if slot is not None else None, reason=reason)
    )  # type: ignore[return-value]


class Workflow:
    """
    Contêiner de especificações e artefatos treinados de um pipeline de modelagem.

    Uso típico:

        wf = (
            Workflow()
            .add_formula("y ~ x1 + x2")
            .add_model(linear_reg())
        )
        wf.fit(train)
        wf.predict(test)

    Todos os métodos add_/remove_/update_ retornam o próprio Workflow para
    encadeamento.
    """

    def __init__(
        self,
        preprocessor: Any = None,
        model: Optional[ModelSpec] = None,
        postprocessor: Optional[PostProcessor] = None,
        *,
        workflow_id: Optional[str] = None,
    ):
        self.workflow_id = workflow_id or uuid.uuid4().hex
        self.events = EventLog(workflow_id=self.workflow_id)
        self._preprocessor = PreprocessorSlot()
        self._model = ModelSlot()
        self._post = PostProcessorSlot()
        self._trained = False

        if preprocessor is not None:
            self.add_preprocessor(preprocessor)
        if model is not None:
            self.add_model(model)
        if postprocessor is not None:
            self.add_postprocessor(postprocessor)

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------
    @property
    def state(self) -> WorkflowState:
        if self._trained:
            return WorkflowState.FITTED
        if self._preprocessor.spec is None and self._model.spec is None and self._post.spec is None:
            return WorkflowState.EMPTY
        return WorkflowState.PARTIAL

    def is_trained(self) -> bool:
        return self._trained

    @property
    def preprocessor_kind(self) -> Optional[PreprocessorKind]:
        return self._preprocessor.kind

    def _invalidate(self, *, slot: SlotName, action: str) -> None:
        was_fitted = self._trained
        self._preprocessor.fitted = None
        self._model.fitted = None
        self._post.fitted = None
        self._trained = False
        if was_fitted:
            self.events.log(level="info", message="workflow_invalidated", slot=slot.value, action=action)

    # ------------------------------------------------------------------
    # Preprocessor
    # ------------------------------------------------------------------
    def add_preprocessor(self, preprocessor: Any) -> "Workflow":
        """Adiciona qualquer variante de preprocessor (Formula, Variables ou Recipe)."""
        if isinstance(preprocessor, str):
            preprocessor = Formula(preprocessor)
        self._preprocessor.set(preprocessor)
        self._invalidate(slot=SlotName.PREPROCESSOR, action="add")
        self.events.log(
            level="info",
            message="slot_set",
            slot=SlotName.PREPROCESSOR.value,
            kind=self._preprocessor.kind.value,  # type: ignore[union-attr]
        )
        return self

    def add_formula(self, formula: Union[str, Formula]) -> "Workflow":
        return self.add_preprocessor(as_formula(formula))

    def add_variables(self, outcomes: Any, predictors: Any = None) -> "Workflow":
        variables = outcomes if isinstance(outcomes, Variables) else Variables(outcomes=outcomes, predictors=predictors)
        return self.add_preprocessor(variables)

    def add_recipe(self, recipe: Recipe) -> "Workflow":
        if not isinstance(recipe, Recipe):
            raise TypeError(f"recipe must be a Recipe, got {type(recipe).__name__}")
        return self.add_preprocessor(recipe)

    def _remove_preprocessor_kind(self, kind: Optional[PreprocessorKind]) -> "Workflow":
        current = self._preprocessor.kind
        if current is None or (kind is not None and current != kind):
            label = kind.value if kind is not None else "preprocessor"
            self.events.add_warning(
                slot=SlotName.PREPROCESSOR.value,
                message=f"The workflow has no {label} to remove.",
            )
        else:
            self._preprocessor.remove()
            self.events.log(level="info", message="slot_removed", slot=SlotName.PREPROCESSOR.value, kind=current.value)
        self._invalidate(slot=SlotName.PREPROCESSOR, action="remove")
        return self

    def remove_preprocessor(self) -> "Workflow":
        return self._remove_preprocessor_kind(None)

    def remove_formula(self) -> "Workflow":
        return self._remove_preprocessor_kind(PreprocessorKind.FORMULA)

    def remove_variables(self) -> "Workflow":
        return self._remove_preprocessor_kind(PreprocessorKind.VARIABLES)

    def remove_recipe(self) -> "Workflow":
        return self._remove_preprocessor_kind(PreprocessorKind.RECIPE)

    def _update_preprocessor(self, new_spec: Any) -> "Workflow":
        current = self._preprocessor.kind
        if current is not None and current != new_spec.kind:
            # update só substitui a mesma variante; trocar de variante exige remove_*
            raise ConflictError.from_payload(
                workflow_conflict(
                    slot=SlotName.PREPROCESSOR.value,
                    current=current.value,
                    attempted=new_spec.kind.value,
                    hint=f"Use remove_{current.value}() antes de adicionar outra variante de preprocessor.",
                )
            )
        self._preprocessor.remove()
        self._preprocessor.set(new_spec)
        self._invalidate(slot=SlotName.PREPROCESSOR, action="update")
        self.events.log(level="info", message="slot_updated", slot=SlotName.PREPROCESSOR.value, kind=new_spec.kind.value)
        return self

    def update_formula(self, formula: Union[str, Formula]) -> "Workflow":
        return self._update_preprocessor(as_formula(formula))

    def update_variables(self, outcomes: Any, predictors: Any = None) -> "Workflow":
        variables = outcomes if isinstance(outcomes, Variables) else Variables(outcomes=outcomes, predictors=predictors)
        return self._update_preprocessor(variables)

    def update_recipe(self, recipe: Recipe) -> "Workflow":
        if not isinstance(recipe, Recipe):
            raise TypeError(f"recipe must be a Recipe, got {type(recipe).__name__}")
        return self._update_preprocessor(recipe)

    # ------------------------------------------------------------------
    # Modelo
    # ------------------------------------------------------------------
    def add_model(self, spec: ModelSpec, formula: Optional[Union[str, Formula]] = None) -> "Workflow":
        """Adiciona o modelo; `formula` substitui a relação padrão `outcome ~ .` no fit do modelo."""
        self._model.set(spec, formula_override=formula)
        self._invalidate(slot=SlotName.MODEL, action="add")
        self.events.log(
            level="info",
            message="slot_set",
            slot=SlotName.MODEL.value,
            model_id=spec.model_id,
            formula=self._model.formula_override.text if self._model.formula_override else None,
        )
        return self

    def remove_model(self) -> "Workflow":
        if self._model.spec is None:
            self.events.add_warning(slot=SlotName.MODEL.value, message="The workflow has no model to remove.")
        else:
            self._model.remove()
            self.events.log(level="info", message="slot_removed", slot=SlotName.MODEL.value)
        self._invalidate(slot=SlotName.MODEL, action="remove")
        return self

    def update_model(self, spec: ModelSpec, formula: Optional[Union[str, Formula]] = None) -> "Workflow":
        ModelSlot().set(spec, formula_override=formula)
        self._model.remove()
        self._model.set(spec, formula_override=formula)
        self._invalidate(slot=SlotName.MODEL, action="update")
        self.events.log(level="info", message="slot_updated", slot=SlotName.MODEL.value, model_id=spec.model_id)
        return self

    # ------------------------------------------------------------------
    # Pós-processador
    # ------------------------------------------------------------------
    def add_postprocessor(
        self,
        postprocessor: PostProcessor,
        calibration_prop: Optional[float] = None,
        seed: int = 42,
    ) -> "Workflow":
        """Adiciona o pós-processador.

        Com `calibration_prop`, uma fração aleatória (semente `seed`) dos dados
        de treino fica reservada para treinar o pós-processador e o resto treina
        preprocessor e modelo. Sem ela, o pós-processador é treinado sobre as
        predições de ressubstituição.
        """
        self._post.set(postprocessor, calibration_prop=calibration_prop, seed=seed)
        self._invalidate(slot=SlotName.POSTPROCESSOR, action="add")
        self.events.log(
            level="info",
            message="slot_set",
            slot=SlotName.POSTPROCESSOR.value,
            calibration_prop=self._post.calibration_prop,
        )
        return self

    def remove_postprocessor(self) -> "Workflow":
        if self._post.spec is None:
            self.events.add_warning(
                slot=SlotName.POSTPROCESSOR.value,
                message="The workflow has no postprocessor to remove.",
            )
        else:
            self._post.remove()
            self.events.log(level="info", message="slot_removed", slot=SlotName.POSTPROCESSOR.value)
        self._invalidate(slot=SlotName.POSTPROCESSOR, action="remove")
        return self

    def update_postprocessor(
        self,
        postprocessor: PostProcessor,
        calibration_prop: Optional[float] = None,
        seed: int = 42,
    ) -> "Workflow":
        PostProcessorSlot().check_can_set(postprocessor, calibration_prop, seed)
        self._post.remove()
        self._post.set(postprocessor, calibration_prop=calibration_prop, seed=seed)
        self._invalidate(slot=SlotName.POSTPROCESSOR, action="update")
        self.events.log(level="info", message="slot_updated", slot=SlotName.POSTPROCESSOR.value)
        return self

    # ------------------------------------------------------------------
    # Fit
    # ------------------------------------------------------------------
    def _validate_for_fit(self) -> None:
        if self._model.spec is None:
            raise _specification_error(SlotName.MODEL, "A model is required to fit the workflow; use add_model().")

        if self._preprocessor.spec is None:
            override = self._model.formula_override
            if override is None:
                raise _specification_error(
                    SlotName.PREPROCESSOR,
                    "Without a preprocessor the model needs a formula (add_model(spec, formula=...)).",
                )
            if override.outcome is None:
                raise _specification_error(
                    SlotName.MODEL,
                    "Without a preprocessor the model formula must name the outcome.",
                )

        post = self._post.spec
        if post is not None and post.mode is not None and post.mode != self._model.spec.mode:
            raise _specification_error(
                SlotName.POSTPROCESSOR,
                f"Postprocessor adjustments require a {post.mode} model, got {self._model.spec.mode}.",
            )

    def _delegate(self, stage: Stage, slot: SlotName, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except WorkflowException:
            raise
        except Exception as exc:
            self.events.log(
                level="error",
                message="stage_failed",
                slot=slot.value,
                stage=stage.value,
                error_type=exc.__class__.__name__,
                error_message=str(exc) or "error",
            )
            raise DelegatedFailure.wrap(exc, stage=stage.value, slot=slot.value) from exc

    def _split_for_calibration(self, data: pd.DataFrame) -> Tuple[pd.DataFrame, Optional[pd.DataFrame]]:
        prop = self._post.calibration_prop
        if self._post.spec is None or prop is None:
            return data, None

        n = len(data)
        n_cal = int(round(n * prop))
        if n_cal < 1 or n - n_cal < 1:
            raise _specification_error(
                SlotName.POSTPROCESSOR,
                f"calibration_prop={prop} leaves an empty split for {n} rows.",
            )
        perm = np.random.default_rng(self._post.seed).permutation(n)
        cal_pos = np.sort(perm[:n_cal])
        fit_pos = np.sort(perm[n_cal:])
        return data.iloc[fit_pos], data.iloc[cal_pos]

    @staticmethod
    def _processed_frame(fitted: FittedPreprocessor, data: pd.DataFrame, *, with_outcome: bool) -> pd.DataFrame:
        processed = fitted.transform(data)
        if list(processed.columns) != list(fitted.columns):
            raise ValueError(
                f"Preprocessor output columns differ from training: expected {fitted.columns}, got {list(processed.columns)}"
            )
        if with_outcome:
            processed = processed.copy()
            processed[fitted.outcome] = fitted.outcome_values(data).to_numpy()
        return processed

    def _model_frame(self, fitted_pre: Optional[FittedPreprocessor], data: pd.DataFrame) -> pd.DataFrame:
        if fitted_pre is None:
            return data
        return self._delegate(
            Stage.PREPROCESSOR_TRANSFORM,
            SlotName.PREPROCESSOR,
            lambda d: self._processed_frame(fitted_pre, d, with_outcome=True),
            data,
        )

    def fit(self, data: Any) -> "Workflow":
        """Treina preprocessor → modelo → pós-processador, de forma atômica.

        Raises:
            SpecificationError: sem modelo, sem relação de outcome ou com
                pós-processador incompatível com o modo do modelo.
            DelegatedFailure: erro em uma biblioteca colaboradora (estágio em `stage`).
        """
        data = as_frame(data)
        self._validate_for_fit()
        fit_data, cal_data = self._split_for_calibration(data)

        self.events.log(
            level="info",
            message="fit_started",
            stage="fit",
            n_rows=len(data),
            n_calibration_rows=0 if cal_data is None else len(cal_data),
        )

        # (a) preprocessor
        fitted_pre: Optional[FittedPreprocessor] = None
        if self._preprocessor.spec is not None:
            fitted_pre = self._delegate(Stage.PREPROCESSOR_FIT, SlotName.PREPROCESSOR, self._preprocessor.fit, fit_data)
            outcome = fitted_pre.outcome
        else:
            outcome = self._model.formula_override.outcome  # type: ignore[union-attr]
        model_frame = self._model_frame(fitted_pre, fit_data)

        # (b) modelo
        fitted_model: FittedModelStage = self._delegate(
            Stage.MODEL_FIT, SlotName.MODEL, self._model.fit, model_frame, outcome
        )

        # (c) pós-processador
        fitted_post: Optional[FittedPostProcessor] = None
        if self._post.spec is not None:
            cal_frame = model_frame if cal_data is None else self._model_frame(fitted_pre, cal_data)
            raw = self._delegate(Stage.MODEL_PREDICT, SlotName.MODEL, fitted_model.predict_frame, cal_frame)
            observed = self._delegate(Stage.POSTPROCESSOR_FIT, SlotName.POSTPROCESSOR, fitted_model.outcome_values, cal_frame)
            fitted_post = self._delegate(
                Stage.POSTPROCESSOR_FIT,
                SlotName.POSTPROCESSOR,
                self._post.fit,
                raw,
                observed,
                fitted_model.model.classes,
            )

        # commit
        self._preprocessor.fitted = fitted_pre
        self._model.fitted = fitted_model
        self._post.fitted = fitted_post
        self._trained = True

        self.events.log(
            level="info",
            message="fit_finished",
            stage="fit",
            model_id=self._model.spec.model_id,  # type: ignore[union-attr]
            n_predictors=len(fitted_model.model.columns),
        )
        return self

    # ------------------------------------------------------------------
    # Predict
    # ------------------------------------------------------------------
    def _require_trained(self, required_by: str) -> None:
        if not self._trained:
            raise NotTrainedError.from_payload(
                workflow_not_trained(state=self.state.value, required_by=required_by)
            )

    def _predict_all(self, new_data: pd.DataFrame) -> pd.DataFrame:
        fitted_pre = self._preprocessor.fitted
        if fitted_pre is not None:
            frame = self._delegate(
                Stage.PREPROCESSOR_TRANSFORM,
                SlotName.PREPROCESSOR,
                lambda d: self._processed_frame(fitted_pre, d, with_outcome=False),
                new_data,
            )
        else:
            frame = new_data

        stage: FittedModelStage = self._model.fitted  # type: ignore[assignment]
        preds = self._delegate(Stage.MODEL_PREDICT, SlotName.MODEL, stage.predict_frame, frame)
        if self._post.fitted is not None:
            preds = self._delegate(Stage.POSTPROCESSOR_APPLY, SlotName.POSTPROCESSOR, self._post.fitted.apply, preds)
        preds.index = new_data.index
        return preds

    def _resolve_type(self, type: Optional[str]) -> str:
        if type is not None:
            return type
        return "numeric" if self._model.spec.mode == "regression" else "class"  # type: ignore[union-attr]

    def _select_type(self, preds: pd.DataFrame, type: Optional[str]) -> pd.DataFrame:
        mode = self._model.spec.mode  # type: ignore[union-attr]
        type = self._resolve_type(type)
        if type not in _PREDICT_TYPES:
            raise ValueError(f"type must be one of {_PREDICT_TYPES}, got {type!r}")

        if mode == "regression":
            if type != "numeric":
                raise ValueError(f"type={type!r} is not available for regression models")
            return preds[["pred"]]

        if type == "numeric":
            raise ValueError("type='numeric' is not available for classification models")
        if type == "class":
            return preds[["pred_class"]]
        prob_cols = [c for c in preds.columns if str(c).startswith("prob_")]
        if not prob_cols:
            raise ValueError("The fitted model does not provide class probabilities")
        return preds[prob_cols]

    def predict(self, new_data: Any, type: Optional[str] = None) -> pd.DataFrame:
        """Prediz com os artefatos treinados; a ordem das linhas é a de `new_data`.

        Args:
            new_data: DataFrame (ou list[dict]) com as colunas de entrada.
            type: "numeric" (regressão), "class" ou "prob" (classificação).
                Default: numeric para regressão, class para classificação.
        """
        self._require_trained("predict")
        new_data = as_frame(new_data)
        preds = self._predict_all(new_data)
        resolved = self._resolve_type(type)
        out = self._select_type(preds, resolved)
        self.events.log(level="info", message="predict", stage="predict", n_rows=len(new_data), type=resolved)
        return out

    def augment(self, new_data: Any) -> pd.DataFrame:
        """Retorna `new_data` com todas as colunas de predição anexadas."""
        self._require_trained("augment")
        new_data = as_frame(new_data)
        preds = self._predict_all(new_data)
        clash = [c for c in preds.columns if c in new_data.columns]
        base = new_data.drop(columns=clash)
        return pd.concat([base, preds], axis=1)

    # ------------------------------------------------------------------
    # Extração
    # ------------------------------------------------------------------
    def extract_preprocessor(self) -> Any:
        if self._preprocessor.spec is None:
            raise _specification_error(SlotName.PREPROCESSOR, "The workflow does not have a preprocessor.")
        return self._preprocessor.spec

    def extract_spec_model(self) -> ModelSpec:
        if self._model.spec is None:
            raise _specification_error(SlotName.MODEL, "The workflow does not have a model spec.")
        return self._model.spec

    def extract_model_formula(self) -> Optional[Formula]:
        return self._model.formula_override

    def extract_postprocessor(self) -> PostProcessor:
        if self._post.spec is None:
            raise _specification_error(SlotName.POSTPROCESSOR, "The workflow does not have a postprocessor.")
        return self._post.spec

    def extract_fit_preprocessor(self) -> FittedPreprocessor:
        self.extract_preprocessor()
        self._require_trained("extract_fit_preprocessor")
        return self._preprocessor.fitted  # type: ignore[return-value]

    def extract_fit_model(self) -> FittedModel:
        self._require_trained("extract_fit_model")
        return self._model.fitted.model  # type: ignore[union-attr]

    def extract_fit_engine(self) -> Any:
        return self.extract_fit_model().estimator

    def extract_fit_postprocessor(self) -> FittedPostProcessor:
        self.extract_postprocessor()
        self._require_trained("extract_fit_postprocessor")
        return self._post.fitted  # type: ignore[return-value]

    def extract_recipe(self, estimated: bool = True) -> Union[Recipe, FittedRecipe]:
        if self._preprocessor.kind != PreprocessorKind.RECIPE:
            raise _specification_error(SlotName.PREPROCESSOR, "The workflow does not have a recipe preprocessor.")
        if not estimated:
            return self._preprocessor.spec
        self._require_trained("extract_recipe")
        return self._preprocessor.fitted  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Inspeção / cópia
    # ------------------------------------------------------------------
    def describe(self) -> Dict[str, Any]:
        pre = self._preprocessor.spec
        model = self._model.spec
        post = self._post.spec
        return {
            "workflow_id": self.workflow_id,
            "state": self.state.value,
            "preprocessor": pre.describe() if pre is not None else None,
            "model": None if model is None else {
                **model.describe(),
                "formula": self._model.formula_override.text if self._model.formula_override else None,
            },
            "postprocessor": None if post is None else {
                **post.describe(),
                "calibration_prop": self._post.calibration_prop,
                "seed": self._post.seed,
            },
        }

    def copy(self) -> "Workflow":
        """Cópia independente (novo workflow_id e EventLog próprio)."""
        clone = copy.deepcopy(self)
        clone.workflow_id = uuid.uuid4().hex
        clone.events = EventLog(workflow_id=clone.workflow_id)
        clone.events.log(level="info", message="workflow_copied", source_workflow_id=self.workflow_id)
        return clone

    def __repr__(self) -> str:
        lines: List[str] = [f"Workflow [{self.state.value}]"]
        pre = self._preprocessor.spec
        lines.append(f"  preprocessor: {pre.describe() if pre is not None else None}")
        model = self._model.spec
        lines.append(f"  model: {model.model_id if model is not None else None}")
        if self._model.formula_override is not None:
            lines.append(f"  model formula: {self._model.formula_override.text}")
        lines.append(f"  postprocessor: {self._post.spec.describe() if self._post.spec is not None else None}")
        return "\n".join(lines)


def workflow(preprocessor: Any = None, spec: Optional[ModelSpec] = None) -> Workflow:
    """Atalho de construção: `workflow("y ~ x", linear_reg())`."""
    return Workflow(preprocessor=preprocessor, model=spec)


__all__ = ["Workflow", "workflow"]
