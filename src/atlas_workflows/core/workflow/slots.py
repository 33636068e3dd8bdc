"""
Slots do Workflow: preprocessor, modelo e pós-processador.

Cada slot guarda no máximo uma especificação e, depois do fit, o artefato
treinado correspondente.

Decisões arquiteturais:
    - `set` falha com ConflictError se o slot já estiver ocupado
      (a substituição é explícita via remove/update no Workflow)
    - Especificações são copiadas (deepcopy) na inserção: o Workflow é o
      único dono do conteúdo dos slots
    - `fit` apenas delega e retorna o artefato; quem confirma (commit) o
      artefato no slot é o Workflow, depois que todos os estágios passam

Limites explícitos:
    - Slots não conhecem os outros slots
    - Slots não registram eventos
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

import numpy as np
import pandas as pd

from atlas_workflows.core.errors import workflow_conflict
from atlas_workflows.core.exceptions import ConflictError
from atlas_workflows.modeling.model_spec import FittedModel, ModelSpec
from atlas_workflows.postprocessing.postprocessor import FittedPostProcessor, PostProcessor
from atlas_workflows.preprocessing.base import FittedPreprocessor, PreprocessorKind
from atlas_workflows.preprocessing.formula import FittedFormula, Formula
from atlas_workflows.preprocessing.recipe import Recipe
from atlas_workflows.preprocessing.variables import Variables

from .types import SlotName


PREPROCESSOR_TYPES = (Formula, Variables, Recipe)


def as_formula(formula: Union[str, Formula]) -> Formula:
    if isinstance(formula, Formula):
        return formula
    if isinstance(formula, str):
        return Formula(formula)
    raise TypeError(f"formula must be a str or Formula, got {type(formula).__name__}")


def _conflict(slot: SlotName, current: Optional[str], attempted: Optional[str]) -> ConflictError:
    return ConflictError.from_payload(
        workflow_conflict(slot=slot.value, current=current, attempted=attempted)
    )  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Preprocessor
# ---------------------------------------------------------------------------

@dataclass
class PreprocessorSlot:
    spec: Any = None
    fitted: Optional[FittedPreprocessor] = field(default=None, repr=False)

    name = SlotName.PREPROCESSOR

    @property
    def kind(self) -> Optional[PreprocessorKind]:
        return None if self.spec is None else self.spec.kind

    def check_can_set(self, spec: Any) -> None:
        if not isinstance(spec, PREPROCESSOR_TYPES):
            raise TypeError(f"preprocessor must be a Formula, Variables or Recipe, got {type(spec).__name__}")
        if self.spec is not None:
            raise _conflict(self.name, self.kind.value, spec.kind.value)  # type: ignore[union-attr]

    def set(self, spec: Any) -> None:
        self.check_can_set(spec)
        self.spec = copy.deepcopy(spec)
        self.fitted = None

    def remove(self) -> None:
        self.spec = None
        self.fitted = None

    def fit(self, data: pd.DataFrame) -> FittedPreprocessor:
        return self.spec.fit(data)

    def is_trained(self) -> bool:
        return self.fitted is not None


# ---------------------------------------------------------------------------
# Modelo
# ---------------------------------------------------------------------------

@dataclass
class FittedModelStage:
    """Modelo treinado + (opcional) fórmula do modelo treinada."""

    model: FittedModel
    outcome: str
    formula: Optional[FittedFormula] = None

    def design(self, frame: pd.DataFrame) -> pd.DataFrame:
        if self.formula is not None:
            return self.formula.transform(frame)
        return frame.drop(columns=[self.outcome], errors="ignore")

    def outcome_values(self, frame: pd.DataFrame) -> pd.Series:
        if self.formula is not None:
            return self.formula.outcome_values(frame)
        return frame[self.outcome]

    def predict_frame(self, frame: pd.DataFrame) -> pd.DataFrame:
        return self.model.predict_frame(self.design(frame))


@dataclass
class ModelSlot:
    spec: Optional[ModelSpec] = None
    formula_override: Optional[Formula] = None
    fitted: Optional[FittedModelStage] = field(default=None, repr=False)

    name = SlotName.MODEL

    def check_can_set(self, spec: Any) -> None:
        if not isinstance(spec, ModelSpec):
            raise TypeError(f"model must be a ModelSpec, got {type(spec).__name__}")
        if self.spec is not None:
            raise _conflict(self.name, self.spec.model_id, spec.model_id)

    def set(self, spec: ModelSpec, formula_override: Optional[Union[str, Formula]] = None) -> None:
        override = as_formula(formula_override) if formula_override is not None else None
        self.check_can_set(spec)
        self.spec = copy.deepcopy(spec)
        self.formula_override = copy.deepcopy(override)
        self.fitted = None

    def remove(self) -> None:
        self.spec = None
        self.formula_override = None
        self.fitted = None

    def resolve_formula(self, outcome: Optional[str]) -> Optional[Formula]:
        """Fórmula efetiva do modelo; um override sem lado esquerdo herda o outcome."""
        f = self.formula_override
        if f is None or f.outcome is not None or outcome is None:
            return f
        return Formula(f"`{outcome}` ~ {f.text.split('~', 1)[1].strip()}")

    def fit(self, frame: pd.DataFrame, outcome: str) -> FittedModelStage:
        """Treina o modelo sobre `frame` (preditores + coluna de outcome).

        Sem override a relação é `outcome ~ .` sobre o frame preprocessado.
        """
        formula = self.resolve_formula(outcome)
        if formula is None:
            X = frame.drop(columns=[outcome])
            y = frame[outcome]
            return FittedModelStage(model=self.spec.fit(X, y), outcome=outcome)  # type: ignore[union-attr]

        fitted_formula = formula.fit(frame)
        X = fitted_formula.transform(frame)
        y = fitted_formula.outcome_values(frame)
        return FittedModelStage(
            model=self.spec.fit(X, y),  # type: ignore[union-attr]
            outcome=fitted_formula.outcome,
            formula=fitted_formula,
        )

    def is_trained(self) -> bool:
        return self.fitted is not None


# ---------------------------------------------------------------------------
# Pós-processador
# ---------------------------------------------------------------------------

@dataclass
class PostProcessorSlot:
    spec: Optional[PostProcessor] = None
    calibration_prop: Optional[float] = None
    seed: int = 42
    fitted: Optional[FittedPostProcessor] = field(default=None, repr=False)

    name = SlotName.POSTPROCESSOR

    def check_can_set(self, spec: Any, calibration_prop: Optional[float], seed: Any = 42) -> None:
        """Valida todos os argumentos antes de qualquer mutação do slot."""
        if not isinstance(spec, PostProcessor):
            raise TypeError(f"postprocessor must be a PostProcessor, got {type(spec).__name__}")
        if calibration_prop is not None:
            if isinstance(calibration_prop, bool) or not isinstance(calibration_prop, (int, float)):
                raise TypeError("calibration_prop must be a float in (0, 1)")
            if not 0.0 < float(calibration_prop) < 1.0:
                raise ValueError("calibration_prop must be a float in (0, 1)")
        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
            raise TypeError(f"seed must be an int, got {type(seed).__name__}")
        if self.spec is not None:
            raise _conflict(self.name, "postprocessor", "postprocessor")

    def set(self, spec: PostProcessor, calibration_prop: Optional[float] = None, seed: int = 42) -> None:
        self.check_can_set(spec, calibration_prop, seed)
        self.spec = copy.deepcopy(spec)
        self.calibration_prop = None if calibration_prop is None else float(calibration_prop)
        self.seed = int(seed)
        self.fitted = None

    def remove(self) -> None:
        self.spec = None
        self.calibration_prop = None
        self.seed = 42
        self.fitted = None

    def fit(self, predictions: pd.DataFrame, outcomes: pd.Series, classes: Sequence[Any]) -> FittedPostProcessor:
        return self.spec.fit(predictions, outcomes, classes)  # type: ignore[union-attr]

    def is_trained(self) -> bool:
        return self.fitted is not None


__all__ = [
    "PreprocessorSlot",
    "ModelSlot",
    "PostProcessorSlot",
    "FittedModelStage",
    "as_formula",
]
