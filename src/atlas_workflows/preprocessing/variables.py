"""Preprocessor por seleção de variáveis.

Seleciona explicitamente o outcome e os preditores, sem nenhum encoding:
os preditores chegam ao modelo exatamente como estão nos dados.

Regras (v1):
- Exatamente uma coluna de outcome.
- Colunas de outcome nunca entram nos preditores (mesmo via seletor).
- A seleção é resolvida no fit e congelada no artefato treinado.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import pandas as pd

from .base import PreprocessorKind, as_frame, extract_outcome, require_columns
from .selectors import describe_selection, everything, resolve_columns


@dataclass(frozen=True)
class Variables:
    """Especificação de variáveis: `outcomes` e `predictors` (nomes ou seletores)."""

    outcomes: Any
    predictors: Any = None

    kind = PreprocessorKind.VARIABLES

    def fit(self, data: Any) -> "FittedVariables":
        data = as_frame(data)
        outcomes = resolve_columns(self.outcomes, data)
        if len(outcomes) != 1:
            raise ValueError(f"Invalid variables: exactly one outcome column is required, got {outcomes}")
        outcome = outcomes[0]

        predictors_spec = everything() if self.predictors is None else self.predictors
        predictors = resolve_columns(predictors_spec, data, exclude=[outcome])
        if not predictors:
            raise ValueError("Invalid variables: predictor selection is empty")

        return FittedVariables(outcome=outcome, columns=predictors)

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "outcomes": describe_selection(self.outcomes),
            "predictors": describe_selection(self.predictors) if self.predictors is not None else ["everything()"],
        }


@dataclass
class FittedVariables:
    outcome: str
    columns: List[str]

    kind = PreprocessorKind.VARIABLES

    @property
    def required_columns(self) -> List[str]:
        return list(self.columns)

    def transform(self, data: Any) -> pd.DataFrame:
        data = as_frame(data)
        require_columns(data, self.columns, where="variables")
        return data[self.columns].copy()

    def outcome_values(self, data: Any) -> pd.Series:
        return extract_outcome(as_frame(data), self.outcome, where="variables")


__all__ = ["Variables", "FittedVariables"]
