"""Contrato comum dos preprocessors (formula, variables, recipe).

Os três tipos formam uma união marcada (`PreprocessorKind`). Todos expõem o
mesmo par de capacidades:

- spec.fit(data) -> FittedPreprocessor
- fitted.transform(new_data) -> DataFrame com apenas os preditores

Regras (v1):
- O artefato treinado congela as colunas de saída (`columns`) e as colunas
  de entrada exigidas (`required_columns`).
- `transform` preserva o índice (ordem das linhas) da entrada.
- O outcome nunca é transformado; é apenas extraído via `outcome_values`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

import pandas as pd


class PreprocessorKind(str, Enum):
    """Variantes mutuamente exclusivas do slot de preprocessor."""

    FORMULA = "formula"
    VARIABLES = "variables"
    RECIPE = "recipe"


@runtime_checkable
class FittedPreprocessor(Protocol):
    """Artefato treinado de um preprocessor."""

    kind: PreprocessorKind
    outcome: str
    columns: List[str]
    required_columns: List[str]

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        ...

    def outcome_values(self, data: pd.DataFrame) -> pd.Series:
        ...


@runtime_checkable
class PreprocessorSpec(Protocol):
    """Especificação (não treinada) de um preprocessor."""

    kind: PreprocessorKind

    def fit(self, data: pd.DataFrame) -> FittedPreprocessor:
        ...

    def describe(self) -> Dict[str, Any]:
        ...


def as_frame(data: Any) -> pd.DataFrame:
    """Normaliza a entrada para DataFrame (aceita DataFrame ou list[dict])."""
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, list) and all(isinstance(r, dict) for r in data):
        return pd.DataFrame(data)
    raise TypeError(f"Invalid data: expected pandas.DataFrame or list[dict], got {type(data).__name__}")


def require_columns(data: pd.DataFrame, columns: Sequence[str], *, where: str) -> None:
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise ValueError(f"Missing required column(s) for {where}: {missing}")


def extract_outcome(data: pd.DataFrame, outcome: str, *, where: str) -> pd.Series:
    require_columns(data, [outcome], where=where)
    return data[outcome]


__all__ = [
    "PreprocessorKind",
    "PreprocessorSpec",
    "FittedPreprocessor",
    "as_frame",
    "require_columns",
    "extract_outcome",
]
