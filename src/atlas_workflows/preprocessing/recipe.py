"""Preprocessor por recipe: sequência de steps estimados no treino.

Cada step seleciona colunas e aplica um transformer do scikit-learn. No fit
os steps são estimados em ordem, cada um sobre a saída do anterior; na
predição os transformers já estimados são reaplicados sem re-estimação.

Steps disponíveis (v1):
- step_center / step_scale / step_normalize  (StandardScaler)
- step_impute_mean / step_impute_median / step_impute_mode  (SimpleImputer)
- step_dummy   (OneHotEncoder, primeiro nível removido)
- step_log     (FunctionTransformer)
- step_pca     (PCA)
- step_spline  (SplineTransformer)
- step_rm      (remove colunas)
- add_step(name, transformer, columns) para qualquer transformer sklearn

Regras:
- Recipes são imutáveis: cada step_* retorna uma nova Recipe.
- O outcome nunca passa pelos steps.
- Colunas não são inferidas: cada step declara sua seleção (nomes ou seletores).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.decomposition import PCA
from sklearn.impute import SimpleImputer
from sklearn.preprocessing import FunctionTransformer, OneHotEncoder, SplineTransformer, StandardScaler

from .base import PreprocessorKind, as_frame, extract_outcome, require_columns
from .selectors import describe_selection, everything, resolve_columns


def _log_offset(X: Any, offset: float = 0.0) -> Any:
    return np.log(X + offset)


@dataclass(frozen=True)
class RecipeStep:
    """Step declarado (template não estimado)."""

    name: str
    columns: Any
    transformer: Any = None


@dataclass
class FittedStep:
    name: str
    columns: List[str]
    transformer: Any = None


def _output_names(transformer: Any, columns: List[str], out: Any) -> List[str]:
    if hasattr(transformer, "get_feature_names_out"):
        return list(transformer.get_feature_names_out(columns))
    arr = np.asarray(out)
    width = arr.shape[1] if arr.ndim == 2 else 1
    if width != len(columns):
        raise ValueError(
            f"Recipe step output has {width} column(s) for {len(columns)} input(s) and the transformer "
            "does not implement get_feature_names_out"
        )
    return list(columns)


def _apply_step(current: pd.DataFrame, columns: List[str], transformer: Any) -> pd.DataFrame:
    if transformer is None:
        return current.drop(columns=columns)

    out = transformer.transform(current[columns])
    if not isinstance(out, pd.DataFrame):
        out = pd.DataFrame(np.asarray(out), columns=_output_names(transformer, columns, out))
    out.index = current.index

    if list(out.columns) == list(columns):
        result = current.copy()
        for c in columns:
            result[c] = out[c]
        return result

    rest = current.drop(columns=columns)
    clash = sorted(set(rest.columns).intersection(out.columns))
    if clash:
        raise ValueError(f"Recipe step output collides with existing column(s): {clash}")
    return pd.concat([rest, out], axis=1)


@dataclass(frozen=True)
class Recipe:
    """Especificação de recipe (outcome + steps ordenados)."""

    outcome: str
    predictors: Any = None
    steps: Tuple[RecipeStep, ...] = ()

    kind = PreprocessorKind.RECIPE

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def add_step(self, name: str, transformer: Any, columns: Any) -> "Recipe":
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Recipe step name must be a non-empty string")
        if transformer is not None and not (hasattr(transformer, "fit") and hasattr(transformer, "transform")):
            raise TypeError(f"Recipe step {name!r}: transformer must implement fit/transform")
        return replace(self, steps=self.steps + (RecipeStep(name=name.strip(), columns=columns, transformer=transformer),))

    def step_center(self, columns: Any) -> "Recipe":
        return self.add_step("center", StandardScaler(with_std=False), columns)

    def step_scale(self, columns: Any) -> "Recipe":
        return self.add_step("scale", StandardScaler(with_mean=False), columns)

    def step_normalize(self, columns: Any) -> "Recipe":
        return self.add_step("normalize", StandardScaler(), columns)

    def step_impute_mean(self, columns: Any) -> "Recipe":
        return self.add_step("impute_mean", SimpleImputer(strategy="mean"), columns)

    def step_impute_median(self, columns: Any) -> "Recipe":
        return self.add_step("impute_median", SimpleImputer(strategy="median"), columns)

    def step_impute_mode(self, columns: Any) -> "Recipe":
        return self.add_step("impute_mode", SimpleImputer(strategy="most_frequent"), columns)

    def step_dummy(self, columns: Any) -> "Recipe":
        enc = OneHotEncoder(drop="first", handle_unknown="ignore", sparse_output=False)
        return self.add_step("dummy", enc, columns)

    def step_log(self, columns: Any, offset: float = 0.0) -> "Recipe":
        ft = FunctionTransformer(_log_offset, kw_args={"offset": float(offset)}, feature_names_out="one-to-one")
        return self.add_step("log", ft, columns)

    def step_pca(self, columns: Any, n_components: int = 2) -> "Recipe":
        return self.add_step("pca", PCA(n_components=n_components), columns)

    def step_spline(self, columns: Any, df: int = 3) -> "Recipe":
        if not isinstance(df, int) or df < 3:
            raise ValueError("step_spline: df must be an int >= 3")
        return self.add_step("spline", SplineTransformer(n_knots=df - 1, degree=3, include_bias=False), columns)

    def step_rm(self, columns: Any) -> "Recipe":
        return self.add_step("rm", None, columns)

    def add_configured_step(self, step: str, columns: Any, **params: Any) -> "Recipe":
        """Adiciona um step pelo nome (usado pela camada de configuração)."""
        method = getattr(self, f"step_{step}", None) if isinstance(step, str) else None
        if method is None:
            raise ValueError(f"Unknown recipe step: {step!r}")
        return method(columns, **params)

    # ------------------------------------------------------------------
    # Fit
    # ------------------------------------------------------------------
    def fit(self, data: Any) -> "FittedRecipe":
        data = as_frame(data)
        require_columns(data, [self.outcome], where="recipe")

        predictors_spec = everything() if self.predictors is None else self.predictors
        predictors = resolve_columns(predictors_spec, data, exclude=[self.outcome])
        current = data[predictors].copy()

        fitted: List[FittedStep] = []
        for step in self.steps:
            cols = resolve_columns(step.columns, current)
            if not cols:
                raise ValueError(f"step_{step.name}: column selection matched no columns")

            est: Optional[Any] = None
            if step.transformer is not None:
                est = clone(step.transformer) if hasattr(step.transformer, "get_params") else copy.deepcopy(step.transformer)
                if hasattr(est, "set_output"):
                    est.set_output(transform="pandas")
                est.fit(current[cols])
            current = _apply_step(current, cols, est)
            fitted.append(FittedStep(name=step.name, columns=cols, transformer=est))

        return FittedRecipe(
            recipe=self,
            outcome=self.outcome,
            input_columns=predictors,
            steps=fitted,
            columns=list(current.columns),
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "outcome": self.outcome,
            "steps": [{"step": s.name, "columns": describe_selection(s.columns)} for s in self.steps],
        }


@dataclass
class FittedRecipe:
    """Recipe estimada: colunas de entrada, steps treinados e colunas de saída."""

    recipe: Recipe
    outcome: str
    input_columns: List[str]
    steps: List[FittedStep]
    columns: List[str]

    kind = PreprocessorKind.RECIPE

    @property
    def required_columns(self) -> List[str]:
        return list(self.input_columns)

    def transform(self, data: Any) -> pd.DataFrame:
        data = as_frame(data)
        require_columns(data, self.input_columns, where="recipe")
        current = data[self.input_columns].copy()
        for step in self.steps:
            current = _apply_step(current, step.columns, step.transformer)
        return current

    bake = transform

    def outcome_values(self, data: Any) -> pd.Series:
        return extract_outcome(as_frame(data), self.outcome, where="recipe")


__all__ = ["Recipe", "RecipeStep", "FittedRecipe", "FittedStep"]
