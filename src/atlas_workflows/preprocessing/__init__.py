"""
Preprocessors de workflow: fórmula, seleção de variáveis e recipe.

As três variantes são mutuamente exclusivas no slot de preprocessor e
compartilham o contrato `fit(data) -> FittedPreprocessor` /
`fitted.transform(new_data)`.
"""

from .base import FittedPreprocessor, PreprocessorKind, PreprocessorSpec
from .formula import FittedFormula, Formula
from .recipe import FittedRecipe, Recipe
from .selectors import (
    all_nominal,
    all_numeric,
    contains,
    ends_with,
    everything,
    matches,
    one_of,
    starts_with,
)
from .variables import FittedVariables, Variables

__all__ = [
    "PreprocessorKind",
    "PreprocessorSpec",
    "FittedPreprocessor",
    "Formula",
    "FittedFormula",
    "Variables",
    "FittedVariables",
    "Recipe",
    "FittedRecipe",
    "everything",
    "all_numeric",
    "all_nominal",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "one_of",
]
