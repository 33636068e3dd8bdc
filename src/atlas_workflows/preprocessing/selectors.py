"""Seletores de colunas usados por variáveis e recipes.

Um seletor é resolvido contra um DataFrame no momento do fit; o resultado
(lista explícita de nomes) é congelado no artefato treinado. Na predição
nenhum seletor é reavaliado.

Formas aceitas por `resolve_columns`:
- nome de coluna (`"x1"`)
- lista de nomes e/ou seletores
- um seletor (`starts_with("x")`, `all_numeric()`, ...)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence, Tuple

import pandas as pd


@dataclass(frozen=True)
class Selector:
    """Seletor nomeado de colunas (avaliado sobre um DataFrame)."""

    name: str
    predicate: Callable[[pd.DataFrame, str], bool]

    def select(self, data: pd.DataFrame, exclude: Iterable[str] = ()) -> List[str]:
        skip = set(exclude)
        return [c for c in data.columns if c not in skip and self.predicate(data, c)]

    def __repr__(self) -> str:
        return self.name


# Predicados em nível de módulo para que specs permaneçam serializáveis (joblib).

def _always(data: pd.DataFrame, column: str) -> bool:
    return True


def _is_numeric(data: pd.DataFrame, column: str) -> bool:
    return pd.api.types.is_numeric_dtype(data[column]) and not pd.api.types.is_bool_dtype(data[column])


def _is_nominal(data: pd.DataFrame, column: str) -> bool:
    return not _is_numeric(data, column)


@dataclass(frozen=True)
class _PrefixPredicate:
    prefix: str

    def __call__(self, data: pd.DataFrame, column: str) -> bool:
        return str(column).startswith(self.prefix)


@dataclass(frozen=True)
class _SuffixPredicate:
    suffix: str

    def __call__(self, data: pd.DataFrame, column: str) -> bool:
        return str(column).endswith(self.suffix)


@dataclass(frozen=True)
class _ContainsPredicate:
    text: str

    def __call__(self, data: pd.DataFrame, column: str) -> bool:
        return self.text in str(column)


@dataclass(frozen=True)
class _RegexPredicate:
    pattern: str

    def __call__(self, data: pd.DataFrame, column: str) -> bool:
        return re.search(self.pattern, str(column)) is not None


@dataclass(frozen=True)
class _OneOfPredicate:
    names: Tuple[str, ...]

    def __call__(self, data: pd.DataFrame, column: str) -> bool:
        return column in self.names


def everything() -> Selector:
    return Selector("everything()", _always)


def all_numeric() -> Selector:
    return Selector("all_numeric()", _is_numeric)


def all_nominal() -> Selector:
    return Selector("all_nominal()", _is_nominal)


def starts_with(prefix: str) -> Selector:
    return Selector(f"starts_with({prefix!r})", _PrefixPredicate(prefix))


def ends_with(suffix: str) -> Selector:
    return Selector(f"ends_with({suffix!r})", _SuffixPredicate(suffix))


def contains(text: str) -> Selector:
    return Selector(f"contains({text!r})", _ContainsPredicate(text))


def matches(pattern: str) -> Selector:
    re.compile(pattern)
    return Selector(f"matches({pattern!r})", _RegexPredicate(pattern))


def one_of(*names: str) -> Selector:
    return Selector(f"one_of{names!r}", _OneOfPredicate(tuple(names)))


def _as_items(spec: Any) -> Sequence[Any]:
    if isinstance(spec, (str, Selector)):
        return [spec]
    if isinstance(spec, (list, tuple)):
        return list(spec)
    raise TypeError(f"Invalid column selection: expected str, Selector or list, got {type(spec).__name__}")


def resolve_columns(spec: Any, data: pd.DataFrame, *, exclude: Iterable[str] = ()) -> List[str]:
    """Resolve uma seleção de colunas em uma lista explícita e sem duplicatas.

    Nomes explícitos devem existir em `data`; nomes em `exclude` nunca são
    retornados por seletores, mas um nome explícito excluído é erro.
    """
    skip = set(exclude)
    out: List[str] = []
    missing: List[str] = []

    for item in _as_items(spec):
        if isinstance(item, Selector):
            chosen = item.select(data, exclude=skip)
        elif isinstance(item, str):
            if item not in data.columns:
                missing.append(item)
                continue
            if item in skip:
                raise ValueError(f"Column {item!r} cannot be selected here (reserved as outcome)")
            chosen = [item]
        else:
            raise TypeError(f"Invalid column selection item: {item!r}")

        for c in chosen:
            if c not in out:
                out.append(c)

    if missing:
        raise ValueError(f"Unknown column(s): {missing}")
    return out


def describe_selection(spec: Any) -> Any:
    """Representação serializável de uma seleção (para describe())."""
    return [repr(i) if isinstance(i, Selector) else i for i in _as_items(spec)]


__all__ = [
    "Selector",
    "everything",
    "all_numeric",
    "all_nominal",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "one_of",
    "resolve_columns",
    "describe_selection",
]
