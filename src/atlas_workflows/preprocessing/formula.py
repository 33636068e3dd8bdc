"""Preprocessor por fórmula (subconjunto da sintaxe estilo R).

Sintaxe suportada (v1):

    outcome ~ x1 + x2            termos somados
    outcome ~ .                  todas as colunas exceto o outcome
    outcome ~ . - x3             remoção de termos
    outcome ~ a:b                interação (produto)
    outcome ~ a*b                a + b + a:b
    outcome ~ log(x) + sqrt(z)   funções elemento a elemento (log, log1p, exp, sqrt)
    outcome ~ poly(x, degree=2)  potências brutas x, x^2
    outcome ~ spline(x, df=4)    base B-spline (alias: ns)
    `nome com espaço`            nomes entre crases

Marcadores de intercepto (`0`, `1`, `-1`) são aceitos e ignorados: o
intercepto pertence ao estimador.

Encoding no fit:
- colunas não numéricas viram dummies (primeiro nível removido, níveis
  desconhecidos na predição viram zeros) via `OneHotEncoder`
- splines guardam os nós estimados via `SplineTransformer`

A mesma classe serve ao slot de preprocessor e ao override de fórmula do
modelo (aplicado sobre os dados já preprocessados).
"""

from __future__ import annotations

import ast
import itertools
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.preprocessing import OneHotEncoder, SplineTransformer

from .base import PreprocessorKind, as_frame, extract_outcome, require_columns


_IDENT_RE = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")
_TICK_RE = re.compile(r"^`([^`]+)`$")
_CALL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*\((.*)\)$", re.S)

_ELEMENTWISE = {
    "log": np.log,
    "log1p": np.log1p,
    "exp": np.exp,
    "sqrt": np.sqrt,
}

# função -> (parâmetro, default)
_BASIS = {
    "poly": ("degree", 2),
    "spline": ("df", 3),
    "ns": ("df", 3),
}

_DOT = "."


@dataclass(frozen=True)
class Factor:
    """Um fator de um termo: coluna crua ou função aplicada a uma coluna."""

    column: str
    func: Optional[str] = None
    kwargs: Tuple[Tuple[str, Any], ...] = ()

    @property
    def label(self) -> str:
        if self.func is None:
            return self.column
        args = [self.column] + [f"{k}={v!r}" for k, v in self.kwargs]
        return f"{self.func}({', '.join(args)})"


@dataclass(frozen=True)
class Term:
    """Termo do lado direito; mais de um fator significa interação."""

    factors: Tuple[Factor, ...]

    @property
    def label(self) -> str:
        return ":".join(f.label for f in self.factors)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _split_top_level(text: str, seps: str) -> List[Tuple[str, str]]:
    """Divide `text` nos separadores fora de parênteses e crases.

    Retorna pares (separador que antecede, trecho). O primeiro trecho recebe "+".
    """
    parts: List[Tuple[str, str]] = []
    buf: List[str] = []
    depth = 0
    in_tick = False
    before = "+"

    for ch in text:
        if ch == "`":
            in_tick = not in_tick
        elif not in_tick and ch == "(":
            depth += 1
        elif not in_tick and ch == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Invalid formula: unbalanced parentheses in {text!r}")

        if not in_tick and depth == 0 and ch in seps:
            parts.append((before, "".join(buf).strip()))
            buf = []
            before = ch
            continue
        buf.append(ch)

    if depth != 0 or in_tick:
        raise ValueError(f"Invalid formula: unbalanced parentheses or backticks in {text!r}")
    parts.append((before, "".join(buf).strip()))
    return parts


def _parse_column(text: str) -> str:
    text = text.strip()
    m = _TICK_RE.match(text)
    if m:
        return m.group(1)
    if text == _DOT:
        raise ValueError("Invalid formula: '.' cannot be used inside functions or interactions")
    if not _IDENT_RE.match(text):
        raise ValueError(f"Invalid formula: not a column name: {text!r}")
    return text


def _parse_kwarg(text: str) -> Tuple[str, Any]:
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not _IDENT_RE.match(key):
        raise ValueError(f"Invalid formula: expected keyword argument, got {text!r}")
    try:
        parsed = ast.literal_eval(value.strip())
    except (ValueError, SyntaxError) as e:
        raise ValueError(f"Invalid formula: bad value for {key!r}: {value.strip()!r}") from e
    return key, parsed


def _parse_factor(text: str) -> Factor:
    text = text.strip()
    if not text:
        raise ValueError("Invalid formula: empty factor")

    m = _CALL_RE.match(text)
    if not m:
        return Factor(column=_parse_column(text))

    func = m.group(1)
    args = [a for _, a in _split_top_level(m.group(2), ",")]
    if not args or not args[0]:
        raise ValueError(f"Invalid formula: {func}() requires a column argument")
    column = _parse_column(args[0])
    kwargs = dict(_parse_kwarg(a) for a in args[1:])

    if func in _ELEMENTWISE:
        if kwargs:
            raise ValueError(f"Invalid formula: {func}() takes no keyword arguments")
        return Factor(column=column, func=func)

    if func in _BASIS:
        param, default = _BASIS[func]
        unknown = sorted(set(kwargs) - {param})
        if unknown:
            raise ValueError(f"Invalid formula: {func}() got unexpected argument(s) {unknown}")
        value = kwargs.get(param, default)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Invalid formula: {func}({param}=...) must be an int")
        minimum = 1 if func == "poly" else 3
        if value < minimum:
            raise ValueError(f"Invalid formula: {func}({param}=...) must be >= {minimum}")
        return Factor(column=column, func=func, kwargs=((param, value),))

    raise ValueError(f"Invalid formula: unsupported function {func!r}")


def _dedupe_factors(factors: Sequence[Factor]) -> Tuple[Factor, ...]:
    out: List[Factor] = []
    for f in factors:
        if f not in out:
            out.append(f)
    return tuple(out)


def _expand_term(text: str) -> List[Term]:
    groups = []
    for _, part in _split_top_level(text, "*"):
        if not part:
            raise ValueError(f"Invalid formula: empty operand in {text!r}")
        factors = []
        for _, f in _split_top_level(part, ":"):
            factors.append(_parse_factor(f))
        groups.append(tuple(factors))

    if len(groups) == 1:
        return [Term(_dedupe_factors(groups[0]))]

    terms: List[Term] = []
    for r in range(1, len(groups) + 1):
        for combo in itertools.combinations(groups, r):
            term = Term(_dedupe_factors([f for g in combo for f in g]))
            if term not in terms:
                terms.append(term)
    return terms


def _parse_formula(text: str):
    lhs, sep, rhs = text.partition("~")
    if not sep:
        raise ValueError(f"Invalid formula: missing '~' in {text!r}")
    if "~" in rhs:
        raise ValueError(f"Invalid formula: more than one '~' in {text!r}")

    outcome = _parse_column(lhs) if lhs.strip() else None

    tokens = _split_top_level(rhs, "+-")
    if len(tokens) > 1 and tokens[0][1] == "":
        tokens = tokens[1:]

    rhs_items: List[Union[Term, str]] = []
    removed: List[Term] = []
    for sign, tok in tokens:
        if tok == "":
            raise ValueError(f"Invalid formula: empty term in {text!r}")
        if tok in ("0", "1"):
            continue
        if tok == _DOT:
            if sign == "-":
                raise ValueError("Invalid formula: '.' cannot be removed")
            if _DOT not in rhs_items:
                rhs_items.append(_DOT)
            continue
        target = rhs_items if sign == "+" else removed
        for term in _expand_term(tok):
            if term not in target:
                target.append(term)

    return outcome, rhs_items, removed


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _is_categorical(s: pd.Series) -> bool:
    return not pd.api.types.is_numeric_dtype(s) or pd.api.types.is_bool_dtype(s)


class _FactorEncoder:
    """Encoding treinado de um fator (nomes de saída congelados)."""

    def __init__(self, factor: Factor, encoder: Any, names: List[str]):
        self.factor = factor
        self.encoder = encoder
        self.names = names

    @classmethod
    def fit(cls, factor: Factor, data: pd.DataFrame) -> "_FactorEncoder":
        s = data[factor.column]

        if _is_categorical(s):
            if factor.func is not None:
                raise ValueError(f"{factor.label}: function terms require a numeric column")
            enc = OneHotEncoder(drop="first", handle_unknown="ignore", sparse_output=False)
            enc.fit(s.astype(str).to_frame(name=factor.column))
            names = [str(n) for n in enc.get_feature_names_out([factor.column])]
            return cls(factor, enc, names)

        kw = dict(factor.kwargs)
        if factor.func in ("spline", "ns"):
            df = kw["df"]
            enc = SplineTransformer(n_knots=df - 1, degree=3, include_bias=False)
            enc.fit(s.to_numpy(dtype=float).reshape(-1, 1))
            return cls(factor, enc, [f"{factor.label}_{i}" for i in range(1, df + 1)])
        if factor.func == "poly":
            return cls(factor, None, [f"{factor.label}_{i}" for i in range(1, kw["degree"] + 1)])
        return cls(factor, None, [factor.label])

    def transform(self, data: pd.DataFrame) -> np.ndarray:
        s = data[self.factor.column]
        if isinstance(self.encoder, OneHotEncoder):
            return np.asarray(self.encoder.transform(s.astype(str).to_frame(name=self.factor.column)), dtype=float)

        values = s.to_numpy(dtype=float)
        func = self.factor.func
        if func is None:
            return values.reshape(-1, 1)
        if func in _ELEMENTWISE:
            return _ELEMENTWISE[func](values).reshape(-1, 1)
        if func == "poly":
            return np.column_stack([values ** i for i in range(1, len(self.names) + 1)])
        return np.asarray(self.encoder.transform(values.reshape(-1, 1)), dtype=float)


def _interact(
    left: Tuple[np.ndarray, List[str]],
    right: Tuple[np.ndarray, List[str]],
) -> Tuple[np.ndarray, List[str]]:
    la, ln = left
    ra, rn = right
    n = la.shape[0]
    pairs = list(itertools.product(range(len(ln)), range(len(rn))))
    if not pairs:
        return np.empty((n, 0)), []
    arr = np.column_stack([la[:, i] * ra[:, j] for i, j in pairs])
    return arr, [f"{ln[i]}:{rn[j]}" for i, j in pairs]


# ---------------------------------------------------------------------------
# Spec / artefato treinado
# ---------------------------------------------------------------------------

class Formula:
    """Especificação de fórmula (validada na construção, treinada no fit)."""

    kind = PreprocessorKind.FORMULA

    def __init__(self, text: str):
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Invalid formula: must be a non-empty string")
        self.text = text.strip()
        self.outcome, self._rhs, self._removed = _parse_formula(self.text)

    def __repr__(self) -> str:
        return f"Formula({self.text!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Formula) and other.text == self.text

    def __hash__(self) -> int:
        return hash(self.text)

    @property
    def has_dot(self) -> bool:
        return _DOT in self._rhs

    def referenced_columns(self) -> List[str]:
        """Colunas citadas explicitamente (o '.' não é expandido aqui)."""
        cols: List[str] = []
        for item in self._rhs:
            if isinstance(item, Term):
                for f in item.factors:
                    if f.column not in cols:
                        cols.append(f.column)
        return cols

    def resolve_terms(self, columns: Sequence[str]) -> List[Term]:
        """Expande '.' contra `columns` e aplica as remoções."""
        terms: List[Term] = []
        for item in self._rhs:
            if item == _DOT:
                candidates = [Term((Factor(str(c)),)) for c in columns if c != self.outcome]
            else:
                candidates = [item]
            for t in candidates:
                if t not in terms:
                    terms.append(t)

        removed = {t.label for t in self._removed}
        terms = [t for t in terms if t.label not in removed]
        if not terms:
            raise ValueError(f"Invalid formula: no predictor terms left in {self.text!r}")
        return terms

    def fit(self, data: Any) -> "FittedFormula":
        data = as_frame(data)
        if self.outcome is None:
            raise ValueError(f"Invalid formula: {self.text!r} has no outcome (left-hand side)")
        require_columns(data, [self.outcome], where=f"formula {self.text!r}")

        terms = self.resolve_terms(list(data.columns))
        if any(f.column == self.outcome for t in terms for f in t.factors):
            raise ValueError(f"Invalid formula: outcome {self.outcome!r} used as predictor")

        factors: List[Factor] = []
        for t in terms:
            for f in t.factors:
                if f not in factors:
                    factors.append(f)

        required = []
        for f in factors:
            if f.column not in required:
                required.append(f.column)
        require_columns(data, required, where=f"formula {self.text!r}")

        encoders = {f: _FactorEncoder.fit(f, data) for f in factors}
        fitted = FittedFormula(
            formula=self,
            terms=terms,
            encoders=encoders,
            required_columns=required,
        )
        fitted.columns = list(fitted.design(data).columns)
        return fitted

    def describe(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "formula": self.text}


class FittedFormula:
    """Fórmula treinada: termos expandidos + encoders congelados."""

    kind = PreprocessorKind.FORMULA

    def __init__(
        self,
        *,
        formula: Formula,
        terms: List[Term],
        encoders: Dict[Factor, _FactorEncoder],
        required_columns: List[str],
    ):
        self.formula = formula
        self.terms = terms
        self.encoders = encoders
        self.required_columns = required_columns
        self.outcome: str = formula.outcome  # type: ignore[assignment]
        self.columns: List[str] = []

    def design(self, data: pd.DataFrame) -> pd.DataFrame:
        n = len(data)
        blocks: List[np.ndarray] = []
        names: List[str] = []
        for term in self.terms:
            parts = [(self.encoders[f].transform(data), list(self.encoders[f].names)) for f in term.factors]
            block = parts[0]
            for nxt in parts[1:]:
                block = _interact(block, nxt)
            blocks.append(block[0])
            names.extend(block[1])

        matrix = np.column_stack(blocks) if blocks else np.empty((n, 0))
        return pd.DataFrame(matrix, index=data.index, columns=names)

    def transform(self, data: Any) -> pd.DataFrame:
        data = as_frame(data)
        require_columns(data, self.required_columns, where=f"formula {self.formula.text!r}")
        return self.design(data)

    def outcome_values(self, data: Any) -> pd.Series:
        return extract_outcome(as_frame(data), self.outcome, where=f"formula {self.formula.text!r}")


__all__ = ["Formula", "FittedFormula", "Term", "Factor"]
