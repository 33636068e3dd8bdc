"""Ajustes de pós-processamento sobre o DataFrame de predições do modelo.

Cada ajuste declara o modo de modelo que exige e se precisa de treino:

| ajuste                  | modo            | treino |
|-------------------------|-----------------|--------|
| ProbabilityThreshold    | classification  | não    |
| ProbabilityCalibration  | classification  | sim    |
| NumericCalibration      | regression      | sim    |
| NumericRange            | regression      | não    |

Convenções de colunas (ver modeling.model_spec): `pred` para regressão,
`pred_class` e `prob_<classe>` para classificação.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.isotonic import IsotonicRegression
from sklearn.linear_model import LinearRegression, LogisticRegression


def _prob_columns(predictions: pd.DataFrame, classes: Sequence[Any]) -> List[str]:
    cols = [f"prob_{c}" for c in classes]
    missing = [c for c in cols if c not in predictions.columns]
    if not classes or missing:
        raise ValueError(f"Class probability columns not available: {missing or 'no classes'}")
    return cols


def _require_outcomes(outcomes: Optional[pd.Series], name: str) -> np.ndarray:
    if outcomes is None:
        raise ValueError(f"{name} requires observed outcomes to be trained")
    return np.asarray(outcomes)


# ---------------------------------------------------------------------------
# Classificação
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbabilityThreshold:
    """Converte a probabilidade do evento em classe usando um limiar."""

    threshold: float = 0.5
    event_level: str = "second"

    name = "probability_threshold"
    mode = "classification"
    requires_training = False

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.threshold) <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        if self.event_level not in ("first", "second"):
            raise ValueError("event_level must be 'first' or 'second'")

    def fit(self, predictions: pd.DataFrame, outcomes: Optional[pd.Series], classes: Sequence[Any]) -> "FittedProbabilityThreshold":
        if len(classes) != 2:
            raise ValueError(f"probability threshold requires a binary classifier, got classes={list(classes)}")
        _prob_columns(predictions, classes)
        event, other = (classes[1], classes[0]) if self.event_level == "second" else (classes[0], classes[1])
        return FittedProbabilityThreshold(threshold=float(self.threshold), event=event, other=other)

    def describe(self) -> Dict[str, Any]:
        return {"type": self.name, "threshold": float(self.threshold), "event_level": self.event_level}


@dataclass
class FittedProbabilityThreshold:
    threshold: float
    event: Any
    other: Any

    def apply(self, predictions: pd.DataFrame) -> pd.DataFrame:
        out = predictions.copy()
        event_prob = out[f"prob_{self.event}"].to_numpy(dtype=float)
        labels = np.array([self.event, self.other], dtype=object)
        out["pred_class"] = pd.Series(
            np.where(event_prob >= self.threshold, labels[0], labels[1]),
            index=out.index,
        ).infer_objects()
        return out


@dataclass(frozen=True)
class ProbabilityCalibration:
    """Recalibra as probabilidades de classe (one-vs-rest) e renormaliza."""

    method: str = "isotonic"

    name = "probability_calibration"
    mode = "classification"
    requires_training = True

    def __post_init__(self) -> None:
        if self.method not in ("isotonic", "logistic"):
            raise ValueError("method must be 'isotonic' or 'logistic'")

    def fit(self, predictions: pd.DataFrame, outcomes: Optional[pd.Series], classes: Sequence[Any]) -> "FittedProbabilityCalibration":
        y = _require_outcomes(outcomes, self.name)
        cols = _prob_columns(predictions, classes)
        calibrators = []
        for label, col in zip(classes, cols):
            target = (y == label).astype(int)
            x = predictions[col].to_numpy(dtype=float)
            if self.method == "isotonic":
                cal = IsotonicRegression(y_min=0.0, y_max=1.0, out_of_bounds="clip").fit(x, target)
            else:
                cal = LogisticRegression().fit(x.reshape(-1, 1), target)
            calibrators.append(cal)
        return FittedProbabilityCalibration(method=self.method, classes=list(classes), calibrators=calibrators)

    def describe(self) -> Dict[str, Any]:
        return {"type": self.name, "method": self.method}


@dataclass
class FittedProbabilityCalibration:
    method: str
    classes: List[Any]
    calibrators: List[Any]

    def apply(self, predictions: pd.DataFrame) -> pd.DataFrame:
        out = predictions.copy()
        columns = []
        for label, cal in zip(self.classes, self.calibrators):
            col = f"prob_{label}"
            x = out[col].to_numpy(dtype=float)
            if self.method == "isotonic":
                columns.append(np.asarray(cal.predict(x), dtype=float))
            else:
                columns.append(cal.predict_proba(x.reshape(-1, 1))[:, 1])

        probs = np.column_stack(columns)
        totals = probs.sum(axis=1, keepdims=True)
        uniform = np.full_like(probs, 1.0 / probs.shape[1])
        probs = np.where(totals > 0, probs / np.where(totals > 0, totals, 1.0), uniform)

        for i, label in enumerate(self.classes):
            out[f"prob_{label}"] = probs[:, i]
        labels = np.array(self.classes, dtype=object)
        out["pred_class"] = pd.Series(labels[probs.argmax(axis=1)], index=out.index).infer_objects()
        return out


# ---------------------------------------------------------------------------
# Regressão
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NumericCalibration:
    """Recalibra a predição numérica contra o outcome observado."""

    method: str = "isotonic"

    name = "numeric_calibration"
    mode = "regression"
    requires_training = True

    def __post_init__(self) -> None:
        if self.method not in ("isotonic", "linear"):
            raise ValueError("method must be 'isotonic' or 'linear'")

    def fit(self, predictions: pd.DataFrame, outcomes: Optional[pd.Series], classes: Sequence[Any]) -> "FittedNumericCalibration":
        y = _require_outcomes(outcomes, self.name).astype(float)
        x = predictions["pred"].to_numpy(dtype=float)
        if self.method == "isotonic":
            cal = IsotonicRegression(out_of_bounds="clip").fit(x, y)
        else:
            cal = LinearRegression().fit(x.reshape(-1, 1), y)
        return FittedNumericCalibration(method=self.method, calibrator=cal)

    def describe(self) -> Dict[str, Any]:
        return {"type": self.name, "method": self.method}


@dataclass
class FittedNumericCalibration:
    method: str
    calibrator: Any

    def apply(self, predictions: pd.DataFrame) -> pd.DataFrame:
        out = predictions.copy()
        x = out["pred"].to_numpy(dtype=float)
        if self.method == "linear":
            x = x.reshape(-1, 1)
        out["pred"] = np.asarray(self.calibrator.predict(x), dtype=float)
        return out


@dataclass(frozen=True)
class NumericRange:
    """Trunca a predição numérica em [lower, upper]."""

    lower: Optional[float] = None
    upper: Optional[float] = None

    name = "numeric_range"
    mode = "regression"
    requires_training = False

    def __post_init__(self) -> None:
        if self.lower is None and self.upper is None:
            raise ValueError("numeric range requires lower and/or upper")
        if self.lower is not None and self.upper is not None and self.lower >= self.upper:
            raise ValueError("lower must be smaller than upper")

    def fit(self, predictions: pd.DataFrame, outcomes: Optional[pd.Series], classes: Sequence[Any]) -> "FittedNumericRange":
        return FittedNumericRange(lower=self.lower, upper=self.upper)

    def describe(self) -> Dict[str, Any]:
        return {"type": self.name, "lower": self.lower, "upper": self.upper}


@dataclass
class FittedNumericRange:
    lower: Optional[float]
    upper: Optional[float]

    def apply(self, predictions: pd.DataFrame) -> pd.DataFrame:
        out = predictions.copy()
        out["pred"] = out["pred"].clip(lower=self.lower, upper=self.upper)
        return out


ADJUSTMENTS = {
    ProbabilityThreshold.name: ProbabilityThreshold,
    ProbabilityCalibration.name: ProbabilityCalibration,
    NumericCalibration.name: NumericCalibration,
    NumericRange.name: NumericRange,
}


__all__ = [
    "ProbabilityThreshold",
    "ProbabilityCalibration",
    "NumericCalibration",
    "NumericRange",
    "ADJUSTMENTS",
]
