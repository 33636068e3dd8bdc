"""PostProcessor — sequência ordenada de ajustes sobre as predições.

Regras (v1):
- Ajustes são aplicados na ordem declarada; no fit, cada ajuste é treinado
  sobre a saída do ajuste anterior.
- Todos os ajustes de um PostProcessor exigem o mesmo modo de modelo.
- PostProcessors são imutáveis: cada adjust_* retorna uma nova instância.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .adjustments import (
    ADJUSTMENTS,
    NumericCalibration,
    NumericRange,
    ProbabilityCalibration,
    ProbabilityThreshold,
)


@dataclass(frozen=True)
class PostProcessor:
    adjustments: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        modes = {a.mode for a in self.adjustments}
        if len(modes) > 1:
            raise ValueError(f"PostProcessor mixes adjustments for different modes: {sorted(modes)}")

    @property
    def mode(self) -> Optional[str]:
        return self.adjustments[0].mode if self.adjustments else None

    @property
    def requires_training(self) -> bool:
        return any(a.requires_training for a in self.adjustments)

    def _with(self, adjustment: Any) -> "PostProcessor":
        return replace(self, adjustments=self.adjustments + (adjustment,))

    def adjust_probability_threshold(self, threshold: float = 0.5, event_level: str = "second") -> "PostProcessor":
        return self._with(ProbabilityThreshold(threshold=threshold, event_level=event_level))

    def adjust_probability_calibration(self, method: str = "isotonic") -> "PostProcessor":
        return self._with(ProbabilityCalibration(method=method))

    def adjust_numeric_calibration(self, method: str = "isotonic") -> "PostProcessor":
        return self._with(NumericCalibration(method=method))

    def adjust_numeric_range(self, lower: Optional[float] = None, upper: Optional[float] = None) -> "PostProcessor":
        return self._with(NumericRange(lower=lower, upper=upper))

    @classmethod
    def from_adjustments(cls, items: Sequence[Dict[str, Any]]) -> "PostProcessor":
        """Constrói a partir de dicts `{type: <nome>, ...params}`."""
        adjustments = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValueError(f"Invalid adjustment at position {i}: expected a mapping")
            params = dict(item)
            kind = params.pop("type", None)
            if kind not in ADJUSTMENTS:
                raise ValueError(f"Unknown adjustment type: {kind!r}")
            adjustments.append(ADJUSTMENTS[kind](**params))
        return cls(adjustments=tuple(adjustments))

    def fit(
        self,
        predictions: pd.DataFrame,
        outcomes: Optional[pd.Series] = None,
        classes: Sequence[Any] = (),
    ) -> "FittedPostProcessor":
        current = predictions
        fitted: List[Any] = []
        for adj in self.adjustments:
            f = adj.fit(current, outcomes, classes)
            current = f.apply(current)
            fitted.append(f)
        return FittedPostProcessor(postprocessor=self, adjustments=fitted)

    def describe(self) -> Dict[str, Any]:
        return {"mode": self.mode, "adjustments": [a.describe() for a in self.adjustments]}


@dataclass
class FittedPostProcessor:
    postprocessor: PostProcessor
    adjustments: List[Any]

    def apply(self, predictions: pd.DataFrame) -> pd.DataFrame:
        current = predictions
        for f in self.adjustments:
            current = f.apply(current)
        return current


def postprocessor() -> PostProcessor:
    """Atalho para um PostProcessor vazio (encadeie adjust_*)."""
    return PostProcessor()


__all__ = ["PostProcessor", "FittedPostProcessor", "postprocessor"]
