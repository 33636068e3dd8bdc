"""
Pós-processamento das predições: limiar de probabilidade, calibração e
truncamento numérico.
"""

from .adjustments import NumericCalibration, NumericRange, ProbabilityCalibration, ProbabilityThreshold
from .postprocessor import FittedPostProcessor, PostProcessor, postprocessor

__all__ = [
    "PostProcessor",
    "FittedPostProcessor",
    "postprocessor",
    "ProbabilityThreshold",
    "ProbabilityCalibration",
    "NumericCalibration",
    "NumericRange",
]
