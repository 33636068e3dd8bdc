from .model_spec import (
    FittedModel,
    ModelRegistry,
    ModelSpec,
    linear_reg,
    logistic_reg,
    model_spec,
    rand_forest,
)

__all__ = [
    "ModelSpec",
    "FittedModel",
    "ModelRegistry",
    "model_spec",
    "linear_reg",
    "logistic_reg",
    "rand_forest",
]
