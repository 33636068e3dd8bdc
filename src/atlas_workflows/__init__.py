# src/atlas_workflows/__init__.py
"""
Atlas Workflows — preprocessor + modelo + pós-processador como um único objeto.

Um Workflow agrupa:
    - um preprocessor (fórmula, seleção de variáveis ou recipe)
    - uma especificação de modelo (scikit-learn)
    - um pós-processador opcional (limiar, calibração, truncamento)

e controla o ciclo de vida EMPTY → PARTIAL → FITTED, invalidando os
artefatos treinados a cada mudança de especificação.

Arquitetura em alto nível:
    - core.workflow     → slots e contêiner Workflow
    - core.config       → construção declarativa via YAML/JSON
    - preprocessing     → Formula, Variables, Recipe e seletores de colunas
    - modeling          → ModelSpec e catálogo v1
    - postprocessing    → PostProcessor e ajustes
    - persistence       → save/load do Workflow (joblib)
"""

from .core.exceptions import (
    ConflictError,
    DelegatedFailure,
    NotTrainedError,
    SpecificationError,
    WorkflowException,
)
from .core.workflow import Workflow, WorkflowState, workflow
from .modeling import ModelRegistry, ModelSpec, linear_reg, logistic_reg, model_spec, rand_forest
from .postprocessing import PostProcessor, postprocessor
from .preprocessing import (
    Formula,
    Recipe,
    Variables,
    all_nominal,
    all_numeric,
    contains,
    ends_with,
    everything,
    matches,
    one_of,
    starts_with,
)

__all__ = [
    "Workflow",
    "WorkflowState",
    "workflow",
    "WorkflowException",
    "ConflictError",
    "SpecificationError",
    "NotTrainedError",
    "DelegatedFailure",
    "Formula",
    "Variables",
    "Recipe",
    "everything",
    "all_numeric",
    "all_nominal",
    "starts_with",
    "ends_with",
    "contains",
    "matches",
    "one_of",
    "ModelSpec",
    "ModelRegistry",
    "model_spec",
    "linear_reg",
    "logistic_reg",
    "rand_forest",
    "PostProcessor",
    "postprocessor",
]
