"""
Tipos canônicos do Workflow.

- WorkflowState → EMPTY, PARTIAL, FITTED
- SlotName      → preprocessor, model, postprocessor
- Stage         → estágios delegados reportados em erros e eventos

Os valores são strings estáveis para serialização em eventos e payloads de erro.
"""

from __future__ import annotations

from enum import Enum


class WorkflowState(str, Enum):
    """
    Estado do ciclo de vida de um Workflow.

    - EMPTY: nenhum slot ocupado
    - PARTIAL: algum slot ocupado, nenhum artefato treinado válido
    - FITTED: todos os slots ocupados possuem artefato treinado consistente

    Qualquer add/remove/update leva FITTED de volta a PARTIAL (ou EMPTY).
    """

    EMPTY = "empty"
    PARTIAL = "partial"
    FITTED = "fitted"


class SlotName(str, Enum):
    PREPROCESSOR = "preprocessor"
    MODEL = "model"
    POSTPROCESSOR = "postprocessor"


class Stage(str, Enum):
    """Estágios delegados às bibliotecas colaboradoras."""

    PREPROCESSOR_FIT = "preprocessor.fit"
    PREPROCESSOR_TRANSFORM = "preprocessor.transform"
    MODEL_FIT = "model.fit"
    MODEL_PREDICT = "model.predict"
    POSTPROCESSOR_FIT = "postprocessor.fit"
    POSTPROCESSOR_APPLY = "postprocessor.apply"
