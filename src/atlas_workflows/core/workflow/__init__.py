"""
Workflow — agregação de preprocessor, modelo e pós-processador.

Componentes:
- types    → WorkflowState, SlotName, Stage
- slots    → PreprocessorSlot, ModelSlot, PostProcessorSlot
- workflow → Workflow (máquina de estados EMPTY / PARTIAL / FITTED)
"""

from .slots import ModelSlot, PostProcessorSlot, PreprocessorSlot
from .types import SlotName, Stage, WorkflowState
from .workflow import Workflow, workflow

__all__ = [
    "Workflow",
    "workflow",
    "WorkflowState",
    "SlotName",
    "Stage",
    "PreprocessorSlot",
    "ModelSlot",
    "PostProcessorSlot",
]
