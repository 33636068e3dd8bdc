"""
Atlas Workflows — Canonical Exceptions (v1)

Este módulo define as exceções tipadas levantadas por um Workflow.

Objetivo:
- Distinguir erros de validação local (conflito, especificação, não treinado)
  de falhas delegadas às bibliotecas colaboradoras
- Carregar sempre o slot/estágio responsável em `details`
- Permitir mapeamento determinístico para WorkflowErrorPayload

Regras:
- Erros de validação local são levantados antes de qualquer chamada delegada.
- Exceções carregam apenas dados estruturados (serializáveis).
- Não são frozen: o interpretador e o contextlib atribuem `__traceback__`
  às exceções em trânsito.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from atlas_workflows.core.errors import (
    WORKFLOW_CONFLICT,
    WORKFLOW_DELEGATED_FAILURE,
    WORKFLOW_NOT_TRAINED,
    WORKFLOW_SPECIFICATION,
    WorkflowErrorPayload,
    workflow_delegated_failure,
)


@dataclass(eq=False)
class WorkflowException(Exception):
    """Base class para exceções de Workflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - `details["slot"]` e `details["stage"]` identificam a origem
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    error_type = "WORKFLOW_ERROR"

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    @property
    def slot(self) -> Optional[str]:
        return self.details.get("slot")

    @property
    def stage(self) -> Optional[str]:
        return self.details.get("stage")

    @classmethod
    def from_payload(cls, payload: WorkflowErrorPayload) -> "WorkflowException":
        return cls(
            message=payload.message,
            details=dict(payload.details),
            hint=payload.hint,
            decision_required=payload.decision_required,
        )

    def to_payload(self) -> WorkflowErrorPayload:
        return WorkflowErrorPayload(
            type=self.error_type,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
            decision_required=self.decision_required,
        )


# ---------------------------------------------------------------------------
# Validação local
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ConflictError(WorkflowException):
    """Slot já possui uma especificação; é preciso removê-la antes."""

    error_type = WORKFLOW_CONFLICT


@dataclass(eq=False)
class SpecificationError(WorkflowException):
    """Especificação ausente ou inconsistente para o fit (ex.: sem modelo)."""

    error_type = WORKFLOW_SPECIFICATION


@dataclass(eq=False)
class NotTrainedError(WorkflowException):
    """Operação exige um workflow no estado FITTED."""

    error_type = WORKFLOW_NOT_TRAINED


# ---------------------------------------------------------------------------
# Falhas delegadas
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class DelegatedFailure(WorkflowException):
    """Erro levantado por um colaborador externo durante fit/predict.

    A exceção original fica encadeada em `__cause__`.
    """

    error_type = WORKFLOW_DELEGATED_FAILURE

    @classmethod
    def wrap(cls, exc: BaseException, *, stage: str, slot: str) -> "DelegatedFailure":
        exc_message = str(exc) or exc.__class__.__name__
        payload = workflow_delegated_failure(
            stage=stage,
            slot=slot,
            exc_type=exc.__class__.__name__,
            exc_message=exc_message,
        )
        return cls(
            message=f"{payload.message}: {exc_message}",
            details=dict(payload.details),
            hint=payload.hint,
        )
