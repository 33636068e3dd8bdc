"""
Atlas Workflows — Canonical Error Payloads (v1)

Este módulo define o payload canônico de erro dos workflows.
Erros são artefatos de diagnóstico e devem ser:

- explícitos
- serializáveis
- associados ao slot/estágio que os causou

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WorkflowErrorPayload:
    """
    Payload canônico de erro de um Workflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados (sempre inclui `slot` e `stage`)
    - hint: ação sugerida ao usuário
    - decision_required: indica que o workflow só avança com ação explícita
      (ex.: remover o preprocessor antes de adicionar outro)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

WORKFLOW_CONFLICT = "WORKFLOW_CONFLICT"
WORKFLOW_SPECIFICATION = "WORKFLOW_SPECIFICATION"
WORKFLOW_NOT_TRAINED = "WORKFLOW_NOT_TRAINED"
WORKFLOW_DELEGATED_FAILURE = "WORKFLOW_DELEGATED_FAILURE"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def workflow_conflict(
    *,
    slot: str,
    current: Optional[str],
    attempted: Optional[str],
    hint: str = "Remova o componente atual (remove_*) ou use update_* para substituí-lo.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=WORKFLOW_CONFLICT,
        message="Slot do workflow já está ocupado",
        details={
            "slot": slot,
            "stage": None,
            "current": current,
            "attempted": attempted,
        },
        hint=hint,
        decision_required=True,
    )


def workflow_specification(
    *,
    slot: Optional[str],
    reason: str,
    hint: str = "Complete a especificação do workflow antes de chamar fit().",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=WORKFLOW_SPECIFICATION,
        message="Especificação do workflow incompleta ou inconsistente",
        details={
            "slot": slot,
            "stage": "fit",
            "reason": reason,
        },
        hint=hint,
        decision_required=False,
    )


def workflow_not_trained(
    *,
    state: str,
    required_by: str = "predict",
    hint: str = "Chame fit() no workflow antes de usá-lo para predição.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=WORKFLOW_NOT_TRAINED,
        message="Workflow não está treinado",
        details={
            "slot": None,
            "stage": required_by,
            "state": state,
        },
        hint=hint,
        decision_required=False,
    )


def workflow_delegated_failure(
    *,
    stage: str,
    slot: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o erro original (encadeado em __cause__). Nenhum artefato parcial foi mantido.",
) -> WorkflowErrorPayload:
    return WorkflowErrorPayload(
        type=WORKFLOW_DELEGATED_FAILURE,
        message=f"Falha delegada no estágio {stage!r}",
        details={
            "slot": slot,
            "stage": stage,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )
