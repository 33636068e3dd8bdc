"""
EventLog — log estruturado de um Workflow.

Cada Workflow possui o seu próprio EventLog. Eventos não são strings livres:
são dicionários com metadados mínimos de rastreabilidade (workflow_id,
nível, slot, estágio e timestamp UTC), acrescidos de campos livres.

Princípios fundamentais:
- Isolamento por instância (nenhum logger global é compartilhado)
- A ordem de `events` é a ordem real das chamadas
- Warnings são sinais não fatais agrupados por slot

Limites explícitos:
- Não persiste eventos
- Não filtra por nível de log
- Guarda no máximo `max_events` eventos; os mais antigos são descartados
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


DEFAULT_MAX_EVENTS = 1000


@dataclass
class EventLog:
    """
    Log estruturado de eventos e warnings de um Workflow.

    Campos canônicos:
    - workflow_id: identificador da instância dona do log
    - events: lista ordenada de eventos
    - warnings: warnings por slot
    - max_events: limite de eventos retidos (None = sem limite)
    """

    workflow_id: str
    events: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    max_events: Optional[int] = DEFAULT_MAX_EVENTS

    def log(
        self,
        *,
        level: str,
        message: str,
        slot: Optional[str] = None,
        stage: Optional[str] = None,
        **extra: Any,
    ) -> None:
        event = {
            "workflow_id": self.workflow_id,
            "level": level,
            "message": message,
            "slot": slot,
            "stage": stage,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

    def add_warning(self, *, slot: str, message: str) -> None:
        if slot not in self.warnings:
            self.warnings[slot] = []
        self.warnings[slot].append(message)
        self.log(level="warning", message=message, slot=slot)

    def find(self, *, message: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("message") == message]
