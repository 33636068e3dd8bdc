"""Persistência do Workflow completo (v1).

O Workflow é serializado como um objeto opaco: especificações, artefatos
treinados e EventLog viajam juntos, de modo que um workflow carregado prediz
exatamente como o original.

Decisões (v1):
- Formato: joblib, envelope `{"format_version": "v1", "workflow": <Workflow>}`
- Metadata retornada inclui sha256 do arquivo gravado
- Evento `workflow_saved` registrado no EventLog do próprio workflow

Limites explícitos:
- Não re-treina no load
- Não migra envelopes de versões desconhecidas
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import joblib

from atlas_workflows.core.workflow import Workflow


FORMAT_VERSION = "v1"


@dataclass(frozen=True)
class WorkflowArtifactMeta:
    """Metadata mínima (v1) de um workflow persistido."""

    path: str
    sha256: str
    state: str
    format: str = "joblib"
    version: str = FORMAT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "sha256": self.sha256,
            "format": self.format,
            "version": self.version,
            "state": self.state,
        }


def _sha256(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def save_workflow(workflow: Workflow, path: Union[str, Path]) -> Dict[str, Any]:
    """Salva o workflow (treinado ou não) e retorna a metadata serializável."""
    if not isinstance(workflow, Workflow):
        raise TypeError(f"workflow must be a Workflow, got {type(workflow).__name__}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    workflow.events.log(level="info", message="workflow_saved", path=str(path), format_version=FORMAT_VERSION)
    joblib.dump({"format_version": FORMAT_VERSION, "workflow": workflow}, path)

    return WorkflowArtifactMeta(
        path=str(path),
        sha256=_sha256(path),
        state=workflow.state.value,
    ).to_dict()


def load_workflow(path: Union[str, Path]) -> Workflow:
    """Carrega um workflow salvo por `save_workflow`, sem recalcular nada."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    payload = joblib.load(path)
    if not isinstance(payload, dict) or "workflow" not in payload:
        raise ValueError(f"Not a workflow artifact: {path}")
    version = payload.get("format_version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported workflow artifact version: {version!r}")

    wf = payload["workflow"]
    if not isinstance(wf, Workflow):
        raise ValueError(f"Artifact does not contain a Workflow: {type(wf).__name__}")
    return wf


__all__ = ["save_workflow", "load_workflow", "WorkflowArtifactMeta", "FORMAT_VERSION"]
