# src/atlas_workflows/core/config/__init__.py
"""
Camada de configuração dos workflows.

Permite declarar um Workflow em YAML/JSON (seção `workflow:`) e resolvê-lo
de forma determinística a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional)

Responsabilidades do pacote:
    - Carregamento de arquivos (loader)
    - Deep-merge determinístico defaults + overrides (merge)
    - Hash canônico da configuração efetiva (hashing)
    - Construção declarativa do Workflow (builder)

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - A mesma entrada sempre produz a mesma configuração e o mesmo hash
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não treina o workflow
    - Não valida semântica de fórmulas ou estimadores (delegado ao Workflow)
"""

from .builder import build_workflow
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidWorkflowConfigError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge

__all__ = [
    "load_config",
    "deep_merge",
    "compute_config_hash",
    "build_workflow",
    "ConfigError",
    "DefaultsNotFoundError",
    "UnsupportedConfigFormatError",
    "InvalidConfigRootTypeError",
    "ConfigTypeConflictError",
    "InvalidWorkflowConfigError",
]
