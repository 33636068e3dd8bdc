# src/atlas_workflows/core/config/hashing.py
"""
Hash canônico da configuração efetiva.

O hash identifica estruturalmente a configuração que originou um Workflow e
é registrado no EventLog (`workflow_built`), permitindo associar predições a
uma configuração exata.

Política (v1):
    - JSON canônico (chaves ordenadas, separadores compactos, UTF-8)
    - SHA-256, hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash SHA-256 da configuração.

    Configurações equivalentes (independente da ordem das chaves) produzem o
    mesmo hash. O input não é mutado.

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(f"Config para hashing deve ser dict, recebido: {type(config).__name__}")

    canonical = json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
