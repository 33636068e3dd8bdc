# src/atlas_workflows/core/config/loader.py
"""
Loader de configuração dos workflows.

Resolve a configuração efetiva a partir de um arquivo de defaults
(obrigatório) e de um arquivo local de overrides (opcional, ignorado se
não existir). O local sempre tem precedência.

Formatos suportados (v1):
    - YAML (.yaml, .yml) via PyYAML (`safe_load`)
    - JSON (.json)

Limites explícitos:
    - Não constrói o Workflow (ver `builder.build_workflow`)
    - Não persiste configuração nem hash
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


def _read_mapping(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração e garante que a raiz é um dict.

    Arquivos vazios são interpretados como `{}`.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        elif suffix == ".json":
            text = f.read()
            data = json.loads(text) if text.strip() else None
        else:
            raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(f"Config root deve ser dict, recebido: {type(data).__name__}")
    return data


def load_config(
    *,
    defaults_path: Union[str, Path],
    local_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Args:
        defaults_path: Caminho do arquivo base (obrigatório).
        local_path: Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se algum formato não for suportado.
        InvalidConfigRootTypeError: Se alguma raiz não for dict.
        ConfigTypeConflictError: Se houver conflito estrutural no merge.
    """
    effective = _read_mapping(Path(defaults_path))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _read_mapping(local_file))

    return effective
