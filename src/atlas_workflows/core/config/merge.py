# src/atlas_workflows/core/config/merge.py
"""
Deep-merge determinístico entre defaults e overrides.

Política de merge (v1):
    - dict + dict → merge recursivo por chave
    - list        → substituição total (ex.: a lista de `adjustments` do
                    pós-processador ou de `steps` da recipe nunca é mesclada)
    - escalar     → substituição direta
    - tipos diferentes → ConfigTypeConflictError

`None` no override substitui qualquer valor (permite desligar, por exemplo,
`calibration_prop: null`).

Invariantes:
    - Nenhum input é mutado
    - Chaves ausentes no override são preservadas da base
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Retorna uma nova configuração com `override` aplicado sobre `base`.

    Raises:
        ConfigTypeConflictError: Se uma chave tiver tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts, recebido: {type(base).__name__} vs {type(override).__name__}"
        )

    merged: Dict[str, Any] = deepcopy(base)

    for key, value in override.items():
        if key not in merged or value is None or merged[key] is None:
            merged[key] = deepcopy(value)
            continue

        current = merged[key]

        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = deepcopy(value)
        elif _same_kind(current, value):
            merged[key] = deepcopy(value)
        else:
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': {type(current).__name__} vs {type(value).__name__}"
            )

    return merged


def _same_kind(a: Any, b: Any) -> bool:
    # int e float são intercambiáveis (ex.: threshold: 1 vs 0.7); bool não
    numeric = (int, float)
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool)
    if isinstance(a, numeric) and isinstance(b, numeric):
        return True
    return type(a) is type(b)
