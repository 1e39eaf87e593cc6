"""
Deep-merge de configuração do Braid DataFlow.

Política de merge (v1):
    - dict + dict → merge recursivo por chave
    - list        → sobrescrita total
    - escalar     → sobrescrita direta
    - conflito de tipos → ConfigTypeConflictError

Nenhum input é mutado; o resultado é sempre um novo dicionário.
"""

from copy import deepcopy
from typing import Any, Dict, List

from .errors import ConfigTypeConflictError


def _merge_value(path: List[str], base_value: Any, override_value: Any) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        merged = deepcopy(base_value)
        for key, value in override_value.items():
            if key in merged:
                merged[key] = _merge_value(path + [key], merged[key], value)
            else:
                merged[key] = deepcopy(value)
        return merged

    if isinstance(override_value, list):
        return deepcopy(override_value)

    if type(base_value) is not type(override_value):
        dotted = ".".join(path) or "<root>"
        raise ConfigTypeConflictError(
            f"Conflito de tipo na chave '{dotted}': "
            f"{type(base_value).__name__} vs {type(override_value).__name__}"
        )

    return deepcopy(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina `override` sobre `base` e devolve uma nova configuração.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se algum dos lados não for dict no nível raiz,
            ou se uma chave trouxer tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_value([], base, override)
