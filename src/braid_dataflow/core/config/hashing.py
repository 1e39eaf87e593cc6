"""
Hashing canônico de configuração e de grafo do Braid DataFlow.

Os hashes identificam as entradas de uma run no manifest:
    - config_hash: configuração efetiva resolvida
    - graph_hash: estrutura do grafo (stages, tipos e dependências)

Política (v1): JSON canônico (chaves ordenadas, separadores compactos,
UTF-8) seguido de SHA-256. O resultado é sempre hexadecimal com 64 caracteres.
"""

import hashlib
import json
from typing import Any, Dict


def _canonical_sha256(obj: Any) -> str:
    canonical_json = json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return _canonical_sha256(config)


def compute_graph_hash(structure: Dict[str, Any]) -> str:
    """Hash da descrição estrutural do grafo (ver `Pipeline.describe`)."""
    return _canonical_sha256(structure)
