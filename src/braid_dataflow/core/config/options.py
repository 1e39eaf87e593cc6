"""
Opções do engine derivadas da configuração.

Seção reconhecida (v1):

engine:
  num_partitions: 4   # partições por coleção criada e por shuffle
  parallelism: 4      # workers do pool de partições
  max_retries: 2      # novas tentativas por partição após uma falha

Chaves desconhecidas são preservadas na configuração (e no hash), mas não
alteram a execução.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidEngineOptionError
from .merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "num_partitions": 4,
        "parallelism": 4,
        "max_retries": 2,
    },
}


@dataclass(frozen=True)
class EngineOptions:
    """Opções validadas do backend de execução."""

    num_partitions: int = 4
    parallelism: int = 4
    max_retries: int = 2

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Aplica `config` sobre DEFAULT_CONFIG (deep-merge) e devolve a configuração efetiva."""
    if config is None:
        return deepcopy(DEFAULT_CONFIG)
    return deep_merge(DEFAULT_CONFIG, config)


def _int_option(engine_cfg: Dict[str, Any], key: str, minimum: int) -> int:
    value = engine_cfg.get(key)
    # bool é subclasse de int, mas não é um valor aceitável aqui
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEngineOptionError(
            f"engine.{key} must be an int, got {type(value).__name__}"
        )
    if value < minimum:
        raise InvalidEngineOptionError(f"engine.{key} must be >= {minimum}, got {value}")
    return value


def resolve_engine_options(config: Optional[Dict[str, Any]] = None) -> EngineOptions:
    """
    Converte a seção `engine` da configuração efetiva em EngineOptions.

    Raises:
        InvalidEngineOptionError: Se algum valor estiver fora do domínio.
        ConfigTypeConflictError: Se `config` conflitar estruturalmente com os defaults.
    """
    effective = resolve_config(config)
    engine_cfg = effective.get("engine")
    if not isinstance(engine_cfg, dict):
        raise InvalidEngineOptionError("engine section must be a mapping")

    return EngineOptions(
        num_partitions=_int_option(engine_cfg, "num_partitions", 1),
        parallelism=_int_option(engine_cfg, "parallelism", 1),
        max_retries=_int_option(engine_cfg, "max_retries", 0),
    )
