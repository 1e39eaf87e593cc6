"""
Camada de configuração do Braid DataFlow.

A configuração de uma run governa exclusivamente o backend de execução
(particionamento, paralelismo, retries). Ela não altera a semântica de
saída do pipeline: o mesmo grafo produz as mesmas coleções e os mesmos
acumuladores para qualquer configuração válida.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução da configuração final via deep-merge determinístico
    - Hash canônico para o manifest da run
    - Conversão da seção `engine` em `EngineOptions` validadas

Limites explícitos:
    - Não constrói nem valida o grafo
    - Não executa stages
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidEngineOptionError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge
from .options import DEFAULT_CONFIG, EngineOptions, resolve_config, resolve_engine_options

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidEngineOptionError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "load_config",
    "deep_merge",
    "DEFAULT_CONFIG",
    "EngineOptions",
    "resolve_config",
    "resolve_engine_options",
]
