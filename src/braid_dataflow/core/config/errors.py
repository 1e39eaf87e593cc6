"""
Exceções canônicas da camada de configuração do Braid DataFlow.

As exceções aqui definidas representam violações estruturais da
configuração, detectadas antes de qualquer stage ser executado.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de execução de stage
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Braid DataFlow.

    Permite captura genérica de falhas de load, merge e resolução de
    opções, distinguindo-as de falhas de execução do pipeline.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração base (defaults) não encontrado.

    Limites explícitos:
        - Não tenta inferir ou criar defaults automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo de configuração não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz da configuração não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"num_partitions": 4}}
        - override: {"engine": "fast"}
    """


class InvalidEngineOptionError(ConfigError):
    """
    Valor inválido na seção `engine` da configuração.

    Exemplos:
        - engine.num_partitions = 0
        - engine.max_retries = -1
        - engine.parallelism = "many"
    """
