"""
Loader canônico de configuração do Braid DataFlow.

A configuração é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Formatos aceitos: YAML (.yaml, .yml) e JSON (.json). O conteúdo raiz deve
ser um dicionário; arquivos vazios valem como `{}`.

Limites explícitos:
    - Não aplica os defaults internos do engine (ver `options.resolve_config`)
    - Não persiste configuração ou hash
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


_YAML_SUFFIXES = {".yaml", ".yml"}


def _read_mapping(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração e valida que a raiz é um dicionário.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de defaults não encontrado: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in _YAML_SUFFIXES:
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )
    return data


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração de uma run.

    O arquivo local, quando presente, tem prioridade sobre os defaults
    (deep-merge). Um `local_path` apontando para arquivo inexistente é
    ignorado: overrides locais são opcionais por natureza.

    Args:
        defaults_path (str): Caminho para o arquivo de configuração base.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração resolvida.
    """
    effective = _read_mapping(Path(defaults_path))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _read_mapping(local_file))

    return effective
