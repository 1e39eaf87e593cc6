# tests/core/config/test_engine_options.py
"""
Testes da resolução de opções do engine (seção `engine` da configuração).

Invariantes:
    - Defaults internos: num_partitions=4, parallelism=4, max_retries=2
    - Overrides parciais preservam as demais opções
    - Valores fora do domínio falham com InvalidEngineOptionError
"""

import pytest

try:
    from braid_dataflow.core.config import (
        DEFAULT_CONFIG,
        EngineOptions,
        resolve_config,
        resolve_engine_options,
    )
    from braid_dataflow.core.config.errors import (
        ConfigTypeConflictError,
        InvalidEngineOptionError,
    )
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing engine options. Implement:\n"
            "- src/braid_dataflow/core/config/options.py (EngineOptions, resolve_engine_options)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_defaults_when_config_is_none():
    _require_imports()
    options = resolve_engine_options(None)

    assert options == EngineOptions(num_partitions=4, parallelism=4, max_retries=2)
    assert options.max_attempts == 3


def test_partial_override_keeps_other_defaults():
    _require_imports()
    options = resolve_engine_options({"engine": {"max_retries": 0}})

    assert options.max_retries == 0
    assert options.max_attempts == 1
    assert options.num_partitions == 4


def test_resolve_config_does_not_mutate_defaults():
    _require_imports()
    resolved = resolve_config({"engine": {"num_partitions": 1}})
    resolved["engine"]["parallelism"] = 99

    assert DEFAULT_CONFIG["engine"]["num_partitions"] == 4
    assert DEFAULT_CONFIG["engine"]["parallelism"] == 4


@pytest.mark.parametrize(
    "engine_cfg",
    [
        {"num_partitions": 0},
        {"parallelism": 0},
        {"max_retries": -1},
    ],
)
def test_out_of_range_values_raise(engine_cfg):
    _require_imports()
    with pytest.raises(InvalidEngineOptionError):
        resolve_engine_options({"engine": engine_cfg})


def test_wrong_type_is_a_merge_conflict():
    """Um valor de tipo errado conflita com o default antes da validação de domínio."""
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        resolve_engine_options({"engine": {"parallelism": "many"}})
