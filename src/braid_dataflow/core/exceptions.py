"""
Braid DataFlow: Canonical Exceptions (v1)

Este módulo define as exceções tipadas do Braid DataFlow.

Objetivo:
- Permitir que grafo, engine e Run Handle levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para BraidErrorPayload
- Evitar ValueError/RuntimeError genéricos nas violações de contrato do core

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; o diagnóstico fica em `details`.
- Falhas de construção do grafo são detectadas antes de qualquer execução.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BraidException(Exception):
    """Base class para exceções internas do Braid.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Construção do grafo
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DuplicateTagError(BraidException):
    """Um mesmo OutputTag foi declarado duas vezes (no stage ou no pipeline)."""


@dataclass(frozen=True)
class DuplicateStageIdError(BraidException):
    """Dois stages do mesmo pipeline receberam o mesmo identificador."""


@dataclass(frozen=True)
class MissingCodecError(BraidException):
    """Uma coleção não possui codec explícito nem resolvível pelo registry."""


@dataclass(frozen=True)
class IncompatibleInputsError(BraidException):
    """Entradas de um stage não são compatíveis entre si (ex.: tipos distintos)."""


@dataclass(frozen=True)
class AccumulatorConflictError(BraidException):
    """Nome de acumulador registrado duas vezes com semânticas de merge distintas."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ViewShapeMismatchError(BraidException):
    """A coleção de origem não satisfaz o formato pedido pela view."""


@dataclass(frozen=True)
class ViewNotReadyError(BraidException):
    """Leitura de uma view antes de sua materialização."""


@dataclass(frozen=True)
class AccumulatorUsageError(BraidException):
    """Acumulador atualizado fora do processamento de uma partição."""


@dataclass(frozen=True)
class UndeclaredOutputError(BraidException):
    """Emissão para um OutputTag que o stage não declarou."""


@dataclass(frozen=True)
class StageExecutionError(BraidException):
    """Um stage falhou após esgotar as tentativas de uma partição."""


# ---------------------------------------------------------------------------
# Consulta (Run Handle / registries)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccumulatorNotReadyError(BraidException):
    """Leitura de acumulador antes de `finalize()`."""


@dataclass(frozen=True)
class UnknownAccumulatorError(BraidException):
    """Acumulador não registrado no pipeline executado."""


@dataclass(frozen=True)
class AccumulatorTypeMismatchError(BraidException):
    """Tipo solicitado difere do tipo declarado pelo acumulador."""


@dataclass(frozen=True)
class UnknownReferenceError(BraidException):
    """Handle, tag ou view estranho ao pipeline consultado."""


@dataclass(frozen=True)
class ClosedHandleError(BraidException):
    """Operação chamada após `close()`."""
