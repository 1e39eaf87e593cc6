"""
Braid DataFlow: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Braid DataFlow.
Erros são artefatos de execução e fazem parte do contrato operacional
do engine, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Toda falha de stage registrada em StageResult ou no manifest da run
passa por `exception_to_payload`.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import BraidException


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BraidErrorPayload:
    """
    Payload canônico de erro do Braid DataFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Grafo / Construção
GRAPH_DUPLICATE_TAG = "GRAPH_DUPLICATE_TAG"
GRAPH_DUPLICATE_STAGE_ID = "GRAPH_DUPLICATE_STAGE_ID"
GRAPH_MISSING_CODEC = "GRAPH_MISSING_CODEC"
GRAPH_INCOMPATIBLE_INPUTS = "GRAPH_INCOMPATIBLE_INPUTS"
ACCUMULATOR_CONFLICT = "ACCUMULATOR_CONFLICT"

# Execução
VIEW_SHAPE_MISMATCH = "VIEW_SHAPE_MISMATCH"
STAGE_EXECUTION_FAILED = "STAGE_EXECUTION_FAILED"

# Consulta
ACCUMULATOR_NOT_READY = "ACCUMULATOR_NOT_READY"
UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
HANDLE_CLOSED = "HANDLE_CLOSED"

# Engine
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


_CODES_BY_CLASS: Dict[str, str] = {
    "DuplicateTagError": GRAPH_DUPLICATE_TAG,
    "DuplicateStageIdError": GRAPH_DUPLICATE_STAGE_ID,
    "MissingCodecError": GRAPH_MISSING_CODEC,
    "IncompatibleInputsError": GRAPH_INCOMPATIBLE_INPUTS,
    "AccumulatorConflictError": ACCUMULATOR_CONFLICT,
    "ViewShapeMismatchError": VIEW_SHAPE_MISMATCH,
    "StageExecutionError": STAGE_EXECUTION_FAILED,
    "AccumulatorNotReadyError": ACCUMULATOR_NOT_READY,
    "UnknownReferenceError": UNKNOWN_REFERENCE,
    "ClosedHandleError": HANDLE_CLOSED,
}


def exception_to_payload(exc: BaseException) -> BraidErrorPayload:
    """Converte exceções em BraidErrorPayload (serializável, acionável).

    Regras:
    - BraidException: já vem com message/details/hint; o código vem do catálogo
      (ou do nome da classe, quando não catalogada).
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, BraidException):
        name = exc.__class__.__name__
        return BraidErrorPayload(
            type=_CODES_BY_CLASS.get(name, name),
            message=str(exc) or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
        )

    return BraidErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o event log da run e a função por elemento do stage",
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def stage_execution_failed(
    *,
    stage_id: str,
    partition: int,
    attempts: int,
    cause: BaseException,
) -> BraidErrorPayload:
    """Payload para stage que esgotou as tentativas de uma partição."""
    return BraidErrorPayload(
        type=STAGE_EXECUTION_FAILED,
        message=f"Stage '{stage_id}' failed after {attempts} attempt(s)",
        details={
            "stage_id": stage_id,
            "partition": partition,
            "attempts": attempts,
            "cause": exception_to_payload(cause).to_dict(),
        },
        hint="Corrija a função por elemento ou aumente engine.max_retries",
    )


def view_shape_mismatch(
    *,
    view_id: str,
    shape: str,
    element_count: int,
) -> BraidErrorPayload:
    """Payload para view singleton cuja origem não tem exatamente um elemento."""
    return BraidErrorPayload(
        type=VIEW_SHAPE_MISMATCH,
        message=f"View '{view_id}' expected a single element, found {element_count}",
        details={
            "view_id": view_id,
            "shape": shape,
            "element_count": element_count,
        },
        hint="Garanta que a coleção de origem produza exatamente um elemento",
    )
