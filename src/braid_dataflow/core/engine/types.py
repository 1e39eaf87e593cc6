"""
Tipos de resultado da execução de stages.

- StageStatus → estado final (SUCCESS, SKIPPED, FAILED)
- StageResult → resultado imutável de um stage, exposto pelo Run Handle

StageResult é projetado para inspeção e para o manifest da run; nunca
carrega os dados das coleções.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from braid_dataflow.core.graph.stages import StageKind


class StageStatus(str, Enum):
    """
    Estados finais possíveis de um stage.

    - SUCCESS: stage avaliado por completo
    - SKIPPED: não avaliado porque um stage anterior falhou
    - FAILED: avaliação interrompida por erro (após retries, quando aplicável)
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """
    Resultado imutável da avaliação de um stage.

    Campos:
        - stage_id / kind / status
        - summary: resumo textual
        - metrics: contagens (elementos por saída, partições, tentativas)
        - warnings: avisos não fatais (ex.: partições re-executadas)
        - payload: dados livres; em falhas, `payload["error"]` é um BraidErrorPayload serializado
    """
    stage_id: str
    kind: StageKind
    status: StageStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)
