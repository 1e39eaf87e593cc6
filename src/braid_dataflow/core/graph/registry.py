"""
Registro estrutural de stages do pipeline.

O registry valida a identidade dos stages no momento em que são
adicionados ao grafo, antes de qualquer planejamento ou execução.

Invariantes:
    - Cada stage registrado possui um `stage.id` único e não vazio
    - A lista de stages reflete exatamente a ordem de registro

Limites explícitos:
    - Não resolve dependências (ver engine.planner)
    - Não valida codecs nem tags
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from braid_dataflow.core.exceptions import DuplicateStageIdError

from .stages import Stage


@dataclass
class StageRegistry:
    """Registro canônico de stages em ordem de construção."""

    _stages: Dict[str, Stage] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, stage: Stage) -> None:
        stage_id = getattr(stage, "id", None)
        if not isinstance(stage_id, str) or not stage_id.strip():
            raise ValueError("stage.id must be a non-empty string")

        if stage_id in self._stages:
            raise DuplicateStageIdError(
                message=f"Duplicate stage id: {stage_id}",
                details={"stage_id": stage_id},
                hint="Use um label explícito e único no apply",
            )

        self._stages[stage_id] = stage
        self._order.append(stage_id)

    def get(self, stage_id: str) -> Stage:
        return self._stages[stage_id]

    def __contains__(self, stage_id: object) -> bool:
        return stage_id in self._stages

    def list(self) -> List[Stage]:
        return [self._stages[sid] for sid in self._order]
