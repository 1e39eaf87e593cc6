"""
Contexto de execução de uma run do Braid DataFlow.

O `RunContext` concentra o estado explícito de uma execução:
    - identidade da run (run_id, created_at) e configuração efetiva
    - dataset store: os dados de cada coleção, indexados pelo id da coleção
    - event log estruturado (substitui qualquer logger global)
    - warnings não fatais por stage

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Nenhum estado global compartilhado entre runs
    - Logs sempre incluem `run_id` e `stage_id`

Invariantes:
    - Datasets só são gravados pelo engine
    - Eventos preservam a ordem de registro
    - Após `clear_datasets`, nenhum dado de coleção permanece referenciado

Limites explícitos:
    - Não executa stages
    - Não persiste dados automaticamente
    - Não registra eventos no manifest (responsabilidade do engine)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


@dataclass
class RunContext:
    """
    Contexto canônico de uma run.

    Campos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração efetiva (defaults do engine + overrides)
    - meta: metadados livres da execução (ex.: hashes de entrada)
    - events: event log estruturado
    - warnings: warnings por stage_id

    O event log é alimentado também pelas threads de partição (retries),
    por isso `log` e `add_warning` são serializados por um lock.
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    _datasets: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -----------------------------
    # Dataset store
    # -----------------------------
    def set_dataset(self, collection_id: str, dataset: Any) -> None:
        self._datasets[collection_id] = dataset

    def has_dataset(self, collection_id: str) -> bool:
        return collection_id in self._datasets

    def get_dataset(self, collection_id: str) -> Any:
        if collection_id not in self._datasets:
            raise KeyError(collection_id)
        return self._datasets[collection_id]

    def clear_datasets(self) -> None:
        self._datasets.clear()

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, stage_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage_id": stage_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, stage_id: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(stage_id, []).append(message)

    def events_for(self, stage_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self.events if e["stage_id"] == stage_id]
