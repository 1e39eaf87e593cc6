"""
Rastreabilidade de runs do Braid DataFlow.

O manifest de uma run consolida metadados da execução, hashes das
entradas (configuração e grafo), o estado final de cada stage e o event
log ordenado. É serializável em JSON e reconstruível (round-trip).
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    run_finished,
    save_manifest,
    stage_failed,
    stage_finished,
    stage_skipped,
    stage_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "run_finished",
    "save_manifest",
    "stage_failed",
    "stage_finished",
    "stage_skipped",
    "stage_started",
]
