"""
Manifest v1: registro forense de uma run do Braid DataFlow.

Estrutura:
    - run: run_id, started_at, finished_at, engine_version, status
    - inputs: config_hash, graph_hash
    - stages: estado por stage_id (status, tempos, métricas, erro)
    - events: event log ordenado (stage_started, stage_finished, ...)

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente; toda mutação passa pelas
      funções deste módulo
    - UTC é o timezone canônico de todos os timestamps
    - A ordem do event log reflete a ordem real de execução

Limites explícitos:
    - Não executa stages
    - Não decide políticas de execução
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat()


def _ms_between(start_iso: Optional[str], end: datetime) -> int:
    if not start_iso:
        return 0
    start = _utc(datetime.fromisoformat(start_iso))
    return max(0, int((_utc(end) - start).total_seconds() * 1000))


@dataclass
class RunManifest:
    """Manifest v1 de uma run."""

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "stages": {k: dict(v) for k, v in self.stages.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    engine_version: str,
    config_hash: str,
    graph_hash: str,
) -> RunManifest:
    """
    Cria o manifest inicial de uma run.

    O event log inicia vazio: esta função não emite `run_started`.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "engine_version": engine_version,
            "status": "running",
        },
        inputs={
            "config_hash": config_hash,
            "graph_hash": graph_hash,
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    stage_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Acrescenta exatamente um evento ao event log, na ordem de chamada."""
    event: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if stage_id is not None:
        event["stage_id"] = stage_id
    if payload is not None:
        event["payload"] = payload
    manifest.events.append(event)


def stage_started(manifest: RunManifest, *, stage_id: str, kind: str, ts: datetime) -> None:
    manifest.stages[stage_id] = {
        "stage_id": stage_id,
        "kind": kind,
        "status": "running",
        "started_at": _iso(ts),
    }
    add_event(manifest, event_type="stage_started", ts=ts, stage_id=stage_id, payload={"kind": kind})


def stage_finished(
    manifest: RunManifest,
    *,
    stage_id: str,
    ts: datetime,
    summary: str,
    metrics: Optional[Dict[str, Any]] = None,
    warnings: Optional[List[str]] = None,
) -> None:
    state = manifest.stages.setdefault(stage_id, {"stage_id": stage_id})
    duration_ms = _ms_between(state.get("started_at"), ts)
    state.update(
        {
            "status": "success",
            "finished_at": _iso(ts),
            "duration_ms": duration_ms,
            "summary": summary,
            "metrics": dict(metrics or {}),
            "warnings": list(warnings or []),
        }
    )
    add_event(
        manifest,
        event_type="stage_finished",
        ts=ts,
        stage_id=stage_id,
        payload={"status": "success", "duration_ms": duration_ms},
    )


def stage_failed(
    manifest: RunManifest,
    *,
    stage_id: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """`error` é um BraidErrorPayload serializado (`to_dict`)."""
    state = manifest.stages.setdefault(stage_id, {"stage_id": stage_id})
    state.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(state.get("started_at"), ts),
            "error": error,
        }
    )
    add_event(
        manifest,
        event_type="stage_failed",
        ts=ts,
        stage_id=stage_id,
        payload={"error_type": error.get("type")},
    )


def stage_skipped(manifest: RunManifest, *, stage_id: str, kind: str, ts: datetime, reason: str) -> None:
    manifest.stages[stage_id] = {
        "stage_id": stage_id,
        "kind": kind,
        "status": "skipped",
        "reason": reason,
    }
    add_event(manifest, event_type="stage_skipped", ts=ts, stage_id=stage_id, payload={"reason": reason})


def run_finished(
    manifest: RunManifest,
    *,
    ts: datetime,
    status: str,
    accumulators: Optional[Dict[str, Any]] = None,
) -> None:
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    payload: Dict[str, Any] = {"status": status}
    if accumulators is not None:
        payload["accumulators"] = dict(accumulators)
    add_event(manifest, event_type="run_finished", ts=ts, payload=payload)


def save_manifest(manifest: RunManifest, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True, default=repr),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    return RunManifest.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
