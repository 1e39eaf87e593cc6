# tests/core/traceability/test_manifest_step_updates.py
"""
Testes de atualização incremental do estado de stages no Manifest.

Invariantes:
    - stage_started registra kind, status "running" e início
    - stage_finished calcula a duração em milissegundos
    - stage_failed preserva o BraidErrorPayload serializado
    - stage_skipped registra o motivo
"""

from datetime import datetime, timedelta, timezone

import pytest

try:
    from braid_dataflow.core.errors import view_shape_mismatch
    from braid_dataflow.core.traceability import (
        create_manifest,
        stage_failed,
        stage_finished,
        stage_skipped,
        stage_started,
    )
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing manifest stage updates. Import error: {_IMPORT_ERR}")


T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


def _manifest():
    return create_manifest(run_id="r", started_at=T0, engine_version="0.1.0", config_hash="c", graph_hash="g")


def test_incremental_stage_update_records_status_and_timestamps():
    _require_imports()
    m = _manifest()

    stage_started(m, stage_id="Count.PerElement", kind="count_per_element", ts=T0)
    assert m.stages["Count.PerElement"]["status"] == "running"

    stage_finished(
        m,
        stage_id="Count.PerElement",
        ts=T0 + timedelta(milliseconds=250),
        summary="count_per_element produced 4 element(s)",
        metrics={"elements_out": 4},
        warnings=["partition 1 attempt 1 failed: RuntimeError"],
    )

    state = m.stages["Count.PerElement"]
    assert state["status"] == "success"
    assert state["duration_ms"] == 250
    assert state["metrics"] == {"elements_out": 4}
    assert len(state["warnings"]) == 1
    assert [e["event_type"] for e in m.events] == ["stage_started", "stage_finished"]


def test_failed_stage_is_recorded():
    _require_imports()
    m = _manifest()
    error = view_shape_mismatch(view_id="Regex", shape="singleton", element_count=0).to_dict()

    stage_started(m, stage_id="Regex", kind="view", ts=T0)
    stage_failed(m, stage_id="Regex", ts=T0 + timedelta(seconds=1), error=error)

    assert m.stages["Regex"]["status"] == "failed"
    assert m.stages["Regex"]["error"]["type"] == "VIEW_SHAPE_MISMATCH"
    assert m.events[-1]["payload"] == {"error_type": "VIEW_SHAPE_MISMATCH"}


def test_skipped_stage_is_recorded():
    _require_imports()
    m = _manifest()

    stage_skipped(m, stage_id="ParDo(ExtractWordsFn)", kind="par_do", ts=T0, reason="upstream failure")

    assert m.stages["ParDo(ExtractWordsFn)"]["status"] == "skipped"
    assert m.events[-1]["payload"] == {"reason": "upstream failure"}
