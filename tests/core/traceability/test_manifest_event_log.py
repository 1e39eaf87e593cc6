# tests/core/traceability/test_manifest_event_log.py
"""
Testes do event log do Manifest.

Invariantes:
    - Cada chamada acrescenta exatamente um evento, na ordem de chamada
    - `stage_id` e `payload` só aparecem quando informados
"""

from datetime import datetime, timedelta, timezone

import pytest

try:
    from braid_dataflow.core.traceability import add_event, create_manifest, run_finished
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing manifest event log. Import error: {_IMPORT_ERR}")


T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


def _manifest():
    return create_manifest(run_id="r", started_at=T0, engine_version="0.1.0", config_hash="c", graph_hash="g")


def test_event_log_appends_ordered_events():
    _require_imports()
    m = _manifest()

    add_event(m, event_type="custom", ts=T0)
    add_event(m, event_type="custom", ts=T0 + timedelta(seconds=1), stage_id="Create", payload={"n": 1})

    assert m.events[0] == {"event_type": "custom", "timestamp": "2026-01-16T12:00:00+00:00"}
    assert m.events[1]["stage_id"] == "Create"
    assert m.events[1]["payload"] == {"n": 1}


def test_run_finished_records_accumulators():
    _require_imports()
    m = _manifest()

    run_finished(m, ts=T0 + timedelta(seconds=2), status="success", accumulators={"totalWords": 18})

    assert m.run["status"] == "success"
    assert m.run["finished_at"] == "2026-01-16T12:00:02+00:00"
    assert m.events[-1]["payload"] == {"status": "success", "accumulators": {"totalWords": 18}}
