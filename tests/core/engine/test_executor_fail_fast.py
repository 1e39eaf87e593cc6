# tests/core/engine/test_executor_fail_fast.py
"""
Testes da política de falha do Engine.

Quando um stage falha:
- o erro é convertido em BraidErrorPayload e registrado no StageResult
  e no manifest
- os stages seguintes são marcados SKIPPED
- a run é marcada como "failed" e a exceção original é relançada

Invariantes:
    - Nenhum Run Handle é devolvido por uma run que falhou
    - O manifest da run falha continua inspecionável via Engine
"""

import pytest

try:
    from braid_dataflow.core.engine import Engine, StageStatus
    from braid_dataflow.core.exceptions import ViewShapeMismatchError
    from braid_dataflow.core.graph import DoFn, Pipeline
    from braid_dataflow.transforms import Count, Create, ParDo, View
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing Engine. Import error: {_IMPORT_ERR}""")


class _PrefixFn(DoFn):
    output_type = str

    def __init__(self, view):
        self.view = view

    def process(self, c):
        c.output(c.side_input(self.view) + c.element)


def test_failed_view_skips_downstream_stages():
    """
    Uma view singleton sobre duas linhas falha; o ParDo que a lê e o Count
    seguinte nunca são avaliados.
    """
    _require_imports()
    pipeline = Pipeline()
    prefix = pipeline.apply(Create.of("x-", "y-"), label="Prefixes").apply(View.as_singleton())
    words = pipeline.apply(Create.of("a", "b"), label="Words")
    words.apply(ParDo.of(_PrefixFn(prefix)).with_side_inputs(prefix)).apply(Count.per_element())

    engine = Engine(pipeline=pipeline)
    with pytest.raises(ViewShapeMismatchError) as excinfo:
        engine.run()

    assert excinfo.value.details["element_count"] == 2
    assert engine.stage_results["View.AsSingleton"].status == StageStatus.FAILED
    assert engine.stage_results["ParDo(_PrefixFn)"].status == StageStatus.SKIPPED
    assert engine.stage_results["Count.PerElement"].status == StageStatus.SKIPPED

    failed = engine.stage_results["View.AsSingleton"]
    assert failed.payload["error"]["type"] == "VIEW_SHAPE_MISMATCH"

    manifest = engine.manifest.to_dict()
    assert manifest["run"]["status"] == "failed"
    assert manifest["stages"]["View.AsSingleton"]["error"]["type"] == "VIEW_SHAPE_MISMATCH"
    assert manifest["stages"]["Count.PerElement"]["status"] == "skipped"
    assert manifest["events"][-1]["event_type"] == "run_finished"


def test_unexpected_error_is_wrapped_as_engine_error():
    """Exceções que não são do Braid viram ENGINE_EXECUTION_ERROR no payload."""
    _require_imports()

    class _Boom(DoFn):
        output_type = int

        def process(self, c):
            raise KeyError(c.element)

    pipeline = Pipeline({"engine": {"max_retries": 0}})
    pipeline.apply(Create.of(1, 2, 3)).apply(ParDo.of(_Boom()))

    engine = Engine(pipeline=pipeline)
    with pytest.raises(Exception):
        engine.run()

    error = engine.stage_results["ParDo(_Boom)"].payload["error"]
    assert error["type"] == "STAGE_EXECUTION_FAILED"
    assert error["details"]["cause"]["type"] == "ENGINE_EXECUTION_ERROR"
