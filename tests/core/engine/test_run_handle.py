# tests/core/engine/test_run_handle.py
"""
Testes do Run Handle (EvaluationResult).

Este módulo valida a fachada pós-execução:
- `get` aceita coleções e tags do pipeline executado
- `get_accumulator` confere o tipo declarado do acumulador
- `close` libera a run e invalida todas as outras operações

Invariantes:
    - Referências de outro pipeline falham com UnknownReferenceError
    - Após `close()`, toda operação falha com ClosedHandleError
    - `close()` é idempotente
"""

import pytest

try:
    from braid_dataflow.core.accumulators import MaxIntFn, SumIntFn
    from braid_dataflow.core.engine import PipelineRunner
    from braid_dataflow.core.exceptions import (
        AccumulatorTypeMismatchError,
        ClosedHandleError,
        UnknownAccumulatorError,
        UnknownReferenceError,
    )
    from braid_dataflow.core.graph import DoFn, OutputTag, Pipeline
    from braid_dataflow.transforms import Create, ParDo
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing Run Handle. Import error: {_IMPORT_ERR}")


def _length_pipeline():
    class _LengthFn(DoFn):
        output_type = int

        def __init__(self):
            self.total = self.create_accumulator("total", SumIntFn())
            self.longest = self.create_accumulator("longest", MaxIntFn())

        def process(self, c):
            self.total.add(1)
            self.longest.add(len(c.element))
            c.output(len(c.element))

    pipeline = Pipeline()
    lengths = pipeline.apply(Create.of("a", "bbb", "cc")).apply(ParDo.of(_LengthFn()))
    return pipeline, lengths


def test_get_and_accumulators():
    _require_imports()
    pipeline, lengths = _length_pipeline()
    result = PipelineRunner.create().run(pipeline)

    assert sorted(result.get(lengths)) == [1, 2, 3]
    assert result.get_accumulator("total", int) == 3
    assert result.get_accumulator("longest", int) == 3
    assert result.accumulators() == {"longest": 3, "total": 3}
    result.close()


def test_accumulator_type_mismatch():
    _require_imports()
    pipeline, _ = _length_pipeline()

    with PipelineRunner.create().run(pipeline) as result:
        with pytest.raises(AccumulatorTypeMismatchError):
            result.get_accumulator("total", float)
        with pytest.raises(UnknownAccumulatorError):
            result.get_accumulator("missing", int)


def test_foreign_references_are_rejected():
    _require_imports()
    pipeline, _ = _length_pipeline()
    other = Pipeline()
    foreign = other.apply(Create.of(1))

    with PipelineRunner.create().run(pipeline) as result:
        with pytest.raises(UnknownReferenceError):
            result.get(foreign)
        with pytest.raises(UnknownReferenceError):
            result.get(OutputTag("never-declared", int))
        with pytest.raises(UnknownReferenceError):
            result.get("Create.out")


def test_closed_handle_rejects_every_operation():
    """
    Verifica que `close()` invalida o handle por completo.

    Invariantes:
        - get / get_accumulator / accumulators / stage_results falham
        - uma segunda chamada a close() não falha
    """
    _require_imports()
    pipeline, lengths = _length_pipeline()
    result = PipelineRunner.create().run(pipeline)
    result.close()

    assert result.closed
    with pytest.raises(ClosedHandleError):
        result.get(lengths)
    with pytest.raises(ClosedHandleError):
        result.get_accumulator("total", int)
    with pytest.raises(ClosedHandleError):
        result.accumulators()
    with pytest.raises(ClosedHandleError):
        result.stage_results
    result.close()


def test_context_manager_closes_handle():
    _require_imports()
    pipeline, lengths = _length_pipeline()

    with PipelineRunner.create().run(pipeline) as result:
        assert result.get(lengths)

    assert result.closed


def test_each_run_has_its_own_accumulators():
    """Duas runs do mesmo pipeline não somam acumuladores entre si."""
    _require_imports()
    pipeline, _ = _length_pipeline()
    runner = PipelineRunner.create()

    with runner.run(pipeline) as first, runner.run(pipeline) as second:
        assert first.get_accumulator("total", int) == 3
        assert second.get_accumulator("total", int) == 3
        assert first.run_id != second.run_id
