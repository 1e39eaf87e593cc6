# tests/core/graph/test_stage_ids.py
"""
Testes de identidade de stages na construção do pipeline.

Invariantes:
    - O id de um stage é o caminho de labels dos transforms que o contêm
    - Labels automáticos repetidos recebem sufixo numérico
    - Labels explícitos repetidos falham com DuplicateStageIdError
"""

import pytest

try:
    from braid_dataflow.core.exceptions import DuplicateStageIdError
    from braid_dataflow.core.graph import Pipeline, StageRegistry
    from braid_dataflow.core.graph.stages import Stage, StageKind
    from braid_dataflow.transforms import Count, Create, PTransform
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing graph module. Import error: {_IMPORT_ERR}")


def test_auto_labels_get_suffixes():
    _require_imports()
    pipeline = Pipeline()
    pipeline.apply(Create.of(1))
    pipeline.apply(Create.of(2))
    pipeline.apply(Create.of(3))

    assert [s.id for s in pipeline.stages()] == ["Create", "Create2", "Create3"]


def test_explicit_duplicate_label_fails():
    _require_imports()
    pipeline = Pipeline()
    pipeline.apply(Create.of(1), label="Numbers")

    with pytest.raises(DuplicateStageIdError):
        pipeline.apply(Create.of(2), label="Numbers")


def test_composite_transforms_scope_their_stages():
    """Stages de um transform composto ficam sob o label do composto."""
    _require_imports()

    class CountTwice(PTransform):
        def expand(self, pcoll):
            return pcoll.apply(Count.per_element()), pcoll.apply(Count.per_element())

    pipeline = Pipeline()
    words = pipeline.apply(Create.of("a", "b"))
    first, second = words.apply(CountTwice())

    assert first.producer == "CountTwice/Count.PerElement"
    assert second.producer == "CountTwice/Count.PerElement2"
    assert first.id == "CountTwice/Count.PerElement.out"


def test_stage_registry_rejects_duplicates():
    _require_imports()
    registry = StageRegistry()
    registry.add(Stage(id="a", kind=StageKind.CREATE))

    with pytest.raises(DuplicateStageIdError):
        registry.add(Stage(id="a", kind=StageKind.CREATE))
    with pytest.raises(ValueError):
        registry.add(Stage(id=" ", kind=StageKind.CREATE))
    assert "a" in registry
    assert [s.id for s in registry.list()] == ["a"]


def test_dependencies_follow_inputs_and_views():
    _require_imports()
    pipeline = Pipeline()
    words = pipeline.apply(Create.of("a"))
    words.apply(Count.per_element())

    count_stage = pipeline.stages()[-1]
    assert count_stage.kind == StageKind.COUNT_PER_ELEMENT
    assert count_stage.depends_on == ["Create"]
    assert count_stage.describe()["outputs"] == ["Count.PerElement.out"]
