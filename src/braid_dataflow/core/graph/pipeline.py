"""
Pipeline: construção estática do DAG de stages.

O Pipeline é montado uma única vez, antes da execução, aplicando
transforms sobre handles. Toda validação estrutural acontece aqui:

    - ids de stage únicos (labels explícitos duplicados falham)
    - tags de saída únicas dentro do stage e no pipeline inteiro
    - acumuladores com o mesmo nome exigem a mesma função de merge
    - handles de outro pipeline são rejeitados
    - toda coleção precisa de codec (verificado por `validate`, antes da run)

Decisões arquiteturais:
    - Transforms compostos abrem um escopo; o id de cada stage é o caminho
      de labels ("CountWords/ParDo(ExtractWordsFn)")
    - Labels gerados automaticamente recebem sufixo numérico em caso de colisão
    - O grafo não guarda dados; execução pertence ao engine

Limites explícitos:
    - Não planeja a ordem de execução
    - Não executa stages
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from braid_dataflow.core.accumulators import AccumulatorRegistry
from braid_dataflow.core.codecs import Codec, CodecRegistry, KvCodec, VarIntCodec, default_registry
from braid_dataflow.core.config import resolve_config
from braid_dataflow.core.exceptions import (
    DuplicateStageIdError,
    DuplicateTagError,
    IncompatibleInputsError,
    MissingCodecError,
    UnknownReferenceError,
)

from .fn import DoFn
from .registry import StageRegistry
from .stages import (
    CombineGloballyStage,
    CountStage,
    CreateStage,
    ParDoStage,
    Stage,
    StageKind,
    UnionStage,
    ViewStage,
)
from .values import (
    KV,
    Collection,
    CollectionList,
    OutputTag,
    PipelineRoot,
    TaggedOutputs,
    View,
    ViewShape,
)


def _infer_element_type(values: Sequence[Any]) -> Optional[type]:
    types = {type(v) for v in values}
    if len(types) == 1:
        return types.pop()
    return None


class Pipeline:
    """Grafo de stages e handles de um job."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        codec_registry: Optional[CodecRegistry] = None,
    ):
        self.config = resolve_config(config)
        self.codec_registry = codec_registry or default_registry()
        self.accumulators = AccumulatorRegistry()

        self._stages = StageRegistry()
        self._collections: Dict[str, Collection] = {}
        self._views: Dict[str, View] = {}
        self._tag_owners: Dict[OutputTag, str] = {}
        self._scope: List[str] = []
        self._labels: Set[str] = set()

    # -----------------------------
    # Aplicação de transforms
    # -----------------------------
    def apply(self, transform: Any, pvalue: Any = None, label: Optional[str] = None) -> Any:
        if pvalue is None:
            pvalue = PipelineRoot(self)
        self._check_owned_input(pvalue)

        full_label = self._claim_label(label or transform.default_label(), explicit=label is not None)
        self._scope.append(full_label)
        try:
            return transform.expand(pvalue)
        except Exception:
            self._release_label(full_label)
            raise
        finally:
            self._scope.pop()

    def _release_label(self, full_label: str) -> None:
        """Devolve o label (e sub-labels) de um apply que falhou sem criar stages."""
        prefix = f"{full_label}/"
        if any(s.id == full_label or s.id.startswith(prefix) for s in self._stages.list()):
            return
        self._labels = {
            claimed for claimed in self._labels
            if claimed != full_label and not claimed.startswith(prefix)
        }

    def current_scope(self) -> str:
        if not self._scope:
            raise RuntimeError("stages can only be added while a transform is being applied")
        return self._scope[-1]

    def _claim_label(self, name: str, *, explicit: bool) -> str:
        prefix = f"{self._scope[-1]}/" if self._scope else ""
        candidate = f"{prefix}{name}"
        if candidate in self._labels:
            if explicit:
                raise DuplicateStageIdError(
                    message=f"Duplicate stage id: {candidate}",
                    details={"stage_id": candidate},
                    hint="Use um label explícito e único no apply",
                )
            n = 2
            while f"{candidate}{n}" in self._labels:
                n += 1
            candidate = f"{candidate}{n}"
        self._labels.add(candidate)
        return candidate

    def _check_owned_input(self, pvalue: Any) -> None:
        if isinstance(pvalue, CollectionList):
            for collection in pvalue:
                self._require_collection(collection)
        elif isinstance(pvalue, Collection):
            self._require_collection(pvalue)
        elif isinstance(pvalue, PipelineRoot):
            if pvalue.pipeline is not self:
                raise UnknownReferenceError(
                    message="Transform applied to the root of another pipeline",
                    details={},
                )

    def _require_collection(self, collection: Collection) -> Collection:
        if self._collections.get(getattr(collection, "id", None)) is not collection:
            raise UnknownReferenceError(
                message=f"{collection!r} does not belong to this pipeline",
                details={"collection": repr(collection)},
            )
        return collection

    def _require_view(self, view: View) -> View:
        if self._views.get(getattr(view, "id", None)) is not view:
            raise UnknownReferenceError(
                message=f"{view!r} does not belong to this pipeline",
                details={"view": repr(view)},
                hint="Crie a view com View.as_singleton()/as_map() neste pipeline",
            )
        return view

    # -----------------------------
    # Construção de stages (usado pelos transforms primitivos)
    # -----------------------------
    def _new_collection(
        self,
        collection_id: str,
        producer: str,
        *,
        element_type: Optional[type] = None,
        codec: Optional[Codec] = None,
        codec_resolver: Optional[Callable[[], Optional[Codec]]] = None,
    ) -> Collection:
        collection = Collection(
            self,
            collection_id,
            producer=producer,
            element_type=element_type,
            codec=codec,
            codec_resolver=codec_resolver,
        )
        self._collections[collection_id] = collection
        return collection

    def add_create(
        self,
        values: Sequence[Any],
        *,
        element_type: Optional[type] = None,
        codec: Optional[Codec] = None,
    ) -> Collection:
        stage_id = self.current_scope()
        values = list(values)
        output = self._new_collection(
            f"{stage_id}.out",
            stage_id,
            element_type=element_type or _infer_element_type(values),
            codec=codec,
        )
        self._stages.add(CreateStage(id=stage_id, kind=StageKind.CREATE, values=values, output=output))
        return output

    def add_par_do(
        self,
        source: Collection,
        fn: DoFn,
        *,
        main_tag: OutputTag,
        additional_tags: Sequence[OutputTag] = (),
        side_inputs: Sequence[View] = (),
    ) -> TaggedOutputs:
        stage_id = self.current_scope()
        self._require_collection(source)
        if not isinstance(fn, DoFn):
            raise TypeError(f"ParDo expects a DoFn, got {type(fn).__name__}")

        tags = [main_tag, *additional_tags]
        seen: Set[OutputTag] = set()
        for tag in tags:
            if not isinstance(tag, OutputTag):
                raise TypeError(f"output tags must be OutputTag, got {type(tag).__name__}")
            if tag in seen:
                raise DuplicateTagError(
                    message=f"Tag {tag!r} declared twice in stage '{stage_id}'",
                    details={"stage_id": stage_id, "tag": repr(tag)},
                )
            owner = self._tag_owners.get(tag)
            if owner is not None:
                raise DuplicateTagError(
                    message=f"Tag {tag!r} already labels an output of stage '{owner}'",
                    details={"stage_id": stage_id, "owner": owner, "tag": repr(tag)},
                    hint="Crie um OutputTag novo para cada saída",
                )
            seen.add(tag)
        views = [self._require_view(v) for v in side_inputs]

        self.accumulators.register_all(
            (a.name, a.combine_fn) for a in fn.declared_accumulators()
        )

        names = [t.name for t in tags]
        use_names = all(names) and len(set(names)) == len(names)
        collections: Dict[OutputTag, Collection] = {}
        for index, tag in enumerate(tags):
            suffix = tag.name if use_names else f"out{index}"
            collections[tag] = self._new_collection(
                f"{stage_id}.{suffix}",
                stage_id,
                element_type=tag.element_type,
            )
            self._tag_owners[tag] = stage_id

        outputs = TaggedOutputs(main_tag, collections)
        self._stages.add(
            ParDoStage(
                id=stage_id,
                kind=StageKind.PAR_DO,
                inputs=[source],
                fn=fn,
                main_tag=main_tag,
                tags=tags,
                views=views,
                outputs=outputs,
            )
        )
        return outputs

    def add_union(self, sources: Sequence[Collection]) -> Collection:
        stage_id = self.current_scope()
        sources = [self._require_collection(c) for c in sources]
        if not sources:
            raise IncompatibleInputsError(
                message=f"Union '{stage_id}' needs at least one input",
                details={"stage_id": stage_id},
            )
        element_types = {c.element_type for c in sources}
        if len(element_types) > 1:
            raise IncompatibleInputsError(
                message=f"Union '{stage_id}' inputs have different element types",
                details={
                    "stage_id": stage_id,
                    "element_types": sorted(getattr(t, "__name__", str(t)) for t in element_types),
                },
            )
        first = sources[0]
        output = self._new_collection(
            f"{stage_id}.out",
            stage_id,
            element_type=first.element_type,
            codec_resolver=lambda: first.codec,
        )
        self._stages.add(UnionStage(id=stage_id, kind=StageKind.UNION, inputs=sources, output=output))
        return output

    def add_count(self, source: Collection) -> Collection:
        stage_id = self.current_scope()
        self._require_collection(source)

        def resolve() -> Optional[Codec]:
            key_codec = source.codec
            return KvCodec(key_codec, VarIntCodec()) if key_codec is not None else None

        output = self._new_collection(
            f"{stage_id}.out",
            stage_id,
            element_type=KV,
            codec_resolver=resolve,
        )
        self._stages.add(
            CountStage(id=stage_id, kind=StageKind.COUNT_PER_ELEMENT, inputs=[source], output=output)
        )
        return output

    def add_view(self, source: Collection, shape: ViewShape) -> View:
        stage_id = self.current_scope()
        self._require_collection(source)
        view = View(source, ViewShape(shape), stage_id)
        self._views[stage_id] = view
        self._stages.add(ViewStage(id=stage_id, kind=StageKind.VIEW, inputs=[source], view=view))
        return view

    def add_combine_globally(
        self,
        source: Collection,
        combiner: Any,
        *,
        output_type: Optional[type] = None,
        codec: Optional[Codec] = None,
    ) -> Collection:
        stage_id = self.current_scope()
        self._require_collection(source)
        output = self._new_collection(
            f"{stage_id}.out",
            stage_id,
            element_type=output_type,
            codec=codec,
        )
        self._stages.add(
            CombineGloballyStage(
                id=stage_id,
                kind=StageKind.COMBINE_GLOBALLY,
                inputs=[source],
                combiner=combiner,
                output=output,
            )
        )
        return output

    # -----------------------------
    # Consulta e validação
    # -----------------------------
    def stages(self) -> List[Stage]:
        return self._stages.list()

    def collections(self) -> List[Collection]:
        return list(self._collections.values())

    def owns(self, ref: Any) -> bool:
        if isinstance(ref, Collection):
            return self._collections.get(ref.id) is ref
        if isinstance(ref, View):
            return self._views.get(ref.id) is ref
        if isinstance(ref, OutputTag):
            return ref in self._tag_owners
        return False

    def collection_for_tag(self, tag: OutputTag) -> Collection:
        owner = self._tag_owners.get(tag)
        if owner is None:
            raise UnknownReferenceError(
                message=f"{tag!r} does not label any output of this pipeline",
                details={"tag": repr(tag)},
            )
        stage = self._stages.get(owner)
        return stage.outputs[tag]  # type: ignore[attr-defined]

    def validate(self) -> None:
        """
        Verifica pré-condições de execução que dependem do grafo completo.

        Raises:
            MissingCodecError: Se alguma coleção não tiver codec resolvível.
        """
        for collection in self._collections.values():
            if collection.codec is None:
                element_type = collection.element_type
                raise MissingCodecError(
                    message=f"No codec for {collection!r}",
                    details={
                        "collection": collection.id,
                        "producer": collection.producer,
                        "element_type": getattr(element_type, "__name__", None),
                    },
                    hint="Chame set_codec na coleção ou registre o tipo no CodecRegistry",
                )

    def describe(self) -> Dict[str, Any]:
        return {
            "stages": [stage.describe() for stage in self.stages()],
            "accumulators": {
                name: repr(self.accumulators.combine_fn(name)) for name in self.accumulators.names()
            },
        }

    def run(self, runner: Any = None) -> Any:
        from braid_dataflow.core.engine.engine import PipelineRunner

        return (runner or PipelineRunner()).run(self)
